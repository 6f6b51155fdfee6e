"""
Data models for the lyrics translation pipeline

Stage requests and results, the ServiceError record accumulated during a
pipeline run, and the PipelineOutcome returned to callers. Every structure
here is request-scoped: it is created for one pipeline invocation and owned
by the caller once returned.
"""

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class Stage(Enum):
    """Pipeline stages, also used as provider-key prefixes"""
    RECOGNITION = "recognition"
    LYRICS = "lyrics"
    TRANSLATION = "translation"


class PipelineStatus(Enum):
    """Terminal state of one pipeline run"""
    DONE = "done"
    FAIL = "fail"


class HealthStatus(Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ErrorCode(Enum):
    """
    Classification of a recorded ServiceError

    - RATE_LIMITED: admission denied by the rate limiter (carries retry_after)
    - PROVIDER_ERROR: adapter raised a transport or protocol error
    - TIMEOUT: adapter exceeded its per-provider timeout
    - STAGE_EXHAUSTED: no provider of a stage produced a result
    - MISSING_INPUT: a stage precondition was not met (artist/title, lyrics)
    - INVALID_INPUT: caller input rejected (unsupported language)
    - PIPELINE: unexpected failure caught at a public entry point
    """
    RATE_LIMITED = "rate_limited"
    PROVIDER_ERROR = "provider_error"
    TIMEOUT = "timeout"
    STAGE_EXHAUSTED = "stage_exhausted"
    MISSING_INPUT = "missing_input"
    INVALID_INPUT = "invalid_input"
    PIPELINE = "pipeline"


# ---------------------------------------------------------------------------
# Stage requests
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RecognitionRequest:
    audio: bytes


@dataclass(frozen=True)
class LyricsRequest:
    artist: str
    title: str


@dataclass(frozen=True)
class TranslationRequest:
    text: str
    target_language: str
    source_language: str = "auto"


# ---------------------------------------------------------------------------
# Stage results
# ---------------------------------------------------------------------------

@dataclass
class RecognitionResult:
    """
    Song identified from an audio sample

    Attributes:
        source: Provider that identified the song
        title: Track title
        artist: Primary artist
        album: Album name if reported
        duration: Track duration in seconds
        confidence: Provider match confidence (0-1)
    """
    source: str
    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    duration: Optional[float] = None
    confidence: Optional[float] = None

    def is_empty(self) -> bool:
        return not (self.title or self.artist)


@dataclass
class LyricsResult:
    """Lyrics text with the song identity it was found for"""
    lyrics: str
    title: str
    artist: str
    source: str

    def is_empty(self) -> bool:
        return not (self.lyrics or "").strip()


@dataclass
class TranslationResult:
    """Translated text with the language pair actually used"""
    translated_text: str
    source_language: str
    target_language: str
    source: str

    def is_empty(self) -> bool:
        return not (self.translated_text or "").strip()


# ---------------------------------------------------------------------------
# Errors and outcomes
# ---------------------------------------------------------------------------

@dataclass
class ServiceError:
    """
    One failure recorded during a pipeline run

    Never raised; collected on the PipelineOutcome.

    Attributes:
        service: Provider display name, or stage name for stage-level failures
        error: Human-readable message
        retry_after: Milliseconds until the provider admits requests again
        code: Failure classification
    """
    service: str
    error: str
    retry_after: Optional[float] = None
    code: Optional[ErrorCode] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'service': self.service, 'error': self.error}
        if self.retry_after is not None:
            data['retry_after'] = self.retry_after
        if self.code is not None:
            data['code'] = self.code.value
        return data


@dataclass
class SongInfo:
    artist: str
    title: str

    def is_complete(self) -> bool:
        return bool((self.artist or "").strip() and (self.title or "").strip())


@dataclass
class TranslationOptions:
    """
    Options for translate_from_audio

    Attributes:
        target_language: Language to translate into
        source_language: Language of the lyrics; None means auto-detect
        skip_audio_recognition: Do not run the recognition stage
        manual_song_info: Artist/title supplied by the caller; skips recognition
        best_quality: Query every admissible translation provider and keep the
            best-scoring result; None uses the configured default
    """
    target_language: str
    source_language: Optional[str] = None
    skip_audio_recognition: bool = False
    manual_song_info: Optional[SongInfo] = None
    best_quality: Optional[bool] = None


@dataclass
class BatchRequest:
    artist: str
    title: str
    target_language: str
    source_language: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'BatchRequest':
        """Build from a mapping; missing artist/title become empty strings"""
        return cls(
            artist=data.get('artist') or "",
            title=data.get('title') or "",
            target_language=data.get('target_language') or data.get('targetLanguage') or "",
            source_language=data.get('source_language') or data.get('sourceLanguage'),
        )


@dataclass
class PipelineOutcome:
    """
    Result of one pipeline invocation

    Stage results are present only for the stages that completed. Callers
    check for the stage result they need rather than relying on exceptions.

    Attributes:
        recognition: Recognized song, when the recognition stage ran and succeeded
        lyrics: Lyrics found (or passed through by translate_lyrics_only)
        translation: Translated lyrics
        errors: Every failure recorded during the run
        processing_time_millis: Wall-clock duration of the run
        confidence: Heuristic overall confidence (0-1), 0 for failed runs
        status: DONE when every required stage succeeded, FAIL otherwise
        failed_stage: Stage that ended the run, when status is FAIL
    """
    recognition: Optional[RecognitionResult] = None
    lyrics: Optional[LyricsResult] = None
    translation: Optional[TranslationResult] = None
    errors: List[ServiceError] = field(default_factory=list)
    processing_time_millis: float = 0.0
    confidence: float = 0.0
    status: PipelineStatus = PipelineStatus.DONE
    failed_stage: Optional[Stage] = None

    @property
    def succeeded(self) -> bool:
        return self.status == PipelineStatus.DONE

    def fail(self, stage: Optional[Stage], error: ServiceError) -> None:
        """Record a fatal error; confidence is not reported for failed runs"""
        self.errors.append(error)
        self.status = PipelineStatus.FAIL
        self.failed_stage = stage
        self.confidence = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'recognition': dataclasses.asdict(self.recognition) if self.recognition else None,
            'lyrics': dataclasses.asdict(self.lyrics) if self.lyrics else None,
            'translation': dataclasses.asdict(self.translation) if self.translation else None,
            'errors': [error.to_dict() for error in self.errors],
            'processing_time_millis': self.processing_time_millis,
            'confidence': self.confidence,
            'status': self.status.value,
            'failed_stage': self.failed_stage.value if self.failed_stage else None,
        }


@dataclass
class HealthReport:
    """Availability derived from rate limiter state; no network calls involved"""
    status: HealthStatus
    services: Dict[str, bool]
    details: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'services': dict(self.services),
            'details': list(self.details),
        }
