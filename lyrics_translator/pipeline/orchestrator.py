"""
Pipeline orchestration: recognize -> fetch lyrics -> translate

LyricsTranslatorService is the public entry point of the package. It chains
the three stages, wraps each stage in a bounded retry, and returns a
PipelineOutcome carrying whatever progress was made together with every error
recorded on the way. No exception escapes a public entry point.

Stage flow:

    START -> RECOGNIZE      (skipped with manual song info or when requested)
          -> FETCH_LYRICS   (requires non-empty artist and title)
          -> TRANSLATE      (requires non-empty lyrics text)
          -> DONE

Any stage that exhausts its providers ends the run with status FAIL and a
stage-level error. A stage is retried (up to PipelineConfig.max_retries
attempts, retry_delay_millis apart) only when at least one provider raised
or timed out; rate-limit denials and clean misses are final for the run.

The only state shared between runs is the RateLimiter held by the service.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from ..config.settings import Settings, get_settings
from ..core.dispatcher import DispatchResult, FallbackDispatcher
from ..core.exceptions import UnsupportedLanguageError
from ..core.models import (
    BatchRequest,
    ErrorCode,
    HealthReport,
    HealthStatus,
    LyricsResult,
    PipelineOutcome,
    PipelineStatus,
    RecognitionRequest,
    ServiceError,
    SongInfo,
    Stage,
    TranslationOptions,
)
from ..core.rate_limiter import RateLimiter
from ..core.scoring import LanguageDetector, calculate_pipeline_confidence, detect_language
from ..lyrics import LyricsApiProvider, LyricsOvhProvider, LyricsService, MusixmatchLyricsProvider
from ..recognition import ACRCloudRecognitionProvider, AudDRecognitionProvider
from ..translation import (
    GoogleFreeTranslationProvider,
    LibreTranslateProvider,
    MyMemoryTranslationProvider,
    TranslationService,
)
from ..utils.http import HttpClient
from ..utils.logger import OperationLogger, get_logger


STAGE_FAILURE_MESSAGES = {
    Stage.RECOGNITION: "Failed to recognize audio from all available services",
    Stage.LYRICS: "Failed to fetch lyrics from all available services",
    Stage.TRANSLATION: "Failed to translate lyrics from all available services",
}

MANUAL_SOURCE = "Manual"


class LyricsTranslatorService:
    """
    Lyrics translation pipeline

    Example:
        async with LyricsTranslatorService() as service:
            outcome = await service.translate_from_song_info("The Beatles", "Yesterday", "es")
            if outcome.translation:
                print(outcome.translation.translated_text)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        rate_limiter: Optional[RateLimiter] = None,
        http_client: Optional[HttpClient] = None,
        recognition_providers: Optional[Sequence[Any]] = None,
        lyrics_providers: Optional[Sequence[Any]] = None,
        translation_providers: Optional[Sequence[Any]] = None,
        language_detector: LanguageDetector = detect_language,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        """
        Initialize the pipeline

        Providers are built from the settings' provider table and stage order
        unless explicit provider lists are passed.

        Args:
            settings: Application settings, defaults to the global instance
            rate_limiter: Shared rate limiter, a fresh one is created if omitted
            http_client: HTTP client for the built-in adapters
            recognition_providers: Recognition adapters in priority order
            lyrics_providers: Lyrics adapters in priority order
            translation_providers: Translation adapters in priority order
            language_detector: Detector used when a provider needs an explicit source language
            sleep: Coroutine used for every retry, chunk and batch delay
        """
        self.settings = settings or get_settings()
        self.rate_limiter = rate_limiter or RateLimiter()
        self.http = http_client or HttpClient(user_agent=self.settings.network.user_agent)
        self.language_detector = language_detector
        self.sleep = sleep
        self.logger = get_logger(__name__)

        if recognition_providers is None:
            recognition_providers = self._build_providers(Stage.RECOGNITION, self.settings.recognition.providers)
        if lyrics_providers is None:
            lyrics_providers = self._build_providers(Stage.LYRICS, self.settings.lyrics.providers)
        if translation_providers is None:
            translation_providers = self._build_providers(Stage.TRANSLATION, self.settings.translation.providers)

        self.recognition_dispatcher = FallbackDispatcher(
            Stage.RECOGNITION, recognition_providers, self.rate_limiter, sleep=sleep
        )
        self.lyrics_service = LyricsService(
            FallbackDispatcher(Stage.LYRICS, lyrics_providers, self.rate_limiter, sleep=sleep),
            self.settings.lyrics
        )
        self.translation_service = TranslationService(
            FallbackDispatcher(Stage.TRANSLATION, translation_providers, self.rate_limiter, sleep=sleep),
            self.settings.translation,
            sleep=sleep
        )

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    def _create_adapter(self, stage: Stage, name: str, config) -> Optional[Any]:
        if stage == Stage.RECOGNITION:
            adapters = {
                'acrcloud': ACRCloudRecognitionProvider,
                'audd': AudDRecognitionProvider,
            }
        elif stage == Stage.LYRICS:
            adapters = {
                'musixmatch': MusixmatchLyricsProvider,
                'lyrics_ovh': LyricsOvhProvider,
                'lyrics_api': LyricsApiProvider,
            }
        else:
            if name == 'mymemory':
                return MyMemoryTranslationProvider(config, self.http, detector=self.language_detector)
            adapters = {
                'libretranslate': LibreTranslateProvider,
                'google_free': GoogleFreeTranslationProvider,
            }

        adapter_class = adapters.get(name)
        return adapter_class(config, self.http) if adapter_class else None

    def _build_providers(self, stage: Stage, names: Iterable[str]) -> List[Any]:
        """Instantiate the built-in adapters for a stage in configured order"""
        providers = []
        for name in names:
            key = f"{stage.value}_{name}"
            config = self.settings.providers.get(key)
            adapter = self._create_adapter(stage, name, config) if config else None
            if adapter is None:
                self.logger.warning(f"Unknown {stage.value} provider '{name}' ignored")
                continue
            if not adapter.is_enabled:
                self.logger.debug(f"{config.name} disabled: missing {', '.join(config.missing_credentials)}")
            providers.append(adapter)
        return providers

    # ------------------------------------------------------------------
    # Stage execution
    # ------------------------------------------------------------------

    async def _run_stage(
        self,
        stage: Stage,
        operation: Callable[[], Awaitable[DispatchResult]],
        outcome: PipelineOutcome
    ) -> Optional[Any]:
        """
        Run one stage with bounded retry

        Errors from every attempt are appended to outcome.errors.

        Returns:
            Stage result, or None when the stage is exhausted
        """
        max_attempts = max(1, self.settings.pipeline.max_retries)

        for attempt in range(max_attempts):
            dispatch = await operation()
            outcome.errors.extend(dispatch.errors)

            if dispatch.result is not None:
                return dispatch.result

            if not dispatch.has_provider_failures or attempt == max_attempts - 1:
                break

            self.logger.warning(f"{stage.value.capitalize()} attempt {attempt + 1} failed, retrying...")
            await self.sleep(self.settings.pipeline.retry_delay_millis / 1000.0)

        self.logger.error(f"{stage.value.capitalize()} failed after all retries")
        return None

    def _fail_stage(self, outcome: PipelineOutcome, stage: Stage) -> None:
        outcome.fail(stage, ServiceError(
            service=stage.value,
            error=STAGE_FAILURE_MESSAGES[stage],
            code=ErrorCode.STAGE_EXHAUSTED
        ))

    def _validate_target(self, outcome: PipelineOutcome, target_language: str) -> Optional[str]:
        try:
            return self.translation_service.validate_target_language(target_language)
        except UnsupportedLanguageError as e:
            self.logger.warning(str(e))
            outcome.fail(Stage.TRANSLATION, ServiceError(
                service=Stage.TRANSLATION.value,
                error=e.message,
                code=ErrorCode.INVALID_INPUT
            ))
            return None

    async def _translate_stage(
        self,
        outcome: PipelineOutcome,
        text: str,
        target_language: str,
        source_language: Optional[str],
        best_quality: Optional[bool]
    ) -> None:
        self.logger.info(f"Translating lyrics to {target_language}...")
        source = source_language or self.settings.pipeline.default_source_language

        translation = await self._run_stage(
            Stage.TRANSLATION,
            lambda: self.translation_service.translate(text, target_language, source, best_quality),
            outcome
        )
        if translation is None:
            self._fail_stage(outcome, Stage.TRANSLATION)
            return

        outcome.translation = translation
        outcome.status = PipelineStatus.DONE
        outcome.confidence = calculate_pipeline_confidence(
            outcome.recognition, outcome.lyrics, outcome.translation, outcome.errors
        )

    async def _run_pipeline(self, audio: bytes, options: TranslationOptions, outcome: PipelineOutcome) -> None:
        target_language = self._validate_target(outcome, options.target_language)
        if target_language is None:
            return

        song_info = options.manual_song_info

        if song_info is None and not options.skip_audio_recognition:
            self.logger.info("Starting audio recognition...")
            recognition = await self._run_stage(
                Stage.RECOGNITION,
                lambda: self.recognition_dispatcher.dispatch(RecognitionRequest(audio=audio)),
                outcome
            )
            if recognition is None:
                self._fail_stage(outcome, Stage.RECOGNITION)
                return
            outcome.recognition = recognition
            song_info = SongInfo(artist=recognition.artist or "", title=recognition.title or "")

        if song_info is None or not song_info.is_complete():
            outcome.fail(Stage.LYRICS, ServiceError(
                service=Stage.LYRICS.value,
                error="Missing artist or title information",
                code=ErrorCode.MISSING_INPUT
            ))
            return

        lyrics = await self._run_stage(
            Stage.LYRICS,
            lambda: self.lyrics_service.get_lyrics(song_info.artist, song_info.title),
            outcome
        )
        if lyrics is None:
            self._fail_stage(outcome, Stage.LYRICS)
            return
        outcome.lyrics = lyrics

        await self._translate_stage(
            outcome, lyrics.lyrics, target_language, options.source_language, options.best_quality
        )

    def _record_unexpected(self, outcome: PipelineOutcome, error: Exception) -> None:
        self.logger.error(f"Unexpected pipeline error: {error}", exc_info=error)
        outcome.fail(outcome.failed_stage, ServiceError(
            service="pipeline",
            error=str(error) or error.__class__.__name__,
            code=ErrorCode.PIPELINE
        ))

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    async def translate_from_audio(self, audio: bytes, options: TranslationOptions) -> PipelineOutcome:
        """
        Complete pipeline: audio recognition -> lyrics -> translation

        Args:
            audio: Audio sample bytes (ignored when recognition is skipped)
            options: Target language and stage options

        Returns:
            PipelineOutcome with the results of every completed stage
        """
        start_time = time.time()
        outcome = PipelineOutcome()

        try:
            await self._run_pipeline(audio, options, outcome)
        except Exception as e:
            self._record_unexpected(outcome, e)

        outcome.processing_time_millis = (time.time() - start_time) * 1000.0
        return outcome

    async def translate_from_song_info(
        self,
        artist: str,
        title: str,
        target_language: str,
        source_language: Optional[str] = None
    ) -> PipelineOutcome:
        """Pipeline without recognition: artist/title -> lyrics -> translation"""
        return await self.translate_from_audio(b"", TranslationOptions(
            target_language=target_language,
            source_language=source_language,
            skip_audio_recognition=True,
            manual_song_info=SongInfo(artist=artist or "", title=title or ""),
        ))

    async def translate_lyrics_only(
        self,
        text: str,
        target_language: str,
        source_language: Optional[str] = None,
        song_info: Optional[SongInfo] = None
    ) -> PipelineOutcome:
        """
        Translate lyrics the caller already has

        The text is passed through unchanged as the outcome's lyrics with
        source "Manual".

        Args:
            text: Lyrics text
            target_language: Target language code
            source_language: Source language code, None to detect
            song_info: Optional artist/title attached to the passthrough lyrics

        Returns:
            PipelineOutcome with lyrics and, on success, translation
        """
        start_time = time.time()
        outcome = PipelineOutcome(lyrics=LyricsResult(
            lyrics=text,
            title=(song_info.title if song_info and song_info.title else "Unknown Title"),
            artist=(song_info.artist if song_info and song_info.artist else "Unknown Artist"),
            source=MANUAL_SOURCE
        ))

        try:
            target = self._validate_target(outcome, target_language)
            if target is not None:
                if not (text or "").strip():
                    outcome.fail(Stage.TRANSLATION, ServiceError(
                        service=Stage.TRANSLATION.value,
                        error="No lyrics text to translate",
                        code=ErrorCode.MISSING_INPUT
                    ))
                else:
                    await self._translate_stage(outcome, text, target, source_language, None)
        except Exception as e:
            self._record_unexpected(outcome, e)

        outcome.processing_time_millis = (time.time() - start_time) * 1000.0
        return outcome

    async def batch_translate(
        self,
        requests: Iterable[Union[BatchRequest, Mapping[str, Any]]]
    ) -> List[PipelineOutcome]:
        """
        Translate several songs sequentially

        Items are processed one at a time with PipelineConfig.batch_delay_millis
        between them. A failing item never stops the batch.

        Args:
            requests: BatchRequest objects or mappings with artist, title,
                target_language and optional source_language

        Returns:
            One PipelineOutcome per request, in request order
        """
        items = list(requests)
        total = len(items)
        results: List[PipelineOutcome] = []

        operation = OperationLogger(self.logger, "Batch translation")
        operation.start(f"Translating {total} songs")

        for index, request in enumerate(items):
            outcome = PipelineOutcome()
            try:
                item = request if isinstance(request, BatchRequest) else BatchRequest.from_dict(request)
            except (AttributeError, TypeError) as e:
                self.logger.warning(f"Invalid batch item {index + 1}: {request!r}")
                outcome.fail(None, ServiceError(
                    service="pipeline",
                    error=f"Invalid batch request: {e}",
                    code=ErrorCode.INVALID_INPUT
                ))
                item = None

            if item is not None:
                operation.progress(f"{item.artist} - {item.title}", index + 1, total)
                try:
                    outcome = await self.translate_from_song_info(
                        item.artist, item.title, item.target_language, item.source_language
                    )
                except Exception as e:
                    self._record_unexpected(outcome, e)
            results.append(outcome)

            if index < total - 1 and self.settings.pipeline.batch_delay_millis > 0:
                await self.sleep(self.settings.pipeline.batch_delay_millis / 1000.0)

        succeeded = sum(1 for outcome in results if outcome.succeeded)
        operation.complete(f"Batch finished: {succeeded}/{total} translated")
        return results

    async def search_lyrics(self, query: str) -> List[LyricsResult]:
        """Free-form lyrics search ("Artist - Title"); empty list when nothing matches"""
        try:
            return await self.lyrics_service.search_lyrics(query)
        except Exception as e:
            self.logger.error(f"Lyrics search failed for {query!r}: {e}", exc_info=e)
            return []

    def get_supported_languages(self) -> List[Dict[str, str]]:
        return self.translation_service.get_supported_languages()

    def get_service_status(self) -> Dict[str, Any]:
        """
        Rate limit status of every provider and per-stage availability

        Returns:
            Dictionary with recognition, lyrics and translation provider
            status ({remaining, reset_time, enabled} per provider key) and an
            availability map
        """
        return {
            'recognition': self.recognition_dispatcher.get_rate_limit_status(),
            'lyrics': self.lyrics_service.get_rate_limit_status(),
            'translation': self.translation_service.get_rate_limit_status(),
            'availability': self._stage_availability(),
        }

    def _stage_availability(self) -> Dict[str, bool]:
        return {
            Stage.RECOGNITION.value: self.recognition_dispatcher.is_available(),
            Stage.LYRICS.value: self.lyrics_service.is_available(),
            Stage.TRANSLATION.value: self.translation_service.is_available(),
        }

    def health_check(self) -> HealthReport:
        """
        Derive overall health from rate limiter state

        healthy when every stage has an admissible provider, degraded when
        one or two do, unhealthy when none does. No provider is called and
        no quota is consumed.
        """
        services = self._stage_availability()
        available = sum(1 for is_up in services.values() if is_up)

        details = [
            f"{stage} services unavailable (not configured or rate limited)"
            for stage, is_up in services.items() if not is_up
        ]

        if available == len(services):
            status = HealthStatus.HEALTHY
        elif available > 0:
            status = HealthStatus.DEGRADED
        else:
            status = HealthStatus.UNHEALTHY

        return HealthReport(status=status, services=services, details=details)

    async def close(self) -> None:
        """Release the HTTP session"""
        await self.http.close()

    async def __aenter__(self) -> "LyricsTranslatorService":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


_service: Optional[LyricsTranslatorService] = None


def get_lyrics_translator_service() -> LyricsTranslatorService:
    """
    Get the global pipeline instance

    Creates the instance on first access so every caller shares one rate
    limiter and one HTTP session.
    """
    global _service
    if _service is None:
        _service = LyricsTranslatorService()
    return _service


def reset_lyrics_translator_service() -> None:
    """
    Drop the global pipeline instance

    The caller is responsible for awaiting close() on the old instance if
    its HTTP session was opened.
    """
    global _service
    _service = None
