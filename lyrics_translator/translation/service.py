"""
Translation stage: chunked translation through the provider fallback chain

Lyrics longer than the configured chunk size are split on line boundaries and
each chunk is dispatched separately, with a pause between chunks to spread
load over the free quotas. The language detected for the first chunk is
reused for the following ones so every chunk is translated from the same
source language.

Two dispatch modes are available:
- first success (default): the first provider that returns a translation wins
- best quality (opt-in): every admissible provider is queried and the
  translation with the highest heuristic score is kept
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..config.settings import SUPPORTED_LANGUAGES, TranslationConfig
from ..core.dispatcher import DispatchResult, FallbackDispatcher
from ..core.exceptions import UnsupportedLanguageError
from ..core.models import TranslationRequest, TranslationResult
from ..core.scoring import TranslationScorer, score_translation
from ..utils.helpers import normalize_language_code, split_text_into_chunks
from ..utils.logger import get_logger


COMBINED_SOURCE = "Combined"


class TranslationService:
    """Translation stage coordinator"""

    def __init__(
        self,
        dispatcher: FallbackDispatcher,
        config: Optional[TranslationConfig] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        scorer: Optional[TranslationScorer] = None
    ):
        """
        Args:
            dispatcher: Dispatcher over the translation providers in priority order
            config: Translation stage configuration
            sleep: Coroutine used for the pause between chunks
            scorer: Quality scorer for best-quality mode, (original_text, result) -> float
        """
        self.dispatcher = dispatcher
        self.config = config or TranslationConfig()
        self.sleep = sleep
        self.scorer = scorer or self._default_scorer
        self.logger = get_logger(__name__)

    def _default_scorer(self, original_text: str, result: TranslationResult) -> float:
        return score_translation(original_text, result, self.config.trusted_sources)

    @staticmethod
    def get_supported_languages() -> List[Dict[str, str]]:
        return [dict(language) for language in SUPPORTED_LANGUAGES]

    @staticmethod
    def is_supported_language(code: str) -> bool:
        return any(language['code'] == code for language in SUPPORTED_LANGUAGES)

    def validate_target_language(self, target_language: str) -> str:
        """
        Normalize and validate a translation target

        Returns:
            Normalized two-letter code

        Raises:
            UnsupportedLanguageError: If the language is not in the supported table
        """
        code = normalize_language_code(target_language)
        if not self.is_supported_language(code):
            raise UnsupportedLanguageError(target_language)
        return code

    async def _dispatch_chunk(self, request: TranslationRequest, best_quality: bool) -> DispatchResult:
        if best_quality:
            return await self.dispatcher.dispatch_best(
                request,
                lambda req, result: self.scorer(req.text, result),
                delay_millis=self.config.best_quality_delay_millis
            )
        return await self.dispatcher.dispatch(request)

    async def translate(
        self,
        text: str,
        target_language: str,
        source_language: Optional[str] = None,
        best_quality: Optional[bool] = None
    ) -> DispatchResult:
        """
        Translate text, chunking it when it exceeds the configured chunk size

        Args:
            text: Text to translate
            target_language: Target language code (aliases like "pt-BR" accepted)
            source_language: Source language code, None or "auto" to detect
            best_quality: Override TranslationConfig.best_quality for this call

        Returns:
            DispatchResult carrying the combined TranslationResult, or no
            result when any chunk could not be translated, plus every error
            recorded along the way

        Raises:
            UnsupportedLanguageError: If the target language is not supported
        """
        target = self.validate_target_language(target_language)
        source = normalize_language_code(source_language) if source_language else 'auto'
        if best_quality is None:
            best_quality = self.config.best_quality

        chunks = split_text_into_chunks(text, self.config.chunk_size)
        if len(chunks) > 1:
            self.logger.info(f"Translating {len(text)} characters in {len(chunks)} chunks")

        combined = DispatchResult()
        translated_chunks: List[str] = []
        sources: List[str] = []

        for index, chunk in enumerate(chunks):
            if index > 0 and self.config.chunk_delay_millis > 0:
                await self.sleep(self.config.chunk_delay_millis / 1000.0)

            outcome = await self._dispatch_chunk(TranslationRequest(chunk, target, source), best_quality)
            combined.errors.extend(outcome.errors)
            combined.attempted.extend(outcome.attempted)

            if outcome.result is None:
                self.logger.info(f"Chunk {index + 1}/{len(chunks)} could not be translated")
                return combined

            translated_chunks.append(outcome.result.translated_text)
            sources.append(outcome.result.source)

            # Pin the detected language for the remaining chunks
            if source == 'auto' and outcome.result.source_language and outcome.result.source_language != 'auto':
                source = outcome.result.source_language

        source_tag = sources[0] if len(set(sources)) == 1 else COMBINED_SOURCE
        combined.result = TranslationResult(
            translated_text='\n'.join(translated_chunks),
            source_language=source,
            target_language=target,
            source=source_tag
        )
        return combined

    def is_available(self) -> bool:
        return self.dispatcher.is_available()

    def get_rate_limit_status(self) -> Dict[str, Dict[str, Any]]:
        return self.dispatcher.get_rate_limit_status()
