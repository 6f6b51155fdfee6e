"""
MyMemory translation adapter

MyMemory needs an explicit language pair, so an "auto" source language is
resolved with the configured language detector before the call.
"""

from typing import Any, Dict, Optional

from ..config.settings import ProviderConfig
from ..core.exceptions import ProviderError
from ..core.models import TranslationRequest, TranslationResult
from ..core.scoring import LanguageDetector, detect_language
from ..utils.http import HttpClient


class MyMemoryTranslationProvider:
    """MyMemory /get endpoint"""

    def __init__(self, config: ProviderConfig, http: HttpClient, detector: LanguageDetector = detect_language):
        self.config = config
        self.name = config.name
        self.http = http
        self.detector = detector

    @property
    def is_enabled(self) -> bool:
        return self.config.is_enabled

    def resolve_source_language(self, request: TranslationRequest) -> str:
        if not request.source_language or request.source_language == 'auto':
            return self.detector(request.text)
        return request.source_language

    def parse_response(self, data: Dict[str, Any], source_language: str, target_language: str) -> TranslationResult:
        response_data = data.get('responseData') or {}
        translated = response_data.get('translatedText')

        if str(data.get('responseStatus')) != '200' or not translated:
            details = data.get('responseDetails') or 'Unknown error'
            raise ProviderError(self.name, f"MyMemory translation failed: {details}")

        return TranslationResult(
            translated_text=translated,
            source_language=source_language,
            target_language=target_language,
            source=self.name
        )

    async def attempt(self, request: TranslationRequest) -> Optional[TranslationResult]:
        source_language = self.resolve_source_language(request)

        data = await self.http.get_json(
            self.name,
            self.config.base_url,
            params={'q': request.text, 'langpair': f"{source_language}|{request.target_language}"},
            timeout_millis=self.config.timeout_millis
        )
        if not isinstance(data, dict):
            raise ProviderError(self.name, "MyMemory returned an unexpected payload")

        return self.parse_response(data, source_language, request.target_language)
