"""
LibreTranslate adapter

Public instances work without a key; an api_key credential is sent when
configured.
"""

from typing import Any, Dict, Optional

from ..config.settings import ProviderConfig
from ..core.exceptions import ProviderError
from ..core.models import TranslationRequest, TranslationResult
from ..utils.http import HttpClient


class LibreTranslateProvider:

    def __init__(self, config: ProviderConfig, http: HttpClient):
        self.config = config
        self.name = config.name
        self.http = http

    @property
    def is_enabled(self) -> bool:
        return self.config.is_enabled

    def build_payload(self, request: TranslationRequest) -> Dict[str, Any]:
        payload = {
            'q': request.text,
            'source': request.source_language or 'auto',
            'target': request.target_language,
            'format': 'text',
        }
        api_key = self.config.credential('api_key')
        if api_key:
            payload['api_key'] = api_key
        return payload

    async def attempt(self, request: TranslationRequest) -> Optional[TranslationResult]:
        data = await self.http.post_json(
            self.name,
            self.config.base_url,
            json=self.build_payload(request),
            timeout_millis=self.config.timeout_millis
        )
        if not isinstance(data, dict):
            raise ProviderError(self.name, "LibreTranslate returned an unexpected payload")

        translated = data.get('translatedText')
        if not translated:
            raise ProviderError(self.name, "LibreTranslate returned empty translation")

        detected = (data.get('detectedLanguage') or {}).get('language')
        return TranslationResult(
            translated_text=translated,
            source_language=detected or request.source_language,
            target_language=request.target_language,
            source=self.name
        )
