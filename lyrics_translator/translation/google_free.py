"""
Google Translate free endpoint adapter (translate_a/single, client=gtx)
"""

from typing import Any, Optional

from ..config.settings import ProviderConfig
from ..core.exceptions import ProviderError
from ..core.models import TranslationRequest, TranslationResult
from ..utils.http import HttpClient


class GoogleFreeTranslationProvider:

    # The gtx endpoint rejects non-browser agents
    BROWSER_USER_AGENT = 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36'

    def __init__(self, config: ProviderConfig, http: HttpClient):
        self.config = config
        self.name = config.name
        self.http = http

    @property
    def is_enabled(self) -> bool:
        return self.config.is_enabled

    def parse_response(self, data: Any, request: TranslationRequest) -> TranslationResult:
        """
        Join the translated segments of a gtx response

        The payload is a nested list: data[0] holds [translated, original, ...]
        segments and data[2] the detected source language.
        """
        if not isinstance(data, list) or not data or not isinstance(data[0], list):
            raise ProviderError(self.name, "Invalid Google Translate response format")

        translated = ''.join(
            segment[0] for segment in data[0]
            if isinstance(segment, list) and segment and segment[0]
        )
        detected = data[2] if len(data) > 2 and isinstance(data[2], str) else None

        return TranslationResult(
            translated_text=translated.strip(),
            source_language=detected or request.source_language,
            target_language=request.target_language,
            source=self.name
        )

    async def attempt(self, request: TranslationRequest) -> Optional[TranslationResult]:
        data = await self.http.get_json(
            self.name,
            self.config.base_url,
            params={
                'client': 'gtx',
                'sl': request.source_language or 'auto',
                'tl': request.target_language,
                'dt': 't',
                'q': request.text,
            },
            headers={'User-Agent': self.BROWSER_USER_AGENT},
            timeout_millis=self.config.timeout_millis
        )
        return self.parse_response(data, request)
