"""
AudD.io music recognition adapter
"""

from typing import Any, Dict, Optional

import aiohttp

from ..config.settings import ProviderConfig
from ..core.exceptions import ProviderError
from ..core.models import RecognitionRequest, RecognitionResult
from ..utils.http import HttpClient
from ..utils.logger import get_logger


class AudDRecognitionProvider:
    """AudD.io recognize endpoint"""

    # AudD does not report a match score
    DEFAULT_CONFIDENCE = 0.8

    def __init__(self, config: ProviderConfig, http: HttpClient):
        self.config = config
        self.name = config.name
        self.http = http
        self.logger = get_logger(__name__)

    @property
    def is_enabled(self) -> bool:
        return self.config.is_enabled

    def parse_response(self, data: Dict[str, Any]) -> Optional[RecognitionResult]:
        if data.get('status') == 'error':
            error = data.get('error') or {}
            raise ProviderError(self.name, f"AudD.io recognition failed: {error.get('error_message', 'Unknown error')}")

        result = data.get('result')
        if data.get('status') != 'success' or not result:
            return None

        return RecognitionResult(
            source=self.name,
            title=result.get('title'),
            artist=result.get('artist'),
            album=result.get('album'),
            confidence=self.DEFAULT_CONFIDENCE,
        )

    async def attempt(self, request: RecognitionRequest) -> Optional[RecognitionResult]:
        form = aiohttp.FormData()
        form.add_field('file', request.audio, filename='sample.wav', content_type='audio/wav')
        form.add_field('api_token', self.config.credential('api_key'))
        form.add_field('return', 'apple_music,spotify')

        data = await self.http.post_json(
            self.name,
            self.config.base_url,
            data=form,
            timeout_millis=self.config.timeout_millis
        )
        if not isinstance(data, dict):
            raise ProviderError(self.name, "AudD.io returned an unexpected payload")
        return self.parse_response(data)
