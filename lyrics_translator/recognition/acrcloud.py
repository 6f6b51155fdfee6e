"""
ACRCloud audio fingerprinting adapter
Primary recognition provider, requires an access key/secret pair
"""

import base64
import hashlib
import hmac
import time
from typing import Any, Callable, Dict, Optional

import aiohttp

from ..config.settings import ProviderConfig
from ..core.exceptions import ProviderError
from ..core.models import RecognitionRequest, RecognitionResult
from ..utils.http import HttpClient
from ..utils.logger import get_logger


class ACRCloudRecognitionProvider:
    """ACRCloud identify API (signature version 1)"""

    HTTP_METHOD = "POST"
    HTTP_URI = "/v1/identify"
    DATA_TYPE = "audio"
    SIGNATURE_VERSION = "1"

    def __init__(self, config: ProviderConfig, http: HttpClient, clock: Callable[[], float] = time.time):
        """
        Args:
            config: Provider configuration with access_key/access_secret credentials
            http: Shared HTTP client
            clock: Returns epoch seconds, used for the signature timestamp
        """
        self.config = config
        self.name = config.name
        self.http = http
        self.clock = clock
        self.logger = get_logger(__name__)

    @property
    def is_enabled(self) -> bool:
        return self.config.is_enabled

    def _sign(self, timestamp: str) -> str:
        """Base64 HMAC-SHA1 of the canonical request string"""
        string_to_sign = "\n".join([
            self.HTTP_METHOD,
            self.HTTP_URI,
            self.config.credential('access_key'),
            self.DATA_TYPE,
            self.SIGNATURE_VERSION,
            timestamp,
        ])
        digest = hmac.new(
            self.config.credential('access_secret').encode('utf-8'),
            string_to_sign.encode('utf-8'),
            hashlib.sha1
        ).digest()
        return base64.b64encode(digest).decode('ascii')

    def _build_form(self, audio: bytes) -> aiohttp.FormData:
        timestamp = str(int(self.clock()))

        form = aiohttp.FormData()
        form.add_field('sample', audio, filename='sample.wav', content_type='audio/wav')
        form.add_field('sample_bytes', str(len(audio)))
        form.add_field('access_key', self.config.credential('access_key'))
        form.add_field('data_type', self.DATA_TYPE)
        form.add_field('signature_version', self.SIGNATURE_VERSION)
        form.add_field('signature', self._sign(timestamp))
        form.add_field('timestamp', timestamp)
        return form

    def parse_response(self, data: Dict[str, Any]) -> Optional[RecognitionResult]:
        """
        Convert an identify response into a RecognitionResult

        Raises:
            ProviderError: If ACRCloud reports a non-zero status (other than no match)
        """
        status = data.get('status') or {}
        code = status.get('code')

        # 1001 is "No result"
        if code == 1001:
            return None
        if code != 0:
            raise ProviderError(self.name, f"ACRCloud recognition failed: {status.get('msg', 'Unknown error')}")

        music_list = (data.get('metadata') or {}).get('music') or []
        if not music_list:
            return None

        music = music_list[0]
        artists = music.get('artists') or []
        duration_ms = music.get('duration_ms')
        score = music.get('score')

        return RecognitionResult(
            source=self.name,
            title=music.get('title'),
            artist=artists[0].get('name') if artists else None,
            album=(music.get('album') or {}).get('name'),
            duration=duration_ms / 1000.0 if duration_ms else None,
            confidence=score / 100.0 if score is not None else None,
        )

    async def attempt(self, request: RecognitionRequest) -> Optional[RecognitionResult]:
        """
        Identify a song from an audio sample

        Returns:
            RecognitionResult or None when ACRCloud found no match
        """
        self.logger.debug(f"ACRCloud: identifying {len(request.audio)} bytes")
        data = await self.http.post_json(
            self.name,
            self.config.base_url,
            data=self._build_form(request.audio),
            timeout_millis=self.config.timeout_millis
        )
        if not isinstance(data, dict):
            raise ProviderError(self.name, "ACRCloud returned an unexpected payload")
        return self.parse_response(data)
