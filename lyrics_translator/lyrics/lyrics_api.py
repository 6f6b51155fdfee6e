"""
Generic free lyrics API adapter

Last-resort fallback queried with a single "artist title" search string.
"""

from typing import Optional

from ..config.settings import ProviderConfig
from ..core.models import LyricsRequest, LyricsResult
from ..utils.http import HttpClient


class LyricsApiProvider:

    def __init__(self, config: ProviderConfig, http: HttpClient):
        self.config = config
        self.name = config.name
        self.http = http

    @property
    def is_enabled(self) -> bool:
        return self.config.is_enabled

    async def attempt(self, request: LyricsRequest) -> Optional[LyricsResult]:
        data = await self.http.get_json(
            self.name,
            self.config.base_url,
            params={'q': f"{request.artist} {request.title}".strip()},
            headers={'Accept': 'application/json'},
            timeout_millis=self.config.timeout_millis,
            not_found_ok=True
        )
        if not isinstance(data, dict):
            return None

        lyrics = (data.get('response') or {}).get('lyrics')
        if not lyrics:
            return None

        return LyricsResult(
            lyrics=lyrics.strip(),
            title=request.title,
            artist=request.artist,
            source=self.name
        )
