"""
Lyrics.ovh adapter (no authentication)
"""

from typing import Optional
from urllib.parse import quote

from ..config.settings import ProviderConfig
from ..core.models import LyricsRequest, LyricsResult
from ..utils.http import HttpClient


class LyricsOvhProvider:
    """GET {base_url}/{artist}/{title}; a 404 means the song is unknown"""

    def __init__(self, config: ProviderConfig, http: HttpClient):
        self.config = config
        self.name = config.name
        self.http = http

    @property
    def is_enabled(self) -> bool:
        return self.config.is_enabled

    def build_url(self, artist: str, title: str) -> str:
        return f"{self.config.base_url}/{quote(artist, safe='')}/{quote(title, safe='')}"

    async def attempt(self, request: LyricsRequest) -> Optional[LyricsResult]:
        data = await self.http.get_json(
            self.name,
            self.build_url(request.artist, request.title),
            headers={'Accept': 'application/json'},
            timeout_millis=self.config.timeout_millis,
            not_found_ok=True
        )
        if not isinstance(data, dict) or data.get('error') or not data.get('lyrics'):
            return None

        return LyricsResult(
            lyrics=data['lyrics'].strip(),
            title=request.title,
            artist=request.artist,
            source=self.name
        )
