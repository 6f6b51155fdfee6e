"""
Musixmatch API integration for lyrics retrieval
Primary lyrics source with a large commercial lyrics database (API key required)
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..config.settings import ProviderConfig
from ..core.exceptions import ProviderError
from ..core.models import LyricsRequest, LyricsResult
from ..utils.helpers import clean_lyrics_text
from ..utils.http import HttpClient
from ..utils.logger import get_logger


@dataclass
class MusixmatchTrack:
    """Musixmatch track information"""
    track_id: int
    track_name: str
    artist_name: str
    album_name: Optional[str]
    has_lyrics: bool
    instrumental: bool


class MusixmatchLyricsProvider:
    """Musixmatch API lyrics provider"""

    # Header status codes that mean "nothing found" rather than a failure
    NOT_FOUND_CODES = (404,)

    def __init__(self, config: ProviderConfig, http: HttpClient):
        """
        Initialize Musixmatch lyrics provider

        Args:
            config: Provider configuration with the api_key credential
            http: Shared HTTP client
        """
        self.config = config
        self.name = config.name
        self.http = http
        self.logger = get_logger(__name__)

        # Search configuration
        self.max_search_results = 3

    @property
    def is_enabled(self) -> bool:
        return self.config.is_enabled

    async def _make_api_request(self, endpoint: str, params: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Make API request to Musixmatch

        Musixmatch answers HTTP 200 and reports the real status in the
        message header, so both levels are checked.

        Args:
            endpoint: API method, e.g. "track.search"
            params: Request parameters

        Returns:
            Message body, or None when Musixmatch reports "not found"

        Raises:
            ProviderError: On HTTP errors or a failing header status
        """
        params = dict(params)
        params['apikey'] = self.config.credential('api_key')

        data = await self.http.get_json(
            self.name,
            f"{self.config.base_url}/{endpoint}",
            params=params,
            timeout_millis=self.config.timeout_millis
        )
        if not isinstance(data, dict):
            raise ProviderError(self.name, "Musixmatch returned an unexpected payload")

        message = data.get('message') or {}
        header = message.get('header') or {}
        status_code = header.get('status_code')

        if status_code in self.NOT_FOUND_CODES:
            return None
        if status_code != 200:
            hint = header.get('hint') or 'Unknown error'
            raise ProviderError(self.name, f"Musixmatch API error: {status_code} {hint}".strip(), status=status_code)

        body = message.get('body')
        return body if isinstance(body, dict) else None

    def _extract_track_info(self, track: Dict[str, Any]) -> MusixmatchTrack:
        return MusixmatchTrack(
            track_id=track.get('track_id', 0),
            track_name=track.get('track_name', ''),
            artist_name=track.get('artist_name', ''),
            album_name=track.get('album_name'),
            has_lyrics=bool(track.get('has_lyrics', 1)),
            instrumental=bool(track.get('instrumental', 0))
        )

    async def _search_tracks(self, artist: str, title: str) -> List[MusixmatchTrack]:
        response = await self._make_api_request('track.search', {
            'q_artist': artist,
            'q_track': title,
            'page_size': self.max_search_results,
            'page': 1,
            's_track_rating': 'desc'
        })
        if not response:
            return []

        tracks = []
        for item in response.get('track_list') or []:
            track = item.get('track') or {}
            if track.get('track_id'):
                tracks.append(self._extract_track_info(track))
        return tracks

    async def _fetch_lyrics(self, track_id: int) -> Optional[str]:
        """
        Fetch lyrics for a specific track

        Args:
            track_id: Musixmatch track ID

        Returns:
            Cleaned lyrics text (watermark removed) or None
        """
        self.logger.debug(f"Fetching lyrics for track ID: {track_id}")

        response = await self._make_api_request('track.lyrics.get', {'track_id': track_id})
        if not response or 'lyrics' not in response:
            self.logger.debug(f"No lyrics data in response for track {track_id}")
            return None

        lyrics_body = (response['lyrics'] or {}).get('lyrics_body', '')
        cleaned = clean_lyrics_text(lyrics_body)
        return cleaned or None

    async def attempt(self, request: LyricsRequest) -> Optional[LyricsResult]:
        """
        Search the track, then fetch its lyrics

        Returns:
            LyricsResult with Musixmatch's canonical artist/title, or None
        """
        self.logger.debug(f"Searching Musixmatch for: {request.artist} - {request.title}")

        tracks = await self._search_tracks(request.artist, request.title)
        candidates = [track for track in tracks if track.has_lyrics and not track.instrumental]
        if not candidates:
            self.logger.debug(f"No Musixmatch tracks with lyrics for: {request.artist} - {request.title}")
            return None

        best_track = candidates[0]
        lyrics = await self._fetch_lyrics(best_track.track_id)
        if not lyrics:
            return None

        return LyricsResult(
            lyrics=lyrics,
            title=best_track.track_name or request.title,
            artist=best_track.artist_name or request.artist,
            source=self.name
        )
