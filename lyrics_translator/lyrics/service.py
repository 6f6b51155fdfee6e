"""
Lyrics stage: multi-source lyrics lookup with fallback

Coordinates the lyrics providers (Musixmatch, Lyrics.ovh, LyricsAPI) through a
FallbackDispatcher. Search terms are normalized before lookup so that version
suffixes and featuring credits do not defeat exact-match providers.

Search order follows LyricsConfig.providers. Providers whose credentials are
missing are skipped; rate limited or failing providers are recorded on the
returned DispatchResult and the next provider is tried.
"""

from typing import Any, Dict, List, Optional

from ..config.settings import LyricsConfig
from ..core.dispatcher import DispatchResult, FallbackDispatcher
from ..core.models import LyricsRequest, LyricsResult
from ..utils.helpers import clean_search_term, parse_search_query
from ..utils.logger import get_logger


class LyricsService:
    """
    Lyrics stage coordinator

    Wraps the stage's FallbackDispatcher with search-term cleanup and free-form
    query search.
    """

    def __init__(self, dispatcher: FallbackDispatcher, config: Optional[LyricsConfig] = None):
        """
        Initialize lyrics stage

        Args:
            dispatcher: Dispatcher over the lyrics providers in priority order
            config: Lyrics stage configuration
        """
        self.dispatcher = dispatcher
        self.config = config or LyricsConfig()
        self.logger = get_logger(__name__)

    def _prepare_terms(self, artist: str, title: str):
        if self.config.clean_search_terms:
            return clean_search_term(artist), clean_search_term(title)
        return artist.strip(), title.strip()

    async def get_lyrics(self, artist: str, title: str) -> DispatchResult:
        """
        Fetch lyrics for a song through the provider fallback chain

        Args:
            artist: Artist name
            title: Track title

        Returns:
            DispatchResult whose result is a LyricsResult, or None when every
            provider missed
        """
        clean_artist, clean_title = self._prepare_terms(artist, title)
        self.logger.info(f"Fetching lyrics for: {clean_artist} - {clean_title}")

        outcome = await self.dispatcher.dispatch(LyricsRequest(artist=clean_artist, title=clean_title))

        if outcome.result is None:
            self.logger.info(f"No lyrics found for: {clean_artist} - {clean_title}")

        return outcome

    async def search_lyrics(self, query: str) -> List[LyricsResult]:
        """
        Search lyrics from a free-form query

        "Artist - Title" is split on the separator; otherwise the first word
        is taken as the artist. The parsed order is tried first, then the
        reversed order when nothing was found.

        Args:
            query: Free-form search string

        Returns:
            List of matching lyrics (empty when nothing was found or the
            query could not be split into artist and title)
        """
        artist, title = parse_search_query(query)
        if not artist or not title:
            self.logger.debug(f"Could not extract artist and title from query: {query!r}")
            return []

        results: List[LyricsResult] = []

        outcome = await self.get_lyrics(artist, title)
        if outcome.result is not None:
            results.append(outcome.result)
        else:
            outcome = await self.get_lyrics(title, artist)
            if outcome.result is not None:
                results.append(outcome.result)

        return results

    def is_available(self) -> bool:
        return self.dispatcher.is_available()

    def get_rate_limit_status(self) -> Dict[str, Dict[str, Any]]:
        return self.dispatcher.get_rate_limit_status()

