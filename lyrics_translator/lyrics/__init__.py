# lyrics_translator/lyrics/__init__.py
"""
Lyrics lookup package

Key components:
- LyricsService: lyrics stage coordinator (fallback chain, search-term cleanup, query search)
- MusixmatchLyricsProvider: Musixmatch API, richest catalog, API key required
- LyricsOvhProvider: Lyrics.ovh, no authentication
- LyricsApiProvider: generic free lyrics API, last resort

Every provider exposes the same attempt(request) coroutine so the stage can
try them in order through a FallbackDispatcher.
"""

from .service import LyricsService
from .musixmatch import MusixmatchLyricsProvider
from .lyrics_ovh import LyricsOvhProvider
from .lyrics_api import LyricsApiProvider

__all__ = [
    'LyricsService',
    'MusixmatchLyricsProvider',
    'LyricsOvhProvider',
    'LyricsApiProvider',
]
