"""
Pipeline package

LyricsTranslatorService chains audio recognition, lyrics lookup and
translation into one call, with per-stage retry and provider fallback.

Usage:
    service = get_lyrics_translator_service()
    outcome = await service.translate_from_song_info("The Beatles", "Yesterday", "es")
"""

from .orchestrator import (
    LyricsTranslatorService,
    get_lyrics_translator_service,
    reset_lyrics_translator_service,
)

__all__ = [
    'LyricsTranslatorService',
    'get_lyrics_translator_service',
    'reset_lyrics_translator_service',
]
