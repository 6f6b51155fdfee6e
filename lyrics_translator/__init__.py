"""
Lyrics-Translator: identify a song, fetch its lyrics and translate them

The package coordinates a small, fixed set of free third-party services:

**Audio recognition** (`lyrics_translator.recognition`)
- ACRCloud (signed identify API) and AudD.io

**Lyrics lookup** (`lyrics_translator.lyrics`)
- Musixmatch, Lyrics.ovh and a generic lyrics API

**Translation** (`lyrics_translator.translation`)
- MyMemory, LibreTranslate and the free Google Translate endpoint

Every provider sits behind a sliding window rate limiter sized to its free
quota. Each stage tries its providers in priority order and falls back to the
next one when a provider is rate limited, fails or has nothing to offer, so a
single outage or exhausted quota does not stop the pipeline.

## Quick Start

```python
import asyncio
from lyrics_translator import LyricsTranslatorService

async def main():
    async with LyricsTranslatorService() as service:
        outcome = await service.translate_from_song_info("The Beatles", "Yesterday", "es")
        if outcome.translation:
            print(outcome.translation.translated_text)
        for error in outcome.errors:
            print(error.service, error.error)

asyncio.run(main())
```

## Configuration

Settings are read from `~/.lyrics-translator/config.yaml` (or `config.yaml` in
the working directory) and credentials from the environment or a `.env` file:
`ACRCLOUD_ACCESS_KEY`, `ACRCLOUD_ACCESS_SECRET`, `AUDD_API_KEY`,
`MUSIXMATCH_API_KEY`, `LIBRETRANSLATE_API_KEY`. Providers without their
credentials are skipped.
"""

__version__ = "0.1.0"

__author__ = "Verryx-02"

__description__ = "Identify songs, fetch lyrics and translate them using free APIs with rate-limited provider fallback"

from .core.models import (
    BatchRequest,
    HealthReport,
    PipelineOutcome,
    PipelineStatus,
    ServiceError,
    SongInfo,
    TranslationOptions,
)
from .pipeline import LyricsTranslatorService, get_lyrics_translator_service, reset_lyrics_translator_service

__all__ = [
    "__version__",
    "__author__",
    "__description__",

    "LyricsTranslatorService",
    "get_lyrics_translator_service",
    "reset_lyrics_translator_service",
    "TranslationOptions",
    "SongInfo",
    "BatchRequest",
    "PipelineOutcome",
    "PipelineStatus",
    "ServiceError",
    "HealthReport",
]
