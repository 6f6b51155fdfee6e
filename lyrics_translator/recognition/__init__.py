"""
Audio recognition adapters

Each adapter identifies a song from a short audio sample:
- ACRCloudRecognitionProvider: signed identify API, primary provider
- AudDRecognitionProvider: AudD.io token API, fallback

Adapters are tried in order by a FallbackDispatcher; see
lyrics_translator.pipeline for how they are wired.
"""

from .acrcloud import ACRCloudRecognitionProvider
from .audd import AudDRecognitionProvider

__all__ = [
    'ACRCloudRecognitionProvider',
    'AudDRecognitionProvider',
]
