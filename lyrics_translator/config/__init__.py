"""
Configuration package for Lyrics-Translator

Exposes the settings singleton and the provider configuration types used by
the rate limiter and the dispatchers.

Usage:
    from lyrics_translator.config import get_settings

    settings = get_settings()
    musixmatch = settings.get_provider_config('lyrics_musixmatch')
"""

from .settings import (
    get_settings,
    reload_settings,
    Settings,
    ProviderConfig,
    RateLimitConfig,
    DEFAULT_PROVIDERS,
    SUPPORTED_LANGUAGES,
)

__all__ = [
    'get_settings',
    'reload_settings',
    'Settings',
    'ProviderConfig',
    'RateLimitConfig',
    'DEFAULT_PROVIDERS',
    'SUPPORTED_LANGUAGES',
]
