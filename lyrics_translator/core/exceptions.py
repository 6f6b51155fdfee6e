"""
Exception classes for Lyrics-Translator.

Exceptions are raised by provider adapters and input validation. The pipeline
never lets them escape a public entry point: every failure ends up as a
ServiceError on the returned PipelineOutcome.

Exception Hierarchy:
    LyricsTranslatorError (base)
        ConfigError - Configuration file or credential issues
        ProviderError - Transport or protocol failure of one provider call
        ValidationError - Invalid caller input
            UnsupportedLanguageError - Translation target not supported
"""

from typing import Any, Dict, Optional


class LyricsTranslatorError(Exception):
    """
    Base exception for all Lyrics-Translator errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (provider, url, status).
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(LyricsTranslatorError):
    """
    Raised when configuration cannot be loaded or a provider is misconfigured.

    Example:
        raise ConfigError(
            "ACRCloud credentials not configured",
            details={'provider': 'ACRCloud', 'missing': ['access_key']}
        )
    """
    pass


class ProviderError(LyricsTranslatorError):
    """
    Raised by a provider adapter when a call fails at transport or protocol level.

    Non-2xx responses (other than a recognized "not found"), malformed payloads
    and service-reported failures all map to this exception. The dispatcher
    records it as a ServiceError and moves on to the next provider.

    Attributes:
        provider: Display name of the provider that failed.
        status: HTTP status code when the failure came from a response.
    """

    def __init__(
        self,
        provider: str,
        message: str,
        status: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message, details)
        self.provider = provider
        self.status = status


class ValidationError(LyricsTranslatorError):
    """Raised when caller input is invalid"""
    pass


class UnsupportedLanguageError(ValidationError):
    """Raised when a translation target language is not in the supported table"""

    def __init__(self, language: str) -> None:
        super().__init__(
            f"Unsupported target language: {language}",
            details={'language': language}
        )
        self.language = language
