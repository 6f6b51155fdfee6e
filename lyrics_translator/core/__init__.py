"""
Core building blocks of the lyrics translation pipeline

- models: stage requests and results, ServiceError, PipelineOutcome
- exceptions: errors raised by adapters and input validation
- rate_limiter: sliding window admission control shared by all providers
- dispatcher: ordered multi-provider fallback (first-success and best-quality)
- scoring: language detection and quality heuristics
"""

from .exceptions import (
    LyricsTranslatorError,
    ConfigError,
    ProviderError,
    ValidationError,
    UnsupportedLanguageError,
)
from .models import (
    Stage,
    PipelineStatus,
    HealthStatus,
    ErrorCode,
    RecognitionRequest,
    LyricsRequest,
    TranslationRequest,
    RecognitionResult,
    LyricsResult,
    TranslationResult,
    ServiceError,
    SongInfo,
    TranslationOptions,
    BatchRequest,
    PipelineOutcome,
    HealthReport,
)
from .rate_limiter import RateLimiter, RateLimitState
from .dispatcher import (
    FallbackDispatcher,
    DispatchResult,
    RecognitionProvider,
    LyricsProvider,
    TranslationProvider,
)
from .scoring import detect_language, score_translation, calculate_pipeline_confidence

__all__ = [
    # Exceptions
    'LyricsTranslatorError',
    'ConfigError',
    'ProviderError',
    'ValidationError',
    'UnsupportedLanguageError',

    # Models
    'Stage',
    'PipelineStatus',
    'HealthStatus',
    'ErrorCode',
    'RecognitionRequest',
    'LyricsRequest',
    'TranslationRequest',
    'RecognitionResult',
    'LyricsResult',
    'TranslationResult',
    'ServiceError',
    'SongInfo',
    'TranslationOptions',
    'BatchRequest',
    'PipelineOutcome',
    'HealthReport',

    # Rate limiting and dispatch
    'RateLimiter',
    'RateLimitState',
    'FallbackDispatcher',
    'DispatchResult',
    'RecognitionProvider',
    'LyricsProvider',
    'TranslationProvider',

    # Heuristics
    'detect_language',
    'score_translation',
    'calculate_pipeline_confidence',
]
