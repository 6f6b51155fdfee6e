"""
Utilities package
Logging, text helpers and the shared HTTP client
"""

from .logger import (
    get_logger,
    configure_from_settings,
    setup_logging,
    OperationLogger,
)
from .helpers import (
    current_millis,
    clean_search_term,
    clean_lyrics_text,
    normalize_language_code,
    split_text_into_chunks,
    parse_search_query,
    truncate_string,
)
from .http import HttpClient

__all__ = [
    # Logger exports
    'get_logger',
    'configure_from_settings',
    'setup_logging',
    'OperationLogger',

    # Helper exports
    'current_millis',
    'clean_search_term',
    'clean_lyrics_text',
    'normalize_language_code',
    'split_text_into_chunks',
    'parse_search_query',
    'truncate_string',

    'HttpClient',
]
