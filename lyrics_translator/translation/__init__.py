"""
Translation package

Key components:
- TranslationService: translation stage (language validation, chunking, best-quality mode)
- MyMemoryTranslationProvider: MyMemory, explicit language pair
- LibreTranslateProvider: LibreTranslate public instance
- GoogleFreeTranslationProvider: Google Translate free gtx endpoint
"""

from .service import TranslationService, COMBINED_SOURCE
from .mymemory import MyMemoryTranslationProvider
from .libretranslate import LibreTranslateProvider
from .google_free import GoogleFreeTranslationProvider

__all__ = [
    'TranslationService',
    'COMBINED_SOURCE',
    'MyMemoryTranslationProvider',
    'LibreTranslateProvider',
    'GoogleFreeTranslationProvider',
]
