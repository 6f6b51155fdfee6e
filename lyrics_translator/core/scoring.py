"""
Heuristic scoring used by the pipeline

- detect_language: script and stop-word based guess, used when a provider
  needs an explicit language pair and the caller asked for "auto"
- score_translation: quality estimate used by best-quality translation
- calculate_pipeline_confidence: overall confidence of a finished run

Both the detector and the translation scorer are plain callables so the
translation stage can be given a different implementation.
"""

import re
from typing import Callable, Iterable, Optional

from .models import LyricsResult, RecognitionResult, ServiceError, TranslationResult


LanguageDetector = Callable[[str], str]
TranslationScorer = Callable[[str, TranslationResult], float]

SCRIPT_PATTERNS = [
    ('zh', re.compile(r'[一-鿿]')),
    ('ja', re.compile(r'[぀-ゟ゠-ヿ]')),
    ('ko', re.compile(r'[가-힯]')),
    ('ru', re.compile(r'[Ѐ-ӿ]')),
    ('ar', re.compile(r'[؀-ۿ]')),
    ('hi', re.compile(r'[ऀ-ॿ]')),
]

LATIN_DIACRITICS = re.compile(r'[àáâãäåæçèéêëìíîïðñòóôõöøùúûüýþÿ]', re.IGNORECASE)

# Checked in order; the first language whose stop words appear wins
STOP_WORDS = [
    ('es', r'el|la|los|las|un|una|de|del|en|con|por|para|que|no|se|es|son|está|están'),
    ('fr', r'le|la|les|des|du|de|et|est|sont|dans|avec|pour|que|ne|pas|se|ce|il|elle'),
    ('de', r'der|die|das|und|ist|sind|in|mit|für|dass|nicht|sich|es|er|sie'),
    ('it', r'il|la|le|di|del|in|con|per|che|non|si|è|sono|questo|questa'),
    ('pt', r'o|a|os|as|do|da|em|com|para|que|não|se|é|são|este|esta'),
]
STOP_WORD_PATTERNS = [(code, re.compile(rf'\b(?:{words})\b', re.IGNORECASE)) for code, words in STOP_WORDS]

TRANSLATION_ARTIFACTS = ('???', '[', '{')

TRUSTED_LYRICS_SOURCE = 'Musixmatch'
TRUSTED_TRANSLATION_SOURCE = 'MyMemory'


def detect_language(text: str) -> str:
    """
    Guess the language of text

    Non-Latin scripts are recognized by Unicode block. Latin text with
    diacritics is matched against short stop-word lists. Everything else
    is assumed to be English.

    Args:
        text: Text to inspect

    Returns:
        Two-letter language code
    """
    for code, pattern in SCRIPT_PATTERNS:
        if pattern.search(text):
            return code

    if LATIN_DIACRITICS.search(text):
        for code, pattern in STOP_WORD_PATTERNS:
            if pattern.search(text):
                return code

    return 'en'


def score_translation(
    original_text: str,
    result: TranslationResult,
    trusted_sources: Optional[Iterable[str]] = None
) -> float:
    """
    Estimate translation quality between 0 and 1

    Starts at 0.5 and adds:
    - 0.2 when the length ratio translated/original is within (0.3, 3)
    - 0.1 when the translation does not simply echo the original
    - 0.1 when no common artifacts ("???", brackets, braces) are present
    - 0.1 when the result comes from a trusted source

    Args:
        original_text: Text that was translated
        result: Candidate translation
        trusted_sources: Provider names that earn the reliability bonus

    Returns:
        Quality score clamped to [0, 1]
    """
    if trusted_sources is None:
        trusted_sources = (TRUSTED_TRANSLATION_SOURCE,)

    quality = 0.5
    translated = result.translated_text or ""

    if original_text:
        ratio = len(translated) / len(original_text)
        if 0.3 < ratio < 3:
            quality += 0.2

    prefix = original_text.lower()[:20]
    if not prefix or prefix not in translated.lower():
        quality += 0.1

    if not any(marker in translated for marker in TRANSLATION_ARTIFACTS):
        quality += 0.1

    if result.source in trusted_sources:
        quality += 0.1

    return min(1.0, max(0.0, quality))


def calculate_pipeline_confidence(
    recognition: Optional[RecognitionResult],
    lyrics: Optional[LyricsResult],
    translation: Optional[TranslationResult],
    errors: Iterable[ServiceError]
) -> float:
    """
    Overall confidence of a completed pipeline run

    Args:
        recognition: Recognition result, if the stage ran
        lyrics: Lyrics used for the translation
        translation: Final translation
        errors: Every error recorded during the run

    Returns:
        Confidence clamped to [0, 1]
    """
    confidence = 0.5

    if recognition is not None and recognition.confidence:
        confidence += min(recognition.confidence, 1.0) * 0.1

    if lyrics is not None:
        length = len(lyrics.lyrics)
        if length > 100:
            confidence += 0.1
        if length > 500:
            confidence += 0.1
        if lyrics.source == TRUSTED_LYRICS_SOURCE:
            confidence += 0.05

    if translation is not None and lyrics is not None and lyrics.lyrics:
        ratio = len(translation.translated_text) / len(lyrics.lyrics)
        if 0.3 < ratio < 3.0:
            confidence += 0.1
    if translation is not None and translation.source == TRUSTED_TRANSLATION_SOURCE:
        confidence += 0.05

    confidence -= 0.1 * len(list(errors))

    return min(1.0, max(0.0, confidence))
