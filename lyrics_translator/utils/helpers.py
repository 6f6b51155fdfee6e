"""
Utility functions and helpers for Lyrics-Translator
Common functions for search-term normalization, lyrics cleanup and text chunking
"""

import re
import time
from typing import List, Tuple


LANGUAGE_ALIASES = {
    'zh-cn': 'zh',
    'zh-tw': 'zh',
    'pt-br': 'pt',
    'pt-pt': 'pt',
    'en-us': 'en',
    'en-gb': 'en',
}

MUSIXMATCH_WATERMARK = re.compile(
    r'\n?\*+\s*This Lyrics is NOT for Commercial use.*$',
    flags=re.IGNORECASE | re.DOTALL
)


def current_millis() -> float:
    """Current wall-clock time in epoch milliseconds"""
    return time.time() * 1000.0


def clean_search_term(term: str) -> str:
    """
    Normalize an artist or title before a lyrics lookup

    Removes parenthesised and bracketed segments (versions, remasters),
    featuring tails and redundant whitespace. Case is preserved since some
    providers match case-sensitively on their URL paths.

    Args:
        term: Original artist or title

    Returns:
        Cleaned search term
    """
    if not term:
        return ""

    cleaned = re.sub(r'\s*\(.*?\)\s*', ' ', term)
    cleaned = re.sub(r'\s*\[.*?\]\s*', ' ', cleaned)
    cleaned = re.sub(r'\s*\bfeat\..*$', '', cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r'\s*\bft\..*$', '', cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r'\s+', ' ', cleaned)

    return cleaned.strip()


def clean_lyrics_text(lyrics: str) -> str:
    """
    Clean provider lyrics text

    Strips the Musixmatch commercial-use watermark, normalizes line endings
    and trims surrounding whitespace. Line structure is kept intact.

    Args:
        lyrics: Raw lyrics text

    Returns:
        Cleaned lyrics text
    """
    if not lyrics:
        return ""

    cleaned = lyrics.replace('\r\n', '\n').replace('\r', '\n')
    cleaned = MUSIXMATCH_WATERMARK.sub('', cleaned)
    lines = [line.rstrip() for line in cleaned.split('\n')]

    return '\n'.join(lines).strip()


def normalize_language_code(code: str) -> str:
    """
    Normalize a language code to the two-letter form used by the providers

    Examples: "zh-CN" -> "zh", "pt-br" -> "pt", "ES" -> "es"
    """
    code = (code or "").strip().lower().replace('_', '-')
    return LANGUAGE_ALIASES.get(code, code)


def split_text_into_chunks(text: str, max_chunk_size: int) -> List[str]:
    """
    Split text into chunks no longer than max_chunk_size

    Splits on line boundaries so verses keep their layout; a single line
    longer than the limit is split on word boundaries, and a single word
    longer than the limit is cut hard.

    Args:
        text: Text to split
        max_chunk_size: Maximum characters per chunk

    Returns:
        List of chunks; [text] when the text already fits
    """
    if len(text) <= max_chunk_size:
        return [text]

    pieces: List[str] = []
    for line in text.split('\n'):
        if len(line) <= max_chunk_size:
            pieces.append(line)
            continue
        current = ""
        for word in line.split(' '):
            while len(word) > max_chunk_size:
                if current:
                    pieces.append(current)
                    current = ""
                pieces.append(word[:max_chunk_size])
                word = word[max_chunk_size:]
            candidate = f"{current} {word}" if current else word
            if len(candidate) <= max_chunk_size:
                current = candidate
            else:
                pieces.append(current)
                current = word
        if current:
            pieces.append(current)

    chunks: List[str] = []
    current = None
    for piece in pieces:
        if current is None:
            current = piece
        elif len(current) + 1 + len(piece) <= max_chunk_size:
            current = f"{current}\n{piece}"
        else:
            chunks.append(current)
            current = piece
    if current is not None:
        chunks.append(current)

    return [chunk for chunk in chunks if chunk.strip()]


def parse_search_query(query: str) -> Tuple[str, str]:
    """
    Extract artist and title from a free-form query

    "Artist - Title" is split on the first separator. Without a separator a
    query of three or more words is read as "<artist> <title words>";
    anything shorter is treated as a bare title.

    Returns:
        (artist, title) tuple; artist may be empty
    """
    query = (query or "").strip()
    parts = query.split(' - ')
    if len(parts) >= 2:
        return parts[0].strip(), ' - '.join(parts[1:]).strip()

    words = query.split()
    if len(words) > 2:
        return words[0], ' '.join(words[1:])

    return "", query


def truncate_string(text: str, max_length: int, suffix: str = "...") -> str:
    """
    Truncate string to maximum length with suffix

    Args:
        text: Original text
        max_length: Maximum length including suffix
        suffix: Suffix to add when truncating

    Returns:
        Truncated string
    """
    if len(text) <= max_length:
        return text

    truncate_length = max_length - len(suffix)
    if truncate_length <= 0:
        return suffix[:max_length]

    return text[:truncate_length] + suffix
