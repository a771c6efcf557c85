"""Text normalization and sentence segmentation."""

import re
from typing import List

from .types import NormalizedSentence

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")
# A fragment is everything between runs of sentence-terminal punctuation
_FRAGMENT = re.compile(r"[^.!?]+")

DEFAULT_MIN_SENTENCE_LENGTH = 20


def normalize_text(text: str) -> str:
    """
    Normalize text for hashing.

    Lowercases, strips characters that are neither word characters nor
    whitespace, collapses whitespace runs and trims.

    Args:
        text: Raw text

    Returns:
        Normalized text
    """
    text = _NON_WORD.sub("", text.lower())
    return _WHITESPACE.sub(" ", text).strip()


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    return len(text.split())


def segment(text: str, min_length: int = DEFAULT_MIN_SENTENCE_LENGTH) -> List[NormalizedSentence]:
    """
    Split text into sentences on runs of '.', '!' and '?'.

    Fragments whose normalized form is shorter than ``min_length`` are
    discarded. Offsets point into ``text`` so that
    ``text[s.start_offset:s.end_offset] == s.original_text``.

    Args:
        text: Raw text
        min_length: Minimum normalized length of a kept sentence

    Returns:
        List of NormalizedSentence objects in document order
    """
    sentences = []
    for fragment in _FRAGMENT.finditer(text):
        raw = fragment.group()
        stripped = raw.strip()
        if not stripped:
            continue

        normalized = normalize_text(stripped)
        if len(normalized) < min_length:
            continue

        start = fragment.start() + (len(raw) - len(raw.lstrip()))
        sentences.append(NormalizedSentence(
            original_text=stripped,
            normalized_text=normalized,
            start_offset=start,
            end_offset=start + len(stripped)
        ))

    return sentences


def split_into_chunks(text: str, chunk_words: int = 500) -> List[str]:
    """
    Split text into chunks of at most ``chunk_words`` words.

    Args:
        text: Raw text
        chunk_words: Words per chunk

    Returns:
        List of chunk strings, words joined by single spaces
    """
    if chunk_words <= 0:
        raise ValueError("chunk_words must be positive")

    words = text.split()
    return [" ".join(words[i:i + chunk_words]) for i in range(0, len(words), chunk_words)]
