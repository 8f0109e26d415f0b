"""
Word parsing and stemming shared by the crawler, the directory builder and
query processing.

Text is normalized (NFD), stripped of everything that is not a letter or
whitespace, lowercased and split on whitespace. Words are stemmed with the
Snowball English stemmer.
"""

import re
import unicodedata
from pathlib import Path
from typing import Iterable

from nltk.stem.snowball import SnowballStemmer

_STEMMER = SnowballStemmer("english")

# Anything that is neither a letter nor whitespace (digits and "_" are word
# characters for the regex engine, so they are listed explicitly).
_CLEAN_RE = re.compile(r"[^\w\s]|[\d_]+")

ENCODINGS = ("utf-8", "latin-1")


def clean(text: str) -> str:
    """Normalize, drop non-letters and lowercase."""
    text = unicodedata.normalize("NFD", text)
    return _CLEAN_RE.sub("", text).lower()


def parse(text: str) -> list[str]:
    """Split cleaned text into words (no stemming)."""
    if not text:
        return []
    return clean(text).split()


def stem_token(word: str) -> str:
    """Return the Snowball stem of word."""
    return _STEMMER.stem(word)


def stem_tokens(tokens: Iterable[str]) -> list[str]:
    """Stem a sequence of words, preserving order and duplicates."""
    return [_STEMMER.stem(t) for t in tokens]


def list_stems(text: str) -> list[str]:
    """
    Parse and stem text. This is the token stream that gets indexed: the
    i-th stem (1-based) is stored at position i.
    """
    return stem_tokens(parse(text))


def unique_stems(text: str) -> list[str]:
    """Sorted, de-duplicated stems of text (used for queries)."""
    return sorted(set(list_stems(text)))


def read_text_file(filepath: Path) -> str:
    """
    Read a text file, trying the common encodings in turn.
    """
    for encoding in ENCODINGS:
        try:
            return Path(filepath).read_text(encoding=encoding)
        except UnicodeDecodeError:
            continue
    raise ValueError(f"Could not decode file: {filepath}")
