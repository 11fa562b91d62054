"""Text canonicalization for case captions and finding titles."""
from __future__ import annotations

import math
from typing import Optional, Sequence

import regex
from text_unidecode import unidecode

STRIP_TOKENS = ("llc",)

NON_ALNUM_PATTERN = regex.compile(r"[^a-z0-9\s]")
SPACE_PATTERN = regex.compile(r"\s+")


def as_text(value: Optional[object]) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value)


def normalize_name(value: Optional[object], strip_tokens: Sequence[str] = STRIP_TOKENS) -> str:
    """Canonical form of an identifying field.

    Lowercase, transliterate to ASCII, drop punctuation, drop organizational
    suffixes such as ``llc`` and collapse whitespace. Missing values give
    ``""``.
    """
    text = as_text(value).lower()
    if not text:
        return ""
    text = unidecode(text).lower()
    text = NON_ALNUM_PATTERN.sub("", text)
    tokens = [token.lower() for token in strip_tokens if token]
    # removing one occurrence can splice a new one together ("lllcc")
    while any(token in text for token in tokens):
        for token in tokens:
            text = text.replace(token, "")
    return SPACE_PATTERN.sub(" ", text).strip()


def truncate_year(value: Optional[object]) -> str:
    text = as_text(value).strip()
    if text.endswith(".0") and text[:-2].isdigit():
        text = text[:-2]
    return text[:4]


def clean_text(value: Optional[object]) -> str:
    return SPACE_PATTERN.sub(" ", as_text(value)).strip()
