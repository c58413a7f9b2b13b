from __future__ import annotations

import re
import unicodedata
from typing import Optional

from zhconv import convert


_ASCII_PARENS_PATTERN = re.compile(r"\s*[\(\[\{][^\(\)\[\]\{\}]*[\)\]\}]\s*")
_FULLWIDTH_PARENS_PATTERN = re.compile(r"\s*[（【〔《「][^（）【】〔〕《》「」]*[）】〕》」]\s*")
_PARENS_CHARS_PATTERN = re.compile(r"[\(\)\[\]\{\}（）【】〔〕《》「」]")
# Keep unicode word characters and spaces; strip punctuation/symbols. Underscores are removed separately.
_NON_WORD_SPACE_PATTERN = re.compile(r"[^\w\s]", re.UNICODE)
_MULTISPACE_PATTERN = re.compile(r"\s+")


def to_simplified(text: str) -> str:
    """Convert traditional Chinese characters to simplified ones."""
    return convert(text, "zh-hans")


def _strip_diacritics(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return unicodedata.normalize("NFKC", stripped)


def normalize_text(value: Optional[str]) -> str:
    value = value or ""
    # Compatibility ideographs fold to traditional forms; simplify after
    value = _strip_diacritics(value)
    value = to_simplified(value)
    # casefold may reintroduce combining marks (e.g. dotted capital I)
    value = _strip_diacritics(value.casefold())
    # Remove parenthetical/bracketed annotations, innermost first
    while True:
        new_value = _FULLWIDTH_PARENS_PATTERN.sub(" ", _ASCII_PARENS_PATTERN.sub(" ", value))
        if new_value == value:
            break
        value = new_value
    value = _PARENS_CHARS_PATTERN.sub(" ", value)
    value = _NON_WORD_SPACE_PATTERN.sub(" ", value)
    value = value.replace("_", " ")
    value = _MULTISPACE_PATTERN.sub(" ", value).strip()
    return value


def build_query(song: Optional[str] = None, artist: Optional[str] = None) -> str:
    """Join song and artist into the free-text query sent to providers."""
    parts = [p.strip() for p in (song, artist) if p and p.strip()]
    return " ".join(parts)
