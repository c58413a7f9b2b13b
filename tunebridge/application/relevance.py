from dataclasses import dataclass
from typing import Optional

from rapidfuzz import fuzz

from tunebridge.domain.normalization import normalize_text


@dataclass(frozen=True)
class RelevanceThresholds:
    """Similarity cutoffs on rapidfuzz's 0-100 scale.

    Tuned by hand; re-tune against a labelled sample before relying on them.
    """

    split: float = 60.0
    combined: float = 65.0
    field: float = 70.0

    @classmethod
    def from_settings(cls, settings) -> 'RelevanceThresholds':
        defaults = cls()
        return cls(
            split=settings.split_threshold or defaults.split,
            combined=settings.combined_threshold or defaults.combined,
            field=settings.field_threshold or defaults.field,
        )


DEFAULT_THRESHOLDS = RelevanceThresholds()


def _split_matches(query: str, title: str, artist: str, threshold: float) -> bool:
    """Try every split point of the query as (title, artist), both orders."""
    parts = query.split(' ')
    for i in range(1, len(parts)):
        head = ' '.join(parts[:i])
        tail = ' '.join(parts[i:])
        for first, second in ((head, tail), (tail, head)):
            if first == title and second == artist:
                return True
            if (fuzz.ratio(first, title) >= threshold and
                    fuzz.ratio(second, artist) >= threshold):
                return True
    return False


def is_relevant(query: str, title: Optional[str], artist: Optional[str],
                thresholds: RelevanceThresholds = DEFAULT_THRESHOLDS) -> bool:
    """Decide whether a candidate's title/artist answers a free-text query.

    All three strings are normalized first. Clauses are tried in order and the
    first satisfied one wins:

    1. Exact match of the whole query against title or artist
    2. For multi-token queries, every split point as (title, artist) or
       (artist, title), exact or both parts above ``thresholds.split``
    3. Whole query against "title artist" above ``thresholds.combined``
    4. Whole query against title or artist alone above ``thresholds.field``

    Args:
        query: Free-text query, usually "song artist"
        title: Candidate title
        artist: Candidate artist
        thresholds: Similarity cutoffs

    Returns:
        True if the candidate is relevant
    """
    query_n = normalize_text(query)
    title_n = normalize_text(title)
    artist_n = normalize_text(artist)
    if not query_n or not (title_n or artist_n):
        return False

    if query_n == title_n or query_n == artist_n:
        return True

    if ' ' in query_n and _split_matches(query_n, title_n, artist_n, thresholds.split):
        return True

    combined = f"{title_n} {artist_n}".strip()
    if fuzz.token_sort_ratio(query_n, combined) >= thresholds.combined:
        return True

    return (fuzz.ratio(query_n, title_n) >= thresholds.field or
            fuzz.ratio(query_n, artist_n) >= thresholds.field)
