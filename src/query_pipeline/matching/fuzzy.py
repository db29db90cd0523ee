"""Fuzzy string-similarity scorers.

Three independent scorers are provided, each returning a similarity where
1.0 means identical:

- ``levenshtein_ratio``: ``1 - edit_distance / max(len(value), len(query))``
- ``jaro_winkler_similarity``: Jaro similarity plus a common-prefix bonus
- ``ngram_similarity``: shared n-gram sets over the larger set size

Scorers are pure and never change case; the match engine lowercases both
inputs unless the search is case sensitive.

Zero-length inputs: two empty strings score 1.0 and exactly one empty string
scores 0.0, except that ``levenshtein_ratio`` treats an empty query as
matching everything.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import partial
import math

from query_pipeline.errors import InvalidConfigurationError


FuzzyScorer = Callable[[str, str], float]

# Winkler prefix bonus settings
PREFIX_SCALE = 0.1
MAX_PREFIX_LENGTH = 4


def levenshtein_distance(value: str, query: str, max_distance: int | None = None) -> int:
    """Count the single-character edits that turn ``value`` into ``query``.

    Runs the two-row dynamic programme in O(len(value) * len(query)) time.
    When ``max_distance`` is given the scan stops as soon as every cell of a
    row exceeds it, and ``max_distance + 1`` is returned instead.

    >>> levenshtein_distance("kitten", "sitting")
    3
    """
    if not value or not query:
        return len(value) + len(query)

    short, long = (value, query) if len(value) <= len(query) else (query, value)
    if max_distance is not None and len(long) - len(short) > max_distance:
        return max_distance + 1

    previous = list(range(len(short) + 1))
    current = [0] * (len(short) + 1)
    for row, long_char in enumerate(long, start=1):
        current[0] = row
        for col, short_char in enumerate(short, start=1):
            current[col] = min(
                previous[col] + 1,
                current[col - 1] + 1,
                previous[col - 1] + (short_char != long_char),
            )
        if max_distance is not None and min(current) > max_distance:
            return max_distance + 1
        previous, current = current, previous

    return previous[-1]


def levenshtein_ratio(value: str, query: str, score_cutoff: float | None = None) -> float:
    """Similarity derived from edit distance, normalised by the longer input.

    An empty query matches everything and scores 1.0. With ``score_cutoff``
    the edit-distance scan stops once the ratio can no longer reach the
    cutoff and 0.0 is returned; scores at or above the cutoff are exact.

    Examples:
        >>> levenshtein_ratio("alice", "alice")
        1.0
        >>> levenshtein_ratio("alice", "ali")
        0.6
    """
    if not query:
        return 1.0
    longest = max(len(value), len(query))
    if score_cutoff is None:
        return 1.0 - levenshtein_distance(value, query) / longest

    # ratio >= cutoff iff distance <= (1 - cutoff) * longest
    max_distance = max(0, math.ceil((1.0 - score_cutoff) * longest))
    distance = levenshtein_distance(value, query, max_distance)
    if distance > max_distance:
        return 0.0
    return 1.0 - distance / longest


def jaro_similarity(s1: str, s2: str) -> float:
    """Standard Jaro similarity.

    Characters match when equal and no further apart than
    ``max(0, max(len(s1), len(s2)) // 2 - 1)``. Transpositions are the
    matched characters that appear in a different order, halved.
    """
    if not s1 and not s2:
        return 1.0
    if not s1 or not s2:
        return 0.0

    window = max(0, max(len(s1), len(s2)) // 2 - 1)
    s1_matched = [False] * len(s1)
    s2_matched = [False] * len(s2)

    matches = 0
    for i, char in enumerate(s1):
        start = max(0, i - window)
        end = min(i + window + 1, len(s2))
        for j in range(start, end):
            if not s2_matched[j] and s2[j] == char:
                s1_matched[i] = True
                s2_matched[j] = True
                matches += 1
                break

    if matches == 0:
        return 0.0

    transpositions = 0
    k = 0
    for i, char in enumerate(s1):
        if not s1_matched[i]:
            continue
        while not s2_matched[k]:
            k += 1
        if char != s2[k]:
            transpositions += 1
        k += 1

    return (matches / len(s1) + matches / len(s2) + (matches - transpositions / 2) / matches) / 3


def common_prefix_length(s1: str, s2: str, max_length: int = MAX_PREFIX_LENGTH) -> int:
    """Length of the shared prefix, capped at ``max_length``."""
    length = 0
    for a, b in zip(s1[:max_length], s2[:max_length]):
        if a != b:
            break
        length += 1
    return length


def jaro_winkler_similarity(value: str, query: str) -> float:
    """Jaro similarity boosted by up to four characters of common prefix.

    ``score = jaro + min(prefix, 4) * 0.1 * (1 - jaro)``

    Examples:
        >>> round(jaro_winkler_similarity("martha", "marhta"), 4)
        0.9611
    """
    jaro = jaro_similarity(value, query)
    prefix = common_prefix_length(value, query)
    return jaro + prefix * PREFIX_SCALE * (1 - jaro)


def ngrams(text: str, n: int = 2) -> set[str]:
    """Return the set of contiguous ``n``-character grams in ``text``."""
    return {text[i : i + n] for i in range(len(text) - n + 1)}


def ngram_similarity(value: str, query: str, n: int = 2) -> float:
    """Share of n-grams in common, over the larger gram set.

    Set semantics are used: a gram repeated in either input counts once.
    Inputs too short to produce any gram score 1.0 when equal and 0.0
    otherwise.

    Examples:
        >>> ngram_similarity("night", "nacht")
        0.25
    """
    if n < 1:
        raise ValueError("n must be a positive integer")
    if not value and not query:
        return 1.0
    if not value or not query:
        return 0.0

    value_grams = ngrams(value, n)
    query_grams = ngrams(query, n)
    if not value_grams and not query_grams:
        return 1.0 if value == query else 0.0

    shared = value_grams & query_grams
    return len(shared) / max(len(value_grams), len(query_grams))


SCORERS: dict[str, FuzzyScorer] = {
    "levenshtein": levenshtein_ratio,
    "jaro_winkler": jaro_winkler_similarity,
    "ngram": ngram_similarity,
    "trigram": partial(ngram_similarity, n=3),
}


def get_scorer(name: str) -> FuzzyScorer:
    """Look up a built-in scorer by name.

    Raises:
        InvalidConfigurationError: If ``name`` is not registered.
    """
    try:
        return SCORERS[name]
    except KeyError:
        known = ", ".join(sorted(SCORERS))
        raise InvalidConfigurationError(f"Unknown fuzzy scorer {name!r}. Expected one of: {known}") from None
