"""Decide whether a resolved value matches a query."""

from __future__ import annotations

from typing import Any

from query_pipeline.domain.model import FuzzyOptions, MatchPredicate, MatchStrategy
from query_pipeline.errors import UnsupportedStrategyError
from query_pipeline.matching.fuzzy import levenshtein_ratio
from query_pipeline.matching.normalize import normalize_case, to_comparable_string


_DEFAULT_FUZZY_OPTIONS = FuzzyOptions()


def _coerce_strategy(strategy: MatchStrategy | str) -> MatchStrategy:
    if isinstance(strategy, MatchStrategy):
        return strategy
    try:
        return MatchStrategy(strategy)
    except ValueError:
        raise UnsupportedStrategyError(strategy) from None


def match_value(value: str, query: str, strategy: MatchStrategy | str, case_sensitive: bool = False) -> bool:
    """Compare two strings with one of the non-fuzzy strategies.

    Raises:
        UnsupportedStrategyError: For ``fuzzy`` or any unknown strategy.
    """
    normalized_value = normalize_case(value, case_sensitive)
    normalized_query = normalize_case(query, case_sensitive)

    resolved = _coerce_strategy(strategy)
    if resolved is MatchStrategy.EXACT:
        return normalized_value == normalized_query
    if resolved is MatchStrategy.STARTS_WITH:
        return normalized_value.startswith(normalized_query)
    if resolved is MatchStrategy.ENDS_WITH:
        return normalized_value.endswith(normalized_query)
    if resolved is MatchStrategy.CONTAINS:
        return normalized_query in normalized_value
    raise UnsupportedStrategyError(resolved.value)


def fuzzy_score(value: str, query: str, fuzzy_options: FuzzyOptions | None = None) -> float:
    """Score ``value`` against ``query`` with the configured scorer."""
    options = fuzzy_options or _DEFAULT_FUZZY_OPTIONS
    return options.fuzzy_search_fn(value, query)


def is_match(
    field: str,
    raw_value: Any,
    query: str,
    strategy: MatchStrategy | MatchPredicate | str = MatchStrategy.CONTAINS,
    case_sensitive: bool = False,
    fuzzy_options: FuzzyOptions | None = None,
) -> bool:
    """Return True if ``raw_value`` matches ``query`` under ``strategy``.

    Args:
        field: Path the value was resolved from; passed to custom predicates.
        raw_value: Resolved record value (any type).
        query: Search text.
        strategy: A built-in strategy or a ``(field, value, query) -> bool``
            predicate. Predicates receive the stringified value and the
            case-normalised query and own all other semantics.
        case_sensitive: Compare without lowercasing when True.
        fuzzy_options: Scorer and threshold for the ``fuzzy`` strategy.

    Raises:
        UnsupportedStrategyError: If ``strategy`` is an unknown string.
    """
    string_value = to_comparable_string(raw_value)
    normalized_query = normalize_case(query, case_sensitive)

    if callable(strategy):
        return bool(strategy(field, string_value, normalized_query))

    resolved = _coerce_strategy(strategy)
    normalized_value = normalize_case(string_value, case_sensitive)

    if resolved is MatchStrategy.FUZZY:
        options = fuzzy_options or _DEFAULT_FUZZY_OPTIONS
        if options.fuzzy_search_fn is levenshtein_ratio:
            score = levenshtein_ratio(normalized_value, normalized_query, score_cutoff=options.threshold)
        else:
            score = fuzzy_score(normalized_value, normalized_query, options)
        return score >= options.threshold

    return match_value(normalized_value, normalized_query, resolved, case_sensitive=True)
