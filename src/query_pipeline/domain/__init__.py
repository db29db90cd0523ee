"""Domain layer - stage configuration and execution results.

Value objects are immutable pydantic models:
- Stage options (search, filter, sort, paginate, group)
- Enumerations for match strategies, filter operators and missing-field policy
- Diagnostics and pipeline results
"""

from query_pipeline.domain.model import (
    Condition,
    Diagnostic,
    FilterOptions,
    FuzzyOptions,
    GroupOptions,
    MatchPredicate,
    MatchStrategy,
    MissingFieldBehavior,
    Operator,
    PaginationOptions,
    PipelineResult,
    SearchOptions,
    SortOptions,
)


__all__ = [
    "Condition",
    "Diagnostic",
    "FilterOptions",
    "FuzzyOptions",
    "GroupOptions",
    "MatchPredicate",
    "MatchStrategy",
    "MissingFieldBehavior",
    "Operator",
    "PaginationOptions",
    "PipelineResult",
    "SearchOptions",
    "SortOptions",
]
