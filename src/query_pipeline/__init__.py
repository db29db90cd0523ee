"""Composable in-memory query pipeline.

Stages (search, filter, sort, paginate, group) transform a collection of
dynamically shaped records for a free-text query; a :class:`Pipeline` folds
them in order and is itself a stage.
"""

from query_pipeline.builder import build_pipeline, build_stage
from query_pipeline.domain.model import (
    Condition,
    Diagnostic,
    FilterOptions,
    FuzzyOptions,
    GroupOptions,
    MatchStrategy,
    MissingFieldBehavior,
    Operator,
    PaginationOptions,
    PipelineResult,
    SearchOptions,
    SortOptions,
)
from query_pipeline.errors import (
    InvalidArgumentError,
    InvalidConfigurationError,
    MissingFieldError,
    QueryPipelineError,
    UnsupportedOperatorError,
    UnsupportedStrategyError,
)
from query_pipeline.matching.engine import is_match, match_value
from query_pipeline.matching.fields import MISSING, discover_fields, resolve_field
from query_pipeline.matching.fuzzy import jaro_winkler_similarity, levenshtein_ratio, ngram_similarity
from query_pipeline.matching.normalize import normalize_case, to_comparable_string
from query_pipeline.pipeline import Pipeline
from query_pipeline.runtime.debounce import DebouncedSearch
from query_pipeline.stages import FilterStage, GroupStage, PaginateStage, SearchStage, SortStage


__all__ = [
    "MISSING",
    "Condition",
    "DebouncedSearch",
    "Diagnostic",
    "FilterOptions",
    "FilterStage",
    "FuzzyOptions",
    "GroupOptions",
    "GroupStage",
    "InvalidArgumentError",
    "InvalidConfigurationError",
    "MatchStrategy",
    "MissingFieldBehavior",
    "MissingFieldError",
    "Operator",
    "PaginateStage",
    "PaginationOptions",
    "Pipeline",
    "PipelineResult",
    "QueryPipelineError",
    "SearchOptions",
    "SearchStage",
    "SortOptions",
    "SortStage",
    "UnsupportedOperatorError",
    "UnsupportedStrategyError",
    "build_pipeline",
    "build_stage",
    "discover_fields",
    "is_match",
    "jaro_winkler_similarity",
    "levenshtein_ratio",
    "match_value",
    "ngram_similarity",
    "normalize_case",
    "resolve_field",
    "to_comparable_string",
]
