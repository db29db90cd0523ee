"""Configuration and result models for pipeline stages.

Value objects are immutable (frozen=True) and reject unknown keys, so a
stage's configuration cannot drift after construction. Enumerated values keep
their wire spelling (``"startsWith"``, ``"greaterThanOrEquals"``) so options
can be passed as plain mappings.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from query_pipeline.matching.fuzzy import FuzzyScorer, get_scorer, levenshtein_ratio


MatchPredicate = Callable[[str, str, str], bool]


class MatchStrategy(str, Enum):
    """Built-in strategies for comparing a value against the query."""

    EXACT = "exact"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    CONTAINS = "contains"
    FUZZY = "fuzzy"


class Operator(str, Enum):
    """Operators accepted in filter conditions."""

    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    CONTAINS = "contains"
    NOT_CONTAINS = "notContains"
    GREATER_THAN = "greaterThan"
    LESS_THAN = "lessThan"
    GREATER_THAN_OR_EQUALS = "greaterThanOrEquals"
    LESS_THAN_OR_EQUALS = "lessThanOrEquals"
    IS_NULL = "isNull"


class MissingFieldBehavior(str, Enum):
    """What a filter condition does when its field is absent."""

    SKIP = "skip"
    EXCLUDE = "exclude"
    THROW = "throw"


class Condition(BaseModel):
    """A single ``field operator value`` filter condition.

    ``field`` and ``operator`` may be left empty; such conditions are
    reported and treated as satisfied when evaluated. ``operator`` is kept as
    a plain string so an unknown operator surfaces at evaluation time.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    field: str | None = None
    operator: str | None = None
    value: Any = None

    @field_validator("operator", mode="before")
    @classmethod
    def _operator_value(cls, value: object) -> object:
        if isinstance(value, Operator):
            return value.value
        return value

    @property
    def is_valid(self) -> bool:
        return bool(self.field) and bool(self.operator)


class FilterOptions(BaseModel):
    """Options for :class:`~query_pipeline.stages.filter.FilterStage`."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    conditions: tuple[Condition, ...] = ()
    case_sensitive: bool = False
    missing_field_behavior: MissingFieldBehavior = MissingFieldBehavior.SKIP


class FuzzyOptions(BaseModel):
    """Scorer and acceptance threshold for the ``fuzzy`` strategy.

    ``fuzzy_search_fn`` accepts a callable ``(value, query) -> float`` or the
    name of a built-in scorer (``"levenshtein"``, ``"jaro_winkler"``,
    ``"ngram"``, ``"trigram"``). The threshold is unbounded so custom scorers
    may use their own scale.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    threshold: float = 0.6
    fuzzy_search_fn: FuzzyScorer = levenshtein_ratio

    @field_validator("fuzzy_search_fn", mode="before")
    @classmethod
    def _resolve_named_scorer(cls, value: object) -> object:
        if value is None:
            return levenshtein_ratio
        if isinstance(value, str):
            return get_scorer(value)
        return value


class SearchOptions(BaseModel):
    """Options for :class:`~query_pipeline.stages.search.SearchStage`."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    match: MatchStrategy | MatchPredicate = MatchStrategy.CONTAINS
    fields: tuple[str, ...] | None = None
    case_sensitive: bool = False
    object_to_string_threshold: Annotated[int, Field(ge=0)] = 10
    fuzzy_options: FuzzyOptions = Field(default_factory=FuzzyOptions)

    @field_validator("fields", mode="before")
    @classmethod
    def _single_field(cls, value: object) -> object:
        if isinstance(value, str):
            return (value,)
        return value


class SortOptions(BaseModel):
    """Options for :class:`~query_pipeline.stages.sort.SortStage`."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    field: str
    order: Literal["asc", "desc"] = "asc"
    nulls_first: bool = False


class PaginationOptions(BaseModel):
    """Options for :class:`~query_pipeline.stages.paginate.PaginateStage`.

    Both values are 1-indexed. Non-positive values are accepted and make the
    stage return an empty page.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    page_size: int = 10
    page: int = 1


class GroupOptions(BaseModel):
    """Options for :class:`~query_pipeline.stages.group.GroupStage`."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    field: str
    default_group_key: str = "Other"


class Diagnostic(BaseModel):
    """A warning absorbed by a fail-open policy during one execution."""

    model_config = ConfigDict(frozen=True)

    stage: str
    message: str
    field: str | None = None


class PipelineResult(BaseModel):
    """Output of :meth:`~query_pipeline.pipeline.Pipeline.execute`.

    ``failed`` is True when a stage raised and ``items`` fell back to the
    untransformed input.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    items: list[Any]
    warnings: tuple[Diagnostic, ...] = ()
    failed: bool = False
