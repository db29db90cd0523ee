"""Error taxonomy for the query pipeline.

Configuration errors surface when a stage is constructed. Evaluation errors
either surface (``MissingFieldError`` in throw mode, unsupported dispatch
values) or are absorbed by the pipeline fold, which degrades to the
untransformed input.
"""

from __future__ import annotations


class QueryPipelineError(Exception):
    """Base class for every error raised by this package."""


class InvalidConfigurationError(QueryPipelineError, ValueError):
    """A stage or pipeline was constructed with an invalid option."""


class MissingFieldError(QueryPipelineError, LookupError):
    """A filter condition referenced a field absent from a record."""

    def __init__(self, field: str) -> None:
        super().__init__(f'Field "{field}" does not exist in the data.')
        self.field = field


class UnsupportedOperatorError(QueryPipelineError, ValueError):
    """A filter condition used an operator outside the supported set."""

    def __init__(self, operator: object) -> None:
        super().__init__(f"Unsupported operator: {operator}")
        self.operator = operator


class UnsupportedStrategyError(QueryPipelineError, ValueError):
    """The match engine was asked to dispatch an unknown strategy."""

    def __init__(self, strategy: object) -> None:
        super().__init__(f"Unsupported match type: {strategy}")
        self.strategy = strategy


class InvalidArgumentError(QueryPipelineError, TypeError):
    """A call received an argument of the wrong type (e.g. a non-string query)."""
