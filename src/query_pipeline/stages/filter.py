"""Condition filter stage.

Every condition must hold for a record to pass (AND logic). The query is
ignored; conditions carry their own comparison values.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar

from query_pipeline.domain.model import Condition, FilterOptions, MissingFieldBehavior, Operator
from query_pipeline.errors import MissingFieldError, UnsupportedOperatorError
from query_pipeline.matching.fields import MISSING, resolve_field
from query_pipeline.matching.normalize import normalize_case, to_comparable_string, to_number
from query_pipeline.observability.diagnostics import report_warning
from query_pipeline.stages.base import BaseStage, Collection


logger = logging.getLogger(__name__)

_ORDERING_OPERATORS = {
    Operator.GREATER_THAN: lambda a, b: a > b,
    Operator.LESS_THAN: lambda a, b: a < b,
    Operator.GREATER_THAN_OR_EQUALS: lambda a, b: a >= b,
    Operator.LESS_THAN_OR_EQUALS: lambda a, b: a <= b,
}


class FilterStage(BaseStage[FilterOptions]):
    """Keep records satisfying every configured condition.

    Example::

        stage = FilterStage(conditions=[{"field": "age", "operator": "greaterThan", "value": 30}])
        adults = stage(people, "")

    Policies:
        - Conditions without a field or operator are reported and treated as true.
        - An absent field follows ``missing_field_behavior`` (skip/exclude/throw).
        - A null field satisfies only ``isNull``.
        - Ordering operators compare numerically; non-numeric values never satisfy them.
    """

    name: ClassVar[str] = "filter"
    options_model: ClassVar[type[FilterOptions]] = FilterOptions

    def __init__(self, options: FilterOptions | dict[str, Any] | None = None, **overrides: Any) -> None:
        super().__init__(options, **overrides)
        if not self.options.conditions:
            logger.warning("No conditions provided for filtering. Returning original data.")

    def __call__(self, collection: Collection | None, query: str | None = None) -> Any:
        if not self.options.conditions:
            return collection
        if collection is None:
            return []

        reported: set[int] = set()
        return [record for record in collection if self._matches(record, reported)]

    def _matches(self, record: Any, reported: set[int]) -> bool:
        for index, condition in enumerate(self.options.conditions):
            if not condition.is_valid:
                if index not in reported:
                    reported.add(index)
                    report_warning(
                        self.name,
                        "Invalid condition: field or operator is missing. Skipping condition.",
                        field=condition.field,
                        log=logger,
                    )
                continue
            if not self._check_condition(record, condition):
                return False
        return True

    def _check_condition(self, record: Any, condition: Condition) -> bool:
        """Evaluate a single, well-formed condition against one record."""
        field = condition.field or ""
        value = resolve_field(record, field)

        if value is MISSING:
            behavior = self.options.missing_field_behavior
            if behavior is MissingFieldBehavior.SKIP:
                return True
            if behavior is MissingFieldBehavior.EXCLUDE:
                return False
            raise MissingFieldError(field)

        if value is None:
            return condition.operator == Operator.IS_NULL.value

        try:
            operator = Operator(condition.operator)
        except ValueError:
            raise UnsupportedOperatorError(condition.operator) from None

        if operator in _ORDERING_OPERATORS:
            return _ORDERING_OPERATORS[operator](to_number(value), to_number(condition.value))

        if operator is Operator.IS_NULL:
            return False

        case_sensitive = self.options.case_sensitive
        normalized_value = normalize_case(to_comparable_string(value), case_sensitive)
        normalized_target = normalize_case(to_comparable_string(condition.value), case_sensitive)

        if operator is Operator.EQUALS:
            return normalized_value == normalized_target
        if operator is Operator.NOT_EQUALS:
            return normalized_value != normalized_target
        if operator is Operator.CONTAINS:
            return normalized_target in normalized_value
        return normalized_target not in normalized_value
