"""Stable single-field sort stage."""

from __future__ import annotations

from functools import cmp_to_key
import math
from typing import Any, ClassVar

from query_pipeline.domain.model import SortOptions
from query_pipeline.matching.fields import MISSING, resolve_field
from query_pipeline.matching.normalize import to_number
from query_pipeline.stages.base import BaseStage, Collection


def compare_values(a: Any, b: Any) -> int:
    """Three-way comparison of two non-null field values. Never raises.

    Two strings compare as text. Any other pair compares numerically through
    ``to_number`` (so ``5`` and ``"10"`` or a date and a datetime are
    ordered). Pairs with no numeric reading fall back to Python ordering, and
    anything still unordered (``1`` vs ``"a"``, NaN) compares equal.

    Examples:
        >>> compare_values("b", "a")
        1
        >>> compare_values(5, "10")
        -1
        >>> compare_values(1, "a")
        0
    """
    if isinstance(a, str) and isinstance(b, str):
        return (a > b) - (a < b)

    a_number, b_number = to_number(a), to_number(b)
    if not (math.isnan(a_number) or math.isnan(b_number)):
        return (a_number > b_number) - (a_number < b_number)

    try:
        return (a > b) - (a < b)
    except TypeError:
        return 0


class SortStage(BaseStage[SortOptions]):
    """Order records by one field.

    Nulls (missing or ``None``) go last unless ``nulls_first`` is set,
    independently of ``order``. Records with equal or unordered keys keep
    their input order, so mixed-type columns never fail the stage.
    """

    name: ClassVar[str] = "sort"
    options_model: ClassVar[type[SortOptions]] = SortOptions

    def __call__(self, collection: Collection | None, query: str | None = None) -> Any:
        if collection is None:
            return []
        field = self.options.field
        keyed = [(resolve_field(record, field), record) for record in collection]
        keyed.sort(key=cmp_to_key(self._compare))
        return [record for _, record in keyed]

    def _compare(self, a: tuple[Any, Any], b: tuple[Any, Any]) -> int:
        a_value, b_value = a[0], b[0]
        a_null = a_value is None or a_value is MISSING
        b_null = b_value is None or b_value is MISSING

        if a_null and b_null:
            return 0
        if a_null:
            return -1 if self.options.nulls_first else 1
        if b_null:
            return 1 if self.options.nulls_first else -1

        direction = 1 if self.options.order == "asc" else -1
        return direction * compare_values(a_value, b_value)
