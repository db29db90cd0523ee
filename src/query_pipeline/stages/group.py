"""Grouping stage: bucket records by a field, then flatten in first-seen order."""

from __future__ import annotations

import math
from typing import Any, ClassVar

from query_pipeline.domain.model import GroupOptions
from query_pipeline.matching.fields import MISSING, resolve_field
from query_pipeline.stages.base import BaseStage, Collection


def _is_blank(value: Any) -> bool:
    """Missing or falsy in the JavaScript sense (containers are never blank)."""
    if value is None or value is MISSING or value is False:
        return True
    if isinstance(value, (int, float)):
        return value == 0 or (isinstance(value, float) and math.isnan(value))
    return isinstance(value, str) and not value


class IdentityKey:
    """Bucket key equal only to the same object.

    Wraps unhashable group values, and booleans, which would otherwise share a
    bucket with the equal numbers ``1`` and ``0``.
    """

    __slots__ = ("value",)

    def __init__(self, value: Any) -> None:
        self.value = value

    def __hash__(self) -> int:
        return id(self.value)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, IdentityKey) and other.value is self.value


class GroupStage(BaseStage[GroupOptions]):
    """Reorder records so each group is contiguous.

    Buckets appear in the order their key was first seen and records keep
    their input order within a bucket. Records whose field is missing or
    blank go to ``default_group_key``.
    """

    name: ClassVar[str] = "group"
    options_model: ClassVar[type[GroupOptions]] = GroupOptions

    def __call__(self, collection: Collection | None, query: str | None = None) -> Any:
        if collection is None:
            return []
        return [record for bucket in self.groups(collection).values() for record in bucket]

    def group_key(self, record: Any) -> Any:
        value = resolve_field(record, self.options.field)
        if _is_blank(value):
            return self.options.default_group_key
        return value

    def groups(self, collection: Collection) -> dict[Any, list[Any]]:
        """Return buckets keyed by group value, in first-seen order.

        Relies on dict insertion order for both bucket order and the order of
        records within each bucket. Unhashable and boolean group values are
        keyed by an :class:`IdentityKey` wrapping the value. Numbers that
        compare equal (``1`` and ``1.0``) share a bucket.
        """
        buckets: dict[Any, list[Any]] = {}
        for record in collection:
            key = self.group_key(record)
            if isinstance(key, bool):
                key = IdentityKey(key)
            else:
                try:
                    hash(key)
                except TypeError:
                    key = IdentityKey(key)
            buckets.setdefault(key, []).append(record)
        return buckets
