"""Free-text search stage."""

from __future__ import annotations

import logging
from typing import Any, ClassVar

from query_pipeline.domain.model import SearchOptions
from query_pipeline.matching.engine import is_match
from query_pipeline.matching.fields import MISSING, discover_fields, resolve_field
from query_pipeline.matching.normalize import normalize_case
from query_pipeline.stages.base import BaseStage, Collection


logger = logging.getLogger(__name__)


class SearchStage(BaseStage[SearchOptions]):
    """Keep records where any searched field matches the query.

    Fields come from ``fields`` when configured; otherwise up to
    ``object_to_string_threshold`` leaf paths are discovered per record.
    A ``None`` or blank query returns the input unchanged.
    """

    name: ClassVar[str] = "search"
    options_model: ClassVar[type[SearchOptions]] = SearchOptions

    def __call__(self, collection: Collection | None, query: str | None) -> Any:
        if collection is None or query is None:
            return collection

        trimmed = str(query).strip()
        if not trimmed:
            return collection

        normalized_query = normalize_case(trimmed, self.options.case_sensitive)
        results = [record for record in collection if self.matches(record, normalized_query)]
        logger.debug("Search for %r kept %d of %d records", trimmed, len(results), len(collection))
        return results

    def fields_for(self, record: Any) -> tuple[str, ...] | list[str]:
        """Return the field paths searched for ``record``."""
        if self.options.fields is not None:
            return self.options.fields
        return discover_fields(record, self.options.object_to_string_threshold)

    def matches(self, record: Any, query: str) -> bool:
        """Return True if any searched field of ``record`` matches ``query``."""
        options = self.options
        for field in self.fields_for(record):
            value = resolve_field(record, field)
            if value is None or value is MISSING:
                continue
            if is_match(
                field,
                value,
                query,
                strategy=options.match,
                case_sensitive=options.case_sensitive,
                fuzzy_options=options.fuzzy_options,
            ):
                return True
        return False
