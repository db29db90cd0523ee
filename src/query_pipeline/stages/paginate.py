"""Page slicing stage."""

from __future__ import annotations

import logging
from typing import Any, ClassVar

from query_pipeline.domain.model import PaginationOptions
from query_pipeline.observability.diagnostics import report_warning
from query_pipeline.stages.base import BaseStage, Collection


logger = logging.getLogger(__name__)


class PaginateStage(BaseStage[PaginationOptions]):
    """Return one 1-indexed page of ``page_size`` records.

    Non-positive ``page`` or ``page_size`` and pages past the end yield an
    empty list.
    """

    name: ClassVar[str] = "paginate"
    options_model: ClassVar[type[PaginationOptions]] = PaginationOptions

    def __call__(self, collection: Collection | None, query: str | None = None) -> Any:
        page_size, page = self.options.page_size, self.options.page
        if page_size <= 0 or page <= 0:
            report_warning(
                self.name,
                "page_size and page must be positive numbers. Returning empty list.",
                log=logger,
            )
            return []
        if collection is None:
            return []

        start = (page - 1) * page_size
        return list(collection[start : start + page_size])

    def page_count(self, total: int) -> int:
        """Number of pages needed for ``total`` records (0 when misconfigured)."""
        page_size = self.options.page_size
        if page_size <= 0 or total <= 0:
            return 0
        return -(-total // page_size)
