"""Host-side debounce and memoisation around a pipeline.

Interactive hosts re-run a pipeline as the user types. ``DebouncedSearch``
holds the current ``(data, query)`` pair, only presents a changed query to the
pipeline once it has been stable for the debounce window, and memoises the
last result on ``(id(data), debounced_query)``. Because pipeline execution is
synchronous and side-effect free, a superseded query is simply never run.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
import logging
import time
from typing import Any

from query_pipeline.config import get_settings
from query_pipeline.errors import InvalidArgumentError
from query_pipeline.pipeline import Pipeline
from query_pipeline.stages.base import Stage


logger = logging.getLogger(__name__)

_UNSET = object()


def _require_str(query: object) -> str:
    if not isinstance(query, str):
        raise InvalidArgumentError("`query` must be a string.")
    return query


class DebouncedSearch:
    """Debounced, memoised view over ``pipeline(data, query)``.

    Args:
        pipeline: A :class:`Pipeline`, a single stage, or a sequence of stages.
        data: Initial collection (``None`` yields an empty result).
        query: Initial query; presented to the pipeline immediately.
        debounce_timeout_ms: Debounce window; defaults to
            ``Settings.debounce_timeout_ms``.
        clock: Monotonic clock in seconds, injectable for tests.
    """

    def __init__(
        self,
        pipeline: Pipeline | Stage | Sequence[Stage],
        data: Any = None,
        query: str = "",
        *,
        debounce_timeout_ms: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if isinstance(pipeline, Pipeline):
            self.pipeline = pipeline
        else:
            self.pipeline = Pipeline(pipeline)

        if debounce_timeout_ms is None:
            debounce_timeout_ms = get_settings().debounce_timeout_ms
        if debounce_timeout_ms < 0:
            raise InvalidArgumentError("debounce_timeout_ms must not be negative")

        self.delay = debounce_timeout_ms / 1000
        self._clock = clock
        self._data = data
        self._pending_query = _require_str(query)
        self._debounced_query = self._pending_query
        self._changed_at = clock()
        self._memo_key: Any = _UNSET
        self._memo_value: Any = None

    @property
    def data(self) -> Any:
        return self._data

    def set_data(self, data: Any) -> None:
        """Replace the collection; the next result is recomputed."""
        self._data = data
        self._memo_key = _UNSET

    def set_query(self, query: str) -> None:
        """Record a new query and restart the debounce window."""
        query = _require_str(query)
        if query == self._pending_query:
            return
        self._pending_query = query
        self._changed_at = self._clock()

    @property
    def remaining(self) -> float:
        """Seconds until the pending query settles (0 when settled)."""
        if self._pending_query == self._debounced_query:
            return 0.0
        return max(0.0, self.delay - (self._clock() - self._changed_at))

    @property
    def debounced_query(self) -> str:
        """The query currently presented to the pipeline."""
        if self._pending_query != self._debounced_query and self.remaining <= 0:
            self._debounced_query = self._pending_query
        return self._debounced_query

    @property
    def is_pending(self) -> bool:
        return self.debounced_query != self._pending_query

    def result(self) -> list[Any]:
        """Return the pipeline output for the data and debounced query."""
        if self._data is None:
            logger.warning("`data` is None. Returning an empty list.")
            return []

        query = self.debounced_query
        key = (id(self._data), query)
        if key != self._memo_key:
            logger.debug("Running pipeline for query %r", query)
            self._memo_value = self.pipeline(self._data, query)
            self._memo_key = key
        return self._memo_value

    async def settled_result(self) -> list[Any]:
        """Wait out the debounce window, then return the result."""
        while self.remaining > 0:
            await asyncio.sleep(self.remaining)
        return self.result()
