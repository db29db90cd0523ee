"""Sequential composition of stages.

A pipeline threads ``(collection, query)`` through its stages in order and is
itself stage-shaped, so pipelines nest. Any exception raised by a stage is
absorbed at the pipeline boundary: it is logged, counted and recorded as a
diagnostic, and the pipeline returns its input untransformed.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import logging
from typing import Any, ClassVar

from query_pipeline.domain.model import Diagnostic, PipelineResult
from query_pipeline.errors import InvalidArgumentError, InvalidConfigurationError
from query_pipeline.observability.context import collect_diagnostics, record_diagnostic
from query_pipeline.observability.diagnostics import report_warning
from query_pipeline.observability.metrics import PIPELINE_RUNS, STAGE_FAILURES, STAGE_LATENCY, track_latency
from query_pipeline.observability.tracing import create_span, set_count, stage_span
from query_pipeline.stages.base import Collection, Stage


logger = logging.getLogger(__name__)


def stage_name(stage: Stage) -> str:
    """Label used for a stage in logs, metrics and diagnostics."""
    name = getattr(stage, "name", None)
    if isinstance(name, str) and name:
        return name
    return getattr(stage, "__name__", type(stage).__name__)


class Pipeline:
    """An ordered, immutable sequence of stages.

    Example::

        pipeline = Pipeline(
            SearchStage(fields=["name"]),
            FilterStage(conditions=[{"field": "age", "operator": "greaterThan", "value": 30}]),
        )
        people_named_bob_over_30 = pipeline(people, "bob")
    """

    name: ClassVar[str] = "pipeline"

    def __init__(self, *stages: Stage | Iterable[Stage]) -> None:
        if len(stages) == 1 and isinstance(stages[0], (list, tuple)):
            stages = tuple(stages[0])
        for stage in stages:
            if not callable(stage):
                raise InvalidConfigurationError(f"Pipeline stages must be callable, got {type(stage).__name__}")
        self.stages: tuple[Stage, ...] = tuple(stages)  # type: ignore[arg-type]

    def __repr__(self) -> str:
        return f"Pipeline({', '.join(repr(stage) for stage in self.stages)})"

    def __len__(self) -> int:
        return len(self.stages)

    def __call__(self, collection: Collection | Mapping[str, Any] | None, query: str | None) -> Any:
        return self.run(collection, query)

    def run(self, collection: Collection | Mapping[str, Any] | None, query: str | None) -> Any:
        """Apply every stage and return the resulting collection.

        Raises:
            InvalidArgumentError: If ``query`` is neither a string nor None.
        """
        data = self._prepare(collection, query)
        items, _ = self._fold(data, query)
        return items

    def execute(self, collection: Collection | Mapping[str, Any] | None, query: str | None) -> PipelineResult:
        """Apply every stage and return the items with any absorbed warnings."""
        with collect_diagnostics() as collected:
            data = self._prepare(collection, query)
            items, failed = self._fold(data, query)
        return PipelineResult(items=list(items or []), warnings=tuple(collected), failed=failed)

    def _prepare(self, collection: Any, query: Any) -> Any:
        if query is not None and not isinstance(query, str):
            raise InvalidArgumentError(f"`query` must be a string, got {type(query).__name__}")
        if collection is None:
            report_warning(self.name, "`collection` is None. Returning an empty list.", log=logger)
            return []
        if isinstance(collection, Mapping):
            return [collection]
        if not self.stages:
            report_warning(self.name, "No stages provided. Returning the original data.", log=logger)
        return collection

    def _fold(self, data: Any, query: str | None) -> tuple[Any, bool]:
        with create_span("query_pipeline.run", attributes={"pipeline.stage_count": len(self.stages)}) as run_span:
            current, failed = data, False
            for stage in self.stages:
                label = stage_name(stage)
                try:
                    with track_latency(STAGE_LATENCY, stage=label), stage_span(label, current) as span:
                        current = stage(current, query)
                        set_count(span, "pipeline.output_count", current)
                except Exception as exc:
                    logger.error("Error applying stage %s: %s", label, exc, exc_info=True)
                    STAGE_FAILURES.labels(stage=label, error_type=type(exc).__name__).inc()
                    record_diagnostic(Diagnostic(stage=label, message=f"{type(exc).__name__}: {exc}"))
                    current, failed = data, True
                    break

            run_span.set_attribute("pipeline.degraded", failed)
            PIPELINE_RUNS.labels(outcome="degraded" if failed else "ok").inc()
        return current, failed
