"""Fail-open warning reporting.

Stages that absorb a problem instead of raising call :func:`report_warning`.
The warning is logged, counted, and appended to the diagnostics collector
of the enclosing pipeline execution (if any), so callers can inspect what
was absorbed without scraping logs.
"""

from __future__ import annotations

import logging

from query_pipeline.domain.model import Diagnostic
from query_pipeline.observability.context import record_diagnostic
from query_pipeline.observability.metrics import ABSORBED_WARNINGS


logger = logging.getLogger(__name__)


def report_warning(
    stage: str,
    message: str,
    *,
    field: str | None = None,
    log: logging.Logger | None = None,
) -> Diagnostic:
    """Log an absorbed warning and record it for the current execution."""
    diagnostic = Diagnostic(stage=stage, message=message, field=field)
    (log or logger).warning("%s", message, extra={"stage": stage, "field_path": field})
    ABSORBED_WARNINGS.labels(stage=stage).inc()
    record_diagnostic(diagnostic)
    return diagnostic
