"""Structured logging, metrics, tracing and absorbed-warning diagnostics."""

from __future__ import annotations

from typing import TYPE_CHECKING

from query_pipeline.observability.context import collect_diagnostics, get_trace_context, record_diagnostic
from query_pipeline.observability.diagnostics import report_warning
from query_pipeline.observability.logging import JsonFormatter, configure_logging
from query_pipeline.observability.metrics import (
    ABSORBED_WARNINGS,
    PIPELINE_RUNS,
    STAGE_FAILURES,
    STAGE_LATENCY,
    MetricBridge,
    get_metrics,
    init_metrics,
    track_latency,
)
from query_pipeline.observability.tracing import create_span, get_tracer, init_tracing, stage_span


if TYPE_CHECKING:
    from query_pipeline.config import Settings


def configure_observability(settings: Settings | None = None) -> None:
    """Configure logging and telemetry providers from host settings.

    Library code never calls this; hosts call it once at startup.
    """
    from query_pipeline.config import get_settings

    active = settings or get_settings()
    configure_logging(active.log_level, json_output=active.json_logs)
    resource_attributes = {"service.version": active.service_version}
    init_metrics(active.service_name, resource_attributes)
    init_tracing(active.service_name, resource_attributes)


__all__ = [
    "ABSORBED_WARNINGS",
    "PIPELINE_RUNS",
    "STAGE_FAILURES",
    "STAGE_LATENCY",
    "JsonFormatter",
    "MetricBridge",
    "collect_diagnostics",
    "configure_logging",
    "configure_observability",
    "create_span",
    "get_metrics",
    "get_trace_context",
    "get_tracer",
    "init_metrics",
    "init_tracing",
    "record_diagnostic",
    "report_warning",
    "stage_span",
    "track_latency",
]
