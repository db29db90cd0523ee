"""Per-execution context: log correlation ids and the absorbed-warning collector."""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING
from uuid import uuid4


if TYPE_CHECKING:
    from collections.abc import Generator

    from opentelemetry.trace import Span

    from query_pipeline.domain.model import Diagnostic

# Correlation ids stamped on every structured log line
trace_context: ContextVar[dict[str, str] | None] = ContextVar("trace_context", default=None)

# Warnings absorbed during the current Pipeline.execute call
diagnostics_context: ContextVar[list[Diagnostic] | None] = ContextVar("diagnostics_context", default=None)


def get_trace_context() -> dict[str, str]:
    """Return the correlation ids for the current context, minting them on first use."""
    ctx = trace_context.get()
    if not ctx or not ctx.get("trace_id"):
        minted = uuid4().hex
        ctx = {"trace_id": minted, "span_id": minted[:16]}
        trace_context.set(ctx)
    return ctx


@contextmanager
def bound_span(span: Span) -> Generator[None, None, None]:
    """Correlate log lines emitted inside the block with ``span``.

    Spans without a valid context (no SDK provider installed) leave the
    current ids untouched. The previous ids are restored on exit.
    """
    span_ctx = span.get_span_context()
    if not span_ctx.is_valid:
        yield
        return

    token = trace_context.set(
        {
            **(trace_context.get() or {}),
            "trace_id": format(span_ctx.trace_id, "032x"),
            "span_id": format(span_ctx.span_id, "016x"),
        }
    )
    try:
        yield
    finally:
        trace_context.reset(token)


@contextmanager
def collect_diagnostics() -> Generator[list[Diagnostic], None, None]:
    """Collect diagnostics reported inside the block.

    Collectors nest: when an inner block exits, whatever it gathered is also
    appended to the enclosing collector.
    """
    parent = diagnostics_context.get()
    collected: list[Diagnostic] = []
    token = diagnostics_context.set(collected)
    try:
        yield collected
    finally:
        diagnostics_context.reset(token)
        if parent is not None:
            parent.extend(collected)


def record_diagnostic(diagnostic: Diagnostic) -> None:
    """Append to the active collector; a no-op outside ``collect_diagnostics``."""
    collected = diagnostics_context.get()
    if collected is not None:
        collected.append(diagnostic)
