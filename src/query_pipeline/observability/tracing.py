"""OpenTelemetry spans around pipeline runs and stage applications."""

from __future__ import annotations

from collections.abc import Sequence, Sized
from contextlib import contextmanager
import logging
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.trace import Status, StatusCode

from query_pipeline.observability.context import bound_span


if TYPE_CHECKING:
    from collections.abc import Generator

    from opentelemetry.trace import Span, Tracer

logger = logging.getLogger(__name__)

TRACER_NAME = "query_pipeline"

_tracer_holder: dict[str, Tracer | None] = {"tracer": None}


def init_tracing(
    service_name: str = "query-pipeline",
    resource_attributes: dict[str, str] | None = None,
    span_processors: Sequence[SpanProcessor] = (),
) -> TracerProvider:
    """Install an SDK tracer provider and attach ``span_processors`` to it.

    The global provider can only be set once per process, so when an SDK
    provider is already installed it is reused and only gains the processors.
    """
    current = trace.get_tracer_provider()
    if isinstance(current, TracerProvider):
        provider = current
    else:
        attributes = {"service.name": service_name, **(resource_attributes or {})}
        provider = TracerProvider(resource=Resource.create(attributes))
        trace.set_tracer_provider(provider)
        logger.info("Tracing initialized for service: %s", service_name)

    for processor in span_processors:
        provider.add_span_processor(processor)
    _tracer_holder["tracer"] = provider.get_tracer(TRACER_NAME)
    return provider


def get_tracer() -> Tracer:
    """Return the package tracer; a no-op proxy until a provider is installed."""
    if _tracer_holder["tracer"] is None:
        _tracer_holder["tracer"] = trace.get_tracer(TRACER_NAME)
    return _tracer_holder["tracer"]  # type: ignore[return-value]


@contextmanager
def create_span(name: str, attributes: dict[str, Any] | None = None) -> Generator[Span, None, None]:
    """Open a span and correlate log lines emitted inside it.

    An exception escaping the block marks the span as errored and propagates.
    """
    with get_tracer().start_as_current_span(
        name, attributes=attributes, record_exception=False, set_status_on_exception=False
    ) as span, bound_span(span):
        try:
            yield span
        except Exception as exc:
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            span.record_exception(exc)
            raise


def set_count(span: Span, key: str, collection: Any) -> None:
    """Tag ``span`` with the size of ``collection`` when it has one."""
    if isinstance(collection, Sized):
        span.set_attribute(key, len(collection))


@contextmanager
def stage_span(label: str, collection: Any) -> Generator[Span, None, None]:
    """Span for one stage application, tagged with the stage label and input size."""
    with create_span(f"query_pipeline.stage.{label}", attributes={"pipeline.stage": label}) as span:
        set_count(span, "pipeline.input_count", collection)
        yield span
