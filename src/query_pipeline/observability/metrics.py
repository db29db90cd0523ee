"""Stage metrics recorded in Prometheus and mirrored to OpenTelemetry instruments."""

from __future__ import annotations

from contextlib import contextmanager
import time
from typing import TYPE_CHECKING, Any

from opentelemetry import metrics as otel_metrics
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader
from opentelemetry.sdk.resources import Resource
from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Generator, Sequence


_meter_holder: dict[str, Any] = {"meter": None, "provider": None}

_KINDS = ("counter", "histogram")


def init_metrics(
    service_name: str = "query-pipeline",
    resource_attributes: dict[str, str] | None = None,
    metric_readers: Sequence[MetricReader] = (),
) -> MeterProvider:
    """Install the OpenTelemetry meter provider once; later calls return it."""
    provider = _meter_holder["provider"]
    if provider is not None:
        return provider

    attributes = {"service.name": service_name, **(resource_attributes or {})}
    provider = MeterProvider(resource=Resource.create(attributes), metric_readers=list(metric_readers))
    otel_metrics.set_meter_provider(provider)
    _meter_holder["provider"] = provider
    _meter_holder["meter"] = otel_metrics.get_meter(__name__)
    return provider


def _get_meter():
    if _meter_holder["meter"] is None:
        init_metrics()
    return _meter_holder["meter"]


class _BoundMetric:
    def __init__(self, bridge: MetricBridge, labels: dict[str, str]) -> None:
        self._bridge = bridge
        self._labels = labels

    def inc(self, amount: float = 1.0) -> None:
        self._bridge.prom_metric.labels(**self._labels).inc(amount)
        self._bridge.instrument.add(amount, self._labels)

    def observe(self, value: float) -> None:
        self._bridge.prom_metric.labels(**self._labels).observe(value)
        self._bridge.instrument.record(value, self._labels)


class MetricBridge:
    """One labelled metric kept in Prometheus and an OpenTelemetry instrument.

    Build with :meth:`counter` or :meth:`histogram`, then record through
    ``bridge.labels(stage="search").inc()`` or ``.observe(seconds)``. The
    OpenTelemetry instrument is created on first use so importing this module
    never installs a meter provider.
    """

    def __init__(self, prom_metric: Counter | Histogram, *, name: str, description: str, kind: str) -> None:
        if kind not in _KINDS:
            raise ValueError(f"Unknown metric kind: {kind}")
        self.prom_metric = prom_metric
        self.name = name
        self.description = description
        self.kind = kind
        self._instrument: Any = None

    @classmethod
    def counter(
        cls,
        name: str,
        description: str,
        labelnames: Sequence[str],
        registry: CollectorRegistry = REGISTRY,
    ) -> MetricBridge:
        prom = Counter(name, description, labelnames, registry=registry)
        return cls(prom, name=name, description=description, kind="counter")

    @classmethod
    def histogram(
        cls,
        name: str,
        description: str,
        labelnames: Sequence[str],
        buckets: Sequence[float],
        registry: CollectorRegistry = REGISTRY,
    ) -> MetricBridge:
        prom = Histogram(name, description, labelnames, buckets=buckets, registry=registry)
        return cls(prom, name=name, description=description, kind="histogram")

    def labels(self, **labels: str) -> _BoundMetric:
        return _BoundMetric(self, labels)

    @property
    def instrument(self) -> Any:
        if self._instrument is None:
            meter = _get_meter()
            create = meter.create_counter if self.kind == "counter" else meter.create_histogram
            self._instrument = create(self.name, description=self.description)
        return self._instrument


STAGE_LATENCY = MetricBridge.histogram(
    "query_pipeline_stage_latency_seconds",
    "Time spent applying one stage",
    ["stage"],
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 1.0),
)

STAGE_FAILURES = MetricBridge.counter(
    "query_pipeline_stage_failures_total",
    "Stage exceptions absorbed at the pipeline boundary",
    ["stage", "error_type"],
)

ABSORBED_WARNINGS = MetricBridge.counter(
    "query_pipeline_absorbed_warnings_total",
    "Warnings absorbed by fail-open stage policies",
    ["stage"],
)

PIPELINE_RUNS = MetricBridge.counter(
    "query_pipeline_runs_total",
    "Pipeline runs by outcome (ok or degraded)",
    ["outcome"],
)


@contextmanager
def track_latency(histogram: MetricBridge, **labels: str) -> Generator[None, None, None]:
    """Observe the wall time of the block, including blocks that raise."""
    started = time.perf_counter()
    try:
        yield
    finally:
        histogram.labels(**labels).observe(time.perf_counter() - started)


def get_metrics(registry: CollectorRegistry = REGISTRY) -> bytes:
    """Render ``registry`` in the Prometheus text exposition format."""
    return generate_latest(registry)
