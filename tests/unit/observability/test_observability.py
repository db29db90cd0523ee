"""Unit tests for logging, tracing, metrics and diagnostics collection."""

import io
import json
import logging
import sys
from types import SimpleNamespace

from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode
from prometheus_client import REGISTRY, CollectorRegistry, Counter
import pytest

from query_pipeline.config import Settings
from query_pipeline.domain.model import Diagnostic
from query_pipeline.observability import (
    STAGE_LATENCY,
    JsonFormatter,
    MetricBridge,
    collect_diagnostics,
    configure_logging,
    configure_observability,
    create_span,
    get_metrics,
    get_trace_context,
    get_tracer,
    init_metrics,
    init_tracing,
    record_diagnostic,
    report_warning,
    track_latency,
)
from query_pipeline.observability.context import bound_span, trace_context
from query_pipeline.pipeline import Pipeline
from query_pipeline.stages import FilterStage, SearchStage


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def exporter():
    """Capture finished spans from the process-wide SDK provider."""
    span_exporter = InMemorySpanExporter()
    init_tracing("test-service", span_processors=[SimpleSpanProcessor(span_exporter)])
    return span_exporter


def _record(msg="test message", level=logging.INFO, name="test"):
    return logging.LogRecord(
        name=name,
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


def _fake_span(trace_id, span_id, is_valid=True):
    span_ctx = SimpleNamespace(trace_id=trace_id, span_id=span_id, is_valid=is_valid)
    return SimpleNamespace(get_span_context=lambda: span_ctx)


@pytest.mark.unit
class TestJsonFormatter:
    """Tests for structured JSON logging."""

    def test_format_includes_trace_context(self):
        data = json.loads(JsonFormatter().format(_record()))

        assert data["message"] == "test message"
        assert data["level"] == "INFO"
        assert data["logger"] == "test"
        assert "timestamp" in data
        assert "trace_id" in data
        assert "span_id" in data

    def test_format_includes_extra_fields(self):
        record = _record("Invalid condition", level=logging.WARNING, name="query_pipeline.stages.filter")
        record.stage = "filter"
        record.field_path = "address.city"
        data = json.loads(JsonFormatter().format(record))

        assert data["stage"] == "filter"
        assert data["field_path"] == "address.city"

    def test_format_truncates_and_redacts(self):
        record = _record("x" * 5000)
        record.api_key = "secret"
        record.note = "y" * 800
        data = json.loads(JsonFormatter().format(record))

        assert data["message"].endswith("...")
        assert data["api_key"] == "[REDACTED]"
        assert len(data["note"]) == 503

    def test_collections_summarised_by_length(self):
        record = _record()
        record.records = [{"name": "Alice"}, {"name": "Bob"}]
        data = json.loads(JsonFormatter().format(record))

        assert data["records"] == {"count": 2}

    def test_format_includes_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord("test", logging.ERROR, "test.py", 1, "failed", (), exc_info=sys.exc_info())
        data = json.loads(JsonFormatter().format(record))
        assert "ValueError: boom" in data["exception"]

    def test_json_default_handles_sets_bytes_and_errors(self):
        formatter = JsonFormatter()
        assert formatter._json_default({3, 1, 2}) == [1, 2, 3]
        assert formatter._json_default(b"ok") == "ok"
        assert formatter._json_default(KeyError("k")) == "KeyError: 'k'"

    def test_json_default_handles_unorderable_set(self):
        value = JsonFormatter()._json_default({1, "a"})
        assert sorted(value) == ["'a'", "1"]


@pytest.mark.unit
class TestTraceContext:
    """Tests for log correlation ids."""

    def test_get_trace_context_mints_ids_once(self):
        trace_context.set(None)
        ctx = get_trace_context()
        assert len(ctx["trace_id"]) == 32
        assert len(ctx["span_id"]) == 16
        assert get_trace_context() is ctx

    def test_bound_span_sets_and_restores_ids(self):
        trace_context.set({"trace_id": "aa" * 16, "span_id": "bb" * 8, "host": "alpha"})
        with bound_span(_fake_span(0x1234, 0x5678)):
            ctx = get_trace_context()
            assert ctx["trace_id"].endswith("1234")
            assert ctx["span_id"] == format(0x5678, "016x")
            assert ctx["host"] == "alpha"
        assert get_trace_context()["trace_id"] == "aa" * 16

    def test_invalid_span_leaves_ids(self):
        trace_context.set({"trace_id": "aa" * 16, "span_id": "bb" * 8})
        with bound_span(_fake_span(0, 0, is_valid=False)):
            assert get_trace_context()["span_id"] == "bb" * 8


@pytest.mark.unit
class TestDiagnostics:
    """Tests for absorbed-warning collection."""

    def test_record_outside_collector_is_noop(self):
        record_diagnostic(Diagnostic(stage="x", message="ignored"))

    def test_report_warning_logs_and_collects(self, caplog):
        with caplog.at_level(logging.WARNING), collect_diagnostics() as collected:
            diagnostic = report_warning("filter", "bad condition", field="age")

        assert collected == [diagnostic]
        assert diagnostic.field == "age"
        record = next(r for r in caplog.records if r.getMessage() == "bad condition")
        assert record.stage == "filter"
        assert record.field_path == "age"

    def test_nested_collectors_propagate_to_parent(self):
        with collect_diagnostics() as outer:
            report_warning("outer", "first")
            with collect_diagnostics() as inner:
                report_warning("inner", "second")
            assert [d.stage for d in inner] == ["inner"]
        assert [d.stage for d in outer] == ["outer", "inner"]

    def test_report_warning_counts(self):
        labels = {"stage": "counted"}
        before = REGISTRY.get_sample_value("query_pipeline_absorbed_warnings_total", labels) or 0.0
        report_warning("counted", "once")
        assert REGISTRY.get_sample_value("query_pipeline_absorbed_warnings_total", labels) == before + 1


@pytest.mark.unit
class TestTracing:
    """Tests for OpenTelemetry tracing."""

    def test_get_tracer_initializes_when_missing(self):
        assert get_tracer() is not None

    def test_init_tracing_reuses_installed_provider(self, exporter):
        assert init_tracing("other-service") is init_tracing("test-service")

    def test_create_span_sets_attributes(self, exporter):
        with create_span("query_pipeline.test", attributes={"pipeline.stage": "sort"}):
            pass

        span = next(s for s in exporter.get_finished_spans() if s.name == "query_pipeline.test")
        assert span.attributes["pipeline.stage"] == "sort"

    def test_create_span_correlates_logs(self, exporter):
        with create_span("query_pipeline.correlated") as span:
            assert get_trace_context()["span_id"] == format(span.get_span_context().span_id, "016x")

    def test_create_span_marks_error_and_reraises(self, exporter):
        with pytest.raises(RuntimeError), create_span("query_pipeline.failing"):
            raise RuntimeError("stage exploded")

        span = next(s for s in exporter.get_finished_spans() if s.name == "query_pipeline.failing")
        assert span.status.status_code is StatusCode.ERROR
        assert span.events[0].name == "exception"

    def test_pipeline_spans(self, exporter, people):
        Pipeline(SearchStage(fields="name"))(people, "bob")

        spans = {span.name: span for span in exporter.get_finished_spans()}
        stage = spans["query_pipeline.stage.search"]
        assert stage.attributes["pipeline.input_count"] == 4
        assert stage.attributes["pipeline.output_count"] == 1
        run = spans["query_pipeline.run"]
        assert run.attributes["pipeline.stage_count"] == 1
        assert run.attributes["pipeline.degraded"] is False
        assert stage.parent.span_id == run.context.span_id

    def test_failed_stage_span(self, exporter, people):
        failing = FilterStage(
            conditions=[{"field": "salary", "operator": "equals", "value": 1}],
            missing_field_behavior="throw",
        )
        Pipeline(failing)(people, "")

        spans = {span.name: span for span in exporter.get_finished_spans()}
        assert spans["query_pipeline.stage.filter"].status.status_code is StatusCode.ERROR
        assert spans["query_pipeline.run"].attributes["pipeline.degraded"] is True


@pytest.mark.unit
class TestMetrics:
    """Tests for Prometheus metrics."""

    def test_init_metrics_creates_provider(self):
        assert isinstance(init_metrics("test-service"), MeterProvider)
        assert init_metrics("other-service") is init_metrics("test-service")

    def test_get_metrics_returns_bytes(self):
        with track_latency(STAGE_LATENCY, stage="search"):
            pass
        output = get_metrics()
        assert isinstance(output, bytes)
        assert b"query_pipeline_stage_latency_seconds" in output

    def test_track_latency_observes_on_error(self):
        registry = CollectorRegistry()
        histogram = MetricBridge.histogram("isolated_latency_seconds", "test", ["stage"], (0.1, 1.0), registry)
        with pytest.raises(KeyError), track_latency(histogram, stage="x"):
            raise KeyError("x")
        assert registry.get_sample_value("isolated_latency_seconds_count", {"stage": "x"}) == 1

    def test_pipeline_runs_counted_by_outcome(self, people):
        labels = {"outcome": "ok"}
        before = REGISTRY.get_sample_value("query_pipeline_runs_total", labels) or 0.0
        Pipeline(SearchStage())(people, "x")
        assert REGISTRY.get_sample_value("query_pipeline_runs_total", labels) == before + 1

    def test_metric_bridge_unknown_kind_raises(self):
        counter = Counter("unknown_kind_total", "test", ["stage"], registry=CollectorRegistry())
        with pytest.raises(ValueError, match="Unknown metric kind"):
            MetricBridge(counter, name="unknown_kind_total", description="test", kind="gauge")


@pytest.mark.unit
class TestConfigureLogging:
    """Tests for logging configuration."""

    def test_configure_logging_sets_level(self, restore_root_logger):
        configure_logging(level="debug")
        assert restore_root_logger.level == logging.DEBUG
        assert isinstance(restore_root_logger.handlers[0].formatter, JsonFormatter)

    def test_configure_logging_non_json_formatter(self, restore_root_logger):
        configure_logging(level="INFO", json_output=False)
        formatter = restore_root_logger.handlers[0].formatter
        assert not isinstance(formatter, JsonFormatter)
        assert "%(asctime)s" in formatter._style._fmt

    def test_configure_logging_overrides(self, restore_root_logger):
        configure_logging(level="INFO", logger_levels={"query_pipeline.stages": "ERROR"})
        assert logging.getLogger("query_pipeline.stages").level == logging.ERROR
        logging.getLogger("query_pipeline.stages").setLevel(logging.NOTSET)

    def test_json_lines_carry_stage_extras(self, restore_root_logger):
        stream = io.StringIO()
        configure_logging(level="WARNING", stream=stream)
        report_warning("paginate", "page_size and page must be positive numbers.")

        line = json.loads(stream.getvalue().splitlines()[-1])
        assert line["stage"] == "paginate"
        assert line["field_path"] is None
        assert line["level"] == "WARNING"

    def test_configure_observability_uses_settings(self, restore_root_logger):
        configure_observability(Settings(log_level="WARNING", json_logs=False))
        assert restore_root_logger.level == logging.WARNING
        assert not isinstance(restore_root_logger.handlers[0].formatter, JsonFormatter)
