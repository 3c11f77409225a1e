"""Shared fixtures: an in-memory OpenTelemetry tracer and a counting fake tracer."""

from collections.abc import Mapping
from typing import Any

import pytest
import structlog
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from tracebridge.errors import SpanContextNotFoundError, UnsupportedFormatError
from tracebridge.otel import create_tracer
from tracebridge.span import Format, SpanContext

VALID_TRACE_ID = "4bf92f3577b34da6a3ce929d0e0e4736"
VALID_SPAN_ID = "00f067aa0ba902b7"
VALID_TRACEPARENT = f"00-{VALID_TRACE_ID}-{VALID_SPAN_ID}-01"


class FakeSpan:
    """Span that records what was done to it."""

    def __init__(self, tracer: "FakeTracer", operation_name: str, context: SpanContext, parent, tags):
        self._tracer = tracer
        self._context = context
        self.operation_name = operation_name
        self.parent = parent
        self.tags = dict(tags or {})
        self.logs: list[dict[str, Any]] = []
        self.finish_count = 0

    @property
    def context(self) -> SpanContext:
        return self._context

    @property
    def tracer(self) -> "FakeTracer":
        return self._tracer

    def set_operation_name(self, operation_name: str) -> "FakeSpan":
        self.operation_name = operation_name
        return self

    def set_tag(self, key: str, value: Any) -> "FakeSpan":
        self.tags[key] = value
        return self

    def log_kv(self, key_values: Mapping[str, Any], timestamp: float | None = None) -> "FakeSpan":
        self.logs.append(dict(key_values))
        return self

    def set_baggage_item(self, key: str, value: str) -> "FakeSpan":
        self._context = self._context.with_baggage_item(key, value)
        return self

    def get_baggage_item(self, key: str) -> str:
        return self._context.baggage.get(key, "")

    def finish(self, finish_time: float | None = None) -> None:
        self.finish_count += 1


class FakeTracer:
    """Tracer with sequential ids and a plain ``x-trace`` header encoding."""

    def __init__(self) -> None:
        self.spans: list[FakeSpan] = []

    def start_span(self, operation_name, child_of=None, tags=None) -> FakeSpan:
        trace_id = child_of.trace_id if child_of is not None else f"trace-{len(self.spans) + 1}"
        context = SpanContext(
            trace_id=trace_id,
            span_id=f"span-{len(self.spans) + 1}",
            baggage=child_of.baggage if child_of is not None else {},
        )
        span = FakeSpan(self, operation_name, context, child_of, tags)
        self.spans.append(span)
        return span

    def inject(self, span_context, format, carrier) -> None:
        if format is not Format.HTTP_HEADERS:
            raise UnsupportedFormatError("fake tracer only speaks headers")
        carrier["x-trace"] = f"{span_context.trace_id}:{span_context.span_id}"

    def extract(self, format, carrier) -> SpanContext:
        if format is not Format.HTTP_HEADERS:
            raise UnsupportedFormatError("fake tracer only speaks headers")
        value = carrier.first("x-trace")
        if value is None:
            raise SpanContextNotFoundError()
        trace_id, span_id = value.split(":", 1)
        return SpanContext(trace_id=trace_id, span_id=span_id)


@pytest.fixture
def exporter():
    return InMemorySpanExporter()


@pytest.fixture
def tracer(exporter):
    return create_tracer("test-service", exporter, batch=False)


@pytest.fixture
def fake_tracer():
    return FakeTracer()


@pytest.fixture(autouse=True)
def _clear_log_context():
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()
