"""OpenTelemetry-backed Tracer.

Header carriers use the W3C ``traceparent`` and ``baggage`` headers. The
binary format is the same text map, JSON-encoded.

Usage:
    tracer = create_tracer("orders-api", exporter=OTLPSpanExporter())
    app.add_middleware(TracingMiddleware, tracer=tracer)
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from opentelemetry import baggage as otel_baggage
from opentelemetry import trace
from opentelemetry.baggage.propagation import W3CBaggagePropagator
from opentelemetry.context import Context
from opentelemetry.propagators.composite import CompositePropagator
from opentelemetry.propagators.textmap import TextMapPropagator
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor, SpanExporter
from opentelemetry.trace import NonRecordingSpan, SpanKind, TraceFlags
from opentelemetry.trace import SpanContext as OTelSpanContext
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from tracebridge.errors import (
    InjectError,
    SpanContextCorruptedError,
    SpanContextNotFoundError,
    UnsupportedFormatError,
)
from tracebridge.lifecycle import SPAN_KIND, SPAN_KIND_RPC_SERVER
from tracebridge.span import Format, SpanContext

TRACEPARENT_HEADER = "traceparent"

_KINDS = {
    SPAN_KIND_RPC_SERVER: SpanKind.SERVER,
    "client": SpanKind.CLIENT,
    "producer": SpanKind.PRODUCER,
    "consumer": SpanKind.CONSUMER,
}


def _attribute(value: Any) -> Any:
    if isinstance(value, (str, bool, int, float)):
        return value
    return str(value)


def _attributes(values: Mapping[str, Any] | None) -> dict[str, Any]:
    return {key: _attribute(value) for key, value in (values or {}).items()}


class OpenTelemetrySpan:
    """Span adapter over an OpenTelemetry span.

    Baggage is kept on the adapter and travels with :attr:`context`; it is
    not written into the ambient OpenTelemetry context.
    """

    def __init__(
        self,
        tracer: OpenTelemetryTracer,
        span: trace.Span,
        operation_name: str,
        baggage: Mapping[str, str] | None = None,
    ) -> None:
        self._tracer = tracer
        self._span = span
        self._operation_name = operation_name
        self._baggage = dict(baggage or {})

    @property
    def context(self) -> SpanContext:
        span_context = self._span.get_span_context()
        return SpanContext(
            trace_id=trace.format_trace_id(span_context.trace_id),
            span_id=trace.format_span_id(span_context.span_id),
            baggage=self._baggage,
        )

    @property
    def tracer(self) -> OpenTelemetryTracer:
        return self._tracer

    @property
    def operation_name(self) -> str:
        return self._operation_name

    @property
    def otel_span(self) -> trace.Span:
        return self._span

    def set_operation_name(self, operation_name: str) -> OpenTelemetrySpan:
        self._operation_name = operation_name
        self._span.update_name(operation_name)
        return self

    def set_tag(self, key: str, value: Any) -> OpenTelemetrySpan:
        self._span.set_attribute(key, _attribute(value))
        return self

    def log_kv(self, key_values: Mapping[str, Any], timestamp: float | None = None) -> OpenTelemetrySpan:
        name = str(key_values.get("event", "log"))
        self._span.add_event(
            name,
            attributes=_attributes(key_values),
            timestamp=int(timestamp * 1e9) if timestamp is not None else None,
        )
        return self

    def set_baggage_item(self, key: str, value: str) -> OpenTelemetrySpan:
        self._baggage[key] = value
        return self

    def get_baggage_item(self, key: str) -> str:
        return self._baggage.get(key, "")

    def finish(self, finish_time: float | None = None) -> None:
        self._span.end(end_time=int(finish_time * 1e9) if finish_time is not None else None)

    def __repr__(self) -> str:
        return f"OpenTelemetrySpan(operation_name={self._operation_name!r})"


class OpenTelemetryTracer:
    """Tracer over an ``opentelemetry.trace.Tracer`` and a text map propagator."""

    def __init__(self, tracer: trace.Tracer, propagator: TextMapPropagator | None = None) -> None:
        self._tracer = tracer
        self._propagator = propagator or CompositePropagator(
            [TraceContextTextMapPropagator(), W3CBaggagePropagator()]
        )

    def start_span(
        self,
        operation_name: str,
        child_of: SpanContext | None = None,
        tags: Mapping[str, Any] | None = None,
    ) -> OpenTelemetrySpan:
        # Root spans start from an empty context so an ambient OpenTelemetry
        # span never becomes the parent.
        parent = Context()
        if child_of is not None:
            try:
                parent = self._otel_context(child_of)
            except ValueError:
                child_of = None
        kind = _KINDS.get(str((tags or {}).get(SPAN_KIND)), SpanKind.INTERNAL)
        span = self._tracer.start_span(
            operation_name,
            context=parent,
            kind=kind,
            attributes=_attributes(tags),
        )
        baggage = child_of.baggage if child_of is not None else None
        return OpenTelemetrySpan(self, span, operation_name, baggage)

    def inject(self, span_context: SpanContext, format: Format, carrier: Any) -> None:
        try:
            context = self._otel_context(span_context)
        except ValueError as exc:
            raise InjectError(f"span context is not an OpenTelemetry context: {exc}") from exc
        if format in (Format.HTTP_HEADERS, Format.TEXT_MAP):
            self._propagator.inject(carrier, context=context)
        elif format is Format.BINARY:
            text_map: dict[str, str] = {}
            self._propagator.inject(text_map, context=context)
            carrier.write(json.dumps(text_map, separators=(",", ":")).encode("utf-8"))
        else:
            raise UnsupportedFormatError(f"unsupported carrier format: {format!r}", format=str(format))

    def extract(self, format: Format, carrier: Any) -> SpanContext:
        if format in (Format.HTTP_HEADERS, Format.TEXT_MAP):
            return self._from_text_map(carrier)
        if format is Format.BINARY:
            raw = carrier.read()
            if not raw:
                raise SpanContextNotFoundError(carrier="binary")
            try:
                text_map = json.loads(raw.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError) as exc:
                raise SpanContextCorruptedError(str(exc), carrier="binary") from exc
            if not isinstance(text_map, dict) or not all(
                isinstance(key, str) and isinstance(value, str) for key, value in text_map.items()
            ):
                raise SpanContextCorruptedError("binary carrier is not a text map", carrier="binary")
            return self._from_text_map(text_map)
        raise UnsupportedFormatError(f"unsupported carrier format: {format!r}", format=str(format))

    def _from_text_map(self, carrier: Mapping[str, Any]) -> SpanContext:
        context = self._propagator.extract(carrier, context=Context())
        span_context = trace.get_current_span(context).get_span_context()
        if not span_context.is_valid:
            if TRACEPARENT_HEADER in carrier:
                raise SpanContextCorruptedError(carrier="text_map")
            raise SpanContextNotFoundError(carrier="text_map")
        return SpanContext(
            trace_id=trace.format_trace_id(span_context.trace_id),
            span_id=trace.format_span_id(span_context.span_id),
            baggage={key: str(value) for key, value in otel_baggage.get_all(context).items()},
        )

    def _otel_context(self, span_context: SpanContext) -> Context:
        parent = OTelSpanContext(
            trace_id=int(span_context.trace_id, 16),
            span_id=int(span_context.span_id, 16),
            is_remote=True,
            trace_flags=TraceFlags(TraceFlags.SAMPLED),
        )
        context = trace.set_span_in_context(NonRecordingSpan(parent), Context())
        for key, value in span_context.baggage.items():
            context = otel_baggage.set_baggage(key, value, context=context)
        return context


def create_tracer(
    service_name: str,
    exporter: SpanExporter | None = None,
    *,
    batch: bool = True,
) -> OpenTelemetryTracer:
    """Build a tracer on a fresh SDK ``TracerProvider``.

    Args:
        service_name: Recorded as the ``service.name`` resource attribute.
        exporter: Where finished spans go; spans are dropped when omitted.
        batch: Export through a ``BatchSpanProcessor`` rather than synchronously.
    """
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    if exporter is not None:
        processor = BatchSpanProcessor(exporter) if batch else SimpleSpanProcessor(exporter)
        provider.add_span_processor(processor)
    return OpenTelemetryTracer(provider.get_tracer("tracebridge"))
