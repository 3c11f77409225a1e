"""tracebridge - span lifecycle and trace context propagation for web services."""

__version__ = "0.1.0"

from tracebridge.config import TracingSettings
from tracebridge.errors import (
    ExtractError,
    InjectError,
    SpanContextCorruptedError,
    SpanContextNotFoundError,
    SpanNotFoundError,
    TracingError,
    UnsupportedFormatError,
)
from tracebridge.lifecycle import (
    finishing,
    start_child,
    start_from_carrier,
    start_root,
    start_sub_span,
)
from tracebridge.logging import get_logger, setup_logging
from tracebridge.middleware import FlaskTracing, RequestTracer, TracingMiddleware
from tracebridge.noop import NullSpan
from tracebridge.otel import OpenTelemetryTracer, create_tracer
from tracebridge.outbound import inject_outbound
from tracebridge.propagation import (
    HeaderCarrier,
    extract_binary,
    extract_headers,
    inject_binary,
    inject_headers,
)
from tracebridge.span import Format, Span, SpanContext, Tracer
from tracebridge.store import get_span, get_sub_span, lookup_span, put_span

__all__ = [
    "ExtractError",
    "FlaskTracing",
    "Format",
    "HeaderCarrier",
    "InjectError",
    "NullSpan",
    "OpenTelemetryTracer",
    "RequestTracer",
    "Span",
    "SpanContext",
    "SpanContextCorruptedError",
    "SpanContextNotFoundError",
    "SpanNotFoundError",
    "Tracer",
    "TracingError",
    "TracingMiddleware",
    "TracingSettings",
    "UnsupportedFormatError",
    "create_tracer",
    "extract_binary",
    "extract_headers",
    "finishing",
    "get_logger",
    "get_span",
    "get_sub_span",
    "inject_binary",
    "inject_headers",
    "inject_outbound",
    "lookup_span",
    "put_span",
    "setup_logging",
    "start_child",
    "start_from_carrier",
    "start_root",
    "start_sub_span",
]
