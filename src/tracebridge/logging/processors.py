"""Structlog processors for traced services."""

from collections.abc import Mapping
from typing import Any

from opentelemetry import trace

_SENSITIVE_HEADERS = frozenset(
    {
        "authorization",
        "proxy-authorization",
        "cookie",
        "set-cookie",
        "x-api-key",
        "baggage",
    }
)

_HEADER_KEYS = ("headers", "carrier")


def censor_sensitive_headers(
    logger: Any, method: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Redact sensitive values inside logged header maps."""
    for key in _HEADER_KEYS:
        headers = event_dict.get(key)
        if not isinstance(headers, Mapping):
            continue
        event_dict[key] = {
            name: "***REDACTED***" if name.lower() in _SENSITIVE_HEADERS else value
            for name, value in headers.items()
        }
    return event_dict


def add_service_name(service_name: str) -> Any:
    """Return a processor that binds service=<name> to every event."""

    def processor(logger: Any, method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def add_otel_trace_context(
    logger: Any, method: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add ids of the current OpenTelemetry span unless the request already bound them.

    Covers code that runs under OpenTelemetry-native instrumentation rather
    than inside the tracing middleware.
    """
    if "trace_id" in event_dict:
        return event_dict
    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        event_dict["trace_id"] = trace.format_trace_id(span_context.trace_id)
        event_dict["span_id"] = trace.format_span_id(span_context.span_id)
    return event_dict
