"""Structured exception hierarchy for tracing failures."""

from typing import Any


class TracingError(Exception):
    """Base exception for all tracebridge errors.

    Attributes:
        status_code: HTTP status code to return when this error aborts a request.
        error_code: Machine-readable error identifier for clients.
        context: Arbitrary key-value pairs providing additional error context.
    """

    status_code: int = 500

    def __init__(self, message: str, error_code: str = "TRACING_ERROR", **context: Any) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.context = context


class SpanNotFoundError(TracingError):
    """No active span is stored for the current request."""

    def __init__(self, message: str = "span was not found in request store", **context: Any) -> None:
        super().__init__(message, error_code="SPAN_NOT_FOUND", **context)


class ExtractError(TracingError):
    """A span context could not be read from a carrier."""

    def __init__(self, message: str, error_code: str = "EXTRACT_FAILED", **context: Any) -> None:
        super().__init__(message, error_code=error_code, **context)


class SpanContextNotFoundError(ExtractError):
    """The carrier holds no trace identifiers; the caller should start a root span."""

    def __init__(self, message: str = "no span context in carrier", **context: Any) -> None:
        super().__init__(message, error_code="SPAN_CONTEXT_NOT_FOUND", **context)


class SpanContextCorruptedError(ExtractError):
    """Trace identifiers are present in the carrier but cannot be decoded."""

    def __init__(self, message: str = "span context in carrier is corrupted", **context: Any) -> None:
        super().__init__(message, error_code="SPAN_CONTEXT_CORRUPTED", **context)


class InjectError(TracingError):
    """The tracer failed to serialise a span context."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message, error_code="INJECT_FAILED", **context)


class UnsupportedFormatError(TracingError):
    """The tracer does not understand the requested carrier format."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message, error_code="UNSUPPORTED_FORMAT", **context)
