"""Structured error hierarchy for tracebridge."""

from tracebridge.errors.exceptions import (
    ExtractError,
    InjectError,
    SpanContextCorruptedError,
    SpanContextNotFoundError,
    SpanNotFoundError,
    TracingError,
    UnsupportedFormatError,
)

__all__ = [
    "ExtractError",
    "InjectError",
    "SpanContextCorruptedError",
    "SpanContextNotFoundError",
    "SpanNotFoundError",
    "TracingError",
    "UnsupportedFormatError",
]
