"""Tracing configuration."""

from tracebridge.config.settings import DEFAULT_OPERATION_PREFIX, TracingSettings

__all__ = ["DEFAULT_OPERATION_PREFIX", "TracingSettings"]
