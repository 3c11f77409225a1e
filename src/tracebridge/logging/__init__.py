"""Structured logging for traced services."""

from tracebridge.logging.setup import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
