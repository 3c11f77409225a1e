"""Inbound tracing middleware for Starlette/FastAPI and Flask."""

from tracebridge.middleware.core import ActiveRequest, InboundRequest, RequestTracer
from tracebridge.middleware.flask import FlaskTracing
from tracebridge.middleware.starlette import TracingMiddleware

__all__ = ["ActiveRequest", "FlaskTracing", "InboundRequest", "RequestTracer", "TracingMiddleware"]
