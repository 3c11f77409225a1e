"""Starlette / FastAPI tracing middleware."""

from typing import BinaryIO

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from tracebridge.config import DEFAULT_OPERATION_PREFIX
from tracebridge.errors import SpanContextCorruptedError
from tracebridge.errors.handlers import error_response
from tracebridge.lifecycle import record_status
from tracebridge.middleware.core import InboundRequest, RequestTracer
from tracebridge.propagation import HeaderCarrier
from tracebridge.span import Span, Tracer
from tracebridge.store import (
    AttributeStore,
    get_span,
    get_sub_span,
    inject_to_binary,
    inject_to_headers,
)


def request_store(request: Request) -> AttributeStore:
    """Span store backed by ``request.state``."""
    return AttributeStore(request.state)


class TracingMiddleware(BaseHTTPMiddleware):
    """Wrap every request in a server span.

    The span is stored on ``request.state`` for the handler to use, tagged
    with the response status code, and finished when the response is
    produced or the handler raises. With ``abort_on_errors`` a request
    carrying malformed trace headers is answered with HTTP 500.
    """

    def __init__(
        self,
        app: ASGIApp,
        tracer: Tracer,
        operation_prefix: str = DEFAULT_OPERATION_PREFIX,
        abort_on_errors: bool = False,
        enabled: bool = True,
    ) -> None:
        super().__init__(app)
        self.request_tracer = RequestTracer(
            tracer,
            operation_prefix=operation_prefix,
            abort_on_errors=abort_on_errors,
            enabled=enabled,
        )

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        inbound = InboundRequest(
            method=request.method,
            path=request.url.path,
            headers=HeaderCarrier.from_pairs(request.headers.items()),
            store=request_store(request),
        )
        try:
            active = self.request_tracer.begin(inbound)
        except SpanContextCorruptedError as exc:
            return error_response(exc, request.url.path)

        try:
            response = await call_next(request)
        except BaseException as exc:
            if isinstance(exc, Exception):
                # ServerErrorMiddleware answers unhandled exceptions with 500.
                record_status(active.span, 500)
            self.request_tracer.end(active, error=exc)
            raise
        record_status(active.span, response.status_code)
        self.request_tracer.end(active)
        return response


def get_request_span(request: Request) -> Span:
    """Return the span of the current request.

    Raises:
        SpanNotFoundError: ``TracingMiddleware`` did not run for this request.
    """
    return get_span(request_store(request))


def get_request_sub_span(request: Request, operation_name: str) -> Span:
    return get_sub_span(request_store(request), operation_name)


def inject_request_to_headers(request: Request, headers: HeaderCarrier) -> bool:
    return inject_to_headers(request_store(request), headers)


def inject_request_to_binary(request: Request, buffer: BinaryIO) -> bool:
    return inject_to_binary(request_store(request), buffer)
