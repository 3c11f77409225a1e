"""Framework-agnostic span lifecycle for inbound requests.

A framework adapter describes the request as an :class:`InboundRequest`
and calls :meth:`RequestTracer.begin` before the handler and
:meth:`RequestTracer.end` after it, or wraps the handler in
:meth:`RequestTracer.trace`.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

import structlog

from tracebridge.config import DEFAULT_OPERATION_PREFIX, TracingSettings
from tracebridge.errors import SpanContextCorruptedError
from tracebridge.lifecycle import (
    record_error,
    server_tags,
    start_child,
    start_from_carrier,
)
from tracebridge.noop import NullSpan
from tracebridge.propagation import HeaderCarrier
from tracebridge.span import Span, Tracer
from tracebridge.store import Found, RequestStore, lookup_span, put_span

logger = structlog.get_logger()

_LOG_KEYS = ("trace_id", "span_id")


@dataclass(frozen=True)
class InboundRequest:
    """What a web framework must expose for a request to be traced."""

    method: str
    path: str
    headers: HeaderCarrier
    store: RequestStore


@dataclass
class ActiveRequest:
    """A request span that has been started and not yet ended."""

    span: Span
    store: RequestStore
    previous: Span | None = None
    finished: bool = False


class RequestTracer:
    """Start a server span before a handler runs and finish it afterwards.

    Args:
        tracer: Process-wide tracer shared by all requests.
        operation_prefix: Span names are ``"<prefix> <path>"``.
        abort_on_errors: Raise :class:`SpanContextCorruptedError` instead of
            falling back to a root span when inbound trace headers are malformed.
        enabled: When false every request gets a :class:`NullSpan`.
    """

    def __init__(
        self,
        tracer: Tracer,
        operation_prefix: str = DEFAULT_OPERATION_PREFIX,
        abort_on_errors: bool = False,
        enabled: bool = True,
    ) -> None:
        self.tracer = tracer
        self.operation_prefix = operation_prefix or DEFAULT_OPERATION_PREFIX
        self.abort_on_errors = abort_on_errors
        self.enabled = enabled

    @classmethod
    def from_settings(cls, tracer: Tracer, settings: TracingSettings) -> RequestTracer:
        return cls(
            tracer,
            operation_prefix=settings.operation_prefix,
            abort_on_errors=settings.abort_on_errors,
            enabled=settings.enabled,
        )

    def operation_name(self, path: str) -> str:
        return f"{self.operation_prefix} {path}"

    def begin(self, inbound: InboundRequest) -> ActiveRequest:
        """Start the request span and make it the active span of the store.

        A span already present in the store (an outer tracing middleware)
        becomes the parent; otherwise the parent is read from the inbound
        headers.
        """
        existing = lookup_span(inbound.store)
        previous = existing.span if isinstance(existing, Found) else None

        if not self.enabled:
            span: Span = NullSpan()
        else:
            name = self.operation_name(inbound.path)
            tags = server_tags(inbound.method, inbound.path)
            if previous is not None and previous.context is not None:
                span = start_child(self.tracer, previous.context, name, tags)
            else:
                span, error = start_from_carrier(self.tracer, inbound.headers, name, tags)
                if isinstance(error, SpanContextCorruptedError):
                    logger.warning(
                        "span_context_corrupted",
                        method=inbound.method,
                        path=inbound.path,
                        error=str(error),
                        headers={header: ", ".join(values) for header, values in inbound.headers.items()},
                    )
                    if self.abort_on_errors:
                        record_error(span, error)
                        span.finish()
                        raise error

        put_span(inbound.store, span)
        if span.context is not None:
            structlog.contextvars.bind_contextvars(
                trace_id=span.context.trace_id, span_id=span.context.span_id
            )
        return ActiveRequest(span=span, store=inbound.store, previous=previous)

    def end(self, active: ActiveRequest, error: BaseException | None = None) -> None:
        """Finish the request span and restore the previously active span.

        Calling this more than once for the same request has no further effect.
        """
        if active.finished:
            return
        active.finished = True
        if error is not None:
            record_error(active.span, error)
        put_span(active.store, active.previous)
        if active.previous is not None and active.previous.context is not None:
            structlog.contextvars.bind_contextvars(
                trace_id=active.previous.context.trace_id,
                span_id=active.previous.context.span_id,
            )
        else:
            structlog.contextvars.unbind_contextvars(*_LOG_KEYS)
        active.span.finish()

    @contextmanager
    def trace(self, inbound: InboundRequest) -> Iterator[Span]:
        """Run the enclosed block with an active request span."""
        active = self.begin(inbound)
        try:
            yield active.span
        except BaseException as exc:
            self.end(active, error=exc)
            raise
        else:
            self.end(active)
