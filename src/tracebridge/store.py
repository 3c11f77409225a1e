"""Request-scoped storage of the active span.

The host framework supplies a per-request store: a plain dict, ``flask.g``
or Starlette's ``request.state``. The active span lives under
:data:`SPAN_KEY`; a missing span is always reported explicitly so that a
handler running outside the tracing middleware is easy to spot.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, BinaryIO, Protocol

from tracebridge.errors import SpanNotFoundError
from tracebridge.lifecycle import start_sub_span
from tracebridge.propagation import HeaderCarrier, inject_binary, inject_headers
from tracebridge.span import Span

SPAN_KEY = "tracing_span"


class RequestStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def __setitem__(self, key: str, value: Any) -> None: ...


class AttributeStore:
    """Expose an attribute namespace (``flask.g``, ``request.state``) as a store."""

    __slots__ = ("_namespace",)

    def __init__(self, namespace: Any) -> None:
        self._namespace = namespace

    def get(self, key: str, default: Any = None) -> Any:
        return getattr(self._namespace, key, default)

    def __setitem__(self, key: str, value: Any) -> None:
        setattr(self._namespace, key, value)


@dataclass(frozen=True)
class Found:
    span: Span


@dataclass(frozen=True)
class NotFound:
    key: str = SPAN_KEY


def put_span(store: RequestStore, span: Span | None) -> None:
    """Make ``span`` the active span of the request, replacing any previous one."""
    store[SPAN_KEY] = span


def lookup_span(store: RequestStore) -> Found | NotFound:
    value = store.get(SPAN_KEY)
    if value is None or not isinstance(value, Span):
        return NotFound()
    return Found(value)


def get_span(store: RequestStore) -> Span:
    """Return the active span.

    Raises:
        SpanNotFoundError: No span has been stored for this request.
    """
    result = lookup_span(store)
    if isinstance(result, NotFound):
        raise SpanNotFoundError(key=result.key)
    return result.span


def get_sub_span(store: RequestStore, operation_name: str) -> Span:
    """Start a child of the active span; the stored span is left in place."""
    return start_sub_span(get_span(store), operation_name)


def inject_to_headers(store: RequestStore, headers: HeaderCarrier) -> bool:
    """Write the active span's context into ``headers``.

    Returns ``False`` when the active span carries no context (tracing is
    disabled), ``True`` otherwise.
    """
    span = get_span(store)
    if span.tracer is None or span.context is None:
        return False
    inject_headers(span.tracer, span.context, headers)
    return True


def inject_to_binary(store: RequestStore, buffer: BinaryIO) -> bool:
    """Overwrite ``buffer`` with the active span's encoded context."""
    span = get_span(store)
    if span.tracer is None or span.context is None:
        return False
    inject_binary(span.tracer, span.context, buffer)
    return True
