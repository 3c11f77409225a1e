"""Starting and finishing spans.

Every ``start_*`` function returns a usable span. Callers own the span and
must finish it exactly once; :func:`finishing` does that on every exit path.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, BinaryIO

from tracebridge.errors import ExtractError
from tracebridge.noop import NullSpan
from tracebridge.propagation import HeaderCarrier, extract_binary, extract_headers
from tracebridge.span import Span, SpanContext, Tracer

SPAN_KIND = "span.kind"
SPAN_KIND_RPC_SERVER = "server"
HTTP_METHOD = "http.method"
HTTP_URL = "http.url"
HTTP_STATUS_CODE = "http.status_code"
ERROR = "error"
ACTIVE_UNITS = "process.active_units"


def active_execution_units() -> int:
    """Count live threads plus asyncio tasks on the running loop, if any."""
    count = threading.active_count()
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return count
    return count + len(asyncio.all_tasks(loop))


def server_tags(method: str | None = None, path: str | None = None) -> dict[str, Any]:
    """Standard tags for a server-side receive span."""
    tags: dict[str, Any] = {
        SPAN_KIND: SPAN_KIND_RPC_SERVER,
        ACTIVE_UNITS: active_execution_units(),
    }
    if method is not None:
        tags[HTTP_METHOD] = method
    if path is not None:
        tags[HTTP_URL] = path
    return tags


def start_root(tracer: Tracer, operation_name: str, tags: Mapping[str, Any] | None = None) -> Span:
    return tracer.start_span(operation_name, tags=tags)


def start_child(
    tracer: Tracer,
    parent: SpanContext | None,
    operation_name: str,
    tags: Mapping[str, Any] | None = None,
) -> Span:
    """Start a span under ``parent``, or a root span when there is no parent."""
    if parent is None:
        return start_root(tracer, operation_name, tags)
    return tracer.start_span(operation_name, child_of=parent, tags=tags)


def start_from_carrier(
    tracer: Tracer,
    carrier: HeaderCarrier | Mapping[str, Any] | BinaryIO,
    operation_name: str,
    tags: Mapping[str, Any] | None = None,
) -> tuple[Span, ExtractError | None]:
    """Start a span whose parent is read from ``carrier``.

    Extraction failures never prevent the span from being created: the span
    falls back to a root span and the error is returned beside it so the
    caller can log and continue.

    Raises:
        TypeError: ``carrier`` is neither a header mapping nor a binary buffer.
    """
    if not isinstance(carrier, Mapping) and not (
        hasattr(carrier, "read") and hasattr(carrier, "seek")
    ):
        raise TypeError(
            "carrier must be a HeaderCarrier, a header mapping or a seekable binary buffer, "
            f"not {type(carrier).__name__}"
        )
    try:
        if isinstance(carrier, Mapping):
            if not isinstance(carrier, HeaderCarrier):
                carrier = HeaderCarrier(carrier)
            parent = extract_headers(tracer, carrier)
        else:
            parent = extract_binary(tracer, carrier)
    except ExtractError as exc:
        return start_root(tracer, operation_name, tags), exc
    return start_child(tracer, parent, operation_name, tags), None


def start_sub_span(span: Span, operation_name: str, tags: Mapping[str, Any] | None = None) -> Span:
    """Start a child of ``span`` using the tracer that created it."""
    tracer = span.tracer
    if tracer is None or span.context is None:
        return NullSpan()
    return tracer.start_span(operation_name, child_of=span.context, tags=tags)


def record_status(span: Span, status_code: int) -> None:
    span.set_tag(HTTP_STATUS_CODE, status_code)
    if status_code >= 500:
        span.set_tag(ERROR, True)


def record_error(span: Span, exc: BaseException) -> None:
    span.set_tag(ERROR, True)
    span.log_kv({"event": "error", "error.kind": type(exc).__name__, "message": str(exc)})


@contextmanager
def finishing(span: Span) -> Iterator[Span]:
    """Finish ``span`` exactly once when the block exits, however it exits."""
    try:
        yield span
    except BaseException as exc:
        record_error(span, exc)
        raise
    finally:
        span.finish()
