"""Span, SpanContext and Tracer capability types.

Spans are created by a Tracer that is supplied by the host service and shared
process-wide. Nothing in this package keeps a global tracer: every operation
receives it explicitly, or reaches it through ``span.tracer``.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable


class Format(str, Enum):
    """Carrier formats understood by ``Tracer.inject`` and ``Tracer.extract``."""

    HTTP_HEADERS = "http_headers"
    TEXT_MAP = "text_map"
    BINARY = "binary"


@dataclass(frozen=True)
class SpanContext:
    """Propagatable identity of a span.

    Identifiers are opaque strings in the tracer's own encoding. Baggage is
    frozen at construction; use :meth:`with_baggage_item` to derive a new
    context.
    """

    trace_id: str
    span_id: str
    baggage: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "baggage", MappingProxyType(dict(self.baggage)))

    def with_baggage_item(self, key: str, value: str) -> SpanContext:
        return dataclasses.replace(self, baggage={**self.baggage, key: value})


@runtime_checkable
class Span(Protocol):
    """One timed, taggable unit of traced work."""

    @property
    def context(self) -> SpanContext | None: ...

    @property
    def tracer(self) -> Tracer | None: ...

    @property
    def operation_name(self) -> str: ...

    def set_operation_name(self, operation_name: str) -> Span: ...

    def set_tag(self, key: str, value: Any) -> Span: ...

    def log_kv(self, key_values: Mapping[str, Any], timestamp: float | None = None) -> Span: ...

    def set_baggage_item(self, key: str, value: str) -> Span: ...

    def get_baggage_item(self, key: str) -> str: ...

    def finish(self, finish_time: float | None = None) -> None: ...


@runtime_checkable
class Tracer(Protocol):
    """Capability that creates spans and moves span contexts across carriers.

    Implementations must be safe for concurrent use by many requests.
    ``extract`` raises :class:`~tracebridge.errors.SpanContextNotFoundError`
    when the carrier holds no context and
    :class:`~tracebridge.errors.SpanContextCorruptedError` when it cannot be
    decoded.
    """

    def start_span(
        self,
        operation_name: str,
        child_of: SpanContext | None = None,
        tags: Mapping[str, Any] | None = None,
    ) -> Span: ...

    def inject(self, span_context: SpanContext, format: Format, carrier: Any) -> None: ...

    def extract(self, format: Format, carrier: Any) -> SpanContext: ...
