"""Null span used when tracing is disabled."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from tracebridge.span import SpanContext, Tracer


class NullSpan:
    """Span whose mutators do nothing and whose accessors return neutral values.

    Call sites can use it exactly like a real span without checking whether
    tracing is enabled.
    """

    __slots__ = ()

    @property
    def context(self) -> SpanContext | None:
        return None

    @property
    def tracer(self) -> Tracer | None:
        return None

    @property
    def operation_name(self) -> str:
        return ""

    def set_operation_name(self, operation_name: str) -> NullSpan:
        return self

    def set_tag(self, key: str, value: Any) -> NullSpan:
        return self

    def log_kv(self, key_values: Mapping[str, Any], timestamp: float | None = None) -> NullSpan:
        return self

    def set_baggage_item(self, key: str, value: str) -> NullSpan:
        return self

    def get_baggage_item(self, key: str) -> str:
        return ""

    def finish(self, finish_time: float | None = None) -> None:
        pass

    def __repr__(self) -> str:
        return "NullSpan()"
