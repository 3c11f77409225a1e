"""Tests for SpanContext and the null span."""

import dataclasses

import pytest

from tracebridge.noop import NullSpan
from tracebridge.span import Span, SpanContext


class TestSpanContext:
    def test_compared_by_value(self):
        a = SpanContext("t1", "s1", {"user": "42"})
        b = SpanContext("t1", "s1", {"user": "42"})
        assert a == b
        assert a != SpanContext("t1", "s2", {"user": "42"})

    def test_hashable_despite_baggage(self):
        a = SpanContext("t1", "s1", {"user": "42"})
        assert hash(a) == hash(SpanContext("t1", "s1"))

    def test_frozen(self):
        ctx = SpanContext("t1", "s1")
        with pytest.raises(dataclasses.FrozenInstanceError):
            ctx.trace_id = "other"

    def test_baggage_is_read_only(self):
        source = {"user": "42"}
        ctx = SpanContext("t1", "s1", source)
        source["user"] = "changed"
        assert ctx.baggage["user"] == "42"
        with pytest.raises(TypeError):
            ctx.baggage["user"] = "x"

    def test_with_baggage_item_returns_new_context(self):
        ctx = SpanContext("t1", "s1", {"a": "1"})
        updated = ctx.with_baggage_item("b", "2")
        assert dict(updated.baggage) == {"a": "1", "b": "2"}
        assert dict(ctx.baggage) == {"a": "1"}
        assert updated.trace_id == "t1"


class TestNullSpan:
    def test_satisfies_span_protocol(self):
        assert isinstance(NullSpan(), Span)

    def test_accessors_are_neutral(self):
        span = NullSpan()
        assert span.context is None
        assert span.tracer is None
        assert span.operation_name == ""

    @pytest.mark.parametrize("key", ["", "user", "x" * 256])
    def test_baggage_item_is_empty_string(self, key):
        span = NullSpan().set_baggage_item(key, "value")
        assert span.get_baggage_item(key) == ""

    def test_mutators_are_chainable_noops(self):
        span = NullSpan()
        result = (
            span.set_tag("http.status_code", 200)
            .set_operation_name("renamed")
            .log_kv({"event": "x"}, timestamp=1.0)
        )
        assert result is span
        assert span.operation_name == ""

    def test_finish_can_be_called_repeatedly(self):
        span = NullSpan()
        span.finish()
        span.finish(finish_time=123.0)
        assert span.context is None
