"""Tests for outbound trace header injection."""

import asyncio

import httpx
import pytest

from tracebridge.errors import SpanNotFoundError
from tracebridge.outbound import async_request_hook, inject_outbound, request_hook
from tracebridge.store import put_span


def _echo_headers(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"traceparent": request.headers.get("traceparent")})


class TestInjectOutbound:
    def test_copies_active_span(self, tracer):
        store = {}
        span = tracer.start_span("inbound")
        put_span(store, span)
        headers = {}
        assert inject_outbound(store, headers) is True
        assert span.context.trace_id in headers["traceparent"]
        assert span.context.span_id in headers["traceparent"]

    def test_missing_span_proceeds_untraced(self):
        headers = {}
        assert inject_outbound({}, headers) is False
        assert headers == {}

    def test_missing_span_aborts_when_configured(self):
        with pytest.raises(SpanNotFoundError):
            inject_outbound({}, {}, abort_on_errors=True)


class TestHttpxHooks:
    def test_sync_client(self, tracer):
        store = {}
        span = tracer.start_span("inbound")
        put_span(store, span)
        client = httpx.Client(
            transport=httpx.MockTransport(_echo_headers),
            event_hooks={"request": [request_hook(lambda: store)]},
        )
        with client:
            body = client.get("http://downstream.test/items").json()
        assert body["traceparent"].split("-")[1] == span.context.trace_id

    def test_sync_client_without_span(self):
        client = httpx.Client(
            transport=httpx.MockTransport(_echo_headers),
            event_hooks={"request": [request_hook(dict)]},
        )
        with client:
            body = client.get("http://downstream.test/items").json()
        assert body["traceparent"] is None

    def test_async_client(self, tracer):
        store = {}
        span = tracer.start_span("inbound")
        put_span(store, span)

        async def call():
            async with httpx.AsyncClient(
                transport=httpx.MockTransport(_echo_headers),
                event_hooks={"request": [async_request_hook(lambda: store)]},
            ) as client:
                response = await client.get("http://downstream.test/items")
                return response.json()

        body = asyncio.run(call())
        assert body["traceparent"].split("-")[2] == span.context.span_id
