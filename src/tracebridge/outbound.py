"""Propagating the active span into outbound HTTP calls."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, MutableMapping

import httpx
import structlog

from tracebridge.errors import SpanNotFoundError
from tracebridge.propagation import HeaderCarrier
from tracebridge.store import RequestStore, inject_to_headers

logger = structlog.get_logger()


def inject_outbound(
    store: RequestStore,
    headers: MutableMapping[str, str],
    *,
    abort_on_errors: bool = False,
) -> bool:
    """Copy the active span's context into outbound ``headers``.

    Args:
        store: The current request's span store.
        headers: Outbound headers; trace headers are written with ``headers[name] = value``.
        abort_on_errors: Raise when no span is active instead of sending the call untraced.

    Returns:
        ``True`` when trace headers were written.

    Raises:
        SpanNotFoundError: No active span and ``abort_on_errors`` is set.
    """
    carrier = HeaderCarrier()
    try:
        injected = inject_to_headers(store, carrier)
    except SpanNotFoundError:
        if abort_on_errors:
            raise
        logger.warning("outbound_untraced", reason="span_not_found")
        return False
    for name, value in carrier.pairs():
        headers[name] = value
    return injected


def request_hook(
    store_provider: Callable[[], RequestStore], *, abort_on_errors: bool = False
) -> Callable[[httpx.Request], None]:
    """Return an httpx ``request`` event hook that adds trace headers.

    ``store_provider`` is called for every request and must return the span
    store of the inbound request being served, e.g.
    ``lambda: AttributeStore(flask.g)``.
    """

    def hook(request: httpx.Request) -> None:
        inject_outbound(store_provider(), request.headers, abort_on_errors=abort_on_errors)

    return hook


def async_request_hook(
    store_provider: Callable[[], RequestStore], *, abort_on_errors: bool = False
) -> Callable[[httpx.Request], Awaitable[None]]:
    """Async variant of :func:`request_hook` for ``httpx.AsyncClient``."""
    sync_hook = request_hook(store_provider, abort_on_errors=abort_on_errors)

    async def hook(request: httpx.Request) -> None:
        sync_hook(request)

    return hook
