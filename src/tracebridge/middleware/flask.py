"""Flask tracing extension."""

from typing import BinaryIO

import flask

from tracebridge.config import DEFAULT_OPERATION_PREFIX
from tracebridge.errors.handlers import register_flask_error_handlers
from tracebridge.lifecycle import record_status
from tracebridge.middleware.core import ActiveRequest, InboundRequest, RequestTracer
from tracebridge.propagation import HeaderCarrier
from tracebridge.span import Span, Tracer
from tracebridge.store import (
    AttributeStore,
    get_span,
    get_sub_span,
    inject_to_binary,
    inject_to_headers,
)

_ACTIVE_KEY = "_tracing_active_request"


def flask_store() -> AttributeStore:
    """Span store backed by ``flask.g``."""
    return AttributeStore(flask.g)


class FlaskTracing:
    """Attach span lifecycle hooks to a Flask application.

    ``before_request`` starts the span, ``after_request`` records the status
    code and ``teardown_request`` finishes it. Teardown runs whether or not
    the view raised, so each span is finished exactly once.

    Usage:
        tracing = FlaskTracing(tracer)
        tracing.init_app(app)
    """

    def __init__(
        self,
        tracer: Tracer,
        app: flask.Flask | None = None,
        *,
        operation_prefix: str = DEFAULT_OPERATION_PREFIX,
        abort_on_errors: bool = False,
        enabled: bool = True,
    ) -> None:
        self.request_tracer = RequestTracer(
            tracer,
            operation_prefix=operation_prefix,
            abort_on_errors=abort_on_errors,
            enabled=enabled,
        )
        if app is not None:
            self.init_app(app)

    def init_app(self, app: flask.Flask) -> flask.Flask:
        if app.extensions.get("tracebridge") is self:
            return app
        app.before_request(self._before_request)
        app.after_request(self._after_request)
        app.teardown_request(self._teardown_request)
        register_flask_error_handlers(app)
        app.extensions["tracebridge"] = self
        return app

    def _before_request(self) -> None:
        request = flask.request
        inbound = InboundRequest(
            method=request.method,
            path=request.path,
            headers=HeaderCarrier.from_pairs(request.headers.items()),
            store=flask_store(),
        )
        # A corrupted-carrier abort propagates to the TracingError handler.
        setattr(flask.g, _ACTIVE_KEY, self.request_tracer.begin(inbound))

    def _after_request(self, response: flask.Response) -> flask.Response:
        active: ActiveRequest | None = flask.g.get(_ACTIVE_KEY)
        if active is not None:
            record_status(active.span, response.status_code)
        return response

    def _teardown_request(self, exc: BaseException | None) -> None:
        active: ActiveRequest | None = flask.g.pop(_ACTIVE_KEY, None)
        if active is not None:
            self.request_tracer.end(active, error=exc)


def get_flask_span() -> Span:
    """Return the span of the current Flask request.

    Raises:
        SpanNotFoundError: ``FlaskTracing`` is not installed on this app.
    """
    return get_span(flask_store())


def get_flask_sub_span(operation_name: str) -> Span:
    return get_sub_span(flask_store(), operation_name)


def inject_flask_to_headers(headers: HeaderCarrier) -> bool:
    return inject_to_headers(flask_store(), headers)


def inject_flask_to_binary(buffer: BinaryIO) -> bool:
    return inject_to_binary(flask_store(), buffer)
