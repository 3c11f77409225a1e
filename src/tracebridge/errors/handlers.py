"""FastAPI and Flask exception handlers for tracing errors."""

from typing import Any

import flask
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tracebridge.errors.exceptions import TracingError

logger = structlog.get_logger()


def error_body(exc: TracingError) -> dict[str, Any]:
    """Return the JSON body rendered for a tracing error."""
    return {
        "error_code": exc.error_code,
        "message": str(exc),
        **exc.context,
    }


def error_response(exc: TracingError, path: str) -> JSONResponse:
    """Log a tracing error and render it as a Starlette JSON response."""
    logger.error(
        "tracing_error",
        error_code=exc.error_code,
        message=str(exc),
        path=path,
        **exc.context,
    )
    return JSONResponse(status_code=exc.status_code, content=error_body(exc))


def register_error_handlers(app: FastAPI) -> None:
    """Register tracing exception handlers on a FastAPI application.

    Args:
        app: The FastAPI application instance to register handlers on.
    """

    @app.exception_handler(TracingError)
    async def handle_tracing_error(request: Request, exc: TracingError) -> JSONResponse:
        return error_response(exc, request.url.path)


def register_flask_error_handlers(app: flask.Flask) -> None:
    """Register tracing exception handlers on a Flask application."""

    def handle_tracing_error(exc: TracingError) -> tuple[flask.Response, int]:
        logger.error(
            "tracing_error",
            error_code=exc.error_code,
            message=str(exc),
            path=flask.request.path,
            **exc.context,
        )
        return flask.jsonify(error_body(exc)), exc.status_code

    app.register_error_handler(TracingError, handle_tracing_error)
