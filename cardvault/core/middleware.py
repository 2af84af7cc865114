"""Middleware configuration for the FastAPI application.

CORS plus a request-context middleware that binds a request id into the
structlog context variables, so every log line of a request carries it.
"""

import uuid

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from cardvault.core.config.settings import Settings

REQUEST_ID_HEADER = "X-Request-ID"


def configure_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure all middleware for the FastAPI application."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(request_context_middleware)


async def request_context_middleware(request: Request, call_next):
    """Bind ``request_id`` and ``path`` for the duration of the request.

    An incoming ``X-Request-ID`` is reused, otherwise one is generated; it is
    echoed on the response.
    """
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, path=request.url.path)
    try:
        response = await call_next(request)
    finally:
        structlog.contextvars.clear_contextvars()
    response.headers[REQUEST_ID_HEADER] = request_id
    return response
