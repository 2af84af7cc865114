"""
Global exception handlers for the FastAPI application.

Translates the ``CardvaultError`` hierarchy into HTTP responses with a
``{"detail": ..., "code": ...}`` body. More specific handlers are registered
first; ``CardvaultError`` is the catch-all for anything unmapped.
"""

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from structlog import get_logger

from cardvault.core.exceptions import (
    AuthenticationError,
    CardvaultError,
    EmailAlreadyExistsError,
    InfrastructureError,
    InvalidPasswordError,
    SessionNotFoundError,
    ValidationError,
)

__all__ = [
    "authentication_error_handler",
    "email_already_exists_error_handler",
    "session_not_found_error_handler",
    "validation_error_handler",
    "request_validation_error_handler",
    "infrastructure_error_handler",
    "cardvault_error_handler",
    "register_exception_handlers",
]

logger = get_logger(__name__)


def _error_body(exc: CardvaultError) -> dict:
    return {"detail": exc.message, "code": exc.code}


async def authentication_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
    """Handles `AuthenticationError`, returning a `401 Unauthorized`.

    The message is the coarse one carried by the exception; it never says
    which check failed.
    """
    logger.warning(
        "Authentication failure",
        error=exc.code,
        client_ip=request.client.host if request.client else None,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content=_error_body(exc),
        headers={"WWW-Authenticate": "Bearer"},
    )


async def email_already_exists_error_handler(request: Request, exc: EmailAlreadyExistsError) -> JSONResponse:
    """Handles `EmailAlreadyExistsError`, returning a `409 Conflict`."""
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=_error_body(exc))


async def session_not_found_error_handler(request: Request, exc: SessionNotFoundError) -> JSONResponse:
    """Handles `SessionNotFoundError`, returning a `404 Not Found`."""
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=_error_body(exc))


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handles `ValidationError`, returning a `400 Bad Request`.

    Password policy failures also list every violated rule.
    """
    content = _error_body(exc)
    if isinstance(exc, InvalidPasswordError):
        content["violations"] = exc.violations
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handles malformed request bodies with a `400 Bad Request`."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": "Request body is invalid",
            "code": "validation_error",
            "errors": jsonable_encoder(exc.errors()),
        },
    )


async def infrastructure_error_handler(request: Request, exc: InfrastructureError) -> JSONResponse:
    """Handles `InfrastructureError`, returning a `500 Internal Server Error`.

    The underlying failure is logged; the client only learns that the
    service could not complete the request.
    """
    logger.error(
        "Infrastructure failure",
        error=exc.code,
        message=exc.message,
        path=request.url.path,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "The service is temporarily unable to complete the request", "code": exc.code},
    )


async def cardvault_error_handler(request: Request, exc: CardvaultError) -> JSONResponse:
    """Catch-all for `CardvaultError` subclasses without a dedicated handler."""
    logger.error("Unhandled application error", error=exc.code, path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "code": exc.code},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Registers all custom exception handlers with the FastAPI application."""
    app.add_exception_handler(AuthenticationError, authentication_error_handler)
    app.add_exception_handler(EmailAlreadyExistsError, email_already_exists_error_handler)
    app.add_exception_handler(SessionNotFoundError, session_not_found_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(InfrastructureError, infrastructure_error_handler)
    app.add_exception_handler(CardvaultError, cardvault_error_handler)
