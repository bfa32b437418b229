"""
FastAPI exception handlers that map service/repository exceptions to HTTP responses.

Every handler answers with `exc.to_payload()` and `exc.http_status()`, so the
status code always follows the exception's `error_code`:

    BadRequestError 400, ForbiddenError 403, NotFoundError 404,
    ConflictError / DuplicateError 409, InvalidFieldError 422,
    any other RepositoryError 400.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from chatapp.exceptions.base import (
    BadRequestError,
    ConflictError,
    DuplicateError,
    ForbiddenError,
    InvalidFieldError,
    NotFoundError,
    RepositoryError,
)

logger = logging.getLogger(__name__)


def _respond(exc: RepositoryError) -> JSONResponse:
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


async def client_error_handler(request: Request, exc: RepositoryError) -> JSONResponse:
    """Expected client-side failures (bad input, membership state, permissions)."""
    logger.info(
        "http.client_error",
        extra={
            "method": request.method,
            "path": request.url.path,
            "error_code": exc.error_code,
            "fields": exc.fields,
        },
    )
    return _respond(exc)


async def repository_error_handler(request: Request, exc: RepositoryError) -> JSONResponse:
    """
    Fallback for general repository errors. The message is client-safe; the
    constraint name stays in the logs only.
    """
    logger.warning(
        "http.repository_error",
        extra={
            "method": request.method,
            "path": request.url.path,
            "detail": exc.message,
            "constraint": exc.constraint,
        },
    )
    return _respond(exc)


_CLIENT_ERRORS = (
    BadRequestError,
    ForbiddenError,
    NotFoundError,
    ConflictError,
    DuplicateError,
    InvalidFieldError,
)


def register_exception_handlers(app: FastAPI) -> None:
    for exc_cls in _CLIENT_ERRORS:
        app.add_exception_handler(exc_cls, client_error_handler)
    app.add_exception_handler(RepositoryError, repository_error_handler)
