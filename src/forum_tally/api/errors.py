"""Translation of service-layer errors into HTTP responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from forum_tally.core.errors import ForumTallyError, Unauthenticated, Unavailable

logger = logging.getLogger(__name__)


async def forum_tally_error_handler(request: Request, exc: ForumTallyError) -> JSONResponse:
    """Render a ``ForumTallyError`` as ``{"detail": ...}`` with its status code."""
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=headers,
    )


async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Render store failures that escaped the services as ``Unavailable``."""
    logger.error("%s %s store failure: %s", request.method, request.url.path, exc)
    unavailable = Unavailable()
    return JSONResponse(
        status_code=unavailable.status_code,
        content={"detail": unavailable.detail},
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed ids, kinds and bodies as 400 Bad Request."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ForumTallyError, forum_tally_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, store_error_handler)  # type: ignore[arg-type]
