"""Exception handlers mapping domain errors to the API envelope.

Error response formats:
    422: ``{"success": false, "errors": {"field": ["message", ...]}}``
    404: ``{"success": false, "message": "User not found"}``
    503: ``{"success": false, "message": "..."}``
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .exceptions import NotFoundError, TransientStoreError, ValidationError

logger = logging.getLogger(__name__)


def error_key(loc: tuple) -> str:
    """Turn a pydantic error location into a wire field name.

    ``("body", "emails", 0)`` becomes ``"emails.0"``.
    """
    parts = [str(part) for part in loc if part != "body"]
    return ".".join(parts) or "body"


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        errors.setdefault(error_key(tuple(err["loc"])), []).append(err["msg"])
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"success": False, "errors": errors},
    )


async def validation_error_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"success": False, "errors": exc.errors},
    )


async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"success": False, "message": exc.message},
    )


async def transient_store_handler(
    request: Request, exc: TransientStoreError
) -> JSONResponse:
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"success": False, "message": exc.message},
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on ``app``."""
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(TransientStoreError, transient_store_handler)
