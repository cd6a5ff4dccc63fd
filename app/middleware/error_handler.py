"""
HTTP error envelopes.

Every failure leaves the API as ``{"success": false, "message", "error"}``.
The room socket renders the same ``AppException`` instances itself as
``error`` events (see ``api/v1/room_socket.py``), so only HTTP goes through here.
"""

import logging
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError
from app.utils.exceptions import AppException, ErrorCode

logger = logging.getLogger(__name__)


def _error_body(code: str, details: list | None = None, field: str | None = None) -> dict:
    return {"code": code, "details": details, "field": field}


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Render raised AppExceptions: ``NOT_FOUND`` for unknown rooms,
    ``FORBIDDEN`` from the admin guard, ``INVALID_STATUS`` and
    ``INVALID_TIME_SLOT`` from the status mutator, auth failures and so on.
    """
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "message": exc.message,
            "error": exc.detail.get("error", _error_body(exc.error_code)),
        },
        headers=exc.headers,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Request bodies and query params that fail pydantic validation (422):
    a status outside free/occupied/reserved/maintenance, a slot time that is
    not HH:MM, a floor outside 0-10, an unknown room type.
    """
    details = []
    for error in exc.errors():
        # ("body", "updates", 1, "status") -> "updates.1.status"
        loc = error.get("loc", [])
        field = ".".join(str(l) for l in loc if l not in ("body", "query", "path")) if loc else "unknown"
        details.append({"field": field, "message": error.get("msg", "Invalid value")})

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "success": False,
            "message": "Validation error. Please check your input.",
            "error": _error_body(ErrorCode.VALIDATION_ERROR, details=details),
        }
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """
    Unique constraint races the service checks could not catch, e.g. two
    admins creating the same roomNumber at once, or two writers adding the
    same slot interval to one room.
    """
    logger.warning(f"IntegrityError on {request.method} {request.url.path}: {exc.orig}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "success": False,
            "message": "A record with this data already exists.",
            "error": _error_body(ErrorCode.DUPLICATE_ENTRY),
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything else: log with traceback, answer a bare 500."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "message": "An unexpected error occurred. Please try again later.",
            "error": _error_body(ErrorCode.INTERNAL_SERVER_ERROR),
        }
    )
