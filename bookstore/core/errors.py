"""Error hierarchy and the uniform JSON error envelope.

Every business failure is raised as a ``BookstoreError`` subclass. The
exception handlers registered in ``bookstore.main`` translate them (and any
framework or unexpected error) into::

    {"timestamp", "path", "status", "code", "message", "details"?}
"""

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

GENERIC_SERVER_MESSAGE = "Internal server error"


class BookstoreError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 500
    code: str = "INTERNAL_SERVER_ERROR"
    message: str = GENERIC_SERVER_MESSAGE

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)


class ValidationFailedError(BookstoreError):
    status_code = 400
    code = "VALIDATION_FAILED"
    message = "Invalid request"


class EmptyCartError(BookstoreError):
    status_code = 400
    code = "EMPTY_CART"
    message = "Cart has no active items"


class BookNotFoundError(BookstoreError):
    status_code = 400
    code = "BOOK_NOT_FOUND"
    message = "Some books in the cart no longer exist"


class InvalidCouponError(BookstoreError):
    status_code = 400
    code = "INVALID_COUPON"
    message = "Coupon cannot be applied"


class InvalidStateError(BookstoreError):
    status_code = 400
    code = "INVALID_STATE"
    message = "Operation not allowed in the current state"


class UnauthorizedError(BookstoreError):
    status_code = 401
    code = "UNAUTHORIZED"
    message = "Authentication required"


class ForbiddenError(BookstoreError):
    status_code = 403
    code = "FORBIDDEN"
    message = "Insufficient permissions"


class NotFoundError(BookstoreError):
    status_code = 404
    code = "NOT_FOUND"
    message = "Resource not found"


class DuplicateResourceError(BookstoreError):
    status_code = 409
    code = "DUPLICATE_RESOURCE"
    message = "Resource already exists"


class InvariantViolationError(BookstoreError):
    """Corrupt data detected mid-operation. Never shown to clients verbatim."""

    status_code = 500
    code = "INTERNAL_SERVER_ERROR"
    message = "Invariant violated"


_STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "UNPROCESSABLE_ENTITY",
    429: "TOO_MANY_REQUESTS",
}


def error_body(
    request: Request,
    status: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "path": request.url.path,
        "status": status,
        "code": code,
        "message": message,
    }
    if details:
        body["details"] = details
    return body


async def bookstore_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, BookstoreError)
    message = exc.message
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", exc.code, request.url.path, exc.message, exc_info=exc)
        message = GENERIC_SERVER_MESSAGE
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.status_code, exc.code, message, exc.details),
    )


async def request_validation_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RequestValidationError)
    details: dict[str, str] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        details[".".join(loc) or "body"] = str(err.get("msg", "invalid value"))
    return JSONResponse(
        status_code=400,
        content=error_body(request, 400, ValidationFailedError.code, "Invalid request", details),
    )


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, StarletteHTTPException)
    code = _STATUS_CODES.get(exc.status_code, "INTERNAL_SERVER_ERROR")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.status_code, code, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=error_body(request, 500, "INTERNAL_SERVER_ERROR", GENERIC_SERVER_MESSAGE),
    )
