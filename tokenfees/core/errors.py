"""Error taxonomy shared by the pricing engine and the HTTP layer.

Engine code raises ServiceError subclasses; the handlers at the bottom of this
module turn them into JSON responses. Only VolatilityUnavailable is ever
absorbed inside the engine (fee calculation falls back to the default spread).
"""

from __future__ import annotations

import logging
from enum import Enum

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

logger = logging.getLogger("tokenfees.errors")

RATE_LIMIT_RETRY_AFTER_SECONDS = 60


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    UPSTREAM = "upstream_error"


_KIND_STATUS = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorKind.UPSTREAM: status.HTTP_502_BAD_GATEWAY,
}


class ServiceError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error: str = "internal_error"
    retryable: bool = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArgument(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "invalid_argument"


class PriceUnavailable(ServiceError):
    """Provider could not supply market data; `kind` says why."""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.UPSTREAM):
        super().__init__(message)
        self.kind = kind
        self.status_code = _KIND_STATUS[kind]
        self.error = kind.value
        self.retryable = kind is ErrorKind.RATE_LIMITED


class VolatilityUnavailable(ServiceError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error = "volatility_unavailable"


def _error_body(error: str, detail, retryable: bool = False) -> dict:
    return {
        "success": False,
        "error": error,
        "detail": detail,
        "retryable": retryable,
    }


def service_error_handler(request: Request, exc: ServiceError):  # type: ignore
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    headers = None
    if exc.retryable:
        headers = {"Retry-After": str(RATE_LIMIT_RETRY_AFTER_SECONDS)}
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.error, exc.message, exc.retryable),
        headers=headers,
    )


def not_found_handler(request: Request, exc):  # type: ignore
    if getattr(exc, "status_code", 404) != 404:
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body("http_error", exc.detail),
        )
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=_error_body(
            "not_found", f"No route for {request.method} {request.url.path}"
        ),
    )


def validation_error_handler(request: Request, exc: RequestValidationError):  # type: ignore
    messages = [err.get("msg", "invalid value") for err in exc.errors()]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("validation_error", ", ".join(messages)),
    )


def server_error_handler(request: Request, exc: Exception):  # type: ignore
    logger.exception("unhandled exception")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("internal_error", "An unexpected error occurred."),
    )
