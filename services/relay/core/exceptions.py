"""
Custom exception classes.

Represent failures of calls made on behalf of a user against the remote API.
"""

import logging
from typing import Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("relay.exceptions")


class RelayError(Exception):
    """Base exception class for relayed calls."""

    kind = "relay_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class SessionExpired(RelayError):
    """The session has no expiry or it lies in the past. No network I/O was attempted."""

    kind = "session_expired"

    def __init__(self, message: str = "External session has expired."):
        super().__init__(message)


class AuthCookieMissing(RelayError):
    """The session holds no auth cookie to attach."""

    kind = "auth_cookie_missing"

    def __init__(self, message: str = "External authentication cookie missing."):
        super().__init__(message)


class UpstreamError(RelayError):
    """The remote API returned a non-success status or the transport failed."""

    kind = "upstream_error"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
    ):
        self.status_code = status_code
        self.cause = cause
        super().__init__(message)


class UpstreamTimeout(UpstreamError):
    """Connect or read timeout talking to the remote API."""

    kind = "upstream_timeout"


class RequestRejected(UpstreamError):
    """The remote API answered a write with an error payload."""

    kind = "request_rejected"


class MalformedResponse(RelayError):
    """The remote API returned a body that cannot be interpreted as expected."""

    kind = "malformed_response"


class InvalidPath(RelayError):
    """A resource path is empty or unusable."""

    kind = "invalid_path"


class InvalidDownloadUrl(RelayError):
    """A download source does not resolve to a URL with a host."""

    kind = "invalid_download_url"


class InvalidSearchQuery(RelayError):
    """Search offset or page size out of range."""

    kind = "invalid_search_query"


# ===========================================
# Exception Handlers
# ===========================================


async def global_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler for unhandled exceptions.
    """
    logger.error(
        f"Global exception handler caught: {exc}",
        exc_info=True,
        extra={
            "path": request.url.path,
            "method": request.method,
        },
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal Server Error", "detail": str(exc)},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    Handler for HTTPException.
    """
    return JSONResponse(
        status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handler for validation errors.
    """
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"message": "Validation Error", "detail": str(exc.errors())},
    )
