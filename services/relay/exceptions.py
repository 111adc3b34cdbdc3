"""
Where: services/relay/exceptions.py
What: Relay exception handler registration and relayed-call HTTP mappings.
Why: Keep error handling setup isolated from route and lifecycle concerns.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.exceptions import (
    AuthCookieMissing,
    InvalidDownloadUrl,
    InvalidPath,
    InvalidSearchQuery,
    MalformedResponse,
    RelayError,
    RequestRejected,
    SessionExpired,
    UpstreamError,
    global_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)

logger = logging.getLogger("relay.exceptions")

# Most specific first.
_STATUS_BY_ERROR = (
    (SessionExpired, 401),
    (AuthCookieMissing, 401),
    (RequestRejected, 422),
    (InvalidPath, 404),
    (InvalidDownloadUrl, 400),
    (InvalidSearchQuery, 422),
    (MalformedResponse, 502),
    (UpstreamError, 502),
)


def status_for(exc: RelayError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 500


async def relay_error_handler(request: Request, exc: RelayError):
    status_code = status_for(exc)
    logger.warning(
        f"Relayed call failed: {exc}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "kind": exc.kind,
            "status": status_code,
        },
    )
    return JSONResponse(
        status_code=status_code,
        content={"message": exc.message, "detail": exc.kind},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(Exception, global_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RelayError, relay_error_handler)
