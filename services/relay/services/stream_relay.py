"""
Stream Relay

Pipes large binary downloads from the remote API to the caller without
holding the body in memory. Every failure becomes a terminal plain-text
response so the caller's connection is never left hanging.
"""

import logging
import posixpath
from typing import AsyncIterator, Dict
from urllib.parse import quote, unquote, urlsplit

import httpx
from fastapi import status
from starlette.responses import PlainTextResponse, Response, StreamingResponse

from services.relay.core.auth_guard import ensure_valid
from services.relay.core.exceptions import (
    AuthCookieMissing,
    InvalidDownloadUrl,
    InvalidPath,
    RelayError,
    SessionExpired,
    UpstreamError,
    UpstreamTimeout,
)
from services.relay.models.session import Session
from services.relay.services.request_gateway import RequestGateway

logger = logging.getLogger("relay.stream")

FALLBACK_FILENAME = "downloaded_file"
DEFAULT_CONTENT_TYPE = "application/octet-stream"
NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
    "Pragma": "no-cache",
    "Expires": "0",
}

_ERROR_STATUS = {
    SessionExpired: status.HTTP_401_UNAUTHORIZED,
    AuthCookieMissing: status.HTTP_401_UNAUTHORIZED,
    InvalidDownloadUrl: status.HTTP_400_BAD_REQUEST,
}


def derive_filename(url: str) -> str:
    """Last path segment of ``url``, or a generic name when there is none."""
    name = posixpath.basename(unquote(urlsplit(url).path))
    name = name.replace('"', "").replace("\r", "").replace("\n", "")
    if not name or name in (".", ".."):
        return FALLBACK_FILENAME
    return name


def content_disposition(filename: str, disposition: str = "attachment") -> str:
    try:
        filename.encode("latin-1")
    except UnicodeEncodeError:
        return (
            f'{disposition}; filename="{FALLBACK_FILENAME}"; '
            f"filename*=UTF-8''{quote(filename)}"
        )
    return f'{disposition}; filename="{filename}"'


class StreamRelay:
    def __init__(self, gateway: RequestGateway):
        self.gateway = gateway
        self.config = gateway.config
        self.client = gateway.client

    def resolve_url(self, path: str) -> str:
        try:
            url = self.gateway.build_url(path.strip())
        except InvalidPath as exc:
            raise InvalidDownloadUrl(str(exc)) from exc
        if not urlsplit(url).hostname:
            raise InvalidDownloadUrl("Invalid URL: no host detected.")
        return url

    def stream_timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            self.config.STREAM_TIMEOUT,
            connect=self.config.STREAM_CONNECT_TIMEOUT,
        )

    async def open_upstream(self, session: Session, url: str) -> httpx.Response:
        """
        Open the upstream download and return it with the body still unread.

        Raises:
            UpstreamError: transport failure or non-2xx status
        """
        headers = self.gateway.base_headers(session, accept="*/*")
        # Raw bytes are relayed untouched.
        headers["Accept-Encoding"] = "identity"

        request = self.client.build_request(
            "GET",
            url,
            params={"download": "true"},
            headers=headers,
            timeout=self.stream_timeout(),
        )
        logger.info("External download request", extra={"url": str(request.url)})

        try:
            upstream = await self.client.send(request, stream=True)
        except httpx.TimeoutException as exc:
            raise UpstreamTimeout(f"Download from {url} timed out", cause=exc) from exc
        except httpx.RequestError as exc:
            raise UpstreamError(f"Download from {url} failed: {exc}", cause=exc) from exc

        self.gateway.apply_renewal(session, upstream)

        if not upstream.is_success:
            await upstream.aclose()
            raise UpstreamError(
                f"Remote API returned HTTP {upstream.status_code}",
                status_code=upstream.status_code,
            )
        return upstream

    def response_headers(
        self, upstream: httpx.Response, filename: str, inline: bool = False
    ) -> Dict[str, str]:
        disposition = "inline" if inline else "attachment"
        headers = {
            "Content-Disposition": content_disposition(filename, disposition),
            **NO_CACHE_HEADERS,
        }
        content_length = upstream.headers.get("content-length")
        if content_length:
            headers["Content-Length"] = content_length
        content_encoding = upstream.headers.get("content-encoding")
        if content_encoding and content_encoding.lower() != "identity":
            headers["Content-Encoding"] = content_encoding
        return headers

    async def relay_body(self, upstream: httpx.Response, url: str) -> AsyncIterator[bytes]:
        """Yield upstream bytes as they arrive; always closes the upstream."""
        sent = 0
        try:
            async for chunk in upstream.aiter_raw():
                sent += len(chunk)
                yield chunk
        except httpx.HTTPError as exc:
            # Headers are already out; all that is left is to end the body.
            logger.error(
                "Transfer error during streaming",
                extra={
                    "url": url,
                    "bytes_sent": sent,
                    "error_type": type(exc).__name__,
                    "error_detail": str(exc),
                },
            )
        finally:
            await upstream.aclose()
            logger.info("Download finished", extra={"url": url, "bytes_sent": sent})

    async def stream_download(self, session: Session, path: str, inline: bool = False) -> Response:
        """
        Relay ``path`` from the remote API as a byte stream.

        Never raises: failures come back as a terminal text/plain response.
        """
        try:
            ensure_valid(session)
            url = self.resolve_url(path)
            filename = derive_filename(url)
            upstream = await self.open_upstream(session, url)
        except RelayError as exc:
            return self.error_response(exc)
        except Exception as exc:
            logger.exception("Unexpected download failure")
            return self.error_response(exc)

        return StreamingResponse(
            self.relay_body(upstream, url),
            status_code=status.HTTP_200_OK,
            media_type=upstream.headers.get("content-type") or DEFAULT_CONTENT_TYPE,
            headers=self.response_headers(upstream, filename, inline=inline),
        )

    @staticmethod
    def error_response(exc: Exception) -> Response:
        status_code = _ERROR_STATUS.get(type(exc), status.HTTP_502_BAD_GATEWAY)
        if not isinstance(exc, RelayError):
            status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        logger.error(
            f"File download error: {exc}",
            extra={"error_type": type(exc).__name__, "status": status_code},
        )
        return PlainTextResponse(
            f"Error downloading file: {exc}",
            status_code=status_code,
            headers={"Cache-Control": "no-store"},
        )
