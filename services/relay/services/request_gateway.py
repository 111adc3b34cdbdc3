"""
Request Gateway

Sends authenticated requests to the remote repository API on behalf of a
session and writes renewed auth cookies back into that session.
"""

import json
import logging
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import urlsplit

import httpx

from services.common.core.masking import mask_headers
from services.common.core.request_context import get_request_id
from services.relay.config import RelayConfig
from services.relay.core.auth_guard import ensure_valid
from services.relay.core.cookies import extract_renewed_cookie
from services.relay.core.exceptions import (
    AuthCookieMissing,
    InvalidPath,
    MalformedResponse,
    UpstreamError,
    UpstreamTimeout,
)
from services.relay.models.gateway import GatewayResponse, OutboundRequest
from services.relay.models.session import Session

logger = logging.getLogger("relay.gateway")

_DEFAULT_PORTS = {"http": 80, "https": 443}


def _origin(url: str) -> Tuple[str, Optional[str], Optional[int]]:
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    return scheme, parts.hostname, parts.port or _DEFAULT_PORTS.get(scheme)


class RequestGateway:
    def __init__(self, client: httpx.AsyncClient, config: RelayConfig):
        """
        Args:
            client: Shared httpx.AsyncClient
            config: RelayConfig instance
        """
        self.client = client
        self.config = config

    @property
    def endpoint(self) -> str:
        return self.config.REMOTE_API_ENDPOINT

    def build_url(self, path: str) -> str:
        """
        Resolve ``path`` against the remote endpoint.

        Absolute URLs are accepted only for the endpoint's own origin
        (scheme, host and port), since the auth cookie is attached to them.
        """
        if not path.startswith(("http://", "https://")):
            return f"{self.endpoint}/{path.lstrip('/')}"
        try:
            same_origin = _origin(path) == _origin(self.endpoint)
        except ValueError as exc:
            raise InvalidPath(f"URL {path} is not a valid URL.") from exc
        if not same_origin:
            raise InvalidPath(f"URL {path} is not on the repository origin.")
        return path

    def base_headers(self, session: Session, accept: str = "application/json") -> Dict[str, str]:
        """Headers every outbound call carries. Raises AuthCookieMissing without a cookie."""
        if not session.auth_cookie:
            raise AuthCookieMissing()

        headers = {
            "User-Agent": self.config.user_agent,
            "Accept": accept,
            "Cookie": f"{self.config.AUTH_COOKIE_NAME}={session.auth_cookie}",
        }
        request_id = get_request_id()
        if request_id:
            headers["X-Request-Id"] = request_id
        return headers

    def default_timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self.config.REQUEST_TIMEOUT, connect=self.config.CONNECT_TIMEOUT)

    def apply_renewal(self, session: Session, response: httpx.Response) -> bool:
        """Overwrite the session cookie when the response renews it."""
        renewed = extract_renewed_cookie(response, self.config.AUTH_COOKIE_NAME)
        if renewed is None:
            return False

        session.renew(renewed)
        logger.debug(
            "Auth cookie renewed",
            extra={
                "session_id": session.user_session_id,
                "expires_at": renewed.expires_at.isoformat() if renewed.expires_at else None,
            },
        )
        return True

    def log_exchange(self, response: httpx.Response, body: Any = None) -> None:
        if not self.config.LOG_HTTP_EXCHANGES:
            return
        request = response.request
        logger.info(
            "External API Response Received",
            extra={
                "url": str(request.url),
                "method": request.method,
                "status": response.status_code,
                "request_headers": mask_headers(request.headers.multi_items()),
                "response_headers": mask_headers(response.headers.multi_items()),
                "response_body": body,
            },
        )

    async def send(
        self,
        session: Session,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json_body: Optional[Any] = None,
        timeout: Optional[float] = None,
    ) -> GatewayResponse:
        """
        Perform one authenticated call.

        Raises:
            SessionExpired: session expiry absent or past (no request is made)
            AuthCookieMissing: no cookie to attach (no request is made)
            UpstreamTimeout: connect/read timeout
            UpstreamError: transport failure or non-2xx status
            MalformedResponse: 2xx body that is not JSON
        """
        request = OutboundRequest(
            method=method.upper(), path=path, params=params, json_body=json_body, timeout=timeout
        )
        return await self.execute(session, request)

    async def execute(self, session: Session, request: OutboundRequest) -> GatewayResponse:
        ensure_valid(session)
        headers = self.base_headers(session)

        url = self.build_url(request.path)
        timeout = self.default_timeout()
        if request.timeout is not None:
            connect = min(request.timeout, self.config.CONNECT_TIMEOUT)
            timeout = httpx.Timeout(request.timeout, connect=connect)

        kwargs: Dict[str, Any] = {"headers": headers, "timeout": timeout}
        if request.params:
            kwargs["params"] = dict(request.params)
        if request.json_body is not None:
            kwargs["json"] = request.json_body

        try:
            response = await self.client.request(request.method, url, **kwargs)
        except httpx.TimeoutException as exc:
            logger.error(
                f"API timeout [{request.method} {request.path}]",
                extra={"error_type": type(exc).__name__, "error_detail": str(exc)},
            )
            raise UpstreamTimeout(f"Request to {request.path} timed out", cause=exc) from exc
        except httpx.RequestError as exc:
            logger.error(
                f"API transport error [{request.method} {request.path}]",
                extra={"error_type": type(exc).__name__, "error_detail": str(exc)},
            )
            raise UpstreamError(f"Request to {request.path} failed: {exc}", cause=exc) from exc

        # Renewal applies to every response, including error statuses.
        self.apply_renewal(session, response)

        body, decoded = self._parse_body(response, request)
        self.log_exchange(response, body)

        if not response.is_success:
            logger.error(
                f"API Error [{request.method} {request.path}]: HTTP {response.status_code}",
                extra={"status": response.status_code},
            )
            raise UpstreamError(
                f"Remote API returned HTTP {response.status_code} for {request.path}",
                status_code=response.status_code,
            )

        if not decoded:
            raise MalformedResponse(f"Response for {request.path} is not valid JSON")

        return GatewayResponse(
            status_code=response.status_code,
            headers=GatewayResponse.collect_headers(response.headers),
            body=body,
        )

    @staticmethod
    def _parse_body(response: httpx.Response, request: OutboundRequest) -> Tuple[Any, bool]:
        """Return ``(body, decoded)``; an empty body decodes to None."""
        if not response.content:
            return None, True
        try:
            return response.json(), True
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning(
                "Failed to parse API response body as JSON.",
                extra={
                    "path": request.path,
                    "snippet": response.text[:200],
                    "status_code": response.status_code,
                },
            )
            return response.text, False
