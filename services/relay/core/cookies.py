"""
Auth cookie renewal.

The remote API rotates its auth cookie: any response may carry a fresh
``Set-Cookie`` for it. ``extract_renewed_cookie`` reads that cookie so the
Gateway can write it back into the session after every call.
"""

import logging
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Iterable, Optional, Union

import httpx

from ..models.session import RenewedCookie, utcnow

logger = logging.getLogger("relay.cookies")


def _parse_expires(value: str) -> Optional[datetime]:
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_set_cookie(
    header: str, cookie_name: str, now: Optional[datetime] = None
) -> Optional[RenewedCookie]:
    """
    Parse one Set-Cookie line; return the cookie when it is ``cookie_name``.

    Max-Age wins over Expires (RFC 6265 5.3). An empty value is a deletion
    and is not treated as a renewal.
    """
    parts = [p.strip() for p in header.split(";")]
    if not parts or "=" not in parts[0]:
        return None

    name, _, value = parts[0].partition("=")
    if name.strip() != cookie_name:
        return None
    value = value.strip().strip('"')
    if not value:
        return None

    expires_at: Optional[datetime] = None
    max_age: Optional[int] = None
    for attr in parts[1:]:
        key, _, attr_value = attr.partition("=")
        key = key.strip().lower()
        if key == "max-age":
            try:
                max_age = int(attr_value.strip())
            except ValueError:
                logger.warning("Ignoring unparseable Max-Age on auth cookie: %r", attr_value)
        elif key == "expires":
            expires_at = _parse_expires(attr_value.strip())
            if expires_at is None:
                logger.warning("Ignoring unparseable Expires on auth cookie: %r", attr_value)

    if max_age is not None:
        expires_at = (now or utcnow()) + timedelta(seconds=max_age)

    return RenewedCookie(value=value, expires_at=expires_at)


def extract_renewed_cookie(
    source: Union[httpx.Response, httpx.Headers, Iterable[str]],
    cookie_name: str = "Authorization",
    now: Optional[datetime] = None,
) -> Optional[RenewedCookie]:
    """
    Return the renewed auth cookie carried by a response, if any.

    When several Set-Cookie lines name the cookie, the last one wins.
    """
    if isinstance(source, httpx.Response):
        lines = source.headers.get_list("set-cookie")
    elif isinstance(source, httpx.Headers):
        lines = source.get_list("set-cookie")
    else:
        lines = list(source)

    renewed: Optional[RenewedCookie] = None
    for line in lines:
        cookie = parse_set_cookie(line, cookie_name, now=now)
        if cookie is not None:
            renewed = cookie
    return renewed
