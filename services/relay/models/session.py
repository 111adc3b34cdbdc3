"""
Session state held on behalf of one user.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RenewedCookie:
    """Auth cookie value and expiry taken from a remote Set-Cookie header."""

    value: str
    expires_at: Optional[datetime] = None


@dataclass
class Session:
    """
    Auth cookie and expiry for one user session.

    The caller owns persistence. Core operations receive the Session
    explicitly and mutate it in place when the remote API renews the cookie.
    """

    user_session_id: str
    auth_cookie: Optional[str] = None
    expires_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return True
        return (now or utcnow()) > self.expires_at

    def renew(self, cookie: RenewedCookie) -> None:
        self.auth_cookie = cookie.value
        self.expires_at = cookie.expires_at

    def clear(self) -> None:
        self.auth_cookie = None
        self.expires_at = None

    def copy(self) -> "Session":
        return replace(self)
