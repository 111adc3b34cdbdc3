"""
Auth Guard.

Refuses outbound calls for sessions whose auth cookie is expired.
"""

from datetime import datetime
from typing import Optional

from ..models.session import Session
from .exceptions import SessionExpired


def ensure_valid(session: Session, now: Optional[datetime] = None) -> None:
    """
    Fail fast unless the session's cookie expiry lies in the future.

    Raises:
        SessionExpired: expiry is absent or ``now`` is past it
    """
    if session.is_expired(now):
        raise SessionExpired()
