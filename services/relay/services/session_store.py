"""
Session Store

In-process record of each user session's remote auth cookie and expiry.
"""

import logging
import time
from datetime import datetime
from typing import Dict, Optional

from services.relay.models.session import Session, utcnow

logger = logging.getLogger("relay.session_store")


class SessionStore:
    """
    Per-worker session storage keyed by user session id.

    Values are copied on the way in and out so an in-flight request works on
    its own Session. Writes are last-writer-wins. Expired sessions are never
    kept: writing one removes the entry, and sessions that expire while idle
    are pruned at most once per ``prune_interval`` seconds.
    """

    def __init__(self, prune_interval: float = 300.0):
        self._sessions: Dict[str, Session] = {}
        self.prune_interval = prune_interval
        self._next_prune = time.monotonic() + prune_interval

    def get(self, user_session_id: str) -> Optional[Session]:
        session = self._sessions.get(user_session_id)
        return session.copy() if session else None

    def get_or_create(self, user_session_id: str) -> Session:
        session = self.get(user_session_id)
        if session is None:
            session = Session(user_session_id=user_session_id)
        return session

    def set(self, session: Session) -> None:
        if session.is_expired():
            self.clear(session.user_session_id)
        else:
            self._sessions[session.user_session_id] = session.copy()
        self._maybe_prune()

    def clear(self, user_session_id: str) -> None:
        if self._sessions.pop(user_session_id, None) is not None:
            logger.info("Session cleared", extra={"session_id": user_session_id})

    def prune(self, now: Optional[datetime] = None) -> int:
        """Drop every expired session; return how many were removed."""
        now = now or utcnow()
        expired = [sid for sid, session in self._sessions.items() if session.is_expired(now)]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info("Expired sessions pruned", extra={"count": len(expired)})
        return len(expired)

    def _maybe_prune(self) -> None:
        tick = time.monotonic()
        if tick >= self._next_prune:
            self._next_prune = tick + self.prune_interval
            self.prune()

    def __len__(self) -> int:
        return len(self._sessions)
