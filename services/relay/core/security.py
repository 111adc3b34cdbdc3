"""
Session tokens.

The relay hands each registered session a short-lived HS256 JWT. The token
only names the session; the remote auth cookie never leaves the relay.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

ALGORITHM = "HS256"
ISSUER = "repository-relay"
TOKEN_USE = "relay_session"
REQUIRED_CLAIMS = ["sub", "exp", "iat", "iss", "token_use"]


def create_access_token(session_id: str, secret_key: str, expires_delta: int = 3600) -> str:
    """
    Issue a token bound to ``session_id``.

    Args:
        session_id: user session id (token subject)
        secret_key: JWT signing secret key
        expires_delta: token validity in seconds
    """
    now = datetime.now(timezone.utc)
    claims = {
        "sub": session_id,
        "iss": ISSUER,
        "token_use": TOKEN_USE,
        "iat": now,
        "exp": now + timedelta(seconds=expires_delta),
    }
    return jwt.encode(claims, secret_key, algorithm=ALGORITHM)


def verify_token(token: str, secret_key: str) -> Optional[str]:
    """
    Return the session id carried by ``token``, or None when it is not a
    valid relay session token.

    ``token`` may carry the ``Bearer`` scheme. The token must be signed with
    ``secret_key``, unexpired, issued by the relay for session use, and name
    a non-empty string subject.
    """
    parts = token.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        token = parts[1]
    elif len(parts) != 1:
        return None

    try:
        claims = jwt.decode(
            token,
            secret_key,
            algorithms=[ALGORITHM],
            issuer=ISSUER,
            options={"require": REQUIRED_CLAIMS},
        )
    except jwt.PyJWTError:
        return None

    if claims.get("token_use") != TOKEN_USE:
        return None
    session_id = claims.get("sub")
    if not isinstance(session_id, str) or not session_id.strip():
        return None
    return session_id
