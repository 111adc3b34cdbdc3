"""
Dependency Injection for the Relay API.

Manage request handler dependencies using FastAPI Depends.
"""

from typing import Annotated, AsyncIterator, Optional
from fastapi import Depends, Header, HTTPException, Request

from ..config import config
from ..core.security import verify_token
from ..models.session import Session
from ..services.repository import RepositoryService
from ..services.session_store import SessionStore
from ..services.stream_relay import StreamRelay


# ==========================================
# 1. Service Accessors
# ==========================================


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_repository(request: Request) -> RepositoryService:
    return request.app.state.repository


def get_stream_relay(request: Request) -> StreamRelay:
    return request.app.state.stream_relay


# Service Dependency Type Aliases
SessionStoreDep = Annotated[SessionStore, Depends(get_session_store)]
RepositoryDep = Annotated[RepositoryService, Depends(get_repository)]
StreamRelayDep = Annotated[StreamRelay, Depends(get_stream_relay)]


# ==========================================
# 2. Logic Dependencies (Verification & Session)
# ==========================================


async def verify_authorization(authorization: Optional[str] = Header(None)) -> str:
    """
    Verify a JWT token and return the user session id.

    Raises:
        HTTPException: 401 on authentication failure
    """
    if not authorization:
        raise HTTPException(status_code=401, detail="Unauthorized")

    session_id = verify_token(authorization, config.JWT_SECRET_KEY)
    if not session_id:
        raise HTTPException(status_code=401, detail="Unauthorized")

    return session_id


SessionIdDep = Annotated[str, Depends(verify_authorization)]


async def get_session(session_id: SessionIdDep, store: SessionStoreDep) -> AsyncIterator[Session]:
    """
    Load the caller's Session for the duration of one request.

    The (possibly renewed) Session is written back afterwards, last writer
    wins. A Session found expired is dropped from the store instead.
    """
    session = store.get_or_create(session_id)
    try:
        yield session
    finally:
        store.set(session)


SessionDep = Annotated[Session, Depends(get_session)]
