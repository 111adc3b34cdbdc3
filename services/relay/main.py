"""
Repository Relay - server-side relay for a remote repository API

Holds each user's remote auth cookie, forwards authenticated reads and
writes, relays downloads as byte streams and serves paginated search.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Header, HTTPException, Query, Response

from .api.deps import RepositoryDep, SessionDep, SessionIdDep, SessionStoreDep, StreamRelayDep
from .config import config
from .core.logging_config import setup_logging
from .core.pagination import page_to_start, total_pages
from .core.security import create_access_token
from .exceptions import register_exception_handlers
from .lifecycle import manage_lifespan
from .middleware import request_id_middleware
from .models import (
    AuthenticationResult,
    PasswordUpdateRequest,
    ProfileUpdateRequest,
    SessionGrantRequest,
    SessionGrantResponse,
)
from .models.session import Session

# Logger setup
setup_logging()
logger = logging.getLogger("relay.main")


app = FastAPI(
    title="Repository Relay",
    version="1.0.0",
    lifespan=lambda app: manage_lifespan(app, config),
    root_path=config.root_path,
)

app.middleware("http")(request_id_middleware)
register_exception_handlers(app)


# ===========================================
# Session endpoints
# ===========================================


@app.post("/session", response_model=SessionGrantResponse)
async def register_session(
    grant: SessionGrantRequest, store: SessionStoreDep, x_api_key: Optional[str] = Header(None)
):
    """Store a remote auth cookie and hand back a token bound to its session."""
    if not x_api_key or x_api_key != config.X_API_KEY:
        logger.warning("Session registration failed. Invalid API Key received.")
        raise HTTPException(status_code=401, detail="Unauthorized")

    expires_at = grant.expires_at
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)

    session_id = grant.session_id or uuid.uuid4().hex
    store.set(
        Session(user_session_id=session_id, auth_cookie=grant.auth_cookie, expires_at=expires_at)
    )
    logger.info("Session registered", extra={"session_id": session_id})

    id_token = create_access_token(
        session_id=session_id,
        secret_key=config.JWT_SECRET_KEY,
        expires_delta=config.JWT_EXPIRES_DELTA,
    )
    return SessionGrantResponse(
        AuthenticationResult=AuthenticationResult(IdToken=id_token, SessionId=session_id)
    )


@app.delete("/session", status_code=204)
async def logout(session_id: SessionIdDep, store: SessionStoreDep):
    store.clear(session_id)
    return Response(status_code=204)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


# ===========================================
# Repository reads
# ===========================================


@app.get("/ping")
async def ping(session: SessionDep, repository: RepositoryDep):
    return (await repository.ping(session)).model_dump()


@app.get("/fs/{path:path}")
async def fetch_resource(path: str, session: SessionDep, repository: RepositoryDep):
    return (await repository.fetch_resource(session, path)).model_dump()


@app.get("/partners")
async def list_partners(session: SessionDep, repository: RepositoryDep):
    return (await repository.fetch_partners(session)).model_dump()


@app.get("/partners/{partner_id}")
async def get_partner(partner_id: str, session: SessionDep, repository: RepositoryDep):
    return (await repository.fetch_partner(session, partner_id)).model_dump()


@app.get("/partners/{partner_id}/collections")
async def list_partner_collections(
    partner_id: str, session: SessionDep, repository: RepositoryDep
):
    return (await repository.fetch_partner_collections(session, partner_id)).model_dump()


@app.get("/collections/{collection_id}")
async def get_collection(collection_id: str, session: SessionDep, repository: RepositoryDep):
    return (await repository.fetch_collection(session, collection_id)).model_dump()


# ===========================================
# Account settings
# ===========================================


@app.patch("/settings/profile")
async def update_profile(
    update: ProfileUpdateRequest, session: SessionDep, repository: RepositoryDep
):
    await repository.update_profile_name(session, session.user_session_id, update.name)
    return {"message": "Name updated successfully."}


@app.put("/settings/password")
async def update_password(
    change: PasswordUpdateRequest, session: SessionDep, repository: RepositoryDep
):
    await repository.update_password(session, change)
    return {"message": "Password updated successfully."}


# ===========================================
# Search
# ===========================================


@app.get("/search")
async def search(
    session: SessionDep,
    repository: RepositoryDep,
    term: str = Query(default=""),
    page: int = Query(default=1, ge=1),
    rows: int = Query(default=config.SEARCH_DEFAULT_ROWS, gt=0, le=config.SEARCH_MAX_ROWS),
):
    """
    Paginated search. ``page`` is 1-based; the offset sent upstream is
    derived from it and ``rows``.
    """
    start = page_to_start(page, rows)
    result = await repository.search(session, term.strip(), start, rows)
    envelope = result.data

    body = envelope.to_solr_response()
    body["pagination"] = {
        "page": page,
        "rows": rows,
        "start": start,
        "totalPages": total_pages(envelope.numFound, rows),
    }
    body["error"] = result.error.model_dump() if result.error else None
    return body


@app.get("/search/autocomplete")
async def autocomplete(
    session: SessionDep, repository: RepositoryDep, term: str = Query(default="")
):
    term = term.strip()
    if len(term) < config.AUTOCOMPLETE_MIN_CHARS:
        return []

    result = await repository.search(session, term, 0, config.SEARCH_DEFAULT_ROWS)
    if not result.ok:
        return []
    return [doc.model_dump() for doc in result.data.docs]


# ===========================================
# Downloads
# ===========================================


@app.get("/download/{path:path}")
async def download(path: str, session: SessionDep, relay: StreamRelayDep):
    return await relay.stream_download(session, path)


@app.get("/preview/{path:path}")
async def preview(path: str, session: SessionDep, relay: StreamRelayDep):
    return await relay.stream_download(session, path, inline=True)


if __name__ == "__main__":
    import uvicorn

    host, _, port = config.UVICORN_BIND_ADDR.rpartition(":")
    uvicorn.run(
        "services.relay.main:app",
        host=host or "0.0.0.0",
        port=int(port),
        workers=config.UVICORN_WORKERS,
    )
