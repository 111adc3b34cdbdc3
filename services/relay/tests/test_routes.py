from datetime import timedelta

import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from services.relay.config import config
from services.relay.core.security import create_access_token
from services.relay.main import app
from services.relay.models.session import Session, utcnow
from services.relay.services.session_store import SessionStore

REMOTE = "https://api.example.test/v1"


@pytest.fixture
def store():
    store = SessionStore()
    app.state.session_store = store
    yield store
    app.state.session_store = None


@pytest.fixture
def client(store):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def auth_headers(store):
    store.set(
        Session(
            user_session_id="sess-1",
            auth_cookie="cookie-value",
            expires_at=utcnow() + timedelta(hours=1),
        )
    )
    token = create_access_token("sess-1", config.JWT_SECRET_KEY, expires_delta=60)
    return {"Authorization": f"Bearer {token}"}


def test_health_needs_no_auth(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["X-Request-Id"]


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-Id": "trace-me"})
    assert response.headers["X-Request-Id"] == "trace-me"


def test_register_session_requires_api_key(client):
    response = client.post(
        "/session", json={"auth_cookie": "c", "expires_at": "2100-01-01T00:00:00Z"}
    )
    assert response.status_code == 401


def test_register_session_returns_usable_token(client, store):
    response = client.post(
        "/session",
        json={"session_id": "abc", "auth_cookie": "c", "expires_at": "2100-01-01T00:00:00"},
        headers={"x-api-key": "test-api-key"},
    )

    assert response.status_code == 200
    result = response.json()["AuthenticationResult"]
    assert result["SessionId"] == "abc"
    saved = store.get("abc")
    assert saved.auth_cookie == "c"
    assert saved.expires_at.tzinfo is not None


def test_routes_require_bearer_token(client):
    assert client.get("/partners").status_code == 401
    assert client.get("/partners", headers={"Authorization": "Bearer junk"}).status_code == 401


@respx.mock
def test_partners_route_returns_fetch_result(client, auth_headers):
    respx.get(f"{REMOTE}/partners").mock(return_value=httpx.Response(200, json=[{"id": "p1"}]))

    response = client.get("/partners", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"data": [{"id": "p1"}], "error": None}


@respx.mock
def test_renewed_cookie_is_persisted(client, auth_headers, store):
    respx.get(f"{REMOTE}/ping").mock(
        return_value=httpx.Response(
            200, json={}, headers={"Set-Cookie": "Authorization=rotated; Max-Age=600"}
        )
    )

    client.get("/ping", headers=auth_headers)

    assert store.get("sess-1").auth_cookie == "rotated"


@respx.mock(assert_all_called=False)
def test_expired_session_is_dropped(client, auth_headers, store):
    route = respx.get(f"{REMOTE}/ping").mock(return_value=httpx.Response(200, json={}))
    # The stored session ran out since the token was issued.
    store._sessions["sess-1"].expires_at = utcnow() - timedelta(seconds=1)

    response = client.get("/ping", headers=auth_headers)

    assert response.json()["error"]["kind"] == "session_expired"
    assert route.call_count == 0
    assert store.get("sess-1") is None


def test_blank_resource_path_is_not_found(client, auth_headers):
    response = client.get("/fs/%20", headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["detail"] == "invalid_path"


@respx.mock
def test_search_route_adds_pagination(client, auth_headers):
    route = respx.get(f"{REMOTE}/search").mock(
        return_value=httpx.Response(
            200,
            json={"response": {"numFound": 25, "start": 10, "docs": [{"match_context": "cat"}]}},
        )
    )

    response = client.get("/search", params={"term": "cat", "page": 2}, headers=auth_headers)

    body = response.json()
    assert route.calls.last.request.url.params["start"] == "10"
    assert body["response"]["numFound"] == 25
    assert body["pagination"] == {"page": 2, "rows": 10, "start": 10, "totalPages": 3}
    assert body["error"] is None


def test_search_rejects_oversized_rows(client, auth_headers):
    response = client.get(
        "/search", params={"term": "cat", "rows": config.SEARCH_MAX_ROWS + 1}, headers=auth_headers
    )
    assert response.status_code == 422


@respx.mock(assert_all_called=False)
def test_autocomplete_short_term_is_empty(client, auth_headers):
    route = respx.get(f"{REMOTE}/search").mock(return_value=httpx.Response(200, json={}))

    response = client.get("/search/autocomplete", params={"term": "c"}, headers=auth_headers)

    assert response.json() == []
    assert route.call_count == 0


@respx.mock
def test_autocomplete_returns_docs(client, auth_headers):
    respx.get(f"{REMOTE}/search").mock(
        return_value=httpx.Response(
            200, json={"response": {"numFound": 1, "docs": [{"match_context": "catalog"}]}}
        )
    )

    response = client.get("/search/autocomplete", params={"term": "cat"}, headers=auth_headers)

    docs = response.json()
    assert len(docs) == 1
    assert "<em" in docs[0]["match_context"]


@respx.mock
def test_password_rejection_maps_to_422(client, auth_headers):
    respx.patch(f"{REMOTE}/users").mock(
        return_value=httpx.Response(200, json={"error": "wrong password"})
    )

    response = client.put(
        "/settings/password",
        json={"current_password": "a", "password": "b", "password_confirmation": "b"},
        headers=auth_headers,
    )

    assert response.status_code == 422
    assert response.json() == {"message": "wrong password", "detail": "request_rejected"}


def test_password_confirmation_mismatch_is_validation_error(client, auth_headers):
    response = client.put(
        "/settings/password",
        json={"current_password": "a", "password": "b", "password_confirmation": "c"},
        headers=auth_headers,
    )
    assert response.status_code == 422


@respx.mock
def test_profile_update_failure_maps_to_502(client, auth_headers):
    respx.patch(f"{REMOTE}/users").mock(return_value=httpx.Response(500))

    response = client.patch("/settings/profile", json={"name": "Ada"}, headers=auth_headers)

    assert response.status_code == 502


@respx.mock
def test_download_route_streams(client, auth_headers):
    respx.get(f"{REMOTE}/fs/a.txt").mock(return_value=httpx.Response(200, content=b"hello"))

    response = client.get("/download/fs/a.txt", headers=auth_headers)

    assert response.status_code == 200
    assert response.content == b"hello"
    assert response.headers["content-disposition"] == 'attachment; filename="a.txt"'


def test_logout_clears_session(client, auth_headers, store):
    response = client.delete("/session", headers=auth_headers)

    assert response.status_code == 204
    assert store.get("sess-1") is None
