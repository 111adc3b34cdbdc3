import os
from datetime import timedelta

import pytest

# Config is initialized at import time, so set env vars at module top level.
# JWT_SECRET_KEY must be at least 32 characters.
os.environ["REMOTE_API_ENDPOINT"] = "https://api.example.test/v1"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-must-be-at-least-32-chars"
os.environ["X_API_KEY"] = "test-api-key"
os.environ["DISABLE_VICTORIALOGS"] = "1"

from services.relay.config import RelayConfig  # noqa: E402
from services.relay.models.session import Session, utcnow  # noqa: E402


@pytest.fixture
def relay_config():
    return RelayConfig(
        REMOTE_API_ENDPOINT="https://api.example.test/v1",
        JWT_SECRET_KEY="test-secret-key-must-be-at-least-32-chars",
        X_API_KEY="test-api-key",
    )


@pytest.fixture
def session():
    return Session(
        user_session_id="sess-1",
        auth_cookie="cookie-value",
        expires_at=utcnow() + timedelta(hours=1),
    )


@pytest.fixture
def expired_session():
    return Session(
        user_session_id="sess-expired",
        auth_cookie="cookie-value",
        expires_at=utcnow() - timedelta(seconds=1),
    )
