from datetime import datetime, timedelta, timezone

import pytest

from services.relay.core.auth_guard import ensure_valid
from services.relay.core.exceptions import SessionExpired
from services.relay.models.session import Session

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_future_expiry_passes():
    session = Session("s", auth_cookie="c", expires_at=NOW + timedelta(seconds=1))
    ensure_valid(session, now=NOW)


def test_past_expiry_raises():
    session = Session("s", auth_cookie="c", expires_at=NOW - timedelta(seconds=1))
    with pytest.raises(SessionExpired) as exc:
        ensure_valid(session, now=NOW)
    assert exc.value.kind == "session_expired"


def test_missing_expiry_counts_as_expired():
    with pytest.raises(SessionExpired):
        ensure_valid(Session("s", auth_cookie="c"), now=NOW)


def test_expiry_equal_to_now_is_still_valid():
    ensure_valid(Session("s", auth_cookie="c", expires_at=NOW), now=NOW)
