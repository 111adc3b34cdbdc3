from datetime import datetime, timedelta, timezone

import httpx

from services.relay.core.cookies import extract_renewed_cookie, parse_set_cookie

NOW = datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)


def test_expires_attribute_sets_expiry():
    cookie = parse_set_cookie(
        "Authorization=new-token; Expires=Wed, 04 Mar 2026 10:00:00 GMT; Path=/; HttpOnly",
        "Authorization",
    )

    assert cookie.value == "new-token"
    assert cookie.expires_at == datetime(2026, 3, 4, 10, 0, tzinfo=timezone.utc)


def test_max_age_wins_over_expires():
    cookie = parse_set_cookie(
        "Authorization=tok; Expires=Wed, 04 Mar 2026 10:00:00 GMT; Max-Age=60",
        "Authorization",
        now=NOW,
    )

    assert cookie.expires_at == NOW + timedelta(seconds=60)


def test_cookie_without_expiry_has_none():
    cookie = parse_set_cookie("Authorization=tok; Path=/", "Authorization")

    assert cookie.value == "tok"
    assert cookie.expires_at is None


def test_other_cookie_is_ignored():
    assert parse_set_cookie("XSRF-TOKEN=abc; Path=/", "Authorization") is None


def test_empty_value_is_not_a_renewal():
    assert parse_set_cookie("Authorization=; Max-Age=0", "Authorization") is None


def test_unparseable_expires_gives_no_expiry():
    cookie = parse_set_cookie("Authorization=tok; Expires=not-a-date", "Authorization")
    assert cookie.expires_at is None


def test_extract_from_response_picks_auth_cookie_among_many():
    response = httpx.Response(
        200,
        headers=[
            ("Set-Cookie", "XSRF-TOKEN=abc; Path=/"),
            ("Set-Cookie", "Authorization=renewed; Max-Age=3600"),
        ],
    )

    cookie = extract_renewed_cookie(response, "Authorization", now=NOW)

    assert cookie.value == "renewed"
    assert cookie.expires_at == NOW + timedelta(hours=1)


def test_extract_last_matching_cookie_wins():
    lines = ["Authorization=first; Max-Age=10", "Authorization=second; Max-Age=20"]

    cookie = extract_renewed_cookie(lines, "Authorization", now=NOW)

    assert cookie.value == "second"


def test_extract_without_set_cookie_returns_none():
    assert extract_renewed_cookie(httpx.Headers({"Content-Type": "text/plain"})) is None


def test_custom_cookie_name():
    cookie = extract_renewed_cookie(["session=xyz; Max-Age=5"], "session", now=NOW)
    assert cookie.value == "xyz"
