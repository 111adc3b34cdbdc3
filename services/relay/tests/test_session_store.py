from datetime import timedelta

from services.relay.models.session import RenewedCookie, Session, utcnow
from services.relay.services.session_store import SessionStore


def test_get_or_create_returns_blank_session():
    store = SessionStore()

    session = store.get_or_create("new")

    assert session.user_session_id == "new"
    assert session.auth_cookie is None
    assert session.is_expired()
    assert len(store) == 0


def test_store_hands_out_copies():
    store = SessionStore()
    store.set(Session("s1", auth_cookie="a", expires_at=utcnow() + timedelta(minutes=5)))

    loaded = store.get("s1")
    loaded.renew(RenewedCookie("b", utcnow() + timedelta(minutes=10)))

    assert store.get("s1").auth_cookie == "a"


def test_last_writer_wins():
    store = SessionStore()
    store.set(Session("s1", auth_cookie="a", expires_at=utcnow() + timedelta(minutes=5)))
    first = store.get("s1")
    second = store.get("s1")

    first.auth_cookie = "from-first"
    second.auth_cookie = "from-second"
    store.set(first)
    store.set(second)

    assert store.get("s1").auth_cookie == "from-second"


def test_clear_removes_session():
    store = SessionStore()
    store.set(Session("s1", auth_cookie="a", expires_at=utcnow() + timedelta(minutes=5)))

    store.clear("s1")
    store.clear("unknown")

    assert store.get("s1") is None
    assert len(store) == 0


def test_session_clear_and_renew():
    session = Session("s", auth_cookie="a", expires_at=utcnow())
    session.clear()
    assert session.auth_cookie is None
    assert session.expires_at is None

    session.renew(RenewedCookie("b"))
    assert session.auth_cookie == "b"
    assert session.is_expired()


def test_expired_sessions_are_not_kept():
    store = SessionStore()
    past = utcnow() - timedelta(seconds=1)

    for n in range(1000):
        store.set(Session(f"s{n}", auth_cookie="a", expires_at=past))

    assert len(store) == 0


def test_writing_an_expired_session_replaces_the_live_one():
    store = SessionStore()
    store.set(Session("s1", auth_cookie="a", expires_at=utcnow() + timedelta(minutes=5)))

    store.set(Session("s1", auth_cookie="a", expires_at=utcnow() - timedelta(seconds=1)))

    assert store.get("s1") is None


def test_prune_drops_sessions_that_expired_while_idle():
    store = SessionStore()
    now = utcnow()
    store.set(Session("short", auth_cookie="a", expires_at=now + timedelta(minutes=1)))
    store.set(Session("long", auth_cookie="b", expires_at=now + timedelta(hours=2)))

    removed = store.prune(now=now + timedelta(hours=1))

    assert removed == 1
    assert store.get("short") is None
    assert store.get("long").auth_cookie == "b"


def test_set_sweeps_idle_expired_sessions_when_due():
    store = SessionStore(prune_interval=0)
    store.set(Session("idle", auth_cookie="a", expires_at=utcnow() + timedelta(minutes=1)))
    # Simulate the idle session running out while nobody touched it.
    store._sessions["idle"].expires_at = utcnow() - timedelta(seconds=1)

    store.set(Session("active", auth_cookie="b", expires_at=utcnow() + timedelta(minutes=5)))

    assert store.get("idle") is None
    assert len(store) == 1
