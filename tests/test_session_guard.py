import pytest

from app.errors import SessionAlreadyCompleted, SessionNotFound, SessionOwnerMismatch
from app.session_guard import SessionGuard


def test_owner_passes(store):
    sid = store.create("u1")
    assert SessionGuard(store).validate(sid, "u1").session_id == sid


def test_unknown_session_is_not_found(store):
    with pytest.raises(SessionNotFound):
        SessionGuard(store).validate("abc", "u1")


def test_expired_session_is_not_found(store, clock):
    sid = store.create("u1")
    clock.advance(30 * 60)
    with pytest.raises(SessionNotFound):
        SessionGuard(store).validate(sid, "u1")


def test_completed_is_reported_before_owner_mismatch(store):
    sid = store.create("u1")
    store.mutate(sid, lambda s: setattr(s, "completed", True))
    with pytest.raises(SessionAlreadyCompleted):
        SessionGuard(store).validate(sid, "someone-else")


def test_other_actor_is_rejected(store):
    sid = store.create("u1")
    with pytest.raises(SessionOwnerMismatch):
        SessionGuard(store).validate(sid, "u2")


def test_check_returns_reason_instead_of_raising(store):
    sid = store.create("u1")
    guard = SessionGuard(store)
    assert guard.check(sid, "u1") is None
    err = guard.check(sid, "u2")
    assert isinstance(err, SessionOwnerMismatch)
    assert err.reason == "owner_mismatch"
