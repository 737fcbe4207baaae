import pytest

from app.errors import SessionAlreadyCompleted, SessionNotFound
from app.session_store import SessionStore

from helpers import FakeClock


def test_create_allocates_fresh_session(store):
    sid = store.create("u1")
    st = store.get(sid)
    assert st is not None
    assert st.owner_id == "u1"
    assert st.completed is False
    assert st.players == []
    assert st.declared_player_count is None


def test_session_ids_are_unique_and_delimiter_free(store):
    ids = {store.create("u1") for _ in range(2000)}
    assert len(ids) == 2000
    assert all("|" not in sid for sid in ids)


def test_mutate_applies_update(store):
    sid = store.create("u1")
    store.mutate(sid, lambda s: setattr(s, "players", ["A", "B"]))
    assert store.get(sid).players == ["A", "B"]


def test_mutate_unknown_session_raises(store):
    with pytest.raises(SessionNotFound):
        store.mutate("deadbeef", lambda s: None)


def test_mutate_completed_session_raises(store):
    sid = store.create("u1")
    store.mutate(sid, lambda s: setattr(s, "completed", True))
    with pytest.raises(SessionAlreadyCompleted):
        store.mutate(sid, lambda s: setattr(s, "completed", False))
    assert store.get(sid).completed is True


def test_session_is_unreachable_after_ttl_even_before_sweep(store, clock):
    sid = store.create("u1")
    clock.advance(30 * 60 - 1)
    assert store.get(sid) is not None
    clock.advance(1)
    assert store.get(sid) is None
    assert len(store) == 1  # not physically removed yet


def test_sweep_removes_only_stale_sessions():
    clock = FakeClock()
    store = SessionStore(ttl_seconds=60, clock=clock)
    old = store.create("u1")
    clock.advance(45)
    fresh = store.create("u2")
    clock.advance(20)

    assert store.sweep() == 1
    assert store.get(old) is None
    assert store.get(fresh) is not None
    assert len(store) == 1


def test_sweep_accepts_explicit_now(store, clock):
    store.create("u1")
    assert store.sweep(now=clock.now + 10) == 0
    assert store.sweep(now=clock.now + 30 * 60) == 1


def test_lock_is_per_session(store):
    a = store.create("u1")
    b = store.create("u1")
    assert store.lock(a) is store.lock(a)
    assert store.lock(a) is not store.lock(b)


def test_active_count_ignores_expired_unswept_sessions(store, clock):
    store.create("u1")
    clock.advance(20 * 60)
    store.create("u2")
    assert store.active_count() == 2

    clock.advance(11 * 60)
    assert len(store) == 2
    assert store.active_count() == 1
