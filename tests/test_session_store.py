from __future__ import annotations

import fakeredis
import pytest

from globetrotter.core.errors import UsernameTakenError
from globetrotter.destinations.singleton import get_store
from globetrotter.session_store import SessionManager
from globetrotter.usernames import InMemoryUsernameRegistry, RedisUsernameRegistry


KEY = "globetrotter:username:ada"


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture()
def r() -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture()
def registry(r: fakeredis.FakeRedis) -> RedisUsernameRegistry:
    return RedisUsernameRegistry(r=r, ttl_seconds=60)


def test_live_session_keeps_its_name_after_the_claim_lapses(r, registry) -> None:
    sessions = SessionManager()
    first = sessions.create(username="ada", store=get_store(), registry=registry)
    r.delete(KEY)

    with pytest.raises(UsernameTakenError):
        sessions.create(username="Ada", store=get_store(), registry=registry)

    # Activity re-claims the lapsed key for the live session.
    sessions.touch(first, registry=registry)
    assert r.get(KEY) == str(first.session_id)


def test_closing_a_stale_session_keeps_the_new_owners_claim(r, registry) -> None:
    other = SessionManager()
    sessions = SessionManager()
    stale = other.create(username="ada", store=get_store(), registry=registry)
    r.delete(KEY)

    fresh = sessions.create(username="ada", store=get_store(), registry=registry)
    other.close(stale.session_id, registry=registry)

    assert r.get(KEY) == str(fresh.session_id)


def test_activity_refreshes_the_claim(r, registry) -> None:
    sessions = SessionManager()
    session = sessions.create(username="ada", store=get_store(), registry=registry)
    r.expire(KEY, 5)

    sessions.touch(session, registry=registry)

    assert r.ttl(KEY) > 5


def test_idle_sessions_are_swept() -> None:
    clock = FakeClock()
    registry = InMemoryUsernameRegistry()
    sessions = SessionManager(idle_seconds=60, clock=clock)
    session = sessions.create(username="ada", store=get_store(), registry=registry)
    rnd = session.start_round(run_timer=False)

    clock.now += 59
    assert sessions.get(session.session_id) is session
    assert sessions.sweep(registry=registry) == 0

    clock.now += 1
    assert sessions.get(session.session_id) is None
    assert sessions.sweep(registry=registry) == 1

    assert len(sessions) == 0
    assert rnd.countdown.cancelled
    assert not registry.is_taken("ada")


def test_touch_postpones_the_idle_sweep() -> None:
    clock = FakeClock()
    registry = InMemoryUsernameRegistry()
    sessions = SessionManager(idle_seconds=60, clock=clock)
    session = sessions.create(username="ada", store=get_store(), registry=registry)

    clock.now += 50
    sessions.touch(session, registry=registry)
    clock.now += 50

    assert sessions.sweep(registry=registry) == 0
    assert sessions.get(session.session_id) is session


def test_create_sweeps_idle_sessions_and_frees_their_names() -> None:
    clock = FakeClock()
    registry = InMemoryUsernameRegistry()
    sessions = SessionManager(idle_seconds=60, clock=clock)
    old = sessions.create(username="ada", store=get_store(), registry=registry)

    clock.now += 61
    new = sessions.create(username="ada", store=get_store(), registry=registry)

    assert new.session_id != old.session_id
    assert len(sessions) == 1
