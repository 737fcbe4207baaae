import pytest

from app.router import InteractionRouter
from app.session_store import SessionStore
from app.workflow import GameEntryWorkflow

from helpers import SCORING_CHANNEL, FakeClock, FakePersister, FakePublisher


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return SessionStore(ttl_seconds=30 * 60, clock=clock)


@pytest.fixture
def persister():
    return FakePersister()


@pytest.fixture
def publisher():
    return FakePublisher()


@pytest.fixture
def workflow(store, persister, publisher):
    return GameEntryWorkflow(
        store=store,
        persister=persister,
        publisher=publisher,
        scoring_channel_id=SCORING_CHANNEL,
        min_players=2,
        max_players=6,
        score_min=0,
        score_max=99,
    )


@pytest.fixture
def router(workflow):
    return InteractionRouter(workflow)
