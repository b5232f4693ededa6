"""Shared pytest fixtures."""

from datetime import UTC, datetime

import pytest
from factories import CHAPTERS, NOVEL_ID, OWNER_ID, Clock, make_config
from mongomock_motor import AsyncMongoMockClient

from inkthread.app import App
from inkthread.core.modules.access.models import Actor, Role

# Every module that stamps times with `now`
CLOCK_TARGETS = [
    "inkthread.app.now",
    "inkthread.core.modules.comment.service.now",
    "inkthread.core.modules.notification.service.now",
    "inkthread.core.modules.vote.service.now",
]


@pytest.fixture
def clock(monkeypatch):
    """Freeze time at a fixed instant; tests move it forward explicitly."""
    fake = Clock(datetime(2026, 3, 1, 12, 0, tzinfo=UTC))
    for target in CLOCK_TARGETS:
        monkeypatch.setattr(target, fake)
    return fake


@pytest.fixture
def config():
    """Configuration without the posting cooldown, so scenarios can post freely."""
    return make_config(cooldown_seconds=0)


@pytest.fixture
def database():
    return AsyncMongoMockClient()["inkthread_test"]


@pytest.fixture
async def app(config, database, clock):
    """Started App over an in-memory database, with one novel of three chapters registered."""
    app = App(config, database)
    async with app.lifespan():
        await app.register_content(NOVEL_ID, OWNER_ID, "The Long Night", CHAPTERS)
        yield app


@pytest.fixture
def alice():
    return Actor(id="alice", email_verified=True)


@pytest.fixture
def bob():
    return Actor(id="bob", email_verified=True)


@pytest.fixture
def owner():
    return Actor(id=OWNER_ID, email_verified=True)


@pytest.fixture
def moderator():
    return Actor(id="mod-1", role=Role.MODERATOR, email_verified=True)


@pytest.fixture
def unverified():
    return Actor(id="newcomer", email_verified=False)
