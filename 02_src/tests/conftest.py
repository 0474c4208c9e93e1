"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from typing import Any, Iterable

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from messenger.models import Event, LastSeenVisibility, User  # noqa: E402


class FakeConnection:
    """Connection double that records frames, or fails on demand."""

    def __init__(self, fail: bool = False):
        self.frames: list[dict] = []
        self.fail = fail

    async def send_json(self, data: Any) -> None:
        if self.fail:
            raise ConnectionResetError("socket closed")
        self.frames.append(data)

    def events(self, name: str | None = None) -> list[dict]:
        return [f["data"] for f in self.frames if name is None or f["event"] == name]


class RecordingFanout:
    """Fanout double that records publishes synchronously."""

    def __init__(self):
        self.published: list[tuple[str, Event, dict]] = []

    def publish(self, user_id: str, event: Event, payload: dict) -> None:
        self.published.append((user_id, event, payload))

    def publish_many(self, user_ids: Iterable[str], event: Event, payload: dict) -> None:
        for user_id in dict.fromkeys(user_ids):
            self.publish(user_id, event, payload)

    async def flush(self) -> None:
        pass

    def to(self, user_id: str, event: Event | None = None) -> list[dict]:
        """Payloads published to one user, optionally of one event."""
        return [
            payload
            for uid, ev, payload in self.published
            if uid == user_id and (event is None or ev == event)
        ]

    def clear(self) -> None:
        self.published.clear()


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from messenger.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest_asyncio.fixture
async def users(storage):
    """Seed alice, bob and carol."""
    seeded = {
        "alice": User(id="alice", phone_number="+15550001", name="Alice"),
        "bob": User(id="bob", phone_number="+15550002", name="Bob"),
        "carol": User(
            id="carol",
            phone_number="+15550003",
            name="Carol",
            last_seen_visibility=LastSeenVisibility.NOBODY,
        ),
    }
    for user in seeded.values():
        await storage.save_user(user)
    return seeded


@pytest.fixture
def identity(storage):
    from messenger.identity import IdentityStore

    return IdentityStore(storage)


@pytest.fixture
def directory(storage):
    from messenger.directory import ChatDirectory

    return ChatDirectory(storage)


@pytest.fixture
def message_store(storage):
    from messenger.message_store import MessageStore

    return MessageStore(storage)


@pytest.fixture
def tracker(storage):
    from messenger.tracker import Tracker

    return Tracker(storage)


@pytest.fixture
def registry():
    from messenger.presence import PresenceRegistry

    return PresenceRegistry()


@pytest.fixture
def fanout():
    """Recording fanout for engine and presence tests."""
    return RecordingFanout()


@pytest.fixture
def make_connection():
    """Factory for fake realtime connections."""
    return FakeConnection


@pytest_asyncio.fixture
async def delivery():
    from messenger.engine import DeliveryScheduler

    scheduler = DeliveryScheduler(0.01)
    yield scheduler
    await scheduler.close()


@pytest.fixture
def engine(identity, directory, message_store, fanout, registry, delivery, tracker, users):
    """MessagingEngine over in-memory storage with seeded users."""
    from messenger.engine import MessagingEngine

    return MessagingEngine(
        identity=identity,
        directory=directory,
        messages=message_store,
        fanout=fanout,
        registry=registry,
        delivery=delivery,
        tracker=tracker,
    )


@pytest.fixture
def presence(identity, directory, message_store, fanout, registry, delivery, tracker, users):
    """PresenceService sharing the engine's registry and fanout."""
    from messenger.presence import PresenceService

    return PresenceService(
        registry=registry,
        identity=identity,
        directory=directory,
        messages=message_store,
        fanout=fanout,
        delivery=delivery,
        tracker=tracker,
    )
