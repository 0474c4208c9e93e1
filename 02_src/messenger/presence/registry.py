"""Presence registry: user id -> live connections."""

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol

from ..fanout.fanout import IConnection
from ..logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class Session:
    """One registered connection of a user."""

    user_id: str
    connection: IConnection
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class IPresenceRegistry(Protocol):
    """Process-local map of users to their live sessions."""

    async def register(self, user_id: str, connection: IConnection) -> tuple[Session, bool]:
        """Add a session. Returns it and whether the user just came online."""
        ...

    async def unregister(self, session: Session) -> tuple[bool, bool]:
        """Remove a session. Returns (removed, user went offline)."""
        ...

    def connections(self, user_id: str) -> list[IConnection]:
        """Snapshot of the user's live connections."""
        ...

    def is_online(self, user_id: str) -> bool:
        """Whether the user has at least one live session."""
        ...

    def online_users(self) -> set[str]:
        """All users with a live session."""
        ...

    async def close(self) -> None:
        """Drop every session."""
        ...


class PresenceRegistry:
    """In-memory presence registry guarded by an asyncio lock."""

    def __init__(self):
        self._sessions: dict[str, dict[str, Session]] = {}
        self._lock = asyncio.Lock()

    async def register(self, user_id: str, connection: IConnection) -> tuple[Session, bool]:
        session = Session(user_id=user_id, connection=connection)
        async with self._lock:
            sessions = self._sessions.setdefault(user_id, {})
            came_online = not sessions
            sessions[session.id] = session
        logger.debug("Registered session %s for %s", session.id, user_id)
        return session, came_online

    async def unregister(self, session: Session) -> tuple[bool, bool]:
        """Remove a session. Returns (removed, user went offline).

        Only the given session is removed. A stale disconnect for a session
        that was already replaced or removed changes nothing.
        """
        async with self._lock:
            sessions = self._sessions.get(session.user_id)
            if not sessions or sessions.get(session.id) is not session:
                return False, False
            del sessions[session.id]
            went_offline = not sessions
            if went_offline:
                del self._sessions[session.user_id]
        logger.debug("Unregistered session %s for %s", session.id, session.user_id)
        return True, went_offline

    def connections(self, user_id: str) -> list[IConnection]:
        return [s.connection for s in self._sessions.get(user_id, {}).values()]

    def is_online(self, user_id: str) -> bool:
        return bool(self._sessions.get(user_id))

    def online_users(self) -> set[str]:
        return set(self._sessions)

    async def close(self) -> None:
        async with self._lock:
            self._sessions.clear()
