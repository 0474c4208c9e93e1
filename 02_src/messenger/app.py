"""Application bootstrap and lifecycle management."""

import os
from typing import Protocol

from .config import delivery_delay_seconds, resolve_db_path
from .directory import ChatDirectory
from .engine import DeliveryScheduler, MessagingEngine
from .fanout import Fanout
from .identity import IdentityStore
from .logging_config import get_logger
from .message_store import MessageStore
from .presence import PresenceRegistry, PresenceService
from .storage import IStorage, Storage
from .tracker import Tracker

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Reset data between test runs."""
        ...


class Application:
    """Main application bootstrap."""

    def __init__(self, db_path: str | None = None, delivery_delay: float | None = None):
        env_db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        self._db_path = resolve_db_path(env_db_path)
        self._delivery_delay = (
            delivery_delay if delivery_delay is not None else delivery_delay_seconds()
        )

        # Components (will be initialized in start())
        self._storage: IStorage | None = None
        self._registry: PresenceRegistry | None = None
        self._fanout: Fanout | None = None
        self._identity: IdentityStore | None = None
        self._directory: ChatDirectory | None = None
        self._messages: MessageStore | None = None
        self._tracker: Tracker | None = None
        self._delivery: DeliveryScheduler | None = None
        self._engine: MessagingEngine | None = None
        self._presence: PresenceService | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Storage (no dependencies)
        self._storage = Storage(self._db_path)
        await self._storage.init()
        logger.info("Storage initialized")

        # 2. Presence registry and fanout (process-local, no persistence)
        self._registry = PresenceRegistry()
        self._fanout = Fanout(self._registry)

        # 3. Storage-backed services
        self._identity = IdentityStore(self._storage)
        self._directory = ChatDirectory(self._storage)
        self._messages = MessageStore(self._storage)
        self._tracker = Tracker(self._storage)

        # 4. Engine and presence (depend on everything above)
        self._delivery = DeliveryScheduler(self._delivery_delay)
        self._engine = MessagingEngine(
            identity=self._identity,
            directory=self._directory,
            messages=self._messages,
            fanout=self._fanout,
            registry=self._registry,
            delivery=self._delivery,
            tracker=self._tracker,
        )
        self._presence = PresenceService(
            registry=self._registry,
            identity=self._identity,
            directory=self._directory,
            messages=self._messages,
            fanout=self._fanout,
            delivery=self._delivery,
            tracker=self._tracker,
        )
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._engine:
            await self._engine.stop()
        if self._fanout:
            await self._fanout.flush()
        if self._registry:
            await self._registry.close()
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Reset data between test runs."""
        if self._delivery:
            await self._delivery.close()
        if self._storage:
            await self._storage.clear()
            logger.info("Storage cleared")

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Application not started")
        return self._storage

    @property
    def engine(self) -> MessagingEngine:
        """Get messaging engine instance."""
        if not self._engine:
            raise RuntimeError("Application not started")
        return self._engine

    @property
    def presence(self) -> PresenceService:
        """Get presence service instance."""
        if not self._presence:
            raise RuntimeError("Application not started")
        return self._presence

    @property
    def registry(self) -> PresenceRegistry:
        """Get presence registry instance."""
        if not self._registry:
            raise RuntimeError("Application not started")
        return self._registry

    @property
    def tracker(self) -> Tracker:
        """Get tracker instance."""
        if not self._tracker:
            raise RuntimeError("Application not started")
        return self._tracker
