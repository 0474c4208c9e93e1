"""Realtime fanout to per-user channels."""

import asyncio
from typing import Any, Iterable, Protocol

from ..errors import DeliveryError
from ..logging_config import get_logger
from ..models import Event

logger = get_logger(__name__)


class IConnection(Protocol):
    """A realtime connection able to receive JSON frames."""

    async def send_json(self, data: Any) -> None:
        """Send one JSON-serializable frame."""
        ...


class IChannels(Protocol):
    """Lookup of the live connections addressed by a user id."""

    def connections(self, user_id: str) -> list[IConnection]:
        """Snapshot of the user's live connections."""
        ...


class IFanout(Protocol):
    """Publishes events to the channel addressed by a user id."""

    def publish(self, user_id: str, event: Event, payload: dict) -> None:
        """Schedule delivery to every live connection of the user. Never blocks."""
        ...

    def publish_many(self, user_ids: Iterable[str], event: Event, payload: dict) -> None:
        """Publish the same event to several channels."""
        ...

    async def flush(self) -> None:
        """Wait for in-flight deliveries."""
        ...


class Fanout:
    """Fire-and-forget fanout over the presence registry."""

    def __init__(self, registry: IChannels):
        self._registry = registry
        self._pending: set[asyncio.Task] = set()

    def publish(self, user_id: str, event: Event, payload: dict) -> None:
        connections = self._registry.connections(user_id)
        if not connections:
            # Offline users catch up through history; nothing is queued.
            logger.debug("No live channel for %s, dropping %s", user_id, event.value)
            return

        frame = {"event": event.value, "data": payload}
        task = asyncio.create_task(self._deliver(user_id, connections, frame))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def publish_many(self, user_ids: Iterable[str], event: Event, payload: dict) -> None:
        for user_id in dict.fromkeys(user_ids):
            self.publish(user_id, event, payload)

    async def flush(self) -> None:
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _deliver(
        self, user_id: str, connections: list[IConnection], frame: dict
    ) -> None:
        results = await asyncio.gather(
            *[self._send(connection, frame) for connection in connections],
            return_exceptions=True,
        )

        for result in results:
            if isinstance(result, DeliveryError):
                logger.warning(
                    "Failed to deliver %s to %s: %s", frame["event"], user_id, result
                )
            elif isinstance(result, Exception):
                logger.error("Error delivering %s to %s: %s", frame["event"], user_id, result)

    @staticmethod
    async def _send(connection: IConnection, frame: dict) -> None:
        try:
            await connection.send_json(frame)
        except Exception as exc:
            raise DeliveryError(f"Channel unavailable: {exc}") from exc
