"""SIM implementation - scripted two-user conversation over the HTTP API."""

import asyncio
import random
from typing import Protocol

import httpx

from messenger.logging_config import get_logger
from messenger.tracker import ITracker

logger = get_logger(__name__)

VIRTUAL_USERS = [
    {"id": "sim_alice", "phoneNumber": "+15550000001", "name": "Alice"},
    {"id": "sim_bob", "phoneNumber": "+15550000002", "name": "Bob"},
]

# (sender, recipient, text)
SCRIPT = [
    ("sim_alice", "sim_bob", "Hi Bob! Are you around?"),
    ("sim_bob", "sim_alice", "Hey Alice, yes"),
    ("sim_alice", "sim_bob", "Lunch at noon?"),
    ("sim_bob", "sim_alice", "Sounds good"),
]


class ISim(Protocol):
    """Generate test traffic through the public API."""

    async def start(self) -> None:
        """Start the scripted conversation."""
        ...

    async def stop(self) -> None:
        """Stop the conversation."""
        ...


class Sim:
    """SIM with a scripted conversation between two seeded users."""

    def __init__(
        self,
        api_url: str = "http://localhost:8000",
        tracker: ITracker | None = None,
        min_delay: float = 1.0,
        max_delay: float = 3.0,
        client: httpx.AsyncClient | None = None,
    ):
        self._api_url = api_url
        self._tracker = tracker
        self._min_delay = min_delay
        self._max_delay = max_delay
        self._running = False
        self._task: asyncio.Task | None = None
        self._client = client
        self._owns_client = client is None
        self.sent: list[dict] = []

    def set_tracker(self, tracker: ITracker) -> None:
        """Inject tracker for SIM trace events."""
        self._tracker = tracker

    @property
    def task(self) -> asyncio.Task | None:
        return self._task

    async def start(self) -> None:
        """Start the scripted conversation."""
        if self._running:
            return

        self._running = True
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self._api_url)

        # Start background task
        self._task = asyncio.create_task(self._run_scenario())

    async def stop(self) -> None:
        """Stop the conversation."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _run_scenario(self) -> None:
        try:
            if self._tracker:
                await self._tracker.track(
                    "sim_started", "sim", {"message_count": len(SCRIPT)}
                )

            await self._seed_users()
            for sender_id, recipient_id, text in SCRIPT:
                if not self._running:
                    break

                message = await self._send_message(sender_id, recipient_id, text)
                if message:
                    # The recipient opens the chat, which marks the message read.
                    await self._read_history(recipient_id, sender_id)

                await asyncio.sleep(random.uniform(self._min_delay, self._max_delay))

        except asyncio.CancelledError:
            pass
        except httpx.HTTPError as e:
            logger.error("SIM scenario error: %s", e)
        finally:
            self._running = False
            if self._tracker:
                await self._tracker.track(
                    "sim_completed", "sim", {"message_count": len(self.sent)}
                )

    async def _seed_users(self) -> None:
        response = await self._client.post(
            "/api/control/users", json=VIRTUAL_USERS, timeout=10.0
        )
        response.raise_for_status()

    async def _send_message(self, sender_id: str, recipient_id: str, text: str) -> dict | None:
        """Send a message via HTTP API."""
        response = await self._client.post(
            "/api/chat/send",
            json={"recipientId": recipient_id, "text": text, "type": "text"},
            headers={"X-User-Id": sender_id},
            timeout=10.0,
        )
        if response.status_code != 201:
            logger.error("SIM: HTTP %s: %s", response.status_code, response.text)
            return None

        message = response.json()
        self.sent.append(message)
        logger.info("SIM: %s -> %s: %s", sender_id, recipient_id, text)
        return message

    async def _read_history(self, reader_id: str, other_user_id: str) -> None:
        response = await self._client.get(
            f"/api/chat/{other_user_id}",
            headers={"X-User-Id": reader_id},
            timeout=10.0,
        )
        response.raise_for_status()
        logger.info("SIM: %s read %d messages", reader_id, len(response.json()))
