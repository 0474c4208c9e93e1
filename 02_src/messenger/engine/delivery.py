"""Best-effort delivered-status upgrades as cancellable scheduled tasks."""

import asyncio
from typing import Awaitable, Callable

from ..logging_config import get_logger

logger = get_logger(__name__)


DeliveryCallback = Callable[[], Awaitable[None]]


class DeliveryScheduler:
    """Runs a callback shortly after send, tied to the recipient's presence.

    Tasks are grouped by recipient so the recipient going offline cancels
    every pending upgrade for them. A cancelled upgrade is a no-op; the
    message stays at ``sent`` until the recipient reads it.
    """

    def __init__(self, delay: float):
        self._delay = delay
        self._tasks: dict[str, set[asyncio.Task]] = {}

    def schedule(self, recipient_id: str, callback: DeliveryCallback) -> asyncio.Task:
        task = asyncio.create_task(self._run(callback))
        tasks = self._tasks.setdefault(recipient_id, set())
        tasks.add(task)
        task.add_done_callback(lambda t: self._forget(recipient_id, t))
        return task

    def pending(self, recipient_id: str) -> int:
        return len(self._tasks.get(recipient_id, ()))

    def cancel_for(self, recipient_id: str) -> int:
        """Cancel every pending upgrade for a recipient."""
        tasks = self._tasks.pop(recipient_id, set())
        for task in tasks:
            task.cancel()
        if tasks:
            logger.debug("Cancelled %s delivery upgrades for %s", len(tasks), recipient_id)
        return len(tasks)

    async def flush(self) -> None:
        """Wait for pending upgrades to run."""
        while self._tasks:
            tasks = [task for group in self._tasks.values() for task in group]
            await asyncio.gather(*tasks, return_exceptions=True)

    async def close(self) -> None:
        """Cancel everything and wait for the tasks to finish."""
        tasks = [task for group in self._tasks.values() for task in group]
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _run(self, callback: DeliveryCallback) -> None:
        await asyncio.sleep(self._delay)
        try:
            await callback()
        except Exception as e:
            logger.error("Delivery upgrade failed: %s", e, exc_info=True)

    def _forget(self, recipient_id: str, task: asyncio.Task) -> None:
        tasks = self._tasks.get(recipient_id)
        if tasks is None:
            return
        tasks.discard(task)
        if not tasks:
            del self._tasks[recipient_id]
