"""
Per-connection periodic status snapshot.

Each room WebSocket owns one pusher. It re-sends the resolved status of every
room on a fixed cadence so that a client which missed individual
``roomStatusUpdate`` events converges anyway. The task is cancelled
explicitly when the connection closes.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List

logger = logging.getLogger(__name__)

SnapshotProvider = Callable[[], Awaitable[List[dict]]]
Sender = Callable[[str, Any], Awaitable[Any]]

PERIODIC_STATUS_EVENT = "periodicStatusUpdate"


class PeriodicStatusPusher:

    def __init__(self, snapshot: SnapshotProvider, send: Sender, interval: float) -> None:
        if interval <= 0:
            raise ValueError("Push interval must be positive")
        self._snapshot = snapshot
        self._send = send
        self.interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="periodic-status-pusher")

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def push_once(self) -> None:
        rooms = await self._snapshot()
        await self._send(PERIODIC_STATUS_EVENT, rooms)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.push_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Error in periodic status update: {e}")
