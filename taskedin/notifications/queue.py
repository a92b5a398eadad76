"""In-process notification queue and its background delivery worker.

Lifecycle operations enqueue after their transaction commits; the worker
drains the queue and hands each item to a sink. A failing sink is logged
and never reaches the producer.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from taskedin.common.constants import NotificationType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationItem:
    user_id: uuid.UUID
    subject: str
    body: str
    kind: NotificationType = NotificationType.info


NotificationSink = Callable[[NotificationItem], Awaitable[None]]


class NotificationQueue:
    """Fire-and-forget producer side: ``enqueue`` never blocks."""

    def __init__(self, maxsize: int = 0) -> None:
        self._queue: asyncio.Queue[NotificationItem] = asyncio.Queue(maxsize=maxsize)

    def enqueue(
        self,
        user_id: uuid.UUID,
        subject: str,
        body: str,
        kind: NotificationType = NotificationType.info,
    ) -> None:
        item = NotificationItem(user_id=user_id, subject=subject, body=body, kind=kind)
        try:
            self._queue.put_nowait(item)
        except asyncio.QueueFull:
            logger.warning(
                "Notification queue full; dropping %r for user %s", subject, user_id,
            )

    async def dequeue(self) -> NotificationItem:
        return await self._queue.get()

    def task_done(self) -> None:
        self._queue.task_done()

    def drain(self) -> list[NotificationItem]:
        """Pop everything currently queued without waiting."""
        items: list[NotificationItem] = []
        while True:
            try:
                items.append(self._queue.get_nowait())
            except asyncio.QueueEmpty:
                return items
            self._queue.task_done()

    async def join(self) -> None:
        await self._queue.join()

    def qsize(self) -> int:
        return self._queue.qsize()


class NotificationWorker:
    """Consumes a ``NotificationQueue`` on a background task."""

    def __init__(self, queue: NotificationQueue, sink: NotificationSink) -> None:
        self.queue = queue
        self.sink = sink
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name="notification-worker")
            logger.info("Notification worker started")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Notification worker stopped")

    async def _run(self) -> None:
        while True:
            item = await self.queue.dequeue()
            try:
                await self.sink(item)
            except Exception:
                logger.exception(
                    "Failed to deliver notification %r to user %s",
                    item.subject, item.user_id,
                )
            finally:
                self.queue.task_done()
