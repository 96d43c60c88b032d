"""Bounded hand-off queue between the webhook endpoint and delivery."""

import asyncio

from alert_relay.models import AlertMsg

DEFAULT_QUEUE_SIZE = 100


class OutboundQueue:
    """Fixed-capacity FIFO of AlertMsg values.

    ``put`` waits while the queue is full, so a stalled consumer slows
    webhook requests down instead of losing messages.
    """

    def __init__(self, maxsize: int = DEFAULT_QUEUE_SIZE):
        """Create the queue.

        Args:
            maxsize: Maximum number of pending messages (must be positive)

        Raises:
            ValueError: If maxsize is not positive
        """
        if maxsize < 1:
            raise ValueError("Queue size must be at least 1")
        self.maxsize = maxsize
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

    async def put(self, msg: AlertMsg) -> None:
        """Enqueue a message, waiting for room if the queue is full."""
        await self._queue.put(msg)

    async def get(self) -> AlertMsg:
        """Dequeue the oldest message, waiting if the queue is empty."""
        msg = await self._queue.get()
        self._queue.task_done()
        return msg

    def get_nowait(self) -> AlertMsg:
        """Dequeue the oldest message.

        Raises:
            asyncio.QueueEmpty: If no message is pending
        """
        msg = self._queue.get_nowait()
        self._queue.task_done()
        return msg

    def qsize(self) -> int:
        return self._queue.qsize()

    def empty(self) -> bool:
        return self._queue.empty()

    def full(self) -> bool:
        return self._queue.full()
