"""Outbound consumer that drains the queue and hands messages to a sink.

Delivery is best effort: a sink failure is logged and the consumer moves on
to the next message. Nothing is retried or persisted.
"""

import asyncio
from typing import Optional, Protocol

import httpx
from loguru import logger

from alert_relay.models import AlertMsg
from alert_relay.outbound import OutboundQueue


class Sink(Protocol):
    """Anything that can deliver an AlertMsg."""

    async def send(self, msg: AlertMsg) -> None:
        ...

    async def close(self) -> None:
        ...


class LogSink:
    """Sink that writes messages to the log. Useful without a chat backend."""

    async def send(self, msg: AlertMsg) -> None:
        logger.info(f"[{msg.channel}] {msg.alert}")

    async def close(self) -> None:
        pass


class WebhookSink:
    """Sink that POSTs each message as JSON to a chat bridge webhook."""

    def __init__(self, url: str, timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None):
        """Initialize the sink.

        Args:
            url: Webhook URL receiving ``{"channel": ..., "text": ...}``
            timeout: HTTP timeout in seconds
            client: Optional preconfigured client (mainly for tests)
        """
        self.url = url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def send(self, msg: AlertMsg) -> None:
        """Deliver one message.

        Raises:
            httpx.HTTPError: If the request fails or returns an error status
        """
        response = await self._client.post(
            self.url,
            json={"channel": msg.channel, "text": msg.alert},
        )
        response.raise_for_status()
        logger.debug(f"Delivered message to {msg.channel} via {self.url}")

    async def close(self) -> None:
        await self._client.aclose()


class AlertMsgConsumer:
    """Background task draining an OutboundQueue into a Sink."""

    def __init__(self, queue: OutboundQueue, sink: Optional[Sink] = None):
        self.queue = queue
        self.sink = sink or LogSink()
        self.delivered = 0
        self.failed = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start draining the queue."""
        if self.running:
            logger.warning("Consumer is already running")
            return
        self._task = asyncio.create_task(self.run())
        logger.info(f"Consumer started with {type(self.sink).__name__}")

    async def stop(self) -> None:
        """Stop draining. Pending messages stay in the queue."""
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        await self.sink.close()
        logger.info(
            f"Consumer stopped: delivered={self.delivered} failed={self.failed} "
            f"pending={self.queue.qsize()}"
        )

    async def run(self) -> None:
        """Deliver messages until cancelled."""
        while True:
            msg = await self.queue.get()
            await self.deliver(msg)

    async def deliver(self, msg: AlertMsg) -> bool:
        """Hand one message to the sink.

        Returns:
            True if the sink accepted the message, False if it failed
        """
        try:
            await self.sink.send(msg)
        except Exception as e:
            self.failed += 1
            logger.error(f"Failed to deliver message to {msg.channel}: {e}")
            return False
        self.delivered += 1
        return True
