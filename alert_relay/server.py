"""Relay server wiring: template, queue, webhook app, consumer and listener."""

from typing import Awaitable, Callable, Optional

import uvicorn
from fastapi import FastAPI
from loguru import logger

from alert_relay.app import create_app
from alert_relay.config import RelayConfig
from alert_relay.delivery import AlertMsgConsumer, LogSink, Sink, WebhookSink
from alert_relay.outbound import OutboundQueue
from alert_relay.templates import MessageTemplate

ServeFunc = Callable[[str, FastAPI], Awaitable[None]]


def build_sink(config: RelayConfig) -> Sink:
    """Pick the delivery sink for a configuration."""
    if config.delivery_url:
        return WebhookSink(config.delivery_url, timeout=config.delivery_timeout)
    return LogSink()


class RelayServer:
    """Runs the webhook listener together with the outbound consumer."""

    def __init__(
        self,
        config: RelayConfig,
        serve: Optional[ServeFunc] = None,
        sink: Optional[Sink] = None,
    ):
        """Build every component of the relay.

        Args:
            config: Relay configuration
            serve: Coroutine ``serve(address, app)`` that listens until told
                to stop. Defaults to a uvicorn listener.
            sink: Delivery sink, defaults to one chosen from the config

        Raises:
            TemplateCompileError: If the configured template is invalid
        """
        self.config = config
        self.template = MessageTemplate(config.msg_template)
        self.queue = OutboundQueue(config.queue_size)
        self.app = create_app(
            self.template,
            self.queue,
            once=config.msg_once,
            channel_prefix=config.channel_prefix,
        )
        self.consumer = AlertMsgConsumer(self.queue, sink or build_sink(config))
        self._serve = serve or self._serve_uvicorn
        self._uvicorn: Optional[uvicorn.Server] = None

    async def run(self) -> None:
        """Serve until the listener returns, then stop the consumer."""
        logger.info(
            f"Alert relay starting on {self.config.address} "
            f"(once={self.config.msg_once}, queue_size={self.config.queue_size})"
        )
        await self.consumer.start()
        try:
            await self._serve(self.config.address, self.app)
        finally:
            await self.consumer.stop()
            logger.info("Alert relay stopped")

    def stop(self) -> None:
        """Ask the default listener to stop accepting requests."""
        if self._uvicorn is not None:
            self._uvicorn.should_exit = True

    async def _serve_uvicorn(self, address: str, app: FastAPI) -> None:
        host, _, port = address.rpartition(":")
        config = uvicorn.Config(
            app,
            host=host,
            port=int(port),
            log_level=self.config.log_level.lower(),
        )
        self._uvicorn = uvicorn.Server(config)
        await self._uvicorn.serve()
