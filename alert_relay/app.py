"""FastAPI application receiving Alertmanager webhooks and queueing chat messages."""

import sys
from typing import Any, Dict

from fastapi import FastAPI, HTTPException, Request
from loguru import logger

from alert_relay import __version__
from alert_relay.decoder import decode
from alert_relay.errors import DecodeError
from alert_relay.formatter import format_alerts
from alert_relay.outbound import OutboundQueue
from alert_relay.templates import MessageTemplate

LOG_FORMAT = "{time:YYYY-MM-DDTHH:mm:ss.SSS}Z [{extra[service]}] {level}: {message}"


def configure_logging(level: str = "INFO") -> None:
    """Route loguru output to stdout in the service log format."""
    logger.remove()  # Remove default handler
    logger.add(sys.stdout, format=LOG_FORMAT, level=level)
    logger.configure(extra={"service": "alert-relay"})


def channel_from_path(path: str) -> str:
    """Return the first segment of a request path ("" for the root)."""
    return path.lstrip("/").split("/", 1)[0]


def create_app(
    template: MessageTemplate,
    queue: OutboundQueue,
    once: bool = False,
    channel_prefix: str = "",
) -> FastAPI:
    """Build the webhook application.

    Args:
        template: Compiled message template shared by all requests
        queue: Queue receiving the rendered messages
        once: Render one message per alert group instead of one per alert
        channel_prefix: Prefix added to the channel taken from the path

    Returns:
        The FastAPI application
    """
    app = FastAPI(title="Alert Relay", version=__version__)
    app.state.template = template
    app.state.queue = queue
    app.state.once = once
    app.state.channel_prefix = channel_prefix

    @app.get("/health")
    async def health() -> Dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    @app.post("/")
    @app.post("/{path:path}")
    async def alertmanager_webhook(request: Request) -> Dict[str, Any]:
        """Receive an Alertmanager notification and queue its messages.

        The first path segment names the destination channel.

        Returns:
            A summary of what was queued

        Raises:
            HTTPException: 404 without a channel, 422 for a malformed body
        """
        segment = channel_from_path(request.path_params.get("path", ""))
        if not segment:
            raise HTTPException(status_code=404, detail="No channel in request path")
        channel = f"{request.app.state.channel_prefix}{segment}"

        body = await request.body()
        try:
            payload = decode(body)
        except DecodeError as e:
            logger.warning(f"Rejected webhook for {channel}: {e}")
            raise HTTPException(status_code=422, detail=str(e))

        logger.info(
            f"Received webhook for {channel}: status={payload.status or 'unknown'} "
            f"alerts={len(payload.alerts)}"
        )

        messages = format_alerts(
            payload,
            channel,
            request.app.state.once,
            request.app.state.template,
        )
        for msg in messages:
            await request.app.state.queue.put(msg)

        return {
            "status": "success",
            "channel": channel,
            "alert_count": len(payload.alerts),
            "message_count": len(messages),
        }

    return app
