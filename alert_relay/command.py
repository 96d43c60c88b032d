"""Alert relay CLI commands - entrypoint."""

import asyncio
import signal
from pathlib import Path
from typing import Optional

import typer

from alert_relay import console
from alert_relay.app import configure_logging
from alert_relay.config import RelayConfig
from alert_relay.decoder import decode
from alert_relay.errors import ConfigError, DecodeError, TemplateCompileError
from alert_relay.formatter import format_alerts
from alert_relay.server import RelayServer
from alert_relay.templates import MessageTemplate

app = typer.Typer(help="Alert relay - forward Alertmanager webhooks to chat channels")


def _load_config(config_file: Optional[Path], **overrides) -> RelayConfig:
    if config_file is not None:
        config = RelayConfig.from_yaml(str(config_file))
    else:
        config = RelayConfig.from_env()
    return config.with_overrides(**overrides)


async def _run_server(server: RelayServer) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, server.stop)
        except NotImplementedError:  # Windows
            pass
    await server.run()


@app.command()
def serve(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML configuration file (overrides RELAY_* environment variables)",
    ),
    host: Optional[str] = typer.Option(
        None,
        "--host",
        help="Address to bind",
    ),
    port: Optional[int] = typer.Option(
        None,
        "--port",
        "-p",
        help="Port to bind",
    ),
    template: Optional[str] = typer.Option(
        None,
        "--template",
        "-t",
        help="Message template",
    ),
    once: Optional[bool] = typer.Option(
        None,
        "--once/--no-once",
        help="Send one message per alert group instead of one per alert",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Log level (DEBUG/INFO/WARNING/ERROR/CRITICAL)",
    ),
):
    """Run the relay: receive webhooks on POST /<channel> and deliver messages.

    Examples:

      # Run with settings from RELAY_* environment variables
      alert-relay serve

      # Run from a config file, one message per alert group
      alert-relay serve -c relay.yaml --once
    """
    try:
        config = _load_config(
            config_file,
            http_host=host,
            http_port=port,
            msg_template=template,
            msg_once=once,
            log_level=log_level,
        )
        server = RelayServer(config)
    except (ConfigError, TemplateCompileError) as e:
        console.print_error(str(e))
        raise typer.Exit(code=1)

    console.print_dim(f"Listening on {config.address}, mode={'group' if config.msg_once else 'per-alert'}")
    configure_logging(config.log_level)
    asyncio.run(_run_server(server))


@app.command()
def render(
    payload_file: Path = typer.Argument(
        ...,
        help="File holding an Alertmanager webhook JSON body",
    ),
    template: Optional[str] = typer.Option(
        None,
        "--template",
        "-t",
        help="Message template (defaults to the configured one)",
    ),
    once: Optional[bool] = typer.Option(
        None,
        "--once/--no-once",
        help="Render one message for the whole group",
    ),
    channel: str = typer.Option(
        "test",
        "--channel",
        help="Channel name to report",
    ),
):
    """Print the messages the relay would send for a payload file."""
    try:
        config = _load_config(None, msg_template=template, msg_once=once)
        compiled = MessageTemplate(config.msg_template)
        payload = decode(payload_file.read_bytes())
    except (ConfigError, TemplateCompileError, DecodeError, OSError) as e:
        console.print_error(str(e))
        raise typer.Exit(code=1)

    messages = format_alerts(payload, channel, config.msg_once, compiled)
    console.print_header(f"{len(messages)} message(s) for {channel}")
    for msg in messages:
        console.print_text(msg.alert)


@app.command()
def check_template(
    template: str = typer.Argument(..., help="Message template to compile"),
):
    """Check that a message template compiles."""
    try:
        MessageTemplate(template)
    except TemplateCompileError as e:
        console.print_error(str(e))
        raise typer.Exit(code=1)
    console.print_success("Template OK")
