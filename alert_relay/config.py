"""Relay configuration loaded from the environment and an optional YAML file.

Environment variables use the ``RELAY_`` prefix followed by the upper-cased
field name:

    export RELAY_HTTP_PORT=8000
    export RELAY_MSG_TEMPLATE="Alert {{ .Labels.alertname }} is {{ .Status }}"
    export RELAY_MSG_ONCE=true
    export RELAY_DELIVERY_URL="http://chat-bridge:8080/send"

A YAML file holds the same keys in lower case and takes precedence over the
environment. CLI options take precedence over both.
"""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from loguru import logger
from pydantic import BaseModel, Field, ValidationError, field_validator

from alert_relay.errors import ConfigError
from alert_relay.outbound import DEFAULT_QUEUE_SIZE

ENV_PREFIX = "RELAY_"
DEFAULT_TEMPLATE = "Alert {{ Labels.alertname }} on {{ Labels.instance }} is {{ Status }}"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class RelayConfig(BaseModel):
    """Alert relay configuration. Read once at startup, never reloaded."""

    http_host: str = Field(
        default="0.0.0.0",
        description="Address the HTTP listener binds to"
    )
    http_port: int = Field(
        default=8000,
        description="Port the HTTP listener binds to",
        ge=1,
        le=65535
    )
    msg_template: str = Field(
        default=DEFAULT_TEMPLATE,
        description="Message template source"
    )
    msg_once: bool = Field(
        default=False,
        description="Send one message per alert group instead of one per alert"
    )
    queue_size: int = Field(
        default=DEFAULT_QUEUE_SIZE,
        description="Capacity of the outbound message queue",
        ge=1
    )
    channel_prefix: str = Field(
        default="",
        description="Prefix added to the channel taken from the request path"
    )
    delivery_url: Optional[str] = Field(
        default=None,
        description="Webhook receiving rendered messages. Messages are logged if unset"
    )
    delivery_timeout: float = Field(
        default=10.0,
        description="HTTP timeout for the delivery webhook in seconds",
        gt=0
    )
    log_level: str = Field(
        default="INFO",
        description="Log level"
    )

    @field_validator("delivery_url")
    @classmethod
    def validate_delivery_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate delivery URL format."""
        if not v:
            return None
        if not v.startswith(("http://", "https://")):
            raise ValueError("Delivery URL must start with http:// or https://")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Log level must be one of {LOG_LEVELS}")
        return level

    @property
    def address(self) -> str:
        return f"{self.http_host}:{self.http_port}"

    @classmethod
    def load(cls, data: Mapping[str, Any]) -> "RelayConfig":
        """Validate raw configuration values.

        Raises:
            ConfigError: If a value is invalid
        """
        unknown = set(data) - set(cls.model_fields)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {sorted(unknown)}")
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    @staticmethod
    def env_values(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """Collect ``RELAY_*`` variables as configuration values."""
        environ = os.environ if environ is None else environ
        values = {}
        for name in RelayConfig.model_fields:
            raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None:
                values[name] = raw
        return values

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RelayConfig":
        """Load configuration from environment variables.

        Args:
            environ: Environment mapping, defaults to ``os.environ``

        Returns:
            RelayConfig instance

        Raises:
            ConfigError: If a variable holds an invalid value
        """
        return cls.load(cls.env_values(environ))

    @classmethod
    def from_yaml(cls, yaml_path: str, environ: Optional[Mapping[str, str]] = None) -> "RelayConfig":
        """Load configuration from a YAML file layered over the environment.

        Args:
            yaml_path: Path to the YAML configuration file
            environ: Environment mapping, defaults to ``os.environ``

        Returns:
            RelayConfig instance

        Raises:
            ConfigError: If the file is missing, unparsable or invalid
        """
        path = Path(yaml_path)
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {yaml_path}")

        logger.info(f"Loading configuration from {yaml_path}")

        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse {yaml_path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"Invalid YAML structure in {yaml_path}: expected a mapping")

        return cls.load({**cls.env_values(environ), **data})

    def with_overrides(self, **overrides: Any) -> "RelayConfig":
        """Return a copy with every non-None override applied.

        Raises:
            ConfigError: If an override is invalid
        """
        updates = {k: v for k, v in overrides.items() if v is not None}
        if not updates:
            return self
        return self.load({**self.model_dump(), **updates})
