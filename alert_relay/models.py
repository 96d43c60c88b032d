"""Pydantic models for Alertmanager webhook payloads and outbound messages."""

import re
from datetime import datetime
from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Alertmanager marshals an unset time.Time as the zero timestamp
ZERO_TIMESTAMP = "0001-01-01T00:00:00Z"


class AlertStatus(str, Enum):
    """State of an alert or alert group."""

    FIRING = "firing"
    RESOLVED = "resolved"


def _validate_status(v: str) -> str:
    """Accept an empty status (absent on the wire) or a known state."""
    if v and v not in {s.value for s in AlertStatus}:
        raise ValueError(f"Status must be one of {[s.value for s in AlertStatus]}")
    return v


_RFC3339 = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)


def _validate_timestamp(v: str) -> str:
    """Check that v is an RFC 3339 timestamp. The string itself is kept as is."""
    match = _RFC3339.match(v)
    if not match:
        raise ValueError(f"Timestamp must be RFC 3339, got {v!r}")
    date, clock, fraction, offset = match.groups()
    # datetime only takes up to microseconds; Alertmanager sends nanoseconds
    fraction = f".{fraction[:6].ljust(6, '0')}" if fraction else ""
    offset = "+00:00" if offset in ("Z", "z") else offset
    try:
        datetime.fromisoformat(f"{date}T{clock}{fraction}{offset}")
    except ValueError as e:
        raise ValueError(f"Timestamp must be RFC 3339, got {v!r}: {e}") from e
    return v


def _sort_map(v: Dict[str, str]) -> Dict[str, str]:
    """Order a label or annotation map by key for canonical serialization."""
    return dict(sorted(v.items()))


class Alert(BaseModel):
    """Individual alert within an Alertmanager notification."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    status: str = Field(
        default="",
        description="Alert status (firing/resolved)"
    )
    labels: Dict[str, str] = Field(
        default_factory=dict,
        description="Alert labels"
    )
    annotations: Dict[str, str] = Field(
        default_factory=dict,
        description="Alert annotations"
    )
    starts_at: str = Field(
        default=ZERO_TIMESTAMP,
        alias="startsAt",
        description="Alert start time (RFC 3339, kept as received)"
    )
    ends_at: str = Field(
        default=ZERO_TIMESTAMP,
        alias="endsAt",
        description="Alert end time (RFC 3339), zero while firing"
    )
    generator_url: str = Field(
        default="",
        alias="generatorURL",
        description="Generator URL"
    )
    fingerprint: str = Field(
        default="",
        description="Alert fingerprint"
    )

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        """Validate status value."""
        return _validate_status(v)

    @field_validator("starts_at", "ends_at")
    @classmethod
    def validate_timestamps(cls, v: str) -> str:
        """Reject timestamps that are not RFC 3339."""
        return _validate_timestamp(v)

    @field_validator("labels", "annotations")
    @classmethod
    def sort_maps(cls, v: Dict[str, str]) -> Dict[str, str]:
        """Keep maps ordered by key."""
        return _sort_map(v)

    def to_json(self) -> str:
        """Serialize the alert back to its canonical wire form."""
        return self.model_dump_json(by_alias=True)


class AlertGroup(BaseModel):
    """Alertmanager webhook payload: a batch of alerts sharing one delivery."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    receiver: str = Field(
        default="",
        description="Name of the receiver that sent the notification"
    )
    status: str = Field(
        default="",
        description="Group status (firing/resolved)"
    )
    alerts: List[Alert] = Field(
        default_factory=list,
        description="Alerts in the order received"
    )
    group_labels: Dict[str, str] = Field(
        default_factory=dict,
        alias="groupLabels",
        description="Labels the group was formed on"
    )
    common_labels: Dict[str, str] = Field(
        default_factory=dict,
        alias="commonLabels",
        description="Labels shared by every alert in the group"
    )
    common_annotations: Dict[str, str] = Field(
        default_factory=dict,
        alias="commonAnnotations",
        description="Annotations shared by every alert in the group"
    )
    external_url: str = Field(
        default="",
        alias="externalURL",
        description="Backlink to the sending Alertmanager"
    )

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        """Validate status value."""
        return _validate_status(v)

    @field_validator("group_labels", "common_labels", "common_annotations")
    @classmethod
    def sort_maps(cls, v: Dict[str, str]) -> Dict[str, str]:
        """Keep maps ordered by key."""
        return _sort_map(v)

    def to_json(self) -> str:
        """Serialize the group back to its canonical wire form."""
        return self.model_dump_json(by_alias=True)


class AlertMsg(BaseModel):
    """A rendered message bound for a chat channel."""

    model_config = ConfigDict(frozen=True)

    channel: str = Field(
        description="Destination channel, taken from the request path"
    )
    alert: str = Field(
        description="Rendered text, or the raw alert JSON if rendering failed"
    )
