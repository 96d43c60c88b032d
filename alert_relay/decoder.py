"""Decoding of inbound webhook bodies into AlertGroup payloads."""

import json

from pydantic import ValidationError

from alert_relay.errors import DecodeError
from alert_relay.models import AlertGroup


def decode(raw_body: bytes) -> AlertGroup:
    """Parse a request body into an AlertGroup.

    Fields missing from the body fall back to their empty defaults. Only a
    structurally invalid document is rejected.

    Args:
        raw_body: Raw request body

    Returns:
        The decoded AlertGroup

    Raises:
        DecodeError: If the body is not JSON, is not an object, or does not
            match the payload schema (e.g. ``alerts`` is not an array)
    """
    try:
        data = json.loads(raw_body)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecodeError(f"Body is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise DecodeError(f"Body must be a JSON object, got {type(data).__name__}")

    try:
        return AlertGroup.model_validate(data)
    except ValidationError as e:
        raise DecodeError(f"Body does not match the alert group schema: {e}") from e
