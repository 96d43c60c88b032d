"""Turn decoded alert groups into outbound chat messages."""

from typing import List

from loguru import logger

from alert_relay.models import AlertGroup, AlertMsg
from alert_relay.templates import MessageTemplate


def format_alerts(
    payload: AlertGroup,
    channel: str,
    once: bool,
    template: MessageTemplate,
) -> List[AlertMsg]:
    """Render an alert group into messages for a channel.

    With ``once`` unset every alert becomes its own message, in the order
    received. With ``once`` set the whole group becomes a single message.
    When rendering fails the message carries the raw JSON of the alert (or
    of the group) instead, so no alert is ever dropped.

    Args:
        payload: Decoded alert group
        channel: Destination channel for every produced message
        once: Render the group as one message instead of one per alert
        template: Compiled message template

    Returns:
        Messages to enqueue, in order; empty only if the group has no alerts
    """
    if not payload.alerts:
        return []

    if once:
        result = template.render_group(payload)
        if result.ok:
            return [AlertMsg(channel=channel, alert=result.text)]
        logger.warning(
            f"Could not render alert group for {channel}, sending raw payload: {result.error}"
        )
        return [AlertMsg(channel=channel, alert=payload.to_json())]

    messages = []
    for alert in payload.alerts:
        result = template.render_alert(alert)
        if result.ok:
            text = result.text
        else:
            alert_name = alert.labels.get("alertname", "unknown")
            logger.warning(
                f"Could not render alert {alert_name} for {channel}, sending raw alert: {result.error}"
            )
            text = alert.to_json()
        messages.append(AlertMsg(channel=channel, alert=text))
    return messages
