import json

import pytest

from alert_relay.models import AlertMsg
from alert_relay.outbound import OutboundQueue
from alert_relay.templates import MessageTemplate

SIMPLE_ALERT_PAYLOAD = {
    "receiver": "relay",
    "status": "resolved",
    "alerts": [
        {
            "status": "resolved",
            "labels": {
                "alertname": "airDown",
                "instance": "instance1:3456",
                "job": "air",
                "service": "prometheus",
                "severity": "ticket",
                "zone": "global",
            },
            "annotations": {
                "DESCRIPTION": "service /prometheus has irc gateway down on instance1",
                "SUMMARY": "service /prometheus air down on instance1",
            },
            "startsAt": "2017-05-15T13:49:37.834Z",
            "endsAt": "2017-05-15T13:50:37.835Z",
            "generatorURL": "https://prometheus.example.com/prometheus/...",
            "fingerprint": "66214a361160fb6f",
        },
        {
            "status": "resolved",
            "labels": {
                "alertname": "airDown",
                "instance": "instance2:7890",
                "job": "air",
                "service": "prometheus",
                "severity": "ticket",
                "zone": "global",
            },
            "annotations": {
                "DESCRIPTION": "service /prometheus has irc gateway down on instance2",
                "SUMMARY": "service /prometheus air down on instance2",
            },
            "startsAt": "2017-05-15T11:47:37.834Z",
            "endsAt": "2017-05-15T11:48:37.834Z",
            "generatorURL": "https://prometheus.example.com/prometheus/...",
            "fingerprint": "25a874c99325d1ce",
        },
    ],
    "groupLabels": {"alertname": "airDown", "service": "prometheus"},
    "commonLabels": {
        "alertname": "airDown",
        "job": "air",
        "service": "prometheus",
        "severity": "ticket",
        "zone": "global",
    },
    "commonAnnotations": {},
    "externalURL": "https://prometheus.example.com/alertmanager",
    "version": "4",
    "groupKey": '{}/{alertname=~"^(?:air.*)$"}:{alertname="airDown", service="prometheus"}',
}

RAW_ALERT_1 = (
    '{"status":"resolved","labels":{"alertname":"airDown","instance":"instance1:3456",'
    '"job":"air","service":"prometheus","severity":"ticket","zone":"global"},'
    '"annotations":{"DESCRIPTION":"service /prometheus has irc gateway down on instance1",'
    '"SUMMARY":"service /prometheus air down on instance1"},'
    '"startsAt":"2017-05-15T13:49:37.834Z","endsAt":"2017-05-15T13:50:37.835Z",'
    '"generatorURL":"https://prometheus.example.com/prometheus/...",'
    '"fingerprint":"66214a361160fb6f"}'
)

RAW_ALERT_2 = (
    '{"status":"resolved","labels":{"alertname":"airDown","instance":"instance2:7890",'
    '"job":"air","service":"prometheus","severity":"ticket","zone":"global"},'
    '"annotations":{"DESCRIPTION":"service /prometheus has irc gateway down on instance2",'
    '"SUMMARY":"service /prometheus air down on instance2"},'
    '"startsAt":"2017-05-15T11:47:37.834Z","endsAt":"2017-05-15T11:48:37.834Z",'
    '"generatorURL":"https://prometheus.example.com/prometheus/...",'
    '"fingerprint":"25a874c99325d1ce"}'
)

PER_ALERT_TEMPLATE = "Alert {{.Labels.alertname}} on {{.Labels.instance}} is {{.Status}}"
GROUP_TEMPLATE = "Alert {{.GroupLabels.alertname}} is {{.Status}}"
BOGUS_TEMPLATE = "Bogus template {{ nil }}"


class RecordingSink:
    """Sink that keeps every message it is given."""

    def __init__(self, fail_channels=()):
        self.sent = []
        self.fail_channels = set(fail_channels)
        self.closed = False

    async def send(self, msg: AlertMsg) -> None:
        if msg.channel in self.fail_channels:
            raise RuntimeError(f"backend rejected {msg.channel}")
        self.sent.append(msg)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def simple_payload() -> dict:
    return json.loads(json.dumps(SIMPLE_ALERT_PAYLOAD))


@pytest.fixture
def simple_body(simple_payload) -> bytes:
    return json.dumps(simple_payload).encode()


@pytest.fixture
def queue() -> OutboundQueue:
    return OutboundQueue(10)


@pytest.fixture
def per_alert_template() -> MessageTemplate:
    return MessageTemplate(PER_ALERT_TEMPLATE)


@pytest.fixture
def group_template() -> MessageTemplate:
    return MessageTemplate(GROUP_TEMPLATE)


@pytest.fixture
def bogus_template() -> MessageTemplate:
    return MessageTemplate(BOGUS_TEMPLATE)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove RELAY_* variables so config tests start from defaults."""
    import os

    for name in list(os.environ):
        if name.startswith("RELAY_"):
            monkeypatch.delenv(name)
    return monkeypatch
