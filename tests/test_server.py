import asyncio

import httpx
import pytest

from alert_relay.config import RelayConfig
from alert_relay.delivery import LogSink, WebhookSink
from alert_relay.errors import TemplateCompileError
from alert_relay.server import RelayServer, build_sink
from conftest import GROUP_TEMPLATE, RecordingSink


def _config(**values) -> RelayConfig:
    return RelayConfig.load({"http_host": "test.web", "http_port": 8888, **values})


def test_invalid_template_stops_startup():
    with pytest.raises(TemplateCompileError):
        RelayServer(_config(msg_template="{{ Labels.alertname "))


def test_build_sink():
    assert isinstance(build_sink(_config()), LogSink)
    assert isinstance(build_sink(_config(delivery_url="http://bridge/send")), WebhookSink)


def test_run_serves_and_delivers(simple_body):
    sink = RecordingSink()
    served = []

    async def fake_serve(address, app):
        served.append(address)
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://relay") as client:
            response = await client.post("/somechannel", content=simple_body)
        assert response.status_code == 200
        for _ in range(200):
            if sink.sent:
                break
            await asyncio.sleep(0.005)

    server = RelayServer(
        _config(msg_template=GROUP_TEMPLATE, msg_once=True, channel_prefix="#"),
        serve=fake_serve,
        sink=sink,
    )
    asyncio.run(server.run())

    assert served == ["test.web:8888"]
    assert [(m.channel, m.alert) for m in sink.sent] == [("#somechannel", "Alert airDown is resolved")]
    assert not server.consumer.running
    assert sink.closed


def test_consumer_stops_when_serve_fails():
    sink = RecordingSink()

    async def failing_serve(address, app):
        raise OSError("address already in use")

    server = RelayServer(_config(), serve=failing_serve, sink=sink)
    with pytest.raises(OSError):
        asyncio.run(server.run())
    assert not server.consumer.running
    assert sink.closed


def test_stop_without_listener_is_a_noop():
    RelayServer(_config()).stop()
