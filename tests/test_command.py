import json

from typer.testing import CliRunner

from alert_relay.command import app
from conftest import GROUP_TEMPLATE, PER_ALERT_TEMPLATE, RAW_ALERT_1

runner = CliRunner()


def test_check_template_ok():
    result = runner.invoke(app, ["check-template", PER_ALERT_TEMPLATE])

    assert result.exit_code == 0
    assert "Template OK" in result.output


def test_check_template_invalid():
    result = runner.invoke(app, ["check-template", "{{ Labels.alertname "])

    assert result.exit_code == 1
    assert "Invalid message template" in result.output


def test_render_per_alert(tmp_path, simple_payload, clean_env):
    payload_file = tmp_path / "payload.json"
    payload_file.write_text(json.dumps(simple_payload))

    result = runner.invoke(app, ["render", str(payload_file), "-t", PER_ALERT_TEMPLATE])

    assert result.exit_code == 0
    assert "2 message(s) for test" in result.output
    assert "Alert airDown on instance1:3456 is resolved" in result.output
    assert "Alert airDown on instance2:7890 is resolved" in result.output


def test_render_once(tmp_path, simple_payload, clean_env):
    payload_file = tmp_path / "payload.json"
    payload_file.write_text(json.dumps(simple_payload))

    result = runner.invoke(
        app, ["render", str(payload_file), "-t", GROUP_TEMPLATE, "--once", "--channel", "ops"]
    )

    assert result.exit_code == 0
    assert "1 message(s) for ops" in result.output
    assert "Alert airDown is resolved" in result.output


def test_render_fallback_prints_raw_alert(tmp_path, simple_payload, clean_env):
    payload_file = tmp_path / "payload.json"
    payload_file.write_text(json.dumps(simple_payload))

    result = runner.invoke(app, ["render", str(payload_file), "-t", "Bogus template {{ nil }}"])

    assert result.exit_code == 0
    assert RAW_ALERT_1 in result.output


def test_render_invalid_payload(tmp_path, clean_env):
    payload_file = tmp_path / "payload.json"
    payload_file.write_text("[1, 2, 3]")

    result = runner.invoke(app, ["render", str(payload_file)])

    assert result.exit_code == 1


def test_serve_rejects_invalid_template(clean_env):
    result = runner.invoke(app, ["serve", "--template", "{% if %}"])

    assert result.exit_code == 1


def test_serve_rejects_invalid_config(clean_env):
    clean_env.setenv("RELAY_HTTP_PORT", "not-a-port")

    result = runner.invoke(app, ["serve"])

    assert result.exit_code == 1
