"""Tests for the command line interface."""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from clawdeck.cli import main


@pytest.fixture
def run_cli(fake_gateway):
    def run(*args):
        with patch("clawdeck.cli.GatewayClient", side_effect=lambda: fake_gateway.client()):
            return CliRunner().invoke(main, list(args))
    return run


def test_agents(fake_gateway, run_cli, agents_payload):
    fake_gateway.responses["agents_list"] = agents_payload
    result = run_cli("agents")
    assert result.exit_code == 0
    assert "main (default)" in result.output
    assert "bindings: telegram, any" in result.output
    assert "researcher" in result.output


def test_agents_empty(run_cli):
    result = run_cli("agents")
    assert result.exit_code == 0
    assert "No agents found." in result.output


def test_tasks(fake_gateway, run_cli):
    fake_gateway.responses["sessions_list"] = [{"key": "cron:daily", "kind": "cron"}, {"key": "old"}]
    result = run_cli("tasks")
    assert result.exit_code == 0
    assert "Upcoming (1)" in result.output
    assert "Ongoing (0)" in result.output
    assert "Done (1)" in result.output


def test_files(fake_gateway, run_cli):
    fake_gateway.responses["list_directory"] = ["01-01-2025.md", "15-06-2026.md"]
    result = run_cli("files", "--type", "feedback", "--agent", "ops")
    assert result.exit_code == 0
    lines = result.output.strip().splitlines()
    assert lines[0].startswith("15-06-2026")
    assert fake_gateway.calls_to("list_directory") == [{"path": "feedback", "agentId": "ops"}]


def test_read(fake_gateway, run_cli):
    fake_gateway.responses["read_file"] = "# Report"
    result = run_cli("read", "report/15-06-2026.md")
    assert result.exit_code == 0
    assert "# Report" in result.output


def test_send(fake_gateway, run_cli):
    fake_gateway.responses["sessions_history"] = [{"role": "assistant", "content": "ready"}]
    fake_gateway.responses["sessions_send"] = {"ok": True}
    result = run_cli("send", "status please")
    assert result.exit_code == 0
    assert "[assistant] ready" in result.output
    assert "[user] status please" in result.output


def test_send_rejected(fake_gateway, run_cli):
    fake_gateway.responses["sessions_send"] = {"ok": False}
    result = run_cli("send", "status please")
    assert result.exit_code != 0
    assert "not delivered" in result.output
