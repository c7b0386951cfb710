"""Tests for the endercom command line."""

from unittest.mock import MagicMock, patch

import pytest

from endercom.cli import main


@pytest.fixture
def identity(monkeypatch):
    monkeypatch.setenv("FREQUENCY_API_KEY", "key")
    monkeypatch.setenv("FREQUENCY_ID", "freq")
    monkeypatch.setenv("AGENT_ID", "agent")


def fake_client(**methods):
    client = MagicMock(**methods)
    client.__enter__.return_value = client
    return client


def test_missing_identity_exits_with_config_error(monkeypatch):
    for var in ("FREQUENCY_API_KEY", "FREQUENCY_ID", "AGENT_ID"):
        monkeypatch.delenv(var, raising=False)

    assert main(["send", "hello"]) == 2


@pytest.mark.parametrize("accepted, exit_code", [(True, 0), (False, 1)])
def test_send(identity, accepted, exit_code):
    client = fake_client()
    client.send_message.return_value = accepted

    with patch("endercom.cli.FrequencyClient", return_value=client):
        assert main(["send", "hello", "--to", "agent-2"]) == exit_code

    client.send_message.assert_called_once_with("hello", "agent-2")


def test_talk_prints_reply(identity, capsys):
    client = fake_client()
    client.talk_to_agent.return_value = "pong"

    with patch("endercom.cli.FrequencyClient", return_value=client):
        assert main(["talk", "planner", "ping", "--timeout", "5"]) == 0

    client.talk_to_agent.assert_called_once_with(
        "planner", "ping", await_response=True, timeout=5.0
    )
    assert capsys.readouterr().out.strip() == "pong"


def test_serve_builds_server_options(identity):
    with patch("endercom.cli.Agent") as agent_cls:
        assert main(["serve", "--port", "9000", "--no-a2a", "--poll-interval", "3"]) == 0

    server_options = agent_cls.return_value.run_server.call_args.args[0]
    assert server_options.port == 9000
    assert server_options.enable_a2a is False
    assert server_options.enable_heartbeat is True
    assert server_options.poll_interval == 3.0
