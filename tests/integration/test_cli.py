"""Tests for the pact-broker CLI."""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from pact_broker_mcp.cli import main as cli_main
from pact_broker_mcp.cli.main import cli
from pact_broker_mcp.core.client import PactBrokerClient
from pact_broker_mcp.tools.dispatcher import ToolDispatcher
from pact_broker_mcp.tools.registry import TOOL_DEFINITIONS
from tests.fixtures.broker_responses import BASE_URL, branches_response

pytestmark = pytest.mark.integration


@pytest.fixture
def cli_runner():
    """Create a Click CLI runner."""
    return CliRunner()


@pytest.fixture
def patched_dispatcher(mock_broker):
    """Route CLI tool calls to the mock broker."""
    transport = mock_broker.transport

    def build(config):
        return ToolDispatcher(
            config,
            client_factory=lambda broker: PactBrokerClient(broker, transport=transport),
        )

    with patch.object(cli_main, "ToolDispatcher", side_effect=build):
        yield


class TestToolsCommand:
    def test_lists_all_tools(self, cli_runner):
        result = cli_runner.invoke(cli, ["tools"])

        assert result.exit_code == 0
        tools = json.loads(result.output)
        assert [t["name"] for t in tools] == [d.name for d in TOOL_DEFINITIONS]
        assert "inputSchema" in tools[0]


class TestCallCommand:
    def test_call_with_key_value_args(self, cli_runner, mock_broker, patched_dispatcher, monkeypatch):
        monkeypatch.setenv("PACT_BROKER_BASE_URL", BASE_URL)
        mock_broker.routes["/pacticipants/web-app/branches"] = branches_response()

        result = cli_runner.invoke(cli, ["call", "get_pacticipant_branches", "-a", "name=web-app"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)[0]["name"] == "main"

    def test_call_with_json_args(self, cli_runner, mock_broker, patched_dispatcher, monkeypatch):
        monkeypatch.setenv("PACT_BROKER_BASE_URL", BASE_URL)
        mock_broker.routes["/pacticipants/web-app/branches"] = branches_response()

        result = cli_runner.invoke(
            cli, ["call", "get_pacticipant_branches", "--json-args", '{"name": "web-app"}']
        )

        assert result.exit_code == 0, result.output
        assert mock_broker.paths == ["/pacticipants/web-app/branches"]

    def test_error_envelope_exits_1(self, cli_runner):
        result = cli_runner.invoke(cli, ["call", "list_pacticipants"])

        assert result.exit_code == 1
        assert "PACT_BROKER_BASE_URL environment variable is required" in result.output

    def test_unknown_tool_exits_1(self, cli_runner):
        result = cli_runner.invoke(cli, ["call", "nope"])

        assert result.exit_code == 1
        assert "Unknown tool" in result.output

    def test_bad_assignment_exits_1(self, cli_runner):
        result = cli_runner.invoke(cli, ["call", "get_pacticipant", "-a", "name"])

        assert result.exit_code == 1
        assert "expected key=value" in result.output

    def test_bad_json_args_exits_1(self, cli_runner):
        result = cli_runner.invoke(cli, ["call", "get_pacticipant", "--json-args", "[1]"])

        assert result.exit_code == 1
        assert "expected a JSON object" in result.output
