"""Smoke tests for the MCP server wiring.

Drives the low-level server's request handlers directly, the same way the
stdio session does once a request has been decoded.
"""

from __future__ import annotations

import pytest
from mcp import types

from pact_broker_mcp.config import BrokerConfig, ServerConfig
from pact_broker_mcp.core.client import PactBrokerClient
from pact_broker_mcp.server import create_server
from pact_broker_mcp.tools.dispatcher import ToolDispatcher
from pact_broker_mcp.tools.registry import TOOL_DEFINITIONS
from tests.fixtures.broker_responses import BASE_URL, environments_response

pytestmark = pytest.mark.integration


@pytest.fixture
def test_config() -> ServerConfig:
    return ServerConfig(
        broker=BrokerConfig(base_url=BASE_URL),
        server_name="pact-broker-mcp-test",
        server_version="0.1.0",
        log_level="WARNING",
    )


@pytest.fixture
def mcp_server(test_config, mock_broker):
    transport = mock_broker.transport
    dispatcher = ToolDispatcher(
        test_config.broker,
        client_factory=lambda config: PactBrokerClient(config, transport=transport),
    )
    return create_server(test_config, dispatcher=dispatcher)


async def _call(server, name, arguments=None) -> types.CallToolResult:
    request = types.CallToolRequest(
        method="tools/call",
        params=types.CallToolRequestParams(name=name, arguments=arguments),
    )
    result = await server.request_handlers[types.CallToolRequest](request)
    return result.root


def test_server_creates_successfully(test_config):
    server = create_server(test_config)
    assert server.name == "pact-broker-mcp-test"


@pytest.mark.asyncio
async def test_list_tools_advertises_registry_schemas(mcp_server):
    result = await mcp_server.request_handlers[types.ListToolsRequest](
        types.ListToolsRequest(method="tools/list")
    )
    tools = result.root.tools

    assert [tool.name for tool in tools] == [d.name for d in TOOL_DEFINITIONS]
    get_pact = next(tool for tool in tools if tool.name == "get_pact")
    assert get_pact.inputSchema["required"] == ["consumer_name", "provider_name"]


@pytest.mark.asyncio
async def test_successful_call_returns_text(mcp_server, mock_broker):
    mock_broker.routes["/environments"] = environments_response()

    result = await _call(mcp_server, "list_environments", {})

    assert not result.isError
    assert result.content[0].type == "text"
    assert '"name": "production"' in result.content[0].text


@pytest.mark.asyncio
async def test_validation_error_uses_dispatcher_message(mcp_server):
    result = await _call(mcp_server, "get_pacticipant", {})

    assert result.isError
    assert result.content[0].text == "Error: Invalid arguments: name: Required"


@pytest.mark.asyncio
async def test_unknown_tool_is_error_result(mcp_server):
    result = await _call(mcp_server, "nope", {})

    assert result.isError
    assert result.content[0].text == 'Unknown tool: "nope"'
