"""MCP stdio server for pact-broker-mcp.

Uses the SDK's low-level ``Server`` so that the advertised input schemas are
the hand-written ones from the tool registry and argument validation is
left to the dispatcher.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any, Dict, List, Optional

from mcp import types
from mcp.server import Server
from mcp.server.stdio import stdio_server

from pact_broker_mcp.config import ServerConfig, get_config
from pact_broker_mcp.tools.dispatcher import ToolDispatcher

logger = logging.getLogger(__name__)


class ToolInvocationError(Exception):
    """Raised from the call_tool handler so the SDK reports an isError result."""


def create_server(
    config: Optional[ServerConfig] = None,
    *,
    dispatcher: Optional[ToolDispatcher] = None,
) -> Server:
    """
    Create and configure the MCP server.

    Args:
        config: Server configuration (uses global config if not provided)
        dispatcher: Pre-built dispatcher (built from ``config.broker`` otherwise)

    Returns:
        Configured low-level MCP server
    """
    if config is None:
        config = get_config()
    if dispatcher is None:
        dispatcher = ToolDispatcher(config.broker)

    server: Server = Server(config.server_name, version=config.server_version)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return [
            types.Tool(
                name=operation["name"],
                description=operation["description"],
                inputSchema=operation["inputSchema"],
            )
            for operation in dispatcher.list_operations()
        ]

    @server.call_tool(validate_input=False)
    async def call_tool(
        name: str, arguments: Optional[Dict[str, Any]]
    ) -> List[types.TextContent]:
        envelope = await dispatcher.invoke(name, arguments)
        if envelope.is_error:
            raise ToolInvocationError(envelope.text)
        return [types.TextContent(type="text", text=envelope.text)]

    logger.debug("Registered %d tools", len(dispatcher.list_operations()))
    return server


async def run_stdio(server: Server) -> None:
    """Serve MCP over stdin/stdout until the client disconnects."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


def main() -> None:
    """Main entry point for the pact-broker-mcp server."""

    try:
        config = get_config()
        config.setup_logging()
        server = create_server(config)

        logger.info("Starting %s v%s", config.server_name, config.server_version)
        if not config.broker.base_url:
            logger.warning(
                "PACT_BROKER_BASE_URL is not set; tool calls will fail until it is"
            )

        asyncio.run(run_stdio(server))

    except KeyboardInterrupt:
        logger.info("Server shutdown requested")
        sys.exit(0)
    except Exception as exc:
        logger.error("Server error: %s: %s", type(exc).__name__, exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
