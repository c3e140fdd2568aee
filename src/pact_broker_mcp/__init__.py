"""pact-broker-mcp: Pact Broker tools for MCP clients."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pact-broker-mcp")
except PackageNotFoundError:
    __version__ = "0.1.0"

from pact_broker_mcp.server import create_server, main

__all__ = ["__version__", "create_server", "main"]
