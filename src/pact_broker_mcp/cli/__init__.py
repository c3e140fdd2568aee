"""Command-line interface for pact-broker-mcp."""

from pact_broker_mcp.cli.main import cli

__all__ = ["cli"]
