"""CLI module entry point.

Enables running the CLI via: python -m pact_broker_mcp.cli
"""

from pact_broker_mcp.cli.main import cli

if __name__ == "__main__":
    cli()
