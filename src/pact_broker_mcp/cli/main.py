"""pact-broker CLI entry point.

Runs the MCP server, lists the available tools, or calls a single tool
against the configured Pact Broker without an MCP client.
"""

import asyncio
import json
from typing import Any, Dict, Optional, Tuple

import click

from pact_broker_mcp.cli.output import emit, emit_error, emit_text
from pact_broker_mcp.config import ServerConfig, set_config
from pact_broker_mcp.core.errors import ErrorCode
from pact_broker_mcp.tools.dispatcher import ToolDispatcher


def _parse_assignments(assignments: Tuple[str, ...]) -> Dict[str, Any]:
    arguments: Dict[str, Any] = {}
    for item in assignments:
        key, sep, value = item.partition("=")
        if not sep or not key:
            emit_error(
                f"Invalid argument '{item}', expected key=value",
                ErrorCode.VALIDATION_ERROR.value,
            )
        arguments[key] = value
    return arguments


@click.group()
@click.option(
    "--config",
    "config_file",
    envvar="PACT_BROKER_MCP_CONFIG_FILE",
    type=click.Path(exists=False, dir_okay=False),
    help="Path to a pact-broker-mcp TOML config file",
)
@click.option("--verbose", "-v", is_flag=True, help="Log to stderr while running")
@click.pass_context
def cli(ctx: click.Context, config_file: Optional[str], verbose: bool) -> None:
    """Pact Broker tools for AI assistants.

    Broker connection settings come from PACT_BROKER_* environment
    variables or the [broker] section of the config file.
    """
    ctx.ensure_object(dict)
    config = ServerConfig.from_env(config_file)
    if verbose:
        config.setup_logging()
    ctx.obj["config"] = config


@cli.command("serve")
@click.pass_context
def serve_cmd(ctx: click.Context) -> None:
    """Run the MCP server over stdio."""
    from pact_broker_mcp.server import main

    set_config(ctx.obj["config"])
    main()


@cli.command("tools")
@click.pass_context
def tools_cmd(ctx: click.Context) -> None:
    """List tool names, descriptions and input schemas as JSON."""
    dispatcher = ToolDispatcher(ctx.obj["config"].broker)
    emit(dispatcher.list_operations())


@cli.command("call")
@click.argument("name")
@click.option(
    "--arg",
    "-a",
    "assignments",
    multiple=True,
    metavar="KEY=VALUE",
    help="Tool argument (repeatable)",
)
@click.option("--json-args", help="Tool arguments as a JSON object")
@click.pass_context
def call_cmd(
    ctx: click.Context,
    name: str,
    assignments: Tuple[str, ...],
    json_args: Optional[str],
) -> None:
    """Invoke tool NAME once and print its result.

    Exits with status 1 if the tool reports an error.
    """
    arguments: Dict[str, Any] = {}
    if json_args:
        try:
            parsed = json.loads(json_args)
        except json.JSONDecodeError as e:
            emit_error(f"Invalid --json-args: {e}", ErrorCode.VALIDATION_ERROR.value)
        if not isinstance(parsed, dict):
            emit_error(
                "Invalid --json-args: expected a JSON object",
                ErrorCode.VALIDATION_ERROR.value,
            )
        arguments.update(parsed)
    arguments.update(_parse_assignments(assignments))

    dispatcher = ToolDispatcher(ctx.obj["config"].broker)
    envelope = asyncio.run(dispatcher.invoke(name, arguments))
    if envelope.is_error:
        emit_error(envelope.text, envelope.error_code or ErrorCode.INTERNAL_ERROR.value)
    emit_text(envelope.text)


if __name__ == "__main__":
    cli()
