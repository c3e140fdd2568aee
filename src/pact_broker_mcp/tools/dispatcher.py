"""Tool dispatcher.

Routes a tool name plus raw arguments to the matching broker operation and
always answers with a ``ToolEnvelope``. Nothing raised below this layer
escapes ``ToolDispatcher.invoke``.

Example usage:
    dispatcher = ToolDispatcher(ServerConfig.from_env().broker)
    envelope = await dispatcher.invoke("get_pact", {
        "consumer_name": "web-app",
        "provider_name": "billing-service",
    })
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pact_broker_mcp.config import BrokerConfig
from pact_broker_mcp.core.client import PactBrokerClient
from pact_broker_mcp.core.context import request_context
from pact_broker_mcp.core.errors import (
    ErrorCode,
    PactBrokerMCPError,
    UnknownOperation,
)
from pact_broker_mcp.core.responses import (
    ToolEnvelope,
    error_response,
    format_json,
    json_response,
    text_response,
)
from pact_broker_mcp.tools import projections
from pact_broker_mcp.tools.registry import (
    TOOL_DEFINITIONS,
    ToolArguments,
    get_tool_definition,
)

logger = logging.getLogger(__name__)

ClientFactory = Callable[[BrokerConfig], PactBrokerClient]
Handler = Callable[[PactBrokerClient, ToolArguments], Awaitable[ToolEnvelope]]


# =============================================================================
# Handlers
# =============================================================================


async def _list_pacticipants(client: PactBrokerClient, args: ToolArguments) -> ToolEnvelope:
    pacticipants = await client.list_pacticipants()
    return json_response(
        projections.project_list(pacticipants, projections.project_pacticipant)
    )


async def _list_providers(client: PactBrokerClient, args: ToolArguments) -> ToolEnvelope:
    providers = await client.list_providers()
    return json_response(projections.project_list(providers, projections.project_provider))


async def _get_pacticipant(client: PactBrokerClient, args: ToolArguments) -> ToolEnvelope:
    pacticipant = await client.get_pacticipant(args["name"])
    return json_response(projections.project_pacticipant(pacticipant, detailed=True))


async def _get_provider_states(client: PactBrokerClient, args: ToolArguments) -> ToolEnvelope:
    provider_name = args["provider_name"]
    states = await client.get_provider_states(provider_name)
    if not states:
        return text_response(f'No pacts found for provider "{provider_name}".')
    return json_response(projections.project_list(states, projections.project_provider_state))


async def _get_provider_pacts(client: PactBrokerClient, args: ToolArguments) -> ToolEnvelope:
    pacts = await client.get_provider_pacts(args["provider_name"])
    return json_response(projections.project_list(pacts, projections.project_pact_summary))


async def _get_consumer_pacts(client: PactBrokerClient, args: ToolArguments) -> ToolEnvelope:
    pacts = await client.get_consumer_pacts(args["consumer_name"])
    return json_response(projections.project_list(pacts, projections.project_pact_summary))


async def _get_pact(client: PactBrokerClient, args: ToolArguments) -> ToolEnvelope:
    pact = await client.get_pact(args["consumer_name"], args["provider_name"])
    return json_response(projections.project_pact(pact))


async def _get_pact_version(client: PactBrokerClient, args: ToolArguments) -> ToolEnvelope:
    ref = await client.get_pact_version(
        args["consumer_name"], args["provider_name"], args["consumer_version"]
    )
    return json_response(projections.project_pact_version(ref))


async def _get_previous_distinct_pact(
    client: PactBrokerClient, args: ToolArguments
) -> ToolEnvelope:
    pact = await client.get_previous_distinct_pact(
        args["consumer_name"], args["provider_name"], args["consumer_version"]
    )
    return json_response(projections.project_pact(pact))


async def _get_latest_verification_results(
    client: PactBrokerClient, args: ToolArguments
) -> ToolEnvelope:
    result = await client.get_latest_verification_results(
        args["consumer_name"], args["provider_name"], args["pact_version"]
    )
    return json_response(projections.project_verification(result))


async def _can_i_deploy(client: PactBrokerClient, args: ToolArguments) -> ToolEnvelope:
    verdict = await client.can_i_deploy(
        args["pacticipant"], args["version"], args["environment"]
    )
    status = "✅ CAN DEPLOY" if verdict.can_deploy else "❌ CANNOT DEPLOY"
    return text_response(
        f"{status}\n\n{verdict.reason}\n\n{format_json(verdict.to_payload())}"
    )


async def _list_environments(client: PactBrokerClient, args: ToolArguments) -> ToolEnvelope:
    environments = await client.list_environments()
    return json_response(
        projections.project_list(environments, projections.project_environment)
    )


async def _get_pacticipant_branches(
    client: PactBrokerClient, args: ToolArguments
) -> ToolEnvelope:
    branches = await client.get_branches(args["name"])
    return json_response(projections.project_list(branches, projections.project_branch))


async def _get_pacticipant_branch_latest_version(
    client: PactBrokerClient, args: ToolArguments
) -> ToolEnvelope:
    version = await client.get_branch_latest_version(args["pacticipant"], args["branch"])
    return json_response(projections.project_version(version))


async def _get_currently_deployed_versions(
    client: PactBrokerClient, args: ToolArguments
) -> ToolEnvelope:
    records = await client.get_currently_deployed_versions(args["environment"])
    return json_response(
        projections.project_list(records, projections.project_deployed_version)
    )


async def _get_currently_supported_versions(
    client: PactBrokerClient, args: ToolArguments
) -> ToolEnvelope:
    records = await client.get_currently_supported_versions(args["environment"])
    return json_response(
        projections.project_list(records, projections.project_supported_version)
    )


_HANDLERS: Dict[str, Handler] = {
    "list_pacticipants": _list_pacticipants,
    "list_providers": _list_providers,
    "get_pacticipant": _get_pacticipant,
    "get_provider_states": _get_provider_states,
    "get_provider_pacts": _get_provider_pacts,
    "get_consumer_pacts": _get_consumer_pacts,
    "get_pact": _get_pact,
    "get_pact_version": _get_pact_version,
    "get_previous_distinct_pact": _get_previous_distinct_pact,
    "get_latest_verification_results_for_pact_version": _get_latest_verification_results,
    "can_i_deploy": _can_i_deploy,
    "list_environments": _list_environments,
    "get_pacticipant_branches": _get_pacticipant_branches,
    "get_pacticipant_branch_latest_version": _get_pacticipant_branch_latest_version,
    "get_currently_deployed_versions": _get_currently_deployed_versions,
    "get_currently_supported_versions": _get_currently_supported_versions,
}


# =============================================================================
# Dispatcher
# =============================================================================


class ToolDispatcher:
    """Validates tool calls and runs them against the Pact Broker.

    Attributes:
        config: Broker settings, fixed for the dispatcher's lifetime
    """

    def __init__(
        self,
        config: BrokerConfig,
        *,
        client_factory: Optional[ClientFactory] = None,
    ):
        self.config = config
        self._client_factory: ClientFactory = client_factory or PactBrokerClient

    def list_operations(self) -> List[Dict[str, Any]]:
        """Return name, description and inputSchema of every registered tool."""
        return [definition.to_dict() for definition in TOOL_DEFINITIONS]

    async def invoke(
        self, name: str, arguments: Optional[Mapping[str, Any]] = None
    ) -> ToolEnvelope:
        """Run one tool call and wrap the outcome in an envelope."""
        with request_context(tool=name) as ctx:
            logger.info(
                "Tool call started",
                extra={
                    "argument_keys": sorted(arguments)
                    if isinstance(arguments, Mapping)
                    else []
                },
            )
            envelope = await self._invoke(name, arguments)
            log = logger.warning if envelope.is_error else logger.info
            log(
                "Tool call finished",
                extra={
                    "success": not envelope.is_error,
                    "error_code": envelope.error_code,
                    "duration_ms": round(ctx.elapsed_ms, 2),
                },
            )
            return envelope

    async def _invoke(
        self, name: str, arguments: Optional[Mapping[str, Any]]
    ) -> ToolEnvelope:
        try:
            definition = get_tool_definition(name)
        except UnknownOperation as e:
            return error_response(e.message, error_code=e.error_code, prefix=False)

        handler = _HANDLERS[definition.name]
        try:
            args = definition.validate(arguments)
            self.config.require_base_url()
            client = self._client_factory(self.config)
            return await handler(client, args)
        except PactBrokerMCPError as e:
            logger.debug("Tool %s failed: %s", name, e.message)
            return error_response(e.message, error_code=e.error_code)
        except Exception as e:
            logger.exception("Unexpected error in tool %s", name)
            return error_response(str(e), error_code=ErrorCode.INTERNAL_ERROR)


__all__ = [
    "ToolDispatcher",
]
