"""Tool schema registry.

Declares every tool exposed to MCP clients: its name, description, and the
fields of its (flat, string-only) argument object. Definitions are
immutable and validation is hand-written so the advertised JSON Schema and
the validation messages always agree.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pact_broker_mcp.core.errors import InvalidArguments, UnknownOperation


@dataclass(frozen=True)
class FieldSpec:
    """One named argument of a tool."""

    name: str
    description: str
    type: str = "string"
    required: bool = True

    def to_schema(self) -> Dict[str, Any]:
        return {"type": self.type, "description": self.description}


class ToolArguments(Mapping):
    """Read-only view of validated tool arguments."""

    def __init__(self, values: Dict[str, Any]):
        self._values = MappingProxyType(dict(values))

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ToolArguments({dict(self._values)!r})"


def _json_type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


@dataclass(frozen=True)
class ToolDefinition:
    """A tool as advertised to clients.

    Attributes:
        name: Unique tool name
        description: Human-readable description shown to the model
        fields: Declared argument fields, in order
    """

    name: str
    description: str
    fields: Tuple[FieldSpec, ...] = field(default_factory=tuple)

    def input_schema(self) -> Dict[str, Any]:
        """Return the JSON Schema object describing this tool's arguments."""
        return {
            "type": "object",
            "properties": {spec.name: spec.to_schema() for spec in self.fields},
            "required": [spec.name for spec in self.fields if spec.required],
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema(),
        }

    def validate(self, arguments: Optional[Mapping[str, Any]]) -> ToolArguments:
        """Check raw arguments against the declared fields.

        Unknown keys are dropped. All violations are reported at once.

        Raises:
            InvalidArguments: If a required field is missing or a value has
                the wrong type
        """
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, Mapping):
            raise InvalidArguments(
                [("arguments", f"Expected object, received {_json_type_name(arguments)}")]
            )

        values: Dict[str, Any] = {}
        violations: List[Tuple[str, str]] = []
        for spec in self.fields:
            if spec.name not in arguments:
                if spec.required:
                    violations.append((spec.name, "Required"))
                continue
            value = arguments[spec.name]
            if spec.type == "string" and not isinstance(value, str):
                violations.append(
                    (spec.name, f"Expected string, received {_json_type_name(value)}")
                )
                continue
            values[spec.name] = value

        if violations:
            raise InvalidArguments(violations)
        return ToolArguments(values)


# Shared field specs
_PROVIDER_NAME = FieldSpec("provider_name", "Name of the provider pacticipant")
_CONSUMER_NAME = FieldSpec("consumer_name", "Name of the consumer pacticipant")
_PACTICIPANT_NAME = FieldSpec("name", "Name of the pacticipant")
_CONSUMER_VERSION = FieldSpec(
    "consumer_version",
    "Consumer version number uniquely identifying the consumer version. "
    "For git, this could be a commit SHA or a tag.",
)
_PACT_VERSION = FieldSpec(
    "pact_version",
    "Pact Broker pact-version UUID identifying the specific pact content.",
)
_ENVIRONMENT = FieldSpec(
    "environment", "Target environment name (e.g., 'production', 'staging')"
)


TOOL_DEFINITIONS: Tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name="list_pacticipants",
        description=(
            "List all pacticipants (both consumers and providers) registered "
            "in the Pact Broker."
        ),
    ),
    ToolDefinition(
        name="list_providers",
        description=(
            "List all providers registered in the Pact Broker, i.e. pacticipants "
            "that appear as the provider in at least one of the latest pacts."
        ),
    ),
    ToolDefinition(
        name="get_pacticipant",
        description=(
            "Get detailed information about a single pacticipant by name "
            "(consumer or provider)."
        ),
        fields=(_PACTICIPANT_NAME,),
    ),
    ToolDefinition(
        name="get_provider_states",
        description=(
            "Get all provider states defined across every pact where the given "
            "pacticipant is the provider. Returns states with their associated "
            "consumers."
        ),
        fields=(_PROVIDER_NAME,),
    ),
    ToolDefinition(
        name="get_provider_pacts",
        description=(
            "Get the latest pact versions for a specific provider "
            "(one pact per consumer)."
        ),
        fields=(_PROVIDER_NAME,),
    ),
    ToolDefinition(
        name="get_consumer_pacts",
        description=(
            "Get the latest pact versions for a specific consumer "
            "(one pact per provider)."
        ),
        fields=(_CONSUMER_NAME,),
    ),
    ToolDefinition(
        name="get_pact",
        description=(
            "Fetch the full latest pact JSON between a specific consumer and "
            "provider, including all interactions."
        ),
        fields=(_CONSUMER_NAME, _PROVIDER_NAME),
    ),
    ToolDefinition(
        name="get_pact_version",
        description=(
            "Get the Pact Broker pact-version UUID for a pact identified by "
            "provider, consumer, and consumer version. A specific pact can belong "
            "to multiple consumer versions if the pact content hasn't changed "
            "between versions. The pact-version UUID can be used to fetch "
            "verification results."
        ),
        fields=(_CONSUMER_NAME, _PROVIDER_NAME, _CONSUMER_VERSION),
    ),
    ToolDefinition(
        name="get_previous_distinct_pact",
        description=(
            "Fetch the previous distinct pact for a provider/consumer at a given "
            "consumer version. Returns the full pact JSON for the previous "
            "distinct pact, or null if there isn't one."
        ),
        fields=(_CONSUMER_NAME, _PROVIDER_NAME, _CONSUMER_VERSION),
    ),
    ToolDefinition(
        name="get_latest_verification_results_for_pact_version",
        description=(
            "Get the latest verification result(s) for a pact-version UUID for a "
            "given provider/consumer pair. Returns null if no verification "
            "results exist."
        ),
        fields=(_CONSUMER_NAME, _PROVIDER_NAME, _PACT_VERSION),
    ),
    ToolDefinition(
        name="can_i_deploy",
        description=(
            "Check if a pacticipant version can be safely deployed to an "
            "environment. Returns deployment status based on verification results."
        ),
        fields=(
            FieldSpec("pacticipant", "Name of the pacticipant to deploy"),
            FieldSpec("version", "Version number or tag of the pacticipant"),
            _ENVIRONMENT,
        ),
    ),
    ToolDefinition(
        name="list_environments",
        description=(
            "List all environments registered in the Pact Broker where "
            "pacticipants can be deployed."
        ),
    ),
    ToolDefinition(
        name="get_pacticipant_branches",
        description=(
            "Get all branches for a specific pacticipant. Branches are used for "
            "versioning and tracking different development streams."
        ),
        fields=(_PACTICIPANT_NAME,),
    ),
    ToolDefinition(
        name="get_pacticipant_branch_latest_version",
        description="Get the latest version for a specific branch of a pacticipant.",
        fields=(
            FieldSpec("pacticipant", "Name of the pacticipant"),
            FieldSpec("branch", "Name of the branch"),
        ),
    ),
    ToolDefinition(
        name="get_currently_deployed_versions",
        description=(
            "List the pacticipant versions currently deployed to an environment. "
            "The environment may be given by name or UUID."
        ),
        fields=(_ENVIRONMENT,),
    ),
    ToolDefinition(
        name="get_currently_supported_versions",
        description=(
            "List the released pacticipant versions currently supported in an "
            "environment. The environment may be given by name or UUID."
        ),
        fields=(_ENVIRONMENT,),
    ),
)

_DEFINITIONS_BY_NAME: Dict[str, ToolDefinition] = {
    definition.name: definition for definition in TOOL_DEFINITIONS
}


def get_tool_definition(name: str) -> ToolDefinition:
    """Look up a tool definition by name.

    Raises:
        UnknownOperation: If no tool has that name
    """
    try:
        return _DEFINITIONS_BY_NAME[name]
    except KeyError:
        raise UnknownOperation(name) from None


__all__ = [
    "FieldSpec",
    "TOOL_DEFINITIONS",
    "ToolArguments",
    "ToolDefinition",
    "get_tool_definition",
]
