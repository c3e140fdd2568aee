"""Shape broker models into the JSON documents returned by tools.

Each projection picks the fields a client needs, uses the broker's camelCase
names, and drops keys whose value is None.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pact_broker_mcp.core.models import (
    Branch,
    Environment,
    Interaction,
    Pact,
    PactSummary,
    PactVersionRef,
    Pacticipant,
    ProviderStateWithConsumers,
    RecordedVersion,
    VerificationResult,
    Version,
    extract_provider_states,
)


def _compact(values: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


def project_pacticipant(pacticipant: Pacticipant, *, detailed: bool = False) -> Dict[str, Any]:
    result = {
        "name": pacticipant.name,
        "displayName": pacticipant.display_name,
        "repositoryUrl": pacticipant.repository_url,
    }
    if detailed:
        result["repositoryName"] = pacticipant.repository_name
    result.update(
        {
            "mainBranch": pacticipant.main_branch,
            "createdAt": pacticipant.created_at,
            "updatedAt": pacticipant.updated_at,
        }
    )
    return _compact(result)


def project_provider(pacticipant: Pacticipant) -> Dict[str, Any]:
    return _compact(
        {
            "name": pacticipant.name,
            "displayName": pacticipant.display_name,
            "repositoryUrl": pacticipant.repository_url,
            "mainBranch": pacticipant.main_branch,
        }
    )


def project_pact_summary(pact: PactSummary) -> Dict[str, Any]:
    return _compact(
        {
            "consumer": pact.consumer.name,
            "provider": pact.provider.name,
            "pactUrl": pact.url,
            "createdAt": pact.created_at,
        }
    )


def project_provider_state(state: ProviderStateWithConsumers) -> Dict[str, Any]:
    return {"name": state.name, "consumers": list(state.consumers)}


def _project_interaction(interaction: Interaction) -> Dict[str, Any]:
    # Extras (request, response, contents, ...) pass through untouched.
    extras = dict(interaction.model_extra or {})
    return _compact(
        {
            "description": interaction.description,
            "providerStates": [dict(entry) for entry in interaction.state_entries],
            **extras,
        }
    )


def project_pact(pact: Optional[Pact]) -> Optional[Dict[str, Any]]:
    """Full pact view with provider states mined from its interactions."""
    if pact is None:
        return None
    result: Dict[str, Any] = {
        "consumer": pact.consumer.name,
        "provider": pact.provider.name,
        "providerStates": extract_provider_states(pact),
        "interactions": [_project_interaction(i) for i in pact.interactions],
    }
    if pact.messages:
        result["messages"] = [_project_interaction(m) for m in pact.messages]
    result["metadata"] = pact.metadata
    return result


def project_pact_version(ref: PactVersionRef) -> Dict[str, Any]:
    return _compact(
        {
            "consumer": ref.consumer,
            "provider": ref.provider,
            "consumerVersion": ref.consumer_version,
            "pactVersion": ref.pact_version,
            "pactUrl": ref.pact_url,
            "createdAt": ref.created_at,
        }
    )


def project_verification(result: Optional[VerificationResult]) -> Optional[Dict[str, Any]]:
    if result is None:
        return None
    return _compact(
        {
            "success": result.success,
            "providerApplicationVersion": result.provider_application_version,
            "buildUrl": result.build_url,
            "publishedAt": result.published_at,
        }
    )


def project_environment(env: Environment) -> Dict[str, Any]:
    return _compact(
        {
            "name": env.name,
            "displayName": env.display_name,
            "production": env.production,
            "uuid": env.uuid,
            "createdAt": env.created_at,
        }
    )


def project_branch(branch: Branch) -> Dict[str, Any]:
    return _compact(
        {
            "name": branch.name,
            "createdAt": branch.created_at,
            "updatedAt": branch.updated_at,
        }
    )


def project_version(version: Version) -> Dict[str, Any]:
    return _compact(
        {
            "number": version.number,
            "buildUrl": version.build_url,
            "branch": version.branch,
            "createdAt": version.created_at,
        }
    )


def project_deployed_version(record: RecordedVersion) -> Dict[str, Any]:
    return _compact(
        {
            "pacticipant": record.pacticipant,
            "version": record.version,
            "target": record.target,
            "createdAt": record.created_at,
            "currentlyDeployed": record.currently_deployed,
        }
    )


def project_supported_version(record: RecordedVersion) -> Dict[str, Any]:
    return _compact(
        {
            "pacticipant": record.pacticipant,
            "version": record.version,
            "target": record.target,
            "createdAt": record.created_at,
            "currentlySupported": record.currently_supported,
        }
    )


def project_list(items: List[Any], projector) -> List[Dict[str, Any]]:
    return [projector(item) for item in items]


__all__ = [
    "project_branch",
    "project_deployed_version",
    "project_environment",
    "project_list",
    "project_pact",
    "project_pact_summary",
    "project_pact_version",
    "project_pacticipant",
    "project_provider",
    "project_provider_state",
    "project_supported_version",
    "project_verification",
    "project_version",
]
