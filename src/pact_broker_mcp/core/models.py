"""Pydantic models for Pact Broker resources.

The broker speaks HAL+JSON with camelCase keys. Models accept those keys via
aliases, keep unknown keys as extras, and dump back with the same aliases.
Every model is built from a single HTTP response and discarded afterwards.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def link_href(links: Mapping[str, Any], rel: str = "self") -> Optional[str]:
    """Return the href of a HAL link; list-valued links yield their first entry."""
    link = links.get(rel)
    if isinstance(link, list):
        link = link[0] if link else None
    if isinstance(link, Mapping):
        href = link.get("href")
        return href if isinstance(href, str) else None
    return None


class BrokerModel(BaseModel):
    """Base model for broker resources."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


# =============================================================================
# Pacticipants
# =============================================================================


class Pacticipant(BrokerModel):
    """A consumer or provider registered in the broker."""

    name: str
    display_name: Optional[str] = Field(default=None, alias="displayName")
    repository_url: Optional[str] = Field(default=None, alias="repositoryUrl")
    repository_name: Optional[str] = Field(default=None, alias="repositoryName")
    main_branch: Optional[str] = Field(default=None, alias="mainBranch")
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")
    links: Dict[str, Any] = Field(default_factory=dict, alias="_links")


class PartyRef(BrokerModel):
    """Name reference to the consumer or provider side of a pact."""

    name: str


# =============================================================================
# Provider states
# =============================================================================


@dataclass(frozen=True)
class LegacyState:
    """Pact v1/v2 encoding: a single ``providerState`` string."""

    name: str

    def names(self) -> Tuple[str, ...]:
        return (self.name,) if self.name else ()


@dataclass(frozen=True)
class StateList:
    """Pact v3/v4 encoding: ``providerStates`` as a list of ``{name, params}``."""

    entries: Tuple[str, ...]

    def names(self) -> Tuple[str, ...]:
        return tuple(name for name in self.entries if name)


StateEncoding = Union[LegacyState, StateList]


def decode_state_encodings(raw: Mapping[str, Any]) -> List[StateEncoding]:
    """Decode the provider-state fields present on a raw interaction."""
    encodings: List[StateEncoding] = []

    modern = raw.get("providerStates")
    if isinstance(modern, list):
        names = []
        for entry in modern:
            name = entry.get("name") if isinstance(entry, Mapping) else entry
            if isinstance(name, str) and name:
                names.append(name)
        encodings.append(StateList(tuple(names)))

    legacy = raw.get("providerState")
    if isinstance(legacy, str) and legacy:
        encodings.append(LegacyState(legacy))

    return encodings


def normalize_state_names(encodings: Iterable[StateEncoding]) -> List[str]:
    """Collapse state encodings into a sorted list of distinct names."""
    return sorted({name for encoding in encodings for name in encoding.names()})


# =============================================================================
# Pacts
# =============================================================================


class Interaction(BrokerModel):
    """One request/response (or message) expectation within a pact.

    Both provider-state encodings are folded into ``provider_states`` at
    validation time; the legacy ``providerState`` key does not survive.
    ``state_entries`` keeps each declared state as ``{name, params}`` in
    declaration order, legacy strings becoming ``{name}``.
    """

    description: Optional[str] = None
    provider_states: List[str] = Field(default_factory=list, alias="providerStates")
    state_entries: List[Dict[str, Any]] = Field(default_factory=list, exclude=True)

    @model_validator(mode="before")
    @classmethod
    def _normalize_provider_states(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        normalized = dict(data)
        normalized["state_entries"] = _state_entries(normalized)
        names = normalize_state_names(decode_state_encodings(normalized))
        normalized.pop("providerState", None)
        normalized["providerStates"] = names
        return normalized


def _state_entries(raw: Mapping[str, Any]) -> List[Dict[str, Any]]:
    entries: List[Dict[str, Any]] = []
    legacy = raw.get("providerState")
    if isinstance(legacy, str) and legacy:
        entries.append({"name": legacy})
    modern = raw.get("providerStates")
    if isinstance(modern, list):
        for entry in modern:
            if isinstance(entry, Mapping) and isinstance(entry.get("name"), str):
                entries.append(dict(entry))
            elif isinstance(entry, str) and entry:
                entries.append({"name": entry})
    return entries


class Pact(BrokerModel):
    """A pact document between one consumer and one provider."""

    consumer: PartyRef
    provider: PartyRef
    interactions: List[Interaction] = Field(default_factory=list)
    messages: List[Interaction] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    links: Dict[str, Any] = Field(default_factory=dict, alias="_links")

    @field_validator("interactions", "messages", "metadata", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any, info: Any) -> Any:
        if value is None:
            return {} if info.field_name == "metadata" else []
        return value

    def provider_state_names(self) -> List[str]:
        return extract_provider_states(self)


def extract_provider_states(pact: Pact) -> List[str]:
    """Return every provider state named in a pact, sorted and de-duplicated."""
    names = set()
    for interaction in [*pact.interactions, *pact.messages]:
        names.update(interaction.provider_states)
    return sorted(names)


class PactSummary(BrokerModel):
    """An entry of the latest-pacts listing."""

    consumer: PartyRef
    provider: PartyRef
    pact_url: Optional[str] = Field(default=None, alias="pactUrl")
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    links: Dict[str, Any] = Field(default_factory=dict, alias="_links")

    @model_validator(mode="before")
    @classmethod
    def _lift_embedded_parties(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        embedded = data.get("_embedded")
        if not isinstance(embedded, Mapping):
            return data
        lifted = dict(data)
        for side in ("consumer", "provider"):
            if side not in lifted and side in embedded:
                lifted[side] = embedded[side]
        return lifted

    @property
    def url(self) -> Optional[str]:
        return self.pact_url or link_href(self.links, "self")


class ProviderStateWithConsumers(BrokerModel):
    """A provider state and the consumers whose pacts declare it."""

    name: str
    consumers: List[str] = Field(default_factory=list)

    @field_validator("consumers", mode="before")
    @classmethod
    def _consumer_names(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [
                item.get("name") if isinstance(item, Mapping) else item
                for item in value
            ]
        return value


class PactVersionRef(BrokerModel):
    """Content-addressed identity of the pact published for a consumer version."""

    consumer: str
    provider: str
    consumer_version: str = Field(alias="consumerVersion")
    pact_version: str = Field(alias="pactVersion")
    pact_url: Optional[str] = Field(default=None, alias="pactUrl")
    created_at: Optional[str] = Field(default=None, alias="createdAt")


# =============================================================================
# Verification, environments, branches, versions
# =============================================================================


class VerificationResult(BrokerModel):
    """Outcome of a provider verifying a pact version."""

    success: Optional[bool] = None
    provider_application_version: Optional[str] = Field(
        default=None, alias="providerApplicationVersion"
    )
    build_url: Optional[str] = Field(default=None, alias="buildUrl")
    published_at: Optional[str] = Field(default=None, alias="publishedAt")

    @model_validator(mode="before")
    @classmethod
    def _published_from_verification_date(cls, data: Any) -> Any:
        if isinstance(data, Mapping) and "publishedAt" not in data:
            if "verificationDate" in data:
                data = {**data, "publishedAt": data["verificationDate"]}
        return data


class Environment(BrokerModel):
    """A deployment target such as "production"."""

    uuid: Optional[str] = None
    name: str
    display_name: Optional[str] = Field(default=None, alias="displayName")
    production: Optional[bool] = None
    created_at: Optional[str] = Field(default=None, alias="createdAt")


class Branch(BrokerModel):
    """A development line of a pacticipant."""

    name: str
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")


class Version(BrokerModel):
    """A published pacticipant version."""

    number: Optional[str] = None
    build_url: Optional[str] = Field(default=None, alias="buildUrl")
    branch: Optional[str] = None
    created_at: Optional[str] = Field(default=None, alias="createdAt")


class RecordedVersion(BrokerModel):
    """A deployed or released pacticipant version in an environment."""

    uuid: Optional[str] = None
    pacticipant: Optional[str] = None
    version: Optional[str] = None
    target: Optional[str] = None
    currently_deployed: Optional[bool] = Field(default=None, alias="currentlyDeployed")
    currently_supported: Optional[bool] = Field(
        default=None, alias="currentlySupported"
    )
    created_at: Optional[str] = Field(default=None, alias="createdAt")

    @model_validator(mode="before")
    @classmethod
    def _lift_embedded(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        embedded = data.get("_embedded")
        if not isinstance(embedded, Mapping):
            return data
        lifted = dict(data)
        pacticipant = embedded.get("pacticipant")
        if not isinstance(lifted.get("pacticipant"), str) and isinstance(
            pacticipant, Mapping
        ):
            lifted["pacticipant"] = pacticipant.get("name")
        version = embedded.get("version")
        if not isinstance(lifted.get("version"), str) and isinstance(version, Mapping):
            lifted["version"] = version.get("number")
        return lifted


# =============================================================================
# can-i-deploy
# =============================================================================


class VerdictSummary(BrokerModel):
    deployable: Optional[bool] = None
    reason: Optional[str] = None
    success: Optional[int] = None
    failed: Optional[int] = None
    unknown: Optional[int] = None


class DeployabilityVerdict(BrokerModel):
    """The broker's answer to "can I deploy version X to environment Y?".

    ``deployable`` may be null when the broker cannot decide; that counts as
    not deployable.
    """

    summary: VerdictSummary = Field(default_factory=VerdictSummary)
    matrix: List[Dict[str, Any]] = Field(default_factory=list)

    @property
    def can_deploy(self) -> bool:
        return self.summary.deployable is True

    @property
    def reason(self) -> str:
        return self.summary.reason or ""

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)


__all__ = [
    "BrokerModel",
    "Branch",
    "DeployabilityVerdict",
    "Environment",
    "Interaction",
    "LegacyState",
    "Pact",
    "PactSummary",
    "PactVersionRef",
    "Pacticipant",
    "PartyRef",
    "ProviderStateWithConsumers",
    "RecordedVersion",
    "StateEncoding",
    "StateList",
    "VerdictSummary",
    "VerificationResult",
    "Version",
    "decode_state_encodings",
    "extract_provider_states",
    "link_href",
    "normalize_state_names",
]
