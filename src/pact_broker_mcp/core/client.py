"""Pact Broker API client.

Wraps the broker's HAL+JSON REST API. Every operation issues one or more
GET requests against fixed endpoint templates rooted at the configured base
URL and parses the body into the models in ``pact_broker_mcp.core.models``.

No retries, no caching: a failed request surfaces immediately as
``RemoteRequestFailed`` (non-2xx) or ``TransportFailure`` (network or
parse error).

Example usage:
    client = PactBrokerClient(BrokerConfig(base_url="https://broker.example.com"))
    pacts = await client.get_provider_pacts("billing-service")
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any, List, Optional, Sequence, Tuple, Type, TypeVar
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from pact_broker_mcp.config import BrokerConfig
from pact_broker_mcp.core.errors import (
    EnvironmentNotFound,
    RemoteRequestFailed,
    TransportFailure,
)
from pact_broker_mcp.core.models import (
    Branch,
    BrokerModel,
    DeployabilityVerdict,
    Environment,
    Pact,
    PactSummary,
    PactVersionRef,
    Pacticipant,
    ProviderStateWithConsumers,
    RecordedVersion,
    VerificationResult,
    Version,
    link_href,
)

logger = logging.getLogger(__name__)

ACCEPT_HEADER = "application/hal+json, application/json"

ModelT = TypeVar("ModelT", bound=BrokerModel)

_PACT_VERSION_HREF = re.compile(r"/pact-version/([^/?#]+)")


def encode_segment(value: str) -> str:
    """Percent-encode a value for use as a single URL path segment."""
    return quote(str(value), safe="")


def _pact_path(provider_name: str, consumer_name: str) -> str:
    return (
        f"/pacts/provider/{encode_segment(provider_name)}"
        f"/consumer/{encode_segment(consumer_name)}"
    )


def _embedded_list(data: Any, key: str) -> List[Any]:
    """Read a HAL collection from ``_embedded.<key>``, or ``<key>`` at the top level."""
    if not isinstance(data, Mapping):
        return []
    embedded = data.get("_embedded")
    if isinstance(embedded, Mapping) and isinstance(embedded.get(key), list):
        return embedded[key]
    items = data.get(key)
    return items if isinstance(items, list) else []


def _find_pact_version_sha(pact: Pact) -> Optional[str]:
    link = pact.links.get("pb:pact-version")
    if isinstance(link, Mapping):
        name = link.get("name")
        if isinstance(name, str) and name:
            return name

    for rel in pact.links:
        href = link_href(pact.links, rel)
        if href:
            match = _PACT_VERSION_HREF.search(href)
            if match:
                return match.group(1)
    return None


class PactBrokerClient:
    """Async client for the Pact Broker REST API.

    Attributes:
        config: Broker connection settings
    """

    def __init__(
        self,
        config: BrokerConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            config: Broker connection settings; ``base_url`` must be set.
            transport: Optional httpx transport (e.g. ``httpx.MockTransport``).

        Raises:
            MissingConfiguration: If no base URL is configured
        """
        self.config = config
        self._base_url = config.require_base_url()
        self._transport = transport

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": ACCEPT_HEADER,
        }
        authorization = self.config.authorization_header()
        if authorization:
            headers["Authorization"] = authorization
        return headers

    def _client_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"headers": self._headers()}
        if self.config.timeout is not None:
            kwargs["timeout"] = self.config.timeout
        if self._transport is not None:
            kwargs["transport"] = self._transport
        return kwargs

    async def _get_json(
        self,
        path: str,
        *,
        params: Optional[Sequence[Tuple[str, str]]] = None,
        allow_missing: bool = False,
    ) -> Any:
        """GET ``base_url + path`` and decode the JSON body.

        Args:
            path: Path below the base URL, already percent-encoded
            params: Query parameters (repeated keys allowed)
            allow_missing: Return None on 404 instead of raising

        Raises:
            RemoteRequestFailed: On any other non-2xx status
            TransportFailure: On network errors or an undecodable body
        """
        url = f"{self._base_url}{path}"
        logger.debug("GET %s", url)

        try:
            async with httpx.AsyncClient(**self._client_kwargs()) as client:
                response = await client.get(url, params=params)
        except httpx.RequestError as e:
            raise TransportFailure(
                f"Pact Broker request to {url} failed: {e}", original_error=e
            ) from e

        if allow_missing and response.status_code == 404:
            logger.debug("GET %s returned 404, treating as absent", url)
            return None

        if not response.is_success:
            raise RemoteRequestFailed(
                response.status_code,
                response.reason_phrase,
                response.text,
                url=str(response.request.url),
            )

        try:
            return response.json()
        except ValueError as e:
            raise TransportFailure(
                f"Invalid JSON in Pact Broker response from {url}: {e}",
                original_error=e,
            ) from e

    @staticmethod
    def _parse(model: Type[ModelT], data: Any, source: str) -> ModelT:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise TransportFailure(
                f"Unexpected {model.__name__} payload from {source}: "
                f"{e.error_count()} validation error(s)",
                original_error=e,
            ) from e

    def _parse_list(self, model: Type[ModelT], items: List[Any], source: str) -> List[ModelT]:
        return [self._parse(model, item, source) for item in items]

    # ------------------------------------------------------------------
    # Pacticipants
    # ------------------------------------------------------------------

    async def list_pacticipants(self) -> List[Pacticipant]:
        """List all pacticipants (consumers and providers)."""
        data = await self._get_json("/pacticipants")
        return self._parse_list(
            Pacticipant, _embedded_list(data, "pacticipants"), "/pacticipants"
        )

    async def get_pacticipant(self, name: str) -> Pacticipant:
        path = f"/pacticipants/{encode_segment(name)}"
        return self._parse(Pacticipant, await self._get_json(path), path)

    async def list_providers(self) -> List[Pacticipant]:
        """List pacticipants that are the provider of at least one latest pact.

        The broker has no providers-only endpoint, so this fetches all
        pacticipants and then all latest pacts, one after the other.
        """
        pacticipants = await self.list_pacticipants()
        latest_pacts = await self.get_latest_pacts()
        provider_names = {pact.provider.name for pact in latest_pacts}
        return [p for p in pacticipants if p.name in provider_names]

    # ------------------------------------------------------------------
    # Pacts
    # ------------------------------------------------------------------

    async def get_latest_pacts(self) -> List[PactSummary]:
        """Latest pact for every consumer/provider pair."""
        data = await self._get_json("/pacts/latest")
        return self._parse_list(PactSummary, _embedded_list(data, "pacts"), "/pacts/latest")

    async def get_provider_pacts(self, provider_name: str) -> List[PactSummary]:
        """Latest pacts where ``provider_name`` is the provider (case-insensitive)."""
        wanted = provider_name.lower()
        return [
            pact
            for pact in await self.get_latest_pacts()
            if pact.provider.name.lower() == wanted
        ]

    async def get_consumer_pacts(self, consumer_name: str) -> List[PactSummary]:
        """Latest pacts where ``consumer_name`` is the consumer (case-insensitive)."""
        wanted = consumer_name.lower()
        return [
            pact
            for pact in await self.get_latest_pacts()
            if pact.consumer.name.lower() == wanted
        ]

    async def get_provider_states(
        self, provider_name: str
    ) -> List[ProviderStateWithConsumers]:
        """Provider states across every pact of ``provider_name``."""
        path = f"/pacts/provider/{encode_segment(provider_name)}/provider-states"
        data = await self._get_json(path)
        states = data.get("providerStates") if isinstance(data, Mapping) else None
        return self._parse_list(ProviderStateWithConsumers, states or [], path)

    async def get_pact(self, consumer_name: str, provider_name: str) -> Pact:
        """Latest pact between a consumer and a provider."""
        path = f"{_pact_path(provider_name, consumer_name)}/latest"
        return self._parse(Pact, await self._get_json(path), path)

    async def get_pact_for_version(
        self, consumer_name: str, provider_name: str, consumer_version: str
    ) -> Pact:
        """Pact published by a specific consumer version."""
        path = (
            f"{_pact_path(provider_name, consumer_name)}"
            f"/version/{encode_segment(consumer_version)}"
        )
        return self._parse(Pact, await self._get_json(path), path)

    async def get_pact_version(
        self, consumer_name: str, provider_name: str, consumer_version: str
    ) -> PactVersionRef:
        """Resolve the pact-version sha of the pact for a consumer version."""
        pact = await self.get_pact_for_version(
            consumer_name, provider_name, consumer_version
        )
        sha = _find_pact_version_sha(pact)
        if not sha:
            raise TransportFailure(
                "Pact Broker response did not include a pact-version identifier "
                f"for {consumer_name} -> {provider_name} at version {consumer_version}"
            )
        return PactVersionRef(
            consumer=pact.consumer.name,
            provider=pact.provider.name,
            consumer_version=consumer_version,
            pact_version=sha,
            pact_url=link_href(pact.links, "self"),
            created_at=pact.created_at,
        )

    async def get_previous_distinct_pact(
        self, consumer_name: str, provider_name: str, consumer_version: str
    ) -> Optional[Pact]:
        """Previous pact with different content, or None if there is none."""
        path = (
            f"{_pact_path(provider_name, consumer_name)}"
            f"/version/{encode_segment(consumer_version)}/previous-distinct"
        )
        data = await self._get_json(path, allow_missing=True)
        if data is None:
            return None
        return self._parse(Pact, data, path)

    async def get_latest_verification_results(
        self, consumer_name: str, provider_name: str, pact_version: str
    ) -> Optional[VerificationResult]:
        """Latest verification of a pact version, or None if never verified."""
        path = (
            f"{_pact_path(provider_name, consumer_name)}"
            f"/pact-version/{encode_segment(pact_version)}"
            "/verification-results/latest"
        )
        data = await self._get_json(path, allow_missing=True)
        if data is None:
            return None
        return self._parse(VerificationResult, data, path)

    # ------------------------------------------------------------------
    # Deployment
    # ------------------------------------------------------------------

    async def can_i_deploy(
        self, pacticipant: str, version: str, environment: str
    ) -> DeployabilityVerdict:
        """Ask the matrix whether a pacticipant version can go to an environment."""
        params = [
            ("q[][pacticipant]", pacticipant),
            ("q[][version]", version),
            ("environment", environment),
            ("latestby", "cvp"),
        ]
        data = await self._get_json("/matrix", params=params)
        return self._parse(DeployabilityVerdict, data, "/matrix")

    async def list_environments(self) -> List[Environment]:
        data = await self._get_json("/environments")
        return self._parse_list(
            Environment, _embedded_list(data, "environments"), "/environments"
        )

    async def get_environment(self, environment: str) -> Environment:
        """Resolve an environment by UUID or (case-insensitive) name.

        Raises:
            EnvironmentNotFound: If nothing matches
        """
        environments = await self.list_environments()
        for env in environments:
            if env.uuid and env.uuid == environment:
                return env
        wanted = environment.lower()
        for env in environments:
            if env.name.lower() == wanted:
                return env
        raise EnvironmentNotFound(environment, [env.name for env in environments])

    async def _recorded_versions(
        self, environment: str, resource: str, key: str
    ) -> List[RecordedVersion]:
        env = await self.get_environment(environment)
        if not env.uuid:
            raise TransportFailure(
                f'Pact Broker environment "{env.name}" has no uuid'
            )
        path = f"/environments/{encode_segment(env.uuid)}/{resource}"
        data = await self._get_json(path)
        return self._parse_list(RecordedVersion, _embedded_list(data, key), path)

    async def get_currently_deployed_versions(
        self, environment: str
    ) -> List[RecordedVersion]:
        return await self._recorded_versions(
            environment, "deployed-versions/currently-deployed", "deployedVersions"
        )

    async def get_currently_supported_versions(
        self, environment: str
    ) -> List[RecordedVersion]:
        return await self._recorded_versions(
            environment, "released-versions/currently-supported", "releasedVersions"
        )

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    async def get_branches(self, pacticipant: str) -> List[Branch]:
        path = f"/pacticipants/{encode_segment(pacticipant)}/branches"
        data = await self._get_json(path)
        return self._parse_list(Branch, _embedded_list(data, "branches"), path)

    async def get_branch_latest_version(self, pacticipant: str, branch: str) -> Version:
        path = (
            f"/pacticipants/{encode_segment(pacticipant)}"
            f"/branches/{encode_segment(branch)}/latest-version"
        )
        return self._parse(Version, await self._get_json(path), path)


__all__ = [
    "ACCEPT_HEADER",
    "PactBrokerClient",
    "encode_segment",
]
