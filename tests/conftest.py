"""
Root pytest configuration and shared fixtures.

Provides an isolated environment for configuration tests and a mock Pact
Broker built on ``httpx.MockTransport``.
"""

import json
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx
import pytest

from pact_broker_mcp.config import BrokerConfig
from pact_broker_mcp.core.client import PactBrokerClient
from pact_broker_mcp.tools.dispatcher import ToolDispatcher
from tests.fixtures.broker_responses import BASE_URL

BROKER_ENV_VARS = (
    "PACT_BROKER_BASE_URL",
    "PACT_BROKER_USERNAME",
    "PACT_BROKER_PASSWORD",
    "PACT_BROKER_TOKEN",
    "PACT_BROKER_TIMEOUT",
    "PACT_BROKER_MCP_LOG_LEVEL",
    "PACT_BROKER_MCP_STRUCTURED_LOGGING",
    "PACT_BROKER_MCP_CONFIG_FILE",
)

RouteValue = Union[Dict[str, Any], List[Any], Tuple[int, Any], Callable[[httpx.Request], httpx.Response]]


class MockBroker:
    """In-memory Pact Broker keyed by raw (percent-encoded) request path.

    Route values are a JSON body (served with 200), a ``(status, body)``
    tuple, or a callable taking the request. Unrouted paths return 404.
    Every request is recorded in ``requests``.
    """

    def __init__(self, routes: Optional[Dict[str, RouteValue]] = None):
        self.routes: Dict[str, RouteValue] = dict(routes or {})
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.raw_path.decode("ascii").split("?", 1)[0]
        route = self.routes.get(path)
        if route is None:
            return httpx.Response(404, text="Not Found")
        if callable(route):
            return route(request)
        if isinstance(route, tuple):
            status, body = route
            if isinstance(body, str):
                return httpx.Response(status, text=body)
            return httpx.Response(status, json=body)
        return httpx.Response(200, json=route)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def paths(self) -> List[str]:
        return [r.url.raw_path.decode("ascii").split("?", 1)[0] for r in self.requests]


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Clear broker env vars and run from an empty directory."""
    for name in BROKER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    yield tmp_path


@pytest.fixture
def broker_config() -> BrokerConfig:
    return BrokerConfig(base_url=BASE_URL)


@pytest.fixture
def mock_broker() -> MockBroker:
    return MockBroker()


@pytest.fixture
def client(broker_config, mock_broker) -> PactBrokerClient:
    return PactBrokerClient(broker_config, transport=mock_broker.transport)


@pytest.fixture
def dispatcher(broker_config, mock_broker) -> ToolDispatcher:
    transport = mock_broker.transport
    return ToolDispatcher(
        broker_config,
        client_factory=lambda config: PactBrokerClient(config, transport=transport),
    )


def envelope_json(envelope) -> Any:
    """Parse the JSON text of a successful envelope."""
    assert not envelope.is_error, envelope.text
    return json.loads(envelope.text)
