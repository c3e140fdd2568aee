"""Tests for configuration loading and broker auth settings."""

import base64

import pytest

from pact_broker_mcp.config import BrokerConfig, ServerConfig
from pact_broker_mcp.core.errors import MissingConfiguration


class TestBrokerConfig:
    """Tests for BrokerConfig normalization and auth headers."""

    def test_trailing_slash_is_stripped(self):
        config = BrokerConfig(base_url="https://broker.example.com/")
        assert config.base_url == "https://broker.example.com"

    def test_blank_base_url_is_unset(self):
        assert BrokerConfig(base_url="   ").base_url is None

    def test_require_base_url_raises_when_missing(self):
        with pytest.raises(MissingConfiguration) as exc_info:
            BrokerConfig().require_base_url()
        assert str(exc_info.value) == "PACT_BROKER_BASE_URL environment variable is required"

    def test_no_credentials_means_no_header(self):
        assert BrokerConfig(base_url="https://b").authorization_header() is None

    def test_basic_auth_requires_both_parts(self):
        assert BrokerConfig(username="u").authorization_header() is None
        assert BrokerConfig(password="p").authorization_header() is None

    def test_basic_auth_header(self):
        config = BrokerConfig(username="user", password="secret")
        expected = base64.b64encode(b"user:secret").decode("ascii")
        assert config.authorization_header() == f"Basic {expected}"

    def test_bearer_token_wins_over_basic(self):
        config = BrokerConfig(username="user", password="secret", token="t0k")
        assert config.authorization_header() == "Bearer t0k"

    def test_token_not_in_repr(self):
        assert "t0k" not in repr(BrokerConfig(token="t0k"))


class TestServerConfigFromEnv:
    """Tests for env > TOML > defaults precedence."""

    def test_defaults(self):
        config = ServerConfig.from_env()
        assert config.broker.base_url is None
        assert config.log_level == "INFO"
        assert config.structured_logging is True
        assert config.server_name == "pact-broker-mcp"

    def test_env_vars(self, monkeypatch):
        monkeypatch.setenv("PACT_BROKER_BASE_URL", "https://env.example.com/")
        monkeypatch.setenv("PACT_BROKER_TOKEN", "abc")
        monkeypatch.setenv("PACT_BROKER_TIMEOUT", "12.5")
        monkeypatch.setenv("PACT_BROKER_MCP_LOG_LEVEL", "debug")
        monkeypatch.setenv("PACT_BROKER_MCP_STRUCTURED_LOGGING", "false")

        config = ServerConfig.from_env()

        assert config.broker.base_url == "https://env.example.com"
        assert config.broker.token == "abc"
        assert config.broker.timeout == 12.5
        assert config.log_level == "DEBUG"
        assert config.structured_logging is False

    def test_invalid_timeout_is_ignored(self, monkeypatch):
        monkeypatch.setenv("PACT_BROKER_TIMEOUT", "soon")
        assert ServerConfig.from_env().broker.timeout is None

    def test_toml_file(self, isolated_env):
        (isolated_env / "pact-broker-mcp.toml").write_text(
            """
[broker]
base_url = "https://toml.example.com"
username = "alice"
password = "pw"
timeout = 5

[logging]
level = "warning"
structured = false

[server]
name = "my-broker"
"""
        )

        config = ServerConfig.from_env()

        assert config.broker.base_url == "https://toml.example.com"
        assert config.broker.username == "alice"
        assert config.broker.timeout == 5.0
        assert config.log_level == "WARNING"
        assert config.structured_logging is False
        assert config.server_name == "my-broker"

    def test_env_overrides_toml(self, isolated_env, monkeypatch):
        path = isolated_env / "custom.toml"
        path.write_text('[broker]\nbase_url = "https://toml.example.com"\nusername = "alice"\n')
        monkeypatch.setenv("PACT_BROKER_MCP_CONFIG_FILE", str(path))
        monkeypatch.setenv("PACT_BROKER_BASE_URL", "https://env.example.com")

        config = ServerConfig.from_env()

        assert config.broker.base_url == "https://env.example.com"
        assert config.broker.username == "alice"

    def test_missing_config_file_falls_back_to_defaults(self, isolated_env):
        config = ServerConfig.from_env(str(isolated_env / "nope.toml"))
        assert config.broker.base_url is None

    def test_malformed_toml_is_reported_not_raised(self, isolated_env):
        path = isolated_env / "bad.toml"
        path.write_text("[broker\nbase_url = ")
        config = ServerConfig.from_env(str(path))
        assert config.broker.base_url is None
