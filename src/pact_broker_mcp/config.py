"""
Server configuration for pact-broker-mcp.

Supports configuration via:
1. Environment variables (highest priority)
2. TOML config file (pact-broker-mcp.toml)
3. Default values (lowest priority)

Environment variables:
- PACT_BROKER_BASE_URL: Base URL of the Pact Broker (required for tool calls)
- PACT_BROKER_USERNAME: Username for basic auth (optional)
- PACT_BROKER_PASSWORD: Password for basic auth (optional)
- PACT_BROKER_TOKEN: Bearer token (optional, takes precedence over basic auth)
- PACT_BROKER_TIMEOUT: Request timeout in seconds (optional, httpx default otherwise)
- PACT_BROKER_MCP_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
- PACT_BROKER_MCP_STRUCTURED_LOGGING: JSON log lines (true/false)
- PACT_BROKER_MCP_CONFIG_FILE: Path to TOML config file

The configuration is built once at startup and passed explicitly to the
tool dispatcher; nothing below the dispatcher reads the environment.
"""

import base64
import logging
import os
from dataclasses import dataclass, field, replace
from importlib.metadata import version as get_package_version, PackageNotFoundError
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # Python < 3.11 fallback

from pact_broker_mcp.core.errors import MissingConfiguration
from pact_broker_mcp.core.logging_config import configure_logging


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILES = ("pact-broker-mcp.toml", ".pact-broker-mcp.toml")


def _get_version() -> str:
    """Get package version from metadata (single source of truth: pyproject.toml)."""
    try:
        return get_package_version("pact-broker-mcp")
    except PackageNotFoundError:
        return "0.1.0"


_PACKAGE_VERSION = _get_version()


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "1", "yes", "on"}


def _parse_timeout(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid broker timeout: %r", value)
        return None
    return timeout if timeout > 0 else None


def _normalize_base_url(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    return value.rstrip("/")


@dataclass(frozen=True)
class BrokerConfig:
    """Connection settings for the Pact Broker.

    Attributes:
        base_url: Broker root URL without trailing slash (None if unset)
        username: Basic auth username
        password: Basic auth password
        token: Bearer token; wins over basic auth when both are present
        timeout: Request timeout in seconds (None = httpx default)
    """

    base_url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    token: Optional[str] = field(default=None, repr=False)
    timeout: Optional[float] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_url", _normalize_base_url(self.base_url))

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "BrokerConfig":
        """Create config from the [broker] section of a TOML file."""
        return cls(
            base_url=data.get("base_url"),
            username=data.get("username") or None,
            password=data.get("password") or None,
            token=data.get("token") or None,
            timeout=_parse_timeout(data.get("timeout")),
        )

    @property
    def basic_auth_token(self) -> Optional[str]:
        """Base64 of ``username:password``, only when both are configured."""
        if not (self.username and self.password):
            return None
        raw = f"{self.username}:{self.password}".encode("utf-8")
        return base64.b64encode(raw).decode("ascii")

    def authorization_header(self) -> Optional[str]:
        """Return the Authorization header value, bearer token first."""
        if self.token:
            return f"Bearer {self.token}"
        basic = self.basic_auth_token
        if basic:
            return f"Basic {basic}"
        return None

    def require_base_url(self) -> str:
        """Return the base URL or raise MissingConfiguration."""
        if not self.base_url:
            raise MissingConfiguration(
                "PACT_BROKER_BASE_URL environment variable is required"
            )
        return self.base_url


@dataclass
class ServerConfig:
    """Server configuration with support for env vars and TOML overrides."""

    broker: BrokerConfig = field(default_factory=BrokerConfig)

    # Logging configuration
    log_level: str = "INFO"
    structured_logging: bool = True

    # Server configuration
    server_name: str = "pact-broker-mcp"
    server_version: str = field(default_factory=lambda: _PACKAGE_VERSION)

    @classmethod
    def from_env(cls, config_file: Optional[str] = None) -> "ServerConfig":
        """
        Create configuration from environment variables and optional TOML file.

        Priority (highest to lowest):
        1. Environment variables
        2. TOML config file
        3. Default values
        """
        config = cls()

        toml_path = config_file or os.environ.get("PACT_BROKER_MCP_CONFIG_FILE")
        if toml_path:
            config._load_toml(Path(toml_path))
        else:
            for default_path in DEFAULT_CONFIG_FILES:
                if Path(default_path).exists():
                    config._load_toml(Path(default_path))
                    break

        config._load_env()
        return config

    def _load_toml(self, path: Path) -> None:
        """Load configuration from TOML file."""
        if not path.exists():
            logger.warning("Config file not found: %s", path)
            return

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.error("Error loading config file %s: %s", path, e)
            return

        if "broker" in data:
            self.broker = BrokerConfig.from_toml_dict(data["broker"])

        if "logging" in data:
            log = data["logging"]
            if "level" in log:
                self.log_level = str(log["level"]).upper()
            if "structured" in log:
                self.structured_logging = _parse_bool(log["structured"])

        if "server" in data:
            srv = data["server"]
            if "name" in srv:
                self.server_name = srv["name"]
            if "version" in srv:
                self.server_version = srv["version"]

    def _load_env(self) -> None:
        """Load configuration from environment variables."""
        overrides: Dict[str, Any] = {}

        if base_url := os.environ.get("PACT_BROKER_BASE_URL"):
            overrides["base_url"] = base_url
        if username := os.environ.get("PACT_BROKER_USERNAME"):
            overrides["username"] = username
        if password := os.environ.get("PACT_BROKER_PASSWORD"):
            overrides["password"] = password
        if token := os.environ.get("PACT_BROKER_TOKEN"):
            overrides["token"] = token
        if timeout := os.environ.get("PACT_BROKER_TIMEOUT"):
            overrides["timeout"] = _parse_timeout(timeout)

        if overrides:
            self.broker = replace(self.broker, **overrides)

        if level := os.environ.get("PACT_BROKER_MCP_LOG_LEVEL"):
            self.log_level = level.upper()
        if structured := os.environ.get("PACT_BROKER_MCP_STRUCTURED_LOGGING"):
            self.structured_logging = _parse_bool(structured)

    def setup_logging(self) -> None:
        """Configure logging based on settings."""
        configure_logging(
            level=self.log_level,
            format="structured" if self.structured_logging else "human",
        )


# Global configuration instance
_config: Optional[ServerConfig] = None


def get_config() -> ServerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ServerConfig.from_env()
    return _config


def set_config(config: ServerConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
