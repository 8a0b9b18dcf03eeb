"""Configuration loading and management for the test harness."""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import sys

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from pydantic import BaseModel, Field, ValidationError

ENV_PREFIX = "MCP_HARNESS_"


class ServerConfig(BaseModel):
    """Remote MCP server location and endpoint layout."""

    base_url: str = Field(
        default="https://calm-benevolence-production.up.railway.app",
        description="Base URL for the server",
    )
    api_prefix: str = Field(default="/api/v1", description="Prefix shared by all endpoints")
    health_endpoint: str = Field(default="/health", description="Health check endpoint")
    connect_endpoint: str = Field(default="/connect", description="Session connect endpoint")
    rpc_endpoint: str = Field(default="/rpc", description="JSON-RPC endpoint")
    events_endpoint: str = Field(default="/events", description="Server-sent events endpoint")
    disconnect_endpoint: str = Field(default="/disconnect", description="Session release endpoint")
    timeout: float = Field(default=30.0, description="Request timeout in seconds")

    def path(self, endpoint: str) -> str:
        """Join the API prefix and an endpoint path."""
        return "/" + "/".join(
            part.strip("/") for part in (self.api_prefix, endpoint) if part.strip("/")
        )


class ClientConfig(BaseModel):
    """Identity the harness presents to the server."""

    name: str = Field(default="mcp-test-client", description="clientInfo.name sent on connect")
    version: str = Field(default="1.0.0", description="clientInfo.version sent on connect")
    user_agent: str = Field(default="MCP-Test-Client/1.0", description="User-Agent header")
    verify_ssl: bool = Field(default=True, description="SSL verification")
    placeholder_session: str = Field(
        default="test-session",
        description="Session id sent to the event stream when no session is held",
    )


class EventsConfig(BaseModel):
    """Event stream check settings."""

    idle_timeout: float = Field(
        default=5.0, gt=0, description="Seconds to wait for the first streamed chunk"
    )


class RpcConfig(BaseModel):
    """RPC calls made by a full run."""

    methods: List[str] = Field(
        default_factory=lambda: ["ping", "tools/list", "resources/list"],
        description="Methods called in order once a session is established",
    )


class OutputConfig(BaseModel):
    """Output configuration."""

    format: str = Field(default="pretty", description="Output format: pretty, table, json")
    colors: bool = Field(default=True, description="Enable colored output")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="WARNING", description="Log level: DEBUG, INFO, WARNING, ERROR")
    format: str = Field(default="text", description="Log format: text, json")


class HarnessConfig(BaseModel):
    """Complete test harness configuration."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)
    events: EventsConfig = Field(default_factory=EventsConfig)
    rpc: RpcConfig = Field(default_factory=RpcConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class ConfigLoader:
    """Configuration loader with TOML support and validation."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize the config loader.

        Args:
            config_dir: Directory containing configuration files.
                       Defaults to the directory of this module.
        """
        if config_dir is None:
            self.config_dir = Path(__file__).parent
        else:
            self.config_dir = Path(config_dir)

    def load_config(self, profile: str = "default") -> HarnessConfig:
        """Load configuration from TOML files with profile support.

        Args:
            profile: Configuration profile to load (e.g., 'default', 'staging')

        Returns:
            Loaded and validated configuration

        Raises:
            FileNotFoundError: If the default configuration file is missing
            ValueError: If TOML parsing or validation fails
        """
        default_config_path = self.config_dir / "default.toml"
        if not default_config_path.exists():
            raise FileNotFoundError(
                f"Default configuration file not found: {default_config_path}"
            )
        config_data = self._load_toml_file(default_config_path)

        if profile != "default":
            profile_config_path = self.config_dir / f"{profile}.toml"
            if not profile_config_path.exists():
                raise FileNotFoundError(
                    f"Profile configuration file not found: {profile_config_path}"
                )
            config_data = self._merge_configs(
                config_data, self._load_toml_file(profile_config_path)
            )

        config_data = self._apply_env_overrides(config_data)

        try:
            return HarnessConfig(**config_data)
        except ValidationError as e:
            raise ValueError(f"Configuration validation failed: {e}") from e

    def _load_toml_file(self, file_path: Path) -> Dict[str, Any]:
        """Load and parse a TOML file.

        Raises:
            ValueError: If TOML parsing fails
        """
        try:
            with open(file_path, "rb") as f:
                return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Failed to parse TOML file {file_path}: {e}") from e

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration.

        Environment variables follow the pattern MCP_HARNESS_<SECTION>_<KEY>,
        e.g. MCP_HARNESS_SERVER_BASE_URL or MCP_HARNESS_EVENTS_IDLE_TIMEOUT.
        Only known sections are considered.
        """
        result = {
            key: value.copy() if isinstance(value, dict) else value
            for key, value in config_data.items()
        }

        for env_key, env_value in os.environ.items():
            if not env_key.startswith(ENV_PREFIX):
                continue

            section, _, key = env_key[len(ENV_PREFIX):].lower().partition("_")
            if section not in HarnessConfig.model_fields or not key:
                continue

            section_data = result.setdefault(section, {})
            if isinstance(section_data, dict):
                section_data[key] = self._convert_env_value(env_value)

        return result

    def _convert_env_value(self, value: str) -> Any:
        """Convert environment variable string to appropriate type."""
        if value.lower() in ("true", "false"):
            return value.lower() == "true"

        try:
            if "." in value:
                return float(value)
            else:
                return int(value)
        except ValueError:
            pass

        return value


def load_config(profile: str = "default", config_dir: Optional[Path] = None) -> HarnessConfig:
    """Load configuration with the specified profile.

    Args:
        profile: Configuration profile to load
        config_dir: Configuration directory (optional)

    Returns:
        Loaded configuration instance
    """
    return ConfigLoader(config_dir).load_config(profile)
