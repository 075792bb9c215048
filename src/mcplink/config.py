"""Configuration models and the YAML config loader.

Every field has a default, so ``MCPLinkConfig()`` is a working configuration
and a config file only needs to list what it overrides::

    client:
      request_timeout: 15
      cache_endpoint: true
    server:
      port: 9090
      data_dir: ${HOME}/.mcplink
    servers:
      - local:http://localhost:8080/mcp
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from mcplink import __version__


class ConfigError(Exception):
    """Raised when a config file fails parsing or validation."""


class SSESettings(BaseModel):
    """Server-Sent-Events listener behaviour."""

    enabled: bool = True
    initial_backoff: float = 1.0
    max_backoff: float = 60.0
    max_retries: int | None = None
    jitter: bool = True
    queue_size: int = 64


class ClientSettings(BaseModel):
    """HTTP client and handshake settings shared by every connection."""

    connect_timeout: float = 10.0
    request_timeout: float = 30.0
    user_agent: str = f"mcplink-client/{__version__}"
    protocol_version: str = "2024-11-05"
    client_name: str = "mcplink"
    client_version: str = __version__
    health_check: bool = True
    cache_endpoint: bool = False
    sse: SSESettings = Field(default_factory=SSESettings)


class ServerSettings(BaseModel):
    """Settings for the bundled MCP tool server."""

    host: str = "0.0.0.0"
    port: int = 8080
    name: str = "mcplink-server"
    version: str = __version__
    data_dir: Path = Path(".")
    reminders_file: str = "reminders.json"
    information_file: str = "information.json"
    default_queue: str = "TEST"

    @property
    def reminders_path(self) -> Path:
        return self.data_dir / self.reminders_file

    @property
    def information_path(self) -> Path:
        return self.data_dir / self.information_file


class AgentSettings(BaseModel):
    """Settings for the periodic reminder agent."""

    server_url: str = "http://localhost:8080/mcp"
    check_interval_minutes: float = 60.0
    summary_interval_hours: float = 6.0


class MCPLinkConfig(BaseModel):
    """Top-level configuration."""

    client: ClientSettings = Field(default_factory=ClientSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    agent: AgentSettings = Field(default_factory=AgentSettings)
    servers: list[str] = []


class ConfigLoader:
    """Load and validate a YAML config file into :class:`MCPLinkConfig`."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def load(self) -> MCPLinkConfig:
        """Read YAML, interpolate env vars, and validate.

        Raises:
            ConfigError: On read errors, YAML parse errors or schema violations.
        """
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Cannot read {self._path}: {exc}") from exc

        expanded = os.path.expandvars(raw)

        try:
            data: Any = yaml.safe_load(expanded)
        except yaml.YAMLError as exc:
            raise ConfigError(f"YAML parse error: {exc}") from exc

        if data is None:
            return MCPLinkConfig()
        if not isinstance(data, dict):
            raise ConfigError("Config YAML must be a mapping")

        try:
            return MCPLinkConfig.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc


def load_config(path: str | Path | None = None) -> MCPLinkConfig:
    """Load *path* if given, otherwise return the defaults."""
    if path is None:
        return MCPLinkConfig()
    return ConfigLoader(Path(path)).load()
