"""Configuration models for the connector.

Loads and validates configuration from YAML files using pydantic.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator

from spot_connector.domain.errors import ConfigurationError
from spot_connector.domain.types import Credentials
from spot_connector.exchange.base import ExchangeType


class ExchangeSettings(BaseModel):
    """Venue selection and credentials."""

    type: ExchangeType = ExchangeType.COINEX

    # Credentials (loaded from environment or specified directly)
    api_key_env: str | None = None
    api_secret_env: str | None = None

    # Direct credential values (override env vars if set)
    api_key: str | None = None
    api_secret: str | None = None

    # Base URL overrides (production if None)
    http_url: str | None = None
    ws_url: str | None = None

    def credentials(self) -> Credentials | None:
        """Resolve credentials from direct values or the environment.

        Returns:
            Credentials, or None if no key is configured

        Raises:
            ConfigurationError: If a key is configured without a secret
        """
        key = self.api_key or _from_env(self.api_key_env)
        secret = self.api_secret or _from_env(self.api_secret_env)

        if not key and not secret:
            return None
        if not key or not secret:
            raise ConfigurationError(
                "api_key and api_secret must be configured together",
                field="exchange.api_secret" if key else "exchange.api_key",
            )
        return Credentials(key=key, secret=secret)


def _from_env(name: str | None) -> str | None:
    if not name:
        return None
    return os.environ.get(name) or None


class SessionConfig(BaseModel):
    """Streaming session settings."""

    keepalive_interval: float | None = Field(default=None, gt=0)  # venue default
    read_timeout: float = Field(default=120.0, gt=0)
    queue_size: int = Field(default=1000, gt=0)
    open_timeout: float = Field(default=10.0, gt=0)
    close_timeout: float = Field(default=5.0, gt=0)

    @model_validator(mode="after")
    def check_read_timeout(self) -> SessionConfig:
        """The read deadline must outlast the keepalive interval."""
        if (
            self.keepalive_interval is not None
            and self.read_timeout <= self.keepalive_interval
        ):
            raise ValueError("read_timeout must be greater than keepalive_interval")
        return self


class HttpConfig(BaseModel):
    """REST transport settings."""

    timeout: float = Field(default=30.0, gt=0)


class StreamConfig(BaseModel):
    """Order book subscription used by the command line runner."""

    pairs: list[str] = Field(default_factory=list)
    depth: int = Field(default=20, gt=0)
    interval: str | None = None  # venue default
    full: bool = False
    duration_seconds: float | None = None  # run until interrupted


class ConnectorConfig(BaseModel):
    """Root configuration for the connector."""

    exchange: ExchangeSettings = Field(default_factory=ExchangeSettings)
    session: SessionConfig = Field(default_factory=SessionConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    stream: StreamConfig = Field(default_factory=StreamConfig)

    # Logging
    log_level: str = "INFO"
    log_file: str | None = None

    @classmethod
    def from_yaml(cls, path: str | Path) -> ConnectorConfig:
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML configuration file

        Returns:
            Validated ConnectorConfig

        Raises:
            FileNotFoundError: If the config file doesn't exist
            ValidationError: If the config is invalid
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f)

        return cls.model_validate(data or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConnectorConfig:
        """Load configuration from a dictionary.

        Args:
            data: Configuration dictionary

        Returns:
            Validated ConnectorConfig
        """
        return cls.model_validate(data)


def load_config(path: str | Path | None = None) -> ConnectorConfig:
    """Load connector configuration.

    Looks for config in the following order:
    1. Provided path argument
    2. ./config/connector.yaml
    3. Default configuration

    Args:
        path: Optional explicit path to config file

    Returns:
        Validated ConnectorConfig
    """
    if path:
        return ConnectorConfig.from_yaml(path)

    default_paths = [
        Path("./config/connector.yaml"),
        Path("./connector.yaml"),
    ]

    for default_path in default_paths:
        if default_path.exists():
            return ConnectorConfig.from_yaml(default_path)

    return ConnectorConfig()
