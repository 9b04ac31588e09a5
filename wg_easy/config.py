"""
Configuration for the wg-easy client.

Sources, in order of preference:
- keyword arguments / an explicit Config object
- environment variables (WGEASY_URL, WGEASY_PASSWORD, ...)
- a YAML file (~/.wg-easy/config.yaml)
"""

import os
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, ValidationError, field_validator

from wg_easy.exceptions import ConfigurationError

DEFAULT_CONFIG_PATH = "~/.wg-easy/config.yaml"

ENV_VARS = {
    "base_url": "WGEASY_URL",
    "password": "WGEASY_PASSWORD",
    "timeout": "WGEASY_TIMEOUT",
    "retry_attempts": "WGEASY_RETRY_ATTEMPTS",
    "retry_delay": "WGEASY_RETRY_DELAY",
    "cache_ttl": "WGEASY_CACHE_TTL",
    "log_level": "WGEASY_LOG_LEVEL",
}


class Config(BaseModel):
    """Connection settings for one client instance."""

    base_url: str
    password: Optional[str] = None

    # Durations in milliseconds
    timeout: int = 30000
    retry_attempts: int = 3
    retry_delay: int = 1000
    cache_ttl: int = 5000

    log_level: str = "WARNING"

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(loc) for loc in first.get("loc", ())) or "config"
            message = str(first.get("msg", "invalid value")).removeprefix("Value error, ")
            raise ConfigurationError(f"{field}: {message}") from e

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: str) -> str:
        if not value:
            raise ValueError("baseUrl is required")
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("Invalid baseUrl format")
        return value.rstrip("/")

    @field_validator("timeout")
    @classmethod
    def _check_timeout(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("timeout must be a positive number")
        return value

    @field_validator("retry_attempts", "retry_delay", "cache_ttl")
    @classmethod
    def _check_non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("must be a non-negative number")
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {value}")
        return level

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None) -> "Config":
        """Build a configuration from WGEASY_* environment variables."""
        env = os.environ if environ is None else environ

        if not env.get(ENV_VARS["base_url"]):
            raise ConfigurationError("WGEASY_URL environment variable is required")

        data: dict[str, Any] = {}
        for field, var in ENV_VARS.items():
            value = env.get(var)
            if value is None or value == "":
                continue
            if field in ("timeout", "retry_attempts", "retry_delay", "cache_ttl"):
                try:
                    data[field] = int(value)
                except ValueError:
                    raise ConfigurationError(f"{var} must be an integer, got {value!r}")
            else:
                data[field] = value

        return cls(**data)

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        """Load configuration from a YAML file."""
        path = Path(os.path.expanduser(config_path or DEFAULT_CONFIG_PATH))

        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file must contain a mapping: {path}")

        return cls(**data)

    def save(self, config_path: Optional[str] = None) -> None:
        """Save configuration to a YAML file."""
        path = Path(os.path.expanduser(config_path or DEFAULT_CONFIG_PATH))
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            yaml.dump(self.model_dump(exclude_none=True), f, default_flow_style=False)

    def to_dict(self) -> dict[str, Any]:
        """Configuration with the password masked, safe to log or display."""
        data = self.model_dump()
        data["password"] = "***" if self.password else None
        return data
