"""
Configuration management.

Two layers:
- Settings: exporter runtime settings (listener, logging, timeouts) via
  Pydantic Settings. Environment variables take precedence over .env file.
- UpstreamConfig: MaxScale REST API credentials and address, read once at
  startup from the JSON file passed with --path.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from maxscale_exporter.core.exceptions import ConfigError


class Settings(BaseSettings):
    """
    Exporter settings with validation.

    All settings can be overridden via environment variables.
    Example: MAXSCALE_EXPORTER_LISTEN_PORT=9200 python -m maxscale_exporter
    """

    model_config = SettingsConfigDict(
        env_prefix="MAXSCALE_EXPORTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_name: str = "MaxScale Exporter"
    app_version: str = "1.0.0"

    # Upstream configuration file (JSON with username, password, host, port)
    config_path: str | None = None

    # Server
    listen_host: str = "0.0.0.0"
    listen_port: int = 9104

    # Upstream
    upstream_timeout: float = 10.0  # seconds, per request

    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "console"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is uppercase."""
        return v.upper()


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance.

    lru_cache ensures we only parse env vars once.
    """
    return Settings()


class UpstreamConfig(BaseModel):
    """Credentials and address of the MaxScale REST API."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    username: str = ""
    password: SecretStr = SecretStr("")
    host: str
    port: int

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Default to plain http when no scheme is given."""
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("host must not be empty")
        if "://" not in v:
            v = f"http://{v}"
        return v

    @property
    def base_url(self) -> str:
        """Root of the versioned REST API, e.g. http://127.0.0.1:8989/v1/"""
        return f"{self.host}:{self.port}/v1/"


def load_upstream_config(path: str | Path | None) -> UpstreamConfig:
    """
    Load upstream configuration from a JSON file.

    Raises:
        ConfigError: file missing, unreadable, not JSON, or missing fields
    """
    if not path:
        raise ConfigError("No configuration file given (use --path)")

    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(
            f"Cannot open configuration file {path}",
            details={"path": str(path), "error": str(e)},
        ) from e

    try:
        document = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(
            "Cannot parse json configuration file",
            details={"path": str(path), "error": str(e)},
        ) from e

    if not isinstance(document, dict):
        raise ConfigError(
            "Configuration file must contain a JSON object",
            details={"path": str(path)},
        )

    try:
        return UpstreamConfig.model_validate(document)
    except ValidationError as e:
        raise ConfigError(
            "Invalid configuration file",
            details={
                "path": str(path),
                "errors": e.errors(include_url=False, include_input=False),
            },
        ) from e
