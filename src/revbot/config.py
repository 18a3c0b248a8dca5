"""Relay configuration using pydantic-settings.

This module defines the RelaySettings class that reads configuration from a
YAML config file, overridden by environment variables with the REVBOT_
prefix. Nested sections use a double underscore, e.g.
REVBOT_GITLAB__ACCESS_TOKEN overrides `gitlab.access_token`.

Example config file:

    gitlab:
      hostname: gitlab.example.com
      access_token: glpat-xxxx
    webex:
      access_token: xxxx
      whoami_link: https://wiki.example.com/revbot
"""

from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Type, Union

import yaml
from pydantic import BaseModel, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from revbot.webex.client import DEFAULT_MESSAGES_URL


DEFAULT_CONFIG_PATH = "config/default.yaml"


class LogLevel(str, Enum):
    """Log levels accepted by the config file, environment and CLI."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ConfigError(Exception):
    """Raised when the config file cannot be read."""

    pass


def _require_non_empty(v: str, name: str) -> str:
    if not v or not v.strip():
        raise ValueError(f"{name} cannot be empty")
    return v


class GitLabSettings(BaseModel):
    """GitLab section of the configuration."""

    # Host name of the GitLab instance, e.g. gitlab.com
    hostname: str

    # Token used for the read-only enrichment lookups
    access_token: str

    # Path the webhook endpoint is served on
    webhook_path: Optional[str] = None

    # Accepted but not verified against X-Gitlab-Token
    webhook_token: Optional[str] = None

    @field_validator("hostname")
    @classmethod
    def validate_hostname(cls, v: str) -> str:
        """Validate that hostname is not empty."""
        return _require_non_empty(v, "gitlab.hostname")

    @field_validator("access_token")
    @classmethod
    def validate_access_token(cls, v: str) -> str:
        """Validate that access token is not empty."""
        return _require_non_empty(v, "gitlab.access_token")

    @field_validator("webhook_path")
    @classmethod
    def validate_webhook_path(cls, v: Optional[str]) -> Optional[str]:
        """Validate that webhook path is absolute."""
        if v is not None and not v.startswith("/"):
            raise ValueError("gitlab.webhook_path must start with /")
        return v


class WebexSettings(BaseModel):
    """Webex section of the configuration."""

    # Bot access token used to send messages
    access_token: str

    # Messages endpoint
    api_url: str = DEFAULT_MESSAGES_URL

    # Unused; reserved for inbound Webex webhooks
    webhook_path: Optional[str] = None
    webhook_token: Optional[str] = None

    # Appended to every message body when set
    whoami_link: Optional[str] = None

    @field_validator("access_token")
    @classmethod
    def validate_access_token(cls, v: str) -> str:
        """Validate that access token is not empty."""
        return _require_non_empty(v, "webex.access_token")

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        """Validate that the API URL is a valid URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("webex.api_url must start with http:// or https://")
        return v


class RelaySettings(BaseSettings):
    """Relay configuration from the config file and environment variables.

    Environment variables take precedence over values read from the config
    file. Required sections: `gitlab` (hostname, access_token) and `webex`
    (access_token).
    """

    model_config = SettingsConfigDict(
        env_prefix="REVBOT_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    # -------------------------------------------------------------------------
    # Server Configuration
    # -------------------------------------------------------------------------
    host: str = "127.0.0.1"

    port: int = 4001

    log_level: str = "INFO"

    # -------------------------------------------------------------------------
    # Outbound Calls
    # -------------------------------------------------------------------------
    # Upper bound for every GitLab lookup and Webex send
    request_timeout_seconds: float = 10.0

    # -------------------------------------------------------------------------
    # Integrations
    # -------------------------------------------------------------------------
    gitlab: GitLabSettings

    webex: WebexSettings

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # Config file values arrive as init kwargs; the environment wins.
        return env_settings, init_settings, file_secret_settings

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate that port is in valid range."""
        if not 1 <= v <= 65535:
            raise ValueError("port must be between 1 and 65535")
        return v

    @field_validator("request_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate that the timeout is positive."""
        if v <= 0:
            raise ValueError("request_timeout_seconds must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalise the log level name."""
        level = v.upper()
        if level not in LogLevel.__members__:
            raise ValueError(f"unknown log_level: {v}")
        return level


def read_config_file(config_path: Union[str, Path]) -> Dict[str, Any]:
    """Read a YAML config file into a dictionary.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        The parsed mapping; empty if the file is missing or empty.

    Raises:
        ConfigError: If the file cannot be parsed or is not a mapping.
    """
    path = Path(config_path)
    if not path.exists():
        return {}

    try:
        with open(path, "r") as f:
            config_dict = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read config file {path}: {e}") from e

    if config_dict is None:
        return {}
    if not isinstance(config_dict, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return config_dict


def load_settings(config_path: Optional[Union[str, Path]] = None) -> RelaySettings:
    """Create RelaySettings from a config file and the environment.

    Args:
        config_path: Path to the YAML config file. Defaults to
                     config/default.yaml. A missing file is not an error.

    Returns:
        RelaySettings: Configured settings instance.

    Raises:
        ConfigError: If the config file is unreadable.
        pydantic.ValidationError: If required fields are missing or invalid.
    """
    file_values = read_config_file(config_path or DEFAULT_CONFIG_PATH)
    return RelaySettings(**file_values)
