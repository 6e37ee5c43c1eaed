"""Settings and policy document loaders.

This module provides utilities to load client settings from YAML files,
dictionaries or the environment, and to read policy documents for offline
validation.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .schemas import PolicyKind


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


class ClientSettings(BaseModel):
    """Connection settings for the external policy service."""

    base_url: str = Field(
        default="http://localhost:8000",
        description="Base URL of the policy service, including any path prefix",
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Transport timeout applied to every request",
    )
    token_env_var: str = Field(
        default="POLICY_SERVICE_TOKEN",
        description="Environment variable holding the bearer credential",
    )
    api_token: Optional[str] = Field(
        default=None,
        description="Bearer credential the local policy service accepts (any when unset)",
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate base URL is an http(s) URL without a trailing slash."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v.rstrip("/")

    def get_token(self) -> Optional[str]:
        """Read the bearer credential from the configured environment variable."""
        return os.getenv(self.token_env_var) or None


def _read_yaml(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    if not path.is_file():
        raise ConfigurationError(f"Configuration path is not a file: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse YAML file: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Failed to read configuration file: {e}") from e

    if data is None:
        raise ConfigurationError("Configuration file is empty")

    if not isinstance(data, dict):
        raise ConfigurationError("Configuration must be a YAML object (dict)")

    return data


def load_settings_from_yaml(config_path: Union[str, Path]) -> ClientSettings:
    """Load and validate client settings from a YAML file.

    Args:
        config_path: Path to the YAML settings file

    Returns:
        Validated ClientSettings instance

    Raises:
        ConfigurationError: If the file cannot be read or validation fails
        FileNotFoundError: If the settings file doesn't exist
    """
    data = _read_yaml(Path(config_path))
    return load_settings_from_dict(data)


def load_settings_from_dict(config_dict: Dict[str, Any]) -> ClientSettings:
    """Load and validate client settings from a dictionary.

    Raises:
        ConfigurationError: If validation fails
    """
    try:
        return ClientSettings(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed: {e}") from e


def load_settings_from_env() -> ClientSettings:
    """Load client settings from ``POLICY_SERVICE_*`` environment variables.

    Unset variables fall back to the ClientSettings defaults.

    Raises:
        ConfigurationError: If a variable holds an invalid value
    """
    values: Dict[str, Any] = {}

    base_url = os.getenv("POLICY_SERVICE_URL")
    if base_url:
        values["base_url"] = base_url

    timeout = os.getenv("POLICY_SERVICE_TIMEOUT")
    if timeout:
        values["timeout_seconds"] = timeout

    api_token = os.getenv("POLICY_SERVICE_API_TOKEN")
    if api_token:
        values["api_token"] = api_token

    return load_settings_from_dict(values)


def load_policy_document(document_path: Union[str, Path]) -> Tuple[PolicyKind, Dict[str, Any]]:
    """Read a policy document holding a ``kind`` and a raw ``config``.

    Example document::

        kind: escalation
        config:
          rules:
            - trigger: breach
              ...

    Args:
        document_path: Path to the YAML document

    Returns:
        Tuple of policy kind and raw (unvalidated) config

    Raises:
        ConfigurationError: If the document is malformed
        FileNotFoundError: If the document doesn't exist
    """
    data = _read_yaml(Path(document_path))

    try:
        kind = PolicyKind(data.get("kind"))
    except ValueError as e:
        supported = [k.value for k in PolicyKind]
        raise ConfigurationError(
            f"Policy kind '{data.get('kind')}' not supported. Must be one of: {supported}"
        ) from e

    config = data.get("config")
    if config is None:
        config = {}
    if not isinstance(config, dict):
        raise ConfigurationError("Policy config must be a YAML object (dict)")

    return kind, config
