"""Invocation settings.

A DeployerSettings value is built once at the start of every command and
handed to each component. It is immutable; nothing downstream mutates it.

Values are resolved with the following precedence (highest first):
command-line flags, ``EDGE_DEPLOYER_*`` environment variables (a ``.env``
file in the working directory is loaded first without overriding the real
environment), an optional YAML file with a top-level ``config:`` key, and
finally DeploymentConstants.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .constants import DeploymentConstants
from .errors import ConfigurationError

_DURATION = re.compile(r"^\d+(ms|s|m|h)$")
_CONSTANTS = DeploymentConstants()


class SecretValues(BaseModel):
    """Values for one managed secret, as supplied by the operator."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    literals: dict[str, str] = Field(default_factory=dict)
    cert_file: Path | None = None
    key_file: Path | None = None


class DeployerSettings(BaseModel):
    """Resolved, immutable settings for a single invocation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    namespace: str = _CONSTANTS.DEFAULT_NAMESPACE
    release_name: str = _CONSTANTS.HELM_RELEASE_NAME
    chart_path: Path = Path(_CONSTANTS.CHART_PATH)
    values_file: Path = Path(_CONSTANTS.VALUES_FILE)
    instance_label: str = _CONSTANTS.INSTANCE_LABEL

    helm_timeout: str = _CONSTANTS.HELM_TIMEOUT
    ready_timeout: float = Field(default=_CONSTANTS.POD_READY_TIMEOUT_SECONDS, gt=0)
    poll_interval: float = Field(default=_CONSTANTS.POLL_INTERVAL_SECONDS, gt=0)
    sweep_timeout: str = _CONSTANTS.SWEEP_TIMEOUT
    namespace_timeout: str = _CONSTANTS.NAMESPACE_DELETE_TIMEOUT
    settle_delay: float = Field(default=_CONSTANTS.RESIDUAL_SETTLE_SECONDS, ge=0)

    secrets: dict[str, SecretValues] = Field(default_factory=dict)

    @field_validator("namespace", "release_name")
    @classmethod
    def _dns_label(cls, value: str) -> str:
        if not re.fullmatch(r"[a-z0-9]([-a-z0-9]*[a-z0-9])?", value) or len(value) > 63:
            raise ValueError(f"'{value}' is not a valid DNS-1123 label")
        return value

    @field_validator("helm_timeout", "sweep_timeout", "namespace_timeout")
    @classmethod
    def _duration(cls, value: str) -> str:
        if not _DURATION.match(value):
            raise ValueError(f"'{value}' is not a duration like 300s or 10m")
        return value

    @field_validator("secrets")
    @classmethod
    def _known_secrets(cls, value: dict[str, SecretValues]) -> dict[str, SecretValues]:
        unknown = set(value) - set(_CONSTANTS.managed_secret_names)
        if unknown:
            raise ValueError(f"unknown managed secret(s): {', '.join(sorted(unknown))}")
        return value

    @property
    def label_selector(self) -> str:
        """Selector matching every object owned by this release."""
        return f"{self.instance_label}={self.release_name}"


def _read_config_file(file_path: Path) -> dict[str, Any]:
    try:
        loaded = yaml.safe_load(file_path.read_text())
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {file_path}", details=str(e)) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Error parsing YAML in {file_path}", details=str(e)) from e

    if not isinstance(loaded, dict) or "config" not in loaded:
        raise ConfigurationError(
            f"Invalid config file {file_path}",
            details="Expected a top-level 'config:' key",
        )
    section = loaded["config"]
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigurationError(
            f"Invalid config file {file_path}",
            details=f"'config:' must be a mapping of settings, got {type(section).__name__}",
        )
    return dict(section)


def _read_environment() -> dict[str, Any]:
    prefix = _CONSTANTS.ENV_PREFIX
    values: dict[str, Any] = {}
    for field_name in DeployerSettings.model_fields:
        if field_name == "secrets":
            continue
        env_value = os.environ.get(f"{prefix}{field_name.upper()}")
        if env_value is not None:
            values[field_name] = env_value
    if values:
        logger.debug("Environment overrides: {}", sorted(values))
    return values


def load_settings(
    config_file: Path | None = None,
    *,
    env_file: Path | None = None,
    **overrides: Any,
) -> DeployerSettings:
    """Build the settings for one invocation.

    Args:
        config_file: Optional YAML file with a top-level ``config:`` key
        env_file: Dotenv file to load (default: ``.env`` in the working dir)
        **overrides: Command-line values; None means "not given"

    Returns:
        Frozen DeployerSettings

    Raises:
        ConfigurationError: If the file cannot be parsed or a value is invalid
    """
    load_dotenv(env_file or Path.cwd() / ".env", override=False)

    merged: dict[str, Any] = {}
    if config_file is not None:
        merged.update(_read_config_file(config_file))
    merged.update(_read_environment())
    merged.update({key: value for key, value in overrides.items() if value is not None})

    try:
        settings = DeployerSettings(**merged)
    except ValidationError as e:
        raise ConfigurationError("Invalid configuration", details=str(e)) from e

    logger.info(
        "Settings resolved: release={} namespace={} chart={}",
        settings.release_name,
        settings.namespace,
        settings.chart_path,
    )
    return settings
