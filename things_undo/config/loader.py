"""
Configuration Loader
~~~~~~~~~~~~~~~~~~~~

Loads and validates a things-undo YAML config, merging with defaults
and environment overrides.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import yaml
from pydantic import ValidationError

from things_undo.config.defaults import DEFAULT_CONFIG
from things_undo.config.schema import UndoConfig
from things_undo.exceptions import (
    ConfigFileNotFoundError,
    ConfigValidationError,
)

__all__ = ["load_config", "load_config_from_dict", "AUTH_TOKEN_ENV"]

logger = logging.getLogger(__name__)

AUTH_TOKEN_ENV = "THINGS_UNDO_AUTH_TOKEN"


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dicts, with override taking precedence."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _apply_env(config: UndoConfig) -> UndoConfig:
    """Fill the auth token from the environment when the config has none."""
    if not config.dispatch.auth_token:
        token = os.environ.get(AUTH_TOKEN_ENV, "").strip()
        if token:
            config.dispatch.auth_token = token
    return config


def load_config(path: str) -> UndoConfig:
    """
    Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Validated UndoConfig instance.

    Raises:
        ConfigFileNotFoundError: If the file doesn't exist.
        ConfigValidationError: If the config fails validation.
    """
    if not os.path.exists(path):
        raise ConfigFileNotFoundError(f"Configuration file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            user_config = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigValidationError(
            f"Invalid YAML in configuration file: {exc}"
        ) from exc

    if not isinstance(user_config, dict):
        raise ConfigValidationError(
            f"Configuration file must contain a mapping, got {type(user_config).__name__}"
        )

    logger.debug("Loaded configuration from %s", path)
    return load_config_from_dict(user_config)


def load_config_from_dict(data: dict[str, Any]) -> UndoConfig:
    """
    Load configuration from a dictionary, merging with defaults.

    Raises:
        ConfigValidationError: If validation fails.
    """
    merged = _deep_merge(DEFAULT_CONFIG, data)

    try:
        config = UndoConfig(**merged)
    except (ValidationError, TypeError) as exc:
        raise ConfigValidationError(f"Configuration validation failed: {exc}") from exc
    return _apply_env(config)
