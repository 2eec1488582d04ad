# deltabuild/config/loader.py
"""
Layered configuration loading.

This module implements the config merge strategy:
    1. Package defaults (deltabuild/config/default.yaml) - always loaded
    2. User config ({base}/.deltabuild/config.yaml, or an explicit path) - overrides defaults

The merged result is validated against BuildConfig, so callers never need
fallback logic.

Usage:
    from deltabuild.config.loader import load_config

    config = load_config(base_directory)
    config.fingerprint   # "stat" unless overridden
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError

from deltabuild.config.schema import BuildConfig
from deltabuild.core.exceptions import (
    ConfigError,
    ConfigNotFoundError,
    ConfigParseError,
    ConfigValidationError,
)
from deltabuild.core.paths import resolve_base, user_config
from deltabuild.logging.logger import get_logger
from deltabuild.logging.tags import CONFIG

logger = get_logger(__name__)

ROOT_KEY = "deltabuild"


def _get_defaults_path() -> Path:
    return Path(__file__).parent / "default.yaml"


# =============================================================================
# Deep Merge
# =============================================================================


def deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Values from `override` take precedence over `base`.
    Nested dicts are merged recursively; lists are replaced entirely.

    Examples:
        >>> deep_merge({"a": 1, "b": {"c": 2, "d": 3}}, {"b": {"c": 10}})
        {'a': 1, 'b': {'c': 10, 'd': 3}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


# =============================================================================
# Loading Functions
# =============================================================================


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a YAML file and return it as a dictionary.

    Raises:
        ConfigNotFoundError: If file doesn't exist
        ConfigParseError: If YAML is invalid or not a mapping
    """
    p = Path(path)

    if not p.exists():
        raise ConfigNotFoundError("Config file not found", path=p)

    if p.is_dir():
        raise ConfigError("Config path is a directory, not a file", path=p)

    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigParseError(f"Invalid YAML syntax: {e}", path=p) from e
    except OSError as e:
        raise ConfigParseError(f"Failed to read config: {e}", path=p) from e

    if not isinstance(data, dict):
        raise ConfigParseError("Config root must be a mapping (dict)", path=p)

    logger.debug(f"{CONFIG} Loaded config from {p}")
    return data


def _unwrap(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Accept both `deltabuild: {...}` and a flat mapping."""
    if ROOT_KEY in raw and isinstance(raw[ROOT_KEY], dict):
        return raw[ROOT_KEY]
    return raw


def load_defaults() -> Dict[str, Any]:
    """Package defaults, unwrapped from the `deltabuild` key."""
    return _unwrap(load_yaml(_get_defaults_path()))


def load_config(
    base_directory: Union[str, Path],
    config_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> BuildConfig:
    """
    Load the effective configuration for a base directory.

    Args:
        base_directory: The build context's base directory
        config_path: Explicit user config; must exist when given
        overrides: Highest-priority values (e.g. from a host plugin)

    Returns:
        Validated BuildConfig

    Raises:
        ConfigNotFoundError: If config_path is given but missing
        ConfigParseError: If a YAML file is invalid
        ConfigValidationError: If the merged config doesn't match the schema
    """
    merged = load_defaults()

    if config_path is not None:
        user_path = Path(config_path)
        merged = deep_merge(merged, _unwrap(load_yaml(user_path)))
    else:
        user_path = user_config(resolve_base(base_directory))
        if user_path.is_file():
            merged = deep_merge(merged, _unwrap(load_yaml(user_path)))
        else:
            user_path = None

    if overrides:
        merged = deep_merge(merged, overrides)

    try:
        return BuildConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid configuration: {e}", path=user_path) from e


__all__ = [
    "deep_merge",
    "load_yaml",
    "load_defaults",
    "load_config",
]
