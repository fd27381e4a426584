"""
Configuration loader for Browser Oracle.

This module loads YAML configuration files, resolves ${ENV_VAR} references,
validates the result with the BrowserConfig Pydantic model, and merges
command-line overrides on top.

Functions:
    load_config: Load and validate oracle.config.yaml
    build_config: Merge overrides over a loaded (or default) configuration
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from browser_oracle.exceptions import ConfigFileNotFoundError, ConfigValidationError

from .schema import BrowserConfig

# Environment variable consulted when remote_cdp_url is not configured
CDP_URL_ENV_VAR = "PLAYWRIGHT_CDP_URL"

_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)\}")


def load_config(config_path: str | Path) -> BrowserConfig:
    """
    Load oracle.config.yaml into a validated BrowserConfig.

    This function:
    1. Loads YAML from the specified path
    2. Resolves ${ENV_VAR} references in string values
    3. Validates structure using the BrowserConfig Pydantic model
    4. Falls back to $PLAYWRIGHT_CDP_URL for remote_cdp_url

    Args:
        config_path: Path to the YAML file (relative or absolute)

    Returns:
        BrowserConfig ready to pass to run()

    Raises:
        ConfigFileNotFoundError: If config file doesn't exist
        ConfigValidationError: If YAML is invalid, an env var is missing,
            or validation fails

    Example:
        >>> config = load_config("examples/oracle.config.yaml")
        >>> config.thresholds.stable_ticks_threshold
        20
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigFileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with config_path.open(encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML syntax in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigValidationError(
            f"Failed to read configuration file {config_path}: {e}"
        ) from e

    # An empty file means "all defaults"
    if raw_config is None:
        raw_config = {}

    if not isinstance(raw_config, dict):
        raise ConfigValidationError(
            f"Configuration root must be a mapping in {config_path}, "
            f"got {type(raw_config).__name__}"
        )

    return _validate(_resolve_env_vars_recursive(raw_config), source=str(config_path))


def build_config(
    base: BrowserConfig | None = None, **overrides: Any
) -> BrowserConfig:
    """
    Merge overrides over a base configuration.

    Overrides whose value is None are ignored, so CLI options that were not
    given leave the file (or default) value untouched.

    Args:
        base: Configuration to start from (defaults to BrowserConfig())
        **overrides: Top-level BrowserConfig fields to replace

    Returns:
        New validated BrowserConfig

    Raises:
        ConfigValidationError: If the merged configuration is invalid

    Example:
        >>> config = build_config(headless=True, timeout_ms=None)
        >>> config.headless, config.timeout_ms
        (True, 900000)
    """
    data = (base or BrowserConfig()).model_dump()
    data.update({key: value for key, value in overrides.items() if value is not None})
    return _validate(data, source="overrides")


def _validate(raw_config: dict[str, Any], source: str) -> BrowserConfig:
    """Validate a raw mapping and apply environment fallbacks."""
    if not raw_config.get("remote_cdp_url"):
        env_cdp_url = os.environ.get(CDP_URL_ENV_VAR)
        if env_cdp_url:
            raw_config = {**raw_config, "remote_cdp_url": env_cdp_url}

    try:
        return BrowserConfig.model_validate(raw_config)
    except ValidationError as e:
        error_messages = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            msg = error["msg"]
            error_messages.append(f"  - {loc}: {msg}")

        raise ConfigValidationError(
            f"Configuration validation failed in {source}:\n"
            + "\n".join(error_messages)
        ) from e


def _resolve_env_vars_recursive(obj):
    """
    Recursively resolve ${ENV_VAR} references in nested dicts/lists.

    Raises:
        ConfigValidationError: If a referenced env var is not set
    """
    if isinstance(obj, dict):
        return {key: _resolve_env_vars_recursive(value) for key, value in obj.items()}

    if isinstance(obj, list):
        return [_resolve_env_vars_recursive(item) for item in obj]

    if isinstance(obj, str):
        missing = [
            name for name in _ENV_VAR_PATTERN.findall(obj) if name not in os.environ
        ]
        if missing:
            raise ConfigValidationError(
                f"Environment variable ${{{missing[0]}}} not set. "
                f"Please set it in your environment."
            )
        return _ENV_VAR_PATTERN.sub(lambda m: os.environ[m.group(1)], obj)

    return obj
