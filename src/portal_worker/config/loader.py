"""
Configuration loader with YAML file support and environment variable overrides.

Supports loading from:
1. Default values (defined in settings.py)
2. YAML configuration file
3. Legacy worker environment variables (PLAYWRIGHT_WORKER_SECRET, GOOGLE_API_KEY, ...)
4. Nested environment variables (highest priority)

Nested environment variables use the pattern: PORTAL_WORKER__{SECTION}__{KEY}
Example: PORTAL_WORKER__SERVER__MAX_CONCURRENT_SESSIONS=8
"""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from portal_worker.config.settings import Settings
from portal_worker.core.exceptions import ConfigurationError


ENV_PREFIX = "PORTAL_WORKER"

# Flat variables understood by earlier worker deployments
LEGACY_ENV_VARS: dict[str, tuple[str, str]] = {
    "PLAYWRIGHT_WORKER_SECRET": ("server", "secret"),
    "PORT": ("server", "port"),
    "GOOGLE_API_KEY": ("search", "api_key"),
    "GOOGLE_CX": ("search", "engine_id"),
    "OPENAI_API_KEY": ("text_generation", "api_key"),
}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries, with override taking precedence.

    Args:
        base: Base dictionary to merge into
        override: Dictionary with values to override

    Returns:
        Merged dictionary with override values taking precedence
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def _parse_env_value(value: str) -> Any:
    """
    Parse an environment variable string.

    Scalars are left as text so pydantic can coerce them against the
    field type; secrets such as "1234" must stay strings. Bracketed
    values are read as YAML lists or mappings.

    Args:
        value: String value from environment variable

    Returns:
        None, a list/dict for bracketed values, or the raw string
    """
    stripped = value.strip()

    if stripped.lower() in ("none", "null", ""):
        return None

    if stripped[0] in "[{":
        try:
            return yaml.safe_load(stripped)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid structured environment value: {e}",
                details={"value": stripped[:50]},
            ) from e

    return value


def _load_legacy_env(environ: Mapping[str, str]) -> dict[str, Any]:
    """Map the flat legacy variables onto settings sections."""
    overrides: dict[str, Any] = {}

    for env_name, (section, key) in LEGACY_ENV_VARS.items():
        value = environ.get(env_name)
        if value is None or not value.strip():
            continue
        overrides.setdefault(section, {})[key] = value

    return overrides


def _load_env_overrides(
    prefix: str = ENV_PREFIX,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """
    Load configuration overrides from environment variables.

    Environment variables should follow the pattern:
    {PREFIX}__{SECTION}__{KEY}

    For example:
    - PORTAL_WORKER__SERVER__SECRET=s3cret
    - PORTAL_WORKER__LOGGING__LEVEL=DEBUG

    Args:
        prefix: Environment variable prefix to look for
        environ: Mapping to read instead of os.environ

    Returns:
        Dictionary of configuration overrides
    """
    if environ is None:
        environ = os.environ

    overrides: dict[str, Any] = {}
    prefix_with_sep = f"{prefix}__"

    for key, value in environ.items():
        if not key.startswith(prefix_with_sep):
            continue

        key_path = key[len(prefix_with_sep):].lower().split("__")

        if len(key_path) < 2:
            continue

        current = overrides
        for part in key_path[:-1]:
            current = current.setdefault(part, {})

        current[key_path[-1]] = _parse_env_value(value)

    return overrides


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file

    Returns:
        Dictionary of configuration values

    Raises:
        ConfigurationError: If the file is missing, malformed or not a mapping
    """
    if not path.exists():
        raise ConfigurationError(
            f"Configuration file not found: {path}",
            details={"path": str(path)},
        )

    try:
        with open(path, "r", encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in configuration file: {e}",
            details={"path": str(path)},
        ) from e

    # Handle empty files
    if content is None:
        return {}

    if not isinstance(content, dict):
        raise ConfigurationError(
            f"Configuration file must contain a mapping, got: {type(content).__name__}",
            details={"path": str(path)},
        )

    return content


def load_config(
    config_path: Path | str | None = None,
    env_prefix: str = ENV_PREFIX,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """
    Load configuration from YAML file with environment variable overrides.

    Priority (highest to lowest):
    1. Nested environment variables
    2. Legacy flat environment variables
    3. YAML configuration file
    4. Default values

    Args:
        config_path: Path to YAML configuration file. If None, uses defaults only.
        env_prefix: Prefix for nested environment variables
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Validated, immutable Settings instance

    Raises:
        ConfigurationError: If the file is unusable or values are invalid
    """
    if environ is None:
        environ = os.environ

    config_data: dict[str, Any] = {}

    if config_path is not None:
        yaml_config = _load_yaml_file(Path(config_path))
        config_data = _deep_merge(config_data, yaml_config)

    config_data = _deep_merge(config_data, _load_legacy_env(environ))
    config_data = _deep_merge(
        config_data, _load_env_overrides(env_prefix, environ))

    try:
        return Settings(**config_data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration: {e.error_count()} error(s)",
            details={"errors": [err["loc"] for err in e.errors()]},
        ) from e
