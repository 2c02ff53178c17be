"""Configuration loader module.

Configuration is assembled from three layers, later ones winning:

1. a YAML file (``file_path``, else ``$MODELDB_CONFIG``, else ``modeldb.yaml``);
2. ``MODELDB_<SECTION>_<KEY>`` environment variables;
3. ``${VAR}`` placeholders inside string values, resolved from the environment.

The result is validated into a :class:`ModelDBConfig`.

Examples:
    >>> merge_dicts({"a": {"b": 1}}, {"a": {"c": 2}})
    {'a': {'b': 1, 'c': 2}}
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import ValidationError

from modeldb._internal.exceptions import ConfigError
from modeldb.core.config.schema import ModelDBConfig

DEFAULT_CONFIG_FILE = "modeldb.yaml"
DEFAULT_ENV_PREFIX = "MODELDB"

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


def merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary with values that override the base

    Returns:
        Merged dictionary where override values take precedence
    """
    result = dict(base)
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


def _substitute(value: str) -> str:
    return _ENV_PATTERN.sub(lambda match: os.environ.get(match.group(1), ""), value)


def resolve_env_vars(config: Any) -> Any:
    """Replace ``${VAR}`` patterns in every string, at any depth.

    Unset variables resolve to the empty string.
    """
    if isinstance(config, dict):
        return {key: resolve_env_vars(value) for key, value in config.items()}
    if isinstance(config, list):
        return [resolve_env_vars(item) for item in config]
    if isinstance(config, str) and "${" in config:
        return _substitute(config)
    return config


def load_yaml_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        path: Path to YAML file

    Returns:
        Dictionary containing configuration from YAML; empty when the file
        does not exist

    Raises:
        ConfigError: If file cannot be read or parsed
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        return {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}", context={"path": str(path)}) from e
    except OSError as e:
        raise ConfigError(f"Error reading {path}: {e}", context={"path": str(path)}) from e
    if not isinstance(data, dict):
        raise ConfigError(
            "Configuration file must contain a mapping",
            context={"path": str(path), "value_type": type(data).__name__},
        )
    return data


def _env_key_path(env_key: str) -> List[str]:
    """Map ``CATALOG_PREFER`` to ``["catalog", "prefer"]``.

    Only the first underscore separates section from key, so keys such as
    ``LOGGING_LEVEL`` and ``CATALOG_SOME_OPTION`` keep their underscores.
    """
    section, _, key = env_key.lower().partition("_")
    return [section, key] if key else [section]


def _coerce_env_value(value: str) -> Any:
    lowered = value.lower()
    if lowered in ("true", "yes"):
        return True
    if lowered in ("false", "no"):
        return False
    if value.isdigit():
        return int(value)
    return value


def load_from_env(prefix: str = DEFAULT_ENV_PREFIX) -> Dict[str, Any]:
    """Load configuration from environment variables with given prefix.

    ``<PREFIX>_CONFIG`` names the configuration file and is not treated as a
    setting.
    """
    result: Dict[str, Any] = {}
    marker = f"{prefix.upper()}_"
    for key, value in os.environ.items():
        if not key.startswith(marker) or key == f"{marker}CONFIG":
            continue
        path = _env_key_path(key[len(marker):])
        current = result
        for part in path[:-1]:
            current = current.setdefault(part, {})
        current[path[-1]] = _coerce_env_value(value)
    return result


def load_config(
    file_path: Optional[Union[str, Path]] = None,
    env_prefix: str = DEFAULT_ENV_PREFIX,
) -> ModelDBConfig:
    """Load ModelDBConfig from file and environment.

    Args:
        file_path: Path to config file (defaults to ``<PREFIX>_CONFIG`` from
            env or ``modeldb.yaml``)
        env_prefix: Prefix for environment variables

    Returns:
        Validated ModelDBConfig instance

    Raises:
        ConfigError: On loading or validation failure
    """
    path = file_path or os.environ.get(f"{env_prefix.upper()}_CONFIG", DEFAULT_CONFIG_FILE)
    if file_path is not None and not os.path.exists(path):
        raise ConfigError("Configuration file not found", context={"path": str(path)})

    config_data = load_yaml_file(path)
    env_config = load_from_env(env_prefix)
    if env_config:
        config_data = merge_dicts(config_data, env_config)
    config_data = resolve_env_vars(config_data)

    try:
        return ModelDBConfig.model_validate(config_data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}", context={"path": str(path)}) from e


__all__ = [
    "DEFAULT_CONFIG_FILE",
    "load_config",
    "load_from_env",
    "load_yaml_file",
    "merge_dicts",
    "resolve_env_vars",
]
