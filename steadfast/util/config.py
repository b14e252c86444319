"""
Configuration utilities for steadfast.
Provides configuration loading and duration parsing helpers.
"""

import json
import os
import re
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

DEFAULT_ENV_PREFIX = "STEADFAST_"


def load_config_from_env(prefix: str = DEFAULT_ENV_PREFIX) -> Dict[str, str]:
    """
    Load configuration from environment variables with given prefix.
    """
    config = {}

    for key, value in os.environ.items():
        if key.startswith(prefix):
            # Remove prefix and convert to lowercase
            config_key = key[len(prefix):].lower()
            config[config_key] = value

    return config


def get_config_value(key: str, default: Any = None,
                     cast_type: Optional[type] = None,
                     env_prefix: str = DEFAULT_ENV_PREFIX) -> Any:
    """
    Get configuration value from environment or return default.
    Optionally cast to specified type.
    """
    env_key = f"{env_prefix}{key.upper()}"
    value = os.environ.get(env_key)

    if value is None:
        return default
    if cast_type is None:
        return value

    try:
        if cast_type == bool:
            return value.lower() in ('true', '1', 'yes', 'on')
        elif cast_type == timedelta:
            return parse_duration_string(value)
        else:
            return cast_type(value)
    except (ValueError, TypeError):
        return default


def parse_duration_string(duration_str: str) -> timedelta:
    """
    Parse duration string like '250ms', '30s', '5m', '2h', '1d' into timedelta.
    A bare number is read as seconds.
    """
    if not isinstance(duration_str, str):
        raise ValueError("Duration must be a string")

    duration_str = duration_str.strip().lower()

    # Pattern to match number followed by an optional unit
    pattern = r'^(\d+(?:\.\d+)?)\s*(ms|s|m|h|d)?$'
    match = re.match(pattern, duration_str)

    if not match:
        raise ValueError(f"Invalid duration format: {duration_str}")

    value, unit = match.groups()
    value = float(value)

    if unit == 'ms':
        return timedelta(milliseconds=value)
    elif unit in (None, 's'):
        return timedelta(seconds=value)
    elif unit == 'm':
        return timedelta(minutes=value)
    elif unit == 'h':
        return timedelta(hours=value)
    else:
        return timedelta(days=value)


def to_timedelta(value: Union[timedelta, str, int, float]) -> timedelta:
    """Convert a timedelta, duration string or number of seconds to a timedelta."""
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)
    return parse_duration_string(value)


def merge_configs(*configs: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge multiple configuration dictionaries.
    Later configs override earlier ones; nested dictionaries are merged.
    """
    result: Dict[str, Any] = {}

    for config in configs:
        if not isinstance(config, dict):
            continue
        for key, value in config.items():
            if isinstance(value, dict) and isinstance(result.get(key), dict):
                result[key] = merge_configs(result[key], value)
            else:
                result[key] = value

    return result


def expand_config_variables(config: Dict[str, Any],
                            variables: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """
    Expand variables in configuration values.
    Variables are specified as ${VAR_NAME} in config values.
    """
    if variables is None:
        variables = dict(os.environ)

    def expand_value(value: Any) -> Any:
        if isinstance(value, str):
            def replace_var(match):
                return variables.get(match.group(1), match.group(0))

            return re.sub(r'\$\{([^}]+)\}', replace_var, value)
        elif isinstance(value, dict):
            return {k: expand_value(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [expand_value(item) for item in value]
        else:
            return value

    return expand_value(config)


def load_config_file(file_path: Union[str, Path]) -> Dict[str, Any]:
    """Load configuration from a file (JSON or YAML)."""
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    file_ext = path.suffix.lower()

    with open(path, 'r', encoding='utf-8') as f:
        if file_ext == '.json':
            data = json.load(f)
        elif file_ext in ('.yaml', '.yml'):
            data = yaml.safe_load(f)
        else:
            raise ValueError(f"Unsupported configuration file format: {file_ext}")

    return data or {}
