# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Utility package providing configuration helpers for steadfast.

This package includes:
- Environment variable loading with a common prefix
- Duration parsing ('250ms', '30s', '5m', ...)
- JSON and YAML configuration file loading
- Configuration merging and ${VAR} expansion
"""

from .config import (
    DEFAULT_ENV_PREFIX,
    load_config_from_env, get_config_value, parse_duration_string,
    to_timedelta, merge_configs, expand_config_variables, load_config_file,
)

__all__ = [
    'DEFAULT_ENV_PREFIX',
    'load_config_from_env',
    'get_config_value',
    'parse_duration_string',
    'to_timedelta',
    'merge_configs',
    'expand_config_variables',
    'load_config_file',
]
