"""Configuration handling for simulations."""

import copy
from typing import Dict, Optional

import yaml

DEFAULT_CONFIG = {
    'simulation': {
        'random_seed': 42,
        'until_time': None,
        'max_steps': None,
        'record_history': True,
        'raise_on_failure': False,
    },
    'metrics': {
        'enabled': True,
        'percentiles': [50, 90, 95, 99],
    },
    'logging': {
        'level': 'INFO',
    },
}


def load_config(config_path: str) -> dict:
    """Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary
    """
    with open(config_path, 'r') as f:
        return yaml.safe_load(f) or {}


def merge_configs(base_config: dict, override_config: dict) -> dict:
    """Merge two configuration dictionaries.

    Args:
        base_config: Base configuration
        override_config: Override configuration

    Returns:
        Merged configuration
    """
    merged = base_config.copy()
    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value
    return merged


def resolve_config(config: Optional[Dict] = None) -> dict:
    """Fill in defaults for every key missing from ``config``.

    Args:
        config: Partial configuration, or None

    Returns:
        Complete configuration
    """
    return merge_configs(copy.deepcopy(DEFAULT_CONFIG), config or {})
