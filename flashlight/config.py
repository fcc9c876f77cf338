"""
Configuration Module

Default settings of all analyses, loading of JSON configuration files and
logging setup. Every analysis accepts a ``config`` dictionary; explicit
function arguments override it, and it overrides ``DEFAULT_CONFIG``.
"""

import copy
import json
import logging
import os
from typing import Any, Dict, Optional

# Set up logging
logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

DEFAULT_CONFIG = {
    "grid": {
        "n_bins": 19,
        "max_cardinality": 100
    },
    "ice": {
        "n_max": 20,
        "center": "no"
    },
    "importance": {
        "m_repetitions": 1,
        "n_max": None,
        "seed": None
    },
    "profile": {
        "kind": "partial_dependence",
        "stats": "mean",
        "pd_n_max": 1000
    },
    "surrogate": {
        "max_depth": 3,
        "n_max": None
    },
    "logging": {
        "level": "INFO"
    }
}


def _deep_update(base: Dict, updates: Dict) -> Dict:
    """Recursively merge ``updates`` into ``base`` (in place)."""
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_update(base[key], value)
        else:
            base[key] = value
    return base


def get_default_config() -> Dict:
    """Return a fresh copy of the default configuration."""
    return copy.deepcopy(DEFAULT_CONFIG)


def load_config(config_file: Optional[str] = None) -> Dict:
    """
    Load configuration from a JSON file, merged over the defaults.

    Parameters:
    -----------
    config_file : str, optional
        Path to a JSON file. Missing sections or keys keep their defaults.
        A missing file yields the defaults.

    Returns:
    --------
    Dict
        Complete configuration dictionary
    """
    config = get_default_config()
    if config_file and os.path.exists(config_file):
        logger.info(f"Loading configuration from {config_file}")
        with open(config_file, 'r') as f:
            _deep_update(config, json.load(f))
    elif config_file:
        logger.warning(f"Configuration file {config_file} not found, using defaults")
    return config


def get_setting(config: Optional[Dict], section: str, key: str) -> Any:
    """
    Look up ``config[section][key]``, falling back to the defaults.
    """
    if config is not None and key in config.get(section, {}):
        return config[section][key]
    return DEFAULT_CONFIG[section][key]


def setup_logging(level: Optional[str] = None, config: Optional[Dict] = None) -> None:
    """
    Configure root logging with the package's log format.

    Parameters:
    -----------
    level : str, optional
        Log level name; defaults to the ``logging.level`` setting
    config : Dict, optional
        Configuration dictionary
    """
    if level is None:
        level = get_setting(config, 'logging', 'level')
    logging.basicConfig(level=getattr(logging, level.upper()), format=LOG_FORMAT)
