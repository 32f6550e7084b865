"""
Configuration module for docquery.

This module provides configuration management including
loading settings from YAML files and environment variables.

Example:
    >>> from config import Settings, load_config
    >>>
    >>> settings = load_config()
    >>> store = MemoryStore(catalog, settings.memory_store_config(),
    ...                     settings.planner_config())
"""

from .settings import (
    Settings,
    PlannerSettings,
    StoreSettings,
    StreamSettings,
    load_config,
    get_default_config_path,
)

__all__ = [
    "Settings",
    "PlannerSettings",
    "StoreSettings",
    "StreamSettings",
    "load_config",
    "get_default_config_path",
]
