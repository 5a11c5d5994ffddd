"""Unified configuration management for AI Tools.

This module provides a single source of truth for all configuration,
integrating environment variables, YAML files, and defaults.
"""

from ai_tools.config.env_loader import Environment, get_environment
from ai_tools.config.settings import AppConfig, get_settings, load_app_config
from ai_tools.config.loader import ConfigLoadError, load_yaml_file
from ai_tools.config.catalog_loader import (
    CatalogConfigError,
    load_tool_catalog,
    load_tool_templates,
)

__all__ = [
    # App-level settings
    "AppConfig",
    "get_settings",
    "load_app_config",
    "Environment",
    "get_environment",
    # Configuration loaders
    "load_yaml_file",
    "load_tool_catalog",
    "load_tool_templates",
    # Exception classes
    "ConfigLoadError",
    "CatalogConfigError",
]
