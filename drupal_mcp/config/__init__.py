"""
Configuration Management Module

Settings via pydantic BaseSettings, environment variables and an optional
drupal_mcp.yaml file.
"""

from drupal_mcp.config.settings import DrupalMCPSettings, get_settings, reload_settings

__all__ = [
    "DrupalMCPSettings",
    "get_settings",
    "reload_settings",
]
