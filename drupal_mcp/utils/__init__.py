"""
Utility Functions Module

Logging configuration and the error hierarchy.
"""

from drupal_mcp.utils.logging import configure_from_settings, get_logger, log_context, setup_logging
from drupal_mcp.utils.errors import (
    DrupalMCPError,
    ConfigurationError,
    BackendConnectionError,
    DrupalAPIError,
    CapabilityUnavailableError,
)

__all__ = [
    # Logging utilities
    "setup_logging",
    "get_logger",
    "configure_from_settings",
    "log_context",
    # Error classes
    "DrupalMCPError",
    "ConfigurationError",
    "BackendConnectionError",
    "DrupalAPIError",
    "CapabilityUnavailableError",
]
