"""
Integrations

Clients for external services.
"""

from drupal_mcp.integrations.drupal import DrupalClient, DrupalConnectionConfig

__all__ = [
    "DrupalClient",
    "DrupalConnectionConfig",
]
