"""
mcp-drupal-server
MCP tool server for Drupal with live, documentation and hybrid operating modes.

The mode coordinator decides, per tool call, whether the live Drupal site,
static documentation data, or both can serve the request, and keeps that
decision current as the site comes and goes.
"""

__version__ = "1.0.0"
