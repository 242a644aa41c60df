"""
Interfaces Module

The MCP server and its tool catalog.
"""

from drupal_mcp.interfaces.mcp_server import DrupalMCPServer
from drupal_mcp.interfaces.tool_catalog import ToolContext, ToolRegistration

__all__ = [
    "DrupalMCPServer",
    "ToolContext",
    "ToolRegistration",
]
