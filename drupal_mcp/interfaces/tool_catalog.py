"""
MCP tool definitions served by the Drupal MCP server.

Live tools are backed by DrupalClient; the mode tools are served by the
server itself. Documentation, analysis and scaffolding tools are supplied
by collaborators through ToolRegistration.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional

from mcp.types import Tool
from pydantic import BaseModel, ConfigDict

from drupal_mcp.core.modes.models import ExecutionPath, Mode


def _schema(properties: Optional[Dict[str, Any]] = None, required: Optional[List[str]] = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "object", "properties": properties or {}}
    if required:
        schema["required"] = required
    return schema


def _string(description: str, **extra) -> Dict[str, Any]:
    return {"type": "string", "description": description, **extra}


def _boolean(description: str, **extra) -> Dict[str, Any]:
    return {"type": "boolean", "description": description, **extra}


def _number(description: str) -> Dict[str, Any]:
    return {"type": "number", "description": description}


PAGING = {
    "limit": _number("Limit the number of results"),
    "offset": _number("Offset for pagination"),
}


LIVE_TOOLS: List[Tool] = [
    # Nodes
    Tool(name="get_node", description="Retrieve a specific Drupal node by ID",
         inputSchema=_schema({"id": _string("The node ID to retrieve")}, ["id"])),
    Tool(name="create_node", description="Create a new Drupal node",
         inputSchema=_schema({
             "title": _string("The node title"),
             "body": _string("The node body content"),
             "status": _boolean("Whether the node is published", default=True),
             "type": _string("The node type", default="article"),
         }, ["title"])),
    Tool(name="update_node", description="Update an existing Drupal node",
         inputSchema=_schema({
             "id": _string("The node ID to update"),
             "title": _string("The new node title"),
             "body": _string("The new node body content"),
             "status": _boolean("Whether the node is published"),
         }, ["id"])),
    Tool(name="delete_node", description="Delete a Drupal node",
         inputSchema=_schema({"id": _string("The node ID to delete")}, ["id"])),
    Tool(name="list_nodes", description="List Drupal nodes with optional filters",
         inputSchema=_schema({
             "type": _string("Filter by node type"),
             "status": _boolean("Filter by published status"),
             **PAGING,
         })),

    # Users
    Tool(name="get_user", description="Retrieve a specific Drupal user by ID",
         inputSchema=_schema({"id": _string("The user ID to retrieve")}, ["id"])),
    Tool(name="create_user", description="Create a new Drupal user",
         inputSchema=_schema({
             "name": _string("The username"),
             "mail": _string("The user email"),
             "pass": _string("The user password"),
             "status": _boolean("Whether the user is active", default=True),
         }, ["name", "mail"])),
    Tool(name="update_user", description="Update an existing Drupal user",
         inputSchema=_schema({
             "id": _string("The user ID to update"),
             "name": _string("The new username"),
             "mail": _string("The new user email"),
             "status": _boolean("Whether the user is active"),
         }, ["id"])),
    Tool(name="delete_user", description="Delete a Drupal user",
         inputSchema=_schema({"id": _string("The user ID to delete")}, ["id"])),
    Tool(name="list_users", description="List Drupal users with optional filters",
         inputSchema=_schema({"status": _boolean("Filter by user status"), **PAGING})),

    # Taxonomy
    Tool(name="get_taxonomy_term", description="Retrieve a specific taxonomy term by ID",
         inputSchema=_schema({"id": _string("The taxonomy term ID to retrieve")}, ["id"])),
    Tool(name="create_taxonomy_term", description="Create a new taxonomy term",
         inputSchema=_schema({
             "name": _string("The term name"),
             "description": _string("The term description"),
             "vid": _string("The vocabulary machine name"),
             "parent": _string("Parent term ID"),
         }, ["name"])),
    Tool(name="update_taxonomy_term", description="Update an existing taxonomy term",
         inputSchema=_schema({
             "id": _string("The taxonomy term ID to update"),
             "name": _string("The new term name"),
             "description": _string("The new term description"),
         }, ["id"])),
    Tool(name="delete_taxonomy_term", description="Delete a taxonomy term",
         inputSchema=_schema({"id": _string("The taxonomy term ID to delete")}, ["id"])),
    Tool(name="list_taxonomy_terms", description="List taxonomy terms with optional filters",
         inputSchema=_schema({"vid": _string("Filter by vocabulary machine name"), **PAGING})),

    # Site administration
    Tool(name="execute_query", description="Execute a custom database query",
         inputSchema=_schema({
             "query": _string("The SQL query to execute"),
             "parameters": {"type": "object", "description": "Parameters for the query"},
         }, ["query"])),
    Tool(name="get_module_list", description="Get list of all available modules",
         inputSchema=_schema()),
    Tool(name="enable_module", description="Enable a Drupal module",
         inputSchema=_schema({"module": _string("The module machine name to enable")}, ["module"])),
    Tool(name="disable_module", description="Disable a Drupal module",
         inputSchema=_schema({"module": _string("The module machine name to disable")}, ["module"])),
    Tool(name="get_configuration", description="Get Drupal configuration value",
         inputSchema=_schema({"name": _string("The configuration name")}, ["name"])),
    Tool(name="set_configuration", description="Set Drupal configuration value",
         inputSchema=_schema({
             "name": _string("The configuration name"),
             "value": {"type": "object", "description": "The configuration value"},
         }, ["name", "value"])),
    Tool(name="clear_cache", description="Clear Drupal cache",
         inputSchema=_schema({
             "type": _string("The cache type to clear (all, render, discovery, etc.)", default="all"),
         })),
    Tool(name="get_site_info", description="Get general site information",
         inputSchema=_schema()),
]


MODE_TOOLS: List[Tool] = [
    Tool(name="get_mode_status",
         description="Show the current operating mode, live connection status and available capabilities",
         inputSchema=_schema()),
    Tool(name="switch_mode",
         description="Switch the operating mode; live modes require a reachable Drupal site",
         inputSchema=_schema({
             "mode": _string("Target mode", enum=[mode.value for mode in Mode]),
         }, ["mode"])),
    Tool(name="attempt_recovery",
         description="Try to reconnect to the live Drupal site now",
         inputSchema=_schema()),
]

MODE_TOOL_NAMES = frozenset(tool.name for tool in MODE_TOOLS)


class ToolContext(BaseModel):
    """How a collaborator tool call should be served."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    path: ExecutionPath
    # Set only when the path includes the live site
    client: Optional[Any] = None


ToolHandler = Callable[[Dict[str, Any], ToolContext], Awaitable[Any]]


class ToolRegistration(BaseModel):
    """A collaborator-provided tool (documentation search, analysis, scaffolding)."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    tool: Tool
    handler: ToolHandler
