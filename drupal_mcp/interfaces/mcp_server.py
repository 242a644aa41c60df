#!/usr/bin/env python3
"""
Drupal MCP Server

An MCP (Model Context Protocol) server that exposes a Drupal site and
Drupal documentation tooling to MCP clients. Every tool call is gated by
the mode manager: live tools need a reachable site, documentation tools
always run, hybrid tools use the live site when it is there.

Usage:
    drupal-mcp serve

Configuration (in an MCP client's settings):
    {
        "mcpServers": {
            "drupal": {
                "command": "drupal-mcp",
                "args": ["serve"],
                "env": {
                    "DRUPAL_BASE_URL": "https://example.com",
                    "DRUPAL_TOKEN": "..."
                }
            }
        }
    }
"""

import json
from typing import Any, Awaitable, Callable, Dict, List, Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Resource, TextContent, Tool

from drupal_mcp import __version__
from drupal_mcp.config.settings import DrupalMCPSettings, get_settings
from drupal_mcp.core.modes import ConnectivityProbe, DrupalModeManager, ExecutionPath, Mode
from drupal_mcp.integrations.drupal import DrupalClient
from drupal_mcp.interfaces.tool_catalog import (
    LIVE_TOOLS,
    MODE_TOOL_NAMES,
    MODE_TOOLS,
    ToolContext,
    ToolRegistration,
)
from drupal_mcp.utils.errors import CapabilityUnavailableError, DrupalMCPError, ErrorCategory
from drupal_mcp.utils.logging import get_logger, log_context

logger = get_logger(__name__)

SERVER_NAME = "mcp-drupal-server"

RESOURCES = [
    Resource(
        uri="drupal://entities",
        name="Drupal Entities",
        description="Access to all Drupal entities",
        mimeType="application/json",
    ),
    Resource(
        uri="drupal://config",
        name="Drupal Configuration",
        description="Drupal configuration management",
        mimeType="application/json",
    ),
]

# Resource URI -> capability that must be available to read it
RESOURCE_CAPABILITIES = {
    "drupal://entities": "list_nodes",
    "drupal://config": "get_configuration",
}


def _text(payload: Any) -> List[TextContent]:
    if isinstance(payload, str):
        text = payload
    else:
        text = json.dumps(payload, indent=2, default=str)
    return [TextContent(type="text", text=text)]


def _require(arguments: Dict[str, Any], key: str) -> Any:
    if arguments.get(key) in (None, ""):
        raise DrupalMCPError(f"Missing required argument '{key}'", category=ErrorCategory.VALIDATION)
    return arguments[key]


def _attributes(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in arguments.items() if key != "id"}


class DrupalMCPServer:
    """
    MCP server wired to a DrupalClient and a DrupalModeManager.

    Collaborators (documentation search, analyzers, generators) add their
    tools with `register_tool`; they are listed and gated like the rest.
    """

    def __init__(
        self,
        settings: Optional[DrupalMCPSettings] = None,
        client: Optional[DrupalClient] = None,
        manager: Optional[DrupalModeManager] = None
    ):
        self.settings = settings or get_settings()
        connection = self.settings.connection_config()
        self.client = client or DrupalClient(connection)

        if manager is None:
            mode_config = self.settings.to_mode_configuration()
            probe = ConnectivityProbe(
                self.client,
                configured=connection.has_connection_details,
                timeout=mode_config.connection_timeout,
            )
            manager = DrupalModeManager(mode_config, probe, forced_mode=self.settings.forced_mode())
        self.manager = manager

        self.server = Server(SERVER_NAME, version=__version__)
        self._registrations: Dict[str, ToolRegistration] = {}
        self._live_handlers = self._build_live_handlers()
        self._setup_handlers()

    # Tool registry

    def register_tool(self, registration: ToolRegistration) -> None:
        name = registration.tool.name
        if name in self._live_handlers or name in MODE_TOOL_NAMES:
            raise ValueError(f"Tool '{name}' is served by the server itself")
        self._registrations[name] = registration

    def list_available_tools(self) -> List[Tool]:
        registered = [reg.tool for reg in self._registrations.values()]
        return LIVE_TOOLS + registered + MODE_TOOLS

    def validate_capabilities(self) -> List[str]:
        """Tool names missing from the capability registry."""
        names = [tool.name for tool in self.list_available_tools() if tool.name not in MODE_TOOL_NAMES]
        missing = self.manager.router.validate(names)
        if missing:
            logger.warning(f"Tools without a capability classification (treated as hybrid): {missing}")
        return missing

    def _build_live_handlers(self) -> Dict[str, Callable[[Dict[str, Any]], Awaitable[Any]]]:
        client = self.client
        handlers: Dict[str, Callable[[Dict[str, Any]], Awaitable[Any]]] = {}

        for kind, label in (("node", "Node"), ("user", "User"), ("taxonomy_term", "Taxonomy term")):
            plural = "taxonomy_terms" if kind == "taxonomy_term" else f"{kind}s"

            async def get_entity(args, kind=kind):
                return await client.get_entity(kind, _require(args, "id"))

            async def create_entity(args, kind=kind):
                return await client.create_entity(kind, _attributes(args))

            async def update_entity(args, kind=kind):
                return await client.update_entity(kind, _require(args, "id"), _attributes(args))

            async def delete_entity(args, kind=kind, label=label):
                entity_id = _require(args, "id")
                await client.delete_entity(kind, entity_id)
                return f"{label} {entity_id} deleted successfully"

            async def list_entities(args, kind=kind):
                return await client.list_entities(kind, args)

            handlers[f"get_{kind}"] = get_entity
            handlers[f"create_{kind}"] = create_entity
            handlers[f"update_{kind}"] = update_entity
            handlers[f"delete_{kind}"] = delete_entity
            handlers[f"list_{plural}"] = list_entities

        async def execute_query(args):
            return await client.execute_query(_require(args, "query"), args.get("parameters"))

        async def enable_module(args):
            module = _require(args, "module")
            return {"module": module, "enabled": await client.enable_module(module)}

        async def disable_module(args):
            module = _require(args, "module")
            return {"module": module, "disabled": await client.disable_module(module)}

        async def get_configuration(args):
            return await client.get_configuration(_require(args, "name"))

        async def set_configuration(args):
            return await client.set_configuration(_require(args, "name"), _require(args, "value"))

        async def clear_cache(args):
            cache_type = args.get("type")
            return await client.clear_cache(None if cache_type in (None, "all") else cache_type)

        handlers.update({
            "execute_query": execute_query,
            "get_module_list": lambda args: client.get_module_list(),
            "enable_module": enable_module,
            "disable_module": disable_module,
            "get_configuration": get_configuration,
            "set_configuration": set_configuration,
            "clear_cache": clear_cache,
            "get_site_info": lambda args: client.get_site_info(),
        })
        return handlers

    # MCP handlers

    def _setup_handlers(self) -> None:
        server = self.server

        @server.list_tools()
        async def list_tools() -> List[Tool]:
            return self.list_available_tools()

        @server.call_tool()
        async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[TextContent]:
            return await self.execute_tool(name, arguments or {})

        @server.list_resources()
        async def list_resources() -> List[Resource]:
            return RESOURCES

        @server.read_resource()
        async def read_resource(uri) -> str:
            return await self.read_resource(str(uri))

    async def execute_tool(self, name: str, arguments: Dict[str, Any]) -> List[TextContent]:
        """Gate a tool call through the mode manager and dispatch it."""
        if name in MODE_TOOL_NAMES:
            return await self._run_mode_tool(name, arguments)

        if name not in self._live_handlers and name not in self._registrations:
            return _text(f"Unknown tool: {name}")

        with log_context(tool=name):
            try:
                path = self.manager.get_optimal_mode_for_tool(name)
                if path is None:
                    raise CapabilityUnavailableError(
                        name,
                        self.manager.get_current_mode().value,
                        reason=self._unavailable_reason(),
                    )

                logger.debug(f"Dispatching {name} via {path.value}")
                return _text(await self._dispatch(name, arguments, path))

            except DrupalMCPError as e:
                logger.warning(f"Tool {name} failed: {e}")
                return _text(f"Error executing tool {name}: {e.message}")

    async def _dispatch(self, name: str, arguments: Dict[str, Any], path: ExecutionPath) -> Any:
        if name in self._live_handlers:
            return await self._live_handlers[name](arguments)

        registration = self._registrations[name]
        live = path in (ExecutionPath.LIVE, ExecutionPath.HYBRID)
        context = ToolContext(path=path, client=self.client if live else None)
        return await registration.handler(arguments, context)

    def _unavailable_reason(self) -> str:
        status = self.manager.get_connection_status()
        if self.manager.get_current_mode() is Mode.DOCS_ONLY:
            return "live Drupal tools are disabled in docs-only mode"
        if not status.is_connected:
            return f"live Drupal site unavailable ({status.error or 'not connected'})"
        return "documentation tools are disabled in live-only mode"

    async def _run_mode_tool(self, name: str, arguments: Dict[str, Any]) -> List[TextContent]:
        if name == "get_mode_status":
            return _text(self.manager.get_mode_stats().model_dump(mode="json"))

        if name == "switch_mode":
            try:
                target = Mode(arguments.get("mode"))
            except ValueError:
                valid = ", ".join(mode.value for mode in Mode)
                return _text(f"Invalid mode '{arguments.get('mode')}'. Expected one of: {valid}")

            previous = self.manager.get_current_mode()
            if await self.manager.switch_mode(target):
                return _text(f"Mode switched: {previous.value} -> {target.value}")
            status = self.manager.get_connection_status()
            return _text(
                f"Cannot switch to {target.value}: live connection unavailable "
                f"({status.error or 'not connected'}). Mode remains {previous.value}."
            )

        # attempt_recovery
        if await self.manager.attempt_recovery():
            return _text(f"Live connection recovered. Current mode: {self.manager.get_current_mode().value}")
        if not self.manager.config.enable_auto_recovery:
            return _text("Recovery failed: auto-recovery disabled")
        stats = self.manager.get_mode_stats()
        return _text(
            f"Recovery failed (attempt {stats.reconnect_attempts}/{stats.max_retries}): "
            f"{stats.status.error or 'not connected'}"
        )

    async def read_resource(self, uri: str) -> str:
        capability = RESOURCE_CAPABILITIES.get(uri)
        if capability is None:
            raise ValueError(f"Unknown resource: {uri}")

        if not self.manager.is_capability_available(capability):
            raise CapabilityUnavailableError(
                uri, self.manager.get_current_mode().value, reason=self._unavailable_reason()
            )

        if uri == "drupal://entities":
            data = await self.client.get_all_entities()
        else:
            data = await self.client.get_system_configuration()
        return json.dumps(data, indent=2, default=str)

    # Lifecycle

    async def run(self) -> None:
        """Run the MCP server over stdio."""
        mode = await self.manager.initialize()
        self.validate_capabilities()
        logger.info(f"Drupal MCP server running on stdio in {mode.value} mode")

        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    self.server.create_initialization_options()
                )
        finally:
            await self.manager.destroy()
            await self.client.close()
