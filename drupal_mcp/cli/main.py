"""
Drupal MCP CLI - run the MCP server and inspect its operating mode.
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from drupal_mcp.config.settings import CONFIG_FILE_NAME, create_default_config, get_settings
from drupal_mcp.core.modes import (
    CapabilityCategory,
    ConnectivityProbe,
    DrupalModeManager,
)
from drupal_mcp.integrations.drupal import DrupalClient
from drupal_mcp.utils.errors import DrupalMCPError
from drupal_mcp.utils.logging import configure_from_settings

console = Console(stderr=True)


def _build_manager(client: DrupalClient) -> DrupalModeManager:
    settings = get_settings()
    mode_config = settings.to_mode_configuration()
    probe = ConnectivityProbe(
        client,
        configured=client.config.has_connection_details,
        timeout=mode_config.connection_timeout,
    )
    return DrupalModeManager(mode_config, probe, forced_mode=settings.forced_mode())


@click.group()
@click.option('--debug', is_flag=True, help='Enable debug logging')
def cli(debug: bool):
    """mcp-drupal-server - Drupal tools for MCP clients, with live/docs/hybrid modes."""
    configure_from_settings(level="DEBUG" if debug else None)


@cli.command()
def serve():
    """Run the MCP server on stdio."""
    from drupal_mcp.interfaces.mcp_server import DrupalMCPServer

    asyncio.run(DrupalMCPServer().run())


@cli.command()
def status():
    """Resolve the operating mode once and show the result."""

    async def show_status():
        async with DrupalClient(get_settings().connection_config()) as client:
            manager = _build_manager(client)
            try:
                await manager.initialize()
                stats = manager.get_mode_stats()
            finally:
                await manager.destroy()

        conn = stats.status
        connection = "[green]connected[/green]" if conn.is_connected else "[red]disconnected[/red]"
        latency = f"{conn.response_time_ms:.0f}ms" if conn.response_time_ms is not None else "-"

        body = f"""
[bold]Current Mode:[/bold] {stats.current_mode.value}
[bold]Preferred Mode:[/bold] {stats.preferred_mode.value}
[bold]Fallback Mode:[/bold] {stats.fallback_mode.value}
[bold]Live Site:[/bold] {connection} ({latency})
[bold]Error:[/bold] {conn.error or '-'}
[bold]Capabilities:[/bold] {', '.join(stats.capabilities) or 'none'}
"""
        console.print(Panel(body.strip(), title="Drupal MCP Mode"))

    asyncio.run(show_status())


@cli.command()
def probe():
    """Run a single connectivity probe against the Drupal site."""

    async def run_probe():
        settings = get_settings()
        async with DrupalClient(settings.connection_config()) as client:
            result = await ConnectivityProbe(
                client,
                configured=client.config.has_connection_details,
                timeout=settings.to_mode_configuration().connection_timeout,
            ).run()

        if result.connected:
            console.print(f"[green]✓[/green] Connected to {settings.drupal_base_url} "
                          f"in {result.response_time_ms:.0f}ms")
            console.print(f"  Capabilities: {', '.join(sorted(result.capabilities or []))}")
        else:
            console.print(f"[red]✗[/red] {result.error} [dim]({result.failure.value})[/dim]")
            sys.exit(1)

    asyncio.run(run_probe())


@cli.command()
@click.option('--category', type=click.Choice([c.value for c in CapabilityCategory]),
              help='Only show one category')
def capabilities(category: Optional[str]):
    """Show how each tool is classified and whether it can run right now."""

    async def show_capabilities():
        async with DrupalClient(get_settings().connection_config()) as client:
            manager = _build_manager(client)
            try:
                mode = await manager.initialize()

                table = Table(title=f"Tool capabilities ({mode.value})")
                table.add_column("Tool", style="cyan")
                table.add_column("Category")
                table.add_column("Available")
                table.add_column("Path")

                for name, cat in sorted(manager.router.registry.items()):
                    if category and cat.value != category:
                        continue
                    path = manager.get_optimal_mode_for_tool(name)
                    available = "[green]yes[/green]" if manager.is_capability_available(name) else "[red]no[/red]"
                    table.add_row(name, cat.value, available, path.value if path else "-")

                console.print(table)
            finally:
                await manager.destroy()

    asyncio.run(show_capabilities())


@cli.command()
@click.option('--path', 'config_path', type=click.Path(), default=CONFIG_FILE_NAME,
              help='Where to write the configuration file')
def init(config_path: str):
    """Write a default drupal_mcp.yaml."""
    path = Path(config_path)
    if path.exists() and not click.confirm(f"Configuration file {path} already exists. Overwrite?"):
        console.print("[yellow]Initialization cancelled.[/yellow]")
        return

    create_default_config(path)
    console.print(f"[green]✓[/green] Created {path}")
    console.print("Set DRUPAL_BASE_URL and one of DRUPAL_TOKEN, DRUPAL_API_KEY or "
                  "DRUPAL_USERNAME/DRUPAL_PASSWORD to enable live tools.")


def main():
    """Main CLI entry point."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user.[/yellow]")
        sys.exit(1)
    except DrupalMCPError as e:
        console.print(f"\n[red]Error: {e.message}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
