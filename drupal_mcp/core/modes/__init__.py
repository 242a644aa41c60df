"""
Operating Mode Support

Decides whether each tool is served from the live Drupal site, from
documentation data, or from both, and tracks the live site as it comes
and goes.

Usage:
    ```python
    from drupal_mcp.core.modes import create_mode_manager

    manager = await create_mode_manager(config, probe)

    path = manager.get_optimal_mode_for_tool("get_node")   # "live" or None
    stats = manager.get_mode_stats()

    await manager.destroy()
    ```
"""

from typing import Optional

from .capabilities import (
    CAPABILITY_REGISTRY,
    CapabilityCategory,
    CapabilityRouter,
)
from .health import HealthMonitor, RecoveryController
from .manager import DrupalModeManager
from .models import (
    ConnectionStatus,
    ExecutionPath,
    Mode,
    ModeConfiguration,
    ModeStats,
    ProbeFailure,
    ProbeResult,
)
from .probe import ConnectivityProbe, HealthProbeBackend
from .state_machine import ModeStateMachine


async def create_mode_manager(
    config: ModeConfiguration,
    probe: ConnectivityProbe,
    forced_mode: Optional[Mode] = None
) -> DrupalModeManager:
    """Create and initialize a mode manager."""
    manager = DrupalModeManager(config, probe, forced_mode=forced_mode)
    await manager.initialize()
    return manager


__all__ = [
    # Coordinator
    'DrupalModeManager',
    'ModeStateMachine',
    'HealthMonitor',
    'RecoveryController',

    # Capabilities
    'CAPABILITY_REGISTRY',
    'CapabilityCategory',
    'CapabilityRouter',

    # Probing
    'ConnectivityProbe',
    'HealthProbeBackend',

    # Data types
    'ConnectionStatus',
    'ExecutionPath',
    'Mode',
    'ModeConfiguration',
    'ModeStats',
    'ProbeFailure',
    'ProbeResult',

    'create_mode_manager',
]
