"""
Drupal Mode Manager

Coordinates the operating mode of the server: which tools can run, and
whether they run against the live Drupal site, documentation data, or
both. Wires the state machine, capability router, health monitor and
recovery controller together behind one query surface.
"""

import time
from typing import List, Optional

from drupal_mcp.core.modes.capabilities import CapabilityRouter
from drupal_mcp.core.modes.health import HealthMonitor, RecoveryController
from drupal_mcp.core.modes.models import (
    ConnectionStatus,
    ExecutionPath,
    Mode,
    ModeConfiguration,
    ModeStats,
)
from drupal_mcp.core.modes.probe import ConnectivityProbe
from drupal_mcp.core.modes.state_machine import ModeStateMachine
from drupal_mcp.utils.logging import get_logger

logger = get_logger(__name__)

# Representative tools used to summarise what the server can currently do
DOCS_SENTINEL_TOOL = "search_drupal_all"
LIVE_SENTINEL_TOOL = "get_node"


class DrupalModeManager:
    """
    Operational-mode coordinator for a single live backend.

    Created with an explicit configuration; environment overrides are
    resolved by the settings layer and passed in as `forced_mode`.
    """

    def __init__(
        self,
        config: ModeConfiguration,
        probe: ConnectivityProbe,
        router: Optional[CapabilityRouter] = None,
        forced_mode: Optional[Mode] = None
    ):
        self.router = router or CapabilityRouter()
        self.state = ModeStateMachine(config, probe, self.router, forced_mode=forced_mode)
        self.recovery = RecoveryController(self.state, start_monitoring=self._start_monitoring)
        self.monitor = HealthMonitor(self.state, self.recovery)
        self._created_at = time.monotonic()
        self._destroyed = False

    @property
    def config(self) -> ModeConfiguration:
        return self.state.config

    async def initialize(self) -> Mode:
        """Determine the effective mode and start monitoring when live."""
        mode = await self.state.initialize()

        if self.state.forced_mode is None and mode.requires_live and self.state.status.is_connected:
            self._start_monitoring()

        return mode

    def get_current_mode(self) -> Mode:
        return self.state.current_mode

    def get_connection_status(self) -> ConnectionStatus:
        return self.state.status.model_copy()

    def is_capability_available(self, capability: str) -> bool:
        return self.state.is_capability_available(capability)

    def get_optimal_mode_for_tool(self, tool_name: str) -> Optional[ExecutionPath]:
        """
        Execution path for a tool right now, or None if it cannot run.

        Never disagrees with is_capability_available.
        """
        if not self.is_capability_available(tool_name):
            return None
        return self.router.route(tool_name, self.state.live_usable)

    async def switch_mode(self, target: Mode) -> bool:
        switched = await self.state.switch_mode(target)
        if not switched:
            return False

        if target.requires_live:
            self._start_monitoring()
        else:
            await self.monitor.stop()
        return True

    async def attempt_recovery(self) -> bool:
        return await self.recovery.attempt_recovery()

    def get_mode_stats(self) -> ModeStats:
        config = self.state.config
        status = self.get_connection_status()
        return ModeStats(
            current_mode=self.state.current_mode,
            preferred_mode=config.preferred_mode,
            fallback_mode=config.fallback_mode,
            uptime_ms=int((time.monotonic() - self._created_at) * 1000),
            status=status,
            reconnect_attempts=self.recovery.reconnect_attempts,
            max_retries=self.recovery.max_retries,
            retries_exhausted=self.recovery.retries_exhausted,
            monitoring=self.monitor.is_running,
            degraded=self.state.current_mode.requires_live and not status.is_connected,
            capabilities=self.get_current_capabilities(),
        )

    def get_current_capabilities(self) -> List[str]:
        capabilities: List[str] = []

        if self.is_capability_available(DOCS_SENTINEL_TOOL):
            capabilities.extend(["documentation", "code_examples", "module_generation"])

        if self.is_capability_available(LIVE_SENTINEL_TOOL):
            capabilities.extend(["content_management", "user_management", "system_admin"])

        return capabilities

    async def destroy(self) -> None:
        """Cancel monitoring, pending recovery and any probe in flight. Idempotent."""
        await self.monitor.stop()
        self.state.cancel_inflight_probe()

        if not self._destroyed:
            self._destroyed = True
            logger.info("Mode manager destroyed")

    def _start_monitoring(self) -> None:
        if self.state.current_mode.requires_live:
            self.monitor.start()
