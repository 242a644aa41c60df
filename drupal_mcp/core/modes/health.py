"""
Health monitoring and connection recovery for the live backend.

HealthMonitor re-probes on a fixed interval while a live-requiring mode is
active. On the connected -> disconnected edge it schedules a delayed
recovery; on the way back it resets the retry counter. RecoveryController performs the actual reconnection
attempts.
"""

import asyncio
from typing import Callable, Optional

from drupal_mcp.core.modes.models import ConnectionStatus, Mode
from drupal_mcp.core.modes.state_machine import ModeStateMachine
from drupal_mcp.utils.logging import get_logger

logger = get_logger(__name__)


class RecoveryController:
    """
    Bounded-retry reconnection.

    `max_retries` limits how often the monitor re-schedules automatic
    attempts after a regression; explicit calls are always honoured.
    """

    def __init__(self, state: ModeStateMachine, start_monitoring: Callable[[], None]):
        self.state = state
        self._start_monitoring = start_monitoring
        self.reconnect_attempts = 0

    @property
    def max_retries(self) -> int:
        return self.state.config.max_retries

    @property
    def retries_exhausted(self) -> bool:
        return self.reconnect_attempts >= self.max_retries

    async def attempt_recovery(self) -> bool:
        if not self.state.config.enable_auto_recovery:
            return False

        logger.info(
            f"Attempting connection recovery "
            f"(attempt {self.reconnect_attempts + 1}/{self.max_retries})"
        )

        status = await self.state.refresh_status()

        if status.is_connected:
            logger.info("Connection recovered successfully")
            self.reconnect_attempts = 0
            self.state.upgrade_to_preferred()
            self._start_monitoring()
            return True

        self.reconnect_attempts += 1
        logger.warning(f"Recovery attempt failed: {status.error}")
        return False


class HealthMonitor:
    """
    Periodic re-probe of the live backend.

    Both background tasks (the periodic check and the one-off delayed
    recovery) are owned here and cancelled by `stop`.
    """

    def __init__(self, state: ModeStateMachine, recovery: RecoveryController):
        self.state = state
        self.recovery = recovery
        self._monitor_task: Optional[asyncio.Task] = None
        self._recovery_task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._monitor_task is not None and not self._monitor_task.done()

    @property
    def recovery_pending(self) -> bool:
        return self._recovery_task is not None and not self._recovery_task.done()

    def start(self) -> None:
        """Start the periodic check; no-op when already running."""
        if self.is_running:
            return

        self._monitor_task = asyncio.create_task(self._monitor_loop())
        logger.info(
            f"Health monitoring started (every {self.state.config.health_check_interval_ms}ms)"
        )

    async def stop(self) -> None:
        """Cancel the periodic check and any pending recovery. Idempotent."""
        tasks = [t for t in (self._monitor_task, self._recovery_task) if t is not None]
        self._monitor_task = None
        self._recovery_task = None

        current = asyncio.current_task()
        for task in tasks:
            if task is current:
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if tasks:
            logger.info("Health monitoring stopped")

    async def _monitor_loop(self) -> None:
        while True:
            await asyncio.sleep(self.state.config.health_check_interval)
            try:
                await self.run_check()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Health check error: {e}")

    async def run_check(self) -> ConnectionStatus:
        """One probe; acts on connected <-> disconnected transitions only."""
        was_connected = self.state.status.is_connected
        status = await self.state.refresh_status()

        if was_connected and not status.is_connected:
            self._on_connection_lost(status)
        elif not was_connected and status.is_connected:
            # The site came back on its own; the next outage gets a full retry budget
            self.recovery.reconnect_attempts = 0
            logger.info("Live connection restored")

        return status

    def _on_connection_lost(self, status: ConnectionStatus) -> None:
        mode = self.state.current_mode
        logger.warning(f"Live connection lost ({status.error}), attempting recovery...")

        if mode is Mode.LIVE_ONLY:
            logger.error("LIVE_ONLY mode lost its backend, server is degraded until the site returns")
        elif mode in (Mode.HYBRID, Mode.SMART_FALLBACK):
            logger.warning("Falling back to docs-only capabilities")

        self.schedule_recovery()

    def schedule_recovery(self) -> bool:
        """Schedule one delayed recovery attempt unless one is pending."""
        if self.recovery_pending:
            return False
        if not self.state.config.enable_auto_recovery:
            logger.info("Auto-recovery disabled, not scheduling reconnection")
            return False

        self._recovery_task = asyncio.create_task(self._delayed_recovery())
        return True

    async def _delayed_recovery(self) -> None:
        while True:
            await asyncio.sleep(self.state.config.recovery_delay)

            if await self.recovery.attempt_recovery():
                return

            if self.recovery.retries_exhausted:
                logger.warning(
                    f"Giving up automatic recovery after {self.recovery.reconnect_attempts} attempts"
                )
                return
