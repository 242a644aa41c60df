"""
Mode state machine.

Owns the effective mode, the current configuration and the connection
status, and applies the transition rules for startup, manual switches and
recovery upgrades.
"""

import asyncio
from typing import Optional

from drupal_mcp.core.modes.capabilities import CapabilityRouter
from drupal_mcp.core.modes.models import ConnectionStatus, Mode, ModeConfiguration
from drupal_mcp.core.modes.probe import ConnectivityProbe
from drupal_mcp.utils.logging import get_logger

logger = get_logger(__name__)


class ModeStateMachine:
    """
    Effective mode plus the rules for changing it.

    All probes go through `refresh_status`, which allows a single probe in
    flight: concurrent callers share its result, so status updates can
    never land out of order.
    """

    def __init__(
        self,
        config: ModeConfiguration,
        probe: ConnectivityProbe,
        router: Optional[CapabilityRouter] = None,
        forced_mode: Optional[Mode] = None
    ):
        if forced_mode is Mode.SMART_FALLBACK:
            raise ValueError("smart_fallback is a preference and cannot be forced")

        self.config = config
        self.probe = probe
        self.router = router or CapabilityRouter()
        self.forced_mode = forced_mode

        self.current_mode: Mode = config.preferred_mode
        self._status = ConnectionStatus()
        self._inflight: Optional[asyncio.Task] = None

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def live_usable(self) -> bool:
        """Connected and the current mode actually uses the live site."""
        return self._status.is_connected and self.current_mode.requires_live

    async def refresh_status(self) -> ConnectionStatus:
        """Probe the backend and replace the connection status."""
        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.ensure_future(self._probe_and_record())
        return await asyncio.shield(self._inflight)

    async def _probe_and_record(self) -> ConnectionStatus:
        result = await self.probe.run()
        self._status = ConnectionStatus.from_probe(result, previous=self._status)
        if not result.connected:
            logger.debug(f"Live backend unavailable: {result.error}")
        return self._status

    def cancel_inflight_probe(self) -> None:
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        self._inflight = None

    async def initialize(self) -> Mode:
        """Resolve the effective mode at startup."""
        logger.info(f"Initializing with preferred mode: {self.config.preferred_mode.value}")

        if self.forced_mode is not None:
            logger.info(f"Environment forces mode: {self.forced_mode.value}")
            self.current_mode = self.forced_mode
            return self.current_mode

        if self.config.preferred_mode.requires_live:
            status = await self.refresh_status()
            if status.is_connected:
                self.current_mode = self.config.preferred_mode
            else:
                logger.warning(
                    f"Live connection failed ({status.error}), "
                    f"falling back to: {self.config.fallback_mode.value}"
                )
                self.current_mode = self.config.fallback_mode
        else:
            self.current_mode = self.config.preferred_mode

        logger.info(f"Initialized in mode: {self.current_mode.value}")
        return self.current_mode

    async def switch_mode(self, target: Mode) -> bool:
        """
        Manual transition. A live-requiring target is only committed after
        a successful probe; on failure nothing changes.
        """
        logger.info(f"Manual mode switch requested: {self.current_mode.value} -> {target.value}")

        if target.requires_live:
            status = await self.refresh_status()
            if not status.is_connected:
                logger.warning(f"Cannot switch to {target.value} - live connection unavailable")
                return False

        old_mode = self.current_mode
        # A manual switch redefines the preferred mode going forward
        self.config = self.config.model_copy(update={"preferred_mode": target})
        self.current_mode = target

        logger.info(f"Mode switched successfully: {old_mode.value} -> {target.value}")
        return True

    def upgrade_to_preferred(self) -> bool:
        """Leave the fallback mode once the live site is back."""
        preferred = self.config.preferred_mode
        if self.current_mode == self.config.fallback_mode and preferred != self.config.fallback_mode:
            self.current_mode = preferred
            logger.info(f"Upgraded to preferred mode: {preferred.value}")
            return True
        return False

    def is_capability_available(self, capability: str) -> bool:
        connected = self._status.is_connected
        docs = self.router.is_docs_capability(capability)
        live = self.router.is_live_capability(capability)

        if self.current_mode is Mode.DOCS_ONLY:
            return docs
        if self.current_mode is Mode.LIVE_ONLY:
            return live and connected
        # HYBRID and SMART_FALLBACK
        return docs or (live and connected)
