"""Shared fixtures for the mode coordinator tests."""

import asyncio
from typing import Optional

import pytest
import pytest_asyncio

from drupal_mcp.core.modes import ConnectivityProbe, DrupalModeManager, Mode, ModeConfiguration
from drupal_mcp.utils.errors import BackendConnectionError


class ScriptedBackend:
    """Stands in for DrupalClient.health_probe; flip `up` to simulate outages."""

    def __init__(self, up: bool = True, delay: float = 0.0):
        self.up = up
        self.delay = delay
        self.calls = 0

    async def health_probe(self, timeout: Optional[float] = None):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if not self.up:
            raise BackendConnectionError("GET /api/site/info failed: connection refused")
        return {"name": "Test site", "version": "11.0"}


async def wait_until(predicate, timeout: float = 1.0, interval: float = 0.005) -> bool:
    """Poll until predicate() is true or the timeout expires."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        if predicate():
            return True
        await asyncio.sleep(interval)
    return predicate()


@pytest.fixture
def backend():
    return ScriptedBackend()


@pytest_asyncio.fixture
async def make_manager(backend):
    """Factory for managers wired to the scripted backend; destroyed after the test."""
    created = []

    def _make(
        preferred: Mode = Mode.SMART_FALLBACK,
        configured: bool = True,
        forced_mode: Optional[Mode] = None,
        **config_overrides
    ) -> DrupalModeManager:
        config = ModeConfiguration(preferred_mode=preferred, **config_overrides)
        probe = ConnectivityProbe(backend, configured=configured, timeout=config.connection_timeout)
        manager = DrupalModeManager(config, probe, forced_mode=forced_mode)
        created.append(manager)
        return manager

    yield _make

    for manager in created:
        await manager.destroy()
