"""Tests for health monitoring and scheduled recovery."""

import pytest

from conftest import wait_until
from drupal_mcp.core.modes import Mode


@pytest.mark.asyncio
async def test_monitor_start_is_idempotent(make_manager):
    manager = make_manager(preferred=Mode.HYBRID)
    await manager.initialize()
    task = manager.monitor._monitor_task

    manager.monitor.start()

    assert manager.monitor._monitor_task is task


@pytest.mark.asyncio
async def test_check_acts_only_on_lost_connection(make_manager, backend):
    manager = make_manager(preferred=Mode.HYBRID, recovery_delay_ms=60_000)
    await manager.initialize()

    await manager.monitor.run_check()
    assert manager.monitor.recovery_pending is False

    backend.up = False
    await manager.monitor.run_check()
    assert manager.monitor.recovery_pending is True

    # still down: no edge, nothing new scheduled
    task = manager.monitor._recovery_task
    await manager.monitor.run_check()
    assert manager.monitor._recovery_task is task


@pytest.mark.asyncio
async def test_only_one_recovery_pending(make_manager):
    manager = make_manager(preferred=Mode.HYBRID, recovery_delay_ms=60_000)
    await manager.initialize()

    assert manager.monitor.schedule_recovery() is True
    assert manager.monitor.schedule_recovery() is False


@pytest.mark.asyncio
async def test_no_recovery_scheduled_when_disabled(make_manager, backend):
    manager = make_manager(preferred=Mode.HYBRID, enable_auto_recovery=False)
    await manager.initialize()
    backend.up = False

    await manager.monitor.run_check()

    assert manager.monitor.recovery_pending is False
    assert manager.get_mode_stats().degraded is True


@pytest.mark.asyncio
async def test_periodic_check_detects_outage_and_recovers(make_manager, backend):
    manager = make_manager(
        preferred=Mode.SMART_FALLBACK,
        health_check_interval_ms=10,
        max_retries=10,
        recovery_delay_ms=10,
    )
    await manager.initialize()

    backend.up = False
    assert await wait_until(lambda: not manager.get_connection_status().is_connected)

    backend.up = True
    assert await wait_until(lambda: manager.get_connection_status().is_connected)
    assert await wait_until(lambda: not manager.monitor.recovery_pending)
    assert manager.get_current_mode() is Mode.SMART_FALLBACK
    assert manager.recovery.reconnect_attempts == 0


@pytest.mark.asyncio
async def test_scheduled_recovery_gives_up_after_max_retries(make_manager, backend):
    manager = make_manager(preferred=Mode.HYBRID, max_retries=2, recovery_delay_ms=1)
    await manager.initialize()
    backend.up = False

    await manager.monitor.run_check()
    assert await wait_until(lambda: not manager.monitor.recovery_pending)

    stats = manager.get_mode_stats()
    assert stats.reconnect_attempts == 2
    assert stats.retries_exhausted is True


@pytest.mark.asyncio
async def test_destroy_cancels_pending_recovery(make_manager, backend):
    manager = make_manager(preferred=Mode.HYBRID, recovery_delay_ms=60_000)
    await manager.initialize()
    backend.up = False
    await manager.monitor.run_check()
    calls = backend.calls

    await manager.destroy()

    assert manager.monitor.recovery_pending is False
    assert manager.monitor.is_running is False
    assert backend.calls == calls


@pytest.mark.asyncio
async def test_each_outage_gets_full_retry_budget(make_manager, backend):
    manager = make_manager(preferred=Mode.HYBRID, max_retries=2, recovery_delay_ms=1)
    await manager.initialize()

    backend.up = False
    await manager.monitor.run_check()
    assert await wait_until(lambda: not manager.monitor.recovery_pending)
    assert manager.recovery.retries_exhausted is True

    # site returns without a recovery attempt noticing it
    backend.up = True
    await manager.monitor.run_check()
    stats = manager.get_mode_stats()
    assert stats.status.is_connected is True
    assert stats.reconnect_attempts == 0
    assert stats.retries_exhausted is False

    backend.up = False
    calls = backend.calls
    await manager.monitor.run_check()
    assert await wait_until(lambda: not manager.monitor.recovery_pending)

    # one monitor check plus two scheduled attempts
    assert backend.calls - calls == 3
    assert manager.recovery.reconnect_attempts == 2
