"""Tests for the health check."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from keystone.application.events import ConnectionEvent, EventChannel
from keystone.application.health import HealthCheck


def make_store(connected: bool = True, ping: bool = True):
    store = MagicMock()
    store.is_connected = connected
    store.ping = AsyncMock(return_value=ping)
    return store


def make_cache(ping: bool = True):
    cache = MagicMock()
    cache.ping = AsyncMock(return_value=ping)
    return cache


@pytest.mark.asyncio
async def test_all_healthy():
    check = HealthCheck(make_store(), make_cache())

    report = await check.check()

    assert report.status == "ok"
    assert report.is_healthy
    assert report.database["status"] == "connected"
    assert "response_time_ms" in report.database
    assert report.cache == {"status": "connected"}


@pytest.mark.asyncio
async def test_cache_outage_is_degraded():
    check = HealthCheck(make_store(), make_cache(ping=False))

    report = await check.check()

    assert report.status == "degraded"
    assert report.is_healthy


@pytest.mark.asyncio
async def test_cache_disabled():
    report = await HealthCheck(make_store()).check()

    assert report.status == "ok"
    assert report.cache == {"status": "disabled"}


@pytest.mark.asyncio
async def test_failed_ping_is_error():
    report = await HealthCheck(make_store(ping=False), make_cache()).check()

    assert report.status == "error"
    assert not report.is_healthy


@pytest.mark.asyncio
async def test_follows_lifecycle_events():
    """Test a disconnect event fails the check without pinging."""
    events = EventChannel()
    store = make_store()
    check = HealthCheck(store, make_cache(), events)

    events.publish(ConnectionEvent.ERROR, RuntimeError("heartbeat failed"))
    events.publish(ConnectionEvent.DISCONNECTED)
    report = await check.check()

    assert report.status == "error"
    assert report.database == {"status": "disconnected", "last_error": "heartbeat failed"}
    store.ping.assert_not_called()

    events.publish(ConnectionEvent.RECONNECTED)
    report = await check.check()

    assert report.status == "ok"


@pytest.mark.asyncio
async def test_starts_from_store_state():
    events = EventChannel()
    check = HealthCheck(make_store(connected=False), make_cache(), events)

    assert (await check.check()).status == "error"

    events.publish(ConnectionEvent.CONNECTED)
    assert (await check.check()).status == "ok"


def test_close_unsubscribes():
    events = EventChannel()
    check = HealthCheck(make_store(), make_cache(), events)

    check.close()

    for event in ConnectionEvent:
        assert events.subscriber_count(event) == 0
