"""Unit tests for the PyMongo monitoring listeners."""

from unittest.mock import MagicMock

from keystone.integrations.mongodb.monitoring import PoolStatsListener, ServerHealthListener


def heartbeat(server, reply=None):
    return MagicMock(connection_id=server, reply=reply)


def make_listener():
    on_lost = MagicMock()
    on_restored = MagicMock()
    return ServerHealthListener(on_lost, on_restored), on_lost, on_restored


def test_lost_fires_once_when_last_server_fails():
    listener, on_lost, on_restored = make_listener()
    error = OSError("connection refused")
    listener.succeeded(heartbeat("a"))

    listener.failed(heartbeat("a", error))
    listener.failed(heartbeat("a", error))

    on_lost.assert_called_once_with(error)
    on_restored.assert_not_called()


def test_restored_after_loss():
    listener, on_lost, on_restored = make_listener()
    listener.failed(heartbeat("a", OSError()))

    listener.succeeded(heartbeat("a"))
    listener.succeeded(heartbeat("a"))

    on_restored.assert_called_once_with()


def test_success_without_loss_is_quiet():
    listener, on_lost, on_restored = make_listener()

    listener.succeeded(heartbeat("a"))

    on_lost.assert_not_called()
    on_restored.assert_not_called()


def test_remaining_server_keeps_connection():
    listener, on_lost, _ = make_listener()
    listener.succeeded(heartbeat("a"))
    listener.succeeded(heartbeat("b"))

    listener.failed(heartbeat("a", OSError()))
    on_lost.assert_not_called()

    listener.failed(heartbeat("b", OSError()))
    on_lost.assert_called_once()


def test_reset_forgets_loss():
    listener, _, on_restored = make_listener()
    listener.failed(heartbeat("a", OSError()))

    listener.reset()
    listener.succeeded(heartbeat("a"))

    on_restored.assert_not_called()


def test_pool_stats_counts_events():
    listener = PoolStatsListener()
    for _ in range(3):
        listener.connection_created(MagicMock())
    listener.connection_closed(MagicMock())
    listener.connection_checked_out(MagicMock())
    listener.connection_checked_out(MagicMock())
    listener.connection_checked_in(MagicMock())
    listener.connection_check_out_failed(MagicMock())
    listener.pool_cleared(MagicMock())

    stats = listener.snapshot(max_pool_size=10, min_pool_size=2)

    assert stats.max_pool_size == 10
    assert stats.min_pool_size == 2
    assert stats.total_created == 3
    assert stats.total_closed == 1
    assert stats.open_connections == 2
    assert stats.checked_out == 1
    assert stats.check_out_failures == 1
    assert stats.times_cleared == 1


def test_checked_in_never_goes_negative():
    listener = PoolStatsListener()

    listener.connection_checked_in(MagicMock())

    assert listener.snapshot(1, 0).checked_out == 0
