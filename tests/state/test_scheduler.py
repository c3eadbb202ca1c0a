"""Tests for the periodic tick scheduler."""

import threading

import pytest

from procman_app.state.scheduler import TickScheduler


class TestTickScheduler:
    """Test start/stop lifecycle and failure handling."""

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            TickScheduler(lambda: None, interval_seconds=0)

    def test_ticks_immediately_and_repeatedly(self):
        calls = []
        reached = threading.Event()

        def callback():
            calls.append(1)
            if len(calls) >= 3:
                reached.set()

        scheduler = TickScheduler(callback, interval_seconds=0.01)
        scheduler.start()
        try:
            assert reached.wait(5.0)
        finally:
            scheduler.stop()

        assert scheduler.tick_count >= 3

    def test_stop_leaves_no_live_thread(self):
        scheduler = TickScheduler(lambda: None, interval_seconds=0.01)
        scheduler.start()
        thread = scheduler._thread

        scheduler.stop()

        assert not scheduler.is_running
        assert not thread.is_alive()
        assert thread not in threading.enumerate()

    def test_stop_interrupts_long_interval(self):
        """Stopping does not wait out the interval."""
        started = threading.Event()
        scheduler = TickScheduler(started.set, interval_seconds=3600)
        scheduler.start()
        assert started.wait(5.0)

        scheduler.stop(timeout=5.0)

        assert not scheduler.is_running

    def test_start_is_idempotent(self):
        scheduler = TickScheduler(lambda: None, interval_seconds=0.01)
        scheduler.start()
        first = scheduler._thread
        scheduler.start()
        try:
            assert scheduler._thread is first
        finally:
            scheduler.stop()

    def test_stop_without_start(self):
        scheduler = TickScheduler(lambda: None)
        scheduler.stop()

        assert not scheduler.is_running

    def test_restart_after_stop(self):
        ticked = threading.Event()
        scheduler = TickScheduler(ticked.set, interval_seconds=0.01)
        scheduler.start()
        scheduler.stop()
        ticked.clear()

        scheduler.start()
        try:
            assert ticked.wait(5.0)
        finally:
            scheduler.stop()

    def test_failing_callback_does_not_kill_loop(self):
        calls = []
        recovered = threading.Event()

        def callback():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")
            recovered.set()

        scheduler = TickScheduler(callback, interval_seconds=0.01)
        scheduler.start()
        try:
            assert recovered.wait(5.0)
        finally:
            scheduler.stop()

        assert scheduler.error_count == 1
        assert scheduler.tick_count >= 1

    def test_stop_from_tick_thread(self):
        """A callback that stops its own scheduler ends the loop cleanly."""
        calls = []
        stopped = threading.Event()
        scheduler = TickScheduler(lambda: None, interval_seconds=0.01)

        def callback():
            calls.append(threading.current_thread())
            scheduler.stop()
            stopped.set()

        scheduler.callback = callback
        scheduler.start()
        assert stopped.wait(5.0)
        calls[0].join(5.0)

        assert not calls[0].is_alive()
        assert len(calls) == 1
        assert scheduler._thread is None
        assert not scheduler.is_running
