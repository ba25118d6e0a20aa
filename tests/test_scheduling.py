"""Tests de los tickers (tiempo real con threading y tiempo virtual)."""

import logging
import threading
import time

import pytest

from perf_telemetry.scheduling import ManualTicker, ThreadingTicker


def wait_for(predicate, timeout_s=2.0):
    deadline = time.monotonic() + timeout_s
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


# =============================================================================
# THREADING TICKER
# =============================================================================

class TestThreadingTicker:
    """Timer re-armado en cada tick, serializado con el lock del contexto."""

    def test_refires_until_cancelled(self):
        ticks = []
        handle = ThreadingTicker().schedule(0.02, lambda: ticks.append(1))
        try:
            assert wait_for(lambda: len(ticks) >= 3)
        finally:
            handle.cancel()

        time.sleep(0.05)
        settled = len(ticks)
        time.sleep(0.1)
        assert len(ticks) == settled

    def test_callback_runs_under_lock(self):
        lock = threading.RLock()
        owned = []

        def callback():
            # Otro hilo no puede tomar el lock mientras el callback corre.
            result = {}
            contender = threading.Thread(
                target=lambda: result.setdefault("acquired", lock.acquire(blocking=False))
            )
            contender.start()
            contender.join()
            if result["acquired"]:
                lock.release()
            owned.append(not result["acquired"])

        handle = ThreadingTicker(lock=lock).schedule(0.02, callback)
        try:
            assert wait_for(lambda: len(owned) >= 2)
        finally:
            handle.cancel()
        assert all(owned)

    def test_held_lock_delays_ticks(self):
        lock = threading.RLock()
        ticks = []
        with lock:
            handle = ThreadingTicker(lock=lock).schedule(0.02, lambda: ticks.append(1))
            time.sleep(0.1)
            assert ticks == []
        try:
            assert wait_for(lambda: len(ticks) >= 1)
        finally:
            handle.cancel()

    def test_failing_callback_keeps_ticking(self, caplog):
        calls = []

        def broken():
            calls.append(1)
            raise RuntimeError("tick bug")

        with caplog.at_level(logging.ERROR):
            handle = ThreadingTicker().schedule(0.02, broken)
            try:
                assert wait_for(lambda: len(calls) >= 2)
            finally:
                handle.cancel()
        assert "TICK_FAILED" in caplog.text

    def test_invalid_interval(self):
        with pytest.raises(ValueError):
            ThreadingTicker().schedule(0, lambda: None)


# =============================================================================
# MANUAL TICKER
# =============================================================================

class TestManualTicker:
    """Tiempo virtual determinista."""

    def test_fires_in_chronological_order(self, ticker, clock):
        calls = []
        ticker.schedule(3, lambda: calls.append(("slow", clock.now())))
        ticker.schedule(2, lambda: calls.append(("fast", clock.now())))
        start = clock.now()

        assert ticker.advance(6) == 5
        assert [(name, ts - start) for name, ts in calls] == [
            ("fast", 2), ("slow", 3), ("fast", 4), ("slow", 6), ("fast", 6),
        ]
        assert clock.now() == start + 6

    def test_cancel(self, ticker):
        calls = []
        handle = ticker.schedule(1, lambda: calls.append(1))
        ticker.advance(2)
        handle.cancel()
        ticker.advance(5)
        assert len(calls) == 2
        assert ticker.active_count == 0

    def test_invalid_interval(self, clock):
        with pytest.raises(ValueError):
            ManualTicker(clock).schedule(-1, lambda: None)
