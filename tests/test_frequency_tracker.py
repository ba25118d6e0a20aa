"""Tests del contador de frecuencia por ventana deslizante.

Ejecutar:
    pytest tests/test_frequency_tracker.py -v
"""

import logging

import pytest

from perf_telemetry.models import WarningSeverity, WarningType
from perf_telemetry.trackers.frequency import RebuildTracker, SetStateTracker


@pytest.fixture
def tracker(store, clock) -> RebuildTracker:
    t = RebuildTracker(store, clock)
    t.start(threshold=60, window_s=2.0)
    return t


# =============================================================================
# ESTADO STOPPED
# =============================================================================

class TestStoppedTracker:
    """Mientras está detenido, la ingesta se descarta sin encolar."""

    def test_never_started_records_nothing(self, store, clock):
        t = RebuildTracker(store, clock)
        for _ in range(100):
            t.record_event("Widget")
        t.record_events("Widget", 500)

        assert t.total_count() == 0
        assert store.count == 0
        assert t.top() == []

    def test_stop_drops_subsequent_events(self, tracker, store):
        tracker.record_events("Widget", 5)
        tracker.stop()
        tracker.record_events("Widget", 200)

        assert tracker.total_count() == 5
        assert store.count == 0

    def test_start_and_stop_are_idempotent(self, tracker):
        tracker.start()
        tracker.start()
        assert tracker.is_tracking is True
        tracker.stop()
        tracker.stop()
        assert tracker.is_tracking is False


# =============================================================================
# UMBRAL Y DEBOUNCE
# =============================================================================

class TestThresholdWarnings:
    """Advertencias al cruzar el umbral dentro de la ventana."""

    def test_61_events_in_window_emit_one_warning(self, tracker, store, clock):
        for _ in range(61):
            tracker.record_event("Widget")
            clock.advance(0.01)

        assert store.count == 1
        warning = store.warnings()[0]
        assert warning.type == WarningType.EXCESSIVE_REBUILDS
        assert warning.severity == WarningSeverity.WARNING
        assert warning.entity == "Widget"

    def test_burst_of_130_is_critical(self, tracker, store):
        tracker.record_events("Widget", 130)

        assert store.count == 1
        assert store.warnings()[0].severity == WarningSeverity.CRITICAL
        assert "130" in store.warnings()[0].message

    def test_burst_just_below_double_is_warning(self, tracker, store):
        tracker.record_events("Widget", 119)
        assert store.warnings()[0].severity == WarningSeverity.WARNING

    def test_window_cleared_after_warning(self, tracker, store):
        for _ in range(60):
            tracker.record_event("Widget")

        assert store.count == 1
        assert tracker.window_size("Widget") == 0

        tracker.record_event("Widget")
        assert tracker.window_size("Widget") == 1
        assert store.count == 1

    def test_total_keeps_counting_after_debounce(self, tracker):
        tracker.record_events("Widget", 60)
        tracker.record_events("Widget", 3)
        assert tracker.counts() == {"Widget": 63}

    def test_below_threshold_no_warning(self, tracker, store):
        tracker.record_events("Widget", 59)
        assert store.count == 0

    def test_events_outside_window_do_not_count(self, tracker, store, clock):
        tracker.record_events("Widget", 59)
        clock.advance(3.0)
        tracker.record_event("Widget")

        assert store.count == 0
        assert tracker.frequency("Widget") == pytest.approx(0.5)

    def test_keys_are_independent(self, tracker, store):
        tracker.record_events("A", 59)
        tracker.record_events("B", 59)
        assert store.count == 0


# =============================================================================
# MEMORIA ACOTADA
# =============================================================================

class TestBoundedWindows:
    """Poda amortizada y tope duro."""

    def test_threshold_above_hard_cap_is_clamped(self, store, clock, caplog):
        t = RebuildTracker(store, clock, window_s=3600.0)
        with caplog.at_level(logging.WARNING):
            t.start(threshold=600)

        assert t.threshold == RebuildTracker.HARD_CAP
        assert "EXCESSIVE_REBUILDS_THRESHOLD_CLAMPED threshold=600" in caplog.text

    def test_high_threshold_still_fires_with_single_events(self, store, clock):
        t = RebuildTracker(store, clock, threshold=600, window_s=2.0)
        t.start()
        for _ in range(5000):
            t.record_event("Hot")
            clock.advance(0.0001)

        assert store.count == 10
        assert t.window_size("Hot") <= RebuildTracker.HARD_CAP

    def test_single_events_keep_window_bounded(self, store, clock):
        t = RebuildTracker(store, clock, threshold=10_000, window_s=3600.0)
        t.start()
        for _ in range(1000):
            t.record_event("Widget")
            clock.advance(0.001)

        assert t.window_size("Widget") <= RebuildTracker.HARD_CAP
        assert store.count == 2

    def test_burst_larger_than_hard_cap_reports_real_count(self, store, clock):
        t = RebuildTracker(store, clock, threshold=300, window_s=3600.0)
        t.start()
        t.record_events("Widget", 600)

        [warning] = store.warnings()
        assert warning.severity == WarningSeverity.CRITICAL
        assert "rebuilt 600 times" in warning.message
        assert t.window_size("Widget") == 0
        assert t.total_count() == 600

    def test_set_state_burst_larger_than_hard_cap(self, store, clock):
        t = SetStateTracker(store, clock)
        t.start()
        t.record_events("Counter", 250)

        [warning] = store.warnings()
        assert warning.message == 'Widget "Counter" called setState 250 times in 2 seconds.'
        assert warning.severity == WarningSeverity.CRITICAL

    def test_huge_burst_is_not_materialized(self, store, clock):
        t = RebuildTracker(store, clock, threshold=10_000, window_s=3600.0)
        t.start()
        t.record_events("Widget", 10**9)

        assert t.total_count() == 10**9
        assert t.window_size("Widget") == 0
        assert store.count == 1

    def test_burst_below_threshold_adds_to_window(self, store, clock):
        t = RebuildTracker(store, clock, threshold=300, window_s=3600.0)
        t.start()
        t.record_events("Widget", 250)
        assert t.window_size("Widget") == 250
        assert store.count == 0

        t.record_events("Widget", 50)
        assert "rebuilt 300 times" in store.warnings()[0].message

    def test_prune_every_kth_event(self, store, clock):
        t = RebuildTracker(store, clock, threshold=10_000, window_s=1.0)
        t.start()
        t.record_events("Widget", 10)
        clock.advance(5.0)
        t.record_events("Widget", 39)

        # 49 eventos: todavía no toca podar
        assert t.window_size("Widget") == 49

        t.record_event("Widget")
        assert t.window_size("Widget") == 40

    def test_prune_when_window_exceeds_soft_size(self, store, clock):
        t = SetStateTracker(store, clock, threshold=10_000, window_s=1.0)
        t.start()
        t.record_events("Widget", 45)
        clock.advance(5.0)
        t.record_events("Widget", 4)
        assert t.window_size("Widget") == 49

        # 51 > soft size 50 -> poda (total 51 no cruza múltiplo de 20)
        t.record_events("Widget", 2)
        assert t.window_size("Widget") == 6


# =============================================================================
# CONSULTAS
# =============================================================================

class TestQueries:
    """TopN, frecuencia y totales."""

    def test_top_sorted_by_descending_count(self, tracker):
        tracker.record_events("a", 3)
        tracker.record_events("b", 5)
        tracker.record_events("c", 1)

        top = tracker.top(10)
        counts = [count for _, count in top]
        assert counts == sorted(counts, reverse=True)
        assert top[0] == ("b", 5)

    def test_top_ties_keep_first_seen_order(self, tracker):
        tracker.record_events("first", 3)
        tracker.record_events("busy", 5)
        tracker.record_events("second", 3)
        tracker.record_events("third", 3)

        assert tracker.top(4) == [("busy", 5), ("first", 3), ("second", 3), ("third", 3)]

    def test_top_limits_result(self, tracker):
        for key in "abcdef":
            tracker.record_event(key)
        assert len(tracker.top(3)) == 3
        assert tracker.top(0) == []

    def test_frequency_is_events_per_second(self, tracker, clock):
        tracker.record_events("Widget", 10)
        assert tracker.frequency("Widget") == pytest.approx(5.0)

        clock.advance(2.5)
        assert tracker.frequency("Widget") == 0.0
        assert tracker.frequency("unknown") == 0.0

    def test_invalid_input_is_ignored(self, tracker, store):
        tracker.record_event("")
        tracker.record_event(None)
        tracker.record_events("Widget", 0)
        tracker.record_events("Widget", -5)

        assert tracker.total_count() == 0
        assert store.count == 0

    def test_reset_clears_state_but_keeps_tracking(self, tracker):
        tracker.record_events("Widget", 10)
        tracker.reset()

        assert tracker.total_count() == 0
        assert tracker.window_size("Widget") == 0
        assert tracker.is_tracking is True

    def test_dispose_stops_and_clears(self, tracker):
        tracker.record_events("Widget", 10)
        tracker.dispose()

        assert tracker.is_tracking is False
        assert tracker.total_count() == 0


# =============================================================================
# SETSTATE
# =============================================================================

class TestSetStateTracker:
    """Misma mecánica con umbral 10."""

    def test_default_threshold_is_ten(self, store, clock):
        t = SetStateTracker(store, clock)
        t.start()
        t.record_events("Counter", 9)
        assert store.count == 0

        t.record_event("Counter")
        assert store.count == 1
        warning = store.warnings()[0]
        assert warning.type == WarningType.UNNECESSARY_SET_STATE
        assert warning.entity == "Counter"
        assert warning.severity == WarningSeverity.WARNING

    def test_top_callers(self, store, clock):
        t = SetStateTracker(store, clock)
        t.start()
        t.record_events("A", 2)
        t.record_events("B", 4)
        assert t.top_callers(1) == [("B", 4)]
