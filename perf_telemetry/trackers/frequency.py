"""Sliding-window frequency counters (rebuilds, setState calls).

One generic counter, instantiated per event kind. For each key it keeps
the recent event timestamps (bounded) plus a monotonic total.

Pruning is amortized: stale timestamps are dropped only when the key's
window exceeds ``SOFT_SIZE`` or every ``PRUNE_EVERY``-th event for that
key. ``HARD_CAP`` truncates the oldest entries regardless of timestamps
so memory stays bounded under any window/rate configuration.

When the number of events inside the trailing window reaches the
threshold, one warning is emitted and the key's window is cleared
(debounce): the same burst does not fire again on the next event.

The threshold is clamped to ``HARD_CAP`` so a stored window can always
reach it. Bursts are counted arithmetically and a burst that fires is
never materialized, so a single call never allocates more than
``HARD_CAP`` timestamps.
"""

from __future__ import annotations

import logging
from bisect import bisect_right
from typing import ClassVar, Dict, List, Optional, Tuple

from ..clock import Clock, SystemClock
from ..models import PerformanceWarning, WarningSeverity, WarningType
from ..warning_store import WarningStore

logger = logging.getLogger(__name__)


class SlidingWindowCounter:
    """Bounded per-key sliding-window event counter."""

    WARNING_TYPE: ClassVar[WarningType]
    LOG_TAG: ClassVar[str] = "EXCESSIVE_EVENTS"
    DEFAULT_THRESHOLD: ClassVar[int] = 60
    DEFAULT_WINDOW_S: ClassVar[float] = 2.0
    SOFT_SIZE: ClassVar[int] = 200
    PRUNE_EVERY: ClassVar[int] = 50
    HARD_CAP: ClassVar[int] = 500
    HARD_KEEP: ClassVar[int] = 200
    SUGGESTION: ClassVar[Optional[str]] = None

    def __init__(
        self,
        store: WarningStore,
        clock: Optional[Clock] = None,
        threshold: Optional[int] = None,
        window_s: Optional[float] = None,
    ) -> None:
        self._store = store
        self._clock = clock or SystemClock()
        self._threshold = self._bounded_threshold(threshold or self.DEFAULT_THRESHOLD)
        self._window_s = window_s or self.DEFAULT_WINDOW_S
        self._windows: Dict[str, List[float]] = {}
        self._totals: Dict[str, int] = {}
        self._is_tracking = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_tracking(self) -> bool:
        return self._is_tracking

    @property
    def threshold(self) -> int:
        return self._threshold

    @property
    def window_s(self) -> float:
        return self._window_s

    def start(self, threshold: Optional[int] = None, window_s: Optional[float] = None) -> None:
        if threshold is not None and threshold > 0:
            self._threshold = self._bounded_threshold(int(threshold))
        if window_s is not None and window_s > 0:
            self._window_s = float(window_s)
        self._is_tracking = True

    def _bounded_threshold(self, threshold: int) -> int:
        if threshold > self.HARD_CAP:
            logger.warning(
                "%s_THRESHOLD_CLAMPED threshold=%d max=%d",
                self.LOG_TAG, threshold, self.HARD_CAP,
            )
            return self.HARD_CAP
        return threshold

    def stop(self) -> None:
        self._is_tracking = False

    def reset(self) -> None:
        self._windows.clear()
        self._totals.clear()

    def dispose(self) -> None:
        self.stop()
        self.reset()

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def record_event(self, key: str) -> None:
        self.record_events(key, 1)

    def record_events(self, key: str, count: int = 1) -> None:
        """Record ``count`` events for ``key`` at the current instant.

        A burst is counted at once and the threshold is evaluated once, so
        hosts that batch their hook callbacks still get a single warning
        with the right severity and the real event count.
        """
        if not self._is_tracking:
            return
        if not key or not isinstance(count, int) or count <= 0:
            return

        window = self._windows.setdefault(key, [])
        now = self._clock.now()
        if window and now < window[-1]:
            # Reloj no monótono: nunca desordenar la ventana.
            now = window[-1]

        previous_total = self._totals.get(key, 0)
        total = previous_total + count
        self._totals[key] = total

        cutoff = now - self._window_s
        crossed_prune_mark = total // self.PRUNE_EVERY != previous_total // self.PRUNE_EVERY
        if len(window) + count > self.SOFT_SIZE or crossed_prune_mark:
            del window[: bisect_right(window, cutoff)]

        recent = len(window) - bisect_right(window, cutoff) + count
        if recent >= self._threshold:
            self._emit_warning(key, recent)
            window.clear()
            return

        # recent < threshold <= HARD_CAP: el burst cabe en la ventana.
        window.extend([now] * count)
        if len(window) > self.HARD_CAP:
            del window[: len(window) - self.HARD_KEEP]

    def _emit_warning(self, key: str, count: int) -> None:
        severity = (
            WarningSeverity.CRITICAL
            if count >= self._threshold * 2
            else WarningSeverity.WARNING
        )
        logger.debug(
            "%s key=%s count=%d threshold=%d window_s=%.1f",
            self.LOG_TAG, key, count, self._threshold, self._window_s,
        )
        self._store.report(
            PerformanceWarning(
                message=self._message(key, count),
                type=self.WARNING_TYPE,
                severity=severity,
                suggestion=self.SUGGESTION,
                entity=key,
                timestamp=self._clock.now(),
            )
        )

    def _message(self, key: str, count: int) -> str:
        return f'"{key}" recorded {count} events in {self._window_s:g} seconds.'

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def total_count(self) -> int:
        return sum(self._totals.values())

    def counts(self) -> Dict[str, int]:
        """Copy of the monotonic per-key totals."""
        return dict(self._totals)

    def top(self, count: int = 10) -> List[Tuple[str, int]]:
        """Keys by descending total; ties keep first-seen order."""
        ranked = sorted(self._totals.items(), key=lambda kv: -kv[1])
        return ranked[: max(count, 0)]

    def frequency(self, key: str) -> float:
        """Events per second inside the trailing window."""
        window = self._windows.get(key)
        if not window:
            return 0.0
        cutoff = self._clock.now() - self._window_s
        recent = len(window) - bisect_right(window, cutoff)
        return recent / self._window_s

    def window_size(self, key: str) -> int:
        """Timestamps currently held for ``key`` (stale ones included)."""
        return len(self._windows.get(key, ()))


class RebuildTracker(SlidingWindowCounter):
    """Widget rebuild frequency."""

    WARNING_TYPE = WarningType.EXCESSIVE_REBUILDS
    LOG_TAG = "EXCESSIVE_REBUILDS"
    DEFAULT_THRESHOLD = 60
    DEFAULT_WINDOW_S = 2.0
    SOFT_SIZE = 200
    PRUNE_EVERY = 50
    HARD_CAP = 500
    HARD_KEEP = 200
    SUGGESTION = (
        "Use const constructors, memoize values, or listen to narrower "
        "state so fewer widgets rebuild."
    )

    def _message(self, key: str, count: int) -> str:
        return f'Widget "{key}" rebuilt {count} times in {self._window_s:g} seconds.'

    def top_rebuilders(self, count: int = 10) -> List[Tuple[str, int]]:
        return self.top(count)


class SetStateTracker(SlidingWindowCounter):
    """setState call frequency."""

    WARNING_TYPE = WarningType.UNNECESSARY_SET_STATE
    LOG_TAG = "EXCESSIVE_SET_STATE"
    DEFAULT_THRESHOLD = 10
    DEFAULT_WINDOW_S = 2.0
    SOFT_SIZE = 50
    PRUNE_EVERY = 20
    HARD_CAP = 200
    HARD_KEEP = 50
    SUGGESTION = (
        "Consider value notifiers or a dedicated state management "
        "solution to reduce broad setState calls."
    )

    def _message(self, key: str, count: int) -> str:
        return (
            f'Widget "{key}" called setState {count} times '
            f"in {self._window_s:g} seconds."
        )

    def top_callers(self, count: int = 10) -> List[Tuple[str, int]]:
        return self.top(count)
