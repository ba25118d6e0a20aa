"""Animation tracker: dropped frames while animations are registered."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, FrozenSet, Iterable, List, Optional

from ..clock import Clock, SystemClock
from ..models import FrameTimingRecord, PerformanceWarning, WarningSeverity, WarningType
from ..utils.numeric import non_negative
from ..warning_store import WarningStore

logger = logging.getLogger(__name__)

SMOOTH_DROP_RATE_PERCENT = 5.0

ANIMATION_JANK_SUGGESTION = (
    "Avoid rebuilding large widget subtrees during animation. "
    "Use RepaintBoundary, AnimatedBuilder, or cache expensive "
    "computations outside the build method."
)


@dataclass(frozen=True)
class AnimationFrameRecord:
    duration_ms: float
    is_dropped: bool
    timestamp: float
    active_animations: FrozenSet[str]


class AnimationTracker:
    """Cuenta frames perdidos mientras haya al menos una animación activa."""

    def __init__(
        self,
        store: WarningStore,
        clock: Optional[Clock] = None,
        jank_threshold_ms: float = 16.0,
        max_records: int = 100,
    ) -> None:
        self._store = store
        self._clock = clock or SystemClock()
        self._jank_threshold_ms = float(jank_threshold_ms)
        self._active: List[str] = []
        self._dropped_frames = 0
        self._total_frames = 0
        self._records: Deque[AnimationFrameRecord] = deque(maxlen=max_records)
        self._is_tracking = False

    @property
    def is_tracking(self) -> bool:
        return self._is_tracking

    def start(self, jank_threshold_ms: Optional[float] = None) -> None:
        if jank_threshold_ms is not None and jank_threshold_ms > 0:
            self._jank_threshold_ms = float(jank_threshold_ms)
        self._is_tracking = True

    def stop(self) -> None:
        self._is_tracking = False

    def register_animation(self, name: str) -> None:
        if name and name not in self._active:
            self._active.append(name)

    def unregister_animation(self, name: str) -> None:
        if name in self._active:
            self._active.remove(name)

    @property
    def active_animations(self) -> FrozenSet[str]:
        return frozenset(self._active)

    @property
    def active_animation_count(self) -> int:
        return len(self._active)

    @property
    def dropped_frames(self) -> int:
        return self._dropped_frames

    @property
    def total_animation_frames(self) -> int:
        return self._total_frames

    @property
    def drop_rate(self) -> float:
        """Porcentaje de frames perdidos sobre el total animado."""
        if self._total_frames == 0:
            return 0.0
        return self._dropped_frames / self._total_frames * 100.0

    @property
    def is_smooth(self) -> bool:
        return self.drop_rate < SMOOTH_DROP_RATE_PERCENT

    def records(self) -> List[AnimationFrameRecord]:
        return list(self._records)

    def ingest(self, records: Iterable[FrameTimingRecord]) -> None:
        if not self._is_tracking or not self._active:
            return

        for record in records:
            if not isinstance(record, FrameTimingRecord):
                continue
            duration_ms = non_negative(record.total_ms)
            is_dropped = duration_ms > self._jank_threshold_ms
            self._total_frames += 1
            if is_dropped:
                self._dropped_frames += 1

            self._records.append(
                AnimationFrameRecord(
                    duration_ms=duration_ms,
                    is_dropped=is_dropped,
                    timestamp=self._clock.now(),
                    active_animations=frozenset(self._active),
                )
            )

            if is_dropped:
                self._emit_jank(duration_ms)

    def _emit_jank(self, duration_ms: float) -> None:
        names = ", ".join(self._active)
        severity = (
            WarningSeverity.CRITICAL
            if duration_ms > self._jank_threshold_ms * 2
            else WarningSeverity.WARNING
        )
        logger.debug("ANIMATION_JANK duration_ms=%.2f animations=%s", duration_ms, names)
        self._store.report(
            PerformanceWarning(
                message=(
                    f"Animation jank detected! Frame took {duration_ms:.1f}ms "
                    f"during: {names}."
                ),
                type=WarningType.ANIMATION_JANK,
                severity=severity,
                suggestion=ANIMATION_JANK_SUGGESTION,
                entity=names,
                timestamp=self._clock.now(),
            )
        )

    def reset(self) -> None:
        self._dropped_frames = 0
        self._total_frames = 0
        self._records.clear()
        self._active.clear()

    def dispose(self) -> None:
        self.stop()
        self.reset()
