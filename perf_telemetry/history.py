"""Historial de snapshots en un ring buffer acotado.

Un tick externo (default cada 10 s) captura un ``MetricsSnapshot``; al
superar la capacidad se desaloja el más antiguo (FIFO).
"""

from __future__ import annotations

import logging
from collections import deque
from enum import Enum
from typing import Callable, Deque, List, Optional

from .models import MetricsSnapshot
from .scheduling import TickHandle, Ticker

logger = logging.getLogger(__name__)

TREND_FPS_DELTA = 5.0


class PerformanceTrend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class HistoryRecorder:
    def __init__(
        self,
        snapshot_fn: Optional[Callable[[], MetricsSnapshot]] = None,
        max_size: int = 1000,
    ) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self._snapshot_fn = snapshot_fn
        self._max_size = max_size
        self._history: Deque[MetricsSnapshot] = deque(maxlen=max_size)
        self._handle: Optional[TickHandle] = None

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def is_recording(self) -> bool:
        return self._handle is not None

    def start(self, ticker: Ticker, interval_s: float = 10.0) -> None:
        if self._handle is not None:
            return
        self._handle = ticker.schedule(interval_s, self.record)

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def record(self) -> Optional[MetricsSnapshot]:
        """Captura un snapshot con ``snapshot_fn`` y lo agrega."""
        if self._snapshot_fn is None:
            return None
        snapshot = self._snapshot_fn()
        self.record_snapshot(snapshot)
        return snapshot

    def record_snapshot(self, snapshot: MetricsSnapshot) -> None:
        self._history.append(snapshot)
        logger.debug("HISTORY_RECORDED size=%d fps=%.1f", len(self._history), snapshot.fps)

    def history(self) -> List[MetricsSnapshot]:
        return list(self._history)

    def __len__(self) -> int:
        return len(self._history)

    def clear(self) -> None:
        self._history.clear()

    def get_trend(self) -> PerformanceTrend:
        """Compara el FPS de los dos snapshots más recientes."""
        if len(self._history) < 2:
            return PerformanceTrend.STABLE
        fps_delta = self._history[-1].fps - self._history[-2].fps
        if fps_delta < -TREND_FPS_DELTA:
            return PerformanceTrend.DECLINING
        if fps_delta > TREND_FPS_DELTA:
            return PerformanceTrend.IMPROVING
        return PerformanceTrend.STABLE
