"""Frame timing tracker.

Consume lotes de registros de timing (build/raster/total en ms) y deriva:
- FPS estimado: frames recibidos en el último segundo, acotado a [0, 120]
- Promedios de build/raster/total sobre los últimos 2 segundos
- Jank: frames cuyo total supera el presupuesto (default 16 ms)

Cada frame con jank emite una advertencia ``slow_frame``. A diferencia de
los contadores de frecuencia, aquí no hay debounce: cada frame lento es un
evento independiente y el almacén de advertencias ya está acotado.
"""

from __future__ import annotations

import dataclasses
import logging
from collections import deque
from typing import Callable, Deque, Iterable, List, Optional

from ..clock import Clock, SystemClock
from ..models import FrameTimingRecord, PerformanceWarning, WarningSeverity, WarningType
from ..utils.numeric import clamp, non_negative
from ..warning_store import WarningStore

logger = logging.getLogger(__name__)

FrameListener = Callable[[FrameTimingRecord], None]

FPS_WINDOW_S = 1.0
AVERAGE_WINDOW_S = 2.0
MAX_FPS = 120.0
IDLE_FPS = 60.0
# Presupuesto de un frame a 60 Hz, usado para las cargas estimadas.
FRAME_BUDGET_MS = 16.6
FPS_BUCKET_S = 0.5

SLOW_FRAME_SUGGESTION = (
    "Avoid expensive operations during animation. "
    "Consider using RepaintBoundary or caching."
)


class FrameTimingTracker:
    """Historial acotado de frames con detección de jank."""

    def __init__(
        self,
        store: WarningStore,
        clock: Optional[Clock] = None,
        warning_threshold_ms: float = 16.0,
        max_history: int = 300,
    ) -> None:
        if max_history <= 0:
            raise ValueError("max_history must be positive")
        self._store = store
        self._clock = clock or SystemClock()
        self._warning_threshold_ms = float(warning_threshold_ms)
        self._history: Deque[FrameTimingRecord] = deque(maxlen=max_history)
        self._jank_frame_count = 0
        self._listeners: List[FrameListener] = []
        self._is_tracking = False

    @property
    def is_tracking(self) -> bool:
        return self._is_tracking

    @property
    def warning_threshold_ms(self) -> float:
        return self._warning_threshold_ms

    def start(self, warning_threshold_ms: Optional[float] = None) -> None:
        if warning_threshold_ms is not None and warning_threshold_ms > 0:
            self._warning_threshold_ms = float(warning_threshold_ms)
        self._is_tracking = True

    def stop(self) -> None:
        self._is_tracking = False

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: FrameListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: FrameListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def ingest(self, records: Iterable[FrameTimingRecord]) -> int:
        """Ingiere un lote de frames. Devuelve cuántos frames fueron aceptados."""
        if not self._is_tracking:
            return 0

        accepted = 0
        for raw in records:
            record = self._normalize(raw)
            if record is None:
                continue
            accepted += 1
            self._history.append(record)

            is_jank = record.total_ms > self._warning_threshold_ms
            if is_jank:
                self._jank_frame_count += 1

            for listener in list(self._listeners):
                try:
                    listener(record)
                except Exception:  # noqa: BLE001
                    logger.exception("FRAME_LISTENER_FAILED listener=%r", listener)

            if is_jank:
                self._emit_slow_frame(record)

        return accepted

    def _normalize(self, raw: FrameTimingRecord) -> Optional[FrameTimingRecord]:
        if not isinstance(raw, FrameTimingRecord):
            logger.debug("FRAME_RECORD_IGNORED value=%r", raw)
            return None
        timestamp = raw.timestamp if raw.timestamp is not None else self._clock.now()
        return dataclasses.replace(
            raw,
            build_ms=non_negative(raw.build_ms),
            raster_ms=non_negative(raw.raster_ms),
            total_ms=non_negative(raw.total_ms),
            timestamp=non_negative(timestamp, self._clock.now()),
        )

    def _emit_slow_frame(self, record: FrameTimingRecord) -> None:
        severity = (
            WarningSeverity.CRITICAL
            if record.total_ms > self._warning_threshold_ms * 2
            else WarningSeverity.WARNING
        )
        logger.debug(
            "SLOW_FRAME total_ms=%.2f threshold_ms=%.2f",
            record.total_ms, self._warning_threshold_ms,
        )
        self._store.report(
            PerformanceWarning(
                message=(
                    f"Frame rendering took {record.total_ms:.1f}ms "
                    f"(threshold: {self._warning_threshold_ms:g}ms)"
                ),
                type=WarningType.SLOW_FRAME,
                severity=severity,
                suggestion=SLOW_FRAME_SUGGESTION,
                timestamp=self._clock.now(),
            )
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _recent(self, window_s: float) -> List[FrameTimingRecord]:
        cutoff = self._clock.now() - window_s
        return [r for r in self._history if r.timestamp > cutoff]

    @property
    def current_fps(self) -> float:
        if not self._history:
            return IDLE_FPS
        return clamp(float(len(self._recent(FPS_WINDOW_S))), 0.0, MAX_FPS)

    def _average(self, attr: str) -> float:
        recent = self._recent(AVERAGE_WINDOW_S)
        if not recent:
            return 0.0
        return sum(getattr(r, attr) for r in recent) / len(recent)

    @property
    def average_build_time_ms(self) -> float:
        return self._average("build_ms")

    @property
    def average_raster_time_ms(self) -> float:
        return self._average("raster_ms")

    @property
    def average_frame_time_ms(self) -> float:
        return self._average("total_ms")

    @property
    def jank_frame_count(self) -> int:
        return self._jank_frame_count

    @property
    def is_janking(self) -> bool:
        """Más de 2 frames con jank en el último segundo."""
        recent = self._recent(FPS_WINDOW_S)
        janks = sum(1 for r in recent if r.total_ms > self._warning_threshold_ms)
        return janks > 2

    def fps_history(self) -> List[float]:
        """FPS por buckets de 500 ms (frames x 2), para gráficos."""
        if not self._history:
            return []
        ordered = sorted(self._history, key=lambda r: r.timestamp)
        result: List[float] = []
        bucket_start = ordered[0].timestamp
        in_bucket = 0
        for record in ordered:
            if record.timestamp - bucket_start < FPS_BUCKET_S:
                in_bucket += 1
            else:
                result.append(clamp(float(in_bucket * 2), 0.0, MAX_FPS))
                bucket_start = record.timestamp
                in_bucket = 1
        result.append(clamp(float(in_bucket * 2), 0.0, MAX_FPS))
        return result

    def frame_time_history(self) -> List[float]:
        """Duración total (ms) de los frames de los últimos 2 segundos."""
        return [r.total_ms for r in self._recent(AVERAGE_WINDOW_S)]

    def estimated_cpu_load(self) -> float:
        """Build promedio sobre el presupuesto de frame, en [0, 1]."""
        return clamp(self.average_build_time_ms / FRAME_BUDGET_MS, 0.0, 1.0)

    def estimated_gpu_load(self) -> float:
        """Raster promedio sobre el presupuesto de frame, en [0, 1]."""
        return clamp(self.average_raster_time_ms / FRAME_BUDGET_MS, 0.0, 1.0)

    def history(self) -> List[FrameTimingRecord]:
        return list(self._history)

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def reset(self) -> None:
        self._history.clear()
        self._jank_frame_count = 0

    def dispose(self) -> None:
        self.stop()
        self.reset()
        self._listeners.clear()
