"""Memory sampler con heurística de fuga.

Cada tick toma una muestra (función de muestreo inyectable o RSS del
proceso), actualiza uso actual/pico y la agrega a un historial acotado.

Dos rutas de advertencia independientes (pueden disparar en el mismo tick):
- Tendencia: >= 7 de las 9 comparaciones consecutivas entre las últimas 10
  muestras son subidas -> ``high_memory_usage`` (critical > 500 MB)
- Umbral absoluto: > 400 MB warning, > 600 MB critical

Además lleva un registro de recursos "disposables" para detectar los que
nunca se liberaron.
"""

from __future__ import annotations

import logging
import os
from collections import deque
from typing import Callable, Deque, List, Optional

from ..clock import Clock, SystemClock
from ..models import MemorySample, PerformanceWarning, WarningSeverity, WarningType
from ..scheduling import TickHandle, Ticker
from ..utils.numeric import safe_float
from ..warning_store import WarningStore

logger = logging.getLogger(__name__)

SampleFn = Callable[[], float]

LEAK_SAMPLE_COUNT = 10
LEAK_MIN_INCREASES = 7
LEAK_CRITICAL_MB = 500.0
HIGH_USAGE_MB = 400.0
CRITICAL_USAGE_MB = 600.0

LEAK_TREND_SUGGESTION = (
    "Check for undisposed controllers, unclosed streams, and retained "
    "large objects. Use a heap profiler for detailed analysis."
)
HIGH_USAGE_SUGGESTION = (
    "Consider reducing image sizes, disposing unused resources, and "
    "implementing pagination for large lists."
)
UNDISPOSED_SUGGESTION = (
    "Ensure controllers, streams, and subscriptions are properly "
    "disposed in the dispose() method."
)


def process_rss_mb() -> float:
    """RSS del proceso actual en MB (Linux /proc). 0.0 si no está disponible."""
    try:
        with open("/proc/self/statm", "r", encoding="ascii") as fh:
            fields = fh.read().split()
        pages = int(fields[1])
        page_size = os.sysconf("SC_PAGE_SIZE")
    except (OSError, ValueError, IndexError, AttributeError):
        return 0.0
    return pages * page_size / (1024 * 1024)


class MemoryTracker:
    """Muestreo periódico de memoria con historial acotado."""

    def __init__(
        self,
        store: WarningStore,
        clock: Optional[Clock] = None,
        sample_fn: Optional[SampleFn] = None,
        max_history: int = 120,
    ) -> None:
        if max_history <= 0:
            raise ValueError("max_history must be positive")
        self._store = store
        self._clock = clock or SystemClock()
        self._sample_fn: SampleFn = sample_fn or process_rss_mb
        self._history: Deque[MemorySample] = deque(maxlen=max_history)
        self._current_mb = 0.0
        self._peak_mb = 0.0
        self._tracked: List[str] = []
        self._disposed: set = set()
        self._handle: Optional[TickHandle] = None
        self._is_tracking = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_tracking(self) -> bool:
        return self._is_tracking

    def start(self, ticker: Optional[Ticker] = None, interval_s: float = 5.0) -> None:
        """Activa el tracker.

        Con ``ticker`` se hace una lectura inicial y se programa ``tick()``
        cada ``interval_s``. Sin ticker el host empuja muestras con
        ``ingest_sample``.
        """
        if self._is_tracking:
            return
        self._is_tracking = True
        if ticker is not None:
            self.tick()
            self._handle = ticker.schedule(interval_s, self.tick)

    def stop(self) -> None:
        self._is_tracking = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def tick(self) -> None:
        """Consulta la función de muestreo e ingiere el resultado."""
        if not self._is_tracking:
            return
        try:
            value = self._sample_fn()
        except Exception:  # noqa: BLE001
            logger.debug("MEMORY_SAMPLER_FAILED", exc_info=True)
            value = 0.0
        self.ingest_sample(value)

    def ingest_sample(self, usage_mb: float) -> None:
        if not self._is_tracking:
            return
        value = safe_float(usage_mb, None)
        if value is None:
            logger.debug("MEMORY_SAMPLE_IGNORED value=%r", usage_mb)
            return
        value = max(value, 0.0)

        self._current_mb = value
        if value > self._peak_mb:
            self._peak_mb = value
        self._history.append(MemorySample(usage_mb=value, timestamp=self._clock.now()))

        if self.is_leaking:
            self._emit_leak_trend()
        if value > HIGH_USAGE_MB:
            self._emit_high_usage()

    def _emit_leak_trend(self) -> None:
        logger.debug("MEMORY_LEAK_TREND current_mb=%.1f", self._current_mb)
        self._store.report(
            PerformanceWarning(
                message=(
                    "Memory usage is consistently increasing "
                    f"({self._current_mb:.1f}MB). Possible memory leak."
                ),
                type=WarningType.HIGH_MEMORY_USAGE,
                severity=(
                    WarningSeverity.CRITICAL
                    if self._current_mb > LEAK_CRITICAL_MB
                    else WarningSeverity.WARNING
                ),
                suggestion=LEAK_TREND_SUGGESTION,
                timestamp=self._clock.now(),
            )
        )

    def _emit_high_usage(self) -> None:
        logger.debug("HIGH_MEMORY_USAGE current_mb=%.1f", self._current_mb)
        self._store.report(
            PerformanceWarning(
                message=f"High memory usage: {self._current_mb:.1f}MB",
                type=WarningType.HIGH_MEMORY_USAGE,
                severity=(
                    WarningSeverity.CRITICAL
                    if self._current_mb > CRITICAL_USAGE_MB
                    else WarningSeverity.WARNING
                ),
                suggestion=HIGH_USAGE_SUGGESTION,
                timestamp=self._clock.now(),
            )
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def current_usage_mb(self) -> float:
        return self._current_mb

    @property
    def peak_usage_mb(self) -> float:
        return self._peak_mb

    @property
    def is_leaking(self) -> bool:
        if len(self._history) < LEAK_SAMPLE_COUNT:
            return False
        recent = list(self._history)[-LEAK_SAMPLE_COUNT:]
        increases = sum(
            1 for prev, cur in zip(recent, recent[1:]) if cur.usage_mb > prev.usage_mb
        )
        return increases >= LEAK_MIN_INCREASES

    def history(self) -> List[MemorySample]:
        return list(self._history)

    def usage_history(self) -> List[float]:
        return [s.usage_mb for s in self._history]

    # ------------------------------------------------------------------
    # Disposables
    # ------------------------------------------------------------------

    def track_disposable(self, identifier: str) -> None:
        if identifier and identifier not in self._tracked:
            self._tracked.append(identifier)

    def mark_disposed(self, identifier: str) -> None:
        if identifier:
            self._disposed.add(identifier)

    def undisposed_items(self) -> List[str]:
        return [item for item in self._tracked if item not in self._disposed]

    def check_for_leaks(self) -> List[str]:
        """Emite una advertencia ``memory_leak`` por recurso no liberado."""
        leaks = self.undisposed_items()
        for item in leaks:
            self._store.report(
                PerformanceWarning(
                    message=f'Possible memory leak detected: "{item}" not disposed.',
                    type=WarningType.MEMORY_LEAK,
                    severity=WarningSeverity.WARNING,
                    suggestion=UNDISPOSED_SUGGESTION,
                    entity=item,
                    timestamp=self._clock.now(),
                )
            )
        if leaks:
            logger.debug("UNDISPOSED_RESOURCES count=%d", len(leaks))
        return leaks

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def reset(self) -> None:
        self._current_mb = 0.0
        self._peak_mb = 0.0
        self._history.clear()
        self._tracked.clear()
        self._disposed.clear()

    def dispose(self) -> None:
        self.stop()
        self.reset()
