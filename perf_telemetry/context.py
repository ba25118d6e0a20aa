"""TelemetryContext: dueño explícito de todos los trackers.

Reemplaza los singletons globales: se construye una vez y se pasa por
referencia a los puntos de ingesta y a los consumidores. Cada test puede
crear su propio contexto aislado con reloj y ticker manuales.

Flujo de datos (unidireccional):
    eventos -> trackers -> warning store -> {score, sugerencias, historial}

Concurrencia:
- Los trackers no tienen locks propios.
- ``lock`` (RLock) es el lock grueso del contexto: lo toman la ingesta, los
  pulls, los ticks periódicos y el cell de resultados del augmenter.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from .clock import Clock, SystemClock
from .config import TelemetryOptions
from .history import HistoryRecorder, PerformanceTrend
from .models import (
    DepthMeasurement,
    FrameTimingRecord,
    MemorySample,
    MetricEvent,
    MetricsSnapshot,
    PerformanceWarning,
    RebuildEvent,
    SetStateEvent,
    SizeMeasurement,
)
from .report import (
    PerformanceReport,
    ReportSaveResult,
    build_report,
    format_text_report,
    save_report,
)
from .scheduling import Ticker, ThreadingTicker
from .scoring import PerformanceScore, calculate_score
from .suggestions import OptimizationSuggestion, SuggestionEngine, SuggestionState
from .trackers import (
    AnimationTracker,
    DepthTracker,
    FrameTimingTracker,
    MemoryTracker,
    RebuildTracker,
    SetStateTracker,
    SizeTracker,
)
from .trackers.measurement import DepthProbe
from .warning_store import WarningListener, WarningStore

logger = logging.getLogger(__name__)

FrameListener = Callable[[FrameTimingRecord], None]


def unsafe_mode() -> bool:
    """True cuando el intérprete corre con optimizaciones (``python -O``)."""
    return not __debug__


class TelemetryContext:
    def __init__(
        self,
        options: Optional[TelemetryOptions] = None,
        clock: Optional[Clock] = None,
        ticker: Optional[Ticker] = None,
        augmenter=None,
        memory_sampler: Optional[Callable[[], float]] = None,
        executor: Optional[Executor] = None,
        max_warnings: int = 200,
        max_history: int = 1000,
    ) -> None:
        self.options = options or TelemetryOptions()
        self.lock = threading.RLock()
        self.clock: Clock = clock or SystemClock()
        self._ticker = ticker

        self.warnings = WarningStore(max_warnings=max_warnings)
        self.rebuilds = RebuildTracker(self.warnings, self.clock)
        self.set_state = SetStateTracker(self.warnings, self.clock)
        self.frames = FrameTimingTracker(
            self.warnings, self.clock, warning_threshold_ms=self.options.warning_threshold_ms
        )
        self.animations = AnimationTracker(
            self.warnings, self.clock, jank_threshold_ms=self.options.warning_threshold_ms
        )
        self.memory = MemoryTracker(self.warnings, self.clock, sample_fn=memory_sampler)
        self.depth = DepthTracker(self.warnings, self.clock, max_depth=self.options.max_widget_depth)
        self.sizes = SizeTracker(self.warnings, self.clock)

        self.suggestion_engine = SuggestionEngine(
            augmenter=augmenter, executor=executor, lock=self.lock
        )
        self.history_recorder = HistoryRecorder(self.snapshot, max_size=max_history)

        self._is_active = False
        self._attached_warning_listeners: List[WarningListener] = []
        self._attached_frame_listeners: List[FrameListener] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self._is_active

    def start(self) -> bool:
        """Arranca los trackers habilitados. Devuelve si el contexto quedó activo."""
        with self.lock:
            if self._is_active:
                return True

            opts = self.options
            if not opts.enabled:
                logger.info("TELEMETRY_DISABLED reason=options")
                return False
            if unsafe_mode() and not opts.enable_in_unsafe_mode:
                logger.info("TELEMETRY_DISABLED reason=unsafe_mode")
                return False

            ticker = self._ticker or ThreadingTicker(lock=self.lock)
            self._ticker = ticker

            if opts.track_animations:
                self.frames.start(warning_threshold_ms=opts.warning_threshold_ms)
                self.animations.start(jank_threshold_ms=opts.warning_threshold_ms)
                if opts.on_frame is not None:
                    self._attach_frame_listener(opts.on_frame)
            if opts.track_rebuilds:
                self.rebuilds.start(threshold=opts.rebuild_warning_count)
            if opts.track_set_state:
                self.set_state.start()
            if opts.track_memory:
                self.memory.start(
                    ticker if opts.sample_memory else None,
                    interval_s=opts.memory_check_interval_s,
                )
            if opts.track_widget_depth:
                self.depth.start(max_depth=opts.max_widget_depth)
            if opts.track_widget_size:
                self.sizes.start()

            self.history_recorder.start(ticker, interval_s=opts.history_interval_s)

            if opts.log_warnings:
                self._attach_warning_listener(_log_warning)
            if opts.on_warning is not None:
                self._attach_warning_listener(opts.on_warning)

            self._is_active = True
            logger.info(
                "TELEMETRY_STARTED threshold_ms=%.1f rebuild_warning_count=%d history_interval_s=%.1f",
                opts.warning_threshold_ms, opts.rebuild_warning_count, opts.history_interval_s,
            )
            return True

    def stop(self) -> None:
        with self.lock:
            if not self._is_active:
                return
            for tracker in self._trackers():
                tracker.stop()
            self.history_recorder.stop()

            for listener in self._attached_warning_listeners:
                self.warnings.remove_listener(listener)
            for listener in self._attached_frame_listeners:
                self.frames.remove_listener(listener)
            self._attached_warning_listeners.clear()
            self._attached_frame_listeners.clear()

            self._is_active = False
            logger.info("TELEMETRY_STOPPED")

    def reset(self) -> None:
        """Limpia todo el estado interno; no cambia el estado Start/Stop."""
        with self.lock:
            for tracker in self._trackers():
                tracker.reset()
            self.warnings.clear()
            self.history_recorder.clear()
            self.suggestion_engine.reset()

    def dispose(self) -> None:
        with self.lock:
            self.stop()
            self.reset()
            self.suggestion_engine.shutdown()
            self.warnings.dispose()
            self.frames.dispose()

    def _trackers(self):
        return (
            self.frames,
            self.animations,
            self.rebuilds,
            self.set_state,
            self.memory,
            self.depth,
            self.sizes,
        )

    def _attach_warning_listener(self, listener: WarningListener) -> None:
        self.warnings.add_listener(listener)
        self._attached_warning_listeners.append(listener)

    def _attach_frame_listener(self, listener: FrameListener) -> None:
        self.frames.add_listener(listener)
        self._attached_frame_listeners.append(listener)

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def record_rebuild(self, key: str) -> None:
        with self.lock:
            self.rebuilds.record_event(key)

    def record_rebuilds(self, key: str, count: int) -> None:
        with self.lock:
            self.rebuilds.record_events(key, count)

    def record_set_state(self, key: str, count: int = 1) -> None:
        with self.lock:
            self.set_state.record_events(key, count)

    def ingest_frame_timings(self, records: Iterable[FrameTimingRecord]) -> None:
        try:
            batch = list(records or ())
        except TypeError:
            logger.debug("FRAME_BATCH_IGNORED value=%r", records)
            return
        with self.lock:
            self.frames.ingest(batch)
            self.animations.ingest(batch)

    def ingest_memory_sample(self, usage_mb: float) -> None:
        with self.lock:
            self.memory.ingest_sample(usage_mb)

    def measure_depth(self, probe: Optional[DepthProbe] = None) -> DepthMeasurement:
        with self.lock:
            return self.depth.measure(probe)

    def record_depth(self, depth: int, node_count: int = 0) -> DepthMeasurement:
        with self.lock:
            return self.depth.record(depth, node_count)

    def measure_size(self, key: str, width: float, height: float) -> Optional[SizeMeasurement]:
        with self.lock:
            return self.sizes.measure(key, width, height)

    def register_animation(self, name: str) -> None:
        with self.lock:
            self.animations.register_animation(name)

    def unregister_animation(self, name: str) -> None:
        with self.lock:
            self.animations.unregister_animation(name)

    def track_disposable(self, identifier: str) -> None:
        with self.lock:
            self.memory.track_disposable(identifier)

    def mark_disposed(self, identifier: str) -> None:
        with self.lock:
            self.memory.mark_disposed(identifier)

    def check_for_leaks(self) -> List[str]:
        with self.lock:
            return self.memory.check_for_leaks()

    def ingest(self, event: MetricEvent) -> None:
        """Despacha un evento del modelo de datos al tracker que corresponda.

        Los timestamps de rebuild/setState los fija el reloj del contexto.
        """
        if isinstance(event, RebuildEvent):
            self.record_rebuild(event.key)
        elif isinstance(event, SetStateEvent):
            self.record_set_state(event.key)
        elif isinstance(event, FrameTimingRecord):
            self.ingest_frame_timings([event])
        elif isinstance(event, MemorySample):
            self.ingest_memory_sample(event.usage_mb)
        elif isinstance(event, DepthMeasurement):
            self.record_depth(event.depth, event.node_count)
        elif isinstance(event, SizeMeasurement):
            self.measure_size(event.key, event.width, event.height)
        else:
            logger.debug("UNKNOWN_EVENT type=%s", type(event).__name__)

    # ------------------------------------------------------------------
    # Push API
    # ------------------------------------------------------------------

    def add_warning_listener(self, listener: WarningListener) -> None:
        with self.lock:
            self.warnings.add_listener(listener)

    def remove_warning_listener(self, listener: WarningListener) -> None:
        with self.lock:
            self.warnings.remove_listener(listener)

    def add_frame_listener(self, listener: FrameListener) -> None:
        with self.lock:
            self.frames.add_listener(listener)

    def remove_frame_listener(self, listener: FrameListener) -> None:
        with self.lock:
            self.frames.remove_listener(listener)

    # ------------------------------------------------------------------
    # Pull API
    # ------------------------------------------------------------------

    def snapshot(self) -> MetricsSnapshot:
        with self.lock:
            return MetricsSnapshot(
                fps=self.frames.current_fps,
                average_build_time_ms=self.frames.average_build_time_ms,
                average_raster_time_ms=self.frames.average_raster_time_ms,
                average_frame_time_ms=self.frames.average_frame_time_ms,
                memory_usage_mb=self.memory.current_usage_mb,
                peak_memory_usage_mb=self.memory.peak_usage_mb,
                total_rebuilds=self.rebuilds.total_count(),
                jank_frames=self.frames.jank_frame_count,
                warning_count=self.warnings.count,
                critical_warning_count=self.warnings.critical_count,
                set_state_calls=self.set_state.total_count(),
                max_widget_depth=self.depth.last_measured_depth,
                widget_count=self.depth.last_measured_node_count,
                is_leaking=self.memory.is_leaking,
                is_janking=self.frames.is_janking,
                timestamp=self.clock.now(),
            )

    def score(self) -> PerformanceScore:
        return calculate_score(self.snapshot())

    def suggestion_state(self) -> SuggestionState:
        with self.lock:
            return SuggestionState(
                top_rebuilders=tuple(self.rebuilds.top(5)),
                top_set_state_callers=tuple(self.set_state.top(5)),
                is_leaking=self.memory.is_leaking,
                current_memory_mb=self.memory.current_usage_mb,
                peak_memory_mb=self.memory.peak_usage_mb,
                undisposed=tuple(self.memory.undisposed_items()),
                fps=self.frames.current_fps,
                is_janking=self.frames.is_janking,
                average_frame_time_ms=self.frames.average_frame_time_ms,
                max_depth=self.depth.last_measured_depth,
                node_count=self.depth.last_measured_node_count,
                warnings=self.warnings.warnings(),
            )

    def suggestions(self) -> List[OptimizationSuggestion]:
        with self.lock:
            state = self.suggestion_state()
            snapshot = self.snapshot()
            return self.suggestion_engine.generate(state, snapshot)

    def report(self) -> str:
        with self.lock:
            snapshot = self.snapshot()
            return format_text_report(
                self.suggestions(),
                self.warnings.warnings(),
                calculate_score(snapshot),
                snapshot=snapshot,
            )

    def report_data(self) -> PerformanceReport:
        with self.lock:
            snapshot = self.snapshot()
            return build_report(snapshot, calculate_score(snapshot), self.warnings.warnings())

    def save_report(self, path: Union[str, Path]) -> ReportSaveResult:
        return save_report(self.report_data(), path)

    def history(self) -> List[MetricsSnapshot]:
        with self.lock:
            return self.history_recorder.history()

    def trend(self) -> PerformanceTrend:
        with self.lock:
            return self.history_recorder.get_trend()

    def record_history(self) -> Optional[MetricsSnapshot]:
        with self.lock:
            return self.history_recorder.record()


def _log_warning(warning: PerformanceWarning) -> None:
    logger.warning(
        "PERF_WARNING type=%s severity=%s entity=%s message=%s",
        warning.type.value, warning.severity.value, warning.entity, warning.message,
    )
