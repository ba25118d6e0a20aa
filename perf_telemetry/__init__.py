"""Embeddable performance telemetry engine.

Usage:
    from perf_telemetry import TelemetryContext

    context = TelemetryContext()
    context.start()
    context.record_rebuild("ProductCard")
    print(context.score())
"""

from .clock import ManualClock, SystemClock
from .config import TelemetryOptions
from .context import TelemetryContext
from .history import HistoryRecorder, PerformanceTrend
from .models import (
    DepthMeasurement,
    FrameTimingRecord,
    MemorySample,
    MetricsSnapshot,
    PerformanceWarning,
    RebuildEvent,
    SetStateEvent,
    SizeMeasurement,
    WarningSeverity,
    WarningType,
)
from .scheduling import ManualTicker, ThreadingTicker
from .scoring import PerformanceScore, calculate_score, grade_for
from .suggestions import (
    OptimizationSuggestion,
    SuggestionCategory,
    SuggestionEngine,
    SuggestionImpact,
)
from .warning_store import WarningStore

__all__ = [
    "DepthMeasurement",
    "FrameTimingRecord",
    "HistoryRecorder",
    "ManualClock",
    "ManualTicker",
    "MemorySample",
    "MetricsSnapshot",
    "OptimizationSuggestion",
    "PerformanceScore",
    "PerformanceTrend",
    "PerformanceWarning",
    "RebuildEvent",
    "SetStateEvent",
    "SizeMeasurement",
    "SuggestionCategory",
    "SuggestionEngine",
    "SuggestionImpact",
    "SystemClock",
    "TelemetryContext",
    "TelemetryOptions",
    "ThreadingTicker",
    "WarningSeverity",
    "WarningStore",
    "WarningType",
    "calculate_score",
    "grade_for",
]
