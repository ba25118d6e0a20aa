"""Core data model: raw events, warnings and metric snapshots.

All values are immutable once created. Timestamps are epoch seconds read
from the owning context's clock; wire formats render them as ISO-8601.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union


def iso_timestamp(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


# =============================================================================
# Raw events
# =============================================================================

@dataclass(frozen=True)
class RebuildEvent:
    key: str
    timestamp: Optional[float] = None


@dataclass(frozen=True)
class SetStateEvent:
    key: str
    timestamp: Optional[float] = None


@dataclass(frozen=True)
class FrameTimingRecord:
    """Timing of one rendered frame, durations in milliseconds.

    ``timestamp`` is the arrival time; when omitted the tracker stamps the
    record with its clock at ingestion.
    """

    build_ms: float
    raster_ms: float
    total_ms: float
    timestamp: Optional[float] = None


@dataclass(frozen=True)
class MemorySample:
    usage_mb: float
    timestamp: Optional[float] = None


@dataclass(frozen=True)
class DepthMeasurement:
    depth: int
    node_count: int
    timestamp: float


@dataclass(frozen=True)
class SizeMeasurement:
    key: str
    width: float
    height: float
    timestamp: float


MetricEvent = Union[
    RebuildEvent,
    SetStateEvent,
    FrameTimingRecord,
    MemorySample,
    DepthMeasurement,
    SizeMeasurement,
]


# =============================================================================
# Warnings
# =============================================================================

class WarningType(str, Enum):
    EXCESSIVE_REBUILDS = "excessive_rebuilds"
    MEMORY_LEAK = "memory_leak"
    DEEP_WIDGET_TREE = "deep_widget_tree"
    SLOW_FRAME = "slow_frame"
    ANIMATION_JANK = "animation_jank"
    LARGE_WIDGET = "large_widget"
    UNNECESSARY_SET_STATE = "unnecessary_set_state"
    HIGH_MEMORY_USAGE = "high_memory_usage"
    SLOW_BUILD = "slow_build"


class WarningSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class PerformanceWarning:
    message: str
    type: WarningType
    severity: WarningSeverity
    timestamp: float
    suggestion: Optional[str] = None
    entity: Optional[str] = None

    def __str__(self) -> str:
        text = f"[{self.severity.value}] {self.message}"
        if self.suggestion:
            text += f"\n  -> {self.suggestion}"
        return text

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "type": self.type.value,
            "severity": self.severity.value,
            "suggestion": self.suggestion,
            "entity": self.entity,
            "timestamp": iso_timestamp(self.timestamp),
        }


# =============================================================================
# Snapshot
# =============================================================================

@dataclass(frozen=True)
class MetricsSnapshot:
    """Immutable aggregate of every tracker output at one instant."""

    fps: float
    average_build_time_ms: float
    average_raster_time_ms: float
    average_frame_time_ms: float
    memory_usage_mb: float
    peak_memory_usage_mb: float
    total_rebuilds: int
    jank_frames: int
    warning_count: int
    critical_warning_count: int
    set_state_calls: int
    max_widget_depth: int
    timestamp: float
    widget_count: int = 0
    is_leaking: bool = False
    is_janking: bool = False

    @classmethod
    def idle(cls, timestamp: float = 0.0) -> "MetricsSnapshot":
        """Snapshot of a context with no data at all (fps defaults to 60)."""
        return cls(
            fps=60.0,
            average_build_time_ms=0.0,
            average_raster_time_ms=0.0,
            average_frame_time_ms=0.0,
            memory_usage_mb=0.0,
            peak_memory_usage_mb=0.0,
            total_rebuilds=0,
            jank_frames=0,
            warning_count=0,
            critical_warning_count=0,
            set_state_calls=0,
            max_widget_depth=0,
            timestamp=timestamp,
        )

    def to_dict(self) -> dict:
        return {
            "fps": round(self.fps, 2),
            "average_build_time_ms": round(self.average_build_time_ms, 3),
            "average_raster_time_ms": round(self.average_raster_time_ms, 3),
            "average_frame_time_ms": round(self.average_frame_time_ms, 3),
            "memory_usage_mb": round(self.memory_usage_mb, 2),
            "peak_memory_usage_mb": round(self.peak_memory_usage_mb, 2),
            "total_rebuilds": self.total_rebuilds,
            "jank_frames": self.jank_frames,
            "warning_count": self.warning_count,
            "critical_warning_count": self.critical_warning_count,
            "set_state_calls": self.set_state_calls,
            "max_widget_depth": self.max_widget_depth,
            "widget_count": self.widget_count,
            "is_leaking": self.is_leaking,
            "is_janking": self.is_janking,
            "timestamp": iso_timestamp(self.timestamp),
        }

    def __str__(self) -> str:
        return (
            f"MetricsSnapshot(fps: {self.fps:.1f}, "
            f"build: {self.average_build_time_ms:.2f}ms, "
            f"raster: {self.average_raster_time_ms:.2f}ms, "
            f"memory: {self.memory_usage_mb:.1f}MB, "
            f"rebuilds: {self.total_rebuilds}, jank: {self.jank_frames})"
        )
