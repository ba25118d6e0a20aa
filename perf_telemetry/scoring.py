"""Weighted performance score.

Pure function of a MetricsSnapshot: seven sub-scores from fixed breakpoint
tables, combined with fixed weights into a 0-100 total plus a letter grade.

Weights are kept as integer per-mille values so the weighted sum is exact
and the half-up rounding of the total never depends on float error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from .models import MetricsSnapshot, iso_timestamp

WEIGHTS_PER_MILLE: Dict[str, int] = {
    "fps": 250,
    "jank": 200,
    "rebuild": 150,
    "memory": 150,
    "warning": 100,
    "set_state": 75,
    "depth": 75,
}

GRADE_TABLE = (
    (90, "A+"),
    (80, "A"),
    (70, "B"),
    (60, "C"),
    (50, "D"),
)


@dataclass(frozen=True)
class PerformanceScore:
    total: int
    fps_score: int
    memory_score: int
    rebuild_score: int
    jank_score: int
    warning_score: int
    set_state_score: int
    depth_score: int
    grade: str
    timestamp: float

    @property
    def description(self) -> str:
        if self.total >= 90:
            return "Excellent"
        if self.total >= 70:
            return "Good"
        if self.total >= 50:
            return "Needs Improvement"
        return "Poor"

    def sub_scores(self) -> Dict[str, int]:
        return {
            "fps": self.fps_score,
            "memory": self.memory_score,
            "rebuild": self.rebuild_score,
            "jank": self.jank_score,
            "warning": self.warning_score,
            "set_state": self.set_state_score,
            "depth": self.depth_score,
        }

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "grade": self.grade,
            "description": self.description,
            "sub_scores": self.sub_scores(),
            "timestamp": iso_timestamp(self.timestamp),
        }

    def __str__(self) -> str:
        return f"PerformanceScore({self.total}/100, grade: {self.grade})"


# =============================================================================
# Breakpoint tables
# =============================================================================

def fps_score(fps: float) -> int:
    if fps >= 58:
        return 100
    if fps >= 50:
        return 80
    if fps >= 40:
        return 60
    if fps >= 30:
        return 40
    return 20


def memory_score(memory_mb: float) -> int:
    # <= 0 means "not tracking / no data".
    if memory_mb <= 0 or memory_mb < 100:
        return 100
    if memory_mb < 200:
        return 80
    if memory_mb < 400:
        return 60
    if memory_mb < 600:
        return 40
    return 20


def rebuild_score(rebuilds: int) -> int:
    if rebuilds < 50:
        return 100
    if rebuilds < 200:
        return 80
    if rebuilds < 500:
        return 60
    if rebuilds < 1000:
        return 40
    return 20


def jank_score(jank_frames: int) -> int:
    if jank_frames <= 0:
        return 100
    if jank_frames < 5:
        return 80
    if jank_frames < 15:
        return 60
    if jank_frames < 30:
        return 40
    return 20


def warning_score(critical_count: int, warning_count: int) -> int:
    if critical_count == 0 and warning_count < 3:
        return 100
    if critical_count == 0:
        return 80
    if critical_count < 3:
        return 60
    if critical_count < 5:
        return 40
    return 20


def set_state_score(calls: int) -> int:
    if calls < 10:
        return 100
    if calls < 30:
        return 80
    if calls < 60:
        return 60
    if calls < 100:
        return 40
    return 20


def depth_score(max_depth: int) -> int:
    if max_depth <= 20:
        return 100
    if max_depth <= 30:
        return 80
    if max_depth <= 40:
        return 60
    if max_depth <= 50:
        return 40
    return 20


def grade_for(total: int) -> str:
    for lower_bound, grade in GRADE_TABLE:
        if total >= lower_bound:
            return grade
    return "F"


# =============================================================================
# Calculator
# =============================================================================

def calculate_score(
    snapshot: MetricsSnapshot,
    timestamp: Optional[float] = None,
) -> PerformanceScore:
    """Compute the score for ``snapshot``. No hidden state, no caching."""
    subs = {
        "fps": fps_score(snapshot.fps),
        "memory": memory_score(snapshot.memory_usage_mb),
        "rebuild": rebuild_score(snapshot.total_rebuilds),
        "jank": jank_score(snapshot.jank_frames),
        "warning": warning_score(snapshot.critical_warning_count, snapshot.warning_count),
        "set_state": set_state_score(snapshot.set_state_calls),
        "depth": depth_score(snapshot.max_widget_depth),
    }

    milli = sum(subs[name] * weight for name, weight in WEIGHTS_PER_MILLE.items())
    total = (milli + 500) // 1000
    total = max(0, min(100, total))

    return PerformanceScore(
        total=total,
        fps_score=subs["fps"],
        memory_score=subs["memory"],
        rebuild_score=subs["rebuild"],
        jank_score=subs["jank"],
        warning_score=subs["warning"],
        set_state_score=subs["set_state"],
        depth_score=subs["depth"],
        grade=grade_for(total),
        timestamp=snapshot.timestamp if timestamp is None else timestamp,
    )
