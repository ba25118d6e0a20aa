"""Offline cross-metric insight patterns.

Unlike the per-tracker rules, these look at combinations of snapshot
values (build time with rebuild volume, memory with fps, ...).
"""

from __future__ import annotations

from typing import List

from ..models import MetricsSnapshot
from ..suggestions.models import OptimizationSuggestion, SuggestionCategory, SuggestionImpact

TITLE_PREFIX = "Insight:"


class HeuristicInsightAugmenter:
    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled

    async def analyze(self, snapshot: MetricsSnapshot) -> List[OptimizationSuggestion]:
        if not self.enabled:
            return []
        return evaluate_patterns(snapshot)


def evaluate_patterns(snapshot: MetricsSnapshot) -> List[OptimizationSuggestion]:
    suggestions = []

    if snapshot.average_build_time_ms > 10 and snapshot.total_rebuilds > 500:
        suggestions.append(
            OptimizationSuggestion(
                title=f"{TITLE_PREFIX} Architectural Bloat Detected",
                description=(
                    "Patterns suggest deep widget tree rebuilds are causing "
                    "cascading builds. Consider a repaint boundary and moving "
                    "state closer to leaf nodes."
                ),
                category=SuggestionCategory.REBUILD,
                impact=SuggestionImpact.CRITICAL,
            )
        )

    if snapshot.memory_usage_mb > 350 and snapshot.fps < 40:
        suggestions.append(
            OptimizationSuggestion(
                title=f"{TITLE_PREFIX} GC Pressure Identified",
                description=(
                    "High memory usage combined with low FPS indicates heavy "
                    "garbage collection pressure. Check for frequent object "
                    "allocations in scroll listeners."
                ),
                category=SuggestionCategory.MEMORY,
                impact=SuggestionImpact.HIGH,
            )
        )

    if snapshot.max_widget_depth > 40:
        suggestions.append(
            OptimizationSuggestion(
                title=f"{TITLE_PREFIX} Deep Tree Complexity",
                description=(
                    f"A widget depth of {snapshot.max_widget_depth} is unusually "
                    "high. Refactor the layout into smaller, compositional widgets."
                ),
                category=SuggestionCategory.LAYOUT,
                impact=SuggestionImpact.MEDIUM,
                auto_fix_available=True,
            )
        )

    if snapshot.fps < 50 and snapshot.average_raster_time_ms > 12:
        suggestions.append(
            OptimizationSuggestion(
                title=f"{TITLE_PREFIX} GPU Bottleneck Detected",
                description=(
                    "High rasterization times suggest complex graphics. "
                    "Simplify clipping and opacity layers."
                ),
                category=SuggestionCategory.ANIMATION,
                impact=SuggestionImpact.HIGH,
                auto_fix_available=True,
            )
        )

    return suggestions
