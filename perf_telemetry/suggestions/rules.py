"""Reglas heurísticas de sugerencias.

Cada regla es una función pura ``(SuggestionState) -> list`` que inspecciona
una vista por copia del estado de los trackers y del almacén de
advertencias. Las reglas son independientes entre sí; el motor concatena
sus resultados y los ordena por impacto.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, List, Sequence, Tuple

from ..models import PerformanceWarning, WarningType
from .models import OptimizationSuggestion, SuggestionCategory, SuggestionImpact

TOP_ENTITIES = 5

Rule = Callable[["SuggestionState"], List[OptimizationSuggestion]]


@dataclass(frozen=True)
class SuggestionState:
    """Vista inmutable del estado que leen las reglas."""

    top_rebuilders: Tuple[Tuple[str, int], ...] = ()
    top_set_state_callers: Tuple[Tuple[str, int], ...] = ()
    is_leaking: bool = False
    current_memory_mb: float = 0.0
    peak_memory_mb: float = 0.0
    undisposed: Tuple[str, ...] = ()
    fps: float = 60.0
    is_janking: bool = False
    average_frame_time_ms: float = 0.0
    max_depth: int = 0
    node_count: int = 0
    warnings: Tuple[PerformanceWarning, ...] = field(default_factory=tuple)


# =============================================================================
# Rebuilds
# =============================================================================

REBUILD_EXAMPLE = """\
# Before: the whole subtree rebuilds on every parent change
build(parent) -> Text(some_value)

# After: const / memoized subtree, narrow listeners
const MyWidget()
ValueListenableBuilder(listenable=notifier, builder=...)"""


def rebuild_rule(state: SuggestionState) -> List[OptimizationSuggestion]:
    suggestions = []
    for key, count in state.top_rebuilders[:TOP_ENTITIES]:
        if count > 100:
            suggestions.append(
                OptimizationSuggestion(
                    title=f"Excessive rebuilds: {key}",
                    description=(
                        f'"{key}" has been rebuilt {count} times. This widget is '
                        "rebuilding too frequently and may cause visible jank or "
                        "wasted CPU cycles."
                    ),
                    category=SuggestionCategory.REBUILD,
                    impact=SuggestionImpact.CRITICAL if count > 500 else SuggestionImpact.HIGH,
                    affected_entity=key,
                    code_example=REBUILD_EXAMPLE,
                )
            )
        elif count > 50:
            suggestions.append(
                OptimizationSuggestion(
                    title=f"Frequent rebuilds: {key}",
                    description=(
                        f'"{key}" has been rebuilt {count} times. Consider '
                        "optimizing to reduce rebuild frequency."
                    ),
                    category=SuggestionCategory.REBUILD,
                    impact=SuggestionImpact.MEDIUM,
                    affected_entity=key,
                )
            )
    return suggestions


# =============================================================================
# Memory
# =============================================================================

def memory_rule(state: SuggestionState) -> List[OptimizationSuggestion]:
    suggestions = []

    if state.is_leaking:
        suggestions.append(
            OptimizationSuggestion(
                title="Possible memory leak detected",
                description=(
                    "Memory usage is consistently increasing "
                    f"(current: {state.current_memory_mb:.1f}MB, "
                    f"peak: {state.peak_memory_mb:.1f}MB). This pattern "
                    "typically indicates a memory leak."
                ),
                category=SuggestionCategory.MEMORY,
                impact=SuggestionImpact.CRITICAL,
                code_example=(
                    "def dispose(self):\n"
                    "    self.controller.dispose()\n"
                    "    self.subscription.cancel()"
                ),
            )
        )

    for item in state.undisposed:
        suggestions.append(
            OptimizationSuggestion(
                title=f"Undisposed resource: {item}",
                description=(
                    f'"{item}" was created but not yet disposed. This will '
                    "cause a memory leak if not properly cleaned up."
                ),
                category=SuggestionCategory.MEMORY,
                impact=SuggestionImpact.HIGH,
                affected_entity=item,
                code_example=f"def dispose(self):\n    {item}.dispose()",
            )
        )

    if state.current_memory_mb > 300:
        suggestions.append(
            OptimizationSuggestion(
                title="High memory usage",
                description=(
                    f"App is using {state.current_memory_mb:.1f}MB of memory. "
                    "Consider optimizing image loading and data caching."
                ),
                category=SuggestionCategory.MEMORY,
                impact=(
                    SuggestionImpact.CRITICAL
                    if state.current_memory_mb > 500
                    else SuggestionImpact.MEDIUM
                ),
            )
        )

    return suggestions


# =============================================================================
# Frames
# =============================================================================

def frame_rule(state: SuggestionState) -> List[OptimizationSuggestion]:
    suggestions = []

    if state.fps < 50:
        suggestions.append(
            OptimizationSuggestion(
                title="Low FPS detected",
                description=(
                    f"App is running at {state.fps:.1f} FPS. Target is 60 FPS "
                    "for smooth performance."
                ),
                category=SuggestionCategory.ANIMATION,
                impact=SuggestionImpact.CRITICAL if state.fps < 30 else SuggestionImpact.HIGH,
                code_example=(
                    "# Isolate complex subtrees and cache expensive work\n"
                    "RepaintBoundary(child=ComplexWidget())"
                ),
            )
        )

    if state.is_janking:
        suggestions.append(
            OptimizationSuggestion(
                title="Animation jank detected",
                description=(
                    "Multiple frames exceeded the frame budget recently. "
                    f"Average frame time: {state.average_frame_time_ms:.1f}ms."
                ),
                category=SuggestionCategory.ANIMATION,
                impact=SuggestionImpact.HIGH,
            )
        )

    return suggestions


# =============================================================================
# setState
# =============================================================================

def set_state_rule(state: SuggestionState) -> List[OptimizationSuggestion]:
    suggestions = []
    for key, count in state.top_set_state_callers[:TOP_ENTITIES]:
        if count > 20:
            suggestions.append(
                OptimizationSuggestion(
                    title=f"Frequent setState in {key}",
                    description=(
                        f'"{key}" has called setState {count} times. Consider '
                        "using more targeted state management."
                    ),
                    category=SuggestionCategory.STATE_MANAGEMENT,
                    impact=SuggestionImpact.HIGH if count > 50 else SuggestionImpact.MEDIUM,
                    affected_entity=key,
                )
            )
    return suggestions


# =============================================================================
# Layout
# =============================================================================

def depth_rule(state: SuggestionState) -> List[OptimizationSuggestion]:
    if state.max_depth <= 30:
        return []
    return [
        OptimizationSuggestion(
            title="Deep widget tree detected",
            description=(
                f"Widget tree depth is {state.max_depth} levels with "
                f"{state.node_count} total widgets. Deep trees can slow down "
                "layout calculations."
            ),
            category=SuggestionCategory.LAYOUT,
            impact=SuggestionImpact.CRITICAL if state.max_depth > 50 else SuggestionImpact.MEDIUM,
        )
    ]


def widget_size_rule(state: SuggestionState) -> List[OptimizationSuggestion]:
    """Una sugerencia por entidad con advertencias de tamaño excesivo."""
    suggestions = []
    seen = set()
    for warning in state.warnings:
        if warning.type is not WarningType.LARGE_WIDGET:
            continue
        name = warning.entity
        if not name or name in seen:
            continue
        seen.add(name)
        suggestions.append(
            OptimizationSuggestion(
                title=f"Oversized widget detected: {name}",
                description=(
                    f'The widget "{name}" is rendering with an exceptionally '
                    "large size. This can lead to excessive memory usage and "
                    "slow rasterization times."
                ),
                category=SuggestionCategory.LAYOUT,
                impact=SuggestionImpact.HIGH,
                affected_entity=name,
            )
        )
    return suggestions


# =============================================================================
# Warnings
# =============================================================================

def recurring_warning_rule(state: SuggestionState) -> List[OptimizationSuggestion]:
    suggestions = []
    counts = Counter(w.type for w in state.warnings)
    for warning_type, count in counts.items():
        if count < 5:
            continue
        name = warning_type.value
        suggestions.append(
            OptimizationSuggestion(
                title=f"Recurring issue: {name}",
                description=(
                    f'There have been {count} "{name}" warnings. This indicates '
                    "a systematic issue that should be addressed."
                ),
                category=SuggestionCategory.GENERAL,
                impact=SuggestionImpact.HIGH if count > 10 else SuggestionImpact.MEDIUM,
            )
        )
    return suggestions


DEFAULT_RULES: Sequence[Rule] = (
    rebuild_rule,
    memory_rule,
    frame_rule,
    set_state_rule,
    depth_rule,
    widget_size_rule,
    recurring_warning_rule,
)


def run_rules(
    state: SuggestionState,
    rules: Sequence[Rule] = DEFAULT_RULES,
) -> List[OptimizationSuggestion]:
    suggestions: List[OptimizationSuggestion] = []
    for rule in rules:
        suggestions.extend(rule(state))
    return suggestions
