"""Optimization suggestion value types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional


class SuggestionCategory(str, Enum):
    REBUILD = "rebuild"
    MEMORY = "memory"
    LAYOUT = "layout"
    ANIMATION = "animation"
    STATE_MANAGEMENT = "state_management"
    IMAGE = "image"
    LIST = "list"
    GENERAL = "general"


class SuggestionImpact(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _IMPACT_RANK[self]


_IMPACT_RANK = {
    SuggestionImpact.LOW: 0,
    SuggestionImpact.MEDIUM: 1,
    SuggestionImpact.HIGH: 2,
    SuggestionImpact.CRITICAL: 3,
}


@dataclass(frozen=True)
class OptimizationSuggestion:
    """Actionable advice derived from the current telemetry state."""

    title: str
    description: str
    category: SuggestionCategory
    impact: SuggestionImpact
    affected_entity: Optional[str] = None
    auto_fix_available: bool = False
    code_example: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "category": self.category.value,
            "impact": self.impact.value,
            "affected_entity": self.affected_entity,
            "auto_fix_available": self.auto_fix_available,
            "code_example": self.code_example,
        }

    def __str__(self) -> str:
        text = f"[{self.impact.value}] {self.title}\n  {self.description}"
        if self.code_example:
            text += f"\n  Example:\n{self.code_example}"
        return text


def sort_by_impact(suggestions: Iterable[OptimizationSuggestion]) -> List[OptimizationSuggestion]:
    """Descending impact; equal impacts keep their relative order."""
    return sorted(suggestions, key=lambda s: -s.impact.rank)
