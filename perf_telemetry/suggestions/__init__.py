from .engine import SuggestionEngine
from .fixer import generate_fix
from .models import (
    OptimizationSuggestion,
    SuggestionCategory,
    SuggestionImpact,
    sort_by_impact,
)
from .rules import DEFAULT_RULES, SuggestionState, run_rules

__all__ = [
    "DEFAULT_RULES",
    "OptimizationSuggestion",
    "SuggestionCategory",
    "SuggestionEngine",
    "SuggestionImpact",
    "SuggestionState",
    "generate_fix",
    "run_rules",
    "sort_by_impact",
]
