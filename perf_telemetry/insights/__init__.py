from .base import InsightAugmenter
from .heuristic import HeuristicInsightAugmenter, evaluate_patterns
from .remote import HttpInsightAugmenter, InsightItem, InsightResponse, parse_response
from .service import InsightService

__all__ = [
    "HeuristicInsightAugmenter",
    "HttpInsightAugmenter",
    "InsightAugmenter",
    "InsightItem",
    "InsightResponse",
    "InsightService",
    "evaluate_patterns",
    "parse_response",
]
