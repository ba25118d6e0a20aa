"""Diagnostics endpoints for an in-process telemetry context.

Exposes the pull API over HTTP so an operator (or a CI job) can inspect a
running host:
- Current metrics snapshot and score
- Optimization suggestions and warnings
- Persisted-format report and recorded history
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import PlainTextResponse

from ..context import TelemetryContext
from ..models import WarningSeverity

logger = logging.getLogger(__name__)

PREFIX = "/api/performance"


def assess_health(score_total: int, critical_count: int) -> str:
    """PASS / WARN / FAIL from the score and critical warnings."""
    if score_total >= 80 and critical_count == 0:
        return "PASS"
    if score_total >= 50:
        return "WARN"
    return "FAIL"


def create_router(context: TelemetryContext) -> APIRouter:
    router = APIRouter(prefix=PREFIX, tags=["performance"])

    @router.get("/snapshot")
    def get_snapshot():
        return context.snapshot().to_dict()

    @router.get("/score")
    def get_score():
        return context.score().to_dict()

    @router.get("/suggestions")
    def get_suggestions(
        limit: Optional[int] = Query(None, ge=1, description="Max suggestions to return"),
    ):
        suggestions = context.suggestions()
        if limit is not None:
            suggestions = suggestions[:limit]
        return {
            "count": len(suggestions),
            "suggestions": [s.to_dict() for s in suggestions],
        }

    @router.get("/warnings")
    def get_warnings(
        severity: Optional[str] = Query(None, description="info | warning | critical"),
    ):
        if severity is None:
            warnings = context.warnings.warnings()
        else:
            try:
                level = WarningSeverity(severity)
            except ValueError:
                raise HTTPException(status_code=400, detail=f"unknown severity: {severity}")
            warnings = context.warnings.by_severity(level)
        return {
            "count": len(warnings),
            "warnings": [w.to_dict() for w in warnings],
        }

    @router.get("/report")
    def get_report():
        """Report in the persisted JSON format (camelCase metric keys)."""
        return context.report_data().to_wire()

    @router.get("/report/text", response_class=PlainTextResponse)
    def get_text_report():
        return context.report()

    @router.get("/history")
    def get_history(
        limit: Optional[int] = Query(None, ge=1, description="Most recent N snapshots"),
    ):
        history = context.history()
        if limit is not None:
            history = history[-limit:]
        return {
            "count": len(history),
            "trend": context.trend().value,
            "snapshots": [s.to_dict() for s in history],
        }

    @router.get("/health")
    def get_health():
        score = context.score()
        critical = context.warnings.critical_count
        health = assess_health(score.total, critical)
        return {
            "status": "healthy" if health == "PASS" else "degraded",
            "health": health,
            "active": context.is_active,
            "score": score.total,
            "grade": score.grade,
            "critical_warnings": critical,
        }

    return router
