"""Construcción, formato y persistencia de reportes de rendimiento."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from pydantic import ValidationError

from ..models import MetricsSnapshot, PerformanceWarning, WarningSeverity, iso_timestamp
from ..scoring import PerformanceScore
from ..suggestions.models import OptimizationSuggestion, SuggestionImpact
from ..utils.formatting import format_duration_ms, format_fps, summarize
from .schemas import PerformanceReport, ReportMetrics, ReportWarning

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

RULE = "=" * 48

_IMPACT_SECTIONS = (
    (SuggestionImpact.CRITICAL, "CRITICAL"),
    (SuggestionImpact.HIGH, "HIGH IMPACT"),
    (SuggestionImpact.MEDIUM, "MEDIUM IMPACT"),
    (SuggestionImpact.LOW, "LOW IMPACT"),
)


@dataclass(frozen=True)
class ReportSaveResult:
    ok: bool
    path: str
    error: Optional[str] = None


def build_report(
    snapshot: MetricsSnapshot,
    score: PerformanceScore,
    warnings: Iterable[PerformanceWarning],
) -> PerformanceReport:
    return PerformanceReport(
        timestamp=iso_timestamp(snapshot.timestamp),
        score=score.total,
        metrics=ReportMetrics(
            fps=snapshot.fps,
            build_time_ms=snapshot.average_build_time_ms,
            raster_time_ms=snapshot.average_raster_time_ms,
            memory_mb=snapshot.memory_usage_mb,
            rebuilds=snapshot.total_rebuilds,
            jank_frames=snapshot.jank_frames,
        ),
        warnings=[
            ReportWarning(
                message=w.message,
                severity=w.severity.value,
                suggestion=w.suggestion,
            )
            for w in warnings
        ],
    )


def format_text_report(
    suggestions: Sequence[OptimizationSuggestion],
    warnings: Sequence[PerformanceWarning] = (),
    score: Optional[PerformanceScore] = None,
    snapshot: Optional[MetricsSnapshot] = None,
) -> str:
    """Reporte legible: sugerencias agrupadas por impacto + resumen de advertencias."""
    lines: List[str] = [RULE, "  Performance Optimization Report", RULE, ""]

    if snapshot is not None:
        lines.append(
            summarize(
                fps=snapshot.fps,
                memory_mb=snapshot.memory_usage_mb,
                rebuilds=snapshot.total_rebuilds,
                jank_frames=snapshot.jank_frames,
                warnings=snapshot.warning_count,
            )
        )
        lines.append(
            f"Frames: {format_fps(snapshot.fps)} | "
            f"build {format_duration_ms(snapshot.average_build_time_ms)} | "
            f"raster {format_duration_ms(snapshot.average_raster_time_ms)}"
        )
        lines.append("")

    if score is not None:
        lines.append(f"Score: {score.total}/100 (grade {score.grade}, {score.description})")
        lines.append("")

    if not suggestions:
        lines.append("No performance issues detected! Your app looks great.")
        lines.append("")
    else:
        for impact, label in _IMPACT_SECTIONS:
            group = [s for s in suggestions if s.impact is impact]
            if not group:
                continue
            lines.append(f"{label} ({len(group)}):")
            for s in group:
                lines.append(f"  - {s.title}")
                lines.append(f"    {s.description}")
                lines.append("")

    by_severity = {severity: 0 for severity in WarningSeverity}
    for w in warnings:
        by_severity[w.severity] += 1
    lines.append(
        f"Warnings: {len(warnings)} "
        f"(critical: {by_severity[WarningSeverity.CRITICAL]}, "
        f"warning: {by_severity[WarningSeverity.WARNING]}, "
        f"info: {by_severity[WarningSeverity.INFO]})"
    )

    lines.append(RULE)
    lines.append(f"  Total: {len(suggestions)} suggestions")
    lines.append(RULE)
    return "\n".join(lines)


def save_report(report: PerformanceReport, path: PathLike) -> ReportSaveResult:
    """Escribe el reporte como JSON. Los fallos se devuelven, no se lanzan."""
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(report.to_json(), encoding="utf-8")
    except OSError as exc:
        logger.warning("REPORT_SAVE_FAILED path=%s error=%s", target, exc)
        return ReportSaveResult(ok=False, path=str(target), error=str(exc))

    logger.info("REPORT_SAVED path=%s score=%d", target.resolve(), report.score)
    return ReportSaveResult(ok=True, path=str(target.resolve()))


def load_report(path: PathLike) -> PerformanceReport:
    """Lee y valida un reporte persistido.

    Raises:
        OSError: si el archivo no se puede leer
        ValueError: si el contenido no es JSON válido o no cumple el esquema
    """
    raw = Path(path).read_text(encoding="utf-8")
    try:
        data = json.loads(raw)
        return PerformanceReport.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ValueError(f"invalid performance report {path}: {exc}") from exc
