"""CLI: valida un reporte de rendimiento persistido contra umbrales de CI.

Exit codes:
- 0: todos los umbrales se cumplen
- 1: al menos un umbral falla
- 2: el reporte no se pudo leer o no es válido
"""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional, Sequence

from ..report import PerformanceReport, load_report

logger = logging.getLogger(__name__)


def evaluate(
    report: PerformanceReport,
    min_score: Optional[int] = None,
    min_fps: Optional[float] = None,
    max_critical: Optional[int] = None,
    max_rebuilds: Optional[int] = None,
) -> List[str]:
    """Devuelve la lista de umbrales incumplidos (vacía si todo pasa)."""
    failures = []
    if min_score is not None and report.score < min_score:
        failures.append(f"score {report.score} < {min_score}")
    if min_fps is not None and report.metrics.fps < min_fps:
        failures.append(f"fps {report.metrics.fps:.1f} < {min_fps:g}")
    critical = report.critical_count()
    if max_critical is not None and critical > max_critical:
        failures.append(f"critical warnings {critical} > {max_critical}")
    if max_rebuilds is not None and report.metrics.rebuilds > max_rebuilds:
        failures.append(f"rebuilds {report.metrics.rebuilds} > {max_rebuilds}")
    return failures


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    p = argparse.ArgumentParser(description="Check a persisted performance report against CI gates")
    p.add_argument("report", help="path to the JSON report")
    p.add_argument("--min-score", type=int, default=None)
    p.add_argument("--min-fps", type=float, default=None)
    p.add_argument("--max-critical", type=int, default=0)
    p.add_argument("--max-rebuilds", type=int, default=None)
    args = p.parse_args(argv)

    try:
        report = load_report(args.report)
    except (OSError, ValueError) as e:
        logger.error("REPORT_UNREADABLE path=%s error=%s", args.report, e)
        return 2

    failures = evaluate(
        report,
        min_score=args.min_score,
        min_fps=args.min_fps,
        max_critical=args.max_critical,
        max_rebuilds=args.max_rebuilds,
    )

    logger.info(
        "Report %s: score=%d fps=%.1f rebuilds=%d warnings=%d",
        args.report, report.score, report.metrics.fps, report.metrics.rebuilds, len(report.warnings),
    )
    if failures:
        for failure in failures:
            logger.error("GATE_FAILED %s", failure)
        return 1

    logger.info("All performance gates passed")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
