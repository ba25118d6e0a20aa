"""Aserciones de rendimiento para CI.

Uso en un test:
    checks = PerformanceAssertions(context)
    checks.assert_fps(minimum=55)
    checks.assert_max_rebuilds(100)
    checks.assert_score(minimum=80)
    checks.assert_no_critical_warnings()
"""

from __future__ import annotations

from .context import TelemetryContext
from .models import WarningSeverity


class PerformanceAssertionError(AssertionError):
    """Una métrica de rendimiento quedó fuera del límite esperado."""


class PerformanceAssertions:
    def __init__(self, context: TelemetryContext) -> None:
        self._context = context

    def assert_fps(self, minimum: float = 55.0) -> None:
        fps = self._context.snapshot().fps
        if fps < minimum:
            raise PerformanceAssertionError(
                f"Performance dropped below {minimum:g} FPS (current: {fps:.1f})"
            )

    def assert_max_rebuilds(self, maximum: int) -> None:
        rebuilds = self._context.snapshot().total_rebuilds
        if rebuilds > maximum:
            raise PerformanceAssertionError(
                f"Too many widget rebuilds detected: {rebuilds} (max: {maximum})"
            )

    def assert_score(self, minimum: int = 80) -> None:
        score = self._context.score()
        if score.total < minimum:
            raise PerformanceAssertionError(
                f"Performance score too low: {score.total} (min: {minimum})"
            )

    def assert_no_critical_warnings(self) -> None:
        critical = self._context.warnings.by_severity(WarningSeverity.CRITICAL)
        if critical:
            messages = "; ".join(w.message for w in critical[:3])
            raise PerformanceAssertionError(
                f"Critical performance warnings detected ({len(critical)}): {messages}"
            )
