"""Tests del reporte: formato texto, persistencia JSON y CLI de CI."""

import dataclasses
import json
import logging

import pytest

from perf_telemetry.jobs.report_check import evaluate, main
from perf_telemetry.models import MetricsSnapshot, PerformanceWarning, WarningSeverity, WarningType
from perf_telemetry.report import (
    PerformanceReport,
    build_report,
    format_text_report,
    load_report,
    save_report,
)
from perf_telemetry.scoring import calculate_score
from perf_telemetry.suggestions import OptimizationSuggestion, SuggestionCategory, SuggestionImpact
from perf_telemetry.utils.formatting import format_count, format_duration_ms, format_memory


def make_snapshot(**changes):
    return dataclasses.replace(MetricsSnapshot.idle(timestamp=1_700_000_000.0), **changes)


def make_warning(severity=WarningSeverity.WARNING):
    return PerformanceWarning(
        message="Frame rendering took 40.0ms",
        type=WarningType.SLOW_FRAME,
        severity=severity,
        suggestion="Move work off the build path",
        timestamp=1_700_000_000.0,
    )


def make_report(**snapshot_changes):
    snapshot = make_snapshot(**snapshot_changes)
    return build_report(snapshot, calculate_score(snapshot), [make_warning(WarningSeverity.CRITICAL)])


# =============================================================================
# REPORTE DE TEXTO
# =============================================================================

class TestTextReport:

    def test_empty(self):
        text = format_text_report([])
        assert "No performance issues detected! Your app looks great." in text
        assert "Total: 0 suggestions" in text
        assert "Warnings: 0 (critical: 0, warning: 0, info: 0)" in text

    def test_grouped_by_impact(self):
        suggestions = [
            OptimizationSuggestion("Leak", "d1", SuggestionCategory.MEMORY, SuggestionImpact.CRITICAL),
            OptimizationSuggestion("Slow", "d2", SuggestionCategory.ANIMATION, SuggestionImpact.HIGH),
            OptimizationSuggestion("Tip", "d3", SuggestionCategory.GENERAL, SuggestionImpact.LOW),
        ]
        text = format_text_report(suggestions, [make_warning(), make_warning(WarningSeverity.CRITICAL)])

        assert text.index("CRITICAL (1):") < text.index("HIGH IMPACT (1):") < text.index("LOW IMPACT (1):")
        assert "MEDIUM IMPACT" not in text
        assert "  - Leak" in text
        assert "Warnings: 2 (critical: 1, warning: 1, info: 0)" in text
        assert "Total: 3 suggestions" in text

    def test_snapshot_and_score_lines(self):
        snapshot = make_snapshot(fps=42, memory_usage_mb=1536, total_rebuilds=2500, average_build_time_ms=0.5)
        text = format_text_report([], score=calculate_score(snapshot), snapshot=snapshot)

        assert "FPS: 42 | Mem: 1.50 GB | Rebuilds: 2.5K | Jank: 0 | Warnings: 0" in text
        assert "Frames: 42.0 FPS (Fair) | build 500µs | raster 0µs" in text
        assert "Score: " in text


class TestFormatting:

    @pytest.mark.parametrize("ms,expected", [(0.25, "250µs"), (16.66, "16.7ms"), (2500, "2.50s")])
    def test_duration(self, ms, expected):
        assert format_duration_ms(ms) == expected

    @pytest.mark.parametrize("mb,expected", [(0.5, "512 KB"), (256, "256.0 MB"), (2048, "2.00 GB")])
    def test_memory(self, mb, expected):
        assert format_memory(mb) == expected

    @pytest.mark.parametrize("count,expected", [(999, "999"), (1500, "1.5K"), (2_000_000, "2.0M")])
    def test_count(self, count, expected):
        assert format_count(count) == expected


# =============================================================================
# PERSISTENCIA
# =============================================================================

class TestPersistence:

    def test_wire_format_uses_camel_case(self):
        wire = make_report(average_build_time_ms=3.5, memory_usage_mb=128).to_wire()
        assert wire["metrics"]["buildTimeMs"] == 3.5
        assert wire["metrics"]["memoryMB"] == 128
        assert wire["warnings"][0] == {
            "message": "Frame rendering took 40.0ms",
            "severity": "critical",
            "suggestion": "Move work off the build path",
        }
        assert wire["timestamp"].startswith("2023-11-14T22:13:20")

    def test_save_and_load(self, tmp_path, caplog):
        report = make_report(total_rebuilds=42)
        with caplog.at_level(logging.INFO):
            result = save_report(report, tmp_path / "nested" / "report.json")

        assert result.ok
        assert "REPORT_SAVED" in caplog.text
        data = json.loads((tmp_path / "nested" / "report.json").read_text())
        assert data["metrics"]["rebuilds"] == 42
        assert load_report(result.path).model_dump() == report.model_dump()

    def test_save_failure_is_returned(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")

        result = save_report(make_report(), blocker / "report.json")

        assert result.ok is False
        assert result.error

    def test_load_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(ValueError):
            load_report(path)

    def test_load_invalid_schema(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"timestamp": "t", "score": 140, "metrics": {"fps": 60}}))
        with pytest.raises(ValueError):
            load_report(path)

    def test_accepts_snake_case_keys(self):
        report = PerformanceReport.model_validate({
            "timestamp": "t",
            "score": 90,
            "metrics": {"fps": 60, "build_time_ms": 2.0, "jank_frames": 1},
        })
        assert report.metrics.build_time_ms == 2.0
        assert report.metrics.jank_frames == 1


# =============================================================================
# CLI
# =============================================================================

class TestReportCheck:

    def test_evaluate(self):
        report = make_report(fps=40, total_rebuilds=300)
        failures = evaluate(report, min_score=95, min_fps=55, max_critical=0, max_rebuilds=100)
        assert len(failures) == 4

    def test_evaluate_without_gates(self):
        assert evaluate(make_report()) == []

    def test_main_pass(self, tmp_path):
        path = tmp_path / "report.json"
        save_report(make_report(), path)
        assert main([str(path), "--max-critical", "1", "--min-score", "50"]) == 0

    def test_main_fail_on_critical_by_default(self, tmp_path):
        path = tmp_path / "report.json"
        save_report(make_report(), path)
        assert main([str(path)]) == 1

    def test_main_unreadable(self, tmp_path):
        assert main([str(tmp_path / "missing.json")]) == 2
