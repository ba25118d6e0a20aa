from .builder import (
    ReportSaveResult,
    build_report,
    format_text_report,
    load_report,
    save_report,
)
from .schemas import PerformanceReport, ReportMetrics, ReportWarning

__all__ = [
    "PerformanceReport",
    "ReportMetrics",
    "ReportSaveResult",
    "ReportWarning",
    "build_report",
    "format_text_report",
    "load_report",
    "save_report",
]
