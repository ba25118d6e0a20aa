"""Utilidades compartidas (saneamiento numérico y formateo)."""

from .numeric import clamp, non_negative, safe_float
from .formatting import (
    format_count,
    format_duration_ms,
    format_fps,
    format_memory,
    performance_level,
    summarize,
)

__all__ = [
    "clamp",
    "non_negative",
    "safe_float",
    "format_count",
    "format_duration_ms",
    "format_fps",
    "format_memory",
    "performance_level",
    "summarize",
]
