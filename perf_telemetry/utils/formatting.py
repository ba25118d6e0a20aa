"""Human-readable formatting helpers used by the text report."""

from __future__ import annotations


def format_duration_ms(ms: float) -> str:
    """Format a duration given in milliseconds (µs / ms / s)."""
    if ms < 1:
        return f"{ms * 1000:.0f}µs"
    if ms < 1000:
        return f"{ms:.1f}ms"
    return f"{ms / 1000:.2f}s"


def format_memory(megabytes: float) -> str:
    if megabytes < 1:
        return f"{megabytes * 1024:.0f} KB"
    if megabytes < 1024:
        return f"{megabytes:.1f} MB"
    return f"{megabytes / 1024:.2f} GB"


def performance_level(fps: float) -> str:
    if fps >= 58:
        return "Excellent"
    if fps >= 50:
        return "Good"
    if fps >= 40:
        return "Fair"
    if fps >= 30:
        return "Poor"
    return "Critical"


def format_fps(fps: float) -> str:
    return f"{fps:.1f} FPS ({performance_level(fps)})"


def format_count(count: int) -> str:
    if count < 1000:
        return str(count)
    if count < 1_000_000:
        return f"{count / 1000:.1f}K"
    return f"{count / 1_000_000:.1f}M"


def summarize(
    *,
    fps: float,
    memory_mb: float,
    rebuilds: int,
    jank_frames: int,
    warnings: int,
) -> str:
    """One-line metrics summary."""
    return (
        f"FPS: {fps:.0f} | "
        f"Mem: {format_memory(memory_mb)} | "
        f"Rebuilds: {format_count(rebuilds)} | "
        f"Jank: {jank_frames} | "
        f"Warnings: {warnings}"
    )
