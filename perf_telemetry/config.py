"""Opciones del motor de telemetría.

Configuración via env vars (todas opcionales):
- PERF_ENABLED (default: 1)
- PERF_WARNING_THRESHOLD_MS (default: 16)
- PERF_REBUILD_WARNING_COUNT (default: 60)
- PERF_MAX_WIDGET_DEPTH (default: 30)
- PERF_MEMORY_CHECK_INTERVAL_S (default: 5)
- PERF_HISTORY_INTERVAL_S (default: 10)
- PERF_LOG_WARNINGS (default: 1)
- PERF_ENABLE_IN_UNSAFE_MODE (default: 0)
- PERF_SAMPLE_MEMORY (default: 1; 0 = sólo muestras empujadas por el host)
- PERF_TRACK_REBUILDS / PERF_TRACK_MEMORY / PERF_TRACK_ANIMATIONS /
  PERF_TRACK_WIDGET_SIZE / PERF_TRACK_WIDGET_DEPTH / PERF_TRACK_SET_STATE
"""

from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass
from typing import Callable, Optional

from .models import FrameTimingRecord, PerformanceWarning

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes", "on")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw.strip())
    except ValueError:
        logger.warning("INVALID_ENV name=%s value=%r default=%s", name, raw, default)
        return default
    if value <= 0:
        logger.warning("INVALID_ENV name=%s value=%r default=%s", name, raw, default)
        return default
    return value


@dataclass(frozen=True)
class TelemetryOptions:
    """Opciones reconocidas por ``TelemetryContext``."""

    enabled: bool = True
    track_rebuilds: bool = True
    track_memory: bool = True
    track_animations: bool = True
    track_widget_size: bool = True
    track_widget_depth: bool = True
    track_set_state: bool = True

    # Presupuesto de frame: por encima de esto un frame es "jank".
    warning_threshold_ms: float = 16.0
    rebuild_warning_count: int = 60
    max_widget_depth: int = 30
    memory_check_interval_s: float = 5.0
    history_interval_s: float = 10.0

    # False: no se programa el muestreo periódico; el host empuja las muestras.
    sample_memory: bool = True

    log_warnings: bool = True
    on_warning: Optional[Callable[[PerformanceWarning], None]] = None
    on_frame: Optional[Callable[[FrameTimingRecord], None]] = None

    # "Unsafe" = intérprete con optimizaciones (python -O), el análogo de release.
    enable_in_unsafe_mode: bool = False

    @classmethod
    def from_env(cls) -> "TelemetryOptions":
        defaults = cls()
        return cls(
            enabled=_env_bool("PERF_ENABLED", defaults.enabled),
            track_rebuilds=_env_bool("PERF_TRACK_REBUILDS", defaults.track_rebuilds),
            track_memory=_env_bool("PERF_TRACK_MEMORY", defaults.track_memory),
            track_animations=_env_bool("PERF_TRACK_ANIMATIONS", defaults.track_animations),
            track_widget_size=_env_bool("PERF_TRACK_WIDGET_SIZE", defaults.track_widget_size),
            track_widget_depth=_env_bool("PERF_TRACK_WIDGET_DEPTH", defaults.track_widget_depth),
            track_set_state=_env_bool("PERF_TRACK_SET_STATE", defaults.track_set_state),
            warning_threshold_ms=_env_number(
                "PERF_WARNING_THRESHOLD_MS", defaults.warning_threshold_ms, float
            ),
            rebuild_warning_count=_env_number(
                "PERF_REBUILD_WARNING_COUNT", defaults.rebuild_warning_count, int
            ),
            max_widget_depth=_env_number("PERF_MAX_WIDGET_DEPTH", defaults.max_widget_depth, int),
            memory_check_interval_s=_env_number(
                "PERF_MEMORY_CHECK_INTERVAL_S", defaults.memory_check_interval_s, float
            ),
            history_interval_s=_env_number(
                "PERF_HISTORY_INTERVAL_S", defaults.history_interval_s, float
            ),
            sample_memory=_env_bool("PERF_SAMPLE_MEMORY", defaults.sample_memory),
            log_warnings=_env_bool("PERF_LOG_WARNINGS", defaults.log_warnings),
            enable_in_unsafe_mode=_env_bool(
                "PERF_ENABLE_IN_UNSAFE_MODE", defaults.enable_in_unsafe_mode
            ),
        )

    def replace(self, **changes) -> "TelemetryOptions":
        """Copia con overrides."""
        return dataclasses.replace(self, **changes)
