"""Almacén de advertencias de rendimiento.

Características:
- Colección acotada (default 200) con desalojo FIFO del más antiguo
- Listeners invocados de forma síncrona, en orden de registro, al reportar
- Vistas filtradas de solo lectura (por tipo / por severidad)

Uso:
    store = WarningStore(max_warnings=200)
    store.add_listener(lambda w: print(w))
    store.report(warning)
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Callable, Deque, Dict, List, Tuple

from .models import PerformanceWarning, WarningSeverity, WarningType

logger = logging.getLogger(__name__)

WarningListener = Callable[[PerformanceWarning], None]


class WarningStore:
    """Sumidero acotado de todas las advertencias emitidas."""

    def __init__(self, max_warnings: int = 200) -> None:
        if max_warnings <= 0:
            raise ValueError("max_warnings must be positive")
        self._max_warnings = max_warnings
        self._warnings: Deque[PerformanceWarning] = deque(maxlen=max_warnings)
        self._listeners: List[WarningListener] = []

    @property
    def max_warnings(self) -> int:
        return self._max_warnings

    def report(self, warning: PerformanceWarning) -> None:
        """Agrega la advertencia y notifica a los listeners.

        Un listener que falla se registra en el log y se salta; el resto
        sigue recibiendo la advertencia.
        """
        self._warnings.append(warning)

        for listener in list(self._listeners):
            try:
                listener(warning)
            except Exception:  # noqa: BLE001
                logger.exception("WARNING_LISTENER_FAILED listener=%r", listener)

    def add_listener(self, listener: WarningListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: WarningListener) -> None:
        """Quita la primera ocurrencia del listener (no-op si no existe)."""
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def warnings(self) -> Tuple[PerformanceWarning, ...]:
        """Copia inmutable, de la más antigua a la más reciente."""
        return tuple(self._warnings)

    @property
    def count(self) -> int:
        return len(self._warnings)

    def by_type(self, warning_type: WarningType) -> List[PerformanceWarning]:
        return [w for w in self._warnings if w.type == warning_type]

    def by_severity(self, severity: WarningSeverity) -> List[PerformanceWarning]:
        return [w for w in self._warnings if w.severity == severity]

    @property
    def critical_count(self) -> int:
        return sum(1 for w in self._warnings if w.severity == WarningSeverity.CRITICAL)

    @property
    def info_count(self) -> int:
        return sum(1 for w in self._warnings if w.severity == WarningSeverity.INFO)

    def count_by_type(self) -> Dict[WarningType, int]:
        """Conteo por tipo, en orden de primera aparición."""
        counts: Dict[WarningType, int] = {}
        for w in self._warnings:
            counts[w.type] = counts.get(w.type, 0) + 1
        return counts

    def clear(self) -> None:
        """Vacía el almacén sin tocar los listeners."""
        self._warnings.clear()

    def dispose(self) -> None:
        self._warnings.clear()
        self._listeners.clear()
