"""Tickers: inyección del temporizador periódico.

El muestreo de memoria y el registro de historial no programan sus propios
timers; reciben un ``Ticker``. En producción se usa ``ThreadingTicker``;
en tests ``ManualTicker`` avanza el tiempo virtual de forma determinista.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol

from .clock import ManualClock

logger = logging.getLogger(__name__)


class TickHandle(Protocol):
    def cancel(self) -> None:
        ...


class Ticker(Protocol):
    def schedule(self, interval_s: float, callback: Callable[[], None]) -> TickHandle:
        """Invoca ``callback`` cada ``interval_s`` segundos hasta ``cancel()``."""
        ...


class _ThreadingHandle:
    """Timer re-armado en cada tick (threading.Timer es de un solo disparo)."""

    def __init__(
        self,
        interval_s: float,
        callback: Callable[[], None],
        lock: Optional[threading.RLock],
    ) -> None:
        self._interval_s = interval_s
        self._callback = callback
        self._lock = lock
        self._cancelled = False
        self._timer: Optional[threading.Timer] = None
        self._guard = threading.Lock()

    def arm(self) -> None:
        with self._guard:
            if self._cancelled:
                return
            self._timer = threading.Timer(self._interval_s, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self) -> None:
        try:
            if self._lock is not None:
                with self._lock:
                    self._callback()
            else:
                self._callback()
        except Exception:  # noqa: BLE001
            # Un tick fallido no debe detener los siguientes.
            logger.exception("TICK_FAILED callback=%r", self._callback)
        self.arm()

    def cancel(self) -> None:
        with self._guard:
            self._cancelled = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None


class ThreadingTicker:
    """Ticker real basado en ``threading.Timer``.

    Si se pasa ``lock``, cada callback corre con ese lock tomado, de modo que
    los ticks quedan serializados con el resto del contexto.
    """

    def __init__(self, lock: Optional[threading.RLock] = None) -> None:
        self._lock = lock

    def schedule(self, interval_s: float, callback: Callable[[], None]) -> _ThreadingHandle:
        if interval_s <= 0:
            raise ValueError("interval_s must be positive")
        handle = _ThreadingHandle(interval_s, callback, self._lock)
        handle.arm()
        return handle


@dataclass
class _ManualEntry:
    interval_s: float
    callback: Callable[[], None]
    next_due: float
    seq: int
    cancelled: bool = field(default=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualTicker:
    """Ticker de tiempo virtual.

    ``advance(seconds)`` mueve el ``ManualClock`` asociado y dispara, en orden
    cronológico, todos los callbacks vencidos. Empates: orden de registro.
    """

    def __init__(self, clock: ManualClock) -> None:
        self._clock = clock
        self._entries: List[_ManualEntry] = []
        self._seq = itertools.count()

    @property
    def clock(self) -> ManualClock:
        return self._clock

    @property
    def active_count(self) -> int:
        return sum(1 for e in self._entries if not e.cancelled)

    def schedule(self, interval_s: float, callback: Callable[[], None]) -> _ManualEntry:
        if interval_s <= 0:
            raise ValueError("interval_s must be positive")
        entry = _ManualEntry(
            interval_s=interval_s,
            callback=callback,
            next_due=self._clock.now() + interval_s,
            seq=next(self._seq),
        )
        self._entries.append(entry)
        return entry

    def advance(self, seconds: float) -> int:
        """Avanza el reloj y devuelve cuántos ticks se dispararon."""
        target = self._clock.now() + seconds
        fired = 0
        while True:
            self._entries = [e for e in self._entries if not e.cancelled]
            due = [e for e in self._entries if e.next_due <= target]
            if not due:
                break
            entry = min(due, key=lambda e: (e.next_due, e.seq))
            self._clock.set(entry.next_due)
            entry.next_due += entry.interval_s
            entry.callback()
            fired += 1
        self._clock.set(target)
        return fired
