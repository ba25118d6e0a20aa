"""Trackers de medición puntual: profundidad del árbol y tamaño de nodos.

Las mediciones se disparan desde fuera ("analizar el árbol ahora") y están
limitadas internamente: llamadas repetidas dentro de ``min_interval_s``
devuelven la última medición en lugar de recalcular.

Superar el umbral emite una advertencia; por encima de 1.5x el umbral la
severidad escala a critical.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Tuple

from ..clock import Clock, SystemClock
from ..models import (
    DepthMeasurement,
    PerformanceWarning,
    SizeMeasurement,
    WarningSeverity,
    WarningType,
)
from ..utils.numeric import non_negative
from ..warning_store import WarningStore

logger = logging.getLogger(__name__)

ESCALATION_FACTOR = 1.5

DepthProbe = Callable[[], Tuple[int, int]]
ChildrenFn = Callable[[Any], Iterable[Any]]

DEEP_TREE_SUGGESTION = (
    "Split your widget tree into smaller, composable widgets. Extract "
    "nested builders and consider a custom multi-child layout for complex "
    "layouts."
)
LARGE_WIDGET_SUGGESTION = (
    "Consider using pagination, lazy loading, or optimizing the layout to "
    "reduce the rendered area."
)


def _severity(value: float, threshold: float) -> WarningSeverity:
    if value > threshold * ESCALATION_FACTOR:
        return WarningSeverity.CRITICAL
    return WarningSeverity.WARNING


def walk_tree(
    root: Any,
    children: ChildrenFn,
    label: Optional[Callable[[Any], str]] = None,
) -> Tuple[int, int, str]:
    """Recorre el árbol bajo ``root`` de forma iterativa.

    Los hijos directos de ``root`` están a profundidad 1; ``root`` no se
    cuenta. Devuelve (profundidad máxima, cantidad de nodos, etiqueta del
    nodo más profundo).
    """
    label = label or (lambda node: type(node).__name__)
    max_depth = 0
    count = 0
    deepest = ""
    stack = [(child, 1) for child in reversed(list(children(root) or ()))]
    while stack:
        node, depth = stack.pop()
        count += 1
        if depth > max_depth:
            max_depth = depth
            deepest = label(node)
        for child in reversed(list(children(node) or ())):
            stack.append((child, depth + 1))
    return max_depth, count, deepest


@dataclass(frozen=True)
class DepthInfo:
    """Profundidad medida bajo un nodo concreto."""

    widget_name: str
    depth: int
    child_count: int
    deepest_child: str

    def __str__(self) -> str:
        return (
            f'DepthInfo("{self.widget_name}": depth={self.depth}, '
            f"children={self.child_count}, deepest={self.deepest_child})"
        )


class DepthTracker:
    """Profundidad máxima y cantidad de nodos del árbol, con throttling."""

    def __init__(
        self,
        store: WarningStore,
        clock: Optional[Clock] = None,
        max_depth: int = 30,
        min_interval_s: float = 3.0,
        probe: Optional[DepthProbe] = None,
    ) -> None:
        self._store = store
        self._clock = clock or SystemClock()
        self._max_depth = max_depth
        self._min_interval_s = min_interval_s
        self._probe = probe
        self._last: Optional[DepthMeasurement] = None
        self._last_analysis_ts: Optional[float] = None
        self._is_tracking = False

    @property
    def is_tracking(self) -> bool:
        return self._is_tracking

    @property
    def max_depth(self) -> int:
        return self._max_depth

    def start(self, max_depth: Optional[int] = None) -> None:
        if max_depth is not None and max_depth > 0:
            self._max_depth = int(max_depth)
        self._is_tracking = True

    def stop(self) -> None:
        self._is_tracking = False

    def set_probe(self, probe: Optional[DepthProbe]) -> None:
        self._probe = probe

    @property
    def last_measured_depth(self) -> int:
        return self._last.depth if self._last else 0

    @property
    def last_measured_node_count(self) -> int:
        return self._last.node_count if self._last else 0

    @property
    def last_measurement(self) -> Optional[DepthMeasurement]:
        return self._last

    def _empty(self) -> DepthMeasurement:
        return DepthMeasurement(depth=0, node_count=0, timestamp=self._clock.now())

    def _throttled(self) -> bool:
        if self._last is None or self._last_analysis_ts is None:
            return False
        return self._clock.now() - self._last_analysis_ts < self._min_interval_s

    def measure(self, probe: Optional[DepthProbe] = None) -> DepthMeasurement:
        """Mide usando la sonda dada (o la configurada).

        Sin sonda, o si la sonda falla, devuelve la última medición.
        """
        if not self._is_tracking:
            return self._empty()
        if self._throttled():
            return self._last
        probe = probe or self._probe
        if probe is None:
            return self._last or self._empty()
        try:
            depth, node_count = probe()
        except Exception:  # noqa: BLE001
            logger.debug("DEPTH_PROBE_FAILED", exc_info=True)
            return self._last or self._empty()
        return self._store_measurement(depth, node_count)

    def record(self, depth: int, node_count: int = 0) -> DepthMeasurement:
        """Registra una medición calculada por el host (mismo throttling)."""
        if not self._is_tracking:
            return self._empty()
        if self._throttled():
            return self._last
        return self._store_measurement(depth, node_count)

    def measure_tree(self, root: Any, children: ChildrenFn) -> DepthMeasurement:
        return self.measure(lambda: walk_tree(root, children)[:2])

    def measure_at(
        self,
        root: Any,
        name: str,
        children: ChildrenFn,
        label: Optional[Callable[[Any], str]] = None,
    ) -> DepthInfo:
        """Profundidad bajo un nodo concreto; no emite advertencias ni limita."""
        if not self._is_tracking:
            return DepthInfo(widget_name=name, depth=0, child_count=0, deepest_child="")
        depth, count, deepest = walk_tree(root, children, label)
        return DepthInfo(widget_name=name, depth=depth, child_count=count, deepest_child=deepest)

    def _store_measurement(self, depth, node_count) -> DepthMeasurement:
        depth_value = int(non_negative(depth))
        count_value = int(non_negative(node_count))
        now = self._clock.now()
        measurement = DepthMeasurement(depth=depth_value, node_count=count_value, timestamp=now)
        self._last = measurement
        self._last_analysis_ts = now

        if depth_value > self._max_depth:
            logger.debug(
                "DEEP_WIDGET_TREE depth=%d max_depth=%d nodes=%d",
                depth_value, self._max_depth, count_value,
            )
            self._store.report(
                PerformanceWarning(
                    message=(
                        f"Widget tree depth exceeds {self._max_depth} levels "
                        f"(found {depth_value} levels, {count_value} widgets)."
                    ),
                    type=WarningType.DEEP_WIDGET_TREE,
                    severity=_severity(depth_value, self._max_depth),
                    suggestion=DEEP_TREE_SUGGESTION,
                    timestamp=now,
                )
            )
        return measurement

    def reset(self) -> None:
        self._last = None
        self._last_analysis_ts = None

    def dispose(self) -> None:
        self.stop()
        self.reset()


class SizeTracker:
    """Dimensiones de nodos individuales, limitadas por clave.

    Guarda la última medición de a lo sumo ``max_keys`` claves; al superar
    la capacidad se desaloja la clave medida hace más tiempo.
    """

    def __init__(
        self,
        store: WarningStore,
        clock: Optional[Clock] = None,
        max_dimension: float = 2000.0,
        min_interval_s: float = 3.0,
        max_keys: int = 500,
    ) -> None:
        if max_keys <= 0:
            raise ValueError("max_keys must be positive")
        self._store = store
        self._clock = clock or SystemClock()
        self._max_dimension = float(max_dimension)
        self._min_interval_s = min_interval_s
        self._max_keys = max_keys
        self._last: "OrderedDict[str, SizeMeasurement]" = OrderedDict()
        self._is_tracking = False

    @property
    def is_tracking(self) -> bool:
        return self._is_tracking

    @property
    def max_dimension(self) -> float:
        return self._max_dimension

    def start(self) -> None:
        self._is_tracking = True

    def stop(self) -> None:
        self._is_tracking = False

    def measure(self, key: str, width: float, height: float) -> Optional[SizeMeasurement]:
        """Registra el tamaño de ``key``. None si el tracker está detenido."""
        if not self._is_tracking or not key:
            return None

        now = self._clock.now()
        previous = self._last.get(key)
        if previous is not None and now - previous.timestamp < self._min_interval_s:
            return previous

        measurement = SizeMeasurement(
            key=key,
            width=non_negative(width),
            height=non_negative(height),
            timestamp=now,
        )
        self._last[key] = measurement
        self._last.move_to_end(key)
        while len(self._last) > self._max_keys:
            self._last.popitem(last=False)

        largest = max(measurement.width, measurement.height)
        if largest > self._max_dimension:
            logger.debug(
                "LARGE_WIDGET key=%s width=%.0f height=%.0f",
                key, measurement.width, measurement.height,
            )
            self._store.report(
                PerformanceWarning(
                    message=(
                        f'Widget "{key}" has a very large size: '
                        f"{measurement.width:.0f}x{measurement.height:.0f}"
                    ),
                    type=WarningType.LARGE_WIDGET,
                    severity=_severity(largest, self._max_dimension),
                    suggestion=LARGE_WIDGET_SUGGESTION,
                    entity=key,
                    timestamp=now,
                )
            )
        return measurement

    def measurements(self) -> List[SizeMeasurement]:
        return list(self._last.values())

    def oversized(self) -> List[SizeMeasurement]:
        return [
            m for m in self._last.values()
            if max(m.width, m.height) > self._max_dimension
        ]

    def reset(self) -> None:
        self._last.clear()

    def dispose(self) -> None:
        self.stop()
        self.reset()
