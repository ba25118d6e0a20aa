"""Tests de los trackers de medición puntual (profundidad y tamaño)."""

import pytest

from perf_telemetry.models import WarningSeverity, WarningType
from perf_telemetry.trackers.measurement import DepthTracker, SizeTracker, walk_tree


def chain(depth, name="node"):
    """Árbol lineal de ``depth`` niveles bajo la raíz."""
    root = {"name": "root", "children": []}
    current = root
    for i in range(depth):
        child = {"name": f"{name}{i + 1}", "children": []}
        current["children"].append(child)
        current = child
    return root


def children(node):
    return node["children"]


@pytest.fixture
def depth(store, clock) -> DepthTracker:
    t = DepthTracker(store, clock, max_depth=30, min_interval_s=3.0)
    t.start()
    return t


@pytest.fixture
def sizes(store, clock) -> SizeTracker:
    t = SizeTracker(store, clock, max_dimension=2000, min_interval_s=3.0)
    t.start()
    return t


# =============================================================================
# RECORRIDO DEL ÁRBOL
# =============================================================================

class TestWalkTree:
    """Recorrido iterativo: profundidad, nodos y nodo más profundo."""

    def test_chain(self):
        assert walk_tree(chain(5), children, lambda n: n["name"]) == (5, 5, "node5")

    def test_branching_tree(self):
        tree = {
            "name": "root",
            "children": [
                {"name": "a", "children": [{"name": "a1", "children": []}]},
                {"name": "b", "children": []},
            ],
        }
        assert walk_tree(tree, children, lambda n: n["name"]) == (2, 3, "a1")

    def test_empty_root(self):
        assert walk_tree({"children": []}, children) == (0, 0, "")

    def test_deep_tree_does_not_recurse(self):
        max_depth, count, _ = walk_tree(chain(5000), children)
        assert max_depth == 5000
        assert count == 5000


# =============================================================================
# PROFUNDIDAD
# =============================================================================

class TestDepthTracker:
    """Umbral 30, escalado a critical por encima de 45."""

    def test_within_threshold_no_warning(self, depth, store):
        m = depth.record(30, 120)
        assert m.depth == 30
        assert m.node_count == 120
        assert store.count == 0

    def test_over_threshold_warns(self, depth, store):
        depth.record(35, 200)
        warning = store.warnings()[0]
        assert warning.type == WarningType.DEEP_WIDGET_TREE
        assert warning.severity == WarningSeverity.WARNING
        assert "35" in warning.message

    def test_over_one_and_a_half_is_critical(self, depth, store):
        depth.record(46, 300)
        assert store.warnings()[0].severity == WarningSeverity.CRITICAL

    def test_exactly_one_and_a_half_is_warning(self, depth, store):
        depth.record(45, 300)
        assert store.warnings()[0].severity == WarningSeverity.WARNING

    def test_throttled_calls_return_last_measurement(self, depth, store, clock):
        first = depth.record(35, 200)
        clock.advance(1.0)
        second = depth.record(50, 400)

        assert second == first
        assert store.count == 1

        clock.advance(2.5)
        third = depth.record(12, 40)
        assert third.depth == 12
        assert depth.last_measured_depth == 12

    def test_measure_with_probe(self, depth):
        m = depth.measure(lambda: (8, 21))
        assert (m.depth, m.node_count) == (8, 21)

    def test_measure_tree(self, depth):
        m = depth.measure_tree(chain(33), children)
        assert m.depth == 33

    def test_probe_failure_returns_last(self, depth, clock):
        depth.record(10, 10)
        clock.advance(5.0)

        def broken():
            raise RuntimeError("tree unavailable")

        m = depth.measure(broken)
        assert m.depth == 10

    def test_no_probe_returns_empty(self, depth):
        m = depth.measure()
        assert m.depth == 0
        assert depth.last_measurement is None

    def test_stopped_tracker(self, store, clock):
        t = DepthTracker(store, clock)
        m = t.record(100, 1000)
        assert m.depth == 0
        assert store.count == 0

    def test_measure_at(self, depth):
        info = depth.measure_at(chain(4, name="Row"), "Screen", children, lambda n: n["name"])
        assert info.widget_name == "Screen"
        assert info.depth == 4
        assert info.child_count == 4
        assert info.deepest_child == "Row4"
        assert "Screen" in str(info)

    def test_invalid_values_clamp(self, depth):
        m = depth.record(-5, None)
        assert (m.depth, m.node_count) == (0, 0)

    def test_reset(self, depth):
        depth.record(35, 10)
        depth.reset()
        assert depth.last_measured_depth == 0
        # Sin throttle tras reset
        assert depth.record(5, 5).depth == 5


# =============================================================================
# TAMAÑO
# =============================================================================

class TestSizeTracker:
    """Dimensión máxima 2000; critical por encima de 3000."""

    def test_normal_size(self, sizes, store):
        m = sizes.measure("Card", 300, 200)
        assert (m.width, m.height) == (300, 200)
        assert store.count == 0

    def test_large_widget_warning(self, sizes, store):
        sizes.measure("Feed", 400, 2500)
        warning = store.warnings()[0]
        assert warning.type == WarningType.LARGE_WIDGET
        assert warning.entity == "Feed"
        assert warning.severity == WarningSeverity.WARNING

    def test_very_large_widget_is_critical(self, sizes, store):
        sizes.measure("Canvas", 3100, 100)
        assert store.warnings()[0].severity == WarningSeverity.CRITICAL

    def test_throttled_per_key(self, sizes, store, clock):
        sizes.measure("Feed", 400, 2500)
        clock.advance(1.0)
        again = sizes.measure("Feed", 400, 5000)
        other = sizes.measure("Grid", 2500, 10)

        assert again.height == 2500
        assert other.key == "Grid"
        assert store.count == 2

    def test_oversized(self, sizes):
        sizes.measure("a", 10, 10)
        sizes.measure("b", 2100, 10)
        assert [m.key for m in sizes.oversized()] == ["b"]
        assert len(sizes.measurements()) == 2

    def test_stopped_returns_none(self, store, clock):
        t = SizeTracker(store, clock)
        assert t.measure("Feed", 5000, 5000) is None
        assert store.count == 0

    def test_negative_dimensions(self, sizes):
        m = sizes.measure("Box", -10, float("nan"))
        assert (m.width, m.height) == (0.0, 0.0)

    def test_capacity_evicts_oldest_key(self, store, clock):
        t = SizeTracker(store, clock, max_keys=3)
        t.start()
        for key in ("a", "b", "c", "d"):
            t.measure(key, 10, 10)

        assert [m.key for m in t.measurements()] == ["b", "c", "d"]

    def test_remeasured_key_moves_to_newest(self, store, clock):
        """Una clave medida de nuevo pasa al final y no se desaloja primero."""
        t = SizeTracker(store, clock, max_keys=2)
        t.start()
        t.measure("a", 10, 10)
        t.measure("b", 10, 10)
        clock.advance(5.0)
        t.measure("a", 20, 20)
        t.measure("c", 10, 10)

        assert [m.key for m in t.measurements()] == ["a", "c"]

    def test_invalid_capacity(self, store, clock):
        with pytest.raises(ValueError):
            SizeTracker(store, clock, max_keys=0)
