"""Fixtures compartidas: reloj/ticker manuales y contexto aislado."""

from concurrent.futures import Executor, Future
from typing import Callable, List, Tuple

import pytest

from perf_telemetry.clock import ManualClock
from perf_telemetry.config import TelemetryOptions
from perf_telemetry.context import TelemetryContext
from perf_telemetry.scheduling import ManualTicker
from perf_telemetry.warning_store import WarningStore


class ImmediateExecutor(Executor):
    """Ejecuta cada tarea en el momento del submit (tests deterministas)."""

    def __init__(self) -> None:
        self.submitted = 0

    def submit(self, fn, *args, **kwargs):
        self.submitted += 1
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:  # noqa: BLE001
            future.set_exception(exc)
        return future


class DeferredExecutor(Executor):
    """Guarda las tareas y solo las ejecuta con ``run_all()``."""

    def __init__(self) -> None:
        self.pending: List[Tuple[Callable, tuple, dict]] = []

    def submit(self, fn, *args, **kwargs):
        self.pending.append((fn, args, kwargs))
        return Future()

    def run_all(self) -> None:
        jobs, self.pending = self.pending, []
        for fn, args, kwargs in jobs:
            fn(*args, **kwargs)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(start=1_700_000_000.0)


@pytest.fixture
def ticker(clock) -> ManualTicker:
    return ManualTicker(clock)


@pytest.fixture
def store() -> WarningStore:
    return WarningStore(max_warnings=200)


@pytest.fixture
def immediate_executor() -> ImmediateExecutor:
    return ImmediateExecutor()


@pytest.fixture
def deferred_executor() -> DeferredExecutor:
    return DeferredExecutor()


@pytest.fixture
def make_context(clock, ticker, immediate_executor):
    """Fábrica de contextos con reloj/ticker manuales y memoria en 0."""
    created = []

    def _make(options=None, augmenter=None, memory_sampler=lambda: 0.0, executor=None, **kwargs):
        ctx = TelemetryContext(
            options=options or TelemetryOptions(log_warnings=False),
            clock=clock,
            ticker=ticker,
            augmenter=augmenter,
            memory_sampler=memory_sampler,
            executor=executor or immediate_executor,
            **kwargs,
        )
        created.append(ctx)
        return ctx

    yield _make

    for ctx in created:
        ctx.dispose()


@pytest.fixture
def context(make_context) -> TelemetryContext:
    ctx = make_context()
    ctx.start()
    return ctx
