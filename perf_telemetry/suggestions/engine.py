"""Motor de sugerencias: reglas locales + augmenter asíncrono opcional.

``generate()`` nunca bloquea: las reglas corren de forma síncrona y el
augmenter se dispara en segundo plano (fire-and-forget), como máximo uno en
vuelo. Su último resultado completado se mezcla en los pulls siguientes.

Modelo de concurrencia del resultado:
- Un único "cell" con el último resultado, protegido por ``lock``
- Contador de generación: ``reset()`` lo incrementa y cualquier respuesta
  de una generación anterior se descarta (no puede pisar un estado nuevo)
- Fallos del augmenter se registran en DEBUG y se descartan; las
  sugerencias heurísticas siempre están disponibles

Ejecución del augmenter:
- Si hay un event loop corriendo en el hilo que llama -> ``loop.create_task``
- Si no -> ``asyncio.run`` en un executor de un solo worker (o el inyectado)
"""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import List, Optional, Sequence, Set, Tuple

from ..models import MetricsSnapshot
from .models import OptimizationSuggestion, sort_by_impact
from .rules import DEFAULT_RULES, Rule, SuggestionState, run_rules

logger = logging.getLogger(__name__)


class SuggestionEngine:
    def __init__(
        self,
        augmenter=None,
        executor: Optional[Executor] = None,
        lock: Optional[threading.RLock] = None,
        rules: Sequence[Rule] = DEFAULT_RULES,
    ) -> None:
        self._augmenter = augmenter
        self._executor = executor
        self._owns_executor = False
        self._lock = lock or threading.RLock()
        self._rules = tuple(rules)

        self._generation = 0
        self._pending_generation: Optional[int] = None
        self._latest: Tuple[OptimizationSuggestion, ...] = ()
        self._tasks: Set[asyncio.Task] = set()

    @property
    def augmenter(self):
        return self._augmenter

    def set_augmenter(self, augmenter) -> None:
        with self._lock:
            self._augmenter = augmenter
            self._generation += 1
            self._pending_generation = None
            self._latest = ()

    @property
    def is_analyzing(self) -> bool:
        with self._lock:
            return self._pending_generation is not None

    def latest_insights(self) -> List[OptimizationSuggestion]:
        with self._lock:
            return list(self._latest)

    # ------------------------------------------------------------------
    # Pull
    # ------------------------------------------------------------------

    def generate(
        self,
        state: SuggestionState,
        snapshot: Optional[MetricsSnapshot] = None,
    ) -> List[OptimizationSuggestion]:
        """Heurísticas + último resultado del augmenter, por impacto desc."""
        suggestions = run_rules(state, self._rules)

        with self._lock:
            insights = self._latest
        suggestions.extend(insights)

        if snapshot is not None:
            self._trigger(snapshot)

        return sort_by_impact(suggestions)

    # ------------------------------------------------------------------
    # Augmenter
    # ------------------------------------------------------------------

    def _trigger(self, snapshot: MetricsSnapshot) -> None:
        augmenter = self._augmenter
        if augmenter is None or not getattr(augmenter, "enabled", True):
            return

        with self._lock:
            if self._pending_generation is not None:
                return
            generation = self._generation
            self._pending_generation = generation

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        try:
            if loop is not None and self._executor is None:
                task = loop.create_task(self._run(augmenter, snapshot, generation))
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)
            else:
                self._get_executor().submit(self._run_blocking, augmenter, snapshot, generation)
        except Exception:  # noqa: BLE001
            logger.debug("INSIGHT_TRIGGER_FAILED", exc_info=True)
            self._finish(generation, None)

    def _get_executor(self) -> Executor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="perf-insights"
            )
            self._owns_executor = True
        return self._executor

    def _run_blocking(self, augmenter, snapshot: MetricsSnapshot, generation: int) -> None:
        asyncio.run(self._run(augmenter, snapshot, generation))

    async def _run(self, augmenter, snapshot: MetricsSnapshot, generation: int) -> None:
        results = None
        try:
            raw = await augmenter.analyze(snapshot)
            results = tuple(s for s in raw or () if isinstance(s, OptimizationSuggestion))
        except Exception:  # noqa: BLE001
            # El pipeline principal no depende del augmenter.
            logger.debug("INSIGHT_AUGMENTER_FAILED generation=%d", generation, exc_info=True)
        finally:
            self._finish(generation, results)

    def _finish(
        self,
        generation: int,
        results: Optional[Tuple[OptimizationSuggestion, ...]],
    ) -> None:
        with self._lock:
            if self._pending_generation == generation:
                self._pending_generation = None
            if results is not None and generation == self._generation:
                self._latest = results
            elif results is not None:
                logger.debug(
                    "INSIGHT_RESULT_STALE generation=%d current=%d",
                    generation, self._generation,
                )

    async def wait_idle(self) -> None:
        """Espera las tareas del augmenter lanzadas en el loop actual."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self) -> None:
        with self._lock:
            self._generation += 1
            self._pending_generation = None
            self._latest = ()

    def shutdown(self) -> None:
        self.reset()
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None
            self._owns_executor = False
