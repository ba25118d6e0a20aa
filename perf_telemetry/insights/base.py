from __future__ import annotations

from typing import List, Protocol, runtime_checkable

from ..models import MetricsSnapshot
from ..suggestions.models import OptimizationSuggestion


@runtime_checkable
class InsightAugmenter(Protocol):
    """Colaborador asíncrono que aporta sugerencias adicionales.

    ``analyze`` puede fallar; el motor de sugerencias captura cualquier
    excepción y conserva solo las heurísticas locales.
    """

    enabled: bool

    async def analyze(self, snapshot: MetricsSnapshot) -> List[OptimizationSuggestion]:
        ...
