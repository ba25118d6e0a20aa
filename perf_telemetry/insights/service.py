"""Servicio de insights: patrones locales + servicio remoto opcional.

Las sugerencias heurísticas (rápidas, offline) siempre se devuelven; si el
servicio remoto falla se registra el error y se devuelve solo la parte
local.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from ..common.config import Settings, get_settings
from ..models import MetricsSnapshot
from ..suggestions.models import OptimizationSuggestion
from .heuristic import evaluate_patterns
from .remote import HttpInsightAugmenter

logger = logging.getLogger(__name__)


class InsightService:
    def __init__(
        self,
        remote: Optional[HttpInsightAugmenter] = None,
        enabled: bool = True,
    ) -> None:
        self.enabled = enabled
        self._remote = remote

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "InsightService":
        settings = settings or get_settings()
        remote = None
        if settings.insight_url and settings.insight_api_key:
            remote = HttpInsightAugmenter(
                base_url=settings.insight_url,
                api_key=settings.insight_api_key,
                timeout_s=settings.insight_timeout_s,
            )
        return cls(remote=remote, enabled=settings.insight_enabled)

    @property
    def remote(self) -> Optional[HttpInsightAugmenter]:
        return self._remote

    async def analyze(self, snapshot: MetricsSnapshot) -> List[OptimizationSuggestion]:
        if not self.enabled:
            return []

        suggestions = evaluate_patterns(snapshot)

        if self._remote is not None and self._remote.enabled:
            try:
                suggestions.extend(await self._remote.analyze(snapshot))
            except Exception as exc:  # noqa: BLE001
                # Si falla el servicio remoto no bloqueamos; solo registramos el error.
                logger.warning("INSIGHT_REMOTE_FAILED url=%s error=%s", self._remote.url, exc)

        return suggestions
