"""Cliente HTTP del servicio de insights.

Envía el snapshot como JSON y valida la respuesta con pydantic. El servicio
puede responder una lista de sugerencias o ``{"suggestions": [...]}``.

Valores desconocidos no invalidan la respuesta:
- categoría desconocida -> general
- impacto desconocido -> low
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from ..models import MetricsSnapshot
from ..suggestions.models import OptimizationSuggestion, SuggestionCategory, SuggestionImpact

logger = logging.getLogger(__name__)

ANALYZE_PATH = "/analyze/performance"

# Alias camelCase aceptados por compatibilidad con servicios existentes.
_CATEGORY_ALIASES = {"stateManagement": SuggestionCategory.STATE_MANAGEMENT}


class InsightItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str = "Remote Suggestion"
    description: str = ""
    category: Optional[str] = None
    impact: Optional[str] = None
    affected_entity: Optional[str] = Field(default=None, alias="affectedEntity")
    auto_fix_available: bool = Field(default=False, alias="autoFixAvailable")
    code_example: Optional[str] = Field(default=None, alias="codeExample")


class InsightResponse(BaseModel):
    suggestions: List[InsightItem] = Field(default_factory=list)


def parse_category(value: Optional[str]) -> SuggestionCategory:
    if value in _CATEGORY_ALIASES:
        return _CATEGORY_ALIASES[value]
    try:
        return SuggestionCategory(value)
    except ValueError:
        return SuggestionCategory.GENERAL


def parse_impact(value: Optional[str]) -> SuggestionImpact:
    try:
        return SuggestionImpact(value)
    except ValueError:
        return SuggestionImpact.LOW


def to_suggestion(item: InsightItem) -> OptimizationSuggestion:
    return OptimizationSuggestion(
        title=item.title,
        description=item.description,
        category=parse_category(item.category),
        impact=parse_impact(item.impact),
        affected_entity=item.affected_entity,
        auto_fix_available=item.auto_fix_available,
        code_example=item.code_example,
    )


def parse_response(data: Any) -> List[OptimizationSuggestion]:
    if isinstance(data, list):
        data = {"suggestions": data}
    response = InsightResponse.model_validate(data)
    return [to_suggestion(item) for item in response.suggestions]


class HttpInsightAugmenter:
    """Augmenter remoto sobre ``httpx.AsyncClient``.

    Los errores (red, HTTP, validación) se propagan; quien lo invoca decide
    qué hacer con ellos.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout_s: float = 5.0,
        enabled: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.enabled = enabled
        self._url = base_url.rstrip("/") + ANALYZE_PATH
        self._api_key = api_key
        self._timeout_s = timeout_s
        self._transport = transport

    @property
    def url(self) -> str:
        return self._url

    def _headers(self) -> dict:
        if not self._api_key:
            return {}
        return {"Authorization": f"Bearer {self._api_key}"}

    async def analyze(self, snapshot: MetricsSnapshot) -> List[OptimizationSuggestion]:
        if not self.enabled:
            return []

        payload = {"context": "app_performance", "metrics": snapshot.to_dict()}
        async with httpx.AsyncClient(timeout=self._timeout_s, transport=self._transport) as client:
            resp = await client.post(self._url, json=payload, headers=self._headers())
            resp.raise_for_status()
            data = resp.json()

        suggestions = parse_response(data)
        logger.debug("INSIGHT_RESPONSE url=%s suggestions=%d", self._url, len(suggestions))
        return suggestions
