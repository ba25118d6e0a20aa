from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ReportMetrics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    fps: float = Field(..., ge=0)
    build_time_ms: float = Field(0.0, ge=0, alias="buildTimeMs")
    raster_time_ms: float = Field(0.0, ge=0, alias="rasterTimeMs")
    memory_mb: float = Field(0.0, ge=0, alias="memoryMB")
    rebuilds: int = Field(0, ge=0)
    jank_frames: int = Field(0, ge=0, alias="jankFrames")


class ReportWarning(BaseModel):
    message: str
    severity: str
    suggestion: Optional[str] = None


class PerformanceReport(BaseModel):
    """Formato persistido del reporte (JSON, claves camelCase)."""

    timestamp: str
    score: int = Field(..., ge=0, le=100)
    metrics: ReportMetrics
    warnings: List[ReportWarning] = Field(default_factory=list)

    def critical_count(self) -> int:
        return sum(1 for w in self.warnings if w.severity == "critical")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)
