"""
dashboard/schemas/analysis.py

Response schemas for analysis endpoints.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class FileDescriptorResponse(BaseModel):
    """
    API response model for one classified file.
    """

    name: str
    byte_size: int = Field(..., ge=0)
    role: str
    kind: str
    detected_customer: str | None = None
    detected_period: str | None = None
    file_type: str | None = None


class PeriodSummaryResponse(BaseModel):
    period: str
    documents: int = Field(..., ge=0)
    kilocharacters: float = Field(..., ge=0)
    document_growth: float | None = None
    kilocharacter_growth: float | None = None
    kc_per_document: float | None = None
    source_kind: str
    source_files: list[str] = Field(default_factory=list)


class EntityRankingResponse(BaseModel):
    rank: int = Field(..., ge=1)
    entity_id: str
    label: str
    region: str | None = None
    documents: int = Field(..., ge=0)
    kilocharacters: float = Field(..., ge=0)
    volume: float
    share: float = Field(..., ge=0, le=1)


class InsightResponse(BaseModel):
    """
    API response model for one generated insight.
    """

    category: str
    severity: str
    template_key: str
    message: str
    values: dict[str, Any] = Field(default_factory=dict)


class PipelineWarningResponse(BaseModel):
    code: str
    message: str
    file_name: str | None = None
    row_number: int | None = None
    column: str | None = None


class AnalysisResponse(BaseModel):
    """
    API response model for one analysis run.
    """

    customer: str | None = None
    periods: list[str] = Field(default_factory=list)
    files: list[FileDescriptorResponse] = Field(default_factory=list)
    period_summaries: list[PeriodSummaryResponse] = Field(default_factory=list)
    rankings: dict[str, list[EntityRankingResponse]] = Field(default_factory=dict)
    concentration: dict[str, dict[str, Any]] = Field(default_factory=dict)
    movers: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)
    seasonality: dict[str, Any] = Field(default_factory=dict)
    trend: dict[str, Any] = Field(default_factory=dict)
    reconciliation: dict[str, Any] = Field(default_factory=dict)
    insights: list[InsightResponse] = Field(default_factory=list)
    warnings: list[PipelineWarningResponse] = Field(default_factory=list)
    skipped_files: list[str] = Field(default_factory=list)
