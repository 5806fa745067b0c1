"""
dashboard/schemas package marker.
"""

from dashboard.schemas.analysis import (
    AnalysisResponse,
    EntityRankingResponse,
    FileDescriptorResponse,
    InsightResponse,
    PeriodSummaryResponse,
    PipelineWarningResponse,
)

__all__ = [
    "AnalysisResponse",
    "EntityRankingResponse",
    "FileDescriptorResponse",
    "InsightResponse",
    "PeriodSummaryResponse",
    "PipelineWarningResponse",
]
