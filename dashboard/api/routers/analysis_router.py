"""
dashboard/api/routers/analysis_router.py

Analysis HTTP endpoint.

POST /analysis

Multipart form fields
---------------------
files             : one or more primary files, ``Customer_Type_YYYYMM.ext``
cross_reference   : optional ID -> name/region file
partner_report    : optional trading partner report
map_configuration : optional map configuration file

Batch-fatal errors (bad file names, mixed customers, empty dataset) and
parse errors under the ``abort`` policy map to HTTP 422 with the error's
structured payload as ``detail``.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from dashboard.api.dependencies import close_upload_batch, get_upload_batch
from dashboard.domain.sources import UploadBatch
from dashboard.errors import PipelineError
from dashboard.schemas.analysis import (
    AnalysisResponse,
    EntityRankingResponse,
    FileDescriptorResponse,
    InsightResponse,
    PeriodSummaryResponse,
    PipelineWarningResponse,
)
from dashboard.services.analysis_service import AnalysisResult, AnalysisService, get_analysis_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["analysis"])


async def run_analysis(
    service: AnalysisService,
    batch: UploadBatch,
    parse_error_policy: str | None,
) -> AnalysisResult:
    """
    Run the pipeline and translate pipeline errors into HTTP errors.
    """

    try:
        return await service.run(batch, parse_error_policy=parse_error_policy)
    except PipelineError as exc:
        logger.warning("Analysis rejected code=%s file=%r: %s", exc.code, exc.file_name, exc.message)
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.to_dict(),
        ) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    finally:
        await close_upload_batch(batch)


def build_analysis_response(result: AnalysisResult) -> AnalysisResponse:
    snapshot = result.snapshot.to_dict()
    return AnalysisResponse(
        customer=result.customer,
        periods=list(result.timeline.periods),
        files=[
            FileDescriptorResponse(
                name=descriptor.name,
                byte_size=descriptor.byte_size,
                role=descriptor.role,
                kind=descriptor.kind,
                detected_customer=descriptor.detected_customer,
                detected_period=descriptor.detected_period,
                file_type=descriptor.file_type,
            )
            for descriptor in result.descriptors
        ],
        period_summaries=[PeriodSummaryResponse(**summary) for summary in snapshot["period_summaries"]],
        rankings={
            kind: [EntityRankingResponse(**ranking) for ranking in rankings]
            for kind, rankings in snapshot["rankings"].items()
        },
        concentration=snapshot["concentration"],
        movers={kind: list(movements) for kind, movements in snapshot["movers"].items()},
        seasonality=snapshot["seasonality"],
        trend=snapshot["trend"],
        reconciliation=snapshot["reconciliation"],
        insights=[
            InsightResponse(
                category=insight.category,
                severity=insight.severity,
                template_key=insight.template_key,
                message=insight.message,
                values=insight.values,
            )
            for insight in result.insights
        ],
        warnings=[
            PipelineWarningResponse(
                code=warning.code,
                message=warning.message,
                file_name=warning.file_name,
                row_number=warning.row_number,
                column=warning.column,
            )
            for warning in result.warnings
        ],
        skipped_files=list(result.skipped_files),
    )


@router.post("/analysis", response_model=AnalysisResponse)
async def analyze_upload(
    batch: UploadBatch = Depends(get_upload_batch),
    parse_error_policy: str | None = Query(
        default=None,
        description='"skip" records unreadable files as warnings; "abort" fails the request.',
    ),
    service: AnalysisService = Depends(get_analysis_service),
) -> AnalysisResponse:
    """
    Analyze one customer's billing files and return metrics and insights.
    """

    result = await run_analysis(service, batch, parse_error_policy)
    return build_analysis_response(result)
