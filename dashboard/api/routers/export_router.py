"""
dashboard/api/routers/export_router.py

Flat export endpoint for spreadsheet / BI tools.

POST /analysis/export

Query parameters
----------------
dataset       : "periods" | "rankings" | "insights" | "warnings"  (default: "periods")
output_format : "csv" | "json"                                     (default: "csv")
period_from   : optional YYYYMM lower bound (inclusive, periods only)
period_to     : optional YYYYMM upper bound (inclusive, periods only)
table_kind    : optional entity kind filter (rankings only)
limit         : max rows returned, 1-100 000                       (default: 10 000)

Responses
---------
CSV  -> StreamingResponse, Content-Type: text/csv
        Content-Disposition: attachment; filename=<customer>_<dataset>_export.csv
JSON -> JSONResponse, Content-Type: application/json
        Body: {"dataset": str, "customer": str, "rows": int, "fields": list, "data": list[dict]}

The upload form is the same as ``POST /analysis``. All flattening lives in
ExportService; the router only handles HTTP plumbing.
"""

from __future__ import annotations

import csv
import io
import logging
import re
from typing import Iterator

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse, StreamingResponse

from dashboard.api.dependencies import get_upload_batch
from dashboard.api.routers.analysis_router import run_analysis
from dashboard.domain.sources import UploadBatch
from dashboard.services.analysis_service import AnalysisService, get_analysis_service
from dashboard.services.export_service import VALID_DATASETS, ExportResult, ExportService, get_export_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["export"])

_VALID_FORMATS = frozenset({"csv", "json"})
_PERIOD_RE = re.compile(r"^\d{6}$")


# ---------------------------------------------------------------------------
# Serialisation helpers (no business logic)
# ---------------------------------------------------------------------------


def _to_csv_streaming(result: ExportResult, filename: str) -> StreamingResponse:
    """Stream *result* as a UTF-8 CSV file download."""

    def _generate() -> Iterator[str]:
        buf = io.StringIO()
        writer = csv.DictWriter(
            buf,
            fieldnames=result.fields,
            extrasaction="ignore",
            restval="",
            lineterminator="\r\n",
        )
        writer.writeheader()
        yield buf.getvalue()

        for row in result.rows:
            buf.seek(0)
            buf.truncate(0)
            # None -> "" so blank cells stay blank in spreadsheets
            clean = {k: ("" if v is None else v) for k, v in row.items()}
            writer.writerow(clean)
            yield buf.getvalue()

    return StreamingResponse(
        content=_generate(),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "X-Row-Count": str(result.row_count),
        },
    )


def _to_json_response(result: ExportResult, customer: str | None) -> JSONResponse:
    """Return *result* as a structured JSON response."""
    return JSONResponse(
        content={
            "dataset": result.dataset,
            "customer": customer,
            "rows": result.row_count,
            "fields": result.fields,
            "data": result.rows,
        }
    )


def _safe_filename_part(value: str | None) -> str:
    return re.sub(r"[^A-Za-z0-9_-]+", "_", value or "analysis").strip("_") or "analysis"


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------


@router.post("/analysis/export", summary="Export analysis results as flat tables", response_model=None)
async def export_analysis(
    batch: UploadBatch = Depends(get_upload_batch),
    dataset: str = Query(
        default="periods",
        description='Dataset to export: "periods", "rankings", "insights", or "warnings".',
    ),
    output_format: str = Query(
        default="csv",
        alias="format",
        description='Output format: "csv" (file download) or "json".',
    ),
    period_from: str | None = Query(default=None, description="Inclusive start period (YYYYMM)."),
    period_to: str | None = Query(default=None, description="Inclusive end period (YYYYMM)."),
    table_kind: str | None = Query(default=None, description="Entity kind filter for rankings."),
    parse_error_policy: str | None = Query(default=None, description='"skip" or "abort".'),
    limit: int = Query(
        default=10_000,
        ge=1,
        le=100_000,
        description="Maximum number of rows to return.",
    ),
    analysis_service: AnalysisService = Depends(get_analysis_service),
    export_service: ExportService = Depends(get_export_service),
) -> StreamingResponse | JSONResponse:
    """
    Analyze the uploaded files and return one dataset of the result as a
    CSV download or JSON body.
    """
    # --- Validate query params ---
    if dataset not in VALID_DATASETS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid dataset {dataset!r}. Must be one of: {sorted(VALID_DATASETS)}.",
        )
    if output_format not in _VALID_FORMATS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid format {output_format!r}. Must be one of: {sorted(_VALID_FORMATS)}.",
        )
    for label, value in (("period_from", period_from), ("period_to", period_to)):
        if value is not None and not _PERIOD_RE.match(value):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{label} must be a YYYYMM period.",
            )
    if period_from and period_to and period_from > period_to:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="period_from must not be later than period_to.",
        )

    analysis = await run_analysis(analysis_service, batch, parse_error_policy)

    # --- Delegate all data work to the service ---
    try:
        result = export_service.export(
            analysis,
            dataset=dataset,
            period_from=period_from,
            period_to=period_to,
            table_kind=table_kind,
            limit=limit,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    logger.info(
        "Analysis export dataset=%r format=%r customer=%r rows=%d",
        dataset,
        output_format,
        analysis.customer,
        result.row_count,
    )

    # --- Serialise ---
    if output_format == "csv":
        filename = f"{_safe_filename_part(analysis.customer)}_{dataset}_export.csv"
        return _to_csv_streaming(result, filename)
    return _to_json_response(result, analysis.customer)
