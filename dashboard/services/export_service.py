"""
dashboard/services/export_service.py

Flat tabular exports of an analysis result.

Datasets
--------
periods   - one row per period (totals, growth, KC per document)
rankings  - one row per (entity kind, entity)
insights  - one row per insight; each supporting value gets a
            ``values__<name>`` column
warnings  - one row per collected pipeline warning

Every row starts with ``customer`` and the dataset's key columns, so CSV
column order is stable across runs. List values (source files, unmapped
pairs) become ``"; "``-joined text; mappings inside insight values are
written as JSON text.

Period filters (``YYYYMM``, inclusive) apply to ``periods`` only.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Mapping

from dashboard.services.analysis_service import AnalysisResult

VALID_DATASETS: frozenset[str] = frozenset({"periods", "rankings", "insights", "warnings"})
_MAX_LIMIT: int = 100_000
_LIST_SEPARATOR = "; "

_LEADING_FIELDS: dict[str, tuple[str, ...]] = {
    "periods": ("customer", "period"),
    "rankings": ("customer", "table_kind", "rank", "entity_id"),
    "insights": ("customer", "position", "severity", "template_key"),
    "warnings": ("customer", "code", "file_name", "row_number"),
}


@dataclass(frozen=True)
class ExportResult:
    """
    One exported dataset; ``fields`` is the CSV header order.
    """

    dataset: str
    rows: list[dict[str, Any]] = field(default_factory=list)
    fields: list[str] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)


def cell_value(value: Any) -> Any:
    """
    Spreadsheet-safe cell: sequences are joined, mappings become JSON text.
    """

    if isinstance(value, (list, tuple)):
        return _LIST_SEPARATOR.join(str(item) for item in value)
    if isinstance(value, Mapping):
        return json.dumps(value, default=str, sort_keys=True)
    return value


def insight_value_columns(values: Mapping[str, Any]) -> dict[str, Any]:
    return {f"values__{key}": cell_value(value) for key, value in values.items() if value is not None}


def ordered_fields(dataset: str, rows: list[dict[str, Any]]) -> list[str]:
    """
    Leading columns of *dataset* first, then every other key in first-seen
    order across rows.
    """

    seen: dict[str, None] = {name: None for name in _LEADING_FIELDS[dataset]}
    for row in rows:
        for key in row:
            seen.setdefault(key, None)
    return list(seen)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class ExportService:
    """
    Flatten one analysis result for export. Read-only.
    """

    def export(
        self,
        result: AnalysisResult,
        *,
        dataset: str = "periods",
        period_from: str | None = None,
        period_to: str | None = None,
        table_kind: str | None = None,
        limit: int = 10_000,
    ) -> ExportResult:
        """
        Parameters
        ----------
        result:      Completed analysis run.
        dataset:     One of ``"periods"``, ``"rankings"``, ``"insights"``, ``"warnings"``.
        period_from: Inclusive ``YYYYMM`` lower bound (periods dataset).
        period_to:   Inclusive ``YYYYMM`` upper bound (periods dataset).
        table_kind:  Entity kind filter (rankings dataset).
        limit:       Maximum rows returned; capped at ``_MAX_LIMIT``.

        Raises
        ------
        ValueError: When *dataset* is not one of the supported values.
        """
        if dataset not in VALID_DATASETS:
            raise ValueError(f"Unknown dataset {dataset!r}. Valid: {sorted(VALID_DATASETS)}")
        safe_limit = max(1, min(limit, _MAX_LIMIT))

        if dataset == "periods":
            rows = self._period_rows(result, period_from, period_to)
        elif dataset == "rankings":
            rows = self._ranking_rows(result, table_kind)
        elif dataset == "insights":
            rows = self._insight_rows(result)
        else:
            rows = [{"customer": result.customer, **asdict(warning)} for warning in result.warnings]

        rows = rows[:safe_limit]
        return ExportResult(dataset=dataset, rows=rows, fields=ordered_fields(dataset, rows))

    # ------------------------------------------------------------------
    # Dataset handlers
    # ------------------------------------------------------------------

    @staticmethod
    def _period_rows(result: AnalysisResult, period_from: str | None, period_to: str | None) -> list[dict[str, Any]]:
        rows = []
        for summary in result.snapshot.period_summaries:
            if period_from and summary.period < period_from:
                continue
            if period_to and summary.period > period_to:
                continue
            row = {"customer": result.customer, **asdict(summary)}
            row["source_files"] = cell_value(summary.source_files)
            rows.append(row)
        return rows

    @staticmethod
    def _ranking_rows(result: AnalysisResult, table_kind: str | None) -> list[dict[str, Any]]:
        rows = []
        for kind, rankings in result.snapshot.rankings.items():
            if table_kind and kind != table_kind:
                continue
            for ranking in rankings:
                rows.append({"customer": result.customer, "table_kind": kind, **asdict(ranking)})
        return rows

    @staticmethod
    def _insight_rows(result: AnalysisResult) -> list[dict[str, Any]]:
        rows = []
        for position, insight in enumerate(result.insights, start=1):
            row: dict[str, Any] = {
                "customer": result.customer,
                "position": position,
                "category": insight.category,
                "severity": insight.severity,
                "template_key": insight.template_key,
                "message": insight.message,
            }
            row.update(insight_value_columns(insight.values))
            rows.append(row)
        return rows


# ---------------------------------------------------------------------------
# Singleton factory
# ---------------------------------------------------------------------------


_service: ExportService | None = None


def get_export_service() -> ExportService:
    global _service
    if _service is None:
        _service = ExportService()
    return _service
