"""
tests/test_export_service.py

Pytest unit tests for ExportService and the structured log helper.
"""

from __future__ import annotations

import asyncio
import json
import logging

import pytest

from dashboard.config import InsightSettings, MetricsSettings, UploadSettings
from dashboard.domain.sources import InMemorySource, UploadBatch
from dashboard.logging_utils import build_event_payload, log_event
from dashboard.services.analysis_service import AnalysisService
from dashboard.services.export_service import ExportService, cell_value, ordered_fields
from insights.generator import InsightGenerator
from metrics.engine import MetricsEngine


@pytest.fixture()
def result():
    service = AnalysisService(
        metrics_engine=MetricsEngine(MetricsSettings()),
        insight_generator=InsightGenerator(InsightSettings()),
        settings=UploadSettings(),
    )
    batch = UploadBatch(
        primary=[
            InMemorySource("Acme_Billing_202401.csv", b"Date,Documents,KCs\n2024-01-01,100,20\n2024-01-02,50,10\n"),
            InMemorySource("Acme_Billing_202402.csv", b"Date,Documents,KCs\n2024-02-01,80,16\n"),
        ]
    )
    return asyncio.run(service.run(batch))


# ---------------------------------------------------------------------------
# ExportService
# ---------------------------------------------------------------------------


def test_period_rows_lead_with_customer_and_period(result) -> None:
    exported = ExportService().export(result, dataset="periods")

    assert exported.dataset == "periods"
    assert exported.row_count == 2
    assert exported.fields[:2] == ["customer", "period"]
    assert exported.rows[0]["source_files"] == "Acme_Billing_202401.csv"


def test_period_filter_is_inclusive(result) -> None:
    exported = ExportService().export(result, dataset="periods", period_from="202402", period_to="202402")

    assert [row["period"] for row in exported.rows] == ["202402"]


def test_insight_values_become_columns(result) -> None:
    exported = ExportService().export(result, dataset="insights", limit=1)

    assert exported.row_count == 1
    row = exported.rows[0]
    assert row["template_key"] == "mom_decline"
    assert row["values__previous_period"] == "202401"
    assert exported.fields[:4] == ["customer", "position", "severity", "template_key"]


def test_unknown_dataset_is_rejected(result) -> None:
    with pytest.raises(ValueError):
        ExportService().export(result, dataset="customers")


def test_cell_value_joins_lists_and_serialises_mappings() -> None:
    assert cell_value(("P1/850", "P2/810")) == "P1/850; P2/810"
    assert cell_value({"b": 1, "a": 2}) == '{"a": 2, "b": 1}'
    assert cell_value(3.5) == 3.5


def test_ordered_fields_keeps_leading_columns_for_empty_dataset() -> None:
    assert ordered_fields("warnings", []) == ["customer", "code", "file_name", "row_number"]


# ---------------------------------------------------------------------------
# log_event
# ---------------------------------------------------------------------------


def test_event_payload_drops_none_and_lists_tuples() -> None:
    payload = build_event_payload("analysis_service", "analysis_started", {"roles": ("b", "a"), "customer": None})

    assert payload == {"event": "analysis_started", "component": "analysis_service", "roles": ["b", "a"]}


def test_log_event_tags_component_from_logger_name(caplog) -> None:
    logger = logging.getLogger("dashboard.services.analysis_service")

    with caplog.at_level(logging.INFO, logger="dashboard.services.analysis_service"):
        log_event(logger, logging.INFO, "analysis_completed", periods=2)

    line = json.loads(caplog.records[-1].getMessage())
    assert line == {"event": "analysis_completed", "component": "analysis_service", "periods": 2}
