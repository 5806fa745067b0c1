"""
tests/test_insights.py

Pytest unit tests for the insight rule battery and its ordering.
"""

from __future__ import annotations

import pytest

from dashboard.config import InsightSettings, MetricsSettings
from dashboard.domain.records import MapConfigEntry, NormalizedRecord, TableKind
from dashboard.services.period_aggregator import aggregate
from insights.base import Severity
from insights.generator import InsightGenerator
from metrics.engine import MetricsEngine


def _record(table_kind: str, period: str, entity_id: str, documents: int, **attributes) -> NormalizedRecord:
    return NormalizedRecord(
        table_kind=table_kind,
        period=period,
        entity_id=entity_id,
        document_count=documents,
        kilocharacter_count=0.0,
        attributes=attributes,
    )


@pytest.fixture()
def declining_timeline():
    return aggregate(
        [
            [
                _record(TableKind.DATE_SUMMARY, "202401", "2024-01-01", 100),
                _record(TableKind.DATE_SUMMARY, "202401", "2024-01-02", 50),
                _record(TableKind.DOC_SUMMARY, "202401", "850", 120),
                _record(TableKind.DOC_SUMMARY, "202401", "810", 30),
            ],
            [
                _record(TableKind.DATE_SUMMARY, "202402", "2024-02-01", 80),
                _record(TableKind.DOC_SUMMARY, "202402", "850", 70),
                _record(TableKind.DOC_SUMMARY, "202402", "810", 10),
            ],
        ]
    )


@pytest.fixture()
def generator() -> InsightGenerator:
    return InsightGenerator(InsightSettings())


def _snapshot(timeline, **kwargs):
    return MetricsEngine(MetricsSettings()).compute(timeline, **kwargs)


def test_insights_sorted_by_severity_then_rule_order(declining_timeline, generator) -> None:
    insights = generator.generate(_snapshot(declining_timeline))

    assert [(i.template_key, i.severity) for i in insights] == [
        ("mom_decline", Severity.CRITICAL),
        ("entity_dominance", Severity.HIGH),
        ("trend_direction", Severity.MODERATE),
        ("top_mover", Severity.LOW),
    ]
    decline = insights[0]
    assert decline.values["period"] == "202402"
    assert decline.values["growth_rate"] == pytest.approx(-0.4667)
    assert "202401" in decline.message


def test_identical_snapshots_give_identical_insights(declining_timeline, generator) -> None:
    first = generator.generate(_snapshot(declining_timeline))
    second = generator.generate(_snapshot(declining_timeline))
    assert first == second


def test_quiet_data_produces_no_insights(generator) -> None:
    timeline = aggregate(
        [
            [
                _record(TableKind.DATE_SUMMARY, "202401", "2024-01-01", 100),
                _record(TableKind.DATE_SUMMARY, "202402", "2024-02-01", 100),
            ]
        ]
    )
    assert generator.generate(_snapshot(timeline)) == ()


def test_growth_spike_uses_configured_threshold() -> None:
    timeline = aggregate(
        [
            [
                _record(TableKind.DATE_SUMMARY, "202401", "2024-01-01", 100),
                _record(TableKind.DATE_SUMMARY, "202402", "2024-02-01", 130),
            ]
        ]
    )
    snapshot = _snapshot(timeline)

    default_keys = [i.template_key for i in InsightGenerator(InsightSettings()).generate(snapshot)]
    strict_keys = [i.template_key for i in InsightGenerator(InsightSettings(growth_threshold=0.2)).generate(snapshot)]

    assert "mom_growth_spike" not in default_keys
    assert "mom_growth_spike" in strict_keys


def test_unmapped_traffic_is_reported(generator) -> None:
    timeline = aggregate(
        [
            [
                _record(TableKind.DATE_SUMMARY, "202401", "2024-01-01", 15),
                _record(TableKind.TP_DOC_SUMMARY, "202401", "P1 | 850", 10, partner_id="P1", document_type="850"),
                _record(TableKind.TP_DOC_SUMMARY, "202401", "P2 | 810", 5, partner_id="P2", document_type="810"),
            ]
        ]
    )
    maps = [MapConfigEntry("Inbound", "P1", "ACME", "850", "MAP_850_IN")]

    insights = generator.generate(_snapshot(timeline, map_configuration=maps))

    unmapped = [i for i in insights if i.template_key == "unmapped_traffic"]
    assert len(unmapped) == 1
    assert unmapped[0].values["pairs"] == ["P2/810"]
    assert unmapped[0].severity == Severity.HIGH
