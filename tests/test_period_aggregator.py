"""
tests/test_period_aggregator.py

Pytest unit tests for TimelineBuilder.
"""

from __future__ import annotations

import pytest

from dashboard.domain.records import TableKind
from dashboard.errors import EmptyDatasetError
from dashboard.services.period_aggregator import TimelineBuilder, aggregate


def test_duplicate_entity_sums_counts_without_duplicating(make_record) -> None:
    first = make_record(TableKind.TP_SUMMARY, "202401", "P1", 10, 2.0, source_file="a.xlsx", partner_name="Old")
    second = make_record(TableKind.TP_SUMMARY, "202401", "P1", 5, 1.0, source_file="b.xlsx", partner_name="New")
    other = make_record(TableKind.TP_SUMMARY, "202401", "P2", 7, 0.0, source_file="b.xlsx")

    timeline = aggregate([[first], [second, other]])

    records = timeline.records("202401", TableKind.TP_SUMMARY)
    assert [record.entity_id for record in records] == ["P1", "P2"]
    merged = records[0]
    assert merged.document_count == 15
    assert merged.kilocharacter_count == pytest.approx(3.0)
    assert merged.attributes["partner_name"] == "New"
    assert merged.source_file == "b.xlsx"


def test_merged_document_type_keeps_every_direction(make_record) -> None:
    inbound = make_record(TableKind.DOC_SUMMARY, "202401", "850", 12, document_type="850", direction="Inbound")
    outbound = make_record(TableKind.DOC_SUMMARY, "202401", "850", 8, document_type="850", direction="Outbound")
    again = make_record(TableKind.DOC_SUMMARY, "202401", "850", 1, document_type="850", direction="inbound")

    merged = aggregate([[inbound, outbound, again]]).records("202401", TableKind.DOC_SUMMARY)

    assert len(merged) == 1
    assert merged[0].document_count == 21
    assert merged[0].attributes["direction"] == "Inbound / Outbound"


def test_periods_are_sorted_and_provenance_is_ordered(make_record) -> None:
    builder = TimelineBuilder()
    builder.add([make_record(TableKind.DATE_SUMMARY, "202402", "2024-02-01", 80, source_file="feb.csv")])
    builder.add([make_record(TableKind.DATE_SUMMARY, "202401", "2024-01-01", 100, source_file="jan.csv")])
    builder.add([make_record(TableKind.DOC_SUMMARY, "202401", "850", 100, source_file="jan.xlsx")])
    builder.add([make_record(TableKind.DATE_SUMMARY, "202401", "2024-01-02", 50, source_file="jan.csv")])

    timeline = builder.build()

    assert timeline.periods == ("202401", "202402")
    assert timeline.provenance["202401"] == ("jan.csv", "jan.xlsx")
    assert timeline.kinds_in("202401") == (TableKind.DATE_SUMMARY, TableKind.DOC_SUMMARY)
    assert timeline.record_count == 4
    assert [r.entity_id for r in timeline.iter_kind(TableKind.DATE_SUMMARY)] == [
        "2024-01-01",
        "2024-01-02",
        "2024-02-01",
    ]


def test_no_records_is_an_empty_dataset() -> None:
    with pytest.raises(EmptyDatasetError) as excinfo:
        aggregate([[], []])
    assert excinfo.value.is_critical
