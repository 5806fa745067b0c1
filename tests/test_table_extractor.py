"""
tests/test_table_extractor.py

Pytest unit tests for TableExtractor.

Workbooks are built in memory with pandas/openpyxl; no files on disk.
"""

from __future__ import annotations

import asyncio

import pytest

from dashboard.config import UploadSettings
from dashboard.domain.records import FileRole, TableKind
from dashboard.domain.sources import InMemorySource
from dashboard.errors import FileSizeError, ParseError
from dashboard.services.file_classifier import FileClassifier
from dashboard.services.table_extractor import TableExtractor, infer_delimited_kind


def _extract(extractor: TableExtractor, name: str, content: bytes):
    source = InMemorySource(name, content)
    descriptor = FileClassifier().classify_primary([source])[0]
    return asyncio.run(extractor.extract(source, descriptor))


@pytest.fixture()
def extractor() -> TableExtractor:
    return TableExtractor(settings=UploadSettings())


# ---------------------------------------------------------------------------
# Delimited text
# ---------------------------------------------------------------------------


def test_csv_skips_empty_and_total_rows_and_keeps_row_numbers(extractor, csv_bytes) -> None:
    content = csv_bytes(
        [
            ["Date", "Documents", "KCs"],
            ["2024-01-01", 100, 10],
            [],
            ["2024-01-02", 50, 5],
            ["Total", 150, 15],
        ]
    )

    tables = _extract(extractor, "Acme_Billing_202401.csv", content)

    assert len(tables) == 1
    table = tables[0]
    assert table.table_kind == TableKind.DATE_SUMMARY
    assert table.header_row == ("Date", "Documents", "KCs")
    assert [row[0] for row in table.data_rows] == ["2024-01-01", "2024-01-02"]
    assert table.row_numbers == (2, 4)


def test_csv_kind_follows_type_token() -> None:
    descriptor = FileClassifier().classify_primary([InMemorySource("Acme_TPSummary_202401.csv", b"x")])[0]
    assert infer_delimited_kind(descriptor) == TableKind.TP_SUMMARY


def test_csv_with_only_blank_lines_yields_no_table(extractor) -> None:
    assert _extract(extractor, "Acme_Billing_202401.csv", b"\n\n\n") == []


def test_binary_content_in_csv_is_a_parse_error(extractor) -> None:
    with pytest.raises(ParseError) as excinfo:
        _extract(extractor, "Acme_Billing_202401.csv", b"Date,Documents\x00\x01\n")
    assert excinfo.value.file_name == "Acme_Billing_202401.csv"


def test_cp1252_text_is_accepted(extractor) -> None:
    content = "Hub,Documents\nZürich,5\n".encode("cp1252")
    tables = _extract(extractor, "Acme_HubSummary_202401.csv", content)
    assert tables[0].data_rows[0][0] == "Zürich"


# ---------------------------------------------------------------------------
# Workbooks
# ---------------------------------------------------------------------------


def test_workbook_sheets_are_matched_by_name(extractor, workbook_bytes) -> None:
    content = workbook_bytes(
        {
            "Date_Summary": [["Date", "Documents", "KCs"], ["2024-01-01", 100, 10], ["Grand Total", 100, 10]],
            "Notes": [["Comment"], ["ignore me"]],
            "TP_Doc_Summary": [["TP ID", "Doc Type", "Documents"], ["P1", "850", 7]],
        }
    )

    tables = _extract(extractor, "Acme_Billing_202401.xlsx", content)

    assert [table.table_kind for table in tables] == [TableKind.DATE_SUMMARY, TableKind.TP_DOC_SUMMARY]
    assert [table.sheet_name for table in tables] == ["Date_Summary", "TP_Doc_Summary"]
    date_table = tables[0]
    assert len(date_table.data_rows) == 1
    assert date_table.data_rows[0][1] == 100


def test_partner_named_like_a_total_is_kept(extractor, workbook_bytes) -> None:
    content = workbook_bytes(
        {
            "TP_Summary": [
                ["TP ID", "Documents"],
                ["Total Quality Logistics", 20],
                ["Walmart", 10],
                ["Total", 30],
            ]
        }
    )

    tables = _extract(extractor, "Acme_Billing_202401.xlsx", content)

    assert [row[0] for row in tables[0].data_rows] == ["Total Quality Logistics", "Walmart"]


def test_auxiliary_workbook_uses_first_sheet(extractor, workbook_bytes) -> None:
    content = workbook_bytes({"Sheet1": [["ID", "Name", "Region"], ["P1", "Partner One", "East"]]})
    source = InMemorySource("partners.xlsx", content)
    descriptor = FileClassifier().classify_auxiliary(FileRole.CROSS_REFERENCE, source)

    tables = asyncio.run(extractor.extract(source, descriptor))

    assert len(tables) == 1
    assert tables[0].table_kind == TableKind.CROSS_REFERENCE
    assert tables[0].header_row == ("ID", "Name", "Region")


def test_unreadable_workbook_is_a_parse_error(extractor) -> None:
    with pytest.raises(ParseError):
        _extract(extractor, "Acme_Billing_202401.xlsx", b"definitely not a zip archive")


# ---------------------------------------------------------------------------
# Size window
# ---------------------------------------------------------------------------


def test_file_above_size_limit_is_rejected() -> None:
    extractor = TableExtractor(settings=UploadSettings(max_file_bytes=10))
    with pytest.raises(FileSizeError) as excinfo:
        _extract(extractor, "Acme_Billing_202401.csv", b"Date,Documents\n2024-01-01,1\n")
    assert excinfo.value.context["max_file_bytes"] == 10


def test_empty_file_is_rejected(extractor) -> None:
    with pytest.raises(FileSizeError):
        _extract(extractor, "Acme_Billing_202401.csv", b"")
