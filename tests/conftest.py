from __future__ import annotations

import io
from typing import Any, Callable

import pandas as pd
import pytest

from dashboard.domain.records import NormalizedRecord
from dashboard.domain.sources import FileSource


def build_workbook(sheets: dict[str, list[list[Any]]]) -> bytes:
    """Write one sheet per entry; the first row of each entry is the header."""
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for sheet_name, rows in sheets.items():
            pd.DataFrame(rows[1:], columns=rows[0]).to_excel(writer, sheet_name=sheet_name, index=False)
    return buffer.getvalue()


def build_csv(rows: list[list[Any]]) -> bytes:
    return "\n".join(",".join(str(value) for value in row) for row in rows).encode("utf-8")


class ExplodingSource(FileSource):
    """Fails the test if anything tries to read it."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.reads = 0

    @property
    def byte_size(self) -> int:
        return 10

    async def read_bytes(self) -> bytes:
        self.reads += 1
        raise AssertionError(f"{self.name} must not be read")


@pytest.fixture()
def workbook_bytes() -> Callable[[dict[str, list[list[Any]]]], bytes]:
    return build_workbook


@pytest.fixture()
def csv_bytes() -> Callable[[list[list[Any]]], bytes]:
    return build_csv


@pytest.fixture()
def make_record() -> Callable[..., NormalizedRecord]:
    def _make(
        table_kind: str,
        period: str,
        entity_id: str,
        documents: int,
        kilocharacters: float = 0.0,
        source_file: str = "Acme_Billing_202401.xlsx",
        **attributes: Any,
    ) -> NormalizedRecord:
        return NormalizedRecord(
            table_kind=table_kind,
            period=period,
            entity_id=entity_id,
            document_count=documents,
            kilocharacter_count=kilocharacters,
            attributes=dict(attributes),
            source_file=source_file,
        )

    return _make


@pytest.fixture()
def exploding_source() -> type[ExplodingSource]:
    return ExplodingSource
