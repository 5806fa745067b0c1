"""
dashboard/services/table_extractor.py

Turns one physical file into zero or more ``RawTable`` objects.

This is the only pipeline stage that performs I/O. Reading bytes is
awaited; parsing the bytes that are already in memory is synchronous.
Workbooks are read with pandas (openpyxl / xlrd engines); delimited text
is read with the standard ``csv`` module.
"""

from __future__ import annotations

import csv
import io
import logging
from typing import Any, Iterable, Sequence

import pandas as pd

from dashboard.config import UploadSettings, get_upload_settings
from dashboard.domain.records import Cell, FileDescriptor, FileFormat, FileRole, RawTable, TableKind
from dashboard.domain.sources import FileSource
from dashboard.errors import FileSizeError, ParseError
from dashboard.mappers.column_aliases import match_table_kind
from dashboard.validators.cell_parsers import is_blank, is_empty_row, is_total_row

logger = logging.getLogger(__name__)

_ROLE_TABLE_KINDS: dict[str, str] = {
    FileRole.CROSS_REFERENCE: TableKind.CROSS_REFERENCE,
    FileRole.PARTNER_REPORT: TableKind.PARTNER_REPORT,
    FileRole.MAP_CONFIGURATION: TableKind.MAP_CONFIGURATION,
}


def normalize_cell(value: Any) -> Cell:
    """
    Convert library cell values (numpy scalars, pandas timestamps, NaN) into
    plain ``str | int | float | date | None``.
    """

    if value is None:
        return None
    if not isinstance(value, (str, bytes)) and pd.isna(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if hasattr(value, "item") and not isinstance(value, (str, bytes)):
        value = value.item()
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float):
        return int(value) if value.is_integer() else value
    if isinstance(value, str):
        stripped = value.strip()
        return stripped if stripped else None
    if isinstance(value, int):
        return value
    if hasattr(value, "isoformat"):
        return value
    return str(value)


def build_raw_table(
    *,
    source_file: str,
    table_kind: str,
    rows: Iterable[Sequence[Any]],
    sheet_name: str | None = None,
) -> RawTable | None:
    """
    Detect the header row and filter data rows.

    The first non-empty row is the header. Entirely empty rows and
    total/subtotal rows are dropped. Returns ``None`` when no header exists.
    """

    header: tuple[str, ...] | None = None
    data_rows: list[tuple[Cell, ...]] = []
    row_numbers: list[int] = []

    for row_number, raw_row in enumerate(rows, start=1):
        cells = tuple(normalize_cell(value) for value in raw_row)
        if is_empty_row(cells):
            continue
        if header is None:
            header = tuple("" if is_blank(cell) else str(cell).strip() for cell in cells)
            continue
        if is_total_row(cells):
            continue
        width = len(header)
        if len(cells) < width:
            cells = cells + (None,) * (width - len(cells))
        data_rows.append(cells)
        row_numbers.append(row_number)

    if header is None:
        return None

    # Ragged rows may be wider than the header; pad the header to match.
    widest = max((len(row) for row in data_rows), default=len(header))
    if widest > len(header):
        header = header + ("",) * (widest - len(header))

    return RawTable(
        source_file=source_file,
        table_kind=table_kind,
        header_row=header,
        data_rows=tuple(data_rows),
        row_numbers=tuple(row_numbers),
        sheet_name=sheet_name,
    )


def infer_delimited_kind(descriptor: FileDescriptor) -> str:
    """
    Table kind for a delimited file: the role's kind for auxiliary files,
    otherwise the kind named by the file's Type token (default Date_Summary).
    """

    role_kind = _ROLE_TABLE_KINDS.get(descriptor.role)
    if role_kind is not None:
        return role_kind
    return match_table_kind(descriptor.file_type or "") or TableKind.DATE_SUMMARY


class TableExtractor:
    """
    Reads file sources and yields raw tables.
    """

    def __init__(self, *, settings: UploadSettings | None = None) -> None:
        self._settings = settings or get_upload_settings()

    async def extract(self, source: FileSource, descriptor: FileDescriptor) -> list[RawTable]:
        """
        Read *source* and parse it according to *descriptor*.

        Raises
        ------
        FileSizeError
            If the content falls outside the configured size window.
        ParseError
            If the content cannot be parsed.
        """

        try:
            content = await source.read_bytes()
        except OSError as exc:
            raise ParseError(f"File could not be read: {exc}", file_name=descriptor.name) from exc
        self.check_size(descriptor.name, len(content))
        return self.extract_bytes(content, descriptor)

    def check_size(self, file_name: str, size: int) -> None:
        if size > self._settings.max_file_bytes:
            raise FileSizeError(
                f"File is {size} bytes; the limit is {self._settings.max_file_bytes} bytes.",
                file_name=file_name,
                context={"byte_size": size, "max_file_bytes": self._settings.max_file_bytes},
            )
        if size < self._settings.min_file_bytes:
            raise FileSizeError(
                f"File is {size} bytes; at least {self._settings.min_file_bytes} byte(s) required.",
                file_name=file_name,
                context={"byte_size": size, "min_file_bytes": self._settings.min_file_bytes},
            )

    def extract_bytes(self, content: bytes, descriptor: FileDescriptor) -> list[RawTable]:
        if descriptor.kind == FileFormat.DELIMITED:
            table = build_raw_table(
                source_file=descriptor.name,
                table_kind=infer_delimited_kind(descriptor),
                rows=self._read_delimited_rows(content, descriptor),
            )
            return [table] if table is not None else []

        sheets = self._read_workbook(content, descriptor)
        role_kind = _ROLE_TABLE_KINDS.get(descriptor.role)
        if role_kind is not None:
            return self._first_sheet_table(sheets, descriptor, role_kind)

        tables: list[RawTable] = []
        for sheet_name, frame in sheets.items():
            table_kind = match_table_kind(str(sheet_name))
            if table_kind is None:
                logger.debug("Skipping unrecognized sheet file=%r sheet=%r", descriptor.name, sheet_name)
                continue
            table = build_raw_table(
                source_file=descriptor.name,
                table_kind=table_kind,
                rows=frame.itertuples(index=False, name=None),
                sheet_name=str(sheet_name),
            )
            if table is not None:
                tables.append(table)
        return tables

    @staticmethod
    def _first_sheet_table(
        sheets: dict[str, pd.DataFrame],
        descriptor: FileDescriptor,
        table_kind: str,
    ) -> list[RawTable]:
        for sheet_name, frame in sheets.items():
            table = build_raw_table(
                source_file=descriptor.name,
                table_kind=table_kind,
                rows=frame.itertuples(index=False, name=None),
                sheet_name=str(sheet_name),
            )
            if table is not None:
                return [table]
        return []

    @staticmethod
    def _read_workbook(content: bytes, descriptor: FileDescriptor) -> dict[str, pd.DataFrame]:
        try:
            return pd.read_excel(io.BytesIO(content), sheet_name=None, header=None, dtype=object)
        except Exception as exc:  # noqa: BLE001
            raise ParseError(
                f"Workbook could not be read: {exc}",
                file_name=descriptor.name,
            ) from exc

    @staticmethod
    def _read_delimited_rows(content: bytes, descriptor: FileDescriptor) -> list[list[str]]:
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError:
            try:
                text = content.decode("cp1252")
            except UnicodeDecodeError as exc:
                raise ParseError("Delimited file must be UTF-8 or Windows-1252 encoded.", file_name=descriptor.name) from exc

        if "\x00" in text:
            raise ParseError("Delimited file contains binary content.", file_name=descriptor.name)

        delimiter = "\t" if descriptor.extension == "tsv" else ","
        try:
            return list(csv.reader(io.StringIO(text, newline=""), delimiter=delimiter))
        except csv.Error as exc:
            raise ParseError(f"Invalid delimited format: {exc}", file_name=descriptor.name) from exc
