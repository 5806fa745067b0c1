"""
dashboard/services/record_normalizer.py

Converts raw tables into canonical records.

Primary table kinds (date, document, hub, partner, partner x document
summaries) become ``NormalizedRecord`` rows keyed by period and entity.
Auxiliary kinds (cross-reference, partner report, map configuration) have
their own fixed column contracts and entry types.

Normalization is deterministic: the same table always yields the same
records in the same order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Sequence

from dashboard import failure_codes
from dashboard.domain.records import (
    PRIMARY_TABLE_KINDS,
    Cell,
    CrossReferenceEntry,
    MapConfigEntry,
    NormalizedRecord,
    PartnerReportEntry,
    PipelineWarning,
    TP_DOC_SEPARATOR,
    RawTable,
    TableKind,
)
from dashboard.errors import ValidationError
from dashboard.mappers.column_aliases import ColumnResolution, ColumnResolver
from dashboard.validators.cell_parsers import ParsedDate, is_blank, parse_date, parse_label, parse_number

_COUNT_FIELDS = ("document_count", "kilocharacter_count")


@dataclass(frozen=True)
class NormalizationResult:
    """
    Records produced from one table plus the problems met along the way.
    """

    records: tuple[NormalizedRecord, ...] = ()
    warnings: tuple[PipelineWarning, ...] = ()


@dataclass(frozen=True)
class AuxiliaryResult:
    entries: tuple[Any, ...] = ()
    warnings: tuple[PipelineWarning, ...] = ()


@dataclass
class _RowContext:
    table: RawTable
    resolution: ColumnResolution
    row: tuple[Cell, ...]
    row_number: int | None
    record_warnings: list[str] = field(default_factory=list)

    def cell(self, canonical_field: str) -> Cell:
        index = self.resolution.index_of(canonical_field)
        if index is None or index >= len(self.row):
            return None
        return self.row[index]

    def label(self, canonical_field: str) -> str:
        return parse_label(self.cell(canonical_field))

    def count(self, canonical_field: str) -> float:
        raw = self.cell(canonical_field)
        parsed = parse_number(raw)
        if not parsed.ok:
            self.record_warnings.append(f"{canonical_field}: {raw!r} is not numeric; using 0.")
            return 0.0
        if parsed.value < 0:
            self.record_warnings.append(f"{canonical_field}: negative value {parsed.value:g} clamped to 0.")
            return 0.0
        return parsed.value


class RecordNormalizer:
    """
    Normalizes raw tables using the static column alias tables.
    """

    def __init__(self, resolver: ColumnResolver | None = None) -> None:
        self._resolver = resolver or ColumnResolver()

    # ------------------------------------------------------------------
    # Primary kinds
    # ------------------------------------------------------------------

    def normalize(self, table: RawTable, *, file_period: str | None = None) -> NormalizationResult:
        """
        Normalize one primary table.

        ``file_period`` (from the file name) is used for kinds whose table
        carries no date column. Rows whose period cannot be determined, or
        whose entity is blank, are dropped and reported.
        """

        if table.table_kind not in PRIMARY_TABLE_KINDS:
            raise ValueError(f"'{table.table_kind}' is not a primary table kind.")

        resolution = self._resolver.resolve(table.header_row, table.table_kind)
        warnings: list[PipelineWarning] = list(self._missing_count_warnings(table, resolution))

        has_date_column = resolution.index_of("date") is not None
        if table.table_kind == TableKind.DATE_SUMMARY and not has_date_column:
            warnings.append(
                PipelineWarning(
                    code=failure_codes.VALIDATION_ERROR,
                    message="Date summary has no date column; its rows were dropped.",
                    file_name=table.source_file,
                    column="date",
                )
            )
            return NormalizationResult(warnings=tuple(warnings))

        records: list[NormalizedRecord] = []
        row_numbers = table.row_numbers or tuple(range(2, len(table.data_rows) + 2))
        for row, row_number in zip(table.data_rows, row_numbers):
            context = _RowContext(table=table, resolution=resolution, row=row, row_number=row_number)
            try:
                records.append(
                    self._normalize_row(context, has_date_column=has_date_column, file_period=file_period)
                )
            except ValidationError as exc:
                warnings.append(_as_warning(exc))

        return NormalizationResult(records=tuple(records), warnings=tuple(warnings))

    def _normalize_row(
        self,
        context: _RowContext,
        *,
        has_date_column: bool,
        file_period: str | None,
    ) -> NormalizedRecord:
        """
        Raises
        ------
        ValidationError
            If the row has no usable period or entity; the row is dropped.
        """

        table_kind = context.table.table_kind
        parsed_date: ParsedDate | None = None
        if has_date_column:
            parsed_date = parse_date(context.cell("date"))
            if parsed_date is None:
                raise self._row_error(context, "date", "Date could not be parsed; row dropped.")
            period = parsed_date.period
        elif file_period:
            period = file_period
        else:
            raise self._row_error(context, "date", "No period available for row; row dropped.")

        attributes, entity_id = self._entity_for(context, parsed_date)
        if not entity_id:
            raise self._row_error(context, None, f"Row has no {table_kind} entity identifier; row dropped.")

        document_count = int(round(context.count("document_count")))
        kilocharacter_count = context.count("kilocharacter_count")

        return NormalizedRecord(
            table_kind=table_kind,
            period=period,
            entity_id=entity_id,
            document_count=document_count,
            kilocharacter_count=kilocharacter_count,
            attributes=attributes,
            source_file=context.table.source_file,
            row_number=context.row_number,
            warnings=tuple(context.record_warnings),
        )

    @staticmethod
    def _entity_for(context: _RowContext, parsed_date: ParsedDate | None) -> tuple[dict[str, Any], str]:
        table_kind = context.table.table_kind

        if table_kind == TableKind.DATE_SUMMARY:
            day_key = parsed_date.entity_key if parsed_date is not None else ""
            return {"date": day_key}, day_key

        if table_kind == TableKind.DOC_SUMMARY:
            document_type = context.label("document_type")
            return {"document_type": document_type, "direction": context.label("direction")}, document_type

        if table_kind == TableKind.HUB_SUMMARY:
            hub = context.label("hub")
            return {"hub": hub}, hub

        partner_id = context.label("partner_id")
        partner_name = context.label("partner_name")
        partner_key = partner_id or partner_name
        if table_kind == TableKind.TP_SUMMARY:
            return {"partner_id": partner_key, "partner_name": partner_name}, partner_key

        document_type = context.label("document_type")
        attributes = {
            "partner_id": partner_key,
            "partner_name": partner_name,
            "document_type": document_type,
            "direction": context.label("direction"),
        }
        if not partner_key or not document_type:
            return attributes, ""
        return attributes, f"{partner_key}{TP_DOC_SEPARATOR}{document_type}"

    @staticmethod
    def _missing_count_warnings(table: RawTable, resolution: ColumnResolution) -> list[PipelineWarning]:
        return [
            PipelineWarning(
                code=failure_codes.VALUE_COERCED,
                message=f"No column found for {missing}; defaulting to 0.",
                file_name=table.source_file,
                column=missing,
            )
            for missing in _COUNT_FIELDS
            if missing in resolution.missing_fields
        ]

    @staticmethod
    def _row_error(context: _RowContext, canonical_field: str | None, message: str) -> ValidationError:
        column = context.resolution.field_to_header.get(canonical_field) if canonical_field else None
        return ValidationError(
            message,
            file_name=context.table.source_file,
            row_number=context.row_number,
            column=column or canonical_field,
        )

    @classmethod
    def _row_issue(cls, context: _RowContext, canonical_field: str | None, message: str) -> PipelineWarning:
        return _as_warning(cls._row_error(context, canonical_field, message))

    # ------------------------------------------------------------------
    # Auxiliary kinds
    # ------------------------------------------------------------------

    def normalize_cross_reference(self, table: RawTable) -> AuxiliaryResult:
        """
        Rows become ``CrossReferenceEntry``; a repeated ID keeps the last row.
        """

        resolution = self._resolver.resolve(table.header_row, TableKind.CROSS_REFERENCE)
        entries: dict[str, CrossReferenceEntry] = {}
        warnings: list[PipelineWarning] = []
        for row, row_number in self._rows(table):
            context = _RowContext(table=table, resolution=resolution, row=row, row_number=row_number)
            external_id = context.label("external_id")
            if not external_id:
                warnings.append(self._row_issue(context, "external_id", "Cross-reference row has no ID; row dropped."))
                continue
            entries[external_id] = CrossReferenceEntry(
                external_id=external_id,
                name=context.label("name"),
                region=context.label("region"),
            )
        return AuxiliaryResult(entries=tuple(entries.values()), warnings=tuple(warnings))

    def normalize_partner_report(self, table: RawTable) -> AuxiliaryResult:
        """
        Partner identity, method and volume come from named columns; the date
        and mailbox-type columns are found by position among the unclaimed
        columns.
        """

        resolution = self._resolver.resolve(table.header_row, TableKind.PARTNER_REPORT)
        date_index, mailbox_index = detect_positional_columns(table, resolution.claimed_indexes)

        entries: list[PartnerReportEntry] = []
        warnings: list[PipelineWarning] = []
        if "volume" in resolution.missing_fields:
            warnings.append(
                PipelineWarning(
                    code=failure_codes.VALUE_COERCED,
                    message="No volume column found in partner report; defaulting to 0.",
                    file_name=table.source_file,
                    column="volume",
                )
            )
        for row, row_number in self._rows(table):
            context = _RowContext(table=table, resolution=resolution, row=row, row_number=row_number)
            partner_id = context.label("partner_id")
            if not partner_id:
                warnings.append(self._row_issue(context, "partner_id", "Partner report row has no partner; row dropped."))
                continue

            period: str | None = None
            if date_index is not None and date_index < len(row):
                parsed = parse_date(row[date_index])
                if parsed is None and not is_blank(row[date_index]):
                    warnings.append(
                        PipelineWarning(
                            code=failure_codes.VALIDATION_ERROR,
                            message="Partner report date could not be parsed; row dropped.",
                            file_name=table.source_file,
                            row_number=row_number,
                            column=table.header_row[date_index] or f"column {date_index + 1}",
                        )
                    )
                    continue
                period = parsed.period if parsed is not None else None

            mailbox_type = parse_label(row[mailbox_index]) if mailbox_index is not None and mailbox_index < len(row) else ""
            entries.append(
                PartnerReportEntry(
                    partner_id=partner_id,
                    communication_method=context.label("communication_method"),
                    mailbox_type=mailbox_type,
                    period=period,
                    volume=context.count("volume"),
                    source_file=table.source_file,
                    row_number=row_number,
                )
            )
        return AuxiliaryResult(entries=tuple(entries), warnings=tuple(warnings))

    def normalize_map_configuration(self, table: RawTable) -> AuxiliaryResult:
        resolution = self._resolver.resolve(table.header_row, TableKind.MAP_CONFIGURATION)
        entries: list[MapConfigEntry] = []
        warnings: list[PipelineWarning] = []
        for row, row_number in self._rows(table):
            context = _RowContext(table=table, resolution=resolution, row=row, row_number=row_number)
            map_name = context.label("map_name")
            if not map_name:
                warnings.append(self._row_issue(context, "map_name", "Map configuration row has no map name; row dropped."))
                continue
            entries.append(
                MapConfigEntry(
                    direction=context.label("direction"),
                    sender_id=context.label("sender_id"),
                    receiver_id=context.label("receiver_id"),
                    document_type=context.label("document_type"),
                    map_name=map_name,
                    source_file=table.source_file,
                    row_number=row_number,
                )
            )
        return AuxiliaryResult(entries=tuple(entries), warnings=tuple(warnings))

    @staticmethod
    def _rows(table: RawTable) -> Iterable[tuple[tuple[Cell, ...], int]]:
        row_numbers = table.row_numbers or tuple(range(2, len(table.data_rows) + 2))
        return zip(table.data_rows, row_numbers)


def _as_warning(exc: ValidationError) -> PipelineWarning:
    return PipelineWarning(
        code=exc.code,
        message=exc.message,
        file_name=exc.file_name,
        row_number=exc.row_number,
        column=exc.column,
    )


def _looks_like_date(cell: Cell) -> bool:
    if isinstance(cell, date):
        return True
    if not isinstance(cell, str):
        return False
    stripped = cell.strip()
    if stripped.replace(".", "", 1).isdigit() and len(stripped) != 6:
        return False
    return parse_date(stripped) is not None


def _looks_like_text(cell: Cell) -> bool:
    return isinstance(cell, str) and not parse_number(cell).ok and not _looks_like_date(cell)


def detect_positional_columns(
    table: RawTable,
    claimed: frozenset[int],
) -> tuple[int | None, int | None]:
    """
    Scan unclaimed columns left to right: the first whose non-empty cells are
    mostly dates is the date column; the first other column whose non-empty
    cells are mostly text is the mailbox-type column.
    """

    date_index: int | None = None
    mailbox_index: int | None = None
    for index in range(len(table.header_row)):
        if index in claimed:
            continue
        values = _column_values(table.data_rows, index)
        if not values:
            continue
        if date_index is None and _majority(values, _looks_like_date):
            date_index = index
            continue
        if mailbox_index is None and _majority(values, _looks_like_text):
            mailbox_index = index
        if date_index is not None and mailbox_index is not None:
            break
    return date_index, mailbox_index


def _column_values(rows: Sequence[tuple[Cell, ...]], index: int) -> list[Cell]:
    return [row[index] for row in rows if index < len(row) and not is_blank(row[index])]


def _majority(values: Sequence[Cell], predicate: Any) -> bool:
    hits = sum(1 for value in values if predicate(value))
    return hits * 2 > len(values)
