"""
dashboard/domain/records.py

Domain models shared by every pipeline stage.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Union

Cell = Union[str, int, float, date, None]

# Joins partner and document type into one partner x document entity id.
TP_DOC_SEPARATOR = " | "


class TableKind:
    DATE_SUMMARY = "date_summary"
    DOC_SUMMARY = "doc_summary"
    HUB_SUMMARY = "hub_summary"
    TP_SUMMARY = "tp_summary"
    TP_DOC_SUMMARY = "tp_doc_summary"
    CROSS_REFERENCE = "cross_reference"
    PARTNER_REPORT = "partner_report"
    MAP_CONFIGURATION = "map_configuration"


PRIMARY_TABLE_KINDS: tuple[str, ...] = (
    TableKind.DATE_SUMMARY,
    TableKind.DOC_SUMMARY,
    TableKind.HUB_SUMMARY,
    TableKind.TP_SUMMARY,
    TableKind.TP_DOC_SUMMARY,
)

ENTITY_TABLE_KINDS: tuple[str, ...] = (
    TableKind.DOC_SUMMARY,
    TableKind.HUB_SUMMARY,
    TableKind.TP_SUMMARY,
    TableKind.TP_DOC_SUMMARY,
)


class FileRole:
    PRIMARY = "primary"
    CROSS_REFERENCE = "cross_reference"
    PARTNER_REPORT = "partner_report"
    MAP_CONFIGURATION = "map_configuration"


AUXILIARY_ROLES: tuple[str, ...] = (
    FileRole.CROSS_REFERENCE,
    FileRole.PARTNER_REPORT,
    FileRole.MAP_CONFIGURATION,
)


class FileFormat:
    SPREADSHEET = "spreadsheet"
    DELIMITED = "delimited"


@dataclass(frozen=True)
class FileDescriptor:
    """
    What the classifier learned about one uploaded file.

    ``detected_customer`` / ``detected_period`` are ``None`` for auxiliary
    files, which are classified by role rather than by name.
    """

    name: str
    byte_size: int
    detected_customer: str | None
    detected_period: str | None
    kind: str
    role: str = FileRole.PRIMARY
    file_type: str | None = None
    extension: str = ""


@dataclass(frozen=True)
class RawTable:
    """
    One named tabular dataset extracted from a physical file.
    """

    source_file: str
    table_kind: str
    header_row: tuple[str, ...]
    data_rows: tuple[tuple[Cell, ...], ...]
    row_numbers: tuple[int, ...] = ()
    sheet_name: str | None = None


@dataclass(frozen=True)
class NormalizedRecord:
    """
    Canonical (period, entity) row.

    ``attributes`` holds the kind-specific labels (hub, partner, direction,
    ...). ``warnings`` lists values that were coerced rather than read.
    """

    table_kind: str
    period: str
    entity_id: str
    document_count: int
    kilocharacter_count: float
    attributes: dict[str, Any] = field(default_factory=dict)
    source_file: str = ""
    row_number: int | None = None
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class CrossReferenceEntry:
    external_id: str
    name: str
    region: str


@dataclass(frozen=True)
class PartnerReportEntry:
    partner_id: str
    communication_method: str
    mailbox_type: str
    period: str | None
    volume: float
    source_file: str = ""
    row_number: int | None = None


@dataclass(frozen=True)
class MapConfigEntry:
    direction: str
    sender_id: str
    receiver_id: str
    document_type: str
    map_name: str
    source_file: str = ""
    row_number: int | None = None


@dataclass(frozen=True)
class PipelineWarning:
    """
    One non-fatal problem collected during an analysis run.
    """

    code: str
    message: str
    file_name: str | None = None
    row_number: int | None = None
    column: str | None = None
