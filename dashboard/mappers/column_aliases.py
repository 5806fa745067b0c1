"""
dashboard/mappers/column_aliases.py

Static alias tables and header resolution for every known table kind.

Each canonical field maps to an ordered list of accepted header spellings.
A table's header row is resolved once; rows are then read by column index.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

from dashboard.domain.records import TableKind

# Checked in order: the more specific aliases must come first because
# "tpdocsummary" also contains "docsummary".
SHEET_NAME_ALIASES: tuple[tuple[str, tuple[str, ...]], ...] = (
    (TableKind.TP_DOC_SUMMARY, ("tpdocsummary", "partnerdocsummary", "tpdocumentsummary", "tpdoc")),
    (TableKind.TP_SUMMARY, ("tpsummary", "partnersummary", "tradingpartnersummary")),
    (TableKind.DOC_SUMMARY, ("docsummary", "documentsummary", "doctypesummary")),
    (TableKind.HUB_SUMMARY, ("hubsummary", "hubs")),
    (TableKind.DATE_SUMMARY, ("datesummary", "dailysummary", "datesumm")),
)

_DOCUMENT_COUNT = (
    "Documents",
    "Document Count",
    "Doc Count",
    "Docs",
    "Total Documents",
    "Number of Documents",
    "Transactions",
)
_KILOCHARACTER_COUNT = (
    "KCs",
    "KC",
    "Kilocharacters",
    "Kilo Characters",
    "Total KCs",
    "KC Count",
    "Billed KCs",
)
_DATE = ("Date", "Day", "Transaction Date", "Process Date", "Period", "Month")
_DOCUMENT_TYPE = ("Document Type", "Doc Type", "DocType", "Transaction Set", "Document", "Doc")
_DIRECTION = ("Direction", "Dir", "Inbound/Outbound", "I/O")
_PARTNER_ID = (
    "Trading Partner ID",
    "TP ID",
    "Partner ID",
    "Trading Partner",
    "TP",
    "Partner",
)
_PARTNER_NAME = ("Trading Partner Name", "TP Name", "Partner Name", "Name")

COLUMN_ALIASES: dict[str, dict[str, tuple[str, ...]]] = {
    TableKind.DATE_SUMMARY: {
        "date": _DATE,
        "document_count": _DOCUMENT_COUNT,
        "kilocharacter_count": _KILOCHARACTER_COUNT,
    },
    TableKind.DOC_SUMMARY: {
        "document_type": _DOCUMENT_TYPE,
        "direction": _DIRECTION,
        "date": _DATE,
        "document_count": _DOCUMENT_COUNT,
        "kilocharacter_count": _KILOCHARACTER_COUNT,
    },
    TableKind.HUB_SUMMARY: {
        "hub": ("Hub", "Hub ID", "Hub Code", "Hub Name"),
        "date": _DATE,
        "document_count": _DOCUMENT_COUNT,
        "kilocharacter_count": _KILOCHARACTER_COUNT,
    },
    TableKind.TP_SUMMARY: {
        "partner_id": _PARTNER_ID,
        "partner_name": _PARTNER_NAME,
        "date": _DATE,
        "document_count": _DOCUMENT_COUNT,
        "kilocharacter_count": _KILOCHARACTER_COUNT,
    },
    TableKind.TP_DOC_SUMMARY: {
        "partner_id": _PARTNER_ID,
        "partner_name": _PARTNER_NAME,
        "document_type": _DOCUMENT_TYPE,
        "direction": _DIRECTION,
        "date": _DATE,
        "document_count": _DOCUMENT_COUNT,
        "kilocharacter_count": _KILOCHARACTER_COUNT,
    },
    TableKind.CROSS_REFERENCE: {
        "external_id": ("ID", "External ID", "Partner ID", "Code", "Identifier"),
        "name": ("Name", "Partner Name", "Description", "Display Name"),
        "region": ("Region", "Location", "Country", "Area"),
    },
    TableKind.PARTNER_REPORT: {
        "partner_id": (
            "Partner",
            "Trading Partner",
            "Partner ID",
            "TP",
            "TP ID",
            "Partner Name",
            "Trading Partner Name",
        ),
        "communication_method": (
            "Communication Method",
            "Comm Method",
            "Communication Path",
            "Comm Path",
            "Connection Type",
            "Protocol",
            "Method",
        ),
        "volume": (
            "Volume",
            "Document Count",
            "Documents",
            "Doc Count",
            "Count",
            "Transactions",
        ),
    },
    TableKind.MAP_CONFIGURATION: {
        "direction": _DIRECTION,
        "sender_id": ("Sender ID", "SenderID", "Sender", "From ID", "ISA Sender ID", "Sender Qualifier ID"),
        "receiver_id": ("Receiver ID", "ReceiverID", "Receiver", "To ID", "ISA Receiver ID", "Receiver Qualifier ID"),
        "document_type": _DOCUMENT_TYPE,
        "map_name": ("Map Name", "MapName", "Map", "Translation Map", "Map ID"),
    },
}


def normalize_header(header: str) -> str:
    """
    Normalize a column name for flexible matching.
    """

    return "".join(ch for ch in str(header).strip().lower() if ch.isalnum())


def match_table_kind(sheet_name: str) -> str | None:
    """
    Return the table kind whose alias appears in *sheet_name*, if any.
    """

    normalized = normalize_header(sheet_name)
    if not normalized:
        return None
    for table_kind, aliases in SHEET_NAME_ALIASES:
        if any(alias in normalized for alias in aliases):
            return table_kind
    return None


@dataclass(frozen=True)
class ColumnResolution:
    """
    Resolved canonical-field-to-column-index mapping for one table.
    """

    table_kind: str
    field_to_index: dict[str, int]
    field_to_header: dict[str, str]
    missing_fields: tuple[str, ...]
    match_strategies: dict[str, str]

    def index_of(self, canonical_field: str) -> int | None:
        return self.field_to_index.get(canonical_field)

    @property
    def claimed_indexes(self) -> frozenset[int]:
        return frozenset(self.field_to_index.values())


class ColumnResolver:
    """
    Resolves table headers into canonical field positions.
    """

    def __init__(self, aliases: Mapping[str, Mapping[str, Sequence[str]]] | None = None) -> None:
        self._aliases: dict[str, dict[str, tuple[str, ...]]] = {
            table_kind: {field_name: tuple(values) for field_name, values in fields.items()}
            for table_kind, fields in (aliases or COLUMN_ALIASES).items()
        }

    def resolve(self, headers: Sequence[str], table_kind: str) -> ColumnResolution:
        """
        Resolve every canonical field of *table_kind* against *headers*.

        Exact matches across all aliases are tried before normalized
        (case/spacing/punctuation-insensitive) matches. A column claimed by
        one field is not offered to later fields.
        """

        fields = self._aliases.get(table_kind)
        if fields is None:
            raise KeyError(f"No column aliases registered for table kind '{table_kind}'.")

        header_list = [str(header).strip() if header is not None else "" for header in headers]
        resolved: dict[str, int] = {}
        strategies: dict[str, str] = {}
        used: set[int] = set()

        for canonical_field, aliases in fields.items():
            index = self._find_exact(aliases, header_list, used)
            strategy = "exact"
            if index is None:
                index = self._find_normalized(aliases, header_list, used)
                strategy = "case_insensitive"
            if index is None:
                continue
            resolved[canonical_field] = index
            strategies[canonical_field] = strategy
            used.add(index)

        missing = tuple(field_name for field_name in fields if field_name not in resolved)
        return ColumnResolution(
            table_kind=table_kind,
            field_to_index=resolved,
            field_to_header={name: header_list[index] for name, index in resolved.items()},
            missing_fields=missing,
            match_strategies=strategies,
        )

    @staticmethod
    def _find_exact(aliases: Sequence[str], headers: Sequence[str], used: set[int]) -> int | None:
        for alias in aliases:
            for index, header in enumerate(headers):
                if index not in used and header == alias:
                    return index
        return None

    @staticmethod
    def _find_normalized(aliases: Sequence[str], headers: Sequence[str], used: set[int]) -> int | None:
        normalized_headers = [normalize_header(header) for header in headers]
        for alias in aliases:
            target = normalize_header(alias)
            if not target:
                continue
            for index, header in enumerate(normalized_headers):
                if index not in used and header == target:
                    return index
        return None
