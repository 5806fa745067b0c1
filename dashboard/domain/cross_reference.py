"""
dashboard/domain/cross_reference.py

Lookup from external IDs to display names and regions.
"""

from __future__ import annotations

from typing import Iterable

from dashboard.domain.records import TP_DOC_SEPARATOR, CrossReferenceEntry


class CrossReferenceIndex:
    """
    Read-only mapping of external ID -> ``CrossReferenceEntry``.

    Lookups are case-insensitive. A missing index (or a missing ID) falls
    back to the raw identifier for display.
    """

    def __init__(self, entries: Iterable[CrossReferenceEntry] = ()) -> None:
        self._entries: dict[str, CrossReferenceEntry] = {}
        for entry in entries:
            self._entries[entry.external_id.strip().casefold()] = entry

    @classmethod
    def empty(cls) -> "CrossReferenceIndex":
        return cls()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, external_id: object) -> bool:
        return isinstance(external_id, str) and external_id.strip().casefold() in self._entries

    def get(self, external_id: str) -> CrossReferenceEntry | None:
        return self._entries.get(external_id.strip().casefold())

    def label_for(self, entity_id: str) -> str:
        """
        Display label for an entity; partner x document ids resolve their
        partner part.
        """

        if TP_DOC_SEPARATOR in entity_id:
            partner, document_type = entity_id.split(TP_DOC_SEPARATOR, 1)
            return f"{self.label_for(partner)}{TP_DOC_SEPARATOR}{document_type}"
        entry = self.get(entity_id)
        if entry is None or not entry.name:
            return entity_id
        return entry.name

    def region_for(self, entity_id: str) -> str | None:
        partner = entity_id.split(TP_DOC_SEPARATOR, 1)[0]
        entry = self.get(partner)
        if entry is None or not entry.region:
            return None
        return entry.region
