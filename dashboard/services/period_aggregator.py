"""
dashboard/services/period_aggregator.py

Folds normalized records from every file of a batch into one ``Timeline``.

Merge key is ``(period, table_kind)``. Records for the same entity inside a
bucket are merged: the later record (processing order) supplies the scalar
fields and the counts are summed, so a partial re-upload of a period adds to
it instead of duplicating the entity.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Iterable, Iterator, Mapping

from dashboard.domain.records import PRIMARY_TABLE_KINDS, NormalizedRecord
from dashboard.errors import EmptyDatasetError
from dashboard.logging_utils import log_event

logger = logging.getLogger(__name__)

# Attributes that describe a row rather than the entity; merged values are
# combined instead of overwritten.
COMBINED_ATTRIBUTES: tuple[str, ...] = ("direction",)
_COMBINED_SEPARATOR = " / "


@dataclass(frozen=True)
class Timeline:
    """
    Read-only period -> table kind -> records mapping.

    ``periods`` is sorted chronologically; ``provenance`` lists the files
    that contributed to each period, in processing order.
    """

    buckets: Mapping[str, Mapping[str, tuple[NormalizedRecord, ...]]]
    provenance: Mapping[str, tuple[str, ...]]

    @property
    def periods(self) -> tuple[str, ...]:
        return tuple(sorted(self.buckets))

    def records(self, period: str, table_kind: str) -> tuple[NormalizedRecord, ...]:
        return tuple(self.buckets.get(period, {}).get(table_kind, ()))

    def kinds_in(self, period: str) -> tuple[str, ...]:
        present = self.buckets.get(period, {})
        return tuple(kind for kind in PRIMARY_TABLE_KINDS if present.get(kind))

    def iter_kind(self, table_kind: str) -> Iterator[NormalizedRecord]:
        """Yield every record of *table_kind* in chronological period order."""
        for period in self.periods:
            yield from self.records(period, table_kind)

    def has_kind(self, table_kind: str) -> bool:
        return any(self.records(period, table_kind) for period in self.buckets)

    @property
    def record_count(self) -> int:
        return sum(len(records) for kinds in self.buckets.values() for records in kinds.values())


def _combine_values(earlier: str, later: str) -> str:
    parts = [part for part in earlier.split(_COMBINED_SEPARATOR) if part]
    for part in later.split(_COMBINED_SEPARATOR):
        if part and part.casefold() not in {seen.casefold() for seen in parts}:
            parts.append(part)
    return _COMBINED_SEPARATOR.join(parts)


def merge_records(earlier: NormalizedRecord, later: NormalizedRecord) -> NormalizedRecord:
    """
    Later record wins scalar fields; counts are summed.

    ``COMBINED_ATTRIBUTES`` keep every distinct value in first-seen order,
    so an inbound and an outbound row for one document type merge to
    ``"Inbound / Outbound"``.
    """

    attributes = dict(later.attributes)
    for key in COMBINED_ATTRIBUTES:
        if key in earlier.attributes or key in later.attributes:
            attributes[key] = _combine_values(
                str(earlier.attributes.get(key) or ""),
                str(later.attributes.get(key) or ""),
            )
    return replace(
        later,
        attributes=attributes,
        document_count=earlier.document_count + later.document_count,
        kilocharacter_count=earlier.kilocharacter_count + later.kilocharacter_count,
        warnings=earlier.warnings + later.warnings,
    )


class TimelineBuilder:
    """
    Serial accumulator for one analysis run.

    ``add`` must be called in file processing order; ``build`` sorts periods
    once and freezes the result.
    """

    def __init__(self) -> None:
        self._buckets: dict[str, dict[str, dict[str, NormalizedRecord]]] = {}
        self._provenance: dict[str, list[str]] = {}
        self._merged = 0

    def add(self, records: Iterable[NormalizedRecord]) -> int:
        added = 0
        for record in records:
            bucket = self._buckets.setdefault(record.period, {}).setdefault(record.table_kind, {})
            existing = bucket.get(record.entity_id)
            if existing is None:
                bucket[record.entity_id] = record
            else:
                bucket[record.entity_id] = merge_records(existing, record)
                self._merged += 1

            sources = self._provenance.setdefault(record.period, [])
            if record.source_file and record.source_file not in sources:
                sources.append(record.source_file)
            added += 1
        return added

    def build(self) -> Timeline:
        """
        Raises
        ------
        EmptyDatasetError
            If no record was added.
        """

        if not any(bucket for kinds in self._buckets.values() for bucket in kinds.values()):
            raise EmptyDatasetError("No records could be read from any file in the batch.")

        ordered_periods = sorted(self._buckets)
        timeline = Timeline(
            buckets={
                period: {
                    kind: tuple(self._buckets[period][kind].values())
                    for kind in PRIMARY_TABLE_KINDS
                    if self._buckets[period].get(kind)
                }
                for period in ordered_periods
            },
            provenance={period: tuple(self._provenance.get(period, ())) for period in ordered_periods},
        )
        log_event(
            logger,
            logging.INFO,
            "timeline_built",
            periods=len(ordered_periods),
            records=timeline.record_count,
            merged_duplicates=self._merged,
        )
        return timeline


def aggregate(record_batches: Iterable[Iterable[NormalizedRecord]]) -> Timeline:
    """
    Fold per-file record sequences, in order, into a timeline.
    """

    builder = TimelineBuilder()
    for records in record_batches:
        builder.add(records)
    return builder.build()
