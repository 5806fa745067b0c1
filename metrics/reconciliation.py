"""
metrics/reconciliation.py

Cross-checks of the primary timeline against the auxiliary partner report
and map configuration. Partner and document identifiers compare
case-insensitively.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from typing import Sequence

from dashboard.domain.cross_reference import CrossReferenceIndex
from dashboard.domain.records import MapConfigEntry, PartnerReportEntry, TableKind
from dashboard.services.period_aggregator import Timeline
from metrics.snapshot import MapCoverage, PartnerReconciliation, TrafficPair


class ReconciliationStatus:
    MATCHED = "matched"
    MISSING_FROM_DATASET = "missing_from_dataset"
    MISSING_FROM_REPORT = "missing_from_report"


def _key(value: str) -> str:
    return value.strip().casefold()


def partner_volumes(timeline: Timeline) -> dict[str, tuple[str, int]]:
    """
    Dataset documents per partner from partner summaries, or from the
    partner x document summaries when no partner summary was uploaded.
    """

    table_kind = TableKind.TP_SUMMARY if timeline.has_kind(TableKind.TP_SUMMARY) else TableKind.TP_DOC_SUMMARY
    volumes: dict[str, tuple[str, int]] = {}
    for record in timeline.iter_kind(table_kind):
        partner_id = str(record.attributes.get("partner_id") or record.entity_id)
        key = _key(partner_id)
        display, documents = volumes.get(key, (partner_id, 0))
        volumes[key] = (display, documents + record.document_count)
    return volumes


def reconcile_partner_report(
    timeline: Timeline,
    entries: Sequence[PartnerReportEntry],
    cross_reference: CrossReferenceIndex | None = None,
) -> tuple[PartnerReconciliation, ...]:
    """
    Compare reported volume per partner against the dataset.

    Report rows dated outside the timeline's periods are ignored; undated
    rows always count.
    """

    xref = cross_reference or CrossReferenceIndex.empty()
    periods = set(timeline.periods)

    reported: dict[str, tuple[str, float]] = {}
    methods: dict[str, set[str]] = defaultdict(set)
    mailboxes: dict[str, set[str]] = defaultdict(set)
    for entry in entries:
        if entry.period is not None and entry.period not in periods:
            continue
        key = _key(entry.partner_id)
        display, volume = reported.get(key, (entry.partner_id, 0.0))
        reported[key] = (display, volume + entry.volume)
        if entry.communication_method:
            methods[key].add(entry.communication_method)
        if entry.mailbox_type:
            mailboxes[key].add(entry.mailbox_type)

    dataset = partner_volumes(timeline)

    results = []
    for key in sorted(set(reported) | set(dataset)):
        reported_display, reported_volume = reported.get(key, ("", 0.0))
        dataset_display, dataset_volume = dataset.get(key, ("", 0))
        partner_id = dataset_display or reported_display
        if key in reported and key in dataset:
            status = ReconciliationStatus.MATCHED
        elif key in reported:
            status = ReconciliationStatus.MISSING_FROM_DATASET
        else:
            status = ReconciliationStatus.MISSING_FROM_REPORT

        variance = float(dataset_volume) - reported_volume
        results.append(
            PartnerReconciliation(
                partner_id=partner_id,
                label=xref.label_for(partner_id),
                reported_volume=reported_volume,
                dataset_volume=float(dataset_volume),
                variance=variance,
                variance_ratio=variance / reported_volume if reported_volume != 0 else None,
                status=status,
                communication_methods=tuple(sorted(methods.get(key, ()))),
                mailbox_types=tuple(sorted(mailboxes.get(key, ()))),
            )
        )
    return tuple(results)


def traffic_pairs(timeline: Timeline) -> tuple[TrafficPair, ...]:
    documents: dict[tuple[str, str], int] = defaultdict(int)
    displays: dict[tuple[str, str], tuple[str, str]] = {}
    for record in timeline.iter_kind(TableKind.TP_DOC_SUMMARY):
        partner_id = str(record.attributes.get("partner_id") or "")
        document_type = str(record.attributes.get("document_type") or "")
        if not partner_id or not document_type:
            continue
        key = (_key(partner_id), _key(document_type))
        displays.setdefault(key, (partner_id, document_type))
        documents[key] += record.document_count
    return tuple(
        TrafficPair(partner_id=displays[key][0], document_type=displays[key][1], documents=documents[key])
        for key in sorted(documents)
        if documents[key] > 0
    )


def _covers(entry: MapConfigEntry, pair: TrafficPair) -> bool:
    partner = _key(pair.partner_id)
    return _key(entry.document_type) == _key(pair.document_type) and partner in (
        _key(entry.sender_id),
        _key(entry.receiver_id),
    )


def map_coverage(timeline: Timeline, entries: Sequence[MapConfigEntry]) -> MapCoverage:
    """
    A partner x document pair with traffic is covered when some map names
    the partner as sender or receiver for the same document type.
    """

    pairs = traffic_pairs(timeline)
    covered: list[TrafficPair] = []
    uncovered: list[TrafficPair] = []
    used_maps: set[int] = set()
    for pair in pairs:
        matches = [index for index, entry in enumerate(entries) if _covers(entry, pair)]
        used_maps.update(matches)
        (covered if matches else uncovered).append(pair)

    used_names = {entries[index].map_name for index in used_maps}
    unused = sorted({entry.map_name for entry in entries} - used_names)
    directions = Counter(entry.direction.strip().lower() or "unknown" for entry in entries)
    return MapCoverage(
        covered=tuple(covered),
        uncovered=tuple(uncovered),
        unused_maps=tuple(unused),
        maps_by_direction=dict(sorted(directions.items())),
    )
