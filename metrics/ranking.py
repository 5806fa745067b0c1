"""
metrics/ranking.py

Per-entity rankings, top-N concentration, movers and efficiency.

Formulas
--------
Share          = entity volume / total volume of the kind
Concentration  = sum(top-N volumes) / total volume     (0.0 when total == 0)
Change         = current-period volume - previous-period volume
"""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Sequence

from dashboard.domain.cross_reference import CrossReferenceIndex
from dashboard.domain.records import NormalizedRecord
from dashboard.services.period_aggregator import Timeline
from metrics.growth import growth_rate, kc_per_document, record_volume
from metrics.snapshot import ConcentrationResult, EfficiencyPoint, EntityMovement, EntityRanking


def rank_entities(
    records: Iterable[NormalizedRecord],
    *,
    volume_measure: str = "documents",
    cross_reference: CrossReferenceIndex | None = None,
) -> tuple[EntityRanking, ...]:
    """
    Rank entities by total volume descending; ties break on entity id.
    """

    xref = cross_reference or CrossReferenceIndex.empty()
    documents: dict[str, int] = defaultdict(int)
    kilocharacters: dict[str, float] = defaultdict(float)
    volumes: dict[str, float] = defaultdict(float)
    for record in records:
        documents[record.entity_id] += record.document_count
        kilocharacters[record.entity_id] += record.kilocharacter_count
        volumes[record.entity_id] += record_volume(record, volume_measure)

    total = sum(volumes.values())
    ordered = sorted(volumes, key=lambda entity_id: (-volumes[entity_id], entity_id))
    return tuple(
        EntityRanking(
            rank=position,
            entity_id=entity_id,
            label=xref.label_for(entity_id),
            region=xref.region_for(entity_id),
            documents=documents[entity_id],
            kilocharacters=kilocharacters[entity_id],
            volume=volumes[entity_id],
            share=volumes[entity_id] / total if total > 0 else 0.0,
        )
        for position, entity_id in enumerate(ordered, start=1)
    )


def top_n_concentration(rankings: Sequence[EntityRanking], top_n: int) -> ConcentrationResult:
    total = sum(ranking.volume for ranking in rankings)
    top_volume = sum(ranking.volume for ranking in rankings[:top_n])
    share = top_volume / total if total > 0 else 0.0
    return ConcentrationResult(
        top_n=top_n,
        share=min(1.0, max(0.0, share)),
        total_volume=total,
        entity_count=len(rankings),
    )


def top_movers(
    timeline: Timeline,
    table_kind: str,
    *,
    volume_measure: str = "documents",
    cross_reference: CrossReferenceIndex | None = None,
) -> tuple[EntityMovement, ...]:
    """
    Volume change per entity between the two most recent periods that carry
    *table_kind*, ordered by absolute change descending then entity id.
    """

    periods = [period for period in timeline.periods if timeline.records(period, table_kind)]
    if len(periods) < 2:
        return ()

    xref = cross_reference or CrossReferenceIndex.empty()
    previous_period, current_period = periods[-2], periods[-1]
    previous = _volumes_by_entity(timeline.records(previous_period, table_kind), volume_measure)
    current = _volumes_by_entity(timeline.records(current_period, table_kind), volume_measure)

    movements = []
    for entity_id in set(previous) | set(current):
        before = previous.get(entity_id, 0.0)
        after = current.get(entity_id, 0.0)
        movements.append(
            EntityMovement(
                entity_id=entity_id,
                label=xref.label_for(entity_id),
                previous_period=previous_period,
                current_period=current_period,
                previous_volume=before,
                current_volume=after,
                change=after - before,
                growth_rate=growth_rate(after, before),
            )
        )
    movements.sort(key=lambda movement: (-abs(movement.change), movement.entity_id))
    return tuple(movements)


def entity_efficiency(timeline: Timeline, table_kind: str) -> tuple[EfficiencyPoint, ...]:
    """KC per document for every entity in every period, chronologically."""
    points = []
    for period in timeline.periods:
        for record in sorted(timeline.records(period, table_kind), key=lambda item: item.entity_id):
            points.append(
                EfficiencyPoint(
                    entity_id=record.entity_id,
                    period=period,
                    documents=record.document_count,
                    kilocharacters=record.kilocharacter_count,
                    kc_per_document=kc_per_document(record.kilocharacter_count, record.document_count),
                )
            )
    return tuple(points)


def _volumes_by_entity(records: Iterable[NormalizedRecord], volume_measure: str) -> dict[str, float]:
    volumes: dict[str, float] = defaultdict(float)
    for record in records:
        volumes[record.entity_id] += record_volume(record, volume_measure)
    return dict(volumes)
