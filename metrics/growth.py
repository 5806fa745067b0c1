"""
metrics/growth.py

Period totals and period-over-period growth.

Formulas
--------
Growth Rate   = (current - previous) / previous        when previous > 0
KC / Document = kilocharacters / documents              when documents > 0

Both return ``None`` when the denominator is 0.
"""

from __future__ import annotations

from typing import Sequence

from dashboard.domain.records import PRIMARY_TABLE_KINDS, NormalizedRecord
from dashboard.services.period_aggregator import Timeline
from metrics.snapshot import PeriodSummary


def growth_rate(current: float, previous: float) -> float | None:
    if previous > 0:
        return (current - previous) / previous
    return None


def kc_per_document(kilocharacters: float, documents: float) -> float | None:
    if documents == 0:
        return None
    return kilocharacters / documents


def period_source_kind(timeline: Timeline, period: str) -> str | None:
    """
    Kind that carries the period's totals: date summary first, then the
    first present of document, hub, partner, partner x document summaries.
    """

    present = timeline.kinds_in(period)
    for kind in PRIMARY_TABLE_KINDS:
        if kind in present:
            return kind
    return None


def _totals(records: Sequence[NormalizedRecord]) -> tuple[int, float]:
    documents = sum(record.document_count for record in records)
    kilocharacters = sum(record.kilocharacter_count for record in records)
    return documents, kilocharacters


def summarize_periods(timeline: Timeline) -> tuple[PeriodSummary, ...]:
    summaries: list[PeriodSummary] = []
    previous: tuple[int, float] | None = None
    for period in timeline.periods:
        source_kind = period_source_kind(timeline, period)
        if source_kind is None:
            continue
        documents, kilocharacters = _totals(timeline.records(period, source_kind))
        summaries.append(
            PeriodSummary(
                period=period,
                documents=documents,
                kilocharacters=kilocharacters,
                document_growth=growth_rate(documents, previous[0]) if previous else None,
                kilocharacter_growth=growth_rate(kilocharacters, previous[1]) if previous else None,
                kc_per_document=kc_per_document(kilocharacters, documents),
                source_kind=source_kind,
                source_files=tuple(timeline.provenance.get(period, ())),
            )
        )
        previous = (documents, kilocharacters)
    return tuple(summaries)


def summary_volume(summary: PeriodSummary, volume_measure: str) -> float:
    if volume_measure == "kilocharacters":
        return summary.kilocharacters
    return float(summary.documents)


def record_volume(record: NormalizedRecord, volume_measure: str) -> float:
    if volume_measure == "kilocharacters":
        return record.kilocharacter_count
    return float(record.document_count)
