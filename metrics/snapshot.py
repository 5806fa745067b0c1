"""
metrics/snapshot.py

Read-only result containers produced by the metrics engine.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Mapping

INSUFFICIENT_DATA = "insufficient_data"
OK = "ok"


@dataclass(frozen=True)
class PeriodSummary:
    """
    Totals for one period and their change versus the previous period.

    Growth values are ``None`` ("N/A") when the previous value is 0 or when
    this is the first period.
    """

    period: str
    documents: int
    kilocharacters: float
    document_growth: float | None
    kilocharacter_growth: float | None
    kc_per_document: float | None
    source_kind: str
    source_files: tuple[str, ...] = ()


@dataclass(frozen=True)
class EntityRanking:
    rank: int
    entity_id: str
    label: str
    region: str | None
    documents: int
    kilocharacters: float
    volume: float
    share: float


@dataclass(frozen=True)
class ConcentrationResult:
    """Share of the kind's total volume held by the top ``top_n`` entities."""

    top_n: int
    share: float
    total_volume: float
    entity_count: int


@dataclass(frozen=True)
class EntityMovement:
    entity_id: str
    label: str
    previous_period: str
    current_period: str
    previous_volume: float
    current_volume: float
    change: float
    growth_rate: float | None


@dataclass(frozen=True)
class EfficiencyPoint:
    entity_id: str
    period: str
    documents: int
    kilocharacters: float
    kc_per_document: float | None


@dataclass(frozen=True)
class MonthSeasonality:
    month: int
    mean: float
    std: float
    years: tuple[int, ...]
    is_peak: bool


@dataclass(frozen=True)
class SeasonalityResult:
    """
    Month-of-year profile. ``status`` is ``insufficient_data`` (and
    ``months`` empty) when fewer than two distinct years are present.
    """

    status: str
    years: tuple[int, ...] = ()
    overall_mean: float | None = None
    overall_std: float | None = None
    months: tuple[MonthSeasonality, ...] = ()

    @property
    def peak_months(self) -> tuple[int, ...]:
        return tuple(month.month for month in self.months if month.is_peak)


@dataclass(frozen=True)
class TrendResult:
    status: str
    direction: str | None = None
    slope: float | None = None
    intercept: float | None = None
    relative_slope: float | None = None


@dataclass(frozen=True)
class PartnerReconciliation:
    partner_id: str
    label: str
    reported_volume: float
    dataset_volume: float
    variance: float
    variance_ratio: float | None
    status: str
    communication_methods: tuple[str, ...] = ()
    mailbox_types: tuple[str, ...] = ()


@dataclass(frozen=True)
class TrafficPair:
    partner_id: str
    document_type: str
    documents: int


@dataclass(frozen=True)
class MapCoverage:
    covered: tuple[TrafficPair, ...]
    uncovered: tuple[TrafficPair, ...]
    unused_maps: tuple[str, ...]
    maps_by_direction: Mapping[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ReconciliationResult:
    partner_report: tuple[PartnerReconciliation, ...] | None = None
    map_coverage: MapCoverage | None = None


@dataclass(frozen=True)
class MetricsSnapshot:
    """
    Derived, read-only view over a timeline.
    """

    volume_measure: str
    periods: tuple[str, ...]
    period_summaries: tuple[PeriodSummary, ...]
    rankings: Mapping[str, tuple[EntityRanking, ...]]
    concentration: Mapping[str, ConcentrationResult]
    movers: Mapping[str, tuple[EntityMovement, ...]]
    efficiency: Mapping[str, tuple[EfficiencyPoint, ...]]
    seasonality: SeasonalityResult
    trend: TrendResult
    reconciliation: ReconciliationResult = field(default_factory=ReconciliationResult)

    def summary_for(self, period: str) -> PeriodSummary | None:
        for summary in self.period_summaries:
            if summary.period == period:
                return summary
        return None

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["seasonality"]["peak_months"] = list(self.seasonality.peak_months)
        return payload
