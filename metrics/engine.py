"""
metrics/engine.py

Computes the full metrics snapshot for one timeline.
"""

from __future__ import annotations

from typing import Sequence

from dashboard.config import MetricsSettings, get_metrics_settings
from dashboard.domain.cross_reference import CrossReferenceIndex
from dashboard.domain.records import ENTITY_TABLE_KINDS, MapConfigEntry, PartnerReportEntry
from dashboard.services.period_aggregator import Timeline
from metrics.growth import summarize_periods, summary_volume
from metrics.ranking import entity_efficiency, rank_entities, top_movers, top_n_concentration
from metrics.reconciliation import map_coverage, reconcile_partner_report
from metrics.seasonality import detect_seasonality
from metrics.snapshot import MetricsSnapshot, ReconciliationResult
from metrics.trend import LinearTrend


class MetricsEngine:
    """
    Pure calculator over a frozen ``Timeline``.

    No I/O, no logging, and no side effects are permitted inside
    :meth:`compute`; the same inputs always give the same snapshot.
    """

    def __init__(self, settings: MetricsSettings | None = None) -> None:
        self.settings = settings or get_metrics_settings()
        self._trend = LinearTrend()

    def compute(
        self,
        timeline: Timeline,
        cross_reference: CrossReferenceIndex | None = None,
        *,
        partner_report: Sequence[PartnerReportEntry] | None = None,
        map_configuration: Sequence[MapConfigEntry] | None = None,
    ) -> MetricsSnapshot:
        """
        Parameters
        ----------
        timeline:
            Folded records of one analysis run.
        cross_reference:
            Optional ID -> name/region lookup applied to rankings and movers.
        partner_report, map_configuration:
            Optional auxiliary entries; reconciliation is ``None`` for each
            one that was not supplied.
        """

        xref = cross_reference or CrossReferenceIndex.empty()
        measure = self.settings.volume_measure

        summaries = summarize_periods(timeline)
        period_totals = {summary.period: summary_volume(summary, measure) for summary in summaries}

        rankings = {}
        concentration = {}
        movers = {}
        efficiency = {}
        for table_kind in ENTITY_TABLE_KINDS:
            if not timeline.has_kind(table_kind):
                continue
            ranked = rank_entities(timeline.iter_kind(table_kind), volume_measure=measure, cross_reference=xref)
            rankings[table_kind] = ranked
            concentration[table_kind] = top_n_concentration(ranked, self.settings.top_n)
            movers[table_kind] = top_movers(timeline, table_kind, volume_measure=measure, cross_reference=xref)
            efficiency[table_kind] = entity_efficiency(timeline, table_kind)

        reconciliation = ReconciliationResult(
            partner_report=(
                reconcile_partner_report(timeline, partner_report, xref) if partner_report is not None else None
            ),
            map_coverage=map_coverage(timeline, map_configuration) if map_configuration is not None else None,
        )

        return MetricsSnapshot(
            volume_measure=measure,
            periods=timeline.periods,
            period_summaries=summaries,
            rankings=rankings,
            concentration=concentration,
            movers=movers,
            efficiency=efficiency,
            seasonality=detect_seasonality(period_totals),
            trend=self._trend.fit([period_totals[period] for period in sorted(period_totals)]),
            reconciliation=reconciliation,
        )
