"""
insights/rules.py

Deterministic rule battery over a metrics snapshot.

Rules evaluated (in order)
--------------------------
1.  mom_decline          - largest month-over-month decline beyond threshold.
2.  mom_growth_spike     - largest month-over-month increase beyond threshold.
3.  entity_dominance     - one entity holds more than the dominance share.
4.  top_n_concentration  - top-N entities hold more than the concentration share.
5.  seasonal_peak        - at least one peak month was detected.
6.  trend_direction      - period totals trend up or down.
7.  top_mover            - largest entity change between the last two periods.
8.  efficiency_shift     - latest KC/document deviates from the prior mean.
9.  partner_report_gap   - partners present on only one side of the report.
10. unmapped_traffic     - partner x document traffic with no map.
"""

from __future__ import annotations

from typing import List

from dashboard.config import InsightSettings
from insights.base import BaseInsightRule, Insight, InsightCategory, Severity
from metrics.reconciliation import ReconciliationStatus
from metrics.snapshot import OK, MetricsSnapshot, PeriodSummary
from metrics.trend import TrendDirection

INSIGHT_TEMPLATES: dict[str, str] = {
    "mom_decline": "Volume fell {growth_pct:.1f}% from {previous_period} to {period}.",
    "mom_growth_spike": "Volume rose {growth_pct:.1f}% from {previous_period} to {period}.",
    "entity_dominance": "{label} accounts for {share_pct:.1f}% of {table_kind} volume.",
    "top_n_concentration": "The top {top_n} entities hold {share_pct:.1f}% of {table_kind} volume.",
    "seasonal_peak": "Seasonal peak detected in month(s) {months}.",
    "trend_direction": "Volume is trending {direction} across {period_count} periods.",
    "top_mover": "{label} changed by {change:+,.0f} from {previous_period} to {current_period}.",
    "efficiency_shift": "KC per document in {period} deviates {deviation_pct:+.1f}% from the prior average.",
    "partner_report_gap": "{missing_from_dataset} reported partner(s) have no traffic and "
    "{missing_from_report} partner(s) with traffic are not in the report.",
    "unmapped_traffic": "{pair_count} partner/document pair(s) carry traffic without a map.",
}


def render(template_key: str, values: dict) -> str:
    template = INSIGHT_TEMPLATES.get(template_key)
    if template is None:
        return template_key
    return template.format(**values)


def _insight(category: str, severity: str, template_key: str, values: dict) -> Insight:
    return Insight(
        category=category,
        severity=severity,
        template_key=template_key,
        values=values,
        message=render(template_key, values),
    )


def _growth(summary: PeriodSummary, volume_measure: str) -> float | None:
    if volume_measure == "kilocharacters":
        return summary.kilocharacter_growth
    return summary.document_growth


def _growth_points(snapshot: MetricsSnapshot) -> list[tuple[str, str, float]]:
    points = []
    summaries = snapshot.period_summaries
    for previous, current in zip(summaries, summaries[1:]):
        rate = _growth(current, snapshot.volume_measure)
        if rate is not None:
            points.append((previous.period, current.period, rate))
    return points


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

class MoMDeclineRule(BaseInsightRule):
    key = "mom_decline"

    def evaluate(self, snapshot: MetricsSnapshot, settings: InsightSettings) -> Insight | None:
        points = _growth_points(snapshot)
        if not points:
            return None
        previous_period, period, rate = min(points, key=lambda point: point[2])
        if rate >= -settings.decline_threshold:
            return None
        severity = Severity.CRITICAL if rate <= -2 * settings.decline_threshold else Severity.HIGH
        return _insight(
            InsightCategory.VOLUME,
            severity,
            self.key,
            {
                "previous_period": previous_period,
                "period": period,
                "growth_rate": round(rate, 4),
                "growth_pct": abs(rate) * 100,
            },
        )


class MoMGrowthSpikeRule(BaseInsightRule):
    key = "mom_growth_spike"

    def evaluate(self, snapshot: MetricsSnapshot, settings: InsightSettings) -> Insight | None:
        points = _growth_points(snapshot)
        if not points:
            return None
        previous_period, period, rate = max(points, key=lambda point: point[2])
        if rate <= settings.growth_threshold:
            return None
        return _insight(
            InsightCategory.VOLUME,
            Severity.MODERATE,
            self.key,
            {
                "previous_period": previous_period,
                "period": period,
                "growth_rate": round(rate, 4),
                "growth_pct": rate * 100,
            },
        )


class EntityDominanceRule(BaseInsightRule):
    key = "entity_dominance"

    def evaluate(self, snapshot: MetricsSnapshot, settings: InsightSettings) -> Insight | None:
        best = None
        for table_kind, rankings in snapshot.rankings.items():
            if len(rankings) < 2:
                continue
            leader = rankings[0]
            if leader.share > settings.dominance_threshold and (best is None or leader.share > best[1].share):
                best = (table_kind, leader)
        if best is None:
            return None
        table_kind, leader = best
        return _insight(
            InsightCategory.CONCENTRATION,
            Severity.HIGH if leader.share > (1 + settings.dominance_threshold) / 2 else Severity.MODERATE,
            self.key,
            {
                "table_kind": table_kind,
                "entity_id": leader.entity_id,
                "label": leader.label,
                "share": round(leader.share, 4),
                "share_pct": leader.share * 100,
            },
        )


class TopNConcentrationRule(BaseInsightRule):
    key = "top_n_concentration"

    def evaluate(self, snapshot: MetricsSnapshot, settings: InsightSettings) -> Insight | None:
        best = None
        for table_kind, result in snapshot.concentration.items():
            # with N or fewer entities the share is trivially 100%
            if result.entity_count <= result.top_n:
                continue
            if result.share > settings.concentration_threshold and (best is None or result.share > best[1].share):
                best = (table_kind, result)
        if best is None:
            return None
        table_kind, result = best
        return _insight(
            InsightCategory.CONCENTRATION,
            Severity.MODERATE,
            self.key,
            {
                "table_kind": table_kind,
                "top_n": result.top_n,
                "entity_count": result.entity_count,
                "share": round(result.share, 4),
                "share_pct": result.share * 100,
            },
        )


class SeasonalPeakRule(BaseInsightRule):
    key = "seasonal_peak"

    def evaluate(self, snapshot: MetricsSnapshot, settings: InsightSettings) -> Insight | None:
        seasonality = snapshot.seasonality
        if seasonality.status != OK or not seasonality.peak_months:
            return None
        return _insight(
            InsightCategory.SEASONALITY,
            Severity.LOW,
            self.key,
            {
                "months": ", ".join(str(month) for month in seasonality.peak_months),
                "peak_months": list(seasonality.peak_months),
                "years": list(seasonality.years),
            },
        )


class TrendDirectionRule(BaseInsightRule):
    key = "trend_direction"

    def evaluate(self, snapshot: MetricsSnapshot, settings: InsightSettings) -> Insight | None:
        trend = snapshot.trend
        if trend.status != OK or trend.direction not in (TrendDirection.UP, TrendDirection.DOWN):
            return None
        return _insight(
            InsightCategory.TREND,
            Severity.MODERATE if trend.direction == TrendDirection.DOWN else Severity.LOW,
            self.key,
            {
                "direction": trend.direction,
                "slope": trend.slope,
                "relative_slope": trend.relative_slope,
                "period_count": len(snapshot.period_summaries),
            },
        )


class TopMoverRule(BaseInsightRule):
    key = "top_mover"

    def evaluate(self, snapshot: MetricsSnapshot, settings: InsightSettings) -> Insight | None:
        best = None
        for table_kind, movements in snapshot.movers.items():
            if not movements or movements[0].change == 0:
                continue
            if best is None or abs(movements[0].change) > abs(best[1].change):
                best = (table_kind, movements[0])
        if best is None:
            return None
        table_kind, movement = best
        return _insight(
            InsightCategory.VOLUME,
            Severity.LOW,
            self.key,
            {
                "table_kind": table_kind,
                "entity_id": movement.entity_id,
                "label": movement.label,
                "previous_period": movement.previous_period,
                "current_period": movement.current_period,
                "change": movement.change,
                "growth_rate": movement.growth_rate,
            },
        )


class EfficiencyShiftRule(BaseInsightRule):
    key = "efficiency_shift"

    def evaluate(self, snapshot: MetricsSnapshot, settings: InsightSettings) -> Insight | None:
        points = [
            (summary.period, summary.kc_per_document)
            for summary in snapshot.period_summaries
            if summary.kc_per_document is not None
        ]
        if len(points) < 2:
            return None
        period, latest = points[-1]
        prior = [value for _, value in points[:-1]]
        prior_mean = sum(prior) / len(prior)
        if prior_mean <= 0:
            return None
        deviation = (latest - prior_mean) / prior_mean
        if abs(deviation) <= settings.efficiency_threshold:
            return None
        return _insight(
            InsightCategory.EFFICIENCY,
            Severity.MODERATE,
            self.key,
            {
                "period": period,
                "kc_per_document": round(latest, 4),
                "prior_mean": round(prior_mean, 4),
                "deviation": round(deviation, 4),
                "deviation_pct": deviation * 100,
            },
        )


class PartnerReportGapRule(BaseInsightRule):
    key = "partner_report_gap"

    def evaluate(self, snapshot: MetricsSnapshot, settings: InsightSettings) -> Insight | None:
        rows = snapshot.reconciliation.partner_report
        if not rows:
            return None
        missing_from_dataset = [row.partner_id for row in rows if row.status == ReconciliationStatus.MISSING_FROM_DATASET]
        missing_from_report = [row.partner_id for row in rows if row.status == ReconciliationStatus.MISSING_FROM_REPORT]
        if not missing_from_dataset and not missing_from_report:
            return None
        return _insight(
            InsightCategory.RECONCILIATION,
            Severity.HIGH if missing_from_dataset else Severity.MODERATE,
            self.key,
            {
                "missing_from_dataset": len(missing_from_dataset),
                "missing_from_report": len(missing_from_report),
                "partners_missing_from_dataset": missing_from_dataset,
                "partners_missing_from_report": missing_from_report,
            },
        )


class UnmappedTrafficRule(BaseInsightRule):
    key = "unmapped_traffic"

    def evaluate(self, snapshot: MetricsSnapshot, settings: InsightSettings) -> Insight | None:
        coverage = snapshot.reconciliation.map_coverage
        if coverage is None or not coverage.uncovered:
            return None
        return _insight(
            InsightCategory.RECONCILIATION,
            Severity.HIGH,
            self.key,
            {
                "pair_count": len(coverage.uncovered),
                "documents": sum(pair.documents for pair in coverage.uncovered),
                "pairs": [f"{pair.partner_id}/{pair.document_type}" for pair in coverage.uncovered],
            },
        )


DEFAULT_RULES: List[BaseInsightRule] = [
    MoMDeclineRule(),
    MoMGrowthSpikeRule(),
    EntityDominanceRule(),
    TopNConcentrationRule(),
    SeasonalPeakRule(),
    TrendDirectionRule(),
    TopMoverRule(),
    EfficiencyShiftRule(),
    PartnerReportGapRule(),
    UnmappedTrafficRule(),
]
