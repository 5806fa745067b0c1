"""
insights/base.py

Insight model and the abstract base class for insight rules.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from dashboard.config import InsightSettings
from metrics.snapshot import MetricsSnapshot


class Severity:
    CRITICAL = "critical"
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"


SEVERITY_RANK: dict[str, int] = {
    Severity.CRITICAL: 3,
    Severity.HIGH: 2,
    Severity.MODERATE: 1,
    Severity.LOW: 0,
}


class InsightCategory:
    VOLUME = "volume"
    CONCENTRATION = "concentration"
    SEASONALITY = "seasonality"
    TREND = "trend"
    EFFICIENCY = "efficiency"
    RECONCILIATION = "reconciliation"


@dataclass(frozen=True)
class Insight:
    """
    One summary fact. ``template_key`` selects the sentence the presentation
    layer renders; ``values`` fills it.
    """

    category: str
    severity: str
    template_key: str
    values: dict[str, Any] = field(default_factory=dict)
    message: str = ""


class BaseInsightRule(ABC):
    """
    Contract for one check of the insight battery.

    Rules receive the metrics snapshot and the thresholds, and emit zero or
    one insight. Rules never see each other's output.

    No I/O, no logging, and no side effects are permitted inside
    :meth:`evaluate`.
    """

    key: str = ""

    @abstractmethod
    def evaluate(self, snapshot: MetricsSnapshot, settings: InsightSettings) -> Insight | None:
        """
        Parameters
        ----------
        snapshot:
            Metrics computed for the analysis run.
        settings:
            Thresholds for the rule battery.

        Returns
        -------
        Insight | None
            ``None`` when the rule does not fire.
        """
