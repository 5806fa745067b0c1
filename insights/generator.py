"""
insights/generator.py

Runs the rule battery and orders its output.
"""

from __future__ import annotations

from typing import Sequence

from dashboard.config import InsightSettings, get_insight_settings
from insights.base import SEVERITY_RANK, BaseInsightRule, Insight
from insights.rules import DEFAULT_RULES
from metrics.snapshot import MetricsSnapshot


class InsightGenerator:
    """
    Evaluates every rule independently, then sorts by severity descending
    and, within a severity, by rule order. Identical snapshots always yield
    identical sequences.
    """

    def __init__(
        self,
        settings: InsightSettings | None = None,
        rules: Sequence[BaseInsightRule] | None = None,
    ) -> None:
        self.settings = settings or get_insight_settings()
        self.rules = tuple(rules if rules is not None else DEFAULT_RULES)

    def generate(self, snapshot: MetricsSnapshot) -> tuple[Insight, ...]:
        fired: list[tuple[int, Insight]] = []
        for position, rule in enumerate(self.rules):
            insight = rule.evaluate(snapshot, self.settings)
            if insight is not None:
                fired.append((position, insight))
        fired.sort(key=lambda item: (-SEVERITY_RANK.get(item[1].severity, -1), item[0]))
        return tuple(insight for _, insight in fired)
