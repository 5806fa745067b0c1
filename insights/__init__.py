"""
Deterministic summary facts derived from a metrics snapshot.
"""

from insights.base import Insight, InsightCategory, Severity
from insights.generator import InsightGenerator

__all__ = ["Insight", "InsightCategory", "InsightGenerator", "Severity"]
