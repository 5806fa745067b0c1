"""
Volume metrics computed over an aggregated timeline.
"""

from metrics.engine import MetricsEngine
from metrics.growth import growth_rate, kc_per_document
from metrics.snapshot import MetricsSnapshot

__all__ = ["MetricsEngine", "MetricsSnapshot", "growth_rate", "kc_per_document"]
