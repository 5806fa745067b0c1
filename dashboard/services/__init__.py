"""
dashboard/services package marker.
"""

from dashboard.services.file_classifier import FileClassifier, match_file_name
from dashboard.services.period_aggregator import Timeline, TimelineBuilder, aggregate
from dashboard.services.record_normalizer import RecordNormalizer
from dashboard.services.table_extractor import TableExtractor

__all__ = [
    "FileClassifier",
    "match_file_name",
    "Timeline",
    "TimelineBuilder",
    "aggregate",
    "RecordNormalizer",
    "TableExtractor",
]
