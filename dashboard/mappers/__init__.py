"""
dashboard/mappers package marker.
"""

from dashboard.mappers.column_aliases import (
    COLUMN_ALIASES,
    ColumnResolution,
    ColumnResolver,
    match_table_kind,
    normalize_header,
)

__all__ = [
    "COLUMN_ALIASES",
    "ColumnResolution",
    "ColumnResolver",
    "match_table_kind",
    "normalize_header",
]
