"""
dashboard/validators package marker.
"""

from dashboard.validators.cell_parsers import (
    ParsedDate,
    ParsedNumber,
    is_empty_row,
    is_total_row,
    parse_date,
    parse_label,
    parse_number,
)

__all__ = [
    "ParsedDate",
    "ParsedNumber",
    "is_empty_row",
    "is_total_row",
    "parse_date",
    "parse_label",
    "parse_number",
]
