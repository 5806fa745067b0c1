"""
dashboard/validators/cell_parsers.py

Cell-level type parsing shared by the extractor and the normalizer.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any

DATE_FORMATS: tuple[str, ...] = (
    "%m/%d/%Y",
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%y",
    "%m-%d-%Y",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
    "%Y%m%d",
)

# Excel's day zero; serial 60 (the fictitious 1900-02-29) is not special-cased.
_EXCEL_EPOCH = date(1899, 12, 30)
_EXCEL_MAX_SERIAL = 2_958_465

_TOTAL_MARKER = re.compile(r"^\s*(grand\s*)?(sub[\s-]*)?totals?\s*:?\s*$", re.IGNORECASE)
_PERIOD_RE = re.compile(r"^(\d{4})[-/]?(\d{2})$")
_NUMERIC_STRIP = re.compile(r"[,\s$€£]")


@dataclass(frozen=True)
class ParsedNumber:
    """
    Result of numeric coercion.

    ``ok`` is False when the raw value was present but not numeric; the
    value is then 0.0.
    """

    value: float
    ok: bool = True


@dataclass(frozen=True)
class ParsedDate:
    day: date
    month_level: bool = False

    @property
    def period(self) -> str:
        return f"{self.day.year:04d}{self.day.month:02d}"

    @property
    def entity_key(self) -> str:
        return self.period if self.month_level else self.day.isoformat()


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return str(value).strip() == ""


def is_empty_row(row: Any) -> bool:
    return all(is_blank(value) for value in row)


def is_total_row(row: Any) -> bool:
    """
    True when the leading non-empty cell reads like a total/subtotal marker.
    """

    for value in row:
        if is_blank(value):
            continue
        return isinstance(value, str) and bool(_TOTAL_MARKER.match(value))
    return False


def parse_label(value: Any) -> str:
    if is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def parse_number(value: Any) -> ParsedNumber:
    """
    Coerce a cell to float.

    Accepts thousands separators, currency symbols and ``(123)`` negatives.
    Blank cells are a silent zero.
    """

    if is_blank(value):
        return ParsedNumber(0.0)
    if isinstance(value, bool):
        return ParsedNumber(0.0, ok=False)
    if isinstance(value, (int, float)):
        number = float(value)
        if math.isnan(number) or math.isinf(number):
            return ParsedNumber(0.0, ok=False)
        return ParsedNumber(number)

    raw = str(value).strip()
    negative = False
    if raw.startswith("(") and raw.endswith(")"):
        negative = True
        raw = raw[1:-1]
    cleaned = _NUMERIC_STRIP.sub("", raw)
    if cleaned in {"", "-"}:
        return ParsedNumber(0.0, ok=cleaned == "-")

    try:
        number = float(Decimal(cleaned))
    except (InvalidOperation, ValueError):
        return ParsedNumber(0.0, ok=False)
    if math.isinf(number) or math.isnan(number):
        return ParsedNumber(0.0, ok=False)
    return ParsedNumber(-number if negative else number)


def parse_date(value: Any) -> ParsedDate | None:
    """
    Parse spreadsheet dates, Excel serials, ``YYYYMM`` and common text formats.

    Returns ``None`` when the value cannot be placed on a calendar.
    """

    if is_blank(value):
        return None
    if isinstance(value, datetime):
        return ParsedDate(value.date())
    if isinstance(value, date):
        return ParsedDate(value)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _parse_numeric_date(float(value))

    raw = str(value).strip()
    period_match = _PERIOD_RE.match(raw)
    if period_match:
        return _period_to_date(int(period_match.group(1)), int(period_match.group(2)))

    for fmt in DATE_FORMATS:
        try:
            return ParsedDate(datetime.strptime(raw, fmt).date())
        except ValueError:
            continue

    try:
        return _parse_numeric_date(float(raw))
    except ValueError:
        return None


def _parse_numeric_date(number: float) -> ParsedDate | None:
    if math.isnan(number) or math.isinf(number):
        return None
    if number.is_integer() and 100_000 <= number <= 999_999:
        as_int = int(number)
        parsed = _period_to_date(as_int // 100, as_int % 100)
        if parsed is not None:
            return parsed
    if number.is_integer() and 19_000_101 <= number <= 29_991_231:
        try:
            return ParsedDate(datetime.strptime(str(int(number)), "%Y%m%d").date())
        except ValueError:
            return None
    if 1 <= number <= _EXCEL_MAX_SERIAL:
        return ParsedDate(_EXCEL_EPOCH + timedelta(days=int(number)))
    return None


def _period_to_date(year: int, month: int) -> ParsedDate | None:
    if not 1900 <= year <= 2999 or not 1 <= month <= 12:
        return None
    return ParsedDate(date(year, month, 1), month_level=True)
