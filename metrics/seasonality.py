"""
metrics/seasonality.py

Month-of-year profile over period totals.

A month is a peak when its mean across years exceeds the mean of all
period totals by more than their population standard deviation. At least
two distinct calendar years are required.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Mapping

import numpy as np

from metrics.snapshot import INSUFFICIENT_DATA, OK, MonthSeasonality, SeasonalityResult

MIN_YEARS = 2


def detect_seasonality(period_totals: Mapping[str, float]) -> SeasonalityResult:
    """
    Parameters
    ----------
    period_totals:
        ``"YYYYMM"`` -> total volume for that period.
    """

    by_month: dict[int, list[tuple[int, float]]] = defaultdict(list)
    years: set[int] = set()
    for period, total in period_totals.items():
        year, month = int(period[:4]), int(period[4:6])
        years.add(year)
        by_month[month].append((year, float(total)))

    if len(years) < MIN_YEARS:
        return SeasonalityResult(status=INSUFFICIENT_DATA, years=tuple(sorted(years)))

    values = np.asarray(list(period_totals.values()), dtype=float)
    overall_mean = float(values.mean())
    overall_std = float(values.std())

    months: list[MonthSeasonality] = []
    for month in sorted(by_month):
        samples = np.asarray([total for _, total in by_month[month]], dtype=float)
        month_mean = float(samples.mean())
        months.append(
            MonthSeasonality(
                month=month,
                mean=month_mean,
                std=float(samples.std()),
                years=tuple(sorted(year for year, _ in by_month[month])),
                is_peak=month_mean - overall_mean > overall_std,
            )
        )

    return SeasonalityResult(
        status=OK,
        years=tuple(sorted(years)),
        overall_mean=overall_mean,
        overall_std=overall_std,
        months=tuple(months),
    )
