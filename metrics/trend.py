"""
metrics/trend.py

Least-squares trend over chronologically ordered period totals.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from metrics.snapshot import INSUFFICIENT_DATA, OK, TrendResult


class TrendDirection:
    UP = "up"
    DOWN = "down"
    FLAT = "flat"


class LinearTrend:
    """
    Fits an OLS line to period totals and classifies its direction.

    The regression is computed analytically:

        m = cov(x, y) / var(x)
        b = mean(y) - m * mean(x)

    where x = [0, 1, ..., n-1] and y = the supplied values.

    The slope is judged relative to the mean of y; a relative slope inside
    ``±flat_band`` is ``flat``.
    """

    # Minimum number of data points required for a meaningful fit.
    MIN_POINTS: int = 2

    def __init__(self, flat_band: float = 0.01) -> None:
        self.flat_band = flat_band

    def fit(self, values: Sequence[float]) -> TrendResult:
        if len(values) < self.MIN_POINTS:
            return TrendResult(status=INSUFFICIENT_DATA)

        y = np.asarray(values, dtype=float)
        x = np.arange(len(y), dtype=float)

        # population covariance and variance
        cov_xy = float(np.sum((x - x.mean()) * (y - y.mean())))
        var_x = float(np.sum((x - x.mean()) ** 2))

        slope = cov_xy / var_x
        intercept = float(y.mean()) - slope * float(x.mean())

        mean_y = float(y.mean())
        relative_slope = slope / mean_y if mean_y != 0.0 else None
        if relative_slope is None or abs(relative_slope) <= self.flat_band:
            direction = TrendDirection.FLAT
        elif relative_slope > 0:
            direction = TrendDirection.UP
        else:
            direction = TrendDirection.DOWN

        return TrendResult(
            status=OK,
            direction=direction,
            slope=round(slope, 6),
            intercept=round(intercept, 6),
            relative_slope=round(relative_slope, 6) if relative_slope is not None else None,
        )
