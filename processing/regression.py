"""
Ordinary least squares regression used for channel calibration and for
stability (trend) estimation.
Degenerate inputs resolve to safe defaults instead of raising.
"""
import math
from typing import Iterable, NamedTuple, Sequence, Tuple

import numpy as np


class RegressionResult(NamedTuple):
    slope: float
    r_squared: float


# Identity transform: "uncalibrated / insufficient data"
IDENTITY = RegressionResult(slope=1.0, r_squared=0.0)


def linear_regression(points: Iterable[Tuple[float, float]]) -> RegressionResult:
    """
    Fit y = slope * x + b over the given (x, y) pairs.

    Args:
        points: Ordered (x, y) pairs

    Returns:
        RegressionResult: (slope, r_squared). Fewer than 2 points or no
        variance in x gives the identity (1, 0). No variance in y with
        variance in x gives r_squared = 1.
    """
    data = np.asarray(list(points), dtype=np.float64)
    if data.ndim != 2 or data.shape[0] < 2:
        return IDENTITY

    x = data[:, 0]
    y = data[:, 1]

    # Repeated non-integer x leaves rounding noise in raw-sum variance
    if np.ptp(x) == 0:
        return IDENTITY

    dx = x - np.mean(x)
    dy = y - np.mean(y) if np.ptp(y) > 0 else np.zeros_like(y)

    sxy = float(np.sum(dx * dy))
    sxx = float(np.sum(dx * dx))
    syy = float(np.sum(dy * dy))

    slope = sxy / sxx
    if syy == 0:
        return RegressionResult(slope, 1.0)

    r_squared = (sxy * sxy) / (sxx * syy)
    if math.isnan(r_squared):
        r_squared = 0.0
    return RegressionResult(slope, min(r_squared, 1.0))


def trendline_slope(values: Sequence[float]) -> float:
    """Slope of the trendline through values sampled at indices 0..n-1 (0 if undefined)."""
    if len(values) < 2:
        return 0.0
    slope = linear_regression((i, v) for i, v in enumerate(values)).slope
    return 0.0 if math.isnan(slope) else slope
