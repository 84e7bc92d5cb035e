"""Small numeric helpers: means, clamping and ordinary least squares."""

from __future__ import annotations

from collections.abc import Sequence


def clamp(value: float, lower: float, upper: float) -> float:
    """Return *value* limited to the closed interval ``[lower, upper]``."""
    return max(lower, min(upper, value))


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean of *values*.

    Raises:
        ValueError: If *values* is empty.
    """
    if not values:
        raise ValueError("mean() of an empty sequence")
    return sum(values) / len(values)


def linear_regression(values: Sequence[float]) -> tuple[float, float]:
    """Fit ``y = intercept + slope * x`` over ``x = 0, 1, ..., n-1``.

    Args:
        values: The observed ``y`` values, in index order.

    Returns:
        ``(slope, intercept)``.  A single point yields a flat line through it.

    Raises:
        ValueError: If *values* is empty.
    """
    n = len(values)
    if n == 0:
        raise ValueError("linear_regression() needs at least one point")
    if n == 1:
        return 0.0, float(values[0])

    x_mean = (n - 1) / 2
    y_mean = mean(values)
    sxy = 0.0
    sxx = 0.0
    for x, y in enumerate(values):
        dx = x - x_mean
        sxy += dx * (y - y_mean)
        sxx += dx * dx
    slope = sxy / sxx
    return slope, y_mean - slope * x_mean
