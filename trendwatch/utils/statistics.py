"""
Statistics Utilities

Shared statistical functions for trend, anomaly and correlation analysis.
All dispersion measures use population variance (ddof=0).

Usage:
    from trendwatch.utils.statistics import pearson_correlation, population_stddev

    sigma = population_stddev(values)
    r = pearson_correlation(series_a, series_b)
"""

from collections.abc import Sequence

import numpy as np


def mean(data: Sequence[float]) -> float:
    """
    Arithmetic mean.

    Raises:
        ValueError: If data is empty
    """
    if len(data) == 0:
        raise ValueError("Cannot calculate mean of empty data")
    return float(np.mean(np.asarray(data, dtype=float)))


def population_stddev(data: Sequence[float]) -> float:
    """
    Population standard deviation (divides by n, not n - 1).

    Args:
        data: Sequence of numeric values

    Returns:
        Standard deviation, 0.0 for a single value

    Raises:
        ValueError: If data is empty

    Example:
        >>> population_stddev([2, 4, 4, 4, 5, 5, 7, 9])
        2.0
    """
    if len(data) == 0:
        raise ValueError("Cannot calculate standard deviation of empty data")
    return float(np.std(np.asarray(data, dtype=float), ddof=0))


def coefficient_of_variation(data: Sequence[float]) -> float:
    """
    Volatility as a percentage: stddev / |mean| x 100.

    Returns 0.0 for empty data or a zero mean.
    """
    if len(data) == 0:
        return 0.0
    avg = mean(data)
    if avg == 0:
        return 0.0
    return population_stddev(data) / abs(avg) * 100


def percent_change(previous: float, current: float) -> float:
    """(current - previous) / previous x 100, or 0.0 when previous is zero."""
    if previous == 0:
        return 0.0
    return (current - previous) / previous * 100


def pearson_correlation(xs: Sequence[float], ys: Sequence[float]) -> float | None:
    """
    Pearson correlation over index-aligned values.

    Both sequences are truncated to the shorter length first.

    Returns:
        r in [-1, 1], or None when fewer than 2 pairs remain or either
        series has zero variance

    Example:
        >>> pearson_correlation([1, 2, 3], [2, 4, 6])
        1.0
    """
    n = min(len(xs), len(ys))
    if n < 2:
        return None

    x = np.asarray(xs[:n], dtype=float)
    y = np.asarray(ys[:n], dtype=float)
    dx = x - x.mean()
    dy = y - y.mean()

    denominator = float(np.sqrt(np.sum(dx * dx) * np.sum(dy * dy)))
    if denominator == 0 or not np.isfinite(denominator):
        return None

    r = float(np.sum(dx * dy)) / denominator
    # Clip floating-point overshoot
    return max(-1.0, min(1.0, r))


def calculate_percentile(data: Sequence[float], percentile: float) -> float:
    """
    Calculate a single percentile value.

    Uses linear interpolation between values (same as numpy.percentile).

    Args:
        data: Sequence of numeric values
        percentile: Percentile to calculate (0-100)

    Returns:
        Percentile value

    Raises:
        ValueError: If data is empty or percentile is out of range

    Example:
        durations = [5.2, 10.1, 15.3, 20.0, 25.5]
        median = calculate_percentile(durations, 50)
    """
    if len(data) == 0:
        raise ValueError("Cannot calculate percentile of empty data")

    if not 0 <= percentile <= 100:
        raise ValueError(f"Percentile must be 0-100, got {percentile}")

    return float(np.percentile(np.asarray(data, dtype=float), percentile))
