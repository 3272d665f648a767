"""
Pairwise Pearson correlation between metric series.

Series are aligned by index (not timestamp) and truncated to the shorter
length. Pairs with fewer than ten points in either series, or with zero
variance, are skipped.
"""

from collections.abc import Mapping, Sequence
from itertools import combinations

from trendwatch.core import get_logger
from trendwatch.domain.constants import correlation_thresholds
from trendwatch.domain.insights import CorrelationAnalysis, CorrelationDirection, CorrelationStrength
from trendwatch.domain.metrics import DataPoint
from trendwatch.utils.statistics import pearson_correlation

logger = get_logger(__name__)


def correlation_strength(r: float) -> CorrelationStrength:
    """Band |r|: <0.3 weak, <0.5 moderate, <0.7 strong, else very_strong."""
    magnitude = abs(r)
    if magnitude < correlation_thresholds.MODERATE:
        return CorrelationStrength.WEAK
    if magnitude < correlation_thresholds.STRONG:
        return CorrelationStrength.MODERATE
    if magnitude < correlation_thresholds.VERY_STRONG:
        return CorrelationStrength.STRONG
    return CorrelationStrength.VERY_STRONG


def correlate_pair(
    metric1: str,
    points1: Sequence[DataPoint],
    metric2: str,
    points2: Sequence[DataPoint],
    min_points: int = correlation_thresholds.MIN_POINTS,
) -> CorrelationAnalysis | None:
    """
    Correlate two series.

    Returns:
        CorrelationAnalysis, or None when either series is too short or flat
    """
    if len(points1) < min_points or len(points2) < min_points:
        return None

    r = pearson_correlation([p.value for p in points1], [p.value for p in points2])
    if r is None:
        return None

    return CorrelationAnalysis(
        metric1=metric1,
        metric2=metric2,
        correlation=r,
        strength=correlation_strength(r),
        direction=CorrelationDirection.POSITIVE if r > 0 else CorrelationDirection.NEGATIVE,
        significance=abs(r),
    )


def correlate_all(
    series: Mapping[str, Sequence[DataPoint]],
    min_abs_correlation: float = correlation_thresholds.MIN_ABS_CORRELATION,
) -> list[CorrelationAnalysis]:
    """
    Correlate every unordered pair of series.

    Returns:
        Pairs with |r| >= min_abs_correlation, in pair order
    """
    results = []
    for metric1, metric2 in combinations(series, 2):
        analysis = correlate_pair(metric1, series[metric1], metric2, series[metric2])
        if analysis is not None and analysis.significance >= min_abs_correlation:
            results.append(analysis)

    logger.debug("Correlation analysis complete", extra={"series": len(series), "retained": len(results)})
    return results
