"""
Seasonal pattern detection.

Buckets a series three ways and looks for buckets whose average sits well
above or below the mean of all bucket averages:

    daily   - hour of day   (0..23, needs 12 populated buckets)
    weekly  - day of week   (0=Monday..6=Sunday, needs 5)
    monthly - day of month  (1..31, needs 15)

A bucket only counts when it holds at least ``min_periods`` samples.
Timestamps are bucketed in UTC.
"""

from collections.abc import Sequence
from dataclasses import dataclass

import pandas as pd

from trendwatch.core import get_logger
from trendwatch.domain.constants import seasonality_config
from trendwatch.domain.insights import PatternPeriod, SeasonalPattern
from trendwatch.domain.metrics import DataPoint

logger = get_logger(__name__)


@dataclass(frozen=True)
class _Bucketing:
    period: PatternPeriod
    accessor: str  # pandas DatetimeIndex attribute
    bucket_space: int
    min_coverage: int


_BUCKETINGS = (
    _Bucketing(PatternPeriod.DAILY, "hour", 24, seasonality_config.HOURLY_COVERAGE),
    _Bucketing(PatternPeriod.WEEKLY, "dayofweek", 7, seasonality_config.WEEKLY_COVERAGE),
    _Bucketing(PatternPeriod.MONTHLY, "day", 31, seasonality_config.MONTHLY_COVERAGE),
)


class SeasonalPatternDetector:
    """Detect hourly, weekly and monthly seasonality in a metric series."""

    def __init__(self, peak_factor: float = seasonality_config.PEAK_FACTOR) -> None:
        self.peak_factor = peak_factor

    def detect(
        self,
        metric_id: str,
        data_points: Sequence[DataPoint],
        min_periods: int = seasonality_config.MIN_PERIODS,
    ) -> list[SeasonalPattern]:
        """
        Run all three bucketings.

        Returns:
            Patterns for each bucketing that met its coverage floor (possibly empty)
        """
        if not data_points:
            return []

        index = pd.to_datetime([p.timestamp for p in data_points], utc=True)
        values = pd.Series([p.value for p in data_points], index=index, dtype=float)

        patterns = []
        for bucketing in _BUCKETINGS:
            pattern = self._detect_one(metric_id, values, bucketing, min_periods)
            if pattern is not None:
                patterns.append(pattern)

        logger.debug(
            "Seasonal analysis complete",
            extra={"metric_id": metric_id, "points": len(data_points), "patterns": len(patterns)},
        )
        return patterns

    def _detect_one(
        self,
        metric_id: str,
        values: pd.Series,
        bucketing: _Bucketing,
        min_periods: int,
    ) -> SeasonalPattern | None:
        keys = getattr(values.index, bucketing.accessor)
        grouped = values.groupby(keys).agg(["mean", "count"])
        averages = grouped.loc[grouped["count"] >= min_periods, "mean"]

        if len(averages) < bucketing.min_coverage:
            return None

        mean = float(averages.mean())
        amplitude = float(averages.max() - averages.min())
        margin = amplitude * self.peak_factor

        peaks = [int(bucket) for bucket, avg in averages.items() if avg > mean + margin]
        valleys = [int(bucket) for bucket, avg in averages.items() if avg < mean - margin]
        confidence = min(0.95, (len(peaks) + len(valleys)) / bucketing.bucket_space)

        return SeasonalPattern(
            metric=metric_id,
            pattern=bucketing.period,
            peaks=sorted(peaks),
            valleys=sorted(valleys),
            amplitude=amplitude,
            confidence=confidence,
        )
