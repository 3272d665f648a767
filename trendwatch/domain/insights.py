"""
Trend insight domain models

Derived findings produced by TrendAnalyzer:
    - TrendInsight: Severity-ranked finding with recommendation
    - AnomalyDetection: Single z-score outlier
    - SeasonalPattern: Bucket-level recurring deviation
    - CorrelationAnalysis: Pearson relationship between two metrics
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .metrics import Severity, Timeframe, utc_now
from .serialization import SerializableMixin


class InsightType(str, Enum):
    IMPROVEMENT = "improvement"
    DEGRADATION = "degradation"
    ANOMALY = "anomaly"
    PATTERN = "pattern"
    FORECAST = "forecast"


class AnomalyType(str, Enum):
    SPIKE = "spike"
    DROP = "drop"
    DRIFT = "drift"
    OUTLIER = "outlier"


class PatternPeriod(str, Enum):
    """Bucketing used for seasonal analysis."""

    DAILY = "daily"  # hour-of-day buckets
    WEEKLY = "weekly"  # day-of-week buckets
    MONTHLY = "monthly"  # day-of-month buckets
    QUARTERLY = "quarterly"


class CorrelationStrength(str, Enum):
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"
    VERY_STRONG = "very_strong"


class CorrelationDirection(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"


def new_insight_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class InsightData(SerializableMixin):
    """
    Numbers behind an insight.

    Attributes:
        current_value: Latest (or anomalous) value
        change_percent: Percent change or deviation that triggered the insight
        previous_value: Comparison value (first value, mean, ...) when known
        threshold: KPI threshold that was crossed, when applicable
    """

    current_value: float
    change_percent: float
    previous_value: float | None = None
    threshold: float | None = None


@dataclass(frozen=True)
class TrendInsight(SerializableMixin):
    """
    Structured finding about a metric.

    Insight lists are replaced wholesale on every re-analysis of a metric;
    they are never accumulated.

    Attributes:
        id: Unique insight id
        metric: Metric id the insight is about
        type: InsightType
        severity: Severity
        title: Short headline
        description: One-sentence explanation
        recommendation: Suggested next step
        confidence: 0.0-1.0
        detected_at: When the analysis ran (UTC)
        affected_timeframe: Window of data the insight covers
        data: Supporting numbers
    """

    id: str
    metric: str
    type: InsightType
    severity: Severity
    title: str
    description: str
    recommendation: str
    confidence: float
    affected_timeframe: Timeframe
    data: InsightData
    detected_at: datetime = field(default_factory=utc_now)

    @property
    def is_critical(self) -> bool:
        return self.severity is Severity.CRITICAL


@dataclass(frozen=True)
class AnomalyDetection(SerializableMixin):
    """
    A point whose z-score exceeded the anomaly threshold.

    Attributes:
        metric: Metric id
        timestamp: When the anomalous value was recorded
        value: Observed value
        expected_value: Window mean
        deviation: z-score (always positive)
        severity: medium, high or critical
        type: spike (above mean) or drop (below mean)
    """

    metric: str
    timestamp: datetime
    value: float
    expected_value: float
    deviation: float
    severity: Severity
    type: AnomalyType


@dataclass(frozen=True)
class SeasonalPattern(SerializableMixin):
    """
    Recurring bucket-level deviation from the series mean.

    Attributes:
        metric: Metric id
        pattern: PatternPeriod
        peaks: Buckets averaging above mean + 0.2 x amplitude
        valleys: Buckets averaging below mean - 0.2 x amplitude
        amplitude: max bucket average - min bucket average
        confidence: Share of the bucket space that is a peak or valley (capped)
    """

    metric: str
    pattern: PatternPeriod
    peaks: list[int]
    valleys: list[int]
    amplitude: float
    confidence: float


@dataclass(frozen=True)
class CorrelationAnalysis(SerializableMixin):
    """
    Pearson correlation between two metrics. Symmetric; one entry per pair.

    Attributes:
        metric1: First metric id
        metric2: Second metric id
        correlation: Pearson r in [-1, 1]
        strength: CorrelationStrength band of |r|
        direction: Sign of r
        significance: |r| used for ranking
    """

    metric1: str
    metric2: str
    correlation: float
    strength: CorrelationStrength
    direction: CorrelationDirection
    significance: float

    @property
    def pair(self) -> frozenset[str]:
        return frozenset((self.metric1, self.metric2))

    def involves(self, metric_id: str) -> bool:
        return metric_id in (self.metric1, self.metric2)
