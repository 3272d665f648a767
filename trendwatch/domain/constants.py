"""
Analytics Constants

Centralized thresholds and bands for trend classification, anomaly detection,
seasonality, correlation, forecasting and business-impact scoring.
Values are immutable; tunable operational settings live in secure_config.
"""

from dataclasses import dataclass

DEFAULT_KEY_METRICS: tuple[str, ...] = (
    "test_pass_rate",
    "system_availability",
    "user_satisfaction",
    "defect_escape_rate",
)
"""Metrics re-analyzed by the real-time loop and surfaced on the dashboard"""

QUALITY_TREND_METRICS: tuple[str, ...] = ("test_pass_rate", "defect_escape_rate", "system_availability")
"""Metrics whose trend deltas appear in periodic reports"""


@dataclass(frozen=True)
class TrendThresholds:
    """
    Overall trend classification constants.

    Attributes:
        VOLATILITY_PERCENT: Coefficient of variation (%) above which a series is volatile
        CHANGE_PERCENT: Half-over-half change (%) separating improving/declining from stable
        CRITICAL_CHANGE: |change| (%) for critical severity when no KPI is known
        HIGH_CHANGE: |change| (%) for high severity
        MEDIUM_CHANGE: |change| (%) for medium severity
        MAX_CONFIDENCE: Upper bound for every confidence value

    Example:
        >>> trend_thresholds.VOLATILITY_PERCENT
        20.0
    """

    VOLATILITY_PERCENT: float = 20.0
    CHANGE_PERCENT: float = 5.0
    CRITICAL_CHANGE: float = 50.0
    HIGH_CHANGE: float = 25.0
    MEDIUM_CHANGE: float = 10.0
    MAX_CONFIDENCE: float = 0.95


@dataclass(frozen=True)
class AnomalyThresholds:
    """
    Z-score anomaly detection constants.

    Attributes:
        MIN_POINTS: Minimum window size before detection runs
        ZSCORE: z above which a point is an anomaly candidate (medium)
        HIGH_ZSCORE: z above which an anomaly is high severity
        CRITICAL_ZSCORE: z above which an anomaly is critical
        CONFIDENCE_DIVISOR: insight confidence = min(0.95, z / divisor)
    """

    MIN_POINTS: int = 10
    ZSCORE: float = 2.5
    HIGH_ZSCORE: float = 3.0
    CRITICAL_ZSCORE: float = 4.0
    CONFIDENCE_DIVISOR: float = 5.0


@dataclass(frozen=True)
class SeasonalityConfig:
    """
    Seasonal bucket analysis constants.

    Attributes:
        MIN_PERIODS: Samples a bucket needs before its average counts
        HOURLY_COVERAGE: Populated hour-of-day buckets required (of 24)
        WEEKLY_COVERAGE: Populated day-of-week buckets required (of 7)
        MONTHLY_COVERAGE: Populated day-of-month buckets required (of 31)
        PEAK_FACTOR: Fraction of amplitude a bucket must clear to be a peak/valley
        INSIGHT_CONFIDENCE: Pattern confidence above which an insight is emitted
    """

    MIN_PERIODS: int = 3
    HOURLY_COVERAGE: int = 12
    WEEKLY_COVERAGE: int = 5
    MONTHLY_COVERAGE: int = 15
    PEAK_FACTOR: float = 0.2
    INSIGHT_CONFIDENCE: float = 0.7


@dataclass(frozen=True)
class CorrelationThresholds:
    """
    Pearson correlation constants.

    Attributes:
        MIN_POINTS: Minimum points in each series
        MIN_ABS_CORRELATION: |r| at or above which a pair is retained
        MODERATE: |r| lower bound for moderate strength
        STRONG: |r| lower bound for strong
        VERY_STRONG: |r| lower bound for very strong
    """

    MIN_POINTS: int = 10
    MIN_ABS_CORRELATION: float = 0.3
    MODERATE: float = 0.3
    STRONG: float = 0.5
    VERY_STRONG: float = 0.7


@dataclass(frozen=True)
class ForecastConfig:
    """
    Linear-regression forecasting constants.

    Attributes:
        MIN_POINTS: Minimum history required to fit a line
        DEFAULT_PERIODS: Future points projected per request
        CONFIDENCE_DECAY: Confidence lost per future step
        MIN_CONFIDENCE: Confidence floor
        DEFAULT_CADENCE_SECONDS: Step used when history has a single timestamp
    """

    MIN_POINTS: int = 3
    DEFAULT_PERIODS: int = 5
    CONFIDENCE_DECAY: float = 0.1
    MIN_CONFIDENCE: float = 0.5
    DEFAULT_CADENCE_SECONDS: float = 60.0


@dataclass(frozen=True)
class RiskBands:
    """
    Score to risk-level bands (score >= band).

    Example:
        >>> risk_bands.LOW
        80.0
    """

    LOW: float = 80.0
    MEDIUM: float = 60.0
    HIGH: float = 40.0


@dataclass(frozen=True)
class ImpactIssueThresholds:
    """
    Fixed rule thresholds that raise per-category business issues.
    """

    CRITICAL_SATISFACTION: float = 3.0
    REPUTATION_SATISFACTION: float = 3.5
    TASK_COMPLETION: float = 80.0
    ACCESSIBILITY: float = 70.0
    UPTIME: float = 99.0
    ERROR_RATE: float = 5.0
    RESOURCE_UTILIZATION: float = 85.0
    COST_PER_FEATURE: float = 10_000.0
    TIME_TO_MARKET: float = 90.0
    RELIABILITY: float = 99.5
    MAX_RECOMMENDATIONS: int = 10


@dataclass(frozen=True)
class HealthScoreWeights:
    """
    Dashboard health-score blend. Weights sum to 1.0.

    RESPONSE_TIME_DIVISOR converts milliseconds to a 0-100 penalty.
    """

    TEST_PASS_RATE: float = 0.20
    AVAILABILITY: float = 0.20
    SATISFACTION: float = 0.20
    DEFECT_ESCAPE: float = 0.15
    RESPONSE_TIME: float = 0.15
    ERROR_RATE: float = 0.10
    RESPONSE_TIME_DIVISOR: float = 10.0


@dataclass(frozen=True)
class DashboardLimits:
    """
    Result-size caps for dashboard sections.
    """

    TOP_INSIGHTS: int = 5
    RECENT_ANOMALIES: int = 10
    KEY_CORRELATIONS: int = 5
    ANOMALY_LOOKBACK_HOURS: int = 24


# Singleton instances for easy import
trend_thresholds = TrendThresholds()
anomaly_thresholds = AnomalyThresholds()
seasonality_config = SeasonalityConfig()
correlation_thresholds = CorrelationThresholds()
forecast_config = ForecastConfig()
risk_bands = RiskBands()
impact_issue_thresholds = ImpactIssueThresholds()
health_score_weights = HealthScoreWeights()
dashboard_limits = DashboardLimits()
