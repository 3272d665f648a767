"""
Base domain models for metrics

Provides foundation classes for raw measurements and KPIs:
    - MetricSample: Immutable, time-stamped measurement
    - KPIDefinition: Named, thresholded aggregate over a series
    - Timeframe: Inclusive time window
    - TrendData: Derived time series with classification and forecast
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from .serialization import SerializableMixin


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so every comparison is between aware values."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MetricCategory(str, Enum):
    """Category a metric belongs to."""

    PERFORMANCE = "performance"
    QUALITY = "quality"
    RELIABILITY = "reliability"
    SECURITY = "security"
    USABILITY = "usability"
    BUSINESS = "business"


class Severity(str, Enum):
    """Ordered severity shared by insights, anomalies, issues and recommendations."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Sort key: critical=4 ... low=1."""
        return _SEVERITY_RANK[self]

    @property
    def is_urgent(self) -> bool:
        """True for high and critical."""
        return self in (Severity.HIGH, Severity.CRITICAL)


_SEVERITY_RANK = {Severity.LOW: 1, Severity.MEDIUM: 2, Severity.HIGH: 3, Severity.CRITICAL: 4}


class TrendDirection(str, Enum):
    """Overall direction of a series."""

    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"
    VOLATILE = "volatile"


class Frequency(str, Enum):
    """How often a KPI is expected to be refreshed."""

    REALTIME = "realtime"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class TimeframeUnit(str, Enum):
    """Unit used to size trend windows (``periods`` x unit)."""

    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"

    @property
    def delta(self) -> timedelta:
        return _UNIT_DELTAS[self]


_UNIT_DELTAS = {
    TimeframeUnit.HOUR: timedelta(hours=1),
    TimeframeUnit.DAY: timedelta(days=1),
    TimeframeUnit.WEEK: timedelta(weeks=1),
    TimeframeUnit.MONTH: timedelta(days=30),
    TimeframeUnit.QUARTER: timedelta(days=90),
    TimeframeUnit.YEAR: timedelta(days=365),
}


@dataclass(frozen=True)
class Timeframe(SerializableMixin):
    """
    Inclusive time window.

    Attributes:
        start: First instant included
        end: Last instant included

    Example:
        >>> window = Timeframe.last(timedelta(hours=24))
        >>> window.contains(utc_now())
        True
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        """
        Normalize bounds to UTC and validate ordering.

        Raises:
            TypeError: If a bound is not a datetime
            ValueError: If start is after end
        """
        if not isinstance(self.start, datetime) or not isinstance(self.end, datetime):
            raise TypeError("Timeframe bounds must be datetime instances")
        object.__setattr__(self, "start", ensure_utc(self.start))
        object.__setattr__(self, "end", ensure_utc(self.end))
        if self.start > self.end:
            raise ValueError(f"Timeframe start {self.start.isoformat()} is after end {self.end.isoformat()}")

    @classmethod
    def last(cls, span: timedelta, now: datetime | None = None) -> "Timeframe":
        """Window covering *span* up to *now*."""
        end = ensure_utc(now) if now else utc_now()
        return cls(start=end - span, end=end)

    def contains(self, moment: datetime) -> bool:
        return self.start <= ensure_utc(moment) <= self.end

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


@dataclass(frozen=True)
class MetricSample(SerializableMixin):
    """
    A single recorded measurement.

    Samples are immutable once recorded. The store keys series by ``id``;
    ``timestamp`` may be omitted and is then stamped at recording time.

    Attributes:
        id: Series identifier (e.g., "test_pass_rate")
        name: Display name
        category: MetricCategory (strings are converted when valid)
        value: Measured value
        unit: Unit label ("%", "ms", "rating", ...)
        timestamp: When the value was measured (UTC)
        tags: Free-form string labels (source, environment, component, ...)
        metadata: Optional extra payload carried through to exports

    Example:
        sample = MetricSample(
            id="test_pass_rate",
            name="Test Pass Rate",
            category=MetricCategory.QUALITY,
            value=96.5,
            unit="%",
            tags={"source": "ci"},
        )
    """

    id: str
    name: str
    category: MetricCategory
    value: float
    unit: str
    timestamp: datetime | None = None
    tags: dict[str, str] = field(default_factory=dict)
    metadata: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        if isinstance(self.category, str) and not isinstance(self.category, MetricCategory):
            try:
                object.__setattr__(self, "category", MetricCategory(self.category))
            except ValueError:
                pass  # left as-is; MetricStore rejects unknown categories
        if isinstance(self.timestamp, datetime):
            object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))
        object.__setattr__(self, "tags", dict(self.tags or {}))

    def to_point(self) -> "DataPoint":
        return DataPoint(timestamp=self.timestamp, value=float(self.value))


@dataclass(frozen=True)
class KPIThreshold(SerializableMixin):
    """
    Threshold bands for a KPI.

    Values on the bad side of a band take its severity. For most KPIs the bad
    side is below the band; when ``critical`` exceeds ``good`` it is above.

    Attributes:
        critical: Bound past which the KPI is critical
        warning: Bound past which the KPI needs urgent attention
        good: Bound the KPI must meet to be healthy
    """

    critical: float
    warning: float
    good: float

    @property
    def higher_is_better(self) -> bool:
        """False for KPIs like defect escape rate whose critical band sits above good."""
        return self.critical <= self.good

    def violates(self, value: float, bound: float) -> bool:
        """True when *value* is on the bad side of *bound*."""
        return value < bound if self.higher_is_better else value > bound

    def severity_for(self, value: float) -> Severity:
        """
        Band a value against the thresholds.

        Example:
            >>> KPIThreshold(critical=40, warning=60, good=80).severity_for(35)
            <Severity.CRITICAL: 'critical'>
        """
        if self.violates(value, self.critical):
            return Severity.CRITICAL
        if self.violates(value, self.warning):
            return Severity.HIGH
        if self.violates(value, self.good):
            return Severity.MEDIUM
        return Severity.LOW


@dataclass(frozen=True)
class KPIDefinition(SerializableMixin):
    """
    Registered KPI definition, looked up by ``id``.

    Attributes:
        id: KPI identifier, matching the metric series it aggregates
        name: Display name
        category: Category label
        formula: Human-readable description of the calculation
        target: Target value
        threshold: KPIThreshold bands
        unit: Unit label
        frequency: Expected refresh cadence
        description: Longer description
    """

    id: str
    name: str
    category: MetricCategory
    formula: str
    target: float
    threshold: KPIThreshold
    unit: str
    frequency: Frequency = Frequency.DAILY
    description: str = ""


DEFAULT_KPIS: tuple[KPIDefinition, ...] = (
    KPIDefinition(
        id="test_pass_rate",
        name="Test Pass Rate",
        category=MetricCategory.QUALITY,
        formula="(passed_tests / total_tests) * 100",
        target=95,
        threshold=KPIThreshold(critical=80, warning=90, good=95),
        unit="%",
        frequency=Frequency.REALTIME,
        description="Percentage of tests that pass successfully",
    ),
    KPIDefinition(
        id="defect_escape_rate",
        name="Defect Escape Rate",
        category=MetricCategory.QUALITY,
        formula="(production_defects / total_defects) * 100",
        target=5,
        threshold=KPIThreshold(critical=15, warning=10, good=5),
        unit="%",
        frequency=Frequency.DAILY,
        description="Percentage of defects found in production vs total defects",
    ),
    KPIDefinition(
        id="mean_time_to_detection",
        name="Mean Time to Detection (MTTD)",
        category=MetricCategory.PERFORMANCE,
        formula="sum(detection_times) / count(incidents)",
        target=300,
        threshold=KPIThreshold(critical=900, warning=600, good=300),
        unit="seconds",
        frequency=Frequency.DAILY,
        description="Average time to detect issues",
    ),
    KPIDefinition(
        id="test_execution_time",
        name="Average Test Execution Time",
        category=MetricCategory.PERFORMANCE,
        formula="sum(execution_times) / count(test_runs)",
        target=600,
        threshold=KPIThreshold(critical=1800, warning=1200, good=600),
        unit="seconds",
        frequency=Frequency.REALTIME,
        description="Average time to execute test suites",
    ),
    KPIDefinition(
        id="system_availability",
        name="System Availability",
        category=MetricCategory.RELIABILITY,
        formula="(uptime / total_time) * 100",
        target=99.9,
        threshold=KPIThreshold(critical=95, warning=98, good=99.9),
        unit="%",
        frequency=Frequency.HOURLY,
        description="Percentage of time system is available",
    ),
    KPIDefinition(
        id="user_satisfaction",
        name="User Satisfaction Score",
        category=MetricCategory.BUSINESS,
        formula="sum(satisfaction_ratings) / count(ratings)",
        target=4.5,
        threshold=KPIThreshold(critical=3.0, warning=4.0, good=4.5),
        unit="rating",
        frequency=Frequency.DAILY,
        description="Average user satisfaction rating",
    ),
)


@dataclass(frozen=True)
class DataPoint(SerializableMixin):
    """A (timestamp, value) pair taken from a sample window."""

    timestamp: datetime
    value: float


@dataclass(frozen=True)
class ForecastPoint(SerializableMixin):
    """A projected future value with decaying confidence."""

    timestamp: datetime
    predicted_value: float
    confidence: float


@dataclass
class TrendData(SerializableMixin):
    """
    Time series window for a metric plus its derived classification.

    Computed fresh per request from the store's window; never stored.

    Attributes:
        metric: Metric id
        timeframe: Unit used to size the window
        data_points: Points in ascending timestamp order
        trend: Classified direction
        change_rate: First-to-last percent change
        forecast: Projected future points (may be empty)
    """

    metric: str
    timeframe: TimeframeUnit
    data_points: list[DataPoint]
    trend: TrendDirection = TrendDirection.STABLE
    change_rate: float = 0.0
    forecast: list[ForecastPoint] = field(default_factory=list)

    @property
    def values(self) -> list[float]:
        return [point.value for point in self.data_points]

    def latest(self) -> float | None:
        """
        Get the most recent value.

        Returns:
            Most recent value, or None if no data
        """
        return self.data_points[-1].value if self.data_points else None

    def earliest(self) -> float | None:
        """
        Get the earliest value.

        Returns:
            Earliest value, or None if no data
        """
        return self.data_points[0].value if self.data_points else None

    def span(self) -> Timeframe | None:
        """Window from first to last data point, or None if empty."""
        if not self.data_points:
            return None
        return Timeframe(start=self.data_points[0].timestamp, end=self.data_points[-1].timestamp)
