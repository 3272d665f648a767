"""
Metric Store - bounded in-memory time series and KPI arithmetic

Owns every raw MetricSample recorded by the engine:
- Append-only series keyed by sample id, FIFO-evicted past a per-series cap
  and optionally expired past a retention period
- KPI values over an optional timeframe with per-KPI aggregators
- Trend windows (``periods`` x timeframe unit back from now)
- Quality and business KPI snapshots for impact scoring

Each series is guarded by its own lock so the collection loop can append to
one series while dashboards and reports read others.

Usage:
    from trendwatch.collectors.metric_store import MetricStore

    store = MetricStore(max_samples_per_series=1000)
    result = store.record(sample)
    if not result.accepted:
        print(result.error)
    pass_rate = store.kpi("test_pass_rate")
"""

import dataclasses
import math
import numbers
import threading
from collections import deque
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

import numpy as np

from trendwatch.core import get_logger
from trendwatch.domain.business import (
    BusinessImpactMetrics,
    FinancialMetrics,
    OperationalMetrics,
    UserExperienceMetrics,
)
from trendwatch.domain.exceptions import InvalidSampleError
from trendwatch.domain.metrics import (
    DEFAULT_KPIS,
    DataPoint,
    KPIDefinition,
    MetricCategory,
    MetricSample,
    Timeframe,
    TimeframeUnit,
    TrendData,
    ensure_utc,
    utc_now,
)
from trendwatch.domain.quality import (
    DefectMetrics,
    PerformanceMetrics,
    QualityMetrics,
    TestCoverage,
    TestReliability,
)
from trendwatch.domain.serialization import SerializableMixin
from trendwatch.ml.trend_analyzer import classify_trend
from trendwatch.ml.trend_predictor import TrendPredictor
from trendwatch.utils.statistics import calculate_percentile, percent_change

logger = get_logger(__name__)

Aggregator = Callable[[Sequence[float]], float]

BUILTIN_AGGREGATORS: dict[str, Aggregator] = {
    "mean": lambda values: float(np.mean(values)),
    "latest": lambda values: float(values[-1]),
    "sum": lambda values: float(np.sum(values)),
    "max": lambda values: float(np.max(values)),
    "min": lambda values: float(np.min(values)),
    "median": lambda values: calculate_percentile(values, 50),
}

COVERAGE_METRIC = "test_coverage_overall"


@dataclass(frozen=True)
class RecordResult:
    """
    Outcome of MetricStore.record().

    Attributes:
        accepted: True when the sample was stored
        sample: The stored sample (timestamp filled in) when accepted
        error: Why the sample was rejected, when not accepted
    """

    accepted: bool
    sample: MetricSample | None = None
    error: InvalidSampleError | None = None


@dataclass(frozen=True)
class StoreSummary(SerializableMixin):
    total_samples: int
    series_count: int
    active_kpis: int
    last_sample_time: datetime | None
    collecting: bool


class _Series:
    """One metric's bounded buffer and its lock."""

    __slots__ = ("lock", "samples", "newest")

    def __init__(self, max_samples: int):
        self.lock = threading.Lock()
        self.samples: deque[MetricSample] = deque(maxlen=max_samples)
        self.newest: datetime | None = None

    def append(self, sample: MetricSample, retention: timedelta | None) -> int:
        """
        Append under the lock, then drop samples older than *retention* before
        the newest timestamp seen.

        Returns:
            Number of samples expired by retention
        """
        with self.lock:
            self.samples.append(sample)
            if self.newest is None or sample.timestamp > self.newest:
                self.newest = sample.timestamp
            if retention is None:
                return 0

            cutoff = self.newest - retention
            kept = [s for s in self.samples if s.timestamp >= cutoff]
            expired = len(self.samples) - len(kept)
            if expired:
                self.samples = deque(kept, maxlen=self.samples.maxlen)
            return expired

    def snapshot(self) -> list[MetricSample]:
        with self.lock:
            return list(self.samples)


def _validate(sample: object) -> MetricSample:
    """
    Structural validation. Values are never coerced.

    Raises:
        InvalidSampleError: If the sample is malformed
    """
    if not isinstance(sample, MetricSample):
        raise InvalidSampleError(f"expected MetricSample, got {type(sample).__name__}")

    if not isinstance(sample.id, str) or not sample.id.strip():
        raise InvalidSampleError("id must be a non-empty string")

    if isinstance(sample.value, bool) or not isinstance(sample.value, numbers.Real):
        raise InvalidSampleError(f"value must be numeric, got {type(sample.value).__name__}", sample.id)
    if not math.isfinite(sample.value):
        raise InvalidSampleError(f"value must be finite, got {sample.value}", sample.id)

    if not isinstance(sample.category, MetricCategory):
        raise InvalidSampleError(f"unknown category {sample.category!r}", sample.id)

    if sample.timestamp is not None and not isinstance(sample.timestamp, datetime):
        raise InvalidSampleError(f"timestamp must be a datetime, got {type(sample.timestamp).__name__}", sample.id)

    if not isinstance(sample.tags, dict):
        raise InvalidSampleError("tags must be a mapping", sample.id)

    return sample


def _to_unit(unit: TimeframeUnit | str) -> TimeframeUnit:
    try:
        return TimeframeUnit(unit)
    except ValueError:
        valid = ", ".join(u.value for u in TimeframeUnit)
        raise ValueError(f"Unknown timeframe unit {unit!r}; expected one of: {valid}")


class MetricStore:
    """
    Bounded, thread-safe store of metric series and KPI definitions.

    Unknown metric or KPI ids produce empty lists or None, never exceptions.

    Args:
        max_samples_per_series: FIFO cap per series (default: 1000)
        kpis: Initial KPI definitions (default: DEFAULT_KPIS)
        predictor: Forecaster used by trend_data() (default: TrendPredictor())
        retention: Samples older than this before their series' newest sample
            are dropped on record (default: kept until FIFO eviction)
    """

    def __init__(
        self,
        max_samples_per_series: int = 1000,
        kpis: Iterable[KPIDefinition] | None = None,
        predictor: TrendPredictor | None = None,
        retention: timedelta | None = None,
    ) -> None:
        if max_samples_per_series < 1:
            raise ValueError(f"max_samples_per_series must be at least 1, got {max_samples_per_series}")
        if retention is not None and retention <= timedelta(0):
            raise ValueError(f"retention must be positive, got {retention}")

        self.max_samples_per_series = max_samples_per_series
        self.retention = retention
        self.predictor = predictor or TrendPredictor()

        self._registry_lock = threading.Lock()
        self._series: dict[str, _Series] = {}
        self._kpis: dict[str, KPIDefinition] = {}
        self._aggregators: dict[str, Aggregator] = {}
        self._collecting = False

        for definition in DEFAULT_KPIS if kpis is None else kpis:
            self._kpis[definition.id] = definition

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record(self, sample: MetricSample) -> RecordResult:
        """
        Append a sample to its series, evicting the oldest past the cap.

        Values are stored as floats. A missing timestamp is stamped with the
        current UTC time.

        Returns:
            RecordResult; rejected samples carry an InvalidSampleError
        """
        try:
            sample = _validate(sample)
        except InvalidSampleError as e:
            logger.warning(
                "Rejected invalid sample",
                extra={"metric_id": e.sample_id, "reason": e.reason},
            )
            return RecordResult(accepted=False, error=e)

        sample = dataclasses.replace(sample, value=float(sample.value), timestamp=sample.timestamp or utc_now())

        expired = self._get_or_create(sample.id).append(sample, self.retention)

        logger.debug("Sample recorded", extra={"metric_id": sample.id, "value": sample.value, "expired": expired})
        return RecordResult(accepted=True, sample=sample)

    def record_many(self, samples: Iterable[MetricSample]) -> list[RecordResult]:
        return [self.record(sample) for sample in samples]

    def set_collecting(self, collecting: bool) -> None:
        self._collecting = bool(collecting)

    # ------------------------------------------------------------------
    # KPI registry
    # ------------------------------------------------------------------

    def add_kpi(self, definition: KPIDefinition) -> None:
        """Register a KPI definition; an existing definition with the same id is replaced."""
        with self._registry_lock:
            replaced = definition.id in self._kpis
            self._kpis[definition.id] = definition
        logger.info("KPI registered", extra={"kpi_id": definition.id, "replaced": replaced})

    def get_kpi(self, kpi_id: str) -> KPIDefinition | None:
        with self._registry_lock:
            return self._kpis.get(kpi_id)

    def kpi_definitions(self) -> list[KPIDefinition]:
        with self._registry_lock:
            return list(self._kpis.values())

    def register_aggregator(self, kpi_id: str, aggregator: Aggregator | str) -> None:
        """
        Set how a KPI (or raw series) reduces its window to one value.

        Args:
            kpi_id: KPI or metric id
            aggregator: Callable over the window's values, or a built-in name
                (mean, latest, sum, max, min, median)

        Raises:
            ValueError: If a built-in name is unknown
        """
        if isinstance(aggregator, str):
            if aggregator not in BUILTIN_AGGREGATORS:
                raise ValueError(
                    f"Unknown aggregator {aggregator!r}; expected one of: {', '.join(BUILTIN_AGGREGATORS)}"
                )
            aggregator = BUILTIN_AGGREGATORS[aggregator]
        with self._registry_lock:
            self._aggregators[kpi_id] = aggregator

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def kpi(self, kpi_id: str, timeframe: Timeframe | None = None) -> float | None:
        """
        Compute a KPI over an optional inclusive timeframe.

        Returns:
            Aggregated value (mean unless another aggregator is registered),
            or None when the KPI is unknown or its window is empty
        """
        if self.get_kpi(kpi_id) is None:
            return None
        return self.metric_value(kpi_id, timeframe)

    def metric_value(self, metric_id: str, timeframe: Timeframe | None = None) -> float | None:
        """
        Aggregate any series over an optional timeframe, KPI or not.

        Returns:
            Aggregated value, or None when the window is empty
        """
        values = [s.value for s in self.samples(metric_id, timeframe)]
        if not values:
            return None
        with self._registry_lock:
            aggregator = self._aggregators.get(metric_id, BUILTIN_AGGREGATORS["mean"])
        return float(aggregator(values))

    def samples(self, metric_id: str, timeframe: Timeframe | None = None) -> list[MetricSample]:
        """Snapshot of a series in ascending timestamp order, optionally filtered (inclusive)."""
        with self._registry_lock:
            series = self._series.get(metric_id)
        if series is None:
            return []

        snapshot = series.snapshot()
        if timeframe is not None:
            snapshot = [s for s in snapshot if timeframe.contains(s.timestamp)]
        return sorted(snapshot, key=lambda s: s.timestamp)

    def series_ids(self) -> list[str]:
        with self._registry_lock:
            return sorted(self._series)

    def samples_in(self, timeframe: Timeframe | None = None) -> dict[str, list[MetricSample]]:
        """Every non-empty series within *timeframe* (raw-data appendix)."""
        result = {}
        for metric_id in self.series_ids():
            samples = self.samples(metric_id, timeframe)
            if samples:
                result[metric_id] = samples
        return result

    def trend_window(
        self,
        metric_id: str,
        unit: TimeframeUnit | str,
        periods: int,
        now: datetime | None = None,
    ) -> list[MetricSample]:
        """
        Samples with ``now - periods x unit <= timestamp <= now``, ascending.

        Raises:
            ValueError: If the unit is unknown or periods is not positive
        """
        unit = _to_unit(unit)
        if periods < 1:
            raise ValueError(f"periods must be at least 1, got {periods}")

        end = ensure_utc(now) if now else utc_now()
        start = end - unit.delta * periods
        return [s for s in self.samples(metric_id) if start <= s.timestamp <= end]

    def trend_data(
        self,
        metric_id: str,
        unit: TimeframeUnit | str,
        periods: int = 30,
        forecast_periods: int = 5,
        now: datetime | None = None,
    ) -> TrendData:
        """
        Build TrendData for a metric's trend window.

        Includes classification, first-to-last change rate and a linear
        forecast (empty with fewer than three points).

        Example:
            trend = store.trend_data("test_pass_rate", "hour", 24)
            print(trend.trend, trend.change_rate)
        """
        unit = _to_unit(unit)
        window = self.trend_window(metric_id, unit, periods, now)
        points = [DataPoint(timestamp=s.timestamp, value=float(s.value)) for s in window]
        values = [p.value for p in points]

        change_rate = percent_change(values[0], values[-1]) if len(values) >= 2 else 0.0

        return TrendData(
            metric=metric_id,
            timeframe=unit,
            data_points=points,
            trend=classify_trend(values),
            change_rate=change_rate,
            forecast=self.predictor.forecast(points, forecast_periods),
        )

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def quality_metrics(self, timeframe: Timeframe | None = None) -> QualityMetrics:
        """Quality snapshot; series without data read as 0.0."""
        value = self._snapshot_reader(timeframe)
        pass_rate = value("test_pass_rate")

        return QualityMetrics(
            test_coverage=TestCoverage(
                overall=value(COVERAGE_METRIC),
                by_component=self._coverage_by_tag("component", timeframe),
                by_feature=self._coverage_by_tag("feature", timeframe),
            ),
            test_reliability=TestReliability(
                pass_rate=pass_rate,
                flaky_test_rate=value("flaky_test_rate"),
                average_execution_time=value("test_execution_time"),
                failure_rate=100 - pass_rate,
            ),
            defect_metrics=DefectMetrics(
                defect_density=value("defect_density"),
                defect_escape_rate=value("defect_escape_rate"),
                mean_time_to_detection=value("mean_time_to_detection"),
                mean_time_to_resolution=value("mean_time_to_resolution"),
            ),
            performance_metrics=PerformanceMetrics(
                average_response_time=value("average_response_time"),
                throughput=value("throughput"),
                error_rate=value("error_rate"),
                availability_percentage=value("system_availability"),
            ),
        )

    def business_metrics(self, timeframe: Timeframe | None = None) -> BusinessImpactMetrics:
        """Business snapshot; series without data read as 0.0."""
        value = self._snapshot_reader(timeframe)

        return BusinessImpactMetrics(
            user_experience=UserExperienceMetrics(
                satisfaction_score=value("user_satisfaction"),
                task_completion_rate=value("task_completion_rate"),
                error_recovery_rate=value("error_recovery_rate"),
                accessibility_score=value("accessibility_score"),
            ),
            operational=OperationalMetrics(
                system_uptime=value("system_availability"),
                incident_count=value("incident_count"),
                maintenance_time=value("maintenance_time"),
                resource_utilization=value("resource_utilization"),
            ),
            financial=FinancialMetrics(
                testing_cost_per_feature=value("testing_cost_per_feature"),
                defect_cost_avoidance=value("defect_cost_avoidance"),
                time_to_market=value("time_to_market"),
                risk_reduction=value("risk_reduction"),
            ),
        )

    def summary(self) -> StoreSummary:
        with self._registry_lock:
            series = list(self._series.values())
            active_kpis = len(self._kpis)

        total = 0
        last: datetime | None = None
        for entry in series:
            snapshot = entry.snapshot()
            total += len(snapshot)
            for sample in snapshot:
                if last is None or sample.timestamp > last:
                    last = sample.timestamp

        return StoreSummary(
            total_samples=total,
            series_count=len(series),
            active_kpis=active_kpis,
            last_sample_time=last,
            collecting=self._collecting,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get_or_create(self, metric_id: str) -> _Series:
        with self._registry_lock:
            series = self._series.get(metric_id)
            if series is None:
                series = _Series(self.max_samples_per_series)
                self._series[metric_id] = series
            return series

    def _snapshot_reader(self, timeframe: Timeframe | None) -> Callable[[str], float]:
        def read(metric_id: str) -> float:
            result = self.metric_value(metric_id, timeframe)
            return 0.0 if result is None else result

        return read

    def _coverage_by_tag(self, tag: str, timeframe: Timeframe | None) -> dict[str, float]:
        groups: dict[str, list[float]] = {}
        for sample in self.samples(COVERAGE_METRIC, timeframe):
            key = sample.tags.get(tag)
            if key:
                groups.setdefault(key, []).append(sample.value)
        return {key: float(np.mean(values)) for key, values in sorted(groups.items())}
