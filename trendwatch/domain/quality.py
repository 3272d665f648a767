"""
Quality domain models

KPI snapshot of test quality, defect handling and runtime performance,
assembled by MetricStore.quality_metrics() over a timeframe.
"""

from dataclasses import dataclass, field

from .serialization import SerializableMixin


@dataclass(frozen=True)
class TestCoverage(SerializableMixin):
    """
    Coverage percentages.

    Attributes:
        overall: Mean of ``test_coverage_overall`` samples
        by_component: Mean coverage per ``component`` tag
        by_feature: Mean coverage per ``feature`` tag
    """

    __test__ = False  # not a pytest test class

    overall: float = 0.0
    by_component: dict[str, float] = field(default_factory=dict)
    by_feature: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class TestReliability(SerializableMixin):
    """Pass/fail behaviour of the suite. ``failure_rate`` is always 100 - pass_rate."""

    __test__ = False

    pass_rate: float = 0.0
    flaky_test_rate: float = 0.0
    average_execution_time: float = 0.0
    failure_rate: float = 100.0


@dataclass(frozen=True)
class DefectMetrics(SerializableMixin):
    defect_density: float = 0.0
    defect_escape_rate: float = 0.0
    mean_time_to_detection: float = 0.0
    mean_time_to_resolution: float = 0.0


@dataclass(frozen=True)
class PerformanceMetrics(SerializableMixin):
    """Runtime performance (response time in ms, throughput in requests/s)."""

    average_response_time: float = 0.0
    throughput: float = 0.0
    error_rate: float = 0.0
    availability_percentage: float = 0.0


@dataclass(frozen=True)
class QualityMetrics(SerializableMixin):
    """
    Quality snapshot for a timeframe.

    Every field defaults to 0.0 when no data was recorded for its series.

    Example:
        quality = store.quality_metrics()
        if quality.test_reliability.pass_rate < 90:
            print(f"Failure rate {quality.test_reliability.failure_rate:.1f}%")
    """

    test_coverage: TestCoverage = field(default_factory=TestCoverage)
    test_reliability: TestReliability = field(default_factory=TestReliability)
    defect_metrics: DefectMetrics = field(default_factory=DefectMetrics)
    performance_metrics: PerformanceMetrics = field(default_factory=PerformanceMetrics)
