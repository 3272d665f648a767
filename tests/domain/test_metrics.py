"""
Tests for base metrics domain models
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from trendwatch.domain.metrics import (
    DataPoint,
    KPIThreshold,
    MetricCategory,
    MetricSample,
    Severity,
    Timeframe,
    TimeframeUnit,
    TrendData,
    TrendDirection,
)


class TestTimeframe:
    """Test Timeframe inclusive window"""

    def test_naive_bounds_become_utc(self):
        """Test naive datetimes are treated as UTC"""
        window = Timeframe(start=datetime(2026, 2, 1), end=datetime(2026, 2, 2))

        assert window.start.tzinfo == timezone.utc
        assert window.end.tzinfo == timezone.utc

    def test_start_after_end_raises(self):
        """Test an inverted window is rejected"""
        with pytest.raises(ValueError, match="is after end"):
            Timeframe(start=datetime(2026, 2, 2), end=datetime(2026, 2, 1))

    def test_non_datetime_raises(self):
        """Test string bounds are rejected"""
        with pytest.raises(TypeError, match="must be datetime"):
            Timeframe(start="2026-02-01", end=datetime(2026, 2, 2))  # type: ignore[arg-type]

    def test_contains_is_inclusive(self, base_time):
        """Test both bounds are inside the window"""
        window = Timeframe(start=base_time, end=base_time + timedelta(hours=1))

        assert window.contains(base_time)
        assert window.contains(base_time + timedelta(hours=1))
        assert not window.contains(base_time + timedelta(hours=1, seconds=1))

    def test_last(self, base_time):
        """Test Timeframe.last() ends at now"""
        window = Timeframe.last(timedelta(days=7), base_time)

        assert window.end == base_time
        assert window.duration == timedelta(days=7)


class TestKPIThreshold:
    """Test KPI threshold banding in both directions"""

    def test_higher_is_better(self):
        """Test pass-rate style thresholds band low values"""
        threshold = KPIThreshold(critical=80, warning=90, good=95)

        assert threshold.higher_is_better
        assert threshold.severity_for(79) == Severity.CRITICAL
        assert threshold.severity_for(85) == Severity.HIGH
        assert threshold.severity_for(92) == Severity.MEDIUM
        assert threshold.severity_for(95) == Severity.LOW
        assert threshold.severity_for(99) == Severity.LOW

    def test_lower_is_better(self):
        """Test escape-rate style thresholds band high values"""
        threshold = KPIThreshold(critical=15, warning=10, good=5)

        assert not threshold.higher_is_better
        assert threshold.severity_for(20) == Severity.CRITICAL
        assert threshold.severity_for(12) == Severity.HIGH
        assert threshold.severity_for(7) == Severity.MEDIUM
        assert threshold.severity_for(5) == Severity.LOW

    def test_bound_itself_is_not_a_violation(self):
        threshold = KPIThreshold(critical=80, warning=90, good=95)

        assert not threshold.violates(80, threshold.critical)
        assert threshold.violates(79.99, threshold.critical)


class TestMetricSample:
    """Test MetricSample construction"""

    def test_category_string_converted(self, base_time):
        """Test valid category strings become MetricCategory"""
        sample = MetricSample(id="m", name="M", category="security", value=1, unit="count", timestamp=base_time)

        assert sample.category is MetricCategory.SECURITY

    def test_unknown_category_left_for_validation(self, base_time):
        """Test unknown category strings do not raise at construction"""
        sample = MetricSample(id="m", name="M", category="unknown", value=1, unit="", timestamp=base_time)

        assert sample.category == "unknown"

    def test_naive_timestamp_becomes_utc(self):
        sample = MetricSample(
            id="m", name="M", category=MetricCategory.QUALITY, value=1, unit="", timestamp=datetime(2026, 1, 1)
        )

        assert sample.timestamp.tzinfo == timezone.utc

    def test_tags_are_copied(self, base_time):
        """Test mutating the caller's dict does not change the sample"""
        tags = {"source": "ci"}
        sample = MetricSample(id="m", name="M", category=MetricCategory.QUALITY, value=1, unit="", tags=tags)

        tags["source"] = "changed"

        assert sample.tags == {"source": "ci"}

    def test_to_dict_is_json_safe(self, base_time):
        """Test serialization uses enum values and ISO timestamps"""
        sample = MetricSample(
            id="m", name="M", category=MetricCategory.QUALITY, value=1.5, unit="%", timestamp=base_time
        )

        data = sample.to_dict()

        assert data["category"] == "quality"
        assert data["timestamp"] == "2026-02-07T12:00:00+00:00"
        json.dumps(data)


class TestSeverity:
    def test_rank_order(self):
        """Test critical sorts above low"""
        ordered = sorted(Severity, key=lambda s: s.rank, reverse=True)

        assert ordered == [Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW]

    def test_is_urgent(self):
        assert Severity.CRITICAL.is_urgent
        assert Severity.HIGH.is_urgent
        assert not Severity.MEDIUM.is_urgent


class TestTimeframeUnit:
    def test_month_is_thirty_days(self):
        assert TimeframeUnit.MONTH.delta == timedelta(days=30)
        assert TimeframeUnit.QUARTER.delta == timedelta(days=90)


class TestTrendData:
    """Test TrendData time series model"""

    def test_latest_and_earliest(self, points_factory, base_time):
        trend = TrendData(metric="m", timeframe=TimeframeUnit.HOUR, data_points=points_factory([50, 45, 38], base_time))

        assert trend.earliest() == 50.0
        assert trend.latest() == 38.0
        assert trend.values == [50.0, 45.0, 38.0]

    def test_empty(self):
        """Test empty TrendData returns None"""
        trend = TrendData(metric="m", timeframe=TimeframeUnit.DAY, data_points=[])

        assert trend.latest() is None
        assert trend.earliest() is None
        assert trend.span() is None
        assert trend.trend == TrendDirection.STABLE

    def test_span(self, base_time):
        points = [DataPoint(base_time, 1.0), DataPoint(base_time + timedelta(hours=3), 2.0)]
        trend = TrendData(metric="m", timeframe=TimeframeUnit.HOUR, data_points=points)

        assert trend.span().duration == timedelta(hours=3)
