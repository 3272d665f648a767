"""
Tests for TrendAnalyzer - Trend Classification and Insight Generation

Tests trend classification, per-metric insight generation (overall trend,
anomaly, pattern, forecast), replace-on-reanalysis storage, correlations and
the summary report.
"""

import threading
from datetime import timedelta

import pytest

from trendwatch.domain.insights import InsightType
from trendwatch.domain.metrics import (
    DEFAULT_KPIS,
    DataPoint,
    KPIDefinition,
    KPIThreshold,
    MetricCategory,
    Severity,
    TimeframeUnit,
    TrendData,
    TrendDirection,
)
from trendwatch.ml import TrendAnalyzer, classify_trend
from trendwatch.ml.trend_analyzer import change_severity, rank_insights


@pytest.fixture
def analyzer():
    """Fresh analyzer with default detectors"""
    return TrendAnalyzer()


@pytest.fixture
def kpi_x():
    """KPI with bands critical 40 / warning 60 / good 80"""
    return KPIDefinition(
        id="x",
        name="X",
        category=MetricCategory.QUALITY,
        formula="mean(x)",
        target=80,
        threshold=KPIThreshold(critical=40, warning=60, good=80),
        unit="%",
    )


def kpi(kpi_id):
    return next(k for k in DEFAULT_KPIS if k.id == kpi_id)


def trend_of(metric, points, forecast=None):
    values = [p.value for p in points]
    return TrendData(
        metric=metric,
        timeframe=TimeframeUnit.HOUR,
        data_points=points,
        trend=classify_trend(values),
        forecast=forecast or [],
    )


class TestClassifyTrend:
    """Test half-over-half trend classification."""

    def test_strictly_increasing_is_improving(self):
        """Test a steady rise beyond 5% is improving."""
        assert classify_trend(list(range(100, 120, 2))) == TrendDirection.IMPROVING

    def test_strictly_decreasing_is_declining(self):
        """Test a steady fall beyond 5% is declining."""
        assert classify_trend(list(range(118, 98, -2))) == TrendDirection.DECLINING

    def test_alternating_high_variance_is_volatile(self):
        """Test CV above 20% wins over direction."""
        assert classify_trend([10, 100] * 5) == TrendDirection.VOLATILE

    def test_small_change_is_stable(self):
        """Test a change within 5% is stable."""
        assert classify_trend([100, 101, 102, 103]) == TrendDirection.STABLE

    @pytest.mark.parametrize("values", [[], [42.0]])
    def test_fewer_than_two_points_is_stable(self, values):
        """Test degenerate input is stable."""
        assert classify_trend(values) == TrendDirection.STABLE

    def test_zero_first_half_mean_is_not_a_change(self):
        """Test a zero baseline reads as no change."""
        assert classify_trend([0, 0, 0, 0]) == TrendDirection.STABLE


class TestChangeSeverity:
    """Test |change| severity bands used without a KPI."""

    @pytest.mark.parametrize(
        "change,expected",
        [(-60, Severity.CRITICAL), (30, Severity.HIGH), (-11, Severity.MEDIUM), (10, Severity.LOW)],
    )
    def test_bands(self, change, expected):
        assert change_severity(change) == expected


class TestOverallTrendInsight:
    """Test the overall trend insight."""

    def test_single_point_with_kpi_is_critical(self, analyzer, kpi_x, base_time):
        """Test one sample below the critical band yields a critical insight."""
        trend = trend_of("x", [DataPoint(timestamp=base_time, value=35.0)])

        insights = analyzer.analyze_trend(trend, kpi_x)

        assert len(insights) == 1
        insight = insights[0]
        assert insight.severity == Severity.CRITICAL
        assert insight.metric == "x"
        assert insight.data.current_value == 35.0
        assert insight.data.threshold == 60
        assert insight.affected_timeframe.start == insight.affected_timeframe.end == base_time

    def test_decline_without_kpi_uses_change_bands(self, analyzer, points_factory, base_time):
        """Test a 23% decline is a medium degradation."""
        trend = trend_of("m", points_factory(range(100, 76, -1), base_time))

        insight = analyzer.analyze_trend(trend)[0]

        assert insight.type == InsightType.DEGRADATION
        assert insight.severity == Severity.MEDIUM
        assert insight.data.change_percent == pytest.approx(-23.0)
        assert insight.confidence == pytest.approx(0.23)
        assert insight.title == "m is declining"
        assert "degraded by 23.0%" in insight.description
        assert insight.recommendation.startswith("Monitor closely")

    def test_improvement(self, analyzer, points_factory, base_time):
        """Test a rise is an improvement with a continue-practices recommendation."""
        trend = trend_of("m", points_factory([50, 55, 60], base_time))

        insight = analyzer.analyze_trend(trend)[0]

        assert insight.type == InsightType.IMPROVEMENT
        assert insight.recommendation.startswith("Continue current practices")

    def test_confidence_is_capped(self, analyzer, points_factory, base_time):
        """Test confidence never exceeds 0.95."""
        trend = trend_of("m", points_factory([1, 10], base_time))

        assert analyzer.analyze_trend(trend)[0].confidence == pytest.approx(0.95)

    def test_inverted_kpi_rise_is_degradation(self, analyzer, points_factory, base_time):
        """Test a rising defect escape rate degrades and is banded critical above 15."""
        trend = trend_of("defect_escape_rate", points_factory([5, 10, 20], base_time))

        insight = analyzer.analyze_trend(trend, kpi("defect_escape_rate"))[0]

        assert insight.type == InsightType.DEGRADATION
        assert insight.severity == Severity.CRITICAL

    def test_empty_window_yields_nothing(self, analyzer):
        """Test analyzing no data produces no insights."""
        assert analyzer.analyze_trend(trend_of("m", [])) == []


class TestAnomalyInsights:
    """Test anomaly storage and insight emission."""

    def test_urgent_anomalies_become_insights(self, analyzer, points_factory, base_time):
        """Test critical anomalies produce insights and are stored newest first."""
        points = points_factory([100.0] + [10.0] * 38 + [-80.0], base_time)

        insights = analyzer.detect_anomalies(trend_of("m", points))

        assert len(insights) == 2
        assert {i.title for i in insights} == {"Spike detected in m", "Drop detected in m"}
        assert all(i.type == InsightType.ANOMALY for i in insights)
        assert all(i.confidence == pytest.approx(0.894, abs=1e-3) for i in insights)
        stored = analyzer.get_anomalies("m")
        assert stored[0].timestamp > stored[1].timestamp

    def test_medium_anomaly_stored_without_insight(self, analyzer, points_factory, base_time):
        """Test a z-score of exactly 3 is stored but raises no insight."""
        points = points_factory([10.0] * 9 + [20.0], base_time)

        assert analyzer.detect_anomalies(trend_of("m", points)) == []
        stored = analyzer.get_anomalies("m")
        assert len(stored) == 1
        assert stored[0].severity == Severity.MEDIUM


class TestPatternInsights:
    """Test seasonal pattern insights."""

    def test_confident_pattern_becomes_insight(self, analyzer, base_time):
        """Test a strong daily cycle raises a medium pattern insight."""
        points = []
        for i in range(72):
            timestamp = base_time + timedelta(hours=i)
            points.append(DataPoint(timestamp=timestamp, value=100.0 if 9 <= timestamp.hour <= 17 else 10.0))

        insights = analyzer.analyze_trend(trend_of("traffic", points))

        patterns = [i for i in insights if i.type == InsightType.PATTERN]
        assert len(patterns) == 1
        assert patterns[0].title == "daily pattern detected in traffic"
        assert patterns[0].severity == Severity.MEDIUM
        assert analyzer.get_seasonal_patterns("traffic")[0].metric == "traffic"


class TestForecastInsight:
    """Test forecast threshold-violation insights."""

    def test_declining_pass_rate_forecast_is_critical(self, analyzer, declining_store, base_time):
        """Test a forecast below the critical band raises a critical forecast insight."""
        trend = declining_store.trend_data("test_pass_rate", "hour", 24, now=base_time)

        insights = analyzer.analyze_trend(trend, kpi("test_pass_rate"))

        forecasts = [i for i in insights if i.type == InsightType.FORECAST]
        assert len(forecasts) == 1
        assert forecasts[0].severity == Severity.CRITICAL
        assert forecasts[0].confidence == pytest.approx(0.9)
        assert forecasts[0].data.threshold == 90
        assert forecasts[0].affected_timeframe.start == trend.forecast[0].timestamp

    def test_no_forecast_insight_without_kpi(self, analyzer, declining_store, base_time):
        """Test forecasts are only judged against KPI thresholds."""
        trend = declining_store.trend_data("test_pass_rate", "hour", 24, now=base_time)

        insights = analyzer.analyze_trend(trend)

        assert not [i for i in insights if i.type == InsightType.FORECAST]


class TestStorage:
    """Test most-recent-analysis-wins storage."""

    def test_reanalysis_replaces_insights(self, analyzer, points_factory, base_time):
        """Test insights are replaced, not accumulated."""
        trend = trend_of("m", points_factory([50, 55, 60], base_time))

        analyzer.analyze_trend(trend)
        second = analyzer.analyze_trend(trend)

        assert analyzer.get_insights("m") == second
        assert len(analyzer.all_insights()) == 1

    def test_concurrent_reanalysis_stays_consistent(self, analyzer, points_factory, base_time):
        """Test readers racing re-analysis always see one complete analysis."""
        rising = trend_of("m", points_factory([50, 55, 60], base_time))
        falling = trend_of("m", points_factory([60, 55, 50], base_time))
        done = threading.Event()
        reads = []

        def analyze():
            for i in range(200):
                analyzer.analyze_trend(rising if i % 2 else falling)
            done.set()

        def read():
            while not done.is_set():
                reads.append(analyzer.get_insights("m"))

        threads = [threading.Thread(target=analyze), threading.Thread(target=analyze)]
        threads += [threading.Thread(target=read) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert all(len(insights) <= 1 for insights in reads)
        assert {insights[0].data.current_value for insights in reads if insights} <= {50.0, 60.0}
        assert len(analyzer.all_insights()) == 1

    def test_unknown_metric_is_empty(self, analyzer):
        """Test getters return empty lists for unknown metrics."""
        assert analyzer.get_insights("nope") == []
        assert analyzer.get_anomalies("nope") == []
        assert analyzer.get_seasonal_patterns("nope") == []
        assert analyzer.get_correlations("nope") == []


class TestCorrelations:
    """Test correlation storage."""

    def test_identical_series_correlate(self, analyzer, points_factory, base_time):
        """Test metrics a and b with values 1..20 correlate at 1.0."""
        series = {"a": points_factory(range(1, 21), base_time), "b": points_factory(range(1, 21), base_time)}

        results = analyzer.analyze_correlations(series)

        assert len(results) == 1
        assert results[0].correlation == pytest.approx(1.0)
        assert results[0].strength.value == "very_strong"

    def test_pair_stored_once_regardless_of_order(self, analyzer, points_factory, base_time):
        """Test re-correlating a pair in either order replaces the stored entry."""
        a = points_factory(range(1, 21), base_time)
        b = points_factory(range(1, 21), base_time)

        analyzer.analyze_correlations({"a": a, "b": b})
        analyzer.analyze_correlations({"b": b, "a": a})

        assert len(analyzer.get_correlations()) == 1
        assert len(analyzer.get_correlations("a")) == 1
        assert analyzer.get_correlations("c") == []


class TestSummaryReport:
    """Test cross-metric summary."""

    def test_totals_and_ranking(self, analyzer, kpi_x, points_factory, base_time):
        """Test totals count every metric and top insights are ranked by severity."""
        analyzer.analyze_trend(trend_of("x", [DataPoint(timestamp=base_time, value=35.0)]), kpi_x)
        analyzer.analyze_trend(trend_of("m", points_factory([50, 55, 60], base_time)))

        report = analyzer.summary_report()

        assert report.total_insights == 2
        assert report.critical_insights == 1
        assert report.top_insights[0].metric == "x"
        assert report.to_dict()["top_insights"][0]["severity"] == "critical"

    def test_rank_insights_breaks_ties_by_confidence(self, analyzer, points_factory, base_time):
        """Test equal severities are ordered by confidence descending."""
        low = analyzer.analyze_trend(trend_of("low", points_factory([100, 101], base_time)))[0]
        high = analyzer.analyze_trend(trend_of("high", points_factory([100, 105], base_time)))[0]

        assert rank_insights([low, high]) == [high, low]
