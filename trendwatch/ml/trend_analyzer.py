"""
Trend Analyzer - insights from metric windows

Turns an ordered window of data points into structured findings:
- Overall trend (direction, severity from KPI bands or change magnitude)
- Z-score anomalies (see anomaly_detector)
- Seasonal patterns (see pattern_detector)
- Forecast threshold violations (see trend_predictor)
- Pairwise correlations across metrics (see correlation)

Results are stored per metric and REPLACED on every re-analysis; the most
recent analysis of a metric wins and nothing accumulates. Each metric's
results are guarded by their own lock, correlations by a shared one.

Usage:
    from trendwatch.ml.trend_analyzer import TrendAnalyzer

    analyzer = TrendAnalyzer()
    insights = analyzer.analyze_trend(store.trend_data("test_pass_rate", "hour", 24), kpi)
"""

import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from trendwatch.core import get_logger
from trendwatch.domain.constants import anomaly_thresholds, seasonality_config, trend_thresholds
from trendwatch.domain.insights import (
    AnomalyDetection,
    AnomalyType,
    CorrelationAnalysis,
    InsightData,
    InsightType,
    SeasonalPattern,
    TrendInsight,
    new_insight_id,
)
from trendwatch.domain.metrics import (
    DataPoint,
    ForecastPoint,
    KPIDefinition,
    Severity,
    Timeframe,
    TrendData,
    TrendDirection,
)
from trendwatch.domain.serialization import SerializableMixin
from trendwatch.ml.anomaly_detector import AnomalyDetector
from trendwatch.ml.correlation import correlate_all
from trendwatch.ml.pattern_detector import SeasonalPatternDetector
from trendwatch.ml.trend_predictor import TrendPredictor
from trendwatch.utils.statistics import coefficient_of_variation, mean, percent_change

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Classification helpers
# ---------------------------------------------------------------------------


def classify_trend(values: Sequence[float]) -> TrendDirection:
    """
    Classify a series by half-over-half change and volatility.

    The series is split by count (``values[:n//2]`` vs ``values[n//2:]``).
    Volatility is the population coefficient of variation.

    Returns:
        volatile when volatility > 20%, else improving/declining when the
        half-over-half change exceeds +/-5%, else stable (also for < 2 values)

    Example:
        >>> classify_trend([1, 2, 3, 4, 5, 6, 7, 8, 9, 10]).value
        'volatile'
        >>> classify_trend([100, 102, 104, 106, 108, 110, 112, 114, 116, 118]).value
        'improving'
    """
    if len(values) < 2:
        return TrendDirection.STABLE

    half = len(values) // 2
    change = percent_change(mean(values[:half]), mean(values[half:]))
    volatility = coefficient_of_variation(values)

    if volatility > trend_thresholds.VOLATILITY_PERCENT:
        return TrendDirection.VOLATILE
    if change > trend_thresholds.CHANGE_PERCENT:
        return TrendDirection.IMPROVING
    if change < -trend_thresholds.CHANGE_PERCENT:
        return TrendDirection.DECLINING
    return TrendDirection.STABLE


def change_severity(change_percent: float) -> Severity:
    """Band |change|: >50 critical, >25 high, >10 medium, else low."""
    magnitude = abs(change_percent)
    if magnitude > trend_thresholds.CRITICAL_CHANGE:
        return Severity.CRITICAL
    if magnitude > trend_thresholds.HIGH_CHANGE:
        return Severity.HIGH
    if magnitude > trend_thresholds.MEDIUM_CHANGE:
        return Severity.MEDIUM
    return Severity.LOW


def _trend_recommendation(improved: bool, metric: str, severity: Severity) -> str:
    if improved:
        return f"Continue current practices that are contributing to the improvement in {metric}"
    if severity is Severity.CRITICAL:
        return f"Immediate action required: {metric} degradation is critical and may impact system stability"
    if severity is Severity.HIGH:
        return f"Urgent attention needed: Investigate and address the decline in {metric}"
    if severity is Severity.MEDIUM:
        return f"Monitor closely: {metric} is declining and may require intervention"
    return f"Keep monitoring: {metric} shows minor decline but is within acceptable range"


def _anomaly_recommendation(kind: AnomalyType, metric: str, severity: Severity) -> str:
    action = kind.value
    if severity is Severity.CRITICAL:
        return (
            f"Critical {action} detected in {metric}. "
            "Investigate immediately and consider emergency response procedures"
        )
    if severity is Severity.HIGH:
        return f"Significant {action} in {metric} detected. Review recent changes and system logs"
    if severity is Severity.MEDIUM:
        return f"Notable {action} in {metric}. Monitor for recurrence and investigate if pattern continues"
    return f"Minor {action} in {metric} detected. Continue monitoring"


def rank_insights(insights: Sequence[TrendInsight]) -> list[TrendInsight]:
    """Sort by severity (critical first), then confidence descending."""
    return sorted(insights, key=lambda i: (-i.severity.rank, -i.confidence))


@dataclass(frozen=True)
class TrendSummaryReport(SerializableMixin):
    total_insights: int
    critical_insights: int
    anomalies_detected: int
    patterns_found: int
    correlations_found: int
    top_insights: list[TrendInsight]


# ---------------------------------------------------------------------------
# TrendAnalyzer
# ---------------------------------------------------------------------------


class TrendAnalyzer:
    """
    Analyze metric windows and keep the latest findings per metric.

    Args:
        anomaly_detector: Z-score detector (default: AnomalyDetector())
        pattern_detector: Seasonal detector (default: SeasonalPatternDetector())
        predictor: Forecaster (default: TrendPredictor())
    """

    def __init__(
        self,
        anomaly_detector: AnomalyDetector | None = None,
        pattern_detector: SeasonalPatternDetector | None = None,
        predictor: TrendPredictor | None = None,
    ) -> None:
        self.anomaly_detector = anomaly_detector or AnomalyDetector()
        self.pattern_detector = pattern_detector or SeasonalPatternDetector()
        self.predictor = predictor or TrendPredictor()

        self._registry_lock = threading.Lock()
        self._metric_locks: dict[str, threading.Lock] = {}
        self._insights: dict[str, list[TrendInsight]] = {}
        self._anomalies: dict[str, list[AnomalyDetection]] = {}
        self._patterns: dict[str, list[SeasonalPattern]] = {}

        self._correlation_lock = threading.Lock()
        self._correlations: dict[frozenset[str], CorrelationAnalysis] = {}

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def analyze_trend(self, trend_data: TrendData, kpi: KPIDefinition | None = None) -> list[TrendInsight]:
        """
        Run every per-metric analysis and replace the metric's stored insights.

        Order: overall trend, anomalies, seasonal patterns, forecast.

        Args:
            trend_data: Window to analyze (a snapshot; never mutated)
            kpi: Optional KPI definition whose thresholds drive severity

        Returns:
            The new insight list for the metric
        """
        insights: list[TrendInsight] = []
        insights.extend(self._overall_trend_insights(trend_data, kpi))
        insights.extend(self.detect_anomalies(trend_data, kpi))
        insights.extend(self._pattern_insights(trend_data))
        if trend_data.forecast:
            insights.extend(self._forecast_insights(trend_data, kpi))

        with self._lock_for(trend_data.metric):
            self._insights[trend_data.metric] = insights

        logger.info(
            "Trend analysis complete",
            extra={
                "metric_id": trend_data.metric,
                "points": len(trend_data.data_points),
                "trend": trend_data.trend.value,
                "insights": len(insights),
            },
        )
        return insights

    def detect_anomalies(self, trend_data: TrendData, kpi: KPIDefinition | None = None) -> list[TrendInsight]:
        """
        Detect z-score anomalies and replace the metric's stored anomalies.

        Every anomaly (medium and above) is stored, most recent first; only
        high and critical anomalies become insights.

        Returns:
            Anomaly insights (empty with fewer than ten points or zero variance)
        """
        anomalies = self.anomaly_detector.detect(trend_data.metric, trend_data.data_points)

        with self._lock_for(trend_data.metric):
            self._anomalies[trend_data.metric] = sorted(anomalies, key=lambda a: a.timestamp, reverse=True)

        threshold = kpi.threshold.warning if kpi else None
        insights = []
        for anomaly in anomalies:
            if not anomaly.severity.is_urgent:
                continue
            label = "Spike" if anomaly.type is AnomalyType.SPIKE else "Drop"
            insights.append(
                TrendInsight(
                    id=new_insight_id(f"anomaly_{trend_data.metric}"),
                    metric=trend_data.metric,
                    type=InsightType.ANOMALY,
                    severity=anomaly.severity,
                    title=f"{label} detected in {trend_data.metric}",
                    description=(
                        f"Detected a significant {anomaly.type.value} in {trend_data.metric}. "
                        f"Value: {anomaly.value:.2f}, Expected: {anomaly.expected_value:.2f}"
                    ),
                    recommendation=_anomaly_recommendation(anomaly.type, trend_data.metric, anomaly.severity),
                    confidence=min(
                        trend_thresholds.MAX_CONFIDENCE, anomaly.deviation / anomaly_thresholds.CONFIDENCE_DIVISOR
                    ),
                    affected_timeframe=Timeframe(start=anomaly.timestamp, end=anomaly.timestamp),
                    data=InsightData(
                        current_value=anomaly.value,
                        previous_value=anomaly.expected_value,
                        change_percent=percent_change(anomaly.expected_value, anomaly.value),
                        threshold=threshold,
                    ),
                )
            )
        return insights

    def detect_seasonal_patterns(
        self,
        metric_id: str,
        data_points: Sequence[DataPoint],
        min_periods: int = seasonality_config.MIN_PERIODS,
    ) -> list[SeasonalPattern]:
        """Detect hourly/weekly/monthly patterns and replace the metric's stored patterns."""
        patterns = self.pattern_detector.detect(metric_id, data_points, min_periods)
        with self._lock_for(metric_id):
            self._patterns[metric_id] = patterns
        return patterns

    def analyze_correlations(self, series: Mapping[str, Sequence[DataPoint]]) -> list[CorrelationAnalysis]:
        """
        Correlate every pair of series and store retained pairs.

        A stored pair replaces any earlier result for the same two metrics,
        regardless of argument order.

        Returns:
            Retained correlations (|r| >= 0.3)
        """
        correlations = correlate_all(series)
        with self._correlation_lock:
            for analysis in correlations:
                self._correlations[analysis.pair] = analysis
        return correlations

    def forecast(self, data_points: Sequence[DataPoint], periods: int) -> list[ForecastPoint]:
        return self.predictor.forecast(data_points, periods)

    # ------------------------------------------------------------------
    # Getters
    # ------------------------------------------------------------------

    def get_insights(self, metric_id: str) -> list[TrendInsight]:
        with self._lock_for(metric_id):
            return list(self._insights.get(metric_id, []))

    def get_anomalies(self, metric_id: str) -> list[AnomalyDetection]:
        with self._lock_for(metric_id):
            return list(self._anomalies.get(metric_id, []))

    def get_seasonal_patterns(self, metric_id: str) -> list[SeasonalPattern]:
        with self._lock_for(metric_id):
            return list(self._patterns.get(metric_id, []))

    def get_correlations(self, metric_id: str | None = None) -> list[CorrelationAnalysis]:
        """Stored correlations, optionally only those involving *metric_id*."""
        with self._correlation_lock:
            stored = list(self._correlations.values())
        if metric_id is None:
            return stored
        return [c for c in stored if c.involves(metric_id)]

    def all_insights(self) -> list[TrendInsight]:
        result = []
        for metric_id in self._metric_ids():
            result.extend(self.get_insights(metric_id))
        return result

    def all_anomalies(self) -> list[AnomalyDetection]:
        result = []
        for metric_id in self._metric_ids():
            result.extend(self.get_anomalies(metric_id))
        return result

    def all_patterns(self) -> list[SeasonalPattern]:
        result = []
        for metric_id in self._metric_ids():
            result.extend(self.get_seasonal_patterns(metric_id))
        return result

    def summary_report(self, top: int = 5) -> TrendSummaryReport:
        """Totals across all metrics plus the *top* insights by severity then confidence."""
        insights = self.all_insights()
        return TrendSummaryReport(
            total_insights=len(insights),
            critical_insights=sum(1 for i in insights if i.is_critical),
            anomalies_detected=len(self.all_anomalies()),
            patterns_found=len(self.all_patterns()),
            correlations_found=len(self.get_correlations()),
            top_insights=rank_insights(insights)[:top],
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _lock_for(self, metric_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._metric_locks.get(metric_id)
            if lock is None:
                lock = threading.Lock()
                self._metric_locks[metric_id] = lock
            return lock

    def _metric_ids(self) -> list[str]:
        with self._registry_lock:
            return sorted(self._metric_locks)

    def _window(self, trend_data: TrendData) -> Timeframe:
        points = trend_data.data_points
        return Timeframe(start=points[0].timestamp, end=points[-1].timestamp)

    def _overall_trend_insights(self, trend_data: TrendData, kpi: KPIDefinition | None) -> list[TrendInsight]:
        points = trend_data.data_points
        if not points:
            return []

        first_value = points[0].value
        last_value = points[-1].value
        change = percent_change(first_value, last_value) if len(points) >= 2 else 0.0

        if kpi is not None:
            severity = kpi.threshold.severity_for(last_value)
            improved = change > 0 if kpi.threshold.higher_is_better else change < 0
        else:
            severity = change_severity(change)
            improved = change > 0

        insight_type = InsightType.IMPROVEMENT if improved else InsightType.DEGRADATION
        verb = "improved" if improved else "degraded"

        return [
            TrendInsight(
                id=new_insight_id(f"trend_{trend_data.metric}"),
                metric=trend_data.metric,
                type=insight_type,
                severity=severity,
                title=f"{trend_data.metric} is {trend_data.trend.value}",
                description=f"{trend_data.metric} has {verb} by {abs(change):.1f}% over the analyzed period",
                recommendation=_trend_recommendation(improved, trend_data.metric, severity),
                confidence=min(trend_thresholds.MAX_CONFIDENCE, abs(change) / 100),
                affected_timeframe=self._window(trend_data),
                data=InsightData(
                    current_value=last_value,
                    previous_value=first_value,
                    change_percent=change,
                    threshold=kpi.threshold.warning if kpi else None,
                ),
            )
        ]

    def _pattern_insights(self, trend_data: TrendData) -> list[TrendInsight]:
        patterns = self.detect_seasonal_patterns(trend_data.metric, trend_data.data_points)

        insights = []
        for pattern in patterns:
            if pattern.confidence <= seasonality_config.INSIGHT_CONFIDENCE:
                continue
            period = pattern.pattern.value
            insights.append(
                TrendInsight(
                    id=new_insight_id(f"pattern_{trend_data.metric}_{period}"),
                    metric=trend_data.metric,
                    type=InsightType.PATTERN,
                    severity=Severity.MEDIUM,
                    title=f"{period} pattern detected in {trend_data.metric}",
                    description=(
                        f"A recurring {period} pattern has been detected with "
                        f"{pattern.confidence * 100:.1f}% confidence"
                    ),
                    recommendation=(
                        f"Consider optimizing for the detected {period} pattern "
                        "to improve performance during peak periods"
                    ),
                    confidence=pattern.confidence,
                    affected_timeframe=self._window(trend_data),
                    data=InsightData(current_value=pattern.amplitude, change_percent=0.0),
                )
            )
        return insights

    def _forecast_insights(self, trend_data: TrendData, kpi: KPIDefinition | None) -> list[TrendInsight]:
        if kpi is None or not trend_data.data_points:
            return []

        threshold = kpi.threshold
        violating = [f for f in trend_data.forecast if threshold.violates(f.predicted_value, threshold.warning)]
        if not violating:
            return []

        severity = (
            Severity.CRITICAL
            if any(threshold.violates(f.predicted_value, threshold.critical) for f in violating)
            else Severity.HIGH
        )
        current_value = trend_data.data_points[-1].value
        future_value = trend_data.forecast[-1].predicted_value

        logger.info(
            "Forecast predicts threshold violation",
            extra={"metric_id": trend_data.metric, "severity": severity.value, "violating_points": len(violating)},
        )

        return [
            TrendInsight(
                id=new_insight_id(f"forecast_{trend_data.metric}"),
                metric=trend_data.metric,
                type=InsightType.FORECAST,
                severity=severity,
                title=f"Forecast predicts threshold violation for {trend_data.metric}",
                description=(
                    f"Based on current trends, {trend_data.metric} is predicted to cross "
                    "acceptable thresholds"
                ),
                recommendation=(
                    "Take preventive action to address the predicted decline before it impacts system performance"
                ),
                confidence=violating[0].confidence,
                affected_timeframe=Timeframe(start=violating[0].timestamp, end=violating[-1].timestamp),
                data=InsightData(
                    current_value=current_value,
                    previous_value=future_value,
                    change_percent=percent_change(current_value, future_value),
                    threshold=threshold.warning,
                ),
            )
        ]
