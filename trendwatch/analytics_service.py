"""
Analytics Orchestrator - lifecycle and on-demand views

Composes the engine's components and drives two periodic asyncio tasks:
- Collection loop: polls the injected metric source every collection_interval
  and records what it returns
- Real-time analysis loop: every 5 x collection_interval re-analyzes the key
  metrics, correlates them, assesses business impact and raises alerts

On-demand operations (dashboard, report, trend analysis, cost-benefit,
export, summary) read whatever data currently exists and are safe to call
before initialize().

Usage:
    import asyncio
    from trendwatch.analytics_service import AnalyticsOrchestrator

    async def main():
        service = AnalyticsOrchestrator(source=my_source)
        service.on_alert(lambda alert: print(alert.title))
        await service.initialize()
        ...
        dashboard = service.get_dashboard()
        await service.shutdown()

    asyncio.run(main())
"""

import asyncio
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from trendwatch.collectors.base import MetricSource, poll_source, source_name
from trendwatch.collectors.metric_store import Aggregator, MetricStore, RecordResult
from trendwatch.core import get_logger, log_with_context
from trendwatch.domain.business import BusinessImpactMetrics
from trendwatch.domain.constants import QUALITY_TREND_METRICS, dashboard_limits, health_score_weights
from trendwatch.domain.impact import BusinessImpactAssessment, CostBenefitAnalysis, ExecutiveSummary, ReportType
from trendwatch.domain.insights import (
    AnomalyDetection,
    CorrelationAnalysis,
    CorrelationStrength,
    SeasonalPattern,
    TrendInsight,
    new_insight_id,
)
from trendwatch.domain.metrics import (
    KPIDefinition,
    MetricSample,
    Severity,
    Timeframe,
    TimeframeUnit,
    TrendData,
    TrendDirection,
    utc_now,
)
from trendwatch.domain.quality import QualityMetrics
from trendwatch.domain.serialization import SerializableMixin
from trendwatch.ml.alert_engine import Alert, AlertEngine
from trendwatch.ml.impact_scorer import ImpactScorer
from trendwatch.ml.trend_analyzer import TrendAnalyzer, rank_insights
from trendwatch.reports.exporter import ExportFormat, metrics_to_csv, parse_format, to_json
from trendwatch.secure_config import AnalyticsConfig, ConfigurationError, get_config
from trendwatch.utils.error_handling import log_and_continue, log_and_raise
from trendwatch.utils.statistics import percent_change

logger = get_logger(__name__)

_STRONG_CORRELATIONS = (CorrelationStrength.STRONG, CorrelationStrength.VERY_STRONG)


# ---------------------------------------------------------------------------
# View models
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DashboardSummary(SerializableMixin):
    total_metrics: int
    active_kpis: int
    series_count: int
    last_collection_time: datetime | None
    collecting: bool
    critical_alerts: int
    overall_health_score: float


@dataclass(frozen=True)
class AnalyticsDashboard(SerializableMixin):
    """Current state at a glance (quality/business snapshots cover the last 24 hours)."""

    summary: DashboardSummary
    quality_metrics: QualityMetrics
    business_metrics: BusinessImpactMetrics
    top_insights: list[TrendInsight]
    business_impact: BusinessImpactAssessment
    recent_anomalies: list[AnomalyDetection]
    key_correlations: list[CorrelationAnalysis]
    timestamp: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class QualityTrend(SerializableMixin):
    metric: str
    trend: TrendDirection
    change_percent: float


@dataclass(frozen=True)
class PerformanceAnalysis(SerializableMixin):
    """Response time over the period plus first-to-last change of throughput and error rate."""

    average_response_time: float
    throughput_trend: float
    error_rate_change: float


@dataclass(frozen=True)
class DetailedAnalysis(SerializableMixin):
    quality_trends: list[QualityTrend]
    performance_analysis: PerformanceAnalysis
    business_impact_summary: BusinessImpactAssessment
    cost_benefit_analysis: CostBenefitAnalysis | None


@dataclass(frozen=True)
class ReportRecommendation(SerializableMixin):
    priority: Severity
    title: str
    description: str
    expected_impact: str


@dataclass(frozen=True)
class ReportAppendices(SerializableMixin):
    raw_metrics: dict[str, list[MetricSample]]
    detailed_insights: list[TrendInsight]
    seasonal_patterns: list[SeasonalPattern]


@dataclass(frozen=True)
class AnalyticsReport(SerializableMixin):
    id: str
    type: ReportType
    period: Timeframe
    executive_summary: ExecutiveSummary
    detailed_analysis: DetailedAnalysis
    recommendations: list[ReportRecommendation]
    appendices: ReportAppendices


@dataclass(frozen=True)
class TrendAnalysisResult(SerializableMixin):
    trend_data: TrendData
    insights: list[TrendInsight]
    seasonal_patterns: list[SeasonalPattern]
    anomalies: list[AnomalyDetection]


def health_score(quality: QualityMetrics, business: BusinessImpactMetrics) -> float:
    """
    Blend headline indicators into a 0-100 health score.

    Satisfaction is rescaled from 0-5 to 0-100; defect escape rate and error
    rate are inverted; response time (ms) becomes ``max(0, 100 - ms / 10)``.
    """
    w = health_score_weights
    performance = quality.performance_metrics
    score = (
        quality.test_reliability.pass_rate * w.TEST_PASS_RATE
        + performance.availability_percentage * w.AVAILABILITY
        + business.user_experience.satisfaction_score * 20 * w.SATISFACTION
        + (100 - quality.defect_metrics.defect_escape_rate) * w.DEFECT_ESCAPE
        + max(0.0, 100 - performance.average_response_time / w.RESPONSE_TIME_DIVISOR) * w.RESPONSE_TIME
        + (100 - performance.error_rate) * w.ERROR_RATE
    )
    return max(0.0, min(100.0, score))


# ---------------------------------------------------------------------------
# AnalyticsOrchestrator
# ---------------------------------------------------------------------------


class AnalyticsOrchestrator:
    """
    Owns the engine's components and their periodic tasks.

    Every collaborator can be injected; omitted ones are built from *config*.

    Args:
        config: Analytics configuration (default: from environment)
        store: MetricStore (default: capped at config.max_samples_per_series)
        analyzer: TrendAnalyzer
        scorer: ImpactScorer
        alerts: AlertEngine
        source: Metric source polled by the collection loop (optional)
    """

    def __init__(
        self,
        config: AnalyticsConfig | None = None,
        store: MetricStore | None = None,
        analyzer: TrendAnalyzer | None = None,
        scorer: ImpactScorer | None = None,
        alerts: AlertEngine | None = None,
        source: MetricSource | None = None,
    ) -> None:
        if config is None:
            try:
                config = get_config().get_analytics_config()
            except ConfigurationError as e:
                log_and_raise(logger, e, context={"source": "environment"}, error_type="Configuration")
        self.config = config
        self.store = store or MetricStore(
            max_samples_per_series=self.config.max_samples_per_series,
            retention=timedelta(days=self.config.retention_period_days),
        )
        self.analyzer = analyzer or TrendAnalyzer()
        self.scorer = scorer or ImpactScorer(self.config)
        self.alerts = alerts or AlertEngine()
        self.source = source

        self._initialized = False
        self._collection_task: asyncio.Task | None = None
        self._analysis_task: asyncio.Task | None = None
        self._last_analysis_time: datetime | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Start the collection loop (and the analysis loop when enabled). No-op if already running."""
        if self._initialized:
            return

        self.store.set_collecting(True)
        self._collection_task = asyncio.create_task(self._collection_loop())
        if self.config.enable_realtime_analysis:
            self._analysis_task = asyncio.create_task(self._analysis_loop())
        self._initialized = True

        logger.info(
            "Analytics orchestrator initialized",
            extra={
                "collection_interval": self.config.collection_interval,
                "realtime_analysis": self.config.enable_realtime_analysis,
                "source": source_name(self.source) if self.source else None,
            },
        )

    async def shutdown(self) -> None:
        """Cancel both loops and mark the orchestrator uninitialized."""
        for task in (self._collection_task, self._analysis_task):
            if task is None:
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        self._collection_task = None
        self._analysis_task = None
        self.store.set_collecting(False)
        self._initialized = False
        logger.info("Analytics orchestrator shut down")

    async def collect_once(self) -> int:
        """
        Poll the metric source once and record its samples.

        A failing source is logged and the cycle skipped.

        Returns:
            Number of samples accepted
        """
        if self.source is None:
            return 0
        try:
            samples = await poll_source(self.source)
        except Exception as e:
            log_and_continue(logger, e, {"source": source_name(self.source)}, "Metric collection")
            return 0

        results = self.store.record_many(samples)
        accepted = sum(1 for result in results if result.accepted)
        log_with_context(logger, "debug", "Collection cycle complete", received=len(results), accepted=accepted)
        return accepted

    def run_realtime_analysis(self, now: datetime | None = None) -> list[TrendInsight]:
        """
        Re-analyze key metrics, correlate them and assess business impact.

        Critical insights are delivered to alert subscribers. An overall impact
        score under the configured alert thresholds raises an impact alert, and
        when overall risk is critical so are critical recommendations. A failure analyzing one
        metric does not stop the others.

        Returns:
            Critical insights raised by this pass
        """
        now = now or utc_now()
        critical: list[TrendInsight] = []
        series = {}

        for metric_id in self.config.key_metrics:
            try:
                trend_data = self.store.trend_data(metric_id, TimeframeUnit.HOUR, 24, now=now)
                if not trend_data.data_points:
                    continue
                series[metric_id] = trend_data.data_points
                insights = self.analyzer.analyze_trend(trend_data, self.store.get_kpi(metric_id))
            except Exception as e:
                log_and_continue(logger, e, {"metric_id": metric_id}, "Real-time trend analysis")
                continue
            for insight in insights:
                if insight.is_critical:
                    critical.append(insight)
                    self.alerts.deliver_insight(insight)

        self.analyzer.analyze_correlations(series)

        if self.config.enable_business_impact_analysis:
            window = Timeframe.last(timedelta(seconds=self.config.collection_interval * 10), now)
            assessment = self.scorer.assess(
                self.store.quality_metrics(window),
                self.store.business_metrics(window),
                self.analyzer.all_insights(),
            )
            self._check_impact_thresholds(assessment)
            if assessment.risk_level is Severity.CRITICAL:
                for recommendation in assessment.critical_recommendations():
                    self.alerts.deliver_recommendation(recommendation)

        self._last_analysis_time = now
        logger.info(
            "Real-time analysis complete",
            extra={"metrics_analyzed": len(series), "critical_insights": len(critical)},
        )
        return critical

    def _check_impact_thresholds(self, assessment: BusinessImpactAssessment) -> None:
        score = assessment.overall_score
        if score < self.config.alert_threshold_critical:
            self.alerts.deliver_assessment(assessment, Severity.CRITICAL)
        elif score < self.config.alert_threshold_warning:
            self.alerts.deliver_assessment(assessment, Severity.HIGH)

    # ------------------------------------------------------------------
    # Ingress
    # ------------------------------------------------------------------

    def record_metric(self, sample: MetricSample) -> RecordResult:
        return self.store.record(sample)

    def add_kpi(self, definition: KPIDefinition) -> None:
        self.store.add_kpi(definition)

    def register_aggregator(self, kpi_id: str, aggregator: Aggregator | str) -> None:
        self.store.register_aggregator(kpi_id, aggregator)

    def on_alert(self, callback: Callable[[Alert], object]) -> Callable[[], None]:
        """Register an alert subscriber; returns a function that unregisters it."""
        return self.alerts.subscribe(callback)

    # ------------------------------------------------------------------
    # Egress
    # ------------------------------------------------------------------

    def get_dashboard(self, now: datetime | None = None) -> AnalyticsDashboard:
        """Snapshot for the last 24 hours plus current insights, anomalies and correlations."""
        now = now or utc_now()
        window = Timeframe.last(timedelta(hours=24), now)
        quality = self.store.quality_metrics(window)
        business = self.store.business_metrics(window)
        insights = self.analyzer.all_insights()
        store_summary = self.store.summary()

        return AnalyticsDashboard(
            summary=DashboardSummary(
                total_metrics=store_summary.total_samples,
                active_kpis=store_summary.active_kpis,
                series_count=store_summary.series_count,
                last_collection_time=store_summary.last_sample_time,
                collecting=store_summary.collecting,
                critical_alerts=sum(1 for i in insights if i.is_critical),
                overall_health_score=health_score(quality, business),
            ),
            quality_metrics=quality,
            business_metrics=business,
            top_insights=rank_insights(insights)[: dashboard_limits.TOP_INSIGHTS],
            business_impact=self._assess(quality, business, insights),
            recent_anomalies=self._recent_anomalies(now),
            key_correlations=self._key_correlations(),
            timestamp=now,
        )

    def generate_report(self, report_type: ReportType | str, period: Timeframe | None = None) -> AnalyticsReport:
        """
        Build a report for a fixed period or a caller-supplied window.

        Raises:
            ValueError: If the report type is unknown, or custom without a period
        """
        report_type = ReportType(report_type)
        if period is None:
            if report_type.span is None:
                raise ValueError("A custom report requires an explicit period")
            period = Timeframe.last(report_type.span)

        quality = self.store.quality_metrics(period)
        business = self.store.business_metrics(period)
        insights = self.analyzer.all_insights()
        assessment = self._assess(quality, business, insights)
        cost_benefit = self.scorer.cost_benefit_history(1)

        report = AnalyticsReport(
            id=new_insight_id(f"report_{report_type.value}"),
            type=report_type,
            period=period,
            executive_summary=self.scorer.executive_summary(assessment),
            detailed_analysis=DetailedAnalysis(
                quality_trends=self._quality_trends(period.end),
                performance_analysis=self._performance_analysis(quality, period),
                business_impact_summary=assessment,
                cost_benefit_analysis=cost_benefit[0] if cost_benefit else None,
            ),
            recommendations=[
                ReportRecommendation(
                    priority=rec.priority,
                    title=rec.title,
                    description=rec.description,
                    expected_impact=rec.expected_benefit,
                )
                for rec in assessment.recommendations
            ],
            appendices=ReportAppendices(
                raw_metrics=self.store.samples_in(period),
                detailed_insights=insights,
                seasonal_patterns=self.analyzer.all_patterns(),
            ),
        )

        logger.info(
            "Report generated",
            extra={"report_id": report.id, "type": report_type.value, "recommendations": len(report.recommendations)},
        )
        return report

    def get_trend_analysis(
        self,
        metric_id: str,
        unit: TimeframeUnit | str,
        periods: int = 30,
        now: datetime | None = None,
    ) -> TrendAnalysisResult:
        """
        Analyze one metric's trend window with its KPI definition, if any.

        Raises:
            ValueError: If the timeframe unit is unknown
        """
        trend_data = self.store.trend_data(metric_id, unit, periods, now=now)
        insights = self.analyzer.analyze_trend(trend_data, self.store.get_kpi(metric_id))
        return TrendAnalysisResult(
            trend_data=trend_data,
            insights=insights,
            seasonal_patterns=self.analyzer.get_seasonal_patterns(metric_id),
            anomalies=self.analyzer.get_anomalies(metric_id),
        )

    def perform_cost_benefit_analysis(self, costs: Mapping[str, float]) -> CostBenefitAnalysis:
        """
        Cost-benefit over everything recorded so far.

        Raises:
            ValueError: If a cost component is missing or negative
        """
        return self.scorer.cost_benefit(costs, self.store.quality_metrics(), self.store.business_metrics())

    def export_data(self, fmt: ExportFormat | str = ExportFormat.JSON) -> str:
        """
        Export analytics state.

        JSON embeds the dashboard, insights, assessment history and raw
        samples; CSV has one row per raw sample.

        Raises:
            ValueError: If the format is unsupported
        """
        fmt = parse_format(fmt)
        raw_metrics = self.store.samples_in()
        if fmt is ExportFormat.CSV:
            return metrics_to_csv(raw_metrics)

        return to_json(
            {
                "timestamp": utc_now(),
                "dashboard": self.get_dashboard(),
                "insights": self.analyzer.all_insights(),
                "business_assessments": self.scorer.history(self.config.assessment_history_limit),
                "raw_metrics": raw_metrics,
            }
        )

    def get_summary(self) -> dict[str, Any]:
        store_summary = self.store.summary()
        trend_summary = self.analyzer.summary_report()
        return {
            "metrics_collected": store_summary.total_samples,
            "insights_generated": trend_summary.total_insights,
            "anomalies_detected": trend_summary.anomalies_detected,
            "business_assessments": len(self.scorer.history(self.config.assessment_history_limit)),
            "last_collection_time": store_summary.last_sample_time,
            "last_analysis_time": self._last_analysis_time,
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _collection_loop(self) -> None:
        while True:
            await self.collect_once()
            await asyncio.sleep(self.config.collection_interval)

    async def _analysis_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.analysis_interval)
            try:
                self.run_realtime_analysis()
            except Exception as e:
                log_and_continue(logger, e, {"key_metrics": list(self.config.key_metrics)}, "Real-time analysis")

    def _assess(
        self,
        quality: QualityMetrics,
        business: BusinessImpactMetrics,
        insights: Iterable[TrendInsight],
    ) -> BusinessImpactAssessment:
        if not self.config.enable_business_impact_analysis:
            return self.scorer.empty_assessment()
        return self.scorer.assess(quality, business, list(insights))

    def _recent_anomalies(self, now: datetime) -> list[AnomalyDetection]:
        cutoff = now - timedelta(hours=dashboard_limits.ANOMALY_LOOKBACK_HOURS)
        recent = [
            anomaly
            for metric_id in self.config.key_metrics
            for anomaly in self.analyzer.get_anomalies(metric_id)
            if anomaly.timestamp >= cutoff
        ]
        recent.sort(key=lambda a: a.timestamp, reverse=True)
        return recent[: dashboard_limits.RECENT_ANOMALIES]

    def _key_correlations(self) -> list[CorrelationAnalysis]:
        key_metrics = set(self.config.key_metrics)
        strong = [
            c
            for c in self.analyzer.get_correlations()
            if c.strength in _STRONG_CORRELATIONS and (c.metric1 in key_metrics or c.metric2 in key_metrics)
        ]
        strong.sort(key=lambda c: c.significance, reverse=True)
        return strong[: dashboard_limits.KEY_CORRELATIONS]

    def _quality_trends(self, now: datetime) -> list[QualityTrend]:
        trends = []
        for metric_id in QUALITY_TREND_METRICS:
            trend_data = self.store.trend_data(metric_id, TimeframeUnit.DAY, 30, now=now)
            trends.append(QualityTrend(metric=metric_id, trend=trend_data.trend, change_percent=trend_data.change_rate))
        return trends

    def _performance_analysis(self, quality: QualityMetrics, period: Timeframe) -> PerformanceAnalysis:
        def change(metric_id: str) -> float:
            samples = self.store.samples(metric_id, period)
            if len(samples) < 2:
                return 0.0
            return percent_change(samples[0].value, samples[-1].value)

        return PerformanceAnalysis(
            average_response_time=quality.performance_metrics.average_response_time,
            throughput_trend=change("throughput"),
            error_rate_change=change("error_rate"),
        )
