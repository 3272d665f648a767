"""
Business Impact Scorer

Translates a quality snapshot, a business snapshot and the current insight
set into a weighted, categorized business-impact assessment.

Components:
- Category scoring: four fixed weighted sums (weights from ImpactWeights)
- Issue rules: fixed thresholds that raise per-category issues
- Recommendations: one per issue in an at-risk category plus one per
  high/critical insight, sorted by priority then ROI, top 10 kept
- Projection: linear short/medium/long-term extrapolation (ProjectionConfig)
- Cost-benefit: ROI, payback and NPV of testing spend

Category formulas (each clamped to 0-100):
  user_experience = satisfaction*20*w1 + task_completion*w2 + error_recovery*w3 + accessibility*w4
  operational     = uptime*w1 + (100-incidents)*w2 + utilization*w3 + (100-maintenance)*w4
  financial       = cost_avoidance*w1 + (100-time_to_market)*w2 + (100-cost_per_feature)*w3 + risk_reduction*w4
  reputation      = satisfaction*20*w1 + availability*w2 + (100-error_rate)*w3 + compliance*w4

Risk bands:
  >= 80  -> low
  >= 60  -> medium
  >= 40  -> high
  <  40  -> critical

Usage::

    from trendwatch.ml.impact_scorer import ImpactScorer

    scorer = ImpactScorer(config)
    assessment = scorer.assess(store.quality_metrics(), store.business_metrics(), analyzer.all_insights())
"""

import math
import threading
from collections import deque
from collections.abc import Mapping, Sequence

from trendwatch.core import get_logger
from trendwatch.domain.business import BusinessImpactMetrics
from trendwatch.domain.constants import impact_issue_thresholds
from trendwatch.domain.impact import (
    ActionTimeframe,
    BusinessCategoryImpact,
    BusinessImpactAssessment,
    BusinessRecommendation,
    CostBenefitAnalysis,
    Effort,
    ExecutiveSummary,
    FinancialImpact,
    ImpactCategories,
    ImpactCategory,
    ImpactIssue,
    ImpactProjection,
    KeyMetric,
    OperationalImpact,
    ProjectedImpact,
    TestingBenefits,
    TestingInvestment,
    UserImpact,
    risk_level_for,
)
from trendwatch.domain.insights import InsightType, TrendInsight, new_insight_id
from trendwatch.domain.metrics import Severity, TrendDirection
from trendwatch.domain.quality import QualityMetrics
from trendwatch.secure_config import AnalyticsConfig, get_config

logger = get_logger(__name__)

COST_FIELDS: tuple[str, ...] = ("tooling", "personnel", "infrastructure", "training")
"""Keys required by ImpactScorer.cost_benefit()"""

_EFFORT = {
    Severity.CRITICAL: Effort.HIGH,
    Severity.HIGH: Effort.MEDIUM,
    Severity.MEDIUM: Effort.MEDIUM,
    Severity.LOW: Effort.LOW,
}
_TIMEFRAME = {
    Severity.CRITICAL: ActionTimeframe.IMMEDIATE,
    Severity.HIGH: ActionTimeframe.SHORT_TERM,
    Severity.MEDIUM: ActionTimeframe.MEDIUM_TERM,
    Severity.LOW: ActionTimeframe.LONG_TERM,
}
_ROI = {Severity.CRITICAL: 300.0, Severity.HIGH: 200.0, Severity.MEDIUM: 150.0, Severity.LOW: 100.0}
_BENEFIT = {
    Severity.CRITICAL: "High - Significant improvement in business metrics",
    Severity.HIGH: "Medium-High - Notable improvement in key areas",
    Severity.MEDIUM: "Medium - Moderate improvement in performance",
    Severity.LOW: "Low-Medium - Minor but measurable improvement",
}

_CONCERN_NAMES = {
    ImpactCategory.USER_EXPERIENCE: "user experience",
    ImpactCategory.OPERATIONAL: "operational efficiency",
    ImpactCategory.FINANCIAL: "financial impact",
    ImpactCategory.REPUTATION: "reputation management",
}

# Keyword -> category for insight-driven recommendations; first match wins
_CATEGORY_KEYWORDS: tuple[tuple[tuple[str, ...], ImpactCategory], ...] = (
    (("satisfaction", "user"), ImpactCategory.USER_EXPERIENCE),
    (("cost", "financial"), ImpactCategory.FINANCIAL),
    (("reputation", "brand"), ImpactCategory.REPUTATION),
)

# Cost-benefit model
_DEFECT_COST = 5000.0
_DEFECT_PREVENTION_RATE = 0.8
_DOWNTIME_COST_PER_HOUR = 1000.0
_HOURS_PER_MONTH = 720
_THROUGHPUT_VALUE = 10_000.0
_RETAINED_CUSTOMERS_PER_POINT = 100
_CUSTOMER_VALUE = 1000.0
_DISCOUNT_RATE = 0.1
_NPV_YEARS = 3


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _clamp(score: float) -> float:
    return max(0.0, min(100.0, score))


def category_for_metric(metric_id: str) -> ImpactCategory:
    """
    Infer the business category an insight's metric belongs to.

    Example:
        >>> category_for_metric("user_satisfaction").value
        'user_experience'
        >>> category_for_metric("system_availability").value
        'operational'
    """
    lowered = metric_id.lower()
    for keywords, category in _CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return ImpactCategory.OPERATIONAL


def _metric_trend(metric_id: str, insights: Sequence[TrendInsight]) -> TrendDirection:
    """Direction taken from the first insight about *metric_id*."""
    for insight in insights:
        if insight.metric != metric_id:
            continue
        if insight.type is InsightType.IMPROVEMENT:
            return TrendDirection.IMPROVING
        if insight.type is InsightType.DEGRADATION:
            return TrendDirection.DECLINING
        return TrendDirection.STABLE
    return TrendDirection.STABLE


def _rank_recommendations(recommendations: list[BusinessRecommendation]) -> list[BusinessRecommendation]:
    return sorted(recommendations, key=lambda r: (-r.priority.rank, -r.roi))


# ---------------------------------------------------------------------------
# ImpactScorer
# ---------------------------------------------------------------------------


class ImpactScorer:
    """
    Score business impact and keep bounded assessment history.

    Args:
        config: Analytics configuration (default: from environment)
    """

    def __init__(self, config: AnalyticsConfig | None = None) -> None:
        self.config = config or get_config().get_analytics_config()
        self.weights = self.config.impact_weights
        self.projection = self.config.projection

        self._lock = threading.Lock()
        self._history: deque[BusinessImpactAssessment] = deque(maxlen=self.config.assessment_history_limit)
        self._cost_benefit_history: list[CostBenefitAnalysis] = []

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def assess(
        self,
        quality: QualityMetrics,
        business: BusinessImpactMetrics,
        insights: Sequence[TrendInsight] = (),
    ) -> BusinessImpactAssessment:
        """
        Produce a business-impact assessment and append it to history.

        Args:
            quality: Quality snapshot for the window
            business: Business snapshot for the window
            insights: Current insights (drive key-metric trends and recommendations)

        Returns:
            BusinessImpactAssessment with overall score in [0, 100]
        """
        categories = ImpactCategories(
            user_experience=self._user_experience(business, insights),
            operational=self._operational(quality, business, insights),
            financial=self._financial(business, insights),
            reputation=self._reputation(quality, business, insights),
        )

        overall_weights = self.weights.overall
        overall = _clamp(
            sum(impact.score * overall_weights[category.value] for category, impact in categories.items())
        )

        assessment = BusinessImpactAssessment(
            id=new_insight_id("assessment"),
            overall_score=overall,
            risk_level=risk_level_for(overall),
            categories=categories,
            recommendations=self._recommendations(categories, insights),
            projected_impact=self._project(business),
        )

        with self._lock:
            self._history.append(assessment)

        logger.info(
            "Business impact assessed",
            extra={
                "assessment_id": assessment.id,
                "overall_score": round(overall, 2),
                "risk_level": assessment.risk_level.value,
                "recommendations": len(assessment.recommendations),
            },
        )
        return assessment

    def cost_benefit(
        self,
        costs: Mapping[str, float],
        quality: QualityMetrics,
        business: BusinessImpactMetrics,
    ) -> CostBenefitAnalysis:
        """
        Estimate the return on testing spend.

        Args:
            costs: Monthly spend keyed by tooling, personnel, infrastructure, training
            quality: Quality snapshot (defect density, throughput)
            business: Business snapshot (uptime, satisfaction)

        Returns:
            CostBenefitAnalysis (also appended to cost-benefit history)

        Raises:
            ValueError: If a cost is missing, non-numeric or negative
        """
        for name in COST_FIELDS:
            if name not in costs:
                raise ValueError(f"Missing cost component: {name}")
            amount = costs[name]
            if isinstance(amount, bool) or not isinstance(amount, (int, float)) or not math.isfinite(amount):
                raise ValueError(f"Cost component {name} must be a finite number, got {amount!r}")
            if amount < 0:
                raise ValueError(f"Cost component {name} must be non-negative, got {amount}")

        investment = TestingInvestment(
            tooling=float(costs["tooling"]),
            personnel=float(costs["personnel"]),
            infrastructure=float(costs["infrastructure"]),
            training=float(costs["training"]),
            total=float(sum(costs[name] for name in COST_FIELDS)),
        )

        defect_prevention = quality.defect_metrics.defect_density * _DEFECT_PREVENTION_RATE * _DEFECT_COST
        reduced_downtime = (
            (business.operational.system_uptime - 95) / 100 * _DOWNTIME_COST_PER_HOUR * _HOURS_PER_MONTH
        )
        improved_efficiency = quality.performance_metrics.throughput / 1000 * _THROUGHPUT_VALUE * 12
        customer_retention = (
            (business.user_experience.satisfaction_score - 3) / 2 * _RETAINED_CUSTOMERS_PER_POINT * _CUSTOMER_VALUE
        )
        benefits = TestingBenefits(
            defect_prevention=defect_prevention,
            reduced_downtime=reduced_downtime,
            improved_efficiency=improved_efficiency,
            customer_retention=customer_retention,
            total=defect_prevention + reduced_downtime + improved_efficiency + customer_retention,
        )

        invested = investment.total
        gained = benefits.total
        roi = (gained - invested) / invested * 100 if invested > 0 else 0.0
        payback = invested / (gained / 12) if gained > 0 else math.inf
        npv = -invested + sum(gained / (1 + _DISCOUNT_RATE) ** year for year in range(1, _NPV_YEARS + 1))

        analysis = CostBenefitAnalysis(
            testing_investment=investment,
            benefits=benefits,
            roi=roi,
            payback_period=payback,
            net_present_value=npv,
        )

        with self._lock:
            self._cost_benefit_history.append(analysis)
            self._cost_benefit_history.sort(key=lambda a: a.testing_investment.total, reverse=True)

        logger.info(
            "Cost-benefit analysis complete",
            extra={"investment": invested, "benefits": round(gained, 2), "roi": round(roi, 2)},
        )
        return analysis

    def executive_summary(self, assessment: BusinessImpactAssessment) -> ExecutiveSummary:
        """Narrative digest of an assessment for reports."""
        categories = assessment.categories
        concerns = [_CONCERN_NAMES[category] for category, impact in categories.items() if impact.at_risk]
        critical = assessment.critical_recommendations()

        key_findings = [
            f"Overall business risk level: {assessment.risk_level.value.upper()}",
            f"User experience score: {categories.user_experience.score:.1f}/100",
            f"Operational efficiency: {categories.operational.score:.1f}/100",
            f"Financial impact score: {categories.financial.score:.1f}/100",
        ]

        summary = (
            f"Business impact assessment shows {assessment.risk_level.value} risk level with an overall score "
            f"of {assessment.overall_score:.1f}/100. Key areas of concern include "
            f"{', '.join(concerns) if concerns else 'no major concerns'}. "
            f"Immediate attention is recommended for {len(critical)} critical issues."
        )

        return ExecutiveSummary(
            summary=summary,
            key_findings=key_findings,
            critical_actions=[rec.title for rec in critical[:3]],
            business_value=self._business_value(assessment.overall_score),
        )

    def history(self, limit: int = 10) -> list[BusinessImpactAssessment]:
        """Most recent assessments, newest first."""
        with self._lock:
            return list(reversed(self._history))[:limit]

    def latest(self) -> BusinessImpactAssessment | None:
        with self._lock:
            return self._history[-1] if self._history else None

    def cost_benefit_history(self, limit: int = 10) -> list[CostBenefitAnalysis]:
        """Cost-benefit analyses, largest investment first."""
        with self._lock:
            return list(self._cost_benefit_history[:limit])

    def empty_assessment(self) -> BusinessImpactAssessment:
        """Zero-valued placeholder used when impact analysis is disabled."""
        empty = BusinessCategoryImpact(score=0.0, risk_level=Severity.LOW)

        def horizon(timeframe: ActionTimeframe) -> ProjectedImpact:
            return ProjectedImpact(
                timeframe=timeframe,
                user_impact=UserImpact(affected_users=0, satisfaction_change=0.0, churn_risk=0.0),
                financial_impact=FinancialImpact(revenue_at_risk=0.0, cost_increase=0.0, potential_savings=0.0),
                operational_impact=OperationalImpact(
                    downtime_risk=0.0, resource_requirement=0.0, efficiency_change=0.0
                ),
            )

        return BusinessImpactAssessment(
            id="empty",
            overall_score=0.0,
            risk_level=Severity.LOW,
            categories=ImpactCategories(
                user_experience=empty, operational=empty, financial=empty, reputation=empty
            ),
            recommendations=[],
            projected_impact=ImpactProjection(
                short_term=horizon(ActionTimeframe.SHORT_TERM),
                medium_term=horizon(ActionTimeframe.MEDIUM_TERM),
                long_term=horizon(ActionTimeframe.LONG_TERM),
            ),
        )

    # ------------------------------------------------------------------
    # Category scoring
    # ------------------------------------------------------------------

    def _user_experience(
        self, business: BusinessImpactMetrics, insights: Sequence[TrendInsight]
    ) -> BusinessCategoryImpact:
        ux = business.user_experience
        w = self.weights.user_experience
        score = _clamp(
            ux.satisfaction_score * 20 * w["satisfaction_score"]
            + ux.task_completion_rate * w["task_completion_rate"]
            + ux.error_recovery_rate * w["error_recovery_rate"]
            + ux.accessibility_score * w["accessibility_score"]
        )

        issues = []
        if ux.satisfaction_score < impact_issue_thresholds.CRITICAL_SATISFACTION:
            issues.append(
                ImpactIssue(
                    "Low user satisfaction score", Severity.CRITICAL, "High risk of customer churn and negative reviews"
                )
            )
        if ux.task_completion_rate < impact_issue_thresholds.TASK_COMPLETION:
            issues.append(
                ImpactIssue("Low task completion rate", Severity.HIGH, "Users struggling to complete key workflows")
            )
        if ux.accessibility_score < impact_issue_thresholds.ACCESSIBILITY:
            issues.append(
                ImpactIssue(
                    "Poor accessibility compliance",
                    Severity.MEDIUM,
                    "Excluding users with disabilities, potential legal risks",
                )
            )

        return BusinessCategoryImpact(
            score=score,
            risk_level=risk_level_for(score),
            key_metrics=[
                KeyMetric(
                    name="User Satisfaction",
                    value=ux.satisfaction_score,
                    impact=ux.satisfaction_score * w["satisfaction_score"] * 20,
                    trend=_metric_trend("user_satisfaction", insights),
                ),
                KeyMetric(
                    name="Task Completion Rate",
                    value=ux.task_completion_rate,
                    impact=ux.task_completion_rate * w["task_completion_rate"],
                    trend=_metric_trend("task_completion_rate", insights),
                ),
            ],
            issues=issues,
        )

    def _operational(
        self,
        quality: QualityMetrics,
        business: BusinessImpactMetrics,
        insights: Sequence[TrendInsight],
    ) -> BusinessCategoryImpact:
        ops = business.operational
        w = self.weights.operational
        score = _clamp(
            ops.system_uptime * w["system_uptime"]
            + (100 - ops.incident_count) * w["incident_count"]
            + ops.resource_utilization * w["resource_utilization"]
            + (100 - ops.maintenance_time) * w["maintenance_time"]
        )

        issues = []
        if ops.system_uptime < impact_issue_thresholds.UPTIME:
            issues.append(
                ImpactIssue(
                    "System availability below target", Severity.CRITICAL, "Revenue loss and customer dissatisfaction"
                )
            )
        if quality.performance_metrics.error_rate > impact_issue_thresholds.ERROR_RATE:
            issues.append(
                ImpactIssue("High error rate", Severity.HIGH, "Poor user experience and potential data issues")
            )
        if ops.resource_utilization > impact_issue_thresholds.RESOURCE_UTILIZATION:
            issues.append(
                ImpactIssue(
                    "High resource utilization", Severity.MEDIUM, "Performance degradation and scalability concerns"
                )
            )

        return BusinessCategoryImpact(
            score=score,
            risk_level=risk_level_for(score),
            key_metrics=[
                KeyMetric(
                    name="System Uptime",
                    value=ops.system_uptime,
                    impact=ops.system_uptime * w["system_uptime"],
                    trend=_metric_trend("system_availability", insights),
                ),
                KeyMetric(
                    name="Incident Count",
                    value=ops.incident_count,
                    impact=(100 - ops.incident_count) * w["incident_count"],
                    trend=_metric_trend("incident_count", insights),
                ),
            ],
            issues=issues,
        )

    def _financial(self, business: BusinessImpactMetrics, insights: Sequence[TrendInsight]) -> BusinessCategoryImpact:
        fin = business.financial
        w = self.weights.financial
        score = _clamp(
            fin.defect_cost_avoidance * w["defect_cost_avoidance"]
            + (100 - fin.time_to_market) * w["time_to_market"]
            + (100 - fin.testing_cost_per_feature) * w["testing_cost_per_feature"]
            + fin.risk_reduction * w["risk_reduction"]
        )

        issues = []
        if fin.testing_cost_per_feature > impact_issue_thresholds.COST_PER_FEATURE:
            issues.append(
                ImpactIssue(
                    "High testing costs per feature",
                    Severity.MEDIUM,
                    "Reduced profitability and slower feature delivery",
                )
            )
        if fin.time_to_market > impact_issue_thresholds.TIME_TO_MARKET:
            issues.append(
                ImpactIssue("Slow time to market", Severity.HIGH, "Competitive disadvantage and missed opportunities")
            )

        return BusinessCategoryImpact(
            score=score,
            risk_level=risk_level_for(score),
            key_metrics=[
                KeyMetric(
                    name="Defect Cost Avoidance",
                    value=fin.defect_cost_avoidance,
                    impact=fin.defect_cost_avoidance * w["defect_cost_avoidance"],
                    trend=_metric_trend("defect_cost_avoidance", insights),
                ),
                KeyMetric(
                    name="Time to Market",
                    value=fin.time_to_market,
                    impact=(100 - fin.time_to_market) * w["time_to_market"],
                    trend=_metric_trend("time_to_market", insights),
                ),
            ],
            issues=issues,
        )

    def _reputation(
        self,
        quality: QualityMetrics,
        business: BusinessImpactMetrics,
        insights: Sequence[TrendInsight],
    ) -> BusinessCategoryImpact:
        satisfaction = business.user_experience.satisfaction_score
        availability = quality.performance_metrics.availability_percentage
        w = self.weights.reputation
        score = _clamp(
            satisfaction * 20 * w["user_satisfaction"]
            + availability * w["system_reliability"]
            + (100 - quality.performance_metrics.error_rate) * w["error_rate"]
            + self.config.compliance_score * w["compliance"]
        )

        issues = []
        if satisfaction < impact_issue_thresholds.REPUTATION_SATISFACTION:
            issues.append(
                ImpactIssue(
                    "Below average user satisfaction", Severity.HIGH, "Negative brand perception and word-of-mouth"
                )
            )
        if availability < impact_issue_thresholds.RELIABILITY:
            issues.append(
                ImpactIssue("Reliability concerns", Severity.MEDIUM, "Trust issues and competitive disadvantage")
            )

        return BusinessCategoryImpact(
            score=score,
            risk_level=risk_level_for(score),
            key_metrics=[
                KeyMetric(
                    name="User Satisfaction",
                    value=satisfaction,
                    impact=satisfaction * 20 * w["user_satisfaction"],
                    trend=_metric_trend("user_satisfaction", insights),
                ),
                KeyMetric(
                    name="System Reliability",
                    value=availability,
                    impact=availability * w["system_reliability"],
                    trend=_metric_trend("system_availability", insights),
                ),
            ],
            issues=issues,
        )

    # ------------------------------------------------------------------
    # Recommendations and projection
    # ------------------------------------------------------------------

    def _recommendations(
        self, categories: ImpactCategories, insights: Sequence[TrendInsight]
    ) -> list[BusinessRecommendation]:
        recommendations = []

        for category, impact in categories.items():
            if not impact.at_risk:
                continue
            for issue in impact.issues:
                recommendations.append(
                    BusinessRecommendation(
                        id=new_insight_id(f"rec_{category.value}"),
                        priority=issue.severity,
                        category=category,
                        title=f"Address {issue.description}",
                        description=f"{issue.description} - {issue.estimated_impact}",
                        expected_benefit=_BENEFIT[issue.severity],
                        estimated_effort=_EFFORT[issue.severity],
                        timeframe=_TIMEFRAME[issue.severity],
                        roi=_ROI[issue.severity],
                    )
                )

        for insight in insights:
            if not insight.severity.is_urgent:
                continue
            recommendations.append(
                BusinessRecommendation(
                    id=f"rec_insight_{insight.id}",
                    priority=insight.severity,
                    category=category_for_metric(insight.metric),
                    title=insight.title,
                    description=insight.recommendation,
                    expected_benefit=f"{insight.confidence * 100:.0f}% confidence in {insight.type.value} impact",
                    estimated_effort=Effort.MEDIUM,
                    timeframe=ActionTimeframe.SHORT_TERM,
                    roi=insight.confidence * 100,
                )
            )

        return _rank_recommendations(recommendations)[: impact_issue_thresholds.MAX_RECOMMENDATIONS]

    def _project(self, business: BusinessImpactMetrics) -> ImpactProjection:
        p = self.projection
        user_base = max(0.0, business.user_experience.satisfaction_score) * p.users_per_satisfaction_point

        def horizon(index: int, timeframe: ActionTimeframe) -> ProjectedImpact:
            return ProjectedImpact(
                timeframe=timeframe,
                user_impact=UserImpact(
                    affected_users=int(round(user_base * p.affected_user_share[index])),
                    satisfaction_change=p.satisfaction_change[index],
                    churn_risk=p.churn_risk[index],
                ),
                financial_impact=FinancialImpact(
                    revenue_at_risk=p.revenue_baseline * p.revenue_at_risk[index],
                    cost_increase=p.revenue_baseline * p.cost_increase[index],
                    potential_savings=p.revenue_baseline * p.potential_savings[index],
                ),
                operational_impact=OperationalImpact(
                    downtime_risk=p.downtime_risk[index],
                    resource_requirement=p.resource_requirement[index],
                    efficiency_change=p.efficiency_change[index],
                ),
            )

        return ImpactProjection(
            short_term=horizon(0, ActionTimeframe.SHORT_TERM),
            medium_term=horizon(1, ActionTimeframe.MEDIUM_TERM),
            long_term=horizon(2, ActionTimeframe.LONG_TERM),
        )

    @staticmethod
    def _business_value(score: float) -> str:
        if score >= 80:
            return "Strong business value with low risk"
        if score >= 60:
            return "Good business value with manageable risk"
        if score >= 40:
            return "Moderate business value with elevated risk"
        return "Limited business value with high risk"
