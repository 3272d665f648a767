"""
Business impact domain models

Weighted, categorized assessment produced by ImpactScorer:
    - BusinessCategoryImpact: Score, risk level, key metrics and issues per category
    - BusinessRecommendation: Prioritized action with effort, timeframe and ROI
    - ProjectedImpact: Short/medium/long-term linear projection
    - BusinessImpactAssessment: Immutable snapshot kept in bounded history
    - CostBenefitAnalysis: ROI, payback and NPV of testing spend
    - ExecutiveSummary: Narrative digest of an assessment
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from .constants import risk_bands
from .metrics import Severity, TrendDirection, utc_now
from .serialization import SerializableMixin


class ImpactCategory(str, Enum):
    USER_EXPERIENCE = "user_experience"
    OPERATIONAL = "operational"
    FINANCIAL = "financial"
    REPUTATION = "reputation"


class Effort(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ActionTimeframe(str, Enum):
    IMMEDIATE = "immediate"
    SHORT_TERM = "short_term"
    MEDIUM_TERM = "medium_term"
    LONG_TERM = "long_term"


class ReportType(str, Enum):
    """Report period. ``custom`` requires a caller-supplied window."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    CUSTOM = "custom"

    @property
    def span(self) -> timedelta | None:
        return _REPORT_SPANS.get(self)


_REPORT_SPANS = {
    ReportType.DAILY: timedelta(hours=24),
    ReportType.WEEKLY: timedelta(days=7),
    ReportType.MONTHLY: timedelta(days=30),
    ReportType.QUARTERLY: timedelta(days=90),
}


def risk_level_for(score: float) -> Severity:
    """
    Map a 0-100 score to a risk level.

    Bands are inclusive at their lower bound: 80 -> low, 79.9 -> medium,
    60 -> medium, 40 -> high, anything below 40 -> critical.
    """
    if score >= risk_bands.LOW:
        return Severity.LOW
    if score >= risk_bands.MEDIUM:
        return Severity.MEDIUM
    if score >= risk_bands.HIGH:
        return Severity.HIGH
    return Severity.CRITICAL


@dataclass(frozen=True)
class KeyMetric(SerializableMixin):
    """A headline metric for a category with its weighted contribution."""

    name: str
    value: float
    impact: float
    trend: TrendDirection = TrendDirection.STABLE


@dataclass(frozen=True)
class ImpactIssue(SerializableMixin):
    description: str
    severity: Severity
    estimated_impact: str


@dataclass(frozen=True)
class BusinessCategoryImpact(SerializableMixin):
    """
    Score and findings for one business category.

    Attributes:
        score: Weighted score clamped to 0-100
        risk_level: Band of ``score``
        key_metrics: Headline metrics with weighted impact
        issues: Rule-based issues detected in this category
    """

    score: float
    risk_level: Severity
    key_metrics: list[KeyMetric] = field(default_factory=list)
    issues: list[ImpactIssue] = field(default_factory=list)

    @property
    def at_risk(self) -> bool:
        """True when the category is high or critical risk."""
        return self.risk_level.is_urgent


@dataclass(frozen=True)
class BusinessRecommendation(SerializableMixin):
    """
    Prioritized action derived from an issue or a trend insight.

    Attributes:
        id: Unique recommendation id
        priority: Severity of the triggering issue or insight
        category: ImpactCategory the action improves
        title: Headline
        description: What to do and why
        expected_benefit: Qualitative benefit statement
        estimated_effort: Effort band
        timeframe: When to act
        roi: Estimated return (percent)
    """

    id: str
    priority: Severity
    category: ImpactCategory
    title: str
    description: str
    expected_benefit: str
    estimated_effort: Effort
    timeframe: ActionTimeframe
    roi: float


@dataclass(frozen=True)
class UserImpact(SerializableMixin):
    affected_users: int
    satisfaction_change: float
    churn_risk: float


@dataclass(frozen=True)
class FinancialImpact(SerializableMixin):
    revenue_at_risk: float
    cost_increase: float
    potential_savings: float


@dataclass(frozen=True)
class OperationalImpact(SerializableMixin):
    downtime_risk: float
    resource_requirement: float
    efficiency_change: float


@dataclass(frozen=True)
class ProjectedImpact(SerializableMixin):
    """Projected consequences over one horizon."""

    timeframe: ActionTimeframe
    user_impact: UserImpact
    financial_impact: FinancialImpact
    operational_impact: OperationalImpact


@dataclass(frozen=True)
class ImpactProjection(SerializableMixin):
    """Three horizons; magnitudes never shrink from short to long term."""

    short_term: ProjectedImpact
    medium_term: ProjectedImpact
    long_term: ProjectedImpact

    def horizons(self) -> list[ProjectedImpact]:
        return [self.short_term, self.medium_term, self.long_term]


@dataclass(frozen=True)
class ImpactCategories(SerializableMixin):
    user_experience: BusinessCategoryImpact
    operational: BusinessCategoryImpact
    financial: BusinessCategoryImpact
    reputation: BusinessCategoryImpact

    def items(self) -> list[tuple[ImpactCategory, BusinessCategoryImpact]]:
        """(category, impact) pairs in fixed order."""
        return [
            (ImpactCategory.USER_EXPERIENCE, self.user_experience),
            (ImpactCategory.OPERATIONAL, self.operational),
            (ImpactCategory.FINANCIAL, self.financial),
            (ImpactCategory.REPUTATION, self.reputation),
        ]


@dataclass(frozen=True)
class BusinessImpactAssessment(SerializableMixin):
    """
    Immutable business-impact snapshot.

    Attributes:
        id: Unique assessment id
        timestamp: When the assessment was produced (UTC)
        overall_score: Weighted blend of category scores, 0-100
        risk_level: Band of ``overall_score``
        categories: Per-category impact
        recommendations: Top recommendations, sorted by priority then ROI
        projected_impact: Short/medium/long-term projection
    """

    id: str
    overall_score: float
    risk_level: Severity
    categories: ImpactCategories
    recommendations: list[BusinessRecommendation]
    projected_impact: ImpactProjection
    timestamp: datetime = field(default_factory=utc_now)

    def critical_recommendations(self) -> list[BusinessRecommendation]:
        return [rec for rec in self.recommendations if rec.priority is Severity.CRITICAL]


@dataclass(frozen=True)
class TestingInvestment(SerializableMixin):
    __test__ = False  # not a pytest test class

    tooling: float
    personnel: float
    infrastructure: float
    training: float
    total: float


@dataclass(frozen=True)
class TestingBenefits(SerializableMixin):
    __test__ = False

    defect_prevention: float
    reduced_downtime: float
    improved_efficiency: float
    customer_retention: float
    total: float


@dataclass(frozen=True)
class CostBenefitAnalysis(SerializableMixin):
    """
    Return on testing spend.

    Attributes:
        testing_investment: Cost breakdown and total
        benefits: Estimated benefit breakdown and total
        roi: (benefits - investment) / investment x 100, 0 when nothing was invested
        payback_period: Months to recover the investment, ``inf`` when there is no benefit
        net_present_value: NPV over three years at a 10% discount rate
    """

    testing_investment: TestingInvestment
    benefits: TestingBenefits
    roi: float
    payback_period: float
    net_present_value: float
    timestamp: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class ExecutiveSummary(SerializableMixin):
    summary: str
    key_findings: list[str]
    critical_actions: list[str]
    business_value: str
