"""
Business domain models

KPI snapshot consumed by ImpactScorer, assembled by
MetricStore.business_metrics() over a timeframe.
"""

from dataclasses import dataclass, field

from .serialization import SerializableMixin


@dataclass(frozen=True)
class UserExperienceMetrics(SerializableMixin):
    """
    Attributes:
        satisfaction_score: Average rating on a 0-5 scale
        task_completion_rate: Percent of started tasks completed
        error_recovery_rate: Percent of errors users recovered from
        accessibility_score: 0-100 audit score
    """

    satisfaction_score: float = 0.0
    task_completion_rate: float = 0.0
    error_recovery_rate: float = 0.0
    accessibility_score: float = 0.0


@dataclass(frozen=True)
class OperationalMetrics(SerializableMixin):
    system_uptime: float = 0.0
    incident_count: float = 0.0
    maintenance_time: float = 0.0
    resource_utilization: float = 0.0


@dataclass(frozen=True)
class FinancialMetrics(SerializableMixin):
    testing_cost_per_feature: float = 0.0
    defect_cost_avoidance: float = 0.0
    time_to_market: float = 0.0
    risk_reduction: float = 0.0


@dataclass(frozen=True)
class BusinessImpactMetrics(SerializableMixin):
    """Business snapshot for a timeframe; missing series read as 0.0."""

    user_experience: UserExperienceMetrics = field(default_factory=UserExperienceMetrics)
    operational: OperationalMetrics = field(default_factory=OperationalMetrics)
    financial: FinancialMetrics = field(default_factory=FinancialMetrics)
