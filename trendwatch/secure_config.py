"""
Analytics Configuration Management

Provides centralized, validated configuration for the analytics engine.
Values come from keyword arguments or ``TRENDWATCH_*`` environment variables
(a ``.env`` file is honoured via python-dotenv). Every config object
validates itself on construction and fails fast.

Usage:
    from trendwatch.secure_config import get_config

    config = get_config().get_analytics_config()
    print(config.collection_interval)

Raises:
    ConfigurationError: If configuration is missing or invalid
"""

import math
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from trendwatch.domain.constants import DEFAULT_KEY_METRICS


class ConfigurationError(Exception):
    """Raised when configuration is missing or invalid."""

    pass


def _check_weights(name: str, weights: dict[str, float]) -> None:
    if any(w < 0 for w in weights.values()):
        raise ConfigurationError(f"{name} weights must be non-negative: {weights}")
    total = sum(weights.values())
    if not math.isclose(total, 1.0, abs_tol=1e-6):
        raise ConfigurationError(f"{name} weights must sum to 1.0, got {total:.4f}")


@dataclass
class ImpactWeights:
    """
    Weighted-sum coefficients for business-impact scoring.

    Each category's weights must sum to 1.0. Keys name the KPI that the
    weight multiplies.
    """

    user_experience: dict[str, float] = field(
        default_factory=lambda: {
            "satisfaction_score": 0.35,
            "task_completion_rate": 0.25,
            "error_recovery_rate": 0.20,
            "accessibility_score": 0.20,
        }
    )
    operational: dict[str, float] = field(
        default_factory=lambda: {
            "system_uptime": 0.35,
            "incident_count": 0.25,
            "resource_utilization": 0.20,
            "maintenance_time": 0.20,
        }
    )
    financial: dict[str, float] = field(
        default_factory=lambda: {
            "defect_cost_avoidance": 0.30,
            "time_to_market": 0.25,
            "testing_cost_per_feature": 0.25,
            "risk_reduction": 0.20,
        }
    )
    reputation: dict[str, float] = field(
        default_factory=lambda: {
            "user_satisfaction": 0.40,
            "system_reliability": 0.30,
            "error_rate": 0.20,
            "compliance": 0.10,
        }
    )
    overall: dict[str, float] = field(
        default_factory=lambda: {
            "user_experience": 0.30,
            "operational": 0.25,
            "financial": 0.25,
            "reputation": 0.20,
        }
    )

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self):
        """
        Validate weight tables.

        Raises:
            ConfigurationError: If a table has negative weights or does not sum to 1.0
        """
        _check_weights("user_experience", self.user_experience)
        _check_weights("operational", self.operational)
        _check_weights("financial", self.financial)
        _check_weights("reputation", self.reputation)
        _check_weights("overall", self.overall)

        expected = {"user_experience", "operational", "financial", "reputation"}
        if set(self.overall) != expected:
            raise ConfigurationError(f"overall weights must cover exactly {sorted(expected)}")


@dataclass
class ProjectionConfig:
    """
    Linear extrapolation parameters for short/medium/long-term projections.

    Multiplier tuples are ordered (short, medium, long) and must be
    non-decreasing so projected severity never shrinks with the horizon.
    """

    revenue_baseline: float = 100_000.0
    users_per_satisfaction_point: int = 1000
    affected_user_share: tuple[float, float, float] = (0.10, 0.25, 0.50)
    satisfaction_change: tuple[float, float, float] = (-0.2, -0.5, -1.0)
    churn_risk: tuple[float, float, float] = (0.05, 0.15, 0.30)
    revenue_at_risk: tuple[float, float, float] = (0.05, 0.15, 0.30)
    cost_increase: tuple[float, float, float] = (0.02, 0.08, 0.20)
    potential_savings: tuple[float, float, float] = (0.03, 0.12, 0.25)
    downtime_risk: tuple[float, float, float] = (0.02, 0.08, 0.20)
    resource_requirement: tuple[float, float, float] = (1.1, 1.3, 1.5)
    efficiency_change: tuple[float, float, float] = (-0.05, -0.15, -0.30)

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self):
        if self.revenue_baseline < 0:
            raise ConfigurationError(f"revenue_baseline must be non-negative: {self.revenue_baseline}")
        if self.users_per_satisfaction_point < 0:
            raise ConfigurationError("users_per_satisfaction_point must be non-negative")

        for name in ("affected_user_share", "churn_risk", "revenue_at_risk", "cost_increase", "downtime_risk"):
            short, medium, long = getattr(self, name)
            if not short <= medium <= long:
                raise ConfigurationError(f"{name} multipliers must be non-decreasing: {(short, medium, long)}")

        for name in ("satisfaction_change", "efficiency_change"):
            short, medium, long = getattr(self, name)
            if not short >= medium >= long:
                raise ConfigurationError(f"{name} multipliers must be non-increasing: {(short, medium, long)}")


@dataclass
class AnalyticsConfig:
    """
    Validated engine configuration.

    Attributes:
        collection_interval: Seconds between collection cycles
        retention_period_days: Raw samples older than this are expired from their series
        alert_threshold_critical: Overall impact score under which a critical impact alert is raised
        alert_threshold_warning: Overall impact score under which a high impact alert is raised
        enable_realtime_analysis: Run the periodic analysis loop
        enable_business_impact_analysis: Include impact assessment in dashboards/reports
        max_samples_per_series: FIFO cap per metric series
        assessment_history_limit: Number of assessments retained
        compliance_score: Assumed compliance score for reputation scoring
        key_metrics: Metrics re-analyzed by the real-time loop
    """

    collection_interval: float = 60.0
    retention_period_days: int = 30
    alert_threshold_critical: float = 20.0
    alert_threshold_warning: float = 40.0
    enable_realtime_analysis: bool = True
    enable_business_impact_analysis: bool = True
    max_samples_per_series: int = 1000
    assessment_history_limit: int = 100
    compliance_score: float = 90.0
    key_metrics: tuple[str, ...] = DEFAULT_KEY_METRICS
    impact_weights: ImpactWeights = field(default_factory=ImpactWeights)
    projection: ProjectionConfig = field(default_factory=ProjectionConfig)

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self):
        """
        Validate analytics configuration.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if self.collection_interval <= 0:
            raise ConfigurationError(f"collection_interval must be positive: {self.collection_interval}")

        if self.retention_period_days <= 0:
            raise ConfigurationError(f"retention_period_days must be positive: {self.retention_period_days}")

        if self.max_samples_per_series < 1:
            raise ConfigurationError(f"max_samples_per_series must be at least 1: {self.max_samples_per_series}")

        if self.assessment_history_limit < 1:
            raise ConfigurationError(f"assessment_history_limit must be at least 1: {self.assessment_history_limit}")

        if self.alert_threshold_critical > self.alert_threshold_warning:
            raise ConfigurationError(
                "alert_threshold_critical must not exceed alert_threshold_warning: "
                f"{self.alert_threshold_critical} > {self.alert_threshold_warning}"
            )

        if not 0 <= self.compliance_score <= 100:
            raise ConfigurationError(f"compliance_score must be within 0-100: {self.compliance_score}")

        if not self.key_metrics:
            raise ConfigurationError("key_metrics must name at least one metric")

    @property
    def analysis_interval(self) -> float:
        """Seconds between real-time analysis passes (five collection cycles)."""
        return self.collection_interval * 5


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    lowered = raw.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


class SecureConfig:
    """
    Centralized configuration manager.

    Loads and validates engine configuration from environment variables.
    """

    def __init__(self):
        """Initialize configuration (loads .env file)."""
        load_dotenv()

    def get_analytics_config(self, **overrides) -> AnalyticsConfig:
        """
        Get validated analytics configuration.

        Keyword overrides win over environment variables.

        Returns:
            AnalyticsConfig: Validated configuration

        Raises:
            ConfigurationError: If configuration is missing or invalid
        """
        key_metrics_raw = os.getenv("TRENDWATCH_KEY_METRICS")
        key_metrics = (
            tuple(m.strip() for m in key_metrics_raw.split(",") if m.strip())
            if key_metrics_raw
            else DEFAULT_KEY_METRICS
        )

        values = {
            "collection_interval": _env_float("TRENDWATCH_COLLECTION_INTERVAL", 60.0),
            "retention_period_days": _env_int("TRENDWATCH_RETENTION_DAYS", 30),
            "alert_threshold_critical": _env_float("TRENDWATCH_ALERT_CRITICAL", 20.0),
            "alert_threshold_warning": _env_float("TRENDWATCH_ALERT_WARNING", 40.0),
            "enable_realtime_analysis": _env_bool("TRENDWATCH_REALTIME_ANALYSIS", True),
            "enable_business_impact_analysis": _env_bool("TRENDWATCH_BUSINESS_IMPACT", True),
            "max_samples_per_series": _env_int("TRENDWATCH_MAX_SAMPLES", 1000),
            "assessment_history_limit": _env_int("TRENDWATCH_HISTORY_LIMIT", 100),
            "compliance_score": _env_float("TRENDWATCH_COMPLIANCE_SCORE", 90.0),
            "key_metrics": key_metrics,
        }
        values.update(overrides)
        return AnalyticsConfig(**values)

    def get_log_level(self) -> str:
        """Log level for setup_logging(), from TRENDWATCH_LOG_LEVEL."""
        return os.getenv("TRENDWATCH_LOG_LEVEL", "INFO")


_config_instance = None


def get_config() -> SecureConfig:
    """
    Get the global configuration instance (singleton pattern).

    Returns:
        SecureConfig: The configuration manager
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = SecureConfig()
    return _config_instance
