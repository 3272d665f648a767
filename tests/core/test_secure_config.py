"""
Tests for analytics configuration

Tests validation of weight tables, projection multipliers and engine
settings, plus environment-variable loading.
"""

import pytest

from trendwatch.domain.constants import DEFAULT_KEY_METRICS
from trendwatch.secure_config import (
    AnalyticsConfig,
    ConfigurationError,
    ImpactWeights,
    ProjectionConfig,
    SecureConfig,
    get_config,
)

ENV_VARS = (
    "TRENDWATCH_COLLECTION_INTERVAL",
    "TRENDWATCH_RETENTION_DAYS",
    "TRENDWATCH_ALERT_CRITICAL",
    "TRENDWATCH_ALERT_WARNING",
    "TRENDWATCH_REALTIME_ANALYSIS",
    "TRENDWATCH_BUSINESS_IMPACT",
    "TRENDWATCH_MAX_SAMPLES",
    "TRENDWATCH_HISTORY_LIMIT",
    "TRENDWATCH_COMPLIANCE_SCORE",
    "TRENDWATCH_KEY_METRICS",
    "TRENDWATCH_LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every TRENDWATCH_* variable for the test"""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestImpactWeights:
    """Test weight table validation"""

    def test_defaults_are_valid(self):
        weights = ImpactWeights()

        assert weights.user_experience["satisfaction_score"] == 0.35
        assert sum(weights.overall.values()) == pytest.approx(1.0)

    def test_weights_must_sum_to_one(self):
        """Test a table summing to 0.9 is rejected"""
        with pytest.raises(ConfigurationError, match="must sum to 1.0"):
            ImpactWeights(overall={"user_experience": 0.3, "operational": 0.3, "financial": 0.2, "reputation": 0.1})

    def test_negative_weight_rejected(self):
        with pytest.raises(ConfigurationError, match="non-negative"):
            ImpactWeights(
                financial={
                    "defect_cost_avoidance": 1.2,
                    "time_to_market": -0.2,
                    "testing_cost_per_feature": 0.0,
                    "risk_reduction": 0.0,
                }
            )

    def test_overall_must_cover_categories(self):
        with pytest.raises(ConfigurationError, match="must cover exactly"):
            ImpactWeights(overall={"user_experience": 0.5, "operational": 0.5})


class TestProjectionConfig:
    def test_multipliers_must_not_shrink(self):
        """Test long-term risk below short-term risk is rejected"""
        with pytest.raises(ConfigurationError, match="non-decreasing"):
            ProjectionConfig(churn_risk=(0.3, 0.15, 0.05))

    def test_negative_changes_must_deepen(self):
        with pytest.raises(ConfigurationError, match="non-increasing"):
            ProjectionConfig(satisfaction_change=(-1.0, -0.5, -0.2))

    def test_negative_baseline_rejected(self):
        with pytest.raises(ConfigurationError, match="revenue_baseline"):
            ProjectionConfig(revenue_baseline=-1)


class TestAnalyticsConfig:
    """Test engine settings validation"""

    def test_defaults(self):
        config = AnalyticsConfig()

        assert config.collection_interval == 60.0
        assert config.analysis_interval == 300.0
        assert config.assessment_history_limit == 100
        assert config.key_metrics == DEFAULT_KEY_METRICS

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"collection_interval": 0}, "collection_interval"),
            ({"retention_period_days": 0}, "retention_period_days"),
            ({"max_samples_per_series": 0}, "max_samples_per_series"),
            ({"assessment_history_limit": 0}, "assessment_history_limit"),
            ({"alert_threshold_critical": 50, "alert_threshold_warning": 40}, "must not exceed"),
            ({"compliance_score": 101}, "compliance_score"),
            ({"key_metrics": ()}, "key_metrics"),
        ],
    )
    def test_invalid_values(self, overrides, message):
        """Test each invalid setting fails fast"""
        with pytest.raises(ConfigurationError, match=message):
            AnalyticsConfig(**overrides)


class TestSecureConfig:
    """Test environment-variable loading"""

    def test_defaults_without_env(self, clean_env):
        config = SecureConfig().get_analytics_config()

        assert config.collection_interval == 60.0
        assert config.enable_realtime_analysis is True

    def test_env_overrides(self, clean_env):
        clean_env.setenv("TRENDWATCH_COLLECTION_INTERVAL", "15")
        clean_env.setenv("TRENDWATCH_REALTIME_ANALYSIS", "off")
        clean_env.setenv("TRENDWATCH_MAX_SAMPLES", "50")
        clean_env.setenv("TRENDWATCH_KEY_METRICS", "test_pass_rate, error_rate ,")

        config = SecureConfig().get_analytics_config()

        assert config.collection_interval == 15.0
        assert config.enable_realtime_analysis is False
        assert config.max_samples_per_series == 50
        assert config.key_metrics == ("test_pass_rate", "error_rate")

    def test_keyword_overrides_win(self, clean_env):
        clean_env.setenv("TRENDWATCH_COLLECTION_INTERVAL", "15")

        config = SecureConfig().get_analytics_config(collection_interval=5.0)

        assert config.collection_interval == 5.0

    @pytest.mark.parametrize(
        "name, value",
        [
            ("TRENDWATCH_COLLECTION_INTERVAL", "fast"),
            ("TRENDWATCH_MAX_SAMPLES", "1.5"),
            ("TRENDWATCH_BUSINESS_IMPACT", "maybe"),
        ],
    )
    def test_malformed_env_values(self, clean_env, name, value):
        """Test unparseable environment values raise ConfigurationError"""
        clean_env.setenv(name, value)

        with pytest.raises(ConfigurationError, match=name):
            SecureConfig().get_analytics_config()

    def test_log_level(self, clean_env):
        assert SecureConfig().get_log_level() == "INFO"
        clean_env.setenv("TRENDWATCH_LOG_LEVEL", "DEBUG")
        assert SecureConfig().get_log_level() == "DEBUG"

    def test_get_config_is_singleton(self):
        assert get_config() is get_config()
