"""
Tests for TrendPredictor - Linear Regression Forecasting

Tests line fitting, forecast cadence, confidence decay and value flooring.
"""

from datetime import timedelta

import pytest

from trendwatch.domain.metrics import DataPoint
from trendwatch.ml import TrendPredictor
from trendwatch.ml.trend_predictor import forecast


@pytest.fixture
def predictor():
    """Default predictor (min 3 points, 0.1 decay, 0.5 floor)"""
    return TrendPredictor()


class TestFit:
    """Test least-squares line fitting."""

    def test_fits_exact_line(self, predictor):
        """Test that a perfectly linear series recovers slope and intercept."""
        fit = predictor.fit([10, 20, 30, 40])

        assert fit.slope == pytest.approx(10.0)
        assert fit.intercept == pytest.approx(10.0)
        assert fit.r2_score == pytest.approx(1.0)

    def test_constant_series_has_perfect_score(self, predictor):
        """Test that a flat series fits with zero slope and r2 of 1.0."""
        fit = predictor.fit([5, 5, 5])

        assert fit.slope == pytest.approx(0.0)
        assert fit.r2_score == 1.0

    def test_single_value_cannot_be_fit(self, predictor):
        """Test that fewer than two values yield None."""
        assert predictor.fit([42]) is None


class TestForecast:
    """Test future point projection."""

    def test_requires_three_points(self, predictor, points_factory, base_time):
        """Test that short histories produce no forecast."""
        assert predictor.forecast(points_factory([1, 2], base_time), 5) == []

    def test_zero_periods_returns_empty(self, predictor, points_factory, base_time):
        """Test that a non-positive horizon produces no forecast."""
        assert predictor.forecast(points_factory([1, 2, 3], base_time), 0) == []

    def test_projects_line_at_series_cadence(self, predictor, points_factory, base_time):
        """Test values continue the line and timestamps follow the first gap."""
        points = points_factory([10, 20, 30], base_time)

        result = predictor.forecast(points, 3)

        assert [p.predicted_value for p in result] == pytest.approx([40.0, 50.0, 60.0])
        assert [p.timestamp for p in result] == [
            points[-1].timestamp + timedelta(hours=1),
            points[-1].timestamp + timedelta(hours=2),
            points[-1].timestamp + timedelta(hours=3),
        ]

    def test_confidence_decays_to_floor(self, predictor, points_factory, base_time):
        """Test confidence is 1 - 0.1 x step, never below 0.5."""
        result = predictor.forecast(points_factory([1, 2, 3, 4], base_time), 8)

        assert [p.confidence for p in result] == pytest.approx([0.9, 0.8, 0.7, 0.6, 0.5, 0.5, 0.5, 0.5])

    def test_confidence_is_non_increasing(self, predictor, points_factory, base_time):
        """Test confidence never rises across successive steps."""
        result = predictor.forecast(points_factory([3, 1, 4, 1, 5, 9, 2, 6], base_time), 10)

        confidences = [p.confidence for p in result]
        assert all(later <= earlier for earlier, later in zip(confidences, confidences[1:]))

    def test_predictions_floored_at_zero(self, predictor, points_factory, base_time):
        """Test a steep decline never forecasts negative values."""
        result = predictor.forecast(points_factory([30, 20, 10], base_time), 3)

        assert [p.predicted_value for p in result] == pytest.approx([0.0, 0.0, 0.0])

    def test_coincident_timestamps_use_default_cadence(self, predictor, base_time):
        """Test a zero first gap falls back to a 60 second cadence."""
        points = [DataPoint(timestamp=base_time, value=float(v)) for v in (1, 2, 3)]

        result = predictor.forecast(points, 2)

        assert result[0].timestamp == base_time + timedelta(seconds=60)
        assert result[1].timestamp == base_time + timedelta(seconds=120)

    def test_module_level_forecast(self, points_factory, base_time):
        """Test the convenience wrapper uses default settings."""
        result = forecast(points_factory([1, 2, 3], base_time))

        assert len(result) == 5
        assert result[0].predicted_value == pytest.approx(4.0)
