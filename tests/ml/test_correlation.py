"""
Tests for pairwise Pearson correlation.
"""

import pytest

from trendwatch.domain.insights import CorrelationDirection, CorrelationStrength
from trendwatch.ml.correlation import correlate_all, correlate_pair, correlation_strength


class TestCorrelationStrength:
    """Test |r| banding."""

    @pytest.mark.parametrize(
        "r,expected",
        [
            (0.1, CorrelationStrength.WEAK),
            (0.3, CorrelationStrength.MODERATE),
            (-0.5, CorrelationStrength.STRONG),
            (0.69, CorrelationStrength.STRONG),
            (-0.7, CorrelationStrength.VERY_STRONG),
        ],
    )
    def test_bands(self, r, expected):
        """Test band lower bounds are inclusive."""
        assert correlation_strength(r) == expected


class TestCorrelatePair:
    """Test a single pair."""

    def test_identical_series(self, points_factory, base_time):
        """Test a series correlates perfectly with itself."""
        points = points_factory(range(1, 21), base_time)

        result = correlate_pair("a", points, "b", points)

        assert result.correlation == pytest.approx(1.0)
        assert result.strength == CorrelationStrength.VERY_STRONG
        assert result.direction == CorrelationDirection.POSITIVE

    def test_negated_series(self, points_factory, base_time):
        """Test a series correlates at -1 with its negation."""
        a = points_factory(range(1, 21), base_time)
        b = points_factory([-v for v in range(1, 21)], base_time)

        result = correlate_pair("a", a, "b", b)

        assert result.correlation == pytest.approx(-1.0)
        assert result.direction == CorrelationDirection.NEGATIVE
        assert result.significance == pytest.approx(1.0)

    def test_too_few_points(self, points_factory, base_time):
        """Test fewer than ten points in either series is skipped."""
        a = points_factory(range(20), base_time)
        b = points_factory(range(9), base_time)

        assert correlate_pair("a", a, "b", b) is None

    def test_zero_variance(self, points_factory, base_time):
        """Test a flat series cannot be correlated."""
        a = points_factory(range(20), base_time)
        b = points_factory([3.0] * 20, base_time)

        assert correlate_pair("a", a, "b", b) is None

    def test_truncates_to_shorter_series(self, points_factory, base_time):
        """Test values are aligned by index over the shorter length."""
        a = points_factory(range(1, 11), base_time)
        b = points_factory(list(range(1, 11)) + [-500, 800], base_time)

        assert correlate_pair("a", a, "b", b).correlation == pytest.approx(1.0)


class TestCorrelateAll:
    """Test all-pairs correlation."""

    def test_keeps_only_meaningful_pairs(self, points_factory, base_time):
        """Test pairs under |r| 0.3 are dropped."""
        series = {
            "a": points_factory(range(1, 21), base_time),
            "b": points_factory(range(1, 21), base_time),
            "noise": points_factory([1, -1] * 10, base_time),
        }

        results = correlate_all(series)

        assert len(results) == 1
        assert {results[0].metric1, results[0].metric2} == {"a", "b"}

    def test_single_series(self, points_factory, base_time):
        """Test one series has no pairs."""
        assert correlate_all({"a": points_factory(range(20), base_time)}) == []
