#!/usr/bin/env python3
"""
Tests for statistics module

Tests dispersion, change and correlation helpers.
All dispersion measures are population (ddof=0).
"""

import pytest

from trendwatch.utils.statistics import (
    calculate_percentile,
    coefficient_of_variation,
    mean,
    pearson_correlation,
    percent_change,
    population_stddev,
)


class TestMean:
    def test_mean(self):
        assert mean([1, 2, 3, 4]) == 2.5

    def test_empty_raises(self):
        """Test empty data raises ValueError."""
        with pytest.raises(ValueError, match="empty"):
            mean([])


class TestPopulationStddev:
    """Tests for population_stddev function."""

    def test_known_value(self):
        """Test the textbook population example."""
        assert population_stddev([2, 4, 4, 4, 5, 5, 7, 9]) == 2.0

    def test_single_value_is_zero(self):
        assert population_stddev([42.0]) == 0.0

    def test_divides_by_n(self):
        """Test [0, 2] gives 1.0 (sample stddev would be 1.414)."""
        assert population_stddev([0, 2]) == pytest.approx(1.0)


class TestCoefficientOfVariation:
    def test_percentage(self):
        """Test stddev / |mean| is expressed as a percentage."""
        assert coefficient_of_variation([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(40.0)

    def test_zero_mean(self):
        """Test a zero mean yields 0 instead of dividing by zero."""
        assert coefficient_of_variation([-1, 1]) == 0.0

    def test_empty(self):
        assert coefficient_of_variation([]) == 0.0


class TestPercentChange:
    def test_increase(self):
        assert percent_change(80, 100) == pytest.approx(25.0)

    def test_decrease(self):
        assert percent_change(100, 77) == pytest.approx(-23.0)

    def test_zero_previous(self):
        """Test a zero baseline yields 0 instead of dividing by zero."""
        assert percent_change(0, 50) == 0.0


class TestPearsonCorrelation:
    """Tests for pearson_correlation function."""

    def test_perfect_positive(self):
        assert pearson_correlation([1, 2, 3], [2, 4, 6]) == pytest.approx(1.0)

    def test_perfect_negative(self):
        assert pearson_correlation([1, 2, 3, 4], [8, 6, 4, 2]) == pytest.approx(-1.0)

    def test_truncates_to_shorter(self):
        """Test extra values in the longer series are ignored."""
        assert pearson_correlation([1, 2, 3, 100, -50], [1, 2, 3]) == pytest.approx(1.0)

    def test_zero_variance_is_none(self):
        """Test a constant series has no defined correlation."""
        assert pearson_correlation([5, 5, 5], [1, 2, 3]) is None

    def test_too_short_is_none(self):
        assert pearson_correlation([1], [1]) is None

    def test_result_is_clipped(self):
        r = pearson_correlation([0.1, 0.2, 0.3], [0.1, 0.2, 0.3])

        assert -1.0 <= r <= 1.0


class TestCalculatePercentile:
    """Tests for calculate_percentile function."""

    def test_median_odd_count(self):
        """Test median calculation with odd number of values."""
        assert calculate_percentile([1.0, 2.0, 3.0, 4.0, 5.0], 50) == 3.0

    def test_median_even_count(self):
        """Test median calculation with even number of values (interpolation)."""
        assert calculate_percentile([1.0, 2.0, 3.0, 4.0], 50) == 2.5

    def test_unsorted_input(self):
        assert calculate_percentile([20, 5, 10], 50) == 10.0

    def test_empty_raises(self):
        with pytest.raises(ValueError, match="empty"):
            calculate_percentile([], 50)

    def test_out_of_range_raises(self):
        with pytest.raises(ValueError, match="0-100"):
            calculate_percentile([1, 2], 101)
