"""
Pytest configuration and shared fixtures

Provides common fixtures for samples, series and engine components.
"""

from datetime import datetime, timedelta, timezone

import pytest

from trendwatch.collectors.metric_store import MetricStore
from trendwatch.domain.metrics import DataPoint, MetricCategory, MetricSample
from trendwatch.secure_config import AnalyticsConfig

# ===== Time Fixtures =====


@pytest.fixture
def base_time():
    """Provide a consistent UTC timestamp for testing"""
    return datetime(2026, 2, 7, 12, 0, 0, tzinfo=timezone.utc)


# ===== Sample Builders =====


def make_sample(metric_id, value, timestamp, category=MetricCategory.QUALITY, unit="%", **tags):
    """Build a MetricSample with sensible defaults."""
    return MetricSample(
        id=metric_id,
        name=metric_id.replace("_", " ").title(),
        category=category,
        value=value,
        unit=unit,
        timestamp=timestamp,
        tags=tags,
    )


def make_points(values, start, step=timedelta(hours=1)):
    """Build ascending DataPoints one *step* apart."""
    return [DataPoint(timestamp=start + step * i, value=float(v)) for i, v in enumerate(values)]


@pytest.fixture
def sample_factory():
    """Expose make_sample to tests"""
    return make_sample


@pytest.fixture
def points_factory():
    """Expose make_points to tests"""
    return make_points


# ===== Component Fixtures =====


@pytest.fixture
def analytics_config():
    """Provide a fast, explicit configuration (no environment lookups)"""
    return AnalyticsConfig(collection_interval=0.01)


@pytest.fixture
def store():
    """Provide an empty MetricStore with default KPIs"""
    return MetricStore(max_samples_per_series=1000)


@pytest.fixture
def declining_store(store, base_time):
    """Store with 24 hourly test_pass_rate samples declining 100 -> 77"""
    for i in range(24):
        store.record(make_sample("test_pass_rate", 100 - i, base_time - timedelta(hours=23 - i)))
    return store
