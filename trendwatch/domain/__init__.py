"""
Domain Models - Type-safe data structures for the analytics engine

This package contains dataclasses and enums for:
    - metrics: MetricSample, KPIDefinition, Timeframe, TrendData
    - insights: TrendInsight, AnomalyDetection, SeasonalPattern, CorrelationAnalysis
    - quality / business: KPI snapshots consumed by impact scoring
    - impact: BusinessImpactAssessment, CostBenefitAnalysis, ExecutiveSummary

Usage:
    from trendwatch.domain import MetricCategory, MetricSample

    sample = MetricSample(
        id="test_pass_rate",
        name="Test Pass Rate",
        category=MetricCategory.QUALITY,
        value=97.0,
        unit="%",
    )
"""

from .business import BusinessImpactMetrics
from .exceptions import InvalidSampleError, TrendwatchError
from .impact import (
    BusinessCategoryImpact,
    BusinessImpactAssessment,
    BusinessRecommendation,
    CostBenefitAnalysis,
    ExecutiveSummary,
    ImpactCategory,
    ProjectedImpact,
    ReportType,
)
from .insights import (
    AnomalyDetection,
    AnomalyType,
    CorrelationAnalysis,
    CorrelationDirection,
    CorrelationStrength,
    InsightData,
    InsightType,
    PatternPeriod,
    SeasonalPattern,
    TrendInsight,
)
from .metrics import (
    DEFAULT_KPIS,
    DataPoint,
    ForecastPoint,
    Frequency,
    KPIDefinition,
    KPIThreshold,
    MetricCategory,
    MetricSample,
    Severity,
    Timeframe,
    TimeframeUnit,
    TrendData,
    TrendDirection,
)
from .quality import QualityMetrics

__all__ = [
    # Metrics
    "MetricCategory",
    "MetricSample",
    "KPIDefinition",
    "KPIThreshold",
    "DEFAULT_KPIS",
    "Frequency",
    "Severity",
    "Timeframe",
    "TimeframeUnit",
    "DataPoint",
    "ForecastPoint",
    "TrendData",
    "TrendDirection",
    # Insights
    "TrendInsight",
    "InsightData",
    "InsightType",
    "AnomalyDetection",
    "AnomalyType",
    "SeasonalPattern",
    "PatternPeriod",
    "CorrelationAnalysis",
    "CorrelationStrength",
    "CorrelationDirection",
    # Snapshots
    "QualityMetrics",
    "BusinessImpactMetrics",
    # Impact
    "ImpactCategory",
    "BusinessCategoryImpact",
    "BusinessRecommendation",
    "ProjectedImpact",
    "BusinessImpactAssessment",
    "CostBenefitAnalysis",
    "ExecutiveSummary",
    "ReportType",
    # Errors
    "TrendwatchError",
    "InvalidSampleError",
]
