"""
Trendwatch - Metrics Collection and Trend Analytics Engine

Records time-stamped quality, performance and business measurements, derives
KPIs and trends, detects anomalies, seasonal patterns and correlations, and
translates the result into business-impact assessments and alerts.

Package Structure:
    - core: Infrastructure (logging, config re-exports)
    - domain: Domain models (MetricSample, TrendInsight, BusinessImpactAssessment)
    - collectors: MetricStore and the metric-source abstraction
    - ml: Trend, anomaly, seasonality, correlation, impact and alert engines
    - reports: JSON and CSV exporters
    - analytics_service: AnalyticsOrchestrator lifecycle and views
"""

__version__ = "1.0.0"
__author__ = "Engineering Metrics Team"
