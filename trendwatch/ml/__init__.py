"""
Analytics for recorded metrics.

Modules:
- TrendAnalyzer: overall trend, anomaly, seasonal, forecast and correlation insights
- TrendPredictor: linear regression forecasting with decaying confidence
- AnomalyDetector: per-window z-score anomaly detection
- SeasonalPatternDetector: hour/weekday/day-of-month bucket analysis
- ImpactScorer: weighted business-impact assessment and cost-benefit analysis
- AlertEngine: synchronous, failure-isolated alert delivery
"""

from .alert_engine import Alert, AlertEngine
from .anomaly_detector import AnomalyDetector
from .impact_scorer import ImpactScorer
from .pattern_detector import SeasonalPatternDetector
from .trend_analyzer import TrendAnalyzer, TrendSummaryReport, classify_trend
from .trend_predictor import TrendPredictor

__all__ = [
    "TrendAnalyzer",
    "TrendSummaryReport",
    "classify_trend",
    "TrendPredictor",
    "AnomalyDetector",
    "SeasonalPatternDetector",
    "ImpactScorer",
    "AlertEngine",
    "Alert",
]
