"""
Trend Predictor - Linear Regression Forecasting for Metric Series

Fits a least-squares line over sample index vs. value and projects future
points at the series' own sampling cadence:
- Cadence is the gap between the first two points (60s when they coincide)
- Confidence decays linearly per step: max(0.5, 1 - step x 0.1)
- Predicted values are floored at zero

Uses scikit-learn LinearRegression.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import timedelta

import numpy as np
from sklearn.linear_model import LinearRegression

from trendwatch.core import get_logger
from trendwatch.domain.constants import forecast_config
from trendwatch.domain.metrics import DataPoint, ForecastPoint

logger = get_logger(__name__)


@dataclass(frozen=True)
class LineFit:
    """Fitted line over index positions 0..n-1."""

    slope: float
    intercept: float
    r2_score: float

    def at(self, index: float) -> float:
        return self.slope * index + self.intercept


class TrendPredictor:
    """Forecast metric series using linear regression."""

    def __init__(
        self,
        min_points: int = forecast_config.MIN_POINTS,
        confidence_decay: float = forecast_config.CONFIDENCE_DECAY,
        min_confidence: float = forecast_config.MIN_CONFIDENCE,
    ):
        """
        Initialize predictor.

        Args:
            min_points: Minimum history needed before forecasting (default: 3)
            confidence_decay: Confidence lost per future step (default: 0.1)
            min_confidence: Confidence floor (default: 0.5)
        """
        self.min_points = min_points
        self.confidence_decay = confidence_decay
        self.min_confidence = min_confidence

    def fit(self, values: Sequence[float]) -> LineFit | None:
        """
        Fit value against index.

        Returns:
            LineFit, or None with fewer than two values
        """
        if len(values) < 2:
            return None

        X = np.arange(len(values), dtype=float).reshape(-1, 1)
        y = np.asarray(values, dtype=float)

        model = LinearRegression()
        model.fit(X, y)

        # score() is undefined (nan) for a constant series
        r2 = float(model.score(X, y)) if np.ptp(y) > 0 else 1.0
        return LineFit(slope=float(model.coef_[0]), intercept=float(model.intercept_), r2_score=r2)

    def forecast(
        self, data_points: Sequence[DataPoint], periods: int = forecast_config.DEFAULT_PERIODS
    ) -> list[ForecastPoint]:
        """
        Project *periods* future points after the last data point.

        Args:
            data_points: History in ascending timestamp order
            periods: Number of future points (default: 5)

        Returns:
            ForecastPoints with non-increasing confidence; empty when history
            is shorter than min_points or periods < 1
        """
        n = len(data_points)
        if n < self.min_points or periods < 1:
            return []

        fit = self.fit([p.value for p in data_points])
        if fit is None:
            return []

        cadence = data_points[1].timestamp - data_points[0].timestamp
        if cadence <= timedelta(0):
            cadence = timedelta(seconds=forecast_config.DEFAULT_CADENCE_SECONDS)

        last_timestamp = data_points[-1].timestamp
        forecast = []
        for step in range(1, periods + 1):
            predicted = fit.at(n + step - 1)
            forecast.append(
                ForecastPoint(
                    timestamp=last_timestamp + cadence * step,
                    predicted_value=max(0.0, predicted),
                    confidence=max(self.min_confidence, 1 - step * self.confidence_decay),
                )
            )

        logger.debug(
            "Forecast generated",
            extra={"points": n, "periods": periods, "slope": fit.slope, "r2_score": fit.r2_score},
        )
        return forecast


def forecast(data_points: Sequence[DataPoint], periods: int = forecast_config.DEFAULT_PERIODS) -> list[ForecastPoint]:
    """Module-level convenience wrapper around TrendPredictor().forecast()."""
    return TrendPredictor().forecast(data_points, periods)
