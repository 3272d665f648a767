"""
Z-score anomaly detector for metric windows.

Flags every point whose distance from the window mean, measured in
population standard deviations, exceeds the anomaly threshold.

Usage::

    from trendwatch.ml.anomaly_detector import AnomalyDetector

    detector = AnomalyDetector()
    anomalies = detector.detect("test_pass_rate", trend.data_points)   # list[AnomalyDetection]
"""

from collections.abc import Sequence

import numpy as np

from trendwatch.core import get_logger
from trendwatch.domain.constants import anomaly_thresholds
from trendwatch.domain.insights import AnomalyDetection, AnomalyType
from trendwatch.domain.metrics import DataPoint, Severity

logger = get_logger(__name__)


def anomaly_severity(z_score: float) -> Severity:
    """Band a z-score: >4 critical, >3 high, >2.5 medium, else low."""
    if z_score > anomaly_thresholds.CRITICAL_ZSCORE:
        return Severity.CRITICAL
    if z_score > anomaly_thresholds.HIGH_ZSCORE:
        return Severity.HIGH
    if z_score > anomaly_thresholds.ZSCORE:
        return Severity.MEDIUM
    return Severity.LOW


class AnomalyDetector:
    """
    Detect anomalous points in a single metric window.

    Algorithm: compute the population mean and standard deviation of the
    window, then flag points with ``|value - mean| / stddev > threshold``.
    Windows shorter than *min_points* or with zero variance yield nothing.
    """

    def __init__(
        self,
        threshold: float = anomaly_thresholds.ZSCORE,
        min_points: int = anomaly_thresholds.MIN_POINTS,
    ) -> None:
        self.threshold = threshold
        self.min_points = min_points

    def detect(self, metric_id: str, data_points: Sequence[DataPoint]) -> list[AnomalyDetection]:
        """
        Run z-score detection over a window.

        Returns:
            Anomalies in window order (oldest first)
        """
        if len(data_points) < self.min_points:
            return []

        values = np.asarray([p.value for p in data_points], dtype=float)
        mean = float(values.mean())
        std = float(values.std(ddof=0))

        if std == 0:
            return []  # No variance, no anomalies

        results: list[AnomalyDetection] = []
        for point in data_points:
            z_score = abs(point.value - mean) / std
            if z_score <= self.threshold:
                continue

            results.append(
                AnomalyDetection(
                    metric=metric_id,
                    timestamp=point.timestamp,
                    value=point.value,
                    expected_value=mean,
                    deviation=z_score,
                    severity=anomaly_severity(z_score),
                    type=AnomalyType.SPIKE if point.value > mean else AnomalyType.DROP,
                )
            )

        logger.debug(
            "Anomaly detection complete",
            extra={"metric_id": metric_id, "anomalies_found": len(results), "mean": mean, "std": std},
        )
        return results
