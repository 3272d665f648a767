"""
Alert engine for analytics findings.

Wraps critical insights, critical business recommendations and impact
scores past the alert thresholds in a unified ``Alert`` and delivers them
synchronously to registered subscribers. Subscribers are called in
registration order; a subscriber that raises is logged and skipped so later
subscribers still receive the alert.

Usage::

    from trendwatch.ml.alert_engine import AlertEngine

    engine = AlertEngine()
    unsubscribe = engine.subscribe(lambda alert: print(alert.message))
    engine.deliver_insight(insight)     # returns number of subscribers reached
    unsubscribe()
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from trendwatch.core import get_logger
from trendwatch.domain.impact import BusinessImpactAssessment, BusinessRecommendation
from trendwatch.domain.insights import TrendInsight
from trendwatch.domain.metrics import Severity, utc_now
from trendwatch.domain.serialization import SerializableMixin
from trendwatch.utils.error_handling import call_isolated

logger = get_logger(__name__)


@dataclass(frozen=True)
class Alert(SerializableMixin):
    """A single alert handed to subscribers."""

    alert_type: str  # "insight" | "recommendation" | "impact"
    severity: Severity
    title: str
    message: str
    metric: str | None
    source: TrendInsight | BusinessRecommendation | BusinessImpactAssessment
    raised_at: datetime = field(default_factory=utc_now)


AlertCallback = Callable[[Alert], object]


class AlertEngine:
    """Fan alerts out to subscribers, isolating subscriber failures."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: list[AlertCallback] = []

    def subscribe(self, callback: AlertCallback) -> Callable[[], None]:
        """
        Register a subscriber.

        Returns:
            Function that removes the subscriber again
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def deliver(self, alert: Alert) -> int:
        """
        Deliver an alert to every subscriber in registration order.

        Returns:
            Number of subscribers that accepted the alert without raising
        """
        with self._lock:
            subscribers = list(self._subscribers)

        delivered = 0
        for index, callback in enumerate(subscribers):
            ok, _ = call_isolated(
                logger,
                callback,
                alert,
                context={"subscriber": index, "alert_type": alert.alert_type, "title": alert.title},
                error_type="Alert delivery",
            )
            delivered += ok

        logger.info(
            "Alert delivered",
            extra={
                "alert_type": alert.alert_type,
                "severity": alert.severity.value,
                "delivered": delivered,
                "subscribers": len(subscribers),
            },
        )
        return delivered

    def deliver_insight(self, insight: TrendInsight) -> int:
        return self.deliver(
            Alert(
                alert_type="insight",
                severity=insight.severity,
                title=insight.title,
                message=insight.description,
                metric=insight.metric,
                source=insight,
            )
        )

    def deliver_recommendation(self, recommendation: BusinessRecommendation) -> int:
        return self.deliver(
            Alert(
                alert_type="recommendation",
                severity=recommendation.priority,
                title=recommendation.title,
                message=recommendation.description,
                metric=None,
                source=recommendation,
            )
        )

    def deliver_assessment(self, assessment: BusinessImpactAssessment, severity: Severity) -> int:
        """Raise an impact alert for an assessment whose overall score crossed a threshold."""
        return self.deliver(
            Alert(
                alert_type="impact",
                severity=severity,
                title=f"Business impact score {assessment.overall_score:.1f}",
                message=(
                    f"Overall business impact score is {assessment.overall_score:.1f} "
                    f"(risk level: {assessment.risk_level.value})"
                ),
                metric=None,
                source=assessment,
            )
        )
