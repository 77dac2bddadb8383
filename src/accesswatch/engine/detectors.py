"""The three anomaly detectors.

Each detector reads shared state (decision history, the principal's
baseline) and returns at most one ``Anomaly``.  None of them mutate
anything; the caller holds the principal's lock while they run.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from accesswatch.anomalies import Anomaly
from accesswatch.anomalies import AnomalyType
from accesswatch.anomalies import Severity
from accesswatch.config import DetectionConfig
from accesswatch.engine.baseline import BehaviorBaseline
from accesswatch.history import Decision
from accesswatch.history import DecisionEvent
from accesswatch.history import DecisionHistory

logger = logging.getLogger(__name__)

POLICY_RISK = 30
OFF_HOURS_RISK = 20
HIGH_RATE_RISK = 40
DENIAL_RISK = 60


def _metadata(context: dict[str, Any] | None, **measurements: Any) -> dict[str, Any]:
    metadata: dict[str, Any] = dict(measurements)
    if context:
        metadata["context"] = copy.deepcopy(context)
    return metadata


class PolicyUsageDetector:
    """Flags access to a resource absent from the principal's recent history."""

    def __init__(self, history: DecisionHistory, config: DetectionConfig) -> None:
        self._history = history
        self._config = config

    def _prior_window(self, event: DecisionEvent) -> list[DecisionEvent]:
        size = self._config.policy_window
        recent = self._history.for_principal(event.principal_id, size + 1)
        if recent and recent[-1] is event:
            return recent[:-1]
        return recent[-size:]

    def detect(
        self,
        event: DecisionEvent,
        *,
        baseline: BehaviorBaseline | None = None,
        context: dict[str, Any] | None = None,
    ) -> Anomaly | None:
        del baseline
        window = self._prior_window(event)
        if not window and self._config.skip_policy_on_cold_start:
            logger.debug(
                "Skipping policy check for %s: no prior history", event.principal_id
            )
            return None

        seen = {prior.resource for prior in window}
        if event.resource in seen:
            return None

        return Anomaly(
            type=AnomalyType.POLICY_ANOMALY,
            severity=Severity.MEDIUM,
            principal_id=event.principal_id,
            resource=event.resource,
            action=event.action,
            description=f"accessing new resource type: {event.resource}",
            risk_score=POLICY_RISK,
            detected_at=event.timestamp,
            metadata=_metadata(context, window_size=len(window)),
        )


class BehaviorDetector:
    """Compares a decision against the principal's learned baseline.

    The hour-of-day check takes precedence: when it fires, the rate check
    is not evaluated for the same decision.
    """

    def __init__(self, history: DecisionHistory, config: DetectionConfig) -> None:
        self._history = history
        self._config = config

    def detect(
        self,
        event: DecisionEvent,
        *,
        baseline: BehaviorBaseline | None = None,
        context: dict[str, Any] | None = None,
    ) -> Anomaly | None:
        if baseline is None:
            return None

        hour = event.timestamp.hour
        if hour not in baseline.typical_hours:
            return Anomaly(
                type=AnomalyType.BEHAVIOR_ANOMALY,
                severity=Severity.LOW,
                principal_id=event.principal_id,
                resource=event.resource,
                action=event.action,
                description=f"activity outside typical hours ({hour}:00)",
                risk_score=OFF_HOURS_RISK,
                detected_at=event.timestamp,
                metadata=_metadata(
                    context, hour=hour, typical_hours=list(baseline.typical_hours)
                ),
            )

        recent = len(
            self._history.for_principal(
                event.principal_id, self._config.rate_sample_size
            )
        )
        if recent > baseline.average_decisions_per_hour * 2:
            return Anomaly(
                type=AnomalyType.BEHAVIOR_ANOMALY,
                severity=Severity.MEDIUM,
                principal_id=event.principal_id,
                resource=event.resource,
                action=event.action,
                description="unusually high activity rate detected",
                risk_score=HIGH_RATE_RISK,
                detected_at=event.timestamp,
                metadata=_metadata(
                    context,
                    recent_decisions=recent,
                    average_decisions_per_hour=baseline.average_decisions_per_hour,
                ),
            )
        return None


class RiskPatternDetector:
    """Flags clusters of denials, a sign of probing or escalation attempts."""

    def __init__(self, history: DecisionHistory, config: DetectionConfig) -> None:
        self._history = history
        self._config = config

    def detect(
        self,
        event: DecisionEvent,
        *,
        baseline: BehaviorBaseline | None = None,
        context: dict[str, Any] | None = None,
    ) -> Anomaly | None:
        del baseline
        recent = self._history.for_principal(
            event.principal_id, self._config.risk_window
        )
        denials = sum(1 for prior in recent if prior.decision == Decision.DENY)
        if denials < self._config.denial_threshold:
            return None

        return Anomaly(
            type=AnomalyType.RISK_ANOMALY,
            severity=Severity.HIGH,
            principal_id=event.principal_id,
            description=f"multiple consecutive access denials ({denials})",
            risk_score=DENIAL_RISK,
            detected_at=event.timestamp,
            metadata=_metadata(context, denials=denials, window_size=len(recent)),
        )
