"""Composite risk scoring for one analysed decision."""

from __future__ import annotations

from collections.abc import Sequence

from accesswatch.anomalies import Anomaly
from accesswatch.anomalies import AnomalyType

# Fixed contributions per detector; the risk-pattern detector contributes
# its own anomaly score instead.
_FIXED_WEIGHTS: dict[AnomalyType, int] = {
    AnomalyType.POLICY_ANOMALY: 30,
    AnomalyType.BEHAVIOR_ANOMALY: 40,
}

MAX_SCORE = 100


def composite_score(anomalies: Sequence[Anomaly]) -> int:
    """Sum detector contributions for one decision, capped at 100."""
    total = 0
    for anomaly in anomalies:
        if anomaly.type == AnomalyType.RISK_ANOMALY:
            total += anomaly.risk_score
        else:
            total += _FIXED_WEIGHTS[anomaly.type]
    return min(total, MAX_SCORE)
