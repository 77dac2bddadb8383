"""Unit tests for the policy, behavior and risk-pattern detectors."""

from __future__ import annotations

from datetime import datetime
from datetime import timedelta
from datetime import UTC

from accesswatch.anomalies import AnomalyType
from accesswatch.anomalies import Severity
from accesswatch.config import DetectionConfig
from accesswatch.engine.baseline import BehaviorBaseline
from accesswatch.engine.detectors import BehaviorDetector
from accesswatch.engine.detectors import PolicyUsageDetector
from accesswatch.engine.detectors import RiskPatternDetector
from accesswatch.history import Decision
from accesswatch.history import DecisionEvent
from accesswatch.history import DecisionHistory

T0 = datetime(2026, 3, 2, 10, 0, tzinfo=UTC)
CONFIG = DetectionConfig()


def _record(
    history: DecisionHistory,
    resource: str = "budget",
    *,
    decision: Decision = Decision.ALLOW,
    at: datetime = T0,
    principal: str = "u1",
) -> DecisionEvent:
    event = DecisionEvent(
        principal_id=principal,
        resource=resource,
        action="read",
        decision=decision,
        timestamp=at,
    )
    history.record(event)
    return event


def _baseline(*, hours: list[int], rate: float) -> BehaviorBaseline:
    return BehaviorBaseline(
        principal_id="u1",
        average_decisions_per_hour=rate,
        typical_hours=hours,
        last_updated=T0,
    )


# ---------------------------------------------------------------------------
# PolicyUsageDetector
# ---------------------------------------------------------------------------


class TestPolicyUsageDetector:
    def test_cold_start_is_skipped(self):
        history = DecisionHistory()
        event = _record(history, "budget")
        assert PolicyUsageDetector(history, CONFIG).detect(event) is None

    def test_cold_start_fires_when_skip_disabled(self):
        history = DecisionHistory()
        event = _record(history, "budget")
        detector = PolicyUsageDetector(
            history, DetectionConfig(skip_policy_on_cold_start=False)
        )
        anomaly = detector.detect(event)
        assert anomaly is not None
        assert anomaly.type == AnomalyType.POLICY_ANOMALY

    def test_known_resource_passes(self):
        history = DecisionHistory()
        _record(history, "budget")
        event = _record(history, "budget")
        assert PolicyUsageDetector(history, CONFIG).detect(event) is None

    def test_new_resource_fires_medium_30(self):
        history = DecisionHistory()
        for _ in range(3):
            _record(history, "budget")
        event = _record(history, "database-admin")

        anomaly = PolicyUsageDetector(history, CONFIG).detect(
            event, context={"ip": "10.0.0.1"}
        )

        assert anomaly is not None
        assert anomaly.severity == Severity.MEDIUM
        assert anomaly.risk_score == 30
        assert anomaly.resource == "database-admin"
        assert anomaly.action == "read"
        assert anomaly.description == "accessing new resource type: database-admin"
        assert anomaly.detected_at == event.timestamp
        assert anomaly.metadata["window_size"] == 3
        assert anomaly.metadata["context"] == {"ip": "10.0.0.1"}

    def test_resource_outside_last_hundred_counts_as_new(self):
        history = DecisionHistory()
        _record(history, "archive")
        for _ in range(100):
            _record(history, "budget")
        event = _record(history, "archive")

        assert PolicyUsageDetector(history, CONFIG).detect(event) is not None

    def test_other_principals_history_is_ignored(self):
        history = DecisionHistory()
        _record(history, "database-admin", principal="u2")
        _record(history, "budget")
        event = _record(history, "database-admin")

        assert PolicyUsageDetector(history, CONFIG).detect(event) is not None


# ---------------------------------------------------------------------------
# BehaviorDetector
# ---------------------------------------------------------------------------


class TestBehaviorDetector:
    def test_skipped_without_baseline(self):
        history = DecisionHistory()
        event = _record(history, at=T0.replace(hour=3))
        assert BehaviorDetector(history, CONFIG).detect(event, baseline=None) is None

    def test_outside_typical_hours_fires_low_20(self):
        history = DecisionHistory()
        event = _record(history, at=T0.replace(hour=3))
        anomaly = BehaviorDetector(history, CONFIG).detect(
            event, baseline=_baseline(hours=list(range(9, 17)), rate=10.0)
        )

        assert anomaly is not None
        assert anomaly.type == AnomalyType.BEHAVIOR_ANOMALY
        assert anomaly.severity == Severity.LOW
        assert anomaly.risk_score == 20
        assert anomaly.description == "activity outside typical hours (3:00)"

    def test_hour_check_suppresses_rate_check(self):
        history = DecisionHistory()
        for i in range(59):
            _record(history, at=T0.replace(hour=3) + timedelta(seconds=i))
        event = _record(history, at=T0.replace(hour=3, minute=5))

        # 60 recent decisions against a baseline rate of 1/h would also
        # trip the rate check; only the hour anomaly is reported.
        anomaly = BehaviorDetector(history, CONFIG).detect(
            event, baseline=_baseline(hours=list(range(9, 17)), rate=1.0)
        )
        assert anomaly is not None
        assert anomaly.severity == Severity.LOW
        assert anomaly.risk_score == 20

    def test_high_rate_fires_medium_40(self):
        history = DecisionHistory()
        for i in range(10):
            event = _record(history, at=T0 + timedelta(seconds=i))

        anomaly = BehaviorDetector(history, CONFIG).detect(
            event, baseline=_baseline(hours=[10], rate=4.0)
        )
        assert anomaly is not None
        assert anomaly.severity == Severity.MEDIUM
        assert anomaly.risk_score == 40
        assert anomaly.description == "unusually high activity rate detected"
        assert anomaly.metadata["recent_decisions"] == 10

    def test_rate_at_exactly_twice_baseline_passes(self):
        history = DecisionHistory()
        for i in range(10):
            event = _record(history, at=T0 + timedelta(seconds=i))

        anomaly = BehaviorDetector(history, CONFIG).detect(
            event, baseline=_baseline(hours=[10], rate=5.0)
        )
        assert anomaly is None

    def test_rate_sample_is_capped_at_sixty(self):
        history = DecisionHistory()
        for i in range(200):
            event = _record(history, at=T0 + timedelta(seconds=i))

        # 60 sampled decisions vs 2 x 30 -> not strictly greater
        anomaly = BehaviorDetector(history, CONFIG).detect(
            event, baseline=_baseline(hours=[10], rate=30.0)
        )
        assert anomaly is None


# ---------------------------------------------------------------------------
# RiskPatternDetector
# ---------------------------------------------------------------------------


class TestRiskPatternDetector:
    def test_four_denials_do_not_fire(self):
        history = DecisionHistory()
        for _ in range(4):
            event = _record(history, decision=Decision.DENY)
        assert RiskPatternDetector(history, CONFIG).detect(event) is None

    def test_five_denials_fire_high_60(self):
        history = DecisionHistory()
        for _ in range(5):
            event = _record(history, decision=Decision.DENY)

        anomaly = RiskPatternDetector(history, CONFIG).detect(event)
        assert anomaly is not None
        assert anomaly.type == AnomalyType.RISK_ANOMALY
        assert anomaly.severity == Severity.HIGH
        assert anomaly.risk_score == 60
        assert anomaly.description == "multiple consecutive access denials (5)"
        assert anomaly.resource is None
        assert anomaly.action is None

    def test_interleaved_denials_within_window_fire(self):
        history = DecisionHistory()
        for i in range(10):
            decision = Decision.DENY if i % 2 else Decision.ALLOW
            event = _record(history, decision=decision)

        anomaly = RiskPatternDetector(history, CONFIG).detect(event)
        assert anomaly is not None
        assert anomaly.metadata["denials"] == 5

    def test_denials_outside_last_ten_are_ignored(self):
        history = DecisionHistory()
        for _ in range(5):
            _record(history, decision=Decision.DENY)
        for _ in range(6):
            event = _record(history, decision=Decision.ALLOW)

        assert RiskPatternDetector(history, CONFIG).detect(event) is None
