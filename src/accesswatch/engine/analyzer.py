"""Anomaly engine facade.

``AnomalyEngine.analyze_decision`` is called synchronously by the
authorization engine right after it renders a verdict.  It records the
decision, runs the three detectors, scores and stores fired anomalies,
then relearns the principal's baseline.  The detectors see the baseline
learned from the principal's *previous* decisions, so a principal's first
call is never compared against a baseline.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from collections.abc import Sequence
from datetime import datetime
from datetime import UTC
from time import perf_counter
from typing import Any

from pydantic import BaseModel
from pydantic import Field

from accesswatch.anomalies import Anomaly
from accesswatch.anomalies import AnomalyStore
from accesswatch.config import DetectionConfig
from accesswatch.engine.baseline import BaselineManager
from accesswatch.engine.baseline import BehaviorBaseline
from accesswatch.engine.detectors import BehaviorDetector
from accesswatch.engine.detectors import PolicyUsageDetector
from accesswatch.engine.detectors import RiskPatternDetector
from accesswatch.engine.scoring import composite_score
from accesswatch.history import Decision
from accesswatch.history import DecisionEvent
from accesswatch.history import DecisionHistory
from accesswatch.observability import EngineMetrics

logger = logging.getLogger(__name__)

UNKNOWN_PRINCIPAL = "unknown"

AnomalySink = Callable[[Sequence[Anomaly]], None]


class AnalysisResult(BaseModel):
    """Outcome of analysing one decision."""

    model_config = {"frozen": True}

    detected: bool = False
    risk_score: int = Field(default=0, ge=0, le=100)
    anomalies: list[Anomaly] = Field(default_factory=list)


def normalize_principal(principal_id: str | None) -> str:
    """Fold blank principal ids into ``UNKNOWN_PRINCIPAL``."""
    if principal_id is None or not principal_id.strip():
        return UNKNOWN_PRINCIPAL
    return principal_id


class AnomalyEngine:
    """In-memory authorization anomaly detector.

    Construct one per process (or per tenant) and pass it to callers; the
    engine keeps no module-level state.  *sink* receives every batch of
    fired anomalies and must not block (``AnomalyArchive.submit`` only
    queues).
    """

    def __init__(
        self,
        config: DetectionConfig | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
        sink: AnomalySink | None = None,
    ) -> None:
        self.config = config or DetectionConfig()
        self._clock = clock or (lambda: datetime.now(tz=UTC))
        self._sink = sink
        self._history = DecisionHistory(self.config.history_capacity)
        self._baselines = BaselineManager(self._history, self.config)
        self._anomalies = AnomalyStore(clock=self._clock)
        self._detectors = (
            PolicyUsageDetector(self._history, self.config),
            BehaviorDetector(self._history, self.config),
            RiskPatternDetector(self._history, self.config),
        )
        self.metrics = EngineMetrics()

    # ------------------------------------------------------------------
    # Ingest
    # ------------------------------------------------------------------

    def analyze_decision(
        self,
        principal_id: str,
        resource: str,
        action: str,
        decision: Decision | str,
        context: dict[str, Any] | None = None,
        *,
        timestamp: datetime | None = None,
    ) -> AnalysisResult:
        """Record a decision and report any anomalies it triggers."""
        start = perf_counter()
        ok = False
        try:
            event = DecisionEvent(
                principal_id=normalize_principal(principal_id),
                resource=resource,
                action=action,
                decision=Decision(decision),
                timestamp=timestamp or self._clock(),
            )
            with self._baselines.lock_for(event.principal_id):
                self._history.record(event)
                baseline = self._baselines.get(event.principal_id)
                anomalies: list[Anomaly] = []
                for detector in self._detectors:
                    anomaly = detector.detect(event, baseline=baseline, context=context)
                    if anomaly is not None:
                        anomalies.append(anomaly)
                self._anomalies.append(anomalies)
                self._baselines.update(event.principal_id, event.timestamp)

            for anomaly in anomalies:
                self.metrics.count_anomaly(anomaly.type.value)
                logger.info(
                    "anomaly type=%s severity=%s principal=%s",
                    anomaly.type.value,
                    anomaly.severity.value,
                    anomaly.principal_id,
                )
            if anomalies and self._sink is not None:
                try:
                    self._sink([a.model_copy(deep=True) for a in anomalies])
                except Exception:
                    logger.exception("anomaly sink failed")

            ok = True
            return AnalysisResult(
                detected=bool(anomalies),
                risk_score=composite_score(anomalies),
                anomalies=anomalies,
            )
        finally:
            self.metrics.record_latency(
                operation="engine.analyze_decision",
                duration_ms=(perf_counter() - start) * 1000,
                ok=ok,
            )

    # ------------------------------------------------------------------
    # Query / lifecycle
    # ------------------------------------------------------------------

    def get_anomalies_for_principal(
        self, principal_id: str, limit: int | None = 50
    ) -> list[Anomaly]:
        return self._anomalies.for_principal(normalize_principal(principal_id), limit)

    def get_recent_anomalies(self, limit: int | None = 100) -> list[Anomaly]:
        return self._anomalies.recent(limit)

    def resolve_anomaly(self, anomaly_id: str) -> bool:
        return self._anomalies.resolve(anomaly_id)

    def get_risk_score(self, principal_id: str) -> int:
        return self._anomalies.risk_score(normalize_principal(principal_id))

    def get_anomaly(self, anomaly_id: str) -> Anomaly | None:
        return self._anomalies.get(anomaly_id)

    def get_baseline(self, principal_id: str) -> BehaviorBaseline | None:
        return self._baselines.get(normalize_principal(principal_id))

    def anomaly_summary(self) -> dict[str, dict[str, int]]:
        return self._anomalies.summary()

    def history_size(self) -> int:
        return len(self._history)
