"""In-memory anomaly store.

An append-only audit log of every anomaly the engine has fired.  Nothing is
ever removed: callers are expected to archive externally (see
``accesswatch.audit.AnomalyArchive``) if they need to bound memory.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from collections.abc import Callable
from collections.abc import Iterable
from datetime import datetime
from datetime import UTC
from threading import Lock

from accesswatch.anomalies.schemas import Anomaly

logger = logging.getLogger(__name__)


def _newest_first(anomalies: list[Anomaly]) -> list[Anomaly]:
    # Input is in insertion order; reversing first makes the stable sort
    # place later insertions ahead of earlier ones on equal timestamps.
    return sorted(reversed(anomalies), key=lambda a: a.detected_at, reverse=True)


def _truncate(anomalies: list[Anomaly], limit: int | None) -> list[Anomaly]:
    if limit is None:
        return anomalies
    return anomalies[: max(limit, 0)]


def _detached(anomalies: list[Anomaly]) -> list[Anomaly]:
    return [a.model_copy(deep=True) for a in anomalies]


class AnomalyStore:
    """Thread-safe, unbounded anomaly log with resolve support.

    Records are copied on the way in and on the way out, so callers never
    hold a reference into the log.
    """

    def __init__(self, *, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(tz=UTC))
        self._lock = Lock()
        self._order: list[str] = []
        self._by_id: dict[str, Anomaly] = {}
        self._by_principal: dict[str, list[str]] = {}

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def append(self, anomalies: Iterable[Anomaly]) -> None:
        """Add *anomalies* to the log, preserving their order."""
        with self._lock:
            for anomaly in anomalies:
                if anomaly.id in self._by_id:
                    raise ValueError(f"Duplicate anomaly id: {anomaly.id}")
                self._by_id[anomaly.id] = anomaly.model_copy(deep=True)
                self._order.append(anomaly.id)
                self._by_principal.setdefault(anomaly.principal_id, []).append(
                    anomaly.id
                )

    def resolve(self, anomaly_id: str) -> bool:
        """Mark an anomaly resolved.

        Returns ``False`` when the id is unknown or the anomaly was already
        resolved, so repeated calls are harmless.
        """
        with self._lock:
            anomaly = self._by_id.get(anomaly_id)
            if anomaly is None or anomaly.resolved:
                return False
            self._by_id[anomaly_id] = anomaly.model_copy(
                update={"resolved_at": self._clock()}
            )
        logger.info("Resolved anomaly %s", anomaly_id)
        return True

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, anomaly_id: str) -> Anomaly | None:
        with self._lock:
            anomaly = self._by_id.get(anomaly_id)
        return anomaly.model_copy(deep=True) if anomaly is not None else None

    def for_principal(
        self, principal_id: str, limit: int | None = 50
    ) -> list[Anomaly]:
        """Return the principal's anomalies (resolved or not), newest first."""
        with self._lock:
            ids = self._by_principal.get(principal_id, [])
            owned = [self._by_id[anomaly_id] for anomaly_id in ids]
        return _detached(_truncate(_newest_first(owned), limit))

    def recent(self, limit: int | None = 100) -> list[Anomaly]:
        """Return unresolved anomalies across all principals, newest first."""
        with self._lock:
            open_ = [
                self._by_id[anomaly_id]
                for anomaly_id in self._order
                if not self._by_id[anomaly_id].resolved
            ]
        return _detached(_truncate(_newest_first(open_), limit))

    def risk_score(self, principal_id: str) -> int:
        """Average risk of the principal's unresolved anomalies, 0..100."""
        with self._lock:
            scores = [
                self._by_id[anomaly_id].risk_score
                for anomaly_id in self._by_principal.get(principal_id, [])
                if not self._by_id[anomaly_id].resolved
            ]
        if not scores:
            return 0
        # Round half up rather than Python's round-half-even.
        average = sum(scores) / len(scores)
        return min(int(math.floor(average + 0.5)), 100)

    def summary(self) -> dict[str, dict[str, int]]:
        """Count unresolved anomalies by type and by severity."""
        with self._lock:
            open_ = [a for a in self._by_id.values() if not a.resolved]
        return {
            "by_type": dict(Counter(a.type.value for a in open_)),
            "by_severity": dict(Counter(a.severity.value for a in open_)),
        }

    def __len__(self) -> int:
        with self._lock:
            return len(self._order)
