"""In-process observability for the detection engine.

Each engine owns an ``EngineMetrics`` instance: per-operation latency
aggregates plus a counter of fired anomalies per type.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from threading import Lock

logger = logging.getLogger(__name__)


@dataclass
class LatencySummary:
    """Aggregated latency metrics for one operation."""

    count: int = 0
    error_count: int = 0
    total_ms: float = 0.0
    min_ms: float = 0.0
    max_ms: float = 0.0
    last_ms: float = 0.0

    def add(self, duration_ms: float, ok: bool) -> None:
        self.count += 1
        if not ok:
            self.error_count += 1
        self.total_ms += duration_ms
        self.last_ms = duration_ms
        if self.count == 1:
            self.min_ms = self.max_ms = duration_ms
        else:
            self.min_ms = min(self.min_ms, duration_ms)
            self.max_ms = max(self.max_ms, duration_ms)

    def as_dict(self) -> dict[str, float | int]:
        return {
            "count": self.count,
            "error_count": self.error_count,
            "total_ms": round(self.total_ms, 3),
            "avg_ms": round(self.total_ms / self.count if self.count else 0.0, 3),
            "min_ms": round(self.min_ms, 3),
            "max_ms": round(self.max_ms, 3),
            "last_ms": round(self.last_ms, 3),
        }


class EngineMetrics:
    """Thread-safe latency and anomaly counters."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._latency: dict[str, LatencySummary] = {}
        self._anomalies: Counter[str] = Counter()

    def record_latency(self, *, operation: str, duration_ms: float, ok: bool = True) -> None:
        """Record one latency sample."""
        normalized = max(float(duration_ms), 0.0)
        with self._lock:
            self._latency.setdefault(operation, LatencySummary()).add(normalized, ok)
        logger.debug(
            "latency operation=%s duration_ms=%.3f ok=%s",
            operation,
            normalized,
            ok,
        )

    def count_anomaly(self, anomaly_type: str) -> None:
        with self._lock:
            self._anomalies[anomaly_type] += 1

    def snapshot(self) -> dict[str, dict]:
        """Return current latency aggregates and anomaly counts."""
        with self._lock:
            return {
                "latency": {
                    operation: summary.as_dict()
                    for operation, summary in sorted(self._latency.items())
                },
                "anomalies": dict(sorted(self._anomalies.items())),
            }

    def reset(self) -> None:
        with self._lock:
            self._latency.clear()
            self._anomalies.clear()
