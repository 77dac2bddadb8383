"""Per-principal behavioral baselines.

A baseline is relearned from the principal's recent history on every
decision: a smoothed hourly decision rate plus the most frequent resources,
actions and hours-of-day over the last ``baseline_window`` events.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from datetime import datetime
from datetime import timedelta
from threading import Lock

from pydantic import BaseModel

from accesswatch.config import DetectionConfig
from accesswatch.history import DecisionHistory

# Weight given to the previous average when blending in the instant rate.
_SMOOTHING = 0.5


class BehaviorBaseline(BaseModel):
    """Learned "normal" activity profile for one principal."""

    model_config = {"frozen": True}

    principal_id: str
    average_decisions_per_hour: float = 0.0
    common_resources: tuple[str, ...] = ()
    common_actions: tuple[str, ...] = ()
    typical_hours: tuple[int, ...] = ()
    sample_size: int = 0
    last_updated: datetime


def _top_values(values: Iterable, n: int) -> tuple:
    """Most frequent values, ties kept in first-seen order."""
    # Counter preserves insertion order and most_common() sorts stably.
    return tuple(value for value, _ in Counter(values).most_common(n))


class BaselineManager:
    """Owns one ``BehaviorBaseline`` per observed principal."""

    def __init__(
        self,
        history: DecisionHistory,
        config: DetectionConfig | None = None,
    ) -> None:
        self._history = history
        self._config = config or DetectionConfig()
        self._baselines: dict[str, BehaviorBaseline] = {}
        self._registry_lock = Lock()
        self._locks: dict[str, Lock] = {}

    def lock_for(self, principal_id: str) -> Lock:
        """Return the mutual-exclusion lock that guards *principal_id*."""
        with self._registry_lock:
            lock = self._locks.get(principal_id)
            if lock is None:
                lock = self._locks[principal_id] = Lock()
            return lock

    def get(self, principal_id: str) -> BehaviorBaseline | None:
        """Return the principal's baseline, or ``None`` if never observed."""
        return self._baselines.get(principal_id)

    def principals(self) -> list[str]:
        return list(self._baselines)

    def update(self, principal_id: str, timestamp: datetime) -> BehaviorBaseline:
        """Relearn the principal's baseline after a new decision.

        The decision must already be recorded in the history, and the caller
        must hold ``lock_for(principal_id)``.
        """
        cfg = self._config
        previous = self._baselines.get(principal_id)
        previous_average = previous.average_decisions_per_hour if previous else 0.0

        since = timestamp - timedelta(seconds=cfg.rate_window_seconds)
        instant_rate = self._history.count_since(principal_id, since)
        average = previous_average * _SMOOTHING + instant_rate * (1 - _SMOOTHING)

        window = self._history.for_principal(principal_id, cfg.baseline_window)
        baseline = BehaviorBaseline(
            principal_id=principal_id,
            average_decisions_per_hour=average,
            common_resources=_top_values((e.resource for e in window), cfg.top_n_values),
            common_actions=_top_values((e.action for e in window), cfg.top_n_values),
            typical_hours=_top_values((e.timestamp.hour for e in window), cfg.top_n_hours),
            sample_size=len(window),
            last_updated=timestamp,
        )
        self._baselines[principal_id] = baseline
        return baseline
