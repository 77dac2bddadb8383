"""Bounded in-memory decision history.

All principals share one FIFO buffer.  A per-principal index mirrors the
buffer so principal-scoped reads never scan the global history; since
eviction is strictly global-oldest-first, the evicted event is always the
oldest entry of its principal's index as well.
"""

from __future__ import annotations

from collections import deque
from datetime import datetime
from itertools import islice
from threading import Lock

from accesswatch.history.schemas import DecisionEvent


class DecisionHistory:
    """Shared, bounded, FIFO-evicted decision history."""

    def __init__(self, capacity: int = 10_000) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._capacity = capacity
        self._lock = Lock()
        self._events: deque[DecisionEvent] = deque()
        self._by_principal: dict[str, deque[DecisionEvent]] = {}

    @property
    def capacity(self) -> int:
        return self._capacity

    # -- write --

    def record(self, event: DecisionEvent) -> None:
        """Append *event*, evicting the globally oldest entry when full."""
        with self._lock:
            self._events.append(event)
            self._by_principal.setdefault(event.principal_id, deque()).append(event)
            while len(self._events) > self._capacity:
                evicted = self._events.popleft()
                owned = self._by_principal[evicted.principal_id]
                owned.popleft()
                if not owned:
                    del self._by_principal[evicted.principal_id]

    # -- read --

    def for_principal(
        self, principal_id: str, limit: int | None = None
    ) -> list[DecisionEvent]:
        """Return the principal's last *limit* events, oldest first."""
        with self._lock:
            owned = self._by_principal.get(principal_id)
            if not owned:
                return []
            if limit is None or limit >= len(owned):
                return list(owned)
            if limit <= 0:
                return []
            tail = list(islice(reversed(owned), limit))
        tail.reverse()
        return tail

    def count_since(self, principal_id: str, since: datetime) -> int:
        """Count the principal's events strictly newer than *since*."""
        with self._lock:
            owned = self._by_principal.get(principal_id)
            if not owned:
                return 0
            return sum(1 for event in owned if event.timestamp > since)

    def snapshot(self) -> list[DecisionEvent]:
        """Return a copy of the whole history, oldest first."""
        with self._lock:
            return list(self._events)

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
