"""Anomaly domain — records and their resolve lifecycle."""

from accesswatch.anomalies.schemas import Anomaly
from accesswatch.anomalies.schemas import AnomalyType
from accesswatch.anomalies.schemas import Severity
from accesswatch.anomalies.store import AnomalyStore

__all__ = [
    "Anomaly",
    "AnomalyStore",
    "AnomalyType",
    "Severity",
]
