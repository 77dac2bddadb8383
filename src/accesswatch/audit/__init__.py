"""Audit subsystem — async JSONL anomaly archive."""

from accesswatch.audit.schemas import ArchiveRecord
from accesswatch.audit.store import AnomalyArchive

__all__ = [
    "AnomalyArchive",
    "ArchiveRecord",
]
