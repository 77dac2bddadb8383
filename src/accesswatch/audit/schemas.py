"""Archive record models."""

from __future__ import annotations

import time

from pydantic import BaseModel
from pydantic import Field

from accesswatch.anomalies import Anomaly


class ArchiveRecord(BaseModel):
    """One archived anomaly, as written to the JSONL file."""

    model_config = {"frozen": True}

    archived_at: float = Field(
        default_factory=time.time,
        description="Unix epoch when the anomaly was queued for archiving.",
    )
    anomaly: Anomaly = Field(
        description="Snapshot of the anomaly at archive time.",
    )
