"""Anomaly data models."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel
from pydantic import Field


class AnomalyType(str, Enum):
    """Which detector produced the anomaly."""

    POLICY_ANOMALY = "POLICY_ANOMALY"
    BEHAVIOR_ANOMALY = "BEHAVIOR_ANOMALY"
    RISK_ANOMALY = "RISK_ANOMALY"


class Severity(str, Enum):
    """Operator-facing urgency of an anomaly."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class Anomaly(BaseModel):
    """A flagged deviation from baseline or from a risk heuristic.

    Records are frozen.  Resolution produces a copy with ``resolved_at``
    set; the store swaps that copy in place of the original.
    """

    model_config = {"frozen": True}

    id: str = Field(
        default_factory=lambda: f"anomaly_{uuid.uuid4().hex}",
        description="Unique identifier, auto-generated as anomaly_{uuid4_hex}.",
    )
    type: AnomalyType = Field(
        description="Detector category that fired.",
    )
    severity: Severity = Field(
        description="LOW, MEDIUM, HIGH or CRITICAL.",
    )
    principal_id: str = Field(
        description="Principal whose decision triggered the anomaly.",
    )
    resource: str | None = Field(
        default=None,
        description="Resource involved, when the detector is resource-scoped.",
    )
    action: str | None = Field(
        default=None,
        description="Action involved, when the detector is resource-scoped.",
    )
    description: str = Field(
        description="Human-readable explanation.",
    )
    risk_score: int = Field(
        ge=0,
        le=100,
        description="Numeric risk contribution in [0, 100].",
    )
    detected_at: datetime = Field(
        description="Timestamp of the decision that fired the detector.",
    )
    resolved_at: datetime | None = Field(
        default=None,
        description="Set once when an operator resolves the anomaly.",
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Detector measurements and caller-supplied context.",
    )

    @property
    def resolved(self) -> bool:
        return self.resolved_at is not None
