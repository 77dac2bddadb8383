"""Decision history data models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel
from pydantic import Field


class Decision(str, Enum):
    """Verdict rendered by the authorization engine."""

    ALLOW = "ALLOW"
    DENY = "DENY"


class DecisionEvent(BaseModel):
    """One observed access-control decision."""

    model_config = {"frozen": True}

    principal_id: str = Field(
        description="Identity whose access request was evaluated.",
    )
    resource: str = Field(
        description="Resource the principal tried to access.",
    )
    action: str = Field(
        description="Action attempted on the resource.",
    )
    decision: Decision = Field(
        description="ALLOW or DENY verdict.",
    )
    timestamp: datetime = Field(
        description="When the decision was rendered.",
    )
