"""Pydantic models for the MCP interface.

Input models validate tool arguments; output models shape responses.
FastMCP v2 serializes Pydantic models automatically.
"""

from __future__ import annotations

from typing import Any
from typing import Literal

from pydantic import BaseModel
from pydantic import Field

from accesswatch.anomalies import Anomaly
from accesswatch.history import Decision

# ---------------------------------------------------------------------------
# Input models
# ---------------------------------------------------------------------------


class AnalyzeDecisionInput(BaseModel):
    """Input for analyze_decision tool."""

    principal_id: str = Field(
        description="Identity whose request was evaluated.",
    )
    resource: str = Field(
        min_length=1,
        description="Resource the principal tried to access.",
    )
    action: str = Field(
        min_length=1,
        description="Action attempted on the resource.",
    )
    decision: Decision = Field(
        description="ALLOW or DENY.",
    )
    context: dict[str, Any] | None = Field(
        default=None,
        description="Optional request context, copied into anomaly metadata.",
    )


class GetAnomaliesInput(BaseModel):
    """Input for get_anomalies tool."""

    principal_id: str = Field(
        description="Principal whose anomalies to list.",
    )
    limit: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Maximum anomalies returned.",
    )


class GetRecentAnomaliesInput(BaseModel):
    """Input for get_recent_anomalies tool."""

    limit: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Maximum anomalies returned.",
    )


# ---------------------------------------------------------------------------
# Output models
# ---------------------------------------------------------------------------


class AnalyzeDecisionResult(BaseModel):
    """Output of analyze_decision tool."""

    status: Literal["ok", "error"] = "ok"
    error_code: str | None = None
    message: str | None = None
    detected: bool = False
    risk_score: int = 0
    anomalies: list[Anomaly] = Field(default_factory=list)


class AnomalyListResult(BaseModel):
    """Output of get_anomalies and get_recent_anomalies tools."""

    status: Literal["ok", "error"] = "ok"
    error_code: str | None = None
    message: str | None = None
    anomalies: list[Anomaly] = Field(default_factory=list)
    returned: int = 0


class ResolveAnomalyResult(BaseModel):
    """Output of resolve_anomaly tool."""

    anomaly_id: str
    status: Literal["resolved", "not_found", "error"]
    error_code: str | None = None
    message: str | None = None


class RiskScoreResult(BaseModel):
    """Output of get_risk_score tool."""

    principal_id: str
    status: Literal["ok", "error"] = "ok"
    error_code: str | None = None
    message: str | None = None
    risk_score: int = 0
