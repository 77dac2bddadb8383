"""Models domain — MCP tool input/output contracts."""

from accesswatch.models.schemas import AnalyzeDecisionInput
from accesswatch.models.schemas import AnalyzeDecisionResult
from accesswatch.models.schemas import AnomalyListResult
from accesswatch.models.schemas import GetAnomaliesInput
from accesswatch.models.schemas import GetRecentAnomaliesInput
from accesswatch.models.schemas import ResolveAnomalyResult
from accesswatch.models.schemas import RiskScoreResult

__all__ = [
    "AnalyzeDecisionInput",
    "AnalyzeDecisionResult",
    "AnomalyListResult",
    "GetAnomaliesInput",
    "GetRecentAnomaliesInput",
    "ResolveAnomalyResult",
    "RiskScoreResult",
]
