"""History domain — bounded record of observed decisions."""

from accesswatch.history.schemas import Decision
from accesswatch.history.schemas import DecisionEvent
from accesswatch.history.store import DecisionHistory

__all__ = [
    "Decision",
    "DecisionEvent",
    "DecisionHistory",
]
