"""Engine domain — baselines, detectors, scoring and the engine facade."""

from accesswatch.engine.analyzer import AnalysisResult
from accesswatch.engine.analyzer import AnomalyEngine
from accesswatch.engine.analyzer import normalize_principal
from accesswatch.engine.analyzer import UNKNOWN_PRINCIPAL
from accesswatch.engine.baseline import BaselineManager
from accesswatch.engine.baseline import BehaviorBaseline
from accesswatch.engine.detectors import BehaviorDetector
from accesswatch.engine.detectors import PolicyUsageDetector
from accesswatch.engine.detectors import RiskPatternDetector
from accesswatch.engine.scoring import composite_score

__all__ = [
    "AnalysisResult",
    "AnomalyEngine",
    "BaselineManager",
    "BehaviorBaseline",
    "BehaviorDetector",
    "PolicyUsageDetector",
    "RiskPatternDetector",
    "UNKNOWN_PRINCIPAL",
    "composite_score",
    "normalize_principal",
]
