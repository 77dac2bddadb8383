"""Application configuration dataclasses.

Frozen dataclasses with sensible defaults for each subsystem.
No env-var loading or YAML parsing — just plain defaults that can
be overridden at construction time.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DetectionConfig:
    """Windows and thresholds used by the anomaly-detection engine."""

    # Global decision history
    history_capacity: int = 10_000
    # Baseline learning
    baseline_window: int = 1000
    top_n_values: int = 5
    top_n_hours: int = 8
    rate_window_seconds: float = 3600.0
    # Detectors
    policy_window: int = 100
    rate_sample_size: int = 60
    risk_window: int = 10
    denial_threshold: int = 5
    skip_policy_on_cold_start: bool = True

    def __post_init__(self) -> None:
        for name in (
            "history_capacity",
            "baseline_window",
            "top_n_values",
            "top_n_hours",
            "policy_window",
            "rate_sample_size",
            "risk_window",
            "denial_threshold",
        ):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1")
        if self.rate_window_seconds <= 0:
            raise ValueError("rate_window_seconds must be > 0")


@dataclass(frozen=True)
class ArchiveConfig:
    """Settings for the JSONL anomaly archive."""

    file_path: str = "accesswatch_anomalies.jsonl"
    enabled: bool = True
