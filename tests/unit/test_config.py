"""Unit tests for configuration dataclasses."""

from dataclasses import FrozenInstanceError

import pytest

from accesswatch.config import ArchiveConfig
from accesswatch.config import DetectionConfig


class TestDetectionConfig:
    def test_defaults(self):
        cfg = DetectionConfig()
        assert cfg.history_capacity == 10_000
        assert cfg.baseline_window == 1000
        assert cfg.top_n_values == 5
        assert cfg.top_n_hours == 8
        assert cfg.rate_window_seconds == 3600.0
        assert cfg.policy_window == 100
        assert cfg.rate_sample_size == 60
        assert cfg.risk_window == 10
        assert cfg.denial_threshold == 5
        assert cfg.skip_policy_on_cold_start is True

    @pytest.mark.parametrize(
        "field", ["history_capacity", "baseline_window", "risk_window", "denial_threshold"]
    )
    def test_rejects_non_positive_sizes(self, field):
        with pytest.raises(ValueError, match=field):
            DetectionConfig(**{field: 0})

    def test_rejects_non_positive_rate_window(self):
        with pytest.raises(ValueError):
            DetectionConfig(rate_window_seconds=0)


class TestArchiveConfig:
    def test_defaults(self):
        cfg = ArchiveConfig()
        assert cfg.file_path == "accesswatch_anomalies.jsonl"
        assert cfg.enabled is True


class TestConfigImmutability:
    def test_detection_config_frozen(self):
        cfg = DetectionConfig()
        with pytest.raises(FrozenInstanceError):
            cfg.history_capacity = 5

    def test_archive_config_frozen(self):
        cfg = ArchiveConfig()
        with pytest.raises(FrozenInstanceError):
            cfg.enabled = False
