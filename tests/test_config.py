"""Tests for physics_tracker.config module."""

import pytest
from physics_tracker.config import (
    TrackerConfig,
    TrajectoryConfig,
    AnalysisConfig,
    get_preset_config,
)


class TestTrackerConfig:
    """Test estimator constants."""

    def test_default_values(self):
        """Default constants should match the tuned values."""
        config = TrackerConfig()
        assert config.period == 0.125
        assert config.steps == 4
        assert config.new_sample_weight == 2.0
        assert config.min_offset == 0.001
        assert config.min_angle == 0.5

    def test_derived_values(self):
        """Derived periods and weights should follow from the constants."""
        config = TrackerConfig()
        assert config.sample_period == pytest.approx(0.03125)
        assert config.additive_weight == pytest.approx(1.0)
        assert config.predicted_period == pytest.approx(0.15625)
        assert config.sample_length == 5

    def test_no_prediction(self):
        """A newest-sample weight of 1.0 should not stretch the period."""
        config = TrackerConfig(new_sample_weight=1.0)
        assert config.predicted_period == pytest.approx(config.period)

    def test_validate_accepts_defaults(self):
        """Default config should validate."""
        TrackerConfig().validate()

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"period": 0.0},
            {"period": -1.0},
            {"steps": 1},
            {"new_sample_weight": 0.5},
            {"min_offset": -0.1},
            {"min_angle": -1.0},
        ],
    )
    def test_validate_rejects(self, kwargs):
        """Invalid constants should raise ValueError."""
        with pytest.raises(ValueError):
            TrackerConfig(**kwargs).validate()


class TestTrajectoryConfig:
    """Test trajectory configuration."""

    def test_default_config(self):
        """Default trajectory should be a clean 1s capture at 90 fps."""
        config = TrajectoryConfig()
        assert config.fps == 90.0
        assert config.duration == 1.0
        assert config.jitter == 0.0
        assert config.frame_jitter == 0.0


class TestPresets:
    """Test configuration presets."""

    def test_default_preset(self):
        """Default preset should use standard values."""
        config = get_preset_config("default")
        assert isinstance(config, AnalysisConfig)
        assert config.tracker.period == 0.125
        assert config.tracker.steps == 4
        assert config.verbose

    def test_responsive_preset(self):
        """Responsive preset should shorten the window."""
        config = get_preset_config("responsive")
        assert config.tracker.period == 0.0625
        assert config.tracker.steps == 4

    def test_smooth_preset(self):
        """Smooth preset should lengthen the window and keep bucket size."""
        config = get_preset_config("smooth")
        assert config.tracker.period == 0.25
        assert config.tracker.sample_period == pytest.approx(0.03125)

    def test_legacy_preset(self):
        """Legacy preset should disable prediction."""
        config = get_preset_config("legacy")
        assert config.tracker.new_sample_weight == 1.0
        assert config.tracker.additive_weight == 0.0

    def test_unknown_preset_returns_default(self):
        """Unknown preset should return default config."""
        config = get_preset_config("unknown")
        assert config.tracker.period == 0.125

    def test_presets_are_independent(self):
        """Changing one preset instance must not leak into another."""
        first = get_preset_config("default")
        first.tracker.period = 1.0
        assert get_preset_config("default").tracker.period == 0.125
