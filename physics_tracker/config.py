"""Configuration for predictive motion tracking."""

from dataclasses import dataclass, field


@dataclass
class TrackerConfig:
    """Constants that shape the motion estimator."""

    # Total averaging window (seconds)
    period: float = 0.125

    # Number of buckets the window is divided into
    steps: int = 4

    # Weight of the newest bucket when recombining (1.0 = no prediction)
    new_sample_weight: float = 2.0

    # Movement needed before the active direction is re-measured (metres)
    # 1mm, as most tracking hardware is sub-millimeter
    min_offset: float = 0.001

    # Rotation needed before the active axis is re-measured (degrees)
    min_angle: float = 0.5

    # Shortest vector that still normalizes to a sensible direction
    min_length: float = 1e-5

    @property
    def sample_period(self) -> float:
        """Time span of a single bucket."""
        return self.period / self.steps

    @property
    def additive_weight(self) -> float:
        """Extra weight the newest bucket receives on top of 1.0."""
        return self.new_sample_weight - 1.0

    @property
    def predicted_period(self) -> float:
        """Window length stretched by the double-counted newest bucket."""
        return self.period + self.sample_period * self.additive_weight

    @property
    def sample_length(self) -> int:
        """Number of buffer slots (one extra for cross-fading)."""
        return self.steps + 1

    def validate(self) -> None:
        """Raise ValueError if the constants cannot drive an estimator."""
        if not self.period > 0:
            raise ValueError(f"period must be positive, got {self.period}")
        if self.steps < 2:
            raise ValueError(f"steps must be at least 2, got {self.steps}")
        if self.new_sample_weight < 1.0:
            raise ValueError(
                f"new_sample_weight must be >= 1.0, got {self.new_sample_weight}"
            )
        for name in ("min_offset", "min_angle", "min_length"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")


@dataclass
class TrajectoryConfig:
    """Configuration for scripted pose sequences."""

    # Frame rate of the simulated tracker
    fps: float = 90.0

    # Sequence length (seconds)
    duration: float = 1.0

    # Perpendicular position noise amplitude (metres)
    jitter: float = 0.0

    # Random variation of frame time, as a fraction of 1/fps
    frame_jitter: float = 0.0

    # Seed for any randomized timing
    seed: int = 0


@dataclass
class AnalysisConfig:
    """Complete configuration for offline tracking analysis."""

    tracker: TrackerConfig = field(default_factory=TrackerConfig)
    trajectory: TrajectoryConfig = field(default_factory=TrajectoryConfig)

    # Verbosity
    verbose: bool = True


# Preset configurations
def get_preset_config(preset: str) -> AnalysisConfig:
    """Get preset configuration."""
    config = AnalysisConfig()

    if preset == "default":
        pass  # Use defaults

    elif preset == "responsive":
        # Half the window: less lag, noisier direction
        config.tracker.period = 0.0625

    elif preset == "smooth":
        # Longer window split finer so the edge cross-fade stays gentle
        config.tracker.period = 0.25
        config.tracker.steps = 8

    elif preset == "legacy":
        # Older weighting: plain windowed average, no prediction
        config.tracker.new_sample_weight = 1.0

    return config
