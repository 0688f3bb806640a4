"""Scripted pose sequences for exercising the motion estimator."""

from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np
from scipy.spatial.transform import Rotation

from .config import TrajectoryConfig


@dataclass
class PoseSequence:
    """A sequence of timestamped poses."""

    # Seconds, (N,)
    timestamps: np.ndarray

    # (N, 3)
    positions: np.ndarray

    # Rotation stack of length N
    rotations: Rotation

    name: str = "sequence"

    # Ground truth, when the motion is known analytically: (N, 3)
    true_velocity: Optional[np.ndarray] = None
    true_angular_velocity: Optional[np.ndarray] = None  # rad/s

    @property
    def n_frames(self) -> int:
        """Number of poses in the sequence."""
        return len(self.timestamps)

    @property
    def time_slices(self) -> np.ndarray:
        """Time elapsed before each frame (0 for the first)."""
        return np.diff(self.timestamps, prepend=self.timestamps[0])


def make_timestamps(config: TrajectoryConfig) -> np.ndarray:
    """
    Build frame timestamps at ``config.fps``.

    With ``frame_jitter`` > 0 each frame time is perturbed by up to that
    fraction of the nominal frame time, reproducibly from ``config.seed``.
    """
    n_frames = int(round(config.duration * config.fps)) + 1
    frame_time = 1.0 / config.fps
    slices = np.full(n_frames - 1, frame_time)

    if config.frame_jitter > 0:
        rng = np.random.default_rng(config.seed)
        slices *= 1.0 + config.frame_jitter * rng.uniform(-1.0, 1.0, n_frames - 1)

    return np.concatenate([[0.0], np.cumsum(slices)])


def generate_stationary(config: TrajectoryConfig) -> PoseSequence:
    """Object held perfectly still."""
    t = make_timestamps(config)
    n = len(t)
    return PoseSequence(
        timestamps=t,
        positions=np.zeros((n, 3)),
        rotations=Rotation.identity(n),
        name="stationary",
        true_velocity=np.zeros((n, 3)),
        true_angular_velocity=np.zeros((n, 3)),
    )


def generate_linear(
    config: TrajectoryConfig,
    velocity: tuple[float, float, float] = (1.0, 0.0, 0.0),
) -> PoseSequence:
    """Constant velocity along a straight line from the origin."""
    t = make_timestamps(config)
    v = np.asarray(velocity, dtype=float)
    n = len(t)
    return PoseSequence(
        timestamps=t,
        positions=t[:, None] * v,
        rotations=Rotation.identity(n),
        name="linear",
        true_velocity=np.tile(v, (n, 1)),
        true_angular_velocity=np.zeros((n, 3)),
    )


def generate_circle(
    config: TrajectoryConfig,
    radius: float = 0.5,
    rate: float = 2.0 * np.pi,
) -> PoseSequence:
    """
    Constant speed around a circle in the XY plane.

    The object yaws with its heading, so it also spins about Z at ``rate``
    (rad/s).
    """
    t = make_timestamps(config)
    theta = rate * t
    positions = np.column_stack([
        radius * np.cos(theta),
        radius * np.sin(theta),
        np.zeros_like(t),
    ])
    velocity = np.column_stack([
        -radius * rate * np.sin(theta),
        radius * rate * np.cos(theta),
        np.zeros_like(t),
    ])
    rotvecs = np.column_stack([np.zeros_like(t), np.zeros_like(t), theta])
    angular = np.tile([0.0, 0.0, rate], (len(t), 1))
    return PoseSequence(
        timestamps=t,
        positions=positions,
        rotations=Rotation.from_rotvec(rotvecs),
        name="circle",
        true_velocity=velocity,
        true_angular_velocity=angular,
    )


def generate_spin(
    config: TrajectoryConfig,
    angular_velocity: tuple[float, float, float] = (0.0, 0.0, 2.0),
) -> PoseSequence:
    """Object rotating in place at a constant angular velocity (rad/s)."""
    t = make_timestamps(config)
    w = np.asarray(angular_velocity, dtype=float)
    n = len(t)
    return PoseSequence(
        timestamps=t,
        positions=np.zeros((n, 3)),
        rotations=Rotation.from_rotvec(t[:, None] * w),
        name="spin",
        true_velocity=np.zeros((n, 3)),
        true_angular_velocity=np.tile(w, (n, 1)),
    )


def generate_jitter_line(
    config: TrajectoryConfig,
    velocity: tuple[float, float, float] = (1.0, 0.0, 0.0),
) -> PoseSequence:
    """
    Straight-line motion with alternating perpendicular jitter.

    Every other frame is pushed ``config.jitter`` metres to either side of
    the line, the worst case for naive frame-to-frame differencing.
    """
    sequence = generate_linear(config, velocity)
    v = np.asarray(velocity, dtype=float)

    # Any axis not parallel to the motion gives a perpendicular
    helper = np.array([0.0, 0.0, 1.0]) if abs(v[2]) < abs(v).max() else np.array([1.0, 0.0, 0.0])
    side = np.cross(helper, v)
    side /= np.linalg.norm(side)

    signs = np.where(np.arange(sequence.n_frames) % 2 == 0, 1.0, -1.0)
    sequence.positions = sequence.positions + signs[:, None] * config.jitter * side
    sequence.name = "jitter_line"
    return sequence


def generate_toss(
    config: TrajectoryConfig,
    acceleration: tuple[float, float, float] = (6.0, 0.0, 8.0),
    angular_acceleration: tuple[float, float, float] = (10.0, 0.0, 0.0),
) -> PoseSequence:
    """
    Hand winding up a throw from rest.

    Linear and angular velocity both grow at a constant rate, so the
    velocity at any frame is the release velocity if the object is let go
    there.
    """
    t = make_timestamps(config)
    a = np.asarray(acceleration, dtype=float)
    alpha = np.asarray(angular_acceleration, dtype=float)
    return PoseSequence(
        timestamps=t,
        positions=0.5 * (t ** 2)[:, None] * a,
        rotations=Rotation.from_rotvec(0.5 * (t ** 2)[:, None] * alpha),
        name="toss",
        true_velocity=t[:, None] * a,
        true_angular_velocity=t[:, None] * alpha,
    )


TRAJECTORY_GENERATORS: dict[str, Callable[[TrajectoryConfig], PoseSequence]] = {
    "stationary": generate_stationary,
    "linear": generate_linear,
    "circle": generate_circle,
    "spin": generate_spin,
    "jitter_line": generate_jitter_line,
    "toss": generate_toss,
}


def get_trajectory(name: str, config: Optional[TrajectoryConfig] = None) -> PoseSequence:
    """Generate a registered trajectory by name."""
    if name not in TRAJECTORY_GENERATORS:
        raise KeyError(
            f"Unknown trajectory '{name}', choose from {sorted(TRAJECTORY_GENERATORS)}"
        )
    return TRAJECTORY_GENERATORS[name](config or TrajectoryConfig())
