"""
Batch tracking pipeline.

Runs the motion estimator over a whole pose sequence and compares the
result against naive frame-to-frame differencing and, where known, the
true motion.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .config import TrackerConfig
from .estimator import MotionEstimator
from .trajectories import PoseSequence


@dataclass
class TrackingResult:
    """Per-frame estimator outputs for a sequence."""

    timestamps: np.ndarray  # (N,)

    # Linear
    speed: np.ndarray  # (N,)
    direction: np.ndarray  # (N, 3)
    velocity: np.ndarray  # (N, 3)
    acceleration: np.ndarray  # (N, 3)

    # Angular (speed in deg/s, vectors in rad/s)
    angular_speed: np.ndarray  # (N,)
    angular_axis: np.ndarray  # (N, 3)
    angular_velocity: np.ndarray  # (N, 3)
    angular_acceleration: np.ndarray  # (N, 3)

    @property
    def n_frames(self) -> int:
        return len(self.timestamps)


@dataclass
class TossResult:
    """Velocities handed to physics when an object is released."""

    release_index: int
    release_time: float

    # Smoothed, predictive estimate
    velocity: np.ndarray
    angular_velocity: np.ndarray

    # Last-frame differencing, for comparison
    naive_velocity: np.ndarray

    # Analytic motion at release, when known
    true_velocity: Optional[np.ndarray] = None
    true_angular_velocity: Optional[np.ndarray] = None


def track_sequence(
    sequence: PoseSequence,
    config: Optional[TrackerConfig] = None,
    initial_velocity: Optional[np.ndarray] = None,
    initial_angular_velocity: Optional[np.ndarray] = None,
) -> TrackingResult:
    """
    Run a fresh estimator over every pose of a sequence.

    The estimator is reset at the first pose (optionally with a known
    starting velocity) and updated with each later frame.

    Args:
        sequence: Poses to track
        config: Estimator constants (optional)
        initial_velocity: Velocity to seed the estimator with
        initial_angular_velocity: Angular velocity (rad/s) to seed with

    Returns:
        TrackingResult with one row per frame
    """
    estimator = MotionEstimator(config)
    n_frames = sequence.n_frames

    speed = np.zeros(n_frames)
    angular_speed = np.zeros(n_frames)
    direction = np.zeros((n_frames, 3))
    velocity = np.zeros((n_frames, 3))
    acceleration = np.zeros((n_frames, 3))
    angular_axis = np.zeros((n_frames, 3))
    angular_velocity = np.zeros((n_frames, 3))
    angular_acceleration = np.zeros((n_frames, 3))

    time_slices = sequence.time_slices

    for i in range(n_frames):
        if i == 0:
            estimator.reset(
                sequence.positions[0],
                sequence.rotations[0],
                initial_velocity,
                initial_angular_velocity,
            )
        else:
            estimator.update(sequence.positions[i], sequence.rotations[i], time_slices[i])

        speed[i] = estimator.speed
        direction[i] = estimator.direction
        velocity[i] = estimator.velocity
        acceleration[i] = estimator.acceleration
        angular_speed[i] = estimator.angular_speed
        angular_axis[i] = estimator.angular_axis
        angular_velocity[i] = estimator.angular_velocity
        angular_acceleration[i] = estimator.angular_acceleration

    return TrackingResult(
        timestamps=sequence.timestamps.copy(),
        speed=speed,
        direction=direction,
        velocity=velocity,
        acceleration=acceleration,
        angular_speed=angular_speed,
        angular_axis=angular_axis,
        angular_velocity=angular_velocity,
        angular_acceleration=angular_acceleration,
    )


def finite_difference_velocity(positions: np.ndarray, timestamps: np.ndarray) -> np.ndarray:
    """
    Naive frame-to-frame velocity (backward differences).

    Args:
        positions: (N, 3) positions
        timestamps: (N,) times in seconds

    Returns:
        (N, 3) velocity; zero for the first frame and wherever the
        time step is not positive
    """
    velocity = np.zeros_like(positions, dtype=float)
    dt = np.diff(timestamps)
    valid = dt > 0
    steps = np.diff(positions, axis=0)
    velocity[1:][valid] = steps[valid] / dt[valid][:, None]
    return velocity


def direction_error_deg(directions: np.ndarray, reference: np.ndarray) -> np.ndarray:
    """
    Angle between corresponding direction vectors, in degrees.

    Inputs need not be normalized. Rows where either vector is zero
    give NaN.
    """
    a_len = np.linalg.norm(directions, axis=1)
    b_len = np.linalg.norm(reference, axis=1)
    valid = (a_len > 0) & (b_len > 0)

    error = np.full(len(directions), np.nan)
    cosine = np.einsum("ij,ij->i", directions[valid], reference[valid])
    cosine /= a_len[valid] * b_len[valid]
    error[valid] = np.degrees(np.arccos(np.clip(cosine, -1.0, 1.0)))
    return error


def compute_metrics(
    result: TrackingResult,
    sequence: PoseSequence,
    settle_time: Optional[float] = None,
) -> dict[str, float]:
    """
    Compute quality metrics for a tracked sequence.

    Frames before ``settle_time`` (default: one averaging window) are
    excluded so the start-up transient does not dominate.

    Args:
        result: Estimator outputs
        sequence: The tracked poses
        settle_time: Seconds to skip at the start

    Returns:
        Dictionary of metrics (NaN where no ground truth exists)
    """
    if settle_time is None:
        settle_time = TrackerConfig().period

    metrics = {}
    settled = result.timestamps >= result.timestamps[0] + settle_time
    metrics["frames"] = int(result.n_frames)
    metrics["settled_frames"] = int(settled.sum())

    naive = finite_difference_velocity(sequence.positions, sequence.timestamps)

    if sequence.true_velocity is None or not np.any(settled):
        metrics["velocity_rmse"] = float("nan")
        metrics["naive_velocity_rmse"] = float("nan")
        metrics["direction_error_mean_deg"] = float("nan")
        metrics["direction_error_max_deg"] = float("nan")
        metrics["naive_direction_error_mean_deg"] = float("nan")
        metrics["naive_direction_error_max_deg"] = float("nan")
    else:
        truth = sequence.true_velocity[settled]
        diff = result.velocity[settled] - truth
        metrics["velocity_rmse"] = float(np.sqrt(np.mean(np.sum(diff ** 2, axis=1))))
        naive_diff = naive[settled] - truth
        metrics["naive_velocity_rmse"] = float(np.sqrt(np.mean(np.sum(naive_diff ** 2, axis=1))))

        # Direction is only meaningful while the object actually moves
        est_err = direction_error_deg(result.direction[settled], truth)
        naive_err = direction_error_deg(naive[settled], truth)
        metrics["direction_error_mean_deg"] = _nan_stat(np.nanmean, est_err)
        metrics["direction_error_max_deg"] = _nan_stat(np.nanmax, est_err)
        metrics["naive_direction_error_mean_deg"] = _nan_stat(np.nanmean, naive_err)
        metrics["naive_direction_error_max_deg"] = _nan_stat(np.nanmax, naive_err)

    if sequence.true_angular_velocity is None or not np.any(settled):
        metrics["angular_velocity_rmse"] = float("nan")
    else:
        diff = result.angular_velocity[settled] - sequence.true_angular_velocity[settled]
        metrics["angular_velocity_rmse"] = float(np.sqrt(np.mean(np.sum(diff ** 2, axis=1))))

    metrics["final_speed"] = float(result.speed[-1])
    metrics["final_angular_speed_deg"] = float(result.angular_speed[-1])
    return metrics


def _nan_stat(stat, values: np.ndarray) -> float:
    """Apply a nan-aware statistic, giving NaN for an all-NaN input."""
    if np.all(np.isnan(values)):
        return float("nan")
    return float(stat(values))


def simulate_toss(
    sequence: PoseSequence,
    release_index: int,
    config: Optional[TrackerConfig] = None,
    grab_index: int = 0,
) -> TossResult:
    """
    Grab an object, carry it along the sequence, then let go.

    The estimator is reset with zero velocity when the object is grabbed
    and updated every frame until release; its velocity at that moment is
    what a physics system would receive.

    Args:
        sequence: Poses of the hand carrying the object
        release_index: Frame at which the object is let go
        config: Estimator constants (optional)
        grab_index: Frame at which the object is picked up

    Returns:
        TossResult with estimated, naive, and (if known) true velocities
    """
    if not 0 <= grab_index <= release_index < sequence.n_frames:
        raise ValueError(
            f"Need 0 <= grab_index <= release_index < {sequence.n_frames}, "
            f"got grab {grab_index}, release {release_index}"
        )

    estimator = MotionEstimator(config)
    estimator.reset(sequence.positions[grab_index], sequence.rotations[grab_index])

    time_slices = sequence.time_slices
    for i in range(grab_index + 1, release_index + 1):
        estimator.update(sequence.positions[i], sequence.rotations[i], time_slices[i])

    naive = np.zeros(3)
    if release_index > grab_index:
        dt = time_slices[release_index]
        if dt > 0:
            naive = (sequence.positions[release_index] - sequence.positions[release_index - 1]) / dt

    return TossResult(
        release_index=release_index,
        release_time=float(sequence.timestamps[release_index]),
        velocity=estimator.velocity,
        angular_velocity=estimator.angular_velocity,
        naive_velocity=naive,
        true_velocity=(
            None if sequence.true_velocity is None
            else sequence.true_velocity[release_index].copy()
        ),
        true_angular_velocity=(
            None if sequence.true_angular_velocity is None
            else sequence.true_angular_velocity[release_index].copy()
        ),
    )
