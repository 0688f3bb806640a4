"""
Predictive motion estimator.

Turns a stream of discrete poses (position + orientation, arriving at
irregular intervals) into smoothed linear and angular velocity and
acceleration. Motion is accumulated into a ring of time buckets that
together span the averaging window; the newest bucket is over-weighted
so the estimate leads the raw average slightly instead of lagging it.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
from scipy.spatial.transform import Rotation

from .config import TrackerConfig

logger = logging.getLogger(__name__)

# Rotation instance or scalar-last (x, y, z, w) quaternion
RotationLike = Union[Rotation, np.ndarray, list, tuple]

# Relative slack when deciding that a bucket has been filled
_FILL_TOLERANCE = 1e-9


@dataclass
class OffsetSample:
    """Motion accumulated within one bucket."""

    # Magnitude of linear motion (always >= 0)
    distance: float

    # Magnitude of rotation (degrees)
    angle: float

    # Accumulated displacement vector (3,)
    offset: np.ndarray

    # Accumulated rotation axis vector (3,)
    axis_offset: np.ndarray


@dataclass
class SpeedSample:
    """Output magnitudes in effect when a bucket was opened."""

    speed: float
    angular_speed: float


def normalize(vector: np.ndarray, min_length: float = 0.0) -> np.ndarray:
    """
    Scale a vector to unit length.

    Vectors no longer than ``min_length`` (including the zero vector)
    come back as the zero vector rather than NaN.
    """
    vector = np.asarray(vector, dtype=float)
    length = float(np.linalg.norm(vector))
    if not np.isfinite(length) or length <= min_length:
        return np.zeros_like(vector)
    return vector / length


def as_rotation(rotation: RotationLike) -> Rotation:
    """Accept a scipy Rotation or an (x, y, z, w) quaternion."""
    if isinstance(rotation, Rotation):
        return rotation
    return Rotation.from_quat(np.asarray(rotation, dtype=float))


def rotation_angle_axis(rotation: Rotation) -> tuple[float, np.ndarray]:
    """
    Decompose a rotation into (angle in degrees, unit axis).

    The angle lies in [0, 180]. A null rotation has a zero axis.
    """
    rotvec = rotation.as_rotvec()
    radians = float(np.linalg.norm(rotvec))
    if radians == 0.0:
        return 0.0, np.zeros(3)
    return math.degrees(radians), rotvec / radians


def _blend_towards(active: np.ndarray, previous: np.ndarray) -> np.ndarray:
    """Lerp from ``active`` to ``previous`` by how much they agree."""
    agreement = float(np.dot(previous, active))
    if agreement < 0.0:
        agreement = -agreement
        previous = -previous
    return normalize(active + (previous - active) * agreement)


def _row_alignment(vectors: np.ndarray, anchor: np.ndarray) -> np.ndarray:
    """Dot product of each row's direction against an anchor direction."""
    lengths = np.linalg.norm(vectors, axis=1, keepdims=True)
    units = np.divide(
        vectors, lengths, out=np.zeros_like(vectors), where=lengths > 0.0
    )
    return units @ anchor


class MotionEstimator:
    """
    Smoothed, predictive velocity estimator for one tracked entity.

    Usage:
        estimator = MotionEstimator()
        estimator.reset(position, rotation)              # e.g. on grab
        estimator.update(position, rotation, dt)         # every tick
        thrown.velocity = estimator.velocity             # e.g. on release

    The averaging window (``config.period``) is split into ``config.steps``
    buckets, plus one extra slot so the oldest bucket can fade out while
    the newest one fills. Buckets live in numpy arrays indexed through a
    head pointer; logical slot 0 is the newest (open) bucket.
    """

    def __init__(self, config: Optional[TrackerConfig] = None):
        self.config = config if config is not None else TrackerConfig()
        self.config.validate()

        n = self.config.sample_length
        self._distance = np.zeros(n)
        self._angle = np.zeros(n)
        self._offset = np.zeros((n, 3))
        self._axis_offset = np.zeros((n, 3))
        self._speed_history = np.zeros(n)
        self._angular_speed_history = np.zeros(n)

        self._head = 0
        self._sample_time = 0.0
        self._initialized = False

        # Previous-call history for measuring offsets
        self._last_position = np.zeros(3)
        self._last_rotation = Rotation.identity()

        # Anchors that only advance once motion is large enough to trust
        self._last_direction_position = np.zeros(3)
        self._last_axis_rotation = Rotation.identity()

        # Output data
        self._speed = 0.0
        self._direction = np.zeros(3)
        self._velocity = np.zeros(3)
        self._acceleration_strength = 0.0
        self._acceleration = np.zeros(3)

        self._angular_speed = 0.0
        self._angular_axis = np.zeros(3)
        self._angular_velocity = np.zeros(3)
        self._angular_acceleration_strength = 0.0
        self._angular_acceleration = np.zeros(3)

    # ------------------------------------------------------------------
    # Buffer helpers
    # ------------------------------------------------------------------

    def _slot_order(self) -> np.ndarray:
        """Physical indices of the buckets, newest first."""
        n = self.config.sample_length
        return (self._head + np.arange(n)) % n

    def _open_bucket(self) -> None:
        """Hand off the newest bucket and open an empty one in its place."""
        n = self.config.sample_length
        self._head = (self._head - 1) % n
        self._distance[self._head] = 0.0
        self._angle[self._head] = 0.0
        self._offset[self._head] = 0.0
        self._axis_offset[self._head] = 0.0
        self._speed_history[self._head] = self._speed
        self._angular_speed_history[self._head] = self._angular_speed
        self._sample_time = 0.0

    def _add_to_newest(
        self,
        distance: float,
        angle: float,
        offset: np.ndarray,
        axis_offset: np.ndarray,
    ) -> None:
        head = self._head
        self._distance[head] += distance
        self._angle[head] += angle
        self._offset[head] += offset

        # The axis can flip sign between calls; always add along the
        # axis the bucket has already gathered so it never cancels out
        if np.dot(axis_offset, self._axis_offset[head]) < 0.0:
            self._axis_offset[head] -= axis_offset
        else:
            self._axis_offset[head] += axis_offset

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def reset(
        self,
        position: np.ndarray,
        rotation: RotationLike,
        velocity: Optional[np.ndarray] = None,
        angular_velocity: Optional[np.ndarray] = None,
    ) -> None:
        """
        Seed the estimator with a known pose and constant motion.

        Every bucket except the newest is filled as if the entity had been
        moving at ``velocity`` / ``angular_velocity`` (rad/s) for a whole
        window, so the first updates do not see an empty history.

        Args:
            position: Current position (3,)
            rotation: Current orientation
            velocity: Assumed linear velocity (default zero)
            angular_velocity: Assumed angular velocity in rad/s (default zero)
        """
        cfg = self.config
        position = np.array(position, dtype=float)
        rotation = as_rotation(rotation)
        velocity = np.zeros(3) if velocity is None else np.array(velocity, dtype=float)
        angular_velocity = (
            np.zeros(3)
            if angular_velocity is None
            else np.array(angular_velocity, dtype=float)
        )

        # Reset history values
        self._last_position = position
        self._last_direction_position = position.copy()
        self._last_rotation = rotation
        self._last_axis_rotation = rotation

        # Outputs follow directly from the given motion
        self._speed = float(np.linalg.norm(velocity))
        self._direction = normalize(velocity)
        self._velocity = velocity
        self._acceleration_strength = 0.0
        self._acceleration = np.zeros(3)

        self._angular_speed = math.degrees(float(np.linalg.norm(angular_velocity)))
        self._angular_axis = normalize(angular_velocity)
        self._angular_velocity = angular_velocity
        self._angular_acceleration_strength = 0.0
        self._angular_acceleration = np.zeros(3)

        # Simulated history consistent with that motion
        sample_distance = self._speed * cfg.sample_period
        sample_angle = self._angular_speed * cfg.sample_period
        self._distance[:] = sample_distance
        self._angle[:] = sample_angle
        self._offset[:] = self._direction * sample_distance
        self._axis_offset[:] = self._angular_axis * sample_angle
        self._speed_history[:] = self._speed
        self._angular_speed_history[:] = self._angular_speed

        # Newest bucket starts empty and is filled by the next update
        self._head = 0
        self._distance[0] = 0.0
        self._angle[0] = 0.0
        self._offset[0] = 0.0
        self._axis_offset[0] = 0.0
        self._sample_time = 0.0

        self._initialized = True

    def update(
        self,
        position: np.ndarray,
        rotation: RotationLike,
        time_slice: float,
    ) -> None:
        """
        Feed a new pose and recompute all outputs.

        Args:
            position: Latest position (3,)
            rotation: Latest orientation
            time_slice: Seconds elapsed since the previous call. Non-positive
                or non-finite values are ignored.
        """
        # Automatically reset, if we have not done so initially
        if not self._initialized:
            logger.debug("Update before reset, seeding with zero velocity")
            self.reset(position, rotation)
            return

        time_slice = float(time_slice)
        if not (math.isfinite(time_slice) and time_slice > 0.0):
            logger.debug("Ignoring time slice %r", time_slice)
            return

        cfg = self.config
        position = np.array(position, dtype=float)
        rotation = as_rotation(rotation)

        # Single-call offsets; speed and direction are measured separately
        # and recombined into velocity at the end
        current_offset = position - self._last_position
        current_distance = float(np.linalg.norm(current_offset))
        self._last_position = position

        direction_offset = position - self._last_direction_position
        if np.linalg.norm(direction_offset) < cfg.min_offset:
            active_direction = self._direction
        else:
            active_direction = normalize(direction_offset)
            self._last_direction_position = position.copy()

        current_angle, _ = rotation_angle_axis(rotation * self._last_rotation.inv())
        self._last_rotation = rotation

        # Tiny rotations give a wildly unpredictable axis
        anchor_angle, anchor_axis = rotation_angle_axis(
            rotation * self._last_axis_rotation.inv()
        )
        if anchor_angle < cfg.min_angle:
            active_axis = self._angular_axis
        else:
            active_axis = anchor_axis
            self._last_axis_rotation = rotation

        # Treat long gaps as one window of constant motion
        if time_slice > cfg.period:
            scale = cfg.period / time_slice
            logger.debug(
                "Clamping time slice %.4fs to the %.4fs window", time_slice, cfg.period
            )
            current_offset = current_offset * scale
            current_distance *= scale
            current_angle *= scale
            time_slice = cfg.period

        self._distribute(current_distance, current_angle, current_offset,
                         active_axis * current_angle, time_slice)
        self._recombine(active_direction, active_axis)

    def _distribute(
        self,
        distance: float,
        angle: float,
        offset: np.ndarray,
        axis_offset: np.ndarray,
        time_slice: float,
    ) -> None:
        """Spread one call's motion over the buckets it spans, by time."""
        sample_period = self.config.sample_period
        remaining = time_slice

        while remaining > 0.0:
            portion = min(remaining, sample_period - self._sample_time)
            fraction = portion / time_slice
            self._add_to_newest(
                distance * fraction,
                angle * fraction,
                offset * fraction,
                axis_offset * fraction,
            )
            self._sample_time += portion
            remaining -= portion

            if sample_period - self._sample_time <= _FILL_TOLERANCE * sample_period:
                self._open_bucket()

    def _recombine(self, active_direction: np.ndarray, active_axis: np.ndarray) -> None:
        """Weight the buckets into one combined sample and derive outputs."""
        cfg = self.config
        order = self._slot_order()

        # How full the newest bucket is; the oldest fades out as it fills
        edge_blend = self._sample_time / cfg.sample_period
        inv_edge_blend = 1.0 - edge_blend

        weights = np.ones(cfg.sample_length)
        weights[0] = cfg.new_sample_weight
        weights[1] = 1.0 + inv_edge_blend * cfg.additive_weight
        weights[-1] = inv_edge_blend

        offsets = self._offset[order]
        axis_offsets = self._axis_offset[order]

        combined_distance = float(weights @ self._distance[order])
        combined_angle = float(weights @ self._angle[order])
        combined_offset = (weights * _row_alignment(offsets, active_direction)) @ offsets
        combined_axis = (weights * _row_alignment(axis_offsets, active_axis)) @ axis_offsets

        # Linear outputs
        self._speed = combined_distance / cfg.predicted_period
        if np.linalg.norm(combined_offset) > cfg.min_length:
            self._direction = normalize(combined_offset)
        else:
            self._direction = _blend_towards(active_direction, self._direction)
        self._velocity = self._direction * self._speed

        # Angular outputs
        self._angular_speed = combined_angle / cfg.predicted_period
        if np.linalg.norm(combined_axis) > cfg.min_length:
            self._angular_axis = normalize(combined_axis)
        else:
            self._angular_axis = _blend_towards(active_axis, self._angular_axis)
        self._angular_velocity = self._angular_axis * math.radians(self._angular_speed)

        # Cross-fade two finite differences so there is no step at the
        # moment a bucket is handed off
        speeds = self._speed_history[order]
        angular_speeds = self._angular_speed_history[order]

        older = speeds[1] - speeds[-1]
        newer = speeds[0] - speeds[-2]
        self._acceleration_strength = float(older + (newer - older) * edge_blend) / cfg.period
        self._acceleration = self._direction * self._acceleration_strength

        older = angular_speeds[1] - angular_speeds[-1]
        newer = angular_speeds[0] - angular_speeds[-2]
        self._angular_acceleration_strength = (
            float(older + (newer - older) * edge_blend) / cfg.period
        )
        self._angular_acceleration = self._angular_axis * math.radians(
            self._angular_acceleration_strength
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def sample_time(self) -> float:
        """Time accumulated in the newest (open) bucket."""
        return self._sample_time

    @property
    def last_position(self) -> np.ndarray:
        return self._last_position.copy()

    @property
    def last_rotation(self) -> Rotation:
        return self._last_rotation

    @property
    def samples(self) -> list[OffsetSample]:
        """Bucket contents, newest first."""
        return [
            OffsetSample(
                distance=float(self._distance[i]),
                angle=float(self._angle[i]),
                offset=self._offset[i].copy(),
                axis_offset=self._axis_offset[i].copy(),
            )
            for i in self._slot_order()
        ]

    @property
    def speed_history(self) -> list[SpeedSample]:
        """Speed snapshots, newest first."""
        return [
            SpeedSample(
                speed=float(self._speed_history[i]),
                angular_speed=float(self._angular_speed_history[i]),
            )
            for i in self._slot_order()
        ]

    # ------------------------------------------------------------------
    # Outputs
    # ------------------------------------------------------------------

    @property
    def speed(self) -> float:
        return self._speed

    @property
    def direction(self) -> np.ndarray:
        """Unit direction of motion (zero when unknown)."""
        return self._direction.copy()

    @property
    def velocity(self) -> np.ndarray:
        return self._velocity.copy()

    @property
    def acceleration_strength(self) -> float:
        """Signed; negative while decelerating."""
        return self._acceleration_strength

    @property
    def acceleration(self) -> np.ndarray:
        return self._acceleration.copy()

    @property
    def angular_speed(self) -> float:
        """Degrees per second."""
        return self._angular_speed

    @property
    def angular_axis(self) -> np.ndarray:
        return self._angular_axis.copy()

    @property
    def angular_velocity(self) -> np.ndarray:
        """Radians per second."""
        return self._angular_velocity.copy()

    @property
    def angular_acceleration_strength(self) -> float:
        """Degrees per second squared; negative while slowing down."""
        return self._angular_acceleration_strength

    @property
    def angular_acceleration(self) -> np.ndarray:
        """Radians per second squared."""
        return self._angular_acceleration.copy()

    def __repr__(self) -> str:
        return (
            f"MotionEstimator(speed={self._speed:.3f}, direction={self._direction}, "
            f"angular_speed={self._angular_speed:.1f}, axis={self._angular_axis})"
        )
