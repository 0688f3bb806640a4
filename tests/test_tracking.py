"""Tests for physics_tracker.tracking module."""

import pytest
import numpy as np

from physics_tracker.config import TrackerConfig, TrajectoryConfig
from physics_tracker.trajectories import (
    generate_linear,
    generate_circle,
    generate_jitter_line,
    generate_stationary,
    generate_toss,
)
from physics_tracker.tracking import (
    TrackingResult,
    TossResult,
    track_sequence,
    finite_difference_velocity,
    direction_error_deg,
    compute_metrics,
    simulate_toss,
)


class TestFiniteDifference:
    """Test the naive differencing baseline."""

    def test_constant_velocity(self):
        """Should recover velocity from evenly spaced positions."""
        t = np.arange(5) * 0.1
        positions = np.column_stack([t * 3.0, np.zeros(5), np.zeros(5)])
        velocity = finite_difference_velocity(positions, t)
        np.testing.assert_array_equal(velocity[0], np.zeros(3))
        np.testing.assert_allclose(velocity[1:, 0], 3.0)

    def test_duplicate_timestamp(self):
        """Non-advancing frames should give zero, not inf."""
        t = np.array([0.0, 0.1, 0.1, 0.2])
        positions = np.array([[0.0, 0, 0], [1.0, 0, 0], [1.0, 0, 0], [2.0, 0, 0]])
        velocity = finite_difference_velocity(positions, t)
        assert np.all(np.isfinite(velocity))
        np.testing.assert_array_equal(velocity[2], np.zeros(3))
        assert velocity[3, 0] == pytest.approx(10.0)


class TestDirectionError:
    """Test direction error computation."""

    def test_known_angles(self):
        """Should report angles between vectors regardless of length."""
        a = np.array([[1.0, 0, 0], [0, 2.0, 0], [1.0, 0, 0]])
        b = np.array([[5.0, 0, 0], [1.0, 0, 0], [-1.0, 0, 0]])
        np.testing.assert_allclose(direction_error_deg(a, b), [0.0, 90.0, 180.0], atol=1e-6)

    def test_zero_vector_is_nan(self):
        """Zero vectors have no direction."""
        error = direction_error_deg(np.zeros((1, 3)), np.array([[1.0, 0, 0]]))
        assert np.isnan(error[0])


class TestTrackSequence:
    """Test batch tracking."""

    def test_result_shapes(self):
        """Result should hold one row per frame."""
        sequence = generate_linear(TrajectoryConfig(duration=0.5))
        result = track_sequence(sequence)
        assert isinstance(result, TrackingResult)
        assert result.n_frames == sequence.n_frames
        assert result.velocity.shape == (sequence.n_frames, 3)
        assert result.angular_speed.shape == (sequence.n_frames,)

    def test_linear_converges(self):
        """Velocity should match the truth once the window has filled."""
        sequence = generate_linear(TrajectoryConfig(), velocity=(0.0, 1.5, 0.0))
        result = track_sequence(sequence)
        settled = result.timestamps > 0.2
        np.testing.assert_allclose(
            result.velocity[settled], sequence.true_velocity[settled], atol=1e-6
        )

    def test_seeded_velocity_has_no_transient(self):
        """Seeding with the true velocity should be right from the start."""
        sequence = generate_linear(TrajectoryConfig(), velocity=(1.0, 1.0, 0.0))
        result = track_sequence(sequence, initial_velocity=sequence.true_velocity[0])
        np.testing.assert_allclose(result.velocity, sequence.true_velocity, atol=1e-6)

    def test_irregular_frames(self):
        """Irregular frame timing should not disturb constant velocity."""
        config = TrajectoryConfig(fps=60.0, frame_jitter=0.4, seed=2)
        sequence = generate_linear(config, velocity=(0.0, 0.0, 2.0))
        result = track_sequence(sequence)
        settled = result.timestamps > 0.2
        np.testing.assert_allclose(result.speed[settled], 2.0, rtol=1e-6)

    def test_custom_config(self):
        """A custom tracker config should be used."""
        sequence = generate_linear(TrajectoryConfig())
        result = track_sequence(sequence, TrackerConfig(period=0.25, steps=8))
        assert result.speed[-1] == pytest.approx(1.0, rel=1e-6)


class TestMetrics:
    """Test quality metrics."""

    def test_linear_metrics(self):
        """Clean linear motion should be tracked almost perfectly."""
        sequence = generate_linear(TrajectoryConfig())
        result = track_sequence(sequence)
        metrics = compute_metrics(result, sequence)
        assert metrics["velocity_rmse"] < 1e-6
        assert metrics["direction_error_max_deg"] < 1e-3
        assert metrics["final_speed"] == pytest.approx(1.0)
        assert metrics["frames"] == sequence.n_frames

    def test_jitter_beats_naive(self):
        """Direction error should be far below frame differencing."""
        sequence = generate_jitter_line(TrajectoryConfig(jitter=0.002))
        result = track_sequence(sequence)
        metrics = compute_metrics(result, sequence, settle_time=0.2)
        assert metrics["direction_error_max_deg"] < metrics["naive_direction_error_max_deg"]
        assert metrics["direction_error_mean_deg"] < 0.5 * metrics["naive_direction_error_mean_deg"]
        assert metrics["velocity_rmse"] < metrics["naive_velocity_rmse"]

    def test_stationary_has_no_direction(self):
        """Direction metrics should be NaN when nothing moves."""
        sequence = generate_stationary(TrajectoryConfig())
        result = track_sequence(sequence)
        metrics = compute_metrics(result, sequence)
        assert metrics["velocity_rmse"] == 0.0
        assert np.isnan(metrics["direction_error_mean_deg"])
        assert metrics["final_speed"] == 0.0

    def test_unknown_truth(self):
        """Metrics needing ground truth should be NaN without it."""
        sequence = generate_linear(TrajectoryConfig())
        sequence.true_velocity = None
        sequence.true_angular_velocity = None
        result = track_sequence(sequence)
        metrics = compute_metrics(result, sequence)
        assert np.isnan(metrics["velocity_rmse"])
        assert np.isnan(metrics["angular_velocity_rmse"])
        assert metrics["final_speed"] == pytest.approx(1.0)

    def test_circle_angular(self):
        """Turning with the heading should report the yaw rate."""
        sequence = generate_circle(TrajectoryConfig(), radius=0.5, rate=2.0)
        result = track_sequence(sequence)
        settled = result.timestamps > 0.2
        np.testing.assert_allclose(result.angular_velocity[settled, 2], 2.0, rtol=1e-3)


class TestToss:
    """Test grab-and-release simulation."""

    def test_release_velocity(self):
        """Released velocity should point where the hand was going."""
        sequence = generate_toss(TrajectoryConfig())
        toss = simulate_toss(sequence, release_index=45)
        assert isinstance(toss, TossResult)
        assert toss.release_time == pytest.approx(0.5)

        error = direction_error_deg(toss.velocity[None], toss.true_velocity[None])[0]
        assert error < 2.0
        speed = np.linalg.norm(toss.velocity)
        true_speed = np.linalg.norm(toss.true_velocity)
        assert speed == pytest.approx(true_speed, rel=0.15)

        angular_error = direction_error_deg(
            toss.angular_velocity[None], toss.true_angular_velocity[None]
        )[0]
        assert angular_error < 2.0

    def test_prediction_reduces_lag(self):
        """Over-weighting new samples should lag less while speeding up."""
        sequence = generate_toss(TrajectoryConfig())
        predictive = simulate_toss(sequence, 45, TrackerConfig())
        plain = simulate_toss(sequence, 45, TrackerConfig(new_sample_weight=1.0))
        assert np.linalg.norm(predictive.velocity) > np.linalg.norm(plain.velocity)

    def test_release_at_grab(self):
        """Releasing on the grab frame should throw nothing."""
        sequence = generate_toss(TrajectoryConfig())
        toss = simulate_toss(sequence, release_index=10, grab_index=10)
        np.testing.assert_array_equal(toss.velocity, np.zeros(3))
        np.testing.assert_array_equal(toss.naive_velocity, np.zeros(3))

    def test_invalid_release(self):
        """Release outside the sequence should raise ValueError."""
        sequence = generate_toss(TrajectoryConfig(duration=0.1))
        with pytest.raises(ValueError):
            simulate_toss(sequence, release_index=sequence.n_frames)
        with pytest.raises(ValueError):
            simulate_toss(sequence, release_index=2, grab_index=5)
