"""Tests for physics_tracker.visualization module."""

import matplotlib

matplotlib.use("Agg")

from physics_tracker.config import TrajectoryConfig
from physics_tracker.trajectories import generate_jitter_line, generate_spin
from physics_tracker.tracking import track_sequence
from physics_tracker.visualization import plot_speed_comparison, plot_angular_speed


class TestPlots:
    """Test analysis plots."""

    def test_speed_plot_saved(self, tmp_path):
        """Speed comparison should be written to disk."""
        sequence = generate_jitter_line(TrajectoryConfig(duration=0.3, jitter=0.002))
        result = track_sequence(sequence)
        path = tmp_path / "speed.png"
        fig = plot_speed_comparison(result, sequence, path)
        assert path.exists()
        assert len(fig.axes) == 2

    def test_speed_plot_without_truth(self):
        """Plotting should work when no ground truth is known."""
        sequence = generate_jitter_line(TrajectoryConfig(duration=0.3, jitter=0.002))
        sequence.true_velocity = None
        result = track_sequence(sequence)
        fig = plot_speed_comparison(result, sequence)
        assert len(fig.axes) == 2

    def test_angular_plot_saved(self, tmp_path):
        """Angular plot should be written to disk."""
        sequence = generate_spin(TrajectoryConfig(duration=0.3))
        result = track_sequence(sequence)
        path = tmp_path / "angular.png"
        plot_angular_speed(result, sequence, path)
        assert path.exists()
