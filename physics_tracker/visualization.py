"""Plots comparing estimator output against naive differencing."""

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from .tracking import TrackingResult, direction_error_deg, finite_difference_velocity
from .trajectories import PoseSequence


def plot_speed_comparison(
    result: TrackingResult,
    sequence: PoseSequence,
    output_path: Path | str | None = None,
    figsize: tuple[int, int] = (12, 6),
) -> plt.Figure:
    """
    Plot estimated speed and direction error over time.

    Args:
        result: Estimator outputs
        sequence: The tracked poses
        output_path: Optional path to save figure
        figsize: Figure size

    Returns:
        Matplotlib figure
    """
    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=figsize)

    t = result.timestamps
    naive = finite_difference_velocity(sequence.positions, sequence.timestamps)

    # Speed
    ax1.plot(t, np.linalg.norm(naive, axis=1), "r-", label="Frame difference", alpha=0.5)
    ax1.plot(t, result.speed, "b-", label="Estimated", linewidth=2)
    if sequence.true_velocity is not None:
        ax1.plot(t, np.linalg.norm(sequence.true_velocity, axis=1), "k--", label="True", alpha=0.6)
    ax1.set_xlabel("Time (s)")
    ax1.set_ylabel("Speed (m/s)")
    ax1.set_title(f"Speed ({sequence.name})")
    ax1.legend()
    ax1.grid(True, alpha=0.3)

    # Direction error against the best available reference
    reference = sequence.true_velocity if sequence.true_velocity is not None else naive
    ax2.plot(t, direction_error_deg(result.direction, reference), "b-", label="Estimated", linewidth=2)
    if sequence.true_velocity is not None:
        ax2.plot(t, direction_error_deg(naive, reference), "r-", label="Frame difference", alpha=0.5)
    ax2.set_xlabel("Time (s)")
    ax2.set_ylabel("Direction error (degrees)")
    ax2.set_title("Direction error")
    ax2.legend()
    ax2.grid(True, alpha=0.3)

    plt.tight_layout()

    if output_path:
        plt.savefig(output_path, dpi=150, bbox_inches="tight")

    plt.close(fig)
    return fig


def plot_angular_speed(
    result: TrackingResult,
    sequence: PoseSequence,
    output_path: Path | str | None = None,
    figsize: tuple[int, int] = (12, 6),
) -> plt.Figure:
    """
    Plot estimated angular speed and acceleration over time.

    Args:
        result: Estimator outputs
        sequence: The tracked poses
        output_path: Optional path to save figure
        figsize: Figure size

    Returns:
        Matplotlib figure
    """
    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=figsize)

    t = result.timestamps

    # Angular speed
    ax1.plot(t, result.angular_speed, "b-", label="Estimated", linewidth=2)
    if sequence.true_angular_velocity is not None:
        true_speed = np.degrees(np.linalg.norm(sequence.true_angular_velocity, axis=1))
        ax1.plot(t, true_speed, "k--", label="True", alpha=0.6)
    ax1.set_xlabel("Time (s)")
    ax1.set_ylabel("Angular speed (deg/s)")
    ax1.set_title(f"Angular speed ({sequence.name})")
    ax1.legend()
    ax1.grid(True, alpha=0.3)

    # Accelerations
    ax2.plot(t, np.linalg.norm(result.acceleration, axis=1), "g-", label="Linear (m/s²)")
    ax2.plot(t, np.linalg.norm(result.angular_acceleration, axis=1), "m-", label="Angular (rad/s²)")
    ax2.set_xlabel("Time (s)")
    ax2.set_ylabel("Acceleration magnitude")
    ax2.set_title("Acceleration")
    ax2.legend()
    ax2.grid(True, alpha=0.3)

    plt.tight_layout()

    if output_path:
        plt.savefig(output_path, dpi=150, bbox_inches="tight")

    plt.close(fig)
    return fig
