"""
Command line entry point for offline motion tracking analysis.

Usage:
    python -m physics_tracker.main --trajectory jitter_line --jitter 0.002
    python -m physics_tracker.main --input recording.csv --preset smooth --plot
    python -m physics_tracker.main --trajectory toss --release-frame 40
"""

import argparse
import logging
from pathlib import Path

import numpy as np

from .config import AnalysisConfig, get_preset_config
from .data_loader import check_monotonic, load_pose_csv, save_tracking_csv
from .tracking import TrackingResult, compute_metrics, simulate_toss, track_sequence
from .trajectories import TRAJECTORY_GENERATORS, PoseSequence, get_trajectory
from .visualization import plot_angular_speed, plot_speed_comparison


def run_analysis(
    sequence: PoseSequence,
    config: AnalysisConfig,
) -> tuple[TrackingResult, dict[str, float]]:
    """
    Track a sequence and compute its quality metrics.

    Args:
        sequence: Poses to track
        config: Analysis configuration

    Returns:
        Tuple of (tracking result, metrics)
    """
    if config.verbose:
        print("=" * 50)
        print("Motion Tracking")
        print("=" * 50)
        print(f"  Sequence: {sequence.name} ({sequence.n_frames} frames)")
        print(f"  Window: {config.tracker.period:.4f}s in {config.tracker.steps} steps")
        print(f"  New sample weight: {config.tracker.new_sample_weight}")

    result = track_sequence(sequence, config.tracker)
    metrics = compute_metrics(result, sequence, settle_time=config.tracker.period)

    if config.verbose:
        print("\n[Complete]")
        print(f"  Final speed: {metrics['final_speed']:.3f} m/s")
        print(f"  Final angular speed: {metrics['final_angular_speed_deg']:.1f} deg/s")

    return result, metrics


def print_metrics(metrics: dict[str, float]) -> None:
    print(f"\n{'─'*60}")
    print("Results")
    print(f"{'─'*60}")
    print(f"  Velocity RMSE:        {metrics['velocity_rmse']:.4f} m/s "
          f"(frame difference {metrics['naive_velocity_rmse']:.4f})")
    print(f"  Direction error mean: {metrics['direction_error_mean_deg']:.2f}° "
          f"(frame difference {metrics['naive_direction_error_mean_deg']:.2f}°)")
    print(f"  Direction error max:  {metrics['direction_error_max_deg']:.2f}° "
          f"(frame difference {metrics['naive_direction_error_max_deg']:.2f}°)")
    print(f"  Angular velocity RMSE: {metrics['angular_velocity_rmse']:.4f} rad/s")


def main():
    parser = argparse.ArgumentParser(
        description="Smoothed predictive velocity estimation from discrete poses"
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--trajectory",
        type=str,
        choices=sorted(TRAJECTORY_GENERATORS),
        default="linear",
        help="Scripted trajectory to track",
    )
    source.add_argument(
        "--input",
        type=str,
        default=None,
        help="CSV with timestamp,x,y,z[,qx,qy,qz,qw] columns",
    )
    parser.add_argument(
        "--preset",
        type=str,
        choices=["default", "responsive", "smooth", "legacy"],
        default="default",
        help="Configuration preset",
    )
    parser.add_argument("--fps", type=float, default=None, help="Override frame rate")
    parser.add_argument("--duration", type=float, default=None, help="Override duration (s)")
    parser.add_argument(
        "--jitter",
        type=float,
        default=None,
        help="Perpendicular position noise for scripted trajectories (m)",
    )
    parser.add_argument(
        "--frame-jitter",
        type=float,
        default=None,
        help="Random frame time variation, as a fraction of the frame time",
    )
    parser.add_argument(
        "--release-frame",
        type=int,
        default=None,
        help="Simulate letting go of the object at this frame",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Directory for tracking CSV and plots",
    )
    parser.add_argument(
        "--plot",
        action="store_true",
        help="Save speed/angular plots (requires --output-dir)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress verbose output",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Show estimator debug logging",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Load configuration
    config = get_preset_config(args.preset)
    config.verbose = not args.quiet

    if args.fps:
        config.trajectory.fps = args.fps
    if args.duration:
        config.trajectory.duration = args.duration
    if args.jitter is not None:
        config.trajectory.jitter = args.jitter
    if args.frame_jitter is not None:
        config.trajectory.frame_jitter = args.frame_jitter

    print(f"Using preset '{args.preset}'")

    # Load or generate poses
    if args.input:
        sequence = load_pose_csv(args.input)
        stalled = check_monotonic(sequence)
        if len(stalled) > 0:
            print(f"  Warning: {len(stalled)} frames do not advance in time and will be ignored")
    else:
        sequence = get_trajectory(args.trajectory, config.trajectory)

    result, metrics = run_analysis(sequence, config)
    print_metrics(metrics)

    if args.release_frame is not None:
        toss = simulate_toss(sequence, args.release_frame, config.tracker)
        print(f"\n  ▶ Release at frame {toss.release_index} (t={toss.release_time:.3f}s)")
        print(f"    Estimated velocity: {np.round(toss.velocity, 3)}")
        print(f"    Frame difference:   {np.round(toss.naive_velocity, 3)}")
        if toss.true_velocity is not None:
            print(f"    True velocity:      {np.round(toss.true_velocity, 3)}")
        print(f"    Angular velocity:   {np.round(toss.angular_velocity, 3)} rad/s")

    if args.output_dir:
        output_dir = Path(args.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        csv_path = output_dir / f"{sequence.name}_tracking.csv"
        save_tracking_csv(result, csv_path)
        print(f"\n  Tracking CSV saved to: {csv_path}")

        if args.plot:
            print("Generating plots...")
            plot_speed_comparison(result, sequence, output_dir / f"{sequence.name}_speed.png")
            plot_angular_speed(result, sequence, output_dir / f"{sequence.name}_angular.png")
    elif args.plot:
        print("  Warning: --plot needs --output-dir, skipping plots")


if __name__ == "__main__":
    main()
