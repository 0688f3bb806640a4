"""Loading recorded poses and saving tracking results."""

from pathlib import Path

import numpy as np
import pandas as pd
from scipy.spatial.transform import Rotation

from .trajectories import PoseSequence
from .tracking import TrackingResult

POSITION_COLUMNS = ["x", "y", "z"]
QUATERNION_COLUMNS = ["qx", "qy", "qz", "qw"]


def load_pose_csv(filepath: Path | str) -> PoseSequence:
    """
    Load a recorded pose sequence from CSV.

    Expected columns: ``timestamp, x, y, z`` and optionally
    ``qx, qy, qz, qw`` (scalar-last quaternion). Orientation defaults to
    identity when the quaternion columns are absent.
    """
    filepath = Path(filepath)
    df = pd.read_csv(filepath)
    return dataframe_to_sequence(df, name=filepath.stem)


def dataframe_to_sequence(df: pd.DataFrame, name: str = "recorded") -> PoseSequence:
    """Convert DataFrame to PoseSequence."""
    missing = [c for c in ["timestamp"] + POSITION_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Pose data is missing columns: {missing}")

    if len(df) == 0:
        raise ValueError("Pose data has no rows")

    timestamps = df["timestamp"].to_numpy(dtype=float)
    positions = df[POSITION_COLUMNS].to_numpy(dtype=float)

    present = [c for c in QUATERNION_COLUMNS if c in df.columns]
    if len(present) == len(QUATERNION_COLUMNS):
        rotations = Rotation.from_quat(df[QUATERNION_COLUMNS].to_numpy(dtype=float))
    elif present:
        raise ValueError(f"Incomplete quaternion columns: {present}")
    else:
        rotations = Rotation.identity(len(df))

    return PoseSequence(
        timestamps=timestamps,
        positions=positions,
        rotations=rotations,
        name=name,
    )


def sequence_to_dataframe(sequence: PoseSequence) -> pd.DataFrame:
    """Convert PoseSequence to DataFrame in the same layout load_pose_csv reads."""
    quats = sequence.rotations.as_quat()
    data = {"timestamp": sequence.timestamps}
    for i, column in enumerate(POSITION_COLUMNS):
        data[column] = sequence.positions[:, i]
    for i, column in enumerate(QUATERNION_COLUMNS):
        data[column] = quats[:, i]
    return pd.DataFrame(data)


def tracking_to_dataframe(result: TrackingResult) -> pd.DataFrame:
    """Flatten per-frame estimator outputs into columns."""
    data = {
        "timestamp": result.timestamps,
        "speed": result.speed,
        "angular_speed_deg": result.angular_speed,
    }
    vectors = {
        "direction": result.direction,
        "velocity": result.velocity,
        "acceleration": result.acceleration,
        "angular_axis": result.angular_axis,
        "angular_velocity": result.angular_velocity,
        "angular_acceleration": result.angular_acceleration,
    }
    for prefix, values in vectors.items():
        for i, axis in enumerate(POSITION_COLUMNS):
            data[f"{prefix}_{axis}"] = values[:, i]
    return pd.DataFrame(data)


def save_tracking_csv(result: TrackingResult, output_path: Path | str) -> None:
    """
    Export tracking results to CSV.

    Args:
        result: Estimator outputs for a sequence
        output_path: Path to save the CSV file
    """
    df = tracking_to_dataframe(result)
    df.to_csv(output_path, index=False, float_format="%.6f")


def save_pose_csv(sequence: PoseSequence, output_path: Path | str) -> None:
    """Export a pose sequence so it can be reloaded with load_pose_csv."""
    sequence_to_dataframe(sequence).to_csv(output_path, index=False)


def check_monotonic(sequence: PoseSequence) -> np.ndarray:
    """Indices of frames whose timestamp does not advance."""
    return np.where(np.diff(sequence.timestamps) <= 0)[0] + 1
