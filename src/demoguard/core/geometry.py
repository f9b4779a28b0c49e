"""
View-angle geometry and score-mapping helpers.

All angles are in degrees. Yaw wraps at +/-180, so every difference between
two view angles goes through angle_diff() to take the short way round.
"""

import math
from collections.abc import Sequence

import numpy as np


def angle_diff(a: float, b: float) -> float:
    """
    Shortest signed difference from angle a to angle b.

    Args:
        a: Start angle in degrees
        b: End angle in degrees

    Returns:
        b - a wrapped into [-180, 180]
    """
    diff = math.fmod(b - a + 180.0, 360.0)
    if diff < 0:
        diff += 360.0
    return diff - 180.0


def angular_delta(yaw_a: float, pitch_a: float, yaw_b: float, pitch_b: float) -> float:
    """2D Euclidean combination of the wrap-aware yaw and pitch differences."""
    return math.hypot(angle_diff(yaw_a, yaw_b), angle_diff(pitch_a, pitch_b))


def angles_to_direction(pitch: float, yaw: float) -> np.ndarray:
    """
    Convert pitch/yaw angles to a direction vector.

    Args:
        pitch: Vertical angle in degrees (negative = looking up)
        yaw: Horizontal angle in degrees

    Returns:
        Unit direction vector [x, y, z]
    """
    pitch_rad = np.radians(pitch)
    yaw_rad = np.radians(yaw)

    x = np.cos(pitch_rad) * np.cos(yaw_rad)
    y = np.cos(pitch_rad) * np.sin(yaw_rad)
    z = -np.sin(pitch_rad)

    return np.array([x, y, z])


def direction_to(origin: Sequence[float], target: Sequence[float]) -> np.ndarray | None:
    """Unit vector from origin to target, or None when they coincide."""
    vec = np.asarray(target, dtype=float) - np.asarray(origin, dtype=float)
    length = np.linalg.norm(vec)
    if length < 1e-6:
        return None
    return vec / length


def clamp01(value: float) -> float:
    """Clamp a value to [0, 1]."""
    if value < 0.0:
        return 0.0
    if value > 1.0:
        return 1.0
    return value


def linear_score(value: float, baseline: float, extreme: float) -> float:
    """
    Map a value linearly onto [0, 1].

    0 at baseline, 1 at extreme, clamped outside. Works in either direction,
    e.g. linear_score(p10, 120, 60) rises as reaction time falls.
    """
    if extreme == baseline:
        return 1.0 if value == extreme else 0.0
    return clamp01((value - baseline) / (extreme - baseline))


def percentile_value(sorted_values: Sequence[float], fraction: float) -> float:
    """
    Nearest-rank style percentile on an already sorted sequence.

    Index is floor(fraction * n) clamped to the last element.
    """
    if not sorted_values:
        raise ValueError("percentile of empty sequence")
    index = int(len(sorted_values) * fraction)
    index = max(0, min(index, len(sorted_values) - 1))
    return sorted_values[index]


def ticks_to_ms(ticks: float, tick_rate: float) -> float:
    """Convert a tick count to milliseconds."""
    return ticks / max(1.0, tick_rate) * 1000.0
