"""
DemoGuard Core - Foundation modules shared by every detector.

This module contains:
- constants: Team numbers, game modes and fixed tuning values
- config: Application configuration management
- geometry: View-angle math and score mapping
- weapons: Weapon name normalization and classification
- utils: Timing and validation helpers
"""

from demoguard.core.constants import CS2_TICK_RATE, GameMode, Team
from demoguard.core.geometry import (
    angle_diff,
    angles_to_direction,
    angular_delta,
    clamp01,
    linear_score,
    percentile_value,
    ticks_to_ms,
)
from demoguard.core.weapons import HeldItem, classify_held_item, is_automatic_weapon

__all__ = [
    "CS2_TICK_RATE",
    "GameMode",
    "Team",
    "angle_diff",
    "angles_to_direction",
    "angular_delta",
    "clamp01",
    "linear_score",
    "percentile_value",
    "ticks_to_ms",
    "HeldItem",
    "classify_held_item",
    "is_automatic_weapon",
]
