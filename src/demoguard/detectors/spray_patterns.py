"""
Approximate spray patterns of common automatic weapons.

Each table lists the cumulative (yaw, pitch) offset in degrees that recoil
adds to the view angle at bullet N (index N-1). Perfect recoil control means
pulling the crosshair by exactly the opposite amount.
"""

import math

from demoguard.core.weapons import normalize_weapon_name

# Tables are keyed by normalized weapon name ("m4a1" is the M4A4,
# "m4a1_silencer" the M4A1-S).
SPRAY_PATTERNS: dict[str, tuple[tuple[float, float], ...]] = {
    "ak47": (
        (0.0, 0.0),
        (0.0, 1.0),
        (0.0, 2.5),
        (0.2, 4.0),
        (0.5, 5.5),
        (1.0, 7.0),
        (2.0, 8.5),
        (3.0, 9.5),
        (3.5, 10.0),
        (2.5, 10.5),
        (0.0, 11.0),
        (-2.5, 11.5),
        (-4.0, 12.0),
        (-5.0, 12.5),
        (-5.5, 13.0),
        (-5.0, 13.5),
        (-4.0, 14.0),
        (-2.0, 14.5),
        (0.0, 15.0),
        (2.0, 15.5),
        (4.0, 16.0),
        (5.0, 16.5),
        (5.5, 17.0),
        (5.0, 17.5),
        (4.0, 18.0),
        (2.0, 18.5),
        (0.0, 19.0),
        (-2.0, 19.5),
        (-4.0, 20.0),
        (-5.0, 20.5),
    ),
    "m4a1": (
        (0.0, 0.0),
        (0.0, 0.8),
        (0.0, 2.0),
        (0.2, 3.5),
        (0.4, 5.0),
        (0.8, 6.2),
        (1.5, 7.0),
        (2.5, 7.5),
        (3.0, 8.0),
        (2.0, 8.5),
        (0.0, 9.0),
        (-2.0, 9.5),
        (-3.0, 10.0),
        (-3.5, 10.2),
        (-3.0, 10.5),
        (-1.5, 10.8),
        (0.0, 11.0),
        (1.5, 11.2),
        (2.5, 11.5),
        (3.0, 11.8),
    ),
    "m4a1_silencer": (
        (0.0, 0.0),
        (0.0, 0.7),
        (0.0, 1.8),
        (0.1, 3.0),
        (0.3, 4.5),
        (0.7, 5.5),
        (1.2, 6.2),
        (2.0, 6.8),
        (2.5, 7.2),
        (1.8, 7.6),
        (0.0, 8.0),
        (-1.8, 8.2),
        (-2.5, 8.5),
        (-3.0, 8.7),
        (-2.5, 9.0),
        (-1.0, 9.2),
        (0.0, 9.5),
        (1.0, 9.7),
        (2.0, 10.0),
        (2.5, 10.2),
    ),
    "mp9": (
        (0.0, 0.0),
        (0.0, 0.6),
        (0.0, 1.5),
        (0.2, 2.2),
        (0.5, 3.0),
        (1.0, 3.8),
        (1.5, 4.5),
        (2.0, 5.0),
        (1.5, 5.5),
        (0.5, 6.0),
        (-0.5, 6.3),
        (-1.5, 6.6),
        (-2.0, 6.9),
        (-1.5, 7.2),
        (-0.5, 7.5),
        (0.5, 7.8),
        (1.5, 8.1),
        (2.0, 8.4),
        (1.5, 8.7),
        (0.5, 9.0),
    ),
    "p90": (
        (0.0, 0.0),
        (0.0, 0.4),
        (0.0, 1.0),
        (0.1, 1.8),
        (0.2, 2.5),
        (0.4, 3.2),
        (0.7, 3.8),
        (1.0, 4.2),
        (1.3, 4.5),
        (1.0, 4.8),
        (0.5, 5.1),
        (0.0, 5.3),
        (-0.5, 5.5),
        (-1.0, 5.7),
        (-1.3, 5.9),
        (-1.0, 6.1),
        (-0.5, 6.3),
        (0.0, 6.5),
        (0.5, 6.7),
        (1.0, 6.9),
    ),
}

MAX_PATTERN_INDEX = 30


def generic_offset(bullet_index: int) -> tuple[float, float]:
    """Mostly vertical climb with horizontal sway after bullet 10."""
    yaw = 0.0
    if bullet_index > 10:
        yaw = math.sin((bullet_index - 10) * 0.6) * bullet_index * 0.3
    pitch = min(bullet_index * 0.7, 20.0)
    return yaw, pitch


def recoil_offset(weapon_name: str | None, bullet_index: int) -> tuple[float, float]:
    """
    Expected cumulative (yaw, pitch) recoil offset for a bullet.

    Args:
        weapon_name: Weapon name in any parser format
        bullet_index: 1-based bullet number within the burst

    Returns:
        Offset in degrees. Past the end of a table the last entry is reused;
        weapons without a table use generic_offset().
    """
    bullet_index = max(1, min(bullet_index, MAX_PATTERN_INDEX))
    pattern = SPRAY_PATTERNS.get(normalize_weapon_name(weapon_name))
    if not pattern:
        return generic_offset(bullet_index)
    return pattern[min(bullet_index, len(pattern)) - 1]
