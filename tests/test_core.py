"""Tests for geometry, weapon classification and spray pattern lookup."""

import math

import numpy as np
import pytest

from demoguard.core.geometry import (
    angle_diff,
    angles_to_direction,
    angular_delta,
    clamp01,
    direction_to,
    linear_score,
    percentile_value,
    ticks_to_ms,
)
from demoguard.core.utils import safe_divide, validate_steamid
from demoguard.core.weapons import (
    HeldItem,
    WeaponCategory,
    classify_held_item,
    classify_weapon,
    is_automatic_weapon,
    is_knife,
    normalize_weapon_name,
)
from demoguard.detectors.spray_patterns import SPRAY_PATTERNS, generic_offset, recoil_offset


class TestAngleMath:
    """Tests for wrap-aware angle differences."""

    def test_simple_difference(self):
        assert angle_diff(10.0, 30.0) == pytest.approx(20.0)
        assert angle_diff(30.0, 10.0) == pytest.approx(-20.0)

    def test_wraps_across_180(self):
        """170 -> -170 is a 20 degree turn, not 340."""
        assert angle_diff(170.0, -170.0) == pytest.approx(20.0)
        assert angle_diff(-170.0, 170.0) == pytest.approx(-20.0)

    def test_wraps_across_360(self):
        assert angle_diff(359.0, 1.0) == pytest.approx(2.0)

    def test_result_in_range(self):
        for a in range(-720, 720, 37):
            for b in range(-720, 720, 53):
                assert -180.0 <= angle_diff(a, b) <= 180.0

    def test_angular_delta_is_hypot(self):
        assert angular_delta(0.0, 0.0, 3.0, 4.0) == pytest.approx(5.0)
        assert angular_delta(179.0, 0.0, -179.0, 0.0) == pytest.approx(2.0)


class TestDirections:
    """Tests for view and target direction vectors."""

    def test_forward(self):
        np.testing.assert_allclose(angles_to_direction(0.0, 0.0), [1.0, 0.0, 0.0], atol=1e-9)

    def test_yaw_90(self):
        np.testing.assert_allclose(angles_to_direction(0.0, 90.0), [0.0, 1.0, 0.0], atol=1e-9)

    def test_pitch_down_points_down(self):
        """Positive pitch looks down."""
        assert angles_to_direction(45.0, 0.0)[2] < 0

    def test_direction_to(self):
        np.testing.assert_allclose(direction_to((0, 0, 0), (10, 0, 0)), [1.0, 0.0, 0.0])

    def test_direction_to_same_point(self):
        assert direction_to((1, 2, 3), (1, 2, 3)) is None


class TestScoreMapping:
    """Tests for clamping, linear scores and percentiles."""

    def test_clamp01(self):
        assert clamp01(-0.5) == 0.0
        assert clamp01(0.3) == 0.3
        assert clamp01(2.0) == 1.0

    def test_linear_score_rising(self):
        """Headshot factor: 55% -> 0, 65% -> 0.5, 75% -> 1."""
        assert linear_score(55.0, 55.0, 75.0) == 0.0
        assert linear_score(65.0, 55.0, 75.0) == pytest.approx(0.5)
        assert linear_score(80.0, 55.0, 75.0) == 1.0

    def test_linear_score_falling(self):
        """Reaction factor: 120ms -> 0, 90ms -> 0.5, 60ms -> 1."""
        assert linear_score(150.0, 120.0, 60.0) == 0.0
        assert linear_score(90.0, 120.0, 60.0) == pytest.approx(0.5)
        assert linear_score(30.0, 120.0, 60.0) == 1.0

    def test_percentile_index(self):
        values = list(range(20))
        assert percentile_value(values, 0.95) == 19
        assert percentile_value(values, 0.1) == 2
        assert percentile_value([4.0], 0.95) == 4.0

    def test_percentile_empty(self):
        with pytest.raises(ValueError):
            percentile_value([], 0.5)

    def test_ticks_to_ms(self):
        assert ticks_to_ms(6, 64.0) == pytest.approx(93.75)
        assert ticks_to_ms(1, 0.0) == pytest.approx(1000.0)


class TestWeapons:
    """Tests for weapon name normalization and classification."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("weapon_ak47", "ak47"),
            ("AK-47", "ak47"),
            ("M4A4", "m4a1"),
            ("M4A1-S", "m4a1_silencer"),
            ("weapon_m4a1_silencer", "m4a1_silencer"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_weapon_name(raw) == expected

    @pytest.mark.parametrize(
        "name",
        [
            "weapon_knife",
            "Knife",
            "Karambit",
            "Bayonet",
            "M9 Bayonet",
            "knife_t",
            "Shadow Daggers",
            "weapon_knife_push",
        ],
    )
    def test_knives(self, name):
        assert is_knife(name)
        assert classify_held_item(name) == HeldItem.KNIFE

    def test_held_item_classes(self):
        assert classify_held_item("AK-47") == HeldItem.WEAPON
        assert classify_held_item(None) == HeldItem.NONE
        assert classify_held_item("") == HeldItem.NONE

    def test_classify_weapon(self):
        assert classify_weapon("weapon_awp") == WeaponCategory.SNIPER
        assert classify_weapon("Desert Eagle") == WeaponCategory.PISTOL
        assert classify_weapon("weapon_knife_karambit") == WeaponCategory.KNIFE
        assert classify_weapon("weapon_unknown_thing") == WeaponCategory.UNKNOWN

    @pytest.mark.parametrize("name", ["weapon_ak47", "M4A4", "weapon_p90", "Negev", "PP-Bizon"])
    def test_automatic(self, name):
        assert is_automatic_weapon(name)

    @pytest.mark.parametrize("name", ["weapon_awp", "weapon_deagle", "weapon_glock", "weapon_nova", "Knife", None])
    def test_not_automatic(self, name):
        assert not is_automatic_weapon(name)


class TestSprayPatterns:
    """Tests for recoil offset lookup."""

    def test_first_bullet_has_no_offset(self):
        for name in SPRAY_PATTERNS:
            assert recoil_offset(name, 1) == (0.0, 0.0)

    def test_table_lookup(self):
        assert recoil_offset("weapon_ak47", 4) == (0.2, 4.0)
        assert recoil_offset("AK-47", 10) == (2.5, 10.5)
        assert recoil_offset("M4A1-S", 5) == (0.3, 4.5)

    def test_past_table_reuses_last_entry(self):
        """The M4A4 table has 20 entries."""
        assert recoil_offset("weapon_m4a1", 25) == SPRAY_PATTERNS["m4a1"][-1]

    def test_generic_fallback(self):
        assert recoil_offset("weapon_famas", 5) == generic_offset(5)
        yaw, pitch = generic_offset(5)
        assert yaw == 0.0
        assert pitch == pytest.approx(3.5)

    def test_generic_adds_sway_after_bullet_10(self):
        yaw, pitch = generic_offset(12)
        assert yaw == pytest.approx(math.sin(2 * 0.6) * 12 * 0.3)
        assert pitch == pytest.approx(8.4)

    def test_generic_pitch_capped(self):
        assert generic_offset(30)[1] == 20.0


class TestUtils:
    def test_validate_steamid(self):
        assert validate_steamid(76561198000000001)
        assert validate_steamid("76561198000000001")
        assert not validate_steamid(0)
        assert not validate_steamid(None)
        assert not validate_steamid("abc")

    def test_safe_divide(self):
        assert safe_divide(1, 4) == 0.25
        assert safe_divide(1, 0) == 0.0
        assert safe_divide(1, 0, default=-1.0) == -1.0
