"""
Weapon usage detector.

Counts, per player, how many ticks were spent holding a knife, another
weapon, or nothing, and turns the counts into percentages at the end.
"""

from __future__ import annotations

import logging

from demoguard.core.utils import safe_divide
from demoguard.core.weapons import HeldItem, classify_held_item
from demoguard.detectors.base import BaseDetector
from demoguard.replay.events import TickFrame
from demoguard.stats.models import Category, DemoStats, Metric, WeaponKey

logger = logging.getLogger(__name__)

_TICK_KEYS = {
    HeldItem.KNIFE: WeaponKey.KNIFE_TICKS,
    HeldItem.WEAPON: WeaponKey.NON_KNIFE_TICKS,
    HeldItem.NONE: WeaponKey.NO_WEAPON_TICKS,
}

_PERCENTAGES = (
    (WeaponKey.KNIFE_TICKS, WeaponKey.KNIFE_PERCENTAGE, "Percentage of time with knife equipped"),
    (
        WeaponKey.NON_KNIFE_TICKS,
        WeaponKey.NON_KNIFE_PERCENTAGE,
        "Percentage of time with non-knife weapons equipped",
    ),
    (WeaponKey.NO_WEAPON_TICKS, WeaponKey.NO_WEAPON_PERCENTAGE, "Percentage of time with no weapon equipped"),
)


class WeaponUsageDetector(BaseDetector):
    """Time share of knife / other weapon / empty hands per player."""

    name = "weapon_usage"
    categories = (Category.WEAPONS,)

    def process_tick(self, frame: TickFrame, stats: DemoStats) -> None:
        for snapshot in frame.playing():
            player = stats.player(snapshot.steam_id, snapshot.name)
            player.increment_int(Category.WEAPONS, WeaponKey.TOTAL_TICKS, "Ticks observed alive")
            held = classify_held_item(snapshot.weapon)
            player.increment_int(Category.WEAPONS, _TICK_KEYS[held])

    def finalize(self, stats: DemoStats) -> None:
        for player in stats:
            total = player.get_int(Category.WEAPONS, WeaponKey.TOTAL_TICKS)
            if total == 0:
                continue

            total_pct = 0.0
            for ticks_key, pct_key, description in _PERCENTAGES:
                ticks = player.get_int(Category.WEAPONS, ticks_key)
                pct = safe_divide(ticks, total) * 100
                total_pct += pct
                player.add(Category.WEAPONS, pct_key, Metric.percentage(pct, description))

            if total_pct < 99.9 or total_pct > 100.1:
                logger.warning(
                    f"Weapon percentages for {player.name} sum to {total_pct:.2f}%, expected 100%"
                )
