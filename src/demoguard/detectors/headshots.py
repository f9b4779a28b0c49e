"""
Headshot detector.

Counts enemy kills and headshot kills per killer.
"""

from __future__ import annotations

from demoguard.core.utils import safe_divide
from demoguard.detectors.base import BaseDetector, SetupContext
from demoguard.replay.events import EventKind, KillEvent
from demoguard.stats.models import Category, DemoStats, KillKey, Metric


class HeadshotDetector(BaseDetector):
    name = "headshots"
    categories = (Category.KILLS,)

    def __init__(self) -> None:
        super().__init__()
        self._stats: DemoStats | None = None

    def setup(self, context: SetupContext, stats: DemoStats) -> None:
        super().setup(context, stats)
        self._stats = stats
        context.events.subscribe(EventKind.KILL, self.on_kill)

    def on_kill(self, event: KillEvent) -> None:
        if not event.is_enemy_kill:
            return

        killer = self._stats.player(event.killer_id, event.killer_name)
        killer.increment_int(Category.KILLS, KillKey.TOTAL_KILLS, "Kills of enemy players")
        if event.headshot:
            killer.increment_int(Category.KILLS, KillKey.HEADSHOT_KILLS, "Kills by headshot")

    def finalize(self, stats: DemoStats) -> None:
        for player in stats:
            total = player.get_int(Category.KILLS, KillKey.TOTAL_KILLS)
            if total == 0:
                continue
            headshots = player.get_int(Category.KILLS, KillKey.HEADSHOT_KILLS)
            player.add(
                Category.KILLS,
                KillKey.HEADSHOT_PERCENTAGE,
                Metric.percentage(
                    safe_divide(headshots, total) * 100, "Percentage of kills that were headshots"
                ),
            )
