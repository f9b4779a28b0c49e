"""
Reaction time detector.

Every tick, for every live player, checks which enemies sit inside a narrow
cone around the crosshair and remembers the tick each one entered it. When
the player fires, the time since each tracked enemy entered the cone is a
reaction sample. Consistently sub-100ms reactions are a triggerbot signature.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from demoguard.core.constants import FAST_REACTION_MS, MAX_REACTION_MS
from demoguard.core.geometry import angles_to_direction, direction_to, linear_score, percentile_value
from demoguard.core.utils import validate_steamid
from demoguard.detectors.base import BaseDetector, SetupContext
from demoguard.replay.events import EventKind, KillEvent, RoundEndEvent, TickFrame, WeaponFireEvent
from demoguard.stats.models import Category, DemoStats, Metric, ReactionKey

logger = logging.getLogger(__name__)


class ReactionTimeDetector(BaseDetector):
    name = "reaction"
    categories = (Category.REACTION,)

    def __init__(
        self,
        fov_degrees: float = 10.0,
        max_reaction_ms: float = MAX_REACTION_MS,
        min_samples: int = 5,
    ):
        super().__init__()
        self.fov_degrees = fov_degrees
        self.max_reaction_ms = max_reaction_ms
        self.min_samples = min_samples
        # The cone test compares against the half-angle
        self.cos_half_fov = math.cos(math.radians(fov_degrees / 2.0))
        # attacker -> opponent -> tick the opponent entered the attacker's FOV
        self._entry_ticks: dict[int, dict[int, int]] = {}
        self._reaction_times: dict[int, list[float]] = {}
        self._stats: DemoStats | None = None

    def setup(self, context: SetupContext, stats: DemoStats) -> None:
        super().setup(context, stats)
        self._stats = stats
        context.events.subscribe(EventKind.WEAPON_FIRE, self.on_weapon_fire)
        context.events.subscribe(EventKind.ROUND_END, self.on_round_end)
        context.events.subscribe(EventKind.KILL, self.on_kill)

    def process_tick(self, frame: TickFrame, stats: DemoStats) -> None:
        playing = frame.playing()
        for attacker in playing:
            view = angles_to_direction(attacker.pitch, attacker.yaw)
            tracked = self._entry_ticks.setdefault(attacker.steam_id, {})
            in_fov: set[int] = set()

            for opponent in playing:
                if opponent.steam_id == attacker.steam_id or opponent.team == attacker.team:
                    continue
                to_opponent = direction_to(attacker.position, opponent.position)
                if to_opponent is None:
                    continue
                if float(np.dot(view, to_opponent)) >= self.cos_half_fov:
                    in_fov.add(opponent.steam_id)
                    tracked.setdefault(opponent.steam_id, frame.tick)

            for opponent_id in list(tracked):
                if opponent_id not in in_fov:
                    del tracked[opponent_id]

    def on_weapon_fire(self, event: WeaponFireEvent) -> None:
        if not validate_steamid(event.shooter_id):
            return
        tracked = self._entry_ticks.get(event.shooter_id)
        if not tracked:
            return

        shooter = None
        for entry_tick in tracked.values():
            elapsed_ms = (event.tick - entry_tick) * 1000.0 / self.tick_rate
            if elapsed_ms > self.max_reaction_ms:
                continue
            self._reaction_times.setdefault(event.shooter_id, []).append(elapsed_ms)
            if shooter is None:
                shooter = self._stats.player(event.shooter_id, event.shooter_name)
            shooter.increment_int(
                Category.REACTION, ReactionKey.SHOTS_AFTER_FOV_ENTRY, "Shots fired after an enemy entered FOV"
            )

        self._entry_ticks[event.shooter_id] = {}

    def on_round_end(self, event: RoundEndEvent) -> None:
        self._entry_ticks.clear()

    def on_kill(self, event: KillEvent) -> None:
        for player_id in (event.victim_id, event.killer_id):
            self._forget(player_id)

    def _forget(self, player_id: int) -> None:
        """Drop every entry involving player_id, as attacker or as target."""
        for targets in self._entry_ticks.values():
            targets.pop(player_id, None)
        self._entry_ticks.pop(player_id, None)

    def finalize(self, stats: DemoStats) -> None:
        for steam_id, times in self._reaction_times.items():
            if len(times) < self.min_samples:
                logger.debug(f"Player {steam_id}: {len(times)} reaction samples, need {self.min_samples}")
                continue

            ordered = sorted(times)
            median = ordered[len(ordered) // 2]
            p10 = percentile_value(ordered, 0.1)
            fast = sum(1 for t in ordered if t <= FAST_REACTION_MS)

            player = stats.player(steam_id)
            player.add(
                Category.REACTION,
                ReactionKey.MEDIAN_REACTION_TIME,
                Metric.floating(median, "Median reaction time in milliseconds"),
            )
            player.add(
                Category.REACTION,
                ReactionKey.P10_REACTION_TIME,
                Metric.floating(p10, "10th percentile reaction time in milliseconds"),
            )
            player.add(
                Category.REACTION,
                ReactionKey.SUB_100MS_RATIO,
                Metric.percentage(
                    fast / len(ordered) * 100.0,
                    "Percentage of shots fired within 100ms of enemy entering FOV",
                ),
            )
            player.add(
                Category.REACTION,
                ReactionKey.REACTION_SAMPLES,
                Metric.integer(len(ordered), "Number of reaction time samples collected"),
            )
            player.add(
                Category.REACTION,
                ReactionKey.REACTION_CHEAT_SCORE,
                Metric.floating(
                    linear_score(p10, 120.0, 60.0),
                    "Reaction time-based cheat score (0-1, higher is more suspicious)",
                ),
            )
