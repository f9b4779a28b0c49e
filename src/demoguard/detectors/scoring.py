"""
Composite cheat scorer.

Blends the headshot, snap, reaction and recoil signals into a single
0-100 likelihood per player. Each component is 0 until its sample guard is
met, so a player with a handful of kills cannot be flagged on one lucky
statistic. The component scores are written next to the total so every
verdict can be explained.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from demoguard.core.config import ScoringConfig
from demoguard.core.constants import GameMode
from demoguard.core.geometry import linear_score
from demoguard.detectors.base import BaseDetector
from demoguard.stats.models import (
    AimKey,
    AntiCheatKey,
    Category,
    DemoStats,
    GameInfoKey,
    KillKey,
    Metric,
    PlayerStats,
    ReactionKey,
    RecoilKey,
)

logger = logging.getLogger(__name__)


@dataclass
class ScoreBreakdown:
    """Component scores (0-1) and the resulting likelihood (0-100)."""

    hs_score: float = 0.0
    snap_score: float = 0.0
    reaction_score: float = 0.0
    recoil_score: float = 0.0
    total: float = 0.0
    likelihood: float = 0.0
    wingman_boost: bool = False
    competitive_boost: bool = False


class CheatScorer(BaseDetector):
    name = "cheat_scorer"
    categories = (Category.ANTI_CHEAT,)

    def __init__(self, config: ScoringConfig | None = None):
        super().__init__()
        self.config = config or ScoringConfig()
        self.config.validate()

    @property
    def depends_on(self) -> tuple[str, ...]:
        return ("headshots", "snap", "reaction", "recoil", "game_mode")

    def score(self, player: PlayerStats) -> ScoreBreakdown:
        """Compute the breakdown for one player without writing anything."""
        cfg = self.config
        result = ScoreBreakdown()

        total_kills = player.get_int(Category.KILLS, KillKey.TOTAL_KILLS)
        if total_kills >= cfg.headshot_min_kills:
            hs_pct = player.get_float(Category.KILLS, KillKey.HEADSHOT_PERCENTAGE)
            result.hs_score = linear_score(hs_pct, cfg.headshot_baseline_pct, cfg.headshot_extreme_pct)

        if player.get_int(Category.AIMING, AimKey.SNAP_COUNT) >= cfg.snap_min_count:
            p95 = player.get_float(Category.AIMING, AimKey.P95_SNAP_VELOCITY)
            result.snap_score = linear_score(p95, cfg.snap_baseline, cfg.snap_extreme)

        if player.get_int(Category.REACTION, ReactionKey.REACTION_SAMPLES) >= cfg.reaction_min_samples:
            p10 = player.get_float(Category.REACTION, ReactionKey.P10_REACTION_TIME)
            result.reaction_score = linear_score(p10, cfg.reaction_baseline_ms, cfg.reaction_extreme_ms)

        # Already guarded by the recoil detector
        result.recoil_score = player.get_float(Category.RECOIL, RecoilKey.RECOIL_SCORE)

        result.total = (
            cfg.headshot_weight * result.hs_score
            + cfg.snap_weight * result.snap_score
            + cfg.reaction_weight * result.reaction_score
            + cfg.recoil_weight * result.recoil_score
        )
        likelihood = result.total * 100.0

        # Without game info assume a regulation-length competitive match
        game_mode = player.get_str(Category.GAME_INFO, GameInfoKey.GAME_MODE, GameMode.COMPETITIVE.value)
        rounds = player.get_int(
            Category.GAME_INFO, GameInfoKey.ROUND_COUNT, cfg.competitive_regulation_rounds
        )

        if game_mode == GameMode.WINGMAN and total_kills > cfg.wingman_kill_threshold:
            likelihood *= cfg.boost_multiplier
            result.wingman_boost = True

        if (
            game_mode == GameMode.COMPETITIVE
            and total_kills > cfg.competitive_kill_threshold
            and rounds <= cfg.competitive_regulation_rounds
        ):
            likelihood *= cfg.boost_multiplier
            result.competitive_boost = True

        result.likelihood = min(likelihood, 100.0)
        return result

    def finalize(self, stats: DemoStats) -> None:
        flagged = 0
        for player in stats:
            result = self.score(player)
            self._write(player, result)
            if result.likelihood >= self.config.cheater_threshold:
                flagged += 1
                logger.info(f"Flagged {player.name} ({player.steam_id}): {result.likelihood:.1f}%")
        logger.info(f"Scored {len(stats)} players, {flagged} flagged")

    def _write(self, player: PlayerStats, result: ScoreBreakdown) -> None:
        components = (
            (AntiCheatKey.HS_SCORE, result.hs_score, "Headshot-based cheat score component (0-1)"),
            (AntiCheatKey.SNAP_SCORE, result.snap_score, "Snap velocity-based cheat score component (0-1)"),
            (
                AntiCheatKey.REACTION_SCORE,
                result.reaction_score,
                "Reaction time-based cheat score component (0-1)",
            ),
            (AntiCheatKey.RECOIL_SCORE, result.recoil_score, "Recoil control-based cheat score component (0-1)"),
            (AntiCheatKey.TOTAL_CHEAT_SCORE, result.total, "Weighted cheat score (0-1)"),
        )
        for key, value, description in components:
            player.add(Category.ANTI_CHEAT, key, Metric.floating(value, description))

        if result.wingman_boost:
            player.add(
                Category.ANTI_CHEAT,
                AntiCheatKey.WINGMAN_BOOST,
                Metric.text("Yes", "More than 15 kills in Wingman (20% boost applied)"),
            )
        if result.competitive_boost:
            player.add(
                Category.ANTI_CHEAT,
                AntiCheatKey.COMPETITIVE_BOOST,
                Metric.text("Yes", "More than 39 kills in regulation time (20% boost applied)"),
            )

        player.add(
            Category.ANTI_CHEAT,
            AntiCheatKey.CHEAT_LIKELIHOOD,
            Metric.percentage(result.likelihood, "Estimated likelihood of player cheating"),
        )
        if result.likelihood >= self.config.cheater_threshold:
            verdict = Metric.text("Yes", "Player is flagged as a potential cheater")
        else:
            verdict = Metric.text("No", "Player is not flagged as a cheater")
        player.add(Category.ANTI_CHEAT, AntiCheatKey.CHEATER, verdict)
