"""
Game mode detector.

Counts rounds and tells Wingman (2v2) from Competitive (5v5) by the number
of players seen in the replay.
"""

from __future__ import annotations

import logging

from demoguard.core.constants import WINGMAN_MAX_PLAYERS, GameMode
from demoguard.detectors.base import BaseDetector, SetupContext
from demoguard.replay.events import EventKind, RoundEndEvent
from demoguard.stats.models import Category, DemoStats, GameInfoKey, Metric

logger = logging.getLogger(__name__)


def detect_game_mode(player_count: int) -> GameMode:
    """Wingman lobbies hold at most four players."""
    if player_count <= WINGMAN_MAX_PLAYERS:
        return GameMode.WINGMAN
    return GameMode.COMPETITIVE


class GameModeDetector(BaseDetector):
    name = "game_mode"
    categories = (Category.GAME_INFO,)

    def __init__(self) -> None:
        super().__init__()
        self.round_count = 0

    def setup(self, context: SetupContext, stats: DemoStats) -> None:
        super().setup(context, stats)
        context.events.subscribe(EventKind.ROUND_END, self.on_round_end)

    def on_round_end(self, event: RoundEndEvent) -> None:
        self.round_count += 1

    def finalize(self, stats: DemoStats) -> None:
        mode = detect_game_mode(len(stats))
        rounds = Metric.integer(self.round_count, "Number of rounds played")
        detected = Metric.text(mode.value, "Detected game mode")
        logger.info(f"Detected {mode.value} with {len(stats)} players over {self.round_count} rounds")

        stats.replay.add(Category.GAME_INFO, GameInfoKey.ROUND_COUNT, rounds)
        stats.replay.add(Category.GAME_INFO, GameInfoKey.GAME_MODE, detected)
        for player in stats:
            player.add(Category.GAME_INFO, GameInfoKey.ROUND_COUNT, rounds)
            player.add(Category.GAME_INFO, GameInfoKey.GAME_MODE, detected)
