"""
DemoGuard - CS2 Demo Statistics and Cheat Likelihood Scoring

Replays a CS2 demo tick by tick through an ordered pipeline of detectors
(weapon usage, headshots, aim snaps, reaction time, recoil control, game mode)
and blends their output into an explainable 0-100 cheat likelihood.

Usage:
    from demoguard import Demoparser2Replay, default_pipeline

    replay = Demoparser2Replay("match.dem")
    result = default_pipeline().run(replay)

    for player in result.stats.players.values():
        print(player.identity.name, player.get(Category.ANTI_CHEAT, AntiCheatKey.CHEAT_LIKELIHOOD))
"""

__version__ = "0.1.0"
__author__ = "DemoGuard Contributors"


def __getattr__(name):
    """Lazy import for heavy dependencies."""
    if name == "Demoparser2Replay":
        from demoguard.replay.demoparser import Demoparser2Replay
        return Demoparser2Replay
    elif name == "InMemoryReplay":
        from demoguard.replay.source import InMemoryReplay
        return InMemoryReplay
    elif name == "AnalysisPipeline":
        from demoguard.pipeline.runner import AnalysisPipeline
        return AnalysisPipeline
    elif name == "default_pipeline":
        from demoguard.pipeline.runner import default_pipeline
        return default_pipeline
    elif name == "DemoStats":
        from demoguard.stats.models import DemoStats
        return DemoStats
    elif name == "Category":
        from demoguard.stats.models import Category
        return Category
    elif name == "AntiCheatKey":
        from demoguard.stats.models import AntiCheatKey
        return AntiCheatKey
    elif name == "load_config":
        from demoguard.core.config import load_config
        return load_config
    raise AttributeError(f"module 'demoguard' has no attribute '{name}'")


__all__ = [
    # Version
    "__version__",
    # Replay sources
    "Demoparser2Replay",
    "InMemoryReplay",
    # Pipeline
    "AnalysisPipeline",
    "default_pipeline",
    # Stats
    "DemoStats",
    "Category",
    "AntiCheatKey",
    # Config
    "load_config",
]
