"""
DemoGuard Replay - the frame stream detectors consume.

The demoparser2 adapter is not imported here so that the pipeline and its
tests can run on in-memory replays without loading the parser.
"""

from demoguard.replay.events import (
    EventKind,
    GameEvent,
    KillEvent,
    PlayerHurtEvent,
    PlayerSnapshot,
    RoundEndEvent,
    TickFrame,
    WeaponFireEvent,
)
from demoguard.replay.source import EventBus, InMemoryReplay, ReplayParseError, ReplaySource

__all__ = [
    "EventKind",
    "GameEvent",
    "KillEvent",
    "PlayerHurtEvent",
    "PlayerSnapshot",
    "RoundEndEvent",
    "TickFrame",
    "WeaponFireEvent",
    "EventBus",
    "InMemoryReplay",
    "ReplayParseError",
    "ReplaySource",
]
