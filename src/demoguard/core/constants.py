"""
DemoGuard - Constants

Team numbers, game modes and the fixed tuning values shared by detectors.
"""

from enum import Enum, StrEnum

# CS2 servers simulate at 64 ticks per second
CS2_TICK_RATE = 64.0


class Team(int, Enum):
    """CS2 team numbers."""

    UNASSIGNED = 0
    SPECTATOR = 1
    TERRORIST = 2
    CT = 3


class GameMode(StrEnum):
    """
    Game modes the detector pipeline distinguishes.

    Only the modes that change scoring rules are modelled.
    """

    COMPETITIVE = "Competitive"  # 5v5, regulation is 24-30 rounds
    WINGMAN = "Wingman"  # 2v2


# Playing teams (spectators and unassigned never count as opponents)
PLAYING_TEAMS = {Team.TERRORIST, Team.CT}

# Wingman lobbies never have more than four players
WINGMAN_MAX_PLAYERS = 4

# Reaction times above this are treated as tracking leftovers, not reactions
MAX_REACTION_MS = 2000.0

# A reaction at or below this counts towards the sub-100ms ratio
FAST_REACTION_MS = 100.0
