"""
Tick snapshots and gameplay events consumed by the detector pipeline.

A replay is a sequence of TickFrames in increasing tick order. Each frame
holds the snapshot of every connected player at that tick and the events
the game emitted during it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from demoguard.core.constants import PLAYING_TEAMS, Team


class EventKind(StrEnum):
    """Event kinds detectors can subscribe to."""

    WEAPON_FIRE = "weapon_fire"
    KILL = "player_death"
    ROUND_END = "round_end"
    PLAYER_HURT = "player_hurt"


@dataclass(frozen=True)
class PlayerSnapshot:
    """State of one player at one tick."""

    steam_id: int
    name: str
    team: Team
    x: float
    y: float
    z: float
    yaw: float  # degrees
    pitch: float  # degrees, positive = looking down
    weapon: str | None = None  # active weapon name, None when empty-handed
    is_alive: bool = True

    @property
    def position(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    @property
    def is_playing(self) -> bool:
        return self.is_alive and self.team in PLAYING_TEAMS and self.steam_id > 0


@dataclass(frozen=True)
class GameEvent:
    """Base class for events; every event knows its tick."""

    tick: int

    @property
    def kind(self) -> EventKind:
        raise NotImplementedError


@dataclass(frozen=True)
class WeaponFireEvent(GameEvent):
    """A shot fired. Carries the shooter's view angles at the moment of firing."""

    shooter_id: int
    shooter_name: str
    weapon: str
    yaw: float
    pitch: float

    @property
    def kind(self) -> EventKind:
        return EventKind.WEAPON_FIRE


@dataclass(frozen=True)
class KillEvent(GameEvent):
    """A player death. killer_id is 0 for world/fall damage."""

    killer_id: int
    killer_name: str
    killer_team: Team
    victim_id: int
    victim_name: str
    victim_team: Team
    headshot: bool = False
    weapon: str = ""

    @property
    def kind(self) -> EventKind:
        return EventKind.KILL

    @property
    def is_enemy_kill(self) -> bool:
        """Killer and victim are distinct, valid and on different teams."""
        return (
            self.killer_id > 0
            and self.victim_id > 0
            and self.killer_id != self.victim_id
            and self.killer_team != self.victim_team
        )


@dataclass(frozen=True)
class RoundEndEvent(GameEvent):
    winner: Team = Team.UNASSIGNED
    reason: int = 0

    @property
    def kind(self) -> EventKind:
        return EventKind.ROUND_END


@dataclass(frozen=True)
class PlayerHurtEvent(GameEvent):
    attacker_id: int
    victim_id: int
    damage: int = 0
    hitgroup: str = ""

    @property
    def kind(self) -> EventKind:
        return EventKind.PLAYER_HURT


@dataclass(frozen=True)
class TickFrame:
    """Everything that happened at one tick."""

    tick: int
    players: tuple[PlayerSnapshot, ...] = ()
    events: tuple[GameEvent, ...] = field(default_factory=tuple)

    def playing(self) -> list[PlayerSnapshot]:
        """Live players on a playing team."""
        return [p for p in self.players if p.is_playing]
