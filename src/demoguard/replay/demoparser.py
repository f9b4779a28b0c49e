"""
demoparser2-backed replay source.

Reads a CS2 .dem file once with demoparser2 and turns its DataFrames into
the TickFrame stream the pipeline consumes:
- parse_ticks() for per-tick position, view angles, team, life state and
  active weapon of every player
- parse_event() for weapon_fire, player_death, round_end and player_hurt

All blocking I/O happens in load(), before the first frame is yielded.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pandas as pd
from demoparser2 import DemoParser as Demoparser2

from demoguard.core.config import ParserConfig
from demoguard.core.constants import Team
from demoguard.replay.events import (
    GameEvent,
    KillEvent,
    PlayerHurtEvent,
    PlayerSnapshot,
    RoundEndEvent,
    TickFrame,
    WeaponFireEvent,
)
from demoguard.replay.source import ReplayParseError

logger = logging.getLogger(__name__)


# Safe type conversion helpers
def safe_int(value: Any, default: int = 0) -> int:
    """Safely convert a value to int."""
    if value is None:
        return default
    try:
        if pd.isna(value):
            return default
        return int(value)
    except (ValueError, TypeError):
        return default


def safe_float(value: Any, default: float = 0.0) -> float:
    """Safely convert a value to float."""
    if value is None:
        return default
    try:
        if pd.isna(value):
            return default
        return float(value)
    except (ValueError, TypeError):
        return default


def safe_str(value: Any, default: str = "") -> str:
    """Safely convert a value to string."""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return default
    return str(value)


def safe_bool(value: Any, default: bool = False) -> bool:
    """Safely convert a value to bool."""
    if value is None:
        return default
    try:
        if pd.isna(value):
            return default
    except (ValueError, TypeError):
        pass
    return bool(value)


def parse_team(value: Any) -> Team:
    """Map a team_num value (2/3, or "T"/"CT") to Team."""
    if isinstance(value, str):
        upper = value.strip().upper()
        if upper in ("CT", "COUNTER-TERRORIST", "COUNTERTERRORIST"):
            return Team.CT
        if upper in ("T", "TERRORIST"):
            return Team.TERRORIST
    try:
        return Team(safe_int(value))
    except ValueError:
        return Team.UNASSIGNED


class Demoparser2Replay:
    """ReplaySource reading a .dem file through demoparser2."""

    def __init__(self, demo_path: str | Path, config: ParserConfig | None = None):
        self.demo_path = Path(demo_path)
        if not self.demo_path.exists():
            raise FileNotFoundError(f"Demo file not found: {demo_path}")
        self.config = config or ParserConfig()
        self._map_name = "unknown"
        self._tick_rate = self.config.default_tick_rate
        self._ticks_df: pd.DataFrame | None = None
        self._events: dict[int, list[GameEvent]] = {}

    @property
    def tick_rate(self) -> float:
        return self._tick_rate

    @property
    def map_name(self) -> str:
        return self._map_name

    @property
    def demo_name(self) -> str:
        return self.demo_path.name

    def load(self) -> None:
        """
        Parse the demo. Called automatically by frames().

        Raises:
            ReplayParseError: if the header or tick data cannot be read
        """
        if self._ticks_df is not None:
            return

        logger.info(f"Parsing demo: {self.demo_path}")
        try:
            parser = Demoparser2(str(self.demo_path))
            header = parser.parse_header()
            ticks_df = parser.parse_ticks(self.config.tick_props)
        except Exception as e:
            raise ReplayParseError(f"Failed to parse {self.demo_path.name}: {e}") from e

        if isinstance(header, dict):
            self._map_name = header.get("map_name", "unknown") or "unknown"
            header_rate = safe_float(header.get("tickrate"))
            if header_rate > 0:
                self._tick_rate = header_rate

        self._ticks_df = ticks_df if ticks_df is not None else pd.DataFrame()
        logger.info(
            f"Map: {self._map_name}, tick rate {self._tick_rate:g}, {len(self._ticks_df)} player-tick rows"
        )
        self._events = self._build_events(parser)

    def _parse_event_safe(
        self,
        parser: Demoparser2,
        event_name: str,
        player_props: list[str] | None = None,
    ) -> pd.DataFrame:
        """Parse one event type, returning an empty DataFrame if the demo has none."""
        try:
            if player_props:
                df = parser.parse_event(event_name, player=player_props)
            else:
                df = parser.parse_event(event_name)
        except Exception as e:
            logger.debug(f"Could not parse {event_name}: {e}")
            return pd.DataFrame()

        if df is None or df.empty:
            return pd.DataFrame()
        logger.debug(f"Parsed {len(df)} {event_name} events")
        return df

    def _build_events(self, parser: Demoparser2) -> dict[int, list[GameEvent]]:
        """
        Parse all events and group them by tick.

        demoparser2 returns one DataFrame per event type without a shared
        sequence number, so within a tick events are ordered by kind: weapon
        fires, then kills, then round ends, then hurts. Rows of one kind keep
        the parser's order.
        """
        events: dict[int, list[GameEvent]] = defaultdict(list)

        fires_df = self._parse_event_safe(parser, "weapon_fire", player_props=["pitch", "yaw"])
        kills_df = self._parse_event_safe(parser, "player_death", player_props=["team_num"])
        rounds_df = self._parse_event_safe(parser, "round_end")
        hurts_df = self._parse_event_safe(parser, "player_hurt")

        for event in build_weapon_fires(fires_df):
            events[event.tick].append(event)
        for event in build_kills(kills_df):
            events[event.tick].append(event)
        for event in build_round_ends(rounds_df):
            events[event.tick].append(event)
        for event in build_hurts(hurts_df):
            events[event.tick].append(event)

        logger.info(
            f"Parsed events: {len(fires_df)} weapon_fire, {len(kills_df)} player_death, "
            f"{len(rounds_df)} round_end, {len(hurts_df)} player_hurt"
        )
        return dict(events)

    def frames(self) -> Iterator[TickFrame]:
        # Parse eagerly so errors and metadata surface before iteration starts
        self.load()
        return self._iter_frames()

    def _iter_frames(self) -> Iterator[TickFrame]:
        snapshots = build_snapshots(self._ticks_df)
        all_ticks = sorted(set(snapshots) | set(self._events))
        for tick in all_ticks:
            yield TickFrame(
                tick=tick,
                players=tuple(snapshots.get(tick, ())),
                events=tuple(self._events.get(tick, ())),
            )


# ============================================================================
# DataFrame -> model conversion
# ============================================================================


def build_snapshots(ticks_df: pd.DataFrame) -> dict[int, list[PlayerSnapshot]]:
    """Group parse_ticks() rows into per-tick player snapshots."""
    snapshots: dict[int, list[PlayerSnapshot]] = defaultdict(list)
    if ticks_df is None or ticks_df.empty:
        return snapshots

    has_alive = "is_alive" in ticks_df.columns
    has_weapon = "active_weapon_name" in ticks_df.columns
    for row in ticks_df.to_dict("records"):
        steam_id = safe_int(row.get("steamid"))
        if steam_id <= 0:
            continue
        weapon = safe_str(row.get("active_weapon_name")) if has_weapon else ""
        snapshots[safe_int(row.get("tick"))].append(
            PlayerSnapshot(
                steam_id=steam_id,
                name=safe_str(row.get("name"), "Unknown"),
                team=parse_team(row.get("team_num")),
                x=safe_float(row.get("X")),
                y=safe_float(row.get("Y")),
                z=safe_float(row.get("Z")),
                yaw=safe_float(row.get("yaw")),
                pitch=safe_float(row.get("pitch")),
                weapon=weapon or None,
                is_alive=safe_bool(row.get("is_alive"), True) if has_alive else True,
            )
        )
    return snapshots


def build_weapon_fires(df: pd.DataFrame) -> list[WeaponFireEvent]:
    fires = []
    for row in df.to_dict("records"):
        shooter_id = safe_int(row.get("user_steamid"))
        if shooter_id <= 0:
            continue
        fires.append(
            WeaponFireEvent(
                tick=safe_int(row.get("tick")),
                shooter_id=shooter_id,
                shooter_name=safe_str(row.get("user_name"), "Unknown"),
                weapon=safe_str(row.get("weapon")),
                yaw=safe_float(row.get("user_yaw")),
                pitch=safe_float(row.get("user_pitch")),
            )
        )
    return fires


def build_kills(df: pd.DataFrame) -> list[KillEvent]:
    kills = []
    for row in df.to_dict("records"):
        kills.append(
            KillEvent(
                tick=safe_int(row.get("tick")),
                killer_id=safe_int(row.get("attacker_steamid")),
                killer_name=safe_str(row.get("attacker_name"), "Unknown"),
                killer_team=parse_team(row.get("attacker_team_num")),
                victim_id=safe_int(row.get("user_steamid")),
                victim_name=safe_str(row.get("user_name"), "Unknown"),
                victim_team=parse_team(row.get("user_team_num")),
                headshot=safe_bool(row.get("headshot")),
                weapon=safe_str(row.get("weapon")),
            )
        )
    return kills


def build_round_ends(df: pd.DataFrame) -> list[RoundEndEvent]:
    return [
        RoundEndEvent(
            tick=safe_int(row.get("tick")),
            winner=parse_team(row.get("winner")),
            reason=safe_int(row.get("reason")),
        )
        for row in df.to_dict("records")
    ]


def build_hurts(df: pd.DataFrame) -> list[PlayerHurtEvent]:
    return [
        PlayerHurtEvent(
            tick=safe_int(row.get("tick")),
            attacker_id=safe_int(row.get("attacker_steamid")),
            victim_id=safe_int(row.get("user_steamid")),
            damage=safe_int(row.get("dmg_health")),
            hitgroup=safe_str(row.get("hitgroup")),
        )
        for row in df.to_dict("records")
    ]
