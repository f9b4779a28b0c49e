"""
Metrics store for per-player and per-replay statistics.

Every value a detector produces is a Metric: a small tagged value (count,
percentage, duration, float, integer or string) with a human-readable
description. Metrics are grouped by Category and identified by a key from
that category's own enum, so a typo or a key filed under the wrong category
fails loudly instead of silently creating a new column.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import timedelta
from enum import StrEnum
from typing import Any

from demoguard.core.utils import validate_steamid

logger = logging.getLogger(__name__)


class MetricTypeError(TypeError):
    """A metric operation does not match the metric's value tag."""


class MetricKeyError(KeyError):
    """A key was used with a category it does not belong to."""


class Category(StrEnum):
    """Topical groups of metrics, one or more per detector."""

    WEAPONS = "weapons"
    KILLS = "kills"
    AIMING = "aiming"
    REACTION = "reaction"
    RECOIL = "recoil"
    GAME_INFO = "game_info"
    ANTI_CHEAT = "anti_cheat"


class WeaponKey(StrEnum):
    TOTAL_TICKS = "total_ticks"
    KNIFE_TICKS = "knife_ticks"
    NON_KNIFE_TICKS = "non_knife_ticks"
    NO_WEAPON_TICKS = "no_weapon_ticks"
    KNIFE_PERCENTAGE = "knife_percentage"
    NON_KNIFE_PERCENTAGE = "non_knife_percentage"
    NO_WEAPON_PERCENTAGE = "no_weapon_percentage"


class KillKey(StrEnum):
    TOTAL_KILLS = "total_kills"
    HEADSHOT_KILLS = "headshot_kills"
    HEADSHOT_PERCENTAGE = "headshot_percentage"


class AimKey(StrEnum):
    SNAPPED_KILLS = "snapped_kills"
    P95_SNAP_VELOCITY = "p95_snap_velocity"
    MEDIAN_SNAP_VELOCITY = "median_snap_velocity"
    AVG_SNAP_VELOCITY = "avg_snap_velocity"
    SNAP_COUNT = "snap_count"


class ReactionKey(StrEnum):
    SHOTS_AFTER_FOV_ENTRY = "shots_after_fov_entry"
    MEDIAN_REACTION_TIME = "median_reaction_time"
    P10_REACTION_TIME = "p10_reaction_time"
    SUB_100MS_RATIO = "sub_100ms_ratio"
    REACTION_SAMPLES = "reaction_samples"
    REACTION_CHEAT_SCORE = "reaction_cheat_score"


class RecoilKey(StrEnum):
    TOTAL_ERROR_SUM = "total_error_sum"
    TOTAL_COUNTED_BULLETS = "total_counted_bullets"
    BURST_COUNT = "burst_count"
    MEAN_ANGULAR_ERROR = "mean_angular_error"
    RECOIL_EFFICIENCY = "recoil_efficiency"
    RECOIL_SCORE = "recoil_score"
    RECOIL_INTERPRETATION = "recoil_interpretation"
    # Bullets analyzed per automatic weapon
    AK47_BULLETS = "ak47_bullets"
    M4A1_BULLETS = "m4a1_bullets"
    M4A1_SILENCER_BULLETS = "m4a1_silencer_bullets"
    FAMAS_BULLETS = "famas_bullets"
    GALILAR_BULLETS = "galilar_bullets"
    SG556_BULLETS = "sg556_bullets"
    AUG_BULLETS = "aug_bullets"
    MAC10_BULLETS = "mac10_bullets"
    MP9_BULLETS = "mp9_bullets"
    MP7_BULLETS = "mp7_bullets"
    MP5SD_BULLETS = "mp5sd_bullets"
    UMP45_BULLETS = "ump45_bullets"
    P90_BULLETS = "p90_bullets"
    BIZON_BULLETS = "bizon_bullets"
    NEGEV_BULLETS = "negev_bullets"
    M249_BULLETS = "m249_bullets"
    UNKNOWN_BULLETS = "unknown_bullets"


class GameInfoKey(StrEnum):
    ROUND_COUNT = "round_count"
    GAME_MODE = "game_mode"


class AntiCheatKey(StrEnum):
    HS_SCORE = "hs_score"
    SNAP_SCORE = "snap_score"
    REACTION_SCORE = "reaction_score"
    RECOIL_SCORE = "recoil_score"
    TOTAL_CHEAT_SCORE = "total_cheat_score"
    WINGMAN_BOOST = "wingman_boost"
    COMPETITIVE_BOOST = "competitive_boost"
    CHEAT_LIKELIHOOD = "cheat_likelihood"
    CHEATER = "cheater"


MetricKey = WeaponKey | KillKey | AimKey | ReactionKey | RecoilKey | GameInfoKey | AntiCheatKey

CATEGORY_KEYS: dict[Category, type[StrEnum]] = {
    Category.WEAPONS: WeaponKey,
    Category.KILLS: KillKey,
    Category.AIMING: AimKey,
    Category.REACTION: ReactionKey,
    Category.RECOIL: RecoilKey,
    Category.GAME_INFO: GameInfoKey,
    Category.ANTI_CHEAT: AntiCheatKey,
}


class MetricType(StrEnum):
    """Value tag of a Metric."""

    COUNT = "count"
    PERCENTAGE = "percentage"
    DURATION = "duration"
    FLOAT = "float"
    INTEGER = "integer"
    STRING = "string"


_INT_TYPES = (MetricType.COUNT, MetricType.INTEGER)
_FLOAT_TYPES = (MetricType.PERCENTAGE, MetricType.FLOAT)


@dataclass(frozen=True)
class Metric:
    """A single tagged statistical value."""

    type: MetricType
    value: int | float | timedelta | str
    description: str = ""

    def __post_init__(self) -> None:
        if self.type in _INT_TYPES:
            if isinstance(self.value, bool) or not isinstance(self.value, int):
                raise MetricTypeError(f"{self.type} metric needs an int, got {self.value!r}")
        elif self.type in _FLOAT_TYPES:
            if isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
                raise MetricTypeError(f"{self.type} metric needs a number, got {self.value!r}")
            object.__setattr__(self, "value", float(self.value))
        elif self.type == MetricType.DURATION:
            if not isinstance(self.value, timedelta):
                raise MetricTypeError(f"duration metric needs a timedelta, got {self.value!r}")
        elif not isinstance(self.value, str):
            raise MetricTypeError(f"string metric needs a str, got {self.value!r}")

    @classmethod
    def count(cls, value: int, description: str = "") -> Metric:
        return cls(MetricType.COUNT, value, description)

    @classmethod
    def integer(cls, value: int, description: str = "") -> Metric:
        return cls(MetricType.INTEGER, value, description)

    @classmethod
    def percentage(cls, value: float, description: str = "") -> Metric:
        return cls(MetricType.PERCENTAGE, value, description)

    @classmethod
    def floating(cls, value: float, description: str = "") -> Metric:
        return cls(MetricType.FLOAT, value, description)

    @classmethod
    def duration(cls, value: timedelta, description: str = "") -> Metric:
        return cls(MetricType.DURATION, value, description)

    @classmethod
    def text(cls, value: str, description: str = "") -> Metric:
        return cls(MetricType.STRING, value, description)

    @property
    def is_numeric(self) -> bool:
        return self.type in _INT_TYPES or self.type in _FLOAT_TYPES

    def as_float(self) -> float:
        """Numeric value as float (durations in milliseconds)."""
        if self.type == MetricType.DURATION:
            return self.value.total_seconds() * 1000.0
        if not self.is_numeric:
            raise MetricTypeError(f"{self.type} metric has no numeric value")
        return float(self.value)

    def as_int(self) -> int:
        if not self.is_numeric:
            raise MetricTypeError(f"{self.type} metric has no numeric value")
        return int(self.value)

    def format(self, precision: int = 2) -> str:
        """Format the value for display."""
        if self.type == MetricType.PERCENTAGE:
            return f"{self.value:.{precision}f}%"
        if self.type == MetricType.FLOAT:
            return f"{self.value:.{precision}f}"
        if self.type in _INT_TYPES:
            return str(self.value)
        return str(self.value)


def _check_key(category: Category, key: StrEnum) -> None:
    expected = CATEGORY_KEYS[category]
    if not isinstance(key, expected):
        raise MetricKeyError(f"{key!r} is not a {category.value} key")


class MetricStore:
    """Category -> key -> Metric mapping. Metrics are never removed."""

    def __init__(self) -> None:
        self._metrics: dict[Category, dict[StrEnum, Metric]] = {}

    def add(self, category: Category, key: MetricKey, metric: Metric) -> None:
        """Add or overwrite a metric."""
        _check_key(category, key)
        self._metrics.setdefault(category, {})[key] = metric

    def get(self, category: Category, key: MetricKey) -> Metric | None:
        """Retrieve a metric, or None if it was never written."""
        _check_key(category, key)
        return self._metrics.get(category, {}).get(key)

    def has(self, category: Category, key: MetricKey) -> bool:
        return self.get(category, key) is not None

    def get_float(self, category: Category, key: MetricKey, default: float = 0.0) -> float:
        """Numeric value of a metric, or default when absent."""
        metric = self.get(category, key)
        return default if metric is None else metric.as_float()

    def get_int(self, category: Category, key: MetricKey, default: int = 0) -> int:
        metric = self.get(category, key)
        return default if metric is None else metric.as_int()

    def get_str(self, category: Category, key: MetricKey, default: str = "") -> str:
        metric = self.get(category, key)
        return default if metric is None else str(metric.value)

    def increment_int(self, category: Category, key: MetricKey, description: str = "") -> None:
        """
        Add 1 to an integer metric, creating it at 1 if absent.

        Raises:
            MetricTypeError: if the existing metric is not integer-typed
        """
        existing = self.get(category, key)
        if existing is None:
            self.add(category, key, Metric.integer(1, description))
            return
        if existing.type not in _INT_TYPES:
            raise MetricTypeError(f"cannot increment {existing.type} metric {category}.{key}")
        self.add(category, key, Metric(existing.type, existing.value + 1, existing.description))

    def increment_float(
        self, category: Category, key: MetricKey, delta: float, description: str = ""
    ) -> None:
        """
        Add delta to a float metric, creating it at delta if absent.

        Raises:
            MetricTypeError: if the existing metric is not float-typed
        """
        existing = self.get(category, key)
        if existing is None:
            self.add(category, key, Metric.floating(delta, description))
            return
        if existing.type not in _FLOAT_TYPES:
            raise MetricTypeError(f"cannot add to {existing.type} metric {category}.{key}")
        self.add(category, key, Metric(existing.type, existing.value + delta, existing.description))

    def categories(self) -> list[Category]:
        return list(self._metrics)

    def items(self, category: Category) -> Iterator[tuple[StrEnum, Metric]]:
        """Iterate (key, metric) pairs of one category."""
        yield from self._metrics.get(category, {}).items()

    def to_dict(self) -> dict[str, dict[str, Any]]:
        """Plain nested dict of raw values, for export."""
        result: dict[str, dict[str, Any]] = {}
        for category, metrics in self._metrics.items():
            result[category.value] = {
                key.value: (m.as_float() if m.type == MetricType.DURATION else m.value)
                for key, m in metrics.items()
            }
        return result


@dataclass(frozen=True)
class PlayerIdentity:
    """Fixed identity of a player for the whole run."""

    steam_id: int
    name: str


class PlayerStats(MetricStore):
    """All metrics of one player."""

    def __init__(self, identity: PlayerIdentity) -> None:
        super().__init__()
        self._identity = identity

    @property
    def identity(self) -> PlayerIdentity:
        return self._identity

    @property
    def steam_id(self) -> int:
        return self._identity.steam_id

    @property
    def name(self) -> str:
        return self._identity.name

    def __repr__(self) -> str:
        return f"PlayerStats({self.name}, {self.steam_id}, categories={self.categories()})"


@dataclass
class DemoStats:
    """
    Statistics for every player of one replay.

    Replay-wide values (round count, game mode) live in `replay`, a metric
    store of their own, not under a fake player.
    """

    tick_rate: float = 64.0
    tick_count: int = 0
    demo_name: str = ""
    map_name: str = ""
    players: dict[int, PlayerStats] = field(default_factory=dict)
    replay: MetricStore = field(default_factory=MetricStore)

    def player(self, steam_id: int, name: str | None = None) -> PlayerStats:
        """
        Get a player's stats, creating them on first observation.

        The name is only used at creation; identities never change afterwards.

        Raises:
            ValueError: if steam_id is not a valid (positive) player ID
        """
        if not validate_steamid(steam_id):
            raise ValueError(f"Invalid player id: {steam_id!r}")
        steam_id = int(steam_id)
        stats = self.players.get(steam_id)
        if stats is None:
            stats = PlayerStats(PlayerIdentity(steam_id, name or "Unknown"))
            self.players[steam_id] = stats
            logger.debug(f"Tracking new player {stats.name} ({steam_id})")
        return stats

    def find(self, steam_id: int) -> PlayerStats | None:
        """Get a player's stats without creating them."""
        return self.players.get(steam_id)

    def __iter__(self) -> Iterator[PlayerStats]:
        return iter(self.players.values())

    def __len__(self) -> int:
        return len(self.players)
