"""
DemoGuard Stats - the metrics store shared by all detectors.
"""

from demoguard.stats.models import (
    CATEGORY_KEYS,
    AimKey,
    AntiCheatKey,
    Category,
    DemoStats,
    GameInfoKey,
    KillKey,
    Metric,
    MetricKeyError,
    MetricStore,
    MetricType,
    MetricTypeError,
    PlayerIdentity,
    PlayerStats,
    ReactionKey,
    RecoilKey,
    WeaponKey,
)

__all__ = [
    "CATEGORY_KEYS",
    "AimKey",
    "AntiCheatKey",
    "Category",
    "DemoStats",
    "GameInfoKey",
    "KillKey",
    "Metric",
    "MetricKeyError",
    "MetricStore",
    "MetricType",
    "MetricTypeError",
    "PlayerIdentity",
    "PlayerStats",
    "ReactionKey",
    "RecoilKey",
    "WeaponKey",
]
