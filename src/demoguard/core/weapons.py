"""
Weapon classification helpers.

Normalizes the weapon names emitted by demo parsers ("weapon_ak47", "AK-47",
"ak47") to a single short form and answers the two questions the detectors
ask: is the held item a knife, and does the weapon fire automatically.
"""

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class HeldItem(Enum):
    """Coarse classification of the item a player is holding."""

    KNIFE = "knife"
    WEAPON = "weapon"
    NONE = "none"


class WeaponCategory(Enum):
    """CS2 weapon categories."""

    PISTOL = "pistol"
    SMG = "smg"
    RIFLE = "rifle"
    SNIPER = "sniper"
    SHOTGUN = "shotgun"
    MACHINE_GUN = "machine_gun"
    KNIFE = "knife"
    GRENADE = "grenade"
    EQUIPMENT = "equipment"
    UNKNOWN = "unknown"


WEAPON_CATEGORIES: dict[str, WeaponCategory] = {
    "usp_silencer": WeaponCategory.PISTOL,
    "hkp2000": WeaponCategory.PISTOL,
    "glock": WeaponCategory.PISTOL,
    "p250": WeaponCategory.PISTOL,
    "tec9": WeaponCategory.PISTOL,
    "fiveseven": WeaponCategory.PISTOL,
    "cz75a": WeaponCategory.PISTOL,
    "deagle": WeaponCategory.PISTOL,
    "revolver": WeaponCategory.PISTOL,
    "elite": WeaponCategory.PISTOL,
    "mac10": WeaponCategory.SMG,
    "mp9": WeaponCategory.SMG,
    "mp7": WeaponCategory.SMG,
    "ump45": WeaponCategory.SMG,
    "p90": WeaponCategory.SMG,
    "bizon": WeaponCategory.SMG,
    "mp5sd": WeaponCategory.SMG,
    "ak47": WeaponCategory.RIFLE,
    "m4a1": WeaponCategory.RIFLE,
    "m4a1_silencer": WeaponCategory.RIFLE,
    "famas": WeaponCategory.RIFLE,
    "galilar": WeaponCategory.RIFLE,
    "sg556": WeaponCategory.RIFLE,
    "aug": WeaponCategory.RIFLE,
    "awp": WeaponCategory.SNIPER,
    "ssg08": WeaponCategory.SNIPER,
    "scar20": WeaponCategory.SNIPER,
    "g3sg1": WeaponCategory.SNIPER,
    "nova": WeaponCategory.SHOTGUN,
    "xm1014": WeaponCategory.SHOTGUN,
    "mag7": WeaponCategory.SHOTGUN,
    "sawedoff": WeaponCategory.SHOTGUN,
    "m249": WeaponCategory.MACHINE_GUN,
    "negev": WeaponCategory.MACHINE_GUN,
    "knife": WeaponCategory.KNIFE,
    "hegrenade": WeaponCategory.GRENADE,
    "flashbang": WeaponCategory.GRENADE,
    "smokegrenade": WeaponCategory.GRENADE,
    "molotov": WeaponCategory.GRENADE,
    "incgrenade": WeaponCategory.GRENADE,
    "decoy": WeaponCategory.GRENADE,
    "c4": WeaponCategory.EQUIPMENT,
    "taser": WeaponCategory.EQUIPMENT,
}

# Display names seen in demoinfo-style parsers and kill feeds
WEAPON_ALIASES: dict[str, str] = {
    "ak-47": "ak47",
    "m4a4": "m4a1",
    "m4a1-s": "m4a1_silencer",
    "galil ar": "galilar",
    "galil": "galilar",
    "sg 553": "sg556",
    "sg553": "sg556",
    "sg 556": "sg556",
    "mac-10": "mac10",
    "ump-45": "ump45",
    "pp-bizon": "bizon",
    "mp5-sd": "mp5sd",
    "p2000": "hkp2000",
    "desert eagle": "deagle",
    "dual berettas": "elite",
    "five-seven": "fiveseven",
    "cz75-auto": "cz75a",
    "r8 revolver": "revolver",
    "zeus x27": "taser",
}

KNIFE_NAMES = {"knife", "knife_t", "bayonet", "karambit", "m9_bayonet", "knifegg"}
# Skin names without "knife" in them (Shadow Daggers, M9 Bayonet, ...)
KNIFE_NAME_PARTS = ("knife", "bayonet", "dagger", "karambit")

# Full-auto weapons whose spray pattern can be compensated
AUTOMATIC_WEAPONS = {
    "ak47",
    "m4a1",
    "m4a1_silencer",
    "famas",
    "galilar",
    "sg556",
    "aug",
    "mac10",
    "mp9",
    "mp7",
    "mp5sd",
    "ump45",
    "p90",
    "bizon",
    "negev",
    "m249",
}


def normalize_weapon_name(weapon_name: str | None) -> str:
    """
    Normalize a parser weapon name to its short form.

    Args:
        weapon_name: Raw weapon name ("weapon_ak47", "AK-47", ...)

    Returns:
        Short lowercase name ("ak47"), or "" for missing input
    """
    if not weapon_name:
        return ""

    name = str(weapon_name).strip().lower()
    if name.startswith("weapon_"):
        name = name[len("weapon_"):]
    return WEAPON_ALIASES.get(name, name)


def is_knife(weapon_name: str | None) -> bool:
    """Check if a weapon name refers to any knife skin."""
    name = normalize_weapon_name(weapon_name)
    if not name:
        return False
    return name in KNIFE_NAMES or any(part in name for part in KNIFE_NAME_PARTS)


def classify_held_item(weapon_name: str | None) -> HeldItem:
    """Classify the held item as knife, other weapon, or nothing."""
    if not normalize_weapon_name(weapon_name):
        return HeldItem.NONE
    if is_knife(weapon_name):
        return HeldItem.KNIFE
    return HeldItem.WEAPON


def classify_weapon(weapon_name: str | None) -> WeaponCategory:
    """Get the category of a weapon."""
    if is_knife(weapon_name):
        return WeaponCategory.KNIFE
    return WEAPON_CATEGORIES.get(normalize_weapon_name(weapon_name), WeaponCategory.UNKNOWN)


def is_automatic_weapon(weapon_name: str | None) -> bool:
    """
    Check if a weapon fires automatically.

    Known full-auto weapons match by name; unknown rifles and SMGs (new
    additions to the game) are treated as automatic too.
    """
    name = normalize_weapon_name(weapon_name)
    if name in AUTOMATIC_WEAPONS:
        return True
    return classify_weapon(name) in (WeaponCategory.SMG, WeaponCategory.RIFLE)
