"""
DemoGuard Detectors - per-player behaviour analysis.

This module contains:
- base: Detector contract and setup context
- weapons: Knife / weapon / empty-handed time share
- headshots: Kill and headshot counts
- snap: Aim snap velocity before kills
- reaction: Time from enemy entering FOV to first shot
- recoil: Spray control against known recoil patterns
- game_mode: Round count and Wingman / Competitive detection
- scoring: Composite cheat likelihood
"""

from demoguard.detectors.base import BaseDetector, Detector, SetupContext
from demoguard.detectors.game_mode import GameModeDetector
from demoguard.detectors.headshots import HeadshotDetector
from demoguard.detectors.reaction import ReactionTimeDetector
from demoguard.detectors.recoil import BurstPhase, RecoilControlDetector
from demoguard.detectors.scoring import CheatScorer, ScoreBreakdown
from demoguard.detectors.snap import SnapAngleDetector, ViewAngleRingBuffer
from demoguard.detectors.weapons import WeaponUsageDetector

__all__ = [
    "BaseDetector",
    "Detector",
    "SetupContext",
    "GameModeDetector",
    "HeadshotDetector",
    "ReactionTimeDetector",
    "BurstPhase",
    "RecoilControlDetector",
    "CheatScorer",
    "ScoreBreakdown",
    "SnapAngleDetector",
    "ViewAngleRingBuffer",
    "WeaponUsageDetector",
]
