"""
Recoil control detector.

Follows every automatic-weapon spray shot by shot. The view angle at the
first bullet is the reference; at bullet N a perfect player is aiming at
reference minus the weapon's cumulative recoil offset for N. The mean
distance between that expected aim and the actual aim, over many bullets,
measures how mechanically the recoil was compensated. No-recoil scripts
land well below what human hands manage.

Per-player burst tracking is an explicit state machine:

    phase      trigger        -> phase      action
    IDLE       FIRE_GAP          IN_BURST   start
    IN_BURST   FIRE_CONTINUE     IN_BURST   advance
    IN_BURST   FIRE_GAP          IN_BURST   restart (close, then start)
    IN_BURST   EXPIRED           IDLE       close
    IN_BURST   KILLED            IDLE       discard
    IN_BURST   ROUND_END         IDLE       discard

Anything else leaves the state untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from demoguard.core.geometry import angular_delta, linear_score
from demoguard.core.utils import validate_steamid
from demoguard.core.weapons import is_automatic_weapon, normalize_weapon_name
from demoguard.detectors.base import BaseDetector, SetupContext
from demoguard.detectors.spray_patterns import recoil_offset
from demoguard.replay.events import EventKind, KillEvent, RoundEndEvent, TickFrame, WeaponFireEvent
from demoguard.stats.models import Category, DemoStats, Metric, PlayerStats, RecoilKey

logger = logging.getLogger(__name__)

INSUFFICIENT_DATA = "Insufficient data"


class BurstPhase(Enum):
    IDLE = "idle"
    IN_BURST = "in_burst"


class BurstTrigger(Enum):
    FIRE_CONTINUE = "fire_continue"  # automatic shot within the gap window
    FIRE_GAP = "fire_gap"  # automatic shot with no burst to continue
    KILLED = "killed"
    ROUND_END = "round_end"
    EXPIRED = "expired"  # no shot for longer than the gap window


class BurstAction(Enum):
    START = "start"
    ADVANCE = "advance"
    RESTART = "restart"
    CLOSE = "close"
    DISCARD = "discard"


TRANSITIONS: dict[tuple[BurstPhase, BurstTrigger], tuple[BurstPhase, BurstAction]] = {
    (BurstPhase.IDLE, BurstTrigger.FIRE_GAP): (BurstPhase.IN_BURST, BurstAction.START),
    (BurstPhase.IN_BURST, BurstTrigger.FIRE_CONTINUE): (BurstPhase.IN_BURST, BurstAction.ADVANCE),
    (BurstPhase.IN_BURST, BurstTrigger.FIRE_GAP): (BurstPhase.IN_BURST, BurstAction.RESTART),
    (BurstPhase.IN_BURST, BurstTrigger.EXPIRED): (BurstPhase.IDLE, BurstAction.CLOSE),
    (BurstPhase.IN_BURST, BurstTrigger.KILLED): (BurstPhase.IDLE, BurstAction.DISCARD),
    (BurstPhase.IN_BURST, BurstTrigger.ROUND_END): (BurstPhase.IDLE, BurstAction.DISCARD),
}


@dataclass
class BurstState:
    """One player's spray in progress."""

    phase: BurstPhase = BurstPhase.IDLE
    weapon: str = ""
    start_tick: int = 0
    reference_yaw: float = 0.0
    reference_pitch: float = 0.0
    bullet_index: int = 0
    last_fire_tick: int = 0
    error_sum: float = 0.0
    counted_bullets: int = 0

    def begin(self, event: WeaponFireEvent) -> None:
        self.weapon = event.weapon
        self.start_tick = event.tick
        self.reference_yaw = event.yaw
        self.reference_pitch = event.pitch
        self.bullet_index = 1
        self.last_fire_tick = event.tick
        self.error_sum = 0.0
        self.counted_bullets = 0

    def reset(self) -> None:
        self.bullet_index = 0
        self.error_sum = 0.0
        self.counted_bullets = 0


def weapon_bullets_key(weapon_name: str | None) -> RecoilKey:
    """Per-weapon bullet counter key, e.g. "ak47_bullets"; unlisted weapons share "unknown_bullets"."""
    try:
        return RecoilKey(f"{normalize_weapon_name(weapon_name)}_bullets")
    except ValueError:
        return RecoilKey.UNKNOWN_BULLETS


def interpret_recoil(mean_error: float, perfect: float, good: float, poor: float) -> str:
    if mean_error <= perfect:
        return "Suspiciously perfect recoil control"
    if mean_error <= good:
        return "Very good recoil control"
    if mean_error >= poor:
        return "Poor recoil control"
    return "Normal recoil control"


class RecoilControlDetector(BaseDetector):
    name = "recoil"
    categories = (Category.RECOIL,)

    def __init__(
        self,
        max_burst_gap: int = 6,
        min_burst_size: int = 4,
        max_bullet_index: int = 30,
        min_bullets: int = 7,
        min_bursts: int = 1,
        perfect_error: float = 0.3,
        good_error: float = 0.7,
        poor_error: float = 1.0,
    ):
        super().__init__()
        self.max_burst_gap = max_burst_gap
        self.min_burst_size = min_burst_size
        self.max_bullet_index = max_bullet_index
        self.min_bullets = min_bullets
        self.min_bursts = min_bursts
        self.perfect_error = perfect_error
        self.good_error = good_error
        self.poor_error = poor_error
        self._states: dict[int, BurstState] = {}
        self._names: dict[int, str] = {}
        self._stats: DemoStats | None = None

    def setup(self, context: SetupContext, stats: DemoStats) -> None:
        super().setup(context, stats)
        self._stats = stats
        context.events.subscribe(EventKind.WEAPON_FIRE, self.on_weapon_fire)
        context.events.subscribe(EventKind.KILL, self.on_kill)
        context.events.subscribe(EventKind.ROUND_END, self.on_round_end)

    def phase_of(self, steam_id: int) -> BurstPhase:
        state = self._states.get(steam_id)
        return state.phase if state else BurstPhase.IDLE

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _transition(
        self, steam_id: int, trigger: BurstTrigger, event: WeaponFireEvent | None = None
    ) -> None:
        state = self._states.setdefault(steam_id, BurstState())
        transition = TRANSITIONS.get((state.phase, trigger))
        if transition is None:
            return

        next_phase, action = transition
        if action == BurstAction.START:
            state.begin(event)
        elif action == BurstAction.ADVANCE:
            self._advance(state, event)
        elif action == BurstAction.RESTART:
            self._close(steam_id, state)
            state.begin(event)
        elif action == BurstAction.CLOSE:
            self._close(steam_id, state)
        elif action == BurstAction.DISCARD:
            state.reset()
        state.phase = next_phase

    def _advance(self, state: BurstState, event: WeaponFireEvent) -> None:
        state.bullet_index += 1
        state.last_fire_tick = event.tick
        if not self.min_burst_size <= state.bullet_index <= self.max_bullet_index:
            return

        yaw_offset, pitch_offset = recoil_offset(state.weapon, state.bullet_index)
        expected_yaw = state.reference_yaw - yaw_offset
        expected_pitch = state.reference_pitch - pitch_offset
        error = angular_delta(expected_yaw, expected_pitch, event.yaw, event.pitch)
        state.error_sum += error
        state.counted_bullets += 1

    def _close(self, steam_id: int, state: BurstState) -> None:
        """Add a finished burst into the player's totals if it is long enough."""
        if state.bullet_index >= self.min_burst_size and state.counted_bullets > 0:
            player = self._stats.player(steam_id, self._names.get(steam_id))
            player.increment_float(
                Category.RECOIL,
                RecoilKey.TOTAL_ERROR_SUM,
                state.error_sum,
                "Total angular error sum in degrees",
            )
            bullets = player.get_int(Category.RECOIL, RecoilKey.TOTAL_COUNTED_BULLETS)
            player.add(
                Category.RECOIL,
                RecoilKey.TOTAL_COUNTED_BULLETS,
                Metric.integer(
                    bullets + state.counted_bullets, "Total bullets analyzed for recoil control"
                ),
            )
            player.increment_int(Category.RECOIL, RecoilKey.BURST_COUNT, "Bursts analyzed")
            weapon_key = weapon_bullets_key(state.weapon)
            weapon_bullets = player.get_int(Category.RECOIL, weapon_key)
            player.add(
                Category.RECOIL,
                weapon_key,
                Metric.integer(
                    weapon_bullets + state.counted_bullets,
                    f"Bullets analyzed for {normalize_weapon_name(state.weapon) or 'unknown weapon'}",
                ),
            )
            logger.debug(
                f"Burst closed for {steam_id}: {state.counted_bullets} bullets, "
                f"mean error {state.error_sum / state.counted_bullets:.2f} deg"
            )
        state.reset()

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def on_weapon_fire(self, event: WeaponFireEvent) -> None:
        if not validate_steamid(event.shooter_id) or not is_automatic_weapon(event.weapon):
            return

        self._names.setdefault(event.shooter_id, event.shooter_name)
        state = self._states.get(event.shooter_id)
        if (
            state is not None
            and state.phase == BurstPhase.IN_BURST
            and event.tick - state.last_fire_tick <= self.max_burst_gap
        ):
            trigger = BurstTrigger.FIRE_CONTINUE
        else:
            trigger = BurstTrigger.FIRE_GAP
        self._transition(event.shooter_id, trigger, event)

    def on_kill(self, event: KillEvent) -> None:
        if event.victim_id in self._states:
            self._transition(event.victim_id, BurstTrigger.KILLED)

    def on_round_end(self, event: RoundEndEvent) -> None:
        for steam_id in list(self._states):
            self._transition(steam_id, BurstTrigger.ROUND_END)

    def process_tick(self, frame: TickFrame, stats: DemoStats) -> None:
        for steam_id, state in self._states.items():
            if state.phase == BurstPhase.IN_BURST and frame.tick - state.last_fire_tick > self.max_burst_gap:
                self._transition(steam_id, BurstTrigger.EXPIRED)

    def finalize(self, stats: DemoStats) -> None:
        for steam_id in list(self._states):
            self._transition(steam_id, BurstTrigger.EXPIRED)

        for player in stats:
            if not player.has(Category.RECOIL, RecoilKey.TOTAL_COUNTED_BULLETS):
                continue
            self._write_summary(player)

    def _write_summary(self, player: PlayerStats) -> None:
        bullets = player.get_int(Category.RECOIL, RecoilKey.TOTAL_COUNTED_BULLETS)
        bursts = player.get_int(Category.RECOIL, RecoilKey.BURST_COUNT)

        if bullets < self.min_bullets or bursts < self.min_bursts or bullets <= 0:
            player.add(
                Category.RECOIL,
                RecoilKey.MEAN_ANGULAR_ERROR,
                Metric.floating(0.0, "Mean angular error in recoil control (degrees) - insufficient data"),
            )
            player.add(
                Category.RECOIL,
                RecoilKey.RECOIL_EFFICIENCY,
                Metric.percentage(0.0, "Recoil control efficiency - insufficient data"),
            )
            player.add(
                Category.RECOIL,
                RecoilKey.RECOIL_INTERPRETATION,
                Metric.text(INSUFFICIENT_DATA, "Interpretation of recoil control ability"),
            )
            return

        error_sum = player.get_float(Category.RECOIL, RecoilKey.TOTAL_ERROR_SUM)
        mean_error = error_sum / bullets
        # Both map the "perfect" threshold to 1 and the "poor" threshold to 0
        score = linear_score(mean_error, self.poor_error, self.perfect_error)

        player.add(
            Category.RECOIL,
            RecoilKey.MEAN_ANGULAR_ERROR,
            Metric.floating(mean_error, "Mean angular error in recoil control (degrees)"),
        )
        player.add(
            Category.RECOIL,
            RecoilKey.RECOIL_EFFICIENCY,
            Metric.percentage(score * 100.0, "Recoil control efficiency (higher is more suspicious)"),
        )
        player.add(
            Category.RECOIL,
            RecoilKey.RECOIL_SCORE,
            Metric.floating(score, "Recoil score component for cheat detection (0-1)"),
        )
        player.add(
            Category.RECOIL,
            RecoilKey.RECOIL_INTERPRETATION,
            Metric.text(
                interpret_recoil(mean_error, self.perfect_error, self.good_error, self.poor_error),
                "Interpretation of recoil control ability",
            ),
        )
