"""
Aim snap detector.

Keeps a short history of every player's view angles. When a player gets a
kill, the history is walked backwards from the kill tick to the point where
the aim last "settled" (two consecutive samples nearly identical); the angle
covered from there to the kill, divided by the time it took, is the snap
velocity in degrees per millisecond.

Human flicks rarely exceed ~2 deg/ms at the 95th percentile; aimbots that
lock on in one or two ticks produce much higher values.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from demoguard.core.geometry import angular_delta, percentile_value, ticks_to_ms
from demoguard.detectors.base import BaseDetector, SetupContext
from demoguard.replay.events import EventKind, KillEvent, TickFrame
from demoguard.stats.models import AimKey, Category, DemoStats, Metric

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewAngleSample:
    tick: int
    yaw: float
    pitch: float


class ViewAngleRingBuffer:
    """Fixed-capacity buffer of view angle samples; the oldest is overwritten."""

    def __init__(self, capacity: int):
        if capacity < 2:
            raise ValueError(f"Ring buffer capacity must be at least 2, got {capacity}")
        self.capacity = capacity
        self._samples: list[ViewAngleSample | None] = [None] * capacity
        self._cursor = 0
        self._size = 0

    def push(self, sample: ViewAngleSample) -> None:
        self._samples[self._cursor] = sample
        self._cursor = (self._cursor + 1) % self.capacity
        self._size = min(self._size + 1, self.capacity)

    def latest(self, n: int) -> list[ViewAngleSample]:
        """Up to n most recent samples, most recent first."""
        n = min(n, self._size)
        return [self._samples[(self._cursor - i - 1) % self.capacity] for i in range(n)]

    def __len__(self) -> int:
        return self._size


def find_snap_start(recent: list[ViewAngleSample], settle_threshold: float) -> ViewAngleSample:
    """
    Find the sample where the aim settled before the most recent one.

    recent is ordered most recent first. The first pair (recent[i], recent[i+1])
    with i >= 1 whose angular distance is below settle_threshold marks the start
    (the older sample of the pair). Without such a pair the oldest sample is used.
    """
    for i in range(1, len(recent) - 1):
        current, previous = recent[i], recent[i + 1]
        if angular_delta(previous.yaw, previous.pitch, current.yaw, current.pitch) < settle_threshold:
            return previous
    return recent[-1]


def snap_velocity(
    start: ViewAngleSample, end: ViewAngleSample, tick_rate: float
) -> float:
    """Degrees per millisecond between two samples; elapsed time is at least one tick."""
    tick_delta = max(1, end.tick - start.tick)
    elapsed_ms = ticks_to_ms(tick_delta, tick_rate)
    delta = angular_delta(start.yaw, start.pitch, end.yaw, end.pitch)
    return delta / elapsed_ms if elapsed_ms > 0 else 0.0


class SnapAngleDetector(BaseDetector):
    name = "snap"
    categories = (Category.AIMING,)

    def __init__(self, buffer_size: int = 40, settle_threshold: float = 0.2, min_samples: int = 5):
        super().__init__()
        self.buffer_size = buffer_size
        self.settle_threshold = settle_threshold
        self.min_samples = min_samples
        self._buffers: dict[int, ViewAngleRingBuffer] = {}
        self._velocities: dict[int, list[float]] = {}
        self._stats: DemoStats | None = None

    def setup(self, context: SetupContext, stats: DemoStats) -> None:
        super().setup(context, stats)
        self._stats = stats
        context.events.subscribe(EventKind.KILL, self.on_kill)

    def process_tick(self, frame: TickFrame, stats: DemoStats) -> None:
        for snapshot in frame.playing():
            buffer = self._buffers.get(snapshot.steam_id)
            if buffer is None:
                buffer = ViewAngleRingBuffer(self.buffer_size)
                self._buffers[snapshot.steam_id] = buffer
            buffer.push(ViewAngleSample(frame.tick, snapshot.yaw, snapshot.pitch))

    def on_kill(self, event: KillEvent) -> None:
        if not event.is_enemy_kill:
            return

        buffer = self._buffers.get(event.killer_id)
        if buffer is None or len(buffer) < self.min_samples:
            return

        recent = buffer.latest(self.buffer_size)
        start = find_snap_start(recent, self.settle_threshold)
        velocity = snap_velocity(start, recent[0], self.tick_rate)

        if velocity > 0 and math.isfinite(velocity):
            self._velocities.setdefault(event.killer_id, []).append(velocity)
            logger.debug(
                f"Snap {event.killer_name}: {velocity:.3f} deg/ms over ticks {start.tick}-{recent[0].tick}"
            )

        killer = self._stats.player(event.killer_id, event.killer_name)
        killer.increment_int(Category.AIMING, AimKey.SNAPPED_KILLS, "Kills analyzed for aim snap")

    def finalize(self, stats: DemoStats) -> None:
        for steam_id, velocities in self._velocities.items():
            if not velocities:
                continue
            ordered = sorted(velocities)
            player = stats.player(steam_id)

            player.add(
                Category.AIMING,
                AimKey.P95_SNAP_VELOCITY,
                Metric.floating(
                    percentile_value(ordered, 0.95), "95th percentile of aim snap velocity in degrees/ms"
                ),
            )
            player.add(
                Category.AIMING,
                AimKey.MEDIAN_SNAP_VELOCITY,
                Metric.floating(ordered[len(ordered) // 2], "Median of aim snap velocity in degrees/ms"),
            )
            player.add(
                Category.AIMING,
                AimKey.AVG_SNAP_VELOCITY,
                Metric.floating(sum(ordered) / len(ordered), "Average aim snap velocity in degrees/ms"),
            )
            player.add(
                Category.AIMING,
                AimKey.SNAP_COUNT,
                Metric.integer(len(ordered), "Number of aim snaps analyzed"),
            )
