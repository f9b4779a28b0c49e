"""
Analysis pipeline.

Drives a replay through the registered detectors:

1. setup hooks, in execution order (detectors subscribe to events)
2. for each frame in tick order: every tick hook, then the frame's events
   published one by one to the subscribed detectors
3. finalize hooks, in execution order

A hook that raises is logged and skipped; the run goes on without it and
the detector simply leaves out the metrics it could not compute. A detector
whose setup fails gets no tick or finalize hooks. Only a replay read
failure (ReplayParseError) aborts.

Execution order is registration order, except that a detector always runs
after the detectors named in its depends_on.

Usage:
    from demoguard.pipeline import default_pipeline
    from demoguard.replay import InMemoryReplay

    result = default_pipeline().run(InMemoryReplay(frames))
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from demoguard.core.config import DemoGuardConfig
from demoguard.core.constants import CS2_TICK_RATE
from demoguard.core.utils import PerformanceMonitor, timed
from demoguard.detectors.base import Detector, SetupContext
from demoguard.detectors.game_mode import GameModeDetector
from demoguard.detectors.headshots import HeadshotDetector
from demoguard.detectors.reaction import ReactionTimeDetector
from demoguard.detectors.recoil import RecoilControlDetector
from demoguard.detectors.scoring import CheatScorer
from demoguard.detectors.snap import SnapAngleDetector
from demoguard.detectors.weapons import WeaponUsageDetector
from demoguard.replay.events import GameEvent
from demoguard.replay.source import EventBus, EventHandler, ReplayParseError, ReplaySource
from demoguard.stats.models import Category, DemoStats

logger = logging.getLogger(__name__)

# Called with the number of frames processed so far
ProgressCallback = Callable[[int], None]


class PipelineError(Exception):
    """Detectors are wired incorrectly (duplicate name, unknown dependency, cycle)."""


@dataclass
class AnalysisResult:
    """Everything a run produced."""

    stats: DemoStats
    categories: list[Category] = field(default_factory=list)
    # detector name -> number of hook calls that raised
    failures: dict[str, int] = field(default_factory=dict)


class AnalysisPipeline:
    """
    Ordered set of detectors run over one replay.

    Detectors keep per-run state, so a pipeline instance analyzes a single
    replay; build a new one (e.g. with default_pipeline()) for the next.
    """

    def __init__(self, detectors: Iterable[Detector] = ()):
        self._detectors: list[Detector] = []
        self._active: list[Detector] | None = None
        self._failures: dict[str, int] = {}
        for detector in detectors:
            self.register(detector)

    def register(self, detector: Detector) -> None:
        if any(d.name == detector.name for d in self._detectors):
            raise PipelineError(f"Detector already registered: {detector.name}")
        self._detectors.append(detector)
        logger.debug(f"Registered detector {detector.name}")

    @property
    def detectors(self) -> list[Detector]:
        return list(self._detectors)

    def execution_order(self) -> list[Detector]:
        """
        Stable topological order of the registered detectors.

        Raises:
            PipelineError: on an unknown dependency or a dependency cycle
        """
        names = {d.name for d in self._detectors}
        for detector in self._detectors:
            for dep in detector.depends_on:
                if dep not in names:
                    raise PipelineError(f"{detector.name} depends on unknown detector {dep!r}")

        ordered: list[Detector] = []
        placed: set[str] = set()
        pending = list(self._detectors)
        while pending:
            for detector in pending:
                if all(dep in placed for dep in detector.depends_on):
                    ordered.append(detector)
                    placed.add(detector.name)
                    pending.remove(detector)
                    break
            else:
                stuck = ", ".join(d.name for d in pending)
                raise PipelineError(f"Dependency cycle among detectors: {stuck}")
        return ordered

    def categories(self) -> list[Category]:
        """Categories of all detectors in execution order, without duplicates."""
        seen: list[Category] = []
        for detector in self.execution_order():
            for category in detector.categories:
                if category not in seen:
                    seen.append(category)
        return seen

    @timed
    def run(self, source: ReplaySource, progress: ProgressCallback | None = None) -> AnalysisResult:
        """
        Analyze a complete replay.

        Args:
            source: Replay to read, start to finish
            progress: Optional callback receiving the running frame count

        Returns:
            AnalysisResult with the filled DemoStats and the reported categories

        Raises:
            PipelineError: if the detectors cannot be ordered
            ReplayParseError: if the source fails to read the replay
        """
        order = self.execution_order()
        # Sources may parse lazily; metadata is only reliable after frames()
        frames = source.frames()
        tick_rate = source.tick_rate if source.tick_rate and source.tick_rate > 0 else CS2_TICK_RATE
        stats = DemoStats(tick_rate=tick_rate)
        self._failures = {}
        bus = EventBus(on_error=self._handler_failed)
        context = SetupContext(
            tick_rate=tick_rate,
            map_name=source.map_name,
            demo_name=source.demo_name,
            events=bus,
        )

        logger.info(f"Setting up {len(order)} detectors: {', '.join(d.name for d in order)}")
        self._active = [d for d in order if self._call(d, "setup", context, stats)]

        frame_count = 0
        with PerformanceMonitor("Processing frames"):
            for frame in frames:
                for detector in self._active:
                    self._call(detector, "process_tick", frame, stats)
                for event in frame.events:
                    bus.publish(event)
                frame_count += 1
                if progress is not None:
                    progress(frame_count)

        stats.tick_count = frame_count
        stats.map_name = source.map_name
        stats.demo_name = source.demo_name
        logger.info(f"Processed {frame_count} frames, {len(stats)} players observed")

        self.finalize(stats)
        if self._failures:
            summary = ", ".join(f"{name} ({count})" for name, count in self._failures.items())
            logger.warning(f"Detectors with failed hooks: {summary}")
        return AnalysisResult(stats=stats, categories=self.categories(), failures=dict(self._failures))

    def finalize(self, stats: DemoStats, order: list[Detector] | None = None) -> None:
        """Run every finalize hook in execution order. Safe to call again."""
        if order is None:
            order = self._active if self._active is not None else self.execution_order()
        with PerformanceMonitor("Finalizing detectors"):
            for detector in order:
                logger.debug(f"Finalizing {detector.name}")
                self._call(detector, "finalize", stats)

    def _call(self, detector: Detector, hook: str, *args) -> bool:
        """Run one detector hook. Returns False if it raised."""
        try:
            getattr(detector, hook)(*args)
            return True
        except ReplayParseError:
            raise
        except Exception as e:
            self._record_failure(detector.name, hook, e)
            return False

    def _handler_failed(self, handler: EventHandler, event: GameEvent, error: Exception) -> None:
        owner = getattr(handler, "__self__", None)
        name = getattr(owner, "name", None) or getattr(handler, "__qualname__", repr(handler))
        self._record_failure(name, f"{event.kind.value} handler at tick {event.tick}", error)

    def _record_failure(self, name: str, hook: str, error: Exception) -> None:
        count = self._failures.get(name, 0) + 1
        self._failures[name] = count
        message = f"Detector {name} failed in {hook}: {error}"
        # A broken hook fails on every frame; only the first one is a warning
        if count == 1:
            logger.warning(message)
        else:
            logger.debug(message)


def default_pipeline(config: DemoGuardConfig | None = None) -> AnalysisPipeline:
    """Pipeline with every built-in detector, tuned by config."""
    config = config or DemoGuardConfig()
    det = config.detection
    return AnalysisPipeline(
        [
            WeaponUsageDetector(),
            HeadshotDetector(),
            SnapAngleDetector(
                buffer_size=det.snap_buffer_size,
                settle_threshold=det.snap_settle_threshold_deg,
                min_samples=det.snap_min_samples,
            ),
            ReactionTimeDetector(
                fov_degrees=det.reaction_fov_degrees,
                max_reaction_ms=det.reaction_max_ms,
                min_samples=det.reaction_min_samples,
            ),
            RecoilControlDetector(
                max_burst_gap=det.recoil_max_burst_gap_ticks,
                min_burst_size=det.recoil_min_burst_size,
                max_bullet_index=det.recoil_max_bullet_index,
                min_bullets=det.recoil_min_bullets,
                min_bursts=det.recoil_min_bursts,
                perfect_error=det.recoil_perfect_error_deg,
                good_error=det.recoil_good_error_deg,
                poor_error=det.recoil_poor_error_deg,
            ),
            GameModeDetector(),
            CheatScorer(config.scoring),
        ]
    )
