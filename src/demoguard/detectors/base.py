"""
Detector contract for the analysis pipeline.

A detector has three hooks, all called by the pipeline on a single thread:

    setup(context, stats)      once, before the first frame; subscribe to events here
    process_tick(frame, stats) once per frame, before the frame's events
    finalize(stats)            once after the last frame; must be idempotent

Event handlers registered on context.events are called synchronously while the
frame that carries the event is being processed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from demoguard.replay.events import TickFrame
from demoguard.replay.source import EventBus
from demoguard.stats.models import Category, DemoStats


@dataclass
class SetupContext:
    """What a detector may know about the replay before it starts."""

    tick_rate: float
    map_name: str = ""
    demo_name: str = ""
    events: EventBus = field(default_factory=EventBus)


class Detector(ABC):
    """Abstract base class for detectors."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique detector name, used for ordering and logs."""
        pass

    @property
    @abstractmethod
    def categories(self) -> tuple[Category, ...]:
        """Metric categories this detector writes."""
        pass

    @property
    def depends_on(self) -> tuple[str, ...]:
        """Names of detectors whose metrics this detector reads."""
        return ()

    @abstractmethod
    def setup(self, context: SetupContext, stats: DemoStats) -> None:
        pass

    @abstractmethod
    def process_tick(self, frame: TickFrame, stats: DemoStats) -> None:
        pass

    @abstractmethod
    def finalize(self, stats: DemoStats) -> None:
        pass


class BaseDetector(Detector):
    """
    Detector with no-op hooks.

    Subclasses set `name` and `categories` as class attributes and override
    only the hooks they need.
    """

    name: str = ""
    categories: tuple[Category, ...] = ()

    def __init__(self) -> None:
        self.tick_rate = 64.0

    def setup(self, context: SetupContext, stats: DemoStats) -> None:
        self.tick_rate = context.tick_rate

    def process_tick(self, frame: TickFrame, stats: DemoStats) -> None:
        pass

    def finalize(self, stats: DemoStats) -> None:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
