"""
Replay source contract and event dispatch.

The pipeline never touches a demo file directly. It reads frames from a
ReplaySource and fans each frame's events out through an EventBus to the
detectors that subscribed during setup.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Iterable, Iterator
from typing import Protocol, runtime_checkable

from demoguard.replay.events import EventKind, GameEvent, TickFrame

logger = logging.getLogger(__name__)

EventHandler = Callable[[GameEvent], None]
# Called with the failing handler, the event and the exception
ErrorHandler = Callable[[EventHandler, GameEvent, Exception], None]


class ReplayParseError(RuntimeError):
    """The replay could not be read. Fatal to the run."""


@runtime_checkable
class ReplaySource(Protocol):
    """A complete replay, readable once from start to finish."""

    @property
    def tick_rate(self) -> float: ...

    @property
    def map_name(self) -> str: ...

    @property
    def demo_name(self) -> str: ...

    def frames(self) -> Iterator[TickFrame]:
        """Yield frames in increasing tick order."""
        ...


class EventBus:
    """
    Synchronous publish/subscribe for replay events.

    Handlers for a kind run in subscription order, which is the pipeline's
    detector execution order. With an on_error callback a failing handler is
    reported and the remaining handlers still see the event; without one the
    exception propagates.
    """

    def __init__(self, on_error: ErrorHandler | None = None) -> None:
        self._handlers: dict[EventKind, list[EventHandler]] = defaultdict(list)
        self._on_error = on_error

    def subscribe(self, kind: EventKind, handler: EventHandler) -> None:
        self._handlers[kind].append(handler)

    def publish(self, event: GameEvent) -> None:
        for handler in self._handlers.get(event.kind, ()):
            if self._on_error is None:
                handler(event)
                continue
            try:
                handler(event)
            except ReplayParseError:
                raise
            except Exception as e:
                self._on_error(handler, event, e)

    def subscriber_count(self, kind: EventKind) -> int:
        return len(self._handlers.get(kind, ()))


class InMemoryReplay:
    """ReplaySource over frames that are already in memory."""

    def __init__(
        self,
        frames: Iterable[TickFrame],
        *,
        tick_rate: float = 64.0,
        map_name: str = "",
        demo_name: str = "",
    ):
        self._frames = sorted(frames, key=lambda f: f.tick)
        self._tick_rate = tick_rate
        self._map_name = map_name
        self._demo_name = demo_name

    @property
    def tick_rate(self) -> float:
        return self._tick_rate

    @property
    def map_name(self) -> str:
        return self._map_name

    @property
    def demo_name(self) -> str:
        return self._demo_name

    def frames(self) -> Iterator[TickFrame]:
        yield from self._frames

    def __len__(self) -> int:
        return len(self._frames)
