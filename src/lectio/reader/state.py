"""Continuous-reading orchestrator: active behavior, sequence index and timer."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, List, Optional

from lectio.core.behavior import ReaderBehavior, behavior_duration
from lectio.core.bible import Passage
from lectio.core.events import EventHandler
from lectio.core.storage import StoredValue, ValueStore
from lectio.reader.resolver import EXHAUSTED, resolve
from lectio.reader.timer import DEFAULT_TICK_INTERVAL, PlaybackTimer, TickLoop, TimerState
from lectio.reader.types import (
    BehaviorStore,
    ReaderSource,
    TickLoopFactory,
    TimerEvent,
    TimerEventKind,
)


logger = logging.getLogger(__name__)


def _decode_index(raw: Any) -> int:
    value = int(raw)
    if value < 0:
        raise ValueError(f"Negative sequence index {value}")
    return value


@dataclass(frozen=True)
class ReaderQueue:
    """Window of resolved passages around the sequence index.

    ``current`` is the position of the current index inside ``sections``
    (the last slot when the current index itself is not in the window) and
    ``offset`` the sequence index of the first slot of the window.
    """

    current: int
    sections: List[Passage] = field(default_factory=list)
    offset: int = 0


class PlayerBehaviorState:
    """Owns the sequence index and the playback timer of the active behavior.

    The behavior itself lives in ``behavior_store``; the index and the timer's
    elapsed time are written to ``store`` on every change so a new instance
    built on the same store resumes where the previous one stopped.
    """

    def __init__(
        self,
        source: ReaderSource,
        behavior_store: BehaviorStore,
        store: ValueStore,
        *,
        scope: str = "reader",
        tick_interval: float = DEFAULT_TICK_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        loop_factory: TickLoopFactory = TickLoop,
    ) -> None:
        self._source = source
        self._behavior_store = behavior_store
        self._index: StoredValue[int] = StoredValue(store, f"{scope}.index", 0, decode=_decode_index)
        self._elapsed: StoredValue[float] = StoredValue(store, f"{scope}.timer_elapsed", 0.0, decode=float)
        self._tick_interval = tick_interval
        self._clock = clock
        self._loop_factory = loop_factory
        self._timer: Optional[PlaybackTimer] = None
        self._lock = threading.RLock()
        self.behavior_changed: EventHandler[ReaderBehavior] = EventHandler("behavior_changed")
        self.timer_events: EventHandler[TimerEvent] = EventHandler("timer_events")

        if behavior_duration(self.get_behavior()) is not None:
            self.start_timer()

    # --- behavior ---
    def get_behavior(self) -> ReaderBehavior:
        return self._behavior_store.get_reader_behavior()

    def set_behavior(self, behavior: ReaderBehavior) -> None:
        with self._lock:
            self._index.set(0)
            self.stop_timer()
            self._behavior_store.set_reader_behavior(behavior)
            self._elapsed.set(0.0)
            if behavior_duration(behavior) is not None:
                self.start_timer()
        logger.info("Reader behavior changed: %s", behavior)
        self.behavior_changed.invoke(behavior)

    # --- sequence index ---
    @property
    def index(self) -> int:
        return self._index.get()

    def set_index(self, index: int) -> None:
        if index < 0:
            raise ValueError("Sequence index must be non-negative")
        with self._lock:
            self._index.set(int(index))

    def advance(self) -> int:
        with self._lock:
            return self._index.update(lambda value: value + 1)

    def reset_index(self) -> None:
        self.set_index(0)

    # --- timer ---
    @property
    def timer(self) -> Optional[PlaybackTimer]:
        return self._timer

    def is_timer_active(self) -> bool:
        timer = self._timer
        return timer is not None and timer.is_playing()

    def start_timer(self) -> Optional[PlaybackTimer]:
        with self._lock:
            self._discard_timer()
            duration = behavior_duration(self.get_behavior())
            if duration is None:
                logger.debug("Behavior is not timed, no timer started")
                return None
            timer = PlaybackTimer(
                duration,
                self._elapsed.get(),
                tick_interval=self._tick_interval,
                clock=self._clock,
                loop_factory=self._loop_factory,
                elapsed=self._elapsed,
            )
            timer.events.add_listener(partial(self._relay_timer_event, timer))
            self._timer = timer
            logger.debug("Timer started duration=%.1fs elapsed=%.1fs", duration, timer.current_time)
            self.timer_events.invoke(
                TimerEvent(TimerEventKind.STARTED, elapsed=timer.current_time, duration=duration)
            )
            return timer

    def stop_timer(self) -> None:
        with self._lock:
            timer = self._discard_timer()
            if timer is None:
                return
            self.timer_events.invoke(
                TimerEvent(TimerEventKind.STOPPED, elapsed=timer.current_time, duration=timer.duration)
            )

    def pause_timer(self) -> None:
        with self._lock:
            if self._timer is None:
                logger.debug("pause_timer ignored, no timer")
                return
            self._timer.pause()

    def resume_or_restart(self) -> None:
        with self._lock:
            duration = behavior_duration(self.get_behavior())
            if duration is None:
                logger.debug("resume_or_restart ignored, behavior is not timed")
                return
            timer = self._timer
            if timer is None or timer.is_finished() or timer.state is TimerState.STOPPED:
                if self._elapsed.get() >= duration:
                    self._elapsed.set(0.0)
                timer = self.start_timer()
            if timer is not None:
                timer.play()

    def restart(self) -> None:
        with self._lock:
            if behavior_duration(self.get_behavior()) is None:
                logger.debug("restart ignored, behavior is not timed")
                return
            if self._timer is None:
                self._elapsed.set(0.0)
                self.start_timer()
            else:
                self._timer.reset()

    def close(self) -> None:
        """Stop the tick loop without notifying listeners; persisted state is kept."""

        with self._lock:
            timer = self._discard_timer()
        if timer is not None:
            logger.debug("Reader state closed, timer released at %.1fs", timer.current_time)

    def _discard_timer(self) -> Optional[PlaybackTimer]:
        timer = self._timer
        self._timer = None
        if timer is not None:
            timer.stop()
        return timer

    def _relay_timer_event(self, timer: PlaybackTimer, event: TimerEvent) -> None:
        if timer is not self._timer:
            return
        self.timer_events.invoke(event)

    # --- resolution ---
    def get_section(self, index: Optional[int] = None) -> Optional[Passage]:
        """Passage at ``index`` (default: the current index), or None when exhausted."""

        target = self.index if index is None else index
        if target < 0:
            raise ValueError("Sequence index must be non-negative")
        timer = self._timer
        if timer is not None and timer.is_finished():
            return None
        result = resolve(self.get_behavior(), target, self._source)
        if result is EXHAUSTED:
            return None
        return result

    def get_queue(self, radius: int) -> ReaderQueue:
        if radius < 0:
            raise ValueError("Queue radius must be non-negative")
        index = self.index
        queue_index = min(index, radius)
        offset = max(0, index - radius - 1)
        sections: List[Passage] = []
        before_current = 0
        for slot in range(offset, offset + queue_index + radius + 1):
            section = self.get_section(slot)
            if section is None:
                continue
            sections.append(section)
            if slot < index:
                before_current += 1
        current = min(before_current, len(sections) - 1) if sections else 0
        return ReaderQueue(current=current, sections=sections, offset=offset)


__all__ = ["PlayerBehaviorState", "ReaderQueue"]
