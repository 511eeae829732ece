"""Drift-corrected playback timer for timed reading behaviors."""

from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from threading import Timer
from typing import Callable, Optional

from lectio.core.events import EventHandler
from lectio.core.storage import StoredValue
from lectio.reader.types import TickLoopFactory, TimerEvent, TimerEventKind


logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL = 0.1


class TickLoop:
    """Call ``callback`` every ``interval`` seconds on a timer thread until cancelled."""

    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        self._interval = max(0.001, float(interval))
        self._callback = callback
        self._timer: Optional[Timer] = None
        self._active = False
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> None:
        with self._lock:
            if self._active:
                return
            self._active = True
            self._schedule_locked()

    def cancel(self) -> None:
        with self._lock:
            self._active = False
            timer = self._timer
            self._timer = None
        if timer is not None:
            timer.cancel()

    def _schedule_locked(self) -> None:
        timer = Timer(self._interval, self._run)
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _run(self) -> None:
        if not self._active:
            return
        try:
            self._callback()
        except Exception:  # pylint: disable=broad-except
            logger.exception("Tick callback failed")
        with self._lock:
            if self._active:
                self._schedule_locked()


class TimerState(Enum):
    PLAYING = "playing"
    PAUSED = "paused"
    STOPPED = "stopped"


class PlaybackTimer:
    """Stopwatch running against a fixed duration.

    Each tick adds the wall-clock time since the previous tick, so scheduler
    jitter does not accumulate and time spent paused is never counted. A
    freshly built timer is paused; a stopped timer stays stopped.
    """

    def __init__(
        self,
        duration: float,
        current_time: float = 0.0,
        *,
        tick_interval: float = DEFAULT_TICK_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        loop_factory: TickLoopFactory = TickLoop,
        elapsed: StoredValue[float] | None = None,
    ) -> None:
        if not float(duration) > 0.0:
            raise ValueError("Timer duration must be positive")
        self._duration = float(duration)
        self._current_time = max(0.0, float(current_time))
        self._clock = clock
        self._elapsed = elapsed
        self._lock = threading.RLock()
        self._last_tick: Optional[float] = None
        self.events: EventHandler[TimerEvent] = EventHandler("timer")

        self._state = TimerState.PLAYING
        self._loop = loop_factory(tick_interval, self._tick)
        self._loop.start()
        self.pause()

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def current_time(self) -> float:
        return self._current_time

    @property
    def progress(self) -> float:
        return min(1.0, self._current_time / self._duration)

    def is_playing(self) -> bool:
        return self._state is TimerState.PLAYING

    def is_finished(self) -> bool:
        return self._current_time >= self._duration

    def play(self) -> None:
        with self._lock:
            if self._state is TimerState.STOPPED:
                logger.debug("Ignoring play on a stopped timer")
                return
            self._state = TimerState.PLAYING
            self._last_tick = None

    def pause(self) -> None:
        with self._lock:
            if self._state is TimerState.STOPPED:
                return
            self._state = TimerState.PAUSED
            self._last_tick = None

    def stop(self) -> None:
        with self._lock:
            self._stop_locked()

    def reset(self) -> None:
        with self._lock:
            self._current_time = 0.0
            self._persist_locked()

    def _stop_locked(self) -> None:
        self._state = TimerState.STOPPED
        self._last_tick = None
        self._loop.cancel()

    def _persist_locked(self) -> None:
        if self._elapsed is not None:
            self._elapsed.set(self._current_time)

    def _tick(self) -> None:
        with self._lock:
            if self._state is not TimerState.PLAYING:
                return
            now = self._clock()
            if self._last_tick is not None:
                self._current_time += max(0.0, now - self._last_tick)
            self._last_tick = now
            self._persist_locked()
            if self._current_time >= self._duration:
                self._stop_locked()
                kind = TimerEventKind.STOPPED
                logger.debug("Timer finished after %.2fs", self._current_time)
            else:
                kind = TimerEventKind.TICK
            event = TimerEvent(kind, elapsed=self._current_time, duration=self._duration)
        self.events.invoke(event)


__all__ = [
    "DEFAULT_TICK_INTERVAL",
    "PlaybackTimer",
    "TickLoop",
    "TimerState",
]
