"""Continuous reading: behavior resolution, queue window and playback timer.

Implementation lives in the submodules; this package re-exports the API used
by hosts.
"""

from __future__ import annotations

from .library import ReaderLibrary, StoredBehaviorStore
from .resolver import EXHAUSTED, resolve
from .state import PlayerBehaviorState, ReaderQueue
from .timer import PlaybackTimer, TickLoop, TimerState
from .types import BehaviorStore, ReaderSource, TimerEvent, TimerEventKind

__all__ = [
    "BehaviorStore",
    "EXHAUSTED",
    "PlaybackTimer",
    "PlayerBehaviorState",
    "ReaderLibrary",
    "ReaderQueue",
    "ReaderSource",
    "StoredBehaviorStore",
    "TickLoop",
    "TimerEvent",
    "TimerEventKind",
    "TimerState",
    "resolve",
]
