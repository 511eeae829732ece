"""Reader collaborator types.

Kept apart from `lectio.reader.state` so hosts can implement the protocols
without importing the timer machinery.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Protocol

from lectio.core.behavior import ReaderBehavior
from lectio.core.bible import BibleStructure, ChapterAddress, VerseRange
from lectio.core.reading_plan import ReadingEntry


class ReaderSource(Protocol):
    """Queries answered by the host application."""

    def get_bible_structure(self) -> BibleStructure: ...

    def get_current_chapter(self) -> ChapterAddress: ...

    def get_current_verse_range(self) -> Optional[VerseRange]: ...

    def get_daily_plan(self, month: int, day: int) -> List[ReadingEntry]: ...

    def resolve_book_ref(self, prefix: Optional[int], name: str) -> Optional[int]: ...


class BehaviorStore(Protocol):
    """Owner of the active behavior; the reader state never caches it."""

    def get_reader_behavior(self) -> ReaderBehavior: ...

    def set_reader_behavior(self, behavior: ReaderBehavior) -> None: ...


class TickLoopHandle(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...

    @property
    def active(self) -> bool: ...


TickLoopFactory = Callable[[float, Callable[[], None]], TickLoopHandle]


class TimerEventKind(Enum):
    STARTED = "timer_started"
    TICK = "timer_tick"
    STOPPED = "timer_stopped"


@dataclass(frozen=True)
class TimerEvent:
    kind: TimerEventKind
    elapsed: float = 0.0
    duration: float = 0.0

    @property
    def progress(self) -> float:
        if self.duration <= 0.0:
            return 0.0
        return self.elapsed / self.duration


__all__ = [
    "BehaviorStore",
    "ReaderSource",
    "TickLoopFactory",
    "TickLoopHandle",
    "TimerEvent",
    "TimerEventKind",
]
