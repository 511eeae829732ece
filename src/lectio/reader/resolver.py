"""Map a (behavior, sequence index) pair to a concrete passage."""

from __future__ import annotations

from typing import Final, Union

from lectio.core.behavior import (
    DailyBehavior,
    ReaderBehavior,
    SegmentBehavior,
    SingleBehavior,
    repeat_bound,
)
from lectio.core.bible import ChapterAddress, Passage
from lectio.reader.types import ReaderSource


class _Exhausted:
    __slots__ = ()

    def __repr__(self) -> str:
        return "EXHAUSTED"

    def __bool__(self) -> bool:
        return False


EXHAUSTED: Final = _Exhausted()

Resolution = Union[Passage, _Exhausted]


def resolve(behavior: ReaderBehavior, index: int, source: ReaderSource) -> Resolution:
    """Return the passage at ``index`` or ``EXHAUSTED``.

    Timed policies never exhaust here; the playback timer ends them. Every
    call queries ``source`` again, so the current passage and the plan may
    change between calls.
    """

    if index < 0:
        raise ValueError("Sequence index must be non-negative")
    bound = repeat_bound(behavior.policy)

    if isinstance(behavior, SegmentBehavior):
        if behavior.length is not None:
            if index // behavior.length >= bound:
                return EXHAUSTED
            step = index % behavior.length
        else:
            # continuous run: a single never-ending cycle
            step = index
        structure = source.get_bible_structure()
        return Passage(chapter=structure.advance_chapter(behavior.start, step), verses=None)

    if isinstance(behavior, DailyBehavior):
        readings = source.get_daily_plan(behavior.month, behavior.day)
        if not readings:
            return EXHAUSTED
        if index // len(readings) >= bound:
            return EXHAUSTED
        entry = readings[index % len(readings)]
        book = source.resolve_book_ref(entry.book.prefix, entry.book.name)
        if book is None:
            raise LookupError(f"Unknown book in reading plan: {entry.book.prefix or ''} {entry.book.name}".strip())
        return Passage(chapter=ChapterAddress(book=book, number=entry.chapter), verses=entry.verses)

    if isinstance(behavior, SingleBehavior):
        if index >= bound:
            return EXHAUSTED
        return Passage(
            chapter=source.get_current_chapter(),
            verses=source.get_current_verse_range(),
        )

    raise TypeError(f"Unknown reader behavior: {behavior!r}")


__all__ = ["EXHAUSTED", "Resolution", "resolve"]
