"""Concrete reader collaborators backed by bundled data and the session store."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from lectio.core.behavior import (
    ReaderBehavior,
    behavior_from_dict,
    behavior_to_dict,
    default_behavior,
)
from lectio.core.bible import BibleStructure, ChapterAddress, Passage, VerseRange
from lectio.core.reading_plan import ReadingEntry, ReadingPlan
from lectio.core.storage import StoredValue, ValueStore


logger = logging.getLogger(__name__)


class ReaderLibrary:
    """`ReaderSource` over a bible structure, a reading plan and the open passage.

    The open passage is kept in the value store so that it outlives the
    reader like the rest of the session.
    """

    def __init__(
        self,
        structure: BibleStructure,
        plan: ReadingPlan,
        store: ValueStore,
        *,
        scope: str = "view",
    ) -> None:
        self._structure = structure
        self._plan = plan
        self._chapter: StoredValue[ChapterAddress] = StoredValue(
            store,
            f"{scope}.chapter",
            ChapterAddress(0, 0),
            encode=ChapterAddress.to_dict,
            decode=ChapterAddress.from_dict,
        )
        self._verses: StoredValue[Optional[VerseRange]] = StoredValue(
            store,
            f"{scope}.verses",
            None,
            encode=lambda value: value.to_dict() if value is not None else None,
            decode=VerseRange.from_dict,
        )

    @property
    def structure(self) -> BibleStructure:
        return self._structure

    @property
    def plan(self) -> ReadingPlan:
        return self._plan

    def open_passage(self, passage: Passage) -> None:
        if not self._structure.contains(passage.chapter):
            raise ValueError(f"Chapter {passage.chapter} is outside of the bible structure")
        self._chapter.set(passage.chapter)
        if passage.verses is None:
            self._verses.clear()
        else:
            self._verses.set(passage.verses)
        logger.debug("Opened %s", self._structure.format_passage(passage))

    def get_bible_structure(self) -> BibleStructure:
        return self._structure

    def get_current_chapter(self) -> ChapterAddress:
        chapter = self._chapter.get()
        if not self._structure.contains(chapter):
            logger.warning("Stored chapter %s is out of range, using the first chapter", chapter)
            return ChapterAddress(0, 0)
        return chapter

    def get_current_verse_range(self) -> Optional[VerseRange]:
        return self._verses.get()

    def get_daily_plan(self, month: int, day: int) -> List[ReadingEntry]:
        return self._plan.readings_for(month, day)

    def resolve_book_ref(self, prefix: Optional[int], name: str) -> Optional[int]:
        return self._structure.find_book(prefix, name)


class StoredBehaviorStore:
    """`BehaviorStore` persisting the active behavior next to the session state."""

    def __init__(
        self,
        store: ValueStore,
        default_factory: Callable[[], ReaderBehavior],
        *,
        key: str = "reader.behavior",
    ) -> None:
        self._value: StoredValue[Optional[ReaderBehavior]] = StoredValue(
            store,
            key,
            None,
            encode=behavior_to_dict,
            decode=behavior_from_dict,
        )
        self._default_factory = default_factory

    @classmethod
    def for_library(cls, store: ValueStore, library: ReaderLibrary, *, key: str = "reader.behavior") -> "StoredBehaviorStore":
        """Default to reading the open chapter once when nothing is stored."""

        return cls(store, lambda: default_behavior(library.get_current_chapter()), key=key)

    def get_reader_behavior(self) -> ReaderBehavior:
        behavior = self._value.get()
        if behavior is None:
            return self._default_factory()
        return behavior

    def set_reader_behavior(self, behavior: ReaderBehavior) -> None:
        self._value.set(behavior)


__all__ = ["ReaderLibrary", "StoredBehaviorStore"]
