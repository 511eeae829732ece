"""Daily reading plans.

A plan file is YAML keyed by 1-based month and day, each day listing passage
strings::

    1:
      1: ["Genesis 1-2", "Psalm 1", "Matthew 1:1-17"]
      2: ["Genesis 3", "1 Kings 3:5-14"]

Passages are stored 0-based once parsed. A chapter range expands into one
entry per chapter.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

import yaml

from lectio.core.bible import VerseRange


logger = logging.getLogger(__name__)

_PASSAGE_PATTERN = re.compile(
    r"^(?P<prefix>[0-9]+)?\s*(?P<book>[A-Za-z ]+) (?P<chapter>\d+)"
    r"(?::(?P<start>\d+)(?:-(?P<end>\d+))?|-(?P<chapter_end>\d+))?$"
)

# 0-based (month, day) of February 29th; the plan has no readings that day.
LEAP_DAY = (1, 28)


class ReadingPlanError(ValueError):
    """Raised when a plan file or passage string cannot be parsed."""


@dataclass(frozen=True)
class BookRef:
    """Symbolic book reference as written in a plan (``1 Kings`` -> prefix 1, name Kings)."""

    prefix: Optional[int]
    name: str


@dataclass(frozen=True)
class ReadingEntry:
    book: BookRef
    chapter: int
    verses: Optional[VerseRange] = None


def _positive(text: str, passage: str) -> int:
    value = int(text)
    if value <= 0:
        raise ReadingPlanError(f"Numbers in passages are 1-based: {passage!r}")
    return value


def parse_passage(text: str) -> List[ReadingEntry]:
    """Parse one passage string into plan entries."""

    stripped = (text or "").strip()
    match = _PASSAGE_PATTERN.match(stripped)
    if match is None:
        raise ReadingPlanError(f"Invalid passage: {text!r}")

    prefix = int(match.group("prefix")) if match.group("prefix") else None
    book = BookRef(prefix=prefix, name=match.group("book").strip())
    chapter = _positive(match.group("chapter"), stripped) - 1

    if match.group("start") is not None:
        start = _positive(match.group("start"), stripped) - 1
        end_text = match.group("end")
        end = _positive(end_text, stripped) - 1 if end_text is not None else start
        if end < start:
            raise ReadingPlanError(f"Verse range ends before it starts: {text!r}")
        return [ReadingEntry(book=book, chapter=chapter, verses=VerseRange(start, end))]

    if match.group("chapter_end") is not None:
        chapter_end = _positive(match.group("chapter_end"), stripped) - 1
        if chapter_end < chapter:
            raise ReadingPlanError(f"Chapter range ends before it starts: {text!r}")
        return [ReadingEntry(book=book, chapter=number) for number in range(chapter, chapter_end + 1)]

    return [ReadingEntry(book=book, chapter=chapter)]


def parse_passages(lines: Iterable[str]) -> List[ReadingEntry]:
    entries: List[ReadingEntry] = []
    for line in lines:
        if not str(line).strip():
            continue
        entries.extend(parse_passage(str(line)))
    return entries


class ReadingPlan:
    """Readings for each (month, day), addressed 0-based."""

    def __init__(self, days: Mapping[tuple[int, int], List[ReadingEntry]] | None = None) -> None:
        self._days: Dict[tuple[int, int], List[ReadingEntry]] = {
            key: list(entries) for key, entries in (days or {}).items()
        }

    @classmethod
    def empty(cls) -> "ReadingPlan":
        return cls()

    @classmethod
    def from_mapping(cls, payload: Mapping[Any, Any]) -> "ReadingPlan":
        days: Dict[tuple[int, int], List[ReadingEntry]] = {}
        for month_key, month_days in payload.items():
            if not isinstance(month_days, Mapping):
                raise ReadingPlanError(f"Month {month_key!r} must map days to passages")
            for day_key, passages in month_days.items():
                try:
                    month = int(month_key) - 1
                    day = int(day_key) - 1
                except (TypeError, ValueError) as exc:
                    raise ReadingPlanError(f"Invalid plan date {month_key!r}/{day_key!r}") from exc
                if not 0 <= month <= 11 or not 0 <= day <= 30:
                    raise ReadingPlanError(f"Plan date out of range: {month_key}/{day_key}")
                if isinstance(passages, str):
                    passages = [passages]
                days[(month, day)] = parse_passages(passages or [])
        return cls(days)

    @classmethod
    def from_yaml(cls, path: Path) -> "ReadingPlan":
        with Path(path).open("r", encoding="utf-8") as file:
            payload = yaml.safe_load(file) or {}
        if not isinstance(payload, Mapping):
            raise ReadingPlanError(f"Invalid reading plan file: {path}")
        plan = cls.from_mapping(payload)
        logger.debug("Loaded reading plan %s (%d days)", path, len(plan))
        return plan

    def __len__(self) -> int:
        return len(self._days)

    def readings_for(self, month: int, day: int) -> List[ReadingEntry]:
        """Return a fresh list of readings; February 29th never has any."""

        if (month, day) == LEAP_DAY:
            return []
        return list(self._days.get((month, day), []))


__all__ = [
    "BookRef",
    "LEAP_DAY",
    "ReadingEntry",
    "ReadingPlan",
    "ReadingPlanError",
    "parse_passage",
    "parse_passages",
]
