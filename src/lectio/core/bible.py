"""Bible structure models: chapter addresses, passages and book lookup."""

from __future__ import annotations

import re
from bisect import bisect_right
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

import yaml


@dataclass(frozen=True, order=True)
class ChapterAddress:
    """0-based book index and chapter number."""

    book: int
    number: int

    def to_dict(self) -> dict[str, int]:
        return {"book": self.book, "number": self.number}

    @classmethod
    def from_dict(cls, payload: Any) -> "ChapterAddress":
        if not isinstance(payload, dict):
            raise ValueError(f"Invalid chapter address: {payload!r}")
        try:
            book = int(payload["book"])
            number = int(payload["number"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Invalid chapter address: {payload!r}") from exc
        if book < 0 or number < 0:
            raise ValueError(f"Invalid chapter address: {payload!r}")
        return cls(book=book, number=number)


@dataclass(frozen=True)
class VerseRange:
    """0-based inclusive verse range."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError("Invalid verse range")

    def to_dict(self) -> dict[str, int]:
        return {"start": self.start, "end": self.end}

    @classmethod
    def from_dict(cls, payload: Any) -> Optional["VerseRange"]:
        if payload is None:
            return None
        if not isinstance(payload, dict):
            raise ValueError(f"Invalid verse range: {payload!r}")
        try:
            return cls(start=int(payload["start"]), end=int(payload["end"]))
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Invalid verse range: {payload!r}") from exc


@dataclass(frozen=True)
class Passage:
    chapter: ChapterAddress
    verses: Optional[VerseRange] = None


@dataclass(frozen=True)
class BookInfo:
    name: str
    chapters: int


# Common abbreviations mapped to the lowercase title prefix they stand for.
BOOK_ALIASES: dict[str, str] = {
    "nm": "numbers",
    "dt": "deuteronomy",
    "jsh": "joshua",
    "jdg": "judges",
    "jdgs": "judges",
    "sm": "samuel",
    "jb": "job",
    "pss": "psalm",
    "psalms": "psalm",
    "prv": "proverbs",
    "sg": "song of solomon",
    "ss": "song of solomon",
    "sos": "song of solomon",
    "jl": "joel",
    "obd": "obadiah",
    "hb": "habakkuk",
    "hg": "haggai",
    "ml": "malachi",
    "mt": "matthew",
    "mk": "mark",
    "lk": "luke",
    "jn": "john",
    "jas": "james",
    "php": "philippians",
    "phm": "philemon",
}

_TITLE_PATTERN = re.compile(r"^\s*(?P<prefix>\d+)?\s*(?P<name>\S.*?)?\s*$")

DEFAULT_BOOKS: tuple[BookInfo, ...] = tuple(
    BookInfo(name, chapters)
    for name, chapters in (
        ("Genesis", 50), ("Exodus", 40), ("Leviticus", 27), ("Numbers", 36),
        ("Deuteronomy", 34), ("Joshua", 24), ("Judges", 21), ("Ruth", 4),
        ("1 Samuel", 31), ("2 Samuel", 24), ("1 Kings", 22), ("2 Kings", 25),
        ("1 Chronicles", 29), ("2 Chronicles", 36), ("Ezra", 10), ("Nehemiah", 13),
        ("Esther", 10), ("Job", 42), ("Psalms", 150), ("Proverbs", 31),
        ("Ecclesiastes", 12), ("Song of Solomon", 8), ("Isaiah", 66), ("Jeremiah", 52),
        ("Lamentations", 5), ("Ezekiel", 48), ("Daniel", 12), ("Hosea", 14),
        ("Joel", 3), ("Amos", 9), ("Obadiah", 1), ("Jonah", 4),
        ("Micah", 7), ("Nahum", 3), ("Habakkuk", 3), ("Zephaniah", 3),
        ("Haggai", 2), ("Zechariah", 14), ("Malachi", 4), ("Matthew", 28),
        ("Mark", 16), ("Luke", 24), ("John", 21), ("Acts", 28),
        ("Romans", 16), ("1 Corinthians", 16), ("2 Corinthians", 13), ("Galatians", 6),
        ("Ephesians", 6), ("Philippians", 4), ("Colossians", 4), ("1 Thessalonians", 5),
        ("2 Thessalonians", 3), ("1 Timothy", 6), ("2 Timothy", 4), ("Titus", 3),
        ("Philemon", 1), ("Hebrews", 13), ("James", 5), ("1 Peter", 5),
        ("2 Peter", 3), ("1 John", 5), ("2 John", 1), ("3 John", 1),
        ("Jude", 1), ("Revelation", 22),
    )
)


def split_book_title(title: str) -> tuple[Optional[int], str]:
    """Split ``"1 Kings"`` into ``(1, "kings")``; the name is lowercased."""

    match = _TITLE_PATTERN.match(title or "")
    if match is None:
        return None, ""
    prefix = match.group("prefix")
    name = (match.group("name") or "").lower()
    return (int(prefix) if prefix else None), name


class BibleStructure:
    """Ordered books with chapter counts and chapter arithmetic over them."""

    def __init__(self, books: Iterable[BookInfo]) -> None:
        self._books: tuple[BookInfo, ...] = tuple(books)
        if not self._books:
            raise ValueError("Bible structure needs at least one book")
        offsets: list[int] = []
        total = 0
        for book in self._books:
            if book.chapters <= 0:
                raise ValueError(f"Book {book.name!r} has no chapters")
            offsets.append(total)
            total += book.chapters
        self._offsets = offsets
        self._total_chapters = total
        self._titles = [split_book_title(book.name) for book in self._books]

    @classmethod
    def default(cls) -> "BibleStructure":
        return cls(DEFAULT_BOOKS)

    @classmethod
    def from_yaml(cls, path: Path) -> "BibleStructure":
        """Load a list of ``{name, chapters}`` mappings."""

        with Path(path).open("r", encoding="utf-8") as file:
            payload = yaml.safe_load(file) or []
        if isinstance(payload, dict):
            payload = payload.get("books", [])
        if not isinstance(payload, list):
            raise ValueError(f"Invalid bible structure file: {path}")
        books: list[BookInfo] = []
        for entry in payload:
            try:
                books.append(BookInfo(name=str(entry["name"]), chapters=int(entry["chapters"])))
            except (KeyError, TypeError, ValueError) as exc:
                raise ValueError(f"Invalid book entry in {path}: {entry!r}") from exc
        return cls(books)

    @property
    def books(self) -> Sequence[BookInfo]:
        return self._books

    @property
    def total_chapters(self) -> int:
        return self._total_chapters

    def chapter_count(self, book: int) -> int:
        return self._books[book].chapters

    def book_name(self, book: int) -> str:
        return self._books[book].name

    def format_chapter(self, address: ChapterAddress) -> str:
        return f"{self.book_name(address.book)} {address.number + 1}"

    def format_passage(self, passage: Passage) -> str:
        text = self.format_chapter(passage.chapter)
        if passage.verses is None:
            return text
        return f"{text}:{passage.verses.start + 1}-{passage.verses.end + 1}"

    def contains(self, address: ChapterAddress) -> bool:
        return 0 <= address.book < len(self._books) and 0 <= address.number < self._books[address.book].chapters

    def advance_chapter(self, start: ChapterAddress, count: int) -> ChapterAddress:
        """Move ``count`` chapters forward, rolling over into following books.

        Running past the last book continues from the first one.
        """

        if not self.contains(start):
            raise ValueError(f"Chapter {start} is outside of the bible structure")
        if count < 0:
            raise ValueError("Chapter offset must be non-negative")
        ordinal = (self._offsets[start.book] + start.number + count) % self._total_chapters
        book = bisect_right(self._offsets, ordinal) - 1
        return ChapterAddress(book=book, number=ordinal - self._offsets[book])

    def find_book(self, prefix: Optional[int], name: str) -> Optional[int]:
        """Return the index of the book named ``name`` (with optional numeric prefix).

        Names match case-insensitively by prefix and common abbreviations are
        expanded. When several books share the name, the one with the
        matching numeric prefix wins, otherwise the first candidate.
        """

        needle = (name or "").strip().lower()
        if not needle:
            return None
        needle = BOOK_ALIASES.get(needle, needle)
        candidates = [
            index
            for index, (_book_prefix, book_name) in enumerate(self._titles)
            if book_name.startswith(needle)
        ]
        if not candidates:
            return None
        for index in candidates:
            if self._titles[index][0] == prefix:
                return index
        return candidates[0]

    def find_book_by_title(self, title: str) -> Optional[int]:
        prefix, name = split_book_title(title)
        return self.find_book(prefix, name)


__all__ = [
    "BOOK_ALIASES",
    "DEFAULT_BOOKS",
    "BibleStructure",
    "BookInfo",
    "ChapterAddress",
    "Passage",
    "VerseRange",
    "split_book_title",
]
