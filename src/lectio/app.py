"""Command-line host for the continuous reader.

Every invocation rebuilds the reader from the persisted session, performs one
action and exits.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from threading import Event
from typing import Optional, Sequence

import yaml

from lectio.core.behavior import (
    DailyBehavior,
    InfiniteRepeat,
    NoRepeat,
    RepeatCount,
    RepeatPolicy,
    RepeatTime,
    SegmentBehavior,
    SingleBehavior,
)
from lectio.core.bible import BibleStructure, ChapterAddress, Passage, VerseRange
from lectio.core.config import LOG_LEVELS, SettingsManager
from lectio.core.env import resolve_logs_dir
from lectio.core.i18n import set_language
from lectio.core.labels import describe_behavior, format_duration
from lectio.core.reading_plan import ReadingPlan
from lectio.core.storage import YamlValueStore
from lectio.reader import (
    PlayerBehaviorState,
    ReaderLibrary,
    StoredBehaviorStore,
    TimerEvent,
    TimerEventKind,
)


logger = logging.getLogger(__name__)


def _configure_logging(level_override: Optional[str] = None) -> Optional[Path]:
    env_level = os.environ.get("LOGLEVEL")
    level_name = (env_level or level_override or "WARNING").upper()
    level = getattr(logging, level_name, logging.WARNING)

    primary_dir = resolve_logs_dir()
    fallback_dir = Path(tempfile.gettempdir()) / "lectio_logs"
    logs_dir = primary_dir
    log_path: Path | None = None

    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
    except OSError:
        logs_dir = fallback_dir
        try:
            logs_dir.mkdir(parents=True, exist_ok=True)
        except OSError:
            logging.basicConfig(level=level)
            return None

    try:
        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        log_path = logs_dir / f"lectio-{timestamp}.log"
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        file_handler.setFormatter(formatter)
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logging.basicConfig(level=level, handlers=[file_handler, stream_handler])
    except OSError:
        logging.basicConfig(level=level)
        log_path = None
    if log_path:
        logger.info("Writing log to %s", log_path)
        if logs_dir is fallback_dir:
            logger.warning("Using fallback log directory %s", logs_dir)
    return log_path


@dataclass
class ReaderSession:
    settings: SettingsManager
    library: ReaderLibrary
    state: PlayerBehaviorState

    @property
    def structure(self) -> BibleStructure:
        return self.library.structure


def build_session(settings: SettingsManager, *, state_path: Path | None = None) -> ReaderSession:
    """Wire the reader from settings and the persisted session file."""

    structure_path = settings.get_bible_structure_path()
    structure = BibleStructure.from_yaml(structure_path) if structure_path else BibleStructure.default()

    plan_path = settings.get_reading_plan_path()
    if plan_path is None:
        plan = ReadingPlan.empty()
    elif plan_path.exists():
        plan = ReadingPlan.from_yaml(plan_path)
    else:
        logger.warning("Reading plan %s not found, daily readings are empty", plan_path)
        plan = ReadingPlan.empty()

    store = YamlValueStore(state_path or settings.get_state_path())
    scope = settings.get_reader_scope()
    library = ReaderLibrary(structure, plan, store)
    behavior_store = StoredBehaviorStore.for_library(store, library, key=f"{scope}.behavior")
    state = PlayerBehaviorState(
        library,
        behavior_store,
        store,
        scope=scope,
        tick_interval=settings.get_tick_interval(),
    )
    return ReaderSession(settings=settings, library=library, state=state)


def _parse_verses(text: str) -> VerseRange:
    start_text, _sep, end_text = text.partition("-")
    try:
        start = int(start_text)
        end = int(end_text) if end_text else start
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid verse range: {text}") from exc
    if start < 1 or end < start:
        raise argparse.ArgumentTypeError(f"Invalid verse range: {text}")
    return VerseRange(start - 1, end - 1)


def _positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Not a number: {text}") from exc
    if value < 1:
        raise argparse.ArgumentTypeError(f"Must be at least 1: {text}")
    return value


def _non_negative_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Not a number: {text}") from exc
    if value < 0:
        raise argparse.ArgumentTypeError(f"Must not be negative: {text}")
    return value


def _positive_float(text: str) -> float:
    try:
        value = float(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Not a number: {text}") from exc
    if not value > 0.0:
        raise argparse.ArgumentTypeError(f"Must be positive: {text}")
    return value


def _add_repeat_options(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--count", type=_positive_int, help="Play the sequence this many times.")
    group.add_argument("--minutes", type=_positive_float, help="Keep playing for this many minutes.")
    group.add_argument("--infinite", action="store_true", help="Never stop.")


def _policy_from_args(args: argparse.Namespace) -> RepeatPolicy:
    if args.infinite:
        return InfiniteRepeat()
    if args.minutes is not None:
        return RepeatTime(args.minutes * 60.0)
    if args.count is not None:
        return RepeatCount(args.count)
    return NoRepeat()


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="lectio", description="Continuous reading queue and timer.")
    ap.add_argument("--config", type=Path, help="Settings file (default: config/settings.yaml).")
    ap.add_argument("--state", type=Path, help="Session state file, overrides the configured one.")
    ap.add_argument("--log-level", choices=LOG_LEVELS, type=str.upper, help="Logging level.")
    subparsers = ap.add_subparsers(dest="command")

    show = subparsers.add_parser("show", help="Print the active behavior and the queue.")
    show.add_argument("--radius", type=_non_negative_int, help="Queue radius (default from settings).")

    open_cmd = subparsers.add_parser("open", help="Set the currently open passage.")
    open_cmd.add_argument("book")
    open_cmd.add_argument("chapter", type=_positive_int)
    open_cmd.add_argument("--verses", type=_parse_verses, help="Verse range such as 3-9.")

    segment = subparsers.add_parser("segment", help="Read consecutive chapters.")
    segment.add_argument("book")
    segment.add_argument("chapter", type=_positive_int)
    span = segment.add_mutually_exclusive_group()
    span.add_argument("--length", type=_positive_int, help="Chapters per cycle (default: 1).")
    span.add_argument("--continuous", action="store_true", help="Keep reading without a length limit.")
    _add_repeat_options(segment)

    daily = subparsers.add_parser("daily", help="Read the plan entries of one day.")
    daily.add_argument("month", type=_positive_int)
    daily.add_argument("day", type=_positive_int)
    _add_repeat_options(daily)

    single = subparsers.add_parser("single", help="Read the currently open passage.")
    _add_repeat_options(single)

    subparsers.add_parser("next", help="Advance to the next passage.")
    jump = subparsers.add_parser("jump", help="Jump to a sequence index.")
    jump.add_argument("index", type=_non_negative_int)
    subparsers.add_parser("reset", help="Go back to the start of the sequence.")

    timer = subparsers.add_parser("timer", help="Run the timer of a timed behavior.")
    timer.add_argument("--seconds", type=_positive_float, help="Stop waiting after this many seconds.")
    return ap


def _resolve_book(structure: BibleStructure, title: str) -> int:
    book = structure.find_book_by_title(title)
    if book is None:
        raise LookupError(f"Unknown book: {title}")
    return book


def _print_queue(session: ReaderSession, radius: int) -> None:
    state = session.state
    print(describe_behavior(state.get_behavior(), session.structure))
    queue = state.get_queue(radius)
    if not queue.sections:
        print("(end of sequence)")
        return
    for position, passage in enumerate(queue.sections):
        marker = ">" if position == queue.current else " "
        print(f"{marker} {session.structure.format_passage(passage)}")
    timer = state.timer
    if timer is not None:
        print(f"timer {format_duration(timer.current_time)} / {format_duration(timer.duration)}")


def _run_timer(session: ReaderSession, limit: float | None) -> int:
    state = session.state
    finished = Event()
    last_second = [-1]

    def on_event(event: TimerEvent) -> None:
        if event.kind is TimerEventKind.STOPPED:
            finished.set()
            return
        if event.kind is TimerEventKind.TICK and int(event.elapsed) != last_second[0]:
            last_second[0] = int(event.elapsed)
            print(f"{format_duration(event.elapsed)} / {format_duration(event.duration)}", flush=True)

    state.timer_events.add_listener(on_event)
    state.resume_or_restart()
    if state.timer is None:
        print("The active behavior is not timed.")
        return 1
    try:
        finished.wait(limit)
    except KeyboardInterrupt:
        pass
    finally:
        state.pause_timer()
        state.timer_events.remove_listener(on_event)
    if state.get_section() is None:
        print("Time is up.")
    return 0


def _dispatch(session: ReaderSession, args: argparse.Namespace) -> int:
    state = session.state
    structure = session.structure
    command = args.command or "show"

    if command == "open":
        book = _resolve_book(structure, args.book)
        session.library.open_passage(Passage(ChapterAddress(book, args.chapter - 1), args.verses))
    elif command == "segment":
        book = _resolve_book(structure, args.book)
        start = ChapterAddress(book, args.chapter - 1)
        if not structure.contains(start):
            raise LookupError(f"{structure.book_name(book)} has no chapter {args.chapter}")
        length = None if args.continuous else (args.length or 1)
        state.set_behavior(SegmentBehavior(start=start, length=length, policy=_policy_from_args(args)))
    elif command == "daily":
        state.set_behavior(DailyBehavior(month=args.month - 1, day=args.day - 1, policy=_policy_from_args(args)))
    elif command == "single":
        state.set_behavior(SingleBehavior(policy=_policy_from_args(args)))
    elif command == "next":
        state.advance()
    elif command == "jump":
        state.set_index(args.index)
    elif command == "reset":
        state.reset_index()
    elif command == "timer":
        return _run_timer(session, args.seconds)

    radius = getattr(args, "radius", None)
    _print_queue(session, session.settings.get_queue_radius() if radius is None else radius)
    return 0


def run(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(sys.argv[1:] if argv is None else argv))

    settings = SettingsManager(config_path=args.config) if args.config else SettingsManager()
    _configure_logging(args.log_level or settings.get_diagnostics_log_level())
    set_language(settings.get_language())

    session: ReaderSession | None = None
    try:
        session = build_session(settings, state_path=args.state)
        return _dispatch(session, args)
    except (LookupError, ValueError, OSError, yaml.YAMLError) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        if session is not None:
            session.state.close()


if __name__ == "__main__":
    sys.exit(run())
