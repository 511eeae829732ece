"""Human readable descriptions of reader behaviors."""

from __future__ import annotations

import calendar

from lectio.core.behavior import (
    DailyBehavior,
    InfiniteRepeat,
    NoRepeat,
    ReaderBehavior,
    RepeatCount,
    RepeatPolicy,
    RepeatTime,
    SegmentBehavior,
    SingleBehavior,
)
from lectio.core.bible import BibleStructure
from lectio.core.i18n import gettext as _
from lectio.core.i18n import ngettext


def format_duration(seconds: float) -> str:
    total = max(0, int(round(seconds)))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours:d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def describe_policy(policy: RepeatPolicy) -> str:
    if isinstance(policy, NoRepeat):
        return _("once")
    if isinstance(policy, RepeatCount):
        return ngettext("%d time", "%d times", policy.count) % policy.count
    if isinstance(policy, RepeatTime):
        return _("for %s") % format_duration(policy.seconds)
    if isinstance(policy, InfiniteRepeat):
        return _("forever")
    raise TypeError(f"Unknown repeat policy: {policy!r}")


def describe_behavior(behavior: ReaderBehavior, structure: BibleStructure) -> str:
    repeat = describe_policy(behavior.policy)
    if isinstance(behavior, SegmentBehavior):
        start = structure.format_chapter(behavior.start)
        if behavior.length is None:
            return _("Continuous reading from %(start)s, %(repeat)s") % {"start": start, "repeat": repeat}
        chapters = ngettext("%d chapter", "%d chapters", behavior.length) % behavior.length
        return _("%(chapters)s from %(start)s, %(repeat)s") % {
            "chapters": chapters,
            "start": start,
            "repeat": repeat,
        }
    if isinstance(behavior, DailyBehavior):
        date = f"{calendar.month_name[behavior.month + 1]} {behavior.day + 1}"
        return _("Daily readings for %(date)s, %(repeat)s") % {"date": date, "repeat": repeat}
    if isinstance(behavior, SingleBehavior):
        return _("Current passage, %(repeat)s") % {"repeat": repeat}
    raise TypeError(f"Unknown reader behavior: {behavior!r}")


__all__ = ["describe_behavior", "describe_policy", "format_duration"]
