"""Reader behaviors and repeat policies.

Both are closed sets of frozen dataclasses. They serialize to the tagged
layout used by the persisted behavior store::

    {"type": "segment", "data": {"start": {...}, "length": 3, "options": {"type": "repeat_count", "data": 2}}}
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from lectio.core.bible import ChapterAddress


def _is_whole(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class NoRepeat:
    """Play the sequence exactly once."""


@dataclass(frozen=True)
class RepeatCount:
    """Play the sequence exactly ``count`` times."""

    count: int

    def __post_init__(self) -> None:
        if not _is_whole(self.count) or self.count < 1:
            raise ValueError(f"Repeat count must be an integer of at least 1, got {self.count!r}")


@dataclass(frozen=True)
class RepeatTime:
    """Keep playing until ``seconds`` of wall-clock time have elapsed."""

    seconds: float

    def __post_init__(self) -> None:
        if not float(self.seconds) > 0.0:
            raise ValueError("Repeat duration must be positive")


@dataclass(frozen=True)
class InfiniteRepeat:
    """Never exhaust."""


RepeatPolicy = Union[NoRepeat, RepeatCount, RepeatTime, InfiniteRepeat]


@dataclass(frozen=True)
class SegmentBehavior:
    """``length`` chapters from ``start``; continuous reading when ``length`` is None."""

    start: ChapterAddress
    length: Optional[int] = 1
    policy: RepeatPolicy = field(default_factory=NoRepeat)

    def __post_init__(self) -> None:
        if self.length is not None and (not _is_whole(self.length) or self.length < 1):
            raise ValueError(f"Segment length must be an integer of at least 1, got {self.length!r}")


@dataclass(frozen=True)
class DailyBehavior:
    """Readings of one plan day; ``month`` is 0-11 and ``day`` is 0-based."""

    month: int
    day: int
    policy: RepeatPolicy = field(default_factory=NoRepeat)

    def __post_init__(self) -> None:
        if not 0 <= self.month <= 11:
            raise ValueError("Month must be between 0 and 11")
        if not 0 <= self.day <= 30:
            raise ValueError("Day must be between 0 and 30")


@dataclass(frozen=True)
class SingleBehavior:
    """The passage currently open in the host."""

    policy: RepeatPolicy = field(default_factory=NoRepeat)


ReaderBehavior = Union[SegmentBehavior, DailyBehavior, SingleBehavior]


def default_behavior(chapter: ChapterAddress) -> ReaderBehavior:
    return SegmentBehavior(start=chapter, length=1, policy=NoRepeat())


def repeat_bound(policy: RepeatPolicy) -> float:
    """How many times the sequence plays before exhausting (``inf`` when unbounded)."""

    if isinstance(policy, NoRepeat):
        return 1
    if isinstance(policy, RepeatCount):
        return policy.count
    if isinstance(policy, (RepeatTime, InfiniteRepeat)):
        return math.inf
    raise TypeError(f"Unknown repeat policy: {policy!r}")


def policy_duration(policy: RepeatPolicy) -> Optional[float]:
    if isinstance(policy, RepeatTime):
        return float(policy.seconds)
    return None


def behavior_duration(behavior: ReaderBehavior) -> Optional[float]:
    """Timer length in seconds for timed behaviors, otherwise None."""

    return policy_duration(behavior.policy)


# --- serialization ---

def policy_to_dict(policy: RepeatPolicy) -> Dict[str, Any]:
    if isinstance(policy, NoRepeat):
        return {"type": "no_repeat"}
    if isinstance(policy, RepeatCount):
        return {"type": "repeat_count", "data": int(policy.count)}
    if isinstance(policy, RepeatTime):
        return {"type": "repeat_time", "data": float(policy.seconds)}
    if isinstance(policy, InfiniteRepeat):
        return {"type": "infinite"}
    raise TypeError(f"Unknown repeat policy: {policy!r}")


def policy_from_dict(payload: Any) -> RepeatPolicy:
    if not isinstance(payload, dict):
        raise ValueError(f"Invalid repeat policy: {payload!r}")
    kind = payload.get("type")
    data = payload.get("data")
    try:
        if kind == "no_repeat":
            return NoRepeat()
        if kind == "repeat_count":
            return RepeatCount(data)
        if kind == "repeat_time":
            return RepeatTime(float(data))
        if kind == "infinite":
            return InfiniteRepeat()
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid repeat policy: {payload!r}") from exc
    raise ValueError(f"Unknown repeat policy type: {kind!r}")


def behavior_to_dict(behavior: ReaderBehavior) -> Dict[str, Any]:
    options = policy_to_dict(behavior.policy)
    if isinstance(behavior, SegmentBehavior):
        return {
            "type": "segment",
            "data": {
                "start": behavior.start.to_dict(),
                "length": behavior.length,
                "options": options,
            },
        }
    if isinstance(behavior, DailyBehavior):
        return {
            "type": "daily",
            "data": {"month": behavior.month, "day": behavior.day, "options": options},
        }
    if isinstance(behavior, SingleBehavior):
        return {"type": "single", "data": {"options": options}}
    raise TypeError(f"Unknown reader behavior: {behavior!r}")


def behavior_from_dict(payload: Any) -> ReaderBehavior:
    if not isinstance(payload, dict):
        raise ValueError(f"Invalid reader behavior: {payload!r}")
    kind = payload.get("type")
    data = payload.get("data") or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid reader behavior data: {data!r}")
    policy = policy_from_dict(data.get("options", {"type": "no_repeat"}))
    try:
        if kind == "segment":
            return SegmentBehavior(
                start=ChapterAddress.from_dict(data.get("start")),
                length=data.get("length"),
                policy=policy,
            )
        if kind == "daily":
            return DailyBehavior(month=int(data["month"]), day=int(data["day"]), policy=policy)
        if kind == "single":
            return SingleBehavior(policy=policy)
    except (KeyError, TypeError) as exc:
        raise ValueError(f"Invalid reader behavior: {payload!r}") from exc
    raise ValueError(f"Unknown reader behavior type: {kind!r}")


__all__ = [
    "DailyBehavior",
    "InfiniteRepeat",
    "NoRepeat",
    "ReaderBehavior",
    "RepeatCount",
    "RepeatPolicy",
    "RepeatTime",
    "SegmentBehavior",
    "SingleBehavior",
    "behavior_duration",
    "behavior_from_dict",
    "behavior_to_dict",
    "default_behavior",
    "policy_duration",
    "policy_from_dict",
    "policy_to_dict",
    "repeat_bound",
]
