import math

import pytest

from lectio.core.behavior import (
    DailyBehavior,
    InfiniteRepeat,
    NoRepeat,
    RepeatCount,
    RepeatTime,
    SegmentBehavior,
    SingleBehavior,
    behavior_duration,
    behavior_from_dict,
    behavior_to_dict,
    default_behavior,
    policy_from_dict,
    policy_to_dict,
    repeat_bound,
)
from lectio.core.bible import ChapterAddress


def test_repeat_bound_per_policy():
    assert repeat_bound(NoRepeat()) == 1
    assert repeat_bound(RepeatCount(4)) == 4
    assert repeat_bound(RepeatTime(30)) == math.inf
    assert repeat_bound(InfiniteRepeat()) == math.inf


def test_only_timed_behaviors_have_a_duration():
    start = ChapterAddress(0, 0)

    assert behavior_duration(SegmentBehavior(start, 3, RepeatTime(90))) == 90.0
    assert behavior_duration(SegmentBehavior(start, 3, InfiniteRepeat())) is None
    assert behavior_duration(SingleBehavior(RepeatCount(2))) is None


def test_invalid_values_are_rejected():
    with pytest.raises(ValueError):
        RepeatCount(0)
    with pytest.raises(ValueError):
        RepeatTime(0)
    with pytest.raises(ValueError):
        SegmentBehavior(ChapterAddress(0, 0), length=0)
    with pytest.raises(ValueError):
        DailyBehavior(month=12, day=0)
    with pytest.raises(ValueError):
        DailyBehavior(month=0, day=31)


@pytest.mark.parametrize("count", [1.5, "3", True, None])
def test_repeat_count_must_be_a_whole_number(count):
    with pytest.raises(ValueError):
        RepeatCount(count)


@pytest.mark.parametrize("length", [2.5, "3", False])
def test_segment_length_must_be_a_whole_number(length):
    with pytest.raises(ValueError):
        SegmentBehavior(ChapterAddress(0, 0), length=length)


def test_default_behavior_reads_one_chapter_once():
    behavior = default_behavior(ChapterAddress(4, 2))

    assert behavior == SegmentBehavior(ChapterAddress(4, 2), length=1, policy=NoRepeat())


def test_segment_serializes_to_tagged_layout():
    behavior = SegmentBehavior(ChapterAddress(1, 5), length=3, policy=RepeatCount(2))

    payload = behavior_to_dict(behavior)

    assert payload == {
        "type": "segment",
        "data": {
            "start": {"book": 1, "number": 5},
            "length": 3,
            "options": {"type": "repeat_count", "data": 2},
        },
    }
    assert behavior_from_dict(payload) == behavior


def test_continuous_segment_and_other_variants_restore():
    behaviors = [
        SegmentBehavior(ChapterAddress(0, 0), length=None, policy=InfiniteRepeat()),
        DailyBehavior(month=3, day=14, policy=RepeatTime(600.0)),
        SingleBehavior(policy=NoRepeat()),
    ]

    for behavior in behaviors:
        assert behavior_from_dict(behavior_to_dict(behavior)) == behavior


def test_missing_options_default_to_no_repeat():
    behavior = behavior_from_dict({"type": "single", "data": {}})

    assert behavior == SingleBehavior(NoRepeat())


@pytest.mark.parametrize(
    "payload",
    [
        None,
        {"type": "weekly", "data": {}},
        {"type": "daily", "data": {"month": 0}},
        {"type": "segment", "data": {"start": {"book": -1, "number": 0}}},
        {"type": "single", "data": {"options": {"type": "repeat_count", "data": 0}}},
        {"type": "single", "data": {"options": {"type": "repeat_count", "data": 1.5}}},
        {"type": "segment", "data": {"start": {"book": 0, "number": 0}, "length": 2.5}},
    ],
)
def test_malformed_behavior_payloads_raise_value_error(payload):
    with pytest.raises(ValueError):
        behavior_from_dict(payload)


def test_policy_dict_uses_plain_values():
    assert policy_to_dict(RepeatTime(12)) == {"type": "repeat_time", "data": 12.0}
    assert policy_to_dict(InfiniteRepeat()) == {"type": "infinite"}
    assert policy_from_dict({"type": "no_repeat"}) == NoRepeat()
    with pytest.raises(ValueError):
        policy_from_dict({"type": "sometimes"})
