from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Optional

import pytest

from lectio.core.behavior import (
    DailyBehavior,
    InfiniteRepeat,
    NoRepeat,
    ReaderBehavior,
    RepeatCount,
    RepeatTime,
    SegmentBehavior,
    SingleBehavior,
)
from lectio.core.bible import BibleStructure, BookInfo, ChapterAddress, Passage, VerseRange
from lectio.core.reading_plan import ReadingPlan
from lectio.core.storage import MemoryValueStore, YamlValueStore
from lectio.reader import (
    PlayerBehaviorState,
    ReaderLibrary,
    StoredBehaviorStore,
    TickLoop,
    TimerEvent,
    TimerEventKind,
    TimerState,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class ManualTickLoop:
    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        self.callback = callback
        self.active = False

    def start(self) -> None:
        self.active = True

    def cancel(self) -> None:
        self.active = False

    def fire(self) -> None:
        if self.active:
            self.callback()


class LoopRecorder:
    def __init__(self) -> None:
        self.loops: List[ManualTickLoop] = []

    def __call__(self, interval: float, callback: Callable[[], None]) -> ManualTickLoop:
        loop = ManualTickLoop(interval, callback)
        self.loops.append(loop)
        return loop


class DummyBehaviorStore:
    def __init__(self, behavior: ReaderBehavior) -> None:
        self.behavior = behavior
        self.set_calls: List[ReaderBehavior] = []

    def get_reader_behavior(self) -> ReaderBehavior:
        return self.behavior

    def set_reader_behavior(self, behavior: ReaderBehavior) -> None:
        self.set_calls.append(behavior)
        self.behavior = behavior


def _library(store) -> ReaderLibrary:
    structure = BibleStructure([BookInfo("Alpha", 3), BookInfo("Beta", 2)])
    plan = ReadingPlan.from_mapping({1: {1: ["Alpha 1", "Beta 2:1-3"]}})
    return ReaderLibrary(structure, plan, store)


def _state(behavior: ReaderBehavior, store=None):
    store = store if store is not None else MemoryValueStore()
    clock = FakeClock()
    loops = LoopRecorder()
    behaviors = DummyBehaviorStore(behavior)
    state = PlayerBehaviorState(_library(store), behaviors, store, clock=clock, loop_factory=loops)
    return state, behaviors, clock, loops, store


def test_segment_count_sections_and_exhaustion():
    behavior = SegmentBehavior(ChapterAddress(0, 0), length=2, policy=RepeatCount(3))
    state, *_ = _state(behavior)

    for index in range(6):
        assert state.get_section(index) is not None
    assert state.get_section(6) is None


def test_get_section_defaults_to_current_index():
    state, *_ = _state(SegmentBehavior(ChapterAddress(0, 0), length=3, policy=NoRepeat()))

    state.advance()
    state.advance()

    assert state.index == 2
    assert state.get_section() == Passage(ChapterAddress(0, 2))
    state.advance()
    assert state.get_section() is None


def test_set_behavior_resets_index_and_notifies():
    state, behaviors, *_ = _state(SegmentBehavior(ChapterAddress(0, 0), length=None, policy=InfiniteRepeat()))
    changed: List[ReaderBehavior] = []
    state.behavior_changed.add_listener(changed.append)
    state.set_index(7)

    new_behavior = DailyBehavior(month=0, day=0)
    state.set_behavior(new_behavior)

    assert state.index == 0
    assert behaviors.set_calls == [new_behavior]
    assert state.get_behavior() == new_behavior
    assert changed == [new_behavior]
    assert state.timer is None
    assert state.get_section(1) == Passage(ChapterAddress(1, 1), VerseRange(0, 2))


def test_timed_behavior_starts_a_paused_timer():
    state, _behaviors, _clock, loops, store = _state(SingleBehavior())
    events: List[TimerEvent] = []
    state.timer_events.add_listener(events.append)
    store.set("reader.timer_elapsed", 12.0)

    state.set_behavior(SingleBehavior(RepeatTime(60)))

    assert state.timer is not None
    assert state.timer.duration == 60.0
    assert state.timer.current_time == 0.0
    assert not state.is_timer_active()
    assert [event.kind for event in events] == [TimerEventKind.STARTED]


def test_replacing_timed_behavior_stops_previous_timer():
    state, _behaviors, _clock, loops, _store = _state(SingleBehavior(RepeatTime(30)))
    first = state.timer
    events: List[TimerEvent] = []
    state.timer_events.add_listener(events.append)

    state.set_behavior(SingleBehavior(RepeatTime(45)))

    assert first is not None and first.state is TimerState.STOPPED
    assert not loops.loops[0].active
    assert state.timer is not first
    assert [event.kind for event in events] == [TimerEventKind.STOPPED, TimerEventKind.STARTED]


def test_timer_ticks_are_relayed_and_finish_exhausts_sections():
    state, _behaviors, clock, loops, store = _state(SingleBehavior(RepeatTime(2)))
    events: List[TimerEvent] = []
    state.timer_events.add_listener(events.append)
    loop = loops.loops[-1]

    state.resume_or_restart()
    loop.fire()
    clock.now += 1.0
    loop.fire()

    assert state.is_timer_active()
    assert store.get("reader.timer_elapsed") == pytest.approx(1.0)
    assert state.get_section(50) is not None

    clock.now += 1.5
    loop.fire()

    assert [event.kind for event in events] == [
        TimerEventKind.TICK,
        TimerEventKind.TICK,
        TimerEventKind.STOPPED,
    ]
    assert state.get_section() is None


def test_stale_timer_events_are_not_relayed():
    state, *_ = _state(SingleBehavior(RepeatTime(10)))
    old_timer = state.timer
    events: List[TimerEvent] = []
    state.timer_events.add_listener(events.append)

    state.start_timer()
    events.clear()
    old_timer.events.invoke(TimerEvent(TimerEventKind.TICK, elapsed=1.0, duration=10.0))

    assert events == []
    state.timer.events.invoke(TimerEvent(TimerEventKind.TICK, elapsed=2.0, duration=10.0))
    assert [event.elapsed for event in events] == [2.0]


def test_resume_or_restart_after_finish_starts_fresh_timer():
    state, _behaviors, clock, loops, store = _state(SingleBehavior(RepeatTime(1)))
    state.resume_or_restart()
    loops.loops[-1].fire()
    clock.now += 2.0
    loops.loops[-1].fire()
    finished = state.timer
    assert finished is not None and finished.is_finished()

    state.resume_or_restart()

    assert state.timer is not finished
    assert state.timer.current_time == 0.0
    assert state.is_timer_active()
    assert store.get("reader.timer_elapsed") == 0.0


def test_pause_is_silent_and_stop_notifies():
    state, *_ = _state(SingleBehavior(RepeatTime(5)))
    state.resume_or_restart()
    events: List[TimerEvent] = []
    state.timer_events.add_listener(events.append)

    state.pause_timer()
    assert events == []
    assert not state.is_timer_active()

    state.stop_timer()
    assert [event.kind for event in events] == [TimerEventKind.STOPPED]
    assert state.timer is None

    state.stop_timer()
    assert len(events) == 1


def test_restart_zeroes_existing_timer_in_place():
    state, _behaviors, clock, loops, _store = _state(SingleBehavior(RepeatTime(10)))
    state.resume_or_restart()
    timer = state.timer
    loops.loops[-1].fire()
    clock.now += 3.0
    loops.loops[-1].fire()

    state.restart()

    assert state.timer is timer
    assert timer.current_time == 0.0


def test_timer_operations_without_timed_behavior_are_noops():
    state, _behaviors, _clock, loops, _store = _state(SingleBehavior(RepeatCount(2)))

    state.pause_timer()
    state.resume_or_restart()
    state.restart()

    assert state.timer is None
    assert loops.loops == []
    assert state.start_timer() is None


def test_negative_index_is_rejected():
    state, *_ = _state(SingleBehavior())

    with pytest.raises(ValueError):
        state.set_index(-1)
    with pytest.raises(ValueError):
        state.get_section(-2)


def test_state_survives_reconstruction(tmp_path: Path):
    path = tmp_path / "session.yaml"
    store = YamlValueStore(path)
    library = _library(store)
    behaviors = StoredBehaviorStore.for_library(store, library)
    loops = LoopRecorder()
    clock = FakeClock()
    state = PlayerBehaviorState(library, behaviors, store, clock=clock, loop_factory=loops)
    state.set_behavior(SegmentBehavior(ChapterAddress(0, 1), length=3, policy=RepeatTime(30)))
    state.set_index(2)
    state.resume_or_restart()
    loops.loops[-1].fire()
    clock.now += 4.0
    loops.loops[-1].fire()
    state.pause_timer()

    reloaded_store = YamlValueStore(path)
    reloaded_library = _library(reloaded_store)
    reloaded = PlayerBehaviorState(
        reloaded_library,
        StoredBehaviorStore.for_library(reloaded_store, reloaded_library),
        reloaded_store,
        clock=clock,
        loop_factory=LoopRecorder(),
    )

    assert reloaded.get_behavior() == SegmentBehavior(ChapterAddress(0, 1), length=3, policy=RepeatTime(30))
    assert reloaded.index == 2
    assert reloaded.timer is not None
    assert reloaded.timer.current_time == pytest.approx(4.0)
    assert reloaded.get_section() == Passage(ChapterAddress(1, 0))


def test_default_behavior_follows_open_chapter():
    store = MemoryValueStore()
    library = _library(store)
    library.open_passage(Passage(ChapterAddress(1, 1)))
    behaviors = StoredBehaviorStore.for_library(store, library)

    assert behaviors.get_reader_behavior() == SegmentBehavior(ChapterAddress(1, 1), length=1, policy=NoRepeat())


def test_corrupt_stored_index_falls_back_to_zero():
    store = MemoryValueStore({"reader.index": -4})
    state, *_ = _state(SingleBehavior(), store)

    assert state.index == 0


def test_close_cancels_tick_loop_silently():
    state, _behaviors, clock, loops, store = _state(SingleBehavior(RepeatTime(60)))
    events: List[TimerEvent] = []
    state.timer_events.add_listener(events.append)
    state.resume_or_restart()
    loop = loops.loops[-1]
    loop.fire()
    clock.now += 5.0
    loop.fire()
    events.clear()

    state.close()
    state.close()

    assert not loop.active
    assert state.timer is None
    assert events == []
    assert store.get("reader.timer_elapsed") == pytest.approx(5.0)


def test_close_stops_real_tick_thread():
    store = MemoryValueStore()
    loops: List[TickLoop] = []

    def loop_factory(interval: float, callback: Callable[[], None]) -> TickLoop:
        loops.append(TickLoop(interval, callback))
        return loops[-1]

    state = PlayerBehaviorState(
        _library(store),
        DummyBehaviorStore(SingleBehavior(RepeatTime(60))),
        store,
        tick_interval=0.01,
        loop_factory=loop_factory,
    )
    timer = state.timer
    assert timer is not None and loops[0].active

    state.close()

    assert timer.state is TimerState.STOPPED
    assert not loops[0].active
