import threading
from datetime import datetime, timedelta

import pytest

from pomodoro_core.config import Config, ValidationError
from pomodoro_core.engine import Engine, EngineError, EngineState, SessionType
from pomodoro_core.events import EventBus, EventType


class FakeNow:
    def __init__(self):
        self.moment = datetime(2024, 1, 1, 9, 0, 0)

    def __call__(self):
        return self.moment

    def advance(self, delta):
        self.moment += delta


def short_config():
    return Config(
        work_duration=timedelta(minutes=1),
        short_break=timedelta(minutes=1),
        long_break=timedelta(minutes=5),
        long_break_interval=2,
    )


def make_engine(now=None):
    bus = EventBus(synchronous=True)
    events = []
    bus.subscribe_global(events.append)
    engine = Engine(
        short_config(), event_bus=bus, tick_interval=None, now=now or FakeNow()
    )
    return engine, events


def types(events):
    return [e.type for e in events]


def run_ticks(engine, n):
    for _ in range(n):
        engine.tick()


def test_new_engine_defaults():
    engine = Engine(tick_interval=None)
    assert engine.state is EngineState.IDLE
    assert engine.current_session is SessionType.WORK
    assert engine.pomodoro_count == 0
    assert engine.is_running is False
    assert engine.config.work_duration == timedelta(minutes=25)


def test_invalid_config_rejected():
    bad = Config(work_duration=timedelta(seconds=10))
    with pytest.raises(ValidationError):
        Engine(bad, tick_interval=None)


def test_config_is_a_copy():
    cfg = short_config()
    engine = Engine(cfg, tick_interval=None)
    cfg.long_break_interval = 9
    copy = engine.config
    copy.long_break_interval = 7
    assert engine.config.long_break_interval == 2


def test_commands_require_running_engine():
    engine, _ = make_engine()
    with pytest.raises(EngineError):
        engine.pause()
    with pytest.raises(EngineError):
        engine.resume()
    with pytest.raises(EngineError):
        engine.skip()
    with pytest.raises(EngineError):
        engine.start_first_session()


def test_start_publishes_once():
    engine, events = make_engine()
    engine.start()
    engine.start()
    assert engine.is_running is True
    assert engine.state is EngineState.IDLE
    assert types(events) == [EventType.ENGINE_STARTED]
    assert events[0].data.session_id.startswith("session_")
    assert events[0].data.config_used == short_config()


def test_tick_without_session_returns_none():
    engine, _ = make_engine()
    assert engine.tick() is None
    engine.start()
    assert engine.tick() is None


def test_first_session_is_work():
    engine, events = make_engine()
    engine.start()
    engine.start_first_session()
    assert engine.state is EngineState.RUNNING
    assert engine.current_session is SessionType.WORK
    assert types(events)[1:] == [EventType.POMODORO_STARTED, EventType.TIMER_STARTED]
    assert events[1].data.number == 1
    assert events[1].data.duration == timedelta(minutes=1)
    started = events[2].data
    assert started.state == "TRABAJO"
    assert started.status == "RUNNING"
    assert started.remaining == started.total


def test_second_first_session_call_is_noop():
    engine, events = make_engine()
    engine.start()
    engine.start_first_session()
    count = len(events)
    engine.start_first_session()
    assert len(events) == count


def test_tick_counts_down():
    engine, events = make_engine()
    engine.start()
    engine.start_first_session()
    snap = engine.tick()
    assert snap.remaining == timedelta(minutes=1) - timedelta(seconds=1)
    tick_event = events[-1]
    assert tick_event.type is EventType.TIMER_TICK
    assert tick_event.data.remaining == snap.remaining
    assert tick_event.data.session_count == 0


def test_completing_work_starts_short_break():
    now = FakeNow()
    engine, events = make_engine(now)
    engine.start()
    engine.start_first_session()
    run_ticks(engine, 59)
    now.advance(timedelta(minutes=1))
    engine.tick()
    assert engine.pomodoro_count == 1
    assert engine.current_session is SessionType.SHORT_BREAK
    tail = types(events)
    for expected in (
        EventType.TIMER_COMPLETED,
        EventType.STATS_UPDATED,
        EventType.POMODORO_COMPLETED,
        EventType.BREAK_STARTED,
    ):
        assert expected in tail
    assert tail.index(EventType.TIMER_COMPLETED) < tail.index(EventType.BREAK_STARTED)
    snap = engine.stats.snapshot()
    assert snap.pomodoros_completed == 1
    assert snap.current_streak == 1
    work = engine.stats.work_sessions()
    assert len(work) == 1
    assert work[0].actual_time == timedelta(minutes=1)
    assert work[0].completed is True


def test_second_pomodoro_leads_to_long_break():
    engine, events = make_engine()
    engine.start()
    engine.start_first_session()
    run_ticks(engine, 60)  # work
    run_ticks(engine, 60)  # short break
    assert engine.current_session is SessionType.WORK
    run_ticks(engine, 60)  # work
    assert engine.current_session is SessionType.LONG_BREAK
    assert engine.pomodoro_count == 2
    breaks = [e for e in events if e.type is EventType.BREAK_STARTED]
    assert [b.data.is_long_break for b in breaks] == [False, True]
    assert breaks[-1].data.type == "DESCANSO LARGO"
    assert breaks[-1].data.duration == timedelta(minutes=5)
    assert engine.stats.snapshot().breaks_completed == 1


def test_pause_and_resume():
    engine, events = make_engine()
    engine.start()
    engine.start_first_session()
    before = engine.tick()
    engine.pause()
    assert engine.state is EngineState.PAUSED
    assert events[-1].type is EventType.TIMER_PAUSED
    assert events[-1].data.status == "PAUSED"
    during = engine.tick()
    assert during.remaining == before.remaining
    engine.resume()
    assert engine.state is EngineState.RUNNING
    assert events[-1].type is EventType.TIMER_RESUMED
    after = engine.tick()
    assert after.remaining < before.remaining


def test_skip_work_takes_effect_on_next_tick():
    engine, events = make_engine()
    engine.start()
    engine.start_first_session()
    engine.skip()
    assert engine.current_session is SessionType.WORK
    engine.tick()
    assert engine.current_session is SessionType.SHORT_BREAK
    assert engine.pomodoro_count == 1
    assert EventType.TIMER_SKIPPED in types(events)
    assert EventType.POMODORO_SKIPPED in types(events)
    snap = engine.stats.snapshot()
    assert snap.pomodoros_skipped == 1
    assert snap.pomodoros_completed == 0
    assert snap.current_streak == 0


def test_skip_break():
    engine, events = make_engine()
    engine.start()
    engine.start_first_session()
    run_ticks(engine, 60)
    engine.skip()
    engine.tick()
    assert engine.current_session is SessionType.WORK
    skipped = [e for e in events if e.type is EventType.BREAK_SKIPPED]
    assert len(skipped) == 1
    assert skipped[0].data.type == "DESCANSO"
    assert engine.stats.snapshot().breaks_skipped == 1


def test_skip_while_paused():
    engine, _ = make_engine()
    engine.start()
    engine.start_first_session()
    engine.pause()
    engine.skip()
    engine.tick()
    assert engine.current_session is SessionType.SHORT_BREAK


def test_stop():
    engine, events = make_engine()
    engine.start()
    engine.start_first_session()
    engine.stop()
    assert engine.is_running is False
    assert engine.state is EngineState.STOPPED
    assert events[-1].type is EventType.ENGINE_STOPPED
    assert engine.tick() is None
    with pytest.raises(EngineError):
        engine.pause()
    count = len(events)
    engine.stop()
    assert len(events) == count


def test_background_ticker_drives_engine():
    bus = EventBus(synchronous=True)
    ticked = threading.Event()
    bus.subscribe(EventType.TIMER_TICK, lambda event: ticked.set())
    engine = Engine(short_config(), event_bus=bus, tick_interval=0.01)
    engine.start()
    engine.start_first_session()
    try:
        assert ticked.wait(timeout=5) is True
    finally:
        engine.stop()
    assert engine.is_running is False
    assert engine.event_bus is bus