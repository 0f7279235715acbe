# pomodoro-core

A small Pomodoro engine with no user interface of its own. It cycles through
work sessions, short breaks and long breaks. It announces what happens on an
event bus and records statistics for the session. You supply the interface,
for example a terminal, a desktop app or a bot.

Python 3.10 or later is needed. The package has no runtime dependencies.

## Modules

- `pomodoro_core.config`: `Config`, `default_config()`, `load_from_file()`,
  `format_duration()`, `ValidationError`, `ConfigError`
- `pomodoro_core.timer`: `Timer`, `TimerState`, `TimerSnapshot`
- `pomodoro_core.events`: `EventBus`, `EventType`, `Event`, the payload
  classes, `new_timer_event()`, `new_error_event()`
- `pomodoro_core.stats`: `SessionStats`, `StatsSnapshot`, `CompletedSession`,
  `format_duration()`
- `pomodoro_core.engine`: `Engine`, `EngineState`, `SessionType`, `EngineError`

## Configuration

```python
from datetime import timedelta
from pomodoro_core.config import Config, default_config, load_from_file

cfg = default_config()          # 25 min work, 5 min short, 15 min long, long break every 4
custom = Config(
    work_duration=timedelta(minutes=50),
    short_break=timedelta(minutes=10),
    long_break=timedelta(minutes=30),
    long_break_interval=3,
)
custom.validate()               # raises ValidationError when a value is out of range
custom.save_to_file("pomodoro.json")
same = load_from_file("pomodoro.json")
print(same)                     # Config{Work: 50m0s, Short: 10m0s, Long: 30m0s, Interval: 3}
```

These are the limits:

- Work lasts 1–120 minutes.
- A short break lasts 1–30 minutes.
- A long break lasts 5–60 minutes and must be longer than the short break.
- The long-break interval is 2–10.

`ValidationError` is a `ValueError` and carries `field` and `message`.
`save_to_file()` and `load_from_file()` raise `ConfigError` in four cases:

- the file cannot be read
- the file cannot be written
- the file cannot be parsed
- the configuration is invalid

In the JSON file, durations are integers in nanoseconds. A missing field reads
as zero.

`next_break_type(n)` returns the break that follows pomodoro number `n` and
whether it is a long one.

## Running the engine

`Engine()` validates its configuration and keeps a copy of it. If no
configuration is given, it uses the default one. Each call to `tick()` takes
one second off the current session.

By default a background thread calls `tick()` once a second while the engine
runs. `tick_interval` sets a different pace in seconds. To drive the engine
from your own loop, pass `tick_interval=None`:

```python
import time
from pomodoro_core.engine import Engine
from pomodoro_core.events import EventType

engine = Engine(tick_interval=None)
bus = engine.event_bus

bus.subscribe(EventType.POMODORO_COMPLETED, lambda ev: print("Pomodoro done:", ev.data.number))
bus.subscribe(EventType.TIMER_TICK, lambda ev: print(ev.data.remaining))

engine.start()                  # the engine runs, but no session has begun
engine.start_first_session()    # the first work session begins

while engine.is_running:
    time.sleep(1)
    engine.tick()
```

When a session ends, the next one starts at once:

- After work comes a break. After every `long_break_interval`-th pomodoro the
  break is long.
- After a break comes work.

These methods control the current session:

- `pause()` pauses the timer.
- `resume()` continues a paused timer.
- `skip()` marks the session as skipped, and the next tick records it and
  moves on.
- `stop()` ends everything and waits for the background thread.

`pause()`, `resume()`, `skip()` and `start_first_session()` raise `EngineError`
when the engine is not running.

The properties `state`, `current_session`, `pomodoro_count`, `is_running`,
`stats`, `event_bus` and `config` report where the cycle stands. `config`
returns a copy.

`Engine` also accepts two keyword arguments:

- `event_bus=` sets the bus to use.
- `now=` sets the clock that stamps session times.

## Events

`EventBus.subscribe(event_type, handler)` registers a handler for one event
type. `subscribe_global(handler)` registers one for every event. A handler is
either a callable or an object with a `handle_event(event)` method.

By default each handler runs in its own daemon thread. `EventBus(synchronous=True)`
runs handlers in the publishing thread, in order.

`unsubscribe()`, `clear()`, `subscriber_count()` and `global_subscriber_count()`
manage and count the handlers.

Each handler receives an `Event` with `type`, `timestamp` and `data`. `data` is
one of these payloads:

- `TimerEventData`
- `PomodoroEventData`
- `BreakEventData`
- `StatsEventData`
- `SessionEventData`
- `ErrorEventData`

## Statistics

```python
stats = engine.stats
print(stats.quick_stats())
print(stats.stats_display())

snap = stats.snapshot()
print(snap.pomodoros_completed, snap.best_streak, snap.work_efficiency)

saved = stats.export_json()     # a JSON string; durations in nanoseconds, times in ISO 8601
stats.import_json(saved)        # raises ValueError for an unreadable document
```

Completing a pomodoro extends the current streak, and skipping one resets it.
Work efficiency is the percentage of pomodoros that were completed rather than
skipped.

These methods return lists from the session history:

- `completed_sessions()` returns all of it.
- `recent_sessions(n)` returns the last `n` entries.
- `work_sessions()` returns only the work sessions.
- `break_sessions()` returns only the breaks.

`reset()` clears everything.

## Timer

`Timer(duration)` is the countdown used by the engine, and it can be used on its
own. It has `start()`, `pause()`, `resume()`, `skip()`, `stop()` and `reset()`.
`tick()` removes one second from a running timer and returns a `TimerSnapshot`.

## What the package does not do

There is no command-line program and no screen. Statistics are not saved
anywhere on their own: `export_json()` returns a string for you to store. No
sounds or desktop notifications are made; subscribe to the events to produce
them.

## Running the tests

```
pip install "pomodoro-core[test]"
pytest
```