"""The pomodoro engine: cycles work and break sessions and publishes events."""

from __future__ import annotations

import enum
import threading
import time
from datetime import datetime, timedelta
from typing import Callable, Optional

from .config import Config, default_config
from .events import (
    BreakEventData,
    ErrorEventData,
    EventBus,
    EventType,
    PomodoroEventData,
    SessionEventData,
    StatsEventData,
    TimerEventData,
)
from .stats import SessionStats
from .timer import Timer, TimerSnapshot, TimerState


class EngineState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


class SessionType(str, enum.Enum):
    WORK = "work"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"


class EngineError(RuntimeError):
    """Raised when a command is given to an engine that is not running."""


_SESSION_LABELS = {
    SessionType.WORK: "TRABAJO",
    SessionType.SHORT_BREAK: "DESCANSO",
    SessionType.LONG_BREAK: "DESCANSO LARGO",
}


def _break_label(session: SessionType) -> str:
    return "DESCANSO LARGO" if session is SessionType.LONG_BREAK else "DESCANSO"


def _status_label(state: TimerState) -> str:
    if state is TimerState.PAUSED:
        return "PAUSED"
    if state is TimerState.RUNNING:
        return "RUNNING"
    return "STOPPED"


class Engine:
    """Thread-safe pomodoro engine, independent of any user interface.

    The engine advances one second per call to :meth:`tick`.  With a
    ``tick_interval`` (seconds, 1.0 by default) a background thread calls
    :meth:`tick` at that pace while the engine runs; with ``None`` the caller
    drives it.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        *,
        event_bus: Optional[EventBus] = None,
        tick_interval: Optional[float] = 1.0,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        cfg = default_config() if config is None else config
        cfg.validate()
        self._lock = threading.RLock()
        self._config = cfg.clone()
        self._now = now
        self._tick_interval = tick_interval
        self._state = EngineState.IDLE
        self._session = SessionType.WORK
        self._pomodoro_count = 0
        self._running = False
        self._timer: Optional[Timer] = None
        self._stats = SessionStats(clock=now)
        self._bus = event_bus if event_bus is not None else EventBus()
        self._session_start: datetime = now()
        self._stop_ticking = threading.Event()
        self._ticker: Optional[threading.Thread] = None

    # Lifecycle

    def start(self) -> None:
        """Start the engine without starting a session; no-op if running."""
        with self._lock:
            if self._running:
                return
            self._running = True
            self._state = EngineState.IDLE
            self._pomodoro_count = 0
            self._session = SessionType.WORK
            if self._tick_interval is not None:
                self._stop_ticking = threading.Event()
                self._ticker = threading.Thread(
                    target=self._run_ticker,
                    args=(self._stop_ticking, self._tick_interval),
                    daemon=True,
                )
                self._ticker.start()
            moment = self._now()
            self._bus.publish(
                EventType.ENGINE_STARTED,
                SessionEventData(
                    session_id=f"session_{int(time.time())}",
                    start_time=moment,
                    config_used=self._config,
                ),
            )

    def start_first_session(self) -> None:
        """Begin the first work session; no-op if a session already exists."""
        with self._lock:
            if not self._running:
                raise EngineError("engine not running")
            if self._timer is not None:
                return
            self._start_next_session()

    def stop(self) -> None:
        """Stop the engine and its current timer."""
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._state = EngineState.STOPPED
            if self._timer is not None:
                self._timer.stop()
            self._stop_ticking.set()
            ticker, self._ticker = self._ticker, None
            self._bus.publish(
                EventType.ENGINE_STOPPED,
                SessionEventData(
                    end_time=self._now(),
                    total_time=self._stats.session_duration(),
                ),
            )
        if ticker is not None and ticker is not threading.current_thread():
            ticker.join(timeout=5)

    # Commands

    def _require_running(self) -> None:
        if not self._running:
            raise EngineError("engine is not running")

    def pause(self) -> None:
        """Pause the running timer."""
        with self._lock:
            self._require_running()
            timer = self._timer
            if timer is not None and timer.is_running and not timer.is_paused:
                timer.pause()
                self._state = EngineState.PAUSED
                self._bus.publish(
                    EventType.TIMER_PAUSED, self._timer_event_data(timer.snapshot())
                )

    def resume(self) -> None:
        """Resume a paused timer."""
        with self._lock:
            self._require_running()
            timer = self._timer
            if timer is not None and timer.is_paused:
                timer.resume()
                self._state = EngineState.RUNNING
                self._bus.publish(
                    EventType.TIMER_RESUMED, self._timer_event_data(timer.snapshot())
                )

    def skip(self) -> None:
        """Mark the current session as skipped; the next tick moves on."""
        with self._lock:
            self._require_running()
            timer = self._timer
            if timer is not None and (timer.is_running or timer.is_paused):
                timer.skip()

    def tick(self) -> Optional[TimerSnapshot]:
        """Advance the current session by one second.

        Returns the timer snapshot, or None when there is nothing to advance.
        """
        with self._lock:
            if not self._running or self._timer is None:
                return None
            timer = self._timer
            snapshot = timer.tick()
            self._bus.publish(EventType.TIMER_TICK, self._timer_event_data(snapshot))
            if timer.is_finished:
                self._finish_session(completed=True)
            elif timer.is_skipped:
                self._finish_session(completed=False)
            return snapshot

    # Queries

    @property
    def state(self) -> EngineState:
        with self._lock:
            return self._state

    @property
    def current_session(self) -> SessionType:
        with self._lock:
            return self._session

    @property
    def pomodoro_count(self) -> int:
        with self._lock:
            return self._pomodoro_count

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._running

    @property
    def stats(self) -> SessionStats:
        return self._stats

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def config(self) -> Config:
        """A copy of the configuration in use."""
        with self._lock:
            return self._config.clone()

    # Internals

    def _run_ticker(self, stop: threading.Event, interval: float) -> None:
        try:
            while not stop.wait(interval):
                self.tick()
        except Exception as err:  # reported on the bus, as nobody else can see it
            self._bus.publish(
                EventType.ERROR_OCCURRED,
                ErrorEventData(
                    message=f"Engine panic: {err}",
                    code="ENGINE_PANIC",
                    source="engine.run_event_loop",
                ),
            )

    def _start_next_session(self) -> None:
        if not self._running:
            return
        if self._timer is None:
            next_session = SessionType.WORK
            duration = self._config.work_duration
        elif self._session is SessionType.WORK:
            self._pomodoro_count += 1
            duration, is_long = self._config.next_break_type(self._pomodoro_count)
            next_session = SessionType.LONG_BREAK if is_long else SessionType.SHORT_BREAK
        else:
            next_session = SessionType.WORK
            duration = self._config.work_duration

        self._session = next_session
        self._state = EngineState.RUNNING
        self._session_start = self._now()
        self._timer = Timer(duration)
        self._timer.start()

        if next_session is SessionType.WORK:
            self._bus.publish(
                EventType.POMODORO_STARTED,
                PomodoroEventData(
                    number=self._pomodoro_count + 1,
                    duration=duration,
                    start_time=self._session_start,
                ),
            )
        else:
            self._bus.publish(
                EventType.BREAK_STARTED,
                BreakEventData(
                    type=_break_label(next_session),
                    duration=duration,
                    start_time=self._session_start,
                    is_long_break=next_session is SessionType.LONG_BREAK,
                ),
            )
        self._bus.publish(
            EventType.TIMER_STARTED, self._timer_event_data(self._timer.snapshot())
        )

    def _finish_session(self, completed: bool) -> None:
        assert self._timer is not None
        end = self._now()
        start = self._session_start
        actual = end - start
        session = self._session
        duration = self._timer.duration

        if session is SessionType.WORK:
            record = (
                self._stats.add_completed_pomodoro
                if completed
                else self._stats.add_skipped_pomodoro
            )
            record(duration, actual, start, end)
        else:
            record_break = (
                self._stats.add_completed_break
                if completed
                else self._stats.add_skipped_break
            )
            record_break(_break_label(session), duration, actual, start, end)

        self._bus.publish(
            EventType.TIMER_COMPLETED if completed else EventType.TIMER_SKIPPED,
            self._timer_event_data(self._timer.snapshot()),
        )
        self._bus.publish(EventType.STATS_UPDATED, self._stats_event_data())

        if session is SessionType.WORK:
            self._bus.publish(
                EventType.POMODORO_COMPLETED if completed else EventType.POMODORO_SKIPPED,
                PomodoroEventData(
                    number=self._pomodoro_count,
                    duration=duration,
                    actual_time=actual,
                    start_time=start,
                    end_time=end,
                ),
            )
        else:
            self._bus.publish(
                EventType.BREAK_COMPLETED if completed else EventType.BREAK_SKIPPED,
                BreakEventData(
                    type=_break_label(session),
                    duration=duration,
                    actual_time=actual,
                    start_time=start,
                    end_time=end,
                    is_long_break=session is SessionType.LONG_BREAK,
                ),
            )

        self._start_next_session()

    def _timer_event_data(self, snapshot: TimerSnapshot) -> TimerEventData:
        return TimerEventData(
            remaining=snapshot.remaining,
            total=snapshot.duration,
            state=_SESSION_LABELS[self._session],
            status=_status_label(snapshot.state),
            progress=snapshot.progress,
            session_count=self._pomodoro_count,
        )

    def _stats_event_data(self) -> StatsEventData:
        snap = self._stats.snapshot()
        return StatsEventData(
            pomodoros_completed=snap.pomodoros_completed,
            pomodoros_skipped=snap.pomodoros_skipped,
            breaks_completed=snap.breaks_completed,
            breaks_skipped=snap.breaks_skipped,
            current_streak=snap.current_streak,
            best_streak=snap.best_streak,
            total_work_time=snap.total_work_time,
            total_break_time=snap.total_break_time,
            session_duration=snap.session_duration,
            work_efficiency=snap.work_efficiency,
        )