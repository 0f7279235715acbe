"""A thread-safe countdown timer advanced by explicit one-second ticks."""

from __future__ import annotations

import enum
import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Optional

_ONE_SECOND = timedelta(seconds=1)


class TimerState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    SKIPPED = "skipped"
    DONE = "done"


@dataclass(frozen=True)
class TimerSnapshot:
    """An immutable view of a timer at one moment.

    ``started_at`` is a reading of the timer's clock, or None if never started.
    """

    duration: timedelta
    remaining: timedelta
    state: TimerState
    progress: float
    started_at: Optional[float]
    elapsed_active: timedelta
    total_paused: timedelta


class Timer:
    """Countdown timer; each call to :meth:`tick` takes one second off."""

    def __init__(
        self, duration: timedelta, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self._lock = threading.RLock()
        self._clock = clock
        self._duration = duration
        self._remaining = duration
        self._state = TimerState.IDLE
        self._started_at: Optional[float] = None
        self._paused_at: Optional[float] = None
        self._total_paused = timedelta(0)

    def _since(self, moment: float) -> timedelta:
        return timedelta(seconds=self._clock() - moment)

    def start(self) -> None:
        """Start an idle timer or continue a paused one; otherwise do nothing."""
        with self._lock:
            if self._state is TimerState.IDLE:
                self._started_at = self._clock()
                self._total_paused = timedelta(0)
            elif self._state is TimerState.PAUSED:
                if self._paused_at is not None:
                    self._total_paused += self._since(self._paused_at)
            else:
                return
            self._state = TimerState.RUNNING

    def pause(self) -> None:
        """Pause a running timer."""
        with self._lock:
            if self._state is not TimerState.RUNNING:
                return
            self._state = TimerState.PAUSED
            self._paused_at = self._clock()

    def resume(self) -> None:
        """Continue a paused timer (starts an idle one as well)."""
        self.start()

    def skip(self) -> None:
        """Mark a running or paused timer as skipped."""
        with self._lock:
            if self._state in (TimerState.RUNNING, TimerState.PAUSED):
                self._state = TimerState.SKIPPED

    def stop(self) -> None:
        """Stop the timer and restore the full remaining time."""
        with self._lock:
            self._state = TimerState.IDLE
            self._remaining = self._duration

    def reset(self) -> None:
        """Return the timer to its freshly created state."""
        with self._lock:
            self._remaining = self._duration
            self._state = TimerState.IDLE
            self._started_at = None
            self._paused_at = None
            self._total_paused = timedelta(0)

    def tick(self) -> TimerSnapshot:
        """Advance a running timer by one second and return a snapshot."""
        with self._lock:
            if self._state is TimerState.RUNNING and self._remaining > timedelta(0):
                self._remaining -= _ONE_SECOND
                if self._remaining <= timedelta(0):
                    self._state = TimerState.DONE
            return self._snapshot()

    def snapshot(self) -> TimerSnapshot:
        """Return the current state without changing it."""
        with self._lock:
            return self._snapshot()

    def _snapshot(self) -> TimerSnapshot:
        progress = 0.0
        if self._duration > timedelta(0):
            progress = (self._duration - self._remaining) / self._duration

        elapsed_active = timedelta(0)
        if self._started_at is not None:
            elapsed_active = self._since(self._started_at) - self._total_paused
            if self._state is TimerState.PAUSED and self._paused_at is not None:
                elapsed_active -= self._since(self._paused_at)

        return TimerSnapshot(
            duration=self._duration,
            remaining=self._remaining,
            state=self._state,
            progress=progress,
            started_at=self._started_at,
            elapsed_active=elapsed_active,
            total_paused=self._total_paused,
        )

    @property
    def state(self) -> TimerState:
        with self._lock:
            return self._state

    @property
    def is_running(self) -> bool:
        return self.state is TimerState.RUNNING

    @property
    def is_paused(self) -> bool:
        return self.state is TimerState.PAUSED

    @property
    def is_finished(self) -> bool:
        return self.state is TimerState.DONE

    @property
    def is_skipped(self) -> bool:
        return self.state is TimerState.SKIPPED

    @property
    def duration(self) -> timedelta:
        return self._duration

    @property
    def remaining(self) -> timedelta:
        with self._lock:
            return self._remaining