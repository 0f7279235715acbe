"""Event types, event payloads and a thread-safe publish/subscribe bus."""

from __future__ import annotations

import enum
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Optional, Protocol, Union, runtime_checkable


class EventType(str, enum.Enum):
    """Kinds of events the system emits."""

    ENGINE_STARTED = "engine_started"
    ENGINE_STOPPED = "engine_stopped"

    TIMER_STARTED = "timer_started"
    TIMER_TICK = "timer_tick"
    TIMER_PAUSED = "timer_paused"
    TIMER_RESUMED = "timer_resumed"
    TIMER_COMPLETED = "timer_completed"
    TIMER_SKIPPED = "timer_skipped"

    SESSION_STARTED = "session_started"
    SESSION_ENDED = "session_ended"

    POMODORO_STARTED = "pomodoro_started"
    POMODORO_COMPLETED = "pomodoro_completed"
    POMODORO_SKIPPED = "pomodoro_skipped"

    BREAK_STARTED = "break_started"
    BREAK_COMPLETED = "break_completed"
    BREAK_SKIPPED = "break_skipped"

    STATS_UPDATED = "stats_updated"

    ERROR_OCCURRED = "error_occurred"


@dataclass(frozen=True)
class Event:
    """An event emitted by the system."""

    type: EventType
    timestamp: datetime
    data: Any = None


@runtime_checkable
class EventHandler(Protocol):
    """An object that receives events through a ``handle_event`` method."""

    def handle_event(self, event: Event) -> None: ...


Handler = Union[Callable[[Event], None], EventHandler]


def _invoke(handler: Handler, event: Event) -> None:
    method = getattr(handler, "handle_event", None)
    if method is not None:
        method(event)
    else:
        handler(event)  # type: ignore[operator]


class EventBus:
    """Delivers published events to global and per-type subscribers.

    Handlers may be plain callables or objects with a ``handle_event`` method.
    By default each handler runs in its own daemon thread; with
    ``synchronous=True`` handlers run in the publishing thread, in order.
    """

    def __init__(self, synchronous: bool = False) -> None:
        self._lock = threading.RLock()
        self._handlers: defaultdict[EventType, list[Handler]] = defaultdict(list)
        self._global: list[Handler] = []
        self._synchronous = synchronous

    def subscribe(self, event_type: EventType, handler: Handler) -> None:
        """Register a handler for one type of event."""
        with self._lock:
            self._handlers[EventType(event_type)].append(handler)

    def subscribe_global(self, handler: Handler) -> None:
        """Register a handler that receives every event."""
        with self._lock:
            self._global.append(handler)

    def publish(self, event_type: EventType, data: Any) -> Event:
        """Send an event to all global handlers, then to the type's handlers."""
        event = Event(type=EventType(event_type), timestamp=datetime.now(), data=data)
        with self._lock:
            targets = [*self._global, *self._handlers.get(event.type, ())]
        for handler in targets:
            if self._synchronous:
                _invoke(handler, event)
            else:
                threading.Thread(
                    target=_invoke, args=(handler, event), daemon=True
                ).start()
        return event

    def unsubscribe(self, event_type: EventType, handler: Handler) -> None:
        """Remove the first registration of ``handler`` for ``event_type``."""
        with self._lock:
            handlers = self._handlers.get(EventType(event_type))
            if not handlers:
                return
            for index, registered in enumerate(handlers):
                if registered is handler or registered == handler:
                    del handlers[index]
                    break

    def clear(self) -> None:
        """Remove every handler."""
        with self._lock:
            self._handlers.clear()
            self._global.clear()

    def subscriber_count(self, event_type: EventType) -> int:
        """Number of handlers registered for one event type."""
        with self._lock:
            return len(self._handlers.get(EventType(event_type), ()))

    def global_subscriber_count(self) -> int:
        """Number of handlers that receive every event."""
        with self._lock:
            return len(self._global)


@dataclass(frozen=True)
class TimerEventData:
    """Payload of timer events."""

    remaining: timedelta
    total: timedelta
    state: str
    status: str
    progress: float
    session_count: int


@dataclass(frozen=True)
class PomodoroEventData:
    """Payload of pomodoro events."""

    number: int
    duration: timedelta = timedelta(0)
    actual_time: timedelta = timedelta(0)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    next_break: str = ""
    next_duration: timedelta = timedelta(0)


@dataclass(frozen=True)
class BreakEventData:
    """Payload of break events."""

    type: str
    duration: timedelta = timedelta(0)
    actual_time: timedelta = timedelta(0)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    is_long_break: bool = False


@dataclass(frozen=True)
class StatsEventData:
    """Payload of statistics events."""

    pomodoros_completed: int = 0
    pomodoros_skipped: int = 0
    breaks_completed: int = 0
    breaks_skipped: int = 0
    current_streak: int = 0
    best_streak: int = 0
    total_work_time: timedelta = timedelta(0)
    total_break_time: timedelta = timedelta(0)
    session_duration: timedelta = timedelta(0)
    work_efficiency: float = 0.0


@dataclass(frozen=True)
class SessionEventData:
    """Payload of engine and session events."""

    session_id: str = ""
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    total_time: timedelta = timedelta(0)
    config_used: Any = None


@dataclass(frozen=True)
class ErrorEventData:
    """Payload of error events."""

    message: str
    code: str
    source: str
    details: Any = field(default=None)


def new_timer_event(
    event_type: EventType,
    remaining: timedelta,
    total: timedelta,
    state: str,
    status: str,
    progress: float,
    session_count: int,
) -> Event:
    """Build a timer event stamped with the current time."""
    return Event(
        type=EventType(event_type),
        timestamp=datetime.now(),
        data=TimerEventData(
            remaining=remaining,
            total=total,
            state=state,
            status=status,
            progress=progress,
            session_count=session_count,
        ),
    )


def new_error_event(message: str, code: str, source: str, details: Any) -> Event:
    """Build an error event stamped with the current time."""
    return Event(
        type=EventType.ERROR_OCCURRED,
        timestamp=datetime.now(),
        data=ErrorEventData(message=message, code=code, source=source, details=details),
    )