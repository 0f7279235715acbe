"""Thread-safe statistics of a pomodoro session, with JSON export and import."""

from __future__ import annotations

import json
import math
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Mapping, Union

WORK_TYPE = "TRABAJO"
LONG_BREAK_TYPE = "DESCANSO LARGO"

_NS_PER_US = 1_000
_ZERO_TIME = datetime.min
_BAR_WIDTH = 20


@dataclass(frozen=True)
class CompletedSession:
    """One finished session, either completed or skipped."""

    type: str
    duration: timedelta
    actual_time: timedelta
    start_time: datetime
    end_time: datetime
    completed: bool


@dataclass(frozen=True)
class StatsSnapshot:
    """An immutable view of the statistics at one moment."""

    pomodoros_completed: int
    pomodoros_skipped: int
    breaks_completed: int
    breaks_skipped: int
    long_breaks_completed: int
    current_streak: int
    best_streak: int
    total_work_time: timedelta
    total_break_time: timedelta
    session_duration: timedelta
    work_efficiency: float
    total_sessions: int


def _to_ns(d: timedelta) -> int:
    return (d // timedelta(microseconds=1)) * _NS_PER_US


def _from_ns(ns: int) -> timedelta:
    if ns >= 0:
        return timedelta(microseconds=ns // _NS_PER_US)
    return -timedelta(microseconds=(-ns) // _NS_PER_US)


def _time_text(moment: datetime) -> str:
    return moment.isoformat()


def _parse_time(name: str, value: Any) -> datetime:
    if value is None:
        return _ZERO_TIME
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a time string, got {value!r}")
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        return datetime.fromisoformat(text)
    except ValueError as err:
        raise ValueError(f"{name}: {err}") from err


def _parse_int(name: str, value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    return value


def _parse_bool(name: str, value: Any) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValueError(f"{name} must be a boolean, got {value!r}")
    return value


def _parse_str(name: str, value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a string, got {value!r}")
    return value


def _session_to_dict(session: CompletedSession) -> dict[str, Any]:
    return {
        "type": session.type,
        "duration": _to_ns(session.duration),
        "actual_time": _to_ns(session.actual_time),
        "start_time": _time_text(session.start_time),
        "end_time": _time_text(session.end_time),
        "completed": session.completed,
    }


def _session_from_dict(data: Any) -> CompletedSession:
    if not isinstance(data, Mapping):
        raise ValueError("each completed session must be a JSON object")
    return CompletedSession(
        type=_parse_str("type", data.get("type")),
        duration=_from_ns(_parse_int("duration", data.get("duration"))),
        actual_time=_from_ns(_parse_int("actual_time", data.get("actual_time"))),
        start_time=_parse_time("start_time", data.get("start_time")),
        end_time=_parse_time("end_time", data.get("end_time")),
        completed=_parse_bool("completed", data.get("completed")),
    )


def _efficiency_bar(efficiency: float) -> str:
    filled = max(0, min(_BAR_WIDTH, int(efficiency / 100 * _BAR_WIDTH)))
    if efficiency >= 80:
        mark = "█"
    elif efficiency >= 60:
        mark = "▓"
    else:
        mark = "▒"
    return mark * filled + "░" * (_BAR_WIDTH - filled)


def format_duration(d: timedelta) -> str:
    """Format a duration as ``"<h>h <m>m <s>s"``, ``"<m>m <s>s"`` or ``"<s>s"``."""
    total = d.total_seconds()
    hours = int(total / 3600)
    minutes = int(math.fmod(int(total / 60), 60))
    seconds = int(math.fmod(int(total), 60))
    if hours > 0:
        return f"{hours}h {minutes}m {seconds}s"
    if minutes > 0:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


class SessionStats:
    """Counters, streaks, accumulated times and history of one session."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self._lock = threading.RLock()
        self._clock = clock
        self._clear()

    def _clear(self) -> None:
        self._pomodoros_completed = 0
        self._pomodoros_skipped = 0
        self._breaks_completed = 0
        self._breaks_skipped = 0
        self._long_breaks_completed = 0
        self._total_work_time = timedelta(0)
        self._total_break_time = timedelta(0)
        self._session_start_time = self._clock()
        self._current_streak = 0
        self._best_streak = 0
        self._sessions: list[CompletedSession] = []

    def _since(self, moment: datetime) -> timedelta:
        now = self._clock()
        if now.tzinfo is not None and moment.tzinfo is None:
            now = now.astimezone().replace(tzinfo=None)
        elif now.tzinfo is None and moment.tzinfo is not None:
            moment = moment.astimezone().replace(tzinfo=None)
        return now - moment

    @property
    def session_start_time(self) -> datetime:
        with self._lock:
            return self._session_start_time

    def add_completed_pomodoro(
        self,
        duration: timedelta,
        actual_time: timedelta,
        start_time: datetime,
        end_time: datetime,
    ) -> None:
        """Record a completed pomodoro; it extends the current streak."""
        with self._lock:
            self._pomodoros_completed += 1
            self._total_work_time += actual_time
            self._current_streak += 1
            self._best_streak = max(self._best_streak, self._current_streak)
            self._sessions.append(
                CompletedSession(WORK_TYPE, duration, actual_time, start_time, end_time, True)
            )

    def add_skipped_pomodoro(
        self,
        duration: timedelta,
        actual_time: timedelta,
        start_time: datetime,
        end_time: datetime,
    ) -> None:
        """Record a skipped pomodoro; it breaks the current streak."""
        with self._lock:
            self._pomodoros_skipped += 1
            self._total_work_time += actual_time
            self._current_streak = 0
            self._sessions.append(
                CompletedSession(WORK_TYPE, duration, actual_time, start_time, end_time, False)
            )

    def add_completed_break(
        self,
        break_type: str,
        duration: timedelta,
        actual_time: timedelta,
        start_time: datetime,
        end_time: datetime,
    ) -> None:
        """Record a completed break of the given type."""
        with self._lock:
            self._breaks_completed += 1
            self._total_break_time += actual_time
            if break_type == LONG_BREAK_TYPE:
                self._long_breaks_completed += 1
            self._sessions.append(
                CompletedSession(break_type, duration, actual_time, start_time, end_time, True)
            )

    def add_skipped_break(
        self,
        break_type: str,
        duration: timedelta,
        actual_time: timedelta,
        start_time: datetime,
        end_time: datetime,
    ) -> None:
        """Record a skipped break of the given type."""
        with self._lock:
            self._breaks_skipped += 1
            self._total_break_time += actual_time
            self._sessions.append(
                CompletedSession(break_type, duration, actual_time, start_time, end_time, False)
            )

    def _work_efficiency(self) -> float:
        total = self._pomodoros_completed + self._pomodoros_skipped
        if total == 0:
            return 0.0
        return self._pomodoros_completed / total * 100

    def snapshot(self) -> StatsSnapshot:
        """Return an immutable copy of the current statistics."""
        with self._lock:
            return StatsSnapshot(
                pomodoros_completed=self._pomodoros_completed,
                pomodoros_skipped=self._pomodoros_skipped,
                breaks_completed=self._breaks_completed,
                breaks_skipped=self._breaks_skipped,
                long_breaks_completed=self._long_breaks_completed,
                current_streak=self._current_streak,
                best_streak=self._best_streak,
                total_work_time=self._total_work_time,
                total_break_time=self._total_break_time,
                session_duration=self._since(self._session_start_time),
                work_efficiency=self._work_efficiency(),
                total_sessions=(
                    self._pomodoros_completed
                    + self._pomodoros_skipped
                    + self._breaks_completed
                    + self._breaks_skipped
                ),
            )

    def session_duration(self) -> timedelta:
        """Time elapsed since the session started."""
        with self._lock:
            return self._since(self._session_start_time)

    def reset(self) -> None:
        """Clear every counter and the history; the session restarts now."""
        with self._lock:
            self._clear()

    def export_json(self) -> str:
        """Return the full statistics as indented JSON; durations in nanoseconds."""
        with self._lock:
            data = {
                "pomodoros_completed": self._pomodoros_completed,
                "pomodoros_skipped": self._pomodoros_skipped,
                "breaks_completed": self._breaks_completed,
                "breaks_skipped": self._breaks_skipped,
                "long_breaks_completed": self._long_breaks_completed,
                "total_work_time": _to_ns(self._total_work_time),
                "total_break_time": _to_ns(self._total_break_time),
                "session_start_time": _time_text(self._session_start_time),
                "current_streak_count": self._current_streak,
                "best_streak_count": self._best_streak,
                "completed_sessions": [_session_to_dict(s) for s in self._sessions],
                "exported_at": _time_text(self._clock()),
            }
        return json.dumps(data, indent=2, ensure_ascii=False)

    def import_json(self, data: Union[str, bytes]) -> None:
        """Replace all statistics with those in an exported JSON document.

        Raises ValueError if the document cannot be read; nothing changes then.
        """
        try:
            doc = json.loads(data)
            if not isinstance(doc, Mapping):
                raise ValueError("statistics must be a JSON object")
            raw_sessions = doc.get("completed_sessions")
            if raw_sessions is None:
                raw_sessions = []
            if not isinstance(raw_sessions, list):
                raise ValueError("completed_sessions must be a list")
            values = {
                "pomodoros_completed": _parse_int(
                    "pomodoros_completed", doc.get("pomodoros_completed")
                ),
                "pomodoros_skipped": _parse_int(
                    "pomodoros_skipped", doc.get("pomodoros_skipped")
                ),
                "breaks_completed": _parse_int(
                    "breaks_completed", doc.get("breaks_completed")
                ),
                "breaks_skipped": _parse_int("breaks_skipped", doc.get("breaks_skipped")),
                "long_breaks_completed": _parse_int(
                    "long_breaks_completed", doc.get("long_breaks_completed")
                ),
                "total_work_time": _from_ns(
                    _parse_int("total_work_time", doc.get("total_work_time"))
                ),
                "total_break_time": _from_ns(
                    _parse_int("total_break_time", doc.get("total_break_time"))
                ),
                "session_start_time": _parse_time(
                    "session_start_time", doc.get("session_start_time")
                ),
                "current_streak": _parse_int(
                    "current_streak_count", doc.get("current_streak_count")
                ),
                "best_streak": _parse_int("best_streak_count", doc.get("best_streak_count")),
                "sessions": [_session_from_dict(item) for item in raw_sessions],
            }
            _parse_time("exported_at", doc.get("exported_at"))
        except (ValueError, TypeError) as err:
            raise ValueError(f"failed to unmarshal stats: {err}") from err

        with self._lock:
            self._pomodoros_completed = values["pomodoros_completed"]
            self._pomodoros_skipped = values["pomodoros_skipped"]
            self._breaks_completed = values["breaks_completed"]
            self._breaks_skipped = values["breaks_skipped"]
            self._long_breaks_completed = values["long_breaks_completed"]
            self._total_work_time = values["total_work_time"]
            self._total_break_time = values["total_break_time"]
            self._session_start_time = values["session_start_time"]
            self._current_streak = values["current_streak"]
            self._best_streak = values["best_streak"]
            self._sessions = values["sessions"]

    def quick_stats(self) -> str:
        """A one-line summary: pomodoros, streak and time worked."""
        with self._lock:
            return (
                f"🍅 {self._pomodoros_completed} | 🔥 {self._current_streak} | "
                f"⏱️ {format_duration(self._total_work_time)}"
            )

    def stats_display(self) -> str:
        """A multi-line report of the full statistics."""
        snap = self.snapshot()
        text = (
            "\n"
            "+================================+\n"
            "|          ESTADÍSTICAS          |\n"
            "+================================+\n"
            "\n"
            "📊 Resumen de la sesión:\n"
            f"   • Pomodoros completados: {snap.pomodoros_completed}\n"
            f"   • Pomodoros saltados: {snap.pomodoros_skipped}\n"
            f"   • Descansos completados: {snap.breaks_completed}\n"
            f"   • Descansos saltados: {snap.breaks_skipped}\n"
            f"   • Descansos largos: {snap.long_breaks_completed}\n"
            "\n"
            "🔥 Rachas:\n"
            f"   • Racha actual: {snap.current_streak} pomodoros\n"
            f"   • Mejor racha: {snap.best_streak} pomodoros\n"
            "\n"
            "⏱️  Tiempo:\n"
            f"   • Tiempo trabajado: {format_duration(snap.total_work_time)}\n"
            f"   • Tiempo de descanso: {format_duration(snap.total_break_time)}\n"
            f"   • Duración de sesión: {format_duration(snap.session_duration)}\n"
            "\n"
            "📈 Eficiencia:\n"
            f"   • Eficiencia de trabajo: {snap.work_efficiency:.1f}%\n"
            f"   • Total de sesiones: {snap.total_sessions}\n"
            "\n"
            "🎯 Productividad:\n"
        )
        if snap.total_sessions > 0:
            bar = _efficiency_bar(snap.work_efficiency)
            text += f"   • Progreso: [{bar}] {snap.work_efficiency:.1f}%\n"
        return text

    def completed_sessions(self) -> list[CompletedSession]:
        """A copy of the whole session history."""
        with self._lock:
            return list(self._sessions)

    def recent_sessions(self, count: int) -> list[CompletedSession]:
        """The last ``count`` sessions, oldest first."""
        with self._lock:
            if count <= 0:
                return []
            return self._sessions[-count:]

    def work_sessions(self) -> list[CompletedSession]:
        """Only the work sessions of the history."""
        with self._lock:
            return [s for s in self._sessions if s.type == WORK_TYPE]

    def break_sessions(self) -> list[CompletedSession]:
        """Only the break sessions of the history."""
        with self._lock:
            return [s for s in self._sessions if s.type != WORK_TYPE]