"""Pomodoro configuration: durations, validation and JSON persistence."""

from __future__ import annotations

import dataclasses
import json
import math
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, Mapping

_NS_PER_US = 1_000
_NS_PER_MS = 1_000_000
_NS_PER_S = 1_000_000_000
_NS_PER_MIN = 60 * _NS_PER_S
_NS_PER_HOUR = 60 * _NS_PER_MIN

_FIELDS = ("work_duration", "short_break", "long_break")


class ConfigError(Exception):
    """Raised when a configuration cannot be read, parsed or written."""


class ValidationError(ValueError):
    """A configuration field holds a value outside its allowed range."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"validation error in {field}: {message}")
        self.field = field
        self.message = message


def _to_ns(d: timedelta) -> int:
    return (d.days * 86_400 + d.seconds) * _NS_PER_S + d.microseconds * _NS_PER_US


def _from_ns(ns: int) -> timedelta:
    return timedelta(microseconds=int(ns / _NS_PER_US) if abs(ns) > 2**52 else ns // _NS_PER_US
                     if ns >= 0 else -((-ns) // _NS_PER_US))


def _fraction(value: int, unit: int) -> str:
    whole, frac = divmod(value, unit)
    if not frac:
        return str(whole)
    digits = len(str(unit)) - 1
    return f"{whole}.{str(frac).zfill(digits).rstrip('0')}"


def _duration_text(d: timedelta) -> str:
    """Render a duration compactly, e.g. ``25m0s`` or ``1h30m0s``."""
    ns = _to_ns(d)
    if ns == 0:
        return "0s"
    sign = "-" if ns < 0 else ""
    ns = abs(ns)
    if ns < _NS_PER_US:
        return f"{sign}{ns}ns"
    if ns < _NS_PER_MS:
        return f"{sign}{_fraction(ns, _NS_PER_US)}µs"
    if ns < _NS_PER_S:
        return f"{sign}{_fraction(ns, _NS_PER_MS)}ms"
    hours, rest = divmod(ns, _NS_PER_HOUR)
    minutes, rest = divmod(rest, _NS_PER_MIN)
    text = f"{_fraction(rest, _NS_PER_S)}s"
    if hours or minutes:
        text = f"{minutes}m{text}"
    if hours:
        text = f"{hours}h{text}"
    return sign + text


@dataclass
class Config:
    """Durations of work and break sessions and the long-break interval."""

    work_duration: timedelta = timedelta(minutes=25)
    short_break: timedelta = timedelta(minutes=5)
    long_break: timedelta = timedelta(minutes=15)
    long_break_interval: int = 4

    def validate(self) -> None:
        """Raise ValidationError if any field is out of range."""
        if self.work_duration < timedelta(minutes=1):
            raise ValidationError("WorkDuration", "must be at least 1 minute")
        if self.work_duration > timedelta(minutes=120):
            raise ValidationError("WorkDuration", "must be less than 2 hours")
        if self.short_break < timedelta(minutes=1):
            raise ValidationError("ShortBreak", "must be at least 1 minute")
        if self.short_break > timedelta(minutes=30):
            raise ValidationError("ShortBreak", "must be less than 30 minutes")
        if self.long_break < timedelta(minutes=5):
            raise ValidationError("LongBreak", "must be at least 5 minutes")
        if self.long_break > timedelta(minutes=60):
            raise ValidationError("LongBreak", "must be less than 1 hour")
        if self.long_break_interval < 2:
            raise ValidationError("LongBreakInterval", "must be at least 2")
        if self.long_break_interval > 10:
            raise ValidationError("LongBreakInterval", "must be less than 10")
        if self.long_break <= self.short_break:
            raise ValidationError("LongBreak", "must be longer than short break")

    def to_dict(self) -> dict[str, int]:
        """Return the JSON form; durations are given in nanoseconds."""
        return {
            "work_duration": _to_ns(self.work_duration),
            "short_break": _to_ns(self.short_break),
            "long_break": _to_ns(self.long_break),
            "long_break_interval": self.long_break_interval,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Config":
        """Build a configuration from its JSON form; missing fields are zero."""
        if not isinstance(data, Mapping):
            raise TypeError("configuration must be a JSON object")
        values: dict[str, Any] = {}
        for name in _FIELDS:
            raw = data.get(name)
            values[name] = _from_ns(_require_int(name, raw))
        values["long_break_interval"] = _require_int(
            "long_break_interval", data.get("long_break_interval")
        )
        return cls(**values)

    def save_to_file(self, path: str | Path) -> None:
        """Validate and write the configuration as indented JSON."""
        try:
            self.validate()
        except ValidationError as err:
            raise ConfigError(f"cannot save invalid configuration: {err}") from err
        text = json.dumps(self.to_dict(), indent=2)
        try:
            Path(path).write_text(text, encoding="utf-8")
        except OSError as err:
            raise ConfigError(f"failed to write config file: {err}") from err

    def clone(self) -> "Config":
        """Return an independent copy."""
        return dataclasses.replace(self)

    def next_break_type(self, pomodoro_number: int) -> tuple[timedelta, bool]:
        """Return the break after the given pomodoro and whether it is long."""
        if pomodoro_number % self.long_break_interval == 0:
            return self.long_break, True
        return self.short_break, False

    def __str__(self) -> str:
        return (
            f"Config{{Work: {_duration_text(self.work_duration)}, "
            f"Short: {_duration_text(self.short_break)}, "
            f"Long: {_duration_text(self.long_break)}, "
            f"Interval: {self.long_break_interval}}}"
        )


def _require_int(name: str, value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer, got {value!r}")
    return value


def default_config() -> Config:
    """Return the standard 25/5/15 configuration with a long break every 4."""
    return Config()


def load_from_file(path: str | Path) -> Config:
    """Read, parse and validate a JSON configuration file."""
    try:
        raw = Path(path).read_bytes()
    except OSError as err:
        raise ConfigError(f"failed to read config file: {err}") from err
    try:
        data = json.loads(raw)
        config = Config.from_dict({} if data is None else data)
    except (ValueError, TypeError) as err:
        raise ConfigError(f"failed to parse config file: {err}") from err
    try:
        config.validate()
    except ValidationError as err:
        raise ConfigError(f"invalid configuration: {err}") from err
    return config


def format_duration(d: timedelta) -> str:
    """Format a duration as ``"<m>m <s>s"`` or ``"<s>s"``."""
    total_seconds = int(d.total_seconds())
    minutes = int(d / timedelta(minutes=1))
    seconds = int(math.fmod(total_seconds, 60))
    if minutes > 0:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"