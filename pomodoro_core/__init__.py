"""UI-independent Pomodoro engine: configuration, timer, events, statistics and the engine."""

__version__ = "0.1.0"
__all__ = ["config", "timer", "events", "stats", "engine"]