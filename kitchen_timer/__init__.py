from .hms import HMS
from .settings import JsonSettingsStore, MalformedRecord, TimerRecord
from .timers import Timer, Timers, TimerState

__all__ = [
    "HMS",
    "JsonSettingsStore",
    "MalformedRecord",
    "Timer",
    "TimerRecord",
    "TimerState",
    "Timers",
]

__version__ = "0.1.0"
