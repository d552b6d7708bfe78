import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional

logger = logging.getLogger(__name__)

CONFIG_FILE = Path(
    os.environ.get("KITCHEN_TIMER_CONFIG", Path.home() / ".config" / "kitchen-timer" / "settings.json")
)

DEFAULTS = {
    "notification": True,
    "show-time": True,
    "show-label": True,
    "show-progress": True,
    "play-sound": True,
    "modal-notification": False,
    "sound-loops": 2,
    "sound-file": "",
    "default-timer": 300,
    "sort-by-duration": False,
    "sort-descending": False,
    "save-quick-timers": False,
    "debug": False,
}


class MalformedRecord(ValueError):
    """A persisted timer entry is missing a field or has the wrong type."""


@dataclass
class TimerRecord:
    id: str
    name: str
    duration: int
    enabled: bool = True
    quick: bool = False

    @classmethod
    def from_dict(cls, data: Any, quick: bool = False) -> "TimerRecord":
        if not isinstance(data, dict):
            raise MalformedRecord(f"Timer entry is not a mapping: {data!r}")
        for key, kind in (("id", str), ("name", str), ("duration", int), ("enabled", bool)):
            if key not in data:
                raise MalformedRecord(f"Timer entry is missing {key!r}: {data!r}")
            value = data[key]
            # bool is an int subclass, reject it for the duration
            if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
                raise MalformedRecord(f"Timer field {key!r} has bad value {value!r}")
        if not data["id"]:
            raise MalformedRecord(f"Timer entry has an empty id: {data!r}")
        if data["duration"] < 0:
            raise MalformedRecord(f"Timer {data['name']!r} has a negative duration")
        return cls(
            id=data["id"],
            name=data["name"],
            duration=data["duration"],
            enabled=data["enabled"],
            quick=quick,
        )

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "duration": self.duration, "enabled": self.enabled}


class JsonSettingsStore:
    """Timer records and preferences kept in a single JSON document."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else CONFIG_FILE
        self._data: dict = {"timers": [], "quick-timers": [], "preferences": {}}
        self._read()

    def _read(self) -> None:
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except ValueError as exc:
            logger.warning("Discarding unreadable settings file %s: %s", self.path, exc)
            self.path.unlink(missing_ok=True)
            return
        if not isinstance(data, dict):
            logger.warning("Discarding settings file %s: top level is not an object", self.path)
            self.path.unlink(missing_ok=True)
            return
        self._data.update(
            {
                "timers": data.get("timers", []),
                "quick-timers": data.get("quick-timers", []),
                "preferences": data.get("preferences", {}),
            }
        )

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._data, indent=2), encoding="utf-8")

    def _unpack(self, key: str, quick: bool) -> list[TimerRecord]:
        entries = self._data.get(key)
        if not isinstance(entries, list):
            raise MalformedRecord(f"Settings key {key!r} is not a list")
        return [TimerRecord.from_dict(entry, quick) for entry in entries]

    def load_groups(self) -> dict[str, list[TimerRecord]]:
        groups = {"preset": self._unpack("timers", False), "quick": []}
        if self.save_quick_timers:
            groups["quick"] = self._unpack("quick-timers", True)
        return groups

    def load(self) -> list[TimerRecord]:
        groups = self.load_groups()
        return groups["preset"] + groups["quick"]

    def save(self, timers: Iterable) -> None:
        presets = []
        quick = []
        for timer in timers:
            record = timer if isinstance(timer, TimerRecord) else timer.to_record()
            if record.duration <= 0:
                logger.debug("Not saving timer %s with duration %d", record.name, record.duration)
                continue
            (quick if record.quick else presets).append(record.to_dict())
        self._data["timers"] = presets
        if self.save_quick_timers:
            logger.debug("Saving %d quick timers", len(quick))
            self._data["quick-timers"] = quick
        logger.debug("Saving %d preset timers to %s", len(presets), self.path)
        self._write()

    def get_default(self, key: str) -> Any:
        return DEFAULTS[key]

    def get(self, key: str) -> Any:
        return self._data["preferences"].get(key, DEFAULTS[key])

    def set(self, key: str, value: Any) -> None:
        if key not in DEFAULTS:
            raise KeyError(key)
        self._data["preferences"][key] = value
        self._write()

    @property
    def notification(self) -> bool:
        return bool(self.get("notification"))

    @notification.setter
    def notification(self, value: bool) -> None:
        self.set("notification", bool(value))

    @property
    def show_time(self) -> bool:
        return bool(self.get("show-time"))

    @show_time.setter
    def show_time(self, value: bool) -> None:
        self.set("show-time", bool(value))

    @property
    def show_label(self) -> bool:
        return bool(self.get("show-label"))

    @show_label.setter
    def show_label(self, value: bool) -> None:
        self.set("show-label", bool(value))

    @property
    def show_progress(self) -> bool:
        return bool(self.get("show-progress"))

    @show_progress.setter
    def show_progress(self, value: bool) -> None:
        self.set("show-progress", bool(value))

    @property
    def play_sound(self) -> bool:
        return bool(self.get("play-sound"))

    @play_sound.setter
    def play_sound(self, value: bool) -> None:
        self.set("play-sound", bool(value))

    @property
    def modal_notification(self) -> bool:
        return bool(self.get("modal-notification"))

    @modal_notification.setter
    def modal_notification(self, value: bool) -> None:
        self.set("modal-notification", bool(value))

    @property
    def sound_loops(self) -> int:
        return int(self.get("sound-loops"))

    @sound_loops.setter
    def sound_loops(self, loops: int) -> None:
        self.set("sound-loops", max(int(loops), 0))

    @property
    def sound_file(self) -> str:
        return str(self.get("sound-file"))

    @sound_file.setter
    def sound_file(self, path: str) -> None:
        self.set("sound-file", str(path))

    @property
    def default_timer(self) -> int:
        return int(self.get("default-timer"))

    @default_timer.setter
    def default_timer(self, seconds: int) -> None:
        self.set("default-timer", max(int(seconds), 0))

    @property
    def sort_by_duration(self) -> bool:
        return bool(self.get("sort-by-duration"))

    @sort_by_duration.setter
    def sort_by_duration(self, value: bool) -> None:
        self.set("sort-by-duration", bool(value))

    @property
    def sort_descending(self) -> bool:
        return bool(self.get("sort-descending"))

    @sort_descending.setter
    def sort_descending(self, value: bool) -> None:
        self.set("sort-descending", bool(value))

    @property
    def save_quick_timers(self) -> bool:
        return bool(self.get("save-quick-timers"))

    @save_quick_timers.setter
    def save_quick_timers(self, value: bool) -> None:
        self.set("save-quick-timers", bool(value))

    @property
    def debug(self) -> bool:
        return bool(self.get("debug"))

    @debug.setter
    def debug(self, value: bool) -> None:
        self.set("debug", bool(value))
