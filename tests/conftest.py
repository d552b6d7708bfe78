import pytest

from kitchen_timer.labels import MemoryLabel
from kitchen_timer.settings import JsonSettingsStore, TimerRecord


class ManualClock:
    def __init__(self, now: int = 1_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


class ManualTask:
    def __init__(self, interval_ms, callback, due) -> None:
        self.interval_ms = interval_ms
        self.callback = callback
        self.due = due
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Fires due callbacks as the manual clock is advanced."""

    def __init__(self, clock: ManualClock) -> None:
        self.clock = clock
        self.tasks = []

    def call_every(self, interval_ms, callback) -> ManualTask:
        task = ManualTask(interval_ms, callback, self.clock.now + interval_ms)
        self.tasks.append(task)
        return task

    def active(self) -> list:
        return [task for task in self.tasks if not task.cancelled]

    def advance(self, ms: int) -> None:
        target = self.clock.now + ms
        while True:
            due = [task for task in self.active() if task.due <= target]
            if not due:
                break
            task = min(due, key=lambda t: t.due)
            self.clock.now = task.due
            if task.callback():
                task.due += task.interval_ms
            else:
                task.cancelled = True
        self.clock.now = target


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages = []

    def notify(self, message: str) -> None:
        self.messages.append(message)


class MemoryStore:
    """Settings store double that keeps records in memory and counts saves."""

    def __init__(self, records=None) -> None:
        self.records = list(records or [])
        self.saves = []
        self.sort_by_duration = False
        self.sort_descending = False
        self.default_timer = 300

    def load(self):
        return list(self.records)

    def save(self, timers) -> None:
        self.saves.append(list(timers))


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def scheduler(clock):
    return ManualScheduler(clock)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def panel_label():
    return MemoryLabel()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def json_store(tmp_path):
    return JsonSettingsStore(tmp_path / "settings.json")


def record(id, name, duration, enabled=True, quick=False):
    return TimerRecord(id=id, name=name, duration=duration, enabled=enabled, quick=quick)
