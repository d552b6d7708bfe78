import logging
import uuid
from enum import Enum
from typing import Callable, Iterator, Optional

from .hms import HMS
from .scheduler import monotonic_ms
from .settings import TimerRecord

logger = logging.getLogger(__name__)


class TimerState(Enum):
    RESET = 0
    RUNNING = 1
    EXPIRED = 2


class Timer:
    """A single named countdown.

    The collection injects the shared settings, notifier, panel label and
    scheduler when the timer is added. Ticking only ever begins in
    :meth:`start`, which keeps at most one schedule handle per timer.
    """

    INTERVAL_MS = 100

    def __init__(
        self,
        name: str,
        duration: int,
        id: Optional[str] = None,
        enabled: bool = True,
        quick: bool = False,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self._id = id or str(uuid.uuid4())
        self.name = name
        self.duration = duration
        self._enabled = enabled
        self.quick = quick
        self.clock = clock or monotonic_ms
        self.state = TimerState.RESET
        self.start_time: Optional[int] = None
        self.end_time: Optional[int] = None
        self.label = None

        self.settings = None
        self.notifier = None
        self.panel_label = None
        self.scheduler = None
        self._handle = None
        logger.debug("Create timer [%s] duration=[%s]", name, duration)

    def __repr__(self) -> str:
        return f"Timer({self.name!r}, {self.duration}, id={self._id!r}, state={self.state.name})"

    @property
    def id(self) -> str:
        return self._id

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        self._enabled = False

    def duration_ms(self) -> int:
        return self.duration * 1000

    def is_running(self) -> bool:
        return self.state is TimerState.RUNNING

    def expired(self) -> bool:
        return self.state is TimerState.EXPIRED

    def remaining_ms(self) -> int:
        if not self.is_running() or self.end_time is None:
            return 0
        return max(self.end_time - self.clock(), 0)

    def start(self) -> bool:
        if not self._enabled:
            logger.warning("Timer [%s] is disabled", self.name)
            return False
        if self.is_running():
            logger.info("Timer [%s] is already running, resetting", self.name)
            self.reset()
            return False
        if self.scheduler is None:
            raise RuntimeError(f"Timer [{self.name}] has no scheduler")

        self.state = TimerState.RUNNING
        self.start_time = self.clock()
        self.end_time = self.start_time + self.duration_ms()
        logger.info("Starting timer [%s] at %d for %ds", self.name, self.start_time, self.duration)
        self._handle = self.scheduler.call_every(self.INTERVAL_MS, self.tick)
        return True

    def tick(self) -> bool:
        """Refresh the labels; returns False once the schedule should stop."""
        if not self.is_running():
            logger.debug("Timer [%s] ticked while %s, halting", self.name, self.state.name)
            self._cancel()
            return False

        remaining = self.end_time - self.clock()
        if remaining <= 0:
            return self._expire()

        hms = HMS.from_ms(remaining)
        self._set_text(self.label, hms.to_string())
        self._set_text(self.panel_label, hms.to_string(compact=True))
        return True

    def _expire(self) -> bool:
        self._cancel()
        self.state = TimerState.EXPIRED
        self.start_time = None
        self.end_time = None
        logger.info("Timer [%s] has ended", self.name)

        if self.notifier is not None:
            try:
                self.notifier.notify(f"Timer [{self.name}] completed")
            except Exception:
                logger.exception("Notifier failed for timer [%s]", self.name)
        self._set_text(self.label, HMS(self.duration).to_string())
        self._set_text(self.panel_label, "")
        return False

    def _set_text(self, sink, text: str) -> None:
        if sink is None:
            return
        try:
            sink.set_text(text)
        except Exception:
            logger.exception("Unable to update label for timer [%s]", self.name)

    def _cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def reset(self) -> None:
        was_running = self.is_running()
        self._cancel()
        self.state = TimerState.RESET
        self.start_time = None
        self.end_time = None
        if was_running:
            self._set_text(self.panel_label, "")

    def stop(self) -> None:
        self.reset()

    def refresh_with(self, record: TimerRecord) -> bool:
        if record.id != self._id:
            return False
        self.name = record.name
        self.duration = record.duration
        self._enabled = record.enabled
        return True

    def to_record(self) -> TimerRecord:
        return TimerRecord(
            id=self._id,
            name=self.name,
            duration=self.duration,
            enabled=self._enabled,
            quick=self.quick,
        )

    @classmethod
    def from_record(cls, record: TimerRecord, clock: Optional[Callable[[], int]] = None) -> "Timer":
        return cls(
            record.name,
            record.duration,
            id=record.id,
            enabled=record.enabled,
            quick=record.quick,
            clock=clock,
        )


class Timers:
    """The session's timers, reconciled against the settings store."""

    def __init__(self, settings, notifier, panel_label=None, scheduler=None, clock=None) -> None:
        self._settings = settings
        self._notifier = notifier
        self._panel_label = panel_label
        self._scheduler = scheduler
        self._clock = clock
        self._timers: list[Timer] = []
        self.refresh()

    @property
    def panel_label(self):
        return self._panel_label

    @property
    def settings(self):
        return self._settings

    def __len__(self) -> int:
        return len(self._timers)

    def __iter__(self) -> Iterator[Timer]:
        return iter(list(self._timers))

    def __contains__(self, timer_id: object) -> bool:
        return self.timer_by_id(timer_id) is not None

    def is_empty(self) -> bool:
        return len(self._timers) == 0

    def refresh(self) -> None:
        for record in self._settings.load():
            for timer in self._timers:
                if timer.refresh_with(record):
                    logger.debug("Found timer %s with end %s", timer.name, timer.end_time)
                    break
            else:
                logger.debug("Timer %s not found, creating it", record.name)
                self.add(Timer.from_record(record, clock=self._clock))

    def add(self, timer: Timer) -> Timer:
        if self.timer_by_id(timer.id) is not None:
            raise ValueError(f"Timer id {timer.id} is already in the collection")
        timer.settings = self._settings
        timer.notifier = self._notifier
        timer.panel_label = self._panel_label
        timer.scheduler = self._scheduler
        if self._clock is not None:
            timer.clock = self._clock

        logger.info("Adding timer %s of duration %d seconds", timer.name, timer.duration)
        self._timers.append(timer)
        try:
            self._settings.save(self.pack())
        except Exception:
            self._timers.pop()
            raise
        return timer

    def add_quick(self, duration: Optional[int] = None, name: Optional[str] = None) -> Timer:
        if duration is None:
            duration = self._settings.default_timer
        if not name:
            name = HMS(duration).to_string(compact=True)
        return self.add(Timer(name, duration, quick=True, clock=self._clock))

    def remove(self, timer_id: str) -> bool:
        timer = self.timer_by_id(timer_id)
        if timer is None:
            return False
        timer.reset()
        self._timers.remove(timer)
        logger.info("Removed timer %s", timer.name)
        self._settings.save(self.pack())
        return True

    def pack(self) -> list[TimerRecord]:
        return [timer.to_record() for timer in self._timers]

    def sorted(self) -> list[Timer]:
        """Enabled timers in display order."""
        timers = [timer for timer in self._timers if timer.enabled]
        if self._settings.sort_by_duration:
            timers.sort(key=lambda timer: timer.duration, reverse=self._settings.sort_descending)
        return timers

    def running(self) -> list[Timer]:
        return [timer for timer in self._timers if timer.is_running()]

    def timer_by_id(self, timer_id) -> Optional[Timer]:
        for timer in self._timers:
            if timer.id == timer_id:
                return timer
        return None
