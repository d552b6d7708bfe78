import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


class Repeating:
    """Handle for a callback re-armed on a tk widget until it returns False."""

    def __init__(self, master, interval_ms: int, callback: Callable[[], bool]) -> None:
        self.master = master
        self.interval_ms = interval_ms
        self.callback = callback
        self.cancelled = False
        self._after_id: Optional[str] = None
        self._arm()

    def _arm(self) -> None:
        self._after_id = self.master.after(self.interval_ms, self._fire)

    def _fire(self) -> None:
        self._after_id = None
        if self.cancelled:
            return
        if self.callback():
            if not self.cancelled:
                self._arm()
        else:
            self.cancelled = True

    def cancel(self) -> None:
        self.cancelled = True
        if self._after_id is not None:
            try:
                self.master.after_cancel(self._after_id)
            except Exception as exc:
                logger.debug("after_cancel(%s) failed: %s", self._after_id, exc)
            self._after_id = None

    @property
    def active(self) -> bool:
        return not self.cancelled


class TkScheduler:
    """Runs repeating tasks on the tk event loop of ``master``."""

    def __init__(self, master) -> None:
        self.master = master

    def call_every(self, interval_ms: int, callback: Callable[[], bool]) -> Repeating:
        return Repeating(self.master, interval_ms, callback)
