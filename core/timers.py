"""Thread-backed timers used by robots to schedule their work."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger("demobots.timers")


class PeriodicTimer(threading.Thread):
    """Call ``callback`` every ``interval`` seconds until stopped.

    With ``repeat=False`` the callback runs once after ``interval`` seconds.
    An exception raised by the callback is logged and ends the timer.
    """

    def __init__(
        self,
        interval: float,
        callback: Callable[[], object],
        *,
        repeat: bool = True,
        name: Optional[str] = None,
    ) -> None:
        interval = float(interval)
        if interval <= 0:
            raise ValueError("Timer interval must be greater than zero")
        super().__init__(name=name or f"timer-{interval:g}s", daemon=True)
        self.interval = interval
        self.callback = callback
        self.repeat = repeat
        self.ticks = 0
        self._stop_event = threading.Event()

    def run(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self.callback()
            except Exception as exc:
                logger.exception({"evt": "timer_callback_error", "timer": self.name, "error": str(exc)})
                return
            self.ticks += 1
            if not self.repeat:
                return

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        if self.is_alive() and threading.current_thread() is not self:
            self.join(timeout)

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()


__all__ = ["PeriodicTimer"]
