from __future__ import annotations

import logging
import threading
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class RepeatingTimer(Protocol):
    """
    Protocol interface for a fixed-period repeating timer.

    The first callback fires one full ``interval_s`` after :meth:`start`.
    """

    interval_s: float

    def start(self) -> None:
        ...

    def cancel(self) -> None:
        ...

    @property
    def is_active(self) -> bool:
        ...


TimerFactory = Callable[[float, Callable[[], None], str], RepeatingTimer]


class ThreadRepeatingTimer:
    """
    Repeating timer backed by a daemon thread.

    Concurrency Model
    -----------------
    - The thread waits on a stop event with ``interval_s`` as timeout, so
      :meth:`cancel` interrupts the wait immediately.
    - :meth:`cancel` does not join the thread; a callback that is already
      running completes. Callers that need "no callback after cancel" must
      guard the callback themselves (see NotificationScheduler).
    - Exceptions raised by the callback are logged and the timer keeps running.

    Parameters
    ----------
    interval_s
        Period in seconds.
    callback
        Function called on every tick.
    name
        Thread name (for debugging).
    """

    def __init__(self, interval_s: float, callback: Callable[[], None], name: str = "repeat-timer"):
        self.interval_s = interval_s
        self._callback = callback
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    def start(self) -> None:
        if not self._thread.is_alive() and not self._stop.is_set():
            self._thread.start()

    def cancel(self) -> None:
        self._stop.set()

    @property
    def is_active(self) -> bool:
        return self._thread.is_alive() and not self._stop.is_set()

    def join(self, timeout: float | None = 2.0) -> None:
        if self._thread.is_alive():
            self._thread.join(timeout=timeout)

    def _run(self) -> None:
        while not self._stop.wait(self.interval_s):
            try:
                self._callback()
            except Exception as e:
                logger.error("Timer %s callback failed: %r", self._thread.name, e)


def thread_timer_factory(interval_s: float, callback: Callable[[], None], name: str) -> RepeatingTimer:
    return ThreadRepeatingTimer(interval_s, callback, name=name)
