from __future__ import annotations

import logging
import threading
from typing import Callable

from meter_dashboard.services.controller import MonitoringController

logger = logging.getLogger(__name__)


class PollingLoop:
    """
    Fixed-interval poll driver.

    Responsibilities
    ----------------
    - Poll once immediately at start, then every ``interval_s()`` seconds.
    - Delegate each poll to `MonitoringController.refresh_now()`, which
      fetches, evaluates, and records fetch errors.
    - Serve out-of-cycle refresh requests (refresh button, force-stop release)
      by waking the loop early.

    Concurrency Model
    -----------------
    - The thread waits on a wake event with the poll interval as timeout, so
      stop and refresh requests take effect immediately.
    - The interval is re-read before every wait, so a settings change applies
      from the next tick.
    - Exceptions in a poll are caught and logged to avoid killing the thread.
      There is no backoff: a failed poll is retried at the next tick.

    Parameters
    ----------
    controller
        Monitoring controller used to run each poll.
    interval_s
        Callable returning the current poll interval in seconds.
    stop_event
        Thread stop signal. When set, the loop exits.
    """

    def __init__(
        self,
        controller: MonitoringController,
        interval_s: Callable[[], float],
        stop_event: threading.Event,
    ):
        self._controller = controller
        self._interval_s = interval_s
        self._stop = stop_event
        self._wake = threading.Event()
        self._thread = threading.Thread(target=self._run, name="poll-loop", daemon=True)
        self.polls = 0

    def start(self) -> None:
        """
        Start the loop thread if it is not already running.
        """
        if not self._thread.is_alive():
            self._thread.start()

    def request_refresh(self) -> None:
        """
        Run a poll as soon as possible instead of waiting for the next tick.
        """
        self._wake.set()

    def stop(self) -> None:
        """
        Signal the loop to stop.
        """
        self._stop.set()
        self._wake.set()

    def join(self, timeout: float | None = 2.0) -> None:
        """
        Join the loop thread.

        Parameters
        ----------
        timeout
            Maximum time to wait for the thread to exit.
        """
        if self._thread.is_alive():
            self._thread.join(timeout=timeout)

    def poll_once(self) -> None:
        try:
            self._controller.refresh_now()
        except Exception:
            logger.exception("Poll failed")
        finally:
            self.polls += 1

    def _run(self) -> None:
        """
        Loop: poll, then wait for the interval or a wake request.
        """
        while not self._stop.is_set():
            self._wake.clear()
            self.poll_once()
            self._wake.wait(timeout=max(float(self._interval_s()), 0.0))
