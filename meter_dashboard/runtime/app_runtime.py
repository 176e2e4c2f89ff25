from __future__ import annotations

import threading

from meter_dashboard.core.state_store import StateStore
from meter_dashboard.runtime.polling_loop import PollingLoop
from meter_dashboard.services.controller import MonitoringController


class AppRuntime:
    """
    Thread supervisor for the background side of the dashboard.

    This class owns:
    - a shared stop event
    - the poll loop thread lifecycle (start/stop/join)
    - teardown of the notification side (repeat timer + speech)

    Thread Topology
    ---------------
    1) PollingLoop (I/O + business logic)
       - fetches one reading per tick through the controller
       - the controller evaluates it, updates the StateStore, and announces

    2) Repeat timer (owned by NotificationScheduler)
       - created and cancelled by the controller as alarms come and go

    3) UI thread (Qt)
       - reads StateStore snapshots on a QTimer
       - calls controller actions on operator input

    Notes
    -----
    All threads are daemon threads; `stop()` + `join()` are still used for
    clean shutdown.
    """

    def __init__(self, controller: MonitoringController, store: StateStore):
        """
        Parameters
        ----------
        controller
            Orchestrates polling, alarm evaluation and notification.
        store
            Thread-safe application state store (poll interval source).
        """
        self._controller = controller
        self._store = store
        self._stop = threading.Event()

        self._poller = PollingLoop(
            controller=controller,
            interval_s=lambda: store.get_settings().auto_refresh_interval,
            stop_event=self._stop,
        )
        controller.poll_trigger = self._poller.request_refresh

    @property
    def poller(self) -> PollingLoop:
        return self._poller

    def start(self) -> None:
        """
        Rebuild the repeat schedule from restored state, then start polling.
        """
        self._controller.resume()
        self._poller.start()

    def request_refresh(self) -> None:
        self._poller.request_refresh()

    def stop(self) -> None:
        """
        Stop the poll loop, cancel notification, and wait briefly for shutdown.
        """
        self._poller.stop()
        self._controller.shutdown()
        self._poller.join(timeout=2.0)
