"""
Repeat schedule for unacknowledged alarms.

The scheduler owns the single repeat timer. Its only entry point for state
changes is :meth:`NotificationScheduler.reconcile`, which the controller calls
after every mutation of the ledger, the voice flag, the repeat interval, or
the force-stop flag.

Schedule Model
--------------
- Force-stop engaged: no timer.
- Otherwise the pending set is every alarm that is active and not
  acknowledged. If it is non-empty and voice is enabled, a timer with period
  ``alarm_repeat_interval`` re-announces each alarm of the pending set
  captured when the timer was started.
- The timer is always torn down and rebuilt as a unit. If the pending set and
  the interval are unchanged, reconcile leaves the running timer alone, so
  repeated calls do not reset the cadence.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional, Tuple

from meter_dashboard.core.state_store import StateStore
from meter_dashboard.domain.models import Alarm
from meter_dashboard.notification.voice_notifier import VoiceNotifier
from meter_dashboard.runtime.timers import RepeatingTimer, TimerFactory, thread_timer_factory

logger = logging.getLogger(__name__)

_ScheduleKey = Tuple[float, Tuple[str, ...]]


class NotificationScheduler:
    """
    Immediate and repeated alarm announcements.

    Concurrency Model
    -----------------
    Timer ticks run on the timer's thread. Every tick re-checks, under the
    scheduler lock, that it belongs to the current schedule generation;
    :meth:`cancel` bumps the generation under the same lock. Once ``cancel``
    returns, no tick of the old timer can announce anything.

    Parameters
    ----------
    store
        State store (ledger, settings, force-stop flag).
    voice
        Voice notifier used for every announcement.
    timer_factory
        Factory for the repeat timer (injectable for tests).
    """

    def __init__(
        self,
        store: StateStore,
        voice: VoiceNotifier,
        timer_factory: TimerFactory = thread_timer_factory,
    ):
        self._store = store
        self._voice = voice
        self._timer_factory = timer_factory
        self._lock = threading.RLock()
        self._timer: Optional[RepeatingTimer] = None
        self._key: Optional[_ScheduleKey] = None
        self._generation = 0
        self._captured: Tuple[Alarm, ...] = ()

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._timer is not None

    @property
    def captured(self) -> Tuple[Alarm, ...]:
        """
        Alarms the current timer re-announces (empty when stopped).
        """
        with self._lock:
            return self._captured

    def announce_new(self, alarms: Iterable[Alarm]) -> None:
        """
        Announce newly raised alarms immediately, in creation order.
        """
        for alarm in alarms:
            self._voice.notify(alarm.message)

    def reconcile(self) -> None:
        """
        Bring the repeat timer in line with the current state.

        Safe to call at any time; calling it twice without an intervening
        change is a no-op.
        """
        with self._lock:
            if self._store.force_stop:
                if self._timer is not None:
                    logger.debug("Force stop engaged - repeat timer stopped")
                self._cancel_locked()
                return

            pending = tuple(self._store.active_unacknowledged())
            settings = self._store.get_settings()
            logger.debug("Active unacknowledged alarms: %d", len(pending))

            if not pending or not settings.voice_enabled:
                if self._timer is not None:
                    logger.info("No alarms to repeat - repeat timer stopped")
                self._cancel_locked()
                return

            key: _ScheduleKey = (float(settings.alarm_repeat_interval), tuple(a.id for a in pending))
            if self._timer is not None and key == self._key:
                return

            self._cancel_locked()
            self._generation += 1
            generation = self._generation
            self._captured = pending
            self._key = key
            self._timer = self._timer_factory(
                float(settings.alarm_repeat_interval),
                lambda: self._on_tick(generation),
                "alarm-repeat",
            )
            self._timer.start()
            logger.info(
                "Starting announcement interval (%ss) for %d alarm(s)",
                settings.alarm_repeat_interval,
                len(pending),
            )

    def cancel(self) -> None:
        """
        Stop the repeat timer immediately.
        """
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._key = None
        self._captured = ()

    def _on_tick(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            logger.debug("Interval: announcing %d alarm(s)", len(self._captured))
            for alarm in self._captured:
                self._voice.notify(alarm.message)
