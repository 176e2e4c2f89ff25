from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List, Mapping, Optional

from meter_dashboard.core.alarm.alarm_base import AlarmContext, AlarmIdFactory, new_alarm_id
from meter_dashboard.core.alarm.threshold_evaluator import ThresholdEvaluator
from meter_dashboard.core.state_store import StateStore
from meter_dashboard.domain.events import AlarmEvent, AlarmTransition
from meter_dashboard.domain.models import Alarm, AlarmSettings, MeterReading
from meter_dashboard.notification.repeat_scheduler import NotificationScheduler
from meter_dashboard.notification.voice_notifier import VoiceNotifier
from meter_dashboard.services.force_stop import ForceStopController
from meter_dashboard.transport.meter_client import MeterFetchError, ReadingSource

logger = logging.getLogger(__name__)


def _event(alarm: Alarm, transition: AlarmTransition, ts: datetime, value: float) -> AlarmEvent:
    return AlarmEvent(
        alarm_id=alarm.id,
        alarm_type=alarm.type,
        transition=transition,
        timestamp=ts,
        message=alarm.message,
        value=value,
    )


@dataclass
class MonitoringController:
    """
    Orchestrate polling, alarm evaluation, and every operator action.

    Responsibilities
    ----------------
    - Feed readings to the `ThresholdEvaluator` and apply the result to the
      `StateStore` (new alarms first, then auto-resets).
    - Announce newly raised alarms immediately.
    - Keep the repeat schedule in line with the state after every mutation.
    - Expose the operator actions: refresh, acknowledge, manual reset, clear
      all, force stop, and settings management.

    Concurrency Model
    -----------------
    The poll loop thread, the UI thread and the repeat timer all reach the
    state through this controller. Every operation runs under one re-entrant
    lock so mutations are serialized; the network fetch happens outside it.

    Parameters
    ----------
    store
        Thread-safe application state.
    voice
        Voice notifier.
    scheduler
        Repeat scheduler.
    source
        Reading source used by :meth:`refresh_now`. If None, refreshes are
        skipped.
    evaluator
        Threshold evaluator.
    poll_trigger
        Optional callable that wakes the poll loop. When set, out-of-cycle
        refreshes are delegated to it instead of fetching on the caller's
        thread.
    id_factory
        Alarm id generator.
    """

    store: StateStore
    voice: VoiceNotifier
    scheduler: NotificationScheduler
    source: Optional[ReadingSource] = None
    evaluator: ThresholdEvaluator = field(default_factory=ThresholdEvaluator)
    poll_trigger: Optional[Callable[[], None]] = None
    id_factory: AlarmIdFactory = new_alarm_id

    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)
    _force_stop: ForceStopController = field(init=False, repr=False)
    _closed: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        self._force_stop = ForceStopController(
            store=self.store,
            scheduler=self.scheduler,
            voice=self.voice,
            repoll=self.request_refresh,
        )

    # --- Polling ---
    def handle_reading(self, reading: MeterReading, now: Optional[datetime] = None) -> List[AlarmEvent]:
        """
        Store a reading, evaluate it, and return the resulting alarm events.

        Parameters
        ----------
        reading
            Freshly fetched reading.
        now
            Evaluation timestamp. If None, uses local current time.

        Returns
        -------
        list of AlarmEvent
            RAISED events (in creation order) followed by AUTO_RESET events.
        """
        ts = now or datetime.now()

        with self._lock:
            if self._closed:
                logger.debug("Controller shut down - reading from %s dropped", reading.meter_name)
                return []

            self.store.set_latest_reading(reading)

            result = self.evaluator.evaluate(
                reading,
                self.store.get_settings(),
                self.store.alarms,
                self.store.force_stop,
                AlarmContext(now=ts, id_factory=self.id_factory),
            )
            if result.is_empty:
                return []

            value = reading.demand
            events: List[AlarmEvent] = []

            if result.new_alarms:
                self.store.append_alarms(list(result.new_alarms))
                events.extend(_event(a, AlarmTransition.RAISED, ts, value) for a in result.new_alarms)
                self.scheduler.announce_new(result.new_alarms)

            if result.resets:
                cleared = self.store.auto_reset(list(result.resets))
                events.extend(_event(a, AlarmTransition.AUTO_RESET, ts, value) for a in cleared)

            self._reconcile()
            return events

    def refresh_now(self) -> List[AlarmEvent]:
        """
        Fetch one reading and evaluate it.

        Notes
        -----
        A fetch failure is recorded as the store's last error and evaluation
        is skipped; it is never raised to the caller.
        """
        if self.source is None:
            logger.debug("No reading source configured - refresh skipped")
            return []

        logger.debug("Starting data fetch")
        try:
            reading = self.source.fetch()
        except MeterFetchError as e:
            msg = f"Fetch error: {e}"
            logger.warning(msg)
            self.store.set_last_error(msg)
            return []

        logger.debug("Data received: %s = %s %s", reading.meter_name, reading.demand_raw, reading.unit)
        return self.handle_reading(reading)

    def request_refresh(self) -> None:
        """
        Ask for an out-of-cycle poll.
        """
        if self.poll_trigger is not None:
            self.poll_trigger()
        else:
            self.refresh_now()

    # --- Operator actions ---
    def acknowledge(self, alarm_id: str) -> bool:
        """
        Acknowledge one alarm.

        Returns
        -------
        bool
            False if the id is unknown or already acknowledged (no-op).
        """
        with self._lock:
            updated = self.store.acknowledge(alarm_id)
            if updated is None:
                logger.debug("Acknowledge %s: nothing to do", alarm_id)
                return False

            logger.info("Acknowledged alarm: %s", alarm_id)
            self.voice.cancel()
            if not self.store.active_unacknowledged():
                logger.info("No active unacknowledged alarms, clearing interval")
                self.scheduler.cancel()
            self._reconcile()
            return True

    def manual_reset(self, alarm_id: str) -> bool:
        """
        Clear one alarm explicitly (inactive and acknowledged).
        """
        with self._lock:
            updated = self.store.manual_reset(alarm_id)
            if updated is None:
                return False
            logger.info("Manually reset alarm: %s", alarm_id)
            self._reconcile()
            return True

    def clear_all(self) -> None:
        """
        Empty the ledger and stop all notification. Force-stop is untouched.
        """
        with self._lock:
            logger.info("Resetting all alarms")
            self.store.clear_alarms()
            self.voice.cancel()
            self.scheduler.cancel()
            self._reconcile()

    def engage_force_stop(self) -> bool:
        with self._lock:
            return self._force_stop.engage()

    def release_force_stop(self) -> bool:
        with self._lock:
            if self._closed:
                return False
            return self._force_stop.disengage()

    @property
    def force_stop_engaged(self) -> bool:
        return self._force_stop.engaged

    # --- Settings ---
    def update_settings(self, partial: Mapping[str, Any]) -> AlarmSettings:
        """
        Merge a partial settings update.

        Raises
        ------
        SettingsImportError
            If a value is invalid; settings are left unchanged.
        """
        with self._lock:
            out = self.store.update_settings(partial)
            self._reconcile()
            return out

    def import_settings(self, blob: str | bytes) -> AlarmSettings:
        """
        Import settings exported by :meth:`export_settings`.

        Raises
        ------
        SettingsImportError
            If the blob is invalid; settings are left unchanged.
        """
        with self._lock:
            out = self.store.import_settings(blob)
            logger.info("Settings imported")
            self._reconcile()
            return out

    def export_settings(self) -> str:
        return self.store.export_settings()

    def reset_settings(self) -> AlarmSettings:
        with self._lock:
            out = self.store.reset_settings()
            logger.info("Settings reset to defaults")
            self._reconcile()
            return out

    # --- Lifecycle ---
    def resume(self) -> None:
        """
        Rebuild the repeat schedule from restored state (call once at startup).
        """
        with self._lock:
            self._closed = False
            self.scheduler.reconcile()

    def shutdown(self) -> None:
        """
        Stop the repeat timer and any announcement in progress.

        Readings that arrive afterwards (a poll already in flight) are dropped
        and the repeat timer stays stopped until :meth:`resume`.
        """
        with self._lock:
            self._closed = True
            self.scheduler.cancel()
            self.voice.cancel()

    def _reconcile(self) -> None:
        # caller holds self._lock
        if not self._closed:
            self.scheduler.reconcile()
