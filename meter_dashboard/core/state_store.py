from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Mapping, Optional

from meter_dashboard.core.state.alarm_ledger import AlarmLedger
from meter_dashboard.core.state.kv_store import InMemoryKeyValueStore, KeyValueStore
from meter_dashboard.core.state.settings_store import SettingsStore, merge_settings
from meter_dashboard.domain.models import Alarm, AlarmSettings, MeterReading

logger = logging.getLogger(__name__)

KEY_METER_DATA = "meter_data"
KEY_ALARMS = "alarms"
KEY_ACKNOWLEDGED = "acknowledged_alarms"
KEY_SETTINGS = "alarm_settings"
KEY_FORCE_STOP = "force_stop"


@dataclass
class StateStore:
    """
    Thread-safe facade for application state.

    'StateStore' aggregates and coordinates access to:
    - alarm settings (thresholds and timing)
    - the alarm ledger (records + acknowledged ids)
    - the latest meter reading and the last fetch error
    - the force-stop flag

    Concurrency Model
    -----------------
    All reads/writes are guarded by a single re-entrant lock (`threading.RLock`).
    This provides consistent snapshots for the UI and prevents concurrent
    mutations from the poll loop and the notification timer.

    Persistence
    -----------
    Every mutation of persisted state writes the owning key to ``kv``.
    :meth:`restore` reads all keys back at startup; absent or unreadable keys
    fall back to defaults.

    Attributes
    ----------
    settings
        Settings holder.
    ledger
        Alarm ledger.
    kv
        Key-value persistence backend.
    """

    settings: SettingsStore = field(default_factory=SettingsStore)
    ledger: AlarmLedger = field(default_factory=AlarmLedger)
    kv: KeyValueStore = field(default_factory=InMemoryKeyValueStore)

    _latest: Optional[MeterReading] = field(default=None, init=False, repr=False)
    _last_error: Optional[str] = field(default=None, init=False, repr=False)
    _force_stop: bool = field(default=False, init=False, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)

    # --- Startup ---
    def restore(self) -> None:
        """
        Load persisted state from ``kv``.

        Notes
        -----
        Invalid entries are logged and skipped rather than aborting startup.
        """
        with self._lock:
            raw_settings = self.kv.get(KEY_SETTINGS)
            if raw_settings is not None:
                try:
                    self.settings.current = merge_settings(self.settings.defaults, raw_settings)
                except ValueError as e:
                    logger.warning("Ignoring persisted settings: %s", e)

            alarms: List[Alarm] = []
            for item in self.kv.get(KEY_ALARMS, []) or []:
                try:
                    alarms.append(Alarm.from_dict(item))
                except (KeyError, TypeError, ValueError) as e:
                    logger.warning("Ignoring persisted alarm %r: %r", item, e)
            self.ledger.alarms = alarms
            self.ledger.acknowledged_ids = [str(i) for i in (self.kv.get(KEY_ACKNOWLEDGED, []) or [])]

            self._force_stop = bool(self.kv.get(KEY_FORCE_STOP, False))

            raw_reading = self.kv.get(KEY_METER_DATA)
            if raw_reading is not None:
                try:
                    self._latest = MeterReading.from_payload(raw_reading, received_at=datetime.now())
                except ValueError as e:
                    logger.warning("Ignoring persisted meter data: %s", e)

            logger.info(
                "Restored state: %d alarms (%d active), force stop %s",
                len(alarms),
                len(self.ledger.active()),
                "engaged" if self._force_stop else "released",
            )

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    # --- Settings API ---
    def get_settings(self) -> AlarmSettings:
        with self._lock:
            return self.settings.get()

    def update_settings(self, partial: Mapping[str, Any]) -> AlarmSettings:
        """
        Validate and merge a partial settings update.

        Raises
        ------
        SettingsImportError
            If any value is invalid; settings are left unchanged.
        """
        with self._lock:
            out = self.settings.update(partial)
            self._persist_settings()
            return out

    def import_settings(self, blob: str | bytes) -> AlarmSettings:
        with self._lock:
            out = self.settings.import_json(blob)
            self._persist_settings()
            return out

    def export_settings(self) -> str:
        with self._lock:
            return self.settings.export_json()

    def reset_settings(self) -> AlarmSettings:
        with self._lock:
            out = self.settings.reset_to_defaults()
            self._persist_settings()
            return out

    # --- Readings API ---
    def set_latest_reading(self, reading: MeterReading) -> None:
        with self._lock:
            self._latest = reading
            self._last_error = None
            self.kv.set(KEY_METER_DATA, reading.raw)

    def get_latest_reading(self) -> Optional[MeterReading]:
        with self._lock:
            return self._latest

    def set_last_error(self, message: Optional[str]) -> None:
        with self._lock:
            self._last_error = message

    @property
    def last_error(self) -> Optional[str]:
        with self._lock:
            return self._last_error

    # --- Force-stop API ---
    def set_force_stop(self, engaged: bool) -> None:
        with self._lock:
            self._force_stop = engaged
            self.kv.set(KEY_FORCE_STOP, engaged)

    @property
    def force_stop(self) -> bool:
        with self._lock:
            return self._force_stop

    # --- Alarm API ---
    def append_alarms(self, alarms: List[Alarm]) -> None:
        with self._lock:
            if not alarms:
                return
            self.ledger.append(alarms)
            self._persist_alarms()

    def auto_reset(self, alarm_ids: List[str]) -> List[Alarm]:
        with self._lock:
            out = self.ledger.auto_reset(alarm_ids)
            if out:
                self._persist_alarms()
            return out

    def acknowledge(self, alarm_id: str) -> Optional[Alarm]:
        with self._lock:
            out = self.ledger.acknowledge(alarm_id)
            if out is not None:
                self._persist_alarms()
                self._persist_acknowledged()
            return out

    def manual_reset(self, alarm_id: str) -> Optional[Alarm]:
        with self._lock:
            out = self.ledger.manual_reset(alarm_id)
            if out is not None:
                self._persist_alarms()
            return out

    def acknowledge_all_active(self) -> List[str]:
        with self._lock:
            out = self.ledger.acknowledge_all_active()
            self._persist_alarms()
            self._persist_acknowledged()
            return out

    def unacknowledge_all(self) -> None:
        with self._lock:
            self.ledger.unacknowledge_all()
            self._persist_alarms()
            self._persist_acknowledged()

    def clear_alarms(self) -> None:
        """
        Empty the ledger and the acknowledged ids.

        Notes
        -----
        This is triggered by the "Clear all alarms" UI action.
        """
        with self._lock:
            self.ledger.clear()
            self._persist_alarms()
            self._persist_acknowledged()

    def active_unacknowledged(self) -> List[Alarm]:
        with self._lock:
            return self.ledger.active_unacknowledged()

    # -------------------------
    # UI-facing snapshot properties
    # Return copies to avoid "list changed size during iteration"
    # -------------------------
    @property
    def alarms(self) -> List[Alarm]:
        """
        Snapshot copy of the alarm ledger (oldest first).
        """
        with self._lock:
            return list(self.ledger.alarms)

    @property
    def acknowledged_ids(self) -> List[str]:
        with self._lock:
            return list(self.ledger.acknowledged_ids)

    def _persist_alarms(self) -> None:
        self.kv.set(KEY_ALARMS, [a.to_dict() for a in self.ledger.alarms])

    def _persist_acknowledged(self) -> None:
        self.kv.set(KEY_ACKNOWLEDGED, list(self.ledger.acknowledged_ids))

    def _persist_settings(self) -> None:
        self.kv.set(KEY_SETTINGS, self.settings.get().to_dict())
