from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from meter_dashboard.core.alarm.threshold_evaluator import format_demand
from meter_dashboard.core.state_store import StateStore
from meter_dashboard.domain.models import Alarm, AlarmSettings, AlarmType, MeterReading

# id, time, type, value, limit, status, message
AlarmRow = Tuple[str, str, str, str, str, str, str]


@dataclass(frozen=True)
class HeaderStatus:
    """
    Counters and flags shown in the dashboard header.
    """

    active: int
    unacknowledged: int
    total: int
    speaking: bool
    voice_enabled: bool
    force_stop: bool

    @property
    def level(self) -> str:
        """
        'OK' | 'WARNING' | 'CRITICAL'
        """
        if self.unacknowledged:
            return "CRITICAL"
        if self.active:
            return "WARNING"
        return "OK"

    @property
    def text(self) -> str:
        if not self.active:
            return "No active alarms"
        s = f"{self.active} Active Alarm{'' if self.active == 1 else 's'}"
        if self.unacknowledged:
            s += f" ({self.unacknowledged} unacknowledged)"
        return s


def alarm_status_text(alarm: Alarm) -> str:
    if not alarm.active:
        return "Cleared"
    return "Active (Ack)" if alarm.acknowledged else "Active"


def _type_text(alarm: Alarm) -> str:
    return "HIGH" if alarm.type is AlarmType.HIGH_DEMAND else "LOW"


def alarm_rows(store: StateStore, active_only: bool = False, limit: int = 500) -> List[AlarmRow]:
    """
    Build alarm log rows, newest first.
    """
    alarms = store.alarms
    if active_only:
        alarms = [a for a in alarms if a.active]

    rows: List[AlarmRow] = []
    for a in reversed(alarms[-limit:]):
        rows.append(
            (
                a.id,
                a.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                _type_text(a),
                f"{format_demand(a.value)} {a.unit}",
                f"{format_demand(a.limit)} {a.unit}",
                alarm_status_text(a),
                a.message,
            )
        )
    return rows


def pending_alarms(store: StateStore) -> List[Alarm]:
    """
    Alarms shown in the "acknowledge me" banner (active and unacknowledged).
    """
    return store.active_unacknowledged()


def header_status(store: StateStore, speaking: bool) -> HeaderStatus:
    alarms = store.alarms
    return HeaderStatus(
        active=sum(1 for a in alarms if a.active),
        unacknowledged=sum(1 for a in alarms if a.needs_attention),
        total=len(alarms),
        speaking=speaking,
        voice_enabled=store.get_settings().voice_enabled,
        force_stop=store.force_stop,
    )


def demand_band(reading: Optional[MeterReading], settings: AlarmSettings) -> str:
    """
    Classify the latest demand for display: 'high' | 'low' | 'normal' | 'unknown'.
    """
    if reading is None:
        return "unknown"
    value = reading.demand
    if math.isnan(value):
        return "unknown"
    if value > settings.high_set_demand:
        return "high"
    if value < settings.low_set_demand:
        return "low"
    return "normal"


def settings_summary(settings: AlarmSettings) -> str:
    return (
        f"Current settings: High = {format_demand(settings.high_set_demand)}kVA, "
        f"Low = {format_demand(settings.low_set_demand)}kVA, "
        f"Refresh every {settings.auto_refresh_interval}s"
    )
