"""
Unit tests for meter_dashboard.ui.adapters.store_snapshots.

Validates the Qt-free view-model helpers:
- alarm log rows (newest first, status text, active filter)
- header counters and level
- demand band classification
- settings summary text
"""

from __future__ import annotations

from datetime import datetime, timedelta

from meter_dashboard.core.state_store import StateStore
from meter_dashboard.domain.models import Alarm, AlarmSettings, AlarmType, MeterReading
from meter_dashboard.ui.adapters.store_snapshots import (
    alarm_rows,
    demand_band,
    header_status,
    pending_alarms,
    settings_summary,
)

T0 = datetime(2026, 1, 1, 10, 0, 0)


def _alarm(alarm_id: str, minutes: int, **kw) -> Alarm:
    return Alarm(
        id=alarm_id,
        type=kw.pop("type", AlarmType.HIGH_DEMAND),
        message=f"msg {alarm_id}",
        meter_name="M",
        value=600.0,
        unit="kVA",
        limit=500.0,
        timestamp=T0 + timedelta(minutes=minutes),
        **kw,
    )


def _reading(value: str) -> MeterReading:
    return MeterReading(
        meter_name="M",
        status="",
        date_time="",
        location="",
        hierarchy="",
        demand_raw=value,
        unit="kVA",
        received_at=T0,
    )


def _store() -> StateStore:
    store = StateStore()
    store.append_alarms(
        [
            _alarm("a", 0),
            _alarm("b", 1, acknowledged=True),
            _alarm("c", 2, active=False, type=AlarmType.LOW_DEMAND),
        ]
    )
    return store


def test_alarm_rows_newest_first_with_status() -> None:
    """Rows are newest first with human-readable status."""
    rows = alarm_rows(_store())

    assert [r[0] for r in rows] == ["c", "b", "a"]
    assert [r[5] for r in rows] == ["Cleared", "Active (Ack)", "Active"]
    assert rows[0][2] == "LOW"
    assert rows[2][3] == "600 kVA"
    assert rows[2][4] == "500 kVA"
    assert rows[2][1] == "2026-01-01 10:00:00"


def test_alarm_rows_active_only() -> None:
    """The Active filter hides cleared alarms."""
    rows = alarm_rows(_store(), active_only=True)
    assert [r[0] for r in rows] == ["b", "a"]


def test_header_status_counts_and_level() -> None:
    """Counters and level follow the ledger."""
    store = _store()
    hs = header_status(store, speaking=True)

    assert (hs.active, hs.unacknowledged, hs.total) == (2, 1, 3)
    assert hs.level == "CRITICAL"
    assert hs.text == "2 Active Alarms (1 unacknowledged)"
    assert hs.speaking and hs.voice_enabled and not hs.force_stop

    store.acknowledge("a")
    hs = header_status(store, speaking=False)
    assert hs.level == "WARNING"
    assert hs.text == "2 Active Alarms"

    store.clear_alarms()
    hs = header_status(store, speaking=False)
    assert hs.level == "OK"
    assert hs.text == "No active alarms"


def test_pending_alarms() -> None:
    """The banner lists only active unacknowledged alarms."""
    assert [a.id for a in pending_alarms(_store())] == ["a"]


def test_demand_band() -> None:
    """Classification mirrors the strict threshold comparisons."""
    s = AlarmSettings(high_set_demand=500, low_set_demand=100)

    assert demand_band(None, s) == "unknown"
    assert demand_band(_reading("N/A"), s) == "unknown"
    assert demand_band(_reading("501"), s) == "high"
    assert demand_band(_reading("500"), s) == "normal"
    assert demand_band(_reading("99.9"), s) == "low"


def test_settings_summary() -> None:
    """Summary line shows limits and refresh interval."""
    text = settings_summary(AlarmSettings(high_set_demand=850, low_set_demand=100, auto_refresh_interval=15))
    assert text == "Current settings: High = 850kVA, Low = 100kVA, Refresh every 15s"
