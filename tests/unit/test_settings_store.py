"""
Unit tests for meter_dashboard.core.state.settings_store.

Validates:
- partial updates merge onto current settings
- camelCase keys from browser exports are accepted, unknown keys ignored
- invalid values are rejected as a whole
- interval clamping
- JSON export format, export file name, and import error reporting
- reset to the configured defaults
"""

from __future__ import annotations

import json
from datetime import date

import pytest

from meter_dashboard.core.state.settings_store import (
    SettingsImportError,
    SettingsStore,
    export_filename,
    merge_settings,
    parse_settings_json,
)
from meter_dashboard.domain.models import AlarmSettings


def test_merge_partial_update() -> None:
    """Only the given keys change."""
    out = merge_settings(AlarmSettings(), {"high_set_demand": 750})

    assert out.high_set_demand == 750.0
    assert out.low_set_demand == 100.0
    assert out.voice_enabled is True


def test_merge_accepts_camel_case_and_ignores_unknown() -> None:
    """Browser-exported keys map onto the same fields."""
    out = merge_settings(
        AlarmSettings(),
        {"highSetDemand": 850, "voiceEnabled": False, "alarmRepeatInterval": 120, "theme": "dark"},
    )

    assert out.high_set_demand == 850.0
    assert out.voice_enabled is False
    assert out.alarm_repeat_interval == 120


@pytest.mark.parametrize(
    "partial",
    [
        {"high_set_demand": "abc"},
        {"high_set_demand": True},
        {"low_set_demand": float("nan")},
        {"high_set_demand": 10**400},
        {"alarm_repeat_interval": 10**400},
        {"voice_enabled": "yes"},
        {"auto_reset_enabled": 1},
        {"auto_refresh_interval": None},
    ],
)
def test_merge_rejects_invalid_values(partial: dict) -> None:
    """Bad values raise SettingsImportError."""
    with pytest.raises(SettingsImportError):
        merge_settings(AlarmSettings(), partial)


def test_merge_rejects_non_object() -> None:
    """The top level must be a mapping."""
    with pytest.raises(SettingsImportError):
        merge_settings(AlarmSettings(), [1, 2])  # type: ignore[arg-type]


def test_intervals_are_clamped() -> None:
    """Intervals outside their ranges are clamped, not rejected."""
    out = merge_settings(AlarmSettings(), {"auto_refresh_interval": 1, "alarm_repeat_interval": 9999})
    assert out.auto_refresh_interval == 5
    assert out.alarm_repeat_interval == 600

    out = merge_settings(AlarmSettings(), {"auto_refresh_interval": 1000, "alarm_repeat_interval": 2})
    assert out.auto_refresh_interval == 300
    assert out.alarm_repeat_interval == 10


def test_contradictory_limits_are_accepted() -> None:
    """low >= high is allowed (a warning is logged)."""
    out = merge_settings(AlarmSettings(), {"high_set_demand": 100, "low_set_demand": 200})
    assert out.thresholds_contradictory


def test_export_format_and_filename() -> None:
    """Export is indented JSON with snake_case keys."""
    store = SettingsStore()
    blob = store.export_json()

    assert blob.startswith("{\n  ")
    assert json.loads(blob) == AlarmSettings().to_dict()
    assert export_filename(date(2026, 3, 7)) == "meter-alarm-settings-2026-03-07.json"


def test_import_roundtrip_through_store() -> None:
    """An exported blob imports back to the same settings."""
    src = SettingsStore(current=AlarmSettings(high_set_demand=900, voice_enabled=False))
    dst = SettingsStore()

    out = dst.import_json(src.export_json())

    assert out == src.get()
    assert dst.get() == src.get()


def test_import_invalid_json_reports_and_keeps_settings() -> None:
    """Invalid JSON raises a user-facing error and changes nothing."""
    store = SettingsStore()

    with pytest.raises(SettingsImportError) as ei:
        store.import_json("{not json")

    assert str(ei.value).startswith("Error importing settings: Invalid JSON file")
    assert store.get() == AlarmSettings()


def test_import_invalid_value_keeps_settings() -> None:
    """A partially bad file is rejected as a whole."""
    store = SettingsStore()
    with pytest.raises(SettingsImportError):
        parse_settings_json('{"high_set_demand": 900, "voice_enabled": "no"}', store.get())
    assert store.get().high_set_demand == 500.0


def test_import_huge_integer_is_rejected_and_keeps_settings() -> None:
    """An integer literal too large for a float is a validation error."""
    store = SettingsStore()
    blob = '{"high_set_demand": 1' + "0" * 400 + "}"

    with pytest.raises(SettingsImportError) as ei:
        store.import_json(blob)

    assert str(ei.value).startswith("high_set_demand must be a number")
    assert store.get() == AlarmSettings()


def test_reset_to_defaults_uses_configured_defaults() -> None:
    """Reset restores the store's defaults, not the class defaults."""
    defaults = AlarmSettings(high_set_demand=850)
    store = SettingsStore(defaults=defaults)
    store.update({"high_set_demand": 1000})

    assert store.reset_to_defaults() == defaults
    assert store.get().high_set_demand == 850.0
