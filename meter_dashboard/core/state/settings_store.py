"""
Alarm settings store and (de)serialization.

Settings updates arrive as partial mappings (UI edits, imported JSON files).
They are validated and merged onto the current :class:`AlarmSettings`; an
invalid update is rejected as a whole so the store is never left half-updated.

Keys are accepted in snake_case or in the camelCase spelling used by settings
files exported from the browser version of the dashboard.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Dict, Mapping, Optional

from meter_dashboard.domain.models import (
    MAX_REFRESH_INTERVAL_S,
    MAX_REPEAT_INTERVAL_S,
    MIN_REFRESH_INTERVAL_S,
    MIN_REPEAT_INTERVAL_S,
    AlarmSettings,
)

logger = logging.getLogger(__name__)

_CAMEL_ALIASES: Dict[str, str] = {
    "highSetDemand": "high_set_demand",
    "lowSetDemand": "low_set_demand",
    "autoResetEnabled": "auto_reset_enabled",
    "voiceEnabled": "voice_enabled",
    "autoRefreshInterval": "auto_refresh_interval",
    "alarmRepeatInterval": "alarm_repeat_interval",
}

_FLOAT_FIELDS = ("high_set_demand", "low_set_demand")
_BOOL_FIELDS = ("auto_reset_enabled", "voice_enabled")
_INTERVAL_RANGES = {
    "auto_refresh_interval": (MIN_REFRESH_INTERVAL_S, MAX_REFRESH_INTERVAL_S),
    "alarm_repeat_interval": (MIN_REPEAT_INTERVAL_S, MAX_REPEAT_INTERVAL_S),
}


class SettingsImportError(ValueError):
    """
    Raised when a settings update or import blob is invalid.

    The message is meant to be shown to the operator as-is.
    """


def _as_float(key: str, v: Any) -> float:
    if isinstance(v, bool):
        raise SettingsImportError(f"{key} must be a number, got {v!r}")
    try:
        out = float(v)
    except (TypeError, ValueError, OverflowError):
        raise SettingsImportError(f"{key} must be a number, got {v!r}") from None
    if not math.isfinite(out):
        raise SettingsImportError(f"{key} must be a finite number, got {v!r}")
    return out


def _as_bool(key: str, v: Any) -> bool:
    if isinstance(v, bool):
        return v
    raise SettingsImportError(f"{key} must be true or false, got {v!r}")


def _as_interval(key: str, v: Any) -> int:
    lo, hi = _INTERVAL_RANGES[key]
    seconds = int(round(_as_float(key, v)))
    clamped = min(max(seconds, lo), hi)
    if clamped != seconds:
        logger.warning("%s=%s out of range [%s, %s], using %s", key, seconds, lo, hi, clamped)
    return clamped


def merge_settings(base: AlarmSettings, partial: Mapping[str, Any]) -> AlarmSettings:
    """
    Validate a partial update and merge it onto ``base``.

    Parameters
    ----------
    base
        Current settings.
    partial
        Mapping of field name (snake_case or camelCase) to new value.
        Unknown keys are ignored.

    Returns
    -------
    AlarmSettings
        New settings object. ``base`` is not modified.

    Raises
    ------
    SettingsImportError
        If ``partial`` is not a mapping or any recognised value is invalid.
    """
    if not isinstance(partial, Mapping):
        raise SettingsImportError("Settings must be a JSON object")

    changes: Dict[str, Any] = {}
    for raw_key, v in partial.items():
        key = _CAMEL_ALIASES.get(raw_key, raw_key)
        if key in _FLOAT_FIELDS:
            changes[key] = _as_float(key, v)
        elif key in _BOOL_FIELDS:
            changes[key] = _as_bool(key, v)
        elif key in _INTERVAL_RANGES:
            changes[key] = _as_interval(key, v)
        else:
            logger.debug("Ignoring unknown settings key %r", raw_key)

    merged = replace(base, **changes)
    if merged.thresholds_contradictory:
        logger.warning(
            "Low set point %s is not below high set point %s - both alarms may fire",
            merged.low_set_demand,
            merged.high_set_demand,
        )
    return merged


def export_settings_json(settings: AlarmSettings) -> str:
    """
    Serialize settings as pretty-printed JSON.
    """
    return json.dumps(settings.to_dict(), indent=2)


def export_filename(today: Optional[date] = None) -> str:
    """
    Suggested file name for an exported settings file.
    """
    d = today or date.today()
    return f"meter-alarm-settings-{d.isoformat()}.json"


def parse_settings_json(blob: str | bytes, base: AlarmSettings) -> AlarmSettings:
    """
    Parse an exported settings blob and merge it onto ``base``.

    Raises
    ------
    SettingsImportError
        If the blob is not valid JSON, not an object, or carries invalid values.
    """
    try:
        data = json.loads(blob)
    except (TypeError, ValueError) as e:
        raise SettingsImportError(f"Error importing settings: Invalid JSON file ({e})") from e
    return merge_settings(base, data)


@dataclass
class SettingsStore:
    """
    Holder of the current alarm settings.

    Notes
    -----
    Not thread-safe on its own; the enclosing `StateStore` serializes access.

    Attributes
    ----------
    defaults
        Settings restored by :meth:`reset_to_defaults`.
    current
        Settings in effect.
    """

    defaults: AlarmSettings = field(default_factory=AlarmSettings)
    current: Optional[AlarmSettings] = None

    def __post_init__(self) -> None:
        if self.current is None:
            self.current = self.defaults

    def get(self) -> AlarmSettings:
        assert self.current is not None
        return self.current

    def update(self, partial: Mapping[str, Any]) -> AlarmSettings:
        self.current = merge_settings(self.get(), partial)
        return self.current

    def import_json(self, blob: str | bytes) -> AlarmSettings:
        self.current = parse_settings_json(blob, self.get())
        return self.current

    def export_json(self) -> str:
        return export_settings_json(self.get())

    def reset_to_defaults(self) -> AlarmSettings:
        self.current = self.defaults
        return self.current
