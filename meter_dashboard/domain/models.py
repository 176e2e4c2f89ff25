"""
Domain models and enums.

This module defines the core domain-level types used across the system:
- Alarm types raised by the demand thresholds
- Operator-tunable alarm settings
- Meter readings decoded from the data source
- Alarm records kept in the alarm ledger

Alarm records and settings are immutable (frozen) dataclasses. Any change to
an alarm is expressed as a whole-record replacement (``dataclasses.replace``),
so readers on other threads never observe a half-updated record.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict


class AlarmType(str, Enum):
    """
    Category identifying which demand threshold was violated.

    Members
    -------
    HIGH_DEMAND : str
        Demand rose above the configured high set point.
    LOW_DEMAND : str
        Demand fell below the configured low set point.
    """

    HIGH_DEMAND = "HIGH_DEMAND"
    LOW_DEMAND = "LOW_DEMAND"


# Ranges enforced on the timing parameters (seconds).
MIN_REFRESH_INTERVAL_S = 5
MAX_REFRESH_INTERVAL_S = 300
MIN_REPEAT_INTERVAL_S = 10
MAX_REPEAT_INTERVAL_S = 600


@dataclass(frozen=True)
class AlarmSettings:
    """
    Operator-tunable thresholds and timing parameters.

    Parameters
    ----------
    high_set_demand
        High demand threshold in the reading's unit (e.g. kVA).
    low_set_demand
        Low demand threshold in the reading's unit.
    auto_reset_enabled
        Whether a reading back inside the captured limit clears an active alarm.
    voice_enabled
        Master mute for audible notifications.
    auto_refresh_interval
        Polling cadence in seconds (>= 5).
    alarm_repeat_interval
        Re-announcement cadence in seconds (>= 10).

    Notes
    -----
    ``low_set_demand < high_set_demand`` is expected but not enforced.
    """

    high_set_demand: float = 500.0
    low_set_demand: float = 100.0
    auto_reset_enabled: bool = True
    voice_enabled: bool = True
    auto_refresh_interval: int = 10
    alarm_repeat_interval: int = 60

    @property
    def thresholds_contradictory(self) -> bool:
        return self.low_set_demand >= self.high_set_demand

    def to_dict(self) -> Dict[str, Any]:
        return {
            "high_set_demand": self.high_set_demand,
            "low_set_demand": self.low_set_demand,
            "auto_reset_enabled": self.auto_reset_enabled,
            "voice_enabled": self.voice_enabled,
            "auto_refresh_interval": self.auto_refresh_interval,
            "alarm_repeat_interval": self.alarm_repeat_interval,
        }


@dataclass(frozen=True)
class MeterReading:
    """
    One polled demand measurement.

    Parameters
    ----------
    meter_name
        Display name of the meter.
    status
        Meter status string as reported by the data source.
    date_time
        Timestamp string as reported by the data source.
    location
        Meter location.
    hierarchy
        Meter hierarchy path (``hierachy`` on the wire).
    demand_raw
        String-encoded demand value (``kVA.value`` on the wire).
    unit
        Demand unit (``kVA.unit`` on the wire).
    received_at
        Local time the reading was decoded.
    raw
        Original payload object, kept for the persisted snapshot.
    """

    meter_name: str
    status: str
    date_time: str
    location: str
    hierarchy: str
    demand_raw: str
    unit: str
    received_at: datetime
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def demand(self) -> float:
        """
        Demand parsed as float; ``NaN`` when the value is not numeric.
        """
        return parse_demand(self.demand_raw)

    @classmethod
    def from_payload(cls, obj: Any, received_at: datetime) -> "MeterReading":
        """
        Decode one reading object from the data source.

        Parameters
        ----------
        obj
            Mapping with ``meter_name``, ``status``, ``date_time``, ``location``,
            ``hierachy`` and ``kVA: {value, unit}``.
        received_at
            Local decode time.

        Raises
        ------
        ValueError
            If ``obj`` is not a mapping or has no ``kVA`` object.
        """
        if not isinstance(obj, dict):
            raise ValueError(f"reading must be an object, got {type(obj).__name__}")
        kva = obj.get("kVA")
        if not isinstance(kva, dict):
            raise ValueError("reading has no kVA object")

        value = kva.get("value")
        return cls(
            meter_name=str(obj.get("meter_name", "")),
            status=str(obj.get("status", "")),
            date_time=str(obj.get("date_time", "")),
            location=str(obj.get("location", "")),
            hierarchy=str(obj.get("hierachy", "")),
            demand_raw="" if value is None else str(value),
            unit=str(kva.get("unit") or "kVA"),
            received_at=received_at,
            raw=dict(obj),
        )


def parse_demand(raw: Any) -> float:
    """
    Parse a string-encoded demand value.

    Non-numeric input yields ``NaN`` so that every threshold comparison is
    false and the reading acts as "no signal".
    """
    if raw is None or isinstance(raw, bool):
        return math.nan
    try:
        return float(str(raw).strip())
    except ValueError:
        return math.nan


@dataclass(frozen=True)
class Alarm:
    """
    Ledger record marking one threshold violation.

    Parameters
    ----------
    id
        Unique alarm token.
    type
        Violated threshold.
    message
        Human-readable message (also the spoken announcement).
    meter_name
        Meter that produced the violating reading.
    value
        Demand value at creation time.
    unit
        Demand unit.
    limit
        Threshold captured at creation time; auto-reset compares against this,
        not against the live setting.
    timestamp
        Creation time.
    active
        True until auto-reset or manual reset clears the alarm.
    acknowledged
        True once acknowledged by the operator, a manual reset, or force-stop.
    """

    id: str
    type: AlarmType
    message: str
    meter_name: str
    value: float
    unit: str
    limit: float
    timestamp: datetime
    active: bool = True
    acknowledged: bool = False

    @property
    def needs_attention(self) -> bool:
        return self.active and not self.acknowledged

    def with_status(self, *, active: bool | None = None, acknowledged: bool | None = None) -> "Alarm":
        """
        Return a copy with the given status flags replaced.
        """
        return replace(
            self,
            active=self.active if active is None else active,
            acknowledged=self.acknowledged if acknowledged is None else acknowledged,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "message": self.message,
            "meter_name": self.meter_name,
            "value": self.value,
            "unit": self.unit,
            "limit": self.limit,
            "timestamp": self.timestamp.isoformat(),
            "active": self.active,
            "acknowledged": self.acknowledged,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Alarm":
        """
        Rebuild an alarm from its persisted form.

        Raises
        ------
        KeyError, ValueError
            If required fields are missing or malformed.
        """
        return cls(
            id=str(d["id"]),
            type=AlarmType(d["type"]),
            message=str(d["message"]),
            meter_name=str(d.get("meter_name", "")),
            value=float(d["value"]),
            unit=str(d.get("unit", "kVA")),
            limit=float(d["limit"]),
            timestamp=datetime.fromisoformat(str(d["timestamp"])),
            active=bool(d.get("active", True)),
            acknowledged=bool(d.get("acknowledged", False)),
        )
