"""
Threshold evaluation for demand readings.

This module contains the stateless rule that decides, for one reading:
- which new alarms should be raised (HIGH_DEMAND / LOW_DEMAND), and
- which currently active alarms should auto-clear.

The evaluator never mutates anything; the monitoring controller applies the
returned :class:`EvaluationResult` to the alarm ledger.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

from meter_dashboard.core.alarm.alarm_base import AlarmContext, EvaluationResult
from meter_dashboard.domain.models import Alarm, AlarmSettings, AlarmType, MeterReading

logger = logging.getLogger(__name__)


def format_demand(value: float) -> str:
    """
    Format a demand value for messages (``600`` rather than ``600.0``).
    """
    if math.isfinite(value) and float(value).is_integer():
        return str(int(value))
    return str(value)


def high_demand_message(meter_name: str, value: float, unit: str) -> str:
    return f"High demand reached! {meter_name} is at {format_demand(value)} {unit}"


def low_demand_message(meter_name: str, value: float, unit: str) -> str:
    return f"Low demand alert! {meter_name} is at {format_demand(value)} {unit}"


def _should_auto_reset(alarm: Alarm, value: float) -> bool:
    """
    Whether an active alarm's clearing condition holds for ``value``.

    Uses the limit captured when the alarm was raised. ``NaN`` never satisfies
    either comparison.
    """
    if alarm.type is AlarmType.HIGH_DEMAND:
        return value <= alarm.limit
    return value >= alarm.limit


@dataclass(frozen=True)
class ThresholdEvaluator:
    """
    Evaluate one demand reading against the high/low set points.

    Rules
    -----
    - Force-stop active: evaluation is skipped entirely (no alarms, no resets).
    - ``value > high_set_demand``: one new HIGH_DEMAND alarm.
    - ``value < low_set_demand``: one new LOW_DEMAND alarm. Both fire in the
      same pass when the limits are contradictory.
    - Auto-reset enabled: every active alarm whose captured limit is satisfied
      again is marked for reset. Only alarms already in the ledger are scanned.
    - No de-duplication: a violating poll always raises a fresh alarm, even
      while an alarm of the same type is still active.

    Parameters
    ----------
    default_unit
        Unit used when the reading does not carry one.
    """

    default_unit: str = "kVA"

    def evaluate(
        self,
        reading: MeterReading,
        settings: AlarmSettings,
        alarms: Sequence[Alarm],
        force_stop_active: bool,
        ctx: AlarmContext,
    ) -> EvaluationResult:
        """
        Evaluate a reading and return the alarms to raise and reset.

        Parameters
        ----------
        reading
            Latest meter reading.
        settings
            Current alarm settings.
        alarms
            Current ledger contents (before this pass).
        force_stop_active
            Whether the force-stop switch is engaged.
        ctx
            Evaluation context (timestamp and id factory).

        Returns
        -------
        EvaluationResult
            New alarms (HIGH first) and ids of alarms to auto-reset.
        """
        if force_stop_active:
            logger.debug("Force stop active - skipping alarm evaluation")
            return EvaluationResult.skipped()

        value = reading.demand
        if math.isnan(value):
            logger.debug("Demand value %r is not numeric - holding alarm state", reading.demand_raw)

        unit = reading.unit or self.default_unit
        new_alarms: List[Alarm] = []

        if value > settings.high_set_demand:
            new_alarms.append(
                self._make_alarm(AlarmType.HIGH_DEMAND, reading, value, unit, settings.high_set_demand, ctx)
            )
            logger.info("HIGH alarm triggered: %s > %s", format_demand(value), format_demand(settings.high_set_demand))

        if value < settings.low_set_demand:
            new_alarms.append(
                self._make_alarm(AlarmType.LOW_DEMAND, reading, value, unit, settings.low_set_demand, ctx)
            )
            logger.info("LOW alarm triggered: %s < %s", format_demand(value), format_demand(settings.low_set_demand))

        resets: List[str] = []
        if settings.auto_reset_enabled:
            for alarm in alarms:
                if alarm.active and _should_auto_reset(alarm, value):
                    resets.append(alarm.id)
                    logger.info(
                        "Auto-reset %s alarm: %s back within %s",
                        "HIGH" if alarm.type is AlarmType.HIGH_DEMAND else "LOW",
                        format_demand(value),
                        format_demand(alarm.limit),
                    )

        return EvaluationResult.of(new_alarms, resets)

    def _make_alarm(
        self,
        alarm_type: AlarmType,
        reading: MeterReading,
        value: float,
        unit: str,
        limit: float,
        ctx: AlarmContext,
    ) -> Alarm:
        if alarm_type is AlarmType.HIGH_DEMAND:
            message = high_demand_message(reading.meter_name, value, unit)
        else:
            message = low_demand_message(reading.meter_name, value, unit)

        return Alarm(
            id=ctx.id_factory(alarm_type, ctx.now),
            type=alarm_type,
            message=message,
            meter_name=reading.meter_name,
            value=value,
            unit=unit,
            limit=limit,
            timestamp=ctx.now,
        )


def evaluate(
    reading: MeterReading,
    settings: AlarmSettings,
    alarms: Sequence[Alarm],
    force_stop_active: bool,
    ctx: Optional[AlarmContext] = None,
) -> EvaluationResult:
    """
    Module-level shortcut for ``ThresholdEvaluator().evaluate(...)``.

    If ``ctx`` is None, the reading's ``received_at`` is used as "now".
    """
    return ThresholdEvaluator().evaluate(
        reading,
        settings,
        alarms,
        force_stop_active,
        ctx or AlarmContext(now=reading.received_at),
    )
