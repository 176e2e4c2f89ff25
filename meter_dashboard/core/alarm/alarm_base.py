"""
Alarm evaluation contracts (context, identifiers, and results).

This module defines the data structures that form the contract between:

- The threshold evaluator (pure function) producing -> class:`EvaluationResult`
- The monitoring controller (stateful) applying results to the alarm ledger

Notes
-----

- Alarm ids must be unique even for alarms created within the same evaluation
  pass, so they combine the creation time with a random token.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Tuple

from meter_dashboard.domain.models import Alarm, AlarmType

AlarmIdFactory = Callable[[AlarmType, datetime], str]


def new_alarm_id(alarm_type: AlarmType, now: datetime) -> str:
    """
    Build a unique alarm id such as ``high-1767261600000-3f2a9c1d``.

    Parameters
    ----------
    alarm_type
        Type of the alarm being created (used as prefix).
    now
        Creation time (milliseconds since epoch go into the id).
    """
    prefix = "high" if alarm_type is AlarmType.HIGH_DEMAND else "low"
    millis = int(now.timestamp() * 1000)
    return f"{prefix}-{millis}-{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class AlarmContext:
    """
    Context passed into alarm evaluation.

    Parameters
    ----------
    now
        Evaluation timestamp for the current cycle; used as the creation time
        of any alarm raised during the cycle.
    id_factory
        Generator for new alarm ids.
    """

    now: datetime
    id_factory: AlarmIdFactory = new_alarm_id


@dataclass(frozen=True)
class EvaluationResult:
    """
    Result of evaluating one reading.

    Parameters
    ----------
    new_alarms
        Alarms to append to the ledger, in creation order (HIGH before LOW).
    resets
        Ids of currently active alarms that should auto-clear.
    """

    new_alarms: Tuple[Alarm, ...] = field(default_factory=tuple)
    resets: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.new_alarms and not self.resets

    @classmethod
    def skipped(cls) -> "EvaluationResult":
        return cls()

    @classmethod
    def of(cls, new_alarms: List[Alarm], resets: List[str]) -> "EvaluationResult":
        return cls(new_alarms=tuple(new_alarms), resets=tuple(resets))
