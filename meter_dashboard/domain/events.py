"""
Alarm event domain models.

This module defines the event-level representation of alarm lifecycle changes.
An `AlarmEvent` represents *what happened* to an alarm at a specific time,
while `Alarm` (in models.py) represents *what is currently true*.

Events are returned by the monitoring controller so callers (UI, tests) can
react to a poll without diffing the ledger.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from meter_dashboard.domain.models import AlarmType


class AlarmTransition(str, Enum):
    """
    Alarm lifecycle transition.

    Members
    -------
    RAISED : str
        A new alarm was appended to the ledger.
    AUTO_RESET : str
        An active alarm was cleared because the reading returned within its limit.
    """

    RAISED = "RAISED"
    AUTO_RESET = "AUTO_RESET"


@dataclass(frozen=True)
class AlarmEvent:
    """
    Alarm event emitted when an alarm transitions.

    Parameters
    ----------
    alarm_id
        Ledger id of the alarm.
    alarm_type
        Violated threshold.
    transition
        Lifecycle transition.
    timestamp
        When the transition occurred.
    message
        Alarm message.
    value
        Demand value that caused the transition.
    """

    alarm_id: str
    alarm_type: AlarmType
    transition: AlarmTransition
    timestamp: datetime
    message: str
    value: float
