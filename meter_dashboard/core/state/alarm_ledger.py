from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

from meter_dashboard.domain.models import Alarm


@dataclass
class AlarmLedger:
    """
    In-memory ledger of alarm records.

    This ledger maintains:
    - the ordered list of alarms (oldest first)
    - the list of alarm ids acknowledged so far (each id at most once)

    Notes
    -----
    - This ledger is intentionally simple and not thread-safe.
      Synchronization is handled by the enclosing `StateStore`.
    - Mutations never edit a list in place; they build a new list and swap it
      in, so a snapshot handed out earlier stays consistent.
    - Records are only removed by :meth:`clear`.
    """

    alarms: List[Alarm] = field(default_factory=list)
    acknowledged_ids: List[str] = field(default_factory=list)

    def get(self, alarm_id: str) -> Optional[Alarm]:
        for a in self.alarms:
            if a.id == alarm_id:
                return a
        return None

    def append(self, new_alarms: Iterable[Alarm]) -> None:
        """
        Append alarms to the end of the ledger.

        Parameters
        ----------
        new_alarms
            Alarms in creation order.
        """
        self.alarms = [*self.alarms, *new_alarms]

    def auto_reset(self, alarm_ids: Iterable[str]) -> List[Alarm]:
        """
        Mark the given active alarms inactive.

        Parameters
        ----------
        alarm_ids
            Ids selected by the threshold evaluator.

        Returns
        -------
        list of Alarm
            Updated records (only those that were active).
        """
        ids = set(alarm_ids)
        return self._replace_where(
            lambda a: a.id in ids and a.active,
            lambda a: a.with_status(active=False),
        )

    def acknowledge(self, alarm_id: str) -> Optional[Alarm]:
        """
        Acknowledge one alarm.

        Returns
        -------
        Alarm or None
            The updated record, or None when the id is unknown or the alarm
            was already acknowledged (no change is made in that case).
        """
        current = self.get(alarm_id)
        if current is None or current.acknowledged:
            return None

        updated = self._replace_where(lambda a: a.id == alarm_id, lambda a: a.with_status(acknowledged=True))
        self._record_acknowledged([alarm_id])
        return updated[0]

    def manual_reset(self, alarm_id: str) -> Optional[Alarm]:
        """
        Clear one alarm explicitly (``active=False, acknowledged=True``).

        Returns
        -------
        Alarm or None
            The updated record, or None when the id is unknown or the alarm is
            already inactive and acknowledged.
        """
        current = self.get(alarm_id)
        if current is None or (not current.active and current.acknowledged):
            return None

        updated = self._replace_where(
            lambda a: a.id == alarm_id,
            lambda a: a.with_status(active=False, acknowledged=True),
        )
        return updated[0]

    def acknowledge_all_active(self) -> List[str]:
        """
        Acknowledge every active alarm and record their ids.

        Returns
        -------
        list of str
            Ids of all active alarms (whether or not they were already acknowledged).
        """
        active_ids = [a.id for a in self.alarms if a.active]
        self._replace_where(lambda a: a.active and not a.acknowledged, lambda a: a.with_status(acknowledged=True))
        self._record_acknowledged(active_ids)
        return active_ids

    def unacknowledge_all(self) -> None:
        """
        Forget every acknowledgment: empty the id list and reopen all alarms.
        """
        self.acknowledged_ids = []
        self._replace_where(lambda a: a.acknowledged, lambda a: a.with_status(acknowledged=False))

    def active(self) -> List[Alarm]:
        return [a for a in self.alarms if a.active]

    def active_unacknowledged(self) -> List[Alarm]:
        return [a for a in self.alarms if a.needs_attention]

    def clear(self) -> None:
        """
        Remove all alarms and acknowledged ids.
        """
        self.alarms = []
        self.acknowledged_ids = []

    def _record_acknowledged(self, alarm_ids: Iterable[str]) -> None:
        known = set(self.acknowledged_ids)
        added = [i for i in alarm_ids if i not in known]
        if added:
            self.acknowledged_ids = [*self.acknowledged_ids, *added]

    def _replace_where(
        self,
        predicate: Callable[[Alarm], bool],
        update: Callable[[Alarm], Alarm],
    ) -> List[Alarm]:
        changed: List[Alarm] = []
        rebuilt: List[Alarm] = []
        for a in self.alarms:
            if predicate(a):
                a = update(a)
                changed.append(a)
            rebuilt.append(a)
        if changed:
            self.alarms = rebuilt
        return changed
