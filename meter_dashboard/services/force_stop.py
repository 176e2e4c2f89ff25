from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from meter_dashboard.core.state_store import StateStore
from meter_dashboard.notification.repeat_scheduler import NotificationScheduler
from meter_dashboard.notification.voice_notifier import VoiceNotifier

logger = logging.getLogger(__name__)


@dataclass
class ForceStopController:
    """
    Global suppression switch (ARMED <-> SUPPRESSED).

    Engage (ARMED -> SUPPRESSED)
    ----------------------------
    - cancel the announcement in progress and the repeat timer
    - acknowledge every active alarm and record their ids
    While suppressed, evaluation and notification are no-ops (both check the
    store's force-stop flag).

    Disengage (SUPPRESSED -> ARMED)
    -------------------------------
    - forget every acknowledgment (ids and per-alarm flags)
    - rebuild the repeat schedule
    - request one out-of-cycle poll

    Parameters
    ----------
    store
        State store holding the flag and the ledger.
    scheduler
        Repeat scheduler.
    voice
        Voice notifier.
    repoll
        Called once after disengaging to re-evaluate current conditions.
    """

    store: StateStore
    scheduler: NotificationScheduler
    voice: VoiceNotifier
    repoll: Callable[[], None]

    @property
    def engaged(self) -> bool:
        return self.store.force_stop

    def engage(self) -> bool:
        """
        Suppress all notification and evaluation.

        Returns
        -------
        bool
            False if force-stop was already engaged (nothing changed).
        """
        if self.store.force_stop:
            return False

        self.store.set_force_stop(True)
        self.scheduler.cancel()
        self.voice.cancel()
        silenced = self.store.acknowledge_all_active()
        logger.info("Force stop engaged: %d active alarm(s) acknowledged", len(silenced))
        return True

    def disengage(self) -> bool:
        """
        Re-arm evaluation and notification.

        Returns
        -------
        bool
            False if force-stop was not engaged (nothing changed).
        """
        if not self.store.force_stop:
            return False

        self.store.set_force_stop(False)
        self.store.unacknowledge_all()
        logger.info("Force stop released: acknowledgments cleared, re-polling")
        self.scheduler.reconcile()
        self.repoll()
        return True
