"""
Voice notifier: at most one announcement at a time.

The notifier is a two-state machine (IDLE / SPEAKING) around an
:class:`~meter_dashboard.notification.base.Announcer`:

- ``notify(message)`` cancels whatever is being spoken, beeps, then speaks.
- ``cancel()`` drives the machine back to IDLE synchronously, without waiting
  for the engine's completion callback.

Completion callbacks carry the utterance sequence number they belong to, so a
late callback from a cancelled utterance cannot flip the state of a newer one.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from meter_dashboard.core.state_store import StateStore
from meter_dashboard.notification.base import Announcer, SpeechState

logger = logging.getLogger(__name__)


class VoiceNotifier:
    """
    Gatekeeper in front of the announcer.

    Notifications are suppressed (not queued) while voice is muted in the
    settings or while force-stop is engaged. Announcer errors are logged and
    never propagated to the caller.

    Parameters
    ----------
    announcer
        Audio backend.
    store
        State store, read for the voice-enabled flag and the force-stop flag.
    """

    def __init__(self, announcer: Announcer, store: StateStore):
        self._announcer = announcer
        self._store = store
        self._lock = threading.RLock()
        self._state = SpeechState.IDLE
        self._seq = 0
        self.delivered = 0

    @property
    def state(self) -> SpeechState:
        with self._lock:
            return self._state

    @property
    def speaking(self) -> bool:
        return self.state is SpeechState.SPEAKING

    def notify(self, message: str) -> bool:
        """
        Announce ``message`` unless notifications are suppressed.

        Parameters
        ----------
        message
            Text to speak.

        Returns
        -------
        bool
            True if the announcement was handed to the announcer.
        """
        if not self._store.get_settings().voice_enabled:
            logger.debug("Voice announcements disabled - not speaking")
            return False
        if self._store.force_stop:
            logger.debug("Force stop engaged - not speaking")
            return False

        with self._lock:
            self._cancel_locked()
            self._seq += 1
            seq = self._seq

            try:
                self._announcer.beep()
            except Exception as e:
                logger.warning("Beep failed: %r", e)

            self._state = SpeechState.SPEAKING
            logger.debug("Speaking: %s...", message[:50])
            try:
                self._announcer.speak(message, self._done_callback(seq), self._error_callback(seq))
            except Exception as e:
                logger.warning("Speech error: %r", e)
                self._state = SpeechState.IDLE
                return False

            self.delivered += 1
            return True

    def cancel(self) -> None:
        """
        Stop the current announcement, if any, and return to IDLE.
        """
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        self._seq += 1
        if self._state is SpeechState.SPEAKING:
            logger.debug("Cancelling announcement in progress")
        self._state = SpeechState.IDLE
        try:
            self._announcer.cancel()
        except Exception as e:
            logger.warning("Cancelling speech failed: %r", e)

    def _done_callback(self, seq: int) -> Callable[[], None]:
        def _done() -> None:
            with self._lock:
                if seq == self._seq:
                    self._state = SpeechState.IDLE
                    logger.debug("Speech ended")

        return _done

    def _error_callback(self, seq: int) -> Callable[[str], None]:
        def _error(reason: str) -> None:
            logger.warning("Speech error: %s", reason)
            with self._lock:
                if seq == self._seq:
                    self._state = SpeechState.IDLE

        return _error
