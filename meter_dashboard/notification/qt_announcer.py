from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Tuple

from PySide6.QtCore import QObject, Signal, Slot
from PySide6.QtWidgets import QApplication

logger = logging.getLogger(__name__)

_Callbacks = Tuple[Callable[[], None], Callable[[str], None]]


class QtAnnouncer(QObject):
    """
    Announcer backed by Qt: ``QApplication.beep()`` and ``QTextToSpeech``.

    Notes
    -----
    - Must be created on the GUI thread. Calls may come from any thread; they
      are forwarded through queued signals and executed on the GUI thread.
    - The speech engine is created lazily on first use. If the QtTextToSpeech
      module or a speech backend is unavailable, speech degrades to a no-op
      and only the beep is heard.
    """

    _beep_requested = Signal()
    _speak_requested = Signal(int, str)
    _cancel_requested = Signal()

    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._tts = None
        self._tts_failed = False
        self._next_token = 0
        self._pending: Dict[int, _Callbacks] = {}
        self._current: Optional[int] = None
        self._stopping = False

        self._beep_requested.connect(self._on_beep)
        self._speak_requested.connect(self._on_speak)
        self._cancel_requested.connect(self._on_cancel)

    # --- Announcer API (any thread) ---
    def beep(self) -> None:
        self._beep_requested.emit()

    def speak(self, text: str, on_done: Callable[[], None], on_error: Callable[[str], None]) -> None:
        self._next_token += 1
        token = self._next_token
        self._pending[token] = (on_done, on_error)
        self._speak_requested.emit(token, text)

    def cancel(self) -> None:
        self._cancel_requested.emit()

    # --- GUI thread ---
    def _engine(self):
        if self._tts is not None or self._tts_failed:
            return self._tts
        try:
            from PySide6.QtTextToSpeech import QTextToSpeech

            self._tts = QTextToSpeech(self)
            self._tts.stateChanged.connect(self._on_state_changed)
            logger.info("Speech engine initialised (%s)", self._tts.engine())
        except Exception as e:
            self._tts_failed = True
            logger.warning("Speech engine unavailable, beeps only: %r", e)
        return self._tts

    @Slot()
    def _on_beep(self) -> None:
        QApplication.beep()

    @Slot(int, str)
    def _on_speak(self, token: int, text: str) -> None:
        tts = self._engine()
        if tts is None:
            self._finish(token, None)
            return
        self._current = token
        tts.say(text)

    @Slot()
    def _on_cancel(self) -> None:
        from PySide6.QtTextToSpeech import QTextToSpeech

        token = self._current
        self._current = None
        if self._tts is not None:
            # the engine reports Ready once the interrupted utterance stops
            self._stopping = self._tts.state() == QTextToSpeech.State.Speaking
            self._tts.stop()
        if token is not None:
            self._finish(token, None)

    def _on_state_changed(self, state) -> None:
        from PySide6.QtTextToSpeech import QTextToSpeech

        if state == QTextToSpeech.State.Speaking:
            self._stopping = False
            return
        if state == QTextToSpeech.State.Ready and self._stopping:
            self._stopping = False
            return
        if self._current is None:
            return
        if state == QTextToSpeech.State.Ready:
            token, self._current = self._current, None
            self._finish(token, None)
        elif state == QTextToSpeech.State.Error:
            token, self._current = self._current, None
            self._finish(token, self._tts.errorString() if self._tts is not None else "speech error")

    def _finish(self, token: int, error: Optional[str]) -> None:
        callbacks = self._pending.pop(token, None)
        if callbacks is None:
            return
        on_done, on_error = callbacks
        if error is None:
            on_done()
        else:
            on_error(error)
