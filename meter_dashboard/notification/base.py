from __future__ import annotations

from enum import Enum
from typing import Callable, Protocol


class SpeechState(str, Enum):
    """
    State of the voice notifier.

    Members
    -------
    IDLE : str
        Nothing is being announced.
    SPEAKING : str
        An announcement is in progress.
    """

    IDLE = "IDLE"
    SPEAKING = "SPEAKING"


class Announcer(Protocol):
    """
    Protocol interface for the audible output capability.

    Any implementation providing ``beep``, ``speak`` and ``cancel`` can be
    used by the voice notifier. This enables dependency inversion and makes
    notification easy to test with fakes.

    Implementations must be safe to call before the underlying audio engine is
    ready (calls are no-ops until then).

    Methods
    -------
    beep()
        Emit a short audible cue.
    speak(text, on_done, on_error)
        Start speaking ``text``. ``on_done`` is called when the utterance
        finishes, ``on_error`` with a description if the engine fails.
    cancel()
        Stop any utterance in progress.
    """

    def beep(self) -> None:
        ...

    def speak(self, text: str, on_done: Callable[[], None], on_error: Callable[[str], None]) -> None:
        ...

    def cancel(self) -> None:
        ...


class SilentAnnouncer:
    """
    Announcer that produces no sound; used when no audio backend is available.
    """

    def beep(self) -> None:
        return None

    def speak(self, text: str, on_done: Callable[[], None], on_error: Callable[[str], None]) -> None:
        on_done()

    def cancel(self) -> None:
        return None
