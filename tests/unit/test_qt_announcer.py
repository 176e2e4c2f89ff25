"""
Unit tests for meter_dashboard.notification.qt_announcer.QtAnnouncer.

The speech engine is replaced by a fake that records calls and lets the test
emit state changes by hand, so no audio backend or display is needed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

import pytest

QtTextToSpeech = pytest.importorskip("PySide6.QtTextToSpeech")
State = QtTextToSpeech.QTextToSpeech.State

from meter_dashboard.notification.qt_announcer import QtAnnouncer  # noqa: E402


@dataclass
class FakeEngine:
    current_state: object = State.Ready
    said: List[str] = field(default_factory=list)
    stops: int = 0

    def state(self):
        return self.current_state

    def say(self, text: str) -> None:
        self.said.append(text)
        self.current_state = State.Speaking

    def stop(self) -> None:
        self.stops += 1

    def errorString(self) -> str:
        return "backend failed"


@dataclass
class Outcomes:
    done: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def callbacks(self, label: str):
        return (lambda: self.done.append(label), lambda e: self.errors.append(f"{label}: {e}"))


def _announcer() -> tuple[QtAnnouncer, FakeEngine]:
    announcer = QtAnnouncer()
    engine = FakeEngine()
    announcer._tts = engine
    return announcer, engine


def _say(announcer: QtAnnouncer, token: int, text: str, outcomes: Outcomes) -> None:
    announcer._pending[token] = outcomes.callbacks(text)
    announcer._on_speak(token, text)


def test_ready_completes_current_utterance() -> None:
    announcer, engine = _announcer()
    out = Outcomes()
    _say(announcer, 1, "first", out)

    announcer._on_state_changed(State.Speaking)
    announcer._on_state_changed(State.Ready)

    assert out.done == ["first"]
    assert announcer._pending == {}


def test_ready_from_interrupted_utterance_does_not_end_the_next_one() -> None:
    """
    Cancelling while speaking yields a late Ready from the engine; it belongs
    to the stopped utterance, not the one started after it.
    """
    announcer, engine = _announcer()
    out = Outcomes()
    _say(announcer, 1, "first", out)
    announcer._on_state_changed(State.Speaking)

    announcer._on_cancel()
    assert out.done == ["first"]
    assert engine.stops == 1

    _say(announcer, 2, "second", out)
    announcer._on_state_changed(State.Ready)

    assert out.done == ["first"]
    assert 2 in announcer._pending

    announcer._on_state_changed(State.Speaking)
    announcer._on_state_changed(State.Ready)

    assert out.done == ["first", "second"]


def test_cancel_while_idle_does_not_swallow_next_ready() -> None:
    announcer, engine = _announcer()
    out = Outcomes()

    announcer._on_cancel()
    _say(announcer, 1, "only", out)
    announcer._on_state_changed(State.Ready)

    assert out.done == ["only"]


def test_engine_error_reports_to_current_utterance() -> None:
    announcer, engine = _announcer()
    out = Outcomes()
    _say(announcer, 1, "first", out)

    announcer._on_state_changed(State.Error)

    assert out.errors == ["first: backend failed"]
    assert out.done == []
