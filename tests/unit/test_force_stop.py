"""
Unit tests for the force-stop switch (MonitoringController engage/release).

Validates:
- engaging cancels speech and the repeat timer and acknowledges every
  active alarm
- while engaged, readings neither raise nor clear alarms and nothing is spoken
- releasing forgets every acknowledgment, rebuilds the schedule, and asks for
  one re-poll
- engage/release are idempotent
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List

from meter_dashboard.core.state_store import StateStore
from meter_dashboard.domain.models import MeterReading
from meter_dashboard.notification.repeat_scheduler import NotificationScheduler
from meter_dashboard.notification.voice_notifier import VoiceNotifier
from meter_dashboard.services.controller import MonitoringController

T0 = datetime(2026, 1, 1, 10, 0, 0)


@dataclass
class FakeAnnouncer:
    spoken: List[str] = field(default_factory=list)

    def beep(self) -> None:
        return None

    def speak(self, text: str, on_done: Callable[[], None], on_error: Callable[[str], None]) -> None:
        self.spoken.append(text)

    def cancel(self) -> None:
        return None


@dataclass
class FakeTimer:
    interval_s: float
    callback: Callable[[], None]
    name: str
    cancelled: bool = False

    def start(self) -> None:
        return None

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def is_active(self) -> bool:
        return not self.cancelled


def _reading(value: str) -> MeterReading:
    return MeterReading(
        meter_name="Main Incomer",
        status="Online",
        date_time="",
        location="",
        hierarchy="",
        demand_raw=value,
        unit="kVA",
        received_at=T0,
    )


def _make():
    store = StateStore()
    announcer = FakeAnnouncer()
    voice = VoiceNotifier(announcer, store)
    scheduler = NotificationScheduler(store, voice, timer_factory=FakeTimer)
    repolls: List[int] = []
    controller = MonitoringController(
        store=store,
        voice=voice,
        scheduler=scheduler,
        poll_trigger=lambda: repolls.append(1),
    )
    return controller, store, voice, scheduler, announcer, repolls


def test_engage_silences_and_acknowledges_active() -> None:
    """Engaging acknowledges every active alarm and stops all sound."""
    controller, store, voice, scheduler, _, _ = _make()
    controller.handle_reading(_reading("600"))
    controller.handle_reading(_reading("50"))
    assert voice.speaking and scheduler.is_running

    assert controller.engage_force_stop() is True

    assert store.force_stop is True
    assert not voice.speaking
    assert not scheduler.is_running
    assert store.active_unacknowledged() == []
    # the 50 kVA reading auto-reset the HIGH alarm; only the LOW one was active
    assert store.acknowledged_ids == [a.id for a in store.alarms if a.active]
    assert len(store.acknowledged_ids) == 1


def test_engaged_blocks_evaluation_and_speech() -> None:
    """While engaged, readings change nothing and nothing is spoken."""
    controller, store, _, scheduler, announcer, _ = _make()
    controller.handle_reading(_reading("600"))
    controller.engage_force_stop()
    spoken_before = list(announcer.spoken)

    assert controller.handle_reading(_reading("900")) == []
    assert controller.handle_reading(_reading("300")) == []

    assert len(store.alarms) == 1
    assert store.alarms[0].active
    assert announcer.spoken == spoken_before
    assert not scheduler.is_running
    assert store.get_latest_reading().demand == 300.0


def test_release_unacknowledges_and_repolls() -> None:
    """
    Releasing forgets all acknowledgments (including ones made before
    engaging), restarts the repeat timer, and requests one poll.
    """
    controller, store, _, scheduler, _, repolls = _make()
    controller.handle_reading(_reading("600"))
    controller.handle_reading(_reading("610"))
    controller.acknowledge(store.alarms[0].id)
    controller.engage_force_stop()

    assert controller.release_force_stop() is True

    assert store.force_stop is False
    assert store.acknowledged_ids == []
    assert len(store.active_unacknowledged()) == 2
    assert scheduler.is_running
    assert repolls == [1]


def test_engage_and_release_are_idempotent() -> None:
    """Repeated engage/release calls are no-ops."""
    controller, _, _, _, _, repolls = _make()

    assert controller.release_force_stop() is False
    assert controller.engage_force_stop() is True
    assert controller.engage_force_stop() is False
    assert controller.force_stop_engaged
    assert controller.release_force_stop() is True
    assert controller.release_force_stop() is False
    assert repolls == [1]


def test_acknowledge_while_engaged_is_noop_for_already_silenced() -> None:
    """Alarms silenced by force-stop are already acknowledged."""
    controller, store, _, _, _, _ = _make()
    controller.handle_reading(_reading("600"))
    controller.engage_force_stop()

    assert controller.acknowledge(store.alarms[0].id) is False
