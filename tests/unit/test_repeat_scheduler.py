"""
Unit tests for meter_dashboard.notification.repeat_scheduler.NotificationScheduler.

Validates:
- a timer runs iff there are active unacknowledged alarms, voice is enabled,
  and force-stop is released
- reconcile is idempotent: unchanged state keeps the running timer
- changes to the pending set or the repeat interval rebuild the timer
- ticks announce the alarms captured when the timer was started
- ticks of a cancelled timer announce nothing

Timers are fakes fired by hand; no threads are started.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List

from meter_dashboard.core.state_store import StateStore
from meter_dashboard.domain.models import Alarm, AlarmType
from meter_dashboard.notification.repeat_scheduler import NotificationScheduler

T0 = datetime(2026, 1, 1, 10, 0, 0)


@dataclass
class FakeTimer:
    """Timer that only fires when the test calls fire()."""

    interval_s: float
    callback: Callable[[], None]
    name: str
    started: bool = False
    cancelled: bool = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def is_active(self) -> bool:
        return self.started and not self.cancelled

    def fire(self) -> None:
        self.callback()


@dataclass
class FakeTimerFactory:
    """Records every timer created."""

    timers: List[FakeTimer] = field(default_factory=list)

    def __call__(self, interval_s: float, callback: Callable[[], None], name: str) -> FakeTimer:
        t = FakeTimer(interval_s=interval_s, callback=callback, name=name)
        self.timers.append(t)
        return t


@dataclass
class FakeVoice:
    """Voice notifier stand-in recording messages."""

    messages: List[str] = field(default_factory=list)

    def notify(self, message: str) -> bool:
        self.messages.append(message)
        return True


def _alarm(alarm_id: str) -> Alarm:
    return Alarm(
        id=alarm_id,
        type=AlarmType.HIGH_DEMAND,
        message=f"alarm {alarm_id}",
        meter_name="M",
        value=600.0,
        unit="kVA",
        limit=500.0,
        timestamp=T0,
    )


def _make():
    store = StateStore()
    voice = FakeVoice()
    factory = FakeTimerFactory()
    sched = NotificationScheduler(store, voice, timer_factory=factory)  # type: ignore[arg-type]
    return sched, store, voice, factory


def test_no_pending_alarms_no_timer() -> None:
    """Nothing to repeat: reconcile starts nothing."""
    sched, _, _, factory = _make()
    sched.reconcile()

    assert not sched.is_running
    assert factory.timers == []


def test_pending_alarm_starts_timer_with_repeat_interval() -> None:
    """An unacknowledged alarm starts one timer at the configured interval."""
    sched, store, _, factory = _make()
    store.update_settings({"alarm_repeat_interval": 30})
    store.append_alarms([_alarm("a")])

    sched.reconcile()

    assert sched.is_running
    assert len(factory.timers) == 1
    assert factory.timers[0].interval_s == 30.0
    assert factory.timers[0].started


def test_reconcile_is_idempotent() -> None:
    """Repeated reconciles without a change keep the same timer."""
    sched, store, _, factory = _make()
    store.append_alarms([_alarm("a")])

    sched.reconcile()
    sched.reconcile()
    sched.reconcile()

    assert len(factory.timers) == 1
    assert not factory.timers[0].cancelled


def test_pending_set_change_rebuilds_timer() -> None:
    """A new pending alarm replaces the timer and its capture."""
    sched, store, _, factory = _make()
    store.append_alarms([_alarm("a")])
    sched.reconcile()

    store.append_alarms([_alarm("b")])
    sched.reconcile()

    assert len(factory.timers) == 2
    assert factory.timers[0].cancelled
    assert [a.id for a in sched.captured] == ["a", "b"]


def test_interval_change_rebuilds_timer() -> None:
    """Changing the repeat interval restarts the cadence."""
    sched, store, _, factory = _make()
    store.append_alarms([_alarm("a")])
    sched.reconcile()

    store.update_settings({"alarm_repeat_interval": 120})
    sched.reconcile()

    assert [t.interval_s for t in factory.timers] == [60.0, 120.0]


def test_tick_announces_captured_alarms_in_order() -> None:
    """Each tick announces every captured alarm."""
    sched, store, voice, factory = _make()
    store.append_alarms([_alarm("a"), _alarm("b")])
    sched.reconcile()

    factory.timers[-1].fire()
    factory.timers[-1].fire()

    assert voice.messages == ["alarm a", "alarm b", "alarm a", "alarm b"]


def test_acknowledged_alarm_leaves_schedule() -> None:
    """Acknowledging the only pending alarm stops the timer."""
    sched, store, voice, factory = _make()
    store.append_alarms([_alarm("a")])
    sched.reconcile()

    store.acknowledge("a")
    sched.reconcile()

    assert not sched.is_running
    assert factory.timers[0].cancelled

    # a tick already in flight for the old timer announces nothing
    factory.timers[0].fire()
    assert voice.messages == []


def test_voice_disabled_stops_timer() -> None:
    """Muting voice stops the repeat timer."""
    sched, store, _, _ = _make()
    store.append_alarms([_alarm("a")])
    sched.reconcile()

    store.update_settings({"voice_enabled": False})
    sched.reconcile()

    assert not sched.is_running


def test_force_stop_stops_timer() -> None:
    """Force-stop overrides a non-empty pending set."""
    sched, store, _, _ = _make()
    store.append_alarms([_alarm("a")])
    sched.reconcile()

    store.set_force_stop(True)
    sched.reconcile()

    assert not sched.is_running
    assert sched.captured == ()


def test_cancel_blocks_stale_ticks() -> None:
    """After cancel() returns, the old timer's callback does nothing."""
    sched, store, voice, factory = _make()
    store.append_alarms([_alarm("a")])
    sched.reconcile()

    sched.cancel()
    factory.timers[0].fire()

    assert voice.messages == []
    assert not sched.is_running


def test_announce_new_speaks_in_creation_order() -> None:
    """Immediate announcements follow creation order."""
    sched, _, voice, _ = _make()

    sched.announce_new([_alarm("a"), _alarm("b")])

    assert voice.messages == ["alarm a", "alarm b"]
