"""
Stress tests for meter_dashboard.runtime.timers.ThreadRepeatingTimer.

Validates:
- the callback fires repeatedly at roughly the configured period
- cancel() stops the thread promptly
- a raising callback does not kill the timer
"""

from __future__ import annotations

import threading
import time
from typing import List

import pytest

from meter_dashboard.runtime.timers import ThreadRepeatingTimer


@pytest.mark.stress
def test_timer_fires_repeatedly_and_cancels() -> None:
    """The timer ticks until cancelled, then its thread exits."""
    ticks: List[float] = []
    t = ThreadRepeatingTimer(0.01, lambda: ticks.append(time.time()), name="t-test")

    t.start()
    deadline = time.time() + 2.0
    while len(ticks) < 5 and time.time() < deadline:
        time.sleep(0.01)

    t.cancel()
    t.join(timeout=1.0)

    assert len(ticks) >= 5
    assert not t.is_active
    count = len(ticks)
    time.sleep(0.05)
    assert len(ticks) == count


@pytest.mark.stress
def test_raising_callback_keeps_timer_running() -> None:
    """Callback errors are logged and the timer keeps ticking."""
    calls = threading.Semaphore(0)

    def bad() -> None:
        calls.release()
        raise RuntimeError("tick failed")

    t = ThreadRepeatingTimer(0.01, bad, name="t-bad")
    t.start()
    try:
        for _ in range(3):
            assert calls.acquire(timeout=2.0)
    finally:
        t.cancel()
        t.join(timeout=1.0)


@pytest.mark.stress
def test_cancel_before_start_never_fires() -> None:
    """A timer cancelled before start does not run."""
    ticks: List[int] = []
    t = ThreadRepeatingTimer(0.01, lambda: ticks.append(1))
    t.cancel()
    t.start()
    time.sleep(0.05)

    assert ticks == []
    assert not t.is_active
