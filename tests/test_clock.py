"""Tests for the clock sources: simulated time and the Qt event loop."""

import pytest

from PyQt6.QtCore import QCoreApplication, QEvent, QObject, QTimer
from PyQt6.QtTest import QTest

from modeltimer.clock import QtClock, VirtualClock


# ═══════════════════════════════════════════════════════════════════════════
#  VIRTUAL CLOCK
# ═══════════════════════════════════════════════════════════════════════════


class TestVirtualClock:

    def test_time_only_moves_on_advance(self, clock):
        assert clock.now_ms() == 0
        clock.advance(250)
        assert clock.now_ms() == 250
        clock.advance_to(1000)
        assert clock.now_ms() == 1000

    def test_once_fires_at_due_time(self, clock):
        fired = []
        clock.schedule_once(100, lambda: fired.append(clock.now_ms()))

        clock.advance(99)
        assert fired == []

        clock.advance(1)
        assert fired == [100]

        clock.advance(1000)
        assert fired == [100]  # one-shot

    def test_callbacks_fire_in_due_order(self, clock):
        order = []
        clock.schedule_once(30, lambda: order.append("c"))
        clock.schedule_once(10, lambda: order.append("a"))
        clock.schedule_once(20, lambda: order.append("b"))
        clock.advance(100)
        assert order == ["a", "b", "c"]

    def test_equal_due_times_keep_schedule_order(self, clock):
        order = []
        clock.schedule_once(10, lambda: order.append(1))
        clock.schedule_once(10, lambda: order.append(2))
        clock.advance(10)
        assert order == [1, 2]

    def test_callback_scheduled_while_advancing_fires_in_window(self, clock):
        fired = []

        def first():
            fired.append(clock.now_ms())
            clock.schedule_once(50, lambda: fired.append(clock.now_ms()))

        clock.schedule_once(10, first)
        clock.advance(100)
        assert fired == [10, 60]

    def test_periodic_repeats_until_cancelled(self, clock):
        fired = []
        handle = clock.schedule_periodic(100, lambda: fired.append(clock.now_ms()))

        clock.advance(350)
        assert fired == [100, 200, 300]

        clock.cancel(handle)
        clock.advance(1000)
        assert fired == [100, 200, 300]

    def test_periodic_can_cancel_itself(self, clock):
        fired = []
        handle = None

        def cb():
            fired.append(clock.now_ms())
            if len(fired) == 2:
                handle.cancel()

        handle = clock.schedule_periodic(10, cb)
        clock.advance(100)
        assert fired == [10, 20]

    def test_cancel_prevents_firing(self, clock):
        fired = []
        handle = clock.schedule_once(10, lambda: fired.append(True))
        assert handle.active
        clock.cancel(handle)
        assert not handle.active
        clock.advance(100)
        assert fired == []

    def test_cancel_is_idempotent(self, clock):
        handle = clock.schedule_once(10, lambda: None)
        clock.cancel(handle)
        clock.cancel(handle)
        handle.cancel()
        assert not handle.active

    def test_cancel_after_fire_is_noop(self, clock):
        fired = []
        handle = clock.schedule_once(10, lambda: fired.append(True))
        clock.advance(10)
        assert not handle.active
        clock.cancel(handle)
        assert fired == [True]

    def test_cancel_none_is_noop(self, clock):
        clock.cancel(None)

    def test_pending_counts_live_callbacks(self, clock):
        a = clock.schedule_once(10, lambda: None)
        clock.schedule_once(20, lambda: None)
        assert clock.pending == 2
        a.cancel()
        assert clock.pending == 1
        clock.advance(20)
        assert clock.pending == 0

    def test_negative_delay_fires_on_next_advance(self, clock):
        fired = []
        clock.schedule_once(-5, lambda: fired.append(clock.now_ms()))
        clock.advance(0)
        assert fired == [0]

    def test_start_offset(self):
        clock = VirtualClock(start_ms=5000)
        assert clock.now_ms() == 5000


# ═══════════════════════════════════════════════════════════════════════════
#  QT CLOCK
# ═══════════════════════════════════════════════════════════════════════════


@pytest.mark.usefixtures("qapp")
class TestQtClock:

    def test_now_is_monotonic(self):
        clock = QtClock()
        a = clock.now_ms()
        QTest.qWait(20)
        b = clock.now_ms()
        assert b >= a + 15

    def test_once_fires_on_event_loop(self):
        clock = QtClock()
        fired = []
        handle = clock.schedule_once(10, lambda: fired.append(True))

        QTest.qWait(200)
        assert fired == [True]
        assert not handle.active
        assert clock.pending == 0

    def test_cancelled_once_does_not_fire(self):
        clock = QtClock()
        fired = []
        handle = clock.schedule_once(50, lambda: fired.append(True))
        clock.cancel(handle)

        QTest.qWait(150)
        assert fired == []
        assert clock.pending == 0

    def test_periodic_fires_repeatedly(self):
        clock = QtClock()
        fired = []
        handle = clock.schedule_periodic(20, lambda: fired.append(True))

        QTest.qWait(300)
        handle.cancel()
        count = len(fired)
        assert count >= 3

        QTest.qWait(100)
        assert len(fired) == count

    def test_spent_and_cancelled_timers_are_deleted(self):
        owner = QObject()
        clock = QtClock(owner)
        fired = []
        for _ in range(50):
            clock.schedule_once(0, lambda: fired.append(True))
        cancelled = [clock.schedule_once(5000, lambda: None) for _ in range(10)]
        for handle in cancelled:
            handle.cancel()
            handle.cancel()

        QTest.qWait(50)
        QCoreApplication.sendPostedEvents(None, QEvent.Type.DeferredDelete.value)

        assert len(fired) == 50
        assert clock.pending == 0
        assert owner.findChildren(QTimer) == []

    def test_cancel_after_fire_is_harmless(self):
        clock = QtClock()
        handle = clock.schedule_once(0, lambda: None)
        QTest.qWait(20)
        QCoreApplication.sendPostedEvents(None, QEvent.Type.DeferredDelete.value)
        handle.cancel()
        assert not handle.active
