"""Clock sources for the timer state machines.

A clock reads monotonic time in milliseconds and runs deferred callbacks.
Everything that needs wall-clock time or a delay goes through one of these,
so the same timer code runs against the Qt event loop in the app and against
simulated time in tests.

Implementations
---------------
QtClock        ``time.monotonic`` + single-shot ``QTimer`` objects.  Needs a
               running ``QCoreApplication`` event loop to deliver callbacks.
VirtualClock   Simulated time.  Nothing happens until ``advance()`` is called;
               callbacks then fire in due order with ``now_ms()`` set to the
               exact instant each one was due.
"""

from __future__ import annotations

import heapq
import itertools
import time
from abc import ABC, abstractmethod
from collections.abc import Callable

from PyQt6.QtCore import QObject, Qt, QTimer


# ── handles ──────────────────────────────────────────────────────────────


class TimerHandle:
    """Cancellation token for one scheduled callback.

    ``cancel()`` is idempotent and safe after the callback has fired.
    """

    def __init__(self, callback: Callable[[], None], interval_ms: float | None) -> None:
        self.callback = callback
        self.interval_ms = interval_ms  # None for one-shot
        self._active = True

    @property
    def active(self) -> bool:
        """True until the one-shot fires or the handle is cancelled."""
        return self._active

    @property
    def periodic(self) -> bool:
        return self.interval_ms is not None

    def cancel(self) -> None:
        self._active = False

    def _fire(self) -> None:
        if not self._active:
            return
        if not self.periodic:
            self._active = False
        self.callback()


# ── interface ─────────────────────────────────────────────────────────────


class Clock(ABC):
    """Monotonic time reader plus deferred-callback scheduler."""

    @abstractmethod
    def now_ms(self) -> float:
        """Monotonic time in milliseconds."""

    @abstractmethod
    def schedule_once(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        """Run *callback* once after *delay_ms*."""

    @abstractmethod
    def schedule_periodic(
        self, interval_ms: float, callback: Callable[[], None]
    ) -> TimerHandle:
        """Run *callback* every *interval_ms* until cancelled."""

    def cancel(self, handle: TimerHandle | None) -> None:
        """Revoke a scheduled callback.  ``None`` and spent handles are ignored."""
        if handle is not None:
            handle.cancel()


# ── Qt event loop ─────────────────────────────────────────────────────────


class _QtTimerHandle(TimerHandle):
    def __init__(
        self,
        callback: Callable[[], None],
        interval_ms: float | None,
        qt_timer: QTimer,
        pending: set,
    ) -> None:
        super().__init__(callback, interval_ms)
        self.qt_timer: QTimer | None = qt_timer
        self._pending = pending

    def cancel(self) -> None:
        super().cancel()
        self._release()

    def _release(self) -> None:
        """Stop the QTimer and hand it back to Qt for deletion.  Runs once."""
        if self.qt_timer is None:
            return
        self.qt_timer.stop()
        self.qt_timer.deleteLater()
        self.qt_timer = None
        self._pending.discard(self)


class QtClock(Clock):
    """Clock backed by ``QTimer``.  Callbacks run on the Qt event loop."""

    def __init__(self, parent: QObject | None = None) -> None:
        # Every QTimer is a child of this owner so Qt, not Python, deletes it.
        self._owner = QObject(parent)
        self._pending: set[_QtTimerHandle] = set()

    def now_ms(self) -> float:
        return time.monotonic() * 1000.0

    def schedule_once(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        return self._schedule(delay_ms, callback, periodic=False)

    def schedule_periodic(
        self, interval_ms: float, callback: Callable[[], None]
    ) -> TimerHandle:
        return self._schedule(interval_ms, callback, periodic=True)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def _schedule(
        self, delay_ms: float, callback: Callable[[], None], *, periodic: bool
    ) -> TimerHandle:
        qt_timer = QTimer(self._owner)
        qt_timer.setTimerType(Qt.TimerType.PreciseTimer)
        qt_timer.setSingleShot(not periodic)
        qt_timer.setInterval(max(0, int(round(delay_ms))))

        handle = _QtTimerHandle(
            callback, delay_ms if periodic else None, qt_timer, self._pending,
        )

        def _on_timeout() -> None:
            if not periodic:
                handle._release()
            handle._fire()

        qt_timer.timeout.connect(_on_timeout)
        # Holds the handle until it is spent or cancelled.
        self._pending.add(handle)
        qt_timer.start()
        return handle


# ── simulated time ────────────────────────────────────────────────────────


class VirtualClock(Clock):
    """Simulated clock.  Time only moves inside :meth:`advance`."""

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = float(start_ms)
        self._queue: list[tuple[float, int, TimerHandle]] = []
        self._seq = itertools.count()

    def now_ms(self) -> float:
        return self._now

    def schedule_once(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(callback, None)
        self._push(self._now + max(0.0, delay_ms), handle)
        return handle

    def schedule_periodic(
        self, interval_ms: float, callback: Callable[[], None]
    ) -> TimerHandle:
        # A zero interval would spin forever inside advance().
        handle = TimerHandle(callback, max(1.0, interval_ms))
        self._push(self._now + handle.interval_ms, handle)
        return handle

    @property
    def pending(self) -> int:
        """Number of live callbacks still queued."""
        return sum(1 for _, _, h in self._queue if h.active)

    def advance(self, ms: float) -> None:
        """Move time forward by *ms*, firing everything that falls due.

        Callbacks scheduled while advancing fire in the same call when their
        due time is within the window.
        """
        target = self._now + max(0.0, ms)
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            if not handle.active:
                continue
            self._now = due
            handle._fire()
            if handle.periodic and handle.active:
                self._push(due + handle.interval_ms, handle)
        self._now = target

    def advance_to(self, when_ms: float) -> None:
        self.advance(when_ms - self._now)

    def _push(self, due: float, handle: TimerHandle) -> None:
        heapq.heappush(self._queue, (due, next(self._seq), handle))
