"""Drift-correct countdown clock.

States
------
STOPPED   anchor is None.  Elapsed time is frozen in the accumulator.
RUNNING   anchor holds the clock instant of the last (re)start.
EXPIRED   remaining time is 0.  Never running.

Elapsed time is always derived from the clock, never counted tick by tick:

    elapsed   = accumulated + (now - anchor)        while running
    remaining = max(0, duration - elapsed)

Ticks are scheduled for the moments the remaining time crosses a whole
multiple of the tick period, so a 1.5 s timer ticks at 0 s, 0.5 s and 1.5 s
and the last tick lands exactly on expiry.  Late deliveries do not drift the
schedule because each delay is recomputed from the clock.

Every method is total.  Negative input clamps to 0 and redundant calls are
no-ops.
"""

from __future__ import annotations

import math
from collections.abc import Callable

from .clock import Clock, TimerHandle


# ── constants ─────────────────────────────────────────────────────────────

SECOND_MS = 1000
MINUTE_MS = 60 * SECOND_MS
HOUR_MS = 60 * MINUTE_MS

TICK_MS = SECOND_MS
_MIN_DELAY_MS = 1.0  # closer than this to a boundary counts as "on" it


def format_ms(ms: float) -> str:
    """``m:ss`` (or ``h:mm:ss``), rounding partial seconds up."""
    total = int(math.ceil(max(0.0, ms) / SECOND_MS))
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


# ── timer ─────────────────────────────────────────────────────────────────


class CountdownTimer:
    """Counts a duration down against a :class:`Clock`.

    ``on_tick`` is called with the timer once per tick while running, and
    synchronously on every state-changing call (start, stop, reset, duration
    change, synchronize) so an observer never misses a transition.
    """

    def __init__(
        self,
        clock: Clock,
        duration_ms: float = 0,
        *,
        tick_ms: float = TICK_MS,
    ) -> None:
        self._clock = clock
        self._tick_ms = tick_ms

        self._duration_ms: float = max(0, duration_ms)
        self._anchor: float | None = None
        self._accumulated: float = 0
        self._tick_handle: TimerHandle | None = None

        self.on_tick: Callable[[CountdownTimer], None] | None = None

    # ══════════════════════════════════════════════════════════════════
    #  PROPERTIES
    # ══════════════════════════════════════════════════════════════════

    @property
    def duration_ms(self) -> float:
        return self._duration_ms

    @duration_ms.setter
    def duration_ms(self, value: float) -> None:
        """Set a new duration.  Stops the timer and clears elapsed time."""
        self._cancel_tick()
        self._anchor = None
        self._accumulated = 0
        self._duration_ms = max(0, value)
        self._notify()

    @property
    def duration_min(self) -> float:
        return self._duration_ms / MINUTE_MS

    @property
    def tick_ms(self) -> float:
        return self._tick_ms

    @property
    def elapsed_ms(self) -> float:
        return min(self._duration_ms, self._raw_elapsed())

    @property
    def remaining_ms(self) -> float:
        return max(0, self._duration_ms - self._raw_elapsed())

    @property
    def running(self) -> bool:
        """True while anchored and time remains.

        Reads False from the instant the countdown reaches 0, even before
        the expiry tick has been delivered.
        """
        return self._anchor is not None and self.remaining_ms > 0

    @property
    def expired(self) -> bool:
        return self.remaining_ms == 0

    @property
    def percent_complete(self) -> float:
        """0.0 → 1.0 progress through the duration."""
        if self._duration_ms <= 0:
            return 0.0
        return max(0.0, min(1.0, self.elapsed_ms / self._duration_ms))

    @property
    def time_remaining_str(self) -> str:
        return format_ms(self.remaining_ms)

    # ══════════════════════════════════════════════════════════════════
    #  CONTROLS
    # ══════════════════════════════════════════════════════════════════

    def start(self) -> None:
        if self.running:
            return

        if self._anchor is not None:
            # Ran out but the expiry tick has not been delivered yet.
            self._finish()
            return

        self._anchor = self._clock.now_ms()
        if self.remaining_ms == 0:
            self._finish()
            return

        self._schedule_tick()
        self._notify()

    def stop(self) -> None:
        """Pause.  Elapsed time is banked; repeated calls do nothing."""
        if self._anchor is None:
            return
        self._accumulated = self.elapsed_ms
        self._anchor = None
        self._cancel_tick()
        self._notify()

    def reset(self) -> None:
        self._cancel_tick()
        self._anchor = None
        self._accumulated = 0
        self._notify()

    def add_one(self) -> None:
        """Step up to the next whole minute and stop."""
        minutes = math.floor(self._duration_ms / MINUTE_MS)
        self.duration_ms = (minutes + 1) * MINUTE_MS

    def subtract_one(self) -> None:
        """Step down to the previous whole minute (never below 0) and stop."""
        minutes = math.ceil(self._duration_ms / MINUTE_MS)
        self.duration_ms = max(0, minutes - 1) * MINUTE_MS

    def synchronize(
        self,
        remote_running: bool,
        remote_duration_ms: float,
        remote_remaining_ms: float,
    ) -> None:
        """Adopt an authoritative snapshot taken at this instant.

        The duration clamps to >= 0 and the remaining time into
        ``[0, duration]``.  The timer runs only when the remote side was
        running and time is left; otherwise it is stopped with the remaining
        time frozen.
        """
        duration = max(remote_duration_ms, 0)
        remaining = min(max(remote_remaining_ms, 0), duration)

        self._cancel_tick()
        self._duration_ms = duration
        self._accumulated = duration - remaining
        self._anchor = None

        if remote_running and duration > 0 and remaining > 0:
            self._anchor = self._clock.now_ms()
            self._schedule_tick()

        self._notify()

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL
    # ══════════════════════════════════════════════════════════════════

    def _raw_elapsed(self) -> float:
        if self._anchor is None:
            return self._accumulated
        return self._accumulated + (self._clock.now_ms() - self._anchor)

    def _schedule_tick(self) -> None:
        remaining = self.remaining_ms
        delay = remaining % self._tick_ms
        if delay < _MIN_DELAY_MS:
            delay += self._tick_ms
        delay = min(delay, remaining)
        self._tick_handle = self._clock.schedule_once(delay, self._on_tick)

    def _on_tick(self) -> None:
        self._tick_handle = None
        if self._anchor is None:
            return
        if self.remaining_ms == 0:
            self._finish()
            return
        self._schedule_tick()
        self._notify()

    def _finish(self) -> None:
        """Freeze at expiry and report it."""
        self._cancel_tick()
        self._anchor = None
        self._accumulated = self._duration_ms
        self._notify()

    def _cancel_tick(self) -> None:
        self._clock.cancel(self._tick_handle)
        self._tick_handle = None

    def _notify(self) -> None:
        if self.on_tick is not None:
            self.on_tick(self)

    def __repr__(self) -> str:
        state = "running" if self.running else "expired" if self.expired else "stopped"
        return (
            f"<CountdownTimer {state} remaining={self.remaining_ms:g}ms "
            f"duration={self._duration_ms:g}ms>"
        )
