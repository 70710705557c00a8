"""Pose-change schedule.

A long pose can be split into sub-poses, e.g. ``[5, 5, 10]`` minutes.  The
scheduler turns those lengths into absolute elapsed-time thresholds
(5 min, 10 min, 20 min) and hands them out in order as the pose progresses.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

from .countdown import MINUTE_MS


class PoseScheduler:
    """Ordered queue of elapsed-ms thresholds still in the future."""

    def __init__(self, minute_ms: float = MINUTE_MS) -> None:
        self.minute_ms = minute_ms
        self._lengths_m: list[float] = []
        self._pending: deque[float] = deque()

    @property
    def lengths_m(self) -> list[float]:
        return list(self._lengths_m)

    @property
    def change_times_ms(self) -> list[float]:
        return list(self._pending)

    def assign(self, lengths_m: Iterable[float], elapsed_ms: float = 0) -> None:
        """Replace the pose list; thresholds already passed are dropped."""
        self._lengths_m = [max(0, m) for m in lengths_m]
        self.rebuild(elapsed_ms)

    def rebuild(self, elapsed_ms: float = 0) -> None:
        self._pending.clear()
        at = 0.0
        for length in self._lengths_m:
            at += length * self.minute_ms
            if at > elapsed_ms:
                self._pending.append(at)

    def pop_due(self, elapsed_ms: float) -> int:
        """Remove every threshold reached by *elapsed_ms*; return how many."""
        count = 0
        while self._pending and self._pending[0] <= elapsed_ms:
            self._pending.popleft()
            count += 1
        return count

    def __len__(self) -> int:
        return len(self._pending)
