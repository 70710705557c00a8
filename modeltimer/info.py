"""Timer snapshot shared with views and peers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


def _number(value: Any) -> float:
    """Coerce a wire value to a number; anything unusable becomes 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value if value == value else 0  # NaN
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class TimerInfo:
    """Point-in-time view of a :class:`~modeltimer.ModelTimer`."""

    running: bool
    duration_ms: float
    remaining_ms: float
    alarm_sounding: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Wire form, keyed the way peers exchange it."""
        return {
            "running": self.running,
            "durationMs": self.duration_ms,
            "remainingMs": self.remaining_ms,
            "alarmSounding": self.alarm_sounding,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TimerInfo:
        return cls(
            running=bool(data.get("running", False)),
            duration_ms=_number(data.get("durationMs", 0)),
            remaining_ms=_number(data.get("remainingMs", 0)),
            alarm_sounding=bool(data.get("alarmSounding", False)),
        )
