"""Pose/break session timer."""

from .clock import Clock, QtClock, TimerHandle, VirtualClock
from .countdown import (
    CountdownTimer,
    format_ms,
    SECOND_MS,
    MINUTE_MS,
    TICK_MS,
)
from .info import TimerInfo
from .model_timer import (
    ModelTimer,
    Segment,
    STD_POSE_MS,
    STD_BREAK_MS,
    ALARM_DURATION_MS,
    AUTO_START_DURATION_MS,
)
from .poses import PoseScheduler

__all__ = [
    "Clock",
    "QtClock",
    "TimerHandle",
    "VirtualClock",
    "CountdownTimer",
    "format_ms",
    "SECOND_MS",
    "MINUTE_MS",
    "TICK_MS",
    "TimerInfo",
    "ModelTimer",
    "Segment",
    "STD_POSE_MS",
    "STD_BREAK_MS",
    "ALARM_DURATION_MS",
    "AUTO_START_DURATION_MS",
    "PoseScheduler",
]
