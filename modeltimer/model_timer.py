"""Session timer for life-drawing poses.

Four orthogonal axes
--------------------
main running       the pose/break countdown is counting down
alarm sounding     the "time's up" window after the countdown expires
auto-start running the watchdog that restarts an unattended session
sound alerts       10-minute / 1-minute announcements, fixed per run

Transitions
-----------
idle → running                    start()
running → paused                  pause() / stop()
running → alarm                   countdown reaches 0 (or start() at 0)
alarm → idle, next segment        alarm window times out
alarm → idle, same segment        stop_alarm()
alarm → idle, auto-start running  both of the above; the watchdog keeps going
auto-start expires                reset() then start()
any → idle                        reset()

Segments alternate POSE → BREAK → POSE via ``next()`` or an alarm timeout.
Pose-change events are only raised during a POSE segment.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum

from PyQt6.QtCore import QObject, pyqtSignal

from .clock import Clock, QtClock, TimerHandle
from .countdown import MINUTE_MS, SECOND_MS, CountdownTimer, format_ms
from .info import TimerInfo
from .poses import PoseScheduler

logger = logging.getLogger(__name__)


# ── enums ─────────────────────────────────────────────────────────────────


class Segment(Enum):
    POSE = "pose"
    BREAK = "break"


# ── constants ─────────────────────────────────────────────────────────────

STD_POSE_MS = 20 * MINUTE_MS
STD_BREAK_MS = 7 * MINUTE_MS
ALARM_DURATION_MS = 10 * SECOND_MS
AUTO_START_DURATION_MS = 30 * SECOND_MS
ALERT_10_MINUTES_REMAINING_MS = 10 * MINUTE_MS
ALERT_1_MINUTE_REMAINING_MS = 1 * MINUTE_MS

# Time-remaining alerts are the default only for runs longer than this.
SOUND_ALERTS_MIN_DURATION_MS = 10 * MINUTE_MS


# ── timer ─────────────────────────────────────────────────────────────────


class ModelTimer(QObject):
    """Pose/break session timer with alarm, alerts and auto-restart.

    Signals
    -------
    tick(info: TimerInfo)
        Every main-countdown tick and every state change.
    alarm(sounding: bool)
        Alarm window opened (True) or closed (False).
    alarm_timeout()
        The alarm window closed on its own; follows ``alarm(False)``.
    timer_started()
        ``start()`` began a run, including unattended restarts.
    alert_10_minutes_remaining(), alert_1_minute_remaining()
        First tick of a run at or below each threshold, with alerts enabled.
    change_pose()
        One per pose-change threshold reached during a POSE segment.
    auto_start_tick(remaining_ms: float)
        The auto-start watchdog changed or ticked.
    local_change(info: TimerInfo)
        A command issued on this side changed shared state.  Connect a
        transport here to forward snapshots to peers; incoming
        ``synchronize`` calls and alarm timeouts do not emit it.
    """

    tick = pyqtSignal(object)
    alarm = pyqtSignal(bool)
    alarm_timeout = pyqtSignal()
    timer_started = pyqtSignal()
    alert_10_minutes_remaining = pyqtSignal()
    alert_1_minute_remaining = pyqtSignal()
    change_pose = pyqtSignal()
    auto_start_tick = pyqtSignal(float)
    local_change = pyqtSignal(object)

    def __init__(
        self,
        clock: Clock | None = None,
        parent: QObject | None = None,
        *,
        pose_ms: float = STD_POSE_MS,
        break_ms: float = STD_BREAK_MS,
        minute_ms: float = MINUTE_MS,
    ) -> None:
        super().__init__(parent)
        self._clock = clock if clock is not None else QtClock(self)

        # ── configuration ─────────────────────────────────────────────
        self.pose_ms: float = pose_ms
        self.break_ms: float = break_ms
        self.alarm_duration_ms: float = ALARM_DURATION_MS
        self.alert_10_minutes_remaining_ms: float = ALERT_10_MINUTES_REMAINING_MS
        self.alert_1_minute_remaining_ms: float = ALERT_1_MINUTE_REMAINING_MS
        self.auto_start_enabled: bool = True

        # ── countdowns ────────────────────────────────────────────────
        self._main = CountdownTimer(self._clock, pose_ms)
        self._main.on_tick = self._on_main_tick
        self._auto_start = CountdownTimer(self._clock, AUTO_START_DURATION_MS)
        self._auto_start.on_tick = self._on_auto_start_tick
        self._auto_start_armed: bool = False

        # ── session state ─────────────────────────────────────────────
        self._segment: Segment = Segment.POSE
        self._alarm_handle: TimerHandle | None = None
        self._run_active: bool = False  # expiry of this run opens the alarm
        self._has_advanced: bool = False  # segment already swapped this run
        self._syncing: bool = False  # inside synchronize(); it emits its own tick

        # ── alerts / poses ────────────────────────────────────────────
        self._sound_alerts: bool = False
        self._alert_10_mins_sounded: bool = False
        self._alert_1_min_sounded: bool = False
        self._poses = PoseScheduler(minute_ms)

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC PROPERTIES
    # ══════════════════════════════════════════════════════════════════

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def running(self) -> bool:
        return self._main.running

    @property
    def duration_ms(self) -> float:
        return self._main.duration_ms

    @duration_ms.setter
    def duration_ms(self, value: float) -> None:
        """Set the current segment's length.  Always silences the alarm."""
        if self.alarm_sounding:
            self._stop_alarm()
        self._run_active = False
        self._main.duration_ms = value
        self._poses.rebuild(0)
        self._publish()

    @property
    def remaining_ms(self) -> float:
        return self._main.remaining_ms

    @property
    def elapsed_ms(self) -> float:
        return self._main.elapsed_ms

    @property
    def expired(self) -> bool:
        return self._main.expired

    @property
    def percent_complete(self) -> float:
        return self._main.percent_complete

    @property
    def time_remaining_str(self) -> str:
        return self._main.time_remaining_str

    @property
    def alarm_sounding(self) -> bool:
        return self._alarm_handle is not None

    @property
    def info(self) -> TimerInfo:
        return TimerInfo(
            running=self._main.running,
            duration_ms=self._main.duration_ms,
            remaining_ms=self._main.remaining_ms,
            alarm_sounding=self.alarm_sounding,
        )

    @property
    def segment(self) -> Segment:
        return self._segment

    @property
    def sound_alerts(self) -> bool:
        """Whether the current (or last) run announces time remaining."""
        return self._sound_alerts

    @property
    def alert_10_mins_sounded(self) -> bool:
        return self._alert_10_mins_sounded

    @property
    def alert_1_min_sounded(self) -> bool:
        return self._alert_1_min_sounded

    @property
    def minute_ms(self) -> float:
        """Length of one pose-list minute."""
        return self._poses.minute_ms

    @minute_ms.setter
    def minute_ms(self, value: float) -> None:
        self._poses.minute_ms = value
        self._poses.rebuild(self._main.elapsed_ms)

    @property
    def pose_lengths_m(self) -> list[float]:
        return self._poses.lengths_m

    @pose_lengths_m.setter
    def pose_lengths_m(self, lengths: Iterable[float]) -> None:
        """Replace the sub-pose list.  Only future change points survive."""
        self._poses.assign(lengths, self._main.elapsed_ms)

    @property
    def change_pose_times_ms(self) -> list[float]:
        """Elapsed-time thresholds still to come in this segment."""
        return self._poses.change_times_ms

    @property
    def auto_start_timer_running(self) -> bool:
        return self._auto_start.running

    @property
    def auto_start_timer_remaining_ms(self) -> float:
        return self._auto_start.remaining_ms

    @property
    def auto_start_timer_remaining_str(self) -> str:
        return format_ms(self._auto_start.remaining_ms)

    @property
    def auto_start_timer_duration_ms(self) -> float:
        return self._auto_start.duration_ms

    @auto_start_timer_duration_ms.setter
    def auto_start_timer_duration_ms(self, value: float) -> None:
        self._auto_start_armed = False
        self._auto_start.duration_ms = value

    # ══════════════════════════════════════════════════════════════════
    #  CONTROLS
    # ══════════════════════════════════════════════════════════════════

    def start(self, sound_alerts: bool | None = None) -> None:
        """Start or resume the countdown.  Ignored while already running.

        *sound_alerts* defaults to True only for runs longer than ten
        minutes without a pose-change list; the two kinds of cue are not
        mixed.
        """
        if self._main.running:
            return

        if self.alarm_sounding:
            self._stop_alarm()

        self._has_advanced = False
        self._cancel_auto_start()

        if sound_alerts is None:
            sound_alerts = (
                not self._poses.lengths_m
                and self._main.duration_ms > SOUND_ALERTS_MIN_DURATION_MS
            )
        self._sound_alerts = bool(sound_alerts)

        self._alert_10_mins_sounded = False
        self._alert_1_min_sounded = False

        self._run_active = True
        self._main.start()
        logger.debug("timer started: %s", self._main)
        self.timer_started.emit()

        if self._main.expired and self._run_active:
            self._enter_alarm()

        self._publish()

    def pause(self) -> None:
        """Freeze the countdown.  Alarm and auto-start are left alone."""
        if not self._main.running:
            return
        self._main.stop()
        self._publish()

    def stop(self) -> None:
        self.pause()

    def next(self) -> None:
        """Clear elapsed time and swap to the other segment (pose ↔ break).

        Refused while the countdown is running.
        """
        if self._main.running:
            logger.warning("next() ignored: the timer is running")
            return
        self._advance()
        self._publish()

    def reset(self) -> None:
        """Back to idle: alarm silenced, elapsed cleared, auto-start cancelled.

        The segment does not change.
        """
        if self.alarm_sounding:
            self._stop_alarm()
        self._run_active = False
        self._main.reset()
        self._cancel_auto_start()
        self._poses.rebuild(0)
        self._publish()

    def add_one(self) -> None:
        self._run_active = False
        self._main.add_one()
        self._poses.rebuild(0)
        self._cancel_auto_start()
        self._publish()

    def subtract_one(self) -> None:
        if self._main.duration_ms > MINUTE_MS:
            self._run_active = False
            self._main.subtract_one()
            self._poses.rebuild(0)
        self._cancel_auto_start()
        self._publish()

    def stop_alarm(self) -> None:
        """Silence the alarm early.  Stays on the same segment."""
        if not self.alarm_sounding:
            return
        self._stop_alarm()
        self._publish()

    def cancel_auto_start(self) -> None:
        self._cancel_auto_start()

    # ══════════════════════════════════════════════════════════════════
    #  NETWORK RECONCILIATION
    # ══════════════════════════════════════════════════════════════════

    def synchronize(
        self,
        running: bool,
        duration_ms: float,
        remaining_ms: float,
        alarm_sounding: bool | None = None,
    ) -> None:
        """Adopt a peer's snapshot, taken at this instant.

        With *alarm_sounding* given, the local alarm is opened or closed to
        match.  A running snapshot always silences it, as ``start()`` does.
        Never emits ``local_change``.
        """
        self._run_active = False
        self._syncing = True
        try:
            self._main.synchronize(running, duration_ms, remaining_ms)
        finally:
            self._syncing = False

        self._run_active = self._main.running
        if self._main.running:
            self._has_advanced = False
            self._cancel_auto_start()
            alarm_sounding = False

        if alarm_sounding is not None and alarm_sounding != self.alarm_sounding:
            if alarm_sounding:
                self._enter_alarm()
            else:
                self._stop_alarm()

        self._poses.rebuild(self._main.elapsed_ms)
        self._emit_tick()

    def apply_info(self, info: TimerInfo) -> None:
        self.synchronize(
            info.running, info.duration_ms, info.remaining_ms, info.alarm_sounding,
        )

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — countdown callbacks
    # ══════════════════════════════════════════════════════════════════

    def _on_main_tick(self, main: CountdownTimer) -> None:
        if self._syncing:
            return

        if main.expired and self._run_active and not self.alarm_sounding:
            self._enter_alarm()

        self._emit_tick()

        if not main.running:
            return

        if self._sound_alerts:
            self._check_alerts(main.remaining_ms)

        if self._segment is Segment.POSE:
            for _ in range(self._poses.pop_due(main.elapsed_ms)):
                self.change_pose.emit()

    def _check_alerts(self, remaining: float) -> None:
        if (
            not self._alert_10_mins_sounded
            and remaining <= self.alert_10_minutes_remaining_ms
        ):
            self._alert_10_mins_sounded = True
            self.alert_10_minutes_remaining.emit()

        if not self._alert_1_min_sounded and remaining <= self.alert_1_minute_remaining_ms:
            self._alert_1_min_sounded = True
            self.alert_1_minute_remaining.emit()

    def _on_auto_start_tick(self, auto_start: CountdownTimer) -> None:
        self.auto_start_tick.emit(float(auto_start.remaining_ms))
        if auto_start.expired and self._auto_start_armed:
            self._auto_start_armed = False
            logger.debug("auto-start expired: restarting unattended")
            self.reset()
            self.start()

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — alarm
    # ══════════════════════════════════════════════════════════════════

    def _enter_alarm(self) -> None:
        if self.alarm_sounding:
            logger.debug("alarm requested but it is already sounding")
            return

        self._run_active = False
        self._alarm_handle = self._clock.schedule_once(
            self.alarm_duration_ms, self._on_alarm_timeout,
        )

        if (
            self.auto_start_enabled
            and self._auto_start.duration_ms > 0
            and not self._main.running
        ):
            self._auto_start.reset()
            self._auto_start_armed = True
            self._auto_start.start()

        logger.debug("alarm sounding for %gms", self.alarm_duration_ms)
        # Handle is set first so listeners see alarm_sounding == True.
        self.alarm.emit(True)

    def _on_alarm_timeout(self) -> None:
        self._alarm_handle = None
        if not self._has_advanced:
            self._advance()
        logger.debug("alarm timed out; next segment is %s", self._segment.value)
        self.alarm.emit(False)
        self.alarm_timeout.emit()

    def _stop_alarm(self) -> None:
        self._clock.cancel(self._alarm_handle)
        self._alarm_handle = None
        logger.debug("alarm stopped")
        self.alarm.emit(False)

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — helpers
    # ══════════════════════════════════════════════════════════════════

    def _advance(self) -> None:
        """Swap pose ↔ break and load that segment's duration."""
        self._has_advanced = True
        self._run_active = False
        if self._segment is Segment.POSE:
            self._segment = Segment.BREAK
            duration = self.break_ms
        else:
            self._segment = Segment.POSE
            duration = self.pose_ms
        self._poses.rebuild(0)
        self._main.duration_ms = duration

    def _cancel_auto_start(self) -> None:
        self._auto_start_armed = False
        self._auto_start.reset()

    def _emit_tick(self) -> None:
        self.tick.emit(self.info)

    def _publish(self) -> None:
        self.local_change.emit(self.info)
