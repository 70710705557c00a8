"""Headless console runner: python -m modeltimer.

Runs one ModelTimer on the Qt event loop and prints what a view would show.
Stop it with Ctrl+C.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys

from PyQt6.QtCore import QCoreApplication, QObject

from .countdown import SECOND_MS, format_ms
from .info import TimerInfo
from .model_timer import ModelTimer
from .settings import Settings, apply_settings, load_settings


def parse_pose_lengths(text: str) -> list[float]:
    """``"5,5,10"`` → ``[5.0, 5.0, 10.0]``.  Blank entries are skipped."""
    lengths: list[float] = []
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            lengths.append(float(part))
        except ValueError:
            raise argparse.ArgumentTypeError(f"not a number of minutes: {part!r}")
    return lengths


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="modeltimer",
        description="Pose/break timer for life-drawing sessions.",
    )
    parser.add_argument("--pose", type=float, metavar="MIN", help="pose length in minutes")
    parser.add_argument("--break", dest="break_", type=float, metavar="MIN",
                        help="break length in minutes")
    parser.add_argument("--poses", type=parse_pose_lengths, metavar="M,M,...",
                        help="sub-pose lengths in minutes, e.g. 5,5,10")
    parser.add_argument("--alarm", type=float, metavar="SEC", help="alarm length in seconds")
    parser.add_argument("--auto-start", type=float, metavar="SEC",
                        help="seconds before an unattended restart")
    parser.add_argument("--no-auto-start", action="store_true",
                        help="never restart unattended")
    parser.add_argument("--quiet-alerts", action="store_true",
                        help="no time-remaining announcements")
    parser.add_argument("--settings", action="store_true",
                        help="start from the saved settings file")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def settings_from_args(args: argparse.Namespace, base: Settings | None = None) -> Settings:
    """Overlay command-line options on *base* (or the defaults)."""
    settings = base if base is not None else Settings()
    if args.pose is not None:
        settings.pose_duration = int(args.pose * 60)
    if args.break_ is not None:
        settings.break_duration = int(args.break_ * 60)
    if args.poses is not None:
        settings.pose_lengths = args.poses
    if args.alarm is not None:
        settings.alarm_duration = int(args.alarm)
    if args.auto_start is not None:
        settings.auto_start_duration = int(args.auto_start)
    if args.no_auto_start:
        settings.auto_start_enabled = False
    if args.quiet_alerts:
        settings.announce_time_remaining = False
    return settings


class ConsoleView(QObject):
    """Prints timer events, one line each."""

    def __init__(self, timer: ModelTimer, settings: Settings, out=None) -> None:
        super().__init__(timer)
        self._timer = timer
        self._settings = settings
        self._out = out if out is not None else sys.stdout
        self._last_line = ""

        timer.tick.connect(self._on_tick)
        timer.alarm.connect(self._on_alarm)
        timer.timer_started.connect(self._on_started)
        timer.alert_10_minutes_remaining.connect(lambda: self._on_alert("10 minutes remaining"))
        timer.alert_1_minute_remaining.connect(lambda: self._on_alert("1 minute remaining"))
        timer.change_pose.connect(lambda: self._print("** change pose please **"))
        timer.alarm_timeout.connect(self._on_alarm_timeout)

    def _print(self, line: str) -> None:
        print(line, file=self._out, flush=True)

    def _on_tick(self, info: TimerInfo) -> None:
        state = "running" if info.running else "paused"
        if info.alarm_sounding:
            state = "ALARM"
        line = f"[{self._timer.segment.value:5}] {format_ms(info.remaining_ms)}  {state}"
        if line != self._last_line:
            self._last_line = line
            self._print(line)

    def _on_alarm(self, sounding: bool) -> None:
        self._print("*** time's up ***" if sounding else "alarm off")

    def _on_started(self) -> None:
        if self._settings.announce_timer_started:
            self._print(f"timer started ({format_ms(self._timer.duration_ms)})")

    def _on_alert(self, text: str) -> None:
        if self._settings.announce_time_remaining:
            self._print(text)

    def _on_alarm_timeout(self) -> None:
        if self._timer.auto_start_timer_running:
            remaining = self._timer.auto_start_timer_remaining_ms / SECOND_MS
            self._print(f"auto-start in {remaining:g}s")


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    base = load_settings() if args.settings else None
    settings = settings_from_args(args, base)

    app = QCoreApplication(sys.argv[:1])
    app.setApplicationName("ModelTimer")
    # Let Ctrl+C end the Qt loop.
    signal.signal(signal.SIGINT, signal.SIG_DFL)

    timer = ModelTimer()
    apply_settings(timer, settings)
    ConsoleView(timer, settings)

    sound_alerts = None if settings.announce_time_remaining else False
    timer.start(sound_alerts)

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
