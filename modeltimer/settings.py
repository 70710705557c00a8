"""Application settings with JSON persistence.

Settings are stored at:
    ~/Library/Application Support/ModelTimer/settings.json

Usage::

    settings = load_settings()
    settings.pose_duration = 25 * 60
    save_settings(settings)
    apply_settings(timer, settings)
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, asdict, field, fields
from pathlib import Path
from typing import TYPE_CHECKING

from .countdown import SECOND_MS

if TYPE_CHECKING:
    from .model_timer import ModelTimer

logger = logging.getLogger(__name__)


APP_SUPPORT_DIR = Path.home() / "Library" / "Application Support" / "ModelTimer"
SETTINGS_PATH = APP_SUPPORT_DIR / "settings.json"


@dataclass
class Settings:
    """All user-configurable preferences."""

    # ── timer ─────────────────────────────────────────────────────────
    pose_duration: int = 20 * 60           # seconds
    break_duration: int = 7 * 60
    pose_lengths: list[float] = field(default_factory=list)  # minutes

    # ── alarm / auto-start ────────────────────────────────────────────
    alarm_duration: int = 10               # seconds
    auto_start_enabled: bool = True
    auto_start_duration: int = 30

    # ── alerts ────────────────────────────────────────────────────────
    announce_timer_started: bool = True
    announce_time_remaining: bool = True


def load_settings() -> Settings:
    """Load settings from disk, falling back to defaults."""
    if not SETTINGS_PATH.exists():
        return Settings()
    try:
        data = json.loads(SETTINGS_PATH.read_text(encoding="utf-8"))
        # Only use keys that exist in the dataclass
        valid_keys = {f.name for f in fields(Settings)}
        defaults = Settings()
        filtered = {
            k: _checked(k, v, getattr(defaults, k))
            for k, v in data.items() if k in valid_keys
        }
        return Settings(**filtered)
    except (OSError, ValueError, AttributeError) as exc:
        logger.warning("ignoring unreadable settings file %s: %s", SETTINGS_PATH, exc)
    return Settings()


def _is_number(value) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _checked(name: str, value, default):
    """Return *value* in the type of *default*, or raise ValueError."""
    if isinstance(default, bool):
        if not isinstance(value, bool):
            raise ValueError(f"{name} must be true or false, got {value!r}")
        return value
    if isinstance(default, int):
        if not _is_number(value) or value < 0:
            raise ValueError(f"{name} must be a number of seconds, got {value!r}")
        return int(value)
    if isinstance(default, list):
        if not isinstance(value, list) or not all(_is_number(v) for v in value):
            raise ValueError(f"{name} must be a list of minutes, got {value!r}")
        return list(value)
    return value


def save_settings(settings: Settings) -> None:
    """Write settings to disk as JSON."""
    APP_SUPPORT_DIR.mkdir(parents=True, exist_ok=True)
    SETTINGS_PATH.write_text(
        json.dumps(asdict(settings), indent=2) + "\n",
        encoding="utf-8",
    )


def apply_settings(timer: ModelTimer, settings: Settings) -> None:
    """Push preferences into a timer.

    The current segment only picks up its new length when the timer is idle
    at the start of a segment; a run in progress keeps its duration.
    """
    from .model_timer import Segment

    timer.pose_ms = settings.pose_duration * SECOND_MS
    timer.break_ms = settings.break_duration * SECOND_MS
    timer.alarm_duration_ms = settings.alarm_duration * SECOND_MS
    timer.auto_start_enabled = settings.auto_start_enabled
    timer.auto_start_timer_duration_ms = settings.auto_start_duration * SECOND_MS
    timer.pose_lengths_m = settings.pose_lengths

    idle = not timer.running and not timer.alarm_sounding and timer.elapsed_ms == 0
    if idle:
        if timer.segment is Segment.POSE:
            timer.duration_ms = timer.pose_ms
        else:
            timer.duration_ms = timer.break_ms
