"""Tests for settings persistence and applying settings to a timer."""

from __future__ import annotations

import json
import logging

import pytest

from modeltimer.countdown import MINUTE_MS, SECOND_MS
from modeltimer.model_timer import Segment
from modeltimer.settings import Settings, apply_settings, load_settings, save_settings


@pytest.fixture
def settings_path(tmp_path, monkeypatch):
    path = tmp_path / "settings.json"
    monkeypatch.setattr("modeltimer.settings.SETTINGS_PATH", path)
    monkeypatch.setattr("modeltimer.settings.APP_SUPPORT_DIR", tmp_path)
    return path


class TestPersistence:

    def test_defaults(self):
        s = Settings()
        assert s.pose_duration == 20 * 60
        assert s.break_duration == 7 * 60
        assert s.pose_lengths == []
        assert s.alarm_duration == 10
        assert s.auto_start_enabled is True
        assert s.auto_start_duration == 30

    def test_missing_file_gives_defaults(self, settings_path):
        assert load_settings() == Settings()

    def test_round_trip(self, settings_path):
        original = Settings(
            pose_duration=25 * 60,
            break_duration=5 * 60,
            pose_lengths=[5, 5, 15],
            auto_start_enabled=False,
            announce_time_remaining=False,
        )
        save_settings(original)
        assert load_settings() == original

    def test_unknown_keys_ignored(self, settings_path):
        settings_path.write_text(json.dumps({"pose_duration": 600, "window_x": 5}))
        loaded = load_settings()
        assert loaded.pose_duration == 600
        assert loaded.break_duration == 7 * 60

    def test_corrupt_file_falls_back_with_warning(self, settings_path, caplog):
        settings_path.write_text("{not json")
        with caplog.at_level(logging.WARNING, logger="modeltimer.settings"):
            loaded = load_settings()
        assert loaded == Settings()
        assert "settings" in caplog.text

    def test_non_object_json_falls_back(self, settings_path):
        settings_path.write_text("[1, 2, 3]")
        assert load_settings() == Settings()

    @pytest.mark.parametrize("data", [
        {"pose_duration": "x"},
        {"break_duration": -60},
        {"alarm_duration": None},
        {"auto_start_enabled": "yes"},
        {"pose_lengths": 5},
        {"pose_lengths": [5, "ten"]},
    ])
    def test_wrong_types_fall_back_with_warning(self, settings_path, caplog, data):
        settings_path.write_text(json.dumps(data))
        with caplog.at_level(logging.WARNING, logger="modeltimer.settings"):
            loaded = load_settings()
        assert loaded == Settings()
        assert "ignoring unreadable settings file" in caplog.text

    def test_fractional_seconds_become_whole(self, settings_path, timer):
        settings_path.write_text(json.dumps({"pose_duration": 90.5}))
        loaded = load_settings()
        assert loaded.pose_duration == 90
        apply_settings(timer, loaded)
        assert timer.duration_ms == 90 * SECOND_MS


class TestApply:

    def test_apply_to_idle_timer(self, timer):
        settings = Settings(
            pose_duration=15 * 60,
            break_duration=5 * 60,
            pose_lengths=[5, 10],
            alarm_duration=3,
            auto_start_duration=60,
        )
        apply_settings(timer, settings)

        assert timer.duration_ms == 15 * MINUTE_MS
        assert timer.pose_ms == 15 * MINUTE_MS
        assert timer.break_ms == 5 * MINUTE_MS
        assert timer.alarm_duration_ms == 3 * SECOND_MS
        assert timer.auto_start_timer_duration_ms == 60 * SECOND_MS
        assert timer.pose_lengths_m == [5, 10]
        assert timer.change_pose_times_ms == [5 * MINUTE_MS, 15 * MINUTE_MS]

    def test_apply_during_break_uses_break_length(self, timer):
        timer.next()
        assert timer.segment is Segment.BREAK
        apply_settings(timer, Settings(break_duration=4 * 60))
        assert timer.duration_ms == 4 * MINUTE_MS

    def test_apply_keeps_running_duration(self, timer, clock):
        timer.start()
        clock.advance(1000)
        apply_settings(timer, Settings(pose_duration=30 * 60))
        assert timer.running is True
        assert timer.duration_ms == 20 * MINUTE_MS
        assert timer.pose_ms == 30 * MINUTE_MS

    def test_apply_auto_start_toggle(self, timer, clock):
        apply_settings(timer, Settings(auto_start_enabled=False))
        timer.duration_ms = 100
        timer.start()
        clock.advance(100)
        assert timer.auto_start_timer_running is False
