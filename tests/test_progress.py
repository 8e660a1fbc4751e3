"""Tests for ProgressTracker."""

from __future__ import annotations

import time

import pytest

from pkgaudit.progress import ProgressTracker


class TestProgressTracker:
    def test_basic_flow(self):
        tracker = ProgressTracker()
        tracker.start_phase("discover")
        tracker.complete_phase("discover", detail="12 top-level packages")

        summary = tracker.get_summary()
        assert len(summary["phases"]) == 1
        assert summary["phases"][0]["status"] == "completed"
        assert summary["phases"][0]["detail"] == "12 top-level packages"

    def test_fail_phase(self):
        tracker = ProgressTracker()
        tracker.start_phase("graph")
        tracker.fail_phase("graph", "boom")

        summary = tracker.get_summary()
        assert summary["phases"][0]["status"] == "failed"
        assert summary["phases"][0]["error"] == "boom"

    def test_duration(self):
        tracker = ProgressTracker()
        tracker.start_phase("inspect")
        time.sleep(0.01)
        tracker.complete_phase("inspect")

        p = tracker.phases[0]
        assert p.duration is not None
        assert p.duration >= 0.01

    def test_unknown_phase_ignored(self):
        tracker = ProgressTracker()
        tracker.complete_phase("never-started")
        assert tracker.get_summary()["phases"] == []

    def test_callback(self):
        events = []
        tracker = ProgressTracker()
        tracker.callbacks.append(lambda p: events.append((p.phase, p.status)))

        tracker.start_phase("a")
        tracker.complete_phase("a")

        assert events == [("a", "running"), ("a", "completed")]

    def test_failing_callback_does_not_break_tracking(self):
        tracker = ProgressTracker()
        tracker.callbacks.append(lambda p: 1 / 0)
        tracker.start_phase("a")
        tracker.complete_phase("a")
        assert tracker.phases[0].status == "completed"


class TestTrack:
    def test_track_completes_with_detail(self):
        tracker = ProgressTracker()
        with tracker.track("report") as phase:
            phase.detail = "done"
        assert tracker.phases[0].status == "completed"
        assert tracker.phases[0].detail == "done"

    def test_track_marks_failure_and_reraises(self):
        tracker = ProgressTracker()
        with pytest.raises(RuntimeError):
            with tracker.track("graph"):
                raise RuntimeError("bad tree")
        assert tracker.phases[0].status == "failed"
        assert tracker.phases[0].error == "bad tree"
