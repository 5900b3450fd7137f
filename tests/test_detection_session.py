# Copyright (c) 2026 flash_guardian contributors
# SPDX-License-Identifier: MIT

"""Tests for DetectionSession state machine."""

import logging

import numpy as np
import pytest

from flash_guardian.configuration import Configuration
from flash_guardian.detection_session import DetectionSession
from flash_guardian.frame import Frame
from flash_guardian.result import DetectionPhase, FlashKind


WHITE = (255, 255, 255)  # luminance 1.0
DIM = (89, 89, 89)  # luminance ~0.10
GRAY = (128, 128, 128)  # luminance ~0.216
RED = (255, 0, 0)  # luminance ~0.213, fully saturated red
BLACK = (0, 0, 0)


def solid(rgb, t, position_ms=None):
    """Create a small solid color frame."""
    pixels = np.zeros((18, 32, 3), dtype=np.uint8)
    pixels[:, :] = rgb
    return Frame(pixels=pixels, timestamp_ms=t, position_ms=position_ms)


def alternating(a, b, count, spacing_ms, start_ms=0):
    """Frames alternating between two colors at a fixed spacing."""
    return [solid(a if i % 2 == 0 else b, start_ms + i * spacing_ms) for i in range(count)]


def feed(session, frames):
    """Feed frames and collect returned warnings."""
    return [w for w in (session.on_frame(f) for f in frames) if w is not None]


@pytest.fixture
def warnings():
    return []


@pytest.fixture
def session(warnings):
    """Create a started session analyzing every frame."""
    s = DetectionSession(Configuration(frame_stride=1), sink=warnings.append)
    s.start()
    return s


class TestLifecycle:
    """Test phase transitions."""

    def test_initial_phase_is_idle(self):
        """Test a new session is idle."""
        assert DetectionSession().phase == DetectionPhase.Idle

    def test_idle_ignores_frames(self):
        """Test frames before start are ignored."""
        s = DetectionSession(Configuration(frame_stride=1))
        s.on_frame(solid(WHITE, 0))

        assert s.analyzed_frame_count == 0
        assert s.state.prev_metrics is None

    def test_start_enters_warmup(self, session):
        """Test start moves to warmup."""
        assert session.phase == DetectionPhase.Warmup
        assert session.warning_active is False

    def test_stop_returns_to_idle(self, session):
        """Test stop ignores subsequent frames."""
        feed(session, alternating(WHITE, DIM, 3, 100))
        session.stop()
        feed(session, alternating(WHITE, DIM, 3, 100, start_ms=300))

        assert session.phase == DetectionPhase.Idle
        assert session.analyzed_frame_count == 3

    def test_start_resets_everything(self, session, warnings):
        """Test start clears counters, windows and the latch."""
        feed(session, alternating(WHITE, DIM, 13, 100))
        assert session.warning_active

        session.start()

        assert session.phase == DetectionPhase.Warmup
        assert session.analyzed_frame_count == 0
        assert session.total_flash_count == 0
        assert session.max_flashes_per_window == 0
        assert len(session.state.general_window) == 0
        assert session.state.prev_metrics is None
        assert session.last_warning is None


class TestWarmup:
    """Test the warmup policy."""

    def test_warmup_never_classifies(self, session):
        """Test the first warmup frames record no events."""
        feed(session, alternating(WHITE, DIM, 10, 10))

        assert session.phase == DetectionPhase.Warmup
        assert session.analyzed_frame_count == 10
        assert session.total_flash_count == 0
        assert len(session.state.general_window) == 0
        assert session.state.prev_metrics is not None

    def test_first_frame_after_warmup_is_classified(self, session):
        """Test the frame after warmup is compared with the last warmup frame."""
        feed(session, alternating(WHITE, DIM, 11, 100))

        assert session.phase == DetectionPhase.Active
        assert session.state.general_window.snapshot() == [1000]

    def test_zero_warmup(self, warnings):
        """Test warmup can be disabled."""
        s = DetectionSession(Configuration(frame_stride=1, warmup_frames=0), sink=warnings.append)
        s.start()
        feed(s, alternating(WHITE, DIM, 3, 100))

        assert s.phase == DetectionPhase.Active
        assert s.total_flash_count == 2


class TestFrameStride:
    """Test the frame stride filter."""

    def test_every_third_frame(self):
        """Test only every Nth call is analyzed."""
        s = DetectionSession(Configuration(frame_stride=3))
        s.start()

        s.on_frame(solid(WHITE, 0))
        s.on_frame(solid(WHITE, 10))
        assert s.analyzed_frame_count == 0

        s.on_frame(solid(WHITE, 20))
        assert s.analyzed_frame_count == 1

        for i in range(6):
            s.on_frame(solid(WHITE, 30 + 10 * i))
        assert s.analyzed_frame_count == 3

    def test_skipped_frames_leave_state_unchanged(self):
        """Test skipped frames do not touch prev metrics."""
        s = DetectionSession(Configuration(frame_stride=2))
        s.start()
        s.on_frame(solid(WHITE, 0))

        assert s.state.prev_metrics is None


class TestScenarios:
    """End-to-end flash scenarios."""

    def test_slow_alternation_no_warning(self, session, warnings):
        """Test one transition per second never reaches the threshold."""
        frames = alternating(WHITE, DIM, 30, 1001)
        feed(session, frames)

        assert warnings == []
        assert session.phase == DetectionPhase.Active
        assert session.total_flash_count == 20
        assert session.max_flashes_per_window == 1

    def test_one_second_alternation_boundary(self, session, warnings):
        """Test transitions exactly one window apart both stay counted."""
        feed(session, alternating(WHITE, DIM, 30, 1000))

        assert warnings == []
        assert session.total_flash_count == 20
        assert len(session.state.general_window) == 2
        assert session.max_flashes_per_window == 2

    def test_rapid_alternation_general_warning(self, session, warnings):
        """Test three transitions within one second raise a general warning."""
        returned = feed(session, alternating(WHITE, DIM, 13, 100))

        assert len(warnings) == 1
        warning = warnings[0]
        assert returned == [warning]
        assert warning.kind == FlashKind.General
        assert warning.flashes_in_window == 3
        assert warning.max_flashes_per_window == 3
        assert warning.total_flash_count == 3
        assert warning.position_ms == 1200
        assert session.phase == DetectionPhase.Warned
        assert session.last_warning == warning

    def test_dark_frames_no_warning(self, session, warnings):
        """Test flashing from black is suppressed."""
        feed(session, alternating(WHITE, BLACK, 40, 100))

        assert warnings == []
        assert session.total_flash_count == 0

    def test_red_alternation_red_warning(self, session, warnings):
        """Test saturated red flashing raises a red warning."""
        feed(session, alternating(GRAY, RED, 13, 100))

        assert len(warnings) == 1
        assert warnings[0].kind == FlashKind.Red
        assert warnings[0].flashes_in_window == 3
        assert warnings[0].total_flash_count == 0

    def test_general_takes_priority(self, session, warnings):
        """Test general wins when both windows reach the threshold together."""
        feed(session, alternating(WHITE, RED, 13, 100))

        assert len(warnings) == 1
        assert warnings[0].kind == FlashKind.General

    def test_no_flash_on_steady_content(self, session, warnings):
        """Test small variations never produce events."""
        frames = [solid((120 + i % 3, 120, 120), i * 30) for i in range(60)]
        feed(session, frames)

        assert warnings == []
        assert session.total_flash_count == 0

    def test_position_from_media_clock(self, session, warnings):
        """Test the warning reports the media position."""
        frames = [
            solid(WHITE if i % 2 == 0 else DIM, i * 100, position_ms=60000 + i * 100)
            for i in range(13)
        ]
        feed(session, frames)

        assert warnings[0].position_ms == 61200

    def test_now_overrides_timestamp(self, session, warnings):
        """Test the explicit now is used for windows."""
        frames = alternating(WHITE, DIM, 13, 100)
        for i, frame in enumerate(frames):
            session.on_frame(frame, now_ms=i * 1001)

        assert warnings == []


class TestLatch:
    """Test the one-shot warning latch."""

    def test_warned_ignores_frames(self, session, warnings):
        """Test repeated qualifying frames never produce a second warning."""
        feed(session, alternating(WHITE, DIM, 13, 100))
        count = session.analyzed_frame_count
        windows = session.state.general_window.snapshot()

        returned = feed(session, alternating(WHITE, DIM, 20, 100, start_ms=1300))

        assert returned == []
        assert len(warnings) == 1
        assert session.analyzed_frame_count == count
        assert session.state.general_window.snapshot() == windows

    def test_reset_without_dismiss_keeps_latch(self, session, warnings):
        """Test a plain reset leaves the session warned."""
        feed(session, alternating(WHITE, DIM, 13, 100))
        session.on_reset()
        feed(session, alternating(WHITE, DIM, 30, 100, start_ms=1300))

        assert session.phase == DetectionPhase.Warned
        assert len(warnings) == 1

    def test_dismiss_rearms(self, session, warnings):
        """Test continuing after a warning allows a new one."""
        feed(session, alternating(WHITE, DIM, 13, 100))
        session.on_reset(dismiss_warning=True)

        assert session.phase == DetectionPhase.Warmup
        assert session.warning_active is False
        assert session.last_warning is None

        feed(session, alternating(WHITE, DIM, 13, 100, start_ms=5000))

        assert len(warnings) == 2
        assert warnings[1].total_flash_count == 6

    def test_sink_failure_keeps_warned(self, caplog):
        """Test a failing sink does not prevent the latch."""
        def sink(warning):
            raise ValueError("notification layer down")

        s = DetectionSession(Configuration(frame_stride=1), sink=sink)
        s.start()
        with caplog.at_level(logging.ERROR):
            returned = feed(s, alternating(WHITE, DIM, 13, 100))

        assert len(returned) == 1
        assert s.phase == DetectionPhase.Warned
        assert "Warning sink failed" in caplog.text

    def test_sink_may_stop_session(self):
        """Test stop from inside the sink leaves a consistent state."""
        s = DetectionSession(Configuration(frame_stride=1))
        s.sink = lambda warning: s.stop()
        s.start()
        feed(s, alternating(WHITE, DIM, 13, 100))

        assert s.phase == DetectionPhase.Idle
        s.start()
        assert s.phase == DetectionPhase.Warmup

    def test_sink_may_dismiss(self):
        """Test dismissing from inside the sink re-arms the session."""
        s = DetectionSession(Configuration(frame_stride=1))
        s.sink = lambda warning: s.dismiss_warning()
        s.start()
        feed(s, alternating(WHITE, DIM, 13, 100))

        assert s.phase == DetectionPhase.Warmup
        assert s.state.prev_metrics is None


class TestReset:
    """Test on_reset semantics."""

    def test_reset_clears_history(self, session, warnings):
        """Test reset mid-sequence discards accumulated windows."""
        feed(session, alternating(WHITE, DIM, 12, 100))
        assert len(session.state.general_window) == 2

        session.on_reset()

        assert session.phase == DetectionPhase.Warmup
        assert session.state.prev_metrics is None
        assert session.analyzed_frame_count == 0
        assert len(session.state.general_window) == 0
        assert len(session.state.red_window) == 0

        # The next frames start a fresh warmup instead of comparing with old history
        session.on_frame(solid(WHITE, 1200))
        session.on_frame(solid(DIM, 1300))

        assert len(session.state.general_window) == 0
        assert session.analyzed_frame_count == 2
        assert warnings == []

    def test_reset_keeps_statistics(self, session):
        """Test totals survive a reset."""
        feed(session, alternating(WHITE, DIM, 12, 100))
        session.on_reset()

        assert session.total_flash_count == 2
        assert session.max_flashes_per_window == 2

    def test_reset_is_idempotent(self, session):
        """Test resetting twice equals resetting once."""
        feed(session, alternating(WHITE, DIM, 12, 100))

        session.on_reset()
        once = (
            session.phase,
            session.state.prev_metrics,
            session.analyzed_frame_count,
            session.state.general_window.snapshot(),
            session.state.red_window.snapshot(),
            session.total_flash_count,
        )
        session.on_reset()
        twice = (
            session.phase,
            session.state.prev_metrics,
            session.analyzed_frame_count,
            session.state.general_window.snapshot(),
            session.state.red_window.snapshot(),
            session.total_flash_count,
        )

        assert once == twice

    def test_reset_while_idle_stays_idle(self):
        """Test reset does not start an idle session."""
        s = DetectionSession()
        s.on_reset()

        assert s.phase == DetectionPhase.Idle


class TestErrorHandling:
    """Test frame-level fault isolation."""

    def test_extraction_failure_skips_frame(self, session, monkeypatch, caplog):
        """Test an extraction error is logged and the frame skipped."""
        def broken(frame):
            raise RuntimeError("decoder glitch")

        monkeypatch.setattr(session.extractor, "extract", broken)
        with caplog.at_level(logging.ERROR):
            assert session.on_frame(solid(WHITE, 0)) is None

        assert session.analyzed_frame_count == 0
        assert session.state.prev_metrics is None
        assert session.phase == DetectionPhase.Warmup
        assert "Frame analysis error" in caplog.text

    def test_classification_failure_skips_frame(self, session, monkeypatch, caplog):
        """Test a classification error leaves the previous metrics in place."""
        feed(session, alternating(WHITE, DIM, 11, 100))
        prev = session.state.prev_metrics

        def broken(prev, cur, state):
            raise ZeroDivisionError("boom")

        monkeypatch.setattr(session.classifier, "classify", broken)
        with caplog.at_level(logging.ERROR):
            session.on_frame(solid(DIM, 1100))

        assert session.state.prev_metrics == prev
        assert session.phase == DetectionPhase.Active
        assert "Frame classification error" in caplog.text

    def test_session_continues_after_failure(self, session, warnings, monkeypatch):
        """Test detection carries on once frames are healthy again."""
        original = session.extractor.extract
        calls = {"n": 0}

        def flaky(frame):
            calls["n"] += 1
            if calls["n"] == 3:
                raise RuntimeError("bad frame")
            return original(frame)

        monkeypatch.setattr(session.extractor, "extract", flaky)
        feed(session, alternating(WHITE, DIM, 14, 100))

        assert len(warnings) == 1

    def test_invalid_frame_is_dark(self, session, warnings):
        """Test malformed frames become zero metrics without raising."""
        feed(session, alternating(WHITE, DIM, 11, 100))
        bad = Frame(pixels=np.zeros((0, 0, 3), dtype=np.uint8), timestamp_ms=1100)

        assert session.on_frame(bad) is None
        assert session.state.prev_metrics.luminance == 0.0
        assert session.analyzed_frame_count == 12
        assert len(session.state.general_window) == 1

    @pytest.mark.parametrize("timestamp", [None, float("nan"), float("inf"), "1000"])
    def test_bad_timestamp_skips_frame(self, session, timestamp, caplog):
        """Test a frame without a finite timestamp leaves state untouched."""
        feed(session, alternating(WHITE, DIM, 11, 100))
        prev = session.state.prev_metrics
        windows = session.state.general_window.snapshot()

        with caplog.at_level(logging.ERROR):
            assert session.on_frame(solid(DIM, timestamp)) is None

        assert session.state.prev_metrics == prev
        assert session.analyzed_frame_count == 11
        assert session.state.general_window.snapshot() == windows
        assert "invalid timestamp" in caplog.text

    def test_bad_now_skips_frame(self, session):
        """Test a non-finite explicit now is rejected like a bad timestamp."""
        feed(session, alternating(WHITE, DIM, 11, 100))

        session.on_frame(solid(DIM, 1100), now_ms=float("nan"))

        assert session.analyzed_frame_count == 11

    def test_none_timestamp_does_not_break_session(self, session, warnings):
        """Test detection keeps working after a frame with no timestamp."""
        feed(session, alternating(WHITE, DIM, 11, 100))
        session.on_frame(solid(DIM, None))
        feed(session, alternating(DIM, WHITE, 4, 100, start_ms=1100))

        assert len(warnings) == 1
        assert warnings[0].flashes_in_window == 3

    def test_nan_timestamp_does_not_poison_window(self, session, warnings):
        """Test slow flashing after a NaN frame raises no warning."""
        feed(session, alternating(WHITE, DIM, 11, 5000))
        session.on_frame(solid(DIM, float("nan")))
        frames = alternating(DIM, WHITE, 20, 5000, start_ms=55000)
        feed(session, frames)

        assert warnings == []
        assert session.state.general_window.snapshot() == [frames[-1].timestamp_ms]
