# Copyright (c) 2026 flash_guardian contributors
# SPDX-License-Identifier: MIT

"""Flash event classification between consecutive frames."""

from dataclasses import dataclass, field
from typing import Optional

from flash_guardian.configuration import ClassifierParams
from flash_guardian.errors import AnalysisFailure
from flash_guardian.frame import FrameMetrics, is_finite_timestamp
from flash_guardian.result import ClassificationResult, DetectionPhase
from flash_guardian.sliding_window import SlidingWindow


# Floor for the previous luminance when computing a relative change
RELATIVE_CHANGE_FLOOR = 0.01


@dataclass
class DetectionState:
    """Mutable state owned by exactly one DetectionSession."""
    window_ms: float = 1000.0
    phase: DetectionPhase = DetectionPhase.Idle
    prev_metrics: Optional[FrameMetrics] = None
    analyzed_frame_count: int = 0
    total_flash_count: int = 0
    max_flashes_per_window: int = 0
    general_window: SlidingWindow = field(init=False)
    red_window: SlidingWindow = field(init=False)

    def __post_init__(self):
        self.general_window = SlidingWindow(self.window_ms)
        self.red_window = SlidingWindow(self.window_ms)

    def clear_history(self) -> None:
        """Forget the previous frame, window contents and analyzed count."""
        self.prev_metrics = None
        self.analyzed_frame_count = 0
        self.general_window.clear()
        self.red_window.clear()

    def clear_all(self) -> None:
        """Clear history and the per-start statistics."""
        self.clear_history()
        self.total_flash_count = 0
        self.max_flashes_per_window = 0


class FlashClassifier:
    """
    Decides whether a general flash and/or red flash occurred between
    two frames, and keeps the event windows of a DetectionState current.

    The two tests are independent; they share only the dark-frame guard,
    which requires both frames to be at least ``min_brightness``.
    """

    def __init__(self, params: Optional[ClassifierParams] = None):
        self.params = params or ClassifierParams()

    def is_dark(self, prev: FrameMetrics, cur: FrameMetrics) -> bool:
        """True if either frame is too dark for its change to count."""
        return (
            cur.luminance < self.params.min_brightness
            or prev.luminance < self.params.min_brightness
        )

    def is_general_flash(self, prev: FrameMetrics, cur: FrameMetrics) -> bool:
        change = abs(cur.luminance - prev.luminance)
        relative_change = change / max(prev.luminance, RELATIVE_CHANGE_FLOOR)
        return (
            relative_change > self.params.luminance_relative_threshold
            and change > self.params.luminance_absolute_min
        )

    def is_red_flash(self, prev: FrameMetrics, cur: FrameMetrics) -> bool:
        change = abs(cur.red_saturation_ratio - prev.red_saturation_ratio)
        return change > self.params.red_delta_threshold

    def classify(
        self,
        prev: FrameMetrics,
        cur: FrameMetrics,
        state: DetectionState,
    ) -> ClassificationResult:
        """
        Classify the transition from ``prev`` to ``cur``.

        Recorded events are timestamped at ``cur.timestamp_ms``. Both
        windows are pruned on every call, including dark-suppressed ones.

        Args:
            prev: Metrics of the previous analyzed frame
            cur: Metrics of the current frame
            state: Session state whose windows and counters are updated

        Returns:
            ClassificationResult with event flags and window counts

        Raises:
            AnalysisFailure: If the current timestamp is not finite; no
                window is touched
        """
        now = cur.timestamp_ms
        if not is_finite_timestamp(now):
            raise AnalysisFailure(f"Frame timestamp is not a finite number: {now!r}")

        general = red = False

        if not self.is_dark(prev, cur):
            general = self.is_general_flash(prev, cur)
            red = self.is_red_flash(prev, cur)

        if general:
            state.general_window.add(now)
            state.total_flash_count += 1
        if red:
            state.red_window.add(now)

        general_count = state.general_window.prune(now, self.params.window_ms)
        red_count = state.red_window.prune(now, self.params.window_ms)

        state.max_flashes_per_window = max(state.max_flashes_per_window, general_count)

        return ClassificationResult(
            is_general_event=general,
            is_red_event=red,
            general_window_count=general_count,
            red_window_count=red_count,
        )
