# Copyright (c) 2026 flash_guardian contributors
# SPDX-License-Identifier: MIT

"""Per-source detection session: warmup, stride and warning latch."""

import logging
from typing import Callable, Optional

from flash_guardian.configuration import Configuration
from flash_guardian.errors import AnalysisFailure
from flash_guardian.flash_classifier import DetectionState, FlashClassifier
from flash_guardian.frame import Frame, FrameMetrics, is_finite_timestamp
from flash_guardian.metrics import MetricExtractor
from flash_guardian.result import ClassificationResult, DetectionPhase, FlashKind, FlashWarning

logger = logging.getLogger(__name__)

WarningSink = Callable[[FlashWarning], None]


class DetectionSession:
    """
    Drives flash classification for one video source.

    Frames are pushed one at a time through ``on_frame``. Only every
    ``frame_stride``-th call is analyzed. The first ``warmup_frames``
    analyzed frames after ``start`` or ``on_reset`` only seed the
    previous-frame metrics. Once an event window reaches the flash
    frequency threshold the session latches into ``Warned``, delivers
    one FlashWarning to the sink and ignores frames until it is
    restarted or the warning is dismissed.

    A session is not reentrant and shares no state with other sessions.
    """

    def __init__(
        self,
        config: Optional[Configuration] = None,
        sink: Optional[WarningSink] = None,
        name: str = "",
    ):
        """
        Initialize a detection session in the Idle phase.

        Args:
            config: Configuration parameters (uses defaults if None)
            sink: Callback receiving each latched FlashWarning
            name: Label used in log messages
        """
        self.config = config or Configuration()
        self.sink = sink
        self.name = name or hex(id(self))

        self.params = self.config.get_session_params()
        self.extractor = MetricExtractor(
            self.config.get_sampling_params(), self.config.srgb_values
        )
        self.classifier = FlashClassifier(self.config.get_classifier_params())
        self.state = DetectionState(window_ms=self.classifier.params.window_ms)

        self._call_count = 0
        self._last_warning: Optional[FlashWarning] = None

    def start(self) -> None:
        """Begin a fresh detection run: clears all counters and the latch."""
        self.state.clear_all()
        self.state.phase = DetectionPhase.Warmup
        self._call_count = 0
        self._last_warning = None
        logger.info(f"[{self.name}] Started monitoring")

    def stop(self) -> None:
        """Stop analysis; frames are ignored until the next start."""
        self.state.phase = DetectionPhase.Idle
        logger.info(f"[{self.name}] Stopped monitoring")

    def on_reset(self, dismiss_warning: bool = False) -> None:
        """
        Discard frame history after a seek or a dismissed warning.

        Clears the previous metrics, both windows and the analyzed
        frame count. Active and Warmup sessions return to Warmup. A
        Warned session stays latched unless ``dismiss_warning`` is set
        ("continue anyway"), in which case it re-arms into Warmup.

        Args:
            dismiss_warning: Also clear the warning latch
        """
        self.state.clear_history()

        phase = self.state.phase
        if phase in (DetectionPhase.Active, DetectionPhase.Warmup):
            self.state.phase = DetectionPhase.Warmup
        elif phase == DetectionPhase.Warned and dismiss_warning:
            self.state.phase = DetectionPhase.Warmup
            self._last_warning = None
        logger.info(f"[{self.name}] Detection state reset")

    def dismiss_warning(self) -> None:
        """Clear the latch and resume detection from a fresh warmup."""
        self.on_reset(dismiss_warning=True)

    def on_frame(self, frame: Frame, now_ms: Optional[float] = None) -> Optional[FlashWarning]:
        """
        Feed one frame to the session.

        Args:
            frame: Decoded frame; not retained after the call
            now_ms: Timestamp to classify at (defaults to frame.timestamp_ms)

        Returns:
            The FlashWarning if this frame latched one, otherwise None
        """
        self._call_count += 1
        if self._call_count % self.params.frame_stride != 0:
            return None

        if self.state.phase in (DetectionPhase.Idle, DetectionPhase.Warned):
            return None

        timestamp = frame.timestamp_ms if now_ms is None else now_ms
        if not is_finite_timestamp(timestamp):
            logger.error(f"[{self.name}] Skipping frame with invalid timestamp: {timestamp!r}")
            return None

        try:
            metrics = self._extract(frame, now_ms)
        except Exception as e:
            logger.error(f"[{self.name}] Frame analysis error: {e}", exc_info=True)
            return None

        self.state.analyzed_frame_count += 1

        if (
            self.state.phase == DetectionPhase.Warmup
            and self.state.analyzed_frame_count > self.params.warmup_frames
        ):
            self.state.phase = DetectionPhase.Active

        if self.state.phase == DetectionPhase.Warmup or self.state.prev_metrics is None:
            self.state.prev_metrics = metrics
            return None

        try:
            result = self.classifier.classify(self.state.prev_metrics, metrics, self.state)
        except Exception as e:
            failure = AnalysisFailure(str(e), timestamp_ms=metrics.timestamp_ms)
            logger.error(f"[{self.name}] Frame classification error: {failure}", exc_info=True)
            return None

        self.state.prev_metrics = metrics

        kind = self._warning_kind(result)
        if kind is None:
            return None
        return self._latch(kind, result, frame.media_position_ms)

    def _extract(self, frame: Frame, now_ms: Optional[float]) -> FrameMetrics:
        metrics = self.extractor.extract(frame)
        if now_ms is not None:
            metrics = FrameMetrics(
                luminance=metrics.luminance,
                red_saturation_ratio=metrics.red_saturation_ratio,
                timestamp_ms=now_ms,
            )
        return metrics

    def _warning_kind(self, result: ClassificationResult) -> Optional[FlashKind]:
        threshold = self.params.flash_frequency_threshold
        # General takes priority when both windows qualify
        if result.general_window_count >= threshold:
            return FlashKind.General
        if result.red_window_count >= threshold:
            return FlashKind.Red
        return None

    def _latch(
        self,
        kind: FlashKind,
        result: ClassificationResult,
        position_ms: float,
    ) -> FlashWarning:
        self.state.phase = DetectionPhase.Warned
        flashes = (
            result.general_window_count if kind == FlashKind.General else result.red_window_count
        )
        warning = FlashWarning(
            kind=kind,
            flashes_in_window=flashes,
            max_flashes_per_window=self.state.max_flashes_per_window,
            total_flash_count=self.state.total_flash_count,
            position_ms=position_ms,
        )
        self._last_warning = warning
        logger.warning(f"[{self.name}] {warning.describe()}")

        if self.sink is not None:
            try:
                self.sink(warning)
            except Exception as e:
                logger.error(f"[{self.name}] Warning sink failed: {e}", exc_info=True)
        return warning

    @property
    def phase(self) -> DetectionPhase:
        return self.state.phase

    @property
    def warning_active(self) -> bool:
        """True while the warning latch is set."""
        return self.state.phase == DetectionPhase.Warned

    @property
    def last_warning(self) -> Optional[FlashWarning]:
        """The warning of the current latch cycle, if any."""
        return self._last_warning

    @property
    def analyzed_frame_count(self) -> int:
        return self.state.analyzed_frame_count

    @property
    def total_flash_count(self) -> int:
        return self.state.total_flash_count

    @property
    def max_flashes_per_window(self) -> int:
        return self.state.max_flashes_per_window
