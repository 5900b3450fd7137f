# Copyright (c) 2026 flash_guardian contributors
# SPDX-License-Identifier: MIT

"""Feeds a playing video through a detection session."""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union

import cv2

from flash_guardian.configuration import Configuration
from flash_guardian.detection_session import DetectionSession
from flash_guardian.frame import Frame, ms_to_timespan
from flash_guardian.result import FlashWarning

logger = logging.getLogger(__name__)


@dataclass
class VideoInfo:
    """Video metadata."""
    fps: float = 0.0
    frame_count: int = 0
    duration: float = 0.0
    frame_size: Tuple[int, int] = (0, 0)  # (width, height)
    is_live: bool = False


@dataclass
class MonitorResult:
    """Outcome of monitoring one video until a warning or its end."""
    frames_fed: int = 0
    frames_analyzed: int = 0
    elapsed_ms: int = 0
    warning: Optional[FlashWarning] = None

    @property
    def halted(self) -> bool:
        return self.warning is not None

    def to_dict(self) -> dict:
        return {
            "FramesFed": self.frames_fed,
            "FramesAnalyzed": self.frames_analyzed,
            "ElapsedMs": self.elapsed_ms,
            "Halted": self.halted,
            "Warning": self.warning.to_dict() if self.warning else None,
        }


class VideoMonitor:
    """
    Plays a video file or capture device into a DetectionSession.

    Frames are fed in playback order and stamped with the playback
    position. Monitoring stops at the first warning, exactly where a
    player would halt; nothing after that point is read.
    """

    def __init__(self, config: Optional[Configuration] = None):
        self.config = config or Configuration()
        self.video_info = VideoInfo()
        self.session: Optional[DetectionSession] = None

    def monitor_video(
        self,
        source: Union[str, int],
        progress_callback: Optional[Callable[[float], None]] = None,
        max_frames: Optional[int] = None,
    ) -> MonitorResult:
        """
        Monitor a video until it ends or a warning is raised.

        Args:
            source: Path to a video file, or a capture device index
            progress_callback: Optional callback(progress: float) for file sources
            max_frames: Optional cap on frames read (useful for live devices)

        Returns:
            MonitorResult with the warning, if any
        """
        video = cv2.VideoCapture(source)

        if not self._video_is_open(source, video):
            raise RuntimeError(f"Could not open video: {source}")

        result = MonitorResult()
        warnings = []
        self.session = DetectionSession(self.config, sink=warnings.append, name=str(source))

        try:
            self.session.start()
            start_time = time.monotonic()

            ret, pixels = video.read()
            while ret and pixels is not None:
                frame = Frame(
                    pixels=pixels,
                    timestamp_ms=self._timestamp_ms(video, result.frames_fed, start_time),
                    channel_order="BGR",
                )
                self.session.on_frame(frame)
                result.frames_fed += 1

                if progress_callback and self.video_info.frame_count > 0:
                    progress_callback(min(100.0, result.frames_fed / self.video_info.frame_count * 100))

                if warnings:
                    result.warning = warnings[0]
                    logger.warning(
                        f"Playback halted at {ms_to_timespan(result.warning.position_ms)}"
                    )
                    break
                if max_frames is not None and result.frames_fed >= max_frames:
                    break

                ret, pixels = video.read()

            result.elapsed_ms = int((time.monotonic() - start_time) * 1000)
            result.frames_analyzed = self.session.analyzed_frame_count
            return result

        finally:
            self.session.stop()
            video.release()

    def _timestamp_ms(self, video: cv2.VideoCapture, index: int, start_time: float) -> float:
        """Playback position of the frame just read."""
        if self.video_info.is_live:
            return (time.monotonic() - start_time) * 1000.0
        position = video.get(cv2.CAP_PROP_POS_MSEC)
        if position > 0 or index == 0:
            return float(position)
        # Some containers do not report positions; derive from the frame rate
        return 1000.0 * index / self.video_info.fps if self.video_info.fps > 0 else 0.0

    def _video_is_open(self, source: Union[str, int], video: cv2.VideoCapture) -> bool:
        """Check if video is open and get metadata."""
        if not video.isOpened():
            logger.error(f"Video {source} could not be opened")
            return False

        self.video_info.is_live = isinstance(source, int)
        self.video_info.fps = float(video.get(cv2.CAP_PROP_FPS))
        self.video_info.frame_count = int(video.get(cv2.CAP_PROP_FRAME_COUNT))
        self.video_info.frame_size = (
            int(video.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(video.get(cv2.CAP_PROP_FRAME_HEIGHT)),
        )
        self.video_info.duration = (
            self.video_info.frame_count / self.video_info.fps
            if self.video_info.fps > 0
            else 0
        )

        logger.info(
            f"Video {source} opened: {self.video_info.frame_size[0]}x{self.video_info.frame_size[1]} "
            f"@ {self.video_info.fps:.2f} fps, {self.video_info.frame_count} frames"
        )
        return True
