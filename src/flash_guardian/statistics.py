# Copyright (c) 2026 flash_guardian contributors
# SPDX-License-Identifier: MIT

"""In-memory aggregate statistics across monitored sources."""

import logging
from dataclasses import dataclass

from flash_guardian.result import FlashWarning

logger = logging.getLogger(__name__)


@dataclass
class StatisticsAggregator:
    """Counts monitored videos, issued warnings and detected flashes."""
    videos_monitored: int = 0
    warnings_issued: int = 0
    flashes_detected: int = 0

    def record_video_monitored(self) -> None:
        self.videos_monitored += 1
        logger.debug(f"Videos monitored: {self.videos_monitored}")

    def record_warning(self, warning: FlashWarning) -> None:
        """Count one warning and the flashes its session had detected."""
        self.warnings_issued += 1
        self.flashes_detected += warning.total_flash_count
        logger.debug(
            f"Warnings issued: {self.warnings_issued}, "
            f"flashes detected: {self.flashes_detected}"
        )

    # Usable directly as a DetectionSession sink
    __call__ = record_warning

    def reset(self) -> None:
        self.videos_monitored = 0
        self.warnings_issued = 0
        self.flashes_detected = 0

    def to_dict(self) -> dict:
        return {
            "VideosMonitored": self.videos_monitored,
            "WarningsIssued": self.warnings_issued,
            "FlashesDetected": self.flashes_detected,
        }
