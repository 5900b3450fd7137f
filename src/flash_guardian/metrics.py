# Copyright (c) 2026 flash_guardian contributors
# SPDX-License-Identifier: MIT

"""Per-frame metric extraction: relative luminance and red saturation."""

import logging
from typing import Optional

import numpy as np

from flash_guardian.configuration import SamplingParams, srgb_to_linear_table
from flash_guardian.errors import InvalidFrame
from flash_guardian.frame import Frame, FrameMetrics
from flash_guardian.frame_rgb_converter import FrameRgbConverter

logger = logging.getLogger(__name__)


class MetricExtractor:
    """
    Turns one frame into a FrameMetrics summary.

    Both metrics are computed over the same deterministic subset of
    pixels: the frame is downscaled to the bounded analysis resolution,
    flattened in row-major order and every ``pixel_sample_stride``-th
    pixel is kept. The extractor holds no per-frame state, so identical
    input always yields identical output.
    """

    # Relative luminance coefficients, RGB order
    RGB_WEIGHTS = np.array([0.2126, 0.7152, 0.0722], dtype=np.float32)

    def __init__(
        self,
        params: Optional[SamplingParams] = None,
        srgb_values: Optional[np.ndarray] = None,
    ):
        self.params = params or SamplingParams()
        if srgb_values is None:
            srgb_values = srgb_to_linear_table()
        self.converter = FrameRgbConverter(
            srgb_values,
            max_size=(self.params.max_analysis_width, self.params.max_analysis_height),
        )

    def sample(self, frame: Frame) -> np.ndarray:
        """
        Select the sampled pixels of a frame.

        Returns:
            (N, 3) uint8 array of RGB pixels; N is 0 for an invalid frame
        """
        try:
            frame.validate()
        except InvalidFrame as e:
            logger.debug(f"Invalid frame at {frame.timestamp_ms} ms: {e}")
            return np.empty((0, 3), dtype=np.uint8)

        rgb = self.converter.to_rgb(frame)
        return rgb.reshape(-1, 3)[:: self.params.pixel_sample_stride]

    def luminance(self, frame: Frame) -> float:
        """Average relative luminance of the sampled pixels, in [0, 1]."""
        return self._luminance(self.sample(frame))

    def red_saturation_ratio(self, frame: Frame) -> float:
        """Fraction of sampled pixels that are saturated red, in [0, 1]."""
        return self._red_saturation_ratio(self.sample(frame))

    def extract(self, frame: Frame) -> FrameMetrics:
        """Compute both metrics for a frame, sampling it once."""
        sampled = self.sample(frame)
        return FrameMetrics(
            luminance=self._luminance(sampled),
            red_saturation_ratio=self._red_saturation_ratio(sampled),
            timestamp_ms=frame.timestamp_ms,
        )

    def _luminance(self, sampled: np.ndarray) -> float:
        if sampled.shape[0] == 0:
            return 0.0
        # cv2.LUT wants a 2-D image; (N, 3) is read as N rows of 3 single-channel columns
        linear = self.converter.convert(sampled)
        value = float(np.mean(linear @ self.RGB_WEIGHTS))
        return min(max(value, 0.0), 1.0)

    def _red_saturation_ratio(self, sampled: np.ndarray) -> float:
        if sampled.shape[0] == 0:
            return 0.0
        r = sampled[:, 0]
        g = sampled[:, 1]
        b = sampled[:, 2]
        saturated = (r > self.params.red_min) & (g < self.params.green_max) & (b < self.params.blue_max)
        return float(np.count_nonzero(saturated)) / sampled.shape[0]
