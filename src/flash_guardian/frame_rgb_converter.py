# Copyright (c) 2026 flash_guardian contributors
# SPDX-License-Identifier: MIT

"""Frame RGB conversion for flash analysis."""

from typing import Tuple

import cv2
import numpy as np

from flash_guardian.frame import Frame


class FrameRgbConverter:
    """Bounds frame resolution and converts 8-bit sRGB to linear light."""

    def __init__(self, srgb_values: np.ndarray, max_size: Tuple[int, int] = (640, 360)):
        """
        Initialize the converter with sRGB lookup table.

        Args:
            srgb_values: Array of 256 linear values for lookup
            max_size: (width, height) upper bound of the analysis resolution
        """
        # Create lookup table for cv2.LUT (must be 1x256 or 256x1)
        self.srgb_lut = np.asarray(srgb_values, dtype=np.float32).reshape(1, 256)
        self.max_size = max_size

    def analysis_size(self, width: int, height: int) -> Tuple[int, int]:
        """Clamp each dimension independently to the maximum analysis size."""
        return min(width, self.max_size[0]), min(height, self.max_size[1])

    def to_rgb(self, frame: Frame) -> np.ndarray:
        """
        Downscale a frame to the analysis resolution in RGB order.

        Args:
            frame: Validated input frame

        Returns:
            RGB frame (h, w, 3) uint8 with h, w bounded by max_size
        """
        pixels = frame.color_pixels()
        size = self.analysis_size(frame.width, frame.height)
        if size != (frame.width, frame.height):
            pixels = cv2.resize(
                np.ascontiguousarray(pixels), size, interpolation=cv2.INTER_AREA
            )
        if frame.is_bgr:
            pixels = pixels[:, :, ::-1]
        return np.ascontiguousarray(pixels)

    def convert(self, rgb_pixels: np.ndarray) -> np.ndarray:
        """
        Convert 8-bit sRGB pixels (uint8) to linear light (float32).

        Args:
            rgb_pixels: uint8 array of any shape whose last axis holds channels

        Returns:
            Linear values of the same shape, float32 in [0, 1]
        """
        return cv2.LUT(np.ascontiguousarray(rgb_pixels), self.srgb_lut)
