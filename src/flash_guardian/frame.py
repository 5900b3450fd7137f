# Copyright (c) 2026 flash_guardian contributors
# SPDX-License-Identifier: MIT

"""Frame descriptors and per-frame metric values."""

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from flash_guardian.errors import InvalidFrame


CHANNEL_ORDERS = ("RGB", "RGBA", "BGR", "BGRA")


def is_finite_timestamp(value) -> bool:
    """True if value is a real, finite number of milliseconds."""
    if isinstance(value, bool) or not isinstance(value, (int, float, np.integer, np.floating)):
        return False
    return math.isfinite(value)


def ms_to_timespan(ms: float) -> str:
    """Convert milliseconds to HH:MM:SS.ffffff format."""
    seconds = (ms / 1000.0) % 60
    minutes = int((ms / (1000 * 60)) % 60)
    hours = int((ms / (1000 * 60 * 60)) % 24)
    return f"{hours:02d}:{minutes:02d}:{seconds:09.6f}"


@dataclass
class Frame:
    """
    One decoded video frame supplied by the caller.

    The pixel array is borrowed for the duration of a single
    ``DetectionSession.on_frame`` call and never retained.
    """
    pixels: np.ndarray
    timestamp_ms: float
    position_ms: Optional[float] = None
    channel_order: str = "RGB"

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0]) if self.pixels.ndim >= 1 else 0

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1]) if self.pixels.ndim >= 2 else 0

    @property
    def media_position_ms(self) -> float:
        """Playback position, falling back to the capture timestamp."""
        return self.timestamp_ms if self.position_ms is None else self.position_ms

    def validate(self) -> None:
        """
        Check the frame is a non-empty (H, W, C) uint8 buffer.

        Raises:
            InvalidFrame: If the frame is zero-area or malformed
        """
        if self.channel_order not in CHANNEL_ORDERS:
            raise InvalidFrame(f"Unsupported channel order: {self.channel_order}")
        if not isinstance(self.pixels, np.ndarray):
            raise InvalidFrame(f"Pixel buffer must be a numpy array, got {type(self.pixels).__name__}")
        if self.pixels.ndim != 3:
            raise InvalidFrame(f"Pixel buffer must have shape (H, W, C), got {self.pixels.shape}")
        if self.pixels.shape[2] < len(self.channel_order):
            raise InvalidFrame(
                f"{self.channel_order} frame needs {len(self.channel_order)} channels, "
                f"got {self.pixels.shape[2]}"
            )
        if self.pixels.dtype != np.uint8:
            raise InvalidFrame(f"Pixel buffer must be uint8, got {self.pixels.dtype}")
        if self.width == 0 or self.height == 0:
            raise InvalidFrame(f"Zero-area frame: {self.width}x{self.height}")

    @property
    def is_bgr(self) -> bool:
        return self.channel_order.startswith("BGR")

    def color_pixels(self) -> np.ndarray:
        """Return the (H, W, 3) color view of the buffer, alpha dropped."""
        return self.pixels[:, :, :3]

    @classmethod
    def from_buffer(
        cls,
        buffer,
        width: int,
        height: int,
        timestamp_ms: float,
        channels: int = 4,
        channel_order: str = "RGBA",
        position_ms: Optional[float] = None,
    ) -> "Frame":
        """
        Build a frame from a flat, row-major byte buffer.

        Args:
            buffer: bytes-like object or uint8 array of width * height * channels
            width: Frame width in pixels
            height: Frame height in pixels
            timestamp_ms: Capture timestamp in milliseconds
            channels: Bytes per pixel
            channel_order: Channel layout of each pixel
            position_ms: Optional media position

        Raises:
            InvalidFrame: If the buffer size does not match the dimensions
        """
        flat = np.frombuffer(buffer, dtype=np.uint8) if not isinstance(buffer, np.ndarray) else buffer.ravel()
        expected = width * height * channels
        if width < 0 or height < 0 or flat.size != expected:
            raise InvalidFrame(
                f"Buffer of {flat.size} bytes does not match {width}x{height}x{channels}"
            )
        pixels = flat.reshape(height, width, channels)
        return cls(
            pixels=pixels,
            timestamp_ms=timestamp_ms,
            position_ms=position_ms,
            channel_order=channel_order,
        )


@dataclass(frozen=True)
class FrameMetrics:
    """Compact numeric summary of one frame."""
    luminance: float = 0.0
    red_saturation_ratio: float = 0.0
    timestamp_ms: float = 0.0

    def to_dict(self) -> dict:
        return {
            "Luminance": self.luminance,
            "RedSaturationRatio": self.red_saturation_ratio,
            "TimeStamp": ms_to_timespan(self.timestamp_ms),
        }
