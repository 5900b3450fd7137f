# Copyright (c) 2026 flash_guardian contributors
# SPDX-License-Identifier: MIT

"""Configuration for flash detection."""

import json
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from flash_guardian.errors import ConfigurationError


# Encoded channel values at or below this are in the linear segment of the sRGB curve
SRGB_LINEAR_CUTOFF = 0.03928


def srgb_to_linear_table(cutoff: float = SRGB_LINEAR_CUTOFF) -> np.ndarray:
    """
    Build the 256-entry lookup table from 8-bit sRGB to linear light.

    Args:
        cutoff: Encoded value below which the linear segment applies

    Returns:
        float32 array of 256 values in [0, 1]
    """
    c = np.arange(256, dtype=np.float64) / 255.0
    linear = np.where(c <= cutoff, c / 12.92, ((c + 0.055) / 1.055) ** 2.4)
    return linear.astype(np.float32)


@dataclass
class ClassifierParams:
    """Parameters for flash classification."""
    luminance_relative_threshold: float = 0.10
    luminance_absolute_min: float = 0.05
    min_brightness: float = 0.05
    red_delta_threshold: float = 0.80
    window_ms: float = 1000.0


@dataclass
class SamplingParams:
    """Parameters for per-frame metric extraction."""
    max_analysis_width: int = 640
    max_analysis_height: int = 360
    pixel_sample_stride: int = 4
    red_min: int = 200
    green_max: int = 100
    blue_max: int = 100


@dataclass
class SessionParams:
    """Parameters for the detection session state machine."""
    flash_frequency_threshold: int = 3
    warmup_frames: int = 10
    frame_stride: int = 3


@dataclass
class Configuration:
    """Configuration for a flash detection session."""

    # Luminance flash parameters
    luminance_relative_threshold: float = 0.10
    luminance_absolute_min: float = 0.05
    min_brightness: float = 0.05

    # Red saturation parameters
    red_delta_threshold: float = 0.80
    red_min: int = 200
    green_max: int = 100
    blue_max: int = 100

    # Detection window and session policy
    flash_frequency_threshold: int = 3
    window_ms: float = 1000.0
    warmup_frames: int = 10
    frame_stride: int = 3

    # Sampling
    max_analysis_width: int = 640
    max_analysis_height: int = 360
    pixel_sample_stride: int = 4

    # sRGB lookup table
    srgb_values: np.ndarray = field(default_factory=srgb_to_linear_table)

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Raise ConfigurationError if any value is out of range."""
        for name in (
            "luminance_relative_threshold",
            "luminance_absolute_min",
            "min_brightness",
            "red_delta_threshold",
        ):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be within [0, 1], got {value}")

        for name in (
            "flash_frequency_threshold",
            "frame_stride",
            "max_analysis_width",
            "max_analysis_height",
            "pixel_sample_stride",
        ):
            value = getattr(self, name)
            if int(value) < 1:
                raise ConfigurationError(f"{name} must be at least 1, got {value}")

        if self.window_ms <= 0:
            raise ConfigurationError(f"window_ms must be positive, got {self.window_ms}")
        if self.warmup_frames < 0:
            raise ConfigurationError(f"warmup_frames must not be negative, got {self.warmup_frames}")

        for name in ("red_min", "green_max", "blue_max"):
            value = getattr(self, name)
            if not 0 <= value <= 255:
                raise ConfigurationError(f"{name} must be an 8-bit value, got {value}")

        self.srgb_values = np.asarray(self.srgb_values, dtype=np.float32)
        if self.srgb_values.shape != (256,):
            raise ConfigurationError(
                f"srgb_values must hold 256 entries, got {self.srgb_values.size}"
            )

    @classmethod
    def from_json(cls, path: str) -> "Configuration":
        """Load configuration from appsettings.json file."""
        config_path = Path(path) / "appsettings.json"

        if not config_path.exists():
            # Return default configuration
            return cls()

        with open(config_path, "r") as f:
            # Strip single-line comments, which the settings file allows
            lines = []
            for line in f.read().split("\n"):
                comment_idx = line.find("//")
                if comment_idx >= 0:
                    line = line[:comment_idx]
                lines.append(line)
            try:
                data = json.loads("\n".join(lines))
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Could not parse {config_path}: {e}") from e

        values = {}

        if "Luminance" in data:
            lum = data["Luminance"]
            _copy(lum, "RelativeThreshold", values, "luminance_relative_threshold")
            _copy(lum, "AbsoluteMin", values, "luminance_absolute_min")
            _copy(lum, "MinBrightness", values, "min_brightness")

        if "RedSaturation" in data:
            red = data["RedSaturation"]
            _copy(red, "DeltaThreshold", values, "red_delta_threshold")
            _copy(red, "RedMin", values, "red_min")
            _copy(red, "GreenMax", values, "green_max")
            _copy(red, "BlueMax", values, "blue_max")

        if "Detection" in data:
            det = data["Detection"]
            _copy(det, "FlashFrequencyThreshold", values, "flash_frequency_threshold")
            _copy(det, "WindowMs", values, "window_ms")
            _copy(det, "WarmupFrames", values, "warmup_frames")
            _copy(det, "FrameStride", values, "frame_stride")

        if "Sampling" in data:
            smp = data["Sampling"]
            _copy(smp, "MaxAnalysisWidth", values, "max_analysis_width")
            _copy(smp, "MaxAnalysisHeight", values, "max_analysis_height")
            _copy(smp, "PixelSampleStride", values, "pixel_sample_stride")
            if "sRGBValues" in smp:
                values["srgb_values"] = np.array(smp["sRGBValues"], dtype=np.float32)

        return cls(**values)

    def get_classifier_params(self) -> ClassifierParams:
        """Get flash classifier parameters."""
        return ClassifierParams(
            luminance_relative_threshold=self.luminance_relative_threshold,
            luminance_absolute_min=self.luminance_absolute_min,
            min_brightness=self.min_brightness,
            red_delta_threshold=self.red_delta_threshold,
            window_ms=self.window_ms,
        )

    def get_sampling_params(self) -> SamplingParams:
        """Get metric extraction parameters."""
        return SamplingParams(
            max_analysis_width=self.max_analysis_width,
            max_analysis_height=self.max_analysis_height,
            pixel_sample_stride=self.pixel_sample_stride,
            red_min=self.red_min,
            green_max=self.green_max,
            blue_max=self.blue_max,
        )

    def get_session_params(self) -> SessionParams:
        """Get detection session parameters."""
        return SessionParams(
            flash_frequency_threshold=self.flash_frequency_threshold,
            warmup_frames=self.warmup_frames,
            frame_stride=self.frame_stride,
        )


def _copy(section: dict, key: str, values: dict, attr: str) -> None:
    if key in section:
        values[attr] = section[key]
