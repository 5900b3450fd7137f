# Copyright (c) 2026 flash_guardian contributors
# SPDX-License-Identifier: MIT

"""
Flash Guardian: real-time photosensitive flash detection.

Classifies a stream of decoded video frames and raises a one-shot
warning when either of these exceeds three flashes per second:
- General (relative luminance) flashes
- Saturated red flashes
"""

from flash_guardian.configuration import Configuration
from flash_guardian.detection_session import DetectionSession
from flash_guardian.errors import AnalysisFailure, ConfigurationError, FlashGuardianError, InvalidFrame
from flash_guardian.flash_classifier import FlashClassifier
from flash_guardian.frame import Frame, FrameMetrics
from flash_guardian.metrics import MetricExtractor
from flash_guardian.result import ClassificationResult, DetectionPhase, FlashKind, FlashWarning, SourceWarning
from flash_guardian.session_registry import SessionRegistry
from flash_guardian.statistics import StatisticsAggregator

__version__ = "1.0.0"
__all__ = [
    "AnalysisFailure",
    "ClassificationResult",
    "Configuration",
    "ConfigurationError",
    "DetectionSession",
    "DetectionPhase",
    "FlashGuardianError",
    "FlashClassifier",
    "FlashKind",
    "FlashWarning",
    "Frame",
    "FrameMetrics",
    "InvalidFrame",
    "MetricExtractor",
    "SessionRegistry",
    "SourceWarning",
    "StatisticsAggregator",
]
