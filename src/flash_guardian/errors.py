# Copyright (c) 2026 flash_guardian contributors
# SPDX-License-Identifier: MIT

"""Exception types for flash detection."""


class FlashGuardianError(Exception):
    """Base class for all flash_guardian errors."""


class ConfigurationError(FlashGuardianError):
    """A configuration value is outside its accepted range."""


class InvalidFrame(FlashGuardianError):
    """A frame is zero-area or its pixel buffer is malformed."""


class AnalysisFailure(FlashGuardianError):
    """Unexpected fault while extracting metrics or classifying a frame."""

    def __init__(self, message: str, timestamp_ms: float = 0.0):
        super().__init__(message)
        self.timestamp_ms = timestamp_ms
