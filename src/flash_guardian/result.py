# Copyright (c) 2026 flash_guardian contributors
# SPDX-License-Identifier: MIT

"""Result types and enums for flash detection."""

from dataclasses import dataclass
from enum import IntEnum


class FlashKind(IntEnum):
    """Kind of flash event."""
    General = 0
    Red = 1


class DetectionPhase(IntEnum):
    """Lifecycle phase of a detection session."""
    Idle = 0
    Warmup = 1
    Active = 2
    Warned = 3


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of comparing two consecutive frame metrics."""
    is_general_event: bool = False
    is_red_event: bool = False
    general_window_count: int = 0
    red_window_count: int = 0

    @property
    def is_event(self) -> bool:
        return self.is_general_event or self.is_red_event


@dataclass(frozen=True)
class FlashWarning:
    """Hazardous flash rate detected; emitted once per latch cycle."""
    kind: FlashKind
    flashes_in_window: int
    max_flashes_per_window: int
    total_flash_count: int
    position_ms: float

    def to_dict(self) -> dict:
        return {
            "Kind": self.kind.name,
            "FlashesInWindow": self.flashes_in_window,
            "MaxFlashesPerWindow": self.max_flashes_per_window,
            "TotalFlashCount": self.total_flash_count,
            "PositionMs": self.position_ms,
        }

    def describe(self) -> str:
        """One-line human readable summary."""
        label = "Red flash" if self.kind == FlashKind.Red else "Flash"
        return f"{label} detected: {self.flashes_in_window} flashes in window"


@dataclass(frozen=True)
class SourceWarning:
    """A FlashWarning tagged with the source that produced it."""
    source_id: str
    warning: FlashWarning

    def to_dict(self) -> dict:
        data = self.warning.to_dict()
        data["SourceId"] = self.source_id
        return data
