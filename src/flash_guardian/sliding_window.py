# Copyright (c) 2026 flash_guardian contributors
# SPDX-License-Identifier: MIT

"""Time-bounded windows of flash event timestamps."""

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List, Optional


@dataclass
class SlidingWindow:
    """Flash event timestamps within the most recent ``window_ms``."""
    window_ms: float = 1000.0
    timestamps: Deque[float] = field(default_factory=deque)

    def add(self, timestamp_ms: float) -> None:
        """Record an event; timestamps arrive in non-decreasing order."""
        self.timestamps.append(timestamp_ms)

    def prune(self, now_ms: float, window_ms: Optional[float] = None) -> int:
        """
        Drop events older than ``now_ms - window_ms``.

        Args:
            now_ms: Current timestamp
            window_ms: Window length overriding the one this window was built with

        Returns:
            Number of events left in the window
        """
        if window_ms is None:
            window_ms = self.window_ms
        while self.timestamps and now_ms - self.timestamps[0] > window_ms:
            self.timestamps.popleft()  # O(1) with deque
        return len(self.timestamps)

    def clear(self) -> None:
        self.timestamps.clear()

    def snapshot(self) -> List[float]:
        return list(self.timestamps)

    def __len__(self) -> int:
        return len(self.timestamps)
