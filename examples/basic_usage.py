#!/usr/bin/env python3
"""Basic usage example for Flash Guardian."""

import numpy as np

from flash_guardian import Configuration, DetectionSession, Frame
from flash_guardian.result import FlashKind


def main():
    # Create configuration (uses defaults)
    config = Configuration()

    # Or customize configuration
    # config = Configuration(frame_stride=1, warmup_frames=5)

    def on_warning(warning):
        # A real player would pause playback here and offer continue/stop
        label = "red" if warning.kind == FlashKind.Red else "general"
        print(f"Halting playback: {warning.flashes_in_window} {label} flashes "
              f"at {warning.position_ms / 1000:.1f}s")

    session = DetectionSession(config, sink=on_warning)
    session.start()

    # Simulated 30 fps playback flashing white/grey every frame
    white = np.full((360, 640, 3), 255, dtype=np.uint8)
    grey = np.full((360, 640, 3), 90, dtype=np.uint8)
    for i in range(120):
        frame = Frame(pixels=white if i % 2 == 0 else grey, timestamp_ms=i * 1000 / 30)
        if session.on_frame(frame) is not None:
            break

    print(f"Analyzed frames: {session.analyzed_frame_count}")
    print(f"Total flashes: {session.total_flash_count}")

    # User chose "continue anyway"
    session.dismiss_warning()


if __name__ == "__main__":
    main()
