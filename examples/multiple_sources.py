#!/usr/bin/env python3
"""Monitor several videos at once with a session registry."""

import sys

from flash_guardian import Configuration, SessionRegistry, StatisticsAggregator
from flash_guardian.video_monitor import VideoMonitor


def progress_callback(progress: float) -> None:
    """Print progress bar."""
    bar_length = 40
    filled = int(bar_length * progress / 100)
    bar = "=" * filled + "-" * (bar_length - filled)
    sys.stdout.write(f"\rProgress: [{bar}] {progress:.1f}%")
    sys.stdout.flush()
    if progress >= 100:
        print()


def main():
    config = Configuration()
    stats = StatisticsAggregator()

    registry = SessionRegistry(
        config,
        statistics=stats,
        on_warning=lambda w: print(f"\n[{w.source_id}] {w.warning.describe()}"),
    )
    # Sessions are attached when a player discovers a video and detached on teardown
    registry.attach("tab-1/video-0")
    registry.attach("tab-2/video-0")
    print(f"Monitoring {len(registry)} sources")
    registry.detach("tab-2/video-0")

    # Or play a file straight through one session
    result = VideoMonitor(config).monitor_video("your_video.mp4", progress_callback=progress_callback)
    if result.warning is not None:
        stats.record_warning(result.warning)

    print(stats.to_dict())


if __name__ == "__main__":
    main()
