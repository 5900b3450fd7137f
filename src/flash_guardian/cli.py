# Copyright (c) 2026 flash_guardian contributors
# SPDX-License-Identifier: MIT

"""Command-line interface for flash monitoring."""

import argparse
import json
import logging
import sys
from pathlib import Path

from flash_guardian.configuration import Configuration
from flash_guardian.errors import ConfigurationError
from flash_guardian.frame import ms_to_timespan
from flash_guardian.video_monitor import VideoMonitor


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flash-guardian",
        description="Flash Guardian - halt playback on hazardous flashing",
        epilog="Detection follows the WCAG 2.1 three-flashes-per-second threshold. "
               "It is not a certification of compliance.",
    )

    parser.add_argument(
        "video",
        help="Path to video file, or capture device index",
    )

    parser.add_argument(
        "-c", "--config",
        help="Path to directory containing appsettings.json",
        default=".",
    )

    parser.add_argument(
        "-j", "--json",
        help="Write the monitor result to this JSON file",
        default=None,
    )

    parser.add_argument(
        "--max-frames",
        type=int,
        help="Stop after this many frames",
        default=None,
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    return parser


def main(argv=None):
    """Main entry point for the flash-guardian CLI."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    source = int(args.video) if args.video.isdigit() else args.video
    if isinstance(source, str) and not Path(source).exists():
        print(f"Error: Video file not found: {args.video}")
        sys.exit(3)

    try:
        config = Configuration.from_json(args.config)
    except ConfigurationError as e:
        print(f"Error: {e}")
        sys.exit(3)

    monitor = VideoMonitor(config)

    try:
        result = monitor.monitor_video(source, max_frames=args.max_frames)
    except Exception as e:
        print(f"Error during monitoring: {e}")
        sys.exit(3)

    print("\n" + "=" * 50)
    print("MONITOR SUMMARY")
    print("=" * 50)
    print(f"Frames Fed: {result.frames_fed}")
    print(f"Frames Analyzed: {result.frames_analyzed}")
    print(f"Elapsed Time: {result.elapsed_ms} ms")

    if result.warning is not None:
        warning = result.warning
        print(f"\nPhotosensitive Warning: {warning.describe()}")
        print(f"Max flashes/window: {warning.max_flashes_per_window}")
        print(f"Total flashes: {warning.total_flash_count}")
        print(f"Position: {ms_to_timespan(warning.position_ms)}")
    else:
        print("\nNo hazardous flashing detected")

    if args.json:
        with open(args.json, "w") as f:
            json.dump(result.to_dict(), f, indent=2)
        print(f"Result Json written to {args.json}")

    sys.exit(1 if result.halted else 0)


if __name__ == "__main__":
    main()
