#!/usr/bin/env python3
"""Main entry point for the FM tuner application."""

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from .config import TunerConfig
from .logging_setup import setup_logging
from .ui.app import RadioApp


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="FM tuner with station presets")
    parser.add_argument(
        "--simulate",
        action="store_true",
        help="Use a simulated receiver instead of an RTL-SDR dongle",
    )
    parser.add_argument(
        "--storage",
        type=Path,
        default=None,
        help="Path of the presets file",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Directory for log files (default: ./logs)",
    )
    parser.add_argument(
        "--device-index",
        type=int,
        default=None,
        help="RTL-SDR device index",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> TunerConfig:
    config = TunerConfig(SIMULATE=args.simulate, VERBOSE=args.verbose)
    if args.storage is not None:
        config.STORAGE_PATH = args.storage
    if args.log_dir is not None:
        config.LOG_DIR = args.log_dir
    if args.device_index is not None:
        config.DEVICE_INDEX = args.device_index
    return config


def main(argv: Optional[List[str]] = None) -> None:
    """Run the FM tuner application."""
    config = build_config(parse_args(argv))
    log_file = setup_logging(config.LOG_DIR, config.VERBOSE)
    logging.info("Logging to %s", log_file)

    app = RadioApp(config)
    app.run()


if __name__ == "__main__":
    main()
