"""Argument parser for the stackprobe CLI."""

from __future__ import annotations

import argparse
from pathlib import Path

from stackprobe.config.models import VALID_OUTPUT_FORMATS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stackprobe",
        description="stackprobe - Static technology stack detection.",
    )

    # Global options
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show stackprobe version and exit.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (info-level) logging.",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Reduce logging output to errors only.",
    )
    parser.add_argument(
        "--format",
        choices=sorted(VALID_OUTPUT_FORMATS),
        default=None,
        help="Output format (default: json, or as specified in config file).",
    )

    # Target path
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Project directory to analyze (default: current directory).",
    )

    # Configuration
    parser.add_argument(
        "--config",
        metavar="PATH",
        type=Path,
        help="Path to config file (default: .stackprobe.yml in project root).",
    )

    return parser
