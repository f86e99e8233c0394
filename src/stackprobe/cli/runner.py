"""CLI runner."""

from __future__ import annotations

import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from stackprobe.cli.arguments import build_parser
from stackprobe.cli.exit_codes import (
    EXIT_DETECTION_ERROR,
    EXIT_INVALID_USAGE,
    EXIT_SUCCESS,
)
from stackprobe.cli.output import WRITERS
from stackprobe.config import ConfigError, load_config
from stackprobe.core.logging import configure_logging, get_logger
from stackprobe.detection.detector import detect_sync

LOGGER = get_logger(__name__)


def get_version() -> str:
    try:
        return version("stackprobe")
    except PackageNotFoundError:
        # Fallback for editable installs that have not yet built metadata.
        from stackprobe import __version__

        return __version__


class CLIRunner:
    """Parses arguments, loads configuration and prints the detection result."""

    def __init__(self, stdout=None):
        self.stdout = stdout or sys.stdout

    def run(self, argv: Optional[Iterable[str]] = None) -> int:
        parser = build_parser()
        args = parser.parse_args(list(argv) if argv is not None else None)

        # Configure logging as early as possible.
        configure_logging(debug=args.debug, verbose=args.verbose, quiet=args.quiet)

        if args.version:
            print(get_version(), file=self.stdout)
            return EXIT_SUCCESS

        project_root = Path(args.path).resolve()
        if not project_root.is_dir():
            LOGGER.error(f"Not a directory: {project_root}")
            return EXIT_INVALID_USAGE

        try:
            config = load_config(
                project_root=project_root,
                cli_config_path=args.config,
                cli_overrides=self._overrides(args),
            )
        except ConfigError as e:
            LOGGER.error(str(e))
            return EXIT_INVALID_USAGE

        try:
            result = detect_sync(project_root, config)
            WRITERS[config.output.format](result, self.stdout)
        except Exception as e:
            LOGGER.error(f"Detection failed: {e}")
            if args.debug:
                import traceback
                traceback.print_exc()
            return EXIT_DETECTION_ERROR

        return EXIT_SUCCESS

    @staticmethod
    def _overrides(args) -> Dict[str, Any]:
        overrides: Dict[str, Any] = {}
        if args.format:
            overrides["output"] = {"format": args.format}
        return overrides
