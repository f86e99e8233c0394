"""Logging helpers for stackprobe.

All modules obtain their logger via ``get_logger(__name__)`` so that output
is namespaced under ``stackprobe`` and can be configured once from the CLI.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

ROOT_LOGGER_NAME = "stackprobe"
LOG_FORMAT = "%(levelname)s [%(name)s] %(message)s"

_configured = False


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger namespaced under the stackprobe root logger.

    Args:
        name: Module name, usually ``__name__``.

    Returns:
        Logger instance.
    """
    if not name or name == ROOT_LOGGER_NAME:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def configure_logging(
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
) -> None:
    """Configure the stackprobe root logger.

    Precedence: debug > verbose > quiet > default (warnings).

    Args:
        debug: Enable debug-level output.
        verbose: Enable info-level output.
        quiet: Only emit errors.
    """
    global _configured

    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)

    if not _configured:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        root.propagate = False
        _configured = True
