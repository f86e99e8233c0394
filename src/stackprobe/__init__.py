"""stackprobe - static technology stack detection."""

from __future__ import annotations

from stackprobe.detection import StackDetector, StackResult, detect, detect_sync

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "StackDetector",
    "StackResult",
    "detect",
    "detect_sync",
]
