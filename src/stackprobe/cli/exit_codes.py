"""Exit codes for the stackprobe CLI.

- 0: Success
- 2: Detection error (unexpected failure outside detection itself)
- 3: Invalid usage (bad arguments, missing path, invalid config)
"""

from __future__ import annotations

EXIT_SUCCESS = 0
EXIT_DETECTION_ERROR = 2
EXIT_INVALID_USAGE = 3
