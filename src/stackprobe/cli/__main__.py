"""Allow ``python -m stackprobe.cli``."""

from stackprobe.cli import main

raise SystemExit(main())
