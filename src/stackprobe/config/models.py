"""Configuration data models for stackprobe.

Defines typed configuration classes that represent .stackprobe.yml structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

# Conflict resolution strategies
CONFLICT_STRATEGY_CONFIDENCE = "confidence"
CONFLICT_STRATEGY_DECLARATION = "declaration"
VALID_CONFLICT_STRATEGIES = {CONFLICT_STRATEGY_CONFIDENCE, CONFLICT_STRATEGY_DECLARATION}

# Compose file parsers
COMPOSE_PARSER_LENIENT = "lenient"
COMPOSE_PARSER_YAML = "yaml"
VALID_COMPOSE_PARSERS = {COMPOSE_PARSER_LENIENT, COMPOSE_PARSER_YAML}

VALID_OUTPUT_FORMATS = {"json", "summary"}

# Directories never searched by file globs
DEFAULT_EXCLUDED_DIRS: List[str] = ["node_modules", "vendor", "dist", "build", ".git"]


@dataclass
class LimitsConfig:
    """Static bounds on filesystem probing.

    Every glob and content scan is bounded by these values, so detection
    cost stays proportional to them rather than to repository size.
    """

    max_files: int = 100  # Max matches returned by a single glob
    max_depth: int = 5  # Max directory depth walked below the root
    sample_files: int = 3  # Files read for framework code/import patterns
    test_sample_files: int = 2  # Files read for test framework code patterns
    test_file_matches: int = 5  # Max matches per test file glob


@dataclass
class ConflictsConfig:
    """Mutual exclusion handling."""

    strategy: str = CONFLICT_STRATEGY_CONFIDENCE


@dataclass
class ComposeConfig:
    """Docker compose scanning."""

    parser: str = COMPOSE_PARSER_LENIENT


@dataclass
class OutputConfig:
    """Output formatting configuration."""

    format: str = "json"


@dataclass
class StackProbeConfig:
    """Complete stackprobe configuration."""

    limits: LimitsConfig = field(default_factory=LimitsConfig)

    # Extra directory names excluded from globs, on top of DEFAULT_EXCLUDED_DIRS
    exclude: List[str] = field(default_factory=list)

    # Concurrent detector evaluations per category
    max_workers: int = 4

    conflicts: ConflictsConfig = field(default_factory=ConflictsConfig)
    compose: ComposeConfig = field(default_factory=ComposeConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    # Track config sources for debugging
    _config_sources: List[str] = field(default_factory=list, repr=False)

    @property
    def excluded_dirs(self) -> List[str]:
        """All directory names excluded from file searches."""
        excluded = list(DEFAULT_EXCLUDED_DIRS)
        for name in self.exclude:
            if name not in excluded:
                excluded.append(name)
        return excluded
