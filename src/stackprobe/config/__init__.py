"""Configuration module for stackprobe.

Provides configuration file loading, parsing, and validation with support for:
- Project-level config (.stackprobe.yml)
- Environment variable expansion
- CLI overrides
"""

from stackprobe.config.models import (
    StackProbeConfig,
    LimitsConfig,
    ConflictsConfig,
    ComposeConfig,
    OutputConfig,
)
from stackprobe.config.loader import ConfigError, load_config, find_project_config
from stackprobe.config.validation import validate_config, ConfigValidationWarning

__all__ = [
    "StackProbeConfig",
    "LimitsConfig",
    "ConflictsConfig",
    "ComposeConfig",
    "OutputConfig",
    "ConfigError",
    "load_config",
    "find_project_config",
    "validate_config",
    "ConfigValidationWarning",
]
