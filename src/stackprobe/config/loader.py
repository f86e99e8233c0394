"""Configuration file loading and merging.

Handles loading configuration from YAML files with:
- Project-level config (.stackprobe.yml)
- An explicit config file (--config)
- Environment variable expansion (${VAR})
- CLI overrides merged on top
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import yaml

from stackprobe.config.models import (
    ComposeConfig,
    ConflictsConfig,
    LimitsConfig,
    OutputConfig,
    StackProbeConfig,
    VALID_COMPOSE_PARSERS,
    VALID_CONFLICT_STRATEGIES,
    VALID_OUTPUT_FORMATS,
)
from stackprobe.config.validation import validate_config
from stackprobe.core.logging import get_logger

LOGGER = get_logger(__name__)

# Config file names
PROJECT_CONFIG_NAMES = [".stackprobe.yml", ".stackprobe.yaml", "stackprobe.yml", "stackprobe.yaml"]

# Environment variable pattern: ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


class ConfigError(Exception):
    """Configuration loading or parsing error."""

    pass


def load_config(
    project_root: Path,
    cli_config_path: Optional[Path] = None,
    cli_overrides: Optional[Dict[str, Any]] = None,
) -> StackProbeConfig:
    """Load configuration with proper precedence.

    Precedence (highest to lowest):
    1. CLI flags (cli_overrides)
    2. Custom config file (cli_config_path) OR project config (.stackprobe.yml)
    3. Built-in defaults

    Args:
        project_root: Project root directory for finding .stackprobe.yml.
        cli_config_path: Optional path to custom config file (--config flag).
        cli_overrides: Dict of CLI flag overrides.

    Returns:
        Merged StackProbeConfig instance.

    Raises:
        ConfigError: If specified config file doesn't exist or has parse errors.
    """
    sources: List[str] = []
    merged: Dict[str, Any] = {}

    if cli_config_path:
        if not cli_config_path.exists():
            raise ConfigError(f"Config file not found: {cli_config_path}")
        config_path: Optional[Path] = cli_config_path
        label = "custom"
    else:
        config_path = find_project_config(project_root)
        label = "project"

    if config_path is not None:
        try:
            file_dict = load_yaml_file(config_path)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
        validate_config(file_dict, source=str(config_path))
        merged = merge_configs(merged, file_dict)
        sources.append(f"{label}:{config_path}")
        LOGGER.debug(f"Loaded {label} config from {config_path}")

    if cli_overrides:
        merged = merge_configs(merged, cli_overrides)
        sources.append("cli")
        LOGGER.debug("Applied CLI overrides")

    config = dict_to_config(merged)
    config._config_sources = sources

    LOGGER.debug(f"Config loaded from sources: {sources}")
    return config


def find_project_config(project_root: Path) -> Optional[Path]:
    """Find config file in project root.

    Args:
        project_root: Directory to search in.

    Returns:
        Path to config file if found, None otherwise.
    """
    for name in PROJECT_CONFIG_NAMES:
        config_path = project_root / name
        if config_path.is_file():
            return config_path
    return None


def load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML config file.

    Performs environment variable expansion on string values.

    Args:
        path: Path to YAML file.

    Returns:
        Parsed dictionary.

    Raises:
        yaml.YAMLError: If YAML parsing fails.
        ConfigError: If the file cannot be read or the document is not a mapping.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    data = yaml.safe_load(content)

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ConfigError(f"Config file must be a YAML mapping, got {type(data).__name__}")

    return expand_env_vars(data)


def expand_env_vars(data: Any) -> Any:
    """Recursively expand environment variables in config values.

    Supports ${VAR} and ${VAR:-default} syntax.
    """
    if isinstance(data, dict):
        return {k: expand_env_vars(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        return ENV_VAR_PATTERN.sub(_env_var_replacer, data)
    else:
        return data


def _env_var_replacer(match: re.Match[str]) -> str:
    """Replace environment variable reference with its value."""
    var_name = match.group(1)
    default_value = match.group(2)

    value = os.environ.get(var_name)
    if value is not None:
        return value
    if default_value is not None:
        return default_value

    LOGGER.warning(f"Environment variable ${var_name} is not set and has no default")
    return ""


def merge_configs(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two config dicts, with overlay taking precedence.

    Scalars and lists in the overlay replace the base; dicts merge recursively.
    """
    result = base.copy()

    for key, overlay_value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(overlay_value, dict):
            result[key] = merge_configs(result[key], overlay_value)
        else:
            result[key] = overlay_value

    return result


def dict_to_config(data: Dict[str, Any]) -> StackProbeConfig:
    """Convert a validated dict to a typed StackProbeConfig.

    Values of the wrong type were already reported by validation and fall
    back to defaults here.
    """
    defaults = StackProbeConfig()

    limits_data = _section(data, "limits")
    default_limits = LimitsConfig()
    limits = LimitsConfig(
        max_files=_positive_int(limits_data.get("max_files"), default_limits.max_files),
        max_depth=_positive_int(limits_data.get("max_depth"), default_limits.max_depth),
        sample_files=_positive_int(limits_data.get("sample_files"), default_limits.sample_files),
        test_sample_files=_positive_int(
            limits_data.get("test_sample_files"), default_limits.test_sample_files
        ),
        test_file_matches=_positive_int(
            limits_data.get("test_file_matches"), default_limits.test_file_matches
        ),
    )

    exclude = data.get("exclude", [])
    if not isinstance(exclude, list):
        exclude = []

    return StackProbeConfig(
        limits=limits,
        exclude=[str(name) for name in exclude],
        max_workers=_positive_int(data.get("max_workers"), defaults.max_workers),
        conflicts=ConflictsConfig(
            strategy=_choice(
                _section(data, "conflicts").get("strategy"),
                VALID_CONFLICT_STRATEGIES,
                defaults.conflicts.strategy,
            ),
        ),
        compose=ComposeConfig(
            parser=_choice(
                _section(data, "compose").get("parser"),
                VALID_COMPOSE_PARSERS,
                defaults.compose.parser,
            ),
        ),
        output=OutputConfig(
            format=_choice(
                _section(data, "output").get("format"),
                VALID_OUTPUT_FORMATS,
                defaults.output.format,
            ),
        ),
    )


def get_default_config() -> StackProbeConfig:
    """Get default configuration."""
    return StackProbeConfig()


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key, {})
    return value if isinstance(value, dict) else {}


def _positive_int(value: Any, default: int) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    return default


def _choice(value: Any, valid: Set[str], default: str) -> str:
    return value if isinstance(value, str) and value in valid else default
