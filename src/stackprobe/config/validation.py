"""Configuration validation for stackprobe.

Validates configuration keys and value types and warns on anything unknown.
Validation never raises; problems are reported as warnings.
"""

from __future__ import annotations

from dataclasses import dataclass
from difflib import get_close_matches
from typing import Any, Dict, List, Optional, Set

from stackprobe.config.models import (
    VALID_COMPOSE_PARSERS,
    VALID_CONFLICT_STRATEGIES,
    VALID_OUTPUT_FORMATS,
)
from stackprobe.core.logging import get_logger

LOGGER = get_logger(__name__)

# Valid top-level keys
VALID_TOP_LEVEL_KEYS: Set[str] = {
    "limits",
    "exclude",
    "max_workers",
    "conflicts",
    "compose",
    "output",
}

VALID_LIMIT_KEYS: Set[str] = {
    "max_files",
    "max_depth",
    "sample_files",
    "test_sample_files",
    "test_file_matches",
}

VALID_CONFLICTS_KEYS: Set[str] = {"strategy"}
VALID_COMPOSE_KEYS: Set[str] = {"parser"}
VALID_OUTPUT_KEYS: Set[str] = {"format"}


@dataclass
class ConfigValidationWarning:
    """A validation warning for configuration."""

    message: str
    source: str
    key: Optional[str] = None
    suggestion: Optional[str] = None


def validate_config(
    data: Dict[str, Any],
    source: str,
) -> List[ConfigValidationWarning]:
    """Validate configuration dictionary.

    Args:
        data: Config dictionary to validate.
        source: Source file path for warning messages.

    Returns:
        List of validation warnings.
    """
    warnings: List[ConfigValidationWarning] = []

    if not isinstance(data, dict):
        warnings.append(ConfigValidationWarning(
            message=f"Config must be a mapping, got {type(data).__name__}",
            source=source,
        ))
        return warnings

    for key in data.keys():
        if key not in VALID_TOP_LEVEL_KEYS:
            _warn_unknown(warnings, key, key, VALID_TOP_LEVEL_KEYS, source, "top-level key")

    limits = data.get("limits")
    if limits is not None:
        if _check_mapping(warnings, "limits", limits, source):
            for key, value in limits.items():
                if key not in VALID_LIMIT_KEYS:
                    _warn_unknown(warnings, key, f"limits.{key}", VALID_LIMIT_KEYS, source, "key")
                elif not _is_positive_int(value):
                    warnings.append(ConfigValidationWarning(
                        message=f"'limits.{key}' must be a positive integer",
                        source=source,
                        key=f"limits.{key}",
                    ))

    exclude = data.get("exclude")
    if exclude is not None and not isinstance(exclude, list):
        warnings.append(ConfigValidationWarning(
            message=f"'exclude' must be a list, got {type(exclude).__name__}",
            source=source,
            key="exclude",
        ))

    max_workers = data.get("max_workers")
    if max_workers is not None and not _is_positive_int(max_workers):
        warnings.append(ConfigValidationWarning(
            message="'max_workers' must be a positive integer",
            source=source,
            key="max_workers",
        ))

    _validate_choice_section(
        warnings, data, "conflicts", "strategy",
        VALID_CONFLICTS_KEYS, VALID_CONFLICT_STRATEGIES, source,
    )
    _validate_choice_section(
        warnings, data, "compose", "parser",
        VALID_COMPOSE_KEYS, VALID_COMPOSE_PARSERS, source,
    )
    _validate_choice_section(
        warnings, data, "output", "format",
        VALID_OUTPUT_KEYS, VALID_OUTPUT_FORMATS, source,
    )

    return warnings


def _validate_choice_section(
    warnings: List[ConfigValidationWarning],
    data: Dict[str, Any],
    section: str,
    choice_key: str,
    valid_keys: Set[str],
    valid_values: Set[str],
    source: str,
) -> None:
    """Validate a section holding a single enumerated value."""
    value = data.get(section)
    if value is None or not _check_mapping(warnings, section, value, source):
        return

    for key in value.keys():
        if key not in valid_keys:
            _warn_unknown(warnings, key, f"{section}.{key}", valid_keys, source, "key")

    choice = value.get(choice_key)
    if choice is not None and (not isinstance(choice, str) or choice not in valid_values):
        suggestion = _suggest_key(str(choice), valid_values)
        warning = ConfigValidationWarning(
            message=f"Invalid value '{choice}' for '{section}.{choice_key}'",
            source=source,
            key=f"{section}.{choice_key}",
            suggestion=suggestion,
        )
        warnings.append(warning)
        _log_warning(warning)


def _check_mapping(
    warnings: List[ConfigValidationWarning],
    key: str,
    value: Any,
    source: str,
) -> bool:
    if isinstance(value, dict):
        return True
    warnings.append(ConfigValidationWarning(
        message=f"'{key}' must be a mapping, got {type(value).__name__}",
        source=source,
        key=key,
    ))
    return False


def _warn_unknown(
    warnings: List[ConfigValidationWarning],
    key: str,
    dotted_key: str,
    valid_keys: Set[str],
    source: str,
    kind: str,
) -> None:
    warning = ConfigValidationWarning(
        message=f"Unknown {kind} '{dotted_key}'",
        source=source,
        key=dotted_key,
        suggestion=_suggest_key(key, valid_keys),
    )
    warnings.append(warning)
    _log_warning(warning)


def _is_positive_int(value: Any) -> bool:
    # bool is an int subclass
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _suggest_key(invalid_key: str, valid_keys: Set[str]) -> Optional[str]:
    """Suggest a valid key for a potential typo.

    Args:
        invalid_key: The invalid key entered.
        valid_keys: Set of valid keys.

    Returns:
        Closest matching valid key, or None if no good match.
    """
    matches = get_close_matches(invalid_key, sorted(valid_keys), n=1, cutoff=0.6)
    return matches[0] if matches else None


def _log_warning(warning: ConfigValidationWarning) -> None:
    """Log a validation warning."""
    msg = f"{warning.message} in {warning.source}"
    if warning.suggestion:
        msg += f" (did you mean '{warning.suggestion}'?)"
    LOGGER.warning(msg)
