"""Output formatting for detection results."""

from __future__ import annotations

import json
from typing import IO, List

from stackprobe.detection.models import StackResult


def write_json(result: StackResult, output: IO[str]) -> None:
    """Write the result as indented JSON."""
    json.dump(result.to_dict(), output, indent=2)
    output.write("\n")


def write_summary(result: StackResult, output: IO[str]) -> None:
    """Write a short human-readable summary."""
    lines: List[str] = [
        f"Project type: {result.type}",
        f"Architecture: {result.architecture.type}",
    ]
    if result.primary:
        lines.append(f"Primary language: {result.primary}")
    if result.primary_framework:
        lines.append(f"Primary framework: {result.primary_framework}")

    sections = [
        ("Languages", result.languages),
        ("Frameworks", result.frameworks),
        ("Databases", result.databases),
        ("Testing", result.testing),
        ("Build tools", result.build_tools),
        ("Deployment", result.deployment),
        ("Package managers", result.package_managers),
        ("Patterns", result.architecture.patterns),
    ]
    for label, names in sections:
        if names:
            lines.append(f"{label}: {', '.join(_with_confidence(result, names))}")

    output.write("\n".join(lines) + "\n")


def _with_confidence(result: StackResult, names: List[str]) -> List[str]:
    formatted = []
    for name in names:
        confidence = result.confidence.get(name)
        formatted.append(f"{name} ({confidence:.2f})" if confidence is not None else name)
    return formatted


WRITERS = {
    "json": write_json,
    "summary": write_summary,
}
