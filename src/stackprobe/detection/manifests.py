"""Dependency manifest parsing.

Parses the Node package descriptor (package.json) and Python dependency
descriptors (pyproject.toml, requirements files).

Python descriptors are parsed in a lenient, regex-based mode: malformed or
partial files still yield whatever package names can be recognized instead
of failing outright. The parser sits behind ``PythonDescriptorParser`` so a
structured implementation can replace it without touching detectors.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Protocol, Set

PACKAGE_JSON = "package.json"
PYPROJECT_TOML = "pyproject.toml"
REQUIREMENTS_FILES = [
    "requirements.txt",
    "requirements-dev.txt",
    "requirements_dev.txt",
    "dev-requirements.txt",
]

# Section header line, e.g. [project] or [tool.poetry.dependencies]
_SECTION_HEADER = re.compile(r"^\s*\[\[?([^\[\]\n\"']+)\]\]?\s*$", re.MULTILINE)

# Leading distribution name of a PEP 508 requirement string
_REQUIREMENT_NAME = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")

# Poetry style `name = ...` keys
_POETRY_KEY = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)\s*=", re.MULTILINE)

# Quoted strings inside an array body
_QUOTED = re.compile(r"\"([^\"\n]*)\"|'([^'\n]*)'")

# Inline tables such as {include-group = "dev"}
_INLINE_TABLE = re.compile(r"\{[^{}]*\}")

_EGG_FRAGMENT = re.compile(r"#egg=([A-Za-z0-9][A-Za-z0-9._-]*)")


@dataclass(frozen=True)
class PackageManifest:
    """Relevant parts of a Node package descriptor."""

    dependencies: Dict[str, str] = field(default_factory=dict)
    dev_dependencies: Dict[str, str] = field(default_factory=dict)
    scripts: Dict[str, str] = field(default_factory=dict)
    keys: FrozenSet[str] = frozenset()

    @property
    def has_bin(self) -> bool:
        """Whether the package declares an executable entry point."""
        return "bin" in self.keys

    @property
    def has_main(self) -> bool:
        """Whether the package declares a library entry point."""
        return "main" in self.keys

    def all_dependency_names(self) -> List[str]:
        """Runtime then dev dependency names, without duplicates."""
        names = list(self.dependencies)
        names.extend(name for name in self.dev_dependencies if name not in self.dependencies)
        return names


def parse_package_json(content: str) -> PackageManifest:
    """Parse package.json content.

    Raises:
        ValueError: If the content is not valid JSON or not an object.
    """
    data = json.loads(content)
    if not isinstance(data, dict):
        raise ValueError(f"package.json must be an object, got {type(data).__name__}")

    return PackageManifest(
        dependencies=_string_map(data.get("dependencies")),
        dev_dependencies=_string_map(data.get("devDependencies")),
        scripts=_string_map(data.get("scripts")),
        keys=frozenset(key for key, value in data.items() if value),
    )


def _string_map(value: Any) -> Dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(k): str(v) for k, v in value.items()}


def normalize_package_name(name: str) -> str:
    """Normalize a Python distribution name (lowercase, ``_`` and ``.`` to ``-``)."""
    return re.sub(r"[-_.]+", "-", name).lower()


def requirement_name(spec: str) -> Optional[str]:
    """Extract the distribution name from a requirement string.

    Version specifiers, extras and environment markers are stripped:
    ``fastapi[all]==0.104.1 ; python_version >= "3.8"`` gives ``fastapi``.
    """
    match = _REQUIREMENT_NAME.match(spec)
    if not match:
        return None
    name = normalize_package_name(match.group(1))
    if name == "python":
        return None
    return name


class PythonDescriptorParser(Protocol):
    """Extracts dependency names from Python descriptor files."""

    def parse_pyproject(self, content: str) -> Set[str]:
        ...

    def parse_requirements(self, content: str) -> Set[str]:
        ...


class LenientPythonDescriptorParser:
    """Best-effort, regex-based Python descriptor parser."""

    def parse_pyproject(self, content: str) -> Set[str]:
        return parse_pyproject_deps(content)

    def parse_requirements(self, content: str) -> Set[str]:
        return parse_requirements_txt(content)


def parse_pyproject_deps(content: str) -> Set[str]:
    """Parse dependency names from pyproject.toml content.

    Covers ``[project]`` dependencies, ``[project.optional-dependencies]``,
    ``[dependency-groups]``, ``[tool.uv]`` dev-dependencies and Poetry
    dependency tables.

    Args:
        content: pyproject.toml file content.

    Returns:
        Set of normalized package names.
    """
    deps: Set[str] = set()

    for section, body in _iter_sections(content):
        if section == "project":
            deps.update(_array_requirements(body, "dependencies"))
        elif section == "project.optional-dependencies" or section == "dependency-groups":
            deps.update(_all_array_requirements(body))
        elif section == "tool.uv":
            deps.update(_array_requirements(body, "dev-dependencies"))
        elif section.startswith("tool.poetry") and section.endswith("dependencies"):
            for key in _POETRY_KEY.findall(body):
                name = requirement_name(key)
                if name:
                    deps.add(name)

    return deps


def parse_requirements_txt(content: str) -> Set[str]:
    """Parse package names from requirements.txt content.

    Args:
        content: requirements.txt file content.

    Returns:
        Set of normalized package names.
    """
    deps: Set[str] = set()

    for line in content.splitlines():
        line = line.split(" #", 1)[0].strip()
        # Skip comments, empty lines and pip options (-r, -e, --index-url)
        if not line or line.startswith("#"):
            continue
        if line.startswith("-") or "://" in line:
            egg = _EGG_FRAGMENT.search(line)
            if egg:
                deps.add(normalize_package_name(egg.group(1)))
            continue

        name = requirement_name(line)
        if name:
            deps.add(name)

    return deps


def _iter_sections(content: str):
    """Yield (section name, section body) pairs of a TOML document."""
    headers = list(_SECTION_HEADER.finditer(content))
    for index, header in enumerate(headers):
        end = headers[index + 1].start() if index + 1 < len(headers) else len(content)
        yield header.group(1).strip(), content[header.end():end]


def _array_requirements(body: str, key: str) -> Set[str]:
    match = re.search(rf"^\s*{re.escape(key)}\s*=\s*\[", body, re.MULTILINE)
    if not match:
        return set()
    return _requirements_in_array(_array_body(body, match.end()))


def _all_array_requirements(body: str) -> Set[str]:
    deps: Set[str] = set()
    for match in re.finditer(r"^\s*[\w.-]+\s*=\s*\[", body, re.MULTILINE):
        deps.update(_requirements_in_array(_array_body(body, match.end())))
    return deps


def _array_body(text: str, start: int) -> str:
    """Return text from ``start`` up to the closing bracket of the array.

    Brackets inside quoted strings (extras such as ``uvicorn[standard]``)
    do not close the array. Comments are dropped, so quotes or brackets
    inside them are ignored. An unterminated array runs to the end of text.
    """
    depth = 1
    quote: Optional[str] = None
    in_comment = False
    kept: List[str] = []
    for index in range(start, len(text)):
        char = text[index]
        if in_comment:
            if char == "\n":
                in_comment = False
                kept.append(char)
            continue
        if quote:
            if char == quote and not (quote == '"' and _escaped(text, index)):
                quote = None
        elif char == "#":
            in_comment = True
            continue
        elif char in ("'", '"'):
            quote = char
        elif char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return "".join(kept)
        kept.append(char)
    return "".join(kept)


def _escaped(text: str, index: int) -> bool:
    backslashes = 0
    while index - backslashes - 1 >= 0 and text[index - backslashes - 1] == "\\":
        backslashes += 1
    return backslashes % 2 == 1


def _requirements_in_array(array_body: str) -> Set[str]:
    deps: Set[str] = set()
    for double, single in _QUOTED.findall(_INLINE_TABLE.sub("", array_body)):
        name = requirement_name(double or single)
        if name:
            deps.add(name)
    return deps
