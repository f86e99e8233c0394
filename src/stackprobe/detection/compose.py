"""Docker compose file scanning.

Detectors only need a yes/no answer per known service name, so the default
``LenientComposeScanner`` performs an approximate substring scan instead of
a structured parse. ``YamlComposeScanner`` parses the document with PyYAML
and falls back to the lenient scan when the file is not valid YAML.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Protocol, Sequence

import yaml

from stackprobe.config.models import COMPOSE_PARSER_YAML
from stackprobe.core.logging import get_logger

LOGGER = get_logger(__name__)

# Locations searched for compose files, relative to the project root
COMPOSE_FILES = [
    "docker-compose.yml",
    "docker-compose.yaml",
    "compose.yml",
    "compose.yaml",
    "docker/docker-compose.yml",
    "docker/docker-compose.yaml",
]

_KEY_LINE = re.compile(r"^(\s*)([\w.-]+):\s*$")


class ComposeScanner(Protocol):
    """Answers service questions about compose file content."""

    def find_services(self, content: str, names: Sequence[str]) -> List[str]:
        """Return the subset of ``names`` the compose file mentions."""
        ...

    def count_services(self, content: str) -> int:
        """Return the number of services declared."""
        ...


class LenientComposeScanner:
    """Substring-based scanner (degraded, structure-agnostic mode)."""

    def find_services(self, content: str, names: Sequence[str]) -> List[str]:
        return [
            name
            for name in names
            if f"{name}:" in content or f"image: {name}" in content
        ]

    def count_services(self, content: str) -> int:
        lines = content.splitlines()

        # Locate a top-level `services:` block (compose v2+)
        for index, line in enumerate(lines):
            if re.match(r"^services:\s*$", line):
                return self._count_block_keys(lines[index + 1:])

        # Version 1 files declare services at the top level
        return sum(1 for line in lines if re.match(r"^[\w.-]+:\s*$", line))

    @staticmethod
    def _count_block_keys(lines: List[str]) -> int:
        indent = None
        count = 0
        for line in lines:
            if not line.strip() or line.lstrip().startswith("#"):
                continue
            if not line[0].isspace():
                break
            match = _KEY_LINE.match(line)
            if not match:
                continue
            if indent is None:
                indent = len(match.group(1))
            if len(match.group(1)) == indent:
                count += 1
        return count


class YamlComposeScanner:
    """Structured scanner built on PyYAML."""

    def __init__(self) -> None:
        self._fallback = LenientComposeScanner()

    def find_services(self, content: str, names: Sequence[str]) -> List[str]:
        try:
            services = self._services(content)
        except yaml.YAMLError as e:
            LOGGER.debug(f"Compose file is not valid YAML, using lenient scan: {e}")
            return self._fallback.find_services(content, names)

        images = {self._image_name(spec) for spec in services.values()}
        return [name for name in names if name in services or name in images]

    def count_services(self, content: str) -> int:
        try:
            return len(self._services(content))
        except yaml.YAMLError as e:
            LOGGER.debug(f"Compose file is not valid YAML, using lenient count: {e}")
            return self._fallback.count_services(content)

    @staticmethod
    def _services(content: str) -> Dict[str, Any]:
        data = yaml.safe_load(content)
        if not isinstance(data, dict):
            return {}
        services = data.get("services", data)
        if not isinstance(services, dict):
            return {}
        return {str(key): value for key, value in services.items() if isinstance(value, dict)}

    @staticmethod
    def _image_name(service: Dict[str, Any]) -> str:
        image = str(service.get("image", ""))
        # bitnami/redis:7.2 -> redis
        return image.rsplit("/", 1)[-1].split(":", 1)[0].split("@", 1)[0]


def get_compose_scanner(parser: str) -> ComposeScanner:
    """Return the scanner for a configured parser name."""
    if parser == COMPOSE_PARSER_YAML:
        return YamlComposeScanner()
    return LenientComposeScanner()
