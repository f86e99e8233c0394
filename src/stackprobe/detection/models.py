"""Data model for technology stack detection.

Evidence, detector specs and detections are immutable; the final
StackResult is a plain container with a JSON-friendly ``to_dict()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

# Minimum confidence for a detection to be reported
ACCEPTANCE_THRESHOLD = 0.7


class Category(str, Enum):
    """Detector categories."""

    LANGUAGE = "language"
    FRONTEND = "frontend"
    BACKEND = "backend"
    DATABASE = "database"
    TESTING = "testing"
    BUILD_TOOL = "build_tool"
    DEPLOYMENT = "deployment"


class ProjectType(str, Enum):
    """Coarse project classification."""

    UNKNOWN = "unknown"
    CLI_TOOL = "cli-tool"
    FULL_STACK = "full-stack-application"
    BACKEND_API = "backend-api"
    FRONTEND_APP = "frontend-application"
    LIBRARY = "library"


@dataclass(frozen=True)
class Requirements:
    """Evidence a detector asks the collector for.

    Every field is a literal pattern or name. The collector needs no other
    knowledge about the technology.
    """

    files: Tuple[str, ...] = ()
    """Gitignore-style file globs, matched relative to the project root."""

    configs: Tuple[str, ...] = ()
    """Config file names probed for existence at the project root."""

    config_markers: Tuple[Tuple[str, str], ...] = ()
    """(file, substring) pairs; the file counts as a config only if it contains the substring."""

    dependencies: Tuple[str, ...] = ()
    """Manifest dependency names (Node runtime deps and Python deps)."""

    dev_dependencies: Tuple[str, ...] = ()
    """Node dev dependency names."""

    related_packages: Tuple[str, ...] = ()
    """Secondary packages commonly used with the technology."""

    package_indicators: Tuple[str, ...] = ()
    """Substrings matched against every Node dependency name."""

    scripts: Tuple[str, ...] = ()
    """Package script commands; matched on their first word."""

    package_json_config: Optional[str] = None
    """Top-level package descriptor key holding tool configuration."""

    indicators: Tuple[str, ...] = ()
    """Directory indicators (trailing slash optional, may contain wildcards)."""

    directories: Tuple[str, ...] = ()
    """Conventional directories such as test roots."""

    file_indicators: Tuple[str, ...] = ()
    """Marker files probed for existence at the project root."""

    code_patterns: Tuple[str, ...] = ()
    """Substrings searched in sampled matched files."""

    imports: Tuple[str, ...] = ()
    """Import statements searched in sampled matched files."""

    docker_services: Tuple[str, ...] = ()
    """Service or image names searched in compose files."""

    env_vars: Tuple[str, ...] = ()
    """Environment variable names searched in env files."""

    connection_strings: Tuple[str, ...] = ()
    """Connection URL prefixes searched in env files."""

    sample_limit: Optional[int] = None
    """Override for the number of matched files read for code patterns."""

    match_limit: Optional[int] = None
    """Override for the number of matches returned per file glob."""


@dataclass(frozen=True)
class DetectorSpec:
    """Immutable definition of one candidate technology."""

    category: Category
    name: str
    requirements: Requirements = field(default_factory=Requirements)
    exclusive_with: FrozenSet[str] = frozenset()
    canonical: Optional[str] = None
    """Single most authoritative dependency or config proving the technology."""


@dataclass(frozen=True)
class Evidence:
    """Signals observed for a single detector invocation."""

    files: Tuple[str, ...] = ()
    configs: Tuple[str, ...] = ()
    dependencies: Tuple[str, ...] = ()
    dev_dependencies: Tuple[str, ...] = ()
    related_packages: Tuple[str, ...] = ()
    package_indicators: Tuple[str, ...] = ()
    scripts: Tuple[str, ...] = ()
    package_json_config: bool = False
    indicators: Tuple[str, ...] = ()
    directories: Tuple[str, ...] = ()
    file_indicators: Tuple[str, ...] = ()
    code_patterns: Tuple[str, ...] = ()
    imports: Tuple[str, ...] = ()
    docker_services: Tuple[str, ...] = ()
    env_vars: Tuple[str, ...] = ()
    connection_strings: Tuple[str, ...] = ()
    is_backend_only: bool = False
    is_frontend_only: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Serialize non-empty signals."""
        data: Dict[str, Any] = {}
        for key, value in self.__dict__.items():
            if isinstance(value, tuple) and value:
                data[key] = list(value)
        if self.package_json_config:
            data["package_json_config"] = True
        return data


@dataclass(frozen=True)
class Detection:
    """An accepted (or candidate) detection."""

    name: str
    confidence: float
    evidence: Evidence = field(default_factory=Evidence)


@dataclass
class Architecture:
    """Repository architecture style."""

    type: str = "standard"
    patterns: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "patterns": list(self.patterns)}


@dataclass
class StackResult:
    """Final detection output consumed by report and recommendation code.

    Every list element is a lowercase canonical technology identifier.
    """

    languages: List[str] = field(default_factory=list)
    type: str = ProjectType.UNKNOWN.value
    primary: str = ""
    """Primary language (first entry of ``languages``)."""

    primary_framework: str = ""
    """Dominant framework derived by the project type classifier."""

    frameworks: List[str] = field(default_factory=list)
    databases: List[str] = field(default_factory=list)
    testing: List[str] = field(default_factory=list)
    build_tools: List[str] = field(default_factory=list)
    deployment: List[str] = field(default_factory=list)
    patterns: List[str] = field(default_factory=list)
    architecture: Architecture = field(default_factory=Architecture)
    package_managers: List[str] = field(default_factory=list)
    is_backend_only: bool = False
    is_frontend_only: bool = False
    confidence: Dict[str, float] = field(default_factory=dict)
    scores: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "StackResult":
        """Canonical result returned when detection fails."""
        return cls(architecture=Architecture(type="unknown", patterns=[]))

    def to_dict(self) -> Dict[str, Any]:
        """Plain serializable mapping with camelCase keys."""
        return {
            "languages": list(self.languages),
            "type": self.type,
            "primary": self.primary,
            "primaryFramework": self.primary_framework,
            "frameworks": list(self.frameworks),
            "databases": list(self.databases),
            "testing": list(self.testing),
            "buildTools": list(self.build_tools),
            "deployment": list(self.deployment),
            "patterns": list(self.patterns),
            "architecture": self.architecture.to_dict(),
            "packageManagers": list(self.package_managers),
            "isBackendOnly": self.is_backend_only,
            "isFrontendOnly": self.is_frontend_only,
            "confidence": dict(self.confidence),
            "scores": dict(self.scores),
        }
