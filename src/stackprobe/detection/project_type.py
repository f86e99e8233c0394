"""Project type classification.

Combines structural evidence (well-known directories) and manifest evidence
(framework dependencies, entry point fields) into weighted indicators, then
derives a single project type and the backend-only / frontend-only gates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from stackprobe.core.logging import get_logger
from stackprobe.detection.collector import EvidenceCollector
from stackprobe.detection.manifests import PackageManifest
from stackprobe.detection.models import Architecture, ProjectType

LOGGER = get_logger(__name__)

STRUCTURE_WEIGHT = 3
NODE_PACKAGE_WEIGHT = 2
PYTHON_PACKAGE_WEIGHT = 3
CLI_WEIGHT = 5
LIBRARY_WEIGHT = 3
CLI_THRESHOLD = 3

# Node packages that indicate a server-side project
BACKEND_PACKAGES = [
    "express", "fastify", "koa", "@nestjs/core", "@hapi/hapi", "hapi",
    "mongoose", "typeorm", "sequelize",
]

# Matched as substrings of dependency names (@angular/core, react-dom, ...)
FRONTEND_PACKAGES = ["react", "vue", "angular", "svelte", "next", "gatsby", "nuxt"]

PYTHON_BACKEND_PACKAGES = ["fastapi", "django", "flask", "tornado", "aiohttp", "sanic"]

# (dependency, framework) in priority order
NODE_BACKEND_PRIMARY: List[Tuple[str, str]] = [
    ("express", "express"),
    ("fastify", "fastify"),
    ("@nestjs/core", "nestjs"),
    ("koa", "koa"),
]
PYTHON_BACKEND_PRIMARY: List[Tuple[str, str]] = [
    ("fastapi", "fastapi"),
    ("django", "django"),
    ("flask", "flask"),
]
FRONTEND_PRIMARY: List[Tuple[str, str]] = [
    ("react", "react"),
    ("vue", "vue"),
    ("@angular/core", "angular"),
    ("svelte", "svelte"),
]

MONOREPO_MARKERS = ["lerna.json", "turbo.json", "rush.json", "nx.json", "pnpm-workspace.yaml"]
MICROSERVICES_MIN_SERVICES = 4


@dataclass
class ProjectStructure:
    """Well-known directories present in the project."""

    has_api: bool = False
    has_controllers: bool = False
    has_routes: bool = False
    has_models: bool = False
    has_components: bool = False
    has_pages: bool = False
    has_views: bool = False

    @property
    def backend_dirs(self) -> bool:
        return self.has_api or self.has_controllers or self.has_routes or self.has_models

    @property
    def frontend_dirs(self) -> bool:
        return self.has_components or self.has_pages or self.has_views


@dataclass
class ProjectTypeScore:
    """Indicator totals and the classification derived from them."""

    backend_only: int = 0
    frontend_only: int = 0
    library: int = 0
    cli: int = 0
    type: ProjectType = ProjectType.UNKNOWN
    primary: str = ""

    @property
    def is_backend_only(self) -> bool:
        return self.backend_only > 0 and self.frontend_only == 0

    @property
    def is_frontend_only(self) -> bool:
        return self.frontend_only > 0 and self.backend_only == 0

    def scores(self) -> Dict[str, int]:
        return {
            "backendOnly": self.backend_only,
            "frontendOnly": self.frontend_only,
            "library": self.library,
            "cli": self.cli,
        }


@dataclass
class ProjectAnalysis:
    """Structure, architecture and classification of a project."""

    structure: ProjectStructure = field(default_factory=ProjectStructure)
    architecture: Architecture = field(default_factory=Architecture)
    project_type: ProjectTypeScore = field(default_factory=ProjectTypeScore)


async def analyze_structure(collector: EvidenceCollector) -> ProjectStructure:
    """Probe the well-known backend and frontend directories."""

    async def any_dir(*paths: str) -> bool:
        for path in paths:
            if await collector.dir_exists(path):
                return True
        return False

    return ProjectStructure(
        has_api=await any_dir("api"),
        has_controllers=await any_dir("controllers"),
        has_routes=await any_dir("routes"),
        has_models=await any_dir("models"),
        has_components=await any_dir("components", "src/components"),
        has_pages=await any_dir("pages", "src/pages"),
        has_views=await any_dir("views", "src/views"),
    )


async def analyze_architecture(collector: EvidenceCollector) -> Architecture:
    """Detect monorepo tooling and compose-based microservices."""
    architecture = Architecture()

    for marker in MONOREPO_MARKERS:
        if await collector.file_exists(marker):
            architecture.type = "monorepo"
            architecture.patterns.append("monorepo")
            break

    if await collector.count_compose_services() >= MICROSERVICES_MIN_SERVICES:
        architecture.patterns.append("microservices")

    return architecture


def classify(
    structure: ProjectStructure,
    manifest: Optional[PackageManifest],
    python_deps: Set[str],
) -> ProjectTypeScore:
    """Compute indicator totals and derive the project type.

    Args:
        structure: Directory evidence.
        manifest: Node package descriptor, if any.
        python_deps: Normalized Python dependency names.

    Returns:
        The scored and classified project type.
    """
    score = ProjectTypeScore()

    if structure.backend_dirs:
        score.backend_only += STRUCTURE_WEIGHT
    if structure.frontend_dirs:
        score.frontend_only += STRUCTURE_WEIGHT

    if manifest is not None:
        all_deps = manifest.all_dependency_names()

        backend_count = sum(1 for pkg in BACKEND_PACKAGES if pkg in all_deps)
        score.backend_only += backend_count * NODE_PACKAGE_WEIGHT

        frontend_count = sum(
            1 for pkg in FRONTEND_PACKAGES if any(pkg in dep for dep in all_deps)
        )
        score.frontend_only += frontend_count * NODE_PACKAGE_WEIGHT

        if manifest.has_bin:
            score.cli += CLI_WEIGHT

        if manifest.has_main and not structure.has_api and not structure.has_components:
            score.library += LIBRARY_WEIGHT

    python_backend_count = sum(1 for pkg in PYTHON_BACKEND_PACKAGES if pkg in python_deps)
    score.backend_only += python_backend_count * PYTHON_PACKAGE_WEIGHT

    score.type, score.primary = _derive_type(score, manifest, python_deps)
    LOGGER.debug(f"Project type {score.type.value} from indicators {score.scores()}")
    return score


def _derive_type(
    score: ProjectTypeScore,
    manifest: Optional[PackageManifest],
    python_deps: Set[str],
) -> Tuple[ProjectType, str]:
    if score.cli > CLI_THRESHOLD:
        return ProjectType.CLI_TOOL, ""

    if score.backend_only > 0 and score.frontend_only > 0:
        return ProjectType.FULL_STACK, ""

    if score.backend_only > score.frontend_only:
        primary = ""
        if manifest is not None:
            primary = _first_present(NODE_BACKEND_PRIMARY, manifest.dependencies)
        # Python frameworks take precedence over Node ones
        primary = _first_present(PYTHON_BACKEND_PRIMARY, python_deps) or primary
        return ProjectType.BACKEND_API, primary

    if score.frontend_only > score.backend_only:
        primary = ""
        if manifest is not None:
            primary = _first_present(FRONTEND_PRIMARY, manifest.all_dependency_names())
        return ProjectType.FRONTEND_APP, primary

    if score.library > 0:
        return ProjectType.LIBRARY, ""

    return ProjectType.UNKNOWN, ""


def _first_present(candidates: Sequence[Tuple[str, str]], deps) -> str:
    for dependency, framework in candidates:
        if dependency in deps:
            return framework
    return ""


async def analyze_project(collector: EvidenceCollector) -> ProjectAnalysis:
    """Run structure, architecture and type analysis for a project."""
    structure = await analyze_structure(collector)
    architecture = await analyze_architecture(collector)
    manifest = await collector.read_package_json()
    python_deps = await collector.read_python_dependencies()

    return ProjectAnalysis(
        structure=structure,
        architecture=architecture,
        project_type=classify(structure, manifest, python_deps),
    )
