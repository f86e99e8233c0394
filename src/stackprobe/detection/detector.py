"""Main stack detector orchestrating all detection stages."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from stackprobe.config.models import StackProbeConfig
from stackprobe.core.logging import get_logger
from stackprobe.detection.collector import EvidenceCollector
from stackprobe.detection.conflicts import ConflictResolver
from stackprobe.detection.models import Category, Detection, StackResult
from stackprobe.detection.project_type import ProjectAnalysis, analyze_project
from stackprobe.detection.registry import DetectorRegistry, build_default_registry
from stackprobe.detection.scorer import ConfidenceScorer

LOGGER = get_logger(__name__)

# (package manager, lock file) in reporting order
PACKAGE_MANAGER_LOCKFILES: List[Tuple[str, str]] = [
    ("npm", "package-lock.json"),
    ("yarn", "yarn.lock"),
    ("pnpm", "pnpm-lock.yaml"),
    ("bun", "bun.lockb"),
    ("bun", "bun.lock"),
    ("poetry", "poetry.lock"),
    ("pipenv", "Pipfile.lock"),
    ("uv", "uv.lock"),
    ("cargo", "Cargo.lock"),
    ("go", "go.sum"),
]

# Categories evaluated regardless of project type
UNGATED_CATEGORIES = [
    Category.DATABASE,
    Category.TESTING,
    Category.BUILD_TOOL,
    Category.DEPLOYMENT,
]


class StackDetector:
    """Orchestrates technology stack detection.

    A detector can be reused; every ``detect()`` call builds a fresh
    evidence collector, so only the immutable registry is shared.
    """

    def __init__(
        self,
        config: Optional[StackProbeConfig] = None,
        registry: Optional[DetectorRegistry] = None,
    ):
        self.config = config or StackProbeConfig()
        self.registry = registry or build_default_registry()

    async def detect(self, project_root: Union[str, Path]) -> StackResult:
        """Detect the technology stack of a project.

        Never raises: unexpected failures are logged and reported as the
        empty result.

        Args:
            project_root: Path to the project root directory.

        Returns:
            StackResult with detected information.
        """
        try:
            return await self._detect(Path(project_root).resolve())
        except Exception as e:
            LOGGER.error(f"Stack detection failed for {project_root}: {e}")
            LOGGER.debug("Stack detection traceback", exc_info=True)
            return StackResult.empty()

    async def _detect(self, root: Path) -> StackResult:
        LOGGER.info(f"Detecting technology stack in {root}")
        collector = EvidenceCollector(root, self.config)
        scorer = ConfidenceScorer(
            self.registry, collector, max_workers=self.config.max_workers
        )
        resolver = ConflictResolver(self.registry, self.config.conflicts.strategy)

        languages = await scorer.score_category(Category.LANGUAGE)

        # Project type gates the framework categories
        analysis = await analyze_project(collector)
        project_type = analysis.project_type
        backend_only = project_type.is_backend_only
        frontend_only = project_type.is_frontend_only

        async def skipped() -> List[Detection]:
            return []

        frontend_task = (
            skipped() if backend_only
            else scorer.score_category(Category.FRONTEND, backend_only, frontend_only)
        )
        backend_task = (
            skipped() if frontend_only
            else scorer.score_category(Category.BACKEND, backend_only, frontend_only)
        )
        results = await asyncio.gather(
            frontend_task,
            backend_task,
            *(scorer.score_category(category) for category in UNGATED_CATEGORIES),
        )
        frontend, backend = results[0], results[1]
        by_category: Dict[Category, List[Detection]] = {
            Category.LANGUAGE: languages,
            Category.FRONTEND: frontend,
            Category.BACKEND: backend,
        }
        by_category.update(zip(UNGATED_CATEGORIES, results[2:]))

        resolved = {
            category: resolver.resolve(detections)
            for category, detections in by_category.items()
        }
        package_managers = await self._detect_package_managers(collector)

        result = self._assemble(resolved, analysis, package_managers)
        LOGGER.info(
            f"Detected {result.type} project: languages={result.languages}, "
            f"frameworks={result.frameworks}"
        )
        return result

    async def _detect_package_managers(self, collector: EvidenceCollector) -> List[str]:
        managers: List[str] = []
        for manager, lockfile in PACKAGE_MANAGER_LOCKFILES:
            if manager not in managers and await collector.file_exists(lockfile):
                managers.append(manager)
        return managers

    @staticmethod
    def _assemble(
        resolved: Dict[Category, List[Detection]],
        analysis: ProjectAnalysis,
        package_managers: List[str],
    ) -> StackResult:
        def names(category: Category) -> List[str]:
            return [d.name for d in resolved.get(category, [])]

        languages = names(Category.LANGUAGE)
        frameworks = names(Category.FRONTEND) + names(Category.BACKEND)
        databases = names(Category.DATABASE)
        testing = names(Category.TESTING)
        build_tools = names(Category.BUILD_TOOL)
        deployment = names(Category.DEPLOYMENT)

        patterns: List[str] = []
        for name in languages + frameworks + databases + testing + build_tools + deployment:
            if name not in patterns:
                patterns.append(name)

        confidence = {
            d.name: d.confidence
            for detections in resolved.values()
            for d in detections
        }

        project_type = analysis.project_type
        return StackResult(
            languages=languages,
            type=project_type.type.value,
            primary=languages[0] if languages else "",
            primary_framework=project_type.primary,
            frameworks=frameworks,
            databases=databases,
            testing=testing,
            build_tools=build_tools,
            deployment=deployment,
            patterns=patterns,
            architecture=analysis.architecture,
            package_managers=package_managers,
            is_backend_only=project_type.is_backend_only,
            is_frontend_only=project_type.is_frontend_only,
            confidence=confidence,
            scores=project_type.scores(),
        )


async def detect(
    project_root: Union[str, Path],
    config: Optional[StackProbeConfig] = None,
    registry: Optional[DetectorRegistry] = None,
) -> StackResult:
    """Detect the technology stack of a project.

    Convenience wrapper around ``StackDetector(config, registry).detect()``.
    """
    return await StackDetector(config, registry).detect(project_root)


def detect_sync(
    project_root: Union[str, Path],
    config: Optional[StackProbeConfig] = None,
    registry: Optional[DetectorRegistry] = None,
) -> StackResult:
    """Blocking variant of ``detect()`` for callers without an event loop."""
    return asyncio.run(detect(project_root, config, registry))
