"""Evidence collection from the project filesystem.

The collector answers bounded existence and content queries about a project
root. It knows nothing about specific technologies: detectors describe what
they need through ``Requirements`` and the collector turns that into an
``Evidence`` bag.

Every probe is total. Missing files, unreadable files, unparsable manifests
and invalid glob patterns all degrade to "no evidence" and never raise.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set, Tuple

import pathspec

from stackprobe.config.models import StackProbeConfig
from stackprobe.core.logging import get_logger
from stackprobe.detection.compose import COMPOSE_FILES, ComposeScanner, get_compose_scanner
from stackprobe.detection.manifests import (
    PACKAGE_JSON,
    PYPROJECT_TOML,
    REQUIREMENTS_FILES,
    LenientPythonDescriptorParser,
    PackageManifest,
    PythonDescriptorParser,
    normalize_package_name,
    parse_package_json,
)
from stackprobe.detection.models import Category, Evidence, Requirements

LOGGER = get_logger(__name__)

# Files searched for connection strings and environment variable names
ENV_FILES = [".env", ".env.example"]

_WILDCARD_CHARS = ("*", "?", "[")


class EvidenceCollector:
    """Bounded, read-only probes over one project root.

    A collector is created per detection run. It caches the directory
    listing and parsed manifests for the lifetime of that run only.
    """

    def __init__(
        self,
        root: Path,
        config: Optional[StackProbeConfig] = None,
        compose_scanner: Optional[ComposeScanner] = None,
        descriptor_parser: Optional[PythonDescriptorParser] = None,
    ):
        self.root = root
        self.config = config or StackProbeConfig()
        self.compose_scanner = compose_scanner or get_compose_scanner(self.config.compose.parser)
        self.descriptor_parser = descriptor_parser or LenientPythonDescriptorParser()

        self._exclude_spec = pathspec.GitIgnoreSpec.from_lines(
            f"{name}/" for name in self.config.excluded_dirs
        )
        self._index: Optional[Tuple[List[str], List[str]]] = None
        self._index_lock = asyncio.Lock()
        self._manifest_lock = asyncio.Lock()
        self._package_manifest: Optional[PackageManifest] = None
        self._package_loaded = False
        self._python_deps: Optional[Set[str]] = None

    # ------------------------------------------------------------------
    # Filesystem probes
    # ------------------------------------------------------------------

    async def find_files(self, pattern: str, limit: Optional[int] = None) -> List[str]:
        """Find files matching a gitignore-style glob.

        Args:
            pattern: Glob relative to the project root. Patterns without a
                slash match at any depth (``*.py``); patterns with a slash are
                anchored to the root (``.github/workflows/*.yml``).
            limit: Maximum number of matches (default ``limits.max_files``).

        Returns:
            Relative POSIX paths in deterministic order; empty on any failure.
        """
        if limit is None:
            limit = self.config.limits.max_files
        files, _ = await self._get_index()
        return _match(pattern, files, limit)

    async def find_dirs(self, pattern: str, limit: Optional[int] = None) -> List[str]:
        """Find directories matching a gitignore-style glob (``*/migrations/``)."""
        if limit is None:
            limit = self.config.limits.max_files
        _, dirs = await self._get_index()
        return [d.rstrip("/") for d in _match(pattern, dirs, limit)]

    async def file_exists(self, relpath: str) -> bool:
        """Check whether a regular file exists relative to the root."""
        return await asyncio.to_thread(_is_file, self.root / relpath)

    async def dir_exists(self, relpath: str) -> bool:
        """Check whether a directory exists; wildcards are resolved by glob."""
        if any(char in relpath for char in _WILDCARD_CHARS):
            pattern = relpath if relpath.endswith("/") else relpath + "/"
            return bool(await self.find_dirs(pattern, limit=1))
        return await asyncio.to_thread(_is_dir, self.root / relpath.rstrip("/"))

    async def read_text(self, relpath: str) -> Optional[str]:
        """Read a file as text, or None if it cannot be read."""
        return await asyncio.to_thread(_read_text, self.root / relpath)

    async def config_has_marker(self, relpath: str, marker: str) -> bool:
        """Check that a file exists and contains a substring."""
        content = await self.read_text(relpath)
        return content is not None and marker in content

    async def sample_file_content(self, files: Sequence[str], n: Optional[int] = None) -> List[str]:
        """Read at most the first ``n`` files; unreadable files are skipped.

        Args:
            files: Relative paths, usually from ``find_files``.
            n: Sample size (default ``limits.sample_files``).

        Returns:
            Contents of the files that could be read.
        """
        if n is None:
            n = self.config.limits.sample_files
        contents: List[str] = []
        for relpath in list(files)[:n]:
            content = await self.read_text(relpath)
            if content is not None:
                contents.append(content)
        return contents

    # ------------------------------------------------------------------
    # Manifests
    # ------------------------------------------------------------------

    async def read_package_json(self) -> Optional[PackageManifest]:
        """Parsed Node package descriptor, or None if missing or invalid."""
        async with self._manifest_lock:
            if not self._package_loaded:
                self._package_manifest = await asyncio.to_thread(self._load_package_json)
                self._package_loaded = True
        return self._package_manifest

    async def read_manifest_dependencies(self) -> Set[str]:
        """Union of runtime and development dependency names."""
        manifest = await self.read_package_json()
        if manifest is None:
            return set()
        return set(manifest.all_dependency_names())

    async def read_python_dependencies(self) -> Set[str]:
        """Normalized dependency names from Python descriptors."""
        async with self._manifest_lock:
            if self._python_deps is None:
                self._python_deps = await asyncio.to_thread(self._load_python_dependencies)
        return set(self._python_deps)

    def _load_package_json(self) -> Optional[PackageManifest]:
        content = _read_text(self.root / PACKAGE_JSON)
        if content is None:
            return None
        try:
            return parse_package_json(content)
        except ValueError as e:
            LOGGER.debug(f"Ignoring unparsable {PACKAGE_JSON}: {e}")
            return None

    def _load_python_dependencies(self) -> Set[str]:
        deps: Set[str] = set()

        content = _read_text(self.root / PYPROJECT_TOML)
        if content is not None:
            deps.update(self.descriptor_parser.parse_pyproject(content))

        for name in REQUIREMENTS_FILES:
            content = _read_text(self.root / name)
            if content is not None:
                deps.update(self.descriptor_parser.parse_requirements(content))

        return deps

    # ------------------------------------------------------------------
    # Compose and env files
    # ------------------------------------------------------------------

    async def scan_docker_compose(self, service_names: Sequence[str]) -> List[str]:
        """Return the service names mentioned by any known compose file."""
        if not service_names:
            return []
        found: Set[str] = set()
        for relpath in COMPOSE_FILES:
            content = await self.read_text(relpath)
            if content is not None:
                found.update(self.compose_scanner.find_services(content, service_names))
        return [name for name in service_names if name in found]

    async def count_compose_services(self) -> int:
        """Number of services in the first compose file at the project root."""
        for relpath in COMPOSE_FILES:
            if "/" in relpath:
                continue
            content = await self.read_text(relpath)
            if content is not None:
                return self.compose_scanner.count_services(content)
        return 0

    async def scan_env_files(self, needles: Sequence[str]) -> List[str]:
        """Return the needles occurring in any env file."""
        if not needles:
            return []
        found: Set[str] = set()
        for relpath in ENV_FILES:
            content = await self.read_text(relpath)
            if content is not None:
                found.update(needle for needle in needles if needle in content)
        return [needle for needle in needles if needle in found]

    # ------------------------------------------------------------------
    # Evidence assembly
    # ------------------------------------------------------------------

    async def gather(
        self,
        requirements: Requirements,
        is_backend_only: bool = False,
        is_frontend_only: bool = False,
        category: Optional[Category] = None,
    ) -> Evidence:
        """Build a fresh evidence bag for one detector's requirements.

        Args:
            requirements: Evidence the detector needs.
            is_backend_only: Project is backend-only.
            is_frontend_only: Project is frontend-only.
            category: Detector category; testing detectors use the
                ``limits.test_*`` bounds unless the requirements override them.
        """
        match_limit, sample_limit = self._limits_for(requirements, category)
        manifest = await self.read_package_json()
        python_deps = await self.read_python_dependencies()
        node_deps = set(manifest.all_dependency_names()) if manifest else set()
        node_dev_deps = set(manifest.dev_dependencies) if manifest else set()

        def in_manifests(name: str) -> bool:
            return name in node_deps or normalize_package_name(name) in python_deps

        files: List[str] = []
        for pattern in requirements.files:
            files.extend(await self.find_files(pattern, match_limit))
        files = _unique(files)

        configs = [c for c in requirements.configs if await self.file_exists(c)]
        for relpath, marker in requirements.config_markers:
            if await self.config_has_marker(relpath, marker):
                configs.append(relpath)

        scripts: List[str] = []
        if manifest and requirements.scripts:
            script_bodies = list(manifest.scripts.values())
            scripts = [
                script
                for script in requirements.scripts
                if any(script.split(" ")[0] in body for body in script_bodies)
            ]

        code_patterns: List[str] = []
        imports: List[str] = []
        if files and (requirements.code_patterns or requirements.imports):
            contents = await self.sample_file_content(files, sample_limit)
            code_patterns = [p for p in requirements.code_patterns if any(p in c for c in contents)]
            imports = [i for i in requirements.imports if any(i in c for c in contents)]

        return Evidence(
            files=tuple(files),
            configs=tuple(_unique(configs)),
            dependencies=tuple(d for d in requirements.dependencies if in_manifests(d)),
            dev_dependencies=tuple(d for d in requirements.dev_dependencies if d in node_dev_deps),
            related_packages=tuple(p for p in requirements.related_packages if in_manifests(p)),
            package_indicators=tuple(
                indicator
                for indicator in requirements.package_indicators
                if any(indicator in dep for dep in node_deps)
            ),
            scripts=tuple(scripts),
            package_json_config=bool(
                manifest
                and requirements.package_json_config
                and requirements.package_json_config in manifest.keys
            ),
            indicators=tuple([i for i in requirements.indicators if await self.dir_exists(i)]),
            directories=tuple([d for d in requirements.directories if await self.dir_exists(d)]),
            file_indicators=tuple(
                [f for f in requirements.file_indicators if await self.file_exists(f)]
            ),
            code_patterns=tuple(code_patterns),
            imports=tuple(imports),
            docker_services=tuple(await self.scan_docker_compose(requirements.docker_services)),
            env_vars=tuple(await self.scan_env_files(requirements.env_vars)),
            connection_strings=tuple(await self.scan_env_files(requirements.connection_strings)),
            is_backend_only=is_backend_only,
            is_frontend_only=is_frontend_only and not is_backend_only,
        )

    def _limits_for(
        self, requirements: Requirements, category: Optional[Category]
    ) -> Tuple[Optional[int], Optional[int]]:
        match_limit = requirements.match_limit
        sample_limit = requirements.sample_limit
        if category is Category.TESTING:
            limits = self.config.limits
            if match_limit is None:
                match_limit = limits.test_file_matches
            if sample_limit is None:
                sample_limit = limits.test_sample_files
        return match_limit, sample_limit

    # ------------------------------------------------------------------
    # Directory index
    # ------------------------------------------------------------------

    async def _get_index(self) -> Tuple[List[str], List[str]]:
        async with self._index_lock:
            if self._index is None:
                self._index = await asyncio.to_thread(self._build_index)
        return self._index

    def _build_index(self) -> Tuple[List[str], List[str]]:
        """Walk the root up to ``max_depth`` levels, pruning excluded dirs.

        Returns:
            Tuple of (relative file paths, relative directory paths with a
            trailing slash), both in sorted walk order.
        """
        files: List[str] = []
        dirs: List[str] = []
        max_depth = self.config.limits.max_depth

        def on_error(error: OSError) -> None:
            LOGGER.debug(f"Skipping unreadable directory: {error}")

        for current, dirnames, filenames in os.walk(self.root, onerror=on_error):
            rel_dir = Path(current).relative_to(self.root).as_posix()
            prefix = "" if rel_dir == "." else rel_dir + "/"
            depth = 0 if not prefix else prefix.count("/")

            kept = []
            for dirname in sorted(dirnames):
                rel = f"{prefix}{dirname}/"
                if self._exclude_spec.match_file(rel):
                    continue
                dirs.append(rel)
                kept.append(dirname)
            # Files live at most max_depth path components below the root
            dirnames[:] = kept if depth + 1 < max_depth else []

            files.extend(f"{prefix}{filename}" for filename in sorted(filenames))

        return files, dirs


def _match(pattern: str, paths: Iterable[str], limit: int) -> List[str]:
    try:
        spec = pathspec.GitIgnoreSpec.from_lines([pattern])
    except (ValueError, TypeError) as e:
        LOGGER.debug(f"Invalid glob pattern {pattern!r}: {e}")
        return []

    matches: List[str] = []
    for path in paths:
        if spec.match_file(path):
            matches.append(path)
            if len(matches) >= limit:
                break
    return matches


def _unique(items: Iterable[str]) -> List[str]:
    seen: Set[str] = set()
    result: List[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def _is_file(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError:
        return False


def _is_dir(path: Path) -> bool:
    try:
        return path.is_dir()
    except OSError:
        return False


def _read_text(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except (OSError, ValueError):
        return None
