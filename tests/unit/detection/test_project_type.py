"""Tests for stackprobe.detection.project_type."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

from stackprobe.detection.collector import EvidenceCollector
from stackprobe.detection.manifests import PackageManifest, parse_package_json
from stackprobe.detection.models import ProjectType
from stackprobe.detection.project_type import (
    ProjectStructure,
    analyze_architecture,
    analyze_project,
    analyze_structure,
    classify,
)


def _manifest(**data) -> PackageManifest:
    return parse_package_json(json.dumps(data))


class TestClassify:
    """Tests for classify function."""

    def test_empty_project_is_unknown(self) -> None:
        score = classify(ProjectStructure(), None, set())

        assert score.type == ProjectType.UNKNOWN
        assert score.primary == ""
        assert not score.is_backend_only
        assert not score.is_frontend_only

    def test_node_backend(self) -> None:
        manifest = _manifest(dependencies={"express": "^4", "mongoose": "^7"})
        score = classify(ProjectStructure(), manifest, set())

        assert score.backend_only == 4
        assert score.type == ProjectType.BACKEND_API
        assert score.primary == "express"
        assert score.is_backend_only

    def test_nestjs_primary(self) -> None:
        manifest = _manifest(dependencies={"@nestjs/core": "^10"})
        score = classify(ProjectStructure(), manifest, set())

        assert score.primary == "nestjs"

    def test_python_backend_overrides_node_primary(self) -> None:
        manifest = _manifest(dependencies={"express": "^4"})
        score = classify(ProjectStructure(), manifest, {"django"})

        assert score.backend_only == 5
        assert score.primary == "django"

    def test_python_backend_weight(self) -> None:
        score = classify(ProjectStructure(), None, {"fastapi", "aiohttp"})

        assert score.backend_only == 6
        assert score.type == ProjectType.BACKEND_API
        assert score.primary == "fastapi"

    def test_frontend_substring_match(self) -> None:
        manifest = _manifest(dependencies={"react-dom": "^18", "@angular/core": "^17"})
        score = classify(ProjectStructure(), manifest, set())

        # react and angular each count once
        assert score.frontend_only == 4
        assert score.type == ProjectType.FRONTEND_APP
        assert score.primary == "angular"
        assert score.is_frontend_only

    def test_frontend_primary_order(self) -> None:
        manifest = _manifest(dependencies={"vue": "^3"}, devDependencies={"react": "^18"})
        score = classify(ProjectStructure(), manifest, set())

        assert score.primary == "react"

    def test_full_stack(self) -> None:
        manifest = _manifest(dependencies={"react": "^18", "express": "^4"})
        score = classify(ProjectStructure(), manifest, set())

        assert score.type == ProjectType.FULL_STACK
        assert score.primary == ""
        assert not score.is_backend_only
        assert not score.is_frontend_only

    def test_structure_only(self) -> None:
        score = classify(ProjectStructure(has_routes=True), None, set())
        assert score.backend_only == 3
        assert score.type == ProjectType.BACKEND_API

        score = classify(ProjectStructure(has_views=True), None, set())
        assert score.frontend_only == 3
        assert score.type == ProjectType.FRONTEND_APP

    def test_cli_wins(self) -> None:
        manifest = _manifest(bin={"tool": "cli.js"}, dependencies={"express": "^4"})
        score = classify(ProjectStructure(has_components=True), manifest, set())

        assert score.cli == 5
        assert score.type == ProjectType.CLI_TOOL

    def test_library(self) -> None:
        manifest = _manifest(main="index.js")
        score = classify(ProjectStructure(), manifest, set())

        assert score.library == 3
        assert score.type == ProjectType.LIBRARY

    def test_main_with_api_dir_is_not_library(self) -> None:
        manifest = _manifest(main="index.js")
        score = classify(ProjectStructure(has_api=True), manifest, set())

        assert score.library == 0
        assert score.type == ProjectType.BACKEND_API

    def test_gates_never_both_true(self) -> None:
        structures = [
            ProjectStructure(),
            ProjectStructure(has_api=True),
            ProjectStructure(has_pages=True),
            ProjectStructure(has_models=True, has_components=True),
        ]
        for structure in structures:
            for deps in (set(), {"flask"}):
                score = classify(structure, None, deps)
                assert not (score.is_backend_only and score.is_frontend_only)

    def test_scores_mapping(self) -> None:
        score = classify(ProjectStructure(has_api=True), None, set())
        assert score.scores() == {"backendOnly": 3, "frontendOnly": 0, "library": 0, "cli": 0}


class TestAnalyzeStructure:
    """Tests for analyze_structure function."""

    def test_root_and_src_directories(self, tmp_path: Path) -> None:
        (tmp_path / "controllers").mkdir()
        (tmp_path / "src" / "components").mkdir(parents=True)
        structure = asyncio.run(analyze_structure(EvidenceCollector(tmp_path)))

        assert structure.has_controllers
        assert structure.has_components
        assert not structure.has_api
        assert structure.backend_dirs
        assert structure.frontend_dirs

    def test_src_api_is_not_structural(self, tmp_path: Path) -> None:
        (tmp_path / "src" / "api").mkdir(parents=True)
        structure = asyncio.run(analyze_structure(EvidenceCollector(tmp_path)))

        assert not structure.backend_dirs


class TestAnalyzeArchitecture:
    """Tests for analyze_architecture function."""

    def test_standard(self, tmp_path: Path) -> None:
        architecture = asyncio.run(analyze_architecture(EvidenceCollector(tmp_path)))
        assert architecture.to_dict() == {"type": "standard", "patterns": []}

    def test_monorepo(self, tmp_path: Path) -> None:
        (tmp_path / "pnpm-workspace.yaml").write_text("packages:\n  - apps/*\n")
        architecture = asyncio.run(analyze_architecture(EvidenceCollector(tmp_path)))

        assert architecture.to_dict() == {"type": "monorepo", "patterns": ["monorepo"]}

    def test_microservices(self, tmp_path: Path) -> None:
        (tmp_path / "docker-compose.yml").write_text(
            "services:\n  api:\n    build: .\n  worker:\n    build: .\n"
            "  db:\n    image: postgres\n  cache:\n    image: redis\n"
        )
        architecture = asyncio.run(analyze_architecture(EvidenceCollector(tmp_path)))

        assert architecture.type == "standard"
        assert architecture.patterns == ["microservices"]

    def test_three_services_is_not_microservices(self, tmp_path: Path) -> None:
        (tmp_path / "docker-compose.yml").write_text(
            "services:\n  api:\n    build: .\n  db:\n    image: postgres\n  cache:\n    image: redis\n"
        )
        architecture = asyncio.run(analyze_architecture(EvidenceCollector(tmp_path)))

        assert architecture.patterns == []


class TestAnalyzeProject:
    """Tests for analyze_project function."""

    def test_reads_manifests(self, tmp_path: Path) -> None:
        (tmp_path / "requirements.txt").write_text("flask==3.0\n")
        analysis = asyncio.run(analyze_project(EvidenceCollector(tmp_path)))

        assert analysis.project_type.type == ProjectType.BACKEND_API
        assert analysis.project_type.primary == "flask"
