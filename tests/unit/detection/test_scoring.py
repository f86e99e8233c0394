"""Tests for stackprobe.detection.scoring."""

from __future__ import annotations

import pytest

from stackprobe.detection.models import Category, Evidence
from stackprobe.detection.registry import ALL_DETECTORS, build_default_registry
from stackprobe.detection.scoring import (
    DOCKER_SERVICE_CONFIDENCE,
    SCORERS,
    score_django,
    score_express,
    score_fastapi,
    score_javascript,
    score_kubernetes,
    score_postgresql,
    score_pytest,
    score_python,
    score_react,
    score_redis,
    score_sqlite,
    score_typescript,
    score_unittest,
)

# Evidence with every signal populated
FULL_EVIDENCE = Evidence(
    files=("a.js", "b.py", "manage.py", "c.sqlite"),
    configs=("package.json", "Dockerfile"),
    dependencies=("express", "react", "fastapi"),
    dev_dependencies=("jest",),
    related_packages=("cors", "helmet", "morgan"),
    package_indicators=("@types/",),
    scripts=("next dev",),
    package_json_config=True,
    indicators=("k8s",),
    directories=("tests",),
    file_indicators=(".dockerignore",),
    code_patterns=("express()",),
    imports=("from flask",),
    docker_services=("redis",),
    env_vars=("REDIS_URL",),
    connection_strings=("redis://",),
)

CANONICAL_SPECS = [spec for spec in ALL_DETECTORS if spec.canonical]


class TestScoreBounds:
    """Every scoring function stays within [0, 1]."""

    @pytest.mark.parametrize("name", sorted(SCORERS))
    def test_empty_evidence_scores_zero(self, name: str) -> None:
        assert SCORERS[name](Evidence()) == 0.0

    @pytest.mark.parametrize("name", sorted(SCORERS))
    def test_full_evidence_within_bounds(self, name: str) -> None:
        assert 0.0 <= SCORERS[name](FULL_EVIDENCE) <= 1.0


class TestCanonicalEvidence:
    """The canonical dependency or config proves a technology."""

    @pytest.mark.parametrize("spec", CANONICAL_SPECS, ids=lambda spec: spec.name)
    def test_canonical_scores_one(self, spec) -> None:
        evidence = Evidence(
            dependencies=(spec.canonical,),
            configs=(spec.canonical,),
            files=(spec.canonical,),
        )
        assert SCORERS[spec.name](evidence) == 1.0


class TestGating:
    """Frontend and backend scores are forced to zero by project gating."""

    def test_frontend_zero_when_backend_only(self) -> None:
        registry = build_default_registry()
        for spec in registry.specs_for(Category.FRONTEND):
            evidence = Evidence(dependencies=(spec.canonical,), is_backend_only=True)
            assert registry.scorer(spec.name)(evidence) == 0.0

    def test_backend_zero_when_frontend_only(self) -> None:
        registry = build_default_registry()
        for spec in registry.specs_for(Category.BACKEND):
            evidence = Evidence(dependencies=(spec.canonical,), is_frontend_only=True)
            assert registry.scorer(spec.name)(evidence) == 0.0

    def test_backend_unaffected_when_backend_only(self) -> None:
        evidence = Evidence(dependencies=("express",), is_backend_only=True)
        assert score_express(evidence) == 1.0

    def test_frontend_unaffected_when_frontend_only(self) -> None:
        evidence = Evidence(dependencies=("react",), is_frontend_only=True)
        assert score_react(evidence) == 1.0


class TestDecisionTrees:
    """Spot checks of individual decision trees."""

    def test_javascript_files_only(self) -> None:
        assert score_javascript(Evidence(files=("index.js",))) == 0.8

    def test_typescript_tiers(self) -> None:
        assert score_typescript(Evidence(package_indicators=("typescript",))) == 0.9
        assert score_typescript(Evidence(files=("a.ts",))) == 0.7

    def test_python_file_count(self) -> None:
        assert score_python(Evidence(files=tuple(f"m{i}.py" for i in range(6)))) == 0.8
        assert score_python(Evidence(files=("a.py",))) == 0.6
        assert score_python(Evidence(file_indicators=("manage.py",))) == 0.95

    def test_express_related_packages(self) -> None:
        assert score_express(Evidence(related_packages=("cors", "helmet", "morgan"))) == 0.9
        assert score_express(Evidence(related_packages=("cors", "helmet"))) == 0.7
        assert score_express(Evidence(related_packages=("cors",))) == 0.0
        assert score_express(Evidence(code_patterns=("express()",))) == 0.8

    def test_fastapi_related_pair(self) -> None:
        assert score_fastapi(Evidence(related_packages=("uvicorn", "pydantic"))) == 0.95
        assert score_fastapi(Evidence(related_packages=("uvicorn",))) == 0.0

    def test_django_tiers(self) -> None:
        assert score_django(Evidence(files=("manage.py",))) == 0.98
        assert score_django(Evidence(indicators=("*/migrations/",))) == 0.75
        assert score_django(Evidence(files=("settings.py",))) == 0.0

    def test_docker_service_only_database(self) -> None:
        evidence = Evidence(docker_services=("redis",))
        assert score_redis(evidence) == DOCKER_SERVICE_CONFIDENCE == 0.8

    def test_redis_secondary_dependencies(self) -> None:
        assert score_redis(Evidence(dependencies=("redis",))) == 0.95
        assert score_redis(Evidence(dependencies=("bullmq",))) == 0.9

    def test_postgresql_orm_dependency(self) -> None:
        assert score_postgresql(Evidence(dependencies=("sqlalchemy",))) == 0.9
        assert score_postgresql(Evidence(dependencies=("psycopg",))) == 1.0

    def test_sqlite_files(self) -> None:
        assert score_sqlite(Evidence(files=("data.sqlite3",))) == 0.8
        assert score_sqlite(Evidence(files=("cache.db",))) == 0.6

    def test_pytest_directories_alone_are_weak(self) -> None:
        assert score_pytest(Evidence(directories=("tests",))) == 0.5
        assert score_pytest(Evidence(files=("test_app.py",))) == 0.8

    def test_unittest_tiers(self) -> None:
        assert score_unittest(Evidence(code_patterns=("import unittest",))) == 0.9
        assert score_unittest(Evidence(files=("test_a.py",), directories=("tests",))) == 0.7

    def test_kubernetes_directories(self) -> None:
        assert score_kubernetes(Evidence(indicators=("k8s",))) == 0.9
        assert score_kubernetes(Evidence(code_patterns=("kind: Deployment",))) == 0.95
