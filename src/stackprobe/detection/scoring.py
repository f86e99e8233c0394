"""Scoring functions for detectors.

Each function maps an ``Evidence`` bag to a confidence in ``[0, 1]``. They
are priority decision trees rather than weighted sums:

1. the canonical dependency or config proves the technology (1.0);
2. strong secondary evidence, such as a cluster of related packages or an
   official config file, gives a fixed high value (0.85-0.95);
3. code pattern or import matches in sampled files give a medium value;
4. bare file-extension matches give a low value that may fall below the
   acceptance threshold.

The functions are pure and never touch the filesystem.
"""

from __future__ import annotations

from functools import wraps
from typing import Callable, Dict

from stackprobe.detection.models import Evidence

ScoringFunction = Callable[[Evidence], float]

# Confidence of a database seen only as a docker compose service
DOCKER_SERVICE_CONFIDENCE = 0.8


def frontend(func: ScoringFunction) -> ScoringFunction:
    """Force 0 for frontend technologies in backend-only projects."""

    @wraps(func)
    def wrapper(evidence: Evidence) -> float:
        if evidence.is_backend_only:
            return 0.0
        return func(evidence)

    return wrapper


def backend(func: ScoringFunction) -> ScoringFunction:
    """Force 0 for backend technologies in frontend-only projects."""

    @wraps(func)
    def wrapper(evidence: Evidence) -> float:
        if evidence.is_frontend_only:
            return 0.0
        return func(evidence)

    return wrapper


# ----------------------------------------------------------------------
# Languages
# ----------------------------------------------------------------------


def score_javascript(evidence: Evidence) -> float:
    if "package.json" in evidence.configs:
        return 1.0
    return 0.8 if evidence.files else 0.0


def score_typescript(evidence: Evidence) -> float:
    if "tsconfig.json" in evidence.configs:
        return 1.0
    if evidence.package_indicators:
        return 0.9
    return 0.7 if evidence.files else 0.0


def score_python(evidence: Evidence) -> float:
    if evidence.configs:
        return 1.0
    if "manage.py" in evidence.file_indicators:
        return 0.95
    if len(evidence.files) > 5:
        return 0.8
    return 0.6 if evidence.files else 0.0


def score_java(evidence: Evidence) -> float:
    if evidence.configs:
        return 1.0
    return 0.5 if evidence.files else 0.0


def score_go(evidence: Evidence) -> float:
    if "go.mod" in evidence.configs:
        return 1.0
    if evidence.configs:
        return 0.9
    return 0.6 if evidence.files else 0.0


def score_rust(evidence: Evidence) -> float:
    if "Cargo.toml" in evidence.configs:
        return 1.0
    return 0.6 if evidence.files else 0.0


# ----------------------------------------------------------------------
# Frontend frameworks
# ----------------------------------------------------------------------


@frontend
def score_react(evidence: Evidence) -> float:
    if "react" in evidence.dependencies:
        return 1.0
    if "react-dom" in evidence.dependencies:
        return 0.95
    if evidence.dev_dependencies:
        return 0.8
    return 0.0


@frontend
def score_vue(evidence: Evidence) -> float:
    if "vue" in evidence.dependencies:
        return 1.0
    if evidence.files:
        return 0.9
    if evidence.configs:
        return 0.85
    return 0.0


@frontend
def score_angular(evidence: Evidence) -> float:
    if "@angular/core" in evidence.dependencies:
        return 1.0
    if "angular.json" in evidence.configs:
        return 0.95
    if evidence.dependencies or evidence.configs:
        return 0.9
    return 0.0


@frontend
def score_svelte(evidence: Evidence) -> float:
    if "svelte" in evidence.dependencies:
        return 1.0
    if "@sveltejs/kit" in evidence.dependencies:
        return 0.95
    if evidence.configs:
        return 0.9
    return 0.85 if evidence.files else 0.0


@frontend
def score_nextjs(evidence: Evidence) -> float:
    if "next" in evidence.dependencies:
        return 1.0
    if evidence.scripts:
        return 0.95
    if evidence.configs:
        return 0.9
    return 0.8 if evidence.dev_dependencies else 0.0


# ----------------------------------------------------------------------
# Backend frameworks
# ----------------------------------------------------------------------


@backend
def score_express(evidence: Evidence) -> float:
    if "express" in evidence.dependencies:
        return 1.0
    if len(evidence.related_packages) >= 3:
        return 0.9
    if evidence.code_patterns:
        return 0.8
    if len(evidence.related_packages) >= 2:
        return 0.7
    return 0.0


@backend
def score_fastify(evidence: Evidence) -> float:
    if "fastify" in evidence.dependencies:
        return 1.0
    return 0.7 if evidence.code_patterns else 0.0


@backend
def score_koa(evidence: Evidence) -> float:
    if "koa" in evidence.dependencies:
        return 1.0
    if evidence.related_packages:
        return 0.85
    return 0.7 if evidence.code_patterns else 0.0


@backend
def score_hapi(evidence: Evidence) -> float:
    if evidence.dependencies:
        return 1.0
    return 0.7 if evidence.code_patterns else 0.0


@backend
def score_nestjs(evidence: Evidence) -> float:
    if "@nestjs/core" in evidence.dependencies:
        return 1.0
    if evidence.dependencies:
        return 0.95
    if "nest-cli.json" in evidence.configs:
        return 0.9
    return 0.8 if len(evidence.files) > 3 else 0.0


@backend
def score_fastapi(evidence: Evidence) -> float:
    if "fastapi" in evidence.dependencies:
        return 1.0
    if "uvicorn" in evidence.related_packages and "pydantic" in evidence.related_packages:
        return 0.95
    if evidence.code_patterns:
        return 0.9
    return 0.85 if evidence.imports else 0.0


@backend
def score_django(evidence: Evidence) -> float:
    if "django" in evidence.dependencies:
        return 1.0
    if "manage.py" in evidence.files:
        return 0.98
    if evidence.imports:
        return 0.9
    if "djangorestframework" in evidence.related_packages:
        return 0.9
    return 0.75 if evidence.indicators else 0.0


@backend
def score_flask(evidence: Evidence) -> float:
    if "flask" in evidence.dependencies:
        return 1.0
    if evidence.code_patterns:
        return 0.9
    if evidence.imports:
        return 0.85
    if any(pkg in ("flask-restful", "flask-cors") for pkg in evidence.related_packages):
        return 0.8
    return 0.0


# ----------------------------------------------------------------------
# Databases
# ----------------------------------------------------------------------


def score_mongodb(evidence: Evidence) -> float:
    if "mongoose" in evidence.dependencies:
        return 1.0
    if evidence.dependencies:
        return 0.95
    if evidence.connection_strings:
        return 0.9
    if evidence.docker_services:
        return DOCKER_SERVICE_CONFIDENCE
    return 0.7 if evidence.env_vars else 0.0


def score_postgresql(evidence: Evidence) -> float:
    drivers = ("pg", "psycopg2", "psycopg2-binary", "psycopg", "asyncpg")
    if any(dep in drivers for dep in evidence.dependencies):
        return 1.0
    if "postgres" in evidence.dependencies or "sqlmodel" in evidence.dependencies:
        return 0.95
    if evidence.connection_strings:
        return 0.9
    if "sqlalchemy" in evidence.dependencies or "typeorm" in evidence.dependencies:
        return 0.9
    if evidence.docker_services:
        return DOCKER_SERVICE_CONFIDENCE
    return 0.7 if evidence.env_vars else 0.0


def score_mysql(evidence: Evidence) -> float:
    if evidence.dependencies:
        return 1.0
    if evidence.connection_strings:
        return 0.9
    if evidence.docker_services:
        return DOCKER_SERVICE_CONFIDENCE
    return 0.7 if evidence.env_vars else 0.0


def score_redis(evidence: Evidence) -> float:
    if "ioredis" in evidence.dependencies:
        return 1.0
    if "redis" in evidence.dependencies or "aioredis" in evidence.dependencies:
        return 0.95
    if "bull" in evidence.dependencies or "bullmq" in evidence.dependencies:
        return 0.9
    if evidence.connection_strings:
        return 0.9
    if "bee-queue" in evidence.dependencies:
        return 0.85
    if evidence.docker_services:
        return DOCKER_SERVICE_CONFIDENCE
    return 0.7 if evidence.env_vars else 0.0


def score_sqlite(evidence: Evidence) -> float:
    if evidence.dependencies:
        return 1.0
    if evidence.connection_strings:
        return 0.9
    if any(f.endswith((".sqlite", ".sqlite3")) for f in evidence.files):
        return 0.8
    # A bare *.db file is too ambiguous on its own
    return 0.6 if evidence.files else 0.0


# ----------------------------------------------------------------------
# Test frameworks
# ----------------------------------------------------------------------


def score_jest(evidence: Evidence) -> float:
    if "jest" in evidence.dependencies:
        return 1.0
    if evidence.configs or evidence.package_json_config:
        return 0.95
    if evidence.dev_dependencies or evidence.dependencies:
        return 0.9
    return 0.7 if evidence.files else 0.0


def score_vitest(evidence: Evidence) -> float:
    if "vitest" in evidence.dependencies:
        return 1.0
    return 0.95 if evidence.configs else 0.0


def score_mocha(evidence: Evidence) -> float:
    if "mocha" in evidence.dependencies:
        return 1.0
    return 0.9 if evidence.configs else 0.0


def score_cypress(evidence: Evidence) -> float:
    if "cypress" in evidence.dependencies:
        return 1.0
    if evidence.configs:
        return 0.9
    return 0.85 if evidence.directories else 0.0


def score_playwright(evidence: Evidence) -> float:
    if evidence.dependencies:
        return 1.0
    return 0.9 if evidence.configs else 0.0


def score_pytest(evidence: Evidence) -> float:
    if "pytest" in evidence.dependencies:
        return 1.0
    if evidence.configs:
        return 0.9
    if evidence.related_packages:
        return 0.85
    if evidence.files:
        return 0.8
    # test/ and tests/ are shared by every ecosystem
    return 0.5 if evidence.directories else 0.0


def score_unittest(evidence: Evidence) -> float:
    if evidence.code_patterns:
        return 0.9
    if evidence.files and evidence.directories:
        return 0.7
    return 0.5 if evidence.files else 0.0


# ----------------------------------------------------------------------
# Build tools
# ----------------------------------------------------------------------


def score_webpack(evidence: Evidence) -> float:
    if "webpack" in evidence.dependencies:
        return 1.0
    if evidence.dependencies:
        return 0.9
    return 0.8 if evidence.configs else 0.0


def score_vite(evidence: Evidence) -> float:
    if "vite" in evidence.dependencies:
        return 1.0
    return 0.9 if evidence.configs else 0.0


def score_parcel(evidence: Evidence) -> float:
    if "parcel" in evidence.dependencies:
        return 1.0
    return 0.9 if evidence.configs else 0.0


def score_poetry(evidence: Evidence) -> float:
    if "poetry.lock" in evidence.configs:
        return 1.0
    if "pyproject.toml" in evidence.configs:
        return 0.9
    return 0.85 if evidence.file_indicators else 0.0


def score_uv(evidence: Evidence) -> float:
    if "uv.lock" in evidence.configs:
        return 1.0
    if "pyproject.toml" in evidence.configs:
        return 0.9
    if "uv.toml" in evidence.file_indicators:
        return 0.85
    return 0.7 if ".python-version" in evidence.file_indicators else 0.0


def score_setuptools(evidence: Evidence) -> float:
    if "setup.py" in evidence.configs:
        return 1.0
    if evidence.configs:
        return 0.9
    return 0.6 if evidence.file_indicators else 0.0


# ----------------------------------------------------------------------
# Deployment targets
# ----------------------------------------------------------------------


def score_docker(evidence: Evidence) -> float:
    if "Dockerfile" in evidence.configs:
        return 1.0
    if evidence.configs:
        return 0.95
    return 0.6 if evidence.file_indicators else 0.0


def score_kubernetes(evidence: Evidence) -> float:
    if evidence.code_patterns:
        return 0.95
    if evidence.indicators or evidence.configs:
        return 0.9
    return 0.0


def score_github_actions(evidence: Evidence) -> float:
    return 1.0 if evidence.files else 0.0


SCORERS: Dict[str, ScoringFunction] = {
    "javascript": score_javascript,
    "typescript": score_typescript,
    "python": score_python,
    "java": score_java,
    "go": score_go,
    "rust": score_rust,
    "react": score_react,
    "vue": score_vue,
    "angular": score_angular,
    "svelte": score_svelte,
    "nextjs": score_nextjs,
    "express": score_express,
    "fastify": score_fastify,
    "koa": score_koa,
    "hapi": score_hapi,
    "nestjs": score_nestjs,
    "fastapi": score_fastapi,
    "django": score_django,
    "flask": score_flask,
    "mongodb": score_mongodb,
    "postgresql": score_postgresql,
    "mysql": score_mysql,
    "redis": score_redis,
    "sqlite": score_sqlite,
    "jest": score_jest,
    "vitest": score_vitest,
    "mocha": score_mocha,
    "cypress": score_cypress,
    "playwright": score_playwright,
    "pytest": score_pytest,
    "unittest": score_unittest,
    "webpack": score_webpack,
    "vite": score_vite,
    "parcel": score_parcel,
    "poetry": score_poetry,
    "uv": score_uv,
    "setuptools": score_setuptools,
    "docker": score_docker,
    "kubernetes": score_kubernetes,
    "github-actions": score_github_actions,
}
