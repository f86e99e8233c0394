"""Detector registry.

Detector specifications are plain data: which evidence each technology
needs and which technologies it excludes. Scoring logic lives separately in
``stackprobe.detection.scoring``, keyed by detector name.

Declaration order matters: it breaks confidence ties when results are
sorted, so within a category the more specific detectors come first.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Iterator, List, Mapping, Optional, Sequence, Tuple

from stackprobe.detection.models import Category, DetectorSpec, Requirements
from stackprobe.detection.scoring import SCORERS, ScoringFunction


def _spec(
    category: Category,
    name: str,
    canonical: Optional[str] = None,
    exclusive_with: Sequence[str] = (),
    **requirements,
) -> DetectorSpec:
    return DetectorSpec(
        category=category,
        name=name,
        requirements=Requirements(**requirements),
        exclusive_with=frozenset(exclusive_with),
        canonical=canonical,
    )


LANGUAGE_DETECTORS: Tuple[DetectorSpec, ...] = (
    _spec(
        Category.LANGUAGE, "javascript",
        canonical="package.json",
        files=("*.js", "*.mjs", "*.cjs"),
        configs=("package.json", ".npmrc"),
    ),
    _spec(
        Category.LANGUAGE, "typescript",
        canonical="tsconfig.json",
        files=("*.ts", "*.tsx"),
        configs=("tsconfig.json",),
        package_indicators=("typescript", "@types/"),
    ),
    _spec(
        Category.LANGUAGE, "python",
        canonical="pyproject.toml",
        files=("*.py",),
        configs=("requirements.txt", "setup.py", "pyproject.toml", "Pipfile"),
        file_indicators=("manage.py",),
    ),
    _spec(
        Category.LANGUAGE, "java",
        canonical="pom.xml",
        files=("*.java",),
        configs=("pom.xml", "build.gradle", "build.gradle.kts"),
    ),
    _spec(
        Category.LANGUAGE, "go",
        canonical="go.mod",
        files=("*.go",),
        configs=("go.mod", "go.sum"),
    ),
    _spec(
        Category.LANGUAGE, "rust",
        canonical="Cargo.toml",
        files=("*.rs",),
        configs=("Cargo.toml",),
    ),
)

FRONTEND_DETECTORS: Tuple[DetectorSpec, ...] = (
    _spec(
        Category.FRONTEND, "react",
        canonical="react",
        exclusive_with=("vue", "angular", "svelte"),
        dependencies=("react", "react-dom"),
        dev_dependencies=("@types/react", "@testing-library/react"),
    ),
    _spec(
        Category.FRONTEND, "vue",
        canonical="vue",
        exclusive_with=("react", "angular", "svelte"),
        dependencies=("vue",),
        files=("*.vue",),
        configs=("vue.config.js",),
    ),
    _spec(
        Category.FRONTEND, "angular",
        canonical="@angular/core",
        exclusive_with=("react", "vue", "svelte"),
        dependencies=("@angular/core", "@angular/common"),
        configs=("angular.json", ".angular-cli.json"),
    ),
    _spec(
        Category.FRONTEND, "svelte",
        canonical="svelte",
        exclusive_with=("react", "vue", "angular"),
        dependencies=("svelte", "@sveltejs/kit"),
        files=("*.svelte",),
        configs=("svelte.config.js", "svelte.config.mjs"),
    ),
    _spec(
        Category.FRONTEND, "nextjs",
        canonical="next",
        dependencies=("next",),
        dev_dependencies=("eslint-config-next",),
        scripts=("next dev", "next build", "next start"),
        configs=("next.config.js", "next.config.mjs", "next.config.ts"),
    ),
)

_NODE_SERVERS = ("express", "fastify", "koa", "hapi")
_PYTHON_SERVERS = ("fastapi", "django", "flask")


def _others(group: Sequence[str], name: str) -> Tuple[str, ...]:
    return tuple(item for item in group if item != name)


BACKEND_DETECTORS: Tuple[DetectorSpec, ...] = (
    _spec(
        Category.BACKEND, "express",
        canonical="express",
        exclusive_with=_others(_NODE_SERVERS, "express"),
        dependencies=("express",),
        related_packages=("body-parser", "cors", "helmet", "morgan", "compression", "cookie-parser"),
        files=("app.js", "server.js", "index.js"),
        code_patterns=("express()",),
    ),
    _spec(
        Category.BACKEND, "fastify",
        canonical="fastify",
        exclusive_with=_others(_NODE_SERVERS, "fastify"),
        dependencies=("fastify",),
        files=("app.js", "server.js", "index.js", "app.ts", "server.ts"),
        code_patterns=("fastify()", "fastify.register", "Fastify("),
    ),
    _spec(
        Category.BACKEND, "koa",
        canonical="koa",
        exclusive_with=_others(_NODE_SERVERS, "koa"),
        dependencies=("koa",),
        related_packages=("koa-router", "@koa/router", "koa-bodyparser", "@koa/cors"),
        files=("app.js", "server.js", "index.js"),
        code_patterns=("new Koa(", "require('koa')", 'require("koa")'),
    ),
    _spec(
        Category.BACKEND, "hapi",
        canonical="@hapi/hapi",
        exclusive_with=_others(_NODE_SERVERS, "hapi"),
        dependencies=("@hapi/hapi", "hapi"),
        files=("app.js", "server.js", "index.js"),
        code_patterns=("Hapi.server(",),
    ),
    _spec(
        Category.BACKEND, "nestjs",
        canonical="@nestjs/core",
        dependencies=("@nestjs/core", "@nestjs/common"),
        files=("*.controller.ts", "*.module.ts"),
        configs=("nest-cli.json",),
    ),
    _spec(
        Category.BACKEND, "fastapi",
        canonical="fastapi",
        exclusive_with=_others(_PYTHON_SERVERS, "fastapi"),
        dependencies=("fastapi",),
        related_packages=("uvicorn", "starlette", "pydantic"),
        files=("main.py", "app.py"),
        code_patterns=("FastAPI()", "@app.get", "@app.post", "@app.put", "@app.delete"),
        imports=("from fastapi", "import fastapi"),
    ),
    _spec(
        Category.BACKEND, "django",
        canonical="django",
        exclusive_with=_others(_PYTHON_SERVERS, "django"),
        dependencies=("django",),
        related_packages=("djangorestframework", "django-cors-headers"),
        files=("manage.py", "settings.py", "urls.py"),
        indicators=("*/migrations/",),
        imports=("from django", "import django"),
    ),
    _spec(
        Category.BACKEND, "flask",
        canonical="flask",
        exclusive_with=_others(_PYTHON_SERVERS, "flask"),
        dependencies=("flask",),
        related_packages=("flask-restful", "flask-cors", "flask-sqlalchemy", "gunicorn"),
        files=("app.py", "main.py", "run.py"),
        code_patterns=("Flask(__name__)", "@app.route"),
        imports=("from flask", "import flask"),
    ),
)

DATABASE_DETECTORS: Tuple[DetectorSpec, ...] = (
    _spec(
        Category.DATABASE, "mongodb",
        canonical="mongoose",
        dependencies=("mongoose", "mongodb", "pymongo", "motor", "mongoengine"),
        connection_strings=("mongodb://", "mongodb+srv://"),
        docker_services=("mongo", "mongodb"),
        env_vars=("MONGO_URI", "MONGODB_URI"),
    ),
    _spec(
        Category.DATABASE, "postgresql",
        canonical="pg",
        dependencies=(
            "pg", "postgres", "psycopg2", "psycopg2-binary", "psycopg", "asyncpg",
            "sqlmodel", "sqlalchemy", "typeorm",
        ),
        connection_strings=("postgres://", "postgresql://"),
        docker_services=("postgres", "postgresql"),
        env_vars=("POSTGRES_DB", "PG_CONNECTION", "POSTGRESQL_URL"),
    ),
    _spec(
        Category.DATABASE, "mysql",
        canonical="mysql2",
        dependencies=("mysql2", "mysql", "mysqlclient", "pymysql", "aiomysql"),
        connection_strings=("mysql://",),
        docker_services=("mysql", "mariadb"),
        env_vars=("MYSQL_DATABASE", "MYSQL_HOST"),
    ),
    _spec(
        Category.DATABASE, "redis",
        canonical="ioredis",
        dependencies=("ioredis", "redis", "bull", "bullmq", "bee-queue", "aioredis"),
        connection_strings=("redis://", "rediss://"),
        docker_services=("redis",),
        env_vars=("REDIS_URL", "REDIS_HOST"),
    ),
    _spec(
        Category.DATABASE, "sqlite",
        canonical="sqlite3",
        dependencies=("sqlite3", "better-sqlite3", "aiosqlite"),
        connection_strings=("sqlite://", "sqlite:///"),
        files=("*.sqlite", "*.sqlite3", "*.db"),
        match_limit=5,
    ),
)

_NODE_UNIT_RUNNERS = ("jest", "mocha", "jasmine", "ava")

TESTING_DETECTORS: Tuple[DetectorSpec, ...] = (
    _spec(
        Category.TESTING, "jest",
        canonical="jest",
        exclusive_with=_others(_NODE_UNIT_RUNNERS, "jest"),
        dependencies=("jest", "@types/jest"),
        dev_dependencies=("ts-jest", "babel-jest"),
        configs=("jest.config.js", "jest.config.ts", "jest.config.mjs", "jest.config.json"),
        package_json_config="jest",
        files=("*.test.js", "*.test.ts", "*.spec.js", "*.spec.ts"),
    ),
    _spec(
        Category.TESTING, "vitest",
        canonical="vitest",
        dependencies=("vitest",),
        configs=("vitest.config.ts", "vitest.config.js", "vitest.config.mts"),
    ),
    _spec(
        Category.TESTING, "mocha",
        canonical="mocha",
        exclusive_with=_others(_NODE_UNIT_RUNNERS, "mocha"),
        dependencies=("mocha",),
        configs=(".mocharc.js", ".mocharc.json", ".mocharc.yml", "test/mocha.opts"),
    ),
    _spec(
        Category.TESTING, "cypress",
        canonical="cypress",
        dependencies=("cypress",),
        configs=("cypress.json", "cypress.config.js", "cypress.config.ts"),
        directories=("cypress/integration", "cypress/e2e"),
    ),
    _spec(
        Category.TESTING, "playwright",
        canonical="@playwright/test",
        dependencies=("@playwright/test", "pytest-playwright"),
        configs=("playwright.config.js", "playwright.config.ts"),
    ),
    _spec(
        Category.TESTING, "pytest",
        canonical="pytest",
        dependencies=("pytest",),
        related_packages=("pytest-cov", "pytest-asyncio", "pytest-mock", "pytest-xdist"),
        configs=("pytest.ini", "conftest.py"),
        config_markers=(
            ("pyproject.toml", "[tool.pytest"),
            ("setup.cfg", "[tool:pytest]"),
            ("tox.ini", "[pytest]"),
        ),
        files=("test_*.py", "*_test.py"),
        directories=("tests", "test"),
    ),
    _spec(
        Category.TESTING, "unittest",
        files=("test_*.py", "*_test.py"),
        directories=("tests", "test"),
        code_patterns=("unittest.TestCase", "import unittest", "from unittest"),
    ),
)

BUILD_TOOL_DETECTORS: Tuple[DetectorSpec, ...] = (
    _spec(
        Category.BUILD_TOOL, "webpack",
        canonical="webpack",
        exclusive_with=("parcel",),
        dependencies=("webpack", "webpack-cli"),
        configs=("webpack.config.js", "webpack.config.ts"),
    ),
    _spec(
        Category.BUILD_TOOL, "vite",
        canonical="vite",
        dependencies=("vite",),
        configs=("vite.config.js", "vite.config.ts", "vite.config.mjs"),
    ),
    _spec(
        Category.BUILD_TOOL, "parcel",
        canonical="parcel",
        exclusive_with=("webpack",),
        dependencies=("parcel",),
        configs=(".parcelrc",),
    ),
    _spec(
        Category.BUILD_TOOL, "poetry",
        canonical="poetry.lock",
        configs=("poetry.lock",),
        config_markers=(("pyproject.toml", "[tool.poetry"),),
        file_indicators=("poetry.toml",),
    ),
    _spec(
        Category.BUILD_TOOL, "uv",
        canonical="uv.lock",
        configs=("uv.lock",),
        config_markers=(("pyproject.toml", "[tool.uv"),),
        file_indicators=("uv.toml", ".python-version"),
    ),
    _spec(
        Category.BUILD_TOOL, "setuptools",
        canonical="setup.py",
        configs=("setup.py", "setup.cfg"),
        config_markers=(("pyproject.toml", "setuptools.build_meta"),),
        file_indicators=("MANIFEST.in",),
    ),
)

DEPLOYMENT_DETECTORS: Tuple[DetectorSpec, ...] = (
    _spec(
        Category.DEPLOYMENT, "docker",
        canonical="Dockerfile",
        configs=("Dockerfile", "docker-compose.yml", "docker-compose.yaml", "compose.yml", "compose.yaml"),
        file_indicators=(".dockerignore",),
    ),
    _spec(
        Category.DEPLOYMENT, "kubernetes",
        indicators=("k8s", "kubernetes", "helm"),
        configs=("skaffold.yaml", "helm/Chart.yaml", "Chart.yaml"),
        files=("k8s/*.yaml", "k8s/*.yml", "kubernetes/*.yaml", "kubernetes/*.yml", "deploy/*.yaml"),
        code_patterns=("kind: Deployment", "kind: Service", "kind: Pod", "kind: StatefulSet"),
    ),
    _spec(
        Category.DEPLOYMENT, "github-actions",
        canonical=".github/workflows",
        files=(".github/workflows/*.yml", ".github/workflows/*.yaml"),
    ),
)


class DetectorRegistry:
    """Immutable table of detector specs and their scoring functions.

    Built once (see ``build_default_registry``) and passed explicitly to
    the scorer and the conflict resolver.
    """

    def __init__(
        self,
        specs: Sequence[DetectorSpec],
        scorers: Mapping[str, ScoringFunction],
    ):
        missing = [spec.name for spec in specs if spec.name not in scorers]
        if missing:
            raise ValueError(f"No scoring function registered for: {', '.join(missing)}")

        names = [spec.name for spec in specs]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate detector names: {', '.join(duplicates)}")

        self._specs: Tuple[DetectorSpec, ...] = tuple(specs)
        self._scorers: Dict[str, ScoringFunction] = {spec.name: scorers[spec.name] for spec in specs}

    def __iter__(self) -> Iterator[DetectorSpec]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    def specs_for(self, category: Category) -> List[DetectorSpec]:
        """Specs of one category in declaration order."""
        return [spec for spec in self._specs if spec.category == category]

    def get(self, name: str) -> Optional[DetectorSpec]:
        """Look up a spec by name."""
        for spec in self._specs:
            if spec.name == name:
                return spec
        return None

    def scorer(self, name: str) -> ScoringFunction:
        """Scoring function for a detector name."""
        return self._scorers[name]

    def exclusions(self) -> Dict[str, FrozenSet[str]]:
        """Mutual exclusion table: detector name -> names it excludes."""
        return {spec.name: spec.exclusive_with for spec in self._specs if spec.exclusive_with}


ALL_DETECTORS: Tuple[DetectorSpec, ...] = (
    LANGUAGE_DETECTORS
    + FRONTEND_DETECTORS
    + BACKEND_DETECTORS
    + DATABASE_DETECTORS
    + TESTING_DETECTORS
    + BUILD_TOOL_DETECTORS
    + DEPLOYMENT_DETECTORS
)


def build_default_registry() -> DetectorRegistry:
    """Registry with every built-in detector."""
    return DetectorRegistry(ALL_DETECTORS, SCORERS)
