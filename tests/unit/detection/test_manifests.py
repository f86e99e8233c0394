"""Tests for stackprobe.detection.manifests."""

from __future__ import annotations

import pytest

from stackprobe.detection.manifests import (
    LenientPythonDescriptorParser,
    normalize_package_name,
    parse_package_json,
    parse_pyproject_deps,
    parse_requirements_txt,
    requirement_name,
)


class TestParsePackageJson:
    """Tests for parse_package_json function."""

    def test_parses_dependency_maps(self) -> None:
        manifest = parse_package_json(
            '{"dependencies": {"express": "^4.18.0"},'
            ' "devDependencies": {"jest": "^29.0.0"},'
            ' "scripts": {"test": "jest --coverage"}}'
        )
        assert manifest.dependencies == {"express": "^4.18.0"}
        assert manifest.dev_dependencies == {"jest": "^29.0.0"}
        assert manifest.scripts == {"test": "jest --coverage"}

    def test_all_dependency_names_runtime_first(self) -> None:
        manifest = parse_package_json(
            '{"dependencies": {"react": "18"}, "devDependencies": {"vite": "5", "react": "18"}}'
        )
        assert manifest.all_dependency_names() == ["react", "vite"]

    def test_bin_and_main_fields(self) -> None:
        manifest = parse_package_json('{"bin": {"tool": "cli.js"}, "main": "index.js"}')
        assert manifest.has_bin
        assert manifest.has_main

    def test_empty_fields_are_not_keys(self) -> None:
        manifest = parse_package_json('{"bin": {}, "main": ""}')
        assert not manifest.has_bin
        assert not manifest.has_main

    def test_missing_sections_default_to_empty(self) -> None:
        manifest = parse_package_json('{"name": "pkg"}')
        assert manifest.dependencies == {}
        assert manifest.dev_dependencies == {}
        assert manifest.scripts == {}

    def test_non_mapping_sections_are_ignored(self) -> None:
        manifest = parse_package_json('{"dependencies": ["express"]}')
        assert manifest.dependencies == {}

    def test_invalid_json_raises_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_package_json("{not json")

    def test_non_object_raises_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_package_json('["express"]')


class TestRequirementName:
    """Tests for requirement_name and normalize_package_name."""

    def test_strips_version_specifier(self) -> None:
        assert requirement_name("fastapi==0.104.1") == "fastapi"

    def test_strips_extras_and_markers(self) -> None:
        assert requirement_name('uvicorn[standard]>=0.20 ; python_version >= "3.8"') == "uvicorn"

    def test_normalizes_name(self) -> None:
        assert requirement_name("Flask_SQLAlchemy>=3") == "flask-sqlalchemy"

    def test_skips_python_requirement(self) -> None:
        assert requirement_name("python>=3.9") is None

    def test_returns_none_for_garbage(self) -> None:
        assert requirement_name("  >=1.0") is None

    def test_normalize_collapses_separators(self) -> None:
        assert normalize_package_name("zope.interface") == "zope-interface"
        assert normalize_package_name("Some__Pkg") == "some-pkg"


class TestParsePyprojectDeps:
    """Tests for parse_pyproject_deps function."""

    def test_project_dependencies(self) -> None:
        content = '''
[project]
name = "app"
dependencies = [
    "fastapi>=0.100.0",
    "uvicorn[standard]>=0.20",
    "pydantic",
]
'''
        assert parse_pyproject_deps(content) == {"fastapi", "uvicorn", "pydantic"}

    def test_extras_do_not_close_the_array(self) -> None:
        content = '[project]\ndependencies = ["uvicorn[standard]", "redis"]\n'
        assert parse_pyproject_deps(content) == {"uvicorn", "redis"}

    def test_optional_dependencies(self) -> None:
        content = '''
[project]
dependencies = []

[project.optional-dependencies]
dev = ["pytest>=7.0", "pytest-cov"]
docs = ["mkdocs"]
'''
        assert parse_pyproject_deps(content) == {"pytest", "pytest-cov", "mkdocs"}

    def test_dependency_groups(self) -> None:
        content = '''
[dependency-groups]
test = ["pytest", {include-group = "lint"}]
lint = ["ruff"]
'''
        assert parse_pyproject_deps(content) == {"pytest", "ruff"}

    def test_uv_dev_dependencies(self) -> None:
        content = '[tool.uv]\ndev-dependencies = ["pytest-asyncio"]\n'
        assert parse_pyproject_deps(content) == {"pytest-asyncio"}

    def test_poetry_dependency_tables(self) -> None:
        content = '''
[tool.poetry.dependencies]
python = "^3.11"
Django = "^4.2"
psycopg2-binary = {version = "^2.9", optional = true}

[tool.poetry.group.dev.dependencies]
pytest = "^7.4"
'''
        assert parse_pyproject_deps(content) == {"django", "psycopg2-binary", "pytest"}

    def test_ignores_unrelated_sections(self) -> None:
        content = '''
[build-system]
requires = ["setuptools>=61.0"]

[tool.ruff]
select = ["E", "F"]
'''
        assert parse_pyproject_deps(content) == set()

    def test_unterminated_array_is_lenient(self) -> None:
        content = '[project]\ndependencies = [\n    "flask",\n    "gunicorn",\n'
        assert parse_pyproject_deps(content) == {"flask", "gunicorn"}

    def test_apostrophe_in_comment_does_not_open_a_string(self) -> None:
        content = '''
[project]
name = "helpers"
dependencies = [
    "requests",  # don't bump
]
description = "Flask compatible helpers"
'''
        assert parse_pyproject_deps(content) == {"requests"}

    def test_quoted_names_in_comments_are_ignored(self) -> None:
        content = '[project]\ndependencies = [\n    # "django" was dropped ]\n    "httpx",\n]\n'
        assert parse_pyproject_deps(content) == {"httpx"}

    def test_hash_inside_string_is_not_a_comment(self) -> None:
        content = '[project]\ndependencies = ["pkg @ git+https://x.org/pkg#egg=pkg", "redis"]\n'
        assert "redis" in parse_pyproject_deps(content)

    def test_empty_content(self) -> None:
        assert parse_pyproject_deps("") == set()


class TestParseRequirementsTxt:
    """Tests for parse_requirements_txt function."""

    def test_pinned_requirement(self) -> None:
        assert parse_requirements_txt("fastapi==0.104.1\n") == {"fastapi"}

    def test_skips_comments_and_blank_lines(self) -> None:
        content = "# web\n\nflask>=2.0  # pinned later\n"
        assert parse_requirements_txt(content) == {"flask"}

    def test_skips_pip_options(self) -> None:
        content = "-r base.txt\n--index-url https://pypi.org/simple\n-e .\nredis\n"
        assert parse_requirements_txt(content) == {"redis"}

    def test_reads_egg_fragment(self) -> None:
        content = "git+https://github.com/org/repo.git#egg=My_Package\n"
        assert parse_requirements_txt(content) == {"my-package"}

    def test_environment_markers(self) -> None:
        content = 'uvloop; sys_platform != "win32"\n'
        assert parse_requirements_txt(content) == {"uvloop"}


class TestLenientPythonDescriptorParser:
    """Tests for LenientPythonDescriptorParser."""

    def test_delegates_to_parsers(self) -> None:
        parser = LenientPythonDescriptorParser()
        assert parser.parse_requirements("django\n") == {"django"}
        assert parser.parse_pyproject('[project]\ndependencies = ["django"]\n') == {"django"}
