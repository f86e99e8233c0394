"""Tests for stackprobe.detection.compose."""

from __future__ import annotations

from stackprobe.detection.compose import (
    LenientComposeScanner,
    YamlComposeScanner,
    get_compose_scanner,
)

COMPOSE_V3 = """\
version: "3.8"
services:
  web:
    build: .
    ports:
      - "8000:8000"
  redis:
    image: redis:7-alpine
  db:
    image: postgres:15
    environment:
      POSTGRES_DB: app
volumes:
  data:
"""

COMPOSE_V1 = """\
web:
  build: .
cache:
  image: redis
"""


class TestLenientComposeScanner:
    """Tests for LenientComposeScanner."""

    def test_finds_service_key(self) -> None:
        scanner = LenientComposeScanner()
        assert scanner.find_services(COMPOSE_V3, ["redis", "mongo"]) == ["redis"]

    def test_finds_image_name(self) -> None:
        scanner = LenientComposeScanner()
        assert scanner.find_services(COMPOSE_V3, ["postgres"]) == ["postgres"]

    def test_preserves_requested_order(self) -> None:
        scanner = LenientComposeScanner()
        assert scanner.find_services(COMPOSE_V3, ["postgres", "redis"]) == ["postgres", "redis"]

    def test_counts_services_block(self) -> None:
        scanner = LenientComposeScanner()
        assert scanner.count_services(COMPOSE_V3) == 3

    def test_counts_version_one_top_level_keys(self) -> None:
        scanner = LenientComposeScanner()
        assert scanner.count_services(COMPOSE_V1) == 2

    def test_empty_content(self) -> None:
        scanner = LenientComposeScanner()
        assert scanner.find_services("", ["redis"]) == []
        assert scanner.count_services("") == 0


class TestYamlComposeScanner:
    """Tests for YamlComposeScanner."""

    def test_matches_service_keys(self) -> None:
        scanner = YamlComposeScanner()
        assert scanner.find_services(COMPOSE_V3, ["redis", "mongo"]) == ["redis"]

    def test_matches_image_base_name(self) -> None:
        scanner = YamlComposeScanner()
        content = "services:\n  cache:\n    image: bitnami/redis:7.2\n"
        assert scanner.find_services(content, ["redis"]) == ["redis"]

    def test_ignores_substring_only_mentions(self) -> None:
        scanner = YamlComposeScanner()
        content = "services:\n  web:\n    environment:\n      REDIS_URL: redis://cache\n"
        assert scanner.find_services(content, ["redis"]) == []

    def test_counts_services(self) -> None:
        scanner = YamlComposeScanner()
        assert scanner.count_services(COMPOSE_V3) == 3

    def test_counts_version_one_services(self) -> None:
        scanner = YamlComposeScanner()
        assert scanner.count_services(COMPOSE_V1) == 2

    def test_falls_back_to_lenient_on_invalid_yaml(self) -> None:
        scanner = YamlComposeScanner()
        content = "services:\n  redis:\n    image: [unclosed\n"
        assert scanner.find_services(content, ["redis"]) == ["redis"]

    def test_non_mapping_document(self) -> None:
        scanner = YamlComposeScanner()
        assert scanner.find_services("- just\n- a list\n", ["redis"]) == []
        assert scanner.count_services("- just\n- a list\n") == 0


class TestGetComposeScanner:
    """Tests for get_compose_scanner function."""

    def test_yaml_parser(self) -> None:
        assert isinstance(get_compose_scanner("yaml"), YamlComposeScanner)

    def test_lenient_by_default(self) -> None:
        assert isinstance(get_compose_scanner("lenient"), LenientComposeScanner)
        assert isinstance(get_compose_scanner("unknown"), LenientComposeScanner)
