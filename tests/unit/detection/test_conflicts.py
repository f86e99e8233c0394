"""Tests for stackprobe.detection.conflicts."""

from __future__ import annotations

import itertools

import pytest

from stackprobe.detection.conflicts import ConflictResolver
from stackprobe.detection.models import Detection
from stackprobe.detection.registry import build_default_registry


def _detections(*pairs):
    return [Detection(name, confidence) for name, confidence in pairs]


def _names(detections):
    return [d.name for d in detections]


class TestConfidenceStrategy:
    """Tests for the default, confidence-based strategy."""

    def test_highest_confidence_survives(self) -> None:
        resolver = ConflictResolver(build_default_registry())
        result = resolver.resolve(_detections(("vue", 1.0), ("react", 0.8), ("nextjs", 0.9)))

        assert _names(result) == ["vue", "nextjs"]

    def test_non_exclusive_detections_all_survive(self) -> None:
        resolver = ConflictResolver(build_default_registry())
        detections = _detections(("jest", 1.0), ("cypress", 1.0), ("playwright", 0.9))

        assert resolver.resolve(detections) == detections

    def test_symmetric_check(self) -> None:
        resolver = ConflictResolver(build_default_registry())

        assert resolver.excludes("react", "vue")
        assert resolver.excludes("vue", "react")
        assert resolver.excludes("jasmine", "jest")
        assert not resolver.excludes("react", "nextjs")

    def test_python_servers(self) -> None:
        resolver = ConflictResolver(build_default_registry())
        result = resolver.resolve(_detections(("flask", 1.0), ("django", 0.9), ("express", 0.8)))

        assert _names(result) == ["flask", "express"]


class TestDeclarationStrategy:
    """Tests for the declaration-order strategy."""

    def test_react_removes_vue_regardless_of_confidence(self) -> None:
        resolver = ConflictResolver(build_default_registry(), strategy="declaration")
        result = resolver.resolve(_detections(("vue", 1.0), ("react", 0.8)))

        assert _names(result) == ["react"]

    def test_webpack_removes_parcel(self) -> None:
        resolver = ConflictResolver(build_default_registry(), strategy="declaration")
        result = resolver.resolve(_detections(("parcel", 1.0), ("vite", 0.9), ("webpack", 0.8)))

        assert _names(result) == ["vite", "webpack"]


class TestInvariant:
    """No mutually exclusive pair survives under either strategy."""

    @pytest.mark.parametrize("strategy", ["confidence", "declaration"])
    def test_no_exclusive_pair_survives(self, strategy: str) -> None:
        registry = build_default_registry()
        resolver = ConflictResolver(registry, strategy=strategy)
        group = ["react", "vue", "angular", "svelte", "nextjs"]

        for size in range(2, len(group) + 1):
            for combo in itertools.combinations(group, size):
                detections = _detections(*((name, 0.9) for name in combo))
                survivors = _names(resolver.resolve(detections))
                for first, second in itertools.combinations(survivors, 2):
                    assert not resolver.excludes(first, second)

    def test_unknown_strategy_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown conflict strategy"):
            ConflictResolver(build_default_registry(), strategy="random")
