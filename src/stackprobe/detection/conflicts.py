"""Mutual exclusion between detections of the same category."""

from __future__ import annotations

from typing import Dict, FrozenSet, List, Optional, Set

from stackprobe.config.models import (
    CONFLICT_STRATEGY_CONFIDENCE,
    CONFLICT_STRATEGY_DECLARATION,
    VALID_CONFLICT_STRATEGIES,
)
from stackprobe.core.logging import get_logger
from stackprobe.detection.models import Detection
from stackprobe.detection.registry import DetectorRegistry

LOGGER = get_logger(__name__)


class ConflictResolver:
    """Removes mutually exclusive detections from a category's results.

    With the ``confidence`` strategy the strongest detection wins; with
    ``declaration`` every accepted table key removes its exclusions in
    registry order, regardless of confidence.
    """

    def __init__(
        self,
        registry: DetectorRegistry,
        strategy: str = CONFLICT_STRATEGY_CONFIDENCE,
    ):
        if strategy not in VALID_CONFLICT_STRATEGIES:
            raise ValueError(
                f"Unknown conflict strategy '{strategy}'. "
                f"Expected one of: {', '.join(sorted(VALID_CONFLICT_STRATEGIES))}"
            )
        self.registry = registry
        self.strategy = strategy
        self._exclusions: Dict[str, FrozenSet[str]] = registry.exclusions()

    def excludes(self, first: str, second: str) -> bool:
        """Whether two detector names are mutually exclusive in either direction."""
        return (
            second in self._exclusions.get(first, frozenset())
            or first in self._exclusions.get(second, frozenset())
        )

    def resolve(self, detections: List[Detection]) -> List[Detection]:
        """Resolve one category.

        Args:
            detections: Accepted detections, highest confidence first.

        Returns:
            Surviving detections in their original order.
        """
        if self.strategy == CONFLICT_STRATEGY_DECLARATION:
            survivors = self._resolve_by_declaration(detections)
        else:
            survivors = self._resolve_by_confidence(detections)

        kept = {d.name for d in survivors}
        removed = [d.name for d in detections if d.name not in kept]
        if removed:
            LOGGER.debug(f"Conflict resolution ({self.strategy}) removed: {', '.join(removed)}")
        return survivors

    def _resolve_by_confidence(self, detections: List[Detection]) -> List[Detection]:
        survivors: List[Detection] = []
        for detection in detections:
            blocker = self._first_conflict(detection.name, survivors)
            if blocker is None:
                survivors.append(detection)
            else:
                LOGGER.debug(f"{detection.name} excluded by {blocker}")
        return survivors

    def _first_conflict(self, name: str, survivors: List[Detection]) -> Optional[str]:
        for survivor in survivors:
            if self.excludes(name, survivor.name):
                return survivor.name
        return None

    def _resolve_by_declaration(self, detections: List[Detection]) -> List[Detection]:
        remaining = list(detections)
        for spec in self.registry:
            names: Set[str] = {d.name for d in remaining}
            if spec.name in names and spec.exclusive_with:
                remaining = [d for d in remaining if d.name not in spec.exclusive_with]
        return remaining
