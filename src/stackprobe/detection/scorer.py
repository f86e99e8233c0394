"""Confidence scoring over one detector category."""

from __future__ import annotations

import asyncio
from typing import List, Optional, Tuple

from stackprobe.core.logging import get_logger
from stackprobe.detection.collector import EvidenceCollector
from stackprobe.detection.models import (
    ACCEPTANCE_THRESHOLD,
    Category,
    Detection,
    DetectorSpec,
)
from stackprobe.detection.registry import DetectorRegistry

LOGGER = get_logger(__name__)


def is_accepted(confidence: float, threshold: float = ACCEPTANCE_THRESHOLD) -> bool:
    """Whether a confidence reaches the acceptance threshold.

    Scores are rounded first so float noise cannot push an exact 0.7
    below the threshold.
    """
    return round(confidence, 6) >= threshold


def rank(candidates: List[Tuple[int, Detection]]) -> List[Detection]:
    """Sort (declaration index, detection) pairs by descending confidence.

    Ties keep declaration order, independent of completion order.
    """
    ordered = sorted(candidates, key=lambda item: (-item[1].confidence, item[0]))
    return [detection for _, detection in ordered]


class ConfidenceScorer:
    """Runs every detector of a category and keeps accepted detections.

    Detectors are independent, so their evidence is collected concurrently,
    bounded by ``max_workers``.
    """

    def __init__(
        self,
        registry: DetectorRegistry,
        collector: EvidenceCollector,
        max_workers: int = 4,
        threshold: float = ACCEPTANCE_THRESHOLD,
    ):
        self.registry = registry
        self.collector = collector
        self.threshold = threshold
        self._semaphore = asyncio.Semaphore(max(1, max_workers))

    async def score_category(
        self,
        category: Category,
        is_backend_only: bool = False,
        is_frontend_only: bool = False,
    ) -> List[Detection]:
        """Score all detectors of a category.

        Args:
            category: Category to evaluate.
            is_backend_only: Project is backend-only (frontend detectors score 0).
            is_frontend_only: Project is frontend-only (backend detectors score 0).

        Returns:
            Accepted detections, highest confidence first.
        """
        specs = self.registry.specs_for(category)
        results = await asyncio.gather(*(
            self._score(spec, is_backend_only, is_frontend_only) for spec in specs
        ))

        candidates = [
            (index, detection)
            for index, detection in enumerate(results)
            if detection is not None
        ]
        accepted = rank(candidates)
        LOGGER.debug(
            f"{category.value}: accepted "
            + (", ".join(f"{d.name}={d.confidence:.2f}" for d in accepted) or "none")
        )
        return accepted

    async def _score(
        self,
        spec: DetectorSpec,
        is_backend_only: bool,
        is_frontend_only: bool,
    ) -> Optional[Detection]:
        async with self._semaphore:
            evidence = await self.collector.gather(
                spec.requirements,
                is_backend_only=is_backend_only,
                is_frontend_only=is_frontend_only,
                category=spec.category,
            )

        confidence = min(1.0, max(0.0, float(self.registry.scorer(spec.name)(evidence))))
        if not is_accepted(confidence, self.threshold):
            if confidence > 0:
                LOGGER.debug(f"Rejected {spec.name} at {confidence:.2f}")
            return None
        return Detection(name=spec.name, confidence=confidence, evidence=evidence)
