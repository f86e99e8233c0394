"""Technology stack detection.

Evidence is collected from the filesystem, scored by per-technology
detectors, filtered through mutual exclusion rules and assembled into a
``StackResult``.
"""

from stackprobe.detection.models import (
    ACCEPTANCE_THRESHOLD,
    Architecture,
    Category,
    Detection,
    DetectorSpec,
    Evidence,
    ProjectType,
    Requirements,
    StackResult,
)
from stackprobe.detection.collector import EvidenceCollector
from stackprobe.detection.registry import DetectorRegistry, build_default_registry
from stackprobe.detection.scorer import ConfidenceScorer
from stackprobe.detection.conflicts import ConflictResolver
from stackprobe.detection.project_type import ProjectTypeScore, classify
from stackprobe.detection.detector import StackDetector, detect, detect_sync

__all__ = [
    "ACCEPTANCE_THRESHOLD",
    "Architecture",
    "Category",
    "Detection",
    "DetectorSpec",
    "Evidence",
    "ProjectType",
    "Requirements",
    "StackResult",
    "EvidenceCollector",
    "DetectorRegistry",
    "build_default_registry",
    "ConfidenceScorer",
    "ConflictResolver",
    "ProjectTypeScore",
    "classify",
    "StackDetector",
    "detect",
    "detect_sync",
]
