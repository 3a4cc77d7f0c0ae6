"""
Detection models for decoded detector output.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Tuple

# Reserved label meaning "no class exceeded the threshold"
UNKNOWN_LABEL = "unknown"


@dataclass(frozen=True)
class Detection:
    """
    A single image-level detection.

    Attributes:
        label: Human-readable class label (or UNKNOWN_LABEL).
        confidence: Max class confidence across anchors (0-1).
    """
    label: str
    confidence: float = 0.0

    @property
    def is_unknown(self) -> bool:
        return self.label == UNKNOWN_LABEL

    @classmethod
    def unknown(cls) -> "Detection":
        """The sentinel returned when nothing is detected."""
        return cls(label=UNKNOWN_LABEL, confidence=0.0)

    def as_tuple(self) -> Tuple[str, float]:
        """Return as (label, confidence) tuple."""
        return (self.label, self.confidence)


@dataclass(frozen=True)
class DetectionSet:
    """
    Ordered set of distinct labels produced by one detector pass.

    Labels keep first-seen order so results are deterministic.
    """
    labels: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "labels", tuple(dict.fromkeys(self.labels)))

    @classmethod
    def from_detections(cls, detections: Iterable[Detection]) -> "DetectionSet":
        return cls(labels=tuple(d.label for d in detections))

    @classmethod
    def unknown(cls) -> "DetectionSet":
        return cls(labels=(UNKNOWN_LABEL,))

    @property
    def is_unknown(self) -> bool:
        """True if the set carries no positive detection."""
        return all(label == UNKNOWN_LABEL for label in self.labels)

    def __contains__(self, label: object) -> bool:
        return label in self.labels

    def __iter__(self):
        return iter(self.labels)

    def __len__(self) -> int:
        return len(self.labels)

    def to_list(self) -> List[str]:
        return list(self.labels)
