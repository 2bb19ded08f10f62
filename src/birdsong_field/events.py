"""Detection event types.

A ``SyllableEvent`` is what the capture loop hands to sinks for every
classified tick; a ``DetectionRecord`` is the flat row a session keeps
for export.
"""

import json
import math
import time
from dataclasses import dataclass
from typing import Dict

from .audio.classifier import ClassificationResult
from .audio.features import NormalizedBandVector


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class SyllableEvent:
    """One classified tick, as delivered to event sinks."""

    band: str  # low, mid, high
    total_energy: float
    timestamp: int  # epoch ms
    normalized: NormalizedBandVector
    classification: ClassificationResult

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "band": self.band,
            "energy": self.total_energy,
            "timestamp": self.timestamp,
            "low_rel": self.normalized.low_rel,
            "mid_rel": self.normalized.mid_rel,
            "high_rel": self.normalized.high_rel,
            "classification": self.classification.to_dict(),
        }

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), ensure_ascii=False)


@dataclass(frozen=True)
class DetectionRecord:
    """Session log entry for one detection."""

    timestamp: int
    low_rel: float
    mid_rel: float
    high_rel: float
    energy: int
    species_key: str
    common_name_es: str
    scientific_name: str
    confidence: int

    @classmethod
    def from_event(cls, event: SyllableEvent) -> "DetectionRecord":
        species = event.classification.signature
        return cls(
            timestamp=event.timestamp,
            low_rel=event.normalized.low_rel,
            mid_rel=event.normalized.mid_rel,
            high_rel=event.normalized.high_rel,
            energy=int(math.floor(event.total_energy + 0.5)),
            species_key=species.key,
            common_name_es=species.display_name,
            scientific_name=species.scientific_name,
            confidence=event.classification.confidence,
        )

    def to_dict(self) -> Dict:
        return {
            "timestamp": self.timestamp,
            "low_rel": self.low_rel,
            "mid_rel": self.mid_rel,
            "high_rel": self.high_rel,
            "energy": self.energy,
            "species_key": self.species_key,
            "common_name_es": self.common_name_es,
            "scientific_name": self.scientific_name,
            "confidence": self.confidence,
        }
