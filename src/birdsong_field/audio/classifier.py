"""Species signature classification module.

This module matches a relative band vector against a fixed table of
species signatures using Euclidean distance. It is a deterministic
heuristic for field demos, not a trained acoustic model.
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..exceptions import ConfigurationError
from .features import NormalizedBandVector

# Largest distance between two points of the unit cube [0, 1]^3
MAX_DISTANCE = math.sqrt(3)

MIN_CONFIDENCE = 40
MAX_CONFIDENCE = 100


@dataclass(frozen=True)
class SpeciesSignature:
    """Reference band profile for one species."""

    key: str
    display_name: str
    scientific_name: str
    signature: Tuple[float, float, float]
    emoji: str = ""

    @property
    def label(self) -> str:
        return f"{self.display_name} ({self.scientific_name})"

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "key": self.key,
            "display_name": self.display_name,
            "scientific_name": self.scientific_name,
            "signature": list(self.signature),
            "emoji": self.emoji,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "SpeciesSignature":
        """Build a signature from a configuration mapping.

        Raises:
            ConfigurationError: If a field is missing or the signature
                is not three non-negative numbers
        """
        try:
            key = str(data["key"])
            display_name = str(data.get("display_name") or data["common_name_es"])
            scientific_name = str(data["scientific_name"])
            values = tuple(float(v) for v in data["signature"])
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid species entry {data!r}: {e}") from e

        if len(values) != 3 or any(v < 0 for v in values):
            raise ConfigurationError(
                f"Signature for '{key}' must be three non-negative values, got {values}"
            )

        return cls(
            key=key,
            display_name=display_name,
            scientific_name=scientific_name,
            signature=values,
            emoji=str(data.get("emoji", "")),
        )


# Heuristic signatures for common central-Chile species
DEFAULT_SIGNATURES: Tuple[SpeciesSignature, ...] = (
    SpeciesSignature("tenca", "Tenca", "Mimus thenca", (0.25, 0.5, 0.25), "🎶"),
    SpeciesSignature("zorzal", "Zorzal", "Turdus falcklandii", (0.5, 0.35, 0.15), "🕊️"),
    SpeciesSignature("rayadito", "Rayadito", "Aphrastura spinicauda", (0.15, 0.35, 0.5), "🐦"),
    SpeciesSignature("diuca", "Diuca", "Diuca diuca", (0.3, 0.45, 0.25), "🎼"),
    SpeciesSignature("loica", "Loica", "Leistes loyca", (0.2, 0.4, 0.4), "🟥"),
)


@dataclass(frozen=True)
class ClassificationResult:
    """Nearest signature for a band vector."""

    signature: SpeciesSignature
    distance: float
    confidence: int

    @property
    def species_key(self) -> str:
        return self.signature.key

    def to_dict(self) -> Dict:
        return {
            "species": self.signature.to_dict(),
            "distance": self.distance,
            "confidence": self.confidence,
        }


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def distance_confidence(distance: float) -> int:
    """Convert a signature distance into a bounded confidence score.

    Args:
        distance: Euclidean distance to the matched signature

    Returns:
        Integer confidence in [40, 100]; 100 for an exact match
    """
    raw = max(0.0, MAX_DISTANCE - distance) / MAX_DISTANCE
    raw = min(1.0, max(0.0, raw))
    return _round_half_up(MIN_CONFIDENCE + raw * (MAX_CONFIDENCE - MIN_CONFIDENCE))


def _as_components(vec) -> np.ndarray:
    if isinstance(vec, NormalizedBandVector):
        return vec.as_array()
    return np.asarray(vec, dtype=np.float64).ravel()


def classify(
    vec,
    signatures: Sequence[SpeciesSignature] = DEFAULT_SIGNATURES,
) -> ClassificationResult:
    """Find the signature nearest to a relative band vector.

    The first signature in table order wins on equal distance. The table
    must not be empty.

    Args:
        vec: NormalizedBandVector or any 3-component sequence
        signatures: Species table to search

    Returns:
        ClassificationResult with the best match

    Raises:
        ValueError: If the table is empty
    """
    components = _as_components(vec)
    table = tuple(signatures)
    if not table:
        raise ValueError("Cannot classify against an empty signature table")

    references = np.array([s.signature for s in table], dtype=np.float64)
    distances = np.sqrt(np.sum((references - components) ** 2, axis=1))

    # argmin keeps the first index on ties and always names an entry
    index = int(np.argmin(distances))
    best_distance = float(distances[index])

    return ClassificationResult(
        signature=table[index],
        distance=best_distance,
        confidence=distance_confidence(best_distance),
    )


class SignatureClassifier:
    """Nearest-signature classifier over a fixed species table."""

    def __init__(self, signatures: Optional[Iterable[SpeciesSignature]] = None):
        """Initialize signature classifier.

        Args:
            signatures: Species table (defaults to the built-in table)

        Raises:
            ConfigurationError: If the table is empty or has duplicate keys
        """
        table = tuple(signatures) if signatures is not None else DEFAULT_SIGNATURES

        if not table:
            raise ConfigurationError("Species signature table is empty")

        keys = [s.key for s in table]
        if len(set(keys)) != len(keys):
            raise ConfigurationError(f"Duplicate species keys in table: {keys}")

        self._signatures = table

    @property
    def signatures(self) -> Tuple[SpeciesSignature, ...]:
        return self._signatures

    @property
    def classes(self) -> List[str]:
        return [s.key for s in self._signatures]

    def get(self, key: str) -> Optional[SpeciesSignature]:
        """Look up a signature by species key."""
        for species in self._signatures:
            if species.key == key:
                return species
        return None

    def classify(self, vec) -> ClassificationResult:
        """Classify a relative band vector.

        Args:
            vec: NormalizedBandVector or 3-component sequence

        Returns:
            ClassificationResult with matched species and confidence
        """
        return classify(vec, self._signatures)
