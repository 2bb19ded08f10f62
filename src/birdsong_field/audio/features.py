"""Band-energy feature extraction module.

This module reduces a byte frequency frame (one magnitude value per FFT
bin, 0-255) into three coarse band energies, their relative weights and
the overall frame energy. Everything here is a pure function of the frame.
"""

from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np

FrameLike = Union[Sequence[int], np.ndarray]

BAND_LOW = "low"
BAND_MID = "mid"
BAND_HIGH = "high"
BANDS = (BAND_LOW, BAND_MID, BAND_HIGH)


@dataclass(frozen=True)
class BandVector:
    """Mean magnitude of each third of a frequency frame."""

    low: float
    mid: float
    high: float

    @property
    def total(self) -> float:
        return self.low + self.mid + self.high

    def as_tuple(self):
        return (self.low, self.mid, self.high)


@dataclass(frozen=True)
class NormalizedBandVector:
    """Relative band energies, summing to 1 (or all zero for a silent frame)."""

    low_rel: float
    mid_rel: float
    high_rel: float

    def as_tuple(self):
        return (self.low_rel, self.mid_rel, self.high_rel)

    def as_array(self) -> np.ndarray:
        return np.array(self.as_tuple(), dtype=np.float64)


@dataclass(frozen=True)
class FrameFeatures:
    """Container for the features extracted from one frame."""

    band_vector: BandVector
    normalized: NormalizedBandVector
    total_energy: float

    @property
    def dominant_band(self) -> str:
        return dominant_band(self.normalized)


def _mean(values: np.ndarray) -> float:
    if values.size == 0:
        return 0.0
    return float(values.mean())


def split_bands(frame: FrameLike) -> BandVector:
    """Average the three contiguous thirds of a frame.

    The slices are ``[0, third)``, ``[third, 2 * third)`` and
    ``[2 * third, N)`` with ``third = N // 3``, so the high band takes the
    remainder when N is not a multiple of three.

    Args:
        frame: Byte frequency data

    Returns:
        BandVector with the mean of each slice (0 for an empty slice)
    """
    data = np.asarray(frame, dtype=np.float64).ravel()
    third = data.size // 3

    return BandVector(
        low=_mean(data[:third]),
        mid=_mean(data[third:2 * third]),
        high=_mean(data[2 * third:]),
    )


def normalize_bands(bands: BandVector) -> NormalizedBandVector:
    """Divide each band by the band sum.

    A zero sum is replaced by 1 so a silent frame maps to the zero vector.
    """
    total = bands.total or 1.0
    return NormalizedBandVector(
        low_rel=bands.low / total,
        mid_rel=bands.mid / total,
        high_rel=bands.high / total,
    )


def dominant_band(vec: NormalizedBandVector) -> str:
    """Label the strongest band.

    High wins only if it strictly exceeds both other bands, mid only if it
    strictly exceeds low; everything else (ties included) is low.
    """
    if vec.high_rel > vec.mid_rel and vec.high_rel > vec.low_rel:
        return BAND_HIGH
    if vec.mid_rel > vec.low_rel:
        return BAND_MID
    return BAND_LOW


def extract_features(frame: FrameLike) -> FrameFeatures:
    """Extract band and energy features from a frequency frame.

    Args:
        frame: Byte frequency data, one value per bin

    Returns:
        FrameFeatures with raw bands, relative bands and mean energy
    """
    data = np.asarray(frame, dtype=np.float64).ravel()
    bands = split_bands(data)

    return FrameFeatures(
        band_vector=bands,
        normalized=normalize_bands(bands),
        total_energy=_mean(data),
    )


def level_percent(total_energy: float) -> float:
    """Map frame energy onto the 0-100 level meter scale."""
    return min(100.0, (total_energy / 255.0) * 120.0)


class FeatureExtractor:
    """Band-energy feature extractor for the capture loop."""

    def extract(self, frame: FrameLike) -> FrameFeatures:
        """Extract features from one frame.

        Args:
            frame: Byte frequency data

        Returns:
            FrameFeatures for the frame
        """
        return extract_features(frame)

    def extract_batch(self, frames) -> list:
        """Extract features from several independent frames."""
        return [extract_features(frame) for frame in frames]
