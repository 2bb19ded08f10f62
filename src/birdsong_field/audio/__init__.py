"""Band-energy feature extraction and species signature classification."""

from .classifier import (
    DEFAULT_SIGNATURES,
    ClassificationResult,
    SignatureClassifier,
    SpeciesSignature,
    classify,
)
from .features import (
    BandVector,
    FeatureExtractor,
    FrameFeatures,
    NormalizedBandVector,
    dominant_band,
    extract_features,
)
from .preprocessing import FrequencyAnalyzer

__all__ = [
    "DEFAULT_SIGNATURES",
    "ClassificationResult",
    "SignatureClassifier",
    "SpeciesSignature",
    "classify",
    "BandVector",
    "FeatureExtractor",
    "FrameFeatures",
    "NormalizedBandVector",
    "dominant_band",
    "extract_features",
    "FrequencyAnalyzer",
]
