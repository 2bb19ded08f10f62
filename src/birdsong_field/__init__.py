"""Birdsong Field Monitor - Main Package.

This package provides band-energy feature extraction, nearest-signature
species estimation, a tick-driven capture loop with pluggable event
sinks, and CSV export of detection sessions.
"""

__version__ = "0.1.0"

from . import audio
from . import sensors
from . import sinks
from .audio import (
    ClassificationResult,
    FeatureExtractor,
    SignatureClassifier,
    SpeciesSignature,
    classify,
    extract_features,
)
from .session import CaptureLoop, ListeningSession

__all__ = [
    "ClassificationResult",
    "FeatureExtractor",
    "SignatureClassifier",
    "SpeciesSignature",
    "classify",
    "extract_features",
    "CaptureLoop",
    "ListeningSession",
]
