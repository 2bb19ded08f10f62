"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


class FakeClock:
    """Epoch-ms clock that advances a fixed step on every call."""

    def __init__(self, start: int = 1_000, step: int = 100):
        self.now = start
        self.step = step

    def __call__(self) -> int:
        value = self.now
        self.now += self.step
        return value


@pytest.fixture
def clock():
    """Deterministic millisecond clock."""
    return FakeClock()


@pytest.fixture
def low_frame():
    """Length-9 frame with all energy in the low third."""
    return [255, 255, 255, 0, 0, 0, 0, 0, 0]


@pytest.fixture
def silent_frame():
    """Length-9 frame with no energy."""
    return [0] * 9


@pytest.fixture
def random_frame():
    """Random 1024-bin byte frequency frame."""
    rng = np.random.default_rng(42)
    return rng.integers(0, 256, size=1024, dtype=np.uint8)


@pytest.fixture
def sample_audio():
    """One 2048-sample chunk of a 0.5 amplitude sine at FFT bin 100 (44.1 kHz)."""
    sample_rate = 44100
    n = np.arange(2048)
    freq = 100 * sample_rate / 2048
    return (0.5 * np.sin(2 * np.pi * freq * n / sample_rate)).astype(np.float32)


@pytest.fixture
def make_event():
    """Factory for classified syllable events."""
    from birdsong_field.audio import classify, extract_features
    from birdsong_field.events import SyllableEvent

    def _make(frame=None, timestamp=1_000):
        frame = frame if frame is not None else [255, 255, 255, 0, 0, 0, 0, 0, 0]
        features = extract_features(frame)
        return SyllableEvent(
            band=features.dominant_band,
            total_energy=features.total_energy,
            timestamp=timestamp,
            normalized=features.normalized,
            classification=classify(features.normalized),
        )

    return _make


@pytest.fixture
def fresh_config():
    """Reset the global configuration singleton around a test."""
    from birdsong_field.constants import Config

    Config._instance = None
    yield
    Config._instance = None
