"""Audio preprocessing module.

This module turns raw PCM chunks from the microphone into byte
frequency frames, using the same windowing, smoothing and decibel
scaling as a browser AnalyserNode so frames (and thresholds tuned on
them) are comparable between the web demo and this package.
"""

import logging
from typing import Optional

import numpy as np

from ..constants import AnalyserConfig

logger = logging.getLogger(__name__)


def blackman_window(size: int, alpha: float = 0.16) -> np.ndarray:
    """Blackman window over ``size`` samples (periodic form).

    Args:
        size: Window length
        alpha: Blackman alpha parameter

    Returns:
        Window coefficients
    """
    a0 = (1 - alpha) / 2
    a1 = 0.5
    a2 = alpha / 2
    n = np.arange(size)
    return (
        a0
        - a1 * np.cos(2 * np.pi * n / size)
        + a2 * np.cos(4 * np.pi * n / size)
    )


def to_mono(audio: np.ndarray, channels: int = 1) -> np.ndarray:
    """Average interleaved channels down to one.

    Args:
        audio: Interleaved samples
        channels: Number of interleaved channels

    Returns:
        Mono samples as float64
    """
    audio = np.asarray(audio, dtype=np.float64).ravel()
    if channels <= 1:
        return audio

    usable = (audio.size // channels) * channels
    return audio[:usable].reshape(-1, channels).mean(axis=1)


class FrequencyAnalyzer:
    """Byte frequency analyser for live audio.

    Keeps the last ``fft_size`` samples and the smoothed spectrum
    between calls, so one instance belongs to one capture session.
    """

    def __init__(self, config: Optional[AnalyserConfig] = None):
        """Initialize frequency analyser.

        Args:
            config: Analyser settings (FFT size, smoothing, dB range)
        """
        self.config = config or AnalyserConfig()

        if self.config.fft_size < 32 or self.config.fft_size & (self.config.fft_size - 1):
            raise ValueError(f"fft_size must be a power of two >= 32, got {self.config.fft_size}")
        if self.config.max_decibels <= self.config.min_decibels:
            raise ValueError("max_decibels must be greater than min_decibels")

        self.fft_size = self.config.fft_size
        self.window = blackman_window(self.fft_size)
        self.reset()

    @property
    def frequency_bin_count(self) -> int:
        return self.fft_size // 2

    def reset(self) -> None:
        """Clear the sample buffer and smoothing state."""
        self._buffer = np.zeros(self.fft_size, dtype=np.float64)
        self._smoothed = np.zeros(self.frequency_bin_count, dtype=np.float64)

    def push(self, samples: np.ndarray) -> None:
        """Append mono samples to the analysis buffer."""
        samples = np.asarray(samples, dtype=np.float64).ravel()
        if samples.size >= self.fft_size:
            self._buffer = samples[-self.fft_size:].copy()
        else:
            self._buffer = np.concatenate([self._buffer[samples.size:], samples])

    def magnitude_spectrum(self) -> np.ndarray:
        """Smoothed linear magnitude of the current buffer."""
        spectrum = np.fft.rfft(self._buffer * self.window)
        magnitude = np.abs(spectrum[: self.frequency_bin_count]) / self.fft_size

        tau = self.config.smoothing
        self._smoothed = tau * self._smoothed + (1 - tau) * magnitude
        return self._smoothed

    def byte_frequency_data(self) -> np.ndarray:
        """Current spectrum as bytes, 0 at ``min_decibels`` and 255 at ``max_decibels``."""
        magnitude = self.magnitude_spectrum()

        with np.errstate(divide="ignore"):
            decibels = 20 * np.log10(magnitude)

        lo = self.config.min_decibels
        hi = self.config.max_decibels
        scaled = np.floor(255.0 / (hi - lo) * (decibels - lo))
        scaled = np.nan_to_num(scaled, nan=0.0, neginf=0.0, posinf=255.0)
        return np.clip(scaled, 0, 255).astype(np.uint8)

    def process(self, samples: np.ndarray) -> np.ndarray:
        """Push a chunk and return the resulting frequency frame.

        Args:
            samples: Mono float samples in [-1, 1]

        Returns:
            uint8 array with ``fft_size // 2`` bins
        """
        self.push(samples)
        frame = self.byte_frequency_data()
        logger.debug(f"Analysed {np.asarray(samples).size} samples, peak bin {int(frame.argmax())}")
        return frame
