"""Microphone interface module.

This module provides microphone access for audio capture
using PyAudio.
"""

import logging
from abc import ABC, abstractmethod
from typing import Generator, Optional

import numpy as np

from ..audio.preprocessing import FrequencyAnalyzer, to_mono
from ..constants import AudioCaptureConfig
from ..exceptions import CaptureError

logger = logging.getLogger(__name__)


class BaseMicrophoneInterface(ABC):
    """Abstract base class for microphone interfaces."""

    @abstractmethod
    def start(self) -> None:
        """Start audio capture."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop audio capture."""
        pass

    @abstractmethod
    def read_chunk(self) -> np.ndarray:
        """Read one chunk of interleaved float samples."""
        pass


class PyAudioMicrophone(BaseMicrophoneInterface):
    """Microphone interface using PyAudio."""

    def __init__(self, config: Optional[AudioCaptureConfig] = None):
        """Initialize PyAudio microphone.

        Args:
            config: Capture settings (rate, channels, chunk size, device)
        """
        self.config = config or AudioCaptureConfig()

        self.audio = None
        self._stream = None

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    def start(self) -> None:
        """Start audio capture."""
        try:
            import pyaudio
        except ImportError:
            raise ImportError(
                "PyAudio is required for microphone access. "
                "Install with: pip install pyaudio"
            )

        if self.config.echo_cancellation or self.config.noise_suppression:
            logger.info(
                "Echo cancellation / noise suppression requested; "
                "PyAudio captures the raw device signal"
            )

        self.audio = pyaudio.PyAudio()
        try:
            self._stream = self.audio.open(
                format=pyaudio.paFloat32,
                channels=self.config.channels,
                rate=self.config.sample_rate,
                input=True,
                input_device_index=self.config.device_index,
                frames_per_buffer=self.config.chunk_size,
            )
        except OSError as e:
            self.audio.terminate()
            self.audio = None
            raise CaptureError(f"Could not open input device: {e}") from e

        logger.info(
            f"Microphone open: {self.config.sample_rate} Hz, "
            f"{self.config.channels} channel(s), chunk {self.config.chunk_size}"
        )

    def stop(self) -> None:
        """Stop audio capture."""
        if self._stream is not None:
            self._stream.stop_stream()
            self._stream.close()
            self._stream = None

        if self.audio is not None:
            self.audio.terminate()
            self.audio = None

    def read_chunk(self) -> np.ndarray:
        """Read one chunk of audio."""
        if self._stream is None:
            raise RuntimeError("Microphone not started")

        data = self._stream.read(self.config.chunk_size, exception_on_overflow=False)
        return np.frombuffer(data, dtype=np.float32)


class MicrophoneInterface:
    """Unified microphone interface."""

    def __init__(
        self,
        config: Optional[AudioCaptureConfig] = None,
        backend: Optional[BaseMicrophoneInterface] = None,
    ):
        """Initialize microphone interface.

        Args:
            config: Capture settings
            backend: Capture backend (PyAudio by default)
        """
        self.config = config or AudioCaptureConfig()
        self.microphone = backend or PyAudioMicrophone(self.config)
        self.is_running = False

    @property
    def sample_rate(self) -> int:
        return self.config.sample_rate

    def start(self) -> None:
        """Start audio capture."""
        self.microphone.start()
        self.is_running = True

    def stop(self) -> None:
        """Stop audio capture."""
        self.microphone.stop()
        self.is_running = False

    def read(self) -> np.ndarray:
        """Read one mono chunk."""
        return to_mono(self.microphone.read_chunk(), self.config.channels)

    def stream(self) -> Generator[np.ndarray, None, None]:
        """Stream mono audio chunks until stopped."""
        if not self.is_running:
            self.start()

        try:
            while self.is_running:
                yield self.read()
        finally:
            self.stop()

    def frequency_frames(
        self,
        analyzer: Optional[FrequencyAnalyzer] = None,
    ) -> Generator[np.ndarray, None, None]:
        """Stream byte frequency frames, one per captured chunk.

        Args:
            analyzer: Frequency analyser (a fresh one if None)

        Yields:
            uint8 frequency frames
        """
        analyzer = analyzer or FrequencyAnalyzer()
        for chunk in self.stream():
            yield analyzer.process(chunk)

    def __enter__(self):
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.stop()

    @staticmethod
    def list_devices() -> list:
        """List available audio input devices.

        Returns:
            List of device info dictionaries
        """
        try:
            import pyaudio
        except ImportError:
            logger.warning("PyAudio not installed, cannot list devices")
            return []

        audio = pyaudio.PyAudio()
        devices = []

        try:
            for i in range(audio.get_device_count()):
                info = audio.get_device_info_by_index(i)
                if info["maxInputChannels"] > 0:
                    devices.append({
                        "index": i,
                        "name": info["name"],
                        "channels": info["maxInputChannels"],
                        "sample_rate": int(info["defaultSampleRate"]),
                    })
        finally:
            audio.terminate()

        return devices
