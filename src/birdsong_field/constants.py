"""Centralized constants and configuration loader.

This module provides access to configuration values and sensible defaults
for the capture, analysis and detection settings used throughout the
application. Values are loaded from config/config.yaml when available,
otherwise defaults are used.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Default configuration file, relative to the source checkout
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "config.yaml"


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        config_path: Path to config file. Uses default if None.

    Returns:
        Configuration dictionary.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    if not path.exists():
        logger.warning(f"Config file not found: {path}, using defaults")
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse config {path}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigurationError(f"Config {path} must be a mapping, got {type(config).__name__}")

    return config


def _get_nested(config: Dict, *keys: str, default: Any = None) -> Any:
    """Get nested config value with default fallback."""
    value = config
    for key in keys:
        if isinstance(value, dict):
            value = value.get(key)
        else:
            return default
        if value is None:
            return default
    return value


# ============================================================
# Capture Constants
# ============================================================

@dataclass
class AudioCaptureConfig:
    """Microphone capture settings."""
    sample_rate: int = 44100
    channels: int = 1
    # Samples per read, one read per tick
    chunk_size: int = 2048
    device_index: Optional[int] = None
    # Passed through to the capture backend; PyAudio applies no DSP for these
    echo_cancellation: bool = False
    noise_suppression: bool = False

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "AudioCaptureConfig":
        """Create from config dictionary."""
        mic = _get_nested(config, "microphone") or {}

        return cls(
            sample_rate=int(mic.get("sample_rate", 44100)),
            channels=int(mic.get("channels", 1)),
            chunk_size=int(mic.get("chunk_size", 2048)),
            device_index=mic.get("device_index"),
            echo_cancellation=bool(mic.get("echo_cancellation", False)),
            noise_suppression=bool(mic.get("noise_suppression", False)),
        )


# ============================================================
# Frequency Analyser Constants
# ============================================================

@dataclass
class AnalyserConfig:
    """Frequency analyser settings (browser AnalyserNode defaults)."""
    fft_size: int = 2048
    smoothing: float = 0.8
    min_decibels: float = -100.0
    max_decibels: float = -30.0

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "AnalyserConfig":
        """Create from config dictionary."""
        an = _get_nested(config, "analyser") or {}

        return cls(
            fft_size=int(an.get("fft_size", 2048)),
            smoothing=float(an.get("smoothing", 0.8)),
            min_decibels=float(an.get("min_decibels", -100.0)),
            max_decibels=float(an.get("max_decibels", -30.0)),
        )


# ============================================================
# Detection Constants
# ============================================================

@dataclass
class DetectionConfig:
    """Detection trigger settings."""
    # Mean frame energy (0-255) a tick must exceed to be classified
    energy_threshold: float = 70.0
    # Entries kept by the most-recent-first detection list
    recent_limit: int = 50

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "DetectionConfig":
        """Create from config dictionary."""
        det = _get_nested(config, "detection") or {}

        threshold = float(det.get("energy_threshold", 70.0))
        if not 0 <= threshold <= 255:
            raise ConfigurationError(f"energy_threshold must be within 0-255, got {threshold}")

        return cls(
            energy_threshold=threshold,
            recent_limit=int(det.get("recent_limit", 50)),
        )


# ============================================================
# Export and API Constants
# ============================================================

@dataclass
class ExportConfig:
    """CSV export settings."""
    filename: str = "birdsong_field_session.csv"

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "ExportConfig":
        """Create from config dictionary."""
        ex = _get_nested(config, "export") or {}
        return cls(filename=ex.get("filename", "birdsong_field_session.csv"))


@dataclass
class ApiConfig:
    """HTTP API settings."""
    host: str = "127.0.0.1"
    port: int = 8000

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "ApiConfig":
        """Create from config dictionary."""
        api = _get_nested(config, "api") or {}
        return cls(
            host=api.get("host", "127.0.0.1"),
            port=int(api.get("port", 8000)),
        )


def load_signatures(config: Dict[str, Any]) -> Tuple:
    """Build the species signature table from config.

    Falls back to the built-in table when the config has no ``species``
    section.

    Raises:
        ConfigurationError: If the section is present but empty or malformed
    """
    from .audio.classifier import DEFAULT_SIGNATURES, SpeciesSignature

    entries = config.get("species")
    if entries is None:
        return DEFAULT_SIGNATURES

    if not isinstance(entries, list) or not entries:
        raise ConfigurationError("'species' must be a non-empty list")

    return tuple(SpeciesSignature.from_dict(entry) for entry in entries)


# ============================================================
# Global Config Instance (lazy loaded)
# ============================================================

class Config:
    """Global configuration singleton."""

    _instance: Optional["Config"] = None
    _config: Dict[str, Any] = {}

    def __new__(cls) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._load()
        return cls._instance

    def _load(self, config_path: Optional[Path] = None) -> None:
        """Load configuration from file."""
        self._config = load_config(config_path)
        self._capture: Optional[AudioCaptureConfig] = None
        self._analyser: Optional[AnalyserConfig] = None
        self._detection: Optional[DetectionConfig] = None
        self._export: Optional[ExportConfig] = None
        self._api: Optional[ApiConfig] = None
        self._signatures: Optional[Tuple] = None

    def reload(self, config_path: Optional[Path] = None) -> None:
        """Reload configuration from file."""
        self._load(config_path)

    @property
    def raw(self) -> Dict[str, Any]:
        return self._config

    @property
    def capture(self) -> AudioCaptureConfig:
        """Get microphone capture config."""
        if self._capture is None:
            self._capture = AudioCaptureConfig.from_config(self._config)
        return self._capture

    @property
    def analyser(self) -> AnalyserConfig:
        """Get frequency analyser config."""
        if self._analyser is None:
            self._analyser = AnalyserConfig.from_config(self._config)
        return self._analyser

    @property
    def detection(self) -> DetectionConfig:
        """Get detection config."""
        if self._detection is None:
            self._detection = DetectionConfig.from_config(self._config)
        return self._detection

    @property
    def export(self) -> ExportConfig:
        """Get export config."""
        if self._export is None:
            self._export = ExportConfig.from_config(self._config)
        return self._export

    @property
    def api(self) -> ApiConfig:
        """Get API config."""
        if self._api is None:
            self._api = ApiConfig.from_config(self._config)
        return self._api

    @property
    def signatures(self) -> Tuple:
        """Get the species signature table."""
        if self._signatures is None:
            self._signatures = load_signatures(self._config)
        return self._signatures

    def get(self, *keys: str, default: Any = None) -> Any:
        """Get a config value by key path."""
        return _get_nested(self._config, *keys, default=default)


def get_config() -> Config:
    """Get the global configuration instance."""
    return Config()


# Convenience accessors
def get_detection_config() -> DetectionConfig:
    """Get detection configuration."""
    return get_config().detection


def get_signatures() -> Tuple:
    """Get the configured species signature table."""
    return get_config().signatures
