"""Exception types for the birdsong field monitor."""


class BirdsongError(Exception):
    """Base class for all birdsong field monitor errors."""


class ConfigurationError(BirdsongError):
    """Raised when configuration values (species table, thresholds) are invalid."""


class CaptureError(BirdsongError):
    """Raised when the audio capture device cannot be used."""
