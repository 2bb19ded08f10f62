"""Audio capture device interfaces."""

from .microphone import BaseMicrophoneInterface, MicrophoneInterface, PyAudioMicrophone

__all__ = ["BaseMicrophoneInterface", "MicrophoneInterface", "PyAudioMicrophone"]
