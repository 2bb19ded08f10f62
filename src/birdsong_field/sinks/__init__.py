"""Detection event sinks."""

from .dispatch import (
    BaseEventSink,
    CallbackSink,
    EventDispatcher,
    LoggingSink,
    RecentDetectionsSink,
)
from .network import SyllableNetwork, SyllableNode

__all__ = [
    "BaseEventSink",
    "CallbackSink",
    "EventDispatcher",
    "LoggingSink",
    "RecentDetectionsSink",
    "SyllableNetwork",
    "SyllableNode",
]
