"""Event sink module.

Sinks receive one ``SyllableEvent`` per classified tick. Delivery is
fire-and-forget: a failing sink is logged and does not stop the others.
"""

import logging
from abc import ABC, abstractmethod
from collections import deque
from typing import Callable, Dict, List

from ..events import SyllableEvent

logger = logging.getLogger(__name__)


class BaseEventSink(ABC):
    """Abstract base class for event consumers."""

    @abstractmethod
    def send(self, event: SyllableEvent) -> None:
        """Consume one detection event.

        Args:
            event: Classified syllable event
        """
        pass


class CallbackSink(BaseEventSink):
    """Adapts a plain callable to the sink interface."""

    def __init__(self, callback: Callable[[SyllableEvent], None]):
        self.callback = callback

    def send(self, event: SyllableEvent) -> None:
        self.callback(event)


class LoggingSink(BaseEventSink):
    """Logs each detection at INFO level."""

    def __init__(self, name: str = __name__):
        self.logger = logging.getLogger(name)

    def send(self, event: SyllableEvent) -> None:
        species = event.classification.signature
        self.logger.info(
            f"{species.emoji} {species.label} "
            f"band={event.band} energy={event.total_energy:.0f} "
            f"confidence={event.classification.confidence}%"
        )


class RecentDetectionsSink(BaseEventSink):
    """Bounded list of detections, newest first."""

    def __init__(self, limit: int = 50):
        self._events = deque(maxlen=limit)

    def send(self, event: SyllableEvent) -> None:
        self._events.appendleft(event)

    @property
    def latest(self):
        return self._events[0] if self._events else None

    def items(self) -> List[SyllableEvent]:
        return list(self._events)

    def clear(self) -> None:
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)


class EventDispatcher:
    """Fans events out to registered sinks."""

    def __init__(self):
        """Initialize event dispatcher."""
        self.sinks: List[BaseEventSink] = []

    def add_sink(self, sink: BaseEventSink) -> None:
        """Register a sink.

        Args:
            sink: Sink instance to add
        """
        self.sinks.append(sink)

    def remove_sink(self, sink: BaseEventSink) -> None:
        """Unregister a sink if present."""
        if sink in self.sinks:
            self.sinks.remove(sink)

    def dispatch(self, event: SyllableEvent) -> Dict[str, bool]:
        """Send an event to every sink.

        Args:
            event: Event to deliver

        Returns:
            Dictionary of sink class name to delivery status
        """
        results = {}

        for sink in self.sinks:
            sink_name = sink.__class__.__name__
            try:
                sink.send(event)
                results[sink_name] = True
            except Exception as e:
                logger.error(f"Error in {sink_name}: {e}")
                results[sink_name] = False

        return results
