"""Listening session and capture loop.

The capture loop pulls one frequency frame per tick from any iterable
source, runs feature extraction, classifies ticks whose energy exceeds
the configured threshold and hands the resulting events to the sinks.
All per-session state (counters, log, clock) lives in a
``ListeningSession`` owned by the loop between ``start()`` and ``stop()``.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from .audio.classifier import SignatureClassifier
from .audio.features import FeatureExtractor, FrameFeatures, FrameLike, level_percent
from .events import DetectionRecord, SyllableEvent, now_ms
from .sinks.dispatch import EventDispatcher

logger = logging.getLogger(__name__)

DEFAULT_ENERGY_THRESHOLD = 70.0


class ListeningSession:
    """Counters and detection log for one listening run."""

    def __init__(self, clock: Callable[[], int] = now_ms):
        """Initialize listening session.

        Args:
            clock: Returns the current time in epoch milliseconds
        """
        self._clock = clock
        self.started_at = clock()
        self.event_count = 0
        self._events: List[DetectionRecord] = []

    @property
    def transition_count(self) -> int:
        return max(0, self.event_count - 1)

    @property
    def events(self) -> List[DetectionRecord]:
        """Detections in chronological order."""
        return list(self._events)

    def record(self, event: SyllableEvent) -> DetectionRecord:
        """Append a detection to the log.

        Args:
            event: Classified event

        Returns:
            The stored record
        """
        record = DetectionRecord.from_event(event)
        self._events.append(record)
        self.event_count += 1
        return record

    def duration_seconds(self, now: Optional[int] = None) -> int:
        """Whole seconds since the session (re)started."""
        now = self._clock() if now is None else now
        return int(math.floor((now - self.started_at) / 1000 + 0.5))

    def species_counts(self) -> Dict[str, int]:
        """Detections per species key, in first-seen order."""
        counts: Dict[str, int] = {}
        for record in self._events:
            counts[record.species_key] = counts.get(record.species_key, 0) + 1
        return counts

    def summary(self) -> Dict:
        """Session summary for display."""
        return {
            "started_at": self.started_at,
            "duration_seconds": self.duration_seconds(),
            "event_count": self.event_count,
            "transition_count": self.transition_count,
            "species": self.species_counts(),
        }

    def reset(self) -> None:
        """Zero the counters, clear the log and restart the clock."""
        self.started_at = self._clock()
        self.event_count = 0
        self._events = []


@dataclass(frozen=True)
class TickResult:
    """Outcome of one capture tick."""

    features: FrameFeatures
    level: float  # 0-100 level meter
    event: Optional[SyllableEvent] = None

    @property
    def detected(self) -> bool:
        return self.event is not None


class CaptureLoop:
    """Tick-driven extraction and classification loop."""

    def __init__(
        self,
        classifier: Optional[SignatureClassifier] = None,
        energy_threshold: float = DEFAULT_ENERGY_THRESHOLD,
        dispatcher: Optional[EventDispatcher] = None,
        extractor: Optional[FeatureExtractor] = None,
        clock: Callable[[], int] = now_ms,
    ):
        """Initialize capture loop.

        Args:
            classifier: Species classifier (built-in table by default)
            energy_threshold: Mean frame energy a tick must exceed
            dispatcher: Sinks receiving detection events
            extractor: Feature extractor
            clock: Returns the current time in epoch milliseconds
        """
        self.classifier = classifier or SignatureClassifier()
        self.energy_threshold = energy_threshold
        self.dispatcher = dispatcher or EventDispatcher()
        self.extractor = extractor or FeatureExtractor()
        self._clock = clock

        self.session: Optional[ListeningSession] = None

    @property
    def is_listening(self) -> bool:
        return self.session is not None

    def start(self) -> ListeningSession:
        """Open a new session. A running session is returned unchanged."""
        if self.session is None:
            self.session = ListeningSession(clock=self._clock)
            logger.info(f"Listening started (energy threshold {self.energy_threshold})")
        return self.session

    def stop(self) -> Optional[ListeningSession]:
        """Close the current session and return it."""
        session, self.session = self.session, None
        if session is not None:
            logger.info(
                f"Listening stopped after {session.duration_seconds()} s, "
                f"{session.event_count} detection(s)"
            )
        return session

    def process(self, frame: FrameLike) -> TickResult:
        """Run one tick over a frequency frame.

        Args:
            frame: Byte frequency data for this tick

        Returns:
            TickResult with features, level and the event if one fired
        """
        if self.session is None:
            raise RuntimeError("Capture loop not started")

        features = self.extractor.extract(frame)
        level = level_percent(features.total_energy)

        if features.total_energy <= self.energy_threshold:
            return TickResult(features=features, level=level)

        result = self.classifier.classify(features.normalized)
        event = SyllableEvent(
            band=features.dominant_band,
            total_energy=features.total_energy,
            timestamp=self._clock(),
            normalized=features.normalized,
            classification=result,
        )

        self.session.record(event)
        logger.debug(
            f"Tick energy={features.total_energy:.1f} band={event.band} "
            f"species={result.species_key} distance={result.distance:.3f}"
        )
        self.dispatcher.dispatch(event)

        return TickResult(features=features, level=level, event=event)

    def ticks(
        self,
        frames: Iterable[FrameLike],
        max_ticks: Optional[int] = None,
    ) -> Iterator[TickResult]:
        """Process frames until the source ends, ``max_ticks`` is hit or the loop stops.

        Args:
            frames: Frame source, one frame per tick
            max_ticks: Optional tick limit

        Yields:
            TickResult per processed frame
        """
        self.start()
        if max_ticks is not None and max_ticks <= 0:
            return

        count = 0
        for frame in frames:
            if self.session is None:
                break
            yield self.process(frame)
            count += 1
            if max_ticks is not None and count >= max_ticks:
                break

    def run(
        self,
        frames: Iterable[FrameLike],
        max_ticks: Optional[int] = None,
    ) -> ListeningSession:
        """Drive the loop over a frame source and close the session.

        Returns:
            The finished session
        """
        session = self.start()
        try:
            for _ in self.ticks(frames, max_ticks=max_ticks):
                pass
        finally:
            self.stop()
        return session
