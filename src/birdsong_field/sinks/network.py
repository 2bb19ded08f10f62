"""Syllable network module.

Builds the node/edge graph that the 3D field view draws: one node per
detected syllable, linked to the previous one. Rendering is left to the
viewer; this sink only keeps the geometry.
"""

import math
from collections import deque
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from ..audio.features import BAND_HIGH, BAND_LOW, BAND_MID
from ..events import SyllableEvent
from .dispatch import BaseEventSink

BAND_COLORS = {
    "low": "#ff8a3c",
    "mid": "#ff00ff",
    "high": "#00ff7f",
}

BAND_OFFSETS = {
    "low": -40.0,
    "mid": 0.0,
    "high": 40.0,
}


@dataclass(frozen=True)
class SyllableNode:
    """A positioned syllable in the network."""

    node_id: int
    band: str
    position: Tuple[float, float, float]
    size: float
    color: str
    species_key: str

    def to_dict(self) -> Dict:
        return {
            "id": self.node_id,
            "band": self.band,
            "position": list(self.position),
            "size": self.size,
            "color": self.color,
            "species": self.species_key,
        }


class SyllableNetwork(BaseEventSink):
    """Syllable graph fed by detection events."""

    def __init__(
        self,
        max_nodes: int = 300,
        radius: float = 80.0,
        angle_step: float = 0.35,
        rng: Optional[np.random.Generator] = None,
    ):
        """Initialize syllable network.

        Args:
            max_nodes: Nodes kept before the oldest are evicted
            radius: Base radius of the spiral layout
            angle_step: Angle increment per node (radians)
            rng: Random generator for layout jitter
        """
        self.max_nodes = max_nodes
        self.radius = radius
        self.angle_step = angle_step
        self.rng = rng or np.random.default_rng()

        self._nodes = deque()
        self._edges: List[Tuple[int, int]] = []
        self._next_id = 0
        self._last: Optional[SyllableNode] = None

    @property
    def nodes(self) -> List[SyllableNode]:
        return list(self._nodes)

    @property
    def edges(self) -> List[Tuple[int, int]]:
        return list(self._edges)

    def _layout(self, index: int, band: str) -> Tuple[float, float, float]:
        angle = index * self.angle_step
        x = math.cos(angle) * self.radius * (0.4 + self.rng.random() * 0.6)
        y = BAND_OFFSETS.get(band, 0.0) + (self.rng.random() - 0.5) * 15
        z = math.sin(angle) * self.radius * (0.5 + self.rng.random() * 0.6)
        return (x, y, z)

    def add(self, band: str, energy: float, species_key: str = "") -> SyllableNode:
        """Append a syllable node and link it to the previous one.

        Args:
            band: Dominant band label
            energy: Frame energy (0-255)
            species_key: Matched species

        Returns:
            The new node
        """
        node = SyllableNode(
            node_id=self._next_id,
            band=band,
            position=self._layout(len(self._nodes), band),
            size=1.5 + (energy / 255.0) * 4,
            color=BAND_COLORS.get(band, BAND_COLORS[BAND_MID]),
            species_key=species_key,
        )
        self._next_id += 1

        if self._last is not None:
            self._edges.append((self._last.node_id, node.node_id))

        self._last = node
        self._nodes.append(node)

        while len(self._nodes) > self.max_nodes:
            evicted = self._nodes.popleft()
            self._edges = [e for e in self._edges if evicted.node_id not in e]

        return node

    def send(self, event: SyllableEvent) -> None:
        self.add(event.band, event.total_energy, event.classification.species_key)

    def band_counts(self) -> Dict[str, int]:
        """Number of live nodes per band."""
        counts = {BAND_LOW: 0, BAND_MID: 0, BAND_HIGH: 0}
        for node in self._nodes:
            counts[node.band] = counts.get(node.band, 0) + 1
        return counts

    def clear(self) -> None:
        """Remove every node and edge."""
        self._nodes.clear()
        self._edges = []
        self._last = None

    def to_dict(self) -> Dict:
        return {
            "nodes": [n.to_dict() for n in self._nodes],
            "edges": [list(e) for e in self._edges],
        }
