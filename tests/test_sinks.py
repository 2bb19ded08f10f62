"""Tests for event sinks and the syllable network."""

import logging

import numpy as np
import pytest


class TestEventDispatcher:
    """Test cases for EventDispatcher."""

    def test_dispatch_to_all_sinks(self, make_event):
        from birdsong_field.sinks import CallbackSink, EventDispatcher

        received = []
        dispatcher = EventDispatcher()
        dispatcher.add_sink(CallbackSink(received.append))
        dispatcher.add_sink(CallbackSink(received.append))

        event = make_event()
        results = dispatcher.dispatch(event)

        assert received == [event, event]
        assert results == {"CallbackSink": True}

    def test_failing_sink_is_isolated(self, make_event, caplog):
        """Test one failing sink does not stop delivery to the next."""
        from birdsong_field.sinks import (
            BaseEventSink,
            EventDispatcher,
            RecentDetectionsSink,
        )

        class BrokenSink(BaseEventSink):
            def send(self, event):
                raise RuntimeError("display gone")

        recent = RecentDetectionsSink()
        dispatcher = EventDispatcher()
        dispatcher.add_sink(BrokenSink())
        dispatcher.add_sink(recent)

        with caplog.at_level(logging.ERROR):
            results = dispatcher.dispatch(make_event())

        assert results == {"BrokenSink": False, "RecentDetectionsSink": True}
        assert len(recent) == 1
        assert "display gone" in caplog.text

    def test_remove_sink(self, make_event):
        from birdsong_field.sinks import CallbackSink, EventDispatcher

        received = []
        sink = CallbackSink(received.append)
        dispatcher = EventDispatcher()
        dispatcher.add_sink(sink)
        dispatcher.remove_sink(sink)
        dispatcher.remove_sink(sink)

        dispatcher.dispatch(make_event())

        assert received == []


class TestRecentDetectionsSink:
    """Test cases for RecentDetectionsSink."""

    def test_newest_first(self, make_event):
        from birdsong_field.sinks import RecentDetectionsSink

        sink = RecentDetectionsSink()
        for ts in (1, 2, 3):
            sink.send(make_event(timestamp=ts))

        assert [e.timestamp for e in sink.items()] == [3, 2, 1]
        assert sink.latest.timestamp == 3

    def test_bounded(self, make_event):
        from birdsong_field.sinks import RecentDetectionsSink

        sink = RecentDetectionsSink(limit=2)
        for ts in (1, 2, 3):
            sink.send(make_event(timestamp=ts))

        assert [e.timestamp for e in sink.items()] == [3, 2]

    def test_clear(self, make_event):
        from birdsong_field.sinks import RecentDetectionsSink

        sink = RecentDetectionsSink()
        sink.send(make_event())
        sink.clear()

        assert len(sink) == 0
        assert sink.latest is None


class TestLoggingSink:
    """Test cases for LoggingSink."""

    def test_logs_detection(self, make_event, caplog):
        from birdsong_field.sinks import LoggingSink

        with caplog.at_level(logging.INFO, logger="birdsong_field.test"):
            LoggingSink("birdsong_field.test").send(make_event())

        assert "Zorzal (Turdus falcklandii)" in caplog.text
        assert "confidence=78%" in caplog.text


class TestSyllableNetwork:
    """Test cases for SyllableNetwork."""

    def test_nodes_and_edges(self):
        """Test each node links to the previous one."""
        from birdsong_field.sinks import SyllableNetwork

        network = SyllableNetwork(rng=np.random.default_rng(0))
        a = network.add("low", 255)
        b = network.add("mid", 0)
        c = network.add("high", 127.5)

        assert [n.node_id for n in network.nodes] == [0, 1, 2]
        assert network.edges == [(a.node_id, b.node_id), (b.node_id, c.node_id)]

    def test_node_appearance(self):
        from birdsong_field.sinks import SyllableNetwork

        network = SyllableNetwork(rng=np.random.default_rng(0))
        low = network.add("low", 255)
        mid = network.add("mid", 0)

        assert low.size == pytest.approx(5.5)
        assert mid.size == pytest.approx(1.5)
        assert low.color == "#ff8a3c"
        assert mid.color == "#ff00ff"

    @pytest.mark.parametrize("band, offset", [("low", -40.0), ("mid", 0.0), ("high", 40.0)])
    def test_band_offset(self, band, offset):
        """Test vertical position stays within jitter of the band offset."""
        from birdsong_field.sinks import SyllableNetwork

        network = SyllableNetwork(rng=np.random.default_rng(1))
        for _ in range(20):
            node = network.add(band, 100)
            assert abs(node.position[1] - offset) <= 7.5

    def test_eviction(self):
        """Test the oldest nodes and their edges are dropped past the limit."""
        from birdsong_field.sinks import SyllableNetwork

        network = SyllableNetwork(max_nodes=3, rng=np.random.default_rng(0))
        for _ in range(5):
            network.add("mid", 100)

        assert [n.node_id for n in network.nodes] == [2, 3, 4]
        assert network.edges == [(2, 3), (3, 4)]

    def test_send_uses_event(self, make_event):
        from birdsong_field.sinks import SyllableNetwork

        network = SyllableNetwork(rng=np.random.default_rng(0))
        network.send(make_event())

        node = network.nodes[0]
        assert node.band == "low"
        assert node.species_key == "zorzal"
        assert network.band_counts() == {"low": 1, "mid": 0, "high": 0}

    def test_clear(self):
        from birdsong_field.sinks import SyllableNetwork

        network = SyllableNetwork(rng=np.random.default_rng(0))
        network.add("low", 100)
        network.add("low", 100)
        network.clear()
        network.add("high", 100)

        assert len(network.nodes) == 1
        assert network.edges == []
        assert network.to_dict()["nodes"][0]["band"] == "high"
