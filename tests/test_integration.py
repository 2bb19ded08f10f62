"""Integration tests for the capture-to-export pipeline."""

import numpy as np


class TestPipelineIntegration:
    """Integration tests for the complete pipeline."""

    def test_audio_to_csv(self, tmp_path, clock):
        """Test microphone chunks flow through analyser, loop, sinks and export."""
        from birdsong_field.audio import FrequencyAnalyzer
        from birdsong_field.export import write_csv
        from birdsong_field.session import CaptureLoop
        from birdsong_field.sensors import MicrophoneInterface
        from birdsong_field.sinks import RecentDetectionsSink, SyllableNetwork

        class ToneBackend:
            """Alternates a loud low tone and silence."""

            def __init__(self):
                n = np.arange(2048)
                self.tone = 0.9 * np.sin(2 * np.pi * 40 * n / 2048)
                self.calls = 0

            def start(self):
                pass

            def stop(self):
                pass

            def read_chunk(self):
                self.calls += 1
                return self.tone if self.calls % 2 else np.zeros(2048)

        recent = RecentDetectionsSink()
        network = SyllableNetwork(rng=np.random.default_rng(0))
        loop = CaptureLoop(energy_threshold=0.5, clock=clock)
        loop.dispatcher.add_sink(recent)
        loop.dispatcher.add_sink(network)

        mic = MicrophoneInterface(backend=ToneBackend())
        session = loop.run(mic.frequency_frames(FrequencyAnalyzer()), max_ticks=6)

        assert session.event_count >= 3
        assert len(recent) == session.event_count
        assert len(network.nodes) == session.event_count
        assert all(r.energy >= 1 for r in session.events)

        path = write_csv(session.events, tmp_path / "field.csv")
        lines = path.read_text(encoding="utf-8").strip().split("\n")
        assert len(lines) == session.event_count + 1

    def test_deterministic_sessions(self, random_frame):
        """Test two sessions over the same frames agree exactly."""
        from birdsong_field.session import CaptureLoop

        frames = [random_frame, random_frame[::-1], np.roll(random_frame, 100)]

        first = CaptureLoop(energy_threshold=0, clock=lambda: 0).run(frames)
        second = CaptureLoop(energy_threshold=0, clock=lambda: 0).run(frames)

        assert first.events == second.events
        assert len(first.events) == 3
