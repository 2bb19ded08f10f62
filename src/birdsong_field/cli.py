"""CLI entry point for the birdsong field monitor.

Usage:
    birdsong-field listen [--config PATH] [--duration S] [--output CSV] [--debug]
    birdsong-field species [--config PATH]
    birdsong-field classify LOW MID HIGH [--config PATH]
    birdsong-field devices
    birdsong-field serve [--host HOST] [--port PORT] [--config PATH]
"""

import argparse
import logging
import math
import sys
import time
from pathlib import Path

from . import __version__
from .constants import get_config
from .exceptions import BirdsongError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def _load(args):
    """Load the configuration named on the command line."""
    config = get_config()
    if getattr(args, "config", None):
        config.reload(Path(args.config))
    return config


def _build_loop(config):
    from .audio.classifier import SignatureClassifier
    from .session import CaptureLoop
    from .sinks import EventDispatcher, LoggingSink, RecentDetectionsSink, SyllableNetwork

    dispatcher = EventDispatcher()
    dispatcher.add_sink(LoggingSink("birdsong_field.detections"))
    dispatcher.add_sink(RecentDetectionsSink(limit=config.detection.recent_limit))
    dispatcher.add_sink(SyllableNetwork())

    return CaptureLoop(
        classifier=SignatureClassifier(config.signatures),
        energy_threshold=config.detection.energy_threshold,
        dispatcher=dispatcher,
    )


def _recent_sink(loop):
    from .sinks import RecentDetectionsSink

    for sink in loop.dispatcher.sinks:
        if isinstance(sink, RecentDetectionsSink):
            return sink
    return None


def _until(frames, deadline):
    for frame in frames:
        if deadline is not None and time.monotonic() >= deadline:
            break
        yield frame


def cmd_listen(args):
    """Capture from the microphone and classify detections."""
    from .audio.preprocessing import FrequencyAnalyzer
    from .export import write_csv
    from .sensors import MicrophoneInterface

    config = _load(args)
    loop = _build_loop(config)
    microphone = MicrophoneInterface(config.capture)
    analyzer = FrequencyAnalyzer(config.analyser)

    deadline = time.monotonic() + args.duration if args.duration else None
    session = loop.start()

    logger.info("Listening... press Ctrl+C to stop")
    try:
        for _ in loop.ticks(_until(microphone.frequency_frames(analyzer), deadline)):
            pass
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        microphone.stop()
        loop.stop()

    summary = session.summary()
    logger.info(
        f"Duration: {summary['duration_seconds']} s · "
        f"Detections: {summary['event_count']} · "
        f"Transitions: {summary['transition_count']}"
    )

    recent = _recent_sink(loop)
    if recent is not None and recent.latest is not None:
        logger.info(f"Recent detections (newest first, {len(recent)} shown):")
        for event in recent.items():
            species = event.classification.signature
            logger.info(
                f"  {species.emoji} {species.label} "
                f"band={event.band} confidence={event.classification.confidence}%"
            )

    output = args.output or config.export.filename
    write_csv(session.events, output)


def cmd_species(args):
    """Print the species signature table."""
    config = _load(args)

    for species in config.signatures:
        low, mid, high = species.signature
        print(
            f"{species.key:<10} {species.label:<40} "
            f"low={low:.2f} mid={mid:.2f} high={high:.2f}"
        )


def cmd_classify(args):
    """Classify a relative band vector given on the command line."""
    from .audio.classifier import SignatureClassifier

    values = (args.low, args.mid, args.high)
    if not all(math.isfinite(v) for v in values):
        raise BirdsongError(f"Band values must be finite numbers, got {values}")

    config = _load(args)
    classifier = SignatureClassifier(config.signatures)
    result = classifier.classify(values)

    print(
        f"{result.signature.emoji} {result.signature.label} "
        f"distance={result.distance:.3f} confidence={result.confidence}%"
    )


def cmd_devices(args):
    """List audio input devices."""
    from .sensors import MicrophoneInterface

    devices = MicrophoneInterface.list_devices()
    if not devices:
        logger.warning("No input devices found")
        return

    for device in devices:
        print(
            f"[{device['index']}] {device['name']} "
            f"({device['channels']} ch, {device['sample_rate']} Hz)"
        )


def cmd_serve(args):
    """Run the HTTP API."""
    import uvicorn

    from .api import create_app

    config = _load(args)
    app = create_app(loop=_build_loop(config), debug=args.debug)

    host = args.host or config.api.host
    port = args.port or config.api.port
    logger.info(f"API: http://{host}:{port}")
    logger.info(f"Docs: http://{host}:{port}/docs")

    uvicorn.run(app, host=host, port=port, log_level="warning")


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="birdsong-field",
        description="Birdsong Field Monitor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    listen_parser = subparsers.add_parser("listen", help="Listen on the microphone")
    listen_parser.add_argument("--config", type=str, help="Path to configuration file")
    listen_parser.add_argument("--duration", type=float, default=None, help="Stop after N seconds")
    listen_parser.add_argument("--output", type=str, default=None, help="CSV file for the session log")
    listen_parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    listen_parser.set_defaults(func=cmd_listen)

    species_parser = subparsers.add_parser("species", help="Show species signatures")
    species_parser.add_argument("--config", type=str, help="Path to configuration file")
    species_parser.set_defaults(func=cmd_species)

    classify_parser = subparsers.add_parser("classify", help="Classify a relative band vector")
    classify_parser.add_argument("low", type=float, help="Relative low band energy")
    classify_parser.add_argument("mid", type=float, help="Relative mid band energy")
    classify_parser.add_argument("high", type=float, help="Relative high band energy")
    classify_parser.add_argument("--config", type=str, help="Path to configuration file")
    classify_parser.set_defaults(func=cmd_classify)

    devices_parser = subparsers.add_parser("devices", help="List input devices")
    devices_parser.set_defaults(func=cmd_devices)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--config", type=str, help="Path to configuration file")
    serve_parser.add_argument("--host", type=str, default=None, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port")
    serve_parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    serve_parser.set_defaults(func=cmd_serve)

    return parser


def main(argv=None):
    """Main entry point for the birdsong field CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if getattr(args, "debug", False):
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        args.func(args)
    except ImportError as e:
        logger.error(f"Missing dependency: {e}")
        logger.info("Run: pip install -e .[microphone]")
        sys.exit(1)
    except BirdsongError as e:
        logger.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
