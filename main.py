#!/usr/bin/env python3
"""Main entry point for the Birdsong Field Monitor.

Simplified entry point that delegates to the CLI module.

Usage:
    python main.py listen            # Listen on the microphone
    python main.py listen --duration 60 --output session.csv
    python main.py species           # Show species signatures
    python main.py serve             # Start the HTTP API

Or use the CLI directly:
    python -m birdsong_field listen
"""

import sys
from pathlib import Path


def main():
    """Main entry point - delegates to CLI."""
    # If no arguments, show help
    if len(sys.argv) == 1:
        print(__doc__)
        print("Run 'python main.py --help' for more options")
        sys.exit(0)

    sys.path.insert(0, str(Path(__file__).parent / "src"))

    from birdsong_field.cli import main as cli_main
    cli_main()


if __name__ == "__main__":
    main()
