"""Allow running as ``python -m birdsong_field``."""

from .cli import main

if __name__ == "__main__":
    main()
