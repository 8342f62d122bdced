"""Main entry point for the masking CLI."""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
