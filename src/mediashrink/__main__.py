"""
Entry point for running mediashrink as a module: python -m mediashrink

    python -m mediashrink movie.mp4
    python -m mediashrink --help
"""

import sys

from mediashrink.cli import main

if __name__ == "__main__":
    sys.exit(main())
