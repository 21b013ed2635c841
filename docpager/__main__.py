"""
Entry point for running docpager as a module.

Usage:
    python -m docpager render page.png -o output.pdf
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
