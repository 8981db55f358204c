"""CLI entry point for assetpipe.

Usage:
    python -m assetpipe [options] [task ...]

Example:
    python -m assetpipe build --production
"""

from .cli import main
import sys

if __name__ == '__main__':
    sys.exit(main())
