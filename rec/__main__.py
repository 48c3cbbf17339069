"""Entry point for ``python -m rec``."""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
