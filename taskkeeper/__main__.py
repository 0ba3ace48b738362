"""Entry point for taskkeeper when run as a module.

This allows the package to be run with: python -m taskkeeper
"""

import sys

from taskkeeper.cli import main

if __name__ == "__main__":
    sys.exit(main())
