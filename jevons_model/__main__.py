"""
Main entry point: python -m jevons_model [options]

See jevons_model.cli for the available options.
"""

import sys

from .cli import main


if __name__ == "__main__":
    sys.exit(main())
