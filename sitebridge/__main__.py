"""
Entry point for running sitebridge as a module: python -m sitebridge
"""

import sys
from .cli import main

if __name__ == "__main__":
    sys.exit(main())
