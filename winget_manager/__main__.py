#!/usr/bin/env python3
"""Allow running the winget manager as ``python -m winget_manager``."""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
