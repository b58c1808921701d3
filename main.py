#!/usr/bin/env python3
"""
terraguard - Main entry point.

Runs the command line from a source checkout.
"""

import sys

from terraguard.main import main


if __name__ == "__main__":
    sys.exit(main())
