#!/usr/bin/env python3
"""
Main entry point for the diary metrics runner
Run this script from the project root directory
"""

import sys

from diary_metrics.tools.run_metrics import main

if __name__ == "__main__":
    sys.exit(main())
