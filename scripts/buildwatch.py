#!/usr/bin/env python3
"""
BuildWatch Runner Script.

Runs the daemon straight from a source checkout.
Requires Python 3.11+.

Usage:
    python scripts/buildwatch.py --build="make" --command="./server -port 8080"
"""

import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from buildwatch.cli import main


if __name__ == "__main__":
    main()
