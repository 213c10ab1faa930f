#!/usr/bin/env python3
"""
WatchCC Watch Script.

Runs the watcher straight from a source checkout.
Requires Python 3.11+.

Usage:
    python scripts/watch_compile.py [/path/to/sources]
"""

import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from cli.main import main


if __name__ == "__main__":
    sys.exit(main())
