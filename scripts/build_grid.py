#!/usr/bin/env python
"""Build the parameter grid and persist it.

Usage:
    python scripts/build_grid.py --config sweep.json [--output grid.csv]
"""

import sys
from pathlib import Path

# Add src to path so the package runs without installation
SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from gridsweep.cli import main

if __name__ == "__main__":
    sys.exit(main(["build-grid", *sys.argv[1:]]))
