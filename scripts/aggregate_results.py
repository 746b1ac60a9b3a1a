#!/usr/bin/env python3
"""Concatenate every per-job result file into one table.

Usage:
    python scripts/aggregate_results.py --config sweep.json
    python scripts/aggregate_results.py --results-dir results --pattern "results_*.csv" --output all.csv

Run only after every array task has finished: files missing at that point
are silently left out of the combined table.
"""

import sys
from pathlib import Path

# Add src to path so the package runs without installation
SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from gridsweep.cli import main

if __name__ == "__main__":
    sys.exit(main(["aggregate", *sys.argv[1:]]))
