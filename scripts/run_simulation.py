#!/usr/bin/env python
"""Run the simulation for one grid row (one job-array task).

Usage:
    python scripts/run_simulation.py JOB_INDEX [--config sweep.json]
    python scripts/run_simulation.py --config sweep.json   # uses $SLURM_ARRAY_TASK_ID

Writes results/results_<JOB_INDEX>.csv. Exits non-zero if the index is out
of range, the grid is missing, or the row's parameters are invalid.
"""

import sys
from pathlib import Path

# Add src to path so the package runs without installation
SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from gridsweep.cli import main

if __name__ == "__main__":
    sys.exit(main(["run", *sys.argv[1:]]))
