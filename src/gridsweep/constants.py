"""Shared constants for grid sweeps.

File naming conventions and column names used by the grid builder, the
per-row runner, the aggregator and the analysis helpers.
"""

from typing import Tuple

# =============================================================================
# File Naming
# =============================================================================

DEFAULT_GRID_FILENAME: str = "grid.csv"
MANIFEST_SUFFIX: str = ".json"

DEFAULT_RESULTS_DIR: str = "results"
DEFAULT_RESULT_PREFIX: str = "results_"
RESULT_SUFFIX: str = ".csv"
DEFAULT_AGGREGATE_FILENAME: str = "results_all.csv"
DEFAULT_SUMMARY_FILENAME: str = "summary.csv"
DEFAULT_CHART_FILENAME: str = "summary.png"

# Environment variable set by SLURM for each job-array task
ARRAY_TASK_ENV_VAR: str = "SLURM_ARRAY_TASK_ID"

# Version of the grid manifest layout
GRID_SCHEMA_VERSION: str = "1.0.0"

# =============================================================================
# Result Columns
# =============================================================================

JOB_INDEX_COLUMN: str = "job_index"
SAMPLE_COLUMN_PREFIX: str = "sample_"

# Long layout: one row per sample
SAMPLE_NUMBER_COLUMN: str = "sample_number"
SAMPLE_VALUE_COLUMN: str = "sample"

RESULT_LAYOUTS: Tuple[str, ...] = ("wide", "long")
