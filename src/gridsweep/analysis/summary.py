"""Per-combination statistics of aggregated results.

Compares what each job sampled with what Binomial(N, p) predicts:
observed mean and variance against N*p and N*p*(1-p).
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd

from gridsweep.config import Config
from gridsweep.constants import (
    JOB_INDEX_COLUMN,
    SAMPLE_COLUMN_PREFIX,
    SAMPLE_NUMBER_COLUMN,
    SAMPLE_VALUE_COLUMN,
)
from gridsweep.data.grid_io import write_text_atomically
from gridsweep.errors import ResultFileError, SchemaMismatchError

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = [
    "sample_count",
    "observed_mean",
    "observed_variance",
    "observed_min",
    "observed_max",
    "expected_mean",
    "expected_variance",
]


def _wide_sample_columns(frame: pd.DataFrame) -> List[str]:
    return [
        c for c in frame.columns
        if str(c).startswith(SAMPLE_COLUMN_PREFIX) and str(c)[len(SAMPLE_COLUMN_PREFIX):].isdigit()
    ]


def to_long(frame: pd.DataFrame) -> pd.DataFrame:
    """Convert aggregated results to the long layout (one row per sample).

    Frames already in the long layout are returned unchanged.

    Raises:
        SchemaMismatchError: If the frame has no job index column
    """
    if JOB_INDEX_COLUMN not in frame.columns:
        raise SchemaMismatchError(f"Results have no '{JOB_INDEX_COLUMN}' column")

    if SAMPLE_VALUE_COLUMN in frame.columns and SAMPLE_NUMBER_COLUMN in frame.columns:
        return frame

    sample_columns = _wide_sample_columns(frame)
    id_columns = [c for c in frame.columns if c not in sample_columns]
    if not sample_columns or frame.empty:
        return pd.DataFrame(columns=[*id_columns, SAMPLE_NUMBER_COLUMN, SAMPLE_VALUE_COLUMN])

    long = frame.melt(
        id_vars=id_columns,
        value_vars=sample_columns,
        var_name=SAMPLE_NUMBER_COLUMN,
        value_name=SAMPLE_VALUE_COLUMN,
    )
    long[SAMPLE_NUMBER_COLUMN] = (
        long[SAMPLE_NUMBER_COLUMN].str[len(SAMPLE_COLUMN_PREFIX):].astype(int)
    )
    return long.sort_values([JOB_INDEX_COLUMN, SAMPLE_NUMBER_COLUMN], ignore_index=True)


def summarize_results(frame: pd.DataFrame, config: Optional[Config] = None) -> pd.DataFrame:
    """Summarize aggregated results, one row per job.

    Args:
        frame: Aggregated results in either layout
        config: Configuration naming the N and p columns (default: Config())

    Returns:
        DataFrame with job_index, the parameter columns and SUMMARY_COLUMNS

    Raises:
        SchemaMismatchError: If the N or p column is missing
    """
    config = config or Config()
    trials_column = config.sampling.trials_column
    probability_column = config.sampling.probability_column

    long = to_long(frame)
    for column in (trials_column, probability_column):
        if column not in long.columns:
            raise SchemaMismatchError(f"Results have no '{column}' column")

    parameter_columns = [
        c for c in long.columns
        if c not in (JOB_INDEX_COLUMN, SAMPLE_NUMBER_COLUMN, SAMPLE_VALUE_COLUMN)
    ]

    if long.empty:
        return pd.DataFrame(columns=[JOB_INDEX_COLUMN, *parameter_columns, *SUMMARY_COLUMNS])

    grouped = long.groupby([JOB_INDEX_COLUMN, *parameter_columns], sort=True)[SAMPLE_VALUE_COLUMN]
    summary = grouped.agg(
        sample_count="count",
        observed_mean="mean",
        observed_variance="var",
        observed_min="min",
        observed_max="max",
    ).reset_index()

    trials = summary[trials_column].astype(float)
    probability = summary[probability_column].astype(float)
    summary["expected_mean"] = trials * probability
    summary["expected_variance"] = trials * probability * (1.0 - probability)

    logger.debug(f"Summarized {len(summary)} jobs from {len(long)} samples")
    return summary


def write_summary(summary: pd.DataFrame, path: Union[str, Path]) -> Path:
    """Write a summary table to CSV."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        write_text_atomically(path, summary.to_csv(index=False))
    except OSError as e:
        raise ResultFileError(f"Could not write summary to {path}: {e}") from e
    logger.info(f"Summary of {len(summary)} jobs written to {path}")
    return path
