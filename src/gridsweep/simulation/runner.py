"""Per-row simulation runner.

One invocation = one job-array task: look up the grid row for the job
index, draw the binomial samples, and write the task's own result file.
"""

import logging
import time
from pathlib import Path
from typing import Optional, Union

import numpy as np

from gridsweep.config import Config
from gridsweep.data.abstractions import GridRow, JobIndex, ResultRecord
from gridsweep.data.grid_io import CombinationTable, load_grid
from gridsweep.data.result_io import write_result
from gridsweep.errors import InvalidParameterError
from gridsweep.simulation.binomial import draw_binomial_samples, make_rng

logger = logging.getLogger(__name__)


def simulate_row(
    row: GridRow,
    config: Optional[Config] = None,
    rng: Optional[np.random.Generator] = None,
) -> ResultRecord:
    """Run the binomial draw for one grid row.

    Args:
        row: Grid row holding the trial count, probability and sample count
        config: Configuration naming the columns to use (default: Config())
        rng: Random generator (default: derived from config seed and job index)

    Returns:
        ResultRecord with the row's parameters and the samples

    Raises:
        InvalidParameterError: If a required column is missing or a value is invalid
    """
    config = config or Config()
    sampling = config.sampling

    missing = [
        column
        for column in (sampling.trials_column, sampling.probability_column, sampling.size_column)
        if column not in row.values
    ]
    if missing:
        raise InvalidParameterError(
            f"Grid row {row.job_index} has no column(s) {missing}; "
            f"available: {list(row.parameter_names)}"
        )

    if rng is None:
        rng = make_rng(sampling.seed, row.job_index.value)

    samples = draw_binomial_samples(
        trials=row[sampling.trials_column],
        probability=row[sampling.probability_column],
        size=row[sampling.size_column],
        rng=rng,
    )
    return ResultRecord.create(row, samples)


def run_job(
    job_index: Union[JobIndex, int],
    config: Optional[Config] = None,
    grid: Optional[CombinationTable] = None,
    rng: Optional[np.random.Generator] = None,
) -> Path:
    """Run one job end to end and write its result file.

    Nothing is written unless every step succeeds. Re-running the same job
    index replaces the previous result file.

    Args:
        job_index: 1-based index of the grid row to simulate
        config: Sweep configuration (default: Config())
        grid: Already loaded grid (default: loaded from config.grid.grid_path)
        rng: Random generator override

    Returns:
        Path of the written result file

    Raises:
        GridFileError: If the grid cannot be loaded
        IndexOutOfRangeError: If job_index is outside [1, row count]
        InvalidParameterError: If the row's values are invalid
        ResultFileError: If the result file cannot be written
    """
    config = config or Config()
    if not isinstance(job_index, JobIndex):
        job_index = JobIndex(job_index)

    start_time = time.time()

    if grid is None:
        grid = load_grid(config.grid.grid_path)

    row = grid.row(job_index)
    logger.info(f"Job {job_index}/{grid.row_count}: {row.values}")

    record = simulate_row(row, config, rng)
    path = write_result(
        record,
        config.output.results_dir,
        prefix=config.output.result_prefix,
        layout=config.sampling.layout,
    )

    elapsed = time.time() - start_time
    logger.info(f"Job {job_index} wrote {record.sample_count} samples to {path} ({elapsed:.2f}s)")
    return path
