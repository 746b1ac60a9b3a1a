"""Per-job result files and their aggregation.

Each job writes exactly one CSV named from its job index:
    results/
        results_1.csv
        results_2.csv
        ...

Because every index maps to a distinct filename, concurrently running jobs
never write the same file and need no locking. The aggregator concatenates
whatever files exist when it runs; it does not check that every expected
index is present.
"""

import fnmatch
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import pandas as pd

from gridsweep.constants import DEFAULT_RESULT_PREFIX, RESULT_SUFFIX
from gridsweep.data.abstractions import JobIndex, ResultRecord
from gridsweep.data.grid_io import write_text_atomically
from gridsweep.errors import ResultFileError, SchemaMismatchError

logger = logging.getLogger(__name__)


def record_to_frame(record: ResultRecord, layout: str = "wide") -> pd.DataFrame:
    """Flatten a result record into a DataFrame.

    Args:
        record: The record to flatten
        layout: 'wide' (one row, sample_1..sample_n) or 'long' (one row per sample)

    Returns:
        DataFrame with the record's columns
    """
    return pd.DataFrame(record.rows(layout), columns=record.columns(layout))


def write_result(
    record: ResultRecord,
    results_dir: Union[str, Path],
    prefix: str = DEFAULT_RESULT_PREFIX,
    layout: str = "wide",
) -> Path:
    """Write one job's result file, replacing any previous attempt.

    The file appears atomically: readers never see a partially written file,
    and a failed write leaves nothing behind.

    Args:
        record: Result of the job
        results_dir: Directory receiving per-job files
        prefix: Filename prefix (file is '<prefix><index>.csv')
        layout: 'wide' or 'long'

    Returns:
        Path of the written file

    Raises:
        ResultFileError: If the file cannot be written
    """
    results_dir = Path(results_dir)
    path = results_dir / JobIndex(record.job_index).result_filename(prefix)
    frame = record_to_frame(record, layout)

    try:
        results_dir.mkdir(parents=True, exist_ok=True)
        write_text_atomically(path, frame.to_csv(index=False))
    except OSError as e:
        raise ResultFileError(f"Could not write result file {path}: {e}") from e

    logger.debug(f"Result for job {record.job_index} written to {path}")
    return path


def read_result(path: Union[str, Path]) -> pd.DataFrame:
    """Read one per-job result file.

    Raises:
        ResultFileError: If the file cannot be read or parsed
    """
    try:
        return pd.read_csv(path, float_precision="round_trip")
    except (OSError, ValueError) as e:
        raise ResultFileError(f"Could not read result file {path}: {e}") from e


def _sort_key(path: Path, prefix: str) -> Tuple[int, int, str]:
    job_index = JobIndex.from_filename(path.name, prefix)
    if job_index is None:
        return (1, 0, path.name)
    return (0, job_index.value, path.name)


def discover_result_files(
    results_dir: Union[str, Path],
    pattern: Optional[str] = None,
    prefix: str = DEFAULT_RESULT_PREFIX,
) -> List[Path]:
    """Find per-job result files in a directory.

    Files are returned in job index order (results_2 before results_10);
    matching files without a parsable index come last, by name.

    Args:
        results_dir: Directory to scan
        pattern: Glob pattern (default: '<prefix>*.csv')
        prefix: Result filename prefix, used to parse job indices

    Returns:
        Sorted list of matching file paths (empty if the directory is missing)
    """
    results_dir = Path(results_dir)
    pattern = pattern or f"{prefix}*{RESULT_SUFFIX}"

    if not results_dir.is_dir():
        logger.warning(f"Results directory not found: {results_dir}")
        return []

    matches = [
        p for p in results_dir.iterdir()
        if p.is_file() and fnmatch.fnmatch(p.name, pattern)
    ]
    return sorted(matches, key=lambda p: _sort_key(p, prefix))


def concatenate_results(paths: Sequence[Path]) -> pd.DataFrame:
    """Read and concatenate result files sharing one column schema.

    Args:
        paths: Result files, in the order their rows should appear

    Returns:
        Combined DataFrame (empty with no columns if paths is empty)

    Raises:
        SchemaMismatchError: If any file's columns differ from the first file's
        ResultFileError: If a file cannot be read
    """
    frames = []
    expected_columns: Optional[List[str]] = None
    first_path: Optional[Path] = None

    for path in paths:
        frame = read_result(path)
        columns = [str(c) for c in frame.columns]

        if expected_columns is None:
            expected_columns, first_path = columns, path
        elif columns != expected_columns:
            raise SchemaMismatchError(
                f"Result file {path} has columns {columns}, "
                f"but {first_path} has {expected_columns}"
            )
        frames.append(frame)

    if not frames:
        return pd.DataFrame()
    return pd.concat(frames, ignore_index=True)


def aggregate_results(
    results_dir: Union[str, Path],
    output_path: Union[str, Path],
    pattern: Optional[str] = None,
    prefix: str = DEFAULT_RESULT_PREFIX,
    columns: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Concatenate every per-job result file into one table and write it.

    Should run only after all jobs have finished; running early silently
    produces a partial table.

    Args:
        results_dir: Directory holding per-job result files
        output_path: Destination of the combined CSV
        pattern: Glob pattern selecting result files (default: '<prefix>*.csv')
        prefix: Result filename prefix
        columns: Header to write when no result files are found

    Returns:
        The combined DataFrame

    Raises:
        SchemaMismatchError: If result files disagree on columns (nothing is written)
        ResultFileError: If a result file can't be read or the output can't be written
    """
    output_path = Path(output_path)
    pattern = pattern or f"{prefix}*{RESULT_SUFFIX}"
    paths = discover_result_files(results_dir, pattern, prefix)
    # Never read back our own output if it lives in the results directory
    paths = [p for p in paths if p.resolve() != output_path.resolve()]

    combined = concatenate_results(paths)

    if paths:
        text = combined.to_csv(index=False)
    else:
        logger.warning(f"No result files matching '{pattern}' in {results_dir}")
        combined = pd.DataFrame(columns=list(columns or []))
        text = ",".join(combined.columns) + "\n" if columns else ""

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        write_text_atomically(output_path, text)
    except OSError as e:
        raise ResultFileError(f"Could not write aggregated results to {output_path}: {e}") from e

    logger.info(f"Aggregated {len(paths)} result files ({len(combined)} rows) into {output_path}")
    return combined
