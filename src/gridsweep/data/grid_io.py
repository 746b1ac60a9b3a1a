"""Parameter grid construction and persistence.

The grid is the full Cartesian product of the candidate values, one row per
combination. Rows are enumerated like nested loops over the parameters in
declaration order: the last parameter varies fastest. Job index k (1-based)
always selects row k, so the order must never change between runs.

Persisted layout:
    grid.csv       # Header row + one line per combination
    grid.csv.json  # Manifest: schema version, columns, row count, candidates
"""

import itertools
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import pandas as pd

from gridsweep.constants import MANIFEST_SUFFIX
from gridsweep.data.abstractions import GridRow, JobIndex, ParameterSet, to_native
from gridsweep.data.config_serializer import create_grid_manifest, get_manifest_metadata
from gridsweep.errors import GridFileError, IndexOutOfRangeError

logger = logging.getLogger(__name__)


class CombinationTable:
    """Ordered table of parameter combinations.

    Wraps a DataFrame with one column per parameter and one row per
    combination. Rows are only reachable through row(), which checks the
    job index against the table bounds.

    Usage:
        table = build_grid({"N": [10, 20], "p": [0.1, 0.5]})
        save_grid(table, "grid.csv")
        row = load_grid("grid.csv").row(JobIndex(2))  # N=10, p=0.5
    """

    def __init__(self, frame: pd.DataFrame) -> None:
        """Initialize from a DataFrame of combinations.

        Args:
            frame: One column per parameter, one row per combination
        """
        self._frame = frame.reset_index(drop=True)

    @property
    def parameter_names(self) -> List[str]:
        """Return parameter (column) names in order."""
        return [str(c) for c in self._frame.columns]

    @property
    def row_count(self) -> int:
        """Return the number of combinations."""
        return len(self._frame)

    def __len__(self) -> int:
        return self.row_count

    def row(self, job_index: Union[JobIndex, int]) -> GridRow:
        """Return the row selected by a 1-based job index.

        Args:
            job_index: JobIndex or plain integer in [1, row_count]

        Returns:
            GridRow with native Python values in column order

        Raises:
            IndexOutOfRangeError: If the index is outside [1, row_count]
        """
        if not isinstance(job_index, JobIndex):
            job_index = JobIndex(job_index)

        if job_index.value > self.row_count:
            raise IndexOutOfRangeError(
                f"Job index {job_index} is out of range: grid has {self.row_count} rows"
            )

        position = job_index.position
        values = {
            name: to_native(self._frame[name].iat[position])
            for name in self._frame.columns
        }
        return GridRow(job_index=job_index, values=values)

    def rows(self) -> List[GridRow]:
        """Return every row in order."""
        return [self.row(JobIndex(i)) for i in range(1, self.row_count + 1)]

    def to_frame(self) -> pd.DataFrame:
        """Return a copy of the underlying DataFrame."""
        return self._frame.copy()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CombinationTable):
            return NotImplemented
        if self.parameter_names != other.parameter_names or self.row_count != other.row_count:
            return False
        return all(a.values == b.values for a, b in zip(self.rows(), other.rows()))

    def __repr__(self) -> str:
        return f"CombinationTable(parameters={self.parameter_names}, rows={self.row_count})"


def build_grid(parameters: Union[ParameterSet, Mapping[str, Sequence[Any]]]) -> CombinationTable:
    """Build the full Cartesian product of the candidate values.

    Args:
        parameters: ParameterSet or mapping of parameter name to candidate values

    Returns:
        CombinationTable with one row per combination
    """
    parameter_set = ParameterSet.from_mapping(parameters)
    combinations = list(itertools.product(*parameter_set.values))

    frame = pd.DataFrame(combinations, columns=list(parameter_set.names))
    if not combinations:
        empty = [name for name, values in parameter_set.items() if not values]
        logger.warning(f"Parameter grid is empty: no candidate values for {empty}")

    logger.debug(f"Built grid with {len(frame)} rows over {list(parameter_set.names)}")
    return CombinationTable(frame)


def manifest_path_for(grid_path: Union[str, Path]) -> Path:
    """Return the manifest path stored next to a grid file."""
    grid_path = Path(grid_path)
    return grid_path.with_name(grid_path.name + MANIFEST_SUFFIX)


def save_grid(
    table: CombinationTable,
    path: Union[str, Path],
    parameters: Optional[ParameterSet] = None,
) -> Path:
    """Persist a grid to CSV and write its manifest.

    Floats are written in their shortest round-trip form so load_grid()
    recovers every value exactly.

    Args:
        table: The grid to persist
        path: Destination CSV path
        parameters: ParameterSet the grid was built from (recorded in the manifest)

    Returns:
        Path of the written CSV

    Raises:
        GridFileError: If the grid cannot be written
    """
    path = Path(path)
    manifest = create_grid_manifest(table.parameter_names, table.row_count, parameters)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        write_text_atomically(path, table.to_frame().to_csv(index=False))
        write_text_atomically(
            manifest_path_for(path),
            json.dumps(manifest, indent=2, ensure_ascii=False),
        )
    except OSError as e:
        raise GridFileError(f"Could not write grid to {path}: {e}") from e

    logger.info(f"Grid with {table.row_count} rows written to {path}")
    return path


def load_grid(path: Union[str, Path]) -> CombinationTable:
    """Load a persisted grid.

    If a manifest exists next to the CSV, the loaded columns and row count
    must match it.

    Args:
        path: Path to the grid CSV

    Returns:
        The loaded CombinationTable

    Raises:
        GridFileError: If the file is missing, unparsable or disagrees with its manifest
    """
    path = Path(path)
    if not path.exists():
        raise GridFileError(f"Grid file not found: {path}")

    try:
        frame = pd.read_csv(path, float_precision="round_trip")
    except (OSError, ValueError, pd.errors.ParserError) as e:
        # EmptyDataError is a ValueError
        raise GridFileError(f"Could not read grid file {path}: {e}") from e

    if frame.columns.empty:
        raise GridFileError(f"Grid file has no columns: {path}")

    manifest = _read_manifest(path)
    if manifest is not None:
        _check_against_manifest(path, frame, manifest)

    logger.debug(f"Loaded grid with {len(frame)} rows from {path}")
    return CombinationTable(frame)


def _read_manifest(grid_path: Path) -> Optional[Dict[str, Any]]:
    """Read the manifest next to a grid, or None if there isn't one."""
    manifest_path = manifest_path_for(grid_path)
    if not manifest_path.exists():
        return None

    try:
        with open(manifest_path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        raise GridFileError(f"Could not read grid manifest {manifest_path}: {e}") from e


def _check_against_manifest(path: Path, frame: pd.DataFrame, manifest: Dict[str, Any]) -> None:
    columns = [str(c) for c in frame.columns]
    expected_columns = manifest.get("columns")
    expected_rows = manifest.get("row_count")

    if expected_columns is not None and columns != expected_columns:
        raise GridFileError(
            f"Grid file {path} has columns {columns}, manifest expects {expected_columns}"
        )
    if expected_rows is not None and len(frame) != expected_rows:
        raise GridFileError(
            f"Grid file {path} has {len(frame)} rows, manifest expects {expected_rows}"
        )

    metadata = get_manifest_metadata(manifest)
    logger.debug(
        f"Grid manifest ok (schema {metadata.get('schema_version')}, "
        f"created {metadata.get('created_at')})"
    )


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def write_text_atomically(path: Path, text: str) -> None:
    """Write text to a temporary sibling, then rename it into place.

    The final file gets the same permissions a plain open() would give it
    (0666 minus the umask), not mkstemp's owner-only 0600.
    """
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        os.chmod(tmp_name, 0o666 & ~_current_umask())
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise
