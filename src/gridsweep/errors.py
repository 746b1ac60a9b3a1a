"""Exception hierarchy for grid sweeps.

Every fatal condition raised by the grid builder, the per-row runner and the
result aggregator derives from SweepError so the CLI can report it with a
single handler and a non-zero exit status.
"""


class SweepError(Exception):
    """Base exception for all grid sweep errors."""

    pass


class GridFileError(SweepError, OSError):
    """Raised when the persisted grid is missing, unreadable or inconsistent."""

    pass


class IndexOutOfRangeError(SweepError, IndexError):
    """Raised when a job index does not select a row of the grid."""

    pass


class InvalidParameterError(SweepError, ValueError):
    """Raised when a distribution parameter lies outside its domain."""

    pass


class SchemaMismatchError(SweepError):
    """Raised when result files to be concatenated have different columns."""

    pass


class ResultFileError(SweepError, OSError):
    """Raised when a per-job result file cannot be written or read."""

    pass
