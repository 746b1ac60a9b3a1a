"""Formal abstractions for the grid sweep data model.

Defines the value types passed between the three stages:
- ParameterSet: candidate values per parameter (input to the grid builder)
- JobIndex: 1-based index selecting one grid row (one job-array task)
- GridRow: one bounds-checked row of the combination table
- ResultRecord: a row's parameters plus its sampled outcomes
"""

import math
import numbers
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from gridsweep.constants import (
    ARRAY_TASK_ENV_VAR,
    DEFAULT_RESULT_PREFIX,
    JOB_INDEX_COLUMN,
    RESULT_LAYOUTS,
    RESULT_SUFFIX,
    SAMPLE_COLUMN_PREFIX,
    SAMPLE_NUMBER_COLUMN,
    SAMPLE_VALUE_COLUMN,
)
from gridsweep.errors import IndexOutOfRangeError, InvalidParameterError

RESERVED_COLUMNS = (JOB_INDEX_COLUMN, SAMPLE_NUMBER_COLUMN, SAMPLE_VALUE_COLUMN)


def to_native(value: Any) -> Any:
    """Convert numpy scalars to the equivalent built-in Python value."""
    if hasattr(value, "item") and getattr(value, "ndim", None) == 0:
        return value.item()
    return value


def _is_number(value: Any) -> bool:
    """Return True for finite real numbers, excluding booleans."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return math.isfinite(value)


@dataclass(frozen=True)
class ParameterSet:
    """Ordered mapping from parameter name to candidate values.

    Parameter order matters: it fixes the column order of the combination
    table and the order in which combinations are enumerated.

    Attributes:
        names: Parameter names in declaration order
        values: Candidate values for each parameter, aligned with names
    """

    names: Tuple[str, ...]
    values: Tuple[Tuple[Any, ...], ...]

    def __post_init__(self) -> None:
        """Validate names and candidate values."""
        if not self.names:
            raise ValueError("A parameter set needs at least one parameter")
        if len(self.names) != len(self.values):
            raise ValueError(
                f"Got {len(self.names)} parameter names but {len(self.values)} value lists"
            )
        if len(set(self.names)) != len(self.names):
            raise ValueError(f"Duplicate parameter names: {list(self.names)}")

        for name, candidates in zip(self.names, self.values):
            if not isinstance(name, str) or not name.strip():
                raise ValueError(f"Invalid parameter name: {name!r}")
            if name in RESERVED_COLUMNS or name.startswith(SAMPLE_COLUMN_PREFIX):
                raise ValueError(f"Parameter name is reserved for result columns: {name}")
            for value in candidates:
                if not _is_number(value):
                    raise ValueError(
                        f"Parameter '{name}' has a non-numeric candidate value: {value!r}"
                    )

    @classmethod
    def from_mapping(cls, parameters: Mapping[str, Sequence[Any]]) -> "ParameterSet":
        """Build a parameter set from a name -> values mapping.

        Args:
            parameters: Mapping of parameter names to candidate values

        Returns:
            ParameterSet preserving the mapping's key order
        """
        if isinstance(parameters, ParameterSet):
            return parameters

        if not isinstance(parameters, Mapping):
            raise ValueError(
                f"Parameters must map names to value lists, got {type(parameters).__name__}"
            )

        names = []
        values = []
        for name, candidates in parameters.items():
            if isinstance(candidates, (str, bytes, Mapping)) or not hasattr(candidates, "__iter__"):
                raise ValueError(
                    f"Candidate values for '{name}' must be a list, got {type(candidates).__name__}"
                )
            names.append(name)
            values.append(tuple(to_native(v) for v in candidates))
        return cls(names=tuple(names), values=tuple(values))

    def items(self) -> List[Tuple[str, Tuple[Any, ...]]]:
        """Return (name, candidate values) pairs in declaration order."""
        return list(zip(self.names, self.values))

    def as_dict(self) -> Dict[str, List[Any]]:
        """Return a plain dictionary of candidate value lists."""
        return {name: list(candidates) for name, candidates in self.items()}

    @property
    def combination_count(self) -> int:
        """Return the size of the Cartesian product."""
        return math.prod(len(candidates) for candidates in self.values)

    def __len__(self) -> int:
        return len(self.names)


@dataclass(frozen=True, order=True)
class JobIndex:
    """1-based index of one job-array task.

    The index selects exactly one row of the combination table and names
    the task's result file. Two tasks never share an index, so they never
    write the same file.

    Attributes:
        value: The index, starting at 1
    """

    value: int

    def __post_init__(self) -> None:
        """Validate the index is a positive integer."""
        if isinstance(self.value, bool) or not isinstance(self.value, numbers.Integral):
            raise InvalidParameterError(f"Job index must be an integer, got {self.value!r}")
        if self.value < 1:
            raise IndexOutOfRangeError(f"Job index must be >= 1, got {self.value}")
        object.__setattr__(self, "value", int(self.value))

    @classmethod
    def from_string(cls, text: str) -> "JobIndex":
        """Parse a job index from a command-line or environment string.

        Raises:
            InvalidParameterError: If the text is not an integer
        """
        try:
            value = int(str(text).strip())
        except ValueError:
            raise InvalidParameterError(f"Job index is not an integer: {text!r}") from None
        return cls(value)

    @classmethod
    def from_environment(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        variable: str = ARRAY_TASK_ENV_VAR,
    ) -> "JobIndex":
        """Read the job index the batch scheduler exported for this task.

        Raises:
            InvalidParameterError: If the variable is unset or not an integer
        """
        environ = os.environ if environ is None else environ
        text = environ.get(variable)
        if text is None or not text.strip():
            raise InvalidParameterError(
                f"No job index given and {variable} is not set"
            )
        return cls.from_string(text)

    @classmethod
    def from_filename(
        cls,
        filename: str,
        prefix: str = DEFAULT_RESULT_PREFIX,
    ) -> Optional["JobIndex"]:
        """Recover the job index embedded in a result filename.

        Returns:
            The parsed JobIndex, or None if the name doesn't follow the convention
        """
        if not filename.startswith(prefix) or not filename.endswith(RESULT_SUFFIX):
            return None
        digits = filename[len(prefix):len(filename) - len(RESULT_SUFFIX)]
        if not (digits.isascii() and digits.isdigit()):
            return None
        value = int(digits)
        return cls(value) if value >= 1 else None

    def result_filename(self, prefix: str = DEFAULT_RESULT_PREFIX) -> str:
        """Return the result filename for this task (e.g. 'results_12.csv')."""
        return f"{prefix}{self.value}{RESULT_SUFFIX}"

    @property
    def position(self) -> int:
        """Return the zero-based row position."""
        return self.value - 1

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class GridRow:
    """One row of the combination table, selected by job index.

    Attributes:
        job_index: The index used to select the row
        values: Parameter name -> value, in table column order
    """

    job_index: JobIndex
    values: Dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, name: str) -> Any:
        return self.values[name]

    @property
    def parameter_names(self) -> Tuple[str, ...]:
        """Return parameter names in column order."""
        return tuple(self.values)


@dataclass(frozen=True)
class ResultRecord:
    """The outcome of one job: the row's parameters and its samples.

    Created once per job and never mutated. Serialized in one of two layouts:
    - 'wide': a single row with one column per sample
    - 'long': one row per sample

    Attributes:
        job_index: Index of the job that produced the record
        parameters: Parameter name -> value, in table column order
        samples: Sampled outcomes in draw order
    """

    job_index: int
    parameters: Dict[str, Any]
    samples: Tuple[int, ...]

    @classmethod
    def create(cls, row: GridRow, samples: Sequence[int]) -> "ResultRecord":
        """Create a record from a grid row and its samples."""
        return cls(
            job_index=row.job_index.value,
            parameters=dict(row.values),
            samples=tuple(int(s) for s in samples),
        )

    @property
    def sample_count(self) -> int:
        """Return the number of samples."""
        return len(self.samples)

    def columns(self, layout: str = "wide") -> List[str]:
        """Return the column names for the given layout."""
        _check_layout(layout)
        leading = [JOB_INDEX_COLUMN, *self.parameters]
        if layout == "wide":
            sample_columns = [
                f"{SAMPLE_COLUMN_PREFIX}{i}" for i in range(1, self.sample_count + 1)
            ]
            return leading + sample_columns
        return leading + [SAMPLE_NUMBER_COLUMN, SAMPLE_VALUE_COLUMN]

    def rows(self, layout: str = "wide") -> List[List[Any]]:
        """Return the record flattened into rows matching columns(layout)."""
        _check_layout(layout)
        leading = [self.job_index, *self.parameters.values()]
        if layout == "wide":
            return [leading + list(self.samples)]
        return [
            leading + [number, sample]
            for number, sample in enumerate(self.samples, start=1)
        ]


def _check_layout(layout: str) -> None:
    if layout not in RESULT_LAYOUTS:
        raise ValueError(f"Invalid result layout: {layout}. Use one of {RESULT_LAYOUTS}")
