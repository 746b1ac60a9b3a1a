"""Configuration dataclasses for grid sweeps."""

import json
import logging
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional

from gridsweep.constants import (
    DEFAULT_AGGREGATE_FILENAME,
    DEFAULT_CHART_FILENAME,
    DEFAULT_GRID_FILENAME,
    DEFAULT_RESULT_PREFIX,
    DEFAULT_RESULTS_DIR,
    DEFAULT_SUMMARY_FILENAME,
    RESULT_LAYOUTS,
    RESULT_SUFFIX,
)
from gridsweep.data.abstractions import ParameterSet

logger = logging.getLogger(__name__)


def _check_type(section: str, name: str, value: Any, expected: type, optional: bool = False) -> None:
    """Raise ValueError unless value is an instance of expected (bools never count as ints)."""
    if optional and value is None:
        return
    if isinstance(value, bool) or not isinstance(value, expected):
        raise ValueError(f"{section}.{name} must be {expected.__name__}, got {value!r}")


def _default_parameters() -> ParameterSet:
    return ParameterSet.from_mapping({
        "N": [10, 20],
        "p": [0.1, 0.3, 0.5, 0.7, 0.9],
        "n": [100],
    })


@dataclass(frozen=True)
class GridConfig:
    """Parameter grid definition and where the grid is persisted."""

    parameters: ParameterSet = field(default_factory=_default_parameters)
    grid_path: str = DEFAULT_GRID_FILENAME

    def __post_init__(self) -> None:
        _check_type('grid', 'grid_path', self.grid_path, str)
        # Accept a plain mapping and normalize it
        object.__setattr__(self, 'parameters', ParameterSet.from_mapping(self.parameters))


@dataclass(frozen=True)
class SamplingConfig:
    """Which grid columns feed the binomial draw, and how results are laid out."""

    trials_column: str = "N"
    probability_column: str = "p"
    size_column: str = "n"
    seed: Optional[int] = None  # None = fresh OS entropy per job

    # Result layout options:
    #   'wide' - one row per job, one column per sample (sample_1..sample_n)
    #   'long' - one row per sample (sample_number, sample)
    layout: str = 'wide'

    def __post_init__(self) -> None:
        for name in ('trials_column', 'probability_column', 'size_column', 'layout'):
            _check_type('sampling', name, getattr(self, name), str)
        _check_type('sampling', 'seed', self.seed, int, optional=True)

        if self.layout not in RESULT_LAYOUTS:
            raise ValueError(f"Invalid layout: {self.layout}. Use one of {RESULT_LAYOUTS}")

        columns = (self.trials_column, self.probability_column, self.size_column)
        if len(set(columns)) != len(columns):
            raise ValueError(f"Sampling columns must be distinct, got {columns}")

        if self.seed is not None and self.seed < 0:
            raise ValueError(f"Seed must be non-negative, got {self.seed}")


@dataclass(frozen=True)
class OutputConfig:
    """Locations of per-job results and aggregated outputs."""

    results_dir: str = DEFAULT_RESULTS_DIR
    result_prefix: str = DEFAULT_RESULT_PREFIX
    aggregate_path: str = DEFAULT_AGGREGATE_FILENAME
    summary_path: str = DEFAULT_SUMMARY_FILENAME
    chart_path: str = DEFAULT_CHART_FILENAME

    def __post_init__(self) -> None:
        for f in fields(self):
            _check_type('output', f.name, getattr(self, f.name), str)

        if not self.result_prefix or any(c in self.result_prefix for c in '/\\*?'):
            raise ValueError(f"Invalid result prefix: {self.result_prefix!r}")

    @property
    def result_pattern(self) -> str:
        """Glob pattern matching every per-job result file."""
        return f"{self.result_prefix}*{RESULT_SUFFIX}"


@dataclass(frozen=True)
class ArrayConfig:
    """SLURM job-array settings used when rendering submission scripts."""

    job_name: str = "gridsweep"
    time: str = "00:10:00"
    mem: str = "1G"
    cpus_per_task: int = 1
    partition: Optional[str] = None
    max_concurrent: Optional[int] = None  # None = no throttle on running tasks
    log_dir: str = "logs"
    python: str = "python"

    def __post_init__(self) -> None:
        for name in ('job_name', 'time', 'mem', 'log_dir', 'python'):
            _check_type('array', name, getattr(self, name), str)
        _check_type('array', 'partition', self.partition, str, optional=True)
        _check_type('array', 'cpus_per_task', self.cpus_per_task, int)
        _check_type('array', 'max_concurrent', self.max_concurrent, int, optional=True)

        if self.cpus_per_task < 1:
            raise ValueError(f"cpus_per_task must be >= 1, got {self.cpus_per_task}")
        if self.max_concurrent is not None and self.max_concurrent < 1:
            raise ValueError(f"max_concurrent must be >= 1, got {self.max_concurrent}")
        if not self.job_name.strip():
            raise ValueError("job_name cannot be empty")


@dataclass(frozen=True)
class Config:
    """Master configuration combining all config sections."""

    grid: GridConfig = field(default_factory=GridConfig)
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    array: ArrayConfig = field(default_factory=ArrayConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Build a Config from a (JSON-decoded) dictionary.

        Missing sections and keys fall back to defaults. Unknown sections or
        keys raise ValueError so typos don't silently use defaults.

        Args:
            data: Mapping of section name to section settings

        Returns:
            New Config instance
        """
        if not isinstance(data, dict):
            raise ValueError(f"Config must be a JSON object, got {type(data).__name__}")

        sections = {
            'grid': GridConfig,
            'sampling': SamplingConfig,
            'output': OutputConfig,
            'array': ArrayConfig,
        }

        unknown = set(data) - set(sections)
        if unknown:
            raise ValueError(f"Unknown config sections: {sorted(unknown)}")

        kwargs = {}
        for name, section_cls in sections.items():
            section_data = data.get(name) or {}
            if not isinstance(section_data, dict):
                raise ValueError(f"Config section '{name}' must be an object")
            valid_keys = {f.name for f in fields(section_cls)}
            unknown_keys = set(section_data) - valid_keys
            if unknown_keys:
                raise ValueError(f"Unknown keys in '{name}': {sorted(unknown_keys)}")
            kwargs[name] = section_cls(**section_data)

        return cls(**kwargs)


def load_config(config_path: Optional[str] = None) -> Config:
    """Load sweep configuration from a JSON file.

    Args:
        config_path: Path to the JSON file; None returns the defaults

    Returns:
        Loaded Config
    """
    if config_path is None:
        return Config()

    with open(config_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    logger.debug(f"Loaded config from {config_path}")
    return Config.from_dict(data)
