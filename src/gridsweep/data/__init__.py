"""Data package for grid and result persistence.

This package provides:
- Formal abstractions for parameter sets, job indices, grid rows and results
- Grid construction, persistence and bounds-checked row lookup
- Grid manifest serialization
- Per-job result files and their aggregation
"""

from gridsweep.data.abstractions import (
    ParameterSet,
    JobIndex,
    GridRow,
    ResultRecord,
)
from gridsweep.data.grid_io import CombinationTable, build_grid, save_grid, load_grid
from gridsweep.data.config_serializer import serialize_config, create_grid_manifest
from gridsweep.data.result_io import (
    write_result,
    read_result,
    discover_result_files,
    concatenate_results,
    aggregate_results,
)

__all__ = [
    # Abstractions
    "ParameterSet",
    "JobIndex",
    "GridRow",
    "ResultRecord",
    # Grid
    "CombinationTable",
    "build_grid",
    "save_grid",
    "load_grid",
    # Serialization
    "serialize_config",
    "create_grid_manifest",
    # Results
    "write_result",
    "read_result",
    "discover_result_files",
    "concatenate_results",
    "aggregate_results",
]
