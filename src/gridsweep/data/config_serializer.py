"""Configuration and grid snapshot serialization.

Provides serialization of frozen dataclasses, and the manifest written next
to a persisted grid so later stages can check the grid file is intact.
"""

import dataclasses
from datetime import datetime
from typing import Any, Dict, List, Optional

from gridsweep.constants import GRID_SCHEMA_VERSION
from gridsweep.data.abstractions import ParameterSet, to_native


def serialize_config(config: Any) -> Any:
    """Recursively serialize a configuration object to JSON-ready values.

    Handles:
    - Frozen dataclasses (recursively serialized)
    - ParameterSet (name -> list of candidate values)
    - Tuples and lists (converted to lists)
    - Dicts
    - numpy scalars and primitive types

    Args:
        config: Configuration object (typically a dataclass)

    Returns:
        Value suitable for JSON serialization
    """
    if isinstance(config, ParameterSet):
        return config.as_dict()

    elif dataclasses.is_dataclass(config) and not isinstance(config, type):
        result = {}
        for field in dataclasses.fields(config):
            value = getattr(config, field.name)
            result[field.name] = serialize_config(value)
        return result

    elif isinstance(config, (tuple, list)):
        return [serialize_config(item) for item in config]

    elif isinstance(config, dict):
        return {key: serialize_config(value) for key, value in config.items()}

    else:
        return to_native(config)


def create_grid_manifest(
    columns: List[str],
    row_count: int,
    parameters: Optional[ParameterSet] = None,
    version: str = GRID_SCHEMA_VERSION,
) -> Dict[str, Any]:
    """Create the manifest stored next to a persisted grid.

    The manifest includes:
    - Schema version and creation timestamp
    - Column names and row count of the grid table
    - The candidate values the grid was built from (if known)

    Args:
        columns: Grid column names in order
        row_count: Number of rows in the grid
        parameters: ParameterSet the grid was built from
        version: Schema version string for future compatibility

    Returns:
        Manifest dictionary ready for persistence
    """
    return {
        "_metadata": {
            "schema_version": version,
            "created_at": datetime.now().isoformat(),
        },
        "columns": list(columns),
        "row_count": int(row_count),
        "parameters": serialize_config(parameters) if parameters is not None else None,
    }


def get_manifest_metadata(manifest: Dict[str, Any]) -> Dict[str, Any]:
    """Extract metadata from a manifest.

    Args:
        manifest: Complete manifest dictionary

    Returns:
        The metadata dictionary
    """
    return manifest.get("_metadata", {})
