"""Pytest fixtures for grid sweep tests."""

import shutil
import tempfile

import numpy as np
import pytest

# Add src directory to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gridsweep.config import Config, GridConfig, OutputConfig, SamplingConfig
from gridsweep.data.grid_io import build_grid, save_grid


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp = tempfile.mkdtemp()
    yield Path(temp)
    shutil.rmtree(temp, ignore_errors=True)


@pytest.fixture
def rng():
    """Seeded random generator for reproducibility."""
    return np.random.default_rng(42)


@pytest.fixture
def scenario_parameters():
    """Two trial counts, two probabilities, one sample size: four rows."""
    return {"N": [10, 20], "p": [0.1, 0.5], "n": [100]}


@pytest.fixture
def tutorial_parameters():
    """The ten-row grid with fractional probabilities."""
    return {"N": [10, 20], "p": [0.1, 0.3, 0.5, 0.7, 0.9], "n": [100]}


@pytest.fixture
def config(temp_dir, scenario_parameters):
    """Configuration with every path inside the temporary directory."""
    return Config(
        grid=GridConfig(
            parameters=scenario_parameters,
            grid_path=str(temp_dir / "grid.csv"),
        ),
        sampling=SamplingConfig(seed=123),
        output=OutputConfig(
            results_dir=str(temp_dir / "results"),
            aggregate_path=str(temp_dir / "results_all.csv"),
            summary_path=str(temp_dir / "summary.csv"),
            chart_path=str(temp_dir / "summary.png"),
        ),
    )


@pytest.fixture
def saved_grid(config):
    """Build and persist the scenario grid; return its path."""
    table = build_grid(config.grid.parameters)
    return save_grid(table, config.grid.grid_path, config.grid.parameters)


@pytest.fixture
def write_csv(temp_dir):
    """Write raw CSV text into the results directory."""
    results_dir = temp_dir / "results"
    results_dir.mkdir(exist_ok=True)

    def _write(name: str, text: str) -> Path:
        path = results_dir / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
