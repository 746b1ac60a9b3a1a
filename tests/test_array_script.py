"""Tests for SLURM job-array script generation."""

import os

import pytest

from gridsweep.config import ArrayConfig, Config
from gridsweep.simulation.array_script import (
    AGGREGATE_SCRIPT_NAME,
    ARRAY_SCRIPT_NAME,
    render_aggregate_script,
    render_array_script,
    write_array_scripts,
)


class TestRenderArrayScript:
    """Tests for the array script."""

    def test_array_range_matches_rows(self):
        script = render_array_script(10)
        assert "#SBATCH --array=1-10\n" in script
        assert script.startswith("#!/bin/bash\n")

    def test_task_id_passed_to_run(self):
        script = render_array_script(4, config_path="sweep.json")
        assert 'python -m gridsweep run --config sweep.json "${SLURM_ARRAY_TASK_ID}"' in script

    def test_throttle(self):
        config = Config(array=ArrayConfig(max_concurrent=3))
        assert "#SBATCH --array=1-10%3" in render_array_script(10, config)

    def test_resources(self):
        config = Config(array=ArrayConfig(
            job_name="binom", time="01:00:00", mem="2G", cpus_per_task=2, partition="short",
        ))
        script = render_array_script(5, config)

        assert "#SBATCH --job-name=binom" in script
        assert "#SBATCH --time=01:00:00" in script
        assert "#SBATCH --mem=2G" in script
        assert "#SBATCH --cpus-per-task=2" in script
        assert "#SBATCH --partition=short" in script
        assert "#SBATCH --output=logs/%x.%A_%a.out" in script

    def test_no_partition_by_default(self):
        assert "--partition" not in render_array_script(5)

    def test_paths_quoted(self):
        script = render_array_script(2, config_path="my sweep.json")
        assert "--config 'my sweep.json'" in script

    @pytest.mark.parametrize("row_count", [0, -1])
    def test_empty_grid_rejected(self, row_count):
        with pytest.raises(ValueError):
            render_array_script(row_count)


class TestRenderAggregateScript:
    """Tests for the aggregation script."""

    def test_runs_aggregate(self):
        script = render_aggregate_script(config_path="sweep.json")
        assert "python -m gridsweep aggregate --config sweep.json" in script
        assert "--array" not in script
        assert "afterok" in script

    def test_job_name(self):
        config = Config(array=ArrayConfig(job_name="binom"))
        assert "#SBATCH --job-name=binom-aggregate" in render_aggregate_script(config)


class TestWriteArrayScripts:
    """Tests for writing both scripts."""

    def test_writes_executable_scripts(self, temp_dir):
        config = Config(array=ArrayConfig(log_dir=str(temp_dir / "logs")))
        array_path, aggregate_path = write_array_scripts(10, temp_dir / "slurm", config)

        assert array_path == temp_dir / "slurm" / ARRAY_SCRIPT_NAME
        assert aggregate_path == temp_dir / "slurm" / AGGREGATE_SCRIPT_NAME
        for path in (array_path, aggregate_path):
            assert os.access(path, os.X_OK)
        assert "--array=1-10" in array_path.read_text()

    def test_creates_log_directory(self, temp_dir):
        log_dir = temp_dir / "cluster" / "logs"
        config = Config(array=ArrayConfig(log_dir=str(log_dir)))

        array_path, _ = write_array_scripts(3, temp_dir / "slurm", config)

        assert log_dir.is_dir()
        assert f"#SBATCH --output={log_dir}/%x.%A_%a.out" in array_path.read_text()

    def test_nothing_written_for_empty_grid(self, temp_dir):
        with pytest.raises(ValueError):
            write_array_scripts(0, temp_dir)
        assert not (temp_dir / ARRAY_SCRIPT_NAME).exists()
