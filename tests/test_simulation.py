"""Tests for binomial sampling and the per-row runner."""

from dataclasses import replace

import numpy as np
import pandas as pd
import pytest

from gridsweep.config import SamplingConfig
from gridsweep.data.abstractions import GridRow, JobIndex
from gridsweep.data.grid_io import build_grid, save_grid
from gridsweep.errors import (
    GridFileError,
    IndexOutOfRangeError,
    InvalidParameterError,
)
from gridsweep.simulation.binomial import (
    draw_binomial_samples,
    make_rng,
    validate_binomial_parameters,
)
from gridsweep.simulation.runner import run_job, simulate_row


class TestValidateBinomialParameters:
    """Tests for parameter domain checks."""

    def test_valid(self):
        assert validate_binomial_parameters(10, 0.5, 100) == (10, 0.5, 100)

    def test_integral_floats_accepted(self):
        trials, probability, size = validate_binomial_parameters(10.0, 1, 5.0)
        assert (trials, probability, size) == (10, 1.0, 5)
        assert type(trials) is int and type(size) is int

    def test_boundaries_accepted(self):
        validate_binomial_parameters(0, 0.0, 0)
        validate_binomial_parameters(1, 1.0, 1)

    @pytest.mark.parametrize("probability", [-0.1, 1.5, float("nan"), float("inf")])
    def test_probability_out_of_domain(self, probability):
        with pytest.raises(InvalidParameterError):
            validate_binomial_parameters(10, probability, 5)

    @pytest.mark.parametrize("trials", [-1, 2.5, float("inf"), "10", True])
    def test_bad_trials(self, trials):
        with pytest.raises(InvalidParameterError):
            validate_binomial_parameters(trials, 0.5, 5)

    @pytest.mark.parametrize("size", [-3, 0.5, None])
    def test_bad_size(self, size):
        with pytest.raises(InvalidParameterError):
            validate_binomial_parameters(10, 0.5, size)

    def test_trials_beyond_int64_rejected(self):
        with pytest.raises(InvalidParameterError, match="at most"):
            validate_binomial_parameters(10 ** 20, 0.5, 2)

    def test_invalid_parameter_is_value_error(self):
        with pytest.raises(ValueError):
            validate_binomial_parameters(10, 2.0, 5)


class TestDrawBinomialSamples:
    """Tests for the sampler."""

    def test_sample_count_and_range(self, rng):
        samples = draw_binomial_samples(10, 0.5, 100, rng)
        assert len(samples) == 100
        assert all(0 <= s <= 10 for s in samples)
        assert all(type(s) is int for s in samples)

    def test_degenerate_probabilities(self, rng):
        assert draw_binomial_samples(7, 0.0, 20, rng) == (0,) * 20
        assert draw_binomial_samples(7, 1.0, 20, rng) == (7,) * 20

    def test_zero_samples(self, rng):
        assert draw_binomial_samples(10, 0.5, 0, rng) == ()

    def test_mean_close_to_expected(self, rng):
        samples = np.array(draw_binomial_samples(20, 0.3, 20000, rng))
        assert samples.mean() == pytest.approx(6.0, abs=0.1)

    def test_invalid_rejected_not_clamped(self, rng):
        with pytest.raises(InvalidParameterError):
            draw_binomial_samples(10, 1.01, 5, rng)


class TestMakeRng:
    """Tests for per-job random streams."""

    def test_seeded_reproducible(self):
        a = make_rng(5, 3).integers(0, 1_000_000, size=10)
        b = make_rng(5, 3).integers(0, 1_000_000, size=10)
        assert (a == b).all()

    def test_jobs_get_different_streams(self):
        a = make_rng(5, 1).integers(0, 1_000_000, size=10)
        b = make_rng(5, 2).integers(0, 1_000_000, size=10)
        assert not (a == b).all()

    def test_unseeded(self):
        assert isinstance(make_rng(None, 1), np.random.Generator)


class TestSimulateRow:
    """Tests for simulating a single grid row."""

    def test_record_contents(self, config, rng):
        row = build_grid(config.grid.parameters).row(2)
        record = simulate_row(row, config, rng)

        assert record.job_index == 2
        assert record.parameters == {"N": 10, "p": 0.5, "n": 100}
        assert record.sample_count == 100

    def test_missing_column(self, config, rng):
        row = GridRow(job_index=JobIndex(1), values={"N": 10, "p": 0.5})
        with pytest.raises(InvalidParameterError, match="n"):
            simulate_row(row, config, rng)

    def test_custom_columns(self, config, rng):
        sampling = SamplingConfig(trials_column="trials", probability_column="prob", size_column="draws")
        config = replace(config, sampling=sampling)
        row = build_grid({"trials": [4], "prob": [0.25], "draws": [7]}).row(1)

        record = simulate_row(row, config, rng)
        assert record.sample_count == 7
        assert all(0 <= s <= 4 for s in record.samples)

    def test_huge_trial_count_is_invalid_parameter(self, config, rng):
        row = GridRow(job_index=JobIndex(1), values={"N": 10 ** 20, "p": 0.5, "n": 2})
        with pytest.raises(InvalidParameterError):
            simulate_row(row, config, rng)

    def test_seeded_jobs_reproducible(self, config):
        row = build_grid(config.grid.parameters).row(3)
        assert simulate_row(row, config).samples == simulate_row(row, config).samples


class TestRunJob:
    """Tests for running one job end to end."""

    def test_writes_wide_result(self, config, saved_grid):
        path = run_job(2, config)

        assert path.name == "results_2.csv"
        frame = pd.read_csv(path)
        assert len(frame) == 1
        assert list(frame.columns) == (
            ["job_index", "N", "p", "n"] + [f"sample_{i}" for i in range(1, 101)]
        )
        row = frame.iloc[0]
        assert row["job_index"] == 2
        assert row["N"] == 10
        assert row["p"] == 0.5
        assert row["n"] == 100
        samples = frame[[f"sample_{i}" for i in range(1, 101)]].iloc[0]
        assert samples.between(0, 10).all()

    def test_writes_long_result(self, config, saved_grid):
        config = replace(config, sampling=replace(config.sampling, layout="long"))
        path = run_job(3, config)

        frame = pd.read_csv(path)
        assert list(frame.columns) == ["job_index", "N", "p", "n", "sample_number", "sample"]
        assert len(frame) == 100
        assert (frame["N"] == 20).all()
        assert list(frame["sample_number"]) == list(range(1, 101))

    @pytest.mark.parametrize("index", [0, 5, 42])
    def test_out_of_range_writes_nothing(self, config, saved_grid, temp_dir, index):
        with pytest.raises(IndexOutOfRangeError):
            run_job(index, config)

        results_dir = temp_dir / "results"
        assert not results_dir.exists() or not any(results_dir.iterdir())

    def test_missing_grid(self, config):
        with pytest.raises(GridFileError):
            run_job(1, config)

    def test_invalid_probability_writes_nothing(self, config, temp_dir):
        save_grid(build_grid({"N": [10], "p": [1.5], "n": [5]}), config.grid.grid_path)

        with pytest.raises(InvalidParameterError):
            run_job(1, config)
        assert not (temp_dir / "results" / "results_1.csv").exists()

    def test_rerun_overwrites(self, config, saved_grid):
        first = run_job(1, config)
        second = run_job(1, config)

        assert first == second
        assert len(list(first.parent.iterdir())) == 1

    def test_preloaded_grid(self, config):
        grid = build_grid(config.grid.parameters)
        path = run_job(JobIndex(4), config, grid=grid)
        assert pd.read_csv(path)["N"].iloc[0] == 20
