"""Tests for result summaries and summary charts."""

import pandas as pd
import pytest

from gridsweep.analysis.charts import SummaryChartGenerator
from gridsweep.analysis.summary import (
    SUMMARY_COLUMNS,
    summarize_results,
    to_long,
    write_summary,
)
from gridsweep.errors import SchemaMismatchError


@pytest.fixture
def wide_results():
    """Two jobs with three samples each, wide layout."""
    return pd.DataFrame({
        "job_index": [1, 2],
        "N": [10, 20],
        "p": [0.5, 0.1],
        "n": [3, 3],
        "sample_1": [4, 2],
        "sample_2": [5, 2],
        "sample_3": [6, 2],
    })


@pytest.fixture
def summary(wide_results):
    return summarize_results(wide_results)


class TestToLong:
    """Tests for layout conversion."""

    def test_wide_to_long(self, wide_results):
        long = to_long(wide_results)

        assert list(long.columns) == ["job_index", "N", "p", "n", "sample_number", "sample"]
        assert len(long) == 6
        assert list(long["job_index"]) == [1, 1, 1, 2, 2, 2]
        assert list(long["sample_number"]) == [1, 2, 3, 1, 2, 3]
        assert list(long["sample"]) == [4, 5, 6, 2, 2, 2]

    def test_sample_number_sorted_numerically(self):
        frame = pd.DataFrame({"job_index": [1], "sample_10": [10], "sample_2": [2], "sample_1": [1]})
        assert list(to_long(frame)["sample"]) == [1, 2, 10]

    def test_long_unchanged(self, wide_results):
        long = to_long(wide_results)
        assert to_long(long) is long

    def test_missing_job_index(self):
        with pytest.raises(SchemaMismatchError):
            to_long(pd.DataFrame({"N": [1], "sample_1": [0]}))


class TestSummarizeResults:
    """Tests for per-job statistics."""

    def test_columns(self, summary):
        assert list(summary.columns) == ["job_index", "N", "p", "n", *SUMMARY_COLUMNS]

    def test_observed_statistics(self, summary):
        first = summary.iloc[0]
        assert first["sample_count"] == 3
        assert first["observed_mean"] == pytest.approx(5.0)
        assert first["observed_variance"] == pytest.approx(1.0)
        assert first["observed_min"] == 4
        assert first["observed_max"] == 6

    def test_expected_statistics(self, summary):
        assert list(summary["expected_mean"]) == pytest.approx([5.0, 2.0])
        assert list(summary["expected_variance"]) == pytest.approx([2.5, 1.8])

    def test_constant_samples_zero_variance(self, summary):
        assert summary.iloc[1]["observed_variance"] == pytest.approx(0.0)

    def test_layouts_agree(self, wide_results, summary):
        from_long = summarize_results(to_long(wide_results))
        pd.testing.assert_frame_equal(from_long, summary)

    def test_missing_probability_column(self, wide_results):
        with pytest.raises(SchemaMismatchError, match="'p'"):
            summarize_results(wide_results.drop(columns=["p"]))

    def test_empty_results(self, wide_results):
        result = summarize_results(wide_results.iloc[0:0])
        assert result.empty
        assert list(result.columns) == ["job_index", "N", "p", "n", *SUMMARY_COLUMNS]

    def test_write_summary(self, summary, temp_dir):
        path = write_summary(summary, temp_dir / "out" / "summary.csv")
        loaded = pd.read_csv(path)
        assert len(loaded) == 2
        assert list(loaded["job_index"]) == [1, 2]


class TestSummaryChartGenerator:
    """Tests for chart generation."""

    def test_generate_to_file(self, summary, temp_dir):
        path = temp_dir / "summary.png"
        assert SummaryChartGenerator(summary).generate_to_file(str(path)) is True
        assert path.exists()
        assert path.stat().st_size > 0

    def test_empty_summary(self, summary, temp_dir):
        path = temp_dir / "summary.png"
        assert SummaryChartGenerator(summary.iloc[0:0]).generate_to_file(str(path)) is False
        assert not path.exists()

    def test_unwritable_path(self, summary, temp_dir):
        path = temp_dir / "missing" / "summary.png"
        assert SummaryChartGenerator(summary).generate_to_file(str(path)) is False

    def test_missing_column_returns_false(self, summary, temp_dir):
        path = temp_dir / "summary.png"
        broken = summary.drop(columns=["expected_mean"])
        assert SummaryChartGenerator(broken).generate_to_file(str(path)) is False
