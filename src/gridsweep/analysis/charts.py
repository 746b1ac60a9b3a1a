"""Summary charts for aggregated sweep results.

Single Responsibility: Transform a summary table into a chart image.
"""

from typing import Optional
import logging

import matplotlib
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from gridsweep.constants import JOB_INDEX_COLUMN

logger = logging.getLogger(__name__)


class SummaryChartGenerator:
    """Generates observed-vs-expected charts from a results summary.

    Does NOT compute statistics - receives the output of summarize_results().

    Args:
        summary: Summary DataFrame (one row per job)
    """

    def __init__(self, summary: pd.DataFrame) -> None:
        self.summary = summary

    def generate_to_file(self, file_path: str) -> bool:
        """Render the chart to an image file without a GUI.

        Args:
            file_path: Path to save the chart image

        Returns:
            True if successful, False otherwise
        """
        original_backend = matplotlib.get_backend()

        try:
            plt.switch_backend('Agg')

            fig = self._create_figure()
            if fig is None:
                return False

            fig.savefig(file_path, dpi=150, bbox_inches='tight')
            plt.close(fig)
            return True

        except Exception as e:
            logger.warning(f"Failed to generate chart to file: {e}")
            return False
        finally:
            try:
                plt.switch_backend(original_backend)
            except (ImportError, RuntimeError):
                pass  # Original backend may be interactive and unavailable

    def _create_figure(self) -> Optional[plt.Figure]:
        """Build the two-panel figure, or None if there is nothing to plot."""
        if self.summary.empty:
            logger.warning("Summary is empty, no chart generated")
            return None

        fig, (ax_mean, ax_var) = plt.subplots(1, 2, figsize=(12, 5))
        self._plot_means(ax_mean)
        self._plot_variances(ax_var)
        fig.suptitle("Binomial sweep: observed vs expected", fontsize=14)
        fig.tight_layout()
        return fig

    def _plot_means(self, ax: plt.Axes) -> None:
        expected = self.summary["expected_mean"].to_numpy(dtype=float)
        observed = self.summary["observed_mean"].to_numpy(dtype=float)

        ax.scatter(expected, observed, color='#3498db', alpha=0.8, label='Jobs')
        upper = float(np.nanmax(np.concatenate([expected, observed])))
        ax.plot([0, upper], [0, upper], color='#e74c3c', linestyle='--', label='Observed = expected')
        ax.set_xlabel("Expected mean (N·p)")
        ax.set_ylabel("Observed mean")
        ax.set_title("Sample mean")
        ax.legend(loc='upper left')
        ax.grid(True, alpha=0.3)

    def _plot_variances(self, ax: plt.Axes) -> None:
        jobs = self.summary[JOB_INDEX_COLUMN].astype(str)
        positions = np.arange(len(jobs))
        width = 0.4

        ax.bar(positions - width / 2, self.summary["expected_variance"], width,
               color='#95a5a6', label='Expected N·p·(1-p)')
        ax.bar(positions + width / 2, self.summary["observed_variance"], width,
               color='#2ecc71', label='Observed')
        ax.set_xticks(positions)
        ax.set_xticklabels(jobs, rotation=90 if len(jobs) > 20 else 0)
        ax.set_xlabel("Job index")
        ax.set_ylabel("Variance")
        ax.set_title("Sample variance")
        ax.legend(loc='upper right')
        ax.grid(True, axis='y', alpha=0.3)
