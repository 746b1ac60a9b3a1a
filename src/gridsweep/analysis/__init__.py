"""Analysis and visualization of aggregated results."""

from gridsweep.analysis.summary import summarize_results, write_summary, to_long
from gridsweep.analysis.charts import SummaryChartGenerator

__all__ = [
    'summarize_results',
    'write_summary',
    'to_long',
    'SummaryChartGenerator',
]
