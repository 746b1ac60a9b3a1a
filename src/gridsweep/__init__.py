"""Parameter grid sweeps run as batch-array jobs.

Three file-separated stages:
- Grid builder: Cartesian product of candidate values, persisted to CSV
- Per-row runner: one binomial simulation per grid row, one result file per job
- Aggregator: concatenates every per-job result file into one table
"""

__version__ = "0.1.0"
