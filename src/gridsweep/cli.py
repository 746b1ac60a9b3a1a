"""Command-line interface for grid sweeps.

Usage:
    python -m gridsweep build-grid --config sweep.json
    python -m gridsweep run 7 --config sweep.json
    python -m gridsweep run --config sweep.json        # index from SLURM_ARRAY_TASK_ID
    python -m gridsweep aggregate --config sweep.json
    python -m gridsweep summarize --config sweep.json --chart
    python -m gridsweep array-script --config sweep.json --output-dir slurm/

Every command exits 0 on success and 1 on any fatal error, after logging a
human-readable message.
"""

import argparse
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from gridsweep.analysis.charts import SummaryChartGenerator
from gridsweep.analysis.summary import summarize_results, write_summary
from gridsweep.config import Config, load_config
from gridsweep.constants import ARRAY_TASK_ENV_VAR
from gridsweep.data.abstractions import JobIndex
from gridsweep.data.grid_io import build_grid, load_grid, save_grid
from gridsweep.data.result_io import aggregate_results, read_result
from gridsweep.errors import SweepError
from gridsweep.simulation.array_script import write_array_scripts
from gridsweep.simulation.runner import run_job

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    """Configure root logging for command-line use."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s | %(levelname)s | %(message)s',
        datefmt='%H:%M:%S'
    )
    logging.getLogger().setLevel(logging.DEBUG if verbose else logging.INFO)


# =============================================================================
# Commands
# =============================================================================

def cmd_build_grid(args: argparse.Namespace, config: Config) -> int:
    grid_path = args.output or config.grid.grid_path
    table = build_grid(config.grid.parameters)
    save_grid(table, grid_path, config.grid.parameters)
    print(f"Wrote {grid_path} with {table.row_count} combinations")
    return 0


def cmd_run(args: argparse.Namespace, config: Config) -> int:
    if args.job_index is None:
        job_index = JobIndex.from_environment()
    else:
        job_index = JobIndex.from_string(args.job_index)

    if args.grid:
        config = replace(config, grid=replace(config.grid, grid_path=args.grid))
    if args.results_dir:
        config = replace(config, output=replace(config.output, results_dir=args.results_dir))
    if args.seed is not None:
        config = replace(config, sampling=replace(config.sampling, seed=args.seed))

    run_job(job_index, config)
    return 0


def cmd_aggregate(args: argparse.Namespace, config: Config) -> int:
    output = config.output
    combined = aggregate_results(
        args.results_dir or output.results_dir,
        args.output or output.aggregate_path,
        pattern=args.pattern or output.result_pattern,
        prefix=output.result_prefix,
    )
    print(f"Wrote {args.output or output.aggregate_path} with {len(combined)} rows")
    return 0


def cmd_summarize(args: argparse.Namespace, config: Config) -> int:
    output = config.output
    results = read_result(args.input or output.aggregate_path)
    summary = summarize_results(results, config)
    summary_path = write_summary(summary, args.output or output.summary_path)
    print(f"Wrote {summary_path} with {len(summary)} rows")

    if args.chart:
        chart_path = args.chart_path or output.chart_path
        if SummaryChartGenerator(summary).generate_to_file(chart_path):
            print(f"Wrote {chart_path}")
        else:
            logger.warning(f"Chart not written: {chart_path}")
    return 0


def cmd_array_script(args: argparse.Namespace, config: Config) -> int:
    grid = load_grid(args.grid or config.grid.grid_path)
    array_path, aggregate_path = write_array_scripts(
        grid.row_count,
        args.output_dir,
        config,
        config_path=args.config,
    )
    print(f"Wrote {array_path} and {aggregate_path}")
    print(f"Submit with: jid=$(sbatch --parsable {array_path}) && "
          f"sbatch --dependency=afterok:$jid {aggregate_path}")
    return 0


# =============================================================================
# Parser
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per stage."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        help="JSON sweep configuration (default: built-in defaults)",
    )
    common.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    parser = argparse.ArgumentParser(
        prog="gridsweep",
        description="Parameter grid sweeps run as batch-array jobs",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser(
        "build-grid", parents=[common],
        help="Build and persist the parameter grid",
    )
    build.add_argument("--output", help="Grid CSV path (default: from config)")
    build.set_defaults(handler=cmd_build_grid)

    run = subparsers.add_parser(
        "run", parents=[common],
        help="Run the simulation for one grid row",
    )
    run.add_argument(
        "job_index",
        nargs="?",
        help=f"1-based grid row index (default: ${ARRAY_TASK_ENV_VAR})",
    )
    run.add_argument("--grid", help="Grid CSV path (default: from config)")
    run.add_argument("--results-dir", help="Directory for result files (default: from config)")
    run.add_argument("--seed", type=int, help="Base random seed (default: from config)")
    run.set_defaults(handler=cmd_run)

    aggregate = subparsers.add_parser(
        "aggregate", parents=[common],
        help="Concatenate per-job result files",
    )
    aggregate.add_argument("--results-dir", help="Directory of result files (default: from config)")
    aggregate.add_argument("--pattern", help="Glob for result files (default: '<prefix>*.csv')")
    aggregate.add_argument("--output", help="Combined CSV path (default: from config)")
    aggregate.set_defaults(handler=cmd_aggregate)

    summarize = subparsers.add_parser(
        "summarize", parents=[common],
        help="Compare observed and expected statistics per job",
    )
    summarize.add_argument("--input", help="Aggregated CSV (default: from config)")
    summarize.add_argument("--output", help="Summary CSV path (default: from config)")
    summarize.add_argument("--chart", action="store_true", help="Also write a PNG chart")
    summarize.add_argument("--chart-path", help="Chart path (default: from config)")
    summarize.set_defaults(handler=cmd_summarize)

    array = subparsers.add_parser(
        "array-script", parents=[common],
        help="Write SLURM job-array scripts sized to the grid",
    )
    array.add_argument("--grid", help="Grid CSV path (default: from config)")
    array.add_argument("--output-dir", default=".", help="Directory for the scripts")
    array.set_defaults(handler=cmd_array_script)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments and run the selected command.

    Returns:
        Process exit status
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        logger.error(f"Could not load config {args.config}: {e}")
        return 1

    try:
        return args.handler(args, config)
    except (SweepError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
