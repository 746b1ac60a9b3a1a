"""SLURM job-array submission scripts sized to a grid.

Renders two scripts:
    run_array.slurm    # --array=1-<rows>, one task per grid row
    aggregate.slurm    # concatenates results once every task has finished

The scripts are only written, never submitted. Submit them with the
aggregation job depending on the array job:

    jid=$(sbatch --parsable run_array.slurm)
    sbatch --dependency=afterok:$jid aggregate.slurm
"""

import logging
import os
import shlex
from pathlib import Path
from typing import Optional, Tuple, Union

from gridsweep.config import ArrayConfig, Config
from gridsweep.constants import ARRAY_TASK_ENV_VAR

logger = logging.getLogger(__name__)

ARRAY_SCRIPT_NAME = "run_array.slurm"
AGGREGATE_SCRIPT_NAME = "aggregate.slurm"


def _sbatch_header(array: ArrayConfig, job_name: str, log_pattern: str) -> str:
    lines = [
        "#!/bin/bash",
        f"#SBATCH --job-name={job_name}",
        f"#SBATCH --time={array.time}",
        "#SBATCH --ntasks=1",
        f"#SBATCH --cpus-per-task={array.cpus_per_task}",
        f"#SBATCH --mem={array.mem}",
        f"#SBATCH --output={array.log_dir}/{log_pattern}.out",
        f"#SBATCH --error={array.log_dir}/{log_pattern}.err",
    ]
    if array.partition:
        lines.append(f"#SBATCH --partition={array.partition}")
    return "\n".join(lines)


def _command(array: ArrayConfig, subcommand: str, config_path: Optional[str]) -> str:
    parts = [shlex.quote(array.python), "-m", "gridsweep", subcommand]
    if config_path:
        parts += ["--config", shlex.quote(str(config_path))]
    return " ".join(parts)


def render_array_script(
    row_count: int,
    config: Optional[Config] = None,
    config_path: Optional[str] = None,
) -> str:
    """Render the job-array script running one task per grid row.

    Args:
        row_count: Number of grid rows (= number of array tasks)
        config: Sweep configuration (default: Config())
        config_path: Config file passed through to each task

    Returns:
        Script text

    Raises:
        ValueError: If row_count < 1
    """
    if row_count < 1:
        raise ValueError(f"Cannot submit an array for a grid with {row_count} rows")

    config = config or Config()
    array = config.array

    array_range = f"1-{row_count}"
    if array.max_concurrent is not None:
        array_range += f"%{array.max_concurrent}"

    header = _sbatch_header(array, array.job_name, "%x.%A_%a")
    command = _command(array, "run", config_path)

    return f"""{header}
#SBATCH --array={array_range}

set -euo pipefail
export OMP_NUM_THREADS=1
export OPENBLAS_NUM_THREADS=1
export MKL_NUM_THREADS=1

mkdir -p {shlex.quote(array.log_dir)} {shlex.quote(config.output.results_dir)}

# Each task writes only {config.output.result_prefix}${{{ARRAY_TASK_ENV_VAR}}}.csv
{command} "${{{ARRAY_TASK_ENV_VAR}}}"
"""


def render_aggregate_script(
    config: Optional[Config] = None,
    config_path: Optional[str] = None,
) -> str:
    """Render the script that aggregates results after the array finishes.

    Args:
        config: Sweep configuration (default: Config())
        config_path: Config file passed through to the aggregate command

    Returns:
        Script text
    """
    config = config or Config()
    array = config.array

    header = _sbatch_header(array, f"{array.job_name}-aggregate", "%x.%j")
    command = _command(array, "aggregate", config_path)

    return f"""{header}

# Submit with --dependency=afterok:<array job id> so this runs after every task.
set -euo pipefail

mkdir -p {shlex.quote(array.log_dir)}

{command}
"""


def write_array_scripts(
    row_count: int,
    output_dir: Union[str, Path],
    config: Optional[Config] = None,
    config_path: Optional[str] = None,
) -> Tuple[Path, Path]:
    """Write the array and aggregation scripts and create the log directory.

    SLURM opens the --output/--error files before the script body runs, so
    the log directory has to exist at submission time.

    Args:
        row_count: Number of grid rows
        output_dir: Directory receiving both scripts
        config: Sweep configuration (default: Config())
        config_path: Config file passed through to the commands

    Returns:
        (array script path, aggregate script path)
    """
    config = config or Config()
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    array_path = output_dir / ARRAY_SCRIPT_NAME
    aggregate_path = output_dir / AGGREGATE_SCRIPT_NAME

    array_path.write_text(render_array_script(row_count, config, config_path), encoding="utf-8")
    aggregate_path.write_text(render_aggregate_script(config, config_path), encoding="utf-8")
    for path in (array_path, aggregate_path):
        os.chmod(path, 0o755)
    Path(config.array.log_dir).mkdir(parents=True, exist_ok=True)

    logger.info(f"Wrote {array_path} ({row_count} tasks) and {aggregate_path}")
    return array_path, aggregate_path
