"""Per-row simulation components."""

from gridsweep.simulation.binomial import (
    validate_binomial_parameters,
    draw_binomial_samples,
    make_rng,
)
from gridsweep.simulation.runner import simulate_row, run_job
from gridsweep.simulation.array_script import (
    render_array_script,
    render_aggregate_script,
    write_array_scripts,
)

__all__ = [
    'validate_binomial_parameters',
    'draw_binomial_samples',
    'make_rng',
    'simulate_row',
    'run_job',
    'render_array_script',
    'render_aggregate_script',
    'write_array_scripts',
]
