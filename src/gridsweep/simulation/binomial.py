"""Binomial sampling for a single grid row."""

import math
import numbers
from typing import Any, Optional, Sequence, Tuple, Union

import numpy as np

from gridsweep.errors import InvalidParameterError

# numpy draws counts as C int64
_MAX_COUNT = int(np.iinfo(np.int64).max)


def _as_count(name: str, value: Any) -> int:
    """Coerce a non-negative integer parameter, accepting integral floats (10.0)."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidParameterError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value) or value != int(value):
        raise InvalidParameterError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidParameterError(f"{name} must be non-negative, got {value!r}")
    if value > _MAX_COUNT:
        raise InvalidParameterError(f"{name} must be at most {_MAX_COUNT}, got {value!r}")
    return int(value)


def validate_binomial_parameters(
    trials: Any,
    probability: Any,
    size: Any,
) -> Tuple[int, float, int]:
    """Check Binomial(trials, probability) x size is well defined.

    Values outside their domain are rejected, never clamped.

    Args:
        trials: Number of Bernoulli trials per draw (N), integer >= 0
        probability: Success probability (p), in [0, 1]
        size: Number of independent draws (n), integer >= 0

    Returns:
        (trials, probability, size) as (int, float, int)

    Raises:
        InvalidParameterError: If any value is outside its domain
    """
    trials = _as_count("Trial count", trials)
    size = _as_count("Sample count", size)

    if isinstance(probability, bool) or not isinstance(probability, numbers.Real):
        raise InvalidParameterError(f"Probability must be a number, got {probability!r}")
    if not math.isfinite(probability) or not 0.0 <= probability <= 1.0:
        raise InvalidParameterError(f"Probability must lie in [0, 1], got {probability!r}")

    return trials, float(probability), size


def make_rng(seed: Optional[int], job_index: int) -> np.random.Generator:
    """Create the random generator for one job.

    With a seed, the stream is derived from (seed, job_index): reproducible,
    and independent between jobs. Without one, fresh OS entropy is used.

    Args:
        seed: Base seed shared by the whole sweep, or None
        job_index: 1-based index of the job

    Returns:
        numpy Generator
    """
    if seed is None:
        return np.random.default_rng()
    return np.random.default_rng([seed, job_index])


def draw_binomial_samples(
    trials: Union[int, float],
    probability: float,
    size: Union[int, float],
    rng: Optional[np.random.Generator] = None,
) -> Tuple[int, ...]:
    """Draw independent samples from Binomial(trials, probability).

    Args:
        trials: Number of trials per draw (N)
        probability: Success probability (p)
        size: Number of draws (n)
        rng: Random generator (default: fresh default_rng())

    Returns:
        Tuple of `size` success counts, each in [0, trials]

    Raises:
        InvalidParameterError: If the parameters are invalid
    """
    trials, probability, size = validate_binomial_parameters(trials, probability, size)
    rng = rng if rng is not None else np.random.default_rng()

    samples: Sequence[int] = rng.binomial(trials, probability, size=size)
    return tuple(int(s) for s in samples)
