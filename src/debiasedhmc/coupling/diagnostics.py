"""
Coupling Diagnostics.

Only the two quantities the coupling itself produces are reported:
- meeting times across replicates
- the distance between the chains, ||X_(t+1) - Y_t||, over iterations

Plus a summary of replicate estimates (mean and standard error).
"""

import math
from typing import Dict, Any, Optional

import numpy as np

import logging
logger = logging.getLogger('debiasedhmc')


def distance_to_meeting(c_chain) -> np.ndarray:
    """
    Euclidean distance between the staggered chains at each recorded step.

    Returns:
        (iteration,) array; entry t is ||X_(t+1) - Y_t||. Zero from
        meeting_time - 1 onward.
    """
    nsteps = c_chain.samples1.shape[0] - 1
    diff = c_chain.samples1[1:nsteps + 1] - c_chain.samples2[:nsteps]
    return np.sqrt(np.sum(diff ** 2, axis=1))


def padded_distances(runs, length: int) -> np.ndarray:
    """
    Stack distance sequences of several runs, zero-padded to a common length.

    Runs stop once they meet, and the distance after meeting is zero, so
    padding with zeros gives the distance at every iteration up to `length`.
    Longer sequences are truncated.

    Returns:
        (n_runs, length) array
    """
    out = np.zeros((len(runs), length), dtype=np.float64)
    for i, run in enumerate(runs):
        ds = distance_to_meeting(run)[:length]
        out[i, :ds.shape[0]] = ds
    return out


def meeting_times(runs) -> np.ndarray:
    """Meeting time of each run as floats (inf where the chains did not meet)."""
    return np.array([float(run.meeting_time) for run in runs], dtype=np.float64)


def summarize_estimates(estimates) -> Dict[str, Any]:
    """
    Mean and standard error of independent replicate estimates.

    Args:
        estimates: (n_replicates, m) array, or (n_replicates,) for scalar estimates

    Returns:
        Dict with 'mean' (m,), 'std_error' (m,) and 'count'
    """
    estimates = np.asarray(estimates, dtype=np.float64)
    if estimates.size == 0:
        raise ValueError("No estimates to summarize")
    if estimates.ndim == 1:
        estimates = estimates[:, None]
    n = estimates.shape[0]
    mean = np.mean(estimates, axis=0)
    if n > 1:
        std_error = np.std(estimates, axis=0, ddof=1) / np.sqrt(n)
    else:
        std_error = np.full_like(mean, np.nan)
    return {'mean': mean, 'std_error': std_error, 'count': n}


def log_coupling_summary(runs, summary: Optional[Dict[str, Any]] = None) -> None:
    """Log meeting time statistics and, if given, the estimate summary."""
    taus = meeting_times(runs)
    met = taus[np.isfinite(taus)]
    logger.info(f"Coupled runs: {len(runs)} ({met.size} met)")
    if met.size > 0:
        logger.info(
            f"  Meeting time: mean={np.mean(met):.1f}, median={np.median(met):.0f}, "
            f"max={int(np.max(met))}"
        )
    if summary is not None:
        for j, (m, se) in enumerate(zip(summary['mean'], summary['std_error'])):
            se_str = "nan" if math.isnan(se) else f"{se:.4f}"
            logger.info(f"  Estimate[{j}]: {m:.4f} (s.e. {se_str})")
