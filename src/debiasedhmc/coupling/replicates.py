"""
Independent replicates of coupled runs.

Replicates share only the kernel pair; each gets its own key split from the
master key. The loop is sequential; runs are independent so callers may
distribute them however they like.
"""

import math

import jax.random as random
import numpy as np

from .chains import coupled_chains, continue_coupled_chains
from .estimator import h_bar, identity

import logging
logger = logging.getLogger('debiasedhmc')


def run_replicates(kernels, rinit, key, num_replicates, min_horizon=1,
                   max_iterations=math.inf, preallocate=10):
    """
    Run `num_replicates` independent coupled runs.

    Returns:
        List of CoupledRunResult, in key order
    """
    if num_replicates < 1:
        raise ValueError(f"num_replicates must be >= 1, got {num_replicates}")
    keys = random.split(key, num_replicates)
    runs = []
    for irep in range(num_replicates):
        run = coupled_chains(
            kernels, rinit, keys[irep],
            min_horizon=min_horizon,
            max_iterations=max_iterations,
            preallocate=preallocate,
        )
        logger.debug(f"Replicate {irep}: meeting_time={run.meeting_time}, iterations={run.iteration}")
        runs.append(run)
    return runs


def estimate_replicates(runs, h=identity, k=0, K=1, single_kernel=None, key=None):
    """
    Unbiased estimate from each run whose chains met.

    Runs shorter than K are continued up to K with `single_kernel` (required
    in that case). This includes runs that met but hit max_iterations before
    min_horizon. Runs whose chains never met are skipped with a warning: the
    bias correction needs the meeting time, so no valid estimate exists.

    Args:
        runs: List of CoupledRunResult
        h: Test function
        k, K: Burn-in and horizon
        single_kernel: Single-chain kernel for continuation
        key: JAX key for continuation (one subkey per run)

    Returns:
        estimates: (n_met, m) array
        used_runs: List of the (possibly continued) runs behind each row
    """
    if key is not None:
        keys = random.split(key, len(runs))
    estimates = []
    used_runs = []
    skipped = 0
    for irep, run in enumerate(runs):
        if not run.met:
            skipped += 1
            continue
        if run.iteration < K:
            if single_kernel is None or key is None:
                raise ValueError(
                    f"Run {irep} has {run.iteration} iterations but K={K}; "
                    f"single_kernel and key are required to continue it"
                )
            run = continue_coupled_chains(run, single_kernel, keys[irep], K=K)
        estimates.append(h_bar(run, h=h, k=k, K=K))
        used_runs.append(run)

    if skipped:
        logger.warning(f"Skipped {skipped} unmet run(s) out of {len(runs)}")
    if not estimates:
        raise ValueError("No runs met to estimate from; increase max_iterations")

    return np.stack(estimates), used_runs
