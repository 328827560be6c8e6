"""
Coupled MCMC Chains.

- coupled_chains: Run two coupled chains until they meet and a minimum horizon is reached
- continue_coupled_chains: Extend a met pair of chains with the single-chain kernel

Both chains follow `single_kernel` marginally and `coupled_kernel` jointly.
Chain 1 is advanced alone once before the coupled loop, so the chains meet
with a delay of one: X_tau == Y_(tau-1).

Random numbers come from an explicit JAX key. The key used at iteration t is
fold_in(step_key, t), so the stream at a given iteration does not depend on
how long the run is allowed to go.
"""

import math

import jax.random as random
import numpy as np

from .types import CoupledRunResult, TrajectoryBuffer

import logging
logger = logging.getLogger('debiasedhmc')

__all__ = [
    'coupled_chains',
    'continue_coupled_chains',
]


def _as_state(state) -> np.ndarray:
    return np.atleast_1d(np.asarray(state))


def _states_equal(state1, state2) -> bool:
    # Exact equality: any floating point difference means no meeting
    return bool(np.array_equal(np.asarray(state1), np.asarray(state2)))


def coupled_chains(kernels, rinit, key, min_horizon=1, max_iterations=math.inf, preallocate=10):
    """
    Sample two coupled chains until max(meeting_time, min_horizon) or max_iterations.

    Args:
        kernels: KernelPair (single_kernel, coupled_kernel)
            single_kernel(key, state, iteration) -> state
            coupled_kernel(key, state1, state2, iteration) -> (state1, state2)
        rinit: fn(key) -> initial state; called once per chain with independent keys
        key: JAX PRNG key for this run
        min_horizon: Minimum number of iterations (the run stops at
            max(meeting_time, min_horizon))
        max_iterations: Hard stop. Should be finite in production: a pair
            that never meets otherwise runs forever.
        preallocate: Extra rows reserved up front beyond min_horizon

    Returns:
        CoupledRunResult. finished is False if max_iterations was hit first;
        meeting_time is math.inf if the chains never met.
    """
    single_kernel, coupled_kernel = kernels
    init_key1, init_key2, step_key = random.split(key, 3)

    chain_state1 = rinit(init_key1)
    chain_state2 = rinit(init_key2)
    dimension = _as_state(chain_state1).shape[0]

    samples1 = TrajectoryBuffer(min_horizon + preallocate + 1, dimension)
    samples2 = TrajectoryBuffer(min_horizon + preallocate, dimension)
    samples1.append(_as_state(chain_state1))
    samples2.append(_as_state(chain_state2))

    # Chain 1 moves alone first: from here on it is one step ahead of chain 2
    iteration = 1
    chain_state1 = single_kernel(random.fold_in(step_key, iteration), chain_state1, iteration)
    samples1.append(_as_state(chain_state1))

    meet = False
    finished = False
    meeting_time = math.inf
    while not finished and iteration < max_iterations:
        iteration += 1
        step = random.fold_in(step_key, iteration)
        if meet:
            chain_state1 = single_kernel(step, chain_state1, iteration)
            chain_state2 = chain_state1
        else:
            chain_state1, chain_state2 = coupled_kernel(step, chain_state1, chain_state2, iteration)
            if _states_equal(chain_state1, chain_state2):
                meet = True
                meeting_time = iteration
                logger.debug(f"Chains met at iteration {iteration}")

        if len(samples1) + 1 > samples1.capacity:
            new_rows = samples2.capacity
            samples1.grow(new_rows)
            samples2.grow(new_rows)
        samples1.append(_as_state(chain_state1))
        samples2.append(_as_state(chain_state2))

        if iteration >= max(meeting_time, min_horizon):
            finished = True

    if not finished:
        logger.warning(
            f"Coupled chains stopped at max_iterations={iteration} before "
            f"max(meeting_time, min_horizon) was reached (meeting_time={meeting_time})"
        )

    return CoupledRunResult(
        samples1=samples1.trimmed(),
        samples2=samples2.trimmed(),
        meeting_time=meeting_time,
        iteration=iteration,
        finished=finished,
    )


def continue_coupled_chains(c_chain, single_kernel, key, K=1):
    """
    Continue met coupled chains up to iteration K using only the single kernel.

    PRECONDITION: the chains must already have met. After meeting both
    chains are the same chain, so one state is simulated and written to both
    trajectories. Extending an unmet pair this way would erase the difference
    between the chains that the bias correction depends on.

    Args:
        c_chain: CoupledRunResult from coupled_chains
        single_kernel: fn(key, state, iteration) -> state
        key: JAX PRNG key; iteration t uses fold_in(key, t)
        K: Target number of iterations

    Returns:
        c_chain itself if K <= c_chain.iteration, otherwise a new
        CoupledRunResult with iteration == K and finished=True

    Raises:
        ValueError: If the chains have not met
    """
    if K <= c_chain.iteration:
        return c_chain

    if c_chain.meeting_time > c_chain.iteration:
        raise ValueError(
            f"Cannot continue coupled chains that have not met "
            f"(meeting_time={c_chain.meeting_time}, iteration={c_chain.iteration}). "
            f"Run coupled_chains with a larger max_iterations instead."
        )

    niterations = K - c_chain.iteration
    samples1 = TrajectoryBuffer.from_array(c_chain.samples1, extra=niterations)
    samples2 = TrajectoryBuffer.from_array(c_chain.samples2, extra=niterations)

    chain_state = c_chain.samples1[-1]
    for iteration in range(c_chain.iteration + 1, K + 1):
        chain_state = single_kernel(random.fold_in(key, iteration), chain_state, iteration)
        samples1.append(_as_state(chain_state))
        samples2.append(_as_state(chain_state))

    logger.debug(f"Continued coupled chains from iteration {c_chain.iteration} to {K}")

    return CoupledRunResult(
        samples1=samples1.trimmed(),
        samples2=samples2.trimmed(),
        meeting_time=c_chain.meeting_time,
        iteration=K,
        # Met and extended to K: a run cut short by max_iterations is now complete
        finished=True,
    )
