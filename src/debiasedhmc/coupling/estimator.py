"""
Unbiased estimators from coupled chains.

For burn-in k and horizon K (0 <= k <= K) the estimator of E_pi[h(X)] is

    H_{k:K} = 1/(K-k+1) * sum_{t=k}^{K} h(X_t)
              + sum_{t=k+1}^{tau-1} min(1, (t-k)/(K-k+1)) * (h(X_t) - h(Y_{t-1}))

where tau is the meeting time. The first term is the usual MCMC average over
[k, K]; the second term corrects its bias using the pre-meeting difference
between the two chains. As k grows the probability that tau <= k + 1 goes
to one and the estimator reduces to the plain average.
"""

import numpy as np


def identity(x):
    return x


def _h_vector(h, state) -> np.ndarray:
    return np.atleast_1d(np.asarray(h(state), dtype=np.float64))


def h_bar(c_chain, h=identity, k=0, K=1):
    """
    Unbiased estimator of E_pi[h(X)] from one coupled run.

    Args:
        c_chain: CoupledRunResult (from coupled_chains, possibly continued)
        h: Test function; maps a state to a scalar or a vector of fixed length m
        k: Burn-in, 0 <= k <= K
        K: Horizon, K <= c_chain.iteration

    Returns:
        (m,) array

    Raises:
        ValueError: If k or K are out of range for this run
    """
    maxiter = c_chain.iteration
    if k < 0:
        raise ValueError(f"k must be >= 0, got {k}")
    if k > K:
        raise ValueError(f"k ({k}) must be <= K ({K})")
    if k > maxiter:
        raise ValueError(f"k ({k}) has to be less than the horizon of the coupled chains ({maxiter})")
    if K > maxiter:
        raise ValueError(
            f"K ({K}) has to be less than the horizon of the coupled chains ({maxiter}); "
            f"use continue_coupled_chains to extend the run"
        )

    samples1 = c_chain.samples1
    samples2 = c_chain.samples2

    h_of_chain = np.stack([_h_vector(h, samples1[t]) for t in range(k, K + 1)])
    estimate = np.sum(h_of_chain, axis=0)

    if c_chain.meeting_time > k + 1:
        deltas_term = np.zeros_like(estimate)
        last = int(min(maxiter - 1, c_chain.meeting_time - 1))
        for t in range(k, last + 1):
            coefficient = min(t - k + 1, K - k + 1)
            delta_tp1 = _h_vector(h, samples1[t + 1]) - _h_vector(h, samples2[t])
            deltas_term = deltas_term + coefficient * delta_tp1
        estimate = estimate + deltas_term

    return estimate / (K - k + 1)
