"""
Pytest configuration and shared fixtures for debiasedhmc tests.
"""

import pytest
import numpy as np
import jax
import jax.numpy as jnp

from debiasedhmc.kernels import make_kernel_pair
from debiasedhmc.coupling import CoupledRunResult
from debiasedhmc.registry import register_target, _REGISTRY
from debiasedhmc import test_targets

# Exact-equality meeting tests and moment checks run in double precision
jax.config.update("jax_enable_x64", True)


@pytest.fixture
def rng_key():
    """Default JAX key for reproducible tests."""
    return jax.random.PRNGKey(42)


@pytest.fixture
def register_test_targets():
    """
    Fixture to register test targets and clean up after test.

    Usage:
        def test_something(register_test_targets):
            # Test targets are now registered
            ...
    """
    original_registrations = {}
    for name, config in test_targets.TEST_TARGETS.items():
        if name in _REGISTRY:
            original_registrations[name] = _REGISTRY.pop(name)
        register_target(name, config)

    yield

    for name in test_targets.TEST_TARGETS.keys():
        if name in original_registrations:
            _REGISTRY[name] = original_registrations[name]
        elif name in _REGISTRY:
            del _REGISTRY[name]


def sequence_rinit(values):
    """rinit that returns the given values in order, ignoring the key."""
    draws = iter(values)

    def rinit(key):
        return jnp.atleast_1d(jnp.asarray(next(draws), dtype=jnp.float64))

    return rinit


def gaussian_rinit(dimension, mean=0.0):
    def rinit(key):
        return mean + jax.random.normal(key, shape=(dimension,))
    return rinit


def constant_kernels(value=0.0):
    """Single kernel maps everything to `value`; coupled kernel to (value, value)."""
    def single(key, x, iteration):
        return jnp.full_like(x, value)

    def coupled(key, x, y, iteration):
        return jnp.full_like(x, value), jnp.full_like(y, value)

    return make_kernel_pair(single, coupled)


def contracting_kernels(rate=0.5, meet_below=None):
    """
    Deterministic contraction towards 0: x -> rate * x.

    The coupled kernel shrinks both chains; if meet_below is set, both are
    snapped to exactly 0 once |x - y| drops below it.
    """
    def single(key, x, iteration):
        return rate * x

    def coupled(key, x, y, iteration):
        x_new, y_new = rate * x, rate * y
        if meet_below is not None and float(jnp.max(jnp.abs(x_new - y_new))) < meet_below:
            return jnp.zeros_like(x_new), jnp.zeros_like(y_new)
        return x_new, y_new

    return make_kernel_pair(single, coupled)


def near_miss_kernels():
    """
    Coupled kernel that puts chain 2 one ulp away from chain 1, forever.
    """
    def single(key, x, iteration):
        return 0.5 * x

    def coupled(key, x, y, iteration):
        x_new = 0.5 * x
        return x_new, jnp.nextafter(x_new, jnp.inf)

    return make_kernel_pair(single, coupled)


def noisy_kernels(scale=1.0):
    """Random walk that never couples: independent noise per chain."""
    def single(key, x, iteration):
        return x + scale * jax.random.normal(key, shape=x.shape)

    def coupled(key, x, y, iteration):
        kx, ky = jax.random.split(key)
        return (x + scale * jax.random.normal(kx, shape=x.shape),
                y + scale * jax.random.normal(ky, shape=y.shape))

    return make_kernel_pair(single, coupled)


def make_run(samples1, samples2, meeting_time, finished=True):
    """Build a CoupledRunResult from hand-written trajectories."""
    samples1 = np.asarray(samples1, dtype=np.float64).reshape(len(samples1), -1)
    samples2 = np.asarray(samples2, dtype=np.float64).reshape(len(samples2), -1)
    return CoupledRunResult(
        samples1=samples1,
        samples2=samples2,
        meeting_time=meeting_time,
        iteration=samples1.shape[0] - 1,
        finished=finished,
    )


def reference_h_bar(samples1, samples2, meeting_time, h, k, K):
    """
    Textbook form of the estimator:

        1/(K-k+1) sum_{l=k}^{K} h(X_l)
        + sum_{t=k+1}^{tau-1} min(1, (t-k)/(K-k+1)) (h(X_t) - h(Y_(t-1)))

    Terms with t beyond the recorded trajectory are dropped.
    """
    n = K - k + 1
    total = sum(np.atleast_1d(h(samples1[l])) for l in range(k, K + 1)) / n
    last = min(meeting_time - 1, samples1.shape[0] - 1)
    for t in range(k + 1, int(last) + 1):
        weight = min(1.0, (t - k) / n)
        total = total + weight * (np.atleast_1d(h(samples1[t])) - np.atleast_1d(h(samples2[t - 1])))
    return total
