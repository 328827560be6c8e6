"""
Common pieces shared by the transition kernel implementations.

Every kernel pair in this package follows the same calling convention:

    single_kernel(key, chain_state, iteration) -> chain_state
    coupled_kernel(key, chain_state1, chain_state2, iteration) -> (chain_state1, chain_state2)

The key is an explicit JAX PRNG key. A coupled kernel draws each random
input exactly once from its key and feeds it to both chains, which is what
lets the two chains land on the same state.

Functions:
    KernelPair: Named (single_kernel, coupled_kernel) tuple
    make_kernel_pair: Validate two callables and bundle them
    log_uniform: Shared log-uniform draw used for accept/reject decisions
    standard_normal: Standard normal draw shaped like a state
"""

from collections import namedtuple

import jax.numpy as jnp
import jax.random as random


KernelPair = namedtuple('KernelPair', ['single_kernel', 'coupled_kernel'])


def make_kernel_pair(single_kernel, coupled_kernel):
    """
    Bundle a single-chain and a coupled-chain transition into a KernelPair.

    Args:
        single_kernel: fn(key, state, iteration) -> state
        coupled_kernel: fn(key, state1, state2, iteration) -> (state1, state2)

    Returns:
        KernelPair

    Raises:
        TypeError: If either argument is not callable
    """
    if not callable(single_kernel):
        raise TypeError(f"single_kernel must be callable, got {type(single_kernel).__name__}")
    if not callable(coupled_kernel):
        raise TypeError(f"coupled_kernel must be callable, got {type(coupled_kernel).__name__}")
    return KernelPair(single_kernel, coupled_kernel)


def log_uniform(key):
    """Log of a Uniform(0, 1) draw."""
    return jnp.log(random.uniform(key))


def standard_normal(key, dimension):
    """N(0, I) draw of length `dimension`."""
    return random.normal(key, shape=(dimension,))
