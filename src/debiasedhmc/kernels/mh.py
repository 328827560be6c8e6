"""
Random Walk Metropolis-Hastings Kernels

Isotropic Gaussian random walk: x' ~ N(x, sigma^2 I), symmetric, so the
acceptance ratio is just log pi(x') - log pi(x).

The coupled kernel draws the two proposals from a maximal coupling of
N(x, sigma^2 I) and N(y, sigma^2 I): the proposals are identical with the
largest probability allowed by the two marginals. With a shared uniform for
the accept step, two identical proposals that are both accepted put the
chains on exactly the same state.

sigma should be small relative to the target scale: the probability that the
maximal coupling returns identical proposals decays with |x - y| / sigma, so
this kernel is used to finish off chains that HMC has already brought close.
"""

import jax
import jax.numpy as jnp
import jax.random as random
from jax import lax

from .common import make_kernel_pair, log_uniform, standard_normal


def _isotropic_logpdf(x, mean, sigma):
    # Normalising constants cancel in every ratio used below
    return -0.5 * jnp.sum(((x - mean) / sigma) ** 2)


def gaussian_max_coupling(key, mu1, mu2, sigma):
    """
    Sample (x, y) from a maximal coupling of N(mu1, sigma^2 I) and N(mu2, sigma^2 I).

    Rejection sampler of Thorisson: draw x from the first marginal and keep
    y = x when a uniform falls under the density ratio; otherwise draw y from
    the residual of the second marginal by rejection.

    When mu1 == mu2 the first test always succeeds and x == y.

    Args:
        key: JAX random key
        mu1, mu2: Means of the two marginals
        sigma: Common standard deviation

    Returns:
        (x, y): Coupled draws
    """
    key_x, key_u, key_loop = random.split(key, 3)
    x = mu1 + sigma * random.normal(key_x, shape=mu1.shape)
    same = log_uniform(key_u) + _isotropic_logpdf(x, mu1, sigma) <= _isotropic_logpdf(x, mu2, sigma)

    def cond_fn(carry):
        _, _, done = carry
        return jnp.logical_not(done)

    def body_fn(carry):
        loop_key, _, _ = carry
        loop_key, key_y, key_uy = random.split(loop_key, 3)
        y = mu2 + sigma * random.normal(key_y, shape=mu2.shape)
        done = log_uniform(key_uy) + _isotropic_logpdf(y, mu2, sigma) > _isotropic_logpdf(y, mu1, sigma)
        return loop_key, y, done

    _, y, _ = lax.while_loop(cond_fn, body_fn, (key_loop, x, same))
    return x, y


def get_mh_kernel(logtarget, sigma, dimension):
    """
    Random walk MH kernel pair with maximally coupled proposals.

    Args:
        logtarget: fn(x) -> log pi(x) up to a constant
        sigma: Proposal standard deviation (> 0)
        dimension: State dimension

    Returns:
        KernelPair of jit-compiled (single_kernel, coupled_kernel)
    """
    if sigma <= 0:
        raise ValueError(f"sigma must be > 0, got {sigma}")

    def kernel(key, chain_state, iteration):
        del iteration
        key_x, key_u = random.split(key)
        proposal = chain_state + sigma * standard_normal(key_x, dimension)
        log_ratio = logtarget(proposal) - logtarget(chain_state)
        accept = log_uniform(key_u) < log_ratio
        return jnp.where(accept, proposal, chain_state)

    def coupled_kernel(key, chain_state1, chain_state2, iteration):
        del iteration
        key_x, key_u = random.split(key)
        proposal1, proposal2 = gaussian_max_coupling(key_x, chain_state1, chain_state2, sigma)
        logu = log_uniform(key_u)
        accept1 = logu < logtarget(proposal1) - logtarget(chain_state1)
        accept2 = logu < logtarget(proposal2) - logtarget(chain_state2)
        new_state1 = jnp.where(accept1, proposal1, chain_state1)
        new_state2 = jnp.where(accept2, proposal2, chain_state2)
        return new_state1, new_state2

    return make_kernel_pair(jax.jit(kernel), jax.jit(coupled_kernel))
