"""
Hamiltonian Monte Carlo Kernels

Leapfrog-based HMC with an identity mass matrix. The coupled version uses
common random numbers: one momentum draw and one uniform draw per step,
shared by both chains.

One step from x:
    v ~ N(0, I)
    (x', v') = leapfrog(x, v)
    accept x' if log U < log pi(x') - log pi(x) + |v|^2/2 - |v'|^2/2

CRN coupling makes the chains contract toward each other on targets where the
leapfrog flow is contractive, but two continuous HMC proposals coincide with
probability zero. To get exact meetings combine this kernel with the
maximally coupled random-walk kernel (see mixture.py).
"""

import jax
import jax.numpy as jnp
import jax.random as random

from .common import make_kernel_pair, log_uniform, standard_normal


def make_leapfrog(gradlogtarget, stepsize, nsteps):
    """
    Build a leapfrog integrator for fixed step size and number of steps.

    Uses the convention where gradlogtarget is the gradient of log pi, i.e.
    the force is +grad log pi (the potential is -log pi).

    Args:
        gradlogtarget: fn(x) -> gradient of log target at x
        stepsize: Integration step size
        nsteps: Number of position updates per trajectory

    Returns:
        leapfrog: fn(x, v) -> (x_final, v_final)
    """
    nsteps = int(nsteps)
    if nsteps < 1:
        raise ValueError(f"nsteps must be >= 1, got {nsteps}")

    def leapfrog(x, v):
        v = v + stepsize * gradlogtarget(x) / 2.0
        for step in range(1, nsteps + 1):
            x = x + stepsize * v
            if step != nsteps:
                v = v + stepsize * gradlogtarget(x)
        v = v + stepsize * gradlogtarget(x) / 2.0
        return x, v

    return leapfrog


def _log_accept_ratio(logtarget, x, v, proposed_x, proposed_v):
    # Extended target includes the kinetic energy term
    log_ratio = logtarget(proposed_x) - logtarget(x)
    return log_ratio + jnp.sum(v ** 2) / 2.0 - jnp.sum(proposed_v ** 2) / 2.0


def get_hmc_kernel(logtarget, gradlogtarget, stepsize, nsteps, dimension):
    """
    HMC kernel pair for a target with log density `logtarget`.

    Args:
        logtarget: fn(x) -> log pi(x) up to a constant
        gradlogtarget: fn(x) -> grad log pi(x)
        stepsize: Leapfrog step size
        nsteps: Number of leapfrog steps per proposal
        dimension: State dimension

    Returns:
        KernelPair of jit-compiled (single_kernel, coupled_kernel)
    """
    leapfrog = make_leapfrog(gradlogtarget, stepsize, nsteps)

    def kernel(key, chain_state, iteration):
        del iteration
        key_v, key_u = random.split(key)
        current_v = standard_normal(key_v, dimension)
        proposed_x, final_v = leapfrog(chain_state, current_v)
        proposed_v = -final_v
        log_ratio = _log_accept_ratio(logtarget, chain_state, current_v, proposed_x, proposed_v)
        accept = log_uniform(key_u) < log_ratio
        return jnp.where(accept, proposed_x, chain_state)

    def coupled_kernel(key, chain_state1, chain_state2, iteration):
        del iteration
        key_v, key_u = random.split(key)
        # Momentum and uniform are shared by both chains
        current_v = standard_normal(key_v, dimension)
        logu = log_uniform(key_u)

        proposed_x1, final_v1 = leapfrog(chain_state1, current_v)
        proposed_x2, final_v2 = leapfrog(chain_state2, current_v)
        log_ratio1 = _log_accept_ratio(logtarget, chain_state1, current_v, proposed_x1, -final_v1)
        log_ratio2 = _log_accept_ratio(logtarget, chain_state2, current_v, proposed_x2, -final_v2)

        new_state1 = jnp.where(logu < log_ratio1, proposed_x1, chain_state1)
        new_state2 = jnp.where(logu < log_ratio2, proposed_x2, chain_state2)
        return new_state1, new_state2

    return make_kernel_pair(jax.jit(kernel), jax.jit(coupled_kernel))
