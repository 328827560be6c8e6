"""
debiasedhmc - Unbiased estimation with coupled Hamiltonian Monte Carlo chains

Public API:
    Core:
        coupled_chains - Run two coupled chains until they meet (and a minimum horizon)
        continue_coupled_chains - Extend met chains to a longer horizon
        h_bar - Unbiased estimator of E[h(X)] from one coupled run
        CoupledRunResult - Output of coupled_chains

    Kernels:
        KernelPair - (single_kernel, coupled_kernel) named tuple
        get_hmc_kernel - Leapfrog HMC with common random numbers
        get_mh_kernel - Random walk MH with maximally coupled proposals
        mixture_kernel - Shared-coin mixture of two kernel pairs

    Replicates & Diagnostics:
        run_replicates - Independent coupled runs from one master key
        estimate_replicates - Per-run estimates (continuing short runs)
        distance_to_meeting - ||X_(t+1) - Y_t|| over iterations
        summarize_estimates - Replicate mean and standard error

    Config-driven runs:
        register_target - Register a target distribution
        get_target - Retrieve a registered target
        list_targets - List registered targets
        rcoupled - Configure, run, estimate and summarise in one call

Kernel contract:
    rinit(key) -> state
    single_kernel(key, state, iteration) -> state
    coupled_kernel(key, state1, state2, iteration) -> (state1, state2)
    h(state) -> scalar or vector

Example:
    import jax
    from debiasedhmc import get_hmc_kernel, get_mh_kernel, mixture_kernel
    from debiasedhmc import coupled_chains, h_bar

    hmc = get_hmc_kernel(logtarget, gradlogtarget, stepsize=0.1, nsteps=10, dimension=p)
    mh = get_mh_kernel(logtarget, sigma=1e-3, dimension=p)
    kernels = mixture_kernel(hmc, mh, mix_prob=0.05)

    run = coupled_chains(kernels, rinit, jax.random.PRNGKey(0), max_iterations=1000)
    estimate = h_bar(run, h=lambda x: x, k=0, K=run.iteration)
"""
# CRITICAL: Import jax_config FIRST to set environment variables before JAX loads
from . import jax_config  # noqa: F401

from .kernels import (
    KernelPair,
    make_kernel_pair,
    get_hmc_kernel,
    get_mh_kernel,
    mixture_kernel,
)
from .coupling import (
    CoupledRunResult,
    coupled_chains,
    continue_coupled_chains,
    h_bar,
    run_replicates,
    estimate_replicates,
    distance_to_meeting,
    padded_distances,
    meeting_times,
    summarize_estimates,
)
from .registry import register_target, get_target, list_targets
from .error_handling import diagnose_coupled_runs, print_diagnostics

# Main config-driven entry point
from .backend import rcoupled
