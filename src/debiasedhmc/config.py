"""
Coupled Run Configuration.

This module turns a plain config dict into everything a config-driven run needs:
- clean_config: Fill in defaults
- gen_rng_keys: Split the master seed into init / run / continuation keys
- configure_coupled_system: Look up the target and build the kernel pair

Configuration is split into three parts:
- user_config: Serializable values (plain Python types only)
- runtime_ctx: JAX-dependent objects (keys, dtype)
- model_ctx: Target functions bound to data, kernel pair, init sampler

All config keys use lowercase with underscores (e.g., 'target_id', 'max_iterations').
"""

from functools import partial
from typing import Any, Dict, Tuple

import jax
import jax.numpy as jnp

from .registry import get_target
from .error_handling import validate_coupling_config
from .kernels import get_hmc_kernel, get_mh_kernel, mixture_kernel

import logging
logger = logging.getLogger('debiasedhmc')


def clean_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of the config with defaults filled in.
    """
    config = dict(config)
    config.setdefault('target_id', 'gaussian')
    config.setdefault('use_double', True)
    config.setdefault('rng_seed', 42)
    config.setdefault('stepsize', 0.1)
    config.setdefault('nsteps', 10)
    config.setdefault('mix_prob', 0.05)
    config.setdefault('mh_sigma', 1e-3)
    config.setdefault('min_horizon', 1)
    config.setdefault('max_iterations', 10000)
    config.setdefault('preallocate', 10)
    config.setdefault('num_replicates', 10)
    config.setdefault('k', 0)
    config.setdefault('K', 1)
    return config


def gen_rng_keys(rng_seed: int) -> Tuple[Any, Any]:
    """Generate JAX random keys from seed.

    Returns:
        (run_key, continue_key): Keys for the coupled runs and for continuation
    """
    mkey = jax.random.PRNGKey(rng_seed)
    run_key, continue_key = jax.random.split(mkey, 2)
    return run_key, continue_key


def configure_coupled_system(
    config: Dict[str, Any],
    data: Dict[str, Any],
) -> Tuple[Dict[str, Any], Dict[str, Any], Dict[str, Any]]:
    """
    Configure a coupled HMC run from config and data.

    The kernel is the shared-coin mixture of CRN-HMC (probability 1 - mix_prob)
    and maximally coupled random walk MH (probability mix_prob). With mix_prob=0
    the HMC pair is used alone; its chains contract but can only meet exactly
    in degenerate cases.

    Args:
        config: Config dict; see clean_config for keys and defaults
        data: Data passed as `data=` to every target function

    Returns:
        user_config: Cleaned config plus derived 'dimension'
        runtime_ctx: 'run_key', 'continue_key', 'jnp_float_dtype'
        model_ctx: 'logtarget', 'gradlogtarget', 'rinit', 'kernels', 'target_config'

    Raises:
        ValueError: If the config is invalid
        KeyError: If the target is not registered
    """
    user_config = clean_config(config)
    validate_coupling_config(user_config)

    if user_config['use_double']:
        jax.config.update("jax_enable_x64", True)
        jnp_float_dtype = jnp.float64
    else:
        jax.config.update("jax_enable_x64", False)
        jnp_float_dtype = jnp.float32

    run_key, continue_key = gen_rng_keys(user_config['rng_seed'])

    target_config = get_target(user_config['target_id'])
    logtarget = partial(target_config['logtarget'], data=data)
    gradlogtarget = partial(target_config['gradlogtarget'], data=data)
    init_fn = target_config['initial_state']

    def rinit(key):
        return jnp.asarray(init_fn(key, data=data), dtype=jnp_float_dtype)

    if 'dimension' in target_config:
        dimension = int(target_config['dimension'](data))
    else:
        dimension = int(rinit(jax.random.PRNGKey(0)).shape[0])
    user_config['dimension'] = dimension

    hmc_kernels = get_hmc_kernel(
        logtarget, gradlogtarget,
        stepsize=user_config['stepsize'],
        nsteps=user_config['nsteps'],
        dimension=dimension,
    )
    if user_config['mix_prob'] > 0:
        mh_kernels = get_mh_kernel(logtarget, sigma=user_config['mh_sigma'], dimension=dimension)
        kernels = mixture_kernel(hmc_kernels, mh_kernels, user_config['mix_prob'])
    else:
        kernels = hmc_kernels

    logger.info(
        f"Target '{user_config['target_id']}': dimension={dimension}, "
        f"stepsize={user_config['stepsize']}, nsteps={user_config['nsteps']}, "
        f"mix_prob={user_config['mix_prob']}"
    )

    runtime_ctx = {
        'run_key': run_key,
        'continue_key': continue_key,
        'jnp_float_dtype': jnp_float_dtype,
    }

    model_ctx = {
        'logtarget': logtarget,
        'gradlogtarget': gradlogtarget,
        'rinit': rinit,
        'kernels': kernels,
        'target_config': target_config,
    }

    return user_config, runtime_ctx, model_ctx
