"""
Mixture of two kernel pairs.

With probability mix_prob take a step of the second pair, otherwise a step
of the first. The coin is drawn once per step and shared by both chains of a
coupled step, so the two chains always apply the same component.

Typical use: mixture_kernel(hmc_pair, mh_pair, mix_prob=0.05). The CRN-HMC
component brings the chains close; the maximally coupled random walk
component lets them meet exactly.
"""

import jax
import jax.random as random
from jax import lax

from .common import make_kernel_pair


def mixture_kernel(first, second, mix_prob):
    """
    Mix two KernelPairs.

    Args:
        first: KernelPair used with probability 1 - mix_prob
        second: KernelPair used with probability mix_prob
        mix_prob: Mixing probability in [0, 1]

    Returns:
        KernelPair of jit-compiled (single_kernel, coupled_kernel)
    """
    if not 0.0 <= mix_prob <= 1.0:
        raise ValueError(f"mix_prob must be in [0, 1], got {mix_prob}")

    def kernel(key, chain_state, iteration):
        key_coin, key_step = random.split(key)
        use_second = random.uniform(key_coin) < mix_prob
        return lax.cond(
            use_second,
            lambda s: second.single_kernel(key_step, s, iteration),
            lambda s: first.single_kernel(key_step, s, iteration),
            chain_state,
        )

    def coupled_kernel(key, chain_state1, chain_state2, iteration):
        key_coin, key_step = random.split(key)
        use_second = random.uniform(key_coin) < mix_prob
        return lax.cond(
            use_second,
            lambda s: second.coupled_kernel(key_step, s[0], s[1], iteration),
            lambda s: first.coupled_kernel(key_step, s[0], s[1], iteration),
            (chain_state1, chain_state2),
        )

    return make_kernel_pair(jax.jit(kernel), jax.jit(coupled_kernel))
