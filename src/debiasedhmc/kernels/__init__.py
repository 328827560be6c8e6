"""
Transition kernel pairs.

Each factory returns a KernelPair(single_kernel, coupled_kernel):

- hmc: Leapfrog HMC with common random numbers (get_hmc_kernel)
- mh: Random walk MH with maximally coupled proposals (get_mh_kernel)
- mixture: Shared-coin mixture of two kernel pairs (mixture_kernel)
"""

from .common import KernelPair, make_kernel_pair
from .hmc import get_hmc_kernel, make_leapfrog
from .mh import get_mh_kernel, gaussian_max_coupling
from .mixture import mixture_kernel

__all__ = [
    'KernelPair',
    'make_kernel_pair',
    'get_hmc_kernel',
    'make_leapfrog',
    'get_mh_kernel',
    'gaussian_max_coupling',
    'mixture_kernel',
]
