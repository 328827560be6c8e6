"""
Coupling Subpackage - coupled chains and unbiased estimators.

- types: CoupledRunResult, TrajectoryBuffer
- chains: coupled_chains, continue_coupled_chains
- estimator: h_bar
- replicates: run_replicates, estimate_replicates
- diagnostics: meeting times, distance to meeting, estimate summaries
"""

from .types import CoupledRunResult, TrajectoryBuffer
from .chains import coupled_chains, continue_coupled_chains
from .estimator import h_bar, identity
from .replicates import run_replicates, estimate_replicates
from .diagnostics import (
    distance_to_meeting,
    padded_distances,
    meeting_times,
    summarize_estimates,
    log_coupling_summary,
)

__all__ = [
    'CoupledRunResult',
    'TrajectoryBuffer',
    'coupled_chains',
    'continue_coupled_chains',
    'h_bar',
    'identity',
    'run_replicates',
    'estimate_replicates',
    'distance_to_meeting',
    'padded_distances',
    'meeting_times',
    'summarize_estimates',
    'log_coupling_summary',
]
