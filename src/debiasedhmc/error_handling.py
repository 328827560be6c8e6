"""
Error Handling and Validation Utilities

This module provides validation of run configurations and after-the-fact
diagnostics of coupled runs.
"""

import math
from typing import Any, Dict, List

import numpy as np

import logging
logger = logging.getLogger('debiasedhmc')


def validate_coupling_config(config: Dict[str, Any]) -> None:
    """
    Validates that a coupled run configuration is sensible.

    Args:
        config: Configuration dictionary (after clean_config)

    Raises:
        ValueError: If configuration is invalid, listing every problem found
    """
    errors = []

    required_keys = ['target_id', 'stepsize', 'nsteps', 'min_horizon',
                     'max_iterations', 'num_replicates', 'k', 'K']
    for key in required_keys:
        if key not in config:
            errors.append(f"Missing required config key: '{key}'")

    if 'stepsize' in config and config['stepsize'] <= 0:
        errors.append(f"stepsize must be > 0, got {config['stepsize']}")

    if 'nsteps' in config and config['nsteps'] < 1:
        errors.append(f"nsteps must be >= 1, got {config['nsteps']}")

    if 'mix_prob' in config:
        if not 0.0 <= config['mix_prob'] <= 1.0:
            errors.append(f"mix_prob must be in [0, 1], got {config['mix_prob']}")

    if 'mh_sigma' in config and config['mh_sigma'] <= 0:
        errors.append(f"mh_sigma must be > 0, got {config['mh_sigma']}")

    if 'min_horizon' in config and config['min_horizon'] < 0:
        errors.append(f"min_horizon must be >= 0, got {config['min_horizon']}")

    if 'max_iterations' in config:
        max_iterations = config['max_iterations']
        if max_iterations < 1:
            errors.append(f"max_iterations must be >= 1, got {max_iterations}")
        elif math.isinf(max_iterations):
            errors.append("max_iterations must be finite for config-driven runs")

    if 'preallocate' in config and config['preallocate'] < 0:
        errors.append(f"preallocate must be >= 0, got {config['preallocate']}")

    if 'num_replicates' in config and config['num_replicates'] < 1:
        errors.append(f"num_replicates must be >= 1, got {config['num_replicates']}")

    if 'k' in config and 'K' in config:
        k, K = config['k'], config['K']
        if k < 0:
            errors.append(f"k must be >= 0, got {k}")
        if k > K:
            errors.append(f"k ({k}) must be <= K ({K})")

    if errors:
        raise ValueError("Invalid coupled run configuration:\n  " + "\n  ".join(errors))


def diagnose_coupled_runs(runs: List[Any]) -> Dict[str, Any]:
    """
    Analyzes coupled runs to identify common issues.

    Args:
        runs: List of CoupledRunResult

    Returns:
        diagnostics: Dictionary with issues, warnings, and info
    """
    diagnostics = {
        'issues': [],
        'warnings': [],
        'info': []
    }

    # Divergent dynamics show up as NaN/Inf in the trajectories
    nonfinite = [
        i for i, run in enumerate(runs)
        if not (np.all(np.isfinite(run.samples1)) and np.all(np.isfinite(run.samples2)))
    ]
    if nonfinite:
        diagnostics['issues'].append(
            f"{len(nonfinite)} run(s) contain NaN or Inf states (runs {nonfinite}) - "
            f"kernel became unstable"
        )

    unfinished = sum(1 for run in runs if not run.finished)
    if unfinished:
        diagnostics['warnings'].append(
            f"{unfinished} run(s) hit max_iterations before finishing"
        )

    met = [run.meeting_time for run in runs if run.met]
    diagnostics['info'].append(f"Total runs: {len(runs)}")
    diagnostics['info'].append(f"Runs that met: {len(met)}")
    if met:
        diagnostics['info'].append(f"Max meeting time: {int(max(met))}")

    return diagnostics


def print_diagnostics(diagnostics: Dict[str, Any]) -> None:
    """Log diagnostics from diagnose_coupled_runs."""
    if diagnostics['issues']:
        logger.error("[ERROR] ISSUES:")
        for issue in diagnostics['issues']:
            logger.error(f"  - {issue}")

    if diagnostics['warnings']:
        logger.warning("[WARN] WARNINGS:")
        for warning in diagnostics['warnings']:
            logger.warning(f"  - {warning}")

    if diagnostics['info']:
        logger.info("[INFO] INFO:")
        for info in diagnostics['info']:
            logger.info(f"  - {info}")

    if not diagnostics['issues'] and not diagnostics['warnings']:
        logger.info("[OK] No issues detected")
