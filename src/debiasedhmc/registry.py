"""
Target Registration System

This module provides a registry for target distributions that can be used by the
config-driven entry point. User code registers targets via register_target(), and
configure_coupled_system() retrieves them via get_target().

Example usage:
    from debiasedhmc import register_target

    def my_logtarget(x, data):
        ...

    register_target('my_model', {
        'logtarget': my_logtarget,
        'gradlogtarget': my_gradlogtarget,
        'initial_state': my_init_fn,
    })
"""

_REGISTRY = {}


def register_target(name, config):
    """
    Register a target distribution.

    Args:
        name: Unique target identifier string (e.g., 'germancredit')
        config: Dict containing target functions with keys:

            Required:
                logtarget: fn(x, data) -> scalar
                    Log density of the target, up to a constant.

                gradlogtarget: fn(x, data) -> array
                    Gradient of logtarget with respect to x.

                initial_state: fn(key, data) -> array
                    Draws an initial state for one chain.

            Optional:
                dimension: fn(data) -> int
                    State dimension. If absent, taken from an initial draw.

    Raises:
        ValueError: If required keys are missing or name is already registered.
    """
    if name in _REGISTRY:
        raise ValueError(f"Target '{name}' is already registered")

    required_keys = ['logtarget', 'gradlogtarget', 'initial_state']
    missing = [k for k in required_keys if k not in config]
    if missing:
        raise ValueError(f"Missing required keys for target '{name}': {missing}")

    _REGISTRY[name] = config


def get_target(name):
    """
    Get a registered target configuration by name.

    Raises:
        KeyError: If the target is not registered
    """
    if name not in _REGISTRY:
        available = list(_REGISTRY.keys())
        raise KeyError(f"Unknown target '{name}'. Available: {available}")
    return _REGISTRY[name]


def list_targets():
    """List all registered target names."""
    return list(_REGISTRY.keys())


def clear_registry():
    """
    Clear all registered targets. Primarily for testing.
    """
    _REGISTRY.clear()
