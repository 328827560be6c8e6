"""
JAX Configuration - MUST be imported before any JAX imports.

This module sets environment variables for JAX configuration:
- Persistent compilation cache directory (kernels are jit-compiled per target);
  override with DEBIASEDHMC_CACHE_DIR
- Minimum compile time threshold for caching
- XLA C++ log level
"""
import os
from pathlib import Path

# --- XLA LOGGING ---
# Suppress CUDA/XLA C++ warnings; does not affect Python logging
os.environ.setdefault('TF_CPP_MIN_LOG_LEVEL', '2')

# --- PERSISTENT COMPILATION CACHE ---
_JAX_CACHE_DIR = Path(os.environ.get(
    "DEBIASEDHMC_CACHE_DIR", Path.home() / ".cache" / "jax" / "debiasedhmc_cache"
))
_JAX_CACHE_DIR.mkdir(parents=True, exist_ok=True)
os.environ.setdefault("JAX_COMPILATION_CACHE_DIR", str(_JAX_CACHE_DIR))
os.environ.setdefault("JAX_PERSISTENT_CACHE_MIN_COMPILE_TIME_SECS", "1.0")
