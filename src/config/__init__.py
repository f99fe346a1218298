"""Centralized configuration management for ui-label-synth.

Provides unified access to all configuration via the `get_environment()` function.

Example:
    >>> from src.config import EnvVar, get_environment
    >>>
    >>> interval = get_environment(EnvVar.INTERVAL)  # Returns float: 2.0
    >>> seed = get_environment(EnvVar.SEED)  # Returns int | None
    >>>
    >>> # List available variables by category
    >>> for var in list_environment_variables("layout"):
    ...     info = get_environment_info(var)
    ...     print(f"{info.name}: {info.description}")

Environment Variable Categories:
    output: Dataset root directory
    layout: Seed, attempt budget, fallback margin
    render: Canvas size, off-canvas annotation policy
    runtime: Sample interval, log level
"""

from .lib import (
    # Core types
    EnvConfig,
    EnvVar,
    # Main interface
    get_canvas_size,
    get_environment,
    get_environment_info,
    get_output_dir,
    # Introspection
    list_environment_variables,
)

__all__ = [
    # Core types
    "EnvConfig",
    "EnvVar",
    # Main interface
    "get_environment",
    "get_environment_info",
    # Convenience functions
    "get_output_dir",
    "get_canvas_size",
    # Introspection
    "list_environment_variables",
]
