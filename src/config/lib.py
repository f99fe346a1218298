"""Centralized environment configuration management for ui-label-synth.

Provides a unified interface for all environment variables with:
- Single `get_environment()` function for all configuration
- Type-safe enum with metadata (default, type, description)
- Consistent resolution: override > environment > default

Example:
    >>> from src.config import EnvVar, get_environment
    >>>
    >>> # Get values with automatic type conversion
    >>> interval = get_environment(EnvVar.INTERVAL)  # Returns float
    >>> seed = get_environment(EnvVar.SEED)  # Returns int | None
    >>>
    >>> # Override at runtime
    >>> width = get_environment(EnvVar.CANVAS_WIDTH, override=1024)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, overload

# =============================================================================
# Environment Variable Configuration
# =============================================================================


@dataclass(frozen=True)
class EnvConfig:
    """Metadata for an environment variable.

    Attributes:
        name: Environment variable name (e.g., "LABELSYNTH_INTERVAL").
        default: Default value if not set in environment.
        var_type: Python type for value conversion (str, int, float, Path).
        description: Human-readable description.
        category: Grouping category for documentation.
    """

    name: str
    default: Any
    var_type: type
    description: str = ""
    category: str = "general"


class EnvVar(Enum):
    """All environment variables used by ui-label-synth.

    Each member contains an EnvConfig with name, default, type, and description.
    Use with `get_environment()` for type-safe access.

    Categories:
        - output: Dataset output location
        - layout: Placement search parameters
        - render: Canvas and annotation settings
        - runtime: Scheduling and logging
    """

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------
    OUTPUT_DIR = EnvConfig(
        name="LABELSYNTH_OUTPUT_DIR",
        default=None,  # Computed from cwd
        var_type=Path,
        description="Dataset root holding images/ and labels/",
        category="output",
    )

    # -------------------------------------------------------------------------
    # Layout
    # -------------------------------------------------------------------------
    SEED = EnvConfig(
        name="LABELSYNTH_SEED",
        default=None,
        var_type=int,
        description="Random seed for reproducible layouts (None=system entropy)",
        category="layout",
    )
    MAX_ATTEMPTS = EnvConfig(
        name="LABELSYNTH_MAX_ATTEMPTS",
        default=1000,
        var_type=int,
        description="Random placement attempts per element before fallback",
        category="layout",
    )
    FALLBACK_MARGIN = EnvConfig(
        name="LABELSYNTH_FALLBACK_MARGIN",
        default=50.0,
        var_type=float,
        description="Offset of the fixed fallback position from the canvas origin",
        category="layout",
    )

    # -------------------------------------------------------------------------
    # Render
    # -------------------------------------------------------------------------
    CANVAS_WIDTH = EnvConfig(
        name="LABELSYNTH_CANVAS_WIDTH",
        default=800,
        var_type=int,
        description="Canvas width in pixels",
        category="render",
    )
    CANVAS_HEIGHT = EnvConfig(
        name="LABELSYNTH_CANVAS_HEIGHT",
        default=600,
        var_type=int,
        description="Canvas height in pixels",
        category="render",
    )
    OFF_CANVAS_POLICY = EnvConfig(
        name="LABELSYNTH_OFF_CANVAS_POLICY",
        default="clip",
        var_type=str,
        description="Handling of boxes outside the canvas (clip, passthrough, reject)",
        category="render",
    )

    # -------------------------------------------------------------------------
    # Runtime
    # -------------------------------------------------------------------------
    INTERVAL = EnvConfig(
        name="LABELSYNTH_INTERVAL",
        default=2.0,
        var_type=float,
        description="Seconds between generated samples",
        category="runtime",
    )
    LOG_LEVEL = EnvConfig(
        name="LABELSYNTH_LOG_LEVEL",
        default="INFO",
        var_type=str,
        description="Logging level name",
        category="runtime",
    )


# =============================================================================
# Type Conversion Helpers
# =============================================================================


def _convert_value(value: str | None, var_type: type, default: Any) -> Any:
    """Convert string value to target type.

    Args:
        value: Raw string value from environment (or None).
        var_type: Target Python type.
        default: Default value if conversion fails or value is None.

    Returns:
        Converted value or default.
    """
    if value is None:
        return default

    if var_type is str:
        return value

    if var_type is int:
        try:
            return int(value)
        except ValueError:
            return default

    if var_type is float:
        try:
            return float(value)
        except ValueError:
            return default

    if var_type is Path:
        return Path(value)

    # Unknown type, return as-is
    return value


# =============================================================================
# Main Interface
# =============================================================================


@overload
def get_environment(env_var: EnvVar, override: int) -> int: ...
@overload
def get_environment(env_var: EnvVar, override: float) -> float: ...
@overload
def get_environment(env_var: EnvVar, override: str) -> str: ...
@overload
def get_environment(env_var: EnvVar, override: Path) -> Path: ...
@overload
def get_environment(env_var: EnvVar, override: None = None) -> Any: ...


def get_environment(env_var: EnvVar, override: Any = None) -> Any:
    """Get environment variable value with type conversion.

    Resolution priority:
        1. Explicit override parameter (highest)
        2. Environment variable value
        3. Default from EnvConfig (lowest)

    Args:
        env_var: Environment variable enum member.
        override: Optional override value (bypasses env lookup).

    Returns:
        Value converted to the appropriate type.

    Example:
        >>> get_environment(EnvVar.MAX_ATTEMPTS)
        1000
        >>> get_environment(EnvVar.MAX_ATTEMPTS, override=50)
        50
    """
    if override is not None:
        return override

    config = env_var.value
    raw = os.environ.get(config.name)
    return _convert_value(raw, config.var_type, config.default)


def get_environment_info(env_var: EnvVar) -> EnvConfig:
    """Get metadata for an environment variable.

    Args:
        env_var: Environment variable enum member.

    Returns:
        EnvConfig with name, default, type, and description.
    """
    return env_var.value


# =============================================================================
# Convenience Functions
# =============================================================================


def get_output_dir(override: Path | str | None = None) -> Path:
    """Get the dataset output directory.

    Resolution: override > LABELSYNTH_OUTPUT_DIR > current working directory.

    Args:
        override: Explicit path override.

    Returns:
        Resolved Path to the dataset root.
    """
    if override is not None:
        return Path(override)

    env_path = get_environment(EnvVar.OUTPUT_DIR)
    if env_path:
        return env_path

    return Path.cwd()


def get_canvas_size(
    width: int | None = None, height: int | None = None
) -> tuple[int, int]:
    """Get the canvas size as (width, height).

    Each dimension resolves independently: override > environment > default.

    Args:
        width: Explicit width override.
        height: Explicit height override.
    """
    return (
        get_environment(EnvVar.CANVAS_WIDTH, override=width),
        get_environment(EnvVar.CANVAS_HEIGHT, override=height),
    )


def list_environment_variables(category: str | None = None) -> list[EnvVar]:
    """List all environment variables, optionally filtered by category.

    Args:
        category: Filter by category (output, layout, render, runtime).
                 None returns all variables.

    Returns:
        List of EnvVar enum members.
    """
    if category is None:
        return list(EnvVar)

    return [var for var in EnvVar if var.value.category == category]


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
