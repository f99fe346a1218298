"""Render module for drawing control layouts.

Provides the Renderer and ImageWriter collaborator protocols together with
Pillow implementations that draw catalog controls and save PNG files.
"""

from .lib import (
    ControlStyle,
    ImageWriter,
    PillowRenderer,
    PngImageWriter,
    RasterBuffer,
    RenderConfig,
    RenderError,
    Renderer,
    get_font,
)

__all__ = [
    "ControlStyle",
    "ImageWriter",
    "PillowRenderer",
    "PngImageWriter",
    "RasterBuffer",
    "RenderConfig",
    "RenderError",
    "Renderer",
    "get_font",
]
