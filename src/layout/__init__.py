"""Randomized non-overlapping placement of catalog elements."""

from src.layout.lib import (
    DEFAULT_FALLBACK_MARGIN,
    DEFAULT_MAX_ATTEMPTS,
    CanvasBounds,
    DegenerateCanvasError,
    ElementSpec,
    LayoutConfig,
    LayoutGenerator,
    PlacedRect,
    PlacementFallback,
    rects_intersect,
)

__all__ = [
    "CanvasBounds",
    "DegenerateCanvasError",
    "ElementSpec",
    "LayoutConfig",
    "LayoutGenerator",
    "PlacedRect",
    "PlacementFallback",
    "rects_intersect",
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_FALLBACK_MARGIN",
]
