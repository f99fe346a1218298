"""Randomized non-overlapping layout generation.

Places each element at a uniformly random position on the canvas, retrying
until the candidate rectangle is clear of everything already placed in the
current cycle. When the attempt budget runs out, or the element cannot fit
at all, the element is parked at a fixed fallback position instead of
failing. Packing is greedy and order-dependent: later elements must avoid
every earlier one, including fallbacks.
"""

import logging
import math
import random
from collections.abc import Sequence
from dataclasses import dataclass

from pydantic import BaseModel, Field

from src.catalog import DEFAULT_CATALOG, ClassCatalog

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 1000
DEFAULT_FALLBACK_MARGIN = 50.0


class DegenerateCanvasError(ValueError):
    """Canvas bounds are zero, negative, or not finite."""


@dataclass(frozen=True)
class CanvasBounds:
    """Size of the drawing surface in pixels.

    Attributes:
        width: Canvas width.
        height: Canvas height.
    """

    width: float
    height: float

    @property
    def is_degenerate(self) -> bool:
        """True when either dimension is non-positive or not finite."""
        return not (
            math.isfinite(self.width)
            and math.isfinite(self.height)
            and self.width > 0
            and self.height > 0
        )

    def validate(self) -> None:
        """Raise DegenerateCanvasError for unusable bounds."""
        if self.is_degenerate:
            raise DegenerateCanvasError(
                f"Canvas bounds {self.width}x{self.height} are not positive and finite"
            )


class ElementSpec(BaseModel):
    """An element to place, with the size it will be drawn at.

    Attributes:
        name: Catalog key of the control kind.
        width: Intrinsic width in pixels.
        height: Intrinsic height in pixels.
    """

    name: str = Field(..., description="Catalog key of the control kind")
    width: float = Field(..., ge=0, description="Intrinsic width in pixels")
    height: float = Field(..., ge=0, description="Intrinsic height in pixels")

    model_config = {"frozen": True}


@dataclass(frozen=True)
class PlacedRect:
    """A positioned element in canvas-local coordinates.

    Attributes:
        x: Left edge.
        y: Top edge.
        width: Element width.
        height: Element height.
        class_index: Label class from the catalog.
        name: Control kind the rect was placed for.
        fallback: True when the position came from the fallback policy.
    """

    x: float
    y: float
    width: float
    height: float
    class_index: int
    name: str = ""
    fallback: bool = False

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(frozen=True)
class PlacementFallback:
    """Diagnostic record for an element that took the fallback position.

    Attributes:
        name: Control kind that fell back.
        attempts: Random candidates tried before giving up.
        reason: "exhausted" when every attempt collided, "no_room" when the
            element is larger than the canvas.
    """

    name: str
    attempts: int
    reason: str


@dataclass
class LayoutConfig:
    """Configuration for LayoutGenerator.

    Attributes:
        max_attempts: Random candidates tried per element before fallback.
        fallback_margin: Offset of the fallback position from the origin.
        seed: Seed for the generator's random source (None=system entropy).
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    fallback_margin: float = DEFAULT_FALLBACK_MARGIN
    seed: int | None = None

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be positive, got {self.max_attempts}")
        if not (math.isfinite(self.fallback_margin) and self.fallback_margin >= 0):
            raise ValueError(
                f"fallback_margin must be finite and non-negative, "
                f"got {self.fallback_margin}"
            )


def rects_intersect(a: PlacedRect, b: PlacedRect) -> bool:
    """Check whether two rectangles overlap, counting shared edges."""
    return a.x <= b.right and b.x <= a.right and a.y <= b.bottom and b.y <= a.bottom


class LayoutGenerator:
    """Greedy random placement with a bounded retry budget.

    The occupied set and the fallback log are owned by the generator and
    reset at the start of every `place` call.

    Example:
        >>> generator = LayoutGenerator(config=LayoutConfig(seed=7))
        >>> rects = generator.place(
        ...     CanvasBounds(400, 300),
        ...     [ElementSpec(name="Button", width=80, height=40)],
        ... )
        >>> len(rects)
        1
    """

    def __init__(
        self,
        catalog: ClassCatalog | None = None,
        config: LayoutConfig | None = None,
        rng: random.Random | None = None,
    ):
        """Initialize generator.

        Args:
            catalog: Catalog used to resolve class indices.
            config: Placement configuration.
            rng: Random source. Takes precedence over config.seed.
        """
        self._catalog = catalog or DEFAULT_CATALOG
        self._config = config or LayoutConfig()
        self._rng = rng if rng is not None else random.Random(self._config.seed)
        self._occupied: list[PlacedRect] = []
        self._fallbacks: list[PlacementFallback] = []

    @property
    def catalog(self) -> ClassCatalog:
        return self._catalog

    @property
    def config(self) -> LayoutConfig:
        return self._config

    @property
    def occupied(self) -> tuple[PlacedRect, ...]:
        """Rectangles placed in the current cycle, in placement order."""
        return tuple(self._occupied)

    @property
    def fallbacks(self) -> tuple[PlacementFallback, ...]:
        """Degraded placements recorded in the current cycle."""
        return tuple(self._fallbacks)

    def clear(self) -> None:
        """Discard the previous cycle's placements."""
        self._occupied.clear()
        self._fallbacks.clear()

    def place(
        self, canvas: CanvasBounds, elements: Sequence[ElementSpec]
    ) -> list[PlacedRect]:
        """Place every element on the canvas.

        Args:
            canvas: Bounds of the drawing surface.
            elements: Elements in placement order.

        Returns:
            One PlacedRect per element, in input order.

        Raises:
            DegenerateCanvasError: If the canvas bounds are unusable.
            UnknownClassError: If an element name is not in the catalog.
        """
        canvas.validate()
        self.clear()

        for element in elements:
            class_index = self._catalog.class_index_of(element.name)
            rect = self._place_one(canvas, element, class_index)
            self._occupied.append(rect)

        return list(self._occupied)

    def _place_one(
        self, canvas: CanvasBounds, element: ElementSpec, class_index: int
    ) -> PlacedRect:
        """Search for a free position, falling back when none is found."""
        span_x = canvas.width - element.width
        span_y = canvas.height - element.height

        if span_x < 0 or span_y < 0:
            return self._fallback(element, class_index, attempts=0, reason="no_room")

        max_attempts = self._config.max_attempts
        for _ in range(max_attempts):
            candidate = PlacedRect(
                x=self._rng.random() * span_x,
                y=self._rng.random() * span_y,
                width=element.width,
                height=element.height,
                class_index=class_index,
                name=element.name,
            )
            if not any(rects_intersect(candidate, area) for area in self._occupied):
                return candidate

        return self._fallback(
            element, class_index, attempts=max_attempts, reason="exhausted"
        )

    def _fallback(
        self, element: ElementSpec, class_index: int, attempts: int, reason: str
    ) -> PlacedRect:
        """Park an element at the fixed fallback position."""
        margin = self._config.fallback_margin
        self._fallbacks.append(
            PlacementFallback(name=element.name, attempts=attempts, reason=reason)
        )
        logger.warning(
            f"No free position for '{element.name}' after {attempts} attempts "
            f"({reason}); using fallback at ({margin}, {margin})"
        )
        return PlacedRect(
            x=margin,
            y=margin,
            width=element.width,
            height=element.height,
            class_index=class_index,
            name=element.name,
            fallback=True,
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
