"""Canvas rendering and image writing.

Defines the two collaborator interfaces the sample orchestrator drives:
a Renderer that reports the canvas and element sizes and rasterizes a
layout, and an ImageWriter that persists the raster. Pillow-backed
implementations of both are provided.
"""

import logging
import random
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from functools import lru_cache
from pathlib import Path
from typing import Protocol

from PIL import Image, ImageDraw, ImageFont

from src.catalog import DEFAULT_CATALOG, ClassCatalog
from src.layout import CanvasBounds, ElementSpec, PlacedRect

logger = logging.getLogger(__name__)

RasterBuffer = Image.Image

Color = tuple[int, int, int]


class RenderError(Exception):
    """Error during layout rendering."""

    def __init__(self, message: str, element: str | None = None):
        super().__init__(message)
        self.element = element


# =============================================================================
# Collaborator Protocols
# =============================================================================


class Renderer(Protocol):
    """Draws controls and rasterizes the canvas.

    The orchestrator calls these in order once per cycle:
    get_canvas_bounds, get_elements, then apply_layout.
    """

    def get_canvas_bounds(self) -> CanvasBounds:
        """Current size of the drawing surface."""
        ...

    def get_elements(self) -> list[ElementSpec]:
        """Elements to place this cycle, with their intrinsic sizes."""
        ...

    def apply_layout(self, rects: Sequence[PlacedRect]) -> RasterBuffer:
        """Draw every element at its placed position and return the raster."""
        ...


class ImageWriter(Protocol):
    """Serializes a raster buffer to a file. Raises on failure."""

    def write(self, raster: RasterBuffer, path: Path) -> None:
        """Write the raster to path."""
        ...


# =============================================================================
# Configuration
# =============================================================================


@dataclass
class RenderConfig:
    """Configuration for PillowRenderer.

    Attributes:
        width: Canvas width in pixels.
        height: Canvas height in pixels.
        element_width: Inclusive (min, max) range for element widths.
        element_height: Inclusive (min, max) range for element heights.
        font_size: Inclusive (min, max) range for label font sizes.
        background: Canvas background color.
    """

    width: int = 800
    height: int = 600
    element_width: tuple[int, int] = (50, 200)
    element_height: tuple[int, int] = (20, 100)
    font_size: tuple[int, int] = (12, 24)
    background: Color = (255, 255, 255)

    def __post_init__(self) -> None:
        """Validate configuration values."""
        for label, (low, high) in (
            ("element_width", self.element_width),
            ("element_height", self.element_height),
            ("font_size", self.font_size),
        ):
            if low < 1 or high < low:
                raise ValueError(f"{label} range must satisfy 1 <= min <= max")


@dataclass
class ControlStyle:
    """Randomized appearance of one control for one cycle.

    Attributes:
        width: Drawn width in pixels.
        height: Drawn height in pixels.
        background: Fill color.
        foreground: Text and glyph color.
        font_size: Label font size.
        text: Caption drawn on the control.
    """

    width: int
    height: int
    background: Color
    foreground: Color
    font_size: int
    text: str = ""


# =============================================================================
# Drawing helpers
# =============================================================================


@lru_cache(maxsize=32)
def get_font(size: int = 14) -> ImageFont.ImageFont:
    """Get a font, falling back to the bundled default if none is installed."""
    for name in ("DejaVuSans.ttf", "arial.ttf"):
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    return ImageFont.load_default()


def _darker(color: Color, amount: int = 60) -> Color:
    return tuple(max(0, c - amount) for c in color)  # type: ignore[return-value]


def _text_at(draw: ImageDraw.ImageDraw, xy, text, style: ControlStyle) -> None:
    draw.text(xy, text, fill=style.foreground, font=get_font(style.font_size))


def _text_y(style: ControlStyle) -> int:
    return max(0, (style.height - style.font_size) // 2)


def _draw_button(draw, style: ControlStyle) -> None:
    w, h = style.width, style.height
    draw.rounded_rectangle(
        [0, 0, w - 1, h - 1], radius=min(6, h // 4), outline=_darker(style.background)
    )
    _text_at(draw, (6, _text_y(style)), style.text, style)


def _draw_check(draw, style: ControlStyle, round_mark: bool = False) -> None:
    side = max(4, min(style.height - 4, 16))
    top = (style.height - side) // 2
    box = [2, top, 2 + side, top + side]
    if round_mark:
        draw.ellipse(box, outline=style.foreground, width=2)
    else:
        draw.rectangle(box, outline=style.foreground, width=2)
    _text_at(draw, (side + 8, _text_y(style)), style.text, style)


def _draw_combo(draw, style: ControlStyle) -> None:
    w, h = style.width, style.height
    draw.rectangle([0, 0, w - 1, h - 1], outline=_darker(style.background))
    arrow = min(10, h // 2, w // 4)
    cx, cy = w - arrow - 4, h // 2
    draw.polygon(
        [
            (cx - arrow // 2, cy - arrow // 4),
            (cx + arrow // 2, cy - arrow // 4),
            (cx, cy + arrow // 4),
        ],
        fill=style.foreground,
    )
    _text_at(draw, (4, _text_y(style)), style.text, style)


def _draw_icon(draw, style: ControlStyle) -> None:
    w, h = style.width, style.height
    side = min(w, h) - 4
    if side > 0:
        draw.ellipse(
            [2, (h - side) // 2, 2 + side, (h + side) // 2], fill=style.foreground
        )
    _text_at(draw, (side + 6, _text_y(style)), style.text, style)


def _draw_input(draw, style: ControlStyle) -> None:
    w, h = style.width, style.height
    draw.rectangle([0, 0, w - 1, h - 1], outline=_darker(style.background, 90), width=2)
    _text_at(draw, (5, _text_y(style)), style.text, style)
    draw.line([(w - 8, 4), (w - 8, h - 5)], fill=style.foreground)


def _draw_label(draw, style: ControlStyle) -> None:
    _text_at(draw, (2, _text_y(style)), style.text, style)


def _draw_menu(draw, style: ControlStyle) -> None:
    x = 4
    font = get_font(style.font_size)
    for item in style.text.split():
        _text_at(draw, (x, _text_y(style)), item, style)
        x += int(draw.textlength(item, font=font)) + 12
    bottom = style.height - 1
    draw.line([(0, bottom), (style.width, bottom)], fill=_darker(style.background))


def _draw_switch(draw, style: ControlStyle) -> None:
    track_h = max(4, min(style.height - 4, 14))
    track_w = track_h * 2
    top = (style.height - track_h) // 2
    draw.rounded_rectangle(
        [2, top, 2 + track_w, top + track_h],
        radius=track_h // 2,
        outline=style.foreground,
        width=2,
    )
    draw.ellipse([2 + track_h, top, 2 + track_w, top + track_h], fill=style.foreground)
    _text_at(draw, (track_w + 8, _text_y(style)), style.text, style)


def _draw_tabs(draw, style: ControlStyle) -> None:
    w, h = style.width, style.height
    tab_h = min(h // 3, style.font_size + 6)
    tab_w = max(1, w // 3)
    for i in range(3):
        draw.rectangle(
            [i * tab_w, 0, (i + 1) * tab_w - 1, tab_h], outline=style.foreground
        )
    draw.rectangle([0, tab_h, w - 1, h - 1], outline=style.foreground)
    _text_at(draw, (4, 2), style.text, style)


def _draw_updown(draw, style: ControlStyle) -> None:
    w, h = style.width, style.height
    draw.rectangle([0, 0, w - 1, h - 1], outline=_darker(style.background))
    btn = min(16, w // 3)
    draw.line([(w - btn, 0), (w - btn, h)], fill=style.foreground)
    draw.line([(w - btn, h // 2), (w, h // 2)], fill=style.foreground)
    mid = w - btn // 2
    up, down = h // 4, 3 * h // 4
    draw.polygon(
        [(mid - 3, up + 2), (mid + 3, up + 2), (mid, up - 2)], fill=style.foreground
    )
    draw.polygon(
        [(mid - 3, down - 2), (mid + 3, down - 2), (mid, down + 2)],
        fill=style.foreground,
    )
    _text_at(draw, (4, _text_y(style)), style.text, style)


def _draw_radio(draw, style: ControlStyle) -> None:
    _draw_check(draw, style, round_mark=True)


def _pick(*captions: str) -> Callable[[random.Random, int], str]:
    return lambda rng, class_index: rng.choice(captions)


# Control name -> (drawer, caption factory)
_CONTROLS: dict[str, tuple[Callable, Callable[[random.Random, int], str]]] = {
    "Button": (_draw_button, _pick("OK", "Cancel", "Submit", "Button")),
    "CheckBox": (_draw_check, _pick("CheckBox")),
    "ComboBox": (_draw_combo, _pick("Item 1", "Item 2", "Item 3")),
    "icon": (_draw_icon, _pick("Icon")),
    "input": (_draw_input, _pick("", "Text", "Name", "Search")),
    "label": (_draw_label, lambda rng, class_index: f"Label {class_index}"),
    "menu": (_draw_menu, _pick("File Edit View")),
    "menuItem": (_draw_label, _pick("MenuItem")),
    "radio": (_draw_radio, _pick("RadioButton")),
    "switch": (_draw_switch, _pick("Switch")),
    "tabControl": (_draw_tabs, _pick("Tab")),
    "upDown": (_draw_updown, lambda rng, class_index: f"{rng.uniform(0, 100):.1f}"),
}


# =============================================================================
# Pillow implementations
# =============================================================================


class PillowRenderer:
    """Renders catalog controls with randomized styling using Pillow.

    Sizes and colors are drawn in `get_elements`, before placement, so the
    box the layout generator labels is exactly the box that gets drawn.
    Each control is drawn on its own tile and pasted at its position.

    Example:
        >>> renderer = PillowRenderer(rng=random.Random(0))
        >>> canvas = renderer.get_canvas_bounds()
        >>> rects = LayoutGenerator().place(canvas, renderer.get_elements())
        >>> image = renderer.apply_layout(rects)
    """

    def __init__(
        self,
        catalog: ClassCatalog | None = None,
        config: RenderConfig | None = None,
        rng: random.Random | None = None,
    ):
        """Initialize renderer.

        Args:
            catalog: Controls to draw, in placement order.
            config: Canvas and styling ranges.
            rng: Random source for styling.
        """
        self._catalog = catalog or DEFAULT_CATALOG
        self._config = config or RenderConfig()
        self._rng = rng or random.Random()
        self._styles: dict[str, ControlStyle] = {}

    @property
    def config(self) -> RenderConfig:
        return self._config

    @property
    def styles(self) -> dict[str, ControlStyle]:
        """Styles chosen for the current cycle, keyed by control name."""
        return dict(self._styles)

    def supported_controls(self) -> list[str]:
        """Control names this renderer knows how to draw."""
        return list(_CONTROLS)

    def get_canvas_bounds(self) -> CanvasBounds:
        return CanvasBounds(self._config.width, self._config.height)

    def get_elements(self) -> list[ElementSpec]:
        """Pick this cycle's style for every catalog control."""
        self._styles = {
            entry.name: self._random_style(entry.name, entry.class_index)
            for entry in self._catalog.entries()
        }
        return [
            ElementSpec(name=name, width=style.width, height=style.height)
            for name, style in self._styles.items()
        ]

    def apply_layout(self, rects: Sequence[PlacedRect]) -> RasterBuffer:
        """Draw each control at its placed position.

        Raises:
            RenderError: If a control cannot be drawn.
        """
        config = self._config
        canvas = Image.new("RGB", (config.width, config.height), config.background)

        for rect in rects:
            style = self._styles.get(rect.name) or self._random_style(
                rect.name, rect.class_index
            )
            style = replace(
                style,
                width=max(1, round(rect.width)),
                height=max(1, round(rect.height)),
            )
            try:
                tile = self._draw_control(rect.name, style)
                canvas.paste(tile, (round(rect.x), round(rect.y)))
            except (OSError, ValueError, KeyError) as e:
                raise RenderError(
                    f"Failed to draw '{rect.name}': {e}", element=rect.name
                ) from e

        return canvas

    def _random_style(self, name: str, class_index: int) -> ControlStyle:
        rng = self._rng
        config = self._config
        _, caption = _CONTROLS.get(name, (None, lambda r, i: name))
        return ControlStyle(
            width=rng.randint(*config.element_width),
            height=rng.randint(*config.element_height),
            background=(rng.randrange(256), rng.randrange(256), rng.randrange(256)),
            foreground=(rng.randrange(256), rng.randrange(256), rng.randrange(256)),
            font_size=rng.randint(*config.font_size),
            text=caption(rng, class_index),
        )

    def _draw_control(self, name: str, style: ControlStyle) -> Image.Image:
        drawer, _ = _CONTROLS[name]
        tile = Image.new("RGB", (style.width, style.height), style.background)
        drawer(ImageDraw.Draw(tile), style)
        return tile


class PngImageWriter:
    """Writes raster buffers as PNG files with Pillow."""

    def write(self, raster: RasterBuffer, path: Path) -> None:
        raster.save(Path(path), format="PNG")
        logger.debug(f"Wrote image {path}")


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
