"""Tests for render module."""

import random

import pytest
from PIL import Image

from src.catalog import DEFAULT_CATALOG, ClassCatalog
from src.layout import CanvasBounds, LayoutConfig, LayoutGenerator, PlacedRect
from src.render import (
    PillowRenderer,
    PngImageWriter,
    RenderConfig,
    RenderError,
    get_font,
)


def _rect(name, x, y, w, h, class_index=0):
    return PlacedRect(x=x, y=y, width=w, height=h, class_index=class_index, name=name)


class TestRenderConfig:
    """Tests for RenderConfig dataclass."""

    @pytest.mark.unit
    def test_default_values(self):
        """Default config matches the documented styling ranges."""
        config = RenderConfig()
        assert (config.width, config.height) == (800, 600)
        assert config.element_width == (50, 200)
        assert config.element_height == (20, 100)
        assert config.font_size == (12, 24)

    @pytest.mark.unit
    def test_inverted_range_rejected(self):
        """Ranges with min above max are rejected."""
        with pytest.raises(ValueError, match="element_width"):
            RenderConfig(element_width=(200, 50))

    @pytest.mark.unit
    def test_zero_font_rejected(self):
        """Font sizes must be positive."""
        with pytest.raises(ValueError, match="font_size"):
            RenderConfig(font_size=(0, 10))


class TestPillowRenderer:
    """Tests for PillowRenderer."""

    @pytest.fixture
    def renderer(self):
        config = RenderConfig(width=400, height=300)
        return PillowRenderer(config=config, rng=random.Random(0))

    @pytest.mark.unit
    def test_canvas_bounds(self, renderer):
        """Bounds follow the configured canvas."""
        assert renderer.get_canvas_bounds() == CanvasBounds(400, 300)

    @pytest.mark.unit
    def test_elements_follow_catalog_order(self, renderer):
        """One element per catalog entry, in catalog order."""
        elements = renderer.get_elements()
        assert [e.name for e in elements] == DEFAULT_CATALOG.names()

    @pytest.mark.unit
    def test_element_sizes_in_range(self, renderer):
        """Sizes are drawn from the configured ranges."""
        for element in renderer.get_elements():
            assert 50 <= element.width <= 200
            assert 20 <= element.height <= 100

    @pytest.mark.unit
    def test_styles_refresh_each_cycle(self, renderer):
        """Every get_elements call picks a new style."""
        first = renderer.get_elements()
        second = renderer.get_elements()
        assert first != second

    @pytest.mark.unit
    def test_label_caption_uses_class_index(self, renderer):
        """Labels are captioned with their class index."""
        renderer.get_elements()
        assert renderer.styles["label"].text == "Label 5"

    @pytest.mark.unit
    def test_seeded_styles_reproducible(self):
        """Same seed gives the same element sizes."""
        a = PillowRenderer(rng=random.Random(3)).get_elements()
        b = PillowRenderer(rng=random.Random(3)).get_elements()
        assert a == b

    @pytest.mark.unit
    def test_supports_every_default_control(self, renderer):
        """Each default catalog name has a drawer."""
        assert set(DEFAULT_CATALOG.names()) <= set(renderer.supported_controls())

    @pytest.mark.unit
    def test_apply_layout_returns_canvas_image(self, renderer):
        """The raster has the canvas size and RGB mode."""
        canvas = renderer.get_canvas_bounds()
        rects = LayoutGenerator(config=LayoutConfig(seed=1)).place(
            canvas, renderer.get_elements()
        )
        image = renderer.apply_layout(rects)
        assert isinstance(image, Image.Image)
        assert image.size == (400, 300)
        assert image.mode == "RGB"

    @pytest.mark.unit
    def test_untouched_area_keeps_background(self, renderer):
        """Pixels outside every rect keep the canvas background."""
        renderer.get_elements()
        image = renderer.apply_layout([_rect("Button", 100, 100, 80, 40)])
        assert image.getpixel((0, 0)) == (255, 255, 255)
        assert image.getpixel((399, 299)) == (255, 255, 255)

    @pytest.mark.unit
    def test_drawn_tile_matches_rect(self):
        """A control fills exactly its rect."""
        config = RenderConfig(
            element_width=(150, 200), element_height=(60, 100), font_size=(12, 14)
        )
        renderer = PillowRenderer(config=config, rng=random.Random(0))
        renderer.get_elements()
        style = renderer.styles["label"]
        rect = _rect("label", 10, 10, style.width, style.height, class_index=5)
        image = renderer.apply_layout([rect])

        # label draws only text, so the far corner carries the tile background
        corner = (10 + style.width - 1, 10 + style.height - 1)
        assert image.getpixel(corner) == style.background
        assert image.getpixel((10 + style.width, 10 + style.height)) == (255, 255, 255)

    @pytest.mark.unit
    def test_layout_without_get_elements(self):
        """Rects can be drawn even before styles are picked."""
        renderer = PillowRenderer(rng=random.Random(1))
        image = renderer.apply_layout([_rect("switch", 0, 0, 60, 20, 8)])
        assert image.size == (800, 600)

    @pytest.mark.unit
    def test_off_canvas_rect_is_clipped(self, renderer):
        """Fallback rects that overrun the canvas still render."""
        renderer.get_elements()
        image = renderer.apply_layout([_rect("tabControl", 50, 50, 500, 500, 8)])
        assert image.size == (400, 300)

    @pytest.mark.unit
    def test_small_controls_render(self):
        """Every control draws at very small sizes."""
        config = RenderConfig(element_width=(5, 10), element_height=(5, 10))
        renderer = PillowRenderer(config=config, rng=random.Random(2))
        canvas = renderer.get_canvas_bounds()
        rects = LayoutGenerator(config=LayoutConfig(seed=2)).place(
            canvas, renderer.get_elements()
        )
        renderer.apply_layout(rects)

    @pytest.mark.unit
    def test_unknown_control_raises_render_error(self):
        """Names without a drawer raise RenderError."""
        catalog = ClassCatalog([("Slider", 0)])
        renderer = PillowRenderer(catalog=catalog, rng=random.Random(0))
        renderer.get_elements()
        with pytest.raises(RenderError) as exc_info:
            renderer.apply_layout([_rect("Slider", 0, 0, 50, 20)])
        assert exc_info.value.element == "Slider"


class TestPngImageWriter:
    """Tests for PngImageWriter."""

    @pytest.mark.unit
    def test_writes_png(self, tmp_path):
        """Written files are readable PNGs."""
        path = tmp_path / "out.png"
        PngImageWriter().write(Image.new("RGB", (20, 10), (1, 2, 3)), path)

        with Image.open(path) as image:
            assert image.format == "PNG"
            assert image.size == (20, 10)
            assert image.getpixel((5, 5)) == (1, 2, 3)

    @pytest.mark.unit
    def test_missing_directory_raises(self, tmp_path):
        """Writing into a missing directory raises OSError."""
        with pytest.raises(OSError):
            PngImageWriter().write(Image.new("RGB", (2, 2)), tmp_path / "no" / "x.png")


class TestGetFont:
    """Tests for font loading."""

    @pytest.mark.unit
    def test_returns_font(self):
        """A usable font is always returned."""
        assert get_font(14) is not None
        assert get_font(14) is get_font(14)
