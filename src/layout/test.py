"""Unit tests for the layout module."""

import itertools
import logging
import math
import random

import pytest

from src.catalog import DEFAULT_CATALOG, ClassCatalog, UnknownClassError
from src.layout import (
    CanvasBounds,
    DegenerateCanvasError,
    ElementSpec,
    LayoutConfig,
    LayoutGenerator,
    PlacedRect,
    rects_intersect,
)


def _rect(x, y, w, h, fallback=False):
    return PlacedRect(x=x, y=y, width=w, height=h, class_index=0, fallback=fallback)


def _elements(catalog, width=60.0, height=30.0):
    return [ElementSpec(name=n, width=width, height=height) for n in catalog.names()]


class TestRectsIntersect:
    """Tests for the closed-interval intersection predicate."""

    @pytest.mark.unit
    def test_disjoint(self):
        """Separated rectangles do not intersect."""
        assert not rects_intersect(_rect(0, 0, 10, 10), _rect(20, 0, 10, 10))

    @pytest.mark.unit
    def test_overlap(self):
        """Overlapping rectangles intersect."""
        assert rects_intersect(_rect(0, 0, 10, 10), _rect(5, 5, 10, 10))

    @pytest.mark.unit
    def test_shared_edge_counts(self):
        """Touching edges count as a collision."""
        assert rects_intersect(_rect(0, 0, 10, 10), _rect(10, 0, 10, 10))
        assert rects_intersect(_rect(0, 0, 10, 10), _rect(0, 10, 10, 10))

    @pytest.mark.unit
    def test_containment(self):
        """A rect inside another intersects it."""
        assert rects_intersect(_rect(0, 0, 100, 100), _rect(40, 40, 5, 5))

    @pytest.mark.unit
    def test_symmetric(self):
        """Argument order does not matter."""
        a, b = _rect(0, 0, 10, 10), _rect(10.5, 3, 4, 4)
        assert rects_intersect(a, b) == rects_intersect(b, a)


class TestCanvasBounds:
    """Tests for canvas validation."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "width,height",
        [(0, 300), (400, 0), (-1, 300), (math.inf, 300), (400, math.nan)],
    )
    def test_degenerate(self, width, height):
        """Zero, negative and non-finite bounds are degenerate."""
        bounds = CanvasBounds(width, height)
        assert bounds.is_degenerate
        with pytest.raises(DegenerateCanvasError):
            bounds.validate()

    @pytest.mark.unit
    def test_valid(self):
        """Positive finite bounds validate."""
        bounds = CanvasBounds(400, 300)
        assert not bounds.is_degenerate
        bounds.validate()


class TestLayoutConfig:
    """Tests for LayoutConfig validation."""

    @pytest.mark.unit
    def test_defaults(self):
        """Defaults match the documented attempt budget and margin."""
        config = LayoutConfig()
        assert config.max_attempts == 1000
        assert config.fallback_margin == 50.0

    @pytest.mark.unit
    def test_rejects_zero_attempts(self):
        """At least one attempt is required."""
        with pytest.raises(ValueError, match="max_attempts"):
            LayoutConfig(max_attempts=0)

    @pytest.mark.unit
    @pytest.mark.parametrize("margin", [-1.0, math.inf, math.nan])
    def test_rejects_unusable_fallback_margin(self, margin):
        """The fallback margin must be finite and non-negative."""
        with pytest.raises(ValueError, match="fallback_margin"):
            LayoutConfig(fallback_margin=margin)

    @pytest.mark.unit
    def test_zero_fallback_margin_allowed(self):
        """A zero margin parks fallbacks at the origin."""
        assert LayoutConfig(fallback_margin=0.0).fallback_margin == 0.0


class TestLayoutGenerator:
    """Tests for LayoutGenerator.place."""

    @pytest.mark.unit
    def test_single_element_within_canvas(self):
        """A small element lands fully inside the canvas."""
        generator = LayoutGenerator(config=LayoutConfig(seed=1))
        [rect] = generator.place(
            CanvasBounds(400, 300), [ElementSpec(name="Button", width=80, height=40)]
        )
        assert not rect.fallback
        assert 0 <= rect.x <= 320
        assert 0 <= rect.y <= 260
        assert (rect.width, rect.height) == (80, 40)
        assert rect.class_index == 0
        assert rect.name == "Button"

    @pytest.mark.unit
    @pytest.mark.parametrize("seed", range(20))
    def test_random_placements_never_intersect(self, seed):
        """Pairs of non-fallback rects are pairwise disjoint."""
        generator = LayoutGenerator(config=LayoutConfig(seed=seed))
        rects = generator.place(CanvasBounds(800, 600), _elements(DEFAULT_CATALOG))

        assert len(rects) == len(DEFAULT_CATALOG)
        placed = [r for r in rects if not r.fallback]
        for a, b in itertools.combinations(placed, 2):
            assert not rects_intersect(a, b)

    @pytest.mark.unit
    def test_random_placement_avoids_fallbacks(self):
        """Random placements also avoid earlier fallback rects."""
        generator = LayoutGenerator(config=LayoutConfig(seed=3))
        rects = generator.place(CanvasBounds(300, 300), _elements(DEFAULT_CATALOG))
        for i, rect in enumerate(rects):
            if rect.fallback:
                continue
            assert not any(rects_intersect(rect, earlier) for earlier in rects[:i])

    @pytest.mark.unit
    def test_preserves_input_order(self):
        """Output order follows the element order."""
        catalog = ClassCatalog([("b", 1), ("a", 0), ("c", 2)])
        generator = LayoutGenerator(catalog=catalog, config=LayoutConfig(seed=0))
        rects = generator.place(CanvasBounds(500, 500), _elements(catalog, 20, 20))
        assert [r.name for r in rects] == ["b", "a", "c"]
        assert [r.class_index for r in rects] == [1, 0, 2]

    @pytest.mark.unit
    def test_seeded_runs_are_identical(self, catalog):
        """Same seed and inputs reproduce the layout exactly."""
        canvas = CanvasBounds(640, 480)
        elements = _elements(catalog)
        first = LayoutGenerator(config=LayoutConfig(seed=42)).place(canvas, elements)
        second = LayoutGenerator(config=LayoutConfig(seed=42)).place(canvas, elements)
        assert first == second

    @pytest.mark.unit
    def test_injected_rng_takes_precedence(self):
        """An explicit Random instance overrides the config seed."""
        canvas = CanvasBounds(640, 480)
        elements = _elements(DEFAULT_CATALOG)
        a = LayoutGenerator(config=LayoutConfig(seed=1), rng=random.Random(9))
        b = LayoutGenerator(config=LayoutConfig(seed=2), rng=random.Random(9))
        assert a.place(canvas, elements) == b.place(canvas, elements)

    @pytest.mark.unit
    def test_oversized_element_falls_back_without_drawing(self, seeded_rng):
        """An element bigger than the canvas skips the random search."""
        state = seeded_rng.getstate()
        generator = LayoutGenerator(rng=seeded_rng)

        rects = generator.place(
            CanvasBounds(400, 300), [ElementSpec(name="Button", width=500, height=500)]
        )

        assert len(rects) == 1
        assert rects[0].fallback
        assert (rects[0].x, rects[0].y) == (50.0, 50.0)
        assert seeded_rng.getstate() == state
        assert generator.fallbacks[0].reason == "no_room"
        assert generator.fallbacks[0].attempts == 0

    @pytest.mark.unit
    def test_too_tall_only_falls_back(self):
        """Exceeding one dimension is enough to fall back."""
        generator = LayoutGenerator(config=LayoutConfig(seed=0))
        [rect] = generator.place(
            CanvasBounds(400, 300), [ElementSpec(name="menu", width=10, height=301)]
        )
        assert rect.fallback

    @pytest.mark.unit
    def test_exact_fit_is_placed_at_origin(self):
        """An element exactly the canvas size has a zero-width range."""
        generator = LayoutGenerator(config=LayoutConfig(seed=0))
        [rect] = generator.place(
            CanvasBounds(400, 300), [ElementSpec(name="menu", width=400, height=300)]
        )
        assert not rect.fallback
        assert (rect.x, rect.y) == (0.0, 0.0)

    @pytest.mark.unit
    def test_exhausted_search_records_fallback(self):
        """Two half-canvas elements always collide; the second falls back."""
        generator = LayoutGenerator(config=LayoutConfig(seed=11))
        elements = [
            ElementSpec(name="Button", width=200, height=150),
            ElementSpec(name="CheckBox", width=200, height=150),
        ]

        first, second = generator.place(CanvasBounds(400, 300), elements)

        assert not first.fallback
        assert second.fallback
        assert rects_intersect(first, second)
        assert generator.occupied == (first, second)
        assert generator.fallbacks[0].name == "CheckBox"
        assert generator.fallbacks[0].attempts == 1000
        assert generator.fallbacks[0].reason == "exhausted"

    @pytest.mark.unit
    def test_fallback_rect_blocks_later_elements(self):
        """Elements after a fallback must avoid the fallback rect too."""
        generator = LayoutGenerator(config=LayoutConfig(seed=11))
        elements = [
            ElementSpec(name="Button", width=200, height=150),
            ElementSpec(name="CheckBox", width=200, height=150),
            ElementSpec(name="icon", width=10, height=10),
        ]

        _, fallback, small = generator.place(CanvasBounds(400, 300), elements)

        assert fallback.fallback
        assert fallback in generator.occupied
        if not small.fallback:
            assert not rects_intersect(small, fallback)

    @pytest.mark.unit
    def test_small_attempt_budget(self):
        """The attempt budget is configurable."""
        generator = LayoutGenerator(config=LayoutConfig(max_attempts=3, seed=0))
        generator.place(
            CanvasBounds(400, 300),
            [
                ElementSpec(name="Button", width=200, height=150),
                ElementSpec(name="CheckBox", width=200, height=150),
            ],
        )
        assert generator.fallbacks[0].attempts == 3

    @pytest.mark.unit
    def test_custom_fallback_margin(self):
        """Fallback position follows the configured margin."""
        generator = LayoutGenerator(config=LayoutConfig(fallback_margin=5.0))
        [rect] = generator.place(
            CanvasBounds(100, 100), [ElementSpec(name="menu", width=200, height=10)]
        )
        assert (rect.x, rect.y) == (5.0, 5.0)

    @pytest.mark.unit
    def test_fallback_logs_warning(self, caplog):
        """Fallbacks emit a warning naming the element."""
        generator = LayoutGenerator()
        with caplog.at_level(logging.WARNING, logger="src.layout.lib"):
            generator.place(
                CanvasBounds(100, 100), [ElementSpec(name="menu", width=200, height=10)]
            )
        assert "menu" in caplog.text

    @pytest.mark.unit
    def test_state_cleared_between_cycles(self):
        """Each place call starts from an empty occupied set."""
        generator = LayoutGenerator(config=LayoutConfig(seed=4))
        canvas = CanvasBounds(400, 300)
        generator.place(canvas, [ElementSpec(name="Button", width=500, height=10)])
        assert len(generator.fallbacks) == 1

        rects = generator.place(canvas, [ElementSpec(name="Button", width=10, height=10)])
        assert generator.occupied == tuple(rects)
        assert generator.fallbacks == ()

    @pytest.mark.unit
    def test_degenerate_canvas_raises(self):
        """Degenerate bounds are rejected before placement."""
        generator = LayoutGenerator()
        with pytest.raises(DegenerateCanvasError):
            generator.place(CanvasBounds(0, 300), _elements(DEFAULT_CATALOG))

    @pytest.mark.unit
    def test_unknown_element_raises(self):
        """Elements missing from the catalog are a wiring error."""
        generator = LayoutGenerator()
        with pytest.raises(UnknownClassError):
            generator.place(
                CanvasBounds(400, 300), [ElementSpec(name="Slider", width=10, height=10)]
            )

    @pytest.mark.unit
    def test_empty_elements(self):
        """No elements yields no rects."""
        assert LayoutGenerator().place(CanvasBounds(10, 10), []) == []


class TestElementSpec:
    """Tests for ElementSpec validation."""

    @pytest.mark.unit
    def test_negative_size_rejected(self):
        """Intrinsic sizes must be non-negative."""
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            ElementSpec(name="Button", width=-1, height=10)
