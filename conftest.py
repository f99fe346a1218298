"""Root pytest configuration and fixtures.

This module provides:
- Environment setup (loads .env)
- Shared catalog, random source and dataset fixtures
- A scriptable in-memory renderer for orchestrator tests
"""

from __future__ import annotations

import random
from pathlib import Path

import pytest
from dotenv import load_dotenv
from PIL import Image

from src.catalog import DEFAULT_CATALOG, ClassCatalog
from src.layout import CanvasBounds, ElementSpec, PlacedRect
from src.render import RenderError

# Load environment variables from .env file
load_dotenv()


# =============================================================================
# Configuration Constants
# =============================================================================

TEST_SEED = 1234
TEST_CANVAS = CanvasBounds(400, 300)


# =============================================================================
# Fake Collaborators
# =============================================================================


class FakeRenderer:
    """In-memory Renderer with scriptable failures.

    Attributes:
        canvas: Bounds returned by get_canvas_bounds.
        elements: Elements returned by get_elements.
        fail: None, "bounds" (querying fails), "layout" (RenderError while
            drawing) or "layout-generic" (ValueError while drawing).
        applied: Rect lists passed to apply_layout, one per call.
    """

    def __init__(
        self,
        canvas: CanvasBounds = TEST_CANVAS,
        elements: list[ElementSpec] | None = None,
    ):
        self.canvas = canvas
        self.elements = elements or [
            ElementSpec(name="Button", width=80, height=40),
            ElementSpec(name="label", width=60, height=20),
        ]
        self.fail: str | None = None
        self.applied: list[list[PlacedRect]] = []

    def get_canvas_bounds(self) -> CanvasBounds:
        if self.fail == "bounds":
            raise RuntimeError("window closed")
        return self.canvas

    def get_elements(self) -> list[ElementSpec]:
        return list(self.elements)

    def apply_layout(self, rects) -> Image.Image:
        if self.fail == "layout":
            raise RenderError("cannot draw", element="Button")
        if self.fail == "layout-generic":
            raise ValueError("bad geometry")
        self.applied.append(list(rects))
        return Image.new("RGB", (int(self.canvas.width), int(self.canvas.height)))


# =============================================================================
# Common Test Fixtures
# =============================================================================


@pytest.fixture
def catalog() -> ClassCatalog:
    """The default control catalog."""
    return DEFAULT_CATALOG


@pytest.fixture
def seeded_rng() -> random.Random:
    """A random source with a fixed seed."""
    return random.Random(TEST_SEED)


@pytest.fixture
def dataset_dir(tmp_path: Path) -> Path:
    """A not-yet-created dataset root inside the test's temp directory."""
    return tmp_path / "dataset"


@pytest.fixture
def fake_renderer() -> FakeRenderer:
    """A FakeRenderer on a 400x300 canvas with two small elements."""
    return FakeRenderer()
