"""Tests for the sample orchestrator."""

import logging
import random
from datetime import datetime

import pytest
from PIL import Image

from src.annotation import AnnotationEncoder, read_label_file
from src.catalog import ClassCatalog, UnknownClassError
from src.layout import (
    CanvasBounds,
    DegenerateCanvasError,
    ElementSpec,
    LayoutConfig,
    LayoutGenerator,
)
from src.orchestrator import (
    DatasetLayout,
    SampleOrchestrator,
    SampleStemAllocator,
    WriteError,
    create_orchestrator,
    validate_catalog,
)
from src.render import PillowRenderer, PngImageWriter, RenderConfig, RenderError

FIXED_TIME = datetime(2026, 1, 2, 3, 4, 5)
FIXED_STEM = "Screenshot_20260102_030405"


class FailingWriter:
    def write(self, raster, path):
        raise OSError("disk full")


def _broken_label_write(path, records):
    raise OSError("read-only")


def _orchestrator(output_dir, renderer, writer=None, **kwargs):
    kwargs.setdefault("stems", SampleStemAllocator(clock=lambda: FIXED_TIME))
    kwargs.setdefault("generator", LayoutGenerator(config=LayoutConfig(seed=3)))
    return SampleOrchestrator(
        renderer=renderer,
        image_writer=writer or PngImageWriter(),
        output_dir=output_dir,
        **kwargs,
    )


def _files(directory):
    return sorted(p.name for p in directory.iterdir()) if directory.exists() else []


class TestSampleStemAllocator:
    """Tests for timestamp stem allocation."""

    @pytest.mark.unit
    def test_stem_from_timestamp(self):
        """Stem is the prefix plus the formatted timestamp."""
        allocator = SampleStemAllocator(clock=lambda: FIXED_TIME)
        assert allocator.allocate() == FIXED_STEM

    @pytest.mark.unit
    def test_same_second_gets_counter(self):
        """Repeated stems within one second get increasing suffixes."""
        allocator = SampleStemAllocator(clock=lambda: FIXED_TIME)
        stems = [allocator.allocate() for _ in range(3)]
        assert stems == [FIXED_STEM, f"{FIXED_STEM}_1", f"{FIXED_STEM}_2"]

    @pytest.mark.unit
    def test_new_second_resets_counter(self):
        """Counter restarts when the timestamp changes."""
        times = iter([FIXED_TIME, FIXED_TIME, datetime(2026, 1, 2, 3, 4, 6)])
        allocator = SampleStemAllocator(clock=lambda: next(times))
        allocator.allocate()
        allocator.allocate()
        assert allocator.allocate() == "Screenshot_20260102_030406"

    @pytest.mark.unit
    def test_skips_taken_stems(self):
        """Stems reported as taken are skipped."""
        allocator = SampleStemAllocator(clock=lambda: FIXED_TIME)
        taken = {FIXED_STEM, f"{FIXED_STEM}_1"}
        assert allocator.allocate(taken.__contains__) == f"{FIXED_STEM}_2"


class TestDatasetLayout:
    """Tests for DatasetLayout paths."""

    @pytest.mark.unit
    def test_paths(self, dataset_dir):
        """Images and labels live in sibling directories under the root."""
        layout = DatasetLayout(dataset_dir)
        assert layout.image_path("s") == dataset_dir / "images" / "s.png"
        assert layout.label_path("s") == dataset_dir / "labels" / "s.txt"
        assert layout.classes_path == dataset_dir / "classes.txt"

    @pytest.mark.integration
    def test_ensure_creates_directories(self, dataset_dir):
        """ensure creates both directories and is idempotent."""
        layout = DatasetLayout(dataset_dir)
        layout.ensure()
        layout.ensure()
        assert layout.images_dir.is_dir()
        assert layout.labels_dir.is_dir()

    @pytest.mark.integration
    def test_stem_taken(self, dataset_dir):
        """A stem is taken when either file of the pair exists."""
        layout = DatasetLayout(dataset_dir)
        layout.ensure()
        assert not layout.stem_taken("a")
        layout.label_path("a").write_text("")
        assert layout.stem_taken("a")


class TestValidateCatalog:
    """Tests for catalog validation against renderer controls."""

    @pytest.mark.unit
    def test_supported_catalog_passes(self, catalog):
        """The default catalog is drawable by the Pillow renderer."""
        validate_catalog(catalog, PillowRenderer().supported_controls())

    @pytest.mark.unit
    def test_unsupported_entry_raises(self):
        """A catalog name the renderer cannot draw is rejected."""
        catalog = ClassCatalog([("Button", 0), ("Slider", 1)])
        with pytest.raises(UnknownClassError) as exc_info:
            validate_catalog(catalog, ["Button"])
        assert exc_info.value.name == "Slider"

    @pytest.mark.unit
    def test_orchestrator_validates_at_init(self, dataset_dir):
        """Construction fails fast for an undrawable catalog."""
        catalog = ClassCatalog([("Button", 0), ("Slider", 1)])
        with pytest.raises(UnknownClassError):
            SampleOrchestrator(
                renderer=PillowRenderer(catalog=catalog),
                image_writer=PngImageWriter(),
                output_dir=dataset_dir,
                catalog=catalog,
            )

    @pytest.mark.unit
    def test_generator_catalog_validated_by_default(self, dataset_dir):
        """Without an explicit catalog, the generator's catalog is checked."""
        catalog = ClassCatalog([("Button", 0), ("Slider", 1)])
        with pytest.raises(UnknownClassError):
            SampleOrchestrator(
                renderer=PillowRenderer(catalog=catalog),
                image_writer=PngImageWriter(),
                output_dir=dataset_dir,
                generator=LayoutGenerator(catalog=catalog),
            )


class TestRunCycle:
    """Tests for SampleOrchestrator.run_cycle."""

    @pytest.mark.integration
    def test_writes_pair(self, dataset_dir, fake_renderer):
        """A successful cycle writes an image and label with a shared stem."""
        result = _orchestrator(dataset_dir, fake_renderer).run_cycle()

        assert result.ok
        assert result.error is None
        assert result.stem == FIXED_STEM
        assert result.image_path == dataset_dir / "images" / f"{FIXED_STEM}.png"
        assert result.label_path == dataset_dir / "labels" / f"{FIXED_STEM}.txt"
        with Image.open(result.image_path) as image:
            assert image.size == (400, 300)

    @pytest.mark.integration
    def test_label_matches_records(self, dataset_dir, fake_renderer):
        """The label file holds one line per placed element."""
        result = _orchestrator(dataset_dir, fake_renderer).run_cycle()

        records = read_label_file(result.label_path)
        assert len(records) == len(result.rects) == 2
        assert [r.class_index for r in records] == [0, 5]
        for parsed, encoded in zip(records, result.records):
            assert parsed.center_x == pytest.approx(encoded.center_x, abs=1e-6)
            assert parsed.width == pytest.approx(encoded.width, abs=1e-6)

    @pytest.mark.integration
    def test_renderer_receives_placed_rects(self, dataset_dir, fake_renderer):
        """The renderer draws exactly the rectangles that were labeled."""
        result = _orchestrator(dataset_dir, fake_renderer).run_cycle()
        assert fake_renderer.applied == [result.rects]

    @pytest.mark.integration
    def test_consecutive_cycles_get_distinct_stems(self, dataset_dir, fake_renderer):
        """Two cycles within one second do not overwrite each other."""
        orchestrator = _orchestrator(dataset_dir, fake_renderer)
        first = orchestrator.run_cycle()
        second = orchestrator.run_cycle()

        assert first.stem != second.stem
        assert second.stem == f"{FIXED_STEM}_1"
        assert len(_files(dataset_dir / "images")) == 2
        assert len(_files(dataset_dir / "labels")) == 2

    @pytest.mark.integration
    def test_existing_files_not_overwritten(self, dataset_dir, fake_renderer):
        """A stem already on disk from an earlier run is skipped."""
        layout = DatasetLayout(dataset_dir)
        layout.ensure()
        layout.image_path(FIXED_STEM).write_bytes(b"old")

        result = _orchestrator(dataset_dir, fake_renderer).run_cycle()

        assert result.stem == f"{FIXED_STEM}_1"
        assert layout.image_path(FIXED_STEM).read_bytes() == b"old"

    @pytest.mark.integration
    def test_occupied_set_reset_each_cycle(self, dataset_dir, fake_renderer):
        """Placements from a previous cycle do not constrain the next."""
        orchestrator = _orchestrator(dataset_dir, fake_renderer)
        orchestrator.run_cycle()
        second = orchestrator.run_cycle()
        assert list(orchestrator.generator.occupied) == second.rects

    @pytest.mark.integration
    def test_classes_file_written(self, dataset_dir, fake_renderer, catalog):
        """classes.txt lists one name per class index."""
        _orchestrator(dataset_dir, fake_renderer, catalog=catalog).run_cycle()

        lines = (dataset_dir / "classes.txt").read_text().splitlines()
        assert len(lines) == catalog.class_count
        assert lines[0] == "Button"
        assert lines[8] == "radio"

    @pytest.mark.integration
    def test_classes_file_uses_generator_catalog(self, dataset_dir, fake_renderer):
        """classes.txt follows the generator's catalog when none is given."""
        catalog = ClassCatalog([("Button", 0), ("label", 1)])
        generator = LayoutGenerator(catalog=catalog, config=LayoutConfig(seed=3))

        _orchestrator(dataset_dir, fake_renderer, generator=generator).run_cycle()

        lines = (dataset_dir / "classes.txt").read_text().splitlines()
        assert lines == ["Button", "label"]

    @pytest.mark.integration
    def test_fallbacks_reported(self, dataset_dir, fake_renderer):
        """Degraded placements are surfaced on the result."""
        fake_renderer.elements = [
            ElementSpec(name="Button", width=200, height=150),
            ElementSpec(name="CheckBox", width=200, height=150),
        ]
        result = _orchestrator(dataset_dir, fake_renderer).run_cycle()

        assert result.ok
        assert len(result.fallbacks) == 1
        assert result.fallbacks[0].name == "CheckBox"
        assert result.rects[1].fallback

    @pytest.mark.unit
    def test_degenerate_canvas_skips_cycle(self, dataset_dir, fake_renderer, caplog):
        """A zero-sized canvas ends the cycle without output."""
        fake_renderer.canvas = CanvasBounds(0, 300)
        with caplog.at_level(logging.WARNING, logger="src.orchestrator.lib"):
            result = _orchestrator(dataset_dir, fake_renderer).run_cycle()

        assert not result.ok
        assert isinstance(result.error, DegenerateCanvasError)
        assert fake_renderer.applied == []
        assert not dataset_dir.exists()
        assert "Skipping cycle" in caplog.text

    @pytest.mark.unit
    def test_renderer_query_failure(self, dataset_dir, fake_renderer):
        """Failures while describing the canvas are reported, not raised."""
        fake_renderer.fail = "bounds"
        result = _orchestrator(dataset_dir, fake_renderer).run_cycle()

        assert isinstance(result.error, RenderError)
        assert "window closed" in str(result.error)
        assert not dataset_dir.exists()

    @pytest.mark.unit
    def test_malformed_bounds_reported(self, dataset_dir, fake_renderer):
        """Bounds that are not a CanvasBounds end the cycle as a RenderError."""
        fake_renderer.canvas = None
        result = _orchestrator(dataset_dir, fake_renderer).run_cycle()

        assert isinstance(result.error, RenderError)
        assert "Invalid canvas bounds" in str(result.error)
        assert fake_renderer.applied == []
        assert not dataset_dir.exists()

    @pytest.mark.unit
    def test_malformed_elements_reported(self, dataset_dir, fake_renderer):
        """Elements that are not ElementSpecs end the cycle as a RenderError."""
        fake_renderer.elements = [{"name": "Button", "width": 80, "height": 40}]
        result = _orchestrator(dataset_dir, fake_renderer).run_cycle()

        assert isinstance(result.error, RenderError)
        assert "Invalid elements" in str(result.error)
        assert fake_renderer.applied == []
        assert not dataset_dir.exists()

    @pytest.mark.unit
    def test_render_failure(self, dataset_dir, fake_renderer):
        """A RenderError from apply_layout is kept as-is."""
        fake_renderer.fail = "layout"
        result = _orchestrator(dataset_dir, fake_renderer).run_cycle()

        assert isinstance(result.error, RenderError)
        assert result.error.element == "Button"
        assert len(result.rects) == 2
        assert result.image_path is None
        assert not dataset_dir.exists()

    @pytest.mark.unit
    def test_render_failure_wrapped(self, dataset_dir, fake_renderer):
        """Other exceptions from apply_layout become RenderError."""
        fake_renderer.fail = "layout-generic"
        result = _orchestrator(dataset_dir, fake_renderer).run_cycle()
        assert isinstance(result.error, RenderError)
        assert "bad geometry" in str(result.error)

    @pytest.mark.integration
    def test_image_write_failure(self, dataset_dir, fake_renderer, caplog):
        """A failed image write leaves no unpaired label behind."""
        orchestrator = _orchestrator(dataset_dir, fake_renderer, FailingWriter())
        with caplog.at_level(logging.WARNING, logger="src.orchestrator.lib"):
            result = orchestrator.run_cycle()

        assert not result.ok
        assert isinstance(result.error, WriteError)
        assert result.error.path == dataset_dir / "images" / f"{FIXED_STEM}.png"
        assert _files(dataset_dir / "labels") == []
        assert "Removed unpaired file" in caplog.text

    @pytest.mark.integration
    def test_label_write_failure(self, dataset_dir, fake_renderer, monkeypatch):
        """A failed label write removes the already written image."""
        monkeypatch.setattr(
            "src.orchestrator.lib.write_label_file", _broken_label_write
        )
        result = _orchestrator(dataset_dir, fake_renderer).run_cycle()

        assert isinstance(result.error, WriteError)
        assert result.error.path.parent == dataset_dir / "labels"
        assert _files(dataset_dir / "images") == []

    @pytest.mark.integration
    def test_both_writes_fail(self, dataset_dir, fake_renderer, monkeypatch):
        """Both write failures are reported when both writes fail."""
        monkeypatch.setattr(
            "src.orchestrator.lib.write_label_file", _broken_label_write
        )
        orchestrator = _orchestrator(dataset_dir, fake_renderer, FailingWriter())
        result = orchestrator.run_cycle()

        assert len(result.errors) == 2
        assert all(isinstance(e, WriteError) for e in result.errors)

    @pytest.mark.unit
    def test_unknown_element_ends_cycle(self, dataset_dir, fake_renderer):
        """An uncatalogued element ends the cycle without output."""
        fake_renderer.elements = [ElementSpec(name="Slider", width=10, height=10)]
        result = _orchestrator(dataset_dir, fake_renderer).run_cycle()

        assert isinstance(result.error, UnknownClassError)
        assert fake_renderer.applied == []
        assert not dataset_dir.exists()

    @pytest.mark.integration
    def test_off_canvas_policy_applied(self, dataset_dir, fake_renderer):
        """The encoder's policy decides what is written for oversize boxes."""
        fake_renderer.elements = [ElementSpec(name="Button", width=500, height=40)]
        orchestrator = _orchestrator(
            dataset_dir, fake_renderer, encoder=AnnotationEncoder("reject")
        )

        result = orchestrator.run_cycle()

        assert result.ok
        assert result.records == []
        assert result.label_path.read_text() == ""


class TestPillowPipeline:
    """End-to-end cycles with the Pillow renderer."""

    @pytest.mark.integration
    def test_full_cycle(self, dataset_dir, catalog):
        """Every catalog control is drawn, labeled, and kept inside the canvas."""
        renderer = PillowRenderer(
            config=RenderConfig(width=800, height=600), rng=random.Random(5)
        )
        orchestrator = SampleOrchestrator(
            renderer=renderer,
            image_writer=PngImageWriter(),
            output_dir=dataset_dir,
            generator=LayoutGenerator(config=LayoutConfig(seed=5)),
            stems=SampleStemAllocator(clock=lambda: FIXED_TIME),
            catalog=catalog,
        )

        result = orchestrator.run_cycle()

        assert result.ok
        records = read_label_file(result.label_path)
        assert len(records) == len(catalog)
        for record in records:
            assert 0.0 <= record.center_x <= 1.0
            assert 0.0 <= record.center_y <= 1.0
            assert 0.0 < record.width <= 1.0
            assert 0.0 < record.height <= 1.0


class TestCreateOrchestrator:
    """Tests for the Pillow pipeline factory."""

    @pytest.mark.integration
    def test_seed_reproduces_cycle(self, tmp_path):
        """The same seed yields identical layouts and labels."""
        results = [
            create_orchestrator(
                tmp_path / name,
                seed=21,
                stems=SampleStemAllocator(clock=lambda: FIXED_TIME),
            ).run_cycle()
            for name in ("a", "b")
        ]

        assert results[0].ok and results[1].ok
        assert results[0].rects == results[1].rects
        assert results[0].label_path.read_text() == results[1].label_path.read_text()

    @pytest.mark.integration
    def test_placement_does_not_replay_styling_stream(self, dataset_dir):
        """Placement continues the styling random stream instead of restarting it."""
        orchestrator = create_orchestrator(
            dataset_dir,
            seed=21,
            stems=SampleStemAllocator(clock=lambda: FIXED_TIME),
        )
        result = orchestrator.run_cycle()

        renderer = PillowRenderer(rng=random.Random(21))
        canvas = renderer.get_canvas_bounds()
        restarted = LayoutGenerator(config=LayoutConfig(seed=21)).place(
            canvas, renderer.get_elements()
        )

        assert [(r.width, r.height) for r in result.rects] == [
            (r.width, r.height) for r in restarted
        ]
        assert [(r.x, r.y) for r in result.rects] != [(r.x, r.y) for r in restarted]

    @pytest.mark.integration
    def test_layout_config_seed_ignored(self, dataset_dir):
        """The shared seed wins over a seed in the layout config."""
        first = create_orchestrator(
            dataset_dir, seed=4, layout_config=LayoutConfig(seed=1)
        )
        second = create_orchestrator(
            dataset_dir, seed=4, layout_config=LayoutConfig(seed=2)
        )
        assert first.generator.config.seed != second.generator.config.seed
        assert first.run_cycle().rects == second.run_cycle().rects

    @pytest.mark.unit
    def test_unknown_policy_rejected(self, dataset_dir):
        """An unknown off-canvas policy is a configuration error."""
        with pytest.raises(ValueError):
            create_orchestrator(dataset_dir, policy="wrap")
