"""Sample generation cycle.

One cycle asks the renderer for the canvas and its elements, places them,
rasterizes the layout, encodes the annotations and writes an image/label
pair that shares a timestamp-derived stem:

    <root>/images/Screenshot_<yyyyMMdd_HHmmss>.png
    <root>/labels/Screenshot_<yyyyMMdd_HHmmss>.txt

A cycle either produces both files or logs the failure and leaves no
output behind. Failures never escape `run_cycle`. Catalog wiring errors are
caught at construction when the renderer reports its supported controls.
"""

import logging
import random
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from src.annotation import (
    AnnotationEncoder,
    AnnotationRecord,
    OffCanvasPolicy,
    write_class_names,
    write_label_file,
)
from src.catalog import DEFAULT_CATALOG, ClassCatalog, UnknownClassError
from src.layout import (
    DegenerateCanvasError,
    LayoutConfig,
    LayoutGenerator,
    PlacedRect,
    PlacementFallback,
)
from src.render import (
    ImageWriter,
    PillowRenderer,
    PngImageWriter,
    RenderConfig,
    Renderer,
    RenderError,
)

logger = logging.getLogger(__name__)

STEM_PREFIX = "Screenshot_"
STEM_TIME_FORMAT = "%Y%m%d_%H%M%S"
IMAGE_SUFFIX = ".png"
LABEL_SUFFIX = ".txt"
CLASSES_FILE = "classes.txt"


class WriteError(OSError):
    """Writing an image or label file failed."""

    def __init__(self, message: str, path: Path):
        super().__init__(message)
        self.path = path


# =============================================================================
# Dataset Layout
# =============================================================================


@dataclass
class DatasetLayout:
    """Directory layout of a generated dataset.

    Attributes:
        root: Dataset root directory.
        images_dir: Directory receiving PNG images.
        labels_dir: Directory receiving label files.
    """

    root: Path
    images_dir: Path = field(init=False)
    labels_dir: Path = field(init=False)

    def __post_init__(self) -> None:
        self.root = Path(self.root)
        self.images_dir = self.root / "images"
        self.labels_dir = self.root / "labels"

    def ensure(self) -> None:
        """Create the image and label directories if absent."""
        self.images_dir.mkdir(parents=True, exist_ok=True)
        self.labels_dir.mkdir(parents=True, exist_ok=True)

    def image_path(self, stem: str) -> Path:
        return self.images_dir / f"{stem}{IMAGE_SUFFIX}"

    def label_path(self, stem: str) -> Path:
        return self.labels_dir / f"{stem}{LABEL_SUFFIX}"

    def stem_taken(self, stem: str) -> bool:
        """True if either file of the pair already exists."""
        return self.image_path(stem).exists() or self.label_path(stem).exists()

    @property
    def classes_path(self) -> Path:
        return self.root / CLASSES_FILE


# =============================================================================
# Stem Allocation
# =============================================================================


class SampleStemAllocator:
    """Issues unique, timestamp-derived file stems.

    The stem has one-second resolution. When a stem is already taken,
    because a previous cycle ran within the same second or a file with that
    name exists, a monotonic counter suffix is appended: ``_1``, ``_2``, ...

    Example:
        >>> allocator = SampleStemAllocator(clock=lambda: datetime(2026, 1, 2, 3, 4, 5))
        >>> allocator.allocate()
        'Screenshot_20260102_030405'
        >>> allocator.allocate()
        'Screenshot_20260102_030405_1'
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = datetime.now,
        prefix: str = STEM_PREFIX,
    ):
        self._clock = clock
        self._prefix = prefix
        self._base: str | None = None
        self._counter = 0

    def allocate(self, taken: Callable[[str], bool] | None = None) -> str:
        """Return the next free stem.

        Args:
            taken: Predicate reporting stems already present on disk.
        """
        base = f"{self._prefix}{self._clock().strftime(STEM_TIME_FORMAT)}"
        if base != self._base:
            self._base = base
            self._counter = 0
            candidate = base
        else:
            self._counter += 1
            candidate = f"{base}_{self._counter}"

        while taken is not None and taken(candidate):
            self._counter += 1
            candidate = f"{base}_{self._counter}"

        return candidate


# =============================================================================
# Cycle
# =============================================================================


@dataclass
class CycleResult:
    """Outcome of one generation cycle.

    Attributes:
        stem: Shared file stem, None if the cycle ended before writing.
        image_path: Written image, None unless the pair was written.
        label_path: Written label file, None unless the pair was written.
        rects: Placed rectangles.
        records: Encoded annotations.
        fallbacks: Degraded placements in this cycle.
        errors: Failures that ended the cycle early.
    """

    stem: str | None = None
    image_path: Path | None = None
    label_path: Path | None = None
    rects: list[PlacedRect] = field(default_factory=list)
    records: list[AnnotationRecord] = field(default_factory=list)
    fallbacks: list[PlacementFallback] = field(default_factory=list)
    errors: list[Exception] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when both files of the pair were written."""
        return not self.errors and self.image_path is not None

    @property
    def error(self) -> Exception | None:
        """First failure, if any."""
        return self.errors[0] if self.errors else None


def validate_catalog(catalog: ClassCatalog, names: Iterable[str]) -> None:
    """Check every catalog entry is known to the renderer.

    Raises:
        UnknownClassError: For the first catalog name missing from names.
    """
    known = set(names)
    for entry in catalog.entries():
        if entry.name not in known:
            raise UnknownClassError(entry.name)


class SampleOrchestrator:
    """Drives place, render, encode and write for one sample per cycle.

    Example:
        >>> orchestrator = SampleOrchestrator(
        ...     renderer=PillowRenderer(),
        ...     image_writer=PngImageWriter(),
        ...     output_dir=Path("dataset"),
        ... )
        >>> result = orchestrator.run_cycle()
        >>> result.ok
        True
    """

    def __init__(
        self,
        renderer: Renderer,
        image_writer: ImageWriter,
        output_dir: Path,
        generator: LayoutGenerator | None = None,
        encoder: AnnotationEncoder | None = None,
        stems: SampleStemAllocator | None = None,
        catalog: ClassCatalog | None = None,
    ):
        """Initialize orchestrator.

        Args:
            renderer: Canvas and element source, and rasterizer.
            image_writer: Persists rasters.
            output_dir: Dataset root.
            generator: Layout generator (owns the cycle's occupied set).
            encoder: Annotation encoder.
            stems: File stem allocator.
            catalog: Catalog written to classes.txt (default: the
                generator's catalog). When the renderer reports its
                supported controls, the catalog is checked against them here.

        Raises:
            UnknownClassError: If the renderer cannot draw a catalog entry.
        """
        self._renderer = renderer
        self._writer = image_writer
        self._dataset = DatasetLayout(output_dir)
        self._generator = generator or LayoutGenerator(catalog=catalog)
        self._encoder = encoder or AnnotationEncoder()
        self._stems = stems or SampleStemAllocator()
        self._catalog = catalog or self._generator.catalog
        self._classes_written = False

        supported = getattr(renderer, "supported_controls", None)
        if callable(supported):
            validate_catalog(self._catalog, supported())

    @property
    def dataset(self) -> DatasetLayout:
        return self._dataset

    @property
    def generator(self) -> LayoutGenerator:
        return self._generator

    def run_cycle(self) -> CycleResult:
        """Generate one labeled sample.

        Returns:
            CycleResult describing what was written or why nothing was.
        """
        result = CycleResult()

        try:
            canvas = self._renderer.get_canvas_bounds()
            elements = self._renderer.get_elements()
        except Exception as e:
            return self._abort(result, RenderError(f"Renderer unavailable: {e}"))

        try:
            degenerate = canvas.is_degenerate
        except Exception as e:
            return self._abort(result, RenderError(f"Invalid canvas bounds: {e}"))

        if degenerate:
            error = DegenerateCanvasError(
                f"Canvas {canvas.width}x{canvas.height} is degenerate"
            )
            logger.warning(f"Skipping cycle: {error}")
            result.errors.append(error)
            return result

        try:
            result.rects = self._generator.place(canvas, elements)
        except UnknownClassError as e:
            return self._abort(result, e)
        except Exception as e:
            return self._abort(result, RenderError(f"Invalid elements: {e}"))
        result.fallbacks = list(self._generator.fallbacks)

        try:
            raster = self._renderer.apply_layout(result.rects)
        except Exception as e:
            error = e if isinstance(e, RenderError) else RenderError(str(e))
            return self._abort(result, error)

        result.records = self._encoder.encode(result.rects, canvas)

        try:
            self._prepare_dataset()
        except OSError as e:
            error = WriteError(
                f"Cannot create dataset directories: {e}", self._dataset.root
            )
            return self._abort(result, error)

        stem = self._stems.allocate(self._dataset.stem_taken)
        image_path = self._dataset.image_path(stem)
        label_path = self._dataset.label_path(stem)
        result.stem = stem

        written: list[Path] = []
        try:
            self._writer.write(raster, image_path)
            written.append(image_path)
        except Exception as e:
            result.errors.append(WriteError(f"Image write failed: {e}", image_path))
            logger.error(f"Failed to write image {image_path}: {e}")

        try:
            write_label_file(label_path, result.records)
            written.append(label_path)
        except OSError as e:
            result.errors.append(WriteError(f"Label write failed: {e}", label_path))
            logger.error(f"Failed to write labels {label_path}: {e}")

        if result.errors:
            self._discard(written)
            return result

        result.image_path = image_path
        result.label_path = label_path
        logger.info(f"Screenshot saved: {image_path}")
        logger.info(f"Bounding boxes saved: {label_path}")
        return result

    def _prepare_dataset(self) -> None:
        self._dataset.ensure()
        if not self._classes_written:
            write_class_names(self._dataset.classes_path, self._catalog.class_names())
            self._classes_written = True

    def _abort(self, result: CycleResult, error: Exception) -> CycleResult:
        logger.error(f"Cycle aborted: {error}")
        result.errors.append(error)
        return result

    def _discard(self, paths: list[Path]) -> None:
        """Remove the half of a pair whose partner failed to write."""
        for path in paths:
            try:
                path.unlink(missing_ok=True)
                logger.warning(f"Removed unpaired file {path}")
            except OSError as e:
                logger.error(f"Could not remove unpaired file {path}: {e}")


def create_orchestrator(
    output_dir: Path,
    *,
    seed: int | None = None,
    layout_config: LayoutConfig | None = None,
    render_config: RenderConfig | None = None,
    policy: OffCanvasPolicy | str = OffCanvasPolicy.CLIP,
    catalog: ClassCatalog = DEFAULT_CATALOG,
    **kwargs,
) -> SampleOrchestrator:
    """Wire the Pillow pipeline into an orchestrator.

    Styling and placement draw from one shared random source seeded with
    `seed`, so a seed reproduces the whole dataset.

    Args:
        output_dir: Dataset root.
        seed: Seed for the shared random source (None=system entropy).
        layout_config: Placement configuration. Its seed is ignored.
        render_config: Canvas size and styling ranges.
        policy: Off-canvas annotation policy.
        catalog: Controls to draw and label.
        **kwargs: Passed to SampleOrchestrator (e.g. stems).

    Returns:
        Configured SampleOrchestrator.

    Raises:
        ValueError: If the policy is unknown.
        UnknownClassError: If the renderer cannot draw a catalog entry.
    """
    rng = random.Random(seed)
    return SampleOrchestrator(
        renderer=PillowRenderer(catalog=catalog, config=render_config, rng=rng),
        image_writer=PngImageWriter(),
        output_dir=output_dir,
        generator=LayoutGenerator(catalog=catalog, config=layout_config, rng=rng),
        encoder=AnnotationEncoder(policy),
        catalog=catalog,
        **kwargs,
    )


__all__ = [
    "CycleResult",
    "DatasetLayout",
    "SampleOrchestrator",
    "SampleStemAllocator",
    "WriteError",
    "create_orchestrator",
    "validate_catalog",
    "STEM_PREFIX",
    "STEM_TIME_FORMAT",
]
