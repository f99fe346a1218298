"""ui-label-synth: synthetic UI screenshots with bounding-box labels."""

from src.catalog import DEFAULT_CATALOG, ClassCatalog, UnknownClassError
from src.layout import CanvasBounds, ElementSpec, LayoutGenerator, PlacedRect
from src.annotation import AnnotationEncoder, AnnotationRecord, OffCanvasPolicy
from src.render import PillowRenderer, PngImageWriter, RenderError
from src.orchestrator import SampleOrchestrator, WriteError
from src.schedule import SampleScheduler

__all__ = [
    # Catalog
    "ClassCatalog",
    "DEFAULT_CATALOG",
    "UnknownClassError",
    # Layout
    "CanvasBounds",
    "ElementSpec",
    "LayoutGenerator",
    "PlacedRect",
    # Annotation
    "AnnotationEncoder",
    "AnnotationRecord",
    "OffCanvasPolicy",
    # Render
    "PillowRenderer",
    "PngImageWriter",
    "RenderError",
    # Orchestration
    "SampleOrchestrator",
    "SampleScheduler",
    "WriteError",
]
