"""YOLO-style annotation encoding and label file I/O.

Converts placed rectangles into normalized bounding boxes and serializes
them one per line as ``class cx cy w h``, each float with six decimals.

Rectangles that extend past the canvas (only fallback placements can) are
handled by an explicit OffCanvasPolicy:

- CLIP (default): intersect with the canvas before normalizing, so every
  value stays in [0, 1]. Boxes with no visible area are dropped.
- PASSTHROUGH: normalize the raw rectangle, values may leave [0, 1].
- REJECT: drop any rectangle not fully inside the canvas.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from src.layout import CanvasBounds, PlacedRect

logger = logging.getLogger(__name__)


class OffCanvasPolicy(str, Enum):
    """How boxes reaching outside the canvas are annotated."""

    CLIP = "clip"
    PASSTHROUGH = "passthrough"
    REJECT = "reject"


class AnnotationParseError(ValueError):
    """A label line could not be parsed."""

    def __init__(self, message: str, line_number: int | None = None):
        super().__init__(message)
        self.line_number = line_number


@dataclass(frozen=True)
class AnnotationRecord:
    """Normalized bounding box for one element.

    Attributes:
        class_index: Label class.
        center_x: Box center x as a fraction of canvas width.
        center_y: Box center y as a fraction of canvas height.
        width: Box width as a fraction of canvas width.
        height: Box height as a fraction of canvas height.
    """

    class_index: int
    center_x: float
    center_y: float
    width: float
    height: float

    def to_line(self) -> str:
        """Format as a single label line without newline."""
        return (
            f"{self.class_index} {self.center_x:.6f} {self.center_y:.6f} "
            f"{self.width:.6f} {self.height:.6f}"
        )

    def to_rect(self, canvas: CanvasBounds) -> tuple[float, float, float, float]:
        """Re-derive (x, y, width, height) in pixels for a canvas."""
        width = self.width * canvas.width
        height = self.height * canvas.height
        x = self.center_x * canvas.width - width / 2
        y = self.center_y * canvas.height - height / 2
        return x, y, width, height


class AnnotationEncoder:
    """Encodes placed rectangles as normalized annotation records.

    Example:
        >>> encoder = AnnotationEncoder()
        >>> rect = PlacedRect(x=0, y=0, width=80, height=40, class_index=0)
        >>> encoder.encode([rect], CanvasBounds(400, 300))[0].width
        0.2
    """

    def __init__(self, policy: OffCanvasPolicy | str = OffCanvasPolicy.CLIP):
        """Initialize encoder.

        Args:
            policy: Handling of rectangles outside the canvas.
        """
        self._policy = OffCanvasPolicy(policy)

    @property
    def policy(self) -> OffCanvasPolicy:
        return self._policy

    def encode(
        self, rects: Sequence[PlacedRect], canvas: CanvasBounds
    ) -> list[AnnotationRecord]:
        """Encode rectangles in input order.

        Args:
            rects: Placed rectangles.
            canvas: Bounds the rectangles were placed on.

        Returns:
            One record per kept rectangle, in input order.
        """
        canvas.validate()
        records: list[AnnotationRecord] = []
        for rect in rects:
            record = self._encode_one(rect, canvas)
            if record is not None:
                records.append(record)
        return records

    def _encode_one(
        self, rect: PlacedRect, canvas: CanvasBounds
    ) -> AnnotationRecord | None:
        x0, y0, x1, y1 = rect.x, rect.y, rect.right, rect.bottom
        inside = x0 >= 0 and y0 >= 0 and x1 <= canvas.width and y1 <= canvas.height

        if not inside:
            if self._policy is OffCanvasPolicy.REJECT:
                logger.warning(
                    f"Dropping '{rect.name}' annotation: box extends past the canvas"
                )
                return None
            if self._policy is OffCanvasPolicy.CLIP:
                x0, y0 = max(x0, 0.0), max(y0, 0.0)
                x1, y1 = min(x1, canvas.width), min(y1, canvas.height)
                if x1 <= x0 or y1 <= y0:
                    logger.warning(
                        f"Dropping '{rect.name}' annotation: box is off the canvas"
                    )
                    return None

        width = x1 - x0
        height = y1 - y0
        return AnnotationRecord(
            class_index=rect.class_index,
            center_x=(x0 + width / 2) / canvas.width,
            center_y=(y0 + height / 2) / canvas.height,
            width=width / canvas.width,
            height=height / canvas.height,
        )


def format_annotations(records: Iterable[AnnotationRecord]) -> str:
    """Serialize records to label file text.

    Each record becomes one newline-terminated line. No header is written.
    """
    return "".join(f"{record.to_line()}\n" for record in records)


def parse_annotations(text: str) -> list[AnnotationRecord]:
    """Parse label file text back into records.

    Blank lines are ignored.

    Raises:
        AnnotationParseError: If a line does not hold five numeric fields.
    """
    records: list[AnnotationRecord] = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        fields = line.split()
        if len(fields) != 5:
            raise AnnotationParseError(
                f"Line {line_number}: expected 5 fields, got {len(fields)}",
                line_number=line_number,
            )
        try:
            records.append(
                AnnotationRecord(
                    class_index=int(fields[0]),
                    center_x=float(fields[1]),
                    center_y=float(fields[2]),
                    width=float(fields[3]),
                    height=float(fields[4]),
                )
            )
        except ValueError as e:
            raise AnnotationParseError(
                f"Line {line_number}: {e}", line_number=line_number
            ) from e
    return records


def write_label_file(path: Path, records: Iterable[AnnotationRecord]) -> None:
    """Write records to a label file, replacing any existing content."""
    Path(path).write_text(format_annotations(records), encoding="utf-8")


def read_label_file(path: Path) -> list[AnnotationRecord]:
    """Read records from a label file."""
    return parse_annotations(Path(path).read_text(encoding="utf-8"))


def write_class_names(path: Path, names: Sequence[str]) -> None:
    """Write a classes.txt listing one class name per line, by index."""
    Path(path).write_text("".join(f"{name}\n" for name in names), encoding="utf-8")


__all__ = [
    "AnnotationEncoder",
    "AnnotationParseError",
    "AnnotationRecord",
    "OffCanvasPolicy",
    "format_annotations",
    "parse_annotations",
    "read_label_file",
    "write_class_names",
    "write_label_file",
]
