"""Normalized bounding-box annotations and YOLO label file I/O."""

from src.annotation.lib import (
    AnnotationEncoder,
    AnnotationParseError,
    AnnotationRecord,
    OffCanvasPolicy,
    format_annotations,
    parse_annotations,
    read_label_file,
    write_class_names,
    write_label_file,
)

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
