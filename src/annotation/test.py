"""Unit tests for the annotation module."""

import pytest

from src.annotation import (
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
from src.layout import CanvasBounds, DegenerateCanvasError, PlacedRect


def _rect(x, y, w, h, class_index=0, name="Button", fallback=False):
    return PlacedRect(
        x=x, y=y, width=w, height=h, class_index=class_index, name=name, fallback=fallback
    )


class TestAnnotationEncoder:
    """Tests for AnnotationEncoder.encode."""

    @pytest.mark.unit
    def test_button_on_400x300(self):
        """An 80x40 button on a 400x300 canvas normalizes as expected."""
        canvas = CanvasBounds(400, 300)
        [record] = AnnotationEncoder().encode([_rect(120, 90, 80, 40)], canvas)

        assert record.class_index == 0
        assert record.width == pytest.approx(0.2)
        assert record.height == pytest.approx(0.1333, abs=1e-4)
        assert record.center_x == pytest.approx(160 / 400)
        assert record.center_y == pytest.approx(110 / 300)
        assert 0 <= record.center_x <= 1
        assert 0 <= record.center_y <= 1

    @pytest.mark.unit
    def test_preserves_order_and_class(self):
        """Records follow input order and keep class indices."""
        canvas = CanvasBounds(400, 300)
        rects = [_rect(0, 0, 10, 10, 8), _rect(50, 50, 10, 10, 2), _rect(90, 0, 5, 5, 8)]
        records = AnnotationEncoder().encode(rects, canvas)
        assert [r.class_index for r in records] == [8, 2, 8]

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "rect",
        [(0, 0, 400, 300), (0, 0, 1, 1), (399, 299, 1, 1), (123.4, 56.7, 80.5, 40.25)],
    )
    def test_inside_rects_round_trip(self, rect):
        """Boxes inside the canvas stay in [0, 1] and reconstruct the rect."""
        canvas = CanvasBounds(400, 300)
        [record] = AnnotationEncoder().encode([_rect(*rect)], canvas)

        for value in (record.center_x, record.center_y, record.width, record.height):
            assert 0.0 <= value <= 1.0
        assert record.to_rect(canvas) == pytest.approx(rect)

    @pytest.mark.unit
    def test_clip_policy_clamps_off_canvas_fallback(self):
        """Fallback boxes past the canvas edge are clipped to it."""
        canvas = CanvasBounds(100, 80)
        [record] = AnnotationEncoder().encode([_rect(50, 50, 200, 200, fallback=True)], canvas)

        assert record.width == pytest.approx(0.5)
        assert record.height == pytest.approx(30 / 80)
        assert record.center_x == pytest.approx(0.75)
        assert record.center_y == pytest.approx(65 / 80)
        for value in (record.center_x, record.center_y, record.width, record.height):
            assert 0.0 <= value <= 1.0

    @pytest.mark.unit
    def test_clip_policy_drops_invisible_box(self, caplog):
        """Boxes entirely outside the canvas produce no record."""
        canvas = CanvasBounds(40, 40)
        records = AnnotationEncoder().encode([_rect(50, 50, 10, 10, name="menu")], canvas)
        assert records == []
        assert "menu" in caplog.text

    @pytest.mark.unit
    def test_passthrough_policy_keeps_raw_values(self):
        """Passthrough normalizes the unclipped rectangle."""
        canvas = CanvasBounds(100, 100)
        encoder = AnnotationEncoder(policy="passthrough")
        [record] = encoder.encode([_rect(50, 50, 200, 10)], canvas)
        assert encoder.policy is OffCanvasPolicy.PASSTHROUGH
        assert record.width == pytest.approx(2.0)
        assert record.center_x == pytest.approx(1.5)

    @pytest.mark.unit
    def test_reject_policy_drops_partial_box(self):
        """Reject drops boxes that are not fully inside."""
        canvas = CanvasBounds(100, 100)
        encoder = AnnotationEncoder(policy=OffCanvasPolicy.REJECT)
        records = encoder.encode([_rect(10, 10, 20, 20), _rect(90, 90, 20, 20)], canvas)
        assert len(records) == 1
        assert records[0].center_x == pytest.approx(0.2)

    @pytest.mark.unit
    def test_unknown_policy(self):
        """Unknown policy names are rejected."""
        with pytest.raises(ValueError):
            AnnotationEncoder(policy="wrap")

    @pytest.mark.unit
    def test_degenerate_canvas_raises(self):
        """Encoding against degenerate bounds is refused."""
        with pytest.raises(DegenerateCanvasError):
            AnnotationEncoder().encode([_rect(0, 0, 1, 1)], CanvasBounds(0, 0))


class TestFormatAnnotations:
    """Tests for the label text format."""

    @pytest.mark.unit
    def test_exact_format(self):
        """Six decimals, space separated, integer class, final newline only."""
        records = [
            AnnotationRecord(0, 0.4, 0.366667, 0.2, 0.133333),
            AnnotationRecord(8, 0.5, 0.5, 1.0, 1.0),
        ]
        assert format_annotations(records) == (
            "0 0.400000 0.366667 0.200000 0.133333\n"
            "8 0.500000 0.500000 1.000000 1.000000\n"
        )

    @pytest.mark.unit
    def test_empty(self):
        """No records produce empty text."""
        assert format_annotations([]) == ""

    @pytest.mark.unit
    def test_rounding(self):
        """Values are rounded to six decimals."""
        line = AnnotationRecord(3, 1 / 3, 2 / 3, 0.1234567, 0.0000004).to_line()
        assert line == "3 0.333333 0.666667 0.123457 0.000000"


class TestParseAnnotations:
    """Tests for parsing label text."""

    @pytest.mark.unit
    def test_parse(self):
        """Lines parse into records."""
        [record] = parse_annotations("2 0.100000 0.200000 0.300000 0.400000\n")
        assert record == AnnotationRecord(2, 0.1, 0.2, 0.3, 0.4)

    @pytest.mark.unit
    def test_blank_lines_ignored(self):
        """Blank lines are skipped."""
        text = "\n1 0.5 0.5 0.1 0.1\n\n"
        assert len(parse_annotations(text)) == 1

    @pytest.mark.unit
    def test_wrong_field_count(self):
        """Lines without five fields raise with the line number."""
        with pytest.raises(AnnotationParseError) as exc_info:
            parse_annotations("1 0.5 0.5 0.1 0.1\n1 0.5 0.5\n")
        assert exc_info.value.line_number == 2

    @pytest.mark.unit
    def test_non_numeric(self):
        """Non-numeric fields raise AnnotationParseError."""
        with pytest.raises(AnnotationParseError, match="Line 1"):
            parse_annotations("x 0.5 0.5 0.1 0.1\n")


class TestLabelFiles:
    """Tests for label file I/O."""

    @pytest.mark.unit
    def test_file_round_trip(self, tmp_path):
        """Written records re-parse within the six-decimal tolerance."""
        canvas = CanvasBounds(640, 480)
        rects = [
            _rect(12.345, 67.891, 80.5, 40.1, 0),
            _rect(300.2, 10.01, 150.75, 99.9, 8),
            _rect(0, 0, 640, 480, 5),
            _rect(555.5, 400.25, 33.3, 22.2, 2),
        ]
        records = AnnotationEncoder().encode(rects, canvas)
        path = tmp_path / "Screenshot_20260101_000000.txt"

        write_label_file(path, records)
        parsed = read_label_file(path)

        assert len(parsed) == len(records)
        for original, restored in zip(records, parsed):
            assert restored.class_index == original.class_index
            assert restored.center_x == pytest.approx(original.center_x, abs=1e-6)
            assert restored.center_y == pytest.approx(original.center_y, abs=1e-6)
            assert restored.width == pytest.approx(original.width, abs=1e-6)
            assert restored.height == pytest.approx(original.height, abs=1e-6)

    @pytest.mark.unit
    def test_file_has_no_trailing_blank_line(self, tmp_path):
        """The file ends with exactly one newline."""
        path = tmp_path / "labels.txt"
        write_label_file(path, [AnnotationRecord(0, 0.5, 0.5, 0.1, 0.1)])
        text = path.read_text()
        assert text.endswith("\n")
        assert not text.endswith("\n\n")

    @pytest.mark.unit
    def test_write_class_names(self, tmp_path):
        """classes.txt lists one name per line."""
        path = tmp_path / "classes.txt"
        write_class_names(path, ["Button", "CheckBox"])
        assert path.read_text() == "Button\nCheckBox\n"
