import logging

import pytest

from inkmark.core.annotations import AnnotationElement, AnnotationKind, Point, TextFormat
from inkmark.core.document import (
    AnnotationCompositor,
    CircleDraw,
    FontPair,
    RectangleDraw,
    TextDraw,
    parse_color,
)
from inkmark.errors import InvalidInputError

from conftest import rectangle, text_element

FONTS = FontPair("helv", "hebo")


@pytest.fixture
def compositor():
    return AnnotationCompositor()


def compose(compositor, elements, scale=1.0, page_height=200):
    return compositor.compose(elements, scale, page_height, FONTS)


class TestParseColor:
    def test_hex(self):
        assert parse_color("#ff8000") == pytest.approx((1.0, 128 / 255, 0.0))

    @pytest.mark.parametrize("value", ["red", "#fff", "#12345g", "", None, "ff0000"])
    def test_fallback_is_red(self, value, caplog):
        with caplog.at_level(logging.WARNING):
            assert parse_color(value) == (1.0, 0.0, 0.0)
        assert "Invalid colour" in caplog.text


class TestScenarios:
    def test_rectangle_scenario(self, compositor):
        plan = compose(compositor, [rectangle(10, 10, 50, 40)], scale=1.0, page_height=200)
        (command,) = plan.commands
        assert isinstance(command, RectangleDraw)
        assert (command.x, command.y, command.width, command.height) == (10, 160, 40, 30)
        assert command.border_color == (1.0, 0.0, 0.0)
        assert command.border_width == 2.0

    def test_rectangle_corners_in_any_order(self, compositor):
        plan = compose(compositor, [rectangle(50, 40, 10, 10)], scale=1.0, page_height=200)
        command = plan.commands[0]
        assert (command.x, command.y, command.width, command.height) == (10, 160, 40, 30)

    def test_text_scenario(self, compositor):
        plan = compose(compositor, [text_element("Hi", 20, 30, font_size=16)],
                       scale=2.0, page_height=300)
        (command,) = plan.commands
        assert isinstance(command, TextDraw)
        assert (command.x, command.y, command.size) == (10, 285, 8)
        assert command.text == "Hi"
        assert command.font == "helv"


class TestShapes:
    def test_circle(self, compositor):
        element = AnnotationElement(AnnotationKind.CIRCLE, [Point(10, 10), Point(13, 14)])
        (command,) = compose(compositor, [element], scale=2.0, page_height=100).commands
        assert isinstance(command, CircleDraw)
        assert (command.x, command.y) == (5, 95)
        assert command.radius == pytest.approx(2.5)
        assert command.border_width == 1.0

    def test_highlight_fallback_height(self, compositor):
        element = AnnotationElement(AnnotationKind.HIGHLIGHT, [Point(10, 50), Point(60, 50)],
                                    color="#ffff00")
        (command,) = compose(compositor, [element], scale=2.0, page_height=300).commands
        assert (command.x, command.y, command.width, command.height) == (5, 265, 25, 10)
        assert command.opacity == pytest.approx(0.3)
        assert command.color == (1.0, 1.0, 0.0)
        assert command.border_color is None

    def test_draw_segments(self, compositor):
        element = AnnotationElement(AnnotationKind.DRAW,
                                    [Point(0, 0), Point(10, 0), Point(10, 0), Point(10, 10)])
        commands = compose(compositor, [element], page_height=100).commands
        assert len(commands) == 2
        assert commands[0].width == pytest.approx(10)
        assert commands[0].rotate == pytest.approx(0)
        assert commands[1].rotate == pytest.approx(-90)
        assert all(c.height == 2.0 for c in commands)

    def test_arrow_shaft_and_barbs(self, compositor):
        element = AnnotationElement(AnnotationKind.ARROW, [Point(0, 100), Point(100, 100)])
        shaft, left, right = compose(compositor, [element], page_height=200).commands
        assert shaft.width == pytest.approx(100)
        assert left.width == pytest.approx(15)
        assert right.width == pytest.approx(15)
        assert abs(left.rotate) == pytest.approx(abs(right.rotate))

    def test_arrow_without_length_draws_nothing(self, compositor):
        element = AnnotationElement(AnnotationKind.ARROW, [Point(5, 5), Point(5, 5)])
        plan = compose(compositor, [element])
        assert plan.commands == []

    def test_sizes_divided_by_scale(self, compositor):
        element = rectangle(stroke_width=6)
        command = compose(compositor, [element], scale=3.0).commands[0]
        assert command.border_width == pytest.approx(2.0)


class TestText:
    def test_multiline(self, compositor):
        plan = compose(compositor, [text_element("one\ntwo", 0, 20, font_size=10)],
                       page_height=100)
        first, second = plan.commands
        assert first.y == pytest.approx(80)
        assert second.y == pytest.approx(68)

    def test_bold_uses_bold_face(self, compositor):
        element = text_element(text_format=TextFormat(is_bold=True, color="#0000ff"))
        (command,) = compose(compositor, [element]).commands
        assert command.font == "hebo"
        assert command.color == (0.0, 0.0, 1.0)

    def test_underline_and_background(self, compositor):
        element = text_element(
            text_format=TextFormat(is_underline=True, background_color="#ffff00"))
        background, text, underline = compose(compositor, [element]).commands
        assert isinstance(background, RectangleDraw)
        assert background.color == (1.0, 1.0, 0.0)
        assert isinstance(text, TextDraw)
        assert isinstance(underline, RectangleDraw)
        assert underline.y < text.y

    def test_italic_is_flagged(self, compositor):
        element = text_element(text_format=TextFormat(is_italic=True))
        plan = compose(compositor, [element])
        assert len(plan.commands) == 1
        assert any("Italic" in w for w in plan.warnings)


class TestFiltering:
    def test_editing_elements_excluded(self, compositor):
        editing = text_element(is_editing=True)
        kept = rectangle()
        plan = compose(compositor, [editing, kept])

        assert plan.drawn == [kept.id]
        assert plan.skipped == [editing.id]
        assert not any(isinstance(c, TextDraw) for c in plan.commands)

    def test_incomplete_shape_skipped(self, compositor):
        element = AnnotationElement(AnnotationKind.RECTANGLE, [Point(1, 1)])
        plan = compose(compositor, [element])
        assert plan.commands == []
        assert plan.skipped == [element.id]

    def test_invalid_color_still_exported(self, compositor):
        plan = compose(compositor, [rectangle(color="blue")])
        assert plan.commands[0].border_color == (1.0, 0.0, 0.0)

    @pytest.mark.parametrize("scale", [0, -1.0])
    def test_rejects_non_positive_scale(self, compositor, scale):
        with pytest.raises(InvalidInputError):
            compose(compositor, [rectangle()], scale=scale)
